"""Output renderers for search results (console text, JSON)."""

from __future__ import annotations

from WeaveQuery.renderers.console import render_text
from WeaveQuery.renderers.json import dumps as render_json_text
from WeaveQuery.renderers.json import render_json

OUTPUT_FORMATS = ("text", "json")


def render(models, output_format: str) -> str:
    """Render models in one of `OUTPUT_FORMATS`.

    Raises:
        ValueError: If the format is unknown.
    """
    if output_format == "text":
        return render_text(models)
    if output_format == "json":
        return render_json_text(models) + "\n"
    raise ValueError(f"Unsupported output format: {output_format}")


__all__ = ["OUTPUT_FORMATS", "render", "render_json", "render_json_text", "render_text"]

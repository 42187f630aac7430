"""JSON rendering of search results."""

from __future__ import annotations

import json
from typing import Iterable

from WeaveQuery.core.models import Block, Transaction, model_to_dict


def render_json(models: Iterable[Transaction | Block]) -> list[dict]:
    """Render result models into JSON-serializable Python objects.

    Args:
        models: Iterable of result models.

    Returns:
        One dict per model holding its populated fields, plus `cursor` for
        entries of list searches.
    """
    return [model_to_dict(model) for model in models]


def dumps(models: Iterable[Transaction | Block]) -> str:
    """Serialize result models as an indented JSON array."""
    return json.dumps(render_json(models), ensure_ascii=False, indent=2)

"""Console text rendering of search results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from WeaveQuery.core.models import Block, Transaction


def _fmt_ts(timestamp: Optional[int]) -> str:
    """Format a block timestamp (seconds) as a UTC date-time, "-" when unknown."""
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _transaction_lines(tx: Transaction) -> list[str]:
    lines: list[str] = []
    if tx._owner and tx._owner.address:
        lines.append(f"   Owner: {tx._owner.address}")
    if tx._recipient:
        lines.append(f"   Recipient: {tx._recipient}")
    if tx._quantity and tx._quantity.ar:
        lines.append(f"   Quantity: {tx._quantity.ar} AR")
    if tx._data:
        size = "-" if tx._data.size is None else tx._data.size
        lines.append(f"   Data: {size} bytes {tx._data.type or ''}".rstrip())
    if tx._block:
        lines.append(f"   Block: {tx._block.height}  Mined: {_fmt_ts(tx._block.timestamp)}")
    if tx._tags:
        lines.append("   Tags:")
        lines.extend(f"     {tag.name} = {tag.value}" for tag in tx._tags)
    return lines


def render_text(models: Iterable[Transaction | Block]) -> str:
    """Render transactions and blocks into a human-readable text block.

    Only the fields returned by the gateway are shown.

    Args:
        models: Iterable of result models.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    for idx, model in enumerate(models, start=1):
        lines.append(f"{idx}. {model._id or '-'}")
        if isinstance(model, Block):
            lines.append(f"   Height: {model._height}  Mined: {_fmt_ts(model._timestamp)}")
            if model._previous:
                lines.append(f"   Previous: {model._previous}")
        else:
            lines.extend(_transaction_lines(model))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"

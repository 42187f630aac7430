"""Catalog of selectable transaction fields.

Field tokens are dotted paths into the gateway's transaction record. Parent
fields (`owner`, `fee`, ...) are GraphQL objects and can only be requested
together with at least one child, so every selection is kept closed under
these rules:

- a parent without any child gets all of its children;
- a child without its parent gets the parent.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Union

from WeaveQuery.utils.log import log


class Field(str, Enum):
    """Selectable transaction field."""

    ID = "id"
    ANCHOR = "anchor"
    SIGNATURE = "signature"
    RECIPIENT = "recipient"
    OWNER = "owner"
    OWNER_ADDRESS = "owner.address"
    OWNER_KEY = "owner.key"
    FEE = "fee"
    FEE_WINSTON = "fee.winston"
    FEE_AR = "fee.ar"
    QUANTITY = "quantity"
    QUANTITY_WINSTON = "quantity.winston"
    QUANTITY_AR = "quantity.ar"
    DATA = "data"
    DATA_SIZE = "data.size"
    DATA_TYPE = "data.type"
    TAGS = "tags"
    TAGS_NAME = "tags.name"
    TAGS_VALUE = "tags.value"
    BLOCK = "block"
    BLOCK_ID = "block.id"
    BLOCK_TIMESTAMP = "block.timestamp"
    BLOCK_HEIGHT = "block.height"
    BLOCK_PREVIOUS = "block.previous"
    PARENT = "parent"
    PARENT_ID = "parent.id"

    @property
    def leaf_name(self) -> str:
        """Last path segment, as written in the GraphQL selection."""
        return self.value.rsplit(".", 1)[-1]


FieldToken = Union[Field, str]

PARENT_CHILDREN: Mapping[Field, tuple[Field, ...]] = MappingProxyType(
    {
        Field.OWNER: (Field.OWNER_ADDRESS, Field.OWNER_KEY),
        Field.FEE: (Field.FEE_WINSTON, Field.FEE_AR),
        Field.QUANTITY: (Field.QUANTITY_WINSTON, Field.QUANTITY_AR),
        Field.DATA: (Field.DATA_SIZE, Field.DATA_TYPE),
        Field.TAGS: (Field.TAGS_NAME, Field.TAGS_VALUE),
        Field.BLOCK: (Field.BLOCK_ID, Field.BLOCK_TIMESTAMP, Field.BLOCK_HEIGHT, Field.BLOCK_PREVIOUS),
        Field.PARENT: (Field.PARENT_ID,),
    }
)

CHILD_PARENT: Mapping[Field, Field] = MappingProxyType(
    {child: parent for parent, children in PARENT_CHILDREN.items() for child in children}
)

# Top-level fields in the order they are rendered.
TOP_LEVEL_FIELDS: tuple[Field, ...] = tuple(field for field in Field if field not in CHILD_PARENT)

BLOCK_FIELDS: tuple[str, ...] = ("id", "timestamp", "height", "previous")


def all_fields() -> set[Field]:
    """Return a new selection holding every catalog field."""
    return set(Field)


def parse_fields(tokens: FieldToken | Iterable[FieldToken]) -> set[Field]:
    """Validate tokens against the catalog.

    Args:
        tokens: One token or an iterable of tokens (`Field` or string).

    Returns:
        The recognised fields; unknown tokens are dropped.
    """
    if isinstance(tokens, (str, Field)):
        tokens = [tokens]

    parsed: set[Field] = set()
    for token in tokens:
        if isinstance(token, Field):
            parsed.add(token)
            continue
        try:
            parsed.add(Field(str(token).strip()))
        except ValueError:
            log.debug("Ignoring unknown field token: %r", token)
    return parsed


def close_selection(selection: set[Field]) -> set[Field]:
    """Enforce the parent/child rules on a selection, in place.

    Args:
        selection: Caller-owned selection to complete.

    Returns:
        The same set, for chaining.
    """
    for child, parent in CHILD_PARENT.items():
        if child in selection:
            selection.add(parent)
    for parent, children in PARENT_CHILDREN.items():
        if parent in selection and not any(child in selection for child in children):
            selection.update(children)
    return selection


def remove_fields(selection: set[Field], excluded: Iterable[Field]) -> set[Field]:
    """Remove fields from a selection, in place, keeping it closed.

    Removing a parent removes its children. A parent whose children were all
    removed is removed as well, otherwise closing the selection would bring
    the children back.

    Args:
        selection: Caller-owned selection.
        excluded: Fields to drop.

    Returns:
        The same set, for chaining.
    """
    for field in excluded:
        selection.discard(field)
        selection.difference_update(PARENT_CHILDREN.get(field, ()))

    for parent, children in PARENT_CHILDREN.items():
        if parent in selection and not any(child in selection for child in children):
            selection.discard(parent)
    return close_selection(selection)

"""GraphQL query compiler.

Compiles a `SearchSpec` and a field selection into the query text expected by
the gateway's `/graphql` endpoint.

Rules
- Parameters that do not apply to the search kind are never rendered:
  single lookups (`transaction`, `block`) take the id only, `transactions`
  drops the height range, `blocks` drops owners, recipients and tags.
- `after` is always rendered for list kinds, as `""` at the start of a
  result set.
- List kinds wrap the entity fields in
  `pageInfo { hasNextPage } edges { cursor node { ... } }`.

The query is assembled as a graphql-core document and printed with
`graphql.print_ast`, so rendering the same state twice gives the same text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping

from graphql import (
    ArgumentNode,
    BooleanValueNode,
    DocumentNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    IntValueNode,
    ListValueNode,
    NameNode,
    NullValueNode,
    ObjectFieldNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    StringValueNode,
    ValueNode,
    print_ast,
)

from WeaveQuery.core.errors import InvalidQueryError
from WeaveQuery.core.fields import (
    BLOCK_FIELDS,
    PARENT_CHILDREN,
    TOP_LEVEL_FIELDS,
    Field,
    all_fields,
)
from WeaveQuery.core.query import SearchKind, SearchSpec


def _name(value: str) -> NameNode:
    return NameNode(value=value)


def value_node(value: Any) -> ValueNode:
    """Convert a Python value into a GraphQL input literal node.

    Enum members become enum literals (unquoted), mappings become input
    objects with keys in insertion order.

    Raises:
        TypeError: If the value has no GraphQL representation.
    """
    if isinstance(value, Enum):
        return EnumValueNode(value=str(value.value))
    if value is None:
        return NullValueNode()
    if isinstance(value, bool):
        return BooleanValueNode(value=value)
    if isinstance(value, int):
        return IntValueNode(value=str(value))
    if isinstance(value, float):
        return FloatValueNode(value=repr(value))
    if isinstance(value, str):
        return StringValueNode(value=value)
    if isinstance(value, Mapping):
        return ObjectValueNode(
            fields=tuple(ObjectFieldNode(name=_name(str(key)), value=value_node(item)) for key, item in value.items())
        )
    if isinstance(value, (list, tuple)):
        return ListValueNode(values=tuple(value_node(item) for item in value))
    raise TypeError(f"Cannot render {type(value).__name__} as a GraphQL value")


def field_node(name: str, children: Iterable[FieldNode] = (), arguments: Mapping[str, Any] | None = None) -> FieldNode:
    """Build one selection field, with a nested selection set when it has children."""
    selections = tuple(children)
    return FieldNode(
        name=_name(name),
        arguments=tuple(
            ArgumentNode(name=_name(key), value=value_node(item)) for key, item in (arguments or {}).items()
        ),
        directives=(),
        selection_set=SelectionSetNode(selections=selections) if selections else None,
    )


def build_arguments(spec: SearchSpec) -> dict[str, Any]:
    """Collect the parameters relevant to the search kind, in a fixed order.

    Args:
        spec: Search state.

    Returns:
        Ordered argument mapping; empty when nothing can be rendered.
    """
    kind = spec.kind
    if kind is None:
        return {}

    if kind.is_single:
        return {"id": spec.id} if spec.id else {}

    args: dict[str, Any] = {}
    if spec.ids:
        args["ids"] = list(spec.ids)

    if kind is SearchKind.TRANSACTIONS:
        if spec.owners:
            args["owners"] = list(spec.owners)
        if spec.recipients:
            args["recipients"] = list(spec.recipients)
        if spec.tags:
            args["tags"] = [{"name": tag.name, "values": list(tag.values)} for tag in spec.tags]
    elif spec.height is not None:
        bounds = {}
        if spec.height.min is not None:
            bounds["min"] = spec.height.min
        if spec.height.max is not None:
            bounds["max"] = spec.height.max
        if bounds:
            args["height"] = bounds

    if spec.first is not None:
        args["first"] = spec.first
    args["after"] = spec.after or ""
    if spec.sort is not None:
        args["sort"] = spec.sort
    return args


def build_entity_fields(kind: SearchKind, fields: set[Field] | None = None) -> tuple[FieldNode, ...]:
    """Build the entity selection for one record.

    Args:
        kind: Search kind.
        fields: Closed transaction field selection; None or empty means all.

    Returns:
        Field nodes of one transaction or block.
    """
    if kind.is_block:
        return tuple(field_node(name) for name in BLOCK_FIELDS)

    selected = fields or all_fields()
    nodes: list[FieldNode] = []
    for field in TOP_LEVEL_FIELDS:
        if field not in selected:
            continue
        children = PARENT_CHILDREN.get(field, ())
        if not children:
            nodes.append(field_node(field.leaf_name))
            continue
        picked = [child for child in children if child in selected] or list(children)
        nodes.append(field_node(field.leaf_name, (field_node(child.leaf_name) for child in picked)))
    return tuple(nodes)


def build_selection(kind: SearchKind, fields: set[Field] | None = None) -> tuple[FieldNode, ...]:
    """Build the full selection set for a search kind."""
    entity = build_entity_fields(kind, fields)
    if kind.is_single:
        return entity
    return (
        field_node("pageInfo", (field_node("hasNextPage"),)),
        field_node("edges", (field_node("cursor"), field_node("node", entity))),
    )


def build_document(spec: SearchSpec, fields: set[Field] | None = None) -> DocumentNode:
    """Compile a search spec into a GraphQL document.

    Raises:
        InvalidQueryError: If no kind is set or there is nothing to query by.
    """
    if spec.kind is None:
        raise InvalidQueryError("Invalid options. You need to first choose a search kind!")

    args = build_arguments(spec)
    if not args:
        raise InvalidQueryError("Invalid options. You need to first set your options!")

    root = field_node(spec.kind.value, build_selection(spec.kind, fields), args)
    operation = OperationDefinitionNode(
        operation=OperationType.QUERY,
        name=None,
        variable_definitions=(),
        directives=(),
        selection_set=SelectionSetNode(selections=(root,)),
    )
    return DocumentNode(definitions=(operation,))


def render_query(spec: SearchSpec, fields: set[Field] | None = None) -> str:
    """Compile a search spec into GraphQL query text.

    Args:
        spec: Search state.
        fields: Closed transaction field selection; None or empty means all.

    Returns:
        GraphQL query text.

    Raises:
        InvalidQueryError: If no kind is set or there is nothing to query by.
    """
    return print_ast(build_document(spec, fields)).strip()

"""Declarative document schemas and record validation.

A schema is a table of field descriptors:

    name -> {type, required, indexed}

Indexed fields are stored as entry tags and can be used in filters.
Non-indexed fields are stored in the entry payload and are only available
after fetching it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from WeaveQuery.core.errors import ValidationError

# Metadata maintained by the document layer, never part of a schema.
ID_FIELD = "_id"
VERSION_FIELD = "_v"
CREATED_AT_FIELD = "_createdAt"
TX_ID_FIELD = "_txId"
MINED_AT_FIELD = "_minedAt"
METADATA_FIELDS = frozenset({ID_FIELD, VERSION_FIELD, CREATED_AT_FIELD, TX_ID_FIELD, MINED_AT_FIELD})

SCALAR_TYPES = frozenset({"string", "number", "integer", "boolean"})
FIELD_TYPES = SCALAR_TYPES | {"object", "array"}

_TYPE_ALIASES: dict[Any, str] = {
    "string": "string",
    "str": "string",
    str: "string",
    "number": "number",
    "float": "number",
    float: "number",
    "integer": "integer",
    "int": "integer",
    int: "integer",
    "boolean": "boolean",
    "bool": "boolean",
    bool: "boolean",
    "object": "object",
    "dict": "object",
    dict: "object",
    "array": "array",
    "list": "array",
    list: "array",
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Descriptor of one document field.

    Attributes:
        name: Field name; must not start with an underscore.
        type: One of string/number/integer/boolean/object/array.
        required: Whether every record must carry the field.
        indexed: Whether the field is stored as a searchable tag.
    """

    name: str
    type: str
    required: bool = True
    indexed: bool = True

    def accepts(self, value: Any) -> bool:
        """Return True when `value` has the declared runtime type."""
        if self.type == "string":
            return isinstance(value, str)
        if self.type == "boolean":
            return isinstance(value, bool)
        if self.type == "integer":
            return isinstance(value, int) and not isinstance(value, bool)
        if self.type == "number":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.type == "object":
            return isinstance(value, Mapping)
        if self.type == "array":
            return isinstance(value, (list, tuple))
        return False


class Schema:
    """Ordered, immutable collection of field descriptors."""

    def __init__(self, fields: Iterable[FieldSpec]) -> None:
        self._fields: dict[str, FieldSpec] = {}
        for spec in fields:
            _check_field_spec(spec)
            if spec.name in self._fields:
                raise ValueError(f"Duplicate schema field: {spec.name}")
            self._fields[spec.name] = spec

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Schema:
        """Build a schema from a compact mapping.

        Each value is either a type (name like "string"/"number" or a Python
        type like `int`) or a mapping with `type` and optional `required`
        (default True) and `indexed` (default True for scalar types).

        Example:
            >>> Schema.from_mapping({"age": "number", "father": {"type": "string", "required": False}})

        Raises:
            ValueError: If a type is unknown or an object/array field is indexed.
        """
        fields: list[FieldSpec] = []
        for name, value in raw.items():
            options: Mapping[str, Any] = value if isinstance(value, Mapping) else {"type": value}
            type_name = _resolve_type(options.get("type"), name)
            fields.append(
                FieldSpec(
                    name=str(name),
                    type=type_name,
                    required=bool(options.get("required", True)),
                    indexed=bool(options.get("indexed", type_name in SCALAR_TYPES)),
                )
            )
        return cls(fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self):
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, name: str) -> FieldSpec | None:
        return self._fields.get(name)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._fields.values() if spec.required)

    @property
    def indexed_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._fields.values() if spec.indexed)

    @property
    def payload_fields(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._fields.values() if not spec.indexed)


def validate_record(schema: Schema, record: Mapping[str, Any]) -> None:
    """Check a record against its schema.

    Metadata fields (`_id`, `_v`, ...) are ignored; they are always set by the
    document layer.

    Args:
        schema: Document schema.
        record: Application record.

    Raises:
        ValidationError: If required fields are missing, a field is not
            declared, or a value has the wrong type.
    """
    missing = [name for name in schema.required_fields if record.get(name) is None]
    if missing:
        raise ValidationError(
            f"Required fields missing: {', '.join(missing)}",
            field=missing[0] if len(missing) == 1 else None,
        )

    for name, value in record.items():
        if name in METADATA_FIELDS:
            continue
        spec = schema.get(name)
        if spec is None:
            raise ValidationError(f"Unknown field: {name}", field=name)
        if value is None and not spec.required:
            continue
        if not spec.accepts(value):
            raise ValidationError(
                f"Invalid {name} type: expected {spec.type}, got {type(value).__name__}",
                field=name,
            )


def _resolve_type(raw_type: Any, field_name: str) -> str:
    key = raw_type.strip().lower() if isinstance(raw_type, str) else raw_type
    try:
        return _TYPE_ALIASES[key]
    except (KeyError, TypeError):
        raise ValueError(f"Unsupported type for schema field {field_name}: {raw_type!r}") from None


def _check_field_spec(spec: FieldSpec) -> None:
    if not spec.name or spec.name.startswith("_"):
        raise ValueError(f"Schema field names must be non-empty and not start with '_': {spec.name!r}")
    if spec.type not in FIELD_TYPES:
        raise ValueError(f"Unsupported type for schema field {spec.name}: {spec.type!r}")
    if spec.indexed and spec.type not in SCALAR_TYPES:
        raise ValueError(f"Schema field {spec.name} of type {spec.type} cannot be indexed")

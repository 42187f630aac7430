from __future__ import annotations

from dataclasses import asdict, dataclass, fields, is_dataclass
from typing import Any, Mapping, Optional, Sequence

from WeaveQuery.utils.log import log


def _warn_if_missing(value: Any, label: str) -> Any:
    if value is None:
        log.warning("%s wasn't defined, make sure you have selected to return it.", label)
    return value


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class Owner:
    address: Optional[str] = None
    key: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Amount:
    """Token amount, in winston and in AR (both decimal strings)."""

    winston: Optional[str] = None
    ar: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DataInfo:
    """Payload metadata: size in bytes and declared content type."""

    size: Optional[int] = None
    type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Tag:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class BlockInfo:
    """Block an entry was mined in."""

    id: Optional[str] = None
    timestamp: Optional[int] = None
    height: Optional[int] = None
    previous: Optional[str] = None

    @classmethod
    def from_node(cls, node: Mapping[str, Any]) -> BlockInfo:
        return cls(
            id=node.get("id"),
            timestamp=_as_int(node.get("timestamp")),
            height=_as_int(node.get("height")),
            previous=node.get("previous"),
        )


@dataclass(frozen=True, slots=True)
class ParentInfo:
    """Bundle an entry was nested in."""

    id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Transaction:
    """Read-only view of a transaction returned by the gateway.

    Only the fields selected for the query are populated. Reading an unset
    field returns None and logs a warning suggesting it was not selected; it
    never raises.
    """

    _id: Optional[str] = None
    _anchor: Optional[str] = None
    _signature: Optional[str] = None
    _recipient: Optional[str] = None
    _owner: Optional[Owner] = None
    _fee: Optional[Amount] = None
    _quantity: Optional[Amount] = None
    _data: Optional[DataInfo] = None
    _tags: Optional[tuple[Tag, ...]] = None
    _block: Optional[BlockInfo] = None
    _parent: Optional[ParentInfo] = None
    cursor: Optional[str] = None

    @classmethod
    def from_node(cls, node: Mapping[str, Any], *, cursor: str | None = None) -> Transaction:
        """Build a transaction view from a GraphQL node.

        Args:
            node: Transaction object as returned by the gateway.
            cursor: Edge cursor for list results.

        Returns:
            Transaction view.
        """
        owner = _as_mapping(node.get("owner"))
        fee = _as_mapping(node.get("fee"))
        quantity = _as_mapping(node.get("quantity"))
        data = _as_mapping(node.get("data"))
        block = _as_mapping(node.get("block"))
        parent = _as_mapping(node.get("parent"))
        raw_tags = node.get("tags")

        tags: tuple[Tag, ...] | None = None
        if isinstance(raw_tags, Sequence) and not isinstance(raw_tags, str):
            tags = tuple(
                Tag(name=str(tag.get("name", "")), value=str(tag.get("value", "")))
                for tag in raw_tags
                if isinstance(tag, Mapping)
            )

        return cls(
            _id=node.get("id"),
            _anchor=node.get("anchor"),
            _signature=node.get("signature"),
            _recipient=node.get("recipient"),
            _owner=Owner(address=owner.get("address"), key=owner.get("key")) if owner else None,
            _fee=Amount(winston=fee.get("winston"), ar=fee.get("ar")) if fee else None,
            _quantity=Amount(winston=quantity.get("winston"), ar=quantity.get("ar")) if quantity else None,
            _data=DataInfo(size=_as_int(data.get("size")), type=data.get("type")) if data else None,
            _tags=tags,
            _block=BlockInfo.from_node(block) if block else None,
            # Pending or top-level entries come back with `parent: null` or an empty id.
            _parent=ParentInfo(id=parent["id"]) if parent and parent.get("id") else None,
            cursor=cursor,
        )

    @property
    def id(self) -> Optional[str]:
        return _warn_if_missing(self._id, "ID")

    @property
    def anchor(self) -> Optional[str]:
        return _warn_if_missing(self._anchor, "Anchor")

    @property
    def signature(self) -> Optional[str]:
        return _warn_if_missing(self._signature, "Signature")

    @property
    def recipient(self) -> Optional[str]:
        return _warn_if_missing(self._recipient, "Recipient")

    @property
    def owner(self) -> Optional[Owner]:
        return _warn_if_missing(self._owner, "Owner")

    @property
    def fee(self) -> Optional[Amount]:
        return _warn_if_missing(self._fee, "Fee")

    @property
    def quantity(self) -> Optional[Amount]:
        return _warn_if_missing(self._quantity, "Quantity")

    @property
    def data(self) -> Optional[DataInfo]:
        return _warn_if_missing(self._data, "Data")

    @property
    def tags(self) -> Optional[tuple[Tag, ...]]:
        return _warn_if_missing(self._tags, "Tags")

    @property
    def block(self) -> Optional[BlockInfo]:
        return _warn_if_missing(self._block, "Block")

    @property
    def parent(self) -> Optional[ParentInfo]:
        return _warn_if_missing(self._parent, "Parent")

    @property
    def is_pending(self) -> bool:
        """True when the entry is not mined yet (or `block` was not selected)."""
        return self._block is None

    def tag_map(self) -> dict[str, str]:
        """Return tag values by name; the last tag wins on duplicate names."""
        return {tag.name: tag.value for tag in self.tags or ()}


@dataclass(frozen=True, slots=True)
class Block:
    """Read-only view of a block returned by the gateway."""

    _id: Optional[str] = None
    _timestamp: Optional[int] = None
    _height: Optional[int] = None
    _previous: Optional[str] = None
    cursor: Optional[str] = None

    @classmethod
    def from_node(cls, node: Mapping[str, Any], *, cursor: str | None = None) -> Block:
        return cls(
            _id=node.get("id"),
            _timestamp=_as_int(node.get("timestamp")),
            _height=_as_int(node.get("height")),
            _previous=node.get("previous"),
            cursor=cursor,
        )

    @property
    def id(self) -> Optional[str]:
        return _warn_if_missing(self._id, "ID")

    @property
    def timestamp(self) -> Optional[int]:
        return _warn_if_missing(self._timestamp, "Timestamp")

    @property
    def height(self) -> Optional[int]:
        return _warn_if_missing(self._height, "Height")

    @property
    def previous(self) -> Optional[str]:
        return _warn_if_missing(self._previous, "Previous")


def model_to_dict(model: Transaction | Block) -> dict[str, Any]:
    """Return the populated fields of a model as plain data.

    Unselected fields are left out instead of being reported as missing.
    """
    out: dict[str, Any] = {}
    for field in fields(model):
        value = getattr(model, field.name)
        if value is None:
            continue
        if isinstance(value, tuple):
            value = [asdict(item) for item in value]
        elif is_dataclass(value):
            value = asdict(value)
        out[field.name.lstrip("_")] = value
    return out

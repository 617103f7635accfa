"""
Tagged wrapper around decoded JSON/YAML.

Status pages are loosely typed and vary between server versions, so every
accessor here returns a null Value (or the caller's default) instead of
raising when a key is missing or a type doesn't match.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterator, List, Tuple, Union


class Kind(str, Enum):
    NULL = "null"
    NUMBER = "number"
    BOOL = "bool"
    STRING = "string"
    LIST = "list"
    OBJECT = "object"


def _classify(raw: Any) -> Kind:
    # bool is a subclass of int, check it first
    if isinstance(raw, bool):
        return Kind.BOOL
    if isinstance(raw, (int, float)):
        return Kind.NUMBER
    if isinstance(raw, str):
        return Kind.STRING
    if isinstance(raw, (list, tuple)):
        return Kind.LIST
    if isinstance(raw, dict):
        return Kind.OBJECT
    return Kind.NULL


class Value:
    __slots__ = ("kind", "raw")

    def __init__(self, raw: Any = None):
        if isinstance(raw, Value):
            raw = raw.raw
        self.kind = _classify(raw)
        self.raw = raw if self.kind is not Kind.NULL else None

    @classmethod
    def wrap(cls, raw: Any) -> "Value":
        return raw if isinstance(raw, Value) else cls(raw)

    def __repr__(self) -> str:
        return f"Value({self.kind.value}: {self.raw!r})"

    def __eq__(self, other) -> bool:
        if isinstance(other, Value):
            return self.kind is other.kind and self.raw == other.raw
        return NotImplemented

    def __bool__(self) -> bool:
        return self.kind is not Kind.NULL

    def __len__(self) -> int:
        if self.kind in (Kind.LIST, Kind.OBJECT):
            return len(self.raw)
        return 0

    @property
    def is_null(self) -> bool:
        return self.kind is Kind.NULL

    def get(self, key: str) -> "Value":
        if self.kind is not Kind.OBJECT:
            return NULL
        return Value(self.raw.get(key))

    def at(self, index: int) -> "Value":
        if self.kind is not Kind.LIST:
            return NULL
        try:
            return Value(self.raw[index])
        except IndexError:
            return NULL

    def path(self, *segments: "Segment") -> "Value":
        """Walk nested keys/indexes. Callables receive the current node."""
        node = self
        for seg in segments:
            if node.is_null:
                return NULL
            if callable(seg):
                node = Value.wrap(seg(node))
            elif isinstance(seg, int):
                node = node.at(seg)
            else:
                node = node.get(seg)
        return node

    def number(self, default: float = 0.0) -> float:
        if self.kind is Kind.NUMBER:
            return float(self.raw)
        return default

    def string(self, default: str = "") -> str:
        if self.kind is Kind.STRING:
            return self.raw
        return default

    def items(self) -> List["Value"]:
        """List elements, or [] for anything that isn't a list."""
        if self.kind is not Kind.LIST:
            return []
        return [Value(item) for item in self.raw]

    def entries(self) -> List[Tuple[str, "Value"]]:
        """Object (key, value) pairs in document order, or []."""
        if self.kind is not Kind.OBJECT:
            return []
        return [(str(k), Value(v)) for k, v in self.raw.items()]

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items())


NULL = Value()

Segment = Union[str, int, Callable[[Value], Any]]


def containing(fragment: str) -> Callable[[Value], Value]:
    """Path segment selecting the first object entry whose key contains fragment.

    CherryPy names its stats sections after the server instance
    ("CherryPy HTTPServer 140234..."), so exact keys are not stable.
    """

    def _select(node: Value) -> Value:
        for key, child in node.entries():
            if fragment in key:
                return child
        return NULL

    _select.__name__ = f"containing({fragment!r})"
    return _select

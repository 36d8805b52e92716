"""
odata_engine.resources.path_segments - Resource path model
===========================================================

A resource URL path is an ordered chain of typed segments. ``PathSegments``
is immutable: every mutator returns a new chain, so resources derived from
one another never share mutable path state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterator, Optional, Tuple
from urllib.parse import quote

from odata_engine.constants import COUNT, METADATA, REF, VALUE


class SegmentKind(str, Enum):
    """Kinds of path segments."""

    METADATA = "metadata"
    ENTITY_SET = "entitySet"
    SINGLETON = "singleton"
    TYPE = "type"
    PROPERTY = "property"
    NAVIGATION_PROPERTY = "navigationProperty"
    REFERENCE = "reference"
    VALUE = "value"
    COUNT = "count"
    FUNCTION = "function"
    ACTION = "action"


_FIXED_NAMES = {
    SegmentKind.METADATA: METADATA,
    SegmentKind.REFERENCE: REF,
    SegmentKind.VALUE: VALUE,
    SegmentKind.COUNT: COUNT,
}

_KEYED = (SegmentKind.ENTITY_SET, SegmentKind.NAVIGATION_PROPERTY, SegmentKind.TYPE)

# characters left as-is inside key and parameter literals
_LITERAL_SAFE = "'=,:@$+"


@dataclass(frozen=True)
class Segment:
    """
    One path segment.

    Attributes
    ----------
    kind : SegmentKind
        Segment kind
    name : str
        Path text (entity set, property, cast type or callable path)
    type : str, optional
        Qualified type the segment evaluates to
    key : any
        Raw key value (scalar or ``{name: value}`` mapping)
    key_literal : str, optional
        Key rendered for the URL, ``1`` or ``'x'`` or ``a=1,b='x'``
    parameters : tuple of (name, literal), optional
        Function parameters rendered for the URL; ``()`` renders as ``f()``
        and ``None`` renders the bare function name
    """

    kind: SegmentKind
    name: str
    type: Optional[str] = None
    key: Any = None
    key_literal: Optional[str] = None
    parameters: Optional[Tuple[Tuple[str, str], ...]] = None

    def has_key(self) -> bool:
        return self.key_literal is not None

    def render(self) -> str:
        text = _FIXED_NAMES.get(self.kind, self.name)
        if self.kind in _KEYED and self.key_literal is not None:
            return f"{text}({quote(self.key_literal, safe=_LITERAL_SAFE)})"
        if self.kind == SegmentKind.FUNCTION and self.parameters is not None:
            args = ",".join(f"{name}={quote(lit, safe=_LITERAL_SAFE)}" for name, lit in self.parameters)
            return f"{text}({args})"
        return text


class PathSegments:
    """
    Immutable ordered chain of path segments.

    Examples
    --------
    >>> segments = PathSegments().add(SegmentKind.ENTITY_SET, "People", "Acme.Person")
    >>> segments.with_last(key=1, key_literal="1").path()
    'People(1)'
    """

    __slots__ = ("_segments",)

    def __init__(self, segments: Tuple[Segment, ...] = ()):
        self._segments = tuple(segments)

    def __repr__(self) -> str:
        return f"PathSegments({self.path()!r})"

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PathSegments) and self._segments == other._segments

    def __hash__(self) -> int:
        return hash(tuple(s.render() for s in self._segments))

    def add(self, kind: SegmentKind, name: str, type: Optional[str] = None) -> "PathSegments":
        """New chain with one more segment appended."""
        return PathSegments(self._segments + (Segment(kind, name, type),))

    def last(self) -> Optional[Segment]:
        return self._segments[-1] if self._segments else None

    def get(self, kind: SegmentKind) -> Optional[Segment]:
        """Last segment of the given kind."""
        return next((s for s in reversed(self._segments) if s.kind == kind), None)

    def previous(self) -> Optional[Segment]:
        """Segment before the last one."""
        return self._segments[-2] if len(self._segments) > 1 else None

    def with_last(self, **changes: Any) -> "PathSegments":
        """New chain with the last segment's attributes replaced."""
        if not self._segments:
            raise IndexError("Cannot modify the last segment of an empty path")
        return PathSegments(self._segments[:-1] + (replace(self._segments[-1], **changes),))

    def clone(self) -> "PathSegments":
        return PathSegments(self._segments)

    def path(self) -> str:
        return "/".join(s.render() for s in self._segments)

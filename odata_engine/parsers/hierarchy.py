"""
odata_engine.parsers.hierarchy - Inheritance index
===================================================

Inheritance between structured types is kept as an explicit tagged index
(type id -> node with an optional parent id and child ids) owned by the
registry, instead of object references scattered through the parsers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from odata_engine.core.errors import ODataConfigurationError


@dataclass
class TypeNode:
    type_id: str
    parent_id: Optional[str] = None
    children: List[str] = field(default_factory=list)


class TypeHierarchy:
    """Single-rooted inheritance tree over qualified type ids."""

    def __init__(self) -> None:
        self._nodes: Dict[str, TypeNode] = {}

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def add(self, type_id: str) -> TypeNode:
        node = self._nodes.get(type_id)
        if node is None:
            node = self._nodes[type_id] = TypeNode(type_id)
        return node

    def link(self, child_id: str, parent_id: str) -> None:
        """
        Register ``child_id`` as derived from ``parent_id``.

        Raises
        ------
        ODataConfigurationError
            If the link would create a cycle or re-parent a linked type.
        """
        child = self.add(child_id)
        parent = self.add(parent_id)
        if child.parent_id is not None and child.parent_id != parent_id:
            raise ODataConfigurationError(
                f"{child_id} already derives from {child.parent_id}, cannot derive from {parent_id}"
            )
        if child_id == parent_id or child_id in self.ancestors(parent_id):
            raise ODataConfigurationError(f"Inheritance cycle between {child_id} and {parent_id}")
        child.parent_id = parent_id
        if child_id not in parent.children:
            parent.children.append(child_id)

    def node(self, type_id: str) -> Optional[TypeNode]:
        return self._nodes.get(type_id)

    def parent(self, type_id: str) -> Optional[str]:
        node = self._nodes.get(type_id)
        return node.parent_id if node else None

    def children(self, type_id: str) -> List[str]:
        node = self._nodes.get(type_id)
        return list(node.children) if node else []

    def ancestors(self, type_id: str) -> List[str]:
        """Parent first, root last."""
        out: List[str] = []
        current = self.parent(type_id)
        while current is not None and current not in out:
            out.append(current)
            current = self.parent(current)
        return out

    def walk(self, type_id: str) -> Iterator[str]:
        """Depth-first over ``type_id`` and all its descendants."""
        yield type_id
        for child in self.children(type_id):
            yield from self.walk(child)

    def clear(self) -> None:
        self._nodes.clear()

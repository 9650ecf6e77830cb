"""Contracts for the host material system and alias-tolerant lookups.

The host owns documents, material graphs, and pattern definitions. Anything
implementing these protocols (a DCC bridge, the bundled in-memory host) can
be driven by the applier, reader, comparator, and pattern deriver.
"""

from dataclasses import dataclass
from typing import Any, ContextManager, List, Optional, Protocol, Sequence, Tuple


class GraphLeafError(RuntimeError):
    """Raised by a host when a single property write is rejected."""


class GraphCommitError(RuntimeError):
    """Raised when a scoped edit session cannot be committed."""


class TemplateNotFoundError(RuntimeError):
    """Raised when no base graph exists to build a new material from."""


@dataclass(frozen=True)
class PatternGrid:
    """One family of parallel lines in a grid pattern (host units)."""

    angle_deg: float
    spacing: float


@dataclass(frozen=True)
class PatternDefinition:
    """Named repeat pattern made of one or two grids."""

    name: str
    grids: Tuple[PatternGrid, ...]


@dataclass(frozen=True)
class PatternHandle:
    """Host reference to a registered pattern definition."""

    id: str
    definition: PatternDefinition

    @property
    def name(self) -> str:
        return self.definition.name


class GraphNode(Protocol):
    """A node of a material graph: named children plus typed leaf properties."""

    def child(self, name: str) -> Optional["GraphNode"]:
        ...

    def has_property(self, name: str) -> bool:
        ...

    def get_property(self, name: str) -> Any:
        ...

    def is_read_only(self, name: str) -> bool:
        ...

    def set_property(self, name: str, value: Any) -> None:
        """Write a leaf. Raises GraphLeafError if the host rejects the value."""
        ...


class MaterialGraph(Protocol):
    """A named material graph instance."""

    name: str
    surface_pattern: Optional[str]

    @property
    def root(self) -> GraphNode:
        """Committed, read-only view of the graph."""
        ...

    def edit_session(self) -> ContextManager[GraphNode]:
        """Open a scoped edit; yields the editable root.

        Writes become visible only when the block exits normally. An
        exception inside the block discards every staged write.
        """
        ...

    def stage_surface_pattern(self, name: Optional[str]) -> None:
        """Stage a new ``surface_pattern`` inside the open edit session.

        The reference changes together with the root on commit and is
        dropped with it when the session fails.
        """
        ...


class GraphDocument(Protocol):
    """Host document holding material graphs and pattern definitions."""

    def graphs(self) -> List[MaterialGraph]:
        ...

    def find_graph(self, name: str) -> Optional[MaterialGraph]:
        ...

    def duplicate_graph(self, source: MaterialGraph, new_name: str) -> MaterialGraph:
        ...

    def rename_graph(self, graph: MaterialGraph, new_name: str) -> None:
        ...

    def patterns(self) -> List[PatternHandle]:
        ...

    def find_pattern(self, name: str) -> Optional[PatternHandle]:
        ...

    def create_pattern(self, definition: PatternDefinition) -> PatternHandle:
        ...


def resolve_child(node: Optional[GraphNode], aliases: Sequence[str]) -> Optional[GraphNode]:
    """Return the first child found under ``aliases`` (in order), or None."""
    if node is None:
        return None
    for name in aliases:
        found = node.child(name)
        if found is not None:
            return found
    return None


def resolve_property(node: Optional[GraphNode], aliases: Sequence[str]) -> Optional[str]:
    """Return the first alias naming an existing property, or None."""
    if node is None:
        return None
    for name in aliases:
        if node.has_property(name):
            return name
    return None


def read_property(node: Optional[GraphNode], aliases: Sequence[str]) -> Any:
    """Return the value of the first existing aliased property, or None."""
    name = resolve_property(node, aliases)
    return node.get_property(name) if name is not None else None

"""In-memory host material system persisted as YAML.

Implements the contracts of :mod:`MaterialBrew.graph.host` so that the
applier, reader, and pattern deriver can run (and be tested) without a DCC
application. A document file holds material graphs and pattern definitions.
"""

import copy
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

import yaml

from ..config import Channel, MATERIAL_CHANNELS
from . import keys
from .host import (
    GraphCommitError,
    GraphLeafError,
    PatternDefinition,
    PatternGrid,
    PatternHandle,
)

logger = logging.getLogger("material_pipeline.graph")

DOCUMENT_FORMAT_VERSION = 1

LEAF_KINDS = ("string", "bool", "int", "float", "color")


def _coerce(kind: str, value: Any) -> Any:
    """Return ``value`` converted for a leaf of ``kind`` or raise TypeError."""
    if kind == "string":
        if not isinstance(value, str):
            raise TypeError("expected str")
        return value
    if kind == "bool":
        if not isinstance(value, bool):
            raise TypeError("expected bool")
        return value
    if kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("expected int")
        return value
    if kind == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("expected float")
        return float(value)
    if kind == "color":
        if not isinstance(value, (list, tuple)) or len(value) != 4:
            raise TypeError("expected RGBA sequence of 4 numbers")
        if any(isinstance(c, bool) or not isinstance(c, (int, float)) for c in value):
            raise TypeError("expected RGBA sequence of 4 numbers")
        return [float(c) for c in value]
    raise TypeError(f"unknown leaf kind '{kind}'")


@dataclass
class MemoryLeaf:
    kind: str
    value: Any
    read_only: bool = False


class MemoryNode:
    """Graph node holding typed leaves and named child nodes."""

    def __init__(self):
        self._leaves: Dict[str, MemoryLeaf] = {}
        self._children: Dict[str, "MemoryNode"] = {}

    # -- construction -----------------------------------------------------

    def add_leaf(self, name: str, kind: str, value: Any, read_only: bool = False) -> "MemoryNode":
        if kind not in LEAF_KINDS:
            raise ValueError(f"Unknown leaf kind '{kind}' for '{name}'")
        try:
            value = _coerce(kind, value)
        except TypeError as exc:
            raise ValueError(f"Leaf '{name}': {exc}, got {value!r}") from exc
        self._leaves[name] = MemoryLeaf(kind, value, read_only)
        return self

    def add_child(self, name: str, node: Optional["MemoryNode"] = None) -> "MemoryNode":
        """Attach ``node`` (or a new empty node) under ``name`` and return it."""
        node = node if node is not None else MemoryNode()
        self._children[name] = node
        return node

    def remove_child(self, name: str) -> None:
        self._children.pop(name, None)

    # -- GraphNode --------------------------------------------------------

    def child(self, name: str) -> Optional["MemoryNode"]:
        return self._children.get(name)

    def has_property(self, name: str) -> bool:
        return name in self._leaves

    def get_property(self, name: str) -> Any:
        leaf = self._leaves.get(name)
        if leaf is None:
            return None
        return list(leaf.value) if leaf.kind == "color" else leaf.value

    def is_read_only(self, name: str) -> bool:
        leaf = self._leaves.get(name)
        return bool(leaf and leaf.read_only)

    def set_property(self, name: str, value: Any) -> None:
        leaf = self._leaves.get(name)
        if leaf is None:
            raise GraphLeafError(f"No leaf named '{name}'")
        if leaf.read_only:
            raise GraphLeafError(f"Leaf '{name}' is read-only")
        try:
            leaf.value = _coerce(leaf.kind, value)
        except TypeError as exc:
            raise GraphLeafError(
                f"Leaf '{name}' ({leaf.kind}) rejected {value!r}: {exc}"
            ) from exc

    # -- persistence ------------------------------------------------------

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {}
        if self._leaves:
            data["leaves"] = {
                name: (
                    {"kind": leaf.kind, "value": leaf.value, "read_only": True}
                    if leaf.read_only else {"kind": leaf.kind, "value": leaf.value}
                )
                for name, leaf in self._leaves.items()
            }
        if self._children:
            data["children"] = {name: node.to_dict() for name, node in self._children.items()}
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "MemoryNode":
        node = cls()
        data = data or {}
        for name, leaf in (data.get("leaves") or {}).items():
            if not isinstance(leaf, dict) or "kind" not in leaf:
                raise ValueError(f"Malformed leaf '{name}': {leaf!r}")
            node.add_leaf(name, leaf["kind"], leaf.get("value"), bool(leaf.get("read_only", False)))
        for name, child in (data.get("children") or {}).items():
            node.add_child(name, cls.from_dict(child))
        return node


class _FrozenNode:
    """Read-only view over a committed node."""

    def __init__(self, node: MemoryNode):
        self._node = node

    def child(self, name: str) -> Optional["_FrozenNode"]:
        found = self._node.child(name)
        return _FrozenNode(found) if found is not None else None

    def has_property(self, name: str) -> bool:
        return self._node.has_property(name)

    def get_property(self, name: str) -> Any:
        return self._node.get_property(name)

    def is_read_only(self, name: str) -> bool:
        return True

    def set_property(self, name: str, value: Any) -> None:
        raise GraphLeafError(f"Cannot write '{name}' outside an edit session")


CommitHook = Callable[["MemoryMaterialGraph", MemoryNode], None]

_UNCHANGED = object()


class MemoryMaterialGraph:
    """Material graph with scoped, all-or-nothing edit sessions.

    Sessions are serialized per graph. Edits are made on a deep copy of the
    committed root which replaces it only when the session exits cleanly.
    ``commit_hook`` is called with the staged root right before the swap;
    any exception it raises aborts the commit as a GraphCommitError.
    """

    def __init__(self, name: str, root: Optional[MemoryNode] = None,
                 surface_pattern: Optional[str] = None,
                 commit_hook: Optional[CommitHook] = None):
        self.name = name
        self.surface_pattern = surface_pattern
        self.commit_hook = commit_hook
        self._root = root if root is not None else MemoryNode()
        self._lock = threading.Lock()
        self._in_session = False
        self._staged_pattern = _UNCHANGED

    def __repr__(self):
        return f"MemoryMaterialGraph({self.name!r})"

    @property
    def root(self) -> _FrozenNode:
        return _FrozenNode(self._root)

    @contextmanager
    def edit_session(self) -> Iterator[MemoryNode]:
        with self._lock:
            staged = copy.deepcopy(self._root)
            self._staged_pattern = _UNCHANGED
            self._in_session = True
            try:
                yield staged
                if self.commit_hook is not None:
                    try:
                        self.commit_hook(self, staged)
                    except GraphCommitError:
                        raise
                    except Exception as exc:
                        raise GraphCommitError(
                            f"Commit of '{self.name}' failed: {exc}"
                        ) from exc
                self._root = staged
                if self._staged_pattern is not _UNCHANGED:
                    self.surface_pattern = self._staged_pattern
                logger.debug("Committed edit session on '%s'", self.name)
            finally:
                self._in_session = False
                self._staged_pattern = _UNCHANGED

    def stage_surface_pattern(self, name: Optional[str]) -> None:
        if not self._in_session:
            raise RuntimeError(f"No edit session open on '{self.name}'")
        self._staged_pattern = name

    def clone(self, new_name: str) -> "MemoryMaterialGraph":
        with self._lock:
            root = copy.deepcopy(self._root)
        return MemoryMaterialGraph(new_name, root=root, surface_pattern=self.surface_pattern)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "surface_pattern": self.surface_pattern,
            "root": self._root.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryMaterialGraph":
        if not isinstance(data, dict) or not data.get("name"):
            raise ValueError(f"Malformed graph entry: {data!r}")
        return cls(
            str(data["name"]),
            root=MemoryNode.from_dict(data.get("root")),
            surface_pattern=data.get("surface_pattern"),
        )


def build_generic_root() -> MemoryNode:
    """Return the root of a generic material with every slot wired.

    Each slot carries a unified bitmap node with an empty path; the bump
    slot additionally carries bump type and strength leaves.
    """
    root = MemoryNode()
    root.add_leaf(keys.DESCRIPTION[0], "string", "")
    root.add_leaf(keys.DIFFUSE_PROBE, "color", [0.8, 0.8, 0.8, 1.0])
    root.add_leaf(keys.TINT_TOGGLE[0], "bool", False)
    root.add_leaf(keys.TINT_COLOR[0], "color", [1.0, 1.0, 1.0, 1.0])
    for channel in MATERIAL_CHANNELS:
        root.add_leaf(keys.SLOT_TOGGLES[channel][0], "bool", False)
        slot = root.add_child(keys.SLOT_ALIASES[channel][0])
        bitmap = slot.add_child(keys.BITMAP_NODE[0])
        bitmap.add_leaf(keys.BITMAP_PATH[0], "string", "")
        bitmap.add_leaf(keys.BITMAP_INVERT[0], "bool", False)
        bitmap.add_leaf(keys.BITMAP_SCALE_X[0], "float", 1.0)
        bitmap.add_leaf(keys.BITMAP_SCALE_Y[0], "float", 1.0)
        bitmap.add_leaf(keys.BITMAP_ROTATION[0], "float", 0.0)
        if channel == Channel.BUMP:
            bitmap.add_leaf(keys.BUMP_TYPE[0], "int", keys.BUMP_TYPE_HEIGHT)
            bitmap.add_leaf(keys.BUMP_NORMAL_STRENGTH[0], "float", 0.0)
            bitmap.add_leaf(keys.BUMP_DEPTH_STRENGTH[0], "float", 0.3)
    return root


class MemoryDocument:
    """Ordered collection of graphs and pattern definitions."""

    def __init__(self):
        self._graphs: Dict[str, MemoryMaterialGraph] = {}
        self._patterns: Dict[str, PatternHandle] = {}
        self._next_pattern_id = 1
        self._lock = threading.Lock()

    @classmethod
    def with_generic_template(cls, name: str = "Generic") -> "MemoryDocument":
        doc = cls()
        doc.add_graph(MemoryMaterialGraph(name, root=build_generic_root()))
        return doc

    # -- graphs -----------------------------------------------------------

    def add_graph(self, graph: MemoryMaterialGraph) -> MemoryMaterialGraph:
        with self._lock:
            if graph.name in self._graphs:
                raise ValueError(f"A graph named '{graph.name}' already exists")
            self._graphs[graph.name] = graph
        return graph

    def graphs(self) -> List[MemoryMaterialGraph]:
        return list(self._graphs.values())

    def find_graph(self, name: str) -> Optional[MemoryMaterialGraph]:
        return self._graphs.get(name)

    def duplicate_graph(self, source: MemoryMaterialGraph, new_name: str) -> MemoryMaterialGraph:
        logger.info("Duplicating graph '%s' as '%s'", source.name, new_name)
        return self.add_graph(source.clone(new_name))

    def rename_graph(self, graph: MemoryMaterialGraph, new_name: str) -> None:
        with self._lock:
            if new_name == graph.name:
                return
            if new_name in self._graphs:
                raise ValueError(f"A graph named '{new_name}' already exists")
            self._graphs.pop(graph.name, None)
            graph.name = new_name
            self._graphs[new_name] = graph

    # -- patterns ---------------------------------------------------------

    def patterns(self) -> List[PatternHandle]:
        return list(self._patterns.values())

    def find_pattern(self, name: str) -> Optional[PatternHandle]:
        return self._patterns.get(name)

    def create_pattern(self, definition: PatternDefinition) -> PatternHandle:
        with self._lock:
            if definition.name in self._patterns:
                raise ValueError(f"A pattern named '{definition.name}' already exists")
            handle = PatternHandle(f"pattern-{self._next_pattern_id}", definition)
            self._next_pattern_id += 1
            self._patterns[definition.name] = handle
        logger.info("Created pattern '%s' (%s)", definition.name, handle.id)
        return handle

    # -- persistence ------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "format_version": DOCUMENT_FORMAT_VERSION,
            "graphs": [g.to_dict() for g in self._graphs.values()],
            "patterns": [
                {
                    "id": h.id,
                    "name": h.name,
                    "grids": [
                        {"angle_deg": g.angle_deg, "spacing": g.spacing}
                        for g in h.definition.grids
                    ],
                }
                for h in self._patterns.values()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryDocument":
        if not isinstance(data, dict):
            raise ValueError(f"Document must be a mapping, got {type(data).__name__}")
        version = data.get("format_version", DOCUMENT_FORMAT_VERSION)
        if isinstance(version, int) and version > DOCUMENT_FORMAT_VERSION:
            logger.warning(
                "Document format_version=%d is newer than supported version %d",
                version, DOCUMENT_FORMAT_VERSION,
            )
        doc = cls()
        for entry in data.get("graphs") or []:
            doc.add_graph(MemoryMaterialGraph.from_dict(entry))
        max_id = 0
        for entry in data.get("patterns") or []:
            grids = tuple(
                PatternGrid(float(g["angle_deg"]), float(g["spacing"]))
                for g in entry.get("grids") or []
            )
            handle = PatternHandle(str(entry["id"]), PatternDefinition(str(entry["name"]), grids))
            doc._patterns[handle.name] = handle
            suffix = handle.id.rpartition("-")[2]
            if suffix.isdigit():
                max_id = max(max_id, int(suffix))
        doc._next_pattern_id = max_id + 1
        return doc

    @classmethod
    def load(cls, path: str) -> "MemoryDocument":
        """Load a document from YAML. Raises ValueError on malformed files."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse document '{path}': {exc}") from exc
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"{path}: {exc}") from exc

    def save(self, path: str) -> None:
        """Write the document to YAML through a temporary file."""
        data = self.to_dict()
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        ext = os.path.splitext(path)[1]
        tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}{ext}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False,
                               allow_unicode=True)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
        logger.info("Saved document to %s", path)

"""Host material graph layer: contracts, apply, read-back, no-op, patterns."""

from .host import (
    GraphNode, MaterialGraph, GraphDocument,
    PatternGrid, PatternDefinition, PatternHandle,
    GraphLeafError, GraphCommitError, TemplateNotFoundError,
)
from .routing import SlotRoute, metalness_rerouted, route_slots
from .apply import (
    ApplyReport, apply_assignment, assign_surface_pattern, ensure_material_graph, find_template,
)
from .read import (
    SlotReadback, MaterialReadback, read_material, readback_to_assignment,
    live_bitmap_paths, parse_tiles,
)
from .compare import is_noop, same_path
from .patterns import derive_tile_pattern, pattern_name
from .memory import MemoryNode, MemoryMaterialGraph, MemoryDocument, build_generic_root

__all__ = [
    "GraphNode", "MaterialGraph", "GraphDocument",
    "PatternGrid", "PatternDefinition", "PatternHandle",
    "GraphLeafError", "GraphCommitError", "TemplateNotFoundError",
    "SlotRoute", "metalness_rerouted", "route_slots",
    "ApplyReport", "apply_assignment", "assign_surface_pattern", "ensure_material_graph",
    "find_template",
    "SlotReadback", "MaterialReadback", "read_material", "readback_to_assignment",
    "live_bitmap_paths", "parse_tiles",
    "is_noop", "same_path",
    "derive_tile_pattern", "pattern_name",
    "MemoryNode", "MemoryMaterialGraph", "MemoryDocument", "build_generic_root",
]

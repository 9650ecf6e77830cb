"""Write a resolved material assignment into a host material graph."""

import logging
import unicodedata
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..config import BumpDetail, Channel, MATERIAL_CHANNELS, PipelineConfig
from ..core.records import MaterialAssignment, SlotAssignment, Tint
from ..core.units import cm_to_host
from . import keys
from .host import (
    GraphDocument,
    GraphLeafError,
    GraphNode,
    MaterialGraph,
    TemplateNotFoundError,
    resolve_child,
    resolve_property,
)
from .routing import route_slots

logger = logging.getLogger("material_pipeline.graph")


@dataclass
class ApplyReport:
    """Outcome of one apply: which channels landed and what was absorbed."""

    material: str
    applied: List[Channel] = field(default_factory=list)
    skipped: List[Channel] = field(default_factory=list)
    skipped_leaves: int = 0
    noop: bool = False

    @property
    def complete(self) -> bool:
        return not self.skipped and self.skipped_leaves == 0

    def summary(self) -> str:
        if self.noop:
            return f"{self.material}: unchanged"
        parts = [f"{self.material}: applied {', '.join(c.value for c in self.applied) or '-'}"]
        if self.skipped:
            parts.append(f"skipped {', '.join(c.value for c in self.skipped)}")
        if self.skipped_leaves:
            parts.append(f"{self.skipped_leaves} leaf write(s) absorbed")
        return "; ".join(parts)


class _LeafWriter:
    """Write leaves by alias, counting every write that does not land."""

    def __init__(self, report: ApplyReport):
        self.report = report

    def write(self, nodes: Sequence[Optional[GraphNode]], aliases: Sequence[str], value: Any) -> bool:
        for node in nodes:
            name = resolve_property(node, aliases)
            if name is None:
                continue
            if node.is_read_only(name):
                logger.debug("Leaf '%s' is read-only, skipped", name)
                self.report.skipped_leaves += 1
                return False
            try:
                node.set_property(name, value)
            except GraphLeafError as exc:
                logger.warning("Leaf write failed: %s", exc)
                self.report.skipped_leaves += 1
                return False
            return True
        logger.debug("No leaf among %s, skipped", list(aliases))
        self.report.skipped_leaves += 1
        return False

    def read(self, nodes: Sequence[Optional[GraphNode]], aliases: Sequence[str]) -> Any:
        for node in nodes:
            name = resolve_property(node, aliases)
            if name is not None:
                return node.get_property(name)
        return None


def _bump_strength(slot: SlotAssignment, current: Any, config: PipelineConfig) -> Optional[float]:
    """Return the strength to write, or None to keep the current value."""
    value = float(current) if isinstance(current, (int, float)) and not isinstance(current, bool) else None
    if slot.detail == BumpDetail.NORMAL:
        if value is None or value <= 0.0:
            return config.apply.normal_strength
        return None
    floor = config.apply.bump_min_strength
    if value is None or value < floor:
        return floor
    return None


def _apply_bump(writer: _LeafWriter, nodes, slot: SlotAssignment, config: PipelineConfig) -> None:
    is_normal = slot.detail == BumpDetail.NORMAL
    writer.write(nodes, keys.BUMP_TYPE, keys.BUMP_TYPE_NORMAL if is_normal else keys.BUMP_TYPE_HEIGHT)
    strength_keys = keys.BUMP_NORMAL_STRENGTH if is_normal else keys.BUMP_DEPTH_STRENGTH
    strength = _bump_strength(slot, writer.read(nodes, strength_keys), config)
    if strength is not None:
        writer.write(nodes, strength_keys, strength)


def _apply_tint(writer: _LeafWriter, nodes, tint: Optional[Tint]) -> None:
    if tint is None:
        writer.write(nodes, keys.TINT_TOGGLE, False)
        return
    writer.write(nodes, keys.TINT_TOGGLE, True)
    writer.write(nodes, keys.TINT_COLOR, [c / 255.0 for c in tint] + [1.0])


def apply_assignment(graph: MaterialGraph, assignment: MaterialAssignment,
                     config: Optional[PipelineConfig] = None,
                     surface_pattern: Optional[str] = None) -> ApplyReport:
    """Write every assigned channel of ``assignment`` into ``graph``.

    All writes happen inside one edit session and land together, including
    the ``surface_pattern`` reference when one is given. Channels whose
    slot the host does not expose are reported in ``skipped``; leaf writes
    the host rejects are counted in ``skipped_leaves``. A failing commit
    raises GraphCommitError and leaves the graph untouched.
    """
    config = config or PipelineConfig()
    unit = config.host_unit
    transform = assignment.transform
    scale_x = cm_to_host(transform.width_cm, unit)
    scale_y = cm_to_host(transform.height_cm, unit)

    report = ApplyReport(material=graph.name)
    writer = _LeafWriter(report)

    with graph.edit_session() as root:
        routes = route_slots(root, config)
        for channel in MATERIAL_CHANNELS:
            slot = assignment.get(channel)
            if not slot.assigned:
                continue

            route = routes[channel]
            slot_node, bitmap = route.node, route.bitmap
            if bitmap is None:
                logger.warning("Graph '%s' has no %s slot; skipped", graph.name, channel.value)
                report.skipped.append(channel)
                continue
            if route.slot != channel:
                logger.info("No %s slot on '%s'; using %s", channel.value, graph.name, route.slot.value)

            writer.write([root], keys.SLOT_TOGGLES[route.slot], True)
            writer.write([bitmap], keys.BITMAP_PATH, slot.path)
            writer.write([bitmap], keys.BITMAP_INVERT, slot.invert)
            writer.write([bitmap], keys.BITMAP_SCALE_X, scale_x)
            writer.write([bitmap], keys.BITMAP_SCALE_Y, scale_y)
            writer.write([bitmap], keys.BITMAP_ROTATION, float(transform.rotation_deg))

            if channel == Channel.BUMP:
                _apply_bump(writer, [bitmap, slot_node, root], slot, config)
            elif channel == Channel.ALBEDO:
                _apply_tint(writer, [bitmap, root], assignment.tint)

            report.applied.append(channel)
            logger.debug("Applied %s -> %s", channel.value, slot.path)

        if config.apply.write_folder_path and assignment.folder:
            writer.write([root], keys.DESCRIPTION, assignment.folder)
        if surface_pattern is not None and surface_pattern != graph.surface_pattern:
            graph.stage_surface_pattern(surface_pattern)

    logger.info(report.summary())
    return report


def assign_surface_pattern(graph: MaterialGraph, name: Optional[str]) -> None:
    """Point ``graph`` at the pattern ``name`` in an edit session of its own."""
    with graph.edit_session():
        graph.stage_surface_pattern(name)
    logger.info("Assigned pattern '%s' to '%s'", name, graph.name)


def _fold(text: str) -> str:
    """Lowercase and strip accents so 'Générique' compares as 'generique'."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def _exposes_diffuse(graph: MaterialGraph) -> bool:
    root = graph.root
    return (root.has_property(keys.DIFFUSE_PROBE)
            or root.child(keys.DIFFUSE_PROBE) is not None
            or resolve_child(root, keys.SLOT_ALIASES[Channel.ALBEDO]) is not None)


def find_template(document: GraphDocument, config: Optional[PipelineConfig] = None) -> Optional[MaterialGraph]:
    """Return the graph new materials are duplicated from, or None.

    Search order: configured template names, names starting with
    ``generi`` in any language, graphs exposing a diffuse slot, and
    finally (when allowed) the first graph of the document.
    """
    config = config or PipelineConfig()
    graphs = document.graphs()

    for name in config.apply.template_names:
        found = document.find_graph(name)
        if found is not None:
            return found
        wanted = _fold(name)
        for graph in graphs:
            if _fold(graph.name) == wanted:
                return graph
    for graph in graphs:
        if _fold(graph.name).startswith("generi"):
            return graph
    for graph in graphs:
        if _exposes_diffuse(graph):
            return graph
    if config.apply.allow_any_template and graphs:
        return graphs[0]
    return None


def ensure_material_graph(document: GraphDocument, name: str,
                          config: Optional[PipelineConfig] = None) -> MaterialGraph:
    """Return the graph called ``name``, duplicating a template if needed.

    Raises TemplateNotFoundError when the document offers nothing to
    duplicate.
    """
    existing = document.find_graph(name)
    if existing is not None:
        return existing
    template = find_template(document, config)
    if template is None:
        raise TemplateNotFoundError(
            f"Cannot create '{name}': the document has no generic material to duplicate"
        )
    logger.info("Creating material '%s' from template '%s'", name, template.name)
    return document.duplicate_graph(template, name)

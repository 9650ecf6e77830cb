"""Reconstruct a flat material description from a host material graph."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..config import BumpDetail, Channel, MATERIAL_CHANNELS, PipelineConfig
from ..core.records import (
    MaterialAssignment, SlotAssignment, TextureFile, Tint, Transform,
)
from ..core.units import host_to_cm
from . import keys
from .host import GraphNode, MaterialGraph, read_property
from .routing import route_slots

logger = logging.getLogger("material_pipeline.graph")

# Transform components come from the first slot that has them.
_TRANSFORM_SOURCES = (Channel.ALBEDO, Channel.ROUGHNESS, Channel.BUMP)


@dataclass
class SlotReadback:
    channel: Channel
    path: Optional[str] = None
    invert: bool = False
    enabled: bool = False
    scale_x: Optional[float] = None
    scale_y: Optional[float] = None
    rotation_deg: Optional[float] = None


@dataclass
class MaterialReadback:
    """What a graph currently holds, in pipeline terms."""

    material: str
    slots: Dict[Channel, SlotReadback] = field(default_factory=dict)
    bump_detail: Optional[BumpDetail] = None
    tint: Optional[Tint] = None
    folder: Optional[str] = None
    transform: Optional[Transform] = None
    tiles: Tuple[int, int] = (1, 1)
    pattern: Optional[str] = None

    def paths(self) -> Dict[Channel, Optional[str]]:
        return {c: (self.slots[c].path if c in self.slots else None) for c in MATERIAL_CHANNELS}

    def to_dict(self) -> dict:
        return {
            "material": self.material,
            "folder": self.folder,
            "tiles": list(self.tiles),
            "pattern": self.pattern,
            "tint": list(self.tint) if self.tint else None,
            "bump_detail": self.bump_detail.value if self.bump_detail else None,
            "transform": (
                {
                    "width_cm": self.transform.width_cm,
                    "height_cm": self.transform.height_cm,
                    "rotation_deg": self.transform.rotation_deg,
                }
                if self.transform else None
            ),
            "slots": {
                c.value: {"path": s.path, "invert": s.invert, "enabled": s.enabled}
                for c, s in self.slots.items()
            },
        }


def _blank_to_none(value) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def _number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def live_bitmap_paths(root: GraphNode, config: Optional[PipelineConfig] = None) -> Dict[Channel, Optional[str]]:
    """Return channel -> current bitmap path (None when blank or absent)."""
    return {
        channel: _blank_to_none(read_property(route.bitmap, keys.BITMAP_PATH))
        for channel, route in route_slots(root, config).items()
    }


def _divisions(pattern_name: Optional[str], prefix: str) -> Optional[Tuple[int, int]]:
    """Return the raw division counts of a pattern name, or None if it does not match."""
    if not pattern_name:
        return None
    m = re.match(rf"^{re.escape(prefix)}_(\d+)_\s*(\d+)(?:_|$)", pattern_name.strip())
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def parse_tiles(pattern_name: Optional[str], prefix: str = "tiles") -> Tuple[int, int]:
    """Return the (x, y) tile counts encoded in a pattern name.

    ``tiles_4_2`` and ``tiles_4_2_250_500`` both give ``(4, 2)``. A zero
    count means the axis is not subdivided and reads as one tile. Names
    that do not match give ``(1, 1)``.
    """
    divisions = _divisions(pattern_name, prefix)
    if divisions is None:
        return 1, 1
    return max(1, divisions[0]), max(1, divisions[1])


def _read_first(nodes, aliases):
    for node in nodes:
        value = read_property(node, aliases)
        if value is not None:
            return value
    return None


def read_material(graph: MaterialGraph, config: Optional[PipelineConfig] = None) -> MaterialReadback:
    """Read the committed state of ``graph``.

    Slots the host does not expose are left out of ``slots``.
    """
    config = config or PipelineConfig()
    unit = config.host_unit
    root = graph.root
    readback = MaterialReadback(material=graph.name)

    for channel, route in route_slots(root, config).items():
        slot_node, bitmap = route.node, route.bitmap
        if bitmap is None:
            continue
        slot = SlotReadback(channel)
        slot.path = _blank_to_none(read_property(bitmap, keys.BITMAP_PATH))
        slot.enabled = read_property(root, keys.SLOT_TOGGLES[route.slot]) is True
        slot.invert = read_property(bitmap, keys.BITMAP_INVERT) is True
        sx = _number(read_property(bitmap, keys.BITMAP_SCALE_X))
        sy = _number(read_property(bitmap, keys.BITMAP_SCALE_Y))
        slot.scale_x = host_to_cm(sx, unit) if sx is not None else None
        slot.scale_y = host_to_cm(sy, unit) if sy is not None else None
        slot.rotation_deg = _number(read_property(bitmap, keys.BITMAP_ROTATION))
        readback.slots[channel] = slot

        if channel == Channel.BUMP and slot.path:
            bump_type = _read_first([bitmap, slot_node, root], keys.BUMP_TYPE)
            if bump_type == keys.BUMP_TYPE_NORMAL:
                readback.bump_detail = BumpDetail.NORMAL
            elif bump_type == keys.BUMP_TYPE_HEIGHT:
                readback.bump_detail = BumpDetail.HEIGHT
        elif channel == Channel.ALBEDO:
            toggle = _read_first([bitmap, root], keys.TINT_TOGGLE)
            color = _read_first([bitmap, root], keys.TINT_COLOR)
            if toggle is True and isinstance(color, (list, tuple)) and len(color) >= 3:
                readback.tint = tuple(
                    max(0, min(255, int(round(float(c) * 255)))) for c in color[:3]
                )

    sources = [readback.slots[c] for c in _TRANSFORM_SOURCES if c in readback.slots]
    width = next((s.scale_x for s in sources if s.scale_x is not None), None)
    height = next((s.scale_y for s in sources if s.scale_y is not None), None)
    rotation = next((s.rotation_deg for s in sources if s.rotation_deg is not None), None)
    if width is not None or height is not None or rotation is not None:
        defaults = config.defaults
        readback.transform = Transform(
            width_cm=width if width is not None else defaults.width_cm,
            height_cm=height if height is not None else defaults.height_cm,
            rotation_deg=rotation if rotation is not None else defaults.rotation_deg,
        )

    readback.folder = _blank_to_none(read_property(root, keys.DESCRIPTION))
    readback.pattern = graph.surface_pattern or None
    readback.tiles = parse_tiles(readback.pattern, config.pattern.name_prefix)
    logger.debug("Read '%s': %s", graph.name, readback.paths())
    return readback


def readback_to_assignment(readback: MaterialReadback,
                           config: Optional[PipelineConfig] = None) -> MaterialAssignment:
    """Turn a readback into a pending edit of the same material.

    Tile divisions are taken from the pattern name as written, so a graph
    without a tile pattern yields ``(0, 0)`` (no pattern) rather than the
    one-tile display value of ``readback.tiles``.
    """
    config = config or PipelineConfig()
    slots = {}
    for channel, slot in readback.slots.items():
        if not slot.path:
            continue
        slots[channel] = SlotAssignment(
            channel,
            texture=TextureFile(slot.path),
            invert=slot.invert if channel == Channel.ROUGHNESS else False,
            detail=readback.bump_detail if channel == Channel.BUMP else None,
        )
    transform = readback.transform or Transform(
        config.defaults.width_cm, config.defaults.height_cm, config.defaults.rotation_deg,
    )
    return MaterialAssignment(
        folder=readback.folder or "",
        slots=slots,
        transform=transform,
        tint=readback.tint,
        tiles=_divisions(readback.pattern, config.pattern.name_prefix) or (0, 0),
    )

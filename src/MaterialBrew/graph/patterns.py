"""Derive repeat patterns from a physical size and tile division counts."""

import logging
from typing import Optional

from ..config import PipelineConfig
from ..core.units import cm_to_host
from .host import GraphDocument, PatternDefinition, PatternGrid, PatternHandle

logger = logging.getLogger("material_pipeline.graph")


def pattern_name(div_x: int, div_y: int, spacing_x_cm: float, spacing_y_cm: float,
                 prefix: str = "tiles") -> str:
    """Return the name shared by every pattern with these divisions and spacings.

    Spacings are rounded to whole millimetres; an undivided axis reads 0.
    """
    return (f"{prefix}_{div_x}_{div_y}_"
            f"{int(round(spacing_x_cm * 10))}_{int(round(spacing_y_cm * 10))}")


def derive_tile_pattern(document: GraphDocument, width_cm: float, height_cm: float,
                        div_x: int, div_y: int,
                        config: Optional[PipelineConfig] = None) -> Optional[PatternHandle]:
    """Return a grid pattern splitting the size into ``div_x`` by ``div_y`` tiles.

    Negative counts are treated as zero. With no division on either axis
    nothing is created and None is returned. A pattern with the derived
    name is reused when the document already has one.
    """
    config = config or PipelineConfig()
    div_x = max(0, int(div_x))
    div_y = max(0, int(div_y))
    if div_x == 0 and div_y == 0:
        logger.info("No tile divisions requested; no pattern created")
        return None
    if div_x and width_cm <= 0:
        raise ValueError(f"width_cm must be > 0 to divide it, got {width_cm}")
    if div_y and height_cm <= 0:
        raise ValueError(f"height_cm must be > 0 to divide it, got {height_cm}")

    spacing_x = width_cm / div_x if div_x else 0.0
    spacing_y = height_cm / div_y if div_y else 0.0
    name = pattern_name(div_x, div_y, spacing_x, spacing_y, config.pattern.name_prefix)

    existing = document.find_pattern(name)
    if existing is not None:
        logger.debug("Reusing pattern '%s'", name)
        return existing

    unit = config.host_unit
    grids = []
    if div_x:
        grids.append(PatternGrid(angle_deg=90.0, spacing=cm_to_host(spacing_x, unit)))
    if div_y:
        grids.append(PatternGrid(angle_deg=0.0, spacing=cm_to_host(spacing_y, unit)))
    return document.create_pattern(PatternDefinition(name, tuple(grids)))

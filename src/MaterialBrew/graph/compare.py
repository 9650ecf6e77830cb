"""Detect edits that would leave a material graph unchanged."""

import logging
import os
from typing import Optional

from ..config import PipelineConfig
from ..core.records import MaterialAssignment
from .host import MaterialGraph
from .read import live_bitmap_paths

logger = logging.getLogger("material_pipeline.graph")


def _canonical(path: str) -> str:
    return os.path.abspath(path.strip()).rstrip("\\/").casefold()


def same_path(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two texture paths the way a file system user would.

    Two blank values are equal; a blank and a non-blank are not. Otherwise
    the absolute paths are compared case-insensitively with trailing
    separators ignored.
    """
    blank_a = not (a and a.strip())
    blank_b = not (b and b.strip())
    if blank_a and blank_b:
        return True
    if blank_a or blank_b:
        return False
    return _canonical(a) == _canonical(b)


def is_noop(graph: MaterialGraph, proposed: MaterialAssignment,
            config: Optional[PipelineConfig] = None) -> bool:
    """Return True when every channel of ``proposed`` already matches ``graph``.

    Live paths are read from the slots the applier would write under
    ``config``, so a metalness map carried by the reflectivity slot
    compares against that slot.
    """
    live = live_bitmap_paths(graph.root, config)
    for channel, path in proposed.paths().items():
        if not same_path(path, live.get(channel)):
            logger.debug("'%s' differs on %s: %r != %r", graph.name, channel.value,
                         live.get(channel), path)
            return False
    return True

"""Orchestrate scan, resolve, apply, and read-back end-to-end.

`MaterialPipeline` turns texture folders into material graph edits on a
host document and reads existing materials back for editing.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from tqdm import tqdm

from .config import MATERIAL_CHANNELS, PipelineConfig
from .core import (
    ClassifiedTexture, MaterialAssignment, Transform,
    build_assignment, detect_lod, detect_size_from_name, has_key_image,
    iter_material_folders, read_image_size, scan_folder,
)
from .core.records import Tint
from .graph import (
    ApplyReport, GraphDocument, MaterialReadback,
    apply_assignment, derive_tile_pattern, ensure_material_graph,
    is_noop, read_material, readback_to_assignment,
)

logger = logging.getLogger("material_pipeline")


@dataclass
class FolderScan:
    """Classified contents of one material folder."""

    folder: str
    textures: List[ClassifiedTexture] = field(default_factory=list)
    sizes: Dict[str, Optional[tuple]] = field(default_factory=dict)

    key_image: bool = False

    def to_dict(self) -> dict:
        return {
            "folder": self.folder,
            "key_image": self.key_image,
            "textures": [
                {
                    "name": c.texture.name,
                    "channel": c.result.channel.value,
                    "label": c.result.label,
                    "invert": c.result.invert,
                    "detail": c.result.detail.value if c.result.detail else None,
                    "lod": detect_lod(c.texture.name),
                    "size": list(self.sizes[c.texture.path])
                    if self.sizes.get(c.texture.path) else None,
                }
                for c in self.textures
            ],
        }


class MaterialPipeline:
    """Drive the scan -> resolve -> apply flow against one host document."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ):
        self.config = config or PipelineConfig()
        self._progress_callback = progress_callback

    def _report_progress(self, stage: str, done: int, total: int) -> None:
        """Publish progress to logs and the optional callback."""
        logger.debug("[progress] stage=%s done=%d total=%d", stage, done, total)
        if self._progress_callback is not None:
            try:
                self._progress_callback(stage, int(done), max(int(total), 1))
            except Exception:
                logger.debug("Progress callback failed.", exc_info=True)

    # ------------------------------------------
    # Scan
    # ------------------------------------------

    def scan(self, folder: str, with_sizes: bool = False) -> FolderScan:
        """Classify one folder, optionally probing image headers for pixel sizes."""
        result = FolderScan(folder, scan_folder(folder, self.config),
                            key_image=has_key_image(folder, self.config))
        if with_sizes:
            for c in result.textures:
                result.sizes[c.texture.path] = read_image_size(c.texture.path)
        return result

    def scan_library(self, root: str, with_sizes: bool = False,
                     show_progress: bool = True) -> List[FolderScan]:
        """Classify every material folder under a library root."""
        folders = list(iter_material_folders(root, self.config))
        logger.info("Found %d material folder(s) under %s", len(folders), root)
        scans = []
        for i, folder in enumerate(tqdm(folders, desc="Scanning", disable=not show_progress)):
            scans.append(self.scan(folder, with_sizes=with_sizes))
            self._report_progress("scan", i + 1, len(folders))
        return scans

    # ------------------------------------------
    # Plan
    # ------------------------------------------

    def transform_for(
        self,
        folder: str,
        classified: Sequence[ClassifiedTexture],
        width_cm: Optional[float] = None,
        height_cm: Optional[float] = None,
        rotation_deg: Optional[float] = None,
    ) -> Transform:
        """Return the physical transform for a folder.

        Explicit values win; missing ones come from a size hint in the folder
        or file names (when enabled), then from the configured defaults.
        """
        defaults = self.config.defaults
        hint_x = hint_y = None
        if defaults.detect_size_from_name and (width_cm is None or height_cm is None):
            names = [os.path.basename(os.path.normpath(folder))]
            names.extend(c.texture.name for c in classified)
            for name in names:
                hint_x, hint_y = detect_size_from_name(name)
                if hint_x is not None:
                    logger.info("Size hint from '%s': %.3f x %.3f m", name, hint_x, hint_y)
                    break
        if width_cm is None:
            width_cm = hint_x * 100.0 if hint_x is not None else defaults.width_cm
        if height_cm is None:
            height_cm = hint_y * 100.0 if hint_y is not None else defaults.height_cm
        if rotation_deg is None:
            rotation_deg = defaults.rotation_deg
        return Transform(float(width_cm), float(height_cm), float(rotation_deg))

    def plan(
        self,
        folder: str,
        width_cm: Optional[float] = None,
        height_cm: Optional[float] = None,
        rotation_deg: Optional[float] = None,
        tint: Optional[Tint] = None,
        tiles: Sequence[int] = (0, 0),
    ) -> MaterialAssignment:
        """Scan and resolve a folder into a pending edit."""
        folder = os.path.abspath(folder)
        classified = scan_folder(folder, self.config)
        transform = self.transform_for(folder, classified, width_cm, height_cm, rotation_deg)
        assignment = build_assignment(folder, classified, transform, tint)
        assignment.tiles = (max(0, int(tiles[0])), max(0, int(tiles[1])))
        logger.info(
            "Planned %s: %d/%d channel(s), %.1f x %.1f cm @ %.1f deg",
            folder, len(assignment.assigned()), len(MATERIAL_CHANNELS),
            transform.width_cm, transform.height_cm, transform.rotation_deg,
        )
        return assignment

    # ------------------------------------------
    # Apply / read
    # ------------------------------------------

    def apply(self, document: GraphDocument, assignment: MaterialAssignment,
              material_name: Optional[str] = None) -> ApplyReport:
        """Write a pending edit into the named material, creating it if needed.

        A tile pattern is derived before the graph is touched whenever the
        assignment carries tile divisions, and is assigned in the same edit
        session as the bitmaps. An edit that matches the material's current
        bitmaps and pattern is skipped when ``apply.skip_noop`` is set.
        """
        name = material_name or os.path.basename(os.path.normpath(assignment.folder))
        if not name:
            raise ValueError("A material name is required when the assignment has no folder")

        pattern = None
        div_x, div_y = assignment.tiles
        if div_x or div_y:
            handle = derive_tile_pattern(
                document,
                assignment.transform.width_cm,
                assignment.transform.height_cm,
                div_x, div_y, self.config,
            )
            pattern = handle.name if handle is not None else None

        graph = ensure_material_graph(document, name, self.config)
        if (self.config.apply.skip_noop
                and pattern in (None, graph.surface_pattern)
                and is_noop(graph, assignment, self.config)):
            logger.info("'%s' already up to date; nothing to apply", name)
            return ApplyReport(material=graph.name, noop=True)
        return apply_assignment(graph, assignment, self.config, surface_pattern=pattern)

    def apply_folder(self, document: GraphDocument, folder: str,
                     material_name: Optional[str] = None, **plan_kwargs) -> ApplyReport:
        """Plan ``folder`` and apply it in one step."""
        return self.apply(document, self.plan(folder, **plan_kwargs), material_name)

    def read(self, document: GraphDocument, material_name: str) -> Optional[MaterialReadback]:
        """Read back a material, or None when the document does not have it."""
        graph = document.find_graph(material_name)
        if graph is None:
            logger.warning("Material '%s' not found", material_name)
            return None
        return read_material(graph, self.config)

    def edit(self, document: GraphDocument, material_name: str) -> Optional[MaterialAssignment]:
        """Return the current state of a material as a pending edit."""
        readback = self.read(document, material_name)
        if readback is None:
            return None
        return readback_to_assignment(readback, self.config)

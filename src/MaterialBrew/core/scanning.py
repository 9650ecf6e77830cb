"""Material folder enumeration and per-file classification."""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

from ..config import PipelineConfig, ScanConfig
from .classify import classify_texture
from .records import ClassifiedTexture, TextureFile

logger = logging.getLogger("material_pipeline")


def _scan_cfg(config: Optional[PipelineConfig]) -> ScanConfig:
    return config.scan if config is not None else ScanConfig()


def is_candidate_image(fname: str, scan_cfg: ScanConfig) -> bool:
    """Return whether a file name is an original (non-derived) source image."""
    p = Path(fname)
    if p.suffix.lower() not in {e.lower() for e in scan_cfg.image_extensions}:
        return False
    stem = p.stem.lower()
    if any(stem.endswith(s.lower()) for s in scan_cfg.thumbnail_suffixes):
        return False
    if any(m.lower() in stem for m in scan_cfg.thumbnail_markers):
        return False
    return True


def iter_texture_files(folder: str, config: Optional[PipelineConfig] = None) -> Iterator[TextureFile]:
    """Yield candidate texture files of one folder in sorted name order.

    The folder is listed on every call. A folder that does not exist (or
    vanishes while being listed) yields nothing.
    """
    scan_cfg = _scan_cfg(config)
    if not folder or not os.path.isdir(folder):
        logger.debug("Folder not found, nothing to scan: %s", folder)
        return
    try:
        names = sorted(os.listdir(folder), key=str.lower)
    except OSError as exc:
        logger.warning("Failed to list %s: %s", folder, exc)
        return

    for fname in names:
        fpath = os.path.join(folder, fname)
        if not os.path.isfile(fpath):
            continue
        if not is_candidate_image(fname, scan_cfg):
            logger.debug("Skipping non-source file: %s", fname)
            continue
        yield TextureFile(fpath)


def scan_folder(folder: str, config: Optional[PipelineConfig] = None) -> List[ClassifiedTexture]:
    """Enumerate and classify the textures of one folder."""
    classified = []
    for texture in iter_texture_files(folder, config):
        result = classify_texture(texture.path, config)
        logger.info(
            "Detect: '%s' -> %s (invert=%s) [%s]",
            texture.name, result.channel.value, result.invert, result.label,
        )
        classified.append(ClassifiedTexture(texture, result))
    logger.info("Scanned %d textures from %s", len(classified), folder)
    return classified


def iter_material_folders(root: str, config: Optional[PipelineConfig] = None) -> Iterator[str]:
    """Yield sub-folders of a library root holding at least one candidate texture."""
    if not root or not os.path.isdir(root):
        return
    for dirpath, dirnames, _ in os.walk(root):
        dirnames.sort(key=str.lower)
        if any(True for _ in iter_texture_files(dirpath, config)):
            yield dirpath


def has_key_image(folder: str, config: Optional[PipelineConfig] = None) -> bool:
    """Return whether ``<folder>/<folder-name>.<ext>`` exists for a supported extension."""
    name = os.path.basename(os.path.normpath(folder)) if folder else ""
    if not name:
        return False
    for ext in _scan_cfg(config).image_extensions:
        if os.path.isfile(os.path.join(folder, name + ext)):
            return True
    return False

"""Core utilities -- re-exports all public symbols for convenience."""

from .records import (
    TextureFile, ClassificationResult, ClassifiedTexture,
    Transform, SlotAssignment, MaterialAssignment,
)
from .normalize import normalize_name
from .classify import classify_texture, classify_name
from .scanning import (
    is_candidate_image,
    iter_texture_files,
    scan_folder,
    iter_material_folders,
    has_key_image,
)
from .resolve import resolve_slots, build_assignment
from .units import cm_to_host, host_to_cm
from .sizing import detect_size_from_name, detect_lod
from .io import read_image_size
from .logging import setup_logging

__all__ = [
    "TextureFile", "ClassificationResult", "ClassifiedTexture",
    "Transform", "SlotAssignment", "MaterialAssignment",
    "normalize_name",
    "classify_texture", "classify_name",
    "is_candidate_image", "iter_texture_files", "scan_folder",
    "iter_material_folders", "has_key_image",
    "resolve_slots", "build_assignment",
    "cm_to_host", "host_to_cm",
    "detect_size_from_name", "detect_lod",
    "read_image_size",
    "setup_logging",
]

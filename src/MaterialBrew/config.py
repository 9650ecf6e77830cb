"""Define channel enums, keyword tables, and typed configuration models.

Use `PipelineConfig` to load, validate, and persist runtime settings.
"""

import os
import logging
import yaml
from dataclasses import dataclass, field
from typing import Dict, List
from enum import Enum

logger = logging.getLogger("material_pipeline.config")


class Channel(Enum):
    """Enumerate semantic texture channels of a material."""

    ALBEDO = "albedo"
    ROUGHNESS = "roughness"
    REFLECTION = "reflection"
    METALNESS = "metalness"
    BUMP = "bump"
    OPACITY = "opacity"
    EMISSIVE = "emissive"
    UNKNOWN = "unknown"


class BumpDetail(Enum):
    """Enumerate the mutually exclusive kinds of bump-family maps."""

    NORMAL = "normal"
    HEIGHT = "height"
    BUMP = "bump"


class HostUnit(Enum):
    """Enumerate native length units of a host material graph."""

    FEET = "feet"
    METERS = "meters"
    CENTIMETERS = "centimeters"


# Channels that can hold a texture, in resolution/report order.
MATERIAL_CHANNELS: List[Channel] = [
    Channel.ALBEDO,
    Channel.ROUGHNESS,
    Channel.REFLECTION,
    Channel.METALNESS,
    Channel.BUMP,
    Channel.OPACITY,
    Channel.EMISSIVE,
]

# Keywords matched against normalized names (lowercase, no separators).
GLOSS_KEYWORDS: List[str] = ["glossiness", "gloss", "smoothness", "smooth", "gls"]
ROUGHNESS_KEYWORDS: List[str] = ["roughness", "rough", "rgh"]

NORMAL_KEYWORDS: List[str] = ["normalgl", "normaldx", "normalmap", "normal", "nrml", "nrm"]
HEIGHT_KEYWORDS: List[str] = [
    "height", "hght", "hgt", "displacement", "displace", "disp", "parallax", "depth",
]
BUMP_KEYWORDS: List[str] = ["bumpmap", "bump"]

# Remaining families; declaration order breaks ties.
FAMILY_KEYWORDS: Dict[Channel, List[str]] = {
    Channel.ALBEDO: [
        "albedo", "basecolor", "diffuse", "diff", "color", "colour",
        "albd", "alb", "col", "clr", "rgb",
    ],
    Channel.REFLECTION: [
        "specularity", "specular", "spec", "reflectance", "reflection",
        "reflect", "refl",
    ],
    Channel.METALNESS: ["metalness", "metallic", "metal"],
    Channel.OPACITY: [
        "opacity", "opac", "alphamasked", "alpha", "mask", "transparency",
        "transmission", "translucency", "cutout",
    ],
    Channel.EMISSIVE: ["emissive", "emission", "emit", "selfillum", "illum", "glow"],
}

FAMILY_LABELS: Dict[Channel, str] = {
    Channel.ALBEDO: "Albedo",
    Channel.REFLECTION: "Reflection",
    Channel.METALNESS: "Metalness",
    Channel.OPACITY: "Opacity",
    Channel.EMISSIVE: "Emissive",
}

# Vendor, UDIM and resolution tags stripped before matching.
VENDOR_TOKENS: List[str] = [
    "udim", "1001", "1002", "1003",
    "16k", "1k", "2k", "4k", "8k", "1024", "2048", "4096", "8192",
    "ue4", "ue5", "unity", "marmoset",
    "quixel", "megascans", "arroway", "cgaxis", "ambientcg", "polyhaven",
    "texturehaven", "cc0",
]


@dataclass
class ScanConfig:
    """Store settings for folder enumeration."""

    image_extensions: List[str] = field(default_factory=lambda: [
        ".jpg", ".jpeg", ".png", ".tif", ".tiff", ".bmp", ".webp",
    ])
    thumbnail_suffixes: List[str] = field(default_factory=lambda: ["_128", "_512", "_1024"])
    thumbnail_markers: List[str] = field(default_factory=lambda: ["thumb"])


@dataclass
class ClassifyConfig:
    """Store user additions to the built-in keyword tables."""

    extra_vendor_tokens: List[str] = field(default_factory=list)
    # Keyed by channel value ("albedo", "metalness", ...).
    extra_keywords: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class ApplyConfig:
    """Store settings for writing assignments into a host material graph."""

    host_unit: str = "feet"
    template_names: List[str] = field(default_factory=lambda: [
        "Generic", "Générique", "Genérico", "Generico",
    ])
    allow_any_template: bool = True
    normal_strength: float = 1.0
    bump_min_strength: float = 0.5
    metalness_reflection_fallback: bool = False
    write_folder_path: bool = True
    skip_noop: bool = True


@dataclass
class PatternConfig:
    """Store settings for derived tile patterns."""

    name_prefix: str = "tiles"


@dataclass
class DefaultsConfig:
    """Store default physical transform for new materials."""

    width_cm: float = 100.0
    height_cm: float = 100.0
    rotation_deg: float = 0.0
    detect_size_from_name: bool = True


_SUPPORTED_CONFIG_VERSION = 1


@dataclass
class PipelineConfig:
    """Master configuration."""

    config_version: int = 1
    log_level: str = "INFO"
    log_file: str = ""

    scan: ScanConfig = field(default_factory=ScanConfig)
    classify: ClassifyConfig = field(default_factory=ClassifyConfig)
    apply: ApplyConfig = field(default_factory=ApplyConfig)
    pattern: PatternConfig = field(default_factory=PatternConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "PipelineConfig":
        """Load configuration from YAML or return defaults."""
        if not os.path.exists(path):
            logger.info("Config file '%s' not found. Using defaults.", path)
            config = cls()
            config.validate()
            return config
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f"Failed to parse YAML config '{path}': {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ValueError(
                f"Config file '{path}' must contain a YAML mapping, "
                f"got {type(data).__name__}"
            )
        yaml_version = data.get("config_version", 1)
        if isinstance(yaml_version, int) and yaml_version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "Config file '%s' has config_version=%d, but this build only "
                "supports up to version %d. Some settings may be ignored.",
                path, yaml_version, _SUPPORTED_CONFIG_VERSION,
            )
        config = cls()
        _merge_dict_to_dataclass(config, data)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Write configuration to a YAML file."""
        import dataclasses
        import threading as _th
        data = dataclasses.asdict(self)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        ext = os.path.splitext(path)[1]
        tmp_path = f"{path}.tmp.{os.getpid()}.{_th.get_ident()}{ext}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                          allow_unicode=True)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    @property
    def host_unit(self) -> HostUnit:
        """Return the configured host unit as an enum member."""
        return HostUnit(self.apply.host_unit.strip().lower())

    def validate(self):
        """Validate configuration values. Raises ValueError on invalid config."""
        errors = []

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {sorted(valid_log_levels)}, "
                f"got '{self.log_level}'"
            )

        for ext in self.scan.image_extensions:
            if not isinstance(ext, str) or not ext.startswith("."):
                errors.append(
                    f"scan.image_extensions entries must start with '.', got {ext!r}"
                )
        if not self.scan.image_extensions:
            errors.append("scan.image_extensions must not be empty")

        valid_channels = {c.value for c in Channel if c != Channel.UNKNOWN}
        for key, words in self.classify.extra_keywords.items():
            if key not in valid_channels:
                errors.append(
                    f"classify.extra_keywords key '{key}' is not a channel "
                    f"(expected one of {sorted(valid_channels)})"
                )
            elif not isinstance(words, list) or not all(
                isinstance(w, str) and w for w in words
            ):
                errors.append(
                    f"classify.extra_keywords['{key}'] must be a list of non-empty strings"
                )

        valid_units = {u.value for u in HostUnit}
        if str(self.apply.host_unit).strip().lower() not in valid_units:
            errors.append(
                f"apply.host_unit must be one of {sorted(valid_units)}, "
                f"got '{self.apply.host_unit}'"
            )
        if not 0.0 < self.apply.normal_strength <= 10.0:
            errors.append("apply.normal_strength must be in (0, 10]")
        if not 0.0 <= self.apply.bump_min_strength <= 10.0:
            errors.append("apply.bump_min_strength must be in [0, 10]")

        if not self.pattern.name_prefix or not self.pattern.name_prefix.isidentifier():
            errors.append(
                "pattern.name_prefix must be a non-empty identifier-like string, "
                f"got '{self.pattern.name_prefix}'"
            )

        if self.defaults.width_cm <= 0 or self.defaults.height_cm <= 0:
            errors.append("defaults.width_cm and defaults.height_cm must be > 0")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


def _merge_dict_to_dataclass(obj, data: dict, _path: str = ""):
    import dataclasses
    for key, value in data.items():
        if hasattr(obj, key):
            field_val = getattr(obj, key)
            if dataclasses.is_dataclass(field_val) and isinstance(value, dict):
                _merge_dict_to_dataclass(field_val, value, f"{_path}{key}.")
            else:
                full_key = f"{_path}{key}"
                if value is None and field_val is not None:
                    logger.warning(
                        f"Config key '{full_key}' is null but field default is "
                        f"{type(field_val).__name__}. Using default value."
                    )
                    continue
                expected_type = type(field_val)
                # Allow int->float and exact float->int promotion
                if (field_val is not None
                        and not isinstance(value, expected_type)
                        and not (expected_type is float
                                 and isinstance(value, int))
                        and not (expected_type is int
                                 and isinstance(value, float)
                                 and value == int(value))):
                    logger.warning(
                        f"Config type mismatch for '{full_key}': "
                        f"expected {expected_type.__name__}, "
                        f"got {type(value).__name__} ({value!r}). "
                        f"Using default value."
                    )
                    continue
                if (expected_type is int and isinstance(value, float)
                        and value == int(value)):
                    value = int(value)
                if expected_type is float and isinstance(value, int):
                    value = float(value)
                # Merge dicts instead of replacing (preserves defaults)
                if isinstance(field_val, dict) and isinstance(value, dict):
                    field_val.update(value)
                else:
                    setattr(obj, key, value)
        else:
            full_key = f"{_path}{key}"
            logger.warning(f"Unknown config key ignored: '{full_key}'")

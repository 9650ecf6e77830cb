"""Value types shared by the scanner, resolver, and graph layers."""

import os
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional, Tuple

from ..config import BumpDetail, Channel, MATERIAL_CHANNELS

Tint = Tuple[int, int, int]


@dataclass(frozen=True)
class TextureFile:
    """Single candidate image found in a material folder."""

    path: str
    name: str = ""

    def __post_init__(self) -> None:
        """Store an absolute path and derive the display name from it."""
        absolute = os.path.abspath(str(self.path))
        object.__setattr__(self, "path", absolute)
        if not self.name:
            object.__setattr__(self, "name", os.path.basename(absolute))


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one file name."""

    channel: Channel
    invert: bool = False
    label: str = "Unknown"
    detail: Optional[BumpDetail] = None


@dataclass(frozen=True)
class ClassifiedTexture:
    """A texture file paired with its classification."""

    texture: TextureFile
    result: ClassificationResult


@dataclass(frozen=True)
class Transform:
    """Physical mapping shared by every slot of a material."""

    width_cm: float
    height_cm: float
    rotation_deg: float = 0.0


@dataclass
class SlotAssignment:
    """Authoritative texture (if any) for one channel."""

    channel: Channel
    texture: Optional[TextureFile] = None
    invert: bool = False
    detail: Optional[BumpDetail] = None

    def __post_init__(self) -> None:
        """Reject combinations the host graph cannot represent."""
        if self.channel == Channel.UNKNOWN:
            raise ValueError("SlotAssignment cannot target the UNKNOWN channel")
        if self.invert and self.channel != Channel.ROUGHNESS:
            raise ValueError(
                f"invert is only meaningful on the roughness channel, got {self.channel.value}"
            )
        if self.detail is not None and self.channel != Channel.BUMP:
            raise ValueError(
                f"detail is only meaningful on the bump channel, got {self.channel.value}"
            )

    @property
    def assigned(self) -> bool:
        return self.texture is not None

    @property
    def path(self) -> Optional[str]:
        return self.texture.path if self.texture else None


@dataclass
class MaterialAssignment:
    """One pending edit: a folder's resolved slots plus shared transform and tint."""

    folder: str
    slots: Dict[Channel, SlotAssignment]
    transform: Transform
    tint: Optional[Tint] = None
    tiles: Tuple[int, int] = field(default=(0, 0))

    def __post_init__(self) -> None:
        """Fill in unassigned slots so every material channel is present."""
        for channel in MATERIAL_CHANNELS:
            self.slots.setdefault(channel, SlotAssignment(channel))
        if self.tint is not None:
            if len(self.tint) != 3:
                raise ValueError(f"tint must be an (r, g, b) triple, got {self.tint!r}")
            self.tint = tuple(max(0, min(255, int(c))) for c in self.tint)

    def get(self, channel: Channel) -> SlotAssignment:
        return self.slots[channel]

    def assigned(self) -> Dict[Channel, SlotAssignment]:
        """Return only the channels that have a texture."""
        return {c: s for c, s in self.slots.items() if s.assigned}

    def paths(self) -> Dict[Channel, Optional[str]]:
        """Return channel -> path (or None) for every material channel."""
        return {c: self.slots[c].path for c in MATERIAL_CHANNELS}

    def to_dict(self) -> dict:
        """Return a plain, YAML/JSON friendly dictionary."""
        return {
            "folder": self.folder,
            "transform": asdict(self.transform),
            "tint": list(self.tint) if self.tint else None,
            "tiles": list(self.tiles),
            "slots": {
                c.value: {
                    "path": s.path,
                    "invert": s.invert,
                    "detail": s.detail.value if s.detail else None,
                }
                for c, s in self.slots.items()
            },
        }

"""Reduce classified folder contents to one authoritative file per channel."""

import logging
from typing import Dict, Iterable, Optional, Sequence

from ..config import BumpDetail, Channel, MATERIAL_CHANNELS
from .records import (
    ClassifiedTexture, MaterialAssignment, SlotAssignment, Tint, Transform,
)

logger = logging.getLogger("material_pipeline")

_BUMP_PREFERENCE = (BumpDetail.NORMAL, BumpDetail.HEIGHT, BumpDetail.BUMP)


def _first(items: Iterable[ClassifiedTexture]) -> Optional[ClassifiedTexture]:
    return next(iter(items), None)


def resolve_slots(classified: Sequence[ClassifiedTexture]) -> Dict[Channel, SlotAssignment]:
    """Pick at most one file per channel.

    Order of ``classified`` is the tie-break: the first file of a channel
    wins. Roughness prefers an explicit glossiness file (kept with
    ``invert=True``); bump prefers normal over height over plain bump.
    Channels without a file stay unassigned.
    """
    slots: Dict[Channel, SlotAssignment] = {}

    for channel in MATERIAL_CHANNELS:
        family = [c for c in classified if c.result.channel == channel]

        if channel == Channel.ROUGHNESS:
            pick = _first(c for c in family if c.result.invert) or _first(family)
            slot = SlotAssignment(
                channel,
                texture=pick.texture if pick else None,
                invert=bool(pick and pick.result.invert),
            )
        elif channel == Channel.BUMP:
            pick = None
            for detail in _BUMP_PREFERENCE:
                pick = _first(c for c in family if c.result.detail == detail)
                if pick:
                    break
            slot = SlotAssignment(
                channel,
                texture=pick.texture if pick else None,
                detail=pick.result.detail if pick else None,
            )
        else:
            pick = _first(family)
            slot = SlotAssignment(channel, texture=pick.texture if pick else None)

        slots[channel] = slot
        logger.info(
            "Slot %s: %s invert=%s detail=%s",
            channel.value,
            slot.texture.name if slot.texture else "-",
            slot.invert,
            slot.detail.value if slot.detail else None,
        )

    return slots


def build_assignment(
    folder: str,
    classified: Sequence[ClassifiedTexture],
    transform: Transform,
    tint: Optional[Tint] = None,
) -> MaterialAssignment:
    """Resolve a folder's classified files into a fresh pending edit."""
    return MaterialAssignment(
        folder=folder,
        slots=resolve_slots(classified),
        transform=transform,
        tint=tint,
    )

"""Texture channel classification by filename keywords."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import (
    BumpDetail, Channel, ClassifyConfig, PipelineConfig,
    GLOSS_KEYWORDS, ROUGHNESS_KEYWORDS,
    NORMAL_KEYWORDS, HEIGHT_KEYWORDS, BUMP_KEYWORDS,
    FAMILY_KEYWORDS, FAMILY_LABELS,
)
from .normalize import normalize_name
from .records import ClassificationResult

logger = logging.getLogger("material_pipeline")

UNKNOWN_RESULT = ClassificationResult(Channel.UNKNOWN, False, "Unknown")

_BUMP_RULES: List[Tuple[BumpDetail, List[str], str]] = [
    (BumpDetail.NORMAL, NORMAL_KEYWORDS, "Normal"),
    (BumpDetail.HEIGHT, HEIGHT_KEYWORDS, "Height"),
    (BumpDetail.BUMP, BUMP_KEYWORDS, "Bump"),
]


def _contains_any(name: str, keywords: Sequence[str]) -> bool:
    return any(k and k in name for k in keywords)


def _family_keywords(cfg: Optional[ClassifyConfig]) -> Dict[Channel, List[str]]:
    if cfg is None or not cfg.extra_keywords:
        return FAMILY_KEYWORDS
    merged = {channel: list(words) for channel, words in FAMILY_KEYWORDS.items()}
    valid = {c.value for c in merged}
    for key, words in cfg.extra_keywords.items():
        if key not in valid:
            continue
        channel = Channel(key)
        if words:
            merged[channel].extend(w.lower() for w in words)
    return merged


def _extra(cfg: Optional[ClassifyConfig], channel: Channel) -> List[str]:
    if cfg is None:
        return []
    return [w.lower() for w in cfg.extra_keywords.get(channel.value, [])]


def classify_name(normalized: str, cfg: Optional[ClassifyConfig] = None) -> ClassificationResult:
    """Classify an already-normalized name.

    Roughness/glossiness and the bump sub-kinds are decided before the
    generic families: their keywords are substrings that looser family
    rules would otherwise swallow.
    """
    if not normalized:
        return UNKNOWN_RESULT

    if _contains_any(normalized, GLOSS_KEYWORDS):
        return ClassificationResult(Channel.ROUGHNESS, True, "Glossiness")
    if _contains_any(normalized, ROUGHNESS_KEYWORDS + _extra(cfg, Channel.ROUGHNESS)):
        return ClassificationResult(Channel.ROUGHNESS, False, "Roughness")

    bump_extra = _extra(cfg, Channel.BUMP)
    for detail, keywords, label in _BUMP_RULES:
        if detail == BumpDetail.BUMP:
            keywords = keywords + bump_extra
        if _contains_any(normalized, keywords):
            return ClassificationResult(Channel.BUMP, False, label, detail)

    for channel, keywords in _family_keywords(cfg).items():
        if _contains_any(normalized, keywords):
            return ClassificationResult(channel, False, FAMILY_LABELS[channel])

    return UNKNOWN_RESULT


def classify_texture(filepath: str, config: Optional[PipelineConfig] = None) -> ClassificationResult:
    """Classify a texture file into a material channel from its name alone.

    Total: every input yields exactly one result and `Channel.UNKNOWN` is a
    normal outcome (ambient occlusion maps, previews, unrelated images).
    """
    cfg = config.classify if config is not None else None
    extra_tokens = cfg.extra_vendor_tokens if cfg is not None else ()
    normalized = normalize_name(str(filepath), extra_tokens)
    result = classify_name(normalized, cfg)
    logger.debug("Classified %s (normalized '%s') -> %s", filepath, normalized, result)
    return result

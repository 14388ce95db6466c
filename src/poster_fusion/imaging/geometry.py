from __future__ import annotations

import math

from poster_fusion.config import settings

ASPECT_RATIOS: tuple[str, ...] = ("9:16", "1:1", "16:9", "3:4", "4:3")
DEFAULT_ASPECT_RATIO = "1:1"


def is_aspect_ratio(tag: str) -> bool:
    return tag in ASPECT_RATIOS


def ratio_value(tag: str) -> float:
    """
    "W:H" -> W / H. Callers validate the tag against ASPECT_RATIOS first.
    """
    a, b = tag.split(":", 1)
    return int(a) / int(b)


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; exports need 562.5 -> 563.
    return int(math.floor(value + 0.5))


def dimensions_for(tag: str, longest_edge: int) -> tuple[int, int]:
    """
    Concrete pixel size for an aspect ratio, with the longer side pinned to `longest_edge`:
    - landscape or square: width is the longest edge
    - portrait: height is the longest edge
    """
    ratio = ratio_value(tag)
    if ratio >= 1:
        return longest_edge, _round_half_up(longest_edge / ratio)
    return _round_half_up(longest_edge * ratio), longest_edge


def is_quality_tier(tier: str) -> bool:
    return tier in settings.quality_tiers


def quality_dimensions(tag: str) -> dict[str, tuple[int, int]]:
    """Pixel size of every quality tier for one aspect ratio, in tier order."""
    return {tier: dimensions_for(tag, edge) for tier, edge in settings.quality_tiers.items()}

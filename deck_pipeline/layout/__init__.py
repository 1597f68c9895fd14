"""
Layout validation into the canonical slide schema.
"""

from .validator import DEFAULTS, LayoutDefaults, clamp_coordinate, validate_layout_slide

__all__ = [
    "DEFAULTS",
    "LayoutDefaults",
    "clamp_coordinate",
    "validate_layout_slide",
]

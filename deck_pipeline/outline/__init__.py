"""
Outline text scheme: parsing, formatting and title recovery.
"""

from .parser import parse_outline, format_outline, skip_preamble
from .title_extraction import (
    TitleFound,
    TitleFallback,
    GenericTitle,
    extract_title,
    extract_title_result,
)

__all__ = [
    "parse_outline",
    "format_outline",
    "skip_preamble",
    "TitleFound",
    "TitleFallback",
    "GenericTitle",
    "extract_title",
    "extract_title_result",
]

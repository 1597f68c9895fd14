"""
Line-oriented parser for the outline text scheme.

Expected shape (every part optional and recovered leniently):

    ---
    title: Deck title
    description: One sentence
    theme: professional
    ---

    # Slide title
    Body line
    **Image:** [description]
    **Notes:** speaker notes

    ---

    # Next slide
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from config import DEFAULT_PRESENTATION_TITLE, OUTLINE_METADATA_WINDOW
from deck_pipeline.core.logging_utils import log_stage_debug
from deck_pipeline.models import Outline, OutlineMetadata, OutlineSlide
from deck_pipeline.outline.title_extraction import extract_title

logger = logging.getLogger(__name__)

STAGE_NAME = "OutlineParser"

RULE_LINE = "---"
HEADING_PREFIX = "# "
METADATA_KEYS = ("title", "description", "theme", "purpose", "designer")

# Phrases that mark a preamble as the model's analysis of the request
PREAMBLE_MARKERS = (
    "constraints",
    "composition",
    "topic:",
    "analysis",
    "requirements",
    "target audience",
    "slide structure",
    "ユーザーの意図",
    "スライド構成",
    "視覚的表現",
    "構成案",
    "展開された内容",
    "トピック:",
    "トピック：",
    "プレゼンテーションとして",
    "詳細内容を推奨",
)

IMAGE_LINE = re.compile(
    r"^(?:[-*]\s+)?\*\*(?:image(?:\s+description|\s+prompt)?|画像(?:説明)?)\s*[:：]?\*\*\s*[:：]?\s*(?:\[(.*)\]|(.*?))\s*$",
    re.IGNORECASE,
)
NOTES_LINE = re.compile(
    r"^(?:[-*]\s+)?\*\*(?:(?:speaker\s+)?notes?|(?:スピーカー)?ノート)\s*[:：]?\*\*\s*[:：]?\s*(.*?)\s*$",
    re.IGNORECASE,
)


def _is_rule(line: str) -> bool:
    return line.strip() == RULE_LINE


def _is_heading(line: str) -> bool:
    return line.strip().startswith(HEADING_PREFIX)


def skip_preamble(lines: List[str]) -> List[str]:
    """
    Drop analysis text the model wrote before the outline proper.

    Args:
        lines: Raw reply split into lines

    Returns:
        Lines starting at the outline
    """
    first_rule = next((i for i, line in enumerate(lines) if _is_rule(line)), None)

    if first_rule is None:
        first_heading = next((i for i, line in enumerate(lines) if _is_heading(line)), None)
        return lines[first_heading:] if first_heading is not None else []

    preamble = lines[:first_rule]
    first_heading = next((i for i, line in enumerate(preamble) if _is_heading(line)), None)
    if first_heading is None:
        return lines[first_rule:]

    # Only the prose ahead of the first heading can be analysis; slide bodies are not checked
    prose = "\n".join(preamble[:first_heading]).lower()
    if any(marker in prose for marker in PREAMBLE_MARKERS):
        return lines[first_rule:]
    return lines


def _read_metadata(lines: List[str]) -> Tuple[Dict[str, str], int]:
    """Return (metadata, index of first line after the block); empty when there is no block."""
    first = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first is None or not _is_rule(lines[first]):
        return {}, 0

    closing = next(
        (i for i in range(first + 1, min(len(lines), OUTLINE_METADATA_WINDOW)) if _is_rule(lines[i])),
        None,
    )
    if closing is None:
        return {}, 0

    body = lines[first + 1:closing]
    # A rule pair around a slide heading is a slide separator, not front matter
    if any(_is_heading(line) for line in body):
        return {}, 0

    metadata = {}
    for line in body:
        key, sep, value = line.strip().partition(":")
        key = key.strip().lower()
        if sep and key in METADATA_KEYS:
            metadata[key] = value.strip()
    return metadata, closing + 1


class _SlideBuilder:
    def __init__(self, title: str):
        self.title = title
        self.body: List[str] = []
        self.image_prompt: Optional[str] = None
        self.notes: Optional[str] = None

    def build(self) -> OutlineSlide:
        return OutlineSlide(
            title=self.title,
            content="\n".join(self.body),
            image_prompt=self.image_prompt,
            notes=self.notes,
        )


def parse_outline(
    text: str,
    purpose: str = "informative",
    theme: str = "professional",
    designer: str = "simple",
) -> Outline:
    """
    Parse an outline reply into ordered slide records.

    Args:
        text: Raw outline reply
        purpose: Request purpose, used unless the metadata block overrides it
        theme: Request theme, used unless the metadata block overrides it
        designer: Designer persona name, used unless the metadata block overrides it

    Returns:
        Outline; `slides` is empty when nothing could be recovered
    """
    lines = skip_preamble((text or "").replace("\r\n", "\n").split("\n"))
    metadata, start = _read_metadata(lines)

    slides: List[OutlineSlide] = []
    current: Optional[_SlideBuilder] = None

    def finalize():
        nonlocal current
        if current is not None:
            slides.append(current.build())
        current = None

    for raw_line in lines[start:]:
        line = raw_line.strip()

        if line == RULE_LINE:
            finalize()
            continue

        if line.startswith(HEADING_PREFIX):
            finalize()
            current = _SlideBuilder(extract_title(line[len(HEADING_PREFIX):]))
            continue

        if current is None or not line:
            continue

        image_match = IMAGE_LINE.match(line)
        if image_match:
            bracketed, bare = image_match.groups()
            current.image_prompt = (bracketed if bracketed is not None else bare).strip() or None
            continue

        notes_match = NOTES_LINE.match(line)
        if notes_match:
            current.notes = notes_match.group(1).strip() or None
            continue

        if not line.startswith("**"):
            current.body.append(line)

    finalize()

    raw_title = metadata.get("title") or (slides[0].title if slides else "")
    title = extract_title(raw_title) if raw_title else DEFAULT_PRESENTATION_TITLE

    log_stage_debug(
        logger,
        "Parsed outline",
        stage=STAGE_NAME,
        context={"slides": len(slides), "metadata_keys": sorted(metadata)},
    )

    return Outline(
        title=title,
        description=metadata.get("description", ""),
        slides=slides,
        metadata=OutlineMetadata(
            slide_count=len(slides),
            theme=metadata.get("theme") or theme,
            purpose=metadata.get("purpose") or purpose,
            designer=metadata.get("designer") or designer,
        ),
    )


def format_outline(outline: Outline) -> str:
    """Render an Outline back into the outline text scheme."""
    parts = [
        RULE_LINE,
        f"title: {outline.title}",
        f"description: {outline.description}",
        f"theme: {outline.metadata.theme}",
        f"purpose: {outline.metadata.purpose}",
        f"designer: {outline.metadata.designer}",
        RULE_LINE,
    ]

    sections = []
    for slide in outline.slides:
        section = [f"{HEADING_PREFIX}{slide.title}"]
        if slide.content:
            section.append(slide.content)
        if slide.image_prompt:
            section.append(f"**Image:** [{slide.image_prompt}]")
        if slide.notes:
            section.append(f"**Notes:** {slide.notes}")
        sections.append("\n".join(section))

    return "\n".join(parts) + "\n\n" + f"\n\n{RULE_LINE}\n\n".join(sections) + "\n"

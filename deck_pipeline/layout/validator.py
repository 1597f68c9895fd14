"""
Layout validation: turns one raw layout reply into a canonical LayoutSlide.

Out-of-range values are clamped and missing values defaulted; only a reply that is not a
layout object at all is rejected.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import DEFAULT_ASPECT_RATIO
from deck_pipeline.core.exceptions import LayoutParseError, TruncatedOutputError
from deck_pipeline.core.json_parser import extract_json_from_text, is_truncated_json, parse_json_robust
from deck_pipeline.core.logging_utils import log_json_parse_error, log_stage_debug
from deck_pipeline.models import LayerType, LayoutSlide, OutlineSlide, SlideLayer

logger = logging.getLogger(__name__)

STAGE_NAME = "LayoutValidator"

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass(frozen=True)
class LayoutDefaults:
    """Every value the validator fills in when a reply omits or mangles it."""
    background: str = "#ffffff"
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    z_index: int = 1
    opacity: float = 1.0
    layer_type: LayerType = LayerType.TEXT
    title_template: str = "title_slide"
    content_template: str = "content_slide"
    position_range: tuple = (0.0, 100.0)
    size_range: tuple = (1.0, 100.0)
    opacity_range: tuple = (0.0, 1.0)

    def template_for(self, slide_index: int) -> str:
        return self.title_template if slide_index == 0 else self.content_template

    @staticmethod
    def slide_id(slide_index: int) -> str:
        return f"slide-{slide_index + 1}"

    @staticmethod
    def layer_id(slide_id: str, layer_index: int) -> str:
        return f"{slide_id}-layer-{layer_index + 1}"


DEFAULTS = LayoutDefaults()


def _to_number(value: Any) -> Optional[float]:
    """Numeric value of a number or a numeric-prefixed string ("50%", "12px"), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if math.isnan(number):
        return None
    return number


def clamp_coordinate(value: Any, lo: float, hi: float, default: Optional[float] = None) -> float:
    """
    Clamp a value into [lo, hi].

    Args:
        value: Raw value from the reply (number, numeric string, or anything else)
        lo: Lower bound
        hi: Upper bound
        default: Used when the value is not numeric (defaults to lo)

    Returns:
        A float within [lo, hi]
    """
    number = _to_number(value)
    if number is None:
        number = lo if default is None else default
    return min(max(number, lo), hi)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _layer_type(value: Any, defaults: LayoutDefaults) -> LayerType:
    normalized = (_text(value) or "").lower()
    for layer_type in LayerType:
        if layer_type.value == normalized:
            return layer_type
    return defaults.layer_type


def _unwrap(parsed: Dict) -> Dict:
    slides = parsed.get("slides")
    if "layers" not in parsed and isinstance(slides, list) and slides and isinstance(slides[0], dict):
        return slides[0]
    return parsed


def _build_layer(
    raw: Dict,
    layer_id: str,
    outline_slide: OutlineSlide,
    defaults: LayoutDefaults,
) -> SlideLayer:
    layer_type = _layer_type(raw.get("type"), defaults)
    pos_lo, pos_hi = defaults.position_range
    size_lo, size_hi = defaults.size_range
    op_lo, op_hi = defaults.opacity_range

    z_index = _to_number(raw.get("zIndex", raw.get("z_index")))
    font_size = _to_number(raw.get("fontSize", raw.get("font_size")))

    layer = SlideLayer(
        id=layer_id,
        type=layer_type,
        x=clamp_coordinate(raw.get("x"), pos_lo, pos_hi),
        y=clamp_coordinate(raw.get("y"), pos_lo, pos_hi),
        width=clamp_coordinate(raw.get("width"), size_lo, size_hi),
        height=clamp_coordinate(raw.get("height"), size_lo, size_hi),
        z_index=int(z_index) if z_index is not None and math.isfinite(z_index) else defaults.z_index,
        opacity=clamp_coordinate(raw.get("opacity"), op_lo, op_hi, default=defaults.opacity),
        font_size=font_size if font_size is not None and font_size > 0 and math.isfinite(font_size) else None,
        text_color=_text(raw.get("textColor", raw.get("text_color"))),
        text_align=_text(raw.get("textAlign", raw.get("text_align"))),
    )

    if layer_type == LayerType.IMAGE:
        layer.src = ""
        layer.prompt = _text(raw.get("prompt")) or outline_slide.image_prompt or ""
    else:
        content = raw.get("content")
        layer.content = "" if content is None else str(content)
    return layer


def _build_layers(raw_layers: List[Any], slide_id: str, outline_slide: OutlineSlide, defaults: LayoutDefaults):
    layers = []
    seen_ids = set()
    for raw in raw_layers:
        if not isinstance(raw, dict):
            continue
        layer_id = _text(raw.get("id"))
        if not layer_id or layer_id in seen_ids:
            layer_id = defaults.layer_id(slide_id, len(layers))
            suffix = len(layers)
            while layer_id in seen_ids:
                suffix += 1
                layer_id = defaults.layer_id(slide_id, suffix)
        seen_ids.add(layer_id)
        layers.append(_build_layer(raw, layer_id, outline_slide, defaults))
    return layers


def _load_layout_object(raw_text: str, slide_index: int) -> Dict:
    parsed = parse_json_robust(raw_text)
    extracted = extract_json_from_text(raw_text or "")
    truncated = bool(extracted) and is_truncated_json(extracted)

    if parsed is not None:
        parsed = _unwrap(parsed)
        if isinstance(parsed.get("layers"), list):
            return parsed

    preview = (raw_text or "")[:500]
    if truncated:
        log_json_parse_error(logger, "Layout reply was cut off", stage=STAGE_NAME, raw_output_preview=preview)
        raise TruncatedOutputError(
            f"Layout reply for slide {slide_index + 1} was truncated and could not be repaired",
            stage=STAGE_NAME,
            raw_output=raw_text,
        )

    log_json_parse_error(logger, "Layout reply has no layer array", stage=STAGE_NAME, raw_output_preview=preview)
    raise LayoutParseError(
        "Layout reply is not a slide object with a layer array",
        stage=STAGE_NAME,
        slide_index=slide_index,
        raw_output=raw_text,
    )


def validate_layout_slide(
    raw_text: str,
    slide_index: int,
    outline_slide: OutlineSlide,
    defaults: LayoutDefaults = DEFAULTS,
) -> LayoutSlide:
    """
    Parse and normalize one layout reply.

    Args:
        raw_text: Raw model reply for one slide
        slide_index: Zero-based position of the slide in the outline
        outline_slide: Outline record the layout was generated from
        defaults: Fill-in values; `aspect_ratio` carries the request's canvas ratio

    Returns:
        Canonical LayoutSlide

    Raises:
        TruncatedOutputError: The reply ended mid-structure and could not be repaired
        LayoutParseError: The reply is not a layout object with a layer array
    """
    parsed = _load_layout_object(raw_text, slide_index)

    slide_id = _text(parsed.get("id")) or defaults.slide_id(slide_index)
    layers = _build_layers(parsed["layers"], slide_id, outline_slide, defaults)

    log_stage_debug(
        logger,
        "Validated layout",
        stage=STAGE_NAME,
        context={"slide": slide_index + 1, "layers": len(layers)},
    )

    return LayoutSlide(
        id=slide_id,
        title=_text(parsed.get("title")) or outline_slide.title,
        layers=layers,
        background=_text(parsed.get("background")) or defaults.background,
        aspect_ratio=defaults.aspect_ratio,
        template=defaults.template_for(slide_index),
        notes=_text(parsed.get("notes")) or outline_slide.notes,
    )

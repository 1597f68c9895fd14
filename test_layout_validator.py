"""
Tests for layout reply validation and normalization.
"""

import dataclasses
import json

import pytest

from deck_pipeline.core.exceptions import LayoutParseError, TokenLimitError, TruncatedOutputError
from deck_pipeline.layout import DEFAULTS, clamp_coordinate, validate_layout_slide
from deck_pipeline.models import LayerType, OutlineSlide

OUTLINE_SLIDE = OutlineSlide(
    title="Revenue",
    content="- Revenue grew 12%",
    image_prompt="bar chart of revenue by region",
    notes="Mention the new regions first",
)


def _reply(**overrides):
    slide = {
        "id": "slide-2",
        "title": "Revenue growth",
        "layers": [
            {"id": "heading", "type": "text", "content": "Revenue grew 12%", "x": 10, "y": 10, "width": 80, "height": 15},
            {"id": "chart", "type": "image", "x": 55, "y": 30, "width": 40, "height": 50},
        ],
        "background": "#f5f5f5",
        "aspectRatio": "4:3",
        "template": "content_slide",
    }
    slide.update(overrides)
    return json.dumps(slide)


@pytest.mark.parametrize("value, lo, hi, expected", [
    (50, 0, 100, 50.0),
    (-5, 0, 100, 0.0),
    (150, 0, 100, 100.0),
    (0, 1, 100, 1.0),
    ("42", 0, 100, 42.0),
    ("37.5%", 0, 100, 37.5),
    ("12px", 0, 100, 12.0),
    ("wide", 0, 100, 0.0),
    (None, 1, 100, 1.0),
    (float("nan"), 0, 100, 0.0),
    (float("inf"), 0, 100, 100.0),
    (True, 0, 100, 0.0),
    ([10], 0, 100, 0.0),
])
def test_clamp_coordinate(value, lo, hi, expected):
    assert clamp_coordinate(value, lo, hi) == expected


def test_clamp_uses_explicit_default():
    assert clamp_coordinate("n/a", 0, 1, default=1.0) == 1.0


def test_valid_reply_is_normalized():
    slide = validate_layout_slide(_reply(), 1, OUTLINE_SLIDE)

    assert slide.id == "slide-2"
    assert slide.title == "Revenue growth"
    assert slide.background == "#f5f5f5"
    assert slide.template == "content_slide"
    assert slide.aspect_ratio == DEFAULTS.aspect_ratio
    assert slide.notes == "Mention the new regions first"

    text, image = slide.layers
    assert text.type == LayerType.TEXT
    assert text.content == "Revenue grew 12%"
    assert (text.z_index, text.opacity) == (1, 1.0)
    assert image.type == LayerType.IMAGE
    assert image.src == ""
    assert image.prompt == "bar chart of revenue by region"


def test_out_of_range_values_are_clamped():
    reply = _reply(layers=[{
        "type": "text", "content": "x",
        "x": -20, "y": "250", "width": 0, "height": 400, "opacity": 3, "zIndex": "5",
    }])
    layer = validate_layout_slide(reply, 1, OUTLINE_SLIDE).layers[0]

    assert (layer.x, layer.y, layer.width, layer.height) == (0.0, 100.0, 1.0, 100.0)
    assert layer.opacity == 1.0
    assert layer.z_index == 5


def test_every_layer_stays_in_range_for_garbage_values():
    garbage = [None, "abc", -1e9, 1e9, "-3", {"x": 1}, float("nan")]
    layers = [
        {"type": "svg", "x": value, "y": value, "width": value, "height": value, "opacity": value}
        for value in garbage
    ]
    slide = validate_layout_slide(json.dumps({"layers": layers}), 3, OUTLINE_SLIDE)

    for layer in slide.layers:
        assert 0 <= layer.x <= 100 and 0 <= layer.y <= 100
        assert 1 <= layer.width <= 100 and 1 <= layer.height <= 100
        assert 0 <= layer.opacity <= 1


def test_missing_fields_use_defaults():
    reply = json.dumps({"layers": [{"type": "mystery", "x": 5}, {"type": "IMAGE", "prompt": "team photo"}]})
    slide = validate_layout_slide(reply, 0, OUTLINE_SLIDE)

    assert slide.id == "slide-1"
    assert slide.title == "Revenue"
    assert slide.background == "#ffffff"
    assert slide.template == "title_slide"
    assert [layer.id for layer in slide.layers] == ["slide-1-layer-1", "slide-1-layer-2"]
    assert slide.layers[0].type == LayerType.TEXT
    assert slide.layers[0].content == ""
    assert slide.layers[1].type == LayerType.IMAGE
    assert slide.layers[1].prompt == "team photo"


def test_duplicate_layer_ids_are_resynthesized():
    reply = json.dumps({"id": "s", "layers": [{"id": "a"}, {"id": "a"}, {"id": "s-layer-2"}]})
    ids = [layer.id for layer in validate_layout_slide(reply, 4, OUTLINE_SLIDE).layers]

    assert ids[0] == "a"
    assert len(set(ids)) == 3


def test_template_and_aspect_ratio_follow_request():
    defaults = dataclasses.replace(DEFAULTS, aspect_ratio="4:3")
    first = validate_layout_slide(_reply(template="content_slide"), 0, OUTLINE_SLIDE, defaults)

    assert first.template == "title_slide"
    assert first.aspect_ratio == "4:3"


def test_code_fence_and_prose_are_tolerated():
    reply = "Here is the layout:\n```json\n" + _reply() + "\n```\nLet me know if you need changes."
    assert validate_layout_slide(reply, 1, OUTLINE_SLIDE).title == "Revenue growth"


def test_trailing_commas_are_tolerated():
    reply = '{"layers":[{"type":"text","content":"Hi","x":1,"y":2,"width":3,"height":4,},],}'
    assert validate_layout_slide(reply, 1, OUTLINE_SLIDE).layers[0].content == "Hi"


def test_slides_wrapper_is_unwrapped():
    reply = json.dumps({"slides": [json.loads(_reply())]})
    assert validate_layout_slide(reply, 1, OUTLINE_SLIDE).id == "slide-2"


def test_repairable_truncation_is_recovered():
    reply = _reply()
    cut = reply[:reply.index('"chart"') + 20]
    slide = validate_layout_slide(cut, 1, OUTLINE_SLIDE)

    assert slide.layers[0].content == "Revenue grew 12%"


@pytest.mark.parametrize("reply", [
    "I cannot lay out this slide.",
    '{"id": "slide-1", "title": "No layers here"}',
    '{"layers": "not a list"}',
    "[1, 2, 3]",
])
def test_non_layout_reply_raises_parse_error(reply):
    with pytest.raises(LayoutParseError) as excinfo:
        validate_layout_slide(reply, 2, OUTLINE_SLIDE)
    assert excinfo.value.slide_index == 2
    assert "(slide 3)" in str(excinfo.value)


def test_unrepairable_truncation_is_token_limit_class():
    reply = '{"id":"slide-1","title":"Cut off here'
    with pytest.raises(TruncatedOutputError) as excinfo:
        validate_layout_slide(reply, 0, OUTLINE_SLIDE)
    assert isinstance(excinfo.value, TokenLimitError)
    assert excinfo.value.raw_output == reply

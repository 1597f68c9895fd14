"""
Tests for the outline text parser and formatter.
"""

from deck_pipeline.models import Outline, OutlineMetadata, OutlineSlide
from deck_pipeline.outline import format_outline, parse_outline

WELL_FORMED = """---
title: Quarterly Business Review
description: Results of the last quarter
theme: corporate
---

# Quarterly Business Review
## Results and outlook

---

# Revenue
- Revenue grew 12%
- Two new regions
**Image:** [bar chart of revenue by region]
**Notes:** Mention the new regions first

---

# Next Steps
- Hire two engineers
"""


def test_parses_metadata_and_slides():
    outline = parse_outline(WELL_FORMED, purpose="business_presentation")

    assert outline.title == "Quarterly Business Review"
    assert outline.description == "Results of the last quarter"
    assert outline.metadata == OutlineMetadata(
        slide_count=3, theme="corporate", purpose="business_presentation", designer="simple"
    )
    assert [slide.title for slide in outline.slides] == ["Quarterly Business Review", "Revenue", "Next Steps"]
    assert outline.slides[0].content == "## Results and outlook"

    revenue = outline.slides[1]
    assert revenue.content == "- Revenue grew 12%\n- Two new regions"
    assert revenue.image_prompt == "bar chart of revenue by region"
    assert revenue.notes == "Mention the new regions first"
    assert outline.slides[2].image_prompt is None


def test_analysis_preamble_is_discarded():
    reply = (
        "Constraints: five slides, business audience.\n"
        "# Composition\n"
        "I will start with the results.\n"
        + WELL_FORMED
    )
    outline = parse_outline(reply)

    assert outline == parse_outline(WELL_FORMED)
    assert [slide.title for slide in outline.slides] == ["Quarterly Business Review", "Revenue", "Next Steps"]


def test_preamble_without_heading_is_discarded():
    outline = parse_outline("Sure! Here is the outline you asked for.\n\n" + WELL_FORMED)
    assert len(outline.slides) == 3
    assert outline.metadata.theme == "corporate"


def test_first_slide_before_rule_is_kept():
    reply = "# Data Analysis Basics\nWhy analysis matters\n\n---\n\n# Tools\n- Spreadsheets\n"
    outline = parse_outline(reply)

    assert [slide.title for slide in outline.slides] == ["Data Analysis Basics", "Tools"]
    assert outline.title == "Data Analysis Basics"


def test_without_rules_parsing_starts_at_first_heading():
    reply = "Here you go:\n# One\nfirst body\n# Two\nsecond body\n"
    outline = parse_outline(reply)

    assert [(s.title, s.content) for s in outline.slides] == [("One", "first body"), ("Two", "second body")]


def test_second_heading_closes_previous_slide():
    outline = parse_outline("---\n# A\nbody a\n# B\nbody b\n---\n# C\n")
    assert [slide.title for slide in outline.slides] == ["A", "B", "C"]
    assert outline.slides[2].content == ""


def test_late_rule_pair_is_not_metadata():
    reply = "\n".join(["# Intro"] + ["line"] * 12 + ["---", "title: not metadata", "---", "# Outro"])
    outline = parse_outline(reply)

    assert outline.title == "Intro"
    assert [slide.title for slide in outline.slides] == ["Intro", "Outro"]


def test_japanese_labels():
    reply = "# 売上報告\n前年比12%増\n**画像説明:** 売上グラフ\n**ノート:** 最初に結論を述べる\n"
    slide = parse_outline(reply).slides[0]

    assert slide.content == "前年比12%増"
    assert slide.image_prompt == "売上グラフ"
    assert slide.notes == "最初に結論を述べる"


def test_other_bold_lines_are_skipped():
    slide = parse_outline("# Plan\n**Key point:** ignored\nkept\n").slides[0]
    assert slide.content == "kept"


def test_overlong_heading_goes_through_title_extraction():
    heading = "Our proposal for this slide is \"Better Hiring Today\" because " + "it keeps the focus on people " * 3
    outline = parse_outline(f"# {heading}\nbody\n")

    assert len(heading) > 80
    assert outline.slides[0].title == "Better Hiring Today"
    assert outline.slides[0].content == "body"


def test_no_slides_falls_back_to_placeholder_title():
    outline = parse_outline("I could not produce an outline for this topic.")
    assert outline.slides == []
    assert outline.title == "Presentation"
    assert outline.metadata.slide_count == 0


def test_format_then_parse_round_trip():
    outline = Outline(
        title="Quarterly Business Review",
        description="Results of the last quarter",
        slides=[
            OutlineSlide(title="Quarterly Business Review", content="## Results and outlook"),
            OutlineSlide(
                title="Revenue",
                content="- Revenue grew 12%\n- Two new regions",
                image_prompt="bar chart of revenue by region",
                notes="Mention the new regions first",
            ),
            OutlineSlide(title="Next Steps", content="- Hire two engineers", notes="Keep it short"),
            OutlineSlide(title="History", content="- Ten years of growth", image_prompt="bar chart [2024]"),
            OutlineSlide(title="Roadmap", content="- Phase two", image_prompt="[draft] timeline of phases"),
        ],
        metadata=OutlineMetadata(slide_count=5, theme="corporate", purpose="educational_content", designer="education"),
    )

    assert parse_outline(format_outline(outline)) == outline


def test_parse_then_format_is_stable():
    outline = parse_outline(WELL_FORMED)
    assert parse_outline(format_outline(outline)) == outline

"""
Tests for topic classification and topic pre-processing.
"""

import asyncio

import pytest

from deck_pipeline.core.exceptions import GenerationCancelledError, NetworkError, TokenLimitError
from deck_pipeline.core.topic_processor import TopicProcessor, analyze_topic_structure, classify_topic
from deck_pipeline.models import ContentType

LONG_PARAGRAPH = (
    "Our company finished the third quarter with revenue above plan while costs grew faster "
    "than expected in logistics and support, and the board wants a clear explanation of what "
    "happened, which product lines carried the growth, where margins slipped and what the team "
    "intends to change before the end of the fiscal year"
)

NUMBERED_LIST = (
    "Quarterly update for the leadership team covering the main results\n"
    "1. Revenue grew twelve percent against the same quarter last year\n"
    "2. Support costs rose because of the new onboarding programme\n"
    "3. Logistics margins slipped after the carrier contract changed\n"
    "4. Next quarter priorities are pricing, retention and hiring"
)


def test_fifty_char_single_line_is_minimal():
    topic = "x" * 50
    assert analyze_topic_structure(topic).char_count == 50
    assert classify_topic(topic) == ContentType.MINIMAL


def test_long_paragraph_without_markers_is_unstructured_large():
    assert len(LONG_PARAGRAPH) >= 250
    structure = analyze_topic_structure(LONG_PARAGRAPH)
    assert structure.is_large
    assert not structure.has_structure
    assert structure.content_type == ContentType.UNSTRUCTURED_LARGE


def test_numbered_list_is_structured():
    assert len(NUMBERED_LIST) >= 250
    structure = analyze_topic_structure(NUMBERED_LIST)
    assert structure.has_structure
    assert structure.line_count == 5
    assert structure.content_type == ContentType.STRUCTURED


@pytest.mark.parametrize("topic", [
    "Overview of the plan\n① market\n② product\n③ team\n④ money",
    "Overview of the plan\n■ market\n■ product\n■ team\n■ money",
    "Overview of the plan\n- market\n- product\n- team\n- money",
    "# Plan\nmarket notes\nproduct notes\nteam notes\nmoney notes",
])
def test_structure_markers(topic):
    assert analyze_topic_structure(topic).content_type == ContentType.STRUCTURED


def test_decimal_numbers_are_not_list_markers():
    structure = analyze_topic_structure("Revenue grew 3.5 percent and margins held at 12.0 this quarter")
    assert not structure.has_structure


def test_counts_sentences_in_both_scripts():
    structure = analyze_topic_structure("今日は晴れ。明日は雨！ It works. Really?")
    assert structure.sentence_count == 4


def test_minimal_topic_is_expanded(generator):
    analysis = asyncio.run(TopicProcessor(generator).process("company quarterly update"))

    assert analysis.content_type == ContentType.MINIMAL
    assert analysis.needs_expansion
    assert analysis.processing_applied == ("minimal_expansion",)
    assert analysis.processed_topic.startswith("An expanded brief")
    assert analysis.original_topic == "company quarterly update"
    assert [stage for stage, _, _ in generator.calls] == ["topic_expansion"]


def test_unstructured_topic_is_restructured(generator):
    analysis = asyncio.run(TopicProcessor(generator).process(LONG_PARAGRAPH))

    assert analysis.needs_structuring
    assert analysis.processing_applied == ("mece_structuring",)
    assert analysis.processed_topic == "1. Background\n2. Findings\n3. Next steps"


def test_structured_topic_passes_through_without_calls(generator):
    analysis = asyncio.run(TopicProcessor(generator).process(NUMBERED_LIST))

    assert analysis.processed_topic == NUMBERED_LIST
    assert analysis.processing_applied == ("passthrough",)
    assert generator.calls == []


@pytest.mark.parametrize("failure", [
    NetworkError("connection reset", status_code=503),
    TokenLimitError("Response was truncated due to token limit"),
    RuntimeError("socket closed"),
    "   \n",
])
def test_generation_failure_falls_back_to_original(make_generator, failure):
    generator = make_generator(topic_expansion=failure)

    analysis = asyncio.run(TopicProcessor(generator).process("company quarterly update"))

    assert analysis.processed_topic == "company quarterly update"
    assert analysis.processing_applied == ("error_fallback",)


def test_analysis_is_immutable(generator):
    analysis = asyncio.run(TopicProcessor(generator).process("company quarterly update"))
    with pytest.raises(AttributeError):
        analysis.processed_topic = "changed"


def test_cancellation_propagates(generator):
    event = asyncio.Event()
    event.set()

    with pytest.raises(GenerationCancelledError):
        asyncio.run(TopicProcessor(generator, cancel_event=event).process("company quarterly update"))

"""
Topic pre-processing: classifies the raw topic text, expands minimal topics and restructures
large unstructured ones before the presentation request is built.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

from config import (
    LARGE_TOPIC_MIN_CHARS,
    LARGE_TOPIC_MIN_LINES,
    MINIMAL_TOPIC_MAX_CHARS,
    MINIMAL_TOPIC_MAX_LINES,
    MINIMAL_TOPIC_MAX_SENTENCES,
    TOPIC_MAX_TOKENS,
    TOPIC_TEMPERATURE,
)
from deck_pipeline.core.exceptions import GenerationCancelledError
from deck_pipeline.core.logging_utils import log_stage_info, log_stage_warning
from deck_pipeline.core.text_generation import GenerationOptions, TextGenerationPort, generate_cancellable
from deck_pipeline.models import ContentType, TopicAnalysis
from deck_pipeline.prompts import PromptParameters, PromptStage, build_prompt

logger = logging.getLogger(__name__)

STAGE_NAME = "TopicProcessor"

SENTENCE_TERMINATOR = re.compile(r"[。！？!?]|\.(?=\s|$)")

STRUCTURE_MARKERS = (
    re.compile(r"[①-⑳]"),                       # circled digits ①..⑳
    re.compile(r"(?:^|\s)\d{1,2}[.)](?=\s)", re.MULTILINE),  # 1. / 1)
    re.compile(r"[■●・]"),
    re.compile(r"^\s*[-*+]\s", re.MULTILINE),
    re.compile(r"^#+\s", re.MULTILINE),
)


@dataclass(frozen=True)
class TopicStructure:
    char_count: int
    word_count: int
    line_count: int
    sentence_count: int
    is_minimal: bool
    is_large: bool
    has_structure: bool

    @property
    def is_structured(self) -> bool:
        return self.is_large and self.has_structure

    @property
    def is_unstructured_large(self) -> bool:
        return self.is_large and not self.has_structure

    @property
    def content_type(self) -> ContentType:
        # Size wins over the line/sentence heuristic: a long paragraph is never "minimal"
        if self.is_unstructured_large:
            return ContentType.UNSTRUCTURED_LARGE
        if self.is_structured:
            return ContentType.STRUCTURED
        if self.is_minimal:
            return ContentType.MINIMAL
        return ContentType.STRUCTURED


def analyze_topic_structure(topic: str) -> TopicStructure:
    """
    Measure the topic text and apply the classification thresholds. Pure function.

    Args:
        topic: Raw topic text

    Returns:
        TopicStructure with counts and flags
    """
    text = topic.strip()
    char_count = len(text)
    line_count = len(text.split("\n"))
    sentence_count = len(SENTENCE_TERMINATOR.findall(text))

    is_minimal = char_count <= MINIMAL_TOPIC_MAX_CHARS or (
        line_count <= MINIMAL_TOPIC_MAX_LINES and sentence_count <= MINIMAL_TOPIC_MAX_SENTENCES
    )
    is_large = char_count >= LARGE_TOPIC_MIN_CHARS or line_count >= LARGE_TOPIC_MIN_LINES
    has_structure = any(marker.search(text) for marker in STRUCTURE_MARKERS)

    return TopicStructure(
        char_count=char_count,
        word_count=len(text.split()),
        line_count=line_count,
        sentence_count=sentence_count,
        is_minimal=is_minimal,
        is_large=is_large,
        has_structure=has_structure,
    )


def classify_topic(topic: str) -> ContentType:
    return analyze_topic_structure(topic).content_type


class TopicProcessor:
    """
    Expands or restructures the topic with at most one generation call.
    Generation errors fall back to the original topic; only cancellation propagates.
    """

    def __init__(self, text_generator: TextGenerationPort, cancel_event: Optional[asyncio.Event] = None):
        self.text_generator = text_generator
        self.cancel_event = cancel_event
        self.options = GenerationOptions(temperature=TOPIC_TEMPERATURE, max_tokens=TOPIC_MAX_TOKENS)

    async def process(self, topic: str) -> TopicAnalysis:
        """
        Analyze and pre-process the topic.

        Args:
            topic: Raw topic text from the user

        Returns:
            Immutable TopicAnalysis; `processed_topic` is the text used by the prompts
        """
        structure = analyze_topic_structure(topic)
        content_type = structure.content_type
        context = {
            "content_type": content_type.value,
            "char_count": structure.char_count,
            "line_count": structure.line_count,
            "sentence_count": structure.sentence_count,
        }

        processed_topic = topic
        processing_applied = []

        try:
            if content_type == ContentType.MINIMAL:
                log_stage_info(logger, "Minimal topic detected, expanding", stage=STAGE_NAME, context=context)
                processed_topic = await self._generate(PromptStage.TOPIC_EXPANSION, topic)
                processing_applied.append("minimal_expansion")
            elif content_type == ContentType.UNSTRUCTURED_LARGE:
                log_stage_info(logger, "Large unstructured topic detected, structuring", stage=STAGE_NAME, context=context)
                processed_topic = await self._generate(PromptStage.TOPIC_STRUCTURING, topic)
                processing_applied.append("mece_structuring")
            else:
                log_stage_info(logger, "Structured topic detected, passing through", stage=STAGE_NAME, context=context)
                processing_applied.append("passthrough")
        except GenerationCancelledError:
            raise
        except Exception as e:
            log_stage_warning(logger, "Topic processing failed, using original topic", stage=STAGE_NAME, error=e)
            processed_topic = topic
            processing_applied = ["error_fallback"]

        return TopicAnalysis(
            original_topic=topic,
            processed_topic=processed_topic,
            content_type=content_type,
            char_count=structure.char_count,
            word_count=structure.word_count,
            line_count=structure.line_count,
            sentence_count=structure.sentence_count,
            needs_expansion=content_type == ContentType.MINIMAL,
            needs_structuring=content_type == ContentType.UNSTRUCTURED_LARGE,
            processing_applied=tuple(processing_applied),
        )

    async def _generate(self, stage: PromptStage, topic: str) -> str:
        prompt = build_prompt(stage, PromptParameters.for_topic(topic))
        reply = await generate_cancellable(
            self.text_generator, prompt, self.options, self.cancel_event, stage=STAGE_NAME
        )
        result = reply.strip()
        if not result:
            raise ValueError(f"Empty reply for {stage.value}")
        return result

"""
Shared test fixtures: a scripted text generation port that never touches the network.
"""

import asyncio
import json
import re
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from deck_pipeline.core.text_generation import GenerationOptions
from deck_pipeline.utils.observability import ObservabilityLogger

Response = Union[str, Exception, Callable[[str, int], str]]

_OUTLINE_COUNT = re.compile(r"Create a (\d+)-slide presentation")
_LAYOUT_NUMBER = re.compile(r'"id":"slide-(\d+)"')
_LAYOUT_TYPE = re.compile(r'"template":"(\w+)"')


def detect_stage(prompt: str) -> str:
    if "Expand the following presentation topic" in prompt:
        return "topic_expansion"
    if "MECE principle" in prompt:
        return "topic_structuring"
    if "Generate exactly one presentation title" in prompt:
        return "title"
    if _OUTLINE_COUNT.search(prompt):
        return "outline"
    if "Convert the following single slide" in prompt:
        return "layout"
    raise AssertionError(f"Unrecognised prompt: {prompt[:80]}")


def outline_slide_count(prompt: str) -> int:
    return int(_OUTLINE_COUNT.search(prompt).group(1))


def layout_slide_number(prompt: str) -> int:
    return int(_LAYOUT_NUMBER.search(prompt).group(1))


def build_outline_text(slide_count: int, title: str = "Quarterly Business Review") -> str:
    sections = [f"# {title}\n## Results and outlook"]
    for n in range(2, slide_count + 1):
        sections.append(
            f"# Topic {n}\n"
            f"- Point {n}.1\n"
            f"- Point {n}.2\n"
            f"**Image:** [chart for topic {n}]\n"
            f"**Notes:** Talk about topic {n}"
        )
    return (
        "---\n"
        f"title: {title}\n"
        "description: Results of the last quarter\n"
        "theme: professional\n"
        "---\n\n"
        + "\n\n---\n\n".join(sections)
        + "\n"
    )


def build_layout_json(slide_number: int, slide_type: str = "content_slide") -> str:
    return json.dumps({
        "id": f"slide-{slide_number}",
        "title": f"Slide {slide_number}",
        "layers": [
            {
                "id": f"slide-{slide_number}-layer-1",
                "type": "text",
                "content": f"Heading {slide_number}",
                "x": 10, "y": 10, "width": 80, "height": 15,
                "fontSize": 48, "textColor": "#333333", "textAlign": "center", "zIndex": 2,
            },
            {
                "id": f"slide-{slide_number}-layer-2",
                "type": "image",
                "prompt": "office skyline",
                "x": 55, "y": 30, "width": 40, "height": 50,
            },
        ],
        "background": "#ffffff",
        "aspectRatio": "16:9",
        "template": slide_type,
    }, separators=(",", ":"))


class ScriptedTextGenerator:
    """
    Fake TextGenerationPort.

    Each stage answers with a valid default reply unless overridden. An override is a string,
    an exception instance (raised), or a callable (prompt, call_index) -> str that may raise.
    `call_index` counts calls of that stage, starting at 0.
    """

    def __init__(
        self,
        default_title: str = "Quarterly Business Review",
        layout_delay: Optional[Callable[[int], float]] = None,
        **overrides: Response,
    ):
        self.default_title = default_title
        self.layout_delay = layout_delay
        self.overrides: Dict[str, Response] = overrides
        self.calls: List[Tuple[str, str, GenerationOptions]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def calls_for(self, stage: str) -> List[str]:
        return [prompt for call_stage, prompt, _ in self.calls if call_stage == stage]

    def _default(self, stage: str, prompt: str) -> str:
        if stage == "topic_expansion":
            return "An expanded brief about the topic, covering goals, audience and key messages."
        if stage == "topic_structuring":
            return "1. Background\n2. Findings\n3. Next steps"
        if stage == "title":
            return self.default_title
        if stage == "outline":
            return build_outline_text(outline_slide_count(prompt), self.default_title)
        number = layout_slide_number(prompt)
        return build_layout_json(number, _LAYOUT_TYPE.search(prompt).group(1))

    async def generate(self, prompt: str, options: GenerationOptions = GenerationOptions()) -> str:
        stage = detect_stage(prompt)
        call_index = len(self.calls_for(stage))
        self.calls.append((stage, prompt, options))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if stage == "layout" and self.layout_delay:
                await asyncio.sleep(self.layout_delay(layout_slide_number(prompt)))
            else:
                await asyncio.sleep(0)

            response = self.overrides.get(stage)
            if response is None:
                return self._default(stage, prompt)
            if isinstance(response, Exception):
                raise response
            if callable(response):
                return response(prompt, call_index)
            return response
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_generator():
    return ScriptedTextGenerator


@pytest.fixture
def generator():
    return ScriptedTextGenerator()


@pytest.fixture
def obs_logger():
    return ObservabilityLogger()

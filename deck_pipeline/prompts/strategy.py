"""
Prompt strategy: builds stage-specific prompts from presentation parameters.

Designer personas only change guidance text, so they are plain data records looked up by
enum, and every stage is one function in a dispatch table.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from config import LAYOUT_CONTENT_MAX_CHARS, PresentationConfig
from deck_pipeline.models import OutlineSlide
from deck_pipeline.utils.instruction_loader import load_template

TEMPLATES_DIR = Path(__file__).parent / "templates"


class DesignerPersona(Enum):
    SIMPLE = "simple"
    EDUCATION = "education"
    MARKETING_ORIENTED = "marketing_oriented"
    RESEARCH_PRESENTATION_ORIENTED = "research_presentation_oriented"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DesignerPersona":
        """Lenient lookup: accepts 'marketing-oriented', 'Marketing Oriented', etc. Falls back to SIMPLE."""
        if isinstance(value, DesignerPersona):
            return value
        normalized = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
        for persona in cls:
            if persona.value == normalized:
                return persona
        return cls.SIMPLE


class PromptStage(Enum):
    TOPIC_EXPANSION = "topic_expansion"
    TOPIC_STRUCTURING = "topic_structuring"
    TITLE = "title"
    OUTLINE = "outline"
    LAYOUT = "layout"


@dataclass(frozen=True)
class PersonaGuidance:
    display_name: str
    content_guidance: str
    layout_guidance: str
    image_guidance: str


PERSONA_GUIDANCE: Dict[DesignerPersona, PersonaGuidance] = {
    DesignerPersona.SIMPLE: PersonaGuidance(
        display_name="Simple Style",
        content_guidance=(
            "- Logical structure with one clear message per slide\n"
            "- Short bullet points, no decorative filler\n"
            "- Prefer data and concrete facts over adjectives"
        ),
        layout_guidance=(
            "- Clean, grid-based arrangement with generous whitespace\n"
            "- Clear hierarchy between title and body\n"
            "- Images support the text rather than dominate it"
        ),
        image_guidance="clean, professional imagery that supports the content without overwhelming it",
    ),
    DesignerPersona.EDUCATION: PersonaGuidance(
        display_name="Education Style",
        content_guidance=(
            "- Build understanding step by step, from basics to application\n"
            "- Explain terms the first time they appear\n"
            "- Close sections with a short recap or question"
        ),
        layout_guidance=(
            "- Friendly, readable layout with large text\n"
            "- Diagrams and step sequences to visualise procedures\n"
            "- Group related points so learners can follow the structure"
        ),
        image_guidance="clear explanatory illustrations and diagrams that aid understanding",
    ),
    DesignerPersona.MARKETING_ORIENTED: PersonaGuidance(
        display_name="Marketing Style",
        content_guidance=(
            "- Lead with the audience's problem and the benefit\n"
            "- Punchy headlines and a clear call to action\n"
            "- Use concrete numbers and proof points"
        ),
        layout_guidance=(
            "- Bold, high-impact layout with large visuals\n"
            "- Strong headline placement and visual flow toward the key message\n"
            "- Emphasise numbers and results"
        ),
        image_guidance="vivid, eye-catching product and lifestyle imagery",
    ),
    DesignerPersona.RESEARCH_PRESENTATION_ORIENTED: PersonaGuidance(
        display_name="Research Style",
        content_guidance=(
            "- Background, method, results, discussion\n"
            "- Precise wording and explicit assumptions\n"
            "- Separate findings from interpretation"
        ),
        layout_guidance=(
            "- High information density with a strict grid\n"
            "- Charts, tables and figures are first-class elements\n"
            "- Consistent captions and labelling"
        ),
        image_guidance="accurate charts, figures and schematic diagrams",
    ),
}


@dataclass(frozen=True)
class PromptParameters:
    """Presentation parameters shared by every prompt of one generation request."""
    topic: str
    slide_count: int
    purpose: str
    theme: str
    persona: DesignerPersona
    aspect_ratio: str = "16:9"
    include_images: bool = True
    custom_instructions: str = ""

    @classmethod
    def from_config(cls, config: PresentationConfig) -> "PromptParameters":
        return cls(
            topic=config.topic,
            slide_count=config.slide_count,
            purpose=config.purpose,
            theme=config.theme,
            persona=DesignerPersona.parse(config.designer),
            aspect_ratio=config.aspect_ratio,
            include_images=config.include_images,
            custom_instructions=config.custom_instructions,
        )

    @classmethod
    def for_topic(cls, topic: str) -> "PromptParameters":
        """Parameters for the topic stages, which run before a request is built."""
        return cls(
            topic=topic,
            slide_count=0,
            purpose="",
            theme="",
            persona=DesignerPersona.SIMPLE,
        )

    @property
    def guidance(self) -> PersonaGuidance:
        return PERSONA_GUIDANCE[self.persona]


def _render(filename: str, **values) -> str:
    return load_template(TEMPLATES_DIR, filename).substitute(**values)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _topic_expansion_prompt(params: PromptParameters) -> str:
    return _render("topic_expansion.md", topic=params.topic)


def _topic_structuring_prompt(params: PromptParameters) -> str:
    return _render("topic_structuring.md", topic=params.topic)


def _title_prompt(params: PromptParameters) -> str:
    return _render(
        "title.md",
        topic=params.topic,
        purpose=params.purpose,
        theme=params.theme,
        designer_name=params.guidance.display_name,
        slide_count=params.slide_count,
    )


def _outline_prompt(params: PromptParameters, title: str) -> str:
    image_instruction = "**Image:** [description of a relevant image]" if params.include_images else ""
    return _render(
        "outline.md",
        topic=params.topic,
        slide_count=params.slide_count,
        title=title,
        designer_name=params.guidance.display_name,
        content_guidance=params.guidance.content_guidance,
        purpose=params.purpose,
        theme=params.theme,
        image_instruction=image_instruction,
        custom_instructions=params.custom_instructions,
    ).strip()


def _layout_prompt(
    params: PromptParameters,
    slide: OutlineSlide,
    slide_index: int,
    content_max_chars: int = LAYOUT_CONTENT_MAX_CHARS,
) -> str:
    slide_type = "title_slide" if slide_index == 0 else "content_slide"

    slide_info = f'"{slide.title}" ({slide_type})\nContent: {_truncate(slide.content, content_max_chars)}'
    if slide.image_prompt:
        slide_info += f"\nImage: {slide.image_prompt}"
    if slide.notes:
        slide_info += f"\nNotes: {slide.notes}"

    if params.include_images:
        image_instruction = (
            f"place image layers where they help and set their prompt ({params.guidance.image_guidance})"
        )
    else:
        image_instruction = "do not include any image layers"

    return _render(
        "layout.md",
        designer_name=params.guidance.display_name,
        theme=params.theme,
        aspect_ratio=params.aspect_ratio,
        layout_guidance=params.guidance.layout_guidance,
        slide_info=slide_info,
        image_instruction=image_instruction,
        slide_number=slide_index + 1,
        slide_type=slide_type,
    )


_STAGE_BUILDERS: Dict[PromptStage, Callable[..., str]] = {
    PromptStage.TOPIC_EXPANSION: _topic_expansion_prompt,
    PromptStage.TOPIC_STRUCTURING: _topic_structuring_prompt,
    PromptStage.TITLE: _title_prompt,
    PromptStage.OUTLINE: _outline_prompt,
    PromptStage.LAYOUT: _layout_prompt,
}


def build_prompt(stage: PromptStage, params: PromptParameters, **fields) -> str:
    """
    Build the prompt for one pipeline stage.

    Args:
        stage: Which stage the prompt is for
        params: Presentation parameters
        **fields: Stage-specific inputs (`title` for OUTLINE; `slide` and `slide_index` for LAYOUT)

    Returns:
        Prompt text
    """
    return _STAGE_BUILDERS[stage](params, **fields)

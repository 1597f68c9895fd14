"""
Data model for the presentation generation pipeline.

Outline types describe the intermediate text representation produced by stage 2.
Layout types describe the positioned, percentage-coordinate slides handed to renderers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ContentType(Enum):
    """Classification of the raw topic text."""
    MINIMAL = "minimal"
    STRUCTURED = "structured"
    UNSTRUCTURED_LARGE = "unstructured_large"


@dataclass(frozen=True)
class TopicAnalysis:
    """Result of topic pre-processing. Created once per generation request."""
    original_topic: str
    processed_topic: str
    content_type: ContentType
    char_count: int
    word_count: int
    line_count: int
    sentence_count: int
    needs_expansion: bool
    needs_structuring: bool
    processing_applied: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            "originalTopic": self.original_topic,
            "processedTopic": self.processed_topic,
            "contentType": self.content_type.value,
            "charCount": self.char_count,
            "wordCount": self.word_count,
            "lineCount": self.line_count,
            "sentenceCount": self.sentence_count,
            "needsExpansion": self.needs_expansion,
            "needsStructuring": self.needs_structuring,
            "processingApplied": list(self.processing_applied),
        }


@dataclass
class OutlineSlide:
    """One slide section of the outline."""
    title: str
    content: str = ""
    image_prompt: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict:
        result = {"title": self.title, "content": self.content}
        if self.image_prompt:
            result["imagePrompt"] = self.image_prompt
        if self.notes:
            result["notes"] = self.notes
        return result


@dataclass
class OutlineMetadata:
    slide_count: int
    theme: str
    purpose: str
    designer: str

    def to_dict(self) -> Dict:
        return {
            "slideCount": self.slide_count,
            "theme": self.theme,
            "purpose": self.purpose,
            "designer": self.designer,
        }


@dataclass
class Outline:
    """Parsed result of the outline stage. Read-only input to layout generation."""
    title: str
    description: str
    slides: List[OutlineSlide]
    metadata: OutlineMetadata

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "description": self.description,
            "slides": [slide.to_dict() for slide in self.slides],
            "metadata": self.metadata.to_dict(),
        }


class LayerType(Enum):
    TEXT = "text"
    IMAGE = "image"
    SVG = "svg"


@dataclass
class SlideLayer:
    """
    A positioned element on a slide.

    Coordinates are percentages of the canvas: x, y in [0, 100] and width, height in [1, 100].
    Image layers never carry a real source; renderers fill `src` from `prompt` later.
    """
    id: str
    type: LayerType
    x: float
    y: float
    width: float
    height: float
    z_index: int = 1
    opacity: float = 1.0
    content: Optional[str] = None
    src: Optional[str] = None
    prompt: Optional[str] = None
    font_size: Optional[float] = None
    text_color: Optional[str] = None
    text_align: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "zIndex": self.z_index,
            "opacity": self.opacity,
        }
        if self.type == LayerType.IMAGE:
            result["src"] = self.src or ""
            result["prompt"] = self.prompt or ""
        else:
            result["content"] = self.content or ""
        if self.font_size is not None:
            result["fontSize"] = self.font_size
        if self.text_color:
            result["textColor"] = self.text_color
        if self.text_align:
            result["textAlign"] = self.text_align
        return result


@dataclass
class LayoutSlide:
    id: str
    title: str
    layers: List[SlideLayer]
    background: str
    aspect_ratio: str
    template: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "title": self.title,
            "layers": [layer.to_dict() for layer in self.layers],
            "background": self.background,
            "aspectRatio": self.aspect_ratio,
            "template": self.template,
        }
        if self.notes:
            result["notes"] = self.notes
        return result


@dataclass
class Presentation:
    """Final aggregate handed to the renderers."""
    title: str
    description: str
    slides: List[LayoutSlide] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "slides": [slide.to_dict() for slide in self.slides],
        }

"""
Multi-stage presentation generation: topic processing, title, outline and per-slide layout.
"""

from deck_pipeline.core.pipeline_orchestrator import PipelineOrchestrator, PipelineStage, generate_presentation
from deck_pipeline.models import (
    ContentType,
    TopicAnalysis,
    OutlineSlide,
    Outline,
    LayerType,
    SlideLayer,
    LayoutSlide,
    Presentation,
)

__all__ = [
    "PipelineOrchestrator",
    "PipelineStage",
    "generate_presentation",
    "ContentType",
    "TopicAnalysis",
    "OutlineSlide",
    "Outline",
    "LayerType",
    "SlideLayer",
    "LayoutSlide",
    "Presentation",
]

"""
Core pipeline components: error types, JSON recovery, the text generation port and the
stage handlers.

Only leaf modules are re-exported here; import handlers and the orchestrator from their
modules (or from `deck_pipeline`).
"""

from .exceptions import (
    PipelineError,
    TextGenerationError,
    TokenLimitError,
    TruncatedOutputError,
    NetworkError,
    FatalGenerationError,
    LayoutParseError,
    EmptyOutlineError,
    GenerationCancelledError,
    PresentationGenerationError,
)
from .json_parser import parse_json_robust, clean_json_string, extract_json_from_text
from .text_generation import GenerationOptions, TextGenerationPort, GeminiTextGenerator

__all__ = [
    "PipelineError",
    "TextGenerationError",
    "TokenLimitError",
    "TruncatedOutputError",
    "NetworkError",
    "FatalGenerationError",
    "LayoutParseError",
    "EmptyOutlineError",
    "GenerationCancelledError",
    "PresentationGenerationError",
    "parse_json_robust",
    "clean_json_string",
    "extract_json_from_text",
    "GenerationOptions",
    "TextGenerationPort",
    "GeminiTextGenerator",
]

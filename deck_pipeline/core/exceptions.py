"""
Custom exceptions for consistent error handling across the pipeline.

Generation failures are classified once, where the text generation port raises them,
so the orchestrator can decide between degrading and failing by exception type.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    def __init__(self, message: str, stage: Optional[str] = None):
        """
        Initialize pipeline error.

        Args:
            message: Error message
            stage: Name of the pipeline stage that failed (optional)
        """
        self.stage = stage
        full_message = f"[{stage}] {message}" if stage else message
        super().__init__(full_message)


class TextGenerationError(PipelineError):
    """Raised by a text generation port when a prompt could not be answered."""


class TokenLimitError(TextGenerationError):
    """The reply was cut off or exceeded its output budget. Recoverable by degrading."""


class TruncatedOutputError(TokenLimitError):
    """Structured output (JSON) ended mid-structure and could not be repaired."""

    def __init__(self, message: str, stage: Optional[str] = None, raw_output: Optional[str] = None):
        self.raw_output = raw_output
        super().__init__(message, stage)


class NetworkError(TextGenerationError):
    """Transport-level or rate-limit failure talking to the generation service."""

    def __init__(self, message: str, stage: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, stage)


class FatalGenerationError(TextGenerationError):
    """Non-recoverable failure (bad credentials, invalid request, blocked prompt)."""


class LayoutParseError(PipelineError):
    """Raised when a layout reply cannot be parsed into the canonical slide schema."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        slide_index: Optional[int] = None,
        raw_output: Optional[str] = None,
    ):
        """
        Initialize layout parse error.

        Args:
            message: Error message
            stage: Stage name (optional)
            slide_index: Zero-based index of the outline slide being laid out (optional)
            raw_output: Raw reply that failed to parse (optional, for debugging)
        """
        self.slide_index = slide_index
        self.raw_output = raw_output
        if slide_index is not None:
            message = f"{message} (slide {slide_index + 1})"
        super().__init__(message, stage)


class EmptyOutlineError(PipelineError):
    """Raised when the outline stage produced no slides to lay out."""


class GenerationCancelledError(PipelineError):
    """Raised when a generation request is cancelled through its cancellation signal."""


class PresentationGenerationError(PipelineError):
    """The single user-facing error surfaced for any terminal pipeline failure."""

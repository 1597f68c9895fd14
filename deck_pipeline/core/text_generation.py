"""
Text generation port.

The pipeline only needs one capability from a model backend: submit a prompt, receive text,
or fail. Implementations raise the typed hierarchy from `exceptions` so that callers never
have to inspect error messages themselves.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from config import DEFAULT_MODEL, RETRY_CONFIG
from deck_pipeline.core.exceptions import (
    FatalGenerationError,
    GenerationCancelledError,
    NetworkError,
    TextGenerationError,
    TokenLimitError,
)
from deck_pipeline.core.logging_utils import log_stage_warning

logger = logging.getLogger(__name__)

# Message fragments that mean the reply was cut off or exceeded its budget
TOKEN_LIMIT_SIGNATURES = ("token limit", "unterminated string", "truncated", "max_tokens")

TRANSIENT_STATUS_CODES = (408, 429, 500, 502, 503, 504)


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call sampling options."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class TextGenerationPort(Protocol):
    """
    Protocol defining the interface for text generation backends.
    """

    async def generate(self, prompt: str, options: GenerationOptions = GenerationOptions()) -> str:
        ...


def is_token_limit_message(message: str) -> bool:
    """True when an error message carries a token-limit/truncation signature."""
    lowered = message.lower()
    return any(signature in lowered for signature in TOKEN_LIMIT_SIGNATURES)


def classify_generation_failure(error: Exception, stage: Optional[str] = None) -> TextGenerationError:
    """
    Map an arbitrary backend exception onto the typed error hierarchy.

    Args:
        error: Exception raised by the backend SDK or transport
        stage: Stage name for the error prefix (optional)

    Returns:
        A TextGenerationError subclass instance (not raised)
    """
    if isinstance(error, TextGenerationError):
        return error

    message = str(error) or type(error).__name__

    if is_token_limit_message(message):
        return TokenLimitError(message, stage)

    if isinstance(error, genai_errors.APIError):
        code = getattr(error, "code", None)
        if code in TRANSIENT_STATUS_CODES:
            return NetworkError(message, stage, status_code=code)
        return FatalGenerationError(message, stage)

    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return NetworkError(message, stage)

    return FatalGenerationError(message, stage)


class GeminiTextGenerator:
    """
    Text generation port backed by the Gemini API (google-genai SDK).
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        """
        Initialize the generator.

        Args:
            model: Gemini model name
            api_key: API key (defaults to GOOGLE_API_KEY from the environment)
            client: Pre-built client (optional, mainly for tests)
        """
        self.model = model
        self.client = client or genai.Client(
            api_key=api_key or os.getenv("GOOGLE_API_KEY"),
            http_options=types.HttpOptions(retry_options=RETRY_CONFIG),
        )

    async def generate(self, prompt: str, options: GenerationOptions = GenerationOptions()) -> str:
        config = types.GenerateContentConfig(
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise classify_generation_failure(e, stage=self.model) from e

        finish_reason = None
        if response.candidates:
            finish_reason = response.candidates[0].finish_reason

        if finish_reason == types.FinishReason.MAX_TOKENS:
            log_stage_warning(
                logger,
                "Response truncated due to MAX_TOKENS",
                stage=self.model,
                context={"max_tokens": options.max_tokens},
            )
            raise TokenLimitError(
                "Response was truncated due to token limit. "
                "Try increasing maxTokens or simplifying the prompt.",
                stage=self.model,
            )

        text = response.text
        if not text:
            raise FatalGenerationError(
                f"Empty response (finish_reason: {finish_reason})",
                stage=self.model,
            )
        return text


async def generate_cancellable(
    text_generator: TextGenerationPort,
    prompt: str,
    options: GenerationOptions = GenerationOptions(),
    cancel_event: Optional[asyncio.Event] = None,
    stage: Optional[str] = None,
) -> str:
    """
    Run one generation call that is abandoned as soon as `cancel_event` is set.

    Args:
        text_generator: Port to call
        prompt: Prompt text
        options: Sampling options
        cancel_event: Cancellation signal (optional)
        stage: Stage name for the error prefix (optional)

    Returns:
        Generated text

    Raises:
        GenerationCancelledError: The signal was set before the reply arrived
    """
    if cancel_event is None:
        return await text_generator.generate(prompt, options)
    if cancel_event.is_set():
        raise GenerationCancelledError("Generation cancelled", stage)

    generation = asyncio.ensure_future(text_generator.generate(prompt, options))
    cancelled = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({generation, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (generation, cancelled):
            if not task.done():
                task.cancel()

    if cancel_event.is_set():
        raise GenerationCancelledError("Generation cancelled", stage)
    return generation.result()

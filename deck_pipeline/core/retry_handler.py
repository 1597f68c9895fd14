"""
Degrade retry handler.
A token-limit failure restarts generation with fewer slides instead of failing outright.
"""

import logging
import math
from typing import Awaitable, Callable, Optional, TypeVar

from config import DEGRADE_FACTOR, DEGRADE_MIN_SLIDES, MAX_DEGRADE_ATTEMPTS
from deck_pipeline.core.exceptions import TokenLimitError
from deck_pipeline.core.logging_utils import log_stage_warning

logger = logging.getLogger(__name__)

STAGE_NAME = "DegradeRetry"

T = TypeVar("T")


def degraded_slide_count(slide_count: int) -> int:
    """
    Slide count for the next attempt after a token-limit failure.

    max(DEGRADE_MIN_SLIDES, floor(slide_count * DEGRADE_FACTOR)), never more than slide_count.
    """
    return min(slide_count, max(DEGRADE_MIN_SLIDES, math.floor(slide_count * DEGRADE_FACTOR)))


class DegradeRetryHandler:
    """
    Runs a generation attempt and, on TokenLimitError, retries with a degraded slide count.
    Every other error propagates on the first occurrence.
    """

    def __init__(
        self,
        max_degrade_attempts: int = MAX_DEGRADE_ATTEMPTS,
        retry_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize degrade retry handler.

        Args:
            max_degrade_attempts: How many degraded restarts are allowed
            retry_callback: Called as (attempt, new_slide_count, reason) before each restart
        """
        self.max_degrade_attempts = max(0, max_degrade_attempts)
        self.retry_callback = retry_callback

    async def execute_with_degrade(
        self,
        execute_fn: Callable[[int, int], Awaitable[T]],
        slide_count: int,
    ) -> T:
        """
        Execute with degrade retries.

        Args:
            execute_fn: Async function called as (slide_count, attempt); attempt is 0 first
            slide_count: Requested slide count

        Returns:
            Result of the first successful attempt

        Raises:
            TokenLimitError: The degrade budget is spent
        """
        attempt = 0
        while True:
            try:
                return await execute_fn(slide_count, attempt)
            except TokenLimitError as e:
                if attempt >= self.max_degrade_attempts:
                    log_stage_warning(
                        logger,
                        "Degrade budget exhausted",
                        stage=STAGE_NAME,
                        error=e,
                        context={"attempts": attempt, "slide_count": slide_count},
                    )
                    raise

                attempt += 1
                new_count = degraded_slide_count(slide_count)
                log_stage_warning(
                    logger,
                    f"Token limit hit, retrying with {new_count} slides (was {slide_count})",
                    stage=STAGE_NAME,
                    error=e,
                    context={"attempt": attempt},
                )
                if self.retry_callback:
                    self.retry_callback(attempt, new_count, str(e))
                slide_count = new_count

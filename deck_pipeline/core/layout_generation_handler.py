"""
Handles the per-slide layout generation step of the pipeline (stage 3).
"""

import asyncio
import dataclasses
import logging
from typing import List, Optional

from config import LAYOUT_CONCURRENCY, LAYOUT_MAX_TOKENS, LAYOUT_TEMPERATURE
from deck_pipeline.core.exceptions import EmptyOutlineError
from deck_pipeline.core.logging_utils import log_stage_error, log_stage_info
from deck_pipeline.core.text_generation import GenerationOptions, TextGenerationPort, generate_cancellable
from deck_pipeline.layout import DEFAULTS, validate_layout_slide
from deck_pipeline.models import LayoutSlide, Outline, OutlineSlide
from deck_pipeline.prompts import PromptParameters, PromptStage, build_prompt
from deck_pipeline.utils.observability import ObservabilityLogger, StageStatus

logger = logging.getLogger(__name__)

STAGE_NAME = "LayoutGenerator"


class LayoutGenerationHandler:
    """
    Generates one layout per outline slide, with up to `concurrency` calls in flight.
    Results keep outline order regardless of completion order.
    """

    def __init__(
        self,
        text_generator: TextGenerationPort,
        obs_logger: ObservabilityLogger,
        cancel_event: Optional[asyncio.Event] = None,
        concurrency: int = LAYOUT_CONCURRENCY,
        retry_count: int = 0,
    ):
        """
        Initialize the layout generation handler.

        Args:
            text_generator: Text generation port
            obs_logger: Observability logger of the current request
            cancel_event: Cancellation signal (optional)
            concurrency: Maximum layout calls in flight (1 = sequential)
            retry_count: Degrade retries so far, recorded with the stage execution
        """
        self.text_generator = text_generator
        self.obs_logger = obs_logger
        self.cancel_event = cancel_event
        self.concurrency = max(1, concurrency)
        self.retry_count = retry_count
        self.options = GenerationOptions(temperature=LAYOUT_TEMPERATURE, max_tokens=LAYOUT_MAX_TOKENS)

    async def execute(self, params: PromptParameters, outline: Outline) -> List[LayoutSlide]:
        """
        Execute the layout step.

        Args:
            params: Presentation parameters
            outline: Parsed outline from stage 2

        Returns:
            Layout slides in outline order

        Raises:
            EmptyOutlineError: The outline has no slides
            TokenLimitError: A layout reply was cut off (the caller may degrade)
            LayoutParseError: A layout reply was not a layout object
        """
        print("\n🎨 Step 3: Layout Generation")
        self.obs_logger.start_stage(STAGE_NAME, output_key="slides", retry_count=self.retry_count)

        if not outline.slides:
            error = EmptyOutlineError("Outline contains no slides to lay out", stage=STAGE_NAME)
            self.obs_logger.finish_stage(StageStatus.FAILED, str(error), has_output=False)
            raise error

        defaults = dataclasses.replace(DEFAULTS, aspect_ratio=params.aspect_ratio)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def layout_one(index: int, slide: OutlineSlide) -> LayoutSlide:
            async with semaphore:
                log_stage_info(
                    logger,
                    f"Generating layout {index + 1}/{len(outline.slides)}",
                    stage=STAGE_NAME,
                    context={"title": slide.title},
                )
                reply = await generate_cancellable(
                    self.text_generator,
                    build_prompt(PromptStage.LAYOUT, params, slide=slide, slide_index=index),
                    self.options,
                    self.cancel_event,
                    stage=STAGE_NAME,
                )
                return validate_layout_slide(reply, index, slide, defaults)

        tasks = [asyncio.ensure_future(layout_one(i, slide)) for i, slide in enumerate(outline.slides)]
        try:
            slides = await asyncio.gather(*tasks)
        except Exception as e:
            self.obs_logger.finish_stage(StageStatus.FAILED, str(e) or type(e).__name__, has_output=False)
            log_stage_error(logger, "Layout generation failed", stage=STAGE_NAME, error=e)
            raise
        finally:
            # First failure aborts the slides still waiting or in flight
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            # Collect every outcome so sibling failures are retrieved
            await asyncio.gather(*tasks, return_exceptions=True)

        self.obs_logger.finish_stage(StageStatus.SUCCESS, f"{len(slides)} slides laid out")
        print(f"✅ Layouts: {len(slides)} slides")
        return list(slides)

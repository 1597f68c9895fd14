"""
Outline generation handler (stage 2).
One call produces the whole deck in the outline text scheme, which is then parsed.
"""

import asyncio
import logging
from typing import Optional

from config import OUTLINE_MAX_TOKENS, OUTLINE_TEMPERATURE
from deck_pipeline.core.exceptions import PipelineError
from deck_pipeline.core.logging_utils import log_stage_error, log_stage_info, log_stage_warning
from deck_pipeline.core.text_generation import GenerationOptions, TextGenerationPort, generate_cancellable
from deck_pipeline.models import Outline
from deck_pipeline.outline import parse_outline
from deck_pipeline.prompts import PromptParameters, PromptStage, build_prompt
from deck_pipeline.utils.observability import ObservabilityLogger, StageStatus

logger = logging.getLogger(__name__)

STAGE_NAME = "OutlineGenerator"


class OutlineGenerationHandler:
    """
    Handles the outline step: prompt, single generation call, parse.
    """

    def __init__(
        self,
        text_generator: TextGenerationPort,
        obs_logger: ObservabilityLogger,
        cancel_event: Optional[asyncio.Event] = None,
        retry_count: int = 0,
    ):
        """
        Initialize the outline generation handler.

        Args:
            text_generator: Text generation port
            obs_logger: Observability logger of the current request
            cancel_event: Cancellation signal (optional)
            retry_count: Degrade retries so far, recorded with the stage execution
        """
        self.text_generator = text_generator
        self.obs_logger = obs_logger
        self.cancel_event = cancel_event
        self.retry_count = retry_count

    async def execute(self, params: PromptParameters, title: str) -> Outline:
        """
        Execute the outline step.

        An outline with fewer slides than requested is accepted as-is; an outline without
        slides is returned too and rejected by the layout step.

        Args:
            params: Presentation parameters
            title: Title produced by stage 1

        Returns:
            Parsed Outline
        """
        print("\n📝 Step 2: Outline Generation")
        self.obs_logger.start_stage(STAGE_NAME, output_key="outline", retry_count=self.retry_count)

        try:
            reply = await generate_cancellable(
                self.text_generator,
                build_prompt(PromptStage.OUTLINE, params, title=title),
                GenerationOptions(temperature=OUTLINE_TEMPERATURE, max_tokens=OUTLINE_MAX_TOKENS),
                self.cancel_event,
                stage=STAGE_NAME,
            )
        except PipelineError as e:
            self.obs_logger.finish_stage(StageStatus.FAILED, str(e), has_output=False)
            log_stage_error(logger, "Outline generation failed", stage=STAGE_NAME, error=e)
            raise

        outline = parse_outline(
            reply,
            purpose=params.purpose,
            theme=params.theme,
            designer=params.persona.value,
        )

        context = {"requested": params.slide_count, "parsed": len(outline.slides)}
        if not outline.slides:
            log_stage_warning(logger, "Outline reply contained no slides", stage=STAGE_NAME, context=context)
            self.obs_logger.finish_stage(StageStatus.FAILED, "No slides parsed", has_output=False)
            return outline

        if len(outline.slides) != params.slide_count:
            log_stage_warning(logger, "Slide count differs from request", stage=STAGE_NAME, context=context)
        else:
            log_stage_info(logger, "Outline parsed", stage=STAGE_NAME, context=context)

        self.obs_logger.finish_stage(StageStatus.SUCCESS, f"{len(outline.slides)} slides outlined")
        print(f"✅ Outline: {len(outline.slides)} slides")
        return outline

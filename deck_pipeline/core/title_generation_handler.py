"""
Title generation handler (stage 1).
"""

import asyncio
import logging
from typing import Optional

from config import DEFAULT_PRESENTATION_TITLE, TITLE_MAX_TOKENS, TITLE_TEMPERATURE
from deck_pipeline.core.exceptions import PipelineError
from deck_pipeline.core.logging_utils import log_stage_error, log_stage_warning
from deck_pipeline.core.text_generation import GenerationOptions, TextGenerationPort, generate_cancellable
from deck_pipeline.prompts import PromptParameters, PromptStage, build_prompt
from deck_pipeline.utils.observability import ObservabilityLogger, StageStatus

logger = logging.getLogger(__name__)

STAGE_NAME = "TitleGenerator"

# Opening -> closing quote characters stripped from a title reply
QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "“": "”",
    "‘": "’",
    "「": "」",
    "『": "』",
    "`": "`",
}


def sanitize_title(reply: str) -> str:
    """
    Reduce a title reply to a bare title.

    Keeps the first non-empty line and strips one layer of matched surrounding quotes.
    Returns an empty string for a blank reply.
    """
    line = next((line.strip() for line in (reply or "").splitlines() if line.strip()), "")
    if len(line) >= 2:
        closing = QUOTE_PAIRS.get(line[0])
        if closing and line.endswith(closing):
            line = line[1:-1].strip()
    return line


class TitleGenerationHandler:
    """
    Generates the presentation title with a single call. No retry: an overlong title is kept.
    """

    def __init__(
        self,
        text_generator: TextGenerationPort,
        obs_logger: ObservabilityLogger,
        cancel_event: Optional[asyncio.Event] = None,
        retry_count: int = 0,
    ):
        self.text_generator = text_generator
        self.obs_logger = obs_logger
        self.cancel_event = cancel_event
        self.retry_count = retry_count

    async def execute(self, params: PromptParameters) -> str:
        """
        Execute the title step.

        Args:
            params: Presentation parameters

        Returns:
            Title text (the generic placeholder when the reply is blank)
        """
        print("\n🏷️  Step 1: Title Generation")
        self.obs_logger.start_stage(STAGE_NAME, output_key="title", retry_count=self.retry_count)

        try:
            reply = await generate_cancellable(
                self.text_generator,
                build_prompt(PromptStage.TITLE, params),
                GenerationOptions(temperature=TITLE_TEMPERATURE, max_tokens=TITLE_MAX_TOKENS),
                self.cancel_event,
                stage=STAGE_NAME,
            )
        except PipelineError as e:
            self.obs_logger.finish_stage(StageStatus.FAILED, str(e), has_output=False)
            log_stage_error(logger, "Title generation failed", stage=STAGE_NAME, error=e)
            raise

        title = sanitize_title(reply)
        if not title:
            log_stage_warning(logger, "Blank title reply, using placeholder", stage=STAGE_NAME)
            title = DEFAULT_PRESENTATION_TITLE

        self.obs_logger.finish_stage(StageStatus.SUCCESS, f"Title: {title}")
        print(f"✅ Title: {title}")
        return title

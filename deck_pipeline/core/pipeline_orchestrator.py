"""
Pipeline orchestrator - coordinates the stages of one presentation generation request.

    IDLE -> TITLE -> OUTLINE -> LAYOUT -> DONE
    token-limit error: -> DEGRADE -> TITLE (fewer slides), bounded
    any other error or exhausted budget: -> FAILED
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from config import (
    LAYOUT_CONCURRENCY,
    MAX_DEGRADE_ATTEMPTS,
    OBSERVABILITY_LOG_FILE,
    TRACE_HISTORY_FILE,
    USER_FACING_ERROR_MESSAGE,
    PresentationConfig,
)
from deck_pipeline.core.exceptions import GenerationCancelledError, PresentationGenerationError
from deck_pipeline.core.layout_generation_handler import LayoutGenerationHandler
from deck_pipeline.core.logging_utils import log_stage_error, log_stage_info
from deck_pipeline.core.outline_generation_handler import OutlineGenerationHandler
from deck_pipeline.core.retry_handler import DegradeRetryHandler
from deck_pipeline.core.text_generation import GeminiTextGenerator, TextGenerationPort
from deck_pipeline.core.title_generation_handler import TitleGenerationHandler
from deck_pipeline.core.topic_processor import TopicProcessor
from deck_pipeline.models import Presentation, TopicAnalysis
from deck_pipeline.prompts import PromptParameters
from deck_pipeline.utils.observability import ObservabilityLogger

logger = logging.getLogger(__name__)

STAGE_NAME = "PipelineOrchestrator"


class PipelineStage(Enum):
    IDLE = "idle"
    TITLE = "title"
    OUTLINE = "outline"
    LAYOUT = "layout"
    DEGRADE = "degrade"
    DONE = "done"
    FAILED = "failed"


class PipelineOrchestrator:
    """
    Orchestrates one presentation generation request.

    Each instance owns its own aggregates; create one per request.
    """

    def __init__(
        self,
        config: PresentationConfig,
        text_generator: Optional[TextGenerationPort] = None,
        output_dir: Optional[str] = None,
        max_degrade_attempts: int = MAX_DEGRADE_ATTEMPTS,
        layout_concurrency: int = LAYOUT_CONCURRENCY,
        cancel_event: Optional[asyncio.Event] = None,
        obs_logger: Optional[ObservabilityLogger] = None,
    ):
        """
        Args:
            config: Presentation request
            text_generator: Text generation port (defaults to the Gemini backend)
            output_dir: Directory for the observability log and trace file (optional)
            max_degrade_attempts: Degraded restarts allowed after token-limit failures
            layout_concurrency: Layout calls in flight (1 = sequential)
            cancel_event: Setting this event aborts the request (optional)
            obs_logger: Observability logger (optional, built from output_dir otherwise)
        """
        self.config = config
        self.text_generator = text_generator or GeminiTextGenerator()
        self.layout_concurrency = layout_concurrency
        self.cancel_event = cancel_event or asyncio.Event()

        if obs_logger is None:
            if output_dir:
                output_path = Path(output_dir)
                output_path.mkdir(parents=True, exist_ok=True)
                obs_logger = ObservabilityLogger(
                    log_file=str(output_path / OBSERVABILITY_LOG_FILE),
                    trace_file=str(output_path / TRACE_HISTORY_FILE),
                )
            else:
                obs_logger = ObservabilityLogger()
        self.obs_logger = obs_logger

        self.retry_handler = DegradeRetryHandler(
            max_degrade_attempts=max_degrade_attempts,
            retry_callback=self._on_degrade,
        )

        self.stage = PipelineStage.IDLE
        self.stage_history: List[PipelineStage] = [PipelineStage.IDLE]
        self.topic_analysis: Optional[TopicAnalysis] = None
        self.final_slide_count: Optional[int] = None

    def cancel(self) -> None:
        """Abort the request; the in-flight generation call is abandoned."""
        self.cancel_event.set()

    def _transition(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.stage_history.append(stage)
        log_stage_info(logger, f"Stage -> {stage.value}", stage=STAGE_NAME)

    def _on_degrade(self, attempt: int, slide_count: int, reason: str) -> None:
        self._transition(PipelineStage.DEGRADE)
        self.obs_logger.log_retry(STAGE_NAME, attempt, reason)
        print(f"\n🔄 Token limit reached, retrying with {slide_count} slides (attempt {attempt})")

    async def run(self) -> Presentation:
        """
        Run the complete pipeline.

        Returns:
            The laid-out Presentation

        Raises:
            GenerationCancelledError: The cancellation signal was set
            PresentationGenerationError: Any terminal failure (cause chained)
        """
        self.obs_logger.start_pipeline("presentation_pipeline")

        try:
            # Topic processing runs once; degraded restarts reuse its result
            self.topic_analysis = await TopicProcessor(self.text_generator, self.cancel_event).process(
                self.config.topic
            )
            config = self.config.with_topic(self.topic_analysis.processed_topic)

            presentation = await self.retry_handler.execute_with_degrade(
                lambda slide_count, attempt: self._run_stages(config.with_slide_count(slide_count), attempt),
                config.slide_count,
            )

            self._transition(PipelineStage.DONE)
            print("\n✅ Pipeline completed")
            return presentation

        except (GenerationCancelledError, asyncio.CancelledError):
            self._transition(PipelineStage.FAILED)
            log_stage_info(logger, "Generation cancelled", stage=STAGE_NAME)
            raise
        except Exception as e:
            self._transition(PipelineStage.FAILED)
            log_stage_error(
                logger,
                "Pipeline failed",
                stage=STAGE_NAME,
                error=e,
                context={"error_type": type(e).__name__, "slide_count": self.config.slide_count},
            )
            raise PresentationGenerationError(USER_FACING_ERROR_MESSAGE) from e
        finally:
            self.obs_logger.finish_pipeline()

    async def _run_stages(self, config: PresentationConfig, attempt: int) -> Presentation:
        """One full Title -> Outline -> Layout pass; nothing from a failed pass is kept."""
        params = PromptParameters.from_config(config)
        self.final_slide_count = config.slide_count

        self._transition(PipelineStage.TITLE)
        title = await TitleGenerationHandler(
            self.text_generator, self.obs_logger, self.cancel_event, retry_count=attempt
        ).execute(params)

        self._transition(PipelineStage.OUTLINE)
        outline = await OutlineGenerationHandler(
            self.text_generator, self.obs_logger, self.cancel_event, retry_count=attempt
        ).execute(params, title)

        self._transition(PipelineStage.LAYOUT)
        slides = await LayoutGenerationHandler(
            self.text_generator,
            self.obs_logger,
            self.cancel_event,
            concurrency=self.layout_concurrency,
            retry_count=attempt,
        ).execute(params, outline)

        return Presentation(title=title, description=outline.description, slides=slides)


async def generate_presentation(
    config: PresentationConfig,
    text_generator: Optional[TextGenerationPort] = None,
    cancel_event: Optional[asyncio.Event] = None,
    **kwargs,
) -> Tuple[Presentation, TopicAnalysis]:
    """Convenience wrapper: run one request and return the deck with its topic analysis."""
    orchestrator = PipelineOrchestrator(config, text_generator=text_generator, cancel_event=cancel_event, **kwargs)
    presentation = await orchestrator.run()
    return presentation, orchestrator.topic_analysis

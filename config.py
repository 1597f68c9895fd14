"""
Configuration file for the presentation generation pipeline.
Contains retry config, model settings, stage limits and the presentation request structure.
"""

import os
from google.genai import types

# Retry configuration for API calls
RETRY_CONFIG = types.HttpRetryOptions(
    attempts=3,  # Maximum retry attempts
    exp_base=7,  # Delay multiplier
    initial_delay=1,
    http_status_codes=[429, 500, 503, 504],  # Retry on these HTTP errors
)

# Model configuration
DEFAULT_MODEL = os.getenv("DECK_MODEL", "gemini-2.5-flash-lite")

# ============================================================================
# Generation stage settings (temperature, max output tokens)
# ============================================================================

TOPIC_TEMPERATURE = 0.5
TOPIC_MAX_TOKENS = 1024
TITLE_TEMPERATURE = 0.7
TITLE_MAX_TOKENS = 256
OUTLINE_TEMPERATURE = 0.7
OUTLINE_MAX_TOKENS = 8192
LAYOUT_TEMPERATURE = 0.5  # Layout favours consistency
LAYOUT_MAX_TOKENS = 4096

# ============================================================================
# Topic classification thresholds
# ============================================================================

MINIMAL_TOPIC_MAX_CHARS = 50
MINIMAL_TOPIC_MAX_LINES = 2
MINIMAL_TOPIC_MAX_SENTENCES = 2
LARGE_TOPIC_MIN_CHARS = 200
LARGE_TOPIC_MIN_LINES = 5

# ============================================================================
# Parsing / validation limits
# ============================================================================

TITLE_MAX_LENGTH = 80  # Slide titles longer than this go through title extraction
OUTLINE_METADATA_WINDOW = 10  # Metadata block must close within the first N lines
LAYOUT_CONTENT_MAX_CHARS = int(os.getenv("LAYOUT_CONTENT_MAX_CHARS", "600"))
DEFAULT_PRESENTATION_TITLE = "Presentation"

# ============================================================================
# Degrade / retry configuration
# ============================================================================

DEGRADE_FACTOR = 0.6
DEGRADE_MIN_SLIDES = 3
MAX_DEGRADE_ATTEMPTS = int(os.getenv("MAX_DEGRADE_ATTEMPTS", "1"))

# Number of per-slide layout calls allowed in flight (1 = strictly sequential)
LAYOUT_CONCURRENCY = int(os.getenv("LAYOUT_CONCURRENCY", "1"))

# ============================================================================
# Application Configuration
# ============================================================================

# Output Directory Configuration
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "deck_pipeline/output")

# Default Logic Values
DEFAULT_NUM_SLIDES = 5
DEFAULT_ASPECT_RATIO = "16:9"

# Output File Names
TRACE_HISTORY_FILE = "trace_history.json"
OBSERVABILITY_LOG_FILE = "observability.log"
PRESENTATION_FILE = "presentation.json"

# Log File Names
LOGGER_LOG_FILE = "logger.log"

# Shown to the user whenever a generation request fails terminally
USER_FACING_ERROR_MESSAGE = (
    "Presentation generation failed. "
    "Please check the text generation service configuration and your network connection."
)


# Presentation Config structure
# This represents the input configuration for the pipeline
class PresentationConfig:
    """
    Configuration object for presentation generation.

    Attributes:
        topic: Raw topic text supplied by the user
        slide_count: Requested number of slides
        purpose: Presentation purpose (informative, business_presentation, educational_content, ...)
        theme: Theme name, passed to prompts as-is
        designer: Designer persona name (simple, education, marketing_oriented,
                  research_presentation_oriented)
        aspect_ratio: Canvas aspect ratio for every generated slide
        include_images: Whether outline and layout prompts should ask for image layers
        custom_instructions: Free text appended to the outline prompt (optional)
    """
    def __init__(
        self,
        topic: str,
        slide_count: int = DEFAULT_NUM_SLIDES,
        purpose: str = "informative",
        theme: str = "professional",
        designer: str = "simple",
        aspect_ratio: str = DEFAULT_ASPECT_RATIO,
        include_images: bool = True,
        custom_instructions: str = "",
    ):
        if slide_count < 1:
            raise ValueError(f"slide_count must be at least 1, got {slide_count}")
        self.topic = topic
        self.slide_count = slide_count
        self.purpose = purpose
        self.theme = theme
        self.designer = designer
        self.aspect_ratio = aspect_ratio or DEFAULT_ASPECT_RATIO
        self.include_images = include_images
        self.custom_instructions = custom_instructions or ""

    def with_slide_count(self, slide_count: int) -> "PresentationConfig":
        """Return a copy of this config with a different slide count (used by degrade retries)."""
        data = self.to_dict()
        data["slide_count"] = slide_count
        return PresentationConfig(**data)

    def with_topic(self, topic: str) -> "PresentationConfig":
        """Return a copy of this config with the processed topic text."""
        data = self.to_dict()
        data["topic"] = topic
        return PresentationConfig(**data)

    def to_dict(self):
        """Convert to dictionary for easy state management."""
        return {
            "topic": self.topic,
            "slide_count": self.slide_count,
            "purpose": self.purpose,
            "theme": self.theme,
            "designer": self.designer,
            "aspect_ratio": self.aspect_ratio,
            "include_images": self.include_images,
            "custom_instructions": self.custom_instructions,
        }

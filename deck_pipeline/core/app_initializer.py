"""
Application initialization utilities for the local development runner.
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

from config import LOGGER_LOG_FILE, OBSERVABILITY_LOG_FILE, OUTPUT_DIR


class AppInitializer:
    """
    Handles application initialization: logging, environment setup, API key validation.
    """

    def __init__(self, output_dir: str = OUTPUT_DIR):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure file logging, removing the logs of the previous run."""
        for log_file in (LOGGER_LOG_FILE, OBSERVABILITY_LOG_FILE):
            log_path = self.output_dir / log_file
            if log_path.exists():
                log_path.unlink()
                print(f"🧹 Cleaned up {log_path}")

        logging.basicConfig(
            filename=str(self.output_dir / LOGGER_LOG_FILE),
            level=logging.DEBUG,
            format="%(filename)s:%(lineno)s %(levelname)s:%(message)s",
        )
        print("✅ Logging configured")

    def load_environment(self) -> None:
        """Load environment variables from a .env file if one exists."""
        load_dotenv()

    def validate_api_key(self) -> bool:
        """
        Validate that GOOGLE_API_KEY is set.

        Returns:
            True if API key is set, False otherwise
        """
        if not os.getenv("GOOGLE_API_KEY"):
            print("\n❌ GOOGLE_API_KEY environment variable not set")
            print("\nTo set the API key, use one of these methods:")
            print("1. Environment variable: export GOOGLE_API_KEY='your-key-here'")
            print("2. .env file: Create a .env file with: GOOGLE_API_KEY=your-key-here")
            return False
        return True

    def initialize(self) -> bool:
        """
        Perform all initialization steps.

        Returns:
            True if initialization successful, False otherwise
        """
        self.setup_logging()
        self.load_environment()
        return self.validate_api_key()

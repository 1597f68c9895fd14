"""
Main script for local development and testing of the presentation generation pipeline.
"""

import asyncio
import json
from pathlib import Path

from config import OUTPUT_DIR, PRESENTATION_FILE, PresentationConfig
from deck_pipeline.core.app_initializer import AppInitializer
from deck_pipeline.core.exceptions import PresentationGenerationError
from deck_pipeline.core.pipeline_orchestrator import PipelineOrchestrator


async def main():
    """Main function for local development."""
    output_dir = OUTPUT_DIR

    # Initialize application (logging, environment, API key validation)
    initializer = AppInitializer(output_dir=output_dir)
    if not initializer.initialize():
        return

    # Example configuration
    config = PresentationConfig(
        topic="Company quarterly update",
        slide_count=5,
        purpose="business_presentation",
        theme="professional",
        designer="simple",
    )

    orchestrator = PipelineOrchestrator(config=config, output_dir=output_dir)

    try:
        presentation = await orchestrator.run()
    except PresentationGenerationError as e:
        print(f"\n\n❌ {e}")
        return
    finally:
        orchestrator.obs_logger.print_metrics_summary()

    output_file = Path(output_dir) / PRESENTATION_FILE
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(presentation.to_dict(), f, indent=2, ensure_ascii=False)

    print("\n" + "=" * 60)
    print("🎉 Pipeline completed successfully!")
    print("=" * 60)
    print(f"Topic processing: {', '.join(orchestrator.topic_analysis.processing_applied)}")
    print(f"Slides: {len(presentation.slides)}")
    print(f"✅ JSON saved to `{output_file}`")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n⚠️  Program interrupted by user")
        exit(0)

"""
Utilities package for the presentation generation pipeline.
"""

from .instruction_loader import load_instruction, load_template
from .observability import ObservabilityLogger, StageStatus, StageExecution, PipelineMetrics

__all__ = [
    "load_instruction",
    "load_template",
    "ObservabilityLogger",
    "StageStatus",
    "StageExecution",
    "PipelineMetrics",
]

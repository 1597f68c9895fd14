"""
Prompt construction for every generation stage.
"""

from .strategy import (
    DesignerPersona,
    PersonaGuidance,
    PERSONA_GUIDANCE,
    PromptParameters,
    PromptStage,
    build_prompt,
)

__all__ = [
    "DesignerPersona",
    "PersonaGuidance",
    "PERSONA_GUIDANCE",
    "PromptParameters",
    "PromptStage",
    "build_prompt",
]

"""
Helper functions to load prompt templates from markdown files.
"""
from functools import lru_cache
from pathlib import Path
from string import Template


def load_instruction(template_dir: Path, filename: str) -> str:
    """
    Load a prompt template from a markdown file.

    Args:
        template_dir: Directory holding the template files
        filename: Name of the template file (e.g., "outline.md")

    Returns:
        Template string from the file

    Raises:
        FileNotFoundError: If the template file doesn't exist
    """
    instruction_file = template_dir / filename
    if not instruction_file.exists():
        raise FileNotFoundError(
            f"Instruction file not found: {instruction_file}\n"
            f"Expected location: {template_dir}/{filename}"
        )

    with open(instruction_file, 'r', encoding='utf-8') as f:
        return f.read().strip()


@lru_cache(maxsize=None)
def load_template(template_dir: Path, filename: str) -> Template:
    """Load and cache a markdown template as a `string.Template` ($placeholder syntax)."""
    return Template(load_instruction(template_dir, filename))

"""
Standardized logging utilities for consistent error and info logging across the pipeline.
Provides structured logging with consistent message formats.
"""

import logging
from typing import Optional, Dict, Any


def _build_message(
    message: str,
    stage: Optional[str] = None,
    error: Optional[Exception] = None,
    context: Optional[Dict[str, Any]] = None,
) -> str:
    parts = []

    if stage:
        parts.append(f"[{stage}]")

    parts.append(message)

    if error:
        parts.append(f"Error: {type(error).__name__}: {str(error)}")

    log_message = " ".join(parts)

    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        log_message += f" | Context: {context_str}"

    return log_message


def log_stage_error(
    logger: logging.Logger,
    message: str,
    stage: Optional[str] = None,
    error: Optional[Exception] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log a stage failure with standardized format.

    Args:
        logger: Logger instance
        message: Error message
        stage: Name of the pipeline stage (optional)
        error: Exception object (optional)
        context: Additional context dictionary (optional)
    """
    logger.error(_build_message(message, stage, error, context))


def log_stage_warning(
    logger: logging.Logger,
    message: str,
    stage: Optional[str] = None,
    error: Optional[Exception] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Log a stage warning with standardized format."""
    logger.warning(_build_message(message, stage, error, context))


def log_stage_info(
    logger: logging.Logger,
    message: str,
    stage: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Log a stage info message with standardized format."""
    logger.info(_build_message(message, stage, context=context))


def log_stage_debug(
    logger: logging.Logger,
    message: str,
    stage: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> None:
    logger.debug(_build_message(message, stage, context=context))


def log_json_parse_error(
    logger: logging.Logger,
    message: str,
    stage: Optional[str] = None,
    raw_output_preview: Optional[str] = None,
    error: Optional[Exception] = None
) -> None:
    """
    Log a JSON parsing error with standardized format.

    Args:
        logger: Logger instance
        message: Error message
        stage: Name of the pipeline stage (optional)
        raw_output_preview: Preview of raw output that failed to parse (optional)
        error: Exception object (optional)
    """
    log_message = _build_message(f"JSON Parse Error: {message}", stage, error)

    if raw_output_preview:
        preview = raw_output_preview[:500] if len(raw_output_preview) > 500 else raw_output_preview
        log_message += f" | Raw output preview: {preview}"

    logger.error(log_message)

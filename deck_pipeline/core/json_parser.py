"""
JSON parsing utilities with robust error handling.
Model replies arrive wrapped in markdown fences, prefixed by prose, or cut off mid-object.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}
_MAX_REPAIR_CUTS = 8


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:].lstrip()
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:].lstrip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].rstrip()
    return cleaned


def clean_json_string(text: str) -> str:
    """
    Clean JSON string by removing markdown code blocks and fixing common issues.

    Args:
        text: Raw JSON string (may contain markdown, Python booleans, etc.)

    Returns:
        Cleaned JSON string
    """
    cleaned = strip_code_fence(text)

    # Convert Python-style literals to JSON-compliant
    cleaned = re.sub(r'\bTrue\b', 'true', cleaned)
    cleaned = re.sub(r'\bFalse\b', 'false', cleaned)
    cleaned = re.sub(r'\bNone\b', 'null', cleaned)

    # Fix invalid escape sequences (e.g., \' should be just ')
    cleaned = re.sub(r"\\'", "'", cleaned)

    # Remove trailing commas before closing brackets/braces
    cleaned = re.sub(r',(\s*[}\]])', r'\1', cleaned)

    return cleaned


def _scan_structure(text: str) -> Tuple[List[str], bool, int]:
    """
    Walk the text tracking string state.

    Returns:
        (stack of unclosed '{'/'[' characters, whether the text ends inside a string,
         index of the last comma outside any string or -1)
    """
    stack: List[str] = []
    in_string = False
    escape_next = False
    last_comma = -1

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if char == '\\':
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char in _CLOSERS:
            stack.append(char)
        elif char in ('}', ']'):
            if stack:
                stack.pop()
        elif char == ',':
            last_comma = i

    return stack, in_string, last_comma


def _find_json_objects(text: str) -> List[Tuple[int, int]]:
    """Return (start, end) spans of every balanced top-level-looking JSON object."""
    spans = []
    for start_idx, char in enumerate(text):
        if char != '{':
            continue
        # Heuristic: a JSON object starts at the beginning or after a separator
        if start_idx != 0 and text[start_idx - 1] not in (' ', '\n', '\t', '\r', ':', '[', ',', '(', '='):
            continue

        brace_count = 0
        in_string = False
        escape_next = False
        for i in range(start_idx, len(text)):
            c = text[i]
            if escape_next:
                escape_next = False
                continue
            if c == '\\':
                escape_next = True
                continue
            if c == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if c == '{':
                brace_count += 1
            elif c == '}':
                brace_count -= 1
                if brace_count == 0:
                    spans.append((start_idx, i))
                    break
    return spans


def extract_json_from_text(text: str) -> Optional[str]:
    """
    Extract a JSON object from text.
    Looks inside markdown code blocks first, then returns the largest balanced object.
    When no balanced object exists (truncated reply), returns everything from the first brace
    so the caller can attempt a repair.

    Args:
        text: Text that may contain a JSON object

    Returns:
        Extracted JSON string, or None if no brace was found at all
    """
    match = re.search(r'```(?:json)?\s*(.*?)\s*```', text, re.DOTALL)
    if match:
        text = match.group(1).strip()
        logger.debug(f"Found code block (length: {len(text)})")
    else:
        open_fence = re.search(r'```(?:json)?\s*', text)
        if open_fence:
            # Unclosed fence: the reply was cut off inside the code block
            text = text[open_fence.end():]

    first_brace = text.find('{')
    spans = _find_json_objects(text)
    if spans:
        start_idx, end_idx = max(spans, key=lambda span: span[1] - span[0])
        if first_brace < start_idx and is_truncated_json(text[first_brace:]):
            # The largest complete object is nested inside one that was cut off
            logger.debug("Largest JSON object is nested in a truncated one, keeping the outer object")
            return text[first_brace:]
        logger.debug(f"Extracted largest JSON object from text (position: {start_idx}-{end_idx})")
        return text[start_idx:end_idx + 1]

    if first_brace == -1:
        logger.debug("Could not find any JSON object start in text")
        return None
    return text[first_brace:]


def is_truncated_json(json_str: str) -> bool:
    """True when the JSON text ends inside a string or with unclosed objects/arrays."""
    stack, in_string, _ = _scan_structure(json_str)
    return bool(stack) or in_string


def fix_incomplete_json(json_str: str) -> Optional[str]:
    """
    Attempt to fix incomplete/truncated JSON by closing unclosed structures.
    This handles cases where the model reply was cut off mid-JSON. When simply closing the
    structures does not produce valid JSON, the text is cut back to the previous comma
    (dropping the partial element) and closed again.

    Args:
        json_str: Potentially incomplete JSON string

    Returns:
        Fixed JSON string, or None if fixing is not possible
    """
    if not is_truncated_json(json_str):
        return None

    candidate = json_str.rstrip()
    for _ in range(_MAX_REPAIR_CUTS):
        stack, in_string, last_comma = _scan_structure(candidate)
        closed = candidate + ('"' if in_string else '')
        closed = re.sub(r'[\s,:]+$', '', closed)
        closed += ''.join(_CLOSERS[c] for c in reversed(stack))
        try:
            json.loads(closed)
            logger.debug(f"Repaired truncated JSON: closed {len(stack)} structure(s)")
            return closed
        except json.JSONDecodeError:
            if last_comma <= 0:
                break
            candidate = candidate[:last_comma]

    logger.debug("Failed to repair truncated JSON")
    return None


def parse_json_robust(text: Any, fix_incomplete: bool = True) -> Optional[Dict]:
    """
    Robustly parse a JSON object from various formats (string, dict, with markdown, etc.).

    Args:
        text: Input that may be a JSON string, a dict, or text containing JSON
        fix_incomplete: If True, attempt to fix incomplete/truncated JSON

    Returns:
        Parsed JSON dict, or None if parsing fails
    """
    if isinstance(text, dict):
        return text

    if not isinstance(text, str):
        text = str(text)

    # The raw text is tried first so cleanup never rewrites string contents of valid JSON
    candidates = (strip_code_fence(text), clean_json_string(text))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    for candidate in candidates:
        json_str = extract_json_from_text(candidate)
        if not json_str:
            continue
        try:
            parsed = json.loads(json_str)
            if isinstance(parsed, dict):
                return parsed
            continue
        except json.JSONDecodeError as e:
            logger.debug(f"Failed to parse extracted JSON: {e}")

        if fix_incomplete:
            fixed_json = fix_incomplete_json(json_str)
            if fixed_json:
                parsed = json.loads(fixed_json)
                if isinstance(parsed, dict):
                    logger.debug("Successfully parsed fixed incomplete JSON")
                    return parsed

    return None

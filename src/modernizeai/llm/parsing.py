"""Helpers for pulling JSON out of free-form LLM responses."""

import copy
import json
import logging
import re
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

# Greedy: first '{' through the last '}' in the response
_JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the JSON object embedded in ``text`` or None."""
    if not text or not isinstance(text, str):
        return None

    match = _JSON_OBJECT_PATTERN.search(text)
    candidate = match.group(0) if match else text

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        logger.debug(f"LLM response is not valid JSON: {e}")
        return None

    if not isinstance(parsed, dict):
        return None
    return parsed


def parse_llm_json(text: Optional[str], default: Dict[str, Any]) -> Dict[str, Any]:
    """Parse an LLM response, substituting ``default`` when it is unusable.

    Never raises. The default is deep-copied so callers may mutate the result.
    """
    parsed = extract_json_object(text)
    if parsed is None:
        logger.info("Could not parse LLM response, using default result")
        return copy.deepcopy(default)
    return parsed

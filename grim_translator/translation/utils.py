"""
Translation utility functions for batching and JSON extraction.
Provides capabilities for splitting message sets into batches and recovering
translated key/value objects from free-form model responses.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from grim_translator.logger import get_logger

logger = get_logger(__name__)

_decoder = json.JSONDecoder()


def partition_messages(messages: Mapping[str, str], batch_size: int) -> List[List[Tuple[str, str]]]:
    """
    Split messages into batches of at most batch_size entries.

    Entries keep their input order, within and across batches.

    Args:
        messages: Ordered mapping of message key to source text
        batch_size: Maximum entries per batch

    Returns:
        List of batches, each a list of (key, value) tuples

    Example:
        >>> partition_messages({"a": "A", "b": "B", "c": "C"}, 2)
        [[('a', 'A'), ('b', 'B')], [('c', 'C')]]
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    items = list(messages.items())
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def safe_parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Safely parse a JSON object from potentially noisy model output.

    Tries two strategies, first object wins:
    1. Direct parse of the whole text
    2. Decode from the first '{' (handles leading prose and markdown fences,
       trailing text after the object is ignored)

    Args:
        text: Text to parse

    Returns:
        Parsed dict or None on failure
    """
    if not text:
        return None

    # Strategy 1: Direct parse
    try:
        result = json.loads(text)
        if isinstance(result, dict):
            return result
    except (ValueError, RecursionError):
        pass

    # Strategy 2: Decode starting at the first brace
    start = text.find('{')
    if start < 0:
        return None

    try:
        result, _ = _decoder.raw_decode(text, start)
        if isinstance(result, dict):
            return result
    except (ValueError, RecursionError):
        pass

    return None


def parse_translation_response(text: str, batch: List[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Parse a batch translation response, falling back to the source messages.

    Never raises: when no JSON object can be recovered the batch is returned
    untranslated.

    Args:
        text: Response text from AI
        batch: The (key, value) tuples that were sent in the prompt

    Returns:
        Parsed translations, or the batch as a dict on failure
    """
    parsed = safe_parse_json_object(text)
    if parsed is None:
        logger.warning(f"Could not parse translations from response, keeping {len(batch)} source messages")
        return dict(batch)
    return parsed


def conform_to_batch(translations: Mapping[str, Any], batch: List[Tuple[str, str]]) -> Dict[str, str]:
    """
    Align parsed translations with the keys of the batch.

    Keys missing from the response or mapped to non-string values keep their
    source text; keys the batch did not contain are dropped.

    Args:
        translations: Parsed response object
        batch: The (key, value) tuples that were sent in the prompt

    Returns:
        Dict with exactly the batch keys, in batch order
    """
    result = {}
    missing = 0

    for key, source in batch:
        value = translations.get(key)
        if isinstance(value, str):
            result[key] = value
        else:
            result[key] = source
            missing += 1

    if missing:
        logger.warning(f"{missing}/{len(batch)} keys missing from response, keeping source text")

    extra = len(set(translations) - set(result))
    if extra:
        logger.debug(f"Ignoring {extra} unexpected keys in response")

    return result

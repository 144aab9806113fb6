"""
Batch Translation Orchestrator

Translates a message map batch by batch:
- Builds the system prompt once per run
- Sends each batch through the retry controller, strictly one after another
- Recovers translations from free-form responses, keeping source text on failure
- Reports cumulative progress after every batch

A run either returns a complete, correctly keyed result or raises; results of
batches that finished before a failure are discarded.
"""

from typing import Callable, Dict, List, Mapping, Optional, Tuple

from grim_translator.ai.exceptions import TranslationCancelledError
from grim_translator.ai.retry import Invoke, RetryController
from grim_translator.config import TRANSLATION_BATCH_SIZE
from grim_translator.logger import get_logger
from grim_translator.translation.prompts import build_system_prompt, build_translation_prompt
from grim_translator.translation.utils import (
    conform_to_batch,
    parse_translation_response,
    partition_messages,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


async def translate_batch(
    batch: List[Tuple[str, str]],
    system_prompt: str,
    invoke: Invoke,
    retry: RetryController,
) -> Dict[str, str]:
    """
    Translate a single batch.

    Returns a dict with exactly the batch keys. Unparseable responses fall back
    to the source text; invocation errors propagate.
    """
    prompt = build_translation_prompt(system_prompt, batch)
    response_text = await retry.call(invoke, prompt)
    logger.debug(f"  Output from AI (response):\n{response_text}")

    translations = parse_translation_response(response_text, batch)
    return conform_to_batch(translations, batch)


async def translate_messages(
    messages: Mapping[str, str],
    target_language: str,
    context: str,
    invoke: Invoke,
    on_progress: Optional[ProgressCallback] = None,
    *,
    batch_size: int = TRANSLATION_BATCH_SIZE,
    retry: Optional[RetryController] = None,
    cancel_check: Optional[Callable[[], bool]] = None,
) -> Dict[str, str]:
    """
    Translate localization messages with an AI model.

    Args:
        messages: Ordered mapping of message key to source text
        target_language: Target language code
        context: Product context for the prompt ("" for none)
        invoke: Async callable taking a prompt and returning the model's text
        on_progress: Optional callback receiving (messages_processed, total_messages)
        batch_size: Maximum messages per model request
        retry: Retry controller, defaults to 3 attempts with exponential backoff
        cancel_check: Optional function checked before each batch request

    Returns:
        Dict with the same keys as messages, in the same order

    Raises:
        RateLimitError: If a batch stays rate limited after all attempts
        TranslationCancelledError: If cancel_check requested cancellation
        Exception: Any non rate limit error raised by invoke, unchanged
    """
    if not messages:
        return {}

    retry = retry or RetryController()
    system_prompt = build_system_prompt(target_language, context)
    batches = partition_messages(messages, batch_size)
    total = len(messages)

    logger.info(f"Translating {total} messages to {target_language} in {len(batches)} batches")

    result: Dict[str, str] = {}
    processed = 0

    for batch_idx, batch in enumerate(batches):
        if cancel_check and cancel_check():
            logger.info(f"Translation cancelled before batch {batch_idx + 1}/{len(batches)}")
            raise TranslationCancelledError(details={"processed": processed, "total": total})

        logger.debug(f"Batch {batch_idx + 1}/{len(batches)}: Starting translation of {len(batch)} messages")
        result.update(await translate_batch(batch, system_prompt, invoke, retry))
        processed += len(batch)

        if on_progress:
            on_progress(processed, total)

    logger.info(f"Successfully translated {total} messages to {target_language}")
    return result

"""
Translation module - Core translation functionality

This module provides:
- translate_messages: Batch translation orchestrator
- Prompt builders for system and batch prompts
- Batching and response parsing utilities
- TranslationProgress: Progress tracking dataclass
"""

from grim_translator.translation.progress import TranslationProgress
from grim_translator.translation.prompts import build_system_prompt, build_translation_prompt
from grim_translator.translation.translator import translate_batch, translate_messages
from grim_translator.translation.utils import (
    conform_to_batch,
    parse_translation_response,
    partition_messages,
    safe_parse_json_object,
)

"""
Prompt construction for batch translation.

The system prompt is built once per run; each batch gets its own user prompt
that embeds only that batch's messages as a JSON object.
"""

import json
from typing import List, Tuple

from grim_translator import language_codes as lc

SYSTEM_PROMPT_TEMPLATE = """You are a professional translator specializing in software localization.
Translate the following UI text from English to {target_language_name}.

Important guidelines:
- Preserve any placeholders like {{name}}, {{count}}, {{{{variable}}}}, etc.
- Keep the same tone and formality level
- Use natural, idiomatic expressions in the target language
- Maintain any HTML tags or markdown formatting
- Do not add or remove content, only translate"""

CONTEXT_SECTION_TEMPLATE = "\n\nProduct context for better translations:\n{context}"

TRANSLATION_PROMPT_TEMPLATE = """{system_prompt}

Translate each of the following messages:

{messages_json}"""


def build_system_prompt(target_language: str, context: str = "") -> str:
    """
    Build the system prompt for translation.

    Args:
        target_language: Target language code
        context: Optional product context, appended verbatim when non-empty

    Returns:
        The system prompt string
    """
    prompt = SYSTEM_PROMPT_TEMPLATE.format(
        target_language_name=lc.get_language_name(target_language),
    )

    if context:
        prompt += CONTEXT_SECTION_TEMPLATE.format(context=context)

    return prompt


def build_translation_prompt(system_prompt: str, batch: List[Tuple[str, str]]) -> str:
    """
    Build the full translation prompt for a batch of messages.

    Args:
        system_prompt: The system prompt from build_system_prompt
        batch: List of (key, value) tuples to translate

    Returns:
        The complete prompt string
    """
    return TRANSLATION_PROMPT_TEMPLATE.format(
        system_prompt=system_prompt,
        messages_json=json.dumps(dict(batch), ensure_ascii=False, indent=2),
    )

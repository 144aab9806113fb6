"""
Language code mappings and utilities.

Prompts name the target language in plain English ("French" rather than "fr"),
which gives the model better context. Codes outside the table are passed
through unchanged, so BCP 47 tags such as 'pt-BR' still work.
"""

from typing import Dict

# Common target languages (ISO 639-1) and the names used in prompts
LANGUAGE_NAMES = {
    'ar': 'Arabic',
    'de': 'German',
    'en': 'English',
    'es': 'Spanish',
    'fr': 'French',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'nl': 'Dutch',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ru': 'Russian',
    'tr': 'Turkish',
    'zh': 'Chinese (Simplified)',
}


def get_language_name(code: str) -> str:
    """
    Get the display name for a language code.

    Args:
        code: Language code (e.g., 'fr', 'zh', 'pt-BR')

    Returns:
        English language name, or the code itself if it is not in the table

    Examples:
        >>> get_language_name('fr')
        'French'
        >>> get_language_name('tlh')
        'tlh'
    """
    return LANGUAGE_NAMES.get(code, code)


def get_supported_languages() -> Dict[str, str]:
    """
    Get all language codes with display names.

    Returns:
        Dict mapping code to language name
    """
    return LANGUAGE_NAMES.copy()

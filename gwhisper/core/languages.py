"""
Whisper language directory.
Static table of the language codes the multilingual Whisper models accept.
"""

from .config import AUTO_LANGUAGE

# Same order as the Whisper tokenizer table.
_LANGUAGE_CODES = (
    "en", "zh", "de", "es", "ru", "ko", "fr", "ja", "pt", "tr",
    "pl", "ca", "nl", "ar", "sv", "it", "id", "hi", "fi", "vi",
    "he", "uk", "el", "ms", "cs", "ro", "da", "hu", "ta", "no",
    "th", "ur", "hr", "bg", "lt", "la", "mi", "ml", "cy", "sk",
    "te", "fa", "lv", "bn", "sr", "az", "sl", "kn", "et", "mk",
    "br", "eu", "is", "hy", "ne", "mn", "bs", "kk", "sq", "sw",
    "gl", "mr", "pa", "si", "km", "sn", "yo", "so", "af", "oc",
    "ka", "be", "tg", "sd", "gu", "am", "yi", "lo", "uz", "fo",
    "ht", "ps", "tk", "nn", "mt", "sa", "lb", "my", "bo", "tl",
    "mg", "as", "tt", "haw", "ln", "ha", "ba", "jw", "su", "yue",
)  # fmt: skip


def all_languages() -> tuple[str, ...]:
    """Return every supported language code (without "auto")."""
    return _LANGUAGE_CODES


def validate_language(code: str) -> str:
    """
    Normalize a language code and check it against the directory.

    Args:
        code: Language code such as "en", or "auto" for detection

    Returns:
        The normalized code

    Raises:
        ValueError: If the code is not supported
    """
    normalized = (code or "").strip().lower()
    if normalized == AUTO_LANGUAGE or normalized in _LANGUAGE_CODES:
        return normalized
    raise ValueError(f"Unsupported language code: {code!r}")

"""EN/ES language heuristic used to label display lines.

This is a display heuristic only: it does not trust the language tags the
model returns, it just decides which rendered line gets [EN] and which [ES].
"""
import re

SPANISH_HINTS = re.compile(
    r"[áéíóúñ¿¡]|\bespañol\b|\bgracias\b|\bhola\b|\busted\b|\bseñor\b",
    re.IGNORECASE,
)

# Voice tags handed to speech output
VOICE_TAGS = {"en": "en-US", "es": "es-ES"}


def looks_spanish(text: str) -> bool:
    return bool(SPANISH_HINTS.search(text or ""))


def detect_language(text: str) -> str:
    """Return "es" when `text` looks Spanish, otherwise "en"."""
    return "es" if looks_spanish(text) else "en"


def other_language(lang: str) -> str:
    return "en" if lang == "es" else "es"


def tag(text: str, lang: str) -> str:
    return f"[{lang.upper()}] {text or ''}"


def display_pair(src: str, tgt: str) -> tuple[str, str]:
    """Return (en_line, es_line) for a source text and its translation.

    The source is classified with the heuristic; the translation is assumed
    to be in the other language.
    """
    if looks_spanish(src):
        return tag(tgt, "en"), tag(src, "es")
    return tag(src, "en"), tag(tgt, "es")

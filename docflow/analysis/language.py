from langdetect import DetectorFactory, LangDetectException, detect_langs

from docflow.analysis.models import DetectedLanguage

DetectorFactory.seed = 0

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "ar": "Arabic",
    "fr": "French",
    "es": "Spanish",
    "de": "German",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ru": "Russian",
    "pt": "Portuguese",
    "it": "Italian",
}

DEFAULT_LANGUAGE = DetectedLanguage(name="English", code="en", confidence=0.1)

_SAMPLE_CHARS = 5000


def detect_language(text: str) -> DetectedLanguage:
    """Identify the dominant language; undetectable text maps to English."""
    sample = text.strip()[:_SAMPLE_CHARS]
    if not sample:
        return DEFAULT_LANGUAGE
    try:
        candidates = detect_langs(sample)
    except LangDetectException:
        return DEFAULT_LANGUAGE
    if not candidates:
        return DEFAULT_LANGUAGE
    best = candidates[0]
    code = best.lang.split("-")[0]
    return DetectedLanguage(
        name=LANGUAGE_NAMES.get(code, "Unknown"),
        code=code,
        confidence=round(best.prob, 4),
    )


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code.split("-")[0].lower(), code)

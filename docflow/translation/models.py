from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ProviderTranslation:
    """Raw answer of one translation provider."""

    text: str
    detected_language: str | None = None
    confidence: float = 0.8


@dataclass(frozen=True)
class DocumentTranslation:
    """Translated text for one target language.

    ``truncated`` is True when the input exceeded the provider limit and only
    its leading part was sent for translation.
    """

    source_language: str
    target_language: str
    translated_text: str
    confidence: float
    translated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    provider: str = "local"
    truncated: bool = False

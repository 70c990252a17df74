from dataclasses import dataclass, field


@dataclass(frozen=True)
class Sentiment:
    """Overall polarity plus per-class confidence scores."""

    overall: str  # "positive" | "negative" | "neutral"
    confidence: float
    scores: dict[str, float]


@dataclass(frozen=True)
class Entity:
    """A recognized entity span."""

    text: str
    category: str
    confidence: float


@dataclass(frozen=True)
class DetectedLanguage:
    """Language identification result."""

    name: str
    code: str
    confidence: float


@dataclass(frozen=True)
class DocumentAnalysis:
    """Output of the analysis engine for one document."""

    sentiment: Sentiment
    key_phrases: list[str]
    entities: list[Entity]
    language: DetectedLanguage
    summary: str
    topics: list[str]
    readability_score: float
    sources: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentInsights:
    """Insights and recommendations generated for one document."""

    insights: list[str]
    recommendations: list[str]
    prd: str | None = None
    source: str = "local"

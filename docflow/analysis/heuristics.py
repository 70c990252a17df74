"""Local, dependency-free stand-ins for the remote analysis providers."""

import re
from collections import Counter

from docflow.analysis.models import Entity, Sentiment
from docflow.documents.text_stats import count_words

POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "amazing", "wonderful",
    "fantastic", "positive", "happy", "love", "best",
})
NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "awful", "horrible", "hate",
    "worst", "negative", "sad", "angry", "disappointed",
})

STOP_WORDS = frozenset({
    "the", "is", "at", "which", "on", "and", "a", "an", "as", "are", "was",
    "were", "been", "be", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "must", "can", "to", "of",
    "in", "for", "with", "by", "from", "up", "about", "into", "through",
    "during", "before", "after", "above", "below", "out", "off", "down",
    "under", "again", "further", "then", "once", "there", "their", "these",
    "those", "where", "while", "other",
})

_NEUTRAL_SCORES = {"positive": 0.33, "negative": 0.33, "neutral": 0.34}
_POLARITY_THRESHOLD = 0.4
_ENTITY_CONFIDENCE = 0.9

_TOKEN_RE = re.compile(r"[a-z']+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")

_ENTITY_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
    ("PhoneNumber", re.compile(r"\b\d{3}-\d{3}-\d{4}\b")),
    ("URL", re.compile(r"https?://[^\s]+")),
]


def basic_sentiment(text: str) -> Sentiment:
    """Polarity count over a fixed lexicon."""
    tokens = _TOKEN_RE.findall(text.lower())
    positive = sum(1 for token in tokens if token in POSITIVE_WORDS)
    negative = sum(1 for token in tokens if token in NEGATIVE_WORDS)
    total = positive + negative
    if total == 0 or positive == negative:
        return Sentiment(overall="neutral", confidence=0.5, scores=dict(_NEUTRAL_SCORES))

    scores = {
        "positive": positive / total,
        "negative": negative / total,
    }
    scores["neutral"] = 1 - scores["positive"] - scores["negative"]

    overall = "neutral"
    if scores["positive"] > scores["negative"] and scores["positive"] > _POLARITY_THRESHOLD:
        overall = "positive"
    elif scores["negative"] > scores["positive"] and scores["negative"] > _POLARITY_THRESHOLD:
        overall = "negative"
    return Sentiment(overall=overall, confidence=max(scores.values()), scores=scores)


def _frequent_words(text: str, min_length: int, limit: int, stop_words: frozenset[str]) -> list[str]:
    words = _PUNCTUATION_RE.sub("", text.lower()).split()
    counts = Counter(w for w in words if len(w) > min_length and w not in stop_words)
    return [word for word, _ in counts.most_common(limit)]


def basic_key_phrases(text: str) -> list[str]:
    """Top 10 most frequent words longer than 3 characters."""
    return _frequent_words(text, min_length=3, limit=10, stop_words=frozenset())


def basic_topics(text: str) -> list[str]:
    """Top 5 most frequent non-stopwords longer than 4 characters."""
    return _frequent_words(text, min_length=4, limit=5, stop_words=STOP_WORDS)


def basic_entities(text: str) -> list[Entity]:
    """Regex detection of email addresses, phone numbers and URLs."""
    return [
        Entity(text=match, category=category, confidence=_ENTITY_CONFIDENCE)
        for category, pattern in _ENTITY_PATTERNS
        for match in pattern.findall(text)
    ]


def extractive_summary(text: str) -> str:
    """First, middle and last sentence of the text."""
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > 10]
    if len(sentences) <= 3:
        return text.strip()
    picked = [sentences[0], sentences[len(sentences) // 2], sentences[-1]]
    return ". ".join(picked) + "."


def count_syllables(word: str) -> int:
    """Vowel-cluster count, at least 1."""
    return max(1, len(_VOWEL_GROUP_RE.findall(word.lower())))


def readability_score(text: str) -> float:
    """Flesch reading ease clamped to [0, 100]; 0 for empty text."""
    words = text.split()
    word_count = count_words(text)
    if word_count == 0:
        return 0.0
    sentence_count = max(1, len([s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]))
    syllables = sum(count_syllables(word) for word in words)
    score = 206.835 - 1.015 * (word_count / sentence_count) - 84.6 * (syllables / word_count)
    return max(0.0, min(100.0, round(score, 2)))

"""Parsing of generated insights and the local insight fallback."""

import re

from docflow.analysis.models import DocumentInsights
from docflow.documents.models import ProcessedDocument
from docflow.documents.text_stats import format_file_size

_BULLET_RE = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s*")
_SECTION_SPLIT_RE = re.compile(r"\n\s*\n")

LONG_DOCUMENT_WORDS = 2000

BASE_RECOMMENDATIONS = (
    "Consider adding more structured headings for better organization",
    "Review document for clarity and conciseness",
    "Add metadata and tags for better searchability",
)


def _heading_kind(line: str) -> str | None:
    lowered = line.lower()
    if "prd" in lowered or "product requirement" in lowered:
        return "prd"
    if "recommendation" in lowered or "action item" in lowered:
        return "recommendations"
    if "insight" in lowered:
        return "insights"
    return None


def parse_insights_response(response: str, source: str) -> DocumentInsights:
    """Split a generated answer into insights, recommendations and a PRD block."""
    insights: list[str] = []
    recommendations: list[str] = []
    prd_parts: list[str] = []
    current = ""

    for section in _SECTION_SPLIT_RE.split(response.strip()):
        lines = [line for line in section.splitlines() if line.strip()]
        if not lines:
            continue
        kind = _heading_kind(lines[0])
        if kind is not None:
            current = kind
            if kind == "prd":
                prd_parts.append(section.strip())
                continue
            lines = lines[1:]
        elif current == "prd":
            prd_parts.append(section.strip())
            continue

        for line in lines:
            item = _BULLET_RE.sub("", line).strip()
            if not item:
                continue
            if current == "insights":
                insights.append(item)
            elif current == "recommendations":
                recommendations.append(item)

    return DocumentInsights(
        insights=insights,
        recommendations=recommendations,
        prd="\n\n".join(prd_parts) or None,
        source=source,
    )


def basic_insights(document: ProcessedDocument) -> DocumentInsights:
    """Statistics-based insights used when no generative provider answers."""
    metadata = document.metadata
    insights = [
        f"Document contains {metadata.words} words and {metadata.characters} characters",
        f"Primary language detected: {metadata.language or 'Unknown'}",
        f"Document type: {document.type}",
        f"File size: {format_file_size(document.size)}",
    ]
    recommendations = list(BASE_RECOMMENDATIONS)
    if metadata.words > LONG_DOCUMENT_WORDS:
        recommendations.append(
            "Document is quite long - consider breaking into smaller sections"
        )
    return DocumentInsights(insights=insights, recommendations=recommendations)

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import PurePath

from docflow.documents.text_stats import count_words, generate_id


@dataclass(frozen=True)
class FileInput:
    """An uploaded file handle: bytes plus declared name and MIME type."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix.lower()


@dataclass(frozen=True)
class DocumentMetadata:
    """Derived document statistics."""

    words: int
    characters: int
    language: str | None = None
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processing_time_ms: float = 0.0
    pages: int | None = None
    chunks: int | None = None


@dataclass(frozen=True)
class ProcessedDocument:
    """Normalized text content extracted from one file (or merged from several)."""

    id: str
    name: str
    type: str
    size: int
    content: str
    metadata: DocumentMetadata
    thumbnail: bytes | None = None
    original: bytes | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.metadata.characters != len(self.content):
            raise ValueError(
                f"metadata.characters ({self.metadata.characters}) does not match "
                f"content length ({len(self.content)})"
            )

    @classmethod
    def create(
        cls,
        *,
        name: str,
        type: str,
        size: int,
        content: str,
        language: str | None = None,
        processing_time_ms: float = 0.0,
        pages: int | None = None,
        chunks: int | None = None,
        thumbnail: bytes | None = None,
        original: bytes | None = None,
        document_id: str | None = None,
    ) -> "ProcessedDocument":
        """Build a document whose word and character counts derive from content."""
        metadata = DocumentMetadata(
            words=count_words(content),
            characters=len(content),
            language=language,
            processing_time_ms=processing_time_ms,
            pages=pages,
            chunks=chunks,
        )
        return cls(
            id=document_id or generate_id(),
            name=name,
            type=type,
            size=size,
            content=content,
            metadata=metadata,
            thumbnail=thumbnail,
            original=original,
        )

    def with_language(self, language: str) -> "ProcessedDocument":
        """Return a copy with a re-detected language."""
        return replace(self, metadata=replace(self.metadata, language=language))

from dataclasses import dataclass, field
from typing import ClassVar

from docflow.documents.exceptions import NotFoundError
from docflow.orchestrator.state import DocumentState

TEXT_MIME_TYPE = "text/plain"


@dataclass(frozen=True)
class ExportBlob:
    filename: str
    data: bytes = field(repr=False)
    mime_type: str


class DocumentExporter:
    """Resolves the bytes and filename for downloading a document artifact."""

    FORMATS: ClassVar[tuple[str, ...]] = ("original", "compressed", "translated")

    COMPRESSED_MIME_TYPES: ClassVar[dict[str, str]] = {
        "gzip": "application/gzip",
        "deflate": "application/zlib",
        "ghostscript": "application/pdf",
    }

    def export(
        self,
        state: DocumentState,
        document_id: str,
        fmt: str = "original",
        target_language: str | None = None,
    ) -> ExportBlob:
        """Build the blob for one document in the requested format.

        Args:
            state: Snapshot to read from.
            document_id: A collection or merged document id.
            fmt: ``original``, ``compressed`` or ``translated``.
            target_language: Which translation to export; defaults to the latest.

        Raises:
            NotFoundError: if the document or the requested artifact is missing.
            ValueError: for an unknown format.
        """
        if fmt not in self.FORMATS:
            raise ValueError(f"Unknown export format '{fmt}'. Choose from: {list(self.FORMATS)}")

        document = state.find_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")

        if fmt == "original":
            data = document.original if document.original is not None else document.content.encode("utf-8")
            return ExportBlob(document.name, data, document.type or TEXT_MIME_TYPE)

        if fmt == "compressed":
            result = state.compression_results.get(document_id)
            if result is None:
                raise NotFoundError(f"No compression result for document {document_id}")
            mime_type = self.COMPRESSED_MIME_TYPES.get(result.method, TEXT_MIME_TYPE)
            return ExportBlob(f"compressed_{document.name}", result.compressed_data, mime_type)

        if target_language is not None:
            translation = state.translations.get(document_id, {}).get(target_language.lower())
        else:
            translation = state.latest_translation(document_id)
        if translation is None:
            raise NotFoundError(f"No translation for document {document_id}")
        return ExportBlob(
            f"translated_{document.name}",
            translation.translated_text.encode("utf-8"),
            TEXT_MIME_TYPE,
        )

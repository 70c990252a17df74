"""Routes a file to its format extractor.

Resolution order: declared MIME type, then file extension, then a raw text
decode for anything unrecognized.
"""

from typing import ClassVar

from docflow.documents.models import FileInput
from docflow.extraction.base import BaseExtractor
from docflow.extraction.exceptions import ExtractionError
from docflow.logging.logger import Log


class ContentExtractor:
    """Dispatches extraction across the registered format families."""

    MIME_RULES: ClassVar[list[tuple[str, str]]] = [
        ("pdf", "pdf"),
        ("wordprocessingml", "word"),
        ("msword", "word"),
        ("spreadsheetml", "spreadsheet"),
        ("ms-excel", "spreadsheet"),
        ("text/markdown", "markdown"),
        ("text/x-markdown", "markdown"),
        ("text/csv", "csv"),
        ("image/", "image"),
        ("text/", "text"),
    ]

    EXTENSION_RULES: ClassVar[dict[str, str]] = {
        ".pdf": "pdf",
        ".docx": "word",
        ".doc": "word",
        ".xlsx": "spreadsheet",
        ".xls": "spreadsheet",
        ".txt": "text",
        ".md": "markdown",
        ".markdown": "markdown",
        ".csv": "csv",
        ".jpg": "image",
        ".jpeg": "image",
        ".png": "image",
        ".gif": "image",
        ".bmp": "image",
        ".tiff": "image",
        ".webp": "image",
    }

    FALLBACK_FAMILY: ClassVar[str] = "text"

    def __init__(self, extractors: dict[str, BaseExtractor]) -> None:
        if self.FALLBACK_FAMILY not in extractors:
            raise ValueError("A 'text' extractor is required as the fallback")
        self._extractors = extractors

    def resolve_family(self, mime_type: str, filename: str) -> str:
        """Pick the format family for a declared type and file name."""
        mime = (mime_type or "").lower()
        for needle, family in self.MIME_RULES:
            if needle in mime and family in self._extractors:
                return family
        extension = FileInput(name=filename, mime_type=mime, data=b"").extension
        family = self.EXTENSION_RULES.get(extension)
        if family is not None and family in self._extractors:
            return family
        return self.FALLBACK_FAMILY

    def extract(self, file: FileInput) -> str:
        """Extract text from a file.

        Raises:
            ExtractionError: wrapping any adapter failure with the file name.
        """
        return self.extract_bytes(file.data, file.name, file.mime_type)

    def extract_bytes(self, data: bytes, filename: str, mime_type: str) -> str:
        family = self.resolve_family(mime_type, filename)
        Log.debug(f"Extracting {filename} ({len(data)} bytes) as {family}")
        try:
            return self._extractors[family].extract(data, filename)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(filename, exc) from exc

"""PDF text extraction adapters selected by ``Settings.pdf_engine``.

Pages without an embedded text layer are emitted as ``Page <n>`` markers so
the page structure survives even for scanned documents.
"""

import io

import pdfplumber
import pymupdf

from docflow.extraction.base import BaseExtractor
from docflow.extraction.exceptions import ExtractionError

EMPTY_PDF_PLACEHOLDER = "PDF content could not be extracted"


def _join_pages(pages: list[str]) -> str:
    parts = [
        text.strip() if text and text.strip() else f"Page {number}"
        for number, text in enumerate(pages, start=1)
    ]
    return "\n".join(parts).strip() or EMPTY_PDF_PLACEHOLDER


class PdfPlumberAdapter(BaseExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract(self, data: bytes, filename: str) -> str:
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise ExtractionError(filename, f"pdfplumber extraction failed: {exc}") from exc
        return _join_pages(pages)


class PyMuPdfAdapter(BaseExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, data: bytes, filename: str) -> str:
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise ExtractionError(filename, f"pymupdf extraction failed: {exc}") from exc
        return _join_pages(pages)


class PdfPlaceholderAdapter(BaseExtractor):
    """Emits one ``Page <n>`` marker per page without reading text layers."""

    def extract(self, data: bytes, filename: str) -> str:
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                page_count = doc.page_count
        except Exception as exc:
            raise ExtractionError(filename, f"PDF extraction failed: {exc}") from exc
        return _join_pages([""] * page_count)

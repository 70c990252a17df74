from unittest.mock import MagicMock

import pytest

from docflow.config.settings import Settings
from docflow.documents.models import FileInput
from docflow.extraction.base import OLE2_SIGNATURE
from docflow.extraction.dispatcher import ContentExtractor
from docflow.extraction.exceptions import ExtractionError
from docflow.extraction.factory import ExtractorFactory, PdfExtractorFactory
from docflow.extraction.pdf_adapters import PdfPlaceholderAdapter, PdfPlumberAdapter, PyMuPdfAdapter


def _dispatcher() -> ContentExtractor:
    return ExtractorFactory.create(Settings(ocr_enabled=False))


class TestResolveFamily:
    @pytest.mark.parametrize(
        ("mime", "filename", "family"),
        [
            ("application/pdf", "x.bin", "pdf"),
            ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "x", "word"),
            ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "x", "spreadsheet"),
            ("text/markdown", "x", "markdown"),
            ("text/csv", "x", "csv"),
            ("image/png", "x", "image"),
            ("text/plain", "x.csv", "text"),
        ],
    )
    def test_declared_type_wins(self, mime: str, filename: str, family: str) -> None:
        assert _dispatcher().resolve_family(mime, filename) == family

    def test_extension_used_when_type_missing(self) -> None:
        assert _dispatcher().resolve_family("", "notes.md") == "markdown"
        assert _dispatcher().resolve_family("application/octet-stream", "data.csv") == "csv"

    def test_unknown_falls_back_to_text(self) -> None:
        assert _dispatcher().resolve_family("application/octet-stream", "blob.xyz") == "text"


class TestContentExtractor:
    def test_requires_text_fallback(self) -> None:
        with pytest.raises(ValueError):
            ContentExtractor({"pdf": MagicMock()})

    def test_extracts_by_family(self, docx_bytes: bytes) -> None:
        file = FileInput("report.docx", "", docx_bytes)
        assert "Quarterly report" in _dispatcher().extract(file)

    def test_wraps_unexpected_errors_with_filename(self) -> None:
        failing = MagicMock()
        failing.extract.side_effect = RuntimeError("kaboom")
        extractor = ContentExtractor({"text": failing})

        with pytest.raises(ExtractionError, match="Failed to extract a.txt: kaboom") as exc_info:
            extractor.extract(FileInput("a.txt", "text/plain", b"x"))
        assert exc_info.value.filename == "a.txt"

    def test_unknown_type_decodes_raw_text(self) -> None:
        file = FileInput("blob.xyz", "application/octet-stream", b"raw payload")
        assert _dispatcher().extract(file) == "raw payload"

    def test_legacy_doc_upload_yields_placeholder(self) -> None:
        data = OLE2_SIGNATURE + b"\x00" * 504

        result = _dispatcher().extract(FileInput("memo.doc", "application/msword", data))

        assert result.startswith("Word document: memo.doc")

    def test_legacy_xls_upload_routes_to_spreadsheet(self) -> None:
        assert _dispatcher().resolve_family("application/vnd.ms-excel", "old.xls") == "spreadsheet"
        assert _dispatcher().resolve_family("", "old.xls") == "spreadsheet"


class TestPdfExtractorFactory:
    @pytest.mark.parametrize(
        ("engine", "adapter"),
        [("pdfplumber", PdfPlumberAdapter), ("pymupdf", PyMuPdfAdapter), ("placeholder", PdfPlaceholderAdapter)],
    )
    def test_creates_adapter(self, engine: str, adapter: type) -> None:
        assert isinstance(PdfExtractorFactory.create(Settings(pdf_engine=engine)), adapter)

    def test_engine_name_is_case_insensitive(self) -> None:
        assert isinstance(PdfExtractorFactory.create(Settings(pdf_engine="PyMuPDF")), PyMuPdfAdapter)

    def test_unknown_engine_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfExtractorFactory.create(Settings(pdf_engine="nope"))

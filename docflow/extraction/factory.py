from typing import ClassVar

from docflow.config.settings import Settings
from docflow.extraction.base import BaseExtractor
from docflow.extraction.dispatcher import ContentExtractor
from docflow.extraction.image_extractor import ImageExtractor
from docflow.extraction.pdf_adapters import (
    PdfPlaceholderAdapter,
    PdfPlumberAdapter,
    PyMuPdfAdapter,
)
from docflow.extraction.spreadsheet_extractor import SpreadsheetExtractor
from docflow.extraction.text_extractors import CsvExtractor, MarkdownExtractor, TextExtractor
from docflow.extraction.word_extractor import WordExtractor


class PdfExtractorFactory:
    """Creates the correct PDF extractor based on settings."""

    ADAPTERS: ClassVar[dict[str, type[BaseExtractor]]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
        "placeholder": PdfPlaceholderAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseExtractor:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()


class ExtractorFactory:
    """Builds the content extractor with every format family registered."""

    @classmethod
    def create(cls, settings: Settings) -> ContentExtractor:
        return ContentExtractor({
            "pdf": PdfExtractorFactory.create(settings),
            "word": WordExtractor(),
            "spreadsheet": SpreadsheetExtractor(),
            "markdown": MarkdownExtractor(),
            "csv": CsvExtractor(),
            "image": ImageExtractor(
                enabled=settings.ocr_enabled,
                languages=settings.ocr_languages,
            ),
            "text": TextExtractor(),
        })

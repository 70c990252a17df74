import csv
import io

import markdown
from bs4 import BeautifulSoup

from docflow.extraction.base import BaseExtractor
from docflow.logging.logger import Log


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing undecodable sequences."""
    return data.decode("utf-8", errors="replace").lstrip("\ufeff")


class TextExtractor(BaseExtractor):
    """Plain text and the raw-decode fallback for unknown types."""

    def extract(self, data: bytes, filename: str) -> str:
        return decode_text(data)


class MarkdownExtractor(BaseExtractor):
    """Renders markdown to HTML and strips it back to text."""

    def extract(self, data: bytes, filename: str) -> str:
        source = decode_text(data)
        try:
            html = markdown.markdown(source, extensions=["tables", "fenced_code"])
            text = BeautifulSoup(html, "html.parser").get_text()
        except Exception as exc:
            Log.warning(f"Markdown rendering failed for {filename}, using raw text: {exc}")
            return source
        return text.strip() or source


class CsvExtractor(BaseExtractor):
    """Summarizes rows and columns, then appends the literal CSV text."""

    def extract(self, data: bytes, filename: str) -> str:
        source = decode_text(data)
        try:
            rows = [row for row in csv.reader(io.StringIO(source)) if row]
        except csv.Error as exc:
            Log.warning(f"CSV parsing failed for {filename}, using raw text: {exc}")
            return source

        content = "CSV Data:\n"
        if not rows:
            return content + "Rows: 0\n"

        if self._has_header(source):
            columns, records = rows[0], rows[1:]
        else:
            columns = [f"Column {i}" for i in range(1, len(rows[0]) + 1)]
            records = rows

        content += f"Rows: {len(records)}\n"
        content += f"Columns: {', '.join(columns)}\n\n"
        return content + source

    @staticmethod
    def _has_header(source: str) -> bool:
        try:
            return csv.Sniffer().has_header(source[:4096])
        except csv.Error:
            return True

import io

import docx

from docflow.extraction.base import BaseExtractor, is_ole2
from docflow.extraction.exceptions import ExtractionError
from docflow.logging.logger import Log


def legacy_word_placeholder(filename: str) -> str:
    return f"Word document: {filename} (legacy .doc format, text not extracted)"


class WordExtractor(BaseExtractor):
    """Extracts raw text from word-processor files, discarding styling.

    Legacy binary .doc files cannot be parsed by python-docx and yield a
    placeholder instead of an error.
    """

    def extract(self, data: bytes, filename: str) -> str:
        if is_ole2(data):
            Log.warning(f"{filename} is a legacy .doc file; returning a placeholder")
            return legacy_word_placeholder(filename)
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            raise ExtractionError(filename, f"Word document extraction failed: {exc}") from exc

        lines = [p.text for p in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    lines.append("\t".join(cells))
        return "\n".join(lines).strip()

import io

import pytesseract
from PIL import Image

from docflow.extraction.base import BaseExtractor
from docflow.logging.logger import Log


class ImageExtractor(BaseExtractor):
    """OCR for images. Never raises; unreadable images yield a placeholder."""

    def __init__(self, *, enabled: bool, languages: str) -> None:
        self._enabled = enabled
        self._languages = languages

    def extract(self, data: bytes, filename: str) -> str:
        if not self._enabled:
            return f"Image file: {filename} (OCR disabled)"
        try:
            with Image.open(io.BytesIO(data)) as img:
                text = pytesseract.image_to_string(img, lang=self._languages)
        except Exception as exc:
            Log.warning(f"OCR failed for {filename}: {exc}")
            return f"Image file: {filename} (OCR failed)"
        return text.strip() or f"Image file: {filename} (no text detected)"

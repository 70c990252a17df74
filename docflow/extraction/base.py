from abc import ABC, abstractmethod

# Compound File Binary header shared by legacy .doc and .xls files.
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def is_ole2(data: bytes) -> bool:
    return data[: len(OLE2_SIGNATURE)] == OLE2_SIGNATURE


class BaseExtractor(ABC):
    """Contract for all format-specific text extraction adapters."""

    @abstractmethod
    def extract(self, data: bytes, filename: str) -> str:
        """Extract plain text from raw file bytes.

        Args:
            data: Raw file content.
            filename: Original file name, used for placeholders and logging.

        Returns:
            Extracted text as a single UTF-8 string.

        Raises:
            ExtractionError: if extraction fails for any reason.
        """

"""Text payload compression.

Strategies:
  basic       collapse every whitespace run to a single space and trim
  aggressive  drop blank lines, then apply basic
  ghostscript rewrite the original PDF with Ghostscript; degrades to basic
              when the tool or a PDF original is unavailable
  gzip        gzip-compressed UTF-8 text
  deflate     zlib-compressed UTF-8 text
"""

import gzip
import re
import time
import warnings
import zlib
from collections.abc import Callable
from typing import ClassVar

from docflow.compression.exceptions import CompressionDegradedWarning, CompressionError
from docflow.compression.ghostscript import GhostscriptRunner
from docflow.compression.models import CompressionResult, compression_ratio
from docflow.logging.logger import Log

_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n")


def basic_compress_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def aggressive_compress_text(text: str) -> str:
    return basic_compress_text(_BLANK_LINES_RE.sub("\n", text))


class CompressionEngine:
    """Stateless compression of document text."""

    METHODS: ClassVar[tuple[str, ...]] = ("basic", "aggressive", "ghostscript", "gzip", "deflate")

    def __init__(self, ghostscript: GhostscriptRunner | None = None) -> None:
        self._ghostscript = ghostscript

    def compress(
        self,
        content: str,
        method: str = "basic",
        *,
        original: bytes | None = None,
        mime_type: str = "",
        on_progress: Callable[[float], None] | None = None,
    ) -> CompressionResult:
        """Compress ``content`` (or the PDF ``original`` for ghostscript).

        Raises:
            ValueError: for an unknown method.
            CompressionError: if a strategy fails outright.
        """
        if method not in self.METHODS:
            raise ValueError(f"Unknown compression method '{method}'. Choose from: {list(self.METHODS)}")

        started = time.perf_counter()
        report = on_progress or (lambda _progress: None)
        report(0)

        if method == "ghostscript":
            result = self._ghostscript_or_basic(content, original, mime_type, started)
            report(100)
            return result

        source = content.encode("utf-8")
        report(25)
        try:
            if method == "basic":
                payload = basic_compress_text(content).encode("utf-8")
            elif method == "aggressive":
                payload = aggressive_compress_text(content).encode("utf-8")
            elif method == "gzip":
                payload = gzip.compress(source)
            else:
                payload = zlib.compress(source)
        except Exception as exc:
            raise CompressionError(f"Compression failed: {exc}") from exc
        report(100)
        return self._result(source, payload, method, started)

    def _ghostscript_or_basic(
        self,
        content: str,
        original: bytes | None,
        mime_type: str,
        started: float,
    ) -> CompressionResult:
        reason = None
        if self._ghostscript is None or not self._ghostscript.is_available():
            reason = "Ghostscript is not available in this environment"
        elif original is None or "pdf" not in mime_type.lower():
            reason = "Ghostscript compression requires an original PDF"
        else:
            try:
                payload = self._ghostscript.compress(original)
                return self._result(original, payload, "ghostscript", started)
            except CompressionError as exc:
                reason = str(exc)

        message = f"{reason}; falling back to basic compression"
        Log.warning(message)
        warnings.warn(message, CompressionDegradedWarning, stacklevel=3)
        source = content.encode("utf-8")
        payload = basic_compress_text(content).encode("utf-8")
        return self._result(source, payload, "basic", started, degraded=True)

    @staticmethod
    def _result(
        source: bytes,
        payload: bytes,
        method: str,
        started: float,
        degraded: bool = False,
    ) -> CompressionResult:
        result = CompressionResult(
            original_size=len(source),
            compressed_size=len(payload),
            compression_ratio=compression_ratio(len(source), len(payload)),
            method=method,
            compressed_data=payload,
            duration_ms=(time.perf_counter() - started) * 1000,
            degraded=degraded,
        )
        if result.expanded:
            Log.warning(
                f"{method} compression grew payload from {result.original_size} "
                f"to {result.compressed_size} bytes"
            )
        return result

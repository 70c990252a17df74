import shutil
import subprocess
import tempfile
from pathlib import Path

from docflow.compression.exceptions import CompressionError


class GhostscriptRunner:
    """Runs the Ghostscript ``pdfwrite`` device over PDF bytes."""

    def __init__(self, binary: str, options: list[str], timeout_seconds: int = 120) -> None:
        self._binary = binary
        self._options = options
        self._timeout_seconds = timeout_seconds

    def is_available(self) -> bool:
        return shutil.which(self._binary) is not None

    def compress(self, pdf_bytes: bytes) -> bytes:
        """Return the rewritten PDF.

        Raises:
            CompressionError: if the tool is missing or exits with an error.
        """
        executable = shutil.which(self._binary)
        if executable is None:
            raise CompressionError(f"Ghostscript binary '{self._binary}' not found")
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "input.pdf"
            target = Path(tmp) / "output.pdf"
            source.write_bytes(pdf_bytes)
            try:
                subprocess.run(
                    [executable, *self._options, f"-sOutputFile={target}", str(source)],
                    check=True,
                    capture_output=True,
                    timeout=self._timeout_seconds,
                )
            except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as exc:
                raise CompressionError(f"Ghostscript failed: {exc}") from exc
            if not target.exists():
                raise CompressionError("Ghostscript produced no output")
            return target.read_bytes()

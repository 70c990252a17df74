import re
import time
import uuid

_WHITESPACE_RE = re.compile(r"\s+")
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def count_words(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len([word for word in _WHITESPACE_RE.split(text.strip()) if word])


def format_file_size(size: int) -> str:
    """Render a byte count as e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def generate_id() -> str:
    """Opaque, time-ordered identifier for documents."""
    return f"{uuid.uuid4().hex[:12]}{int(time.time() * 1000):x}"

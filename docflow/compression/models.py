from dataclasses import dataclass, field


@dataclass(frozen=True)
class CompressionResult:
    """Measured outcome of compressing one document.

    ``compression_ratio`` is ``1 - compressed_size / original_size``; it is
    negative when the payload grew, which ``expanded`` flags explicitly.
    """

    original_size: int
    compressed_size: int
    compression_ratio: float
    method: str
    compressed_data: bytes = field(repr=False)
    duration_ms: float = 0.0
    degraded: bool = False

    @property
    def expanded(self) -> bool:
        return self.compressed_size > self.original_size


def compression_ratio(original_size: int, compressed_size: int) -> float:
    if original_size <= 0:
        return 0.0
    return 1 - compressed_size / original_size

class CompressionError(Exception):
    """Raised when a compression strategy fails."""


class CompressionDegradedWarning(UserWarning):
    """Issued when the external tool is unavailable and basic compression ran instead."""

class ExtractionError(Exception):
    """Raised when a file's content cannot be extracted."""

    def __init__(self, filename: str, cause: object) -> None:
        self.filename = filename
        self.cause = cause
        super().__init__(f"Failed to extract {filename}: {cause}")

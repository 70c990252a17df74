class TranslationError(Exception):
    """Raised when a translation cannot be produced at all."""

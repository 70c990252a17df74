class MergeError(Exception):
    """Raised when documents cannot be merged."""

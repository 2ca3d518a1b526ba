# exceptions.py

class UnsupportedOperationError(NotImplementedError):
    """An operation the backing store has no concept of (e.g., per-file visibility)."""
    pass

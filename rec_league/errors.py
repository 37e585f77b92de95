from __future__ import annotations


class StorageUnavailable(RuntimeError):
    """The configured backing store could not be read or written."""


class IngestError(ValueError):
    """Uploaded content could not be mapped onto league records."""

"""Exception hierarchy for the metadata audit."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for every error raised by :mod:`metaaudit`."""


class FetchError(AuditError):
    """Raised when a page cannot be fetched (timeout or transport failure).

    The crawler records these per request and keeps going.
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url
        self.message = message


class RegistryError(AuditError):
    """Raised when the content registry cannot be enumerated."""


class ArtifactWriteError(AuditError):
    """Raised when an output artifact cannot be written."""


__all__ = ["AuditError", "ArtifactWriteError", "FetchError", "RegistryError"]

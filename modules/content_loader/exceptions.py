"""Custom exception hierarchy for the content loader."""

from __future__ import annotations


class ContentLoaderError(RuntimeError):
    """Base exception for content loader failures."""


class ConfigurationError(ContentLoaderError):
    """Raised when the loader is misconfigured."""


class PackageManifestError(ContentLoaderError):
    """Raised when a package manifest is missing or malformed."""


class RecordParseError(ContentLoaderError):
    """Raised when a deck record passed extension filtering but cannot be parsed."""


class InternalInconsistencyError(ContentLoaderError):
    """Raised when a file enumerated during a load vanished from a fresh lookup."""


class UnknownDeckError(ContentLoaderError):
    """Raised when package code references a deck that was never resolved."""


class RegistrationError(ContentLoaderError):
    """Raised when the content registry rejects a registration."""


class ContentLoadError(ContentLoaderError):
    """Raised when a strict load finishes resolution with record errors."""


class ValidationHookError(ContentLoaderError):
    """Raised when a character validation hook returns something unusable."""

"""Error taxonomy.

Errors are raised inside the core and only turned into structured
responses at the service boundary (see ``service.py``).
"""

from __future__ import annotations


class PIIError(Exception):
    """Base class for every error the anonymization core raises."""

    status_code = 500


class ValidationError(PIIError):
    """Caller-supplied text is empty or not a string."""

    status_code = 400


class ConfigurationError(PIIError):
    """A required setting (signing key, store credentials) is missing.

    Only the setting's name is carried, never its value.
    """

    status_code = 500

    def __init__(self, setting: str, message: str | None = None) -> None:
        self.setting = setting
        super().__init__(message or f"{setting} is not configured")


class StorageError(PIIError):
    """The mapping store is unreachable or failed unexpectedly."""

    status_code = 500

"""
Custom exception classes used across Eurus.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""


class EurusError(Exception):
    """Base class for every error raised by Eurus."""


class ConfigError(EurusError):
    """
    Raised when the local config file is missing, unreadable or malformed.

    Never fatal: callers start from an empty config and re-prompt.
    """


class ApiError(EurusError):
    """
    Raised when a Cloudflare API call fails or reports errors.

    The message carries the API error entries verbatim.
    """

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class DocumentError(EurusError):
    """Raised when the compose manifest cannot be found, read or parsed."""


class MissingManifestFile(DocumentError):
    """No manifest at the given path, and no conventional file name found."""


class InvalidDocumentSyntax(DocumentError):
    """The manifest is not valid YAML, or its root is not a mapping."""


class ValidationError(EurusError):
    """Raised for invalid user input or unresolvable names."""


class MissingService(ValidationError):
    """The named service is absent from the manifest or has no definition."""

    def __init__(self, service_name: str) -> None:
        super().__init__(f"Service '{service_name}' was not found in the manifest")
        self.service_name = service_name


class InvalidPortValue(ValidationError):
    """A port value is not an unsigned 16-bit integer."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid port '{value}': expected a number between 0 and 65535")
        self.value = value

"""Exceptions related to the otelcol extension."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import FieldError

__all__ = [
    "ExtensionException",
    "InputException",
    "DecodeError",
    "ValidationError",
    "ConfigurationError",
    "AdmissionError",
    "ExtensionNotFoundError",
    "BundlerError",
    "BundleNotFoundError",
    "ClusterFetchError",
    "ignore_extension_not_found",
    "is_retryable",
]


class ExtensionException(Exception):
    """Generic base exception used for this library."""


class InputException(ExtensionException):
    """Raised when the input resources are not formatted as expected."""


class DecodeError(ExtensionException):
    """Raised when a provider config payload is absent, malformed or of an unknown version."""


class ValidationError(ExtensionException):
    """Raised when a decoded provider config is semantically invalid.

    Holds every violated rule, never just the first one.
    """

    def __init__(self, errors: list["FieldError"]) -> None:
        self.errors = list(errors)
        super().__init__(self._aggregate_message())

    def _aggregate_message(self) -> str:
        if len(self.errors) == 1:
            return str(self.errors[0])
        return "[" + ", ".join(str(err) for err in self.errors) + "]"


class ConfigurationError(ExtensionException):
    """Raised by the actuator when it cannot proceed due to a missing or invalid config."""


class AdmissionError(ExtensionException):
    """Raised when the admission gate rejects a change."""


class ExtensionNotFoundError(ExtensionException):
    """Raised when the extension block is not present in a resource."""

    def __init__(self, extension_type: str) -> None:
        super().__init__(f"extension not found: {extension_type}")
        self.extension_type = extension_type


class BundlerError(ExtensionException):
    """Raised when a managed resource bundle could not be applied or removed.

    These are considered transient unless explicitly tagged permanent.
    """

    def __init__(self, message: str, permanent: bool = False) -> None:
        super().__init__(message)
        self.permanent = permanent


class BundleNotFoundError(BundlerError):
    """Raised when a managed resource bundle does not exist."""


class ClusterFetchError(ExtensionException):
    """Raised when the cluster context for a resource could not be fetched."""


def ignore_extension_not_found(err: Exception | None) -> Exception | None:
    """Return None if err is an ExtensionNotFoundError, otherwise return err."""
    if isinstance(err, ExtensionNotFoundError):
        return None
    return err


def is_retryable(err: BaseException) -> bool:
    """Return True if retrying may resolve the error without changing the input."""
    if isinstance(err, (ConfigurationError, DecodeError, ValidationError)):
        return False
    if isinstance(err, ExtensionNotFoundError):
        return False
    if isinstance(err, BundlerError):
        return not err.permanent
    return True

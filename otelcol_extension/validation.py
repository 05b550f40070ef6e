"""Validation of a decoded `CollectorConfig`.

Validation is a pure function over the whole config shared by the admission
gate and the actuator. Every rule is evaluated and all violations are
reported together.
"""

from dataclasses import dataclass
from enum import StrEnum
import json
from typing import Any
from urllib.parse import urlsplit

from .collector_config import CollectorConfig, ResourceReference
from .exceptions import ValidationError

__all__ = [
    "validate",
    "is_valid_url",
    "FieldError",
    "ErrorType",
    "RULE_EXPORTERS_ENABLED",
    "RULE_URL_FIELDS",
    "RULE_NON_NEGATIVE",
    "RULE_RESOURCE_REFERENCE_COMPLETE",
]

RULE_EXPORTERS_ENABLED = "exporters-enabled"
RULE_URL_FIELDS = "url-fields"
RULE_NON_NEGATIVE = "non-negative"
RULE_RESOURCE_REFERENCE_COMPLETE = "resource-reference-complete"

OTLPHTTP_PATH = "spec.exporters.otlphttp"


class ErrorType(StrEnum):
    """Kind of a field validation failure."""

    REQUIRED = "Required value"
    INVALID = "Invalid value"


@dataclass(frozen=True)
class FieldError:
    """A single violation of a validation rule at a field path."""

    type: ErrorType
    field: str
    value: Any
    detail: str
    rule: str

    def __str__(self) -> str:
        """Return the error formatted like a Kubernetes field error."""
        if self.type == ErrorType.REQUIRED:
            return f"{self.field}: {self.type}: {self.detail}"
        return f"{self.field}: {self.type}: {_format_value(self.value)}: {self.detail}"


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


def is_valid_url(value: str) -> bool:
    """Return True if the value is an absolute URL with a scheme and host."""
    if any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
        # Accessing the port validates it
        parts.port
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def validate(cfg: CollectorConfig) -> ValidationError | None:
    """Validate the config, returning an aggregate error or None if valid."""
    errors: list[FieldError] = []
    errors.extend(_validate_exporters_enabled(cfg))
    errors.extend(_validate_url_fields(cfg))
    errors.extend(_validate_non_negative(cfg))
    errors.extend(_validate_resource_references(cfg))
    if errors:
        return ValidationError(errors)
    return None


def _validate_exporters_enabled(cfg: CollectorConfig) -> list[FieldError]:
    if cfg.spec.exporters.enabled_exporters():
        return []
    return [
        FieldError(
            type=ErrorType.REQUIRED,
            field="spec.exporters",
            value=None,
            detail="no exporter enabled",
            rule=RULE_EXPORTERS_ENABLED,
        )
    ]


def _validate_url_fields(cfg: CollectorConfig) -> list[FieldError]:
    otlphttp = cfg.spec.exporters.otlphttp
    url_fields = [
        ("endpoint", otlphttp.endpoint),
        ("traces_endpoint", otlphttp.traces_endpoint),
        ("metrics_endpoint", otlphttp.metrics_endpoint),
        ("logs_endpoint", otlphttp.logs_endpoint),
        ("profiles_endpoint", otlphttp.profiles_endpoint),
    ]
    return [
        FieldError(
            type=ErrorType.INVALID,
            field=f"{OTLPHTTP_PATH}.{name}",
            value=value,
            detail="invalid URL specified",
            rule=RULE_URL_FIELDS,
        )
        for name, value in url_fields
        if value and not is_valid_url(value)
    ]


def _validate_non_negative(cfg: CollectorConfig) -> list[FieldError]:
    otlphttp = cfg.spec.exporters.otlphttp
    sizes = [
        ("read_buffer_size", otlphttp.read_buffer_size),
        ("write_buffer_size", otlphttp.write_buffer_size),
    ]
    return [
        FieldError(
            type=ErrorType.INVALID,
            field=f"{OTLPHTTP_PATH}.{name}",
            value=value,
            detail="value cannot be negative",
            rule=RULE_NON_NEGATIVE,
        )
        for name, value in sizes
        if value < 0
    ]


def _validate_resource_references(cfg: CollectorConfig) -> list[FieldError]:
    otlphttp = cfg.spec.exporters.otlphttp
    refs: list[tuple[str, ResourceReference | None]] = [
        ("token", otlphttp.token),
        ("tls.ca", otlphttp.tls.ca),
        ("tls.cert", otlphttp.tls.cert),
        ("tls.key", otlphttp.tls.key),
    ]
    errors = []
    for name, ref in refs:
        if ref is None or ref.is_complete:
            continue
        path = f"{OTLPHTTP_PATH}.{name}"
        errors.append(
            FieldError(
                type=ErrorType.INVALID,
                field=path,
                value=path,
                detail="name or dataKey is empty",
                rule=RULE_RESOURCE_REFERENCE_COMPLETE,
            )
        )
    return errors

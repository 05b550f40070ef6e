"""Decoder for versioned provider config payloads."""

import logging
from typing import Any

import yaml
from mashumaro.exceptions import ExtraKeysError, InvalidFieldValue, MissingField

from .collector_config import API_VERSION, COLLECTOR_CONFIG_KIND, CollectorConfig
from .exceptions import DecodeError

__all__ = [
    "ConfigDecoder",
    "SUPPORTED_VERSIONS",
]

_LOGGER = logging.getLogger(__name__)

SUPPORTED_VERSIONS = frozenset({API_VERSION})


class ConfigDecoder:
    """Decodes a raw provider config payload into a `CollectorConfig`.

    Payloads are JSON or YAML documents carrying an `apiVersion` and `kind`.
    Decoding is strict: unknown fields and values of the wrong type are
    rejected rather than dropped.
    """

    def __init__(self, versions: frozenset[str] = SUPPORTED_VERSIONS) -> None:
        """Initialize the decoder with the accepted schema versions."""
        self._versions = versions

    def decode(self, raw: bytes | str | None) -> CollectorConfig:
        """Decode the payload, raising DecodeError if it cannot be used."""
        if not raw:
            raise DecodeError("provider config payload is empty")
        try:
            doc = yaml.safe_load(raw)
        except yaml.YAMLError as err:
            raise DecodeError(f"provider config is malformed: {err}") from err
        if not isinstance(doc, dict):
            raise DecodeError(
                f"provider config must be an object, got {type(doc).__name__}"
            )
        self._check_type(doc)
        try:
            cfg = CollectorConfig.from_dict(doc)
        except (MissingField, ExtraKeysError, InvalidFieldValue, ValueError) as err:
            raise DecodeError(f"provider config does not match schema: {err}") from err
        _LOGGER.debug("Decoded provider config %s", cfg)
        return cfg

    def _check_type(self, doc: dict[str, Any]) -> None:
        if not (api_version := doc.get("apiVersion")):
            raise DecodeError("provider config is missing apiVersion")
        if api_version not in self._versions:
            raise DecodeError(
                f"no kind {doc.get('kind')!r} is registered for version {api_version!r}"
            )
        if (kind := doc.get("kind")) != COLLECTOR_CONFIG_KIND:
            raise DecodeError(
                f"unexpected kind {kind!r} for version {api_version!r}, expected {COLLECTOR_CONFIG_KIND!r}"
            )

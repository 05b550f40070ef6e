"""Admission validator for Shoot resources.

The validator runs before a Shoot is persisted and rejects an invalid
provider config of the extension. A Shoot that does not request the
extension is not an error, only a requested but misconfigured one is.
"""

from dataclasses import dataclass, field
import logging
from typing import Any

from otelcol_extension.decoder import ConfigDecoder
from otelcol_extension.exceptions import (
    AdmissionError,
    DecodeError,
    ExtensionNotFoundError,
)
from otelcol_extension.manifest import EXTENSION_TYPE, Shoot
from otelcol_extension.validation import validate

__all__ = ["ShootValidator", "Webhook", "shoot_validator_webhook"]

_LOGGER = logging.getLogger(__name__)


class ShootValidator:
    """Validates the extension provider config from a Shoot spec."""

    def __init__(
        self, decoder: ConfigDecoder | None, extension_type: str = EXTENSION_TYPE
    ) -> None:
        """Initialize the validator, failing if the decoder cannot be used."""
        if decoder is None or not callable(getattr(decoder, "decode", None)):
            raise ValueError(
                f"invalid decoder specified for shoot validator {extension_type}"
            )
        self._decoder = decoder
        self.extension_type = extension_type

    def validate(self, new_obj: Any, old_obj: Any | None = None) -> None:
        """Accept or reject a change to a Shoot.

        Returns None to accept and raises AdmissionError to reject.
        """
        if not isinstance(new_obj, Shoot):
            raise AdmissionError(f"invalid object type: {type(new_obj).__name__}")
        if new_obj.deletion_timestamp is not None:
            _LOGGER.debug("Shoot %s is being deleted, skipping", new_obj.name)
            return
        self._validate_extension(new_obj)

    def _validate_extension(self, shoot: Shoot) -> None:
        try:
            ext = shoot.get_extension(self.extension_type)
        except ExtensionNotFoundError:
            _LOGGER.debug(
                "Shoot %s does not request extension %s", shoot.name, self.extension_type
            )
            return

        if ext.is_disabled:
            return

        if ext.provider_config is None:
            raise AdmissionError(
                f"no provider config specified for {self.extension_type}"
            )

        try:
            cfg = self._decoder.decode(ext.provider_config)
        except DecodeError as err:
            raise AdmissionError(
                f"invalid provider spec configuration for {self.extension_type}: {err}"
            ) from err

        if (validation_err := validate(cfg)) is not None:
            raise AdmissionError(
                f"invalid extension configuration for {self.extension_type}: {validation_err}"
            ) from validation_err


@dataclass(frozen=True)
class Webhook:
    """Registration details of the validating webhook."""

    name: str
    path: str
    provider: str
    object_selector: dict[str, str] = field(default_factory=dict)


def shoot_validator_webhook(
    decoder: ConfigDecoder | None,
) -> tuple[ShootValidator, Webhook]:
    """Create the Shoot validator along with its webhook registration."""
    validator = ShootValidator(decoder)
    ext_type = validator.extension_type
    webhook = Webhook(
        name=f"validator.{ext_type}",
        path=f"/webhooks/validate/{ext_type}",
        provider=ext_type,
        object_selector={f"extensions.extensions.gardener.cloud/{ext_type}": "true"},
    )
    _LOGGER.info(
        "Setting up webhook %s at %s with selector %s",
        webhook.name,
        webhook.path,
        webhook.object_selector,
    )
    return validator, webhook

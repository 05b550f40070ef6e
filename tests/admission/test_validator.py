"""Tests for the Shoot admission validator."""

from datetime import datetime, timezone
import json
from typing import Any

import pytest

from otelcol_extension.admission import ShootValidator, shoot_validator_webhook
from otelcol_extension.decoder import ConfigDecoder
from otelcol_extension.exceptions import AdmissionError, DecodeError, ValidationError
from otelcol_extension.manifest import ExtensionBlock, Shoot

GARBAGE = b"\x00\x01 this is { not a provider config"


@pytest.fixture(name="shoot_validator")
def shoot_validator_fixture(decoder: ConfigDecoder) -> ShootValidator:
    """Create a Shoot validator."""
    return ShootValidator(decoder)


def _shoot(*extensions: ExtensionBlock, deleting: bool = False) -> Shoot:
    return Shoot(
        name="local",
        namespace="garden-local",
        deletion_timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc) if deleting else None,
        extensions=list(extensions),
    )


def test_invalid_decoder() -> None:
    """Test the validator cannot be created without a usable decoder."""
    with pytest.raises(ValueError, match="invalid decoder specified"):
        ShootValidator(None)
    with pytest.raises(ValueError, match="invalid decoder specified"):
        ShootValidator(object())  # type: ignore[arg-type]


def test_valid_provider_config(
    shoot_validator: ShootValidator, provider_config: bytes
) -> None:
    """Test a Shoot with a valid provider config is accepted."""
    shoot = _shoot(ExtensionBlock(type="otelcol", provider_config=provider_config))
    assert shoot_validator.validate(shoot, None) is None


def test_extension_not_requested(shoot_validator: ShootValidator) -> None:
    """Test a Shoot without the extension is accepted."""
    assert shoot_validator.validate(_shoot(), None) is None
    shoot = _shoot(ExtensionBlock(type="shoot-dns-service", provider_config=GARBAGE))
    assert shoot_validator.validate(shoot, None) is None


def test_deleting_shoot_accepted(shoot_validator: ShootValidator) -> None:
    """Test a Shoot being deleted is accepted irrespective of the payload."""
    shoot = _shoot(
        ExtensionBlock(type="otelcol", provider_config=GARBAGE), deleting=True
    )
    assert shoot_validator.validate(shoot, None) is None


def test_disabled_extension_skips_validation(shoot_validator: ShootValidator) -> None:
    """Test a disabled extension is accepted even with a garbage payload."""
    shoot = _shoot(
        ExtensionBlock(type="otelcol", provider_config=GARBAGE, disabled=True)
    )
    assert shoot_validator.validate(shoot, None) is None


def test_disabled_false_is_validated(shoot_validator: ShootValidator) -> None:
    """Test an explicit disabled=false still validates the payload."""
    shoot = _shoot(
        ExtensionBlock(type="otelcol", provider_config=GARBAGE, disabled=False)
    )
    with pytest.raises(AdmissionError):
        shoot_validator.validate(shoot, None)


def test_missing_provider_config(shoot_validator: ShootValidator) -> None:
    """Test an enabled extension without a payload is rejected."""
    shoot = _shoot(ExtensionBlock(type="otelcol"))
    with pytest.raises(
        AdmissionError, match="no provider config specified for otelcol"
    ):
        shoot_validator.validate(shoot, None)


def test_malformed_provider_config(shoot_validator: ShootValidator) -> None:
    """Test a payload which cannot be decoded is rejected as such."""
    shoot = _shoot(ExtensionBlock(type="otelcol", provider_config=GARBAGE))
    with pytest.raises(
        AdmissionError, match="invalid provider spec configuration for otelcol"
    ) as exc_info:
        shoot_validator.validate(shoot, None)
    assert isinstance(exc_info.value.__cause__, DecodeError)


def test_no_exporters(
    shoot_validator: ShootValidator, config_doc: dict[str, Any]
) -> None:
    """Test a config without exporters is rejected with the violated rule."""
    config_doc["spec"]["exporters"] = {}
    shoot = _shoot(
        ExtensionBlock(type="otelcol", provider_config=json.dumps(config_doc).encode())
    )
    with pytest.raises(AdmissionError) as exc_info:
        shoot_validator.validate(shoot, None)
    message = str(exc_info.value)
    assert message.startswith("invalid extension configuration for otelcol")
    assert "spec.exporters: Required value: no exporter enabled" in message
    assert isinstance(exc_info.value.__cause__, ValidationError)


def test_all_violations_reported(
    shoot_validator: ShootValidator, config_doc: dict[str, Any]
) -> None:
    """Test the rejection message names every violated field."""
    config_doc["spec"]["exporters"] = {
        "otlphttp": {
            "enabled": True,
            "endpoint": "not a url",
            "read_buffer_size": -1,
        }
    }
    shoot = _shoot(
        ExtensionBlock(type="otelcol", provider_config=json.dumps(config_doc).encode())
    )
    with pytest.raises(AdmissionError) as exc_info:
        shoot_validator.validate(shoot, None)
    message = str(exc_info.value)
    assert "spec.exporters.otlphttp.endpoint" in message
    assert "spec.exporters.otlphttp.read_buffer_size" in message


def test_old_object_is_ignored(
    shoot_validator: ShootValidator, provider_config: bytes
) -> None:
    """Test only the new object decides the outcome."""
    new = _shoot(ExtensionBlock(type="otelcol", provider_config=provider_config))
    old = _shoot(ExtensionBlock(type="otelcol", provider_config=GARBAGE))
    assert shoot_validator.validate(new, old) is None


def test_invalid_object_type(shoot_validator: ShootValidator) -> None:
    """Test objects other than Shoots are rejected."""
    with pytest.raises(AdmissionError, match="invalid object type: dict"):
        shoot_validator.validate({"kind": "Shoot"}, None)


def test_webhook(decoder: ConfigDecoder) -> None:
    """Test the webhook registration details."""
    validator, webhook = shoot_validator_webhook(decoder)
    assert validator.extension_type == "otelcol"
    assert webhook.name == "validator.otelcol"
    assert webhook.path == "/webhooks/validate/otelcol"
    assert webhook.provider == "otelcol"
    assert webhook.object_selector == {
        "extensions.extensions.gardener.cloud/otelcol": "true"
    }


def test_webhook_invalid_decoder() -> None:
    """Test the webhook fails fast without a decoder."""
    with pytest.raises(ValueError, match="invalid decoder specified"):
        shoot_validator_webhook(None)

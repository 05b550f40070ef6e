"""Shared test fixtures."""

import json
from typing import Any

import pytest

from otelcol_extension.collector_config import API_VERSION
from otelcol_extension.decoder import ConfigDecoder
from otelcol_extension.manifest import (
    FEATURE_GATE,
    ClusterContext,
    ExtensionResource,
)

CLUSTER_NAME = "shoot--local--local"


def _encode(doc: dict[str, Any]) -> bytes:
    return json.dumps(doc).encode()


@pytest.fixture(name="decoder")
def decoder_fixture() -> ConfigDecoder:
    """Create a provider config decoder."""
    return ConfigDecoder()


@pytest.fixture(name="config_doc")
def config_doc_fixture() -> dict[str, Any]:
    """A valid provider config document with the debug exporter enabled."""
    return {
        "apiVersion": API_VERSION,
        "kind": "CollectorConfig",
        "spec": {"exporters": {"debug": {"enabled": True, "verbosity": "basic"}}},
    }


@pytest.fixture(name="provider_config")
def provider_config_fixture(config_doc: dict[str, Any]) -> bytes:
    """The valid provider config document as a JSON payload."""
    return _encode(config_doc)


@pytest.fixture(name="extension")
def extension_fixture(provider_config: bytes) -> ExtensionResource:
    """An extension resource with a valid provider config."""
    return ExtensionResource(
        name="otelcol",
        namespace=CLUSTER_NAME,
        provider_config=provider_config,
    )


@pytest.fixture(name="cluster")
def cluster_fixture() -> ClusterContext:
    """A running cluster with the feature gate enabled."""
    return ClusterContext(name=CLUSTER_NAME, feature_gates={FEATURE_GATE: True})

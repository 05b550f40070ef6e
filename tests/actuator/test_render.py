"""Tests for rendering the managed resources."""

from typing import Any

import pytest
import yaml

from otelcol_extension.actuator.render import render_bundle
from otelcol_extension.collector_config import CollectorConfig
from otelcol_extension.config import ActuatorConfig
from otelcol_extension.decoder import ConfigDecoder

NAMESPACE = "shoot--local--local"

OTLPHTTP_CONFIG = """
apiVersion: otelcol.extensions.gardener.cloud/v1alpha1
kind: CollectorConfig
spec:
  exporters:
    debug:
      enabled: false
    otlphttp:
      enabled: true
      endpoint: https://otlp.example.com:4318
      compression: gzip
      token:
        resourceRef:
          name: otlp-auth
          dataKey: token
      tls:
        ca:
          resourceRef:
            name: otlp-ca
            dataKey: ca.crt
        cert:
          resourceRef:
            name: otlp-client
            dataKey: tls.crt
"""


@pytest.fixture(name="otlphttp_config")
def otlphttp_config_fixture(decoder: ConfigDecoder) -> CollectorConfig:
    """A config with only the otlphttp exporter enabled."""
    return decoder.decode(OTLPHTTP_CONFIG)


def collector_spec(cfg: CollectorConfig) -> dict[str, Any]:
    bundle = render_bundle(NAMESPACE, cfg, ActuatorConfig())
    return bundle.objects[-1]["spec"]


def test_render_deterministic(
    decoder: ConfigDecoder, provider_config: bytes
) -> None:
    """Test rendering the same inputs yields byte-identical data."""
    first = render_bundle(NAMESPACE, decoder.decode(provider_config), ActuatorConfig())
    second = render_bundle(NAMESPACE, decoder.decode(provider_config), ActuatorConfig())
    assert first.data == second.data
    assert first.checksum == second.checksum


def test_render_objects(decoder: ConfigDecoder, provider_config: bytes) -> None:
    """Test the kinds and placement of the rendered objects."""
    config = ActuatorConfig(collector_image="example/collector:1.0")
    bundle = render_bundle(NAMESPACE, decoder.decode(provider_config), config)
    assert bundle.name == "external-otelcol"
    assert bundle.namespace == NAMESPACE
    assert [(obj["apiVersion"], obj["kind"]) for obj in bundle.objects] == [
        ("v1", "ServiceAccount"),
        ("rbac.authorization.k8s.io/v1", "Role"),
        ("rbac.authorization.k8s.io/v1", "RoleBinding"),
        ("opentelemetry.io/v1alpha1", "TargetAllocator"),
        ("opentelemetry.io/v1beta1", "OpenTelemetryCollector"),
    ]
    assert all(obj["metadata"]["namespace"] == NAMESPACE for obj in bundle.objects)
    assert bundle.objects[-1]["spec"]["image"] == "example/collector:1.0"

    docs = list(yaml.safe_load_all(bundle.data))
    assert docs == list(bundle.objects)


def test_render_debug_only(decoder: ConfigDecoder, provider_config: bytes) -> None:
    """Test only enabled exporters are part of the pipeline."""
    spec = collector_spec(decoder.decode(provider_config))
    config = spec["config"]
    assert config["exporters"] == {"debug": {"verbosity": "basic"}}
    assert config["service"]["pipelines"]["metrics"]["exporters"] == ["debug"]
    assert "env" not in spec
    assert "volumes" not in spec


def test_render_otlphttp(otlphttp_config: CollectorConfig) -> None:
    """Test the otlphttp exporter settings and secret references."""
    spec = collector_spec(otlphttp_config)
    config = spec["config"]
    assert list(config["exporters"]) == ["otlphttp"]
    assert config["service"]["pipelines"]["metrics"]["exporters"] == ["otlphttp"]

    exporter = config["exporters"]["otlphttp"]
    assert exporter["endpoint"] == "https://otlp.example.com:4318"
    assert exporter["compression"] == "gzip"
    assert exporter["headers"] == {
        "Authorization": "Bearer ${env:OTLPHTTP_BEARER_TOKEN}"
    }
    assert exporter["tls"] == {
        "ca_file": "/etc/otelcol/tls/ca.crt",
        "cert_file": "/etc/otelcol/tls/tls.crt",
    }

    assert spec["env"] == [
        {
            "name": "OTLPHTTP_BEARER_TOKEN",
            "valueFrom": {"secretKeyRef": {"name": "otlp-auth", "key": "token"}},
        }
    ]
    assert [volume["secret"]["secretName"] for volume in spec["volumes"]] == [
        "otlp-ca",
        "otlp-client",
    ]
    assert [mount["mountPath"] for mount in spec["volumeMounts"]] == [
        "/etc/otelcol/tls/ca.crt",
        "/etc/otelcol/tls/tls.crt",
    ]

"""Rendering of the desired managed resources.

Every function here is pure: the same config and namespace always produce
the same objects, which keeps the serialized bundle stable across passes.
"""

from typing import Any

from otelcol_extension.bundler import ManagedResourceBundle
from otelcol_extension.collector_config import (
    CollectorConfig,
    OTLPHTTPExporterConfig,
    ResourceReference,
)
from otelcol_extension.config import ActuatorConfig

__all__ = ["render_bundle"]

BASE_RESOURCE_NAME = "external-otelcol"

COLLECTOR_NAME = BASE_RESOURCE_NAME
COLLECTOR_METRICS_PORT = 8888
COLLECTOR_REPLICAS = 1
COLLECTOR_SERVICE_ACCOUNT_NAME = f"{COLLECTOR_NAME}-collector"

TARGET_ALLOCATOR_NAME = BASE_RESOURCE_NAME
TARGET_ALLOCATOR_SERVICE_ACCOUNT_NAME = f"{BASE_RESOURCE_NAME}-targetallocator"
TARGET_ALLOCATOR_ROLE_NAME = f"{BASE_RESOURCE_NAME}-targetallocator"
TARGET_ALLOCATOR_REPLICAS = 1

OTEL_V1ALPHA1 = "opentelemetry.io/v1alpha1"
OTEL_V1BETA1 = "opentelemetry.io/v1beta1"

TLS_MOUNT_PATH = "/etc/otelcol/tls"
TOKEN_ENV = "OTLPHTTP_BEARER_TOKEN"


def _labels() -> dict[str, str]:
    return {
        "app.kubernetes.io/name": COLLECTOR_NAME,
        "app.kubernetes.io/managed-by": "gardener-extension-otelcol",
        "observability.gardener.cloud/app": COLLECTOR_NAME,
    }


def _metadata(name: str, namespace: str) -> dict[str, Any]:
    return {"name": name, "namespace": namespace, "labels": _labels()}


def target_allocator_service_account(namespace: str) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": _metadata(TARGET_ALLOCATOR_SERVICE_ACCOUNT_NAME, namespace),
        "automountServiceAccountToken": False,
    }


def target_allocator_role(namespace: str) -> dict[str, Any]:
    read_verbs = ["get", "list", "watch"]
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "Role",
        "metadata": _metadata(TARGET_ALLOCATOR_ROLE_NAME, namespace),
        "rules": [
            {
                "apiGroups": [""],
                "resources": ["pods", "services", "endpoints", "secrets", "namespaces"],
                "verbs": read_verbs,
            },
            {
                "apiGroups": ["discovery.k8s.io"],
                "resources": ["endpointslices"],
                "verbs": read_verbs,
            },
            {
                "apiGroups": ["monitoring.coreos.com"],
                "resources": ["servicemonitors", "podmonitors", "scrapeconfigs", "probes"],
                "verbs": read_verbs,
            },
        ],
    }


def target_allocator_role_binding(namespace: str) -> dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "RoleBinding",
        "metadata": _metadata(TARGET_ALLOCATOR_ROLE_NAME, namespace),
        "roleRef": {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": TARGET_ALLOCATOR_ROLE_NAME,
        },
        "subjects": [
            {
                "kind": "ServiceAccount",
                "name": TARGET_ALLOCATOR_SERVICE_ACCOUNT_NAME,
                "namespace": namespace,
            }
        ],
    }


def target_allocator(namespace: str, image: str) -> dict[str, Any]:
    return {
        "apiVersion": OTEL_V1ALPHA1,
        "kind": "TargetAllocator",
        "metadata": _metadata(TARGET_ALLOCATOR_NAME, namespace),
        "spec": {
            "image": image,
            "replicas": TARGET_ALLOCATOR_REPLICAS,
            "resources": {"requests": {"cpu": "10m", "memory": "50Mi"}},
            "securityContext": {"allowPrivilegeEscalation": False},
            "serviceAccount": TARGET_ALLOCATOR_SERVICE_ACCOUNT_NAME,
            "prometheusCR": {
                "enabled": True,
                "allowNamespaces": [namespace],
                "serviceMonitorSelector": {"matchLabels": {"prometheus": "shoot"}},
            },
        },
    }


def _seconds(value: Any) -> str | None:
    if value is None:
        return None
    return f"{int(value.total_seconds())}s"


def _prune(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values so the rendered config only holds explicit settings."""
    return {k: v for k, v in values.items() if v not in (None, "", [], {})}


def _tls_file(ref: ResourceReference | None, name: str) -> str | None:
    if ref is None:
        return None
    return f"{TLS_MOUNT_PATH}/{name}"


def _otlphttp_exporter(cfg: OTLPHTTPExporterConfig) -> dict[str, Any]:
    tls = cfg.tls
    retry = cfg.retry_on_failure
    exporter = {
        "endpoint": cfg.endpoint,
        "traces_endpoint": cfg.traces_endpoint,
        "metrics_endpoint": cfg.metrics_endpoint,
        "logs_endpoint": cfg.logs_endpoint,
        "profiles_endpoint": cfg.profiles_endpoint,
        "timeout": _seconds(cfg.timeout),
        "read_buffer_size": cfg.read_buffer_size or None,
        "write_buffer_size": cfg.write_buffer_size or None,
        "encoding": str(cfg.encoding) if cfg.encoding else None,
        "compression": str(cfg.compression) if cfg.compression else None,
        "tls": _prune(
            {
                "insecure": tls.insecure,
                "insecure_skip_verify": tls.insecure_skip_verify,
                "include_system_ca_certs_pool": tls.include_system_ca_certs_pool,
                "curve_preferences": list(tls.curve_preferences),
                "ca_file": _tls_file(tls.ca, "ca.crt"),
                "cert_file": _tls_file(tls.cert, "tls.crt"),
                "key_file": _tls_file(tls.key, "tls.key"),
                "min_version": tls.min_version,
                "max_version": tls.max_version,
                "cipher_suites": list(tls.cipher_suites),
                "reload_interval": _seconds(tls.reload_interval),
            }
        ),
        "retry_on_failure": _prune(
            {
                "enabled": retry.enabled,
                "initial_interval": _seconds(retry.initial_interval),
                "max_interval": _seconds(retry.max_interval),
                "max_elapsed_time": _seconds(retry.max_elapsed_time),
                "multiplier": retry.multiplier,
            }
        ),
    }
    if cfg.token is not None:
        exporter["headers"] = {"Authorization": f"Bearer ${{env:{TOKEN_ENV}}}"}
    return _prune(exporter)


def _collector_pipeline_config(cfg: CollectorConfig) -> dict[str, Any]:
    exporters_cfg = cfg.spec.exporters
    exporters: dict[str, Any] = {}
    if exporters_cfg.debug.is_enabled():
        exporters["debug"] = {"verbosity": str(exporters_cfg.debug.verbosity)}
    if exporters_cfg.otlphttp.is_enabled():
        exporters["otlphttp"] = _otlphttp_exporter(exporters_cfg.otlphttp)
    return {
        "receivers": {
            "prometheus": {
                "config": {"scrape_configs": []},
                "target_allocator": {
                    "endpoint": f"http://{TARGET_ALLOCATOR_NAME}-targetallocator",
                    "interval": "30s",
                    "collector_id": "${POD_NAME}",
                },
            }
        },
        "exporters": exporters,
        "service": {
            "pipelines": {
                "metrics": {
                    "receivers": ["prometheus"],
                    "exporters": exporters_cfg.enabled_exporters(),
                }
            },
            "telemetry": {
                "metrics": {"address": f"0.0.0.0:{COLLECTOR_METRICS_PORT}"}
            },
        },
    }


def _secret_volumes(cfg: OTLPHTTPExporterConfig) -> list[dict[str, Any]]:
    items = [
        {"key": ref.resource_ref.data_key, "path": path, "secret": ref.resource_ref.name}
        for ref, path in (
            (cfg.tls.ca, "ca.crt"),
            (cfg.tls.cert, "tls.crt"),
            (cfg.tls.key, "tls.key"),
        )
        if ref is not None
    ]
    return [
        {
            "name": f"tls-{item['path'].replace('.', '-')}",
            "secret": {
                "secretName": item["secret"],
                "items": [{"key": item["key"], "path": item["path"]}],
            },
        }
        for item in items
    ]


def collector(namespace: str, image: str, cfg: CollectorConfig) -> dict[str, Any]:
    otlphttp = cfg.spec.exporters.otlphttp
    spec: dict[str, Any] = {
        "mode": "statefulset",
        "image": image,
        "replicas": COLLECTOR_REPLICAS,
        "serviceAccount": COLLECTOR_SERVICE_ACCOUNT_NAME,
        "targetAllocator": {"enabled": False},
        "config": _collector_pipeline_config(cfg),
    }
    if otlphttp.is_enabled():
        if otlphttp.token is not None:
            spec["env"] = [
                {
                    "name": TOKEN_ENV,
                    "valueFrom": {
                        "secretKeyRef": {
                            "name": otlphttp.token.resource_ref.name,
                            "key": otlphttp.token.resource_ref.data_key,
                        }
                    },
                }
            ]
        if volumes := _secret_volumes(otlphttp):
            spec["volumes"] = volumes
            spec["volumeMounts"] = [
                {
                    "name": volume["name"],
                    "mountPath": f"{TLS_MOUNT_PATH}/{volume['secret']['items'][0]['path']}",
                    "subPath": volume["secret"]["items"][0]["path"],
                    "readOnly": True,
                }
                for volume in volumes
            ]
    return {
        "apiVersion": OTEL_V1BETA1,
        "kind": "OpenTelemetryCollector",
        "metadata": {
            **_metadata(COLLECTOR_NAME, namespace),
            "annotations": {
                "networking.resources.gardener.cloud/from-all-scrape-targets-allowed-ports": (
                    f'[{{"protocol":"TCP","port":{COLLECTOR_METRICS_PORT}}}]'
                ),
            },
        },
        "spec": spec,
    }


def render_bundle(
    namespace: str, cfg: CollectorConfig, config: ActuatorConfig
) -> ManagedResourceBundle:
    """Render the managed resource bundle for a validated config."""
    return ManagedResourceBundle(
        name=config.managed_resource_name,
        namespace=namespace,
        objects=(
            target_allocator_service_account(namespace),
            target_allocator_role(namespace),
            target_allocator_role_binding(namespace),
            target_allocator(namespace, config.target_allocator_image),
            collector(namespace, config.collector_image, cfg),
        ),
    )

"""Typed representation of the OpenTelemetry Collector provider config.

The provider config is the tenant supplied payload embedded in the extension
resource. It is decoded into a `CollectorConfig` by the `decoder` module and
checked by the `validation` module.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

__all__ = [
    "API_GROUP",
    "API_VERSION",
    "COLLECTOR_CONFIG_KIND",
    "CollectorConfig",
    "CollectorConfigSpec",
    "ExportersConfig",
    "DebugExporterConfig",
    "OTLPHTTPExporterConfig",
    "TLSConfig",
    "RetryOnFailureConfig",
    "ResourceReference",
    "ResourceRef",
    "Encoding",
    "Compression",
    "Verbosity",
]


API_GROUP = "otelcol.extensions.gardener.cloud"
API_VERSION = f"{API_GROUP}/v1alpha1"
COLLECTOR_CONFIG_KIND = "CollectorConfig"


class Encoding(StrEnum):
    """Encoding used by the collector exporters."""

    PROTO = "proto"
    JSON = "json"


class Compression(StrEnum):
    """Compression used by the collector exporters."""

    GZIP = "gzip"
    ZSTD = "zstd"
    SNAPPY = "snappy"
    NONE = "none"


class Verbosity(StrEnum):
    """Verbosity level of the debug exporter."""

    BASIC = "basic"
    NORMAL = "normal"
    DETAILED = "detailed"


@dataclass
class BaseConfigModel(DataClassDictMixin):
    """Base class for all provider config objects."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True
        forbid_extra_keys = True


@dataclass
class ResourceRef(BaseConfigModel):
    """Name of a referenced resource and the key holding the data."""

    name: str = ""
    """The name of the referenced resource."""

    data_key: str = field(default="", metadata=field_options(alias="dataKey"))
    """The key within the referenced resource holding the data."""


@dataclass
class ResourceReference(BaseConfigModel):
    """A reference to data stored in a resource such as a Secret."""

    resource_ref: ResourceRef = field(
        default_factory=ResourceRef, metadata=field_options(alias="resourceRef")
    )

    @property
    def is_complete(self) -> bool:
        """Return True if both the name and data key are set."""
        return bool(self.resource_ref.name) and bool(self.resource_ref.data_key)


@dataclass
class TLSConfig(BaseConfigModel):
    """TLS settings used by the exporters."""

    insecure: bool | None = None
    """Disable client transport security for the exporter connection."""

    insecure_skip_verify: bool | None = None
    """Skip verifying the server certificate chain."""

    include_system_ca_certs_pool: bool | None = None
    """Load the system CA pool alongside the referenced CA."""

    curve_preferences: list[str] = field(default_factory=list)
    """Curves used in an ECDHE handshake, in preference order."""

    ca: ResourceReference | None = None
    cert: ResourceReference | None = None
    key: ResourceReference | None = None

    min_version: str | None = None
    max_version: str | None = None

    cipher_suites: list[str] = field(default_factory=list)

    reload_interval: timedelta | None = None
    """Interval after which the certificates are reloaded."""


@dataclass
class RetryOnFailureConfig(BaseConfigModel):
    """Retry policy of an exporter."""

    enabled: bool | None = None
    initial_interval: timedelta | None = None
    max_interval: timedelta | None = None
    max_elapsed_time: timedelta | None = None
    multiplier: float | None = None


@dataclass
class DebugExporterConfig(BaseConfigModel):
    """Settings of the debug exporter, which writes telemetry to the console."""

    enabled: bool | None = None
    verbosity: Verbosity = Verbosity.BASIC

    def is_enabled(self) -> bool:
        """Return True if the exporter is explicitly enabled."""
        return self.enabled is True


@dataclass
class OTLPHTTPExporterConfig(BaseConfigModel):
    """Settings of the OTLP HTTP exporter."""

    enabled: bool | None = None

    endpoint: str = ""
    """Base URL to send data to, signal specific paths are appended to it."""

    traces_endpoint: str = ""
    metrics_endpoint: str = ""
    logs_endpoint: str = ""
    profiles_endpoint: str = ""

    token: ResourceReference | None = None
    """Reference to a bearer token sent with every request."""

    tls: TLSConfig = field(default_factory=TLSConfig)

    timeout: timedelta | None = None
    read_buffer_size: int = 0
    write_buffer_size: int = 0
    encoding: Encoding | None = None
    compression: Compression | None = None
    retry_on_failure: RetryOnFailureConfig = field(
        default_factory=RetryOnFailureConfig
    )

    def is_enabled(self) -> bool:
        """Return True if the exporter is explicitly enabled."""
        return self.enabled is True


@dataclass
class ExportersConfig(BaseConfigModel):
    """The exporters of the collector."""

    debug: DebugExporterConfig = field(default_factory=DebugExporterConfig)
    otlphttp: OTLPHTTPExporterConfig = field(default_factory=OTLPHTTPExporterConfig)

    def enabled_exporters(self) -> list[str]:
        """Return the names of all enabled exporters in a stable order."""
        names = []
        if self.debug.is_enabled():
            names.append("debug")
        if self.otlphttp.is_enabled():
            names.append("otlphttp")
        return names


@dataclass
class CollectorConfigSpec(BaseConfigModel):
    """Desired state of the collector."""

    exporters: ExportersConfig = field(default_factory=ExportersConfig)


@dataclass
class CollectorConfig(BaseConfigModel):
    """The OpenTelemetry Collector provider config."""

    api_version: str = field(
        default=API_VERSION, metadata=field_options(alias="apiVersion")
    )
    kind: str = COLLECTOR_CONFIG_KIND
    spec: CollectorConfigSpec = field(default_factory=CollectorConfigSpec)

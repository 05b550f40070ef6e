"""Representation of the resources seen by the extension.

These objects are parsed from the raw Kubernetes documents handed to the
admission gate and the actuator. Only the fields the extension acts on are
kept.
"""

from dataclasses import dataclass, field
from datetime import datetime
import json
import logging
from types import MappingProxyType
from typing import Any, ClassVar, Mapping

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig

from .exceptions import ExtensionNotFoundError, InputException

__all__ = [
    "NamedResource",
    "ExtensionBlock",
    "Shoot",
    "ExtensionResource",
    "ClusterContext",
    "EXTENSION_TYPE",
    "FEATURE_GATE",
]

_LOGGER = logging.getLogger(__name__)

EXTENSION_TYPE = "otelcol"
"""The discriminator of this extension in a Shoot and Extension spec."""

FEATURE_GATE = "OpenTelemetryCollector"
"""Fleet wide feature gate which enables the extension."""

SHOOT_KIND = "Shoot"
EXTENSION_KIND = "Extension"
CORE_DOMAIN = "core.gardener.cloud"
EXTENSIONS_DOMAIN = "extensions.gardener.cloud"


def _check_version(doc: dict[str, Any], version: str) -> None:
    """Assert that the resource has the specified version."""
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if not api_version.startswith(version):
        raise InputException(f"Invalid object expected '{version}': {doc}")


def _raw_provider_config(value: Any) -> bytes | None:
    """Return the provider config as raw bytes like an embedded raw extension."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode()
    return json.dumps(value, sort_keys=True).encode()


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as err:
        raise InputException(f"Invalid timestamp {value!r}") from err


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    class Config(BaseConfig):
        omit_none = True


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


@dataclass
class ExtensionBlock(BaseManifest):
    """An extension entry in the Shoot spec."""

    type: str
    """The extension type used as the discriminator."""

    provider_config: bytes | None = None
    """The opaque versioned provider config payload."""

    disabled: bool | None = None
    """Tri-state flag, only an explicit True disables the extension."""

    @property
    def is_disabled(self) -> bool:
        return self.disabled is True

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ExtensionBlock":
        """Parse an extension entry from a Shoot spec."""
        if not (ext_type := doc.get("type")):
            raise InputException(f"Invalid extension missing type: {doc}")
        return cls(
            type=ext_type,
            provider_config=_raw_provider_config(doc.get("providerConfig")),
            disabled=doc.get("disabled"),
        )


@dataclass
class Shoot(BaseManifest):
    """The tenant cluster resource checked by the admission gate."""

    kind: ClassVar[str] = SHOOT_KIND

    name: str
    namespace: str | None = None
    deletion_timestamp: datetime | None = None
    hibernated: bool = False
    extensions: list[ExtensionBlock] = field(default_factory=list)

    def get_extension(self, extension_type: str = EXTENSION_TYPE) -> ExtensionBlock:
        """Return the extension block with the given type.

        Raises ExtensionNotFoundError if the Shoot does not request it.
        """
        for ext in self.extensions:
            if ext.type == extension_type:
                return ext
        raise ExtensionNotFoundError(extension_type)

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "Shoot":
        """Parse a Shoot from a raw kubernetes object."""
        _check_version(doc, CORE_DOMAIN)
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        spec = doc.get("spec") or {}
        hibernation = spec.get("hibernation") or {}
        return cls(
            name=name,
            namespace=metadata.get("namespace"),
            deletion_timestamp=_parse_timestamp(metadata.get("deletionTimestamp")),
            hibernated=hibernation.get("enabled") is True,
            extensions=[
                ExtensionBlock.parse_doc(ext) for ext in spec.get("extensions") or []
            ],
        )


@dataclass
class ExtensionResource(BaseManifest):
    """The extension resource reconciled by the actuator.

    The namespace identifies the target cluster.
    """

    kind: ClassVar[str] = EXTENSION_KIND

    name: str
    namespace: str
    type: str = EXTENSION_TYPE
    provider_config: bytes | None = None
    disabled: bool | None = None
    deletion_timestamp: datetime | None = None

    @property
    def resource_id(self) -> NamedResource:
        return NamedResource(self.kind, self.namespace, self.name)

    @property
    def is_disabled(self) -> bool:
        return self.disabled is True

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ExtensionResource":
        """Parse an Extension from a raw kubernetes object."""
        _check_version(doc, EXTENSIONS_DOMAIN)
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        if not (namespace := metadata.get("namespace")):
            raise InputException(f"Invalid {cls} missing metadata.namespace: {doc}")
        if not (spec := doc.get("spec")):
            raise InputException(f"Invalid {cls} missing spec: {doc}")
        if not (ext_type := spec.get("type")):
            raise InputException(f"Invalid {cls} missing spec.type: {doc}")
        return cls(
            name=name,
            namespace=namespace,
            type=ext_type,
            provider_config=_raw_provider_config(spec.get("providerConfig")),
            disabled=spec.get("disabled"),
            deletion_timestamp=_parse_timestamp(metadata.get("deletionTimestamp")),
        )


@dataclass(frozen=True)
class ClusterContext:
    """Read-only environmental facts for a single reconciliation."""

    name: str
    """The cluster identity, the same as the extension namespace."""

    hibernated: bool = False

    feature_gates: Mapping[str, bool] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def feature_enabled(self, feature: str = FEATURE_GATE) -> bool:
        """Return True if the feature gate is present and enabled."""
        return self.feature_gates.get(feature, False) is True

    @classmethod
    def from_shoot(
        cls, namespace: str, shoot: Shoot, feature_gates: Mapping[str, bool]
    ) -> "ClusterContext":
        """Build the context for a cluster from its Shoot and the fleet feature gates."""
        return cls(
            name=namespace,
            hibernated=shoot.hibernated,
            feature_gates=MappingProxyType(dict(feature_gates)),
        )

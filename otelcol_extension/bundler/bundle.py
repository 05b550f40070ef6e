"""Managed resource bundle representation."""

from dataclasses import dataclass, field
import hashlib
from typing import Any

import yaml


@dataclass(frozen=True, kw_only=True)
class ManagedResourceBundle:
    """The desired set of objects for a cluster, applied as one unit.

    The serialized form is deterministic so that rendering the same inputs
    twice yields byte-identical data.
    """

    name: str
    """Name of the bundle, unique per cluster."""

    namespace: str
    """Namespace of the target cluster the bundle is applied for."""

    objects: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    """The Kubernetes objects in the bundle."""

    @property
    def data(self) -> bytes:
        """The objects serialized as a multi document YAML stream."""
        return yaml.safe_dump_all(
            self.objects, sort_keys=True, default_flow_style=False
        ).encode()

    @property
    def checksum(self) -> str:
        """Checksum of the serialized data, used as the bundle version."""
        return hashlib.sha256(self.data).hexdigest()

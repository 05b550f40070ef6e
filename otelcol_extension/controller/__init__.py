"""Extension controller package.

This package contains a controller which dispatches triggers for extension
resources to the actuator, one pass at a time per resource.
"""

from .controller import (
    ClusterSource,
    ExtensionController,
    StaticClusterSource,
)
from .status import Status, StatusInfo

__all__ = [
    "ClusterSource",
    "ExtensionController",
    "StaticClusterSource",
    "Status",
    "StatusInfo",
]

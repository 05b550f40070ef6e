"""Configuration objects for the otelcol extension."""

from dataclasses import dataclass


@dataclass
class ActuatorConfig:
    """Configuration for the Actuator."""

    target_allocator_image: str = "otel/target-allocator:v0.140.0"
    collector_image: str = "otel/opentelemetry-collector-contrib:0.140.0"
    managed_resource_name: str = "external-otelcol"


@dataclass
class ControllerConfig:
    """Configuration for the ExtensionController."""

    reconcile_timeout: float = 60.0
    """Deadline in seconds for a single reconciliation pass."""

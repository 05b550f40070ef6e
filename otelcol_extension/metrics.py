"""Prometheus metrics of the extension.

The counters are registered on a registry handed in by the caller rather than
the global default registry.
"""

from prometheus_client import CollectorRegistry, Counter

__all__ = ["ActuatorMetrics", "OPERATION_TOTAL"]

OPERATION_TOTAL = "otelcol_actuator_operation_total"


class ActuatorMetrics:
    """Counters describing the operations performed by the actuator."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize the counters on the given registry or a private one."""
        self.registry = registry if registry is not None else CollectorRegistry()
        self._operation_total = Counter(
            OPERATION_TOTAL,
            "Total number of operations performed by the actuator",
            labelnames=("name", "operation"),
            registry=self.registry,
        )

    def inc_operation(self, cluster: str, operation: str) -> None:
        """Count an operation for the given cluster."""
        self._operation_total.labels(name=cluster, operation=operation).inc()

    def operation_count(self, cluster: str, operation: str) -> float:
        """Return the current value of the operation counter."""
        value = self.registry.get_sample_value(
            OPERATION_TOTAL, {"name": cluster, "operation": operation}
        )
        return value or 0.0

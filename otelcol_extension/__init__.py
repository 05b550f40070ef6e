"""
Gardener extension which runs an OpenTelemetry Collector for a Shoot.

The extension validates the tenant supplied provider config at admission
time, and the actuator converges a managed resource bundle for the cluster
on every reconciliation.
"""

__all__ = [
    "actuator",
    "admission",
    "bundler",
    "collector_config",
    "config",
    "controller",
    "decoder",
    "exceptions",
    "manifest",
    "metrics",
    "validation",
]

"""Decision logic of the actuator.

The actuator keeps no state between passes. Every pass maps its inputs to a
`Plan` using `plan`, a pure function, and the actuator only executes it.
"""

from dataclasses import dataclass
from enum import StrEnum
import logging

from otelcol_extension.bundler import ManagedResourceBundle
from otelcol_extension.config import ActuatorConfig
from otelcol_extension.decoder import ConfigDecoder
from otelcol_extension.exceptions import (
    ConfigurationError,
    DecodeError,
    ExtensionNotFoundError,
)
from otelcol_extension.manifest import (
    EXTENSION_TYPE,
    FEATURE_GATE,
    ClusterContext,
    ExtensionResource,
)
from otelcol_extension.validation import validate

from .render import render_bundle

__all__ = [
    "Trigger",
    "Intent",
    "Action",
    "Plan",
    "TRIGGER_INTENT",
    "plan",
]

_LOGGER = logging.getLogger(__name__)


class Trigger(StrEnum):
    """The event which caused a reconciliation pass."""

    RECONCILE = "reconcile"
    DELETE = "delete"
    FORCE_DELETE = "force_delete"
    RESTORE = "restore"
    MIGRATE = "migrate"


class Intent(StrEnum):
    """What a trigger asks of the managed resources."""

    CONVERGE = "converge"
    """Make the current state match the desired state."""

    TEARDOWN = "teardown"
    """Make the current state empty."""


TRIGGER_INTENT: dict[Trigger, Intent] = {
    Trigger.RECONCILE: Intent.CONVERGE,
    Trigger.RESTORE: Intent.CONVERGE,
    Trigger.MIGRATE: Intent.CONVERGE,
    Trigger.DELETE: Intent.TEARDOWN,
    Trigger.FORCE_DELETE: Intent.TEARDOWN,
}


class Action(StrEnum):
    """What the actuator does with the managed resource bundle."""

    SKIP = "skip"
    DELETE = "delete"
    APPLY = "apply"


@dataclass(frozen=True)
class Plan:
    """Outcome of the decision logic for a single pass."""

    action: Action
    reason: str
    bundle: ManagedResourceBundle | None = None


def plan(
    trigger: Trigger,
    ex: ExtensionResource,
    cluster: ClusterContext,
    decoder: ConfigDecoder,
    config: ActuatorConfig,
) -> Plan:
    """Compute what a pass for the trigger should do with the given inputs.

    Raises ExtensionNotFoundError if the resource is not for this extension
    and ConfigurationError if the provider config is missing or invalid.
    """
    if ex.type != EXTENSION_TYPE:
        raise ExtensionNotFoundError(EXTENSION_TYPE)

    if TRIGGER_INTENT[trigger] == Intent.TEARDOWN:
        return Plan(Action.DELETE, f"{trigger} requested")

    if not cluster.feature_enabled(FEATURE_GATE):
        return Plan(
            Action.DELETE, f"feature gate {FEATURE_GATE} is either missing or disabled"
        )
    if ex.is_disabled:
        return Plan(Action.DELETE, "extension is disabled")
    if cluster.hibernated:
        return Plan(Action.SKIP, f"cluster {cluster.name} is hibernated")

    if ex.provider_config is None:
        raise ConfigurationError("no provider config specified")
    try:
        cfg = decoder.decode(ex.provider_config)
    except DecodeError as err:
        raise ConfigurationError(f"invalid provider spec configuration: {err}") from err
    if (validation_err := validate(cfg)) is not None:
        raise ConfigurationError(
            f"invalid extension configuration: {validation_err}"
        ) from validation_err

    bundle = render_bundle(ex.namespace, cfg, config)
    _LOGGER.debug(
        "Rendered bundle %s for %s with checksum %s",
        bundle.name,
        ex.resource_id,
        bundle.checksum,
    )
    return Plan(Action.APPLY, "configuration is valid", bundle)

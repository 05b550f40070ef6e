"""Actuator implementation.

The actuator drives the managed resources of the otelcol extension for a
single target cluster. It is invoked by a controller runtime for each of the
five triggers and converges the managed resource bundle on every pass.

Key Concepts:
    - ExtensionResource: The tenant resource requesting the extension.
    - ClusterContext: Feature gates and hibernation state, fetched fresh per pass.
    - ManagedResourceBundler: Applies the rendered bundle as one atomic unit.

The actuator holds no lock and no state between passes. The caller must make
sure that passes for the same resource do not run concurrently.
"""

import logging

from otelcol_extension.bundler import ManagedResourceBundler
from otelcol_extension.config import ActuatorConfig
from otelcol_extension.decoder import ConfigDecoder
from otelcol_extension.exceptions import BundleNotFoundError, ExtensionException
from otelcol_extension.manifest import (
    EXTENSION_TYPE,
    ClusterContext,
    ExtensionResource,
)
from otelcol_extension.metrics import ActuatorMetrics

from .plan import Action, Intent, Plan, Trigger, TRIGGER_INTENT, plan

_LOGGER = logging.getLogger(__name__)

NAME = "otelcol"
FINALIZER_SUFFIX = "gardener-extension-otelcol"


class Actuator:
    """Reconciles extension resources into managed resource bundles."""

    def __init__(
        self,
        bundler: ManagedResourceBundler,
        decoder: ConfigDecoder | None = None,
        config: ActuatorConfig | None = None,
        metrics: ActuatorMetrics | None = None,
    ) -> None:
        """
        Initialize the actuator.

        Args:
            bundler: Applies and removes the managed resource bundle
            decoder: Decoder for the provider config payload
            config: The configuration for the actuator
            metrics: Counters for the performed operations
        """
        self._bundler = bundler
        self._decoder = decoder or ConfigDecoder()
        self._config = config or ActuatorConfig()
        self.metrics = metrics or ActuatorMetrics()

    @property
    def name(self) -> str:
        return NAME

    @property
    def extension_type(self) -> str:
        return EXTENSION_TYPE

    @property
    def finalizer_suffix(self) -> str:
        return FINALIZER_SUFFIX

    async def reconcile(self, ex: ExtensionResource, cluster: ClusterContext) -> Plan:
        """Converge the managed resources with the extension resource."""
        return await self.run(Trigger.RECONCILE, ex, cluster)

    async def delete(
        self, ex: ExtensionResource, cluster: ClusterContext | None = None
    ) -> Plan:
        """Delete any resources managed by the actuator."""
        return await self.run(Trigger.DELETE, ex, cluster)

    async def force_delete(
        self, ex: ExtensionResource, cluster: ClusterContext | None = None
    ) -> Plan:
        """Delete managed resources because the cluster was force-deleted."""
        return await self.run(Trigger.FORCE_DELETE, ex, cluster)

    async def restore(self, ex: ExtensionResource, cluster: ClusterContext) -> Plan:
        """Restore the managed resources, same as reconcile."""
        return await self.run(Trigger.RESTORE, ex, cluster)

    async def migrate(self, ex: ExtensionResource, cluster: ClusterContext) -> Plan:
        """Reconcile the managed resources after a control plane migration."""
        return await self.run(Trigger.MIGRATE, ex, cluster)

    async def run(
        self,
        trigger: Trigger,
        ex: ExtensionResource,
        cluster: ClusterContext | None,
    ) -> Plan:
        """Run a single pass for the trigger and return the executed plan.

        Raises ConfigurationError when the provider config is missing or
        invalid, in which case the existing managed resources are left as is.
        Errors from the bundler propagate unchanged.
        """
        try:
            _LOGGER.info(
                "Running %s for %s (cluster %s)", trigger, ex.resource_id, ex.namespace
            )
            if cluster is None:
                if TRIGGER_INTENT[trigger] == Intent.CONVERGE:
                    raise ValueError(f"{trigger} requires a cluster context")
                cluster = ClusterContext(name=ex.namespace)
            result = plan(trigger, ex, cluster, self._decoder, self._config)
            await self._execute(ex, result)
            return result
        finally:
            self.metrics.inc_operation(ex.namespace, str(trigger))

    async def _execute(self, ex: ExtensionResource, result: Plan) -> None:
        name = self._config.managed_resource_name
        if result.action == Action.SKIP:
            _LOGGER.info("Nothing to do for %s: %s", ex.resource_id, result.reason)
        elif result.action == Action.DELETE:
            _LOGGER.info(
                "Deleting resources managed by %s: %s", ex.resource_id, result.reason
            )
            try:
                await self._bundler.remove(ex.namespace, name)
            except BundleNotFoundError:
                _LOGGER.debug("Bundle %s/%s already absent", ex.namespace, name)
        else:
            if result.bundle is None:
                raise ExtensionException(
                    f"plan for {ex.resource_id} has no bundle to apply"
                )
            _LOGGER.info(
                "Applying bundle %s for %s (%d objects)",
                result.bundle.name,
                ex.resource_id,
                len(result.bundle.objects),
            )
            await self._bundler.apply(ex.namespace, result.bundle)

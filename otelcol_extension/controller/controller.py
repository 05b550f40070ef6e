"""Extension controller implementation.

The controller sits between an event source (watch events, periodic
resyncs, manual triggers) and the actuator. It makes sure at most one pass
runs per resource at a time, fetches a fresh ClusterContext for every pass
and records the outcome of the last pass.

Passes for different resources run fully in parallel.
"""

from abc import ABC, abstractmethod
import asyncio
from collections import defaultdict
import logging
from typing import DefaultDict, Mapping

from otelcol_extension.actuator import Actuator, Intent, Trigger, TRIGGER_INTENT
from otelcol_extension.config import ControllerConfig
from otelcol_extension.exceptions import (
    ClusterFetchError,
    ExtensionException,
    ignore_extension_not_found,
    is_retryable,
)
from otelcol_extension.manifest import ClusterContext, ExtensionResource, NamedResource

from .status import Status, StatusInfo

_LOGGER = logging.getLogger(__name__)


class ClusterSource(ABC):
    """Source of the ClusterContext for a target cluster."""

    @abstractmethod
    async def get_cluster(self, name: str) -> ClusterContext:
        """Return the current context of the named cluster.

        Raises ClusterFetchError if the context is not available.
        """


class StaticClusterSource(ClusterSource):
    """ClusterSource serving contexts from a mutable mapping."""

    def __init__(self, clusters: Mapping[str, ClusterContext] | None = None) -> None:
        self._clusters: dict[str, ClusterContext] = dict(clusters or {})

    def set_cluster(self, cluster: ClusterContext) -> None:
        self._clusters[cluster.name] = cluster

    async def get_cluster(self, name: str) -> ClusterContext:
        if (cluster := self._clusters.get(name)) is None:
            raise ClusterFetchError(f"failed to get cluster: {name} not found")
        return cluster


class ExtensionController:
    """
    Controller dispatching triggers for extension resources to the actuator.

    Every pass is serialized per resource key with its own lock, so the
    actuator itself does not need any locking.
    """

    def __init__(
        self,
        actuator: Actuator,
        cluster_source: ClusterSource,
        config: ControllerConfig | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            actuator: The actuator running each pass
            cluster_source: Source of the ClusterContext for each pass
            config: The configuration for the controller
        """
        self._actuator = actuator
        self._cluster_source = cluster_source
        self._config = config or ControllerConfig()
        self._locks: DefaultDict[NamedResource, asyncio.Lock] = defaultdict(
            asyncio.Lock
        )
        self._status: dict[NamedResource, StatusInfo] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def get_status(self, resource_id: NamedResource) -> StatusInfo | None:
        """Return the outcome of the last pass for the resource."""
        return self._status.get(resource_id)

    def submit(
        self, ex: ExtensionResource, trigger: Trigger = Trigger.RECONCILE
    ) -> asyncio.Task[None]:
        """Schedule a pass for the resource in the background."""
        task = asyncio.create_task(
            self.handle(ex, trigger), name=f"{trigger} {ex.resource_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def block_till_done(self) -> None:
        """Wait for all scheduled passes to complete."""
        if tasks := list(self._tasks):
            _LOGGER.debug("Waiting for %d passes to complete", len(tasks))
            await asyncio.gather(*tasks)

    async def close(self) -> None:
        """Cancel all scheduled passes."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def handle(
        self, ex: ExtensionResource, trigger: Trigger = Trigger.RECONCILE
    ) -> None:
        """Run one pass for the resource and record its outcome.

        A resource pending deletion is always torn down, whatever the trigger.
        """
        if ex.deletion_timestamp is not None and TRIGGER_INTENT[trigger] == Intent.CONVERGE:
            trigger = Trigger.DELETE
        resource_id = ex.resource_id
        async with self._locks[resource_id]:
            self._status[resource_id] = StatusInfo(status=Status.PENDING)
            try:
                async with asyncio.timeout(self._config.reconcile_timeout):
                    await self._run(trigger, ex)
            except ExtensionException as err:
                if ignore_extension_not_found(err) is None:
                    _LOGGER.debug("Ignoring %s for %s: %s", trigger, resource_id, err)
                    self._status.pop(resource_id, None)
                    return
                self._fail(resource_id, trigger, err)
            except TimeoutError as err:
                self._fail(resource_id, trigger, err)
            except Exception as err:
                _LOGGER.exception("Unexpected error in %s of %s", trigger, resource_id)
                self._fail(resource_id, trigger, err)
            else:
                self._status[resource_id] = StatusInfo(status=Status.READY)

    async def _run(self, trigger: Trigger, ex: ExtensionResource) -> None:
        cluster: ClusterContext | None = None
        if TRIGGER_INTENT[trigger] == Intent.CONVERGE:
            try:
                cluster = await self._cluster_source.get_cluster(ex.namespace)
            except ClusterFetchError:
                raise
            except Exception as err:
                raise ClusterFetchError(f"failed to get cluster: {err}") from err
        await self._actuator.run(trigger, ex, cluster)

    def _fail(self, resource_id: NamedResource, trigger: Trigger, err: Exception) -> None:
        retryable = is_retryable(err)
        _LOGGER.warning(
            "Failed to %s %s (retryable=%s): %s", trigger, resource_id, retryable, err
        )
        self._status[resource_id] = StatusInfo(
            status=Status.FAILED,
            error=f"{type(err).__name__}: {err}" if str(err) else type(err).__name__,
            retryable=retryable,
        )

"""Module for an in memory managed resource bundler."""

from collections import defaultdict
from collections.abc import Callable
from typing import DefaultDict
import logging

from otelcol_extension.exceptions import BundleNotFoundError

from .bundle import ManagedResourceBundle
from .bundler import ManagedResourceBundler

_LOGGER = logging.getLogger(__name__)

BundleKey = tuple[str, str]


class InMemoryBundler(ManagedResourceBundler):
    """In-memory implementation of the ManagedResourceBundler interface.

    Stores the last applied bundle per (cluster key, name) along with a
    revision that only increases when the serialized data changes.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryBundler."""
        self._bundles: dict[BundleKey, ManagedResourceBundle] = {}
        self._revisions: DefaultDict[BundleKey, int] = defaultdict(int)
        self._listeners: list[Callable[[str, str, ManagedResourceBundle | None], None]] = []
        self.apply_calls: list[BundleKey] = []
        self.remove_calls: list[BundleKey] = []

    async def apply(self, cluster_key: str, bundle: ManagedResourceBundle) -> None:
        """Create or update the named bundle for the cluster."""
        key = (cluster_key, bundle.name)
        self.apply_calls.append(key)
        if (existing := self._bundles.get(key)) is not None:
            if existing.checksum == bundle.checksum:
                _LOGGER.debug("Bundle %s/%s is unchanged, skipping", *key)
                return
            _LOGGER.debug("Updating bundle %s/%s", *key)
        else:
            _LOGGER.debug("Creating bundle %s/%s", *key)
        self._bundles[key] = bundle
        self._revisions[key] += 1
        self._fire_event(cluster_key, bundle.name, bundle)

    async def remove(self, cluster_key: str, bundle_name: str) -> None:
        """Remove the named bundle."""
        key = (cluster_key, bundle_name)
        self.remove_calls.append(key)
        if self._bundles.pop(key, None) is None:
            raise BundleNotFoundError(f"Bundle {cluster_key}/{bundle_name} not found")
        _LOGGER.debug("Removed bundle %s/%s", *key)
        self._fire_event(cluster_key, bundle_name, None)

    def get_bundle(
        self, cluster_key: str, bundle_name: str
    ) -> ManagedResourceBundle | None:
        """Return the currently applied bundle, if any."""
        return self._bundles.get((cluster_key, bundle_name))

    def get_revision(self, cluster_key: str, bundle_name: str) -> int:
        """Return how many times the bundle content changed."""
        return self._revisions.get((cluster_key, bundle_name), 0)

    def add_listener(
        self, callback: Callable[[str, str, ManagedResourceBundle | None], None]
    ) -> Callable[[], None]:
        """Register a callback fired when a bundle changes or is removed.

        Returns a callable that can be called to remove the listener.
        """

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        self._listeners.append(callback)
        return remove

    def _fire_event(
        self, cluster_key: str, bundle_name: str, bundle: ManagedResourceBundle | None
    ) -> None:
        for cb in list(self._listeners):
            try:
                cb(cluster_key, bundle_name, bundle)
            except Exception:
                _LOGGER.exception("Bundler listener callback failed for %s", bundle_name)

"""Interface for applying managed resource bundles."""

from abc import ABC, abstractmethod

from .bundle import ManagedResourceBundle


class ManagedResourceBundler(ABC):
    """Applies and removes managed resource bundles as atomic units.

    Implementations raise BundlerError on failure, which callers treat as
    transient unless it is tagged permanent.
    """

    @abstractmethod
    async def apply(self, cluster_key: str, bundle: ManagedResourceBundle) -> None:
        """Create or update the named bundle for the cluster.

        Applying identical objects repeatedly must be safe and leave the
        bundle unchanged.
        """

    @abstractmethod
    async def remove(self, cluster_key: str, bundle_name: str) -> None:
        """Remove the named bundle and every object it manages.

        Implementations may raise BundleNotFoundError if the bundle is
        already absent.
        """

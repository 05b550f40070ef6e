"""
The bundler module applies and removes managed resource bundles against a
target cluster.

- A bundle is a named, versioned set of objects applied as one atomic unit.
- Bundles are keyed by the cluster key (the extension namespace) and name.
- apply and remove are idempotent, so callers can submit the full desired
  state on every pass.

This abstract interface allows for various implementations (in-memory, seed
cluster, etc.).
"""

from .bundle import ManagedResourceBundle
from .bundler import ManagedResourceBundler
from .in_memory import InMemoryBundler

__all__ = [
    "ManagedResourceBundle",
    "ManagedResourceBundler",
    "InMemoryBundler",
]

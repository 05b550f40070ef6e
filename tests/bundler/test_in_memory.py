"""Tests for the in-memory bundler."""

import pytest

from otelcol_extension.bundler import InMemoryBundler, ManagedResourceBundle
from otelcol_extension.exceptions import BundleNotFoundError

CLUSTER = "shoot--local--local"


def make_bundle(replicas: int = 1) -> ManagedResourceBundle:
    return ManagedResourceBundle(
        name="external-otelcol",
        namespace=CLUSTER,
        objects=(
            {
                "apiVersion": "apps/v1",
                "kind": "StatefulSet",
                "metadata": {"name": "collector", "namespace": CLUSTER},
                "spec": {"replicas": replicas},
            },
        ),
    )


def test_bundle_checksum() -> None:
    """Test the checksum follows the serialized data."""
    assert make_bundle().checksum == make_bundle().checksum
    assert make_bundle().checksum != make_bundle(replicas=2).checksum
    assert make_bundle().data.startswith(b"apiVersion: apps/v1\n")


async def test_apply_and_remove() -> None:
    """Test the bundle lifecycle in the bundler."""
    bundler = InMemoryBundler()
    events: list[tuple[str, str, ManagedResourceBundle | None]] = []
    remove_listener = bundler.add_listener(
        lambda cluster, name, bundle: events.append((cluster, name, bundle))
    )

    bundle = make_bundle()
    await bundler.apply(CLUSTER, bundle)
    assert bundler.get_bundle(CLUSTER, "external-otelcol") == bundle
    assert bundler.get_revision(CLUSTER, "external-otelcol") == 1

    # Unchanged data does not create a new revision
    await bundler.apply(CLUSTER, make_bundle())
    assert bundler.get_revision(CLUSTER, "external-otelcol") == 1

    await bundler.apply(CLUSTER, make_bundle(replicas=3))
    assert bundler.get_revision(CLUSTER, "external-otelcol") == 2

    await bundler.remove(CLUSTER, "external-otelcol")
    assert bundler.get_bundle(CLUSTER, "external-otelcol") is None

    assert [(cluster, bundle is None) for cluster, _, bundle in events] == [
        (CLUSTER, False),
        (CLUSTER, False),
        (CLUSTER, True),
    ]
    assert len(bundler.apply_calls) == 3
    assert bundler.remove_calls == [(CLUSTER, "external-otelcol")]

    remove_listener()
    await bundler.apply(CLUSTER, bundle)
    assert len(events) == 3


async def test_remove_not_found() -> None:
    """Test removing an absent bundle."""
    bundler = InMemoryBundler()
    with pytest.raises(BundleNotFoundError, match="not found"):
        await bundler.remove(CLUSTER, "external-otelcol")


async def test_listener_failure() -> None:
    """Test a failing listener does not fail the apply."""
    bundler = InMemoryBundler()

    def fail(cluster: str, name: str, bundle: ManagedResourceBundle | None) -> None:
        raise ValueError("listener failed")

    bundler.add_listener(fail)
    await bundler.apply(CLUSTER, make_bundle())
    assert bundler.get_bundle(CLUSTER, "external-otelcol") is not None

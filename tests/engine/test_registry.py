"""Tests for the in-flight registry and keyed locks."""

import threading
import time

from indexspine.engine.registry import InFlightRegistry, KeyedLock


class TestInFlightRegistry:
    """Test InFlightRegistry."""

    def test_register_and_deregister(self):
        """Registered GUIDs show up until deregistered."""
        registry = InFlightRegistry()
        registry.register("g1")
        assert "g1" in registry
        assert registry.snapshot() == ["g1"]
        registry.deregister("g1")
        assert "g1" not in registry
        assert len(registry) == 0

    def test_same_guid_twice_is_counted(self):
        """A GUID registered twice needs two deregistrations."""
        registry = InFlightRegistry()
        registry.register("g1")
        registry.register("g1")
        registry.deregister("g1")
        assert "g1" in registry
        registry.deregister("g1")
        assert "g1" not in registry

    def test_deregister_unknown_is_noop(self):
        """Deregistering an unknown GUID does nothing."""
        registry = InFlightRegistry()
        registry.deregister("missing")
        assert len(registry) == 0

    def test_snapshot_is_a_copy(self):
        """snapshot returns an independent list."""
        registry = InFlightRegistry()
        registry.register("g1")
        snap = registry.snapshot()
        snap.append("g2")
        assert registry.snapshot() == ["g1"]

    def test_running_counts_active(self):
        """running increments active for its block."""
        registry = InFlightRegistry()
        with registry.running():
            with registry.running():
                assert registry.active == 2
            assert registry.active == 1
        assert registry.active == 0

    def test_running_decrements_on_error(self):
        """active drops back when the block raises."""
        registry = InFlightRegistry()
        try:
            with registry.running():
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert registry.active == 0

    def test_concurrent_updates(self):
        """Concurrent register/deregister keeps exact counts."""
        registry = InFlightRegistry()

        def worker(n):
            for i in range(200):
                guid = f"{n}-{i}"
                registry.register(guid)
                registry.deregister(guid)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(registry) == 0

    def test_clear(self):
        """clear empties the registry."""
        registry = InFlightRegistry()
        registry.register("g1")
        registry.clear()
        assert registry.snapshot() == []


class TestKeyedLock:
    """Test KeyedLock."""

    def test_same_key_serializes(self):
        """Holders of the same key run one at a time."""
        locks = KeyedLock()
        inside = []
        overlap = []

        def worker():
            with locks.hold(["handle:h"]):
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlap == []

    def test_different_keys_do_not_block(self):
        """Different keys can be held at once."""
        locks = KeyedLock()
        entered = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold(["a"]):
                entered.set()
                release.wait(timeout=5)

        t = threading.Thread(target=holder)
        t.start()
        assert entered.wait(timeout=5)
        with locks.hold(["b"]):
            pass
        release.set()
        t.join()

    def test_locks_dropped_when_unused(self):
        """Locks are discarded once no one holds them."""
        locks = KeyedLock()
        with locks.hold(["a", "b", "", "a"]):
            assert len(locks) == 2
        assert len(locks) == 0

    def test_released_after_error(self):
        """A key is released when the block raises."""
        locks = KeyedLock()
        try:
            with locks.hold(["a"]):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        with locks.hold(["a"]):
            pass
        assert len(locks) == 0

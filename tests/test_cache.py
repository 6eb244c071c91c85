"""Tests for the per-filer read cache."""
import threading

import pytest

from netapp_filer.cache import FilerCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class Counter:
    """compute() stand-in that returns a fresh object per call."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return [self.calls]


@pytest.fixture
def clock():
    return FakeClock()


KEY = ("volume", "get_volumes", ())


class TestExpiry:
    """Tests for time-based expiry."""

    def test_hit_before_expiry(self, clock):
        """Just inside the lifetime the same object comes back."""
        cache = FilerCache(expiration=10, clock=clock)
        compute = Counter()

        first = cache.get_or_compute(KEY, compute)
        clock.now += 9.999
        assert cache.get_or_compute(KEY, compute) is first
        assert compute.calls == 1

    def test_miss_after_expiry(self, clock):
        """Just past the lifetime the value is recomputed."""
        cache = FilerCache(expiration=10, clock=clock)
        compute = Counter()

        first = cache.get_or_compute(KEY, compute)
        clock.now += 10.001
        second = cache.get_or_compute(KEY, compute)
        assert second is not first
        assert compute.calls == 2

    def test_zero_never_expires(self, clock):
        """Expiration 0 keeps entries until invalidated."""
        cache = FilerCache(expiration=0, clock=clock)
        compute = Counter()

        first = cache.get_or_compute(KEY, compute)
        clock.now += 10 ** 9
        assert cache.get_or_compute(KEY, compute) is first

    def test_per_call_ttl(self, clock):
        """A per-call ttl overrides the default."""
        cache = FilerCache(expiration=0, clock=clock)
        compute = Counter()

        cache.get_or_compute(KEY, compute, ttl=1)
        clock.now += 2
        cache.get_or_compute(KEY, compute, ttl=1)
        assert compute.calls == 2

    def test_negative_expiration(self):
        """A negative lifetime is rejected."""
        with pytest.raises(ValueError):
            FilerCache(expiration=-1)


class TestInvalidation:
    """Tests for dropping entries."""

    def test_invalidate_kind(self, clock):
        """Only entries of the named kind are dropped."""
        cache = FilerCache(expiration=0, clock=clock)
        cache.get_or_compute(KEY, Counter())
        cache.get_or_compute(("volume", "get_volume", ("vol1",)), Counter())
        cache.get_or_compute(("export", "get_exports", ()), Counter())

        assert cache.invalidate("volume") == 2
        assert len(cache) == 1

    def test_invalidate_all(self, clock):
        """No kind drops everything."""
        cache = FilerCache(expiration=0, clock=clock)
        cache.get_or_compute(KEY, Counter())
        cache.get_or_compute(("export", "get_exports", ()), Counter())

        assert cache.invalidate() == 2
        assert len(cache) == 0

    def test_failed_compute_keeps_stale_entry(self, clock):
        """An error while recomputing propagates and leaves the old entry."""
        cache = FilerCache(expiration=10, clock=clock)
        first = cache.get_or_compute(KEY, Counter())
        clock.now += 11

        def boom():
            raise RuntimeError("filer unreachable")

        with pytest.raises(RuntimeError):
            cache.get_or_compute(KEY, boom)
        assert len(cache) == 1

        clock.now -= 11
        assert cache.get_or_compute(KEY, Counter()) is first

    def test_invalidate_during_compute_discards_result(self, clock):
        """A read that raced a write does not store pre-write data."""
        cache = FilerCache(expiration=0, clock=clock)
        started = threading.Event()
        release = threading.Event()

        def slow():
            started.set()
            release.wait(5)
            return ["stale"]

        results = []
        reader = threading.Thread(target=lambda: results.append(cache.get_or_compute(KEY, slow)))
        reader.start()
        assert started.wait(5)
        cache.invalidate("volume")
        release.set()
        reader.join(5)

        assert results == [["stale"]]
        assert len(cache) == 0
        assert cache.get_or_compute(KEY, lambda: ["fresh"]) == ["fresh"]

    def test_invalidate_all_during_compute(self, clock):
        """Clearing the whole cache also discards in-flight results."""
        cache = FilerCache(expiration=0, clock=clock)

        def compute():
            cache.clear()
            return ["stale"]

        cache.get_or_compute(KEY, compute)
        assert len(cache) == 0


class TestDisabled:
    """Tests for a disabled cache."""

    def test_always_computes(self):
        """Nothing is stored when disabled."""
        cache = FilerCache(enabled=False)
        compute = Counter()
        cache.get_or_compute(KEY, compute)
        cache.get_or_compute(KEY, compute)
        assert compute.calls == 2
        assert len(cache) == 0

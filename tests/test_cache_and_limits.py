import pytest

from fintrack.cache.ttl_cache import TTLCache
from fintrack.runtime.request_sequence import RequestSequencer
from fintrack.utils.rate_limit import RateLimiterRegistry


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_ttl_cache_expiry() -> None:
    clock = _Clock()
    cache = TTLCache(default_ttl_seconds=10, clock=clock)
    cache.set("market:spot:usd:bitcoin", 1.0)
    cache.set("market:chart:usd:bitcoin:7", [1, 2], ttl_seconds=100)
    assert cache.get("market:spot:usd:bitcoin") == 1.0

    clock.now += 11
    assert cache.get("market:spot:usd:bitcoin") is None
    assert cache.get("market:chart:usd:bitcoin:7") == [1, 2]
    assert len(cache) == 1


def test_ttl_cache_sweeps_expired_keys_on_write() -> None:
    clock = _Clock()
    cache = TTLCache(default_ttl_seconds=10, clock=clock, purge_threshold=3)
    for day in ("01-03-2024", "02-03-2024", "03-03-2024"):
        cache.set(f"market:history:usd:bitcoin:{day}", 60000.0)
    cache.set("market:chart:usd:bitcoin:365", [1, 2], ttl_seconds=100)
    assert len(cache) == 4

    clock.now += 11
    cache.set("market:spot:usd:ethereum", 3000.0)
    assert len(cache) == 2
    assert cache.get("market:chart:usd:bitcoin:365") == [1, 2]


def test_rate_limiter_spaces_calls_per_provider() -> None:
    clock = _Clock()
    slept: list[float] = []

    def _sleep(seconds: float) -> None:
        slept.append(seconds)
        clock.now += seconds

    limiter = RateLimiterRegistry(min_interval_seconds=1.2, clock=clock, sleep=_sleep)
    assert limiter.wait("coingecko") == 0.0
    clock.now += 0.2
    assert limiter.wait("coingecko") == pytest.approx(1.0)
    assert limiter.wait("document_store") == 0.0
    assert slept == [pytest.approx(1.0)]
    assert RateLimiterRegistry(0.0).wait("coingecko") == 0.0


def test_request_sequencer_only_latest_ticket_is_current() -> None:
    sequencer = RequestSequencer()
    first = sequencer.issue("bitcoin")
    assert sequencer.is_current(first)
    second = sequencer.issue("bitcoin")
    other = sequencer.issue("ethereum")
    assert not sequencer.is_current(first)
    assert sequencer.is_current(second)
    assert sequencer.is_current(other)
    assert sequencer.latest("bitcoin") == 2
    assert sequencer.latest("dogecoin") == 0

"""Tests for the sliding-window rate limiter."""

from __future__ import annotations

import threading

import pytest

from intentgate.core.decision import Block
from intentgate.core.intent import create_intent
from intentgate.core.rate_limit import GLOBAL_KEY, RateLimiter, rate_limit
from intentgate.core.rules import Rule
from intentgate.errors import RuleConfigError


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def _intent(agent: str = "agent-1"):  # noqa: ANN202
    return create_intent(agent, "http", "https://api.example.com")


class TestRateLimiter:
    def test_is_a_rule(self) -> None:
        assert isinstance(rate_limit(1, 1000), Rule)

    def test_allows_up_to_max_calls(self) -> None:
        limiter = RateLimiter(3, 60_000, clock=FakeClock())
        results = [limiter.evaluate(_intent()) for _ in range(3)]
        assert results == [None, None, None]

    def test_blocks_call_over_limit(self) -> None:
        limiter = RateLimiter(2, 60_000, clock=FakeClock())
        limiter.evaluate(_intent())
        limiter.evaluate(_intent())
        decision = limiter.evaluate(_intent())
        assert isinstance(decision, Block)
        assert decision.reason == "Rate limit exceeded: 2 calls per 60s. Retry after 60s"

    def test_blocked_calls_are_not_counted(self) -> None:
        limiter = RateLimiter(1, 1000, clock=FakeClock())
        limiter.evaluate(_intent())
        limiter.evaluate(_intent())
        limiter.evaluate(_intent())
        assert limiter.usage() == 1

    def test_window_slides(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(2, 1000, clock=clock)
        limiter.evaluate(_intent())
        clock.advance(500)
        limiter.evaluate(_intent())
        assert limiter.evaluate(_intent()) is not None

        clock.advance(500)  # first call is now exactly window_ms old
        assert limiter.evaluate(_intent()) is None
        assert limiter.evaluate(_intent()) is not None

    def test_retry_after_rounds_up(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(1, 10_000, clock=clock)
        limiter.evaluate(_intent())
        clock.advance(8_500)
        decision = limiter.evaluate(_intent())
        assert isinstance(decision, Block)
        assert decision.reason.endswith("Retry after 2s")

    def test_fractional_window_in_reason(self) -> None:
        limiter = RateLimiter(1, 1500, clock=FakeClock())
        limiter.evaluate(_intent())
        decision = limiter.evaluate(_intent())
        assert isinstance(decision, Block)
        assert "1 calls per 1.5s" in decision.reason

    def test_global_key_shared_across_agents(self) -> None:
        limiter = RateLimiter(1, 60_000, clock=FakeClock())
        assert limiter.evaluate(_intent("a")) is None
        assert limiter.evaluate(_intent("b")) is not None
        assert limiter.keys == [GLOBAL_KEY]

    def test_per_agent_keys_are_independent(self) -> None:
        limiter = RateLimiter(1, 60_000, per_agent=True, clock=FakeClock())
        assert limiter.evaluate(_intent("a")) is None
        assert limiter.evaluate(_intent("b")) is None
        assert limiter.evaluate(_intent("a")) is not None
        assert limiter.usage("a") == 1
        assert limiter.usage("b") == 1

    def test_instances_do_not_share_state(self) -> None:
        clock = FakeClock()
        first = RateLimiter(1, 60_000, clock=clock)
        second = RateLimiter(1, 60_000, clock=clock)
        first.evaluate(_intent())
        assert second.evaluate(_intent()) is None


class TestKeyManagement:
    def test_lru_eviction_caps_keys(self) -> None:
        limiter = RateLimiter(5, 60_000, per_agent=True, max_keys=2, clock=FakeClock())
        limiter.evaluate(_intent("a"))
        limiter.evaluate(_intent("b"))
        limiter.evaluate(_intent("a"))
        limiter.evaluate(_intent("c"))
        assert limiter.keys == ["a", "c"]

    def test_unbounded_keys(self) -> None:
        limiter = RateLimiter(1, 60_000, per_agent=True, max_keys=None, clock=FakeClock())
        for i in range(50):
            limiter.evaluate(_intent(f"agent-{i}"))
        assert len(limiter.keys) == 50

    def test_sweep_removes_expired_keys(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(5, 1000, per_agent=True, clock=clock)
        limiter.evaluate(_intent("old"))
        clock.advance(600)
        limiter.evaluate(_intent("fresh"))
        clock.advance(500)
        assert limiter.sweep() == 1
        assert limiter.keys == ["fresh"]

    def test_reset_single_key(self) -> None:
        limiter = RateLimiter(1, 60_000, per_agent=True, clock=FakeClock())
        limiter.evaluate(_intent("a"))
        limiter.evaluate(_intent("b"))
        limiter.reset("a")
        assert limiter.evaluate(_intent("a")) is None
        assert limiter.evaluate(_intent("b")) is not None

    def test_reset_all(self) -> None:
        limiter = RateLimiter(1, 60_000, clock=FakeClock())
        limiter.evaluate(_intent())
        limiter.reset()
        assert limiter.keys == []
        assert limiter.usage() == 0


class TestConfiguration:
    @pytest.mark.parametrize(
        ("max_calls", "window_ms", "max_keys"),
        [(0, 1000, 10), (-1, 1000, 10), (1, 0, 10), (1, -5, 10), (1, 1000, 0)],
    )
    def test_invalid_parameters(self, max_calls: int, window_ms: float, max_keys: int) -> None:
        with pytest.raises(RuleConfigError, match="Invalid rate_limit configuration"):
            RateLimiter(max_calls, window_ms, max_keys=max_keys)

    def test_factory_defaults(self) -> None:
        limiter = rate_limit(10, 60_000, per_agent=True)
        assert limiter.max_calls == 10
        assert limiter.window_ms == 60_000
        assert limiter.per_agent is True
        assert limiter.max_keys == 10_000


class TestThreadSafety:
    def test_concurrent_calls_never_exceed_limit(self) -> None:
        limiter = RateLimiter(50, 60_000, clock=FakeClock())
        results: list[object] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(20):
                decision = limiter.evaluate(_intent())
                with lock:
                    results.append(decision)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r is None) == 50
        assert limiter.usage() == 50

"""Integration tests for threaded dispatch and concurrent callers."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from typing import Any

import pytest

from analytics_engine.dispatch.models import DispatchMode
from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.models.contexts import PlayerContext
from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import ProviderConfig
from analytics_engine.providers.base import BaseProvider


class SlowProvider(BaseProvider):
    """Provider that blocks on each event until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.received: list[str] = []

    @property
    def name(self) -> str:
        return "Slow"

    def _send_event(self, event: AnalyticsEvent) -> None:
        self.release.wait(timeout=5)
        self.received.append(event.name)

    def _send_user_property(self, name: str, value: Any) -> None:
        pass

    def _flush(self) -> None:
        pass


def _config(identifier: str) -> ProviderConfig:
    return ProviderConfig(provider_identifier=identifier)


@pytest.fixture
def threaded_service() -> Iterator[AnalyticsService]:
    svc = AnalyticsService(dispatch_mode=DispatchMode.THREADED, max_workers=4)
    yield svc
    svc.shutdown()


# ---------------------------------------------------------------------------
# Threaded fan-out
# ---------------------------------------------------------------------------


class TestThreadedDispatch:
    """Verify that providers are called concurrently and isolated."""

    def test_slow_provider_does_not_delay_others(self, threaded_service: AnalyticsService, recorder) -> None:
        slow = SlowProvider()
        threaded_service.register_provider(slow, _config("Slow"))
        threaded_service.register_provider(recorder, _config("Fast"))
        threaded_service.initialize()

        done = threading.Event()

        def track() -> None:
            threaded_service.track_event("e")
            done.set()

        caller = threading.Thread(target=track)
        caller.start()

        deadline = time.monotonic() + 5
        while not recorder.events and time.monotonic() < deadline:
            time.sleep(0.01)

        assert recorder.event_names == ["e"]
        assert not done.is_set()

        slow.release.set()
        caller.join(timeout=5)
        assert done.is_set()
        assert slow.received == ["e"]

    def test_failures_isolated(self, threaded_service: AnalyticsService, make_recorder, make_failing) -> None:
        healthy = [make_recorder(f"R{i}") for i in range(3)]
        threaded_service.register_provider(make_failing(), _config("Failing"))
        for provider in healthy:
            threaded_service.register_provider(provider, _config(provider.name))
        threaded_service.initialize()

        result = threaded_service.track_event("e")

        assert result.failed == ["Failing"]
        assert sorted(result.delivered) == ["R0", "R1", "R2"]
        assert all(p.event_names == ["e"] for p in healthy)

    def test_results_follow_registration_order(self, threaded_service: AnalyticsService, make_recorder) -> None:
        for name in ("C", "A", "B"):
            threaded_service.register_provider(make_recorder(name), _config(name))
        threaded_service.initialize()
        result = threaded_service.track_event("e")
        assert [r.provider_name for r in result.results] == ["C", "A", "B"]


# ---------------------------------------------------------------------------
# Concurrent callers
# ---------------------------------------------------------------------------


class TestConcurrentCallers:
    """Verify that concurrent tracking, context updates and flushing are safe."""

    def test_concurrent_tracking_delivers_every_event(self, service: AnalyticsService, recorder) -> None:
        service.register_provider(recorder, _config("A"))
        service.initialize()

        def worker(index: int) -> None:
            for n in range(50):
                service.update_global_context(PlayerContext, PlayerContext(level=index))
                service.track_event(f"w{index}-{n}")
                if n % 10 == 0:
                    service.flush_all_providers()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(recorder.events) == 400
        assert len(set(recorder.event_names)) == 400
        assert all("PlayerContext.level" in event.parameters for event in recorder.events)

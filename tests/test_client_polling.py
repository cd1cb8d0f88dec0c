import threading
import time

from supplyhub.client.api_client import ApiClientError
from supplyhub.client.polling import LocationReporter, Poller, TrackingPoller


class StubClient:
    def __init__(self, fail_first=0):
        self.fail_first = fail_first
        self.tracking_calls = 0
        self.pushed = []

    def tracking(self, assignment_id):
        self.tracking_calls += 1
        if self.tracking_calls <= self.fail_first:
            raise ApiClientError(None, "Network error")
        return {"id": assignment_id, "status": "in_transit", "n": self.tracking_calls}

    def update_location(self, assignment_id, lat, lon):
        self.pushed.append((assignment_id, lat, lon))
        return {"id": assignment_id}


def test_failed_tick_is_logged_and_polling_continues(caplog):
    seen = []
    poller = TrackingPoller(StubClient(fail_first=1), "a1", seen.append, interval=0)

    assert poller.poll_once() is None
    assert poller.failures == 1
    assert "tick failed" in caplog.text

    snapshot = poller.poll_once()
    assert snapshot["n"] == 2
    assert seen == [snapshot]
    assert poller.latest is snapshot
    assert poller.ticks == 2


def test_stop_prevents_further_ticks():
    calls = []
    poller = Poller(lambda: calls.append(1), interval=0)
    poller.stop()
    assert poller.poll_once() is None
    assert calls == []


def test_background_loop_runs_until_stopped():
    ticked = threading.Event()
    calls = []

    def tick():
        calls.append(1)
        ticked.set()

    with Poller(tick, interval=0.01, name="test-loop") as poller:
        assert ticked.wait(2)
        assert poller.running
    count = len(calls)
    assert not poller.running
    poller.poll_once()
    assert len(calls) == count


def test_stop_timeout_bounds_wait_on_a_hung_tick():
    entered = threading.Event()
    release = threading.Event()

    def hung_tick():
        entered.set()
        release.wait(5)

    poller = Poller(hung_tick, interval=0, name="hung").start()
    try:
        assert entered.wait(2)
        started = time.monotonic()
        poller.stop(timeout=0.2)
        assert time.monotonic() - started < 1.5
    finally:
        release.set()
    assert poller.poll_once() is None


def test_stop_from_inside_a_tick():
    holder = {}

    def tick():
        holder["poller"].stop()

    holder["poller"] = Poller(tick, interval=0)
    holder["poller"].poll_once()
    assert holder["poller"].poll_once() is None
    assert holder["poller"].ticks == 1


def test_location_reporter_only_pushes_in_transit_with_a_fix():
    client = StubClient()
    state = {"status": "picked_up", "fix": (12.5, 77.6)}
    reporter = LocationReporter(client, "a1", position=lambda: state["fix"], status=lambda: state["status"])

    reporter.poll_once()
    assert client.pushed == []

    state["status"] = "in_transit"
    reporter.poll_once()
    assert client.pushed == [("a1", 12.5, 77.6)]

    state["fix"] = None
    reporter.poll_once()
    assert len(client.pushed) == 1


def test_default_interval_is_thirty_seconds():
    assert Poller(lambda: None).interval == 30

# supplyhub/client/polling.py
"""
Fixed-interval background loops used by the client dashboards: the public
tracking view re-reads an assignment, and the agent app pushes its position.

A failed tick is logged and the loop keeps going. ``stop()`` ends the loop;
no request starts after it returns.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from supplyhub.client.api_client import MarketplaceClient

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class Poller:
    def __init__(self, tick: Callable[[], Any], interval: float = DEFAULT_INTERVAL, name: str = "poller"):
        self._tick = tick
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> Any:
        with self._lock:
            if self._stop.is_set():
                return None
            self.ticks += 1
            try:
                return self._tick()
            except Exception:
                self.failures += 1
                logger.warning("%s tick failed", self.name, exc_info=True)
                return None

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll_once()
            self._stop.wait(self.interval)

    def start(self) -> "Poller":
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        # taking the lock waits out an in-flight tick, for at most ``timeout``
        self._stop.set()
        if self._lock.acquire(timeout=-1 if timeout is None else timeout):
            self._lock.release()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def __enter__(self) -> "Poller":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()


class TrackingPoller(Poller):
    """Re-reads the public tracking view and hands each snapshot to ``on_update``."""

    def __init__(self, client: MarketplaceClient, assignment_id: str,
                 on_update: Callable[[Dict[str, Any]], None], interval: float = DEFAULT_INTERVAL):
        self.client = client
        self.assignment_id = assignment_id
        self.on_update = on_update
        self.latest: Optional[Dict[str, Any]] = None
        super().__init__(self._fetch, interval, name=f"tracking-{assignment_id}")

    def _fetch(self) -> Dict[str, Any]:
        data = self.client.tracking(self.assignment_id)
        self.latest = data
        self.on_update(data)
        return data


class LocationReporter(Poller):
    """
    Pushes the agent's position while the assignment is in transit.
    ``position`` returns (lat, lon) or None when no fix is available.
    """

    def __init__(self, client: MarketplaceClient, assignment_id: str,
                 position: Callable[[], Optional[Tuple[float, float]]],
                 status: Callable[[], str], interval: float = DEFAULT_INTERVAL):
        self.client = client
        self.assignment_id = assignment_id
        self.position = position
        self.status = status
        super().__init__(self._push, interval, name=f"location-{assignment_id}")

    def _push(self) -> Optional[Dict[str, Any]]:
        if self.status() != "in_transit":
            return None
        fix = self.position()
        if fix is None:
            return None
        lat, lon = fix
        return self.client.update_location(self.assignment_id, lat, lon)

"""Background thread that drives a session's periodic checks."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..config import COLLISION_CHECK_INTERVAL_S
from .session import ClaimSession


class IntervalTicker:
    """Call ``session.on_tick()`` every ``interval_s`` seconds until stopped.

    Usable as a context manager. A failing tick is logged and the ticker
    keeps running; the session itself decides whether anything is due.
    """

    def __init__(
        self,
        session: ClaimSession,
        interval_s: float = COLLISION_CHECK_INTERVAL_S,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be greater than zero")
        self._session = session
        self._interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="claim-session-ticker", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def __enter__(self) -> "IntervalTicker":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop.wait(self._interval_s):
            try:
                self._session.on_tick()
            except Exception:
                self._log.exception("Periodic session check failed")
            self.ticks += 1


__all__ = ["IntervalTicker"]

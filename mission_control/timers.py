"""Wall-clock timers: the dashboard clock and one-shot delayed calls."""

import threading
from datetime import datetime
from typing import Callable

import structlog

logger = structlog.get_logger()


class Clock:
    """Refreshes ``now`` every ``interval`` seconds in a background thread."""

    def __init__(self, interval: float = 1.0, now_fn: Callable[[], datetime] = datetime.now) -> None:
        self.interval = interval
        self._now_fn = now_fn
        self.now = now_fn()
        self._listeners: list[Callable[[datetime], None]] = []
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def read(self) -> datetime:
        """Current instant, without advancing ``now``."""
        return self._now_fn()

    def tick(self) -> datetime:
        self.now = self._now_fn()
        for listener in list(self._listeners):
            try:
                listener(self.now)
            except Exception as e:
                logger.warning("Clock listener failed", error=str(e))
        return self.now

    def on_tick(self, listener: Callable[[datetime], None]) -> Callable[[], None]:
        """Register a tick listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def start(self) -> None:
        if self.running or self.interval <= 0:
            return
        self._stop.clear()

        def _runner() -> None:
            while not self._stop.wait(self.interval):
                self.tick()

        self._thread = threading.Thread(target=_runner, name="mission-control-clock", daemon=True)
        self._thread.start()
        logger.debug("Clock started", interval=self.interval)

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        logger.debug("Clock stopped")


class Scheduler:
    """Owns one-shot delayed calls so they can be cancelled together.

    After ``close`` no call runs, including one whose timer already fired
    but has not started its callback yet.
    """

    def __init__(self) -> None:
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    @property
    def closed(self) -> bool:
        return self._closed

    def call_later(self, delay: float, fn: Callable[[], None]) -> threading.Timer | None:
        """Run ``fn`` once after ``delay`` seconds. Returns None once closed."""
        if self._closed:
            logger.debug("Scheduler closed, call dropped", delay=delay)
            return None

        def _run() -> None:
            try:
                if not self._closed:
                    fn()
            except Exception as e:
                logger.warning("Scheduled call failed", error=str(e))
            finally:
                with self._lock:
                    self._timers.discard(timer)

        timer = threading.Timer(delay, _run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        logger.debug("Call scheduled", delay=delay)
        return timer

    def cancel(self, timer: threading.Timer) -> None:
        timer.cancel()
        with self._lock:
            self._timers.discard(timer)

    def cancel_all(self) -> int:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.debug("Scheduled calls cancelled", count=len(timers))
        return len(timers)

    def join(self, timeout: float | None = None) -> None:
        """Wait for every pending call to finish."""
        with self._lock:
            timers = list(self._timers)
        for timer in timers:
            timer.join(timeout)

    def close(self) -> None:
        self._closed = True
        self.cancel_all()

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ControlScheduler(threading.Thread):
    """
    Runs the control cycle once at start-up and then every ``interval_s``.

    Cycles are single-flight: the next tick is only scheduled after the
    previous cycle has returned, ticks missed while a cycle overran are
    skipped, and ``run_once`` from another thread is refused while a cycle is
    in progress. A failing cycle is logged and never stops the thread.
    """

    daemon = True

    def __init__(
        self,
        cycle: Callable[[], object],
        interval_s: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(name="control-scheduler")
        self.cycle = cycle
        self.interval_s = interval_s
        self._clock = clock
        self._busy = threading.Lock()
        self._stop_event = threading.Event()
        self.cycles_run = 0
        self.cycles_failed = 0
        self.last_result: Optional[object] = None

    def stop(self) -> None:
        logger.info("Stopping control scheduler")
        self._stop_event.set()

    def run_once(self) -> bool:
        """Run one cycle now; returns False if another cycle is still running."""
        if not self._busy.acquire(blocking=False):
            logger.warning("Control cycle still running, skipping this tick")
            return False
        try:
            self.last_result = self.cycle()
            self.cycles_run += 1
        except Exception:
            self.cycles_failed += 1
            logger.exception("Control cycle failed")
        finally:
            self._busy.release()
        return True

    def run(self) -> None:
        logger.info("Starting control scheduler, interval %.1fs", self.interval_s)

        next_tick = self._clock()
        while not self._stop_event.is_set():
            now = self._clock()
            if now >= next_tick:
                self.run_once()
                next_tick += self.interval_s
                after = self._clock()
                if after >= next_tick:
                    skipped = int((after - next_tick) // self.interval_s) + 1
                    logger.warning("Control cycle overran, skipping %d tick(s)", skipped)
                    next_tick += skipped * self.interval_s
            else:
                self._stop_event.wait(next_tick - now)

        logger.info("Control scheduler stopped")

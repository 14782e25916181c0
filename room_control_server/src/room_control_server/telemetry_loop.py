import logging
import queue
import threading
from typing import Callable, Tuple, Union

logger = logging.getLogger(__name__)

Handler = Callable[[str, Union[bytes, str]], object]


class TelemetryConsumer(threading.Thread):
    """Drains ``(topic, payload)`` pairs from the inbound queue into a handler."""

    daemon = True

    def __init__(self, q: "queue.Queue[Tuple[str, bytes]]", handler: Handler):
        super().__init__(name="telemetry-consumer")
        self._q = q
        self._handler = handler
        self._stop_event = threading.Event()

    def stop(self) -> None:
        logger.info("Stopping telemetry consumer")
        self._stop_event.set()

    def run(self) -> None:
        logger.info("Starting telemetry consumer")

        while not self._stop_event.is_set():
            try:
                topic, payload = self._q.get(timeout=1)
            except queue.Empty:
                continue

            try:
                self._handler(topic, payload)
            except Exception:
                logger.exception("Unhandled error processing message on %s", topic)
            finally:
                self._q.task_done()

        logger.info("Telemetry consumer stopped")

"""Background polling for ramdash."""

import logging
import threading
from queue import Queue

from ramdash.aggregator import MemoryAggregator
from ramdash.models import SystemSnapshot

logger = logging.getLogger(__name__)


class SnapshotMonitor:
    """
    Polls a MemoryAggregator on a fixed cadence.

    Runs in a separate daemon thread and pushes snapshots to a thread-safe
    Queue. An unexpected error in one pass is logged and the loop carries on.
    """

    def __init__(
        self,
        aggregator: MemoryAggregator,
        update_queue: Queue[SystemSnapshot],
        poll_rate: float = 3.0,
    ) -> None:
        """
        Initialize the SnapshotMonitor.

        Args:
            aggregator: Produces one snapshot per call.
            update_queue: Thread-safe queue to push snapshots to.
            poll_rate: Seconds between passes. Default 3.0s.
        """
        self._aggregator = aggregator
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SnapshotMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def refresh(self) -> None:
        """Cut the current wait short and sample again."""
        self._wake_event.set()

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self._aggregator.sample_sync())
            except Exception:
                logger.exception("Sampling pass failed")

            self._wake_event.wait(timeout=self._poll_rate)
            self._wake_event.clear()

"""
Periodic Loops
Cancellable fixed-cadence worker threads for derived metrics and snapshots
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicLoop:
    """
    Runs a tick function on a background thread at a fixed interval

    Cancellation is cooperative: stop() sets the loop's stop event, which is
    observed at the next iteration boundary. A tick already in progress is
    allowed to finish. Exceptions raised by a tick are logged and the loop
    carries on with the next one.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        tick: Callable[[], None],
        wait_first: bool = False,
    ):
        """
        Args:
            name:       Loop name (used for the thread name and logs)
            interval:   Seconds between ticks
            tick:       Work performed each iteration
            wait_first: Sleep before the first tick instead of after it
        """
        self.name = name
        self.interval = interval
        self.tick = tick
        self.wait_first = wait_first

        # State management
        self.is_running = False
        self.loop_thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()

        self.tick_count = 0
        self.error_count = 0

    def start(self):
        """
        Start the loop thread

        Returns:
            None.
        """
        if self.is_running:
            logger.warning(f"Loop '{self.name}' already running")
            return

        self.stop_event = threading.Event()
        self.tick_count = 0
        self.error_count = 0
        self.is_running = True

        self.loop_thread = threading.Thread(
            target=self._run,
            args=(self.stop_event,),
            name=f"{self.name}-loop",
            daemon=True,
        )
        self.loop_thread.start()
        logger.info(f"✓ Loop '{self.name}' started ({self.interval}s interval)")

    def stop(self):
        """
        Signal the loop to stop and wait for its thread to exit

        Returns:
            None.
        """
        if not self.is_running:
            return

        self.stop_event.set()
        if self.loop_thread and self.loop_thread is not threading.current_thread():
            self.loop_thread.join()

        self.is_running = False
        self.loop_thread = None
        logger.info(f"✓ Loop '{self.name}' stopped after {self.tick_count} ticks")

    def _run(self, stop_event: threading.Event):
        """Loop body, runs in the background thread"""
        logger.debug(f"Loop '{self.name}' running")

        if self.wait_first and stop_event.wait(self.interval):
            return

        while not stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                self.error_count += 1
                logger.error(f"Error in loop '{self.name}': {e}", exc_info=True)
            self.tick_count += 1

            # Sleep; returns early (True) when cancelled
            if stop_event.wait(self.interval):
                break

        logger.debug(f"Loop '{self.name}' exited")

    def get_status(self) -> dict:
        return {
            'name': self.name,
            'is_running': self.is_running,
            'interval': self.interval,
            'ticks': self.tick_count,
            'errors': self.error_count,
        }

    def __repr__(self):
        status = "running" if self.is_running else "stopped"
        return f"<PeriodicLoop(name={self.name}, status={status})>"

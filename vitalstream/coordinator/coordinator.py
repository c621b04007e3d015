"""
Loop Coordinator
Manages lifecycle of the periodic loops that make up a tracking session
"""

import logging
from typing import Dict, Optional

from .clock import CentralClock
from .loops import PeriodicLoop

logger = logging.getLogger(__name__)


class LoopCoordinator:
    """
    Coordinates the processing and snapshot loops with a shared clock

    Responsibilities:
    - Register loops by name
    - Start/stop loops individually or together
    - Provide the central timestamp source
    - Report loop status
    """

    def __init__(self, clock: Optional[CentralClock] = None):
        """
        Initialize loop coordinator

        Args:
            clock: Shared clock. A new CentralClock is created if omitted.
        """
        self.clock = clock if clock else CentralClock()

        # Loop registry
        self.loops: Dict[str, PeriodicLoop] = {}

        logger.info("Loop Coordinator initialized")

    def get_central_timestamp(self) -> int:
        """
        Get synchronized timestamp for all components

        Returns:
            int: Current time in epoch milliseconds
        """
        return self.clock.now_ms()

    def register_loop(self, loop: PeriodicLoop):
        """
        Register a loop with the coordinator

        Args:
            loop: PeriodicLoop instance; replaces any loop of the same name
        """
        existing = self.loops.get(loop.name)
        if existing is not None:
            logger.warning(f"Loop '{loop.name}' already registered, replacing")
            existing.stop()

        self.loops[loop.name] = loop
        logger.debug(f"Registered loop: {loop.name}")

    def start_loop(self, name: str):
        """
        Start a registered loop

        Args:
            name: Name of loop to start
        """
        if name not in self.loops:
            logger.error(f"Loop '{name}' not registered")
            raise ValueError(f"Unknown loop: {name}")

        self.loops[name].start()

    def stop_loop(self, name: str):
        """
        Stop a registered loop

        Args:
            name: Name of loop to stop
        """
        if name not in self.loops:
            logger.warning(f"Loop '{name}' not registered")
            return

        try:
            self.loops[name].stop()
        except Exception as e:
            logger.error(f"✗ Error stopping loop '{name}': {e}", exc_info=True)

    def start_all(self):
        """Start all registered loops"""
        for name in self.loops:
            self.start_loop(name)

    def stop_all(self):
        """Stop all registered loops and wait for their threads to exit"""
        for name in self.loops:
            self.stop_loop(name)

    def clear(self):
        """Stop and forget every loop"""
        self.stop_all()
        self.loops.clear()

    @property
    def any_running(self) -> bool:
        return any(loop.is_running for loop in self.loops.values())

    def get_all_status(self) -> Dict[str, dict]:
        """
        Get status of all loops

        Returns:
            dict: Mapping of loop names to their status
        """
        return {name: loop.get_status() for name, loop in self.loops.items()}

    def get_coordinator_status(self) -> dict:
        """
        Get overall coordinator status

        Returns:
            dict: Coordinator status information
        """
        return {
            'registered_loops': list(self.loops.keys()),
            'loop_count': len(self.loops),
            'clock_stats': self.clock.get_stats(),
            'loops': self.get_all_status(),
        }

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - cleanup"""
        self.stop_all()

    def __repr__(self):
        return f"<LoopCoordinator(loops={len(self.loops)})>"

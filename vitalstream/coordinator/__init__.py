"""
VitalStream Loop Coordinator
Manages the dual-rate loops with a shared clock
"""

from .clock import CentralClock, ManualClock
from .coordinator import LoopCoordinator
from .loops import PeriodicLoop

__all__ = [
    'CentralClock',
    'ManualClock',
    'LoopCoordinator',
    'PeriodicLoop',
]

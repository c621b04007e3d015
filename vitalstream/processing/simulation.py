"""
Simulation Fallback
Slowly-evolving synthetic values for channels that never produced live data
"""

import logging
import math
import random
from typing import Optional

from ..models import FIELD_EDA, LatestRecord

logger = logging.getLogger(__name__)


class SimulationFallback:
    """
    Synthetic channel state used when a sensor type is unavailable

    - EDA: random walk around 0.8 uS, floored at a minimum conductance
    - ECG: P-QRS-T waveform sampled at the simulation time step

    Pass a seeded random.Random for reproducible output.
    """

    EDA_START = 0.8
    EDA_START_SPREAD = 0.1
    EDA_STEP = 0.01
    EDA_FLOOR = 0.1

    TIME_STEP = 0.1  # Simulated seconds per snapshot tick
    DEFAULT_HEART_RATE = 72

    SIMULATED_FIELDS = frozenset({FIELD_EDA})

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source. Defaults to an unseeded random.Random.
        """
        self.rng = rng if rng is not None else random.Random()
        self.eda = self.EDA_START
        self.time_step = 0.0
        self.reset()

    def reset(self):
        """Restart the simulation with a slightly randomized EDA baseline"""
        self.time_step = 0.0
        self.eda = self.EDA_START + (self.rng.random() - 0.5) * self.EDA_START_SPREAD
        logger.debug(f"Simulation reset (eda={self.eda:.3f})")

    def step(self, record: LatestRecord):
        """
        Advance the simulation by one snapshot tick

        Args:
            record: Current latest record; channels it has observed are
                    left alone
        """
        self.time_step += self.TIME_STEP

        if not record.has_observed(FIELD_EDA):
            self.eda += (self.rng.random() - 0.5) * self.EDA_STEP
            if self.eda < self.EDA_FLOOR:
                self.eda = self.EDA_FLOOR

    def simulates(self, field_key: str) -> bool:
        return field_key in self.SIMULATED_FIELDS

    def value_for(self, field_key: str):
        """Current synthetic value for a simulated field"""
        if field_key == FIELD_EDA:
            return self.eda
        raise KeyError(f"No simulation model for field '{field_key}'")

    def ecg_sample(self, heart_rate: Optional[int] = None) -> float:
        """
        Synthesize one ECG sample at the current time step

        Args:
            heart_rate: Beats per minute; 72 when missing or zero

        Returns:
            ECG amplitude (arbitrary units)
        """
        bpm = heart_rate if heart_rate else self.DEFAULT_HEART_RATE
        period = 60.0 / bpm
        t = (self.time_step % period) / period  # Position within the beat, 0..1

        ecg = (self.rng.random() - 0.5) * 10.0

        # P wave
        if 0.1 <= t <= 0.18:
            ecg += 150.0 * math.sin(((t - 0.14) / 0.04) * math.pi)
        # Q dip
        if 0.25 <= t <= 0.27:
            ecg -= 400.0 * math.exp(-((t - 0.26) ** 2) / 0.0001)
        # R spike
        if 0.28 <= t <= 0.31:
            ecg += 1000.0 * math.exp(-((t - 0.295) ** 2) / 0.00002)
        # S dip
        if 0.32 <= t <= 0.35:
            ecg -= 300.0 * math.exp(-((t - 0.34) ** 2) / 0.00005)
        # T wave
        if 0.45 <= t <= 0.6:
            ecg += 250.0 * math.sin(((t - 0.45) / 0.15) * math.pi)

        return ecg

    def __repr__(self):
        return f"<SimulationFallback(eda={self.eda:.3f}, t={self.time_step:.1f})>"

"""
Derived-Metric Calculator
BVP, SpO2 (ratio of ratios) and respiration rate from windowed signals
"""

import logging
from typing import Optional, Sequence

import numpy as np
from scipy import fft

from ..models import DerivedMetrics
from .buffers import PpgWindow, WindowBuffer
from .config import TrackingConfig
from .state import DerivedMetricsCache

logger = logging.getLogger(__name__)


def detrend(values: Sequence[float]) -> np.ndarray:
    """
    Remove a linear trend using an ordinary least-squares fit against sample index

    Args:
        values: Signal samples

    Returns:
        Detrended signal, or the input unchanged when the regression is
        degenerate (fewer than two points, or a non-finite fit)
    """
    data = np.asarray(values, dtype=float)
    n = data.size
    if n < 2:
        return data

    x = np.arange(n, dtype=float)
    x_mean = x.mean()
    y_mean = data.mean()
    sxx = np.sum((x - x_mean) ** 2)
    slope = np.sum((x - x_mean) * (data - y_mean)) / sxx
    intercept = y_mean - slope * x_mean

    if not (np.isfinite(slope) and np.isfinite(intercept)):
        return data

    return data - (slope * x + intercept)


def rms(values: Sequence[float]) -> float:
    """Root mean square; 0.0 for an empty signal"""
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(data ** 2)))


def compute_bvp(green: Sequence[float]) -> Optional[float]:
    """
    Blood-volume pulse: latest value of the detrended green channel

    Args:
        green: Green PPG window

    Returns:
        BVP sample, or None for an empty window
    """
    bvp_signal = detrend(green)
    if bvp_signal.size == 0:
        return None
    return float(bvp_signal[-1])


def compute_spo2(red: Sequence[float], ir: Sequence[float]) -> Optional[float]:
    """
    Calculate SpO2 from red and infrared windows using the ratio of ratios

    AC is the RMS of each detrended channel, DC is the mean of the raw
    channel. SpO2 = 110 - 25 * R, clamped to 0-100.

    Args:
        red: Red PPG window
        ir:  Infrared PPG window

    Returns:
        SpO2 percentage, or None if a DC component or the IR AC is zero,
        or the result is not finite
    """
    red = np.asarray(red, dtype=float)
    ir = np.asarray(ir, dtype=float)
    if red.size == 0 or ir.size == 0:
        return None

    red_rms = rms(detrend(red))
    ir_rms = rms(detrend(ir))
    red_dc = float(red.mean())
    ir_dc = float(ir.mean())

    if red_dc == 0.0 or ir_dc == 0.0 or ir_rms == 0.0:
        return None

    ratio = (red_rms / red_dc) / (ir_rms / ir_dc)
    if not np.isfinite(ratio):
        return None

    spo2 = float(np.clip(110.0 - 25.0 * ratio, 0.0, 100.0))
    if not np.isfinite(spo2):
        return None
    return spo2


def compute_respiration_rate(
        hr_values: Sequence[float],
        sample_rate_hz: float = 1.0,
        freq_low: float = 0.1,
        freq_high: float = 0.5,
) -> Optional[float]:
    """
    Estimate respiration rate from the spectral peak of the heart-rate series

    The detrended series is zero-padded to the next power of two and
    transformed; the bin with the largest magnitude inside the respiration
    band (zero-frequency bin excluded) wins.

    Args:
        hr_values:      Heart-rate series, oldest first
        sample_rate_hz: Rate of the heart-rate series
        freq_low:       Lower band edge (Hz)
        freq_high:      Upper band edge (Hz)

    Returns:
        Breaths per minute, or None if no bin falls inside the band
    """
    detrended = detrend(hr_values)
    n = detrended.size
    if n == 0:
        return None

    padded_n = 1 << (n - 1).bit_length()
    padded = np.zeros(padded_n)
    padded[:n] = detrended

    spectrum = fft.fft(padded)
    freqs = np.arange(padded_n // 2) * sample_rate_hz / padded_n

    max_magnitude = -1.0
    peak_freq = 0.0
    for i in range(1, padded_n // 2):
        freq = freqs[i]
        if freq_low <= freq <= freq_high:
            magnitude = abs(spectrum[i])
            if magnitude > max_magnitude:
                max_magnitude = magnitude
                peak_freq = freq

    if max_magnitude == -1.0:
        return None

    return float(peak_freq * 60.0)


class DerivedMetricCalculator:
    """
    Slow-cadence processing over the PPG and heart-rate windows

    Each call to process() copies the windows, computes every metric
    independently and replaces the cache. A failing metric degrades to
    None for that tick; process() itself never raises.
    """

    def __init__(
        self,
        ppg_window: PpgWindow,
        hr_window: WindowBuffer,
        cache: DerivedMetricsCache,
        config: Optional[TrackingConfig] = None,
    ):
        """
        Args:
            ppg_window: Shared green/red/ir window
            hr_window:  Heart-rate window of (timestamp_ms, bpm) pairs
            cache:      Cache read by the snapshot loop
            config:     Tracking configuration
        """
        self.ppg_window = ppg_window
        self.hr_window = hr_window
        self.cache = cache
        self.config = config if config else TrackingConfig.for_session()

        self.run_count = 0

    def process(self) -> DerivedMetrics:
        """
        Compute all derived metrics from the current windows and cache them

        Returns:
            DerivedMetrics: The newly cached metrics
        """
        bvp, spo2 = self._process_ppg_window()
        respiration_rate = self._process_hr_window()

        metrics = DerivedMetrics(bvp=bvp, spo2=spo2, respiration_rate=respiration_rate)
        self.cache.set(metrics)
        self.run_count += 1

        logger.debug(
            f"Derived metrics: bvp={bvp}, spo2={spo2}, resp={respiration_rate}"
        )
        return metrics

    def _process_ppg_window(self):
        if len(self.ppg_window) < self.config.min_ppg_samples:
            return None, None

        green, red, ir = self.ppg_window.snapshot()
        if len(green) < self.config.min_ppg_samples:
            return None, None

        try:
            bvp = compute_bvp(green)
        except Exception as e:
            logger.error(f"Error calculating BVP: {e}", exc_info=True)
            bvp = None

        try:
            spo2 = compute_spo2(red, ir)
        except Exception as e:
            logger.error(f"Error calculating SpO2: {e}", exc_info=True)
            spo2 = None

        return bvp, spo2

    def _process_hr_window(self) -> Optional[float]:
        samples = self.hr_window.snapshot_all()
        if len(samples) < self.config.min_hr_samples_for_resp:
            return None

        try:
            hr_values = [bpm for _, bpm in samples]
            return compute_respiration_rate(
                hr_values,
                sample_rate_hz=self.config.hr_sample_rate,
                freq_low=self.config.resp_freq_low,
                freq_high=self.config.resp_freq_high,
            )
        except Exception as e:
            logger.error(f"Error calculating respiration rate: {e}", exc_info=True)
            return None

    def __repr__(self):
        return f"<DerivedMetricCalculator(runs={self.run_count})>"

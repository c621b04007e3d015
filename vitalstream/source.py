"""
Sensor Event Sources
Interface to the external sensor subscription mechanism, plus a synthetic
source for bench runs without a wearable
"""

import logging
import math
import random
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .models import ChannelKind

logger = logging.getLogger(__name__)

Listener = Callable[[ChannelKind, List[Mapping[str, Any]]], None]


class SensorSource(ABC):
    """
    External sensor event source

    Implementations deliver batches of raw data points for each subscribed
    channel by calling ``listener(kind, data_points)`` from their own threads.
    """

    @abstractmethod
    def connect(self):
        """Connect to the underlying tracking service"""

    @abstractmethod
    def is_connected(self) -> bool:
        """True when channels can be subscribed"""

    @abstractmethod
    def subscribe(self, kind: ChannelKind, listener: Listener):
        """
        Start delivering events for a channel

        Raises:
            ValueError if the channel is invalid for this device
            NotImplementedError if the channel is not supported
        """

    @abstractmethod
    def unsubscribe(self, kind: ChannelKind):
        """Stop delivering events for a channel"""

    def disconnect(self):
        """Release the underlying tracking service"""


class SyntheticSensorSource(SensorSource):
    """
    Generates plausible wrist-sensor events on background threads

    - PPG: 25 Hz pulse waveform on green/red/ir (red/ir scaled for ~97% SpO2)
    - Heart rate: 1 Hz, modulated at the breathing rate, with an IBI list
    - Accelerometer: 25 Hz near-rest gravity vector with jitter
    - Skin temperature: 1 Hz around 33 C
    - EDA: 1 Hz around 1.5 uS

    Args:
        rates:       Channel -> events per second (overrides defaults)
        unsupported: Channels that raise NotImplementedError on subscribe
        heart_rate:  Mean heart rate (bpm)
        breathing_rate: Breaths per minute used to modulate heart rate
        seed:        Random seed
    """

    DEFAULT_RATES = {
        ChannelKind.PPG: 25.0,
        ChannelKind.HEART_RATE: 1.0,
        ChannelKind.ACCELEROMETER: 25.0,
        ChannelKind.SKIN_TEMPERATURE: 1.0,
        ChannelKind.EDA: 1.0,
    }

    def __init__(
        self,
        rates: Optional[Mapping[ChannelKind, float]] = None,
        unsupported: Iterable[ChannelKind] = (),
        heart_rate: float = 70.0,
        breathing_rate: float = 12.0,
        seed: Optional[int] = None,
    ):
        self.rates = dict(self.DEFAULT_RATES)
        if rates:
            self.rates.update(rates)
        self.unsupported = set(unsupported)
        self.heart_rate = heart_rate
        self.breathing_rate = breathing_rate
        self.rng = random.Random(seed)

        self._connected = False
        self._threads: Dict[ChannelKind, threading.Thread] = {}
        self._stop_events: Dict[ChannelKind, threading.Event] = {}
        self._lock = threading.Lock()

    def connect(self):
        self._connected = True
        logger.info("✓ Synthetic sensor source connected")

    def is_connected(self) -> bool:
        return self._connected

    def subscribe(self, kind: ChannelKind, listener: Listener):
        kind = ChannelKind(kind)
        if kind in self.unsupported:
            raise NotImplementedError(f"{kind.value} is not supported by this device")

        with self._lock:
            if kind in self._threads:
                logger.warning(f"{kind.value} already subscribed, replacing")
                self._stop_channel(kind)

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._emit_loop,
                args=(kind, listener, stop_event),
                name=f"synthetic-{kind.value}",
                daemon=True,
            )
            self._stop_events[kind] = stop_event
            self._threads[kind] = thread
            thread.start()

    def unsubscribe(self, kind: ChannelKind):
        with self._lock:
            self._stop_channel(ChannelKind(kind))

    def disconnect(self):
        with self._lock:
            for kind in list(self._threads):
                self._stop_channel(kind)
        self._connected = False
        logger.info("Synthetic sensor source disconnected")

    def _stop_channel(self, kind: ChannelKind):
        stop_event = self._stop_events.pop(kind, None)
        thread = self._threads.pop(kind, None)
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _emit_loop(self, kind: ChannelKind, listener: Listener, stop_event: threading.Event):
        interval = 1.0 / self.rates[kind]
        t = 0.0
        while not stop_event.is_set():
            try:
                listener(kind, [self.generate(kind, t)])
            except Exception as e:
                logger.error(f"Listener error on {kind.value}: {e}", exc_info=True)
            t += interval
            if stop_event.wait(interval):
                break

    def generate(self, kind: ChannelKind, t: float) -> Dict[str, Any]:
        """
        Build one raw data point for a channel at simulated time t (seconds)
        """
        rng = self.rng
        if kind is ChannelKind.PPG:
            beat = math.sin(2 * math.pi * (self.heart_rate / 60.0) * t)
            return {
                'ppg_green': 1000 + 40 * beat + rng.gauss(0, 2),
                'ppg_red': 2000 + 20 * beat + rng.gauss(0, 2),
                'ppg_ir': 1500 + 30 * beat + rng.gauss(0, 2),
            }
        if kind is ChannelKind.HEART_RATE:
            resp = math.sin(2 * math.pi * (self.breathing_rate / 60.0) * t)
            hr = int(round(self.heart_rate + 4 * resp + rng.gauss(0, 0.5)))
            return {'heart_rate': hr, 'ibi_list': [int(60000 / hr)]}
        if kind is ChannelKind.ACCELEROMETER:
            return {
                'x': int(rng.gauss(0, 20)),
                'y': int(rng.gauss(0, 20)),
                'z': int(4096 + rng.gauss(0, 20)),
            }
        if kind is ChannelKind.SKIN_TEMPERATURE:
            return {'object_temperature': 33.0 + 0.2 * math.sin(t / 60.0) + rng.gauss(0, 0.02)}
        if kind is ChannelKind.EDA:
            return {'skin_conductance': max(0.1, 1.5 + rng.gauss(0, 0.05))}

        raise ValueError(f"Unknown channel: {kind}")

    def __repr__(self):
        return f"<SyntheticSensorSource(active={[k.value for k in self._threads]})>"

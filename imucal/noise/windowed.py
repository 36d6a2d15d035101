"""
Sliding-window noise estimation for triad streams.

The estimator keeps the most recent N triads in a preallocated ring buffer
and, after every new sample, recomputes the per-axis statistics of the
window contents:

    μ_i   = (1/n) Σ_k x_k,i                       window mean
    var_i = (1/(n-1)) Σ_k (x_k,i - μ_i)²          sample variance (n > 1)
    PSD_i = var_i · Δt                            noise PSD

where n ≤ N is the number of samples currently held. Full recomputation
over the window is O(N) vectorized work per sample and does not drift the
way a running add/remove sum does over long recordings.

Used by the static interval detector to measure the instantaneous noise
level of the accelerometer, whose comparison against a threshold decides
whether the device is still or moving.
"""

import logging
from typing import Optional

import numpy as np

from imucal.errors import LockedError, check_min_int, check_positive
from imucal.noise.statistics import NoiseStatistics
from imucal.types import Triad

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 101
MIN_WINDOW_SIZE = 3
DEFAULT_TIME_INTERVAL_SECONDS = 0.02


class WindowedTriadNoiseEstimator:
    """
    Noise statistics over the last ``window_size`` triads of a stream.

    Args:
        window_size: Number of samples kept in the window. Must be >= 3.
        time_interval: Sampling period. Units: seconds. Only used to
                       convert variance into PSD.

    Example:
        >>> est = WindowedTriadNoiseEstimator(window_size=5, time_interval=0.01)
        >>> for z in [-9.80, -9.82, -9.81, -9.79, -9.83]:
        ...     est.add_sample(0.0, 0.0, z)
        >>> est.is_window_filled
        True
        >>> round(est.avg_z, 3)
        -9.81
    """

    def __init__(
        self,
        window_size: int = DEFAULT_WINDOW_SIZE,
        time_interval: float = DEFAULT_TIME_INTERVAL_SECONDS,
    ):
        self._window_size = check_min_int("window_size", window_size, MIN_WINDOW_SIZE)
        self._time_interval = check_positive("time_interval", time_interval)
        self._buffer = np.zeros((self._window_size, 3))
        self._start = 0
        self._count = 0
        self._mean = np.zeros(3)
        self._variance = np.zeros(3)
        self._processed = 0
        self._running = False

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def window_size(self) -> int:
        return self._window_size

    @window_size.setter
    def window_size(self, value: int) -> None:
        if self._running:
            raise LockedError()
        value = check_min_int("window_size", value, MIN_WINDOW_SIZE)
        self._window_size = value
        self._buffer = np.zeros((value, 3))
        self._clear()

    @property
    def time_interval(self) -> float:
        return self._time_interval

    @time_interval.setter
    def time_interval(self, value: float) -> None:
        if self._running:
            raise LockedError()
        self._time_interval = check_positive("time_interval", value)

    # ------------------------------------------------------------------
    # Window state
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def number_of_processed_samples(self) -> int:
        return self._processed

    @property
    def number_of_samples_in_window(self) -> int:
        return self._count

    @property
    def is_window_filled(self) -> bool:
        return self._count == self._window_size

    @property
    def first_windowed_triad(self) -> Optional[Triad]:
        """Oldest triad in the window, or None when empty."""
        if self._count == 0:
            return None
        return Triad.from_array(self._buffer[self._start])

    @property
    def last_windowed_triad(self) -> Optional[Triad]:
        """Most recent triad in the window, or None when empty."""
        if self._count == 0:
            return None
        idx = (self._start + self._count - 1) % self._window_size
        return Triad.from_array(self._buffer[idx])

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @property
    def statistics(self) -> NoiseStatistics:
        """Snapshot of the statistics as of the last added sample."""
        if self._count == 0:
            return NoiseStatistics.empty(self._time_interval)
        return NoiseStatistics.from_moments(
            self._mean, self._variance, self._time_interval, self._count
        )

    @property
    def avg_x(self) -> float:
        return float(self._mean[0])

    @property
    def avg_y(self) -> float:
        return float(self._mean[1])

    @property
    def avg_z(self) -> float:
        return float(self._mean[2])

    @property
    def avg_triad(self) -> Triad:
        return Triad.from_array(self._mean)

    @property
    def avg_norm(self) -> float:
        return float(np.linalg.norm(self._mean))

    @property
    def variance_x(self) -> float:
        return float(self._variance[0])

    @property
    def variance_y(self) -> float:
        return float(self._variance[1])

    @property
    def variance_z(self) -> float:
        return float(self._variance[2])

    @property
    def standard_deviation_x(self) -> float:
        return float(np.sqrt(self._variance[0]))

    @property
    def standard_deviation_y(self) -> float:
        return float(np.sqrt(self._variance[1]))

    @property
    def standard_deviation_z(self) -> float:
        return float(np.sqrt(self._variance[2]))

    @property
    def standard_deviation_triad(self) -> Triad:
        return Triad.from_array(np.sqrt(self._variance))

    @property
    def standard_deviation_norm(self) -> float:
        return float(np.sqrt(np.sum(self._variance)))

    @property
    def average_standard_deviation(self) -> float:
        """Mean of the three per-axis standard deviations."""
        return float(np.mean(np.sqrt(self._variance)))

    @property
    def psd_x(self) -> float:
        return self.variance_x * self._time_interval

    @property
    def psd_y(self) -> float:
        return self.variance_y * self._time_interval

    @property
    def psd_z(self) -> float:
        return self.variance_z * self._time_interval

    @property
    def root_psd_x(self) -> float:
        return float(np.sqrt(self.psd_x))

    @property
    def root_psd_y(self) -> float:
        return float(np.sqrt(self.psd_y))

    @property
    def root_psd_z(self) -> float:
        return float(np.sqrt(self.psd_z))

    @property
    def avg_noise_psd(self) -> float:
        return (self.psd_x + self.psd_y + self.psd_z) / 3.0

    @property
    def noise_root_psd_norm(self) -> float:
        return float(np.sqrt(self.psd_x + self.psd_y + self.psd_z))

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def add_triad(self, triad: Triad) -> None:
        """
        Append a triad to the window and refresh the statistics.

        When the window is full the oldest sample is evicted (FIFO).

        Args:
            triad: New sample.

        Raises:
            LockedError: If called while another sample is being added.
        """
        self.add_sample(triad.x, triad.y, triad.z)

    def add_sample(self, x: float, y: float, z: float) -> None:
        """Append a sample given by its components. See ``add_triad``."""
        if self._running:
            raise LockedError()
        self._running = True
        try:
            if self._count == self._window_size:
                self._buffer[self._start] = (x, y, z)
                self._start = (self._start + 1) % self._window_size
            else:
                self._buffer[self._count] = (x, y, z)
                self._count += 1
            self._process_window()
        finally:
            self._running = False

    def reset(self) -> bool:
        """
        Discard the window and zero all statistics.

        Returns:
            False if there was nothing to reset, True otherwise.

        Raises:
            LockedError: If called while a sample is being added.
        """
        if self._running:
            raise LockedError()
        if self._processed == 0:
            return False
        self._clear()
        return True

    def _clear(self) -> None:
        self._start = 0
        self._count = 0
        self._mean = np.zeros(3)
        self._variance = np.zeros(3)
        self._processed = 0

    def _process_window(self) -> None:
        self._processed += 1
        # Until the window fills up samples sit in [0, count), in order.
        data = self._buffer if self._count == self._window_size else self._buffer[: self._count]
        with np.errstate(over="ignore", invalid="ignore"):
            self._mean = np.mean(data, axis=0)
            if self._count > 1:
                self._variance = np.var(data, axis=0, ddof=1)
            else:
                self._variance = np.zeros(3)

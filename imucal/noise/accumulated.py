"""
Accumulated noise estimation over an unbounded triad stream.

Keeps a running (Welford) mean and second moment of every triad added
since the last reset, so the memory use does not grow with the length of
the static interval being averaged:

    δ     = x_k - μ_{k-1}
    μ_k   = μ_{k-1} + δ / k
    M2_k  = M2_{k-1} + δ · (x_k - μ_k)
    var_k = M2_k / k                  population variance

The interval detector accumulates the initialization period and every
static interval with it; the generators use it to average the gyroscope
and magnetometer triads of the same intervals.
"""

import numpy as np

from imucal.errors import check_positive
from imucal.noise.statistics import NoiseStatistics
from imucal.noise.windowed import DEFAULT_TIME_INTERVAL_SECONDS
from imucal.types import Triad


class AccumulatedTriadNoiseEstimator:
    """
    Running mean and variance of all triads added since the last reset.

    Args:
        time_interval: Sampling period. Units: seconds.
    """

    def __init__(self, time_interval: float = DEFAULT_TIME_INTERVAL_SECONDS):
        self._time_interval = check_positive("time_interval", time_interval)
        self._count = 0
        self._mean = np.zeros(3)
        self._m2 = np.zeros(3)

    @property
    def time_interval(self) -> float:
        return self._time_interval

    @time_interval.setter
    def time_interval(self, value: float) -> None:
        self._time_interval = check_positive("time_interval", value)

    @property
    def number_of_processed_samples(self) -> int:
        return self._count

    @property
    def _variance(self) -> np.ndarray:
        if self._count == 0:
            return np.zeros(3)
        return self._m2 / self._count

    @property
    def statistics(self) -> NoiseStatistics:
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
    def variance_triad(self) -> Triad:
        return Triad.from_array(self._variance)

    @property
    def standard_deviation_triad(self) -> Triad:
        return Triad.from_array(np.sqrt(self._variance))

    @property
    def standard_deviation_norm(self) -> float:
        return float(np.sqrt(np.sum(self._variance)))

    @property
    def average_standard_deviation(self) -> float:
        return float(np.mean(np.sqrt(self._variance)))

    @property
    def psd_triad(self) -> Triad:
        return Triad.from_array(self._variance * self._time_interval)

    @property
    def avg_noise_psd(self) -> float:
        return float(np.mean(self._variance)) * self._time_interval

    def add_triad(self, triad: Triad) -> None:
        self.add_sample(triad.x, triad.y, triad.z)

    def add_sample(self, x: float, y: float, z: float) -> None:
        sample = np.array([x, y, z], dtype=float)
        self._count += 1
        with np.errstate(over="ignore", invalid="ignore"):
            delta = sample - self._mean
            self._mean = self._mean + delta / self._count
            self._m2 = self._m2 + delta * (sample - self._mean)

    def reset(self) -> bool:
        """Forget every sample. Returns False if there was nothing to forget."""
        if self._count == 0:
            return False
        self._count = 0
        self._mean = np.zeros(3)
        self._m2 = np.zeros(3)
        return True

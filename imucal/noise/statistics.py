"""
Noise statistics snapshot shared by the windowed and accumulated estimators.

Given per-axis mean and variance of a triad stream sampled every Δt
seconds, the derived quantities are:
    σ_i   = √(var_i)                 standard deviation
    PSD_i = var_i · Δt               noise power spectral density
    √PSD_i                           root PSD (noise density)
    σ̄     = (σ_x + σ_y + σ_z) / 3    average standard deviation
    ‖σ‖   = √(σ_x² + σ_y² + σ_z²)    standard deviation norm
"""

import math
from dataclasses import dataclass

import numpy as np

from imucal.types import Triad


@dataclass(frozen=True)
class NoiseStatistics:
    """
    Immutable noise statistics of a triad stream.

    Attributes:
        avg: Per-axis mean.
        variance: Per-axis variance.
        time_interval: Sampling period used to derive PSD. Units: seconds.
        number_of_samples: Number of samples the statistics summarize.
    """

    avg: Triad
    variance: Triad
    time_interval: float
    number_of_samples: int = 0

    @classmethod
    def empty(cls, time_interval: float) -> "NoiseStatistics":
        """Statistics before any sample has been added (all zeros)."""
        return cls(avg=Triad(), variance=Triad(), time_interval=time_interval)

    @classmethod
    def from_moments(
        cls,
        mean: np.ndarray,
        variance: np.ndarray,
        time_interval: float,
        number_of_samples: int,
    ) -> "NoiseStatistics":
        """Build a snapshot from mean and variance arrays of shape (3,)."""
        return cls(
            avg=Triad.from_array(mean),
            variance=Triad.from_array(variance),
            time_interval=time_interval,
            number_of_samples=number_of_samples,
        )

    @property
    def avg_norm(self) -> float:
        return self.avg.norm

    @property
    def standard_deviation(self) -> Triad:
        v = self.variance
        return Triad(math.sqrt(v.x), math.sqrt(v.y), math.sqrt(v.z))

    @property
    def average_standard_deviation(self) -> float:
        s = self.standard_deviation
        return (s.x + s.y + s.z) / 3.0

    @property
    def standard_deviation_norm(self) -> float:
        v = self.variance
        return math.sqrt(v.x + v.y + v.z)

    @property
    def psd(self) -> Triad:
        v = self.variance
        dt = self.time_interval
        return Triad(v.x * dt, v.y * dt, v.z * dt)

    @property
    def root_psd(self) -> Triad:
        p = self.psd
        return Triad(math.sqrt(p.x), math.sqrt(p.y), math.sqrt(p.z))

    @property
    def avg_noise_psd(self) -> float:
        p = self.psd
        return (p.x + p.y + p.z) / 3.0

    @property
    def noise_root_psd_norm(self) -> float:
        p = self.psd
        return math.sqrt(p.x + p.y + p.z)

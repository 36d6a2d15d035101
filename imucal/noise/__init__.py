"""
Noise estimators for triad streams.

This package provides:
    - NoiseStatistics: immutable snapshot of mean/variance/PSD per axis
    - WindowedTriadNoiseEstimator: statistics of the last N samples
    - AccumulatedTriadNoiseEstimator: running statistics since last reset
"""

from imucal.noise.accumulated import AccumulatedTriadNoiseEstimator
from imucal.noise.statistics import NoiseStatistics
from imucal.noise.windowed import (
    DEFAULT_TIME_INTERVAL_SECONDS,
    DEFAULT_WINDOW_SIZE,
    MIN_WINDOW_SIZE,
    WindowedTriadNoiseEstimator,
)

__all__ = [
    "AccumulatedTriadNoiseEstimator",
    "NoiseStatistics",
    "WindowedTriadNoiseEstimator",
    "DEFAULT_WINDOW_SIZE",
    "MIN_WINDOW_SIZE",
    "DEFAULT_TIME_INTERVAL_SECONDS",
]

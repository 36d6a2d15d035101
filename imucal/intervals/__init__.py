"""
Static / dynamic interval detection.

This package provides:
    - TriadStaticIntervalDetector: adaptive-threshold state machine
    - DetectorStatus, ErrorReason: detector states and failure reasons
    - StaticIntervalDetectorListener: no-op base class for event receivers
"""

from imucal.intervals.detector import (
    DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD,
    DEFAULT_INITIAL_STATIC_SAMPLES,
    DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR,
    DEFAULT_MINIMUM_THRESHOLD,
    DEFAULT_THRESHOLD_FACTOR,
    MIN_INITIAL_STATIC_SAMPLES,
    DetectorStatus,
    ErrorReason,
    StaticIntervalDetectorListener,
    TriadStaticIntervalDetector,
)

__all__ = [
    "TriadStaticIntervalDetector",
    "DetectorStatus",
    "ErrorReason",
    "StaticIntervalDetectorListener",
    "DEFAULT_INITIAL_STATIC_SAMPLES",
    "MIN_INITIAL_STATIC_SAMPLES",
    "DEFAULT_THRESHOLD_FACTOR",
    "DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR",
    "DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD",
    "DEFAULT_MINIMUM_THRESHOLD",
]

"""
Calibration measurements generators.

This package provides:
    - MeasurementsGenerator: interval-policy base class
    - AccelerometerMeasurementsGenerator: averaged static specific force
    - GyroscopeMeasurementsGenerator: motion sequences between static intervals
    - MagnetometerMeasurementsGenerator: averaged static magnetic flux density
    - AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator: all three
      from one stream
"""

from imucal.generators.accelerometer import AccelerometerMeasurementsGenerator
from imucal.generators.base import (
    DEFAULT_MAX_DYNAMIC_SAMPLES,
    DEFAULT_MIN_STATIC_SAMPLES,
    MeasurementsGenerator,
    MeasurementsGeneratorListener,
)
from imucal.generators.combined import (
    AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator,
    AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener,
)
from imucal.generators.gyroscope import GyroscopeMeasurementsGenerator
from imucal.generators.magnetometer import MagnetometerMeasurementsGenerator

__all__ = [
    "MeasurementsGenerator",
    "MeasurementsGeneratorListener",
    "AccelerometerMeasurementsGenerator",
    "GyroscopeMeasurementsGenerator",
    "MagnetometerMeasurementsGenerator",
    "AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator",
    "AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener",
    "DEFAULT_MIN_STATIC_SAMPLES",
    "DEFAULT_MAX_DYNAMIC_SAMPLES",
]

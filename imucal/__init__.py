"""
Streaming static/dynamic interval detection and calibration measurement
generation for inertial and magnetic sensors.

Raw accelerometer, gyroscope and magnetometer samples recorded while a
device is alternately held still and turned are segmented online into
static and dynamic intervals, and every completed still-motion-still cycle
yields one noise-annotated calibration measurement for an external
bias / scale-factor / cross-coupling calibrator.

Modules:
    types: Triad and sample / measurement value types
    noise: Windowed and accumulated noise estimators
    intervals: Adaptive-threshold static interval detector
    generators: Accelerometer, gyroscope and magnetometer measurement generators
    timing: Sampling period estimation from timestamps
    config: Validated configuration bundles and presets
    sim: Synthetic still/turn calibration recordings
    plots: Detection visualization (matplotlib)
    errors: InvalidParameterError, LockedError

Design principles:
    - One forward pass, bounded work per sample
    - Deterministic: same samples + same config = same events
    - Failures during detection are reported through listeners and return
      values, configuration mistakes by raising
"""

from imucal.config import DetectorConfig, GeneratorConfig
from imucal.errors import InvalidParameterError, LockedError
from imucal.generators import (
    AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator,
    AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener,
    AccelerometerMeasurementsGenerator,
    GyroscopeMeasurementsGenerator,
    MagnetometerMeasurementsGenerator,
    MeasurementsGenerator,
    MeasurementsGeneratorListener,
)
from imucal.intervals import (
    DetectorStatus,
    ErrorReason,
    StaticIntervalDetectorListener,
    TriadStaticIntervalDetector,
)
from imucal.noise import (
    AccumulatedTriadNoiseEstimator,
    NoiseStatistics,
    WindowedTriadNoiseEstimator,
)
from imucal.timing import TimeIntervalEstimator
from imucal.types import (
    BodyKinematics,
    BodyKinematicsAndMagneticFluxDensity,
    BodyKinematicsSequence,
    StandardDeviationBodyKinematics,
    StandardDeviationBodyMagneticFluxDensity,
    StandardDeviationTimedBodyKinematics,
    TimedBodyKinematics,
    Triad,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "Triad",
    "BodyKinematics",
    "TimedBodyKinematics",
    "BodyKinematicsAndMagneticFluxDensity",
    "StandardDeviationBodyKinematics",
    "StandardDeviationTimedBodyKinematics",
    "BodyKinematicsSequence",
    "StandardDeviationBodyMagneticFluxDensity",
    # Noise
    "NoiseStatistics",
    "WindowedTriadNoiseEstimator",
    "AccumulatedTriadNoiseEstimator",
    "TimeIntervalEstimator",
    # Detection
    "TriadStaticIntervalDetector",
    "StaticIntervalDetectorListener",
    "DetectorStatus",
    "ErrorReason",
    # Generators
    "MeasurementsGenerator",
    "MeasurementsGeneratorListener",
    "AccelerometerMeasurementsGenerator",
    "GyroscopeMeasurementsGenerator",
    "MagnetometerMeasurementsGenerator",
    "AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator",
    "AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener",
    # Config and errors
    "DetectorConfig",
    "GeneratorConfig",
    "InvalidParameterError",
    "LockedError",
]

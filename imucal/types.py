"""
Data structures for inertial and magnetic calibration samples.

This module defines the value types flowing through the calibration
pipeline:
    - Triad: one 3-axis reading of a single physical quantity
    - BodyKinematics and its timed / magnetometer-augmented variants
      (input samples)
    - Standard-deviation annotated measurements (output of the
      measurements generators, consumed by external calibrators)

Units Convention:
    All values are SI: specific force in m/s², angular rate in rad/s,
    magnetic flux density in T, timestamps in seconds.

Frame Conventions:
    - B: Body frame (sensor frame). Every triad in this module is
      resolved in the body frame.

All structures are frozen dataclasses. They are created once per sample
or per measurement and never mutated afterwards, so a measurement handed
to a listener can be kept without copying.
"""

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np

from imucal.errors import InvalidParameterError


def _check_standard_deviation(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise InvalidParameterError(
            f"{name} must be finite and non-negative, got {value}"
        )


@dataclass(frozen=True)
class Triad:
    """
    Immutable 3-component reading of a single physical quantity.

    Attributes:
        x: Value along the body x axis.
        y: Value along the body y axis.
        z: Value along the body z axis.

    Components are not range-checked: a NaN or infinite reading travels
    down to the interval detector or measurements generator, which reports
    it as a failed detection.

    Example:
        >>> f = Triad(0.0, 0.0, -9.81)
        >>> f.norm
        9.81
        >>> Triad.from_array(np.array([1.0, 2.0, 2.0])).norm
        3.0
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Triad":
        """
        Build a triad from any length-3 sequence or array.

        Args:
            values: Sequence of 3 numbers. Shape: (3,).

        Returns:
            New Triad.
        """
        arr = np.asarray(values, dtype=float)
        if arr.shape != (3,):
            raise InvalidParameterError(
                f"values must have shape (3,), got {arr.shape}"
            )
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    @property
    def norm(self) -> float:
        """Euclidean norm of the triad."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @property
    def is_finite(self) -> bool:
        """Whether no component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def as_array(self) -> np.ndarray:
        """Return the components as a new float array of shape (3,)."""
        return np.array([self.x, self.y, self.z], dtype=float)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))


@dataclass(frozen=True)
class BodyKinematics:
    """
    Accelerometer and gyroscope readings at one instant.

    Attributes:
        specific_force: Specific force f_B measured by the accelerometer.
                        Units: m/s². A static device reads -g resolved in B
                        (e.g. [0, 0, -9.81] when z points up).
        angular_rate: Angular rate ω_B measured by the gyroscope.
                      Units: rad/s.
    """

    specific_force: Triad = Triad()
    angular_rate: Triad = Triad()


@dataclass(frozen=True)
class TimedBodyKinematics:
    """Body kinematics tagged with their acquisition time (seconds)."""

    kinematics: BodyKinematics
    timestamp: float = 0.0


@dataclass(frozen=True)
class BodyKinematicsAndMagneticFluxDensity:
    """
    One IMU sample plus the magnetometer reading taken at the same instant.

    Attributes:
        kinematics: Accelerometer and gyroscope readings.
        magnetic_flux_density: Magnetic flux density B_B. Units: T.
        timestamp: Acquisition time. Units: seconds.
    """

    kinematics: BodyKinematics
    magnetic_flux_density: Triad
    timestamp: float = 0.0


@dataclass(frozen=True)
class StandardDeviationBodyKinematics:
    """
    Accelerometer calibration measurement.

    Average kinematics over an accepted static interval together with the
    noise standard deviation of each sensor, so that a calibrator can
    weight the measurement.

    Attributes:
        kinematics: Averaged specific force and angular rate.
        specific_force_standard_deviation: Units: m/s².
        angular_rate_standard_deviation: Units: rad/s.
    """

    kinematics: BodyKinematics
    specific_force_standard_deviation: float = 0.0
    angular_rate_standard_deviation: float = 0.0

    def __post_init__(self) -> None:
        _check_standard_deviation(
            "specific_force_standard_deviation",
            self.specific_force_standard_deviation,
        )
        _check_standard_deviation(
            "angular_rate_standard_deviation",
            self.angular_rate_standard_deviation,
        )


@dataclass(frozen=True)
class StandardDeviationTimedBodyKinematics:
    """Timed kinematics annotated with accelerometer and gyroscope noise."""

    kinematics: BodyKinematics
    timestamp: float = 0.0
    specific_force_standard_deviation: float = 0.0
    angular_rate_standard_deviation: float = 0.0

    def __post_init__(self) -> None:
        _check_standard_deviation(
            "specific_force_standard_deviation",
            self.specific_force_standard_deviation,
        )
        _check_standard_deviation(
            "angular_rate_standard_deviation",
            self.angular_rate_standard_deviation,
        )


@dataclass(frozen=True)
class BodyKinematicsSequence:
    """
    Gyroscope calibration measurement.

    Samples recorded while the device was moving, bracketed by the mean
    specific force of the static intervals right before and right after
    the motion. The change of gravity direction between both static
    intervals is what the integrated angular rate must explain.

    Attributes:
        items: Dynamic-interval samples in chronological order.
        before_mean_specific_force: Mean specific force before the motion.
                                    Units: m/s².
        after_mean_specific_force: Mean specific force after the motion.
                                   Units: m/s².
    """

    items: Tuple[StandardDeviationTimedBodyKinematics, ...]
    before_mean_specific_force: Triad
    after_mean_specific_force: Triad

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    @property
    def duration(self) -> float:
        """Time elapsed between the first and the last item (seconds)."""
        if len(self.items) < 2:
            return 0.0
        return self.items[-1].timestamp - self.items[0].timestamp


@dataclass(frozen=True)
class StandardDeviationBodyMagneticFluxDensity:
    """
    Magnetometer calibration measurement.

    Attributes:
        magnetic_flux_density: Average B_B over a static interval. Units: T.
        standard_deviation: Magnetometer noise standard deviation. Units: T.
    """

    magnetic_flux_density: Triad
    standard_deviation: float = 0.0

    def __post_init__(self) -> None:
        _check_standard_deviation("standard_deviation", self.standard_deviation)

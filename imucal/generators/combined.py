"""
Accelerometer, gyroscope and magnetometer measurements from one stream.

Runs the three single-sensor generators side by side on the same
recording. All three see the same specific force, so their detectors
segment the stream identically; lifecycle events are therefore reported
once (taken from the magnetometer generator, which processes each sample
last) and each generated measurement through its own callback.

A failure can still reach only some of them: a NaN angular rate is seen
by the accelerometer and gyroscope generators, a NaN magnetic flux
density only by the magnetometer generator. The first error reported by
any of them is forwarded once, and the others are then failed with the
same reason so the three stay in step until ``reset()``.

The three generators are private. Per-sensor telemetry is exposed on the
combined generator itself.
"""

from typing import Optional

from imucal.errors import LockedError
from imucal.generators.accelerometer import AccelerometerMeasurementsGenerator
from imucal.generators.base import MeasurementsGeneratorListener
from imucal.generators.gyroscope import GyroscopeMeasurementsGenerator
from imucal.generators.magnetometer import MagnetometerMeasurementsGenerator
from imucal.intervals.detector import DetectorStatus, ErrorReason
from imucal.types import (
    BodyKinematicsAndMagneticFluxDensity,
    BodyKinematicsSequence,
    StandardDeviationBodyKinematics,
    StandardDeviationBodyMagneticFluxDensity,
    TimedBodyKinematics,
    Triad,
)


class AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener:
    """No-op receiver of combined generator events."""

    def on_initialization_started(self, generator) -> None:
        pass

    def on_initialization_completed(self, generator, base_noise_level: float) -> None:
        pass

    def on_error(self, generator, reason: ErrorReason) -> None:
        pass

    def on_static_interval_detected(self, generator) -> None:
        pass

    def on_dynamic_interval_detected(self, generator) -> None:
        pass

    def on_static_interval_skipped(self, generator) -> None:
        pass

    def on_dynamic_interval_skipped(self, generator) -> None:
        pass

    def on_generated_accelerometer_measurement(
        self, generator, measurement: StandardDeviationBodyKinematics
    ) -> None:
        pass

    def on_generated_gyroscope_measurement(
        self, generator, measurement: BodyKinematicsSequence
    ) -> None:
        pass

    def on_generated_magnetometer_measurement(
        self, generator, measurement: StandardDeviationBodyMagneticFluxDensity
    ) -> None:
        pass

    def on_reset(self, generator) -> None:
        pass


class _AccelerometerEvents(MeasurementsGeneratorListener):
    def __init__(self, owner: "AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator"):
        self._owner = owner

    def on_error(self, generator, reason):
        self._owner._on_error(reason)

    def on_generated_measurement(self, generator, measurement):
        if self._owner.listener is not None:
            self._owner.listener.on_generated_accelerometer_measurement(self._owner, measurement)


class _GyroscopeEvents(MeasurementsGeneratorListener):
    def __init__(self, owner: "AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator"):
        self._owner = owner

    def on_error(self, generator, reason):
        self._owner._on_error(reason)

    def on_generated_measurement(self, generator, measurement):
        if self._owner.listener is not None:
            self._owner.listener.on_generated_gyroscope_measurement(self._owner, measurement)


class _MagnetometerEvents(MeasurementsGeneratorListener):
    def __init__(self, owner: "AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator"):
        self._owner = owner

    def _forward(self, name: str, *args) -> None:
        if self._owner.listener is not None:
            getattr(self._owner.listener, name)(self._owner, *args)

    def on_initialization_started(self, generator):
        self._forward("on_initialization_started")

    def on_initialization_completed(self, generator, base_noise_level):
        self._forward("on_initialization_completed", base_noise_level)

    def on_error(self, generator, reason):
        self._owner._on_error(reason)

    def on_static_interval_detected(self, generator):
        self._forward("on_static_interval_detected")

    def on_dynamic_interval_detected(self, generator):
        self._forward("on_dynamic_interval_detected")

    def on_static_interval_skipped(self, generator):
        self._forward("on_static_interval_skipped")

    def on_dynamic_interval_skipped(self, generator):
        self._forward("on_dynamic_interval_skipped")

    def on_generated_measurement(self, generator, measurement):
        self._forward("on_generated_magnetometer_measurement", measurement)


def _shared_setting(name: str) -> property:
    def fget(self):
        return getattr(self._accelerometer, name)

    def fset(self, value):
        self._check_not_running()
        # first assignment validates, so an invalid value changes nothing
        for generator in self._generators:
            setattr(generator, name, value)

    return property(fget, fset, doc=f"``{name}`` of the three generators.")


class AccelerometerGyroscopeAndMagnetometerMeasurementsGenerator:
    """
    Generates accelerometer, gyroscope and magnetometer measurements at once.

    Args:
        listener: Optional receiver of combined events.
        config: Optional ``GeneratorConfig`` applied to the three generators.
    """

    def __init__(
        self,
        listener: Optional[AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener] = None,
        config=None,
    ):
        self._listener = listener
        self._running = False
        self._failure_reason: Optional[ErrorReason] = None
        self._accelerometer = AccelerometerMeasurementsGenerator(_AccelerometerEvents(self))
        self._gyroscope = GyroscopeMeasurementsGenerator(_GyroscopeEvents(self))
        self._magnetometer = MagnetometerMeasurementsGenerator(_MagnetometerEvents(self))
        self._generators = (self._accelerometer, self._gyroscope, self._magnetometer)

        if config is not None:
            config.apply_to(self)

    def _check_not_running(self) -> None:
        if self._running:
            raise LockedError()

    @property
    def listener(self) -> Optional[AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener]:
        return self._listener

    @listener.setter
    def listener(
        self, value: Optional[AccelerometerGyroscopeAndMagnetometerMeasurementsGeneratorListener]
    ) -> None:
        self._check_not_running()
        self._listener = value

    min_static_samples = _shared_setting("min_static_samples")
    max_dynamic_samples = _shared_setting("max_dynamic_samples")
    window_size = _shared_setting("window_size")
    initial_static_samples = _shared_setting("initial_static_samples")
    threshold_factor = _shared_setting("threshold_factor")
    instantaneous_noise_level_factor = _shared_setting("instantaneous_noise_level_factor")
    base_noise_level_absolute_threshold = _shared_setting("base_noise_level_absolute_threshold")
    minimum_threshold = _shared_setting("minimum_threshold")
    time_interval = _shared_setting("time_interval")

    @property
    def status(self) -> DetectorStatus:
        return self._accelerometer.status

    @property
    def threshold(self) -> float:
        return self._accelerometer.threshold

    @property
    def base_noise_level(self) -> float:
        return self._accelerometer.base_noise_level

    @property
    def base_noise_level_psd(self) -> float:
        return self._accelerometer.base_noise_level_psd

    @property
    def base_noise_level_root_psd(self) -> float:
        return self._accelerometer.base_noise_level_root_psd

    @property
    def angular_rate_standard_deviation(self) -> float:
        """Gyroscope noise attached to accelerometer measurements. Units: rad/s."""
        return self._accelerometer.angular_rate_standard_deviation

    @property
    def gyroscope_base_noise_level(self) -> float:
        return self._gyroscope.gyroscope_base_noise_level

    @property
    def gyroscope_base_noise_level_psd(self) -> float:
        return self._gyroscope.gyroscope_base_noise_level_psd

    @property
    def gyroscope_base_noise_level_root_psd(self) -> float:
        return self._gyroscope.gyroscope_base_noise_level_root_psd

    @property
    def initial_avg_angular_speed(self) -> Triad:
        return self._gyroscope.initial_avg_angular_speed

    @property
    def initial_angular_speed_standard_deviation(self) -> Triad:
        return self._gyroscope.initial_angular_speed_standard_deviation

    @property
    def magnetometer_base_noise_level(self) -> float:
        return self._magnetometer.magnetometer_base_noise_level

    @property
    def failure_reason(self) -> Optional[ErrorReason]:
        """First error reported since construction or reset, if any."""
        return self._failure_reason

    @property
    def number_of_processed_samples(self) -> int:
        return self._accelerometer.number_of_processed_samples

    @property
    def number_of_samples_in_window(self) -> int:
        return self._accelerometer.number_of_samples_in_window

    @property
    def is_window_filled(self) -> bool:
        return self._accelerometer.is_window_filled

    @property
    def processed_static_samples(self) -> int:
        return self._accelerometer.processed_static_samples

    @property
    def processed_dynamic_samples(self) -> int:
        return self._accelerometer.processed_dynamic_samples

    @property
    def is_static_interval_skipped(self) -> bool:
        return self._accelerometer.is_static_interval_skipped

    @property
    def is_dynamic_interval_skipped(self) -> bool:
        return self._accelerometer.is_dynamic_interval_skipped

    @property
    def is_running(self) -> bool:
        return self._running

    def process(self, sample: BodyKinematicsAndMagneticFluxDensity) -> bool:
        """
        Feed one sample to the three generators.

        Args:
            sample: IMU and magnetometer readings taken at the same instant.

        Returns:
            False once detection has failed, True otherwise.

        Raises:
            LockedError: If called from a listener callback.
        """
        self._check_not_running()
        self._running = True
        try:
            timed = TimedBodyKinematics(sample.kinematics, sample.timestamp)
            accelerometer_ok = self._accelerometer.process(timed)
            gyroscope_ok = self._gyroscope.process(timed)
            magnetometer_ok = self._magnetometer.process(sample)
            if accelerometer_ok and gyroscope_ok and magnetometer_ok:
                return True

            for generator in self._generators:
                generator.abort(self._failure_reason)
            return False
        finally:
            self._running = False

    def _on_error(self, reason: ErrorReason) -> None:
        if self._failure_reason is not None:
            return
        self._failure_reason = reason
        if self._listener is not None:
            self._listener.on_error(self, reason)

    def reset(self) -> None:
        """Reset the three generators. Raises LockedError from a callback."""
        self._check_not_running()
        self._running = True
        try:
            for generator in self._generators:
                generator.reset()
            self._failure_reason = None
            if self._listener is not None:
                self._listener.on_reset(self)
        finally:
            self._running = False

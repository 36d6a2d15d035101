"""
Gyroscope calibration measurements.

A gyroscope cannot be calibrated from static intervals alone: the angular
rate of a still device is only the Earth rotation, far below the noise of
consumer sensors. Instead each measurement is the full motion between two
static intervals,

    f̄_before ──[ (f, ω, t) samples of the motion ]──► f̄_after

and the calibrator looks for the error model under which integrating the
corrected ω over the motion rotates f̄_before into f̄_after.
"""

import math
from typing import List, Optional, Tuple

from imucal.generators.base import MeasurementsGenerator, MeasurementsGeneratorListener
from imucal.intervals.detector import DetectorStatus
from imucal.noise.accumulated import AccumulatedTriadNoiseEstimator
from imucal.types import (
    BodyKinematicsSequence,
    StandardDeviationTimedBodyKinematics,
    TimedBodyKinematics,
    Triad,
)


class GyroscopeMeasurementsGenerator(MeasurementsGenerator):
    """
    Generates BodyKinematicsSequence measurements from TimedBodyKinematics.

    Every dynamic sample of an accepted cycle is kept, annotated with the
    accelerometer base noise level and the gyroscope noise measured during
    initialization. The sequence is bracketed by the mean specific force
    of the accepted static interval before the motion and the windowed
    mean specific force once the device is still again.

    Args:
        listener: Optional receiver of generator events.
        config: Optional ``GeneratorConfig``.
    """

    def __init__(
        self,
        listener: Optional[MeasurementsGeneratorListener] = None,
        config=None,
    ):
        self._initial_angular_rate = AccumulatedTriadNoiseEstimator()
        self._accelerometer_base_noise_level = 0.0
        self._gyroscope_base_noise_level = 0.0
        self._initial_avg_angular_speed = Triad()
        self._initial_angular_speed_standard_deviation = Triad()
        self._before_mean_specific_force: Optional[Triad] = None
        self._items: List[StandardDeviationTimedBodyKinematics] = []
        super().__init__(listener=listener, config=config)

    @property
    def accelerometer_base_noise_level(self) -> float:
        """Detector base noise level. Units: m/s²."""
        return self._accelerometer_base_noise_level

    @property
    def gyroscope_base_noise_level(self) -> float:
        """Average gyroscope standard deviation during initialization. Units: rad/s."""
        return self._gyroscope_base_noise_level

    @property
    def gyroscope_base_noise_level_psd(self) -> float:
        return self._gyroscope_base_noise_level ** 2 * self.time_interval

    @property
    def gyroscope_base_noise_level_root_psd(self) -> float:
        return self._gyroscope_base_noise_level * math.sqrt(self.time_interval)

    @property
    def initial_avg_angular_speed(self) -> Triad:
        """Mean angular rate during initialization (gyroscope bias estimate)."""
        return self._initial_avg_angular_speed

    @property
    def initial_angular_speed_standard_deviation(self) -> Triad:
        return self._initial_angular_speed_standard_deviation

    def _specific_force_of(self, sample: TimedBodyKinematics) -> Triad:
        return sample.kinematics.specific_force

    def _companion_triads_of(self, sample: TimedBodyKinematics) -> Tuple[Triad, ...]:
        return (sample.kinematics.angular_rate,)

    def _pre_process(self, sample: TimedBodyKinematics) -> None:
        if self._detector.status in (DetectorStatus.IDLE, DetectorStatus.INITIALIZING):
            self._initial_angular_rate.add_triad(sample.kinematics.angular_rate)

    def _post_process(self, sample: TimedBodyKinematics) -> None:
        if (
            self._detector.status is DetectorStatus.DYNAMIC_INTERVAL
            and self._has_reference
            and not self._dynamic_interval_skipped
        ):
            self._items.append(
                StandardDeviationTimedBodyKinematics(
                    kinematics=sample.kinematics,
                    timestamp=sample.timestamp,
                    specific_force_standard_deviation=self._accelerometer_base_noise_level,
                    angular_rate_standard_deviation=self._gyroscope_base_noise_level,
                )
            )

    def _handle_initialization_completed(self) -> None:
        self._accelerometer_base_noise_level = self._detector.base_noise_level
        self._gyroscope_base_noise_level = self._initial_angular_rate.average_standard_deviation
        self._initial_avg_angular_speed = self._initial_angular_rate.avg_triad
        self._initial_angular_speed_standard_deviation = (
            self._initial_angular_rate.standard_deviation_triad
        )

    def _handle_static_interval_accepted(
        self, accumulated_avg: Triad, accumulated_std: Triad
    ) -> None:
        self._before_mean_specific_force = accumulated_avg
        self._items = []

    def _handle_static_interval_skipped(self) -> None:
        self._discard_sequence()

    def _handle_dynamic_interval_skipped(self) -> None:
        self._discard_sequence()

    def _handle_initialization_failed(self) -> None:
        self._discard_sequence()

    def _build_measurement(self, sample: TimedBodyKinematics) -> BodyKinematicsSequence:
        sequence = BodyKinematicsSequence(
            items=tuple(self._items),
            before_mean_specific_force=self._before_mean_specific_force,
            after_mean_specific_force=self._detector.instantaneous_avg,
        )
        self._discard_sequence()
        return sequence

    def _discard_sequence(self) -> None:
        self._before_mean_specific_force = None
        self._items = []

    def _reset_session(self) -> None:
        self._initial_angular_rate.reset()
        self._accelerometer_base_noise_level = 0.0
        self._gyroscope_base_noise_level = 0.0
        self._initial_avg_angular_speed = Triad()
        self._initial_angular_speed_standard_deviation = Triad()
        self._discard_sequence()

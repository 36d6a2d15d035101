"""
Accelerometer calibration measurements.

For every accepted static interval the generator emits the average
specific force measured over it, which a calibrator compares against the
known gravity norm (or gravity vector) to estimate bias, scale factor and
cross-coupling errors. The measurement is handed out once the device is
still again after the following motion, so that a static interval
interrupted by an overlong motion never produces one.
"""

from typing import Optional, Tuple

from imucal.generators.base import MeasurementsGenerator, MeasurementsGeneratorListener
from imucal.intervals.detector import DetectorStatus
from imucal.noise.accumulated import AccumulatedTriadNoiseEstimator
from imucal.types import (
    BodyKinematics,
    StandardDeviationBodyKinematics,
    TimedBodyKinematics,
    Triad,
)


class AccelerometerMeasurementsGenerator(MeasurementsGenerator):
    """
    Generates StandardDeviationBodyKinematics from TimedBodyKinematics.

    Each measurement carries:
        - specific force: average over the accepted static interval
        - angular rate: average gyroscope reading over the same interval
        - specific force standard deviation: mean of the per-axis
          standard deviations of the accepted static interval
        - angular rate standard deviation: gyroscope noise measured
          during initialization

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
        self._static_angular_rate = AccumulatedTriadNoiseEstimator()
        self._angular_rate_standard_deviation = 0.0
        self._reference: Optional[StandardDeviationBodyKinematics] = None
        super().__init__(listener=listener, config=config)

    @property
    def angular_rate_standard_deviation(self) -> float:
        """Gyroscope noise measured during initialization. Units: rad/s."""
        return self._angular_rate_standard_deviation

    def _specific_force_of(self, sample: TimedBodyKinematics) -> Triad:
        return sample.kinematics.specific_force

    def _companion_triads_of(self, sample: TimedBodyKinematics) -> Tuple[Triad, ...]:
        return (sample.kinematics.angular_rate,)

    def _pre_process(self, sample: TimedBodyKinematics) -> None:
        if self._detector.status in (DetectorStatus.IDLE, DetectorStatus.INITIALIZING):
            self._initial_angular_rate.add_triad(sample.kinematics.angular_rate)

    def _post_process(self, sample: TimedBodyKinematics) -> None:
        if (
            self._detector.status is DetectorStatus.STATIC_INTERVAL
            and not self._initialization_completed_now
        ):
            self._static_angular_rate.add_triad(sample.kinematics.angular_rate)

    def _handle_initialization_completed(self) -> None:
        self._angular_rate_standard_deviation = (
            self._initial_angular_rate.average_standard_deviation
        )

    def _handle_static_interval_accepted(
        self, accumulated_avg: Triad, accumulated_std: Triad
    ) -> None:
        sf_std = (accumulated_std.x + accumulated_std.y + accumulated_std.z) / 3.0
        self._reference = StandardDeviationBodyKinematics(
            kinematics=BodyKinematics(
                specific_force=accumulated_avg,
                angular_rate=self._static_angular_rate.avg_triad,
            ),
            specific_force_standard_deviation=sf_std,
            angular_rate_standard_deviation=self._angular_rate_standard_deviation,
        )
        self._static_angular_rate.reset()

    def _handle_static_interval_skipped(self) -> None:
        self._reference = None
        self._static_angular_rate.reset()

    def _handle_dynamic_interval_skipped(self) -> None:
        self._reference = None

    def _handle_initialization_failed(self) -> None:
        self._reference = None

    def _build_measurement(self, sample: TimedBodyKinematics) -> StandardDeviationBodyKinematics:
        measurement = self._reference
        self._reference = None
        return measurement

    def _reset_session(self) -> None:
        self._initial_angular_rate.reset()
        self._static_angular_rate.reset()
        self._angular_rate_standard_deviation = 0.0
        self._reference = None

"""
Magnetometer calibration measurements.

Hard-iron and soft-iron calibration needs the magnetic flux density seen
in many different orientations. The generator averages B over every
accepted static interval and reports it together with the magnetometer
noise measured while the device was still during initialization.
"""

from typing import Optional, Tuple

from imucal.generators.base import MeasurementsGenerator, MeasurementsGeneratorListener
from imucal.intervals.detector import DetectorStatus
from imucal.noise.accumulated import AccumulatedTriadNoiseEstimator
from imucal.types import (
    BodyKinematicsAndMagneticFluxDensity,
    StandardDeviationBodyMagneticFluxDensity,
    Triad,
)


class MagnetometerMeasurementsGenerator(MeasurementsGenerator):
    """
    Generates StandardDeviationBodyMagneticFluxDensity measurements.

    The first static interval is averaged from the start of
    initialization, later ones from the sample where the device became
    still again.

    Args:
        listener: Optional receiver of generator events.
        config: Optional ``GeneratorConfig``.
    """

    def __init__(
        self,
        listener: Optional[MeasurementsGeneratorListener] = None,
        config=None,
    ):
        self._flux_density = AccumulatedTriadNoiseEstimator()
        self._standard_deviation = 0.0
        self._reference: Optional[Triad] = None
        super().__init__(listener=listener, config=config)

    @property
    def magnetometer_base_noise_level(self) -> float:
        """Average magnetometer standard deviation during initialization. Units: T."""
        return self._standard_deviation

    def _specific_force_of(self, sample: BodyKinematicsAndMagneticFluxDensity) -> Triad:
        return sample.kinematics.specific_force

    def _companion_triads_of(
        self, sample: BodyKinematicsAndMagneticFluxDensity
    ) -> Tuple[Triad, ...]:
        return (sample.magnetic_flux_density,)

    def _pre_process(self, sample: BodyKinematicsAndMagneticFluxDensity) -> None:
        if self._detector.status in (DetectorStatus.IDLE, DetectorStatus.INITIALIZING):
            self._flux_density.add_triad(sample.magnetic_flux_density)

    def _post_process(self, sample: BodyKinematicsAndMagneticFluxDensity) -> None:
        if (
            self._detector.status is DetectorStatus.STATIC_INTERVAL
            and not self._initialization_completed_now
        ):
            self._flux_density.add_triad(sample.magnetic_flux_density)

    def _handle_initialization_completed(self) -> None:
        self._standard_deviation = self._flux_density.average_standard_deviation

    def _handle_static_interval_accepted(
        self, accumulated_avg: Triad, accumulated_std: Triad
    ) -> None:
        self._reference = self._flux_density.avg_triad
        self._flux_density.reset()

    def _handle_static_interval_skipped(self) -> None:
        self._reference = None
        self._flux_density.reset()

    def _handle_dynamic_interval_skipped(self) -> None:
        self._reference = None

    def _handle_initialization_failed(self) -> None:
        self._reference = None
        self._flux_density.reset()

    def _build_measurement(
        self, sample: BodyKinematicsAndMagneticFluxDensity
    ) -> StandardDeviationBodyMagneticFluxDensity:
        measurement = StandardDeviationBodyMagneticFluxDensity(
            magnetic_flux_density=self._reference,
            standard_deviation=self._standard_deviation,
        )
        self._reference = None
        return measurement

    def _reset_session(self) -> None:
        self._flux_density.reset()
        self._standard_deviation = 0.0
        self._reference = None

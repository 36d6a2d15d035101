"""
Unit tests for imucal/generators/magnetometer.py.

Tests cover:
    - First measurement averaged from the start of initialization
    - Later measurements averaged from the return to still
    - Magnetometer noise measured during initialization
    - Failure and reset
    - Non-finite flux density fails detection without raising

Run with: pytest tests/imucal/test_generators_magnetometer.py -v
"""

import unittest

import numpy as np
import pytest

from imucal.config import GeneratorConfig
from imucal.generators import MagnetometerMeasurementsGenerator, MeasurementsGeneratorListener
from imucal.intervals import DetectorStatus, ErrorReason
from imucal.types import (
    BodyKinematics,
    BodyKinematicsAndMagneticFluxDensity,
    StandardDeviationBodyMagneticFluxDensity,
    Triad,
)

DT = 0.02
POSES = {
    "A": (np.array([0.0, 0.0, -9.81]), np.array([0.0, 2.2e-5, -4.2e-5])),
    "B": (np.array([0.0, -9.81, 0.0]), np.array([0.0, 4.2e-5, 2.2e-5])),
    "C": (np.array([9.81, 0.0, 0.0]), np.array([4.2e-5, 2.2e-5, 0.0])),
}


def _static(n, rng, pose):
    f, b = POSES[pose]
    return (
        f + rng.normal(0.0, 0.01, size=(n, 3)),
        b + rng.normal(0.0, 1e-7, size=(n, 3)),
    )


def _dynamic(n, rng, pose):
    f, b = POSES[pose]
    signs = np.where(np.arange(n) % 2 == 0, 1.0, -1.0)[:, None]
    return (
        f + 5.0 * signs + rng.normal(0.0, 0.01, size=(n, 3)),
        b + 1e-5 * signs + rng.normal(0.0, 1e-7, size=(n, 3)),
    )


def _samples(*blocks):
    f = np.vstack([blk[0] for blk in blocks])
    b = np.vstack([blk[1] for blk in blocks])
    return [
        BodyKinematicsAndMagneticFluxDensity(
            kinematics=BodyKinematics(specific_force=Triad.from_array(f[k])),
            magnetic_flux_density=Triad.from_array(b[k]),
            timestamp=k * DT,
        )
        for k in range(len(f))
    ]


def _with_flux_density(samples, index, flux):
    sample = samples[index]
    samples[index] = BodyKinematicsAndMagneticFluxDensity(
        kinematics=sample.kinematics, magnetic_flux_density=flux, timestamp=sample.timestamp
    )
    return samples


class MeasurementListener(MeasurementsGeneratorListener):
    def __init__(self):
        self.measurements = []
        self.errors = []

    def on_error(self, generator, reason):
        self.errors.append(reason)

    def on_generated_measurement(self, generator, measurement):
        self.measurements.append(measurement)


class TestMagnetometerGenerator(unittest.TestCase):
    """Test suite for MagnetometerMeasurementsGenerator."""

    def setUp(self) -> None:
        rng = np.random.default_rng(31)
        self.initialization = _static(155, rng, "A")
        self.first_static = _static(93, rng, "A")
        self.second_static = _static(124, rng, "B")
        self.samples = _samples(
            self.initialization,
            self.first_static,
            _dynamic(62, rng, "A"),
            self.second_static,
            _dynamic(62, rng, "B"),
            _static(62, rng, "C"),
        )
        self.listener = MeasurementListener()
        self.gen = MagnetometerMeasurementsGenerator(
            self.listener, config=GeneratorConfig.fast(31)
        )

    def _run(self):
        return [self.gen.process(s) for s in self.samples]

    def test_one_measurement_per_cycle(self) -> None:
        assert all(self._run())
        assert len(self.listener.measurements) == 2
        assert all(
            isinstance(m, StandardDeviationBodyMagneticFluxDensity)
            for m in self.listener.measurements
        )

    def test_first_measurement_includes_initialization(self) -> None:
        self._run()
        first = self.listener.measurements[0]
        expected = np.vstack([self.initialization[1], self.first_static[1]]).mean(axis=0)
        np.testing.assert_allclose(
            first.magnetic_flux_density.as_array(), expected, rtol=1e-9, atol=1e-18
        )

    def test_later_measurement_starts_when_still_again(self) -> None:
        self._run()
        second = self.listener.measurements[1]
        expected = self.second_static[1][30:].mean(axis=0)
        np.testing.assert_allclose(
            second.magnetic_flux_density.as_array(), expected, rtol=1e-9, atol=1e-18
        )

    def test_noise_from_initialization(self) -> None:
        self._run()
        # average of the per-axis deviations, not their norm
        expected = float(np.mean(self.initialization[1].std(axis=0)))
        assert self.gen.magnetometer_base_noise_level == pytest.approx(expected, rel=1e-6)
        for m in self.listener.measurements:
            assert m.standard_deviation == self.gen.magnetometer_base_noise_level

    def test_failure(self) -> None:
        self.gen.base_noise_level_absolute_threshold = 1e-3
        results = self._run()

        assert not results[154]
        assert self.gen.status is DetectorStatus.FAILED
        assert self.listener.errors == [ErrorReason.OVERALL_EXCESSIVE_MOVEMENT_DETECTED]
        assert self.listener.measurements == []

    def test_reset(self) -> None:
        self._run()
        self.gen.reset()
        assert self.gen.magnetometer_base_noise_level == 0.0
        assert self.gen.status is DetectorStatus.IDLE

        self._run()
        assert len(self.listener.measurements) == 4
        assert self.listener.measurements[:2] == self.listener.measurements[2:]


    def test_nan_flux_density_during_initialization(self) -> None:
        _with_flux_density(self.samples, 10, Triad(np.nan, 0.0, 0.0))
        results = self._run()

        assert all(results[:10])
        assert not any(results[10:])
        assert self.gen.status is DetectorStatus.FAILED
        assert self.listener.errors == [ErrorReason.NON_FINITE_NOISE_LEVEL]
        assert self.listener.measurements == []
        assert self.gen.magnetometer_base_noise_level == 0.0

    def test_infinite_flux_density_while_still(self) -> None:
        _with_flux_density(self.samples, 200, Triad(0.0, -np.inf, 0.0))
        results = self._run()

        assert all(results[:200])
        assert not any(results[200:])
        assert self.gen.status is DetectorStatus.FAILED
        assert self.listener.errors == [ErrorReason.NON_FINITE_NOISE_LEVEL]
        assert self.listener.measurements == []
        assert np.isfinite(self.gen.magnetometer_base_noise_level)

if __name__ == "__main__":
    unittest.main()

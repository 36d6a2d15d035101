"""
Unit tests for imucal/noise (windowed and accumulated noise estimators).

Tests cover:
    - Windowed mean / sample variance against numpy over the last N samples
    - FIFO eviction and the window size invariant
    - PSD, root PSD and average standard deviation
    - NoiseStatistics snapshots
    - Accumulated (running) mean / population variance
    - Configuration validation and reset semantics

Run with: pytest tests/imucal/test_noise_estimators.py -v
"""

import math
import unittest

import numpy as np
import pytest

from imucal.errors import InvalidParameterError
from imucal.noise import (
    DEFAULT_TIME_INTERVAL_SECONDS,
    DEFAULT_WINDOW_SIZE,
    AccumulatedTriadNoiseEstimator,
    NoiseStatistics,
    WindowedTriadNoiseEstimator,
)
from imucal.types import Triad


def _samples(n: int, seed: int = 0, std: float = 0.01) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return np.array([0.1, -0.2, -9.81]) + rng.normal(0.0, std, size=(n, 3))


class TestWindowedTriadNoiseEstimator(unittest.TestCase):
    """Test suite for WindowedTriadNoiseEstimator."""

    def test_defaults(self) -> None:
        est = WindowedTriadNoiseEstimator()
        assert est.window_size == DEFAULT_WINDOW_SIZE == 101
        assert est.time_interval == DEFAULT_TIME_INTERVAL_SECONDS == 0.02
        assert est.number_of_processed_samples == 0
        assert est.number_of_samples_in_window == 0
        assert not est.is_window_filled
        assert not est.is_running
        assert est.first_windowed_triad is None
        assert est.last_windowed_triad is None

    def test_statistics_before_any_sample_are_zero(self) -> None:
        stats = WindowedTriadNoiseEstimator(window_size=5).statistics
        assert stats.avg == Triad()
        assert stats.variance == Triad()
        assert stats.average_standard_deviation == 0.0
        assert stats.number_of_samples == 0

    def test_single_sample_has_zero_variance(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=5)
        est.add_sample(1.0, 2.0, 3.0)
        assert est.avg_triad == Triad(1.0, 2.0, 3.0)
        assert est.variance_x == 0.0
        assert est.variance_y == 0.0
        assert est.variance_z == 0.0

    def test_partial_window_matches_numpy(self) -> None:
        data = _samples(7)
        est = WindowedTriadNoiseEstimator(window_size=20)
        for row in data:
            est.add_triad(Triad.from_array(row))

        assert est.number_of_samples_in_window == 7
        assert not est.is_window_filled
        np.testing.assert_allclose(est.avg_triad.as_array(), data.mean(axis=0), rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(
            est.statistics.variance.as_array(), data.var(axis=0, ddof=1), rtol=1e-10
        )

    def test_full_window_matches_numpy_over_last_samples(self) -> None:
        """After eviction, statistics cover exactly the last window_size samples."""
        window = 11
        data = _samples(50, seed=3)
        est = WindowedTriadNoiseEstimator(window_size=window)
        for row in data:
            est.add_sample(*row)

        last = data[-window:]
        assert est.is_window_filled
        assert est.number_of_processed_samples == 50
        np.testing.assert_allclose(
            [est.avg_x, est.avg_y, est.avg_z], last.mean(axis=0), rtol=1e-12, atol=1e-12
        )
        np.testing.assert_allclose(
            [est.variance_x, est.variance_y, est.variance_z],
            last.var(axis=0, ddof=1),
            rtol=1e-10,
        )
        np.testing.assert_allclose(
            [est.standard_deviation_x, est.standard_deviation_y, est.standard_deviation_z],
            last.std(axis=0, ddof=1),
            rtol=1e-10,
        )

    def test_fifo_eviction(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=3)
        for k in range(5):
            est.add_sample(float(k), 0.0, 0.0)

        assert est.first_windowed_triad == Triad(2.0, 0.0, 0.0)
        assert est.last_windowed_triad == Triad(4.0, 0.0, 0.0)
        assert est.avg_x == pytest.approx(3.0)
        assert est.variance_x == pytest.approx(1.0)

    def test_window_never_exceeds_size(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=4)
        for k, row in enumerate(_samples(30)):
            est.add_sample(*row)
            assert 0 <= est.number_of_samples_in_window <= est.window_size
            assert est.number_of_samples_in_window == min(k + 1, 4)

    def test_psd_and_derived_quantities(self) -> None:
        dt = 0.01
        est = WindowedTriadNoiseEstimator(window_size=9, time_interval=dt)
        data = _samples(9, seed=5)
        for row in data:
            est.add_sample(*row)

        var = data.var(axis=0, ddof=1)
        assert est.psd_x == pytest.approx(var[0] * dt)
        assert est.psd_y == pytest.approx(var[1] * dt)
        assert est.psd_z == pytest.approx(var[2] * dt)
        assert est.root_psd_x == pytest.approx(math.sqrt(var[0] * dt))
        assert est.avg_noise_psd == pytest.approx(var.mean() * dt)
        assert est.noise_root_psd_norm == pytest.approx(math.sqrt(var.sum() * dt))
        assert est.average_standard_deviation == pytest.approx(np.sqrt(var).mean())
        assert est.standard_deviation_norm == pytest.approx(math.sqrt(var.sum()))
        assert est.avg_norm == pytest.approx(np.linalg.norm(data.mean(axis=0)))

    def test_statistics_snapshot_matches_accessors(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=6, time_interval=0.05)
        for row in _samples(10, seed=7):
            est.add_sample(*row)

        stats = est.statistics
        assert isinstance(stats, NoiseStatistics)
        assert stats.number_of_samples == 6
        assert stats.time_interval == 0.05
        assert stats.avg.x == pytest.approx(est.avg_x)
        assert stats.standard_deviation.y == pytest.approx(est.standard_deviation_y)
        assert stats.psd.z == pytest.approx(est.psd_z)
        assert stats.root_psd.x == pytest.approx(est.root_psd_x)
        assert stats.average_standard_deviation == pytest.approx(est.average_standard_deviation)
        assert stats.standard_deviation_norm == pytest.approx(est.standard_deviation_norm)
        assert stats.avg_noise_psd == pytest.approx(est.avg_noise_psd)
        assert stats.noise_root_psd_norm == pytest.approx(est.noise_root_psd_norm)
        assert stats.avg_norm == pytest.approx(est.avg_norm)

    def test_time_interval_changes_psd_only(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=5, time_interval=0.02)
        for row in _samples(5):
            est.add_sample(*row)
        variance = est.variance_x

        est.time_interval = 0.04
        assert est.variance_x == variance
        assert est.psd_x == pytest.approx(variance * 0.04)

    def test_invalid_window_size(self) -> None:
        with pytest.raises(InvalidParameterError, match="window_size"):
            WindowedTriadNoiseEstimator(window_size=2)
        est = WindowedTriadNoiseEstimator(window_size=5)
        with pytest.raises(InvalidParameterError, match="window_size"):
            est.window_size = 1
        with pytest.raises(InvalidParameterError, match="window_size"):
            est.window_size = 4.5
        assert est.window_size == 5

    def test_even_window_size_allowed(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=4)
        assert est.window_size == 4

    def test_invalid_time_interval(self) -> None:
        with pytest.raises(InvalidParameterError, match="time_interval"):
            WindowedTriadNoiseEstimator(time_interval=0.0)
        est = WindowedTriadNoiseEstimator()
        for bad in (-0.01, float("nan"), float("inf")):
            with pytest.raises(InvalidParameterError, match="time_interval"):
                est.time_interval = bad
        assert est.time_interval == 0.02

    def test_window_size_change_discards_samples(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=5)
        for row in _samples(5):
            est.add_sample(*row)

        est.window_size = 7
        assert est.window_size == 7
        assert est.number_of_samples_in_window == 0
        assert est.number_of_processed_samples == 0
        assert est.avg_x == 0.0

    def test_reset(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=5)
        assert est.reset() is False

        for row in _samples(8):
            est.add_sample(*row)
        assert est.reset() is True
        assert est.number_of_samples_in_window == 0
        assert est.number_of_processed_samples == 0
        assert est.statistics.avg == Triad()
        assert est.reset() is False

    def test_non_finite_sample_propagates(self) -> None:
        est = WindowedTriadNoiseEstimator(window_size=3)
        est.add_sample(0.0, 0.0, 0.0)
        est.add_sample(float("nan"), 0.0, 0.0)
        assert math.isnan(est.average_standard_deviation)


class TestAccumulatedTriadNoiseEstimator(unittest.TestCase):
    """Test suite for AccumulatedTriadNoiseEstimator."""

    def test_matches_numpy_population_statistics(self) -> None:
        data = _samples(1000, seed=11)
        est = AccumulatedTriadNoiseEstimator(time_interval=0.01)
        for row in data:
            est.add_triad(Triad.from_array(row))

        assert est.number_of_processed_samples == 1000
        np.testing.assert_allclose(est.avg_triad.as_array(), data.mean(axis=0), rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(
            est.variance_triad.as_array(), data.var(axis=0), rtol=1e-9, atol=1e-12
        )
        np.testing.assert_allclose(
            est.standard_deviation_triad.as_array(), data.std(axis=0), rtol=1e-9, atol=1e-12
        )
        assert est.average_standard_deviation == pytest.approx(data.std(axis=0).mean())
        assert est.standard_deviation_norm == pytest.approx(math.sqrt(data.var(axis=0).sum()))
        assert est.avg_noise_psd == pytest.approx(data.var(axis=0).mean() * 0.01)
        np.testing.assert_allclose(
            est.psd_triad.as_array(), data.var(axis=0) * 0.01, rtol=1e-9, atol=1e-12
        )

    def test_statistics_snapshot(self) -> None:
        est = AccumulatedTriadNoiseEstimator()
        assert est.statistics.number_of_samples == 0
        assert est.statistics.avg == Triad()

        est.add_sample(1.0, 2.0, 3.0)
        est.add_sample(3.0, 2.0, 1.0)
        stats = est.statistics
        assert stats.number_of_samples == 2
        assert stats.avg == Triad(2.0, 2.0, 2.0)
        assert stats.variance.x == pytest.approx(1.0)
        assert stats.variance.y == pytest.approx(0.0)

    def test_reset(self) -> None:
        est = AccumulatedTriadNoiseEstimator()
        assert est.reset() is False
        est.add_sample(1.0, 1.0, 1.0)
        assert est.reset() is True
        assert est.number_of_processed_samples == 0
        assert est.avg_norm == 0.0

    def test_invalid_time_interval(self) -> None:
        with pytest.raises(InvalidParameterError, match="time_interval"):
            AccumulatedTriadNoiseEstimator(time_interval=-1.0)


if __name__ == "__main__":
    unittest.main()

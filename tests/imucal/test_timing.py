"""
Unit tests for imucal/timing.py (TimeIntervalEstimator).

Tests cover:
    - Mean and variance of timestamp spacing
    - Finishing after total_samples timestamps
    - Warning on non-increasing timestamps
    - Reset semantics and validation

Run with: pytest tests/imucal/test_timing.py -v
"""

import unittest

import numpy as np
import pytest

from imucal.errors import InvalidParameterError
from imucal.timing import DEFAULT_TOTAL_SAMPLES, TimeIntervalEstimator


class TestTimeIntervalEstimator(unittest.TestCase):
    """Test suite for TimeIntervalEstimator."""

    def test_defaults(self) -> None:
        est = TimeIntervalEstimator()
        assert est.total_samples == DEFAULT_TOTAL_SAMPLES
        assert est.last_timestamp is None
        assert est.average_time_interval == 0.0
        assert est.time_interval_variance == 0.0
        assert est.number_of_processed_samples == 0
        assert not est.is_finished
        assert not est.is_running

    def test_uniform_timestamps(self) -> None:
        est = TimeIntervalEstimator(total_samples=1000)
        used = est.add_timestamps(np.arange(50) * 0.01)

        assert used == 50
        assert est.number_of_processed_samples == 50
        assert est.average_time_interval == pytest.approx(0.01)
        assert est.time_interval_standard_deviation == pytest.approx(0.0, abs=1e-12)
        assert est.last_timestamp == pytest.approx(0.49)

    def test_jittered_timestamps_match_numpy(self) -> None:
        rng = np.random.default_rng(42)
        intervals = 0.02 + rng.normal(0.0, 1e-4, size=200)
        timestamps = np.concatenate([[0.0], np.cumsum(intervals)])

        est = TimeIntervalEstimator(total_samples=len(timestamps))
        est.add_timestamps(timestamps)

        assert est.is_finished
        assert est.average_time_interval == pytest.approx(intervals.mean(), rel=1e-9)
        assert est.time_interval_variance == pytest.approx(intervals.var(), rel=1e-6)

    def test_finishes_after_total_samples(self) -> None:
        est = TimeIntervalEstimator(total_samples=3)
        assert est.add_timestamp(0.0)
        assert est.add_timestamp(1.0)
        assert est.add_timestamp(2.0)
        assert est.is_finished

        assert est.add_timestamp(10.0) is False
        assert est.last_timestamp == 2.0
        assert est.average_time_interval == pytest.approx(1.0)

    def test_add_timestamps_stops_when_finished(self) -> None:
        est = TimeIntervalEstimator(total_samples=5)
        assert est.add_timestamps([0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6]) == 5
        assert est.number_of_processed_samples == 5

    def test_single_timestamp_has_no_interval(self) -> None:
        est = TimeIntervalEstimator(total_samples=10)
        est.add_timestamp(5.0)
        assert est.average_time_interval == 0.0
        assert est.time_interval_variance == 0.0

    def test_non_increasing_timestamp_warns(self) -> None:
        est = TimeIntervalEstimator(total_samples=10)
        est.add_timestamp(1.0)
        with pytest.warns(UserWarning, match="Non-increasing"):
            est.add_timestamp(0.5)
        assert est.number_of_processed_samples == 2

    def test_reset(self) -> None:
        est = TimeIntervalEstimator(total_samples=2)
        assert est.reset() is False

        est.add_timestamps([0.0, 0.5])
        assert est.is_finished
        assert est.reset() is True
        assert not est.is_finished
        assert est.last_timestamp is None
        assert est.average_time_interval == 0.0
        assert est.add_timestamp(3.0)

    def test_invalid_total_samples(self) -> None:
        with pytest.raises(InvalidParameterError, match="total_samples"):
            TimeIntervalEstimator(total_samples=0)
        est = TimeIntervalEstimator()
        with pytest.raises(InvalidParameterError, match="total_samples"):
            est.total_samples = 2.5


if __name__ == "__main__":
    unittest.main()

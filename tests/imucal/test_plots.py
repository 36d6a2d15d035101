"""
Unit tests for imucal/plots.py.

Tests cover:
    - trace_detection output shapes and statuses
    - plot_interval_detection returns a two-axes figure

Run with: pytest tests/imucal/test_plots.py -v
"""

import unittest

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from imucal.config import DetectorConfig
from imucal.intervals import DetectorStatus, TriadStaticIntervalDetector
from imucal.plots import plot_interval_detection, trace_detection
from imucal.sim import simulate_calibration_stream


class TestPlots(unittest.TestCase):
    """Test suite for detection plots."""

    def setUp(self) -> None:
        self.recording = simulate_calibration_stream(
            num_poses=3, initial_static_samples=155, static_samples=100, dynamic_samples=50, seed=9
        )
        self.detector = TriadStaticIntervalDetector(
            config=DetectorConfig(window_size=31, initial_static_samples=155)
        )

    def tearDown(self) -> None:
        plt.close("all")

    def test_trace_detection(self) -> None:
        statuses, noise = trace_detection(self.detector, self.recording.specific_force)

        assert len(statuses) == len(self.recording)
        assert noise.shape == (len(self.recording),)
        assert statuses[0] is DetectorStatus.INITIALIZING
        assert statuses[-1] is DetectorStatus.STATIC_INTERVAL
        assert DetectorStatus.DYNAMIC_INTERVAL in statuses
        assert np.all(noise >= 0.0)

    def test_plot_interval_detection(self) -> None:
        statuses, noise = trace_detection(self.detector, self.recording.specific_force)
        fig = plot_interval_detection(
            self.recording.specific_force,
            statuses,
            noise,
            self.detector.threshold,
            time_interval=self.recording.time_interval,
            truth_static=self.recording.is_static,
        )

        assert isinstance(fig, plt.Figure)
        assert len(fig.axes) == 2
        assert fig.axes[0].get_title() == "Static Interval Detection"

    def test_plot_without_threshold(self) -> None:
        """Before initialization completes the threshold is 0 and not drawn."""
        data = self.recording.specific_force[:50]
        statuses, noise = trace_detection(self.detector, data)
        fig = plot_interval_detection(data, statuses, noise, self.detector.threshold)
        assert len(fig.axes) == 2


if __name__ == "__main__":
    unittest.main()

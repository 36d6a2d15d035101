"""
Visualization of static / dynamic interval detection.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from imucal.intervals.detector import DetectorStatus, TriadStaticIntervalDetector
from imucal.types import Triad

_STATUS_COLORS = {
    DetectorStatus.INITIALIZING: "lightgray",
    DetectorStatus.STATIC_INTERVAL: "tab:green",
    DetectorStatus.DYNAMIC_INTERVAL: "tab:orange",
    DetectorStatus.FAILED: "tab:red",
}


def trace_detection(
    detector: TriadStaticIntervalDetector,
    specific_force: np.ndarray,
) -> Tuple[List[DetectorStatus], np.ndarray]:
    """
    Feed a detector with a recording and record its state after every sample.

    Args:
        detector: Configured detector. It is fed as is (not reset).
        specific_force: Accelerometer readings, shape (N, 3). Units: m/s².

    Returns:
        Tuple (statuses, noise_levels): status and windowed noise level
        after each sample. noise_levels has shape (N,).
    """
    statuses = []
    noise = np.zeros(len(specific_force))
    for k, f in enumerate(np.asarray(specific_force, dtype=float)):
        detector.process(Triad.from_array(f))
        statuses.append(detector.status)
        noise[k] = detector.instantaneous_noise_level
    return statuses, noise


def _status_runs(statuses: Sequence[DetectorStatus]) -> List[Tuple[int, int, DetectorStatus]]:
    runs = []
    start = 0
    for k in range(1, len(statuses) + 1):
        if k == len(statuses) or statuses[k] is not statuses[start]:
            runs.append((start, k, statuses[start]))
            start = k
    return runs


def plot_interval_detection(
    specific_force: np.ndarray,
    statuses: Sequence[DetectorStatus],
    noise_levels: np.ndarray,
    threshold: float,
    time_interval: float = 0.02,
    truth_static: Optional[np.ndarray] = None,
    title: str = "Static Interval Detection",
) -> plt.Figure:
    """
    Plot specific force norm with detected intervals, and noise vs threshold.

    Args:
        specific_force: Accelerometer readings, shape (N, 3). Units: m/s².
        statuses: Detector status after each sample, length N.
        noise_levels: Windowed noise after each sample, shape (N,).
        threshold: Detector threshold. Units: m/s².
        time_interval: Sampling period in seconds.
        truth_static: Ground-truth still flags, shape (N,) (optional).
        title: Plot title.

    Returns:
        fig: Matplotlib figure
    """
    specific_force = np.asarray(specific_force, dtype=float)
    t = np.arange(len(specific_force)) * time_interval

    fig, (ax_f, ax_n) = plt.subplots(2, 1, figsize=(12, 7), sharex=True)

    ax_f.plot(t, np.linalg.norm(specific_force, axis=1), "k-", linewidth=0.8, label="‖f‖")
    labelled = set()
    for start, end, status in _status_runs(statuses):
        color = _STATUS_COLORS.get(status)
        if color is None:
            continue
        label = None if status in labelled else status.value.replace("_", " ")
        labelled.add(status)
        ax_f.axvspan(t[start], t[end - 1] + time_interval, color=color, alpha=0.25, label=label)

    if truth_static is not None:
        truth = np.asarray(truth_static, dtype=bool)
        ax_f.plot(t, np.where(truth, ax_f.get_ylim()[0], np.nan), "b|", markersize=4, label="truth static")

    ax_f.set_ylabel("Specific force norm (m/s²)", fontsize=12)
    ax_f.set_title(title, fontsize=14, fontweight="bold")
    ax_f.legend(fontsize=9, loc="upper right")
    ax_f.grid(True, alpha=0.3)

    positive = np.where(noise_levels > 0, noise_levels, np.nan)
    ax_n.semilogy(t, positive, "b-", linewidth=1.0, label="Windowed noise")
    if threshold > 0:
        ax_n.axhline(threshold, color="r", linestyle="--", linewidth=1.5, label="Threshold")
    ax_n.set_xlabel("Time (s)", fontsize=12)
    ax_n.set_ylabel("Noise level (m/s²)", fontsize=12)
    ax_n.legend(fontsize=9)
    ax_n.grid(True, which="both", alpha=0.3)

    plt.tight_layout()
    return fig

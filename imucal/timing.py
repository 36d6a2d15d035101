"""
Sampling period estimation from acquisition timestamps.

The noise estimators convert variance into PSD with a fixed sampling
period. Real devices rarely sample at exactly their nominal rate, so the
period is estimated from the timestamps of a recording before the
calibration pipeline is configured:

    >>> est = TimeIntervalEstimator(total_samples=4)
    >>> for t in [0.00, 0.01, 0.02, 0.03]:
    ...     est.add_timestamp(t)
    True
    True
    True
    True
    >>> round(est.average_time_interval, 6)
    0.01
    >>> est.is_finished
    True
"""

import logging
import math
import warnings
from typing import Iterable, Optional

from imucal.errors import LockedError, check_min_int

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_SAMPLES = 100000


class TimeIntervalEstimator:
    """
    Running mean and variance of the spacing between consecutive timestamps.

    Args:
        total_samples: Number of timestamps after which the estimation is
                       considered finished and further timestamps are
                       ignored. Must be >= 1.
    """

    def __init__(self, total_samples: int = DEFAULT_TOTAL_SAMPLES):
        self._total_samples = check_min_int("total_samples", total_samples, 1)
        self._last_timestamp: Optional[float] = None
        self._average = 0.0
        self._m2 = 0.0
        self._processed = 0
        self._running = False

    @property
    def total_samples(self) -> int:
        return self._total_samples

    @total_samples.setter
    def total_samples(self, value: int) -> None:
        if self._running:
            raise LockedError()
        self._total_samples = check_min_int("total_samples", value, 1)

    @property
    def last_timestamp(self) -> Optional[float]:
        """Last processed timestamp (seconds), or None before the first one."""
        return self._last_timestamp

    @property
    def average_time_interval(self) -> float:
        return self._average

    @property
    def time_interval_variance(self) -> float:
        intervals = self._processed - 1
        if intervals < 1:
            return 0.0
        return self._m2 / intervals

    @property
    def time_interval_standard_deviation(self) -> float:
        return math.sqrt(self.time_interval_variance)

    @property
    def number_of_processed_samples(self) -> int:
        return self._processed

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_finished(self) -> bool:
        return self._processed >= self._total_samples

    def add_timestamp(self, timestamp: float) -> bool:
        """
        Add the acquisition time of the next sample.

        Args:
            timestamp: Acquisition time. Units: seconds.

        Returns:
            True if the timestamp was used, False if the estimation had
            already finished and the timestamp was ignored.
        """
        if self._running:
            raise LockedError()
        if self.is_finished:
            return False

        self._running = True
        try:
            if self._last_timestamp is not None:
                interval = timestamp - self._last_timestamp
                if interval <= 0.0:
                    warnings.warn(
                        f"Non-increasing timestamp {timestamp} after "
                        f"{self._last_timestamp}; samples are out of order",
                        UserWarning,
                    )
                # n-th interval, Welford update
                n = self._processed
                delta = interval - self._average
                self._average += delta / n
                self._m2 += delta * (interval - self._average)
            self._last_timestamp = float(timestamp)
            self._processed += 1
        finally:
            self._running = False

        if self.is_finished:
            logger.debug(
                "Time interval estimation finished: %.6g s ± %.3g s",
                self._average,
                self.time_interval_standard_deviation,
            )
        return True

    def add_timestamps(self, timestamps: Iterable[float]) -> int:
        """Add timestamps in order until finished. Returns how many were used."""
        used = 0
        for t in timestamps:
            if not self.add_timestamp(t):
                break
            used += 1
        return used

    def reset(self) -> bool:
        """Forget every timestamp. Returns False if there was nothing to forget."""
        if self._running:
            raise LockedError()
        if self._processed == 0:
            return False
        self._last_timestamp = None
        self._average = 0.0
        self._m2 = 0.0
        self._processed = 0
        return True

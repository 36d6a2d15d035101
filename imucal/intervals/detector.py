"""
Static / dynamic interval detection on a triad stream.

The detector segments a stream of accelerometer triads into intervals
where the device is held still and intervals where it is being moved,
without knowing the sensor noise beforehand:

    1. Initialization: the first ``initial_static_samples`` samples are
       assumed static. Their windowed noise (the average of the per-axis
       standard deviations over the last ``window_size`` samples) becomes
       the base noise level σ_0.
    2. Detection: every later sample is classified by comparing the
       windowed noise σ_w against the threshold

           τ = max(σ_0 · threshold_factor, minimum_threshold)

       σ_w ≤ τ → static interval, σ_w > τ → dynamic interval.

While static, samples are accumulated so that the average triad of the
whole static interval (not just of the window) is available when the
device starts moving again.

State machine:

    IDLE ──first sample──► INITIALIZING ──σ_0 ok──► STATIC_INTERVAL ◄──► DYNAMIC_INTERVAL
                                │                        │                    │
                                └──────────────► FAILED ◄┴────────────────────┘

FAILED is terminal until ``reset()``. Failure is not raised: it is
reported through ``on_error`` and a False return from ``process``.
A NaN or infinite sample fails detection as soon as it arrives, and
``abort()`` lets a caller fail it from any state.

References:
    Tedaldi, Pretto, Menegatti (2014). A robust and easy to implement method
    for IMU calibration without external equipments. ICRA 2014, Section III-B
    (static detector based on windowed variance).
"""

import logging
import math
import sys
import warnings
from enum import Enum
from typing import Optional

from imucal.errors import LockedError, check_min_int, check_positive
from imucal.noise.accumulated import AccumulatedTriadNoiseEstimator
from imucal.noise.statistics import NoiseStatistics
from imucal.noise.windowed import (
    DEFAULT_TIME_INTERVAL_SECONDS,
    DEFAULT_WINDOW_SIZE,
    MIN_WINDOW_SIZE,
    WindowedTriadNoiseEstimator,
)
from imucal.types import Triad

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_STATIC_SAMPLES = 5000
MIN_INITIAL_STATIC_SAMPLES = 3
DEFAULT_THRESHOLD_FACTOR = 2.0
DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR = 2.0
DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD = sys.float_info.max
DEFAULT_MINIMUM_THRESHOLD = 1e-12


class DetectorStatus(Enum):
    """Status of a static interval detector.

    Attributes:
        IDLE: Nothing processed since construction or reset.
        INITIALIZING: Measuring the base noise level.
        STATIC_INTERVAL: Device is still.
        DYNAMIC_INTERVAL: Device is moving.
        FAILED: No usable threshold could be derived. Terminal until reset.
    """

    IDLE = "idle"
    INITIALIZING = "initializing"
    STATIC_INTERVAL = "static_interval"
    DYNAMIC_INTERVAL = "dynamic_interval"
    FAILED = "failed"


class ErrorReason(Enum):
    """Why a detector moved to FAILED.

    Attributes:
        SUDDEN_EXCESSIVE_MOVEMENT_DETECTED: Windowed noise jumped above
            ``instantaneous_noise_level_factor`` times the noise accumulated
            so far while the device was supposed to be still.
        OVERALL_EXCESSIVE_MOVEMENT_DETECTED: Base noise level measured at
            the end of initialization exceeds
            ``base_noise_level_absolute_threshold``.
        NON_FINITE_NOISE_LEVEL: An input reading, noise level or threshold
            is NaN or infinite.
    """

    SUDDEN_EXCESSIVE_MOVEMENT_DETECTED = "sudden_excessive_movement_detected"
    OVERALL_EXCESSIVE_MOVEMENT_DETECTED = "overall_excessive_movement_detected"
    NON_FINITE_NOISE_LEVEL = "non_finite_noise_level"


class StaticIntervalDetectorListener:
    """
    Receiver of detector events.

    Every method is a no-op; subclass and override the ones of interest.
    Callbacks run synchronously inside ``process``/``reset``, while the
    detector is locked: reconfiguring it from a callback raises LockedError.
    """

    def on_initialization_started(self, detector: "TriadStaticIntervalDetector") -> None:
        pass

    def on_initialization_completed(
        self, detector: "TriadStaticIntervalDetector", base_noise_level: float
    ) -> None:
        pass

    def on_error(
        self,
        detector: "TriadStaticIntervalDetector",
        accumulated_noise_level: float,
        instantaneous_noise_level: float,
        reason: ErrorReason,
    ) -> None:
        pass

    def on_static_interval_detected(
        self,
        detector: "TriadStaticIntervalDetector",
        instantaneous_avg: Triad,
        instantaneous_std: Triad,
    ) -> None:
        pass

    def on_dynamic_interval_detected(
        self,
        detector: "TriadStaticIntervalDetector",
        instantaneous_avg: Triad,
        instantaneous_std: Triad,
        accumulated_avg: Triad,
        accumulated_std: Triad,
    ) -> None:
        pass

    def on_reset(self, detector: "TriadStaticIntervalDetector") -> None:
        pass


class TriadStaticIntervalDetector:
    """
    Classifies each triad of a stream as part of a static or dynamic interval.

    Args:
        listener: Optional receiver of detector events.
        config: Optional ``DetectorConfig`` applied after construction.

    Example:
        >>> det = TriadStaticIntervalDetector()
        >>> det.window_size = 31
        >>> det.initial_static_samples = 100
        >>> for f in static_specific_force_samples:  # doctest: +SKIP
        ...     det.process(f)
        >>> det.status  # doctest: +SKIP
        <DetectorStatus.STATIC_INTERVAL: 'static_interval'>
    """

    def __init__(
        self,
        listener: Optional[StaticIntervalDetectorListener] = None,
        config=None,
    ):
        self._listener = listener
        self._initial_static_samples = DEFAULT_INITIAL_STATIC_SAMPLES
        self._threshold_factor = DEFAULT_THRESHOLD_FACTOR
        self._instantaneous_noise_level_factor = DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR
        self._base_noise_level_absolute_threshold = DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD
        self._minimum_threshold = DEFAULT_MINIMUM_THRESHOLD

        self._windowed = WindowedTriadNoiseEstimator(
            DEFAULT_WINDOW_SIZE, DEFAULT_TIME_INTERVAL_SECONDS
        )
        self._accumulated = AccumulatedTriadNoiseEstimator(DEFAULT_TIME_INTERVAL_SECONDS)

        self._running = False
        self._clear_session()

        if config is not None:
            config.apply_to(self)

    def _clear_session(self) -> None:
        self._status = DetectorStatus.IDLE
        self._base_noise_level = 0.0
        self._threshold = 0.0
        self._processed_samples = 0
        self._accumulated_avg = Triad()
        self._accumulated_std = Triad()
        self._instantaneous_avg = Triad()
        self._instantaneous_std = Triad()

    def _check_not_running(self) -> None:
        if self._running:
            raise LockedError()

    def _warn_if_window_exceeds_initialization(self) -> None:
        if self._windowed.window_size > self._initial_static_samples:
            warnings.warn(
                f"window_size ({self._windowed.window_size}) is larger than "
                f"initial_static_samples ({self._initial_static_samples}); "
                "initialization will last until the window is filled",
                UserWarning,
            )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def listener(self) -> Optional[StaticIntervalDetectorListener]:
        return self._listener

    @listener.setter
    def listener(self, value: Optional[StaticIntervalDetectorListener]) -> None:
        self._check_not_running()
        self._listener = value

    @property
    def window_size(self) -> int:
        return self._windowed.window_size

    @window_size.setter
    def window_size(self, value: int) -> None:
        self._check_not_running()
        self._windowed.window_size = check_min_int("window_size", value, MIN_WINDOW_SIZE)
        self._warn_if_window_exceeds_initialization()

    @property
    def initial_static_samples(self) -> int:
        return self._initial_static_samples

    @initial_static_samples.setter
    def initial_static_samples(self, value: int) -> None:
        self._check_not_running()
        self._initial_static_samples = check_min_int(
            "initial_static_samples", value, MIN_INITIAL_STATIC_SAMPLES
        )
        self._warn_if_window_exceeds_initialization()

    @property
    def threshold_factor(self) -> float:
        return self._threshold_factor

    @threshold_factor.setter
    def threshold_factor(self, value: float) -> None:
        self._check_not_running()
        self._threshold_factor = check_positive("threshold_factor", value)

    @property
    def instantaneous_noise_level_factor(self) -> float:
        return self._instantaneous_noise_level_factor

    @instantaneous_noise_level_factor.setter
    def instantaneous_noise_level_factor(self, value: float) -> None:
        self._check_not_running()
        self._instantaneous_noise_level_factor = check_positive(
            "instantaneous_noise_level_factor", value
        )

    @property
    def base_noise_level_absolute_threshold(self) -> float:
        return self._base_noise_level_absolute_threshold

    @base_noise_level_absolute_threshold.setter
    def base_noise_level_absolute_threshold(self, value: float) -> None:
        self._check_not_running()
        self._base_noise_level_absolute_threshold = check_positive(
            "base_noise_level_absolute_threshold", value
        )

    @property
    def minimum_threshold(self) -> float:
        return self._minimum_threshold

    @minimum_threshold.setter
    def minimum_threshold(self, value: float) -> None:
        self._check_not_running()
        self._minimum_threshold = check_positive("minimum_threshold", value)

    @property
    def time_interval(self) -> float:
        return self._windowed.time_interval

    @time_interval.setter
    def time_interval(self, value: float) -> None:
        self._check_not_running()
        value = check_positive("time_interval", value)
        self._windowed.time_interval = value
        self._accumulated.time_interval = value

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    @property
    def status(self) -> DetectorStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def base_noise_level(self) -> float:
        """Windowed noise at the end of initialization. 0 before that."""
        return self._base_noise_level

    @property
    def base_noise_level_psd(self) -> float:
        return self._base_noise_level ** 2 * self.time_interval

    @property
    def base_noise_level_root_psd(self) -> float:
        return self._base_noise_level * math.sqrt(self.time_interval)

    @property
    def threshold(self) -> float:
        """Static/dynamic decision threshold. 0 before initialization completes."""
        return self._threshold

    @property
    def processed_samples(self) -> int:
        return self._processed_samples

    @property
    def number_of_samples_in_window(self) -> int:
        return self._windowed.number_of_samples_in_window

    @property
    def is_window_filled(self) -> bool:
        return self._windowed.is_window_filled

    @property
    def instantaneous_noise_level(self) -> float:
        """Current windowed noise (average per-axis standard deviation)."""
        return self._windowed.average_standard_deviation

    @property
    def accumulated_avg(self) -> Triad:
        """Average of the last closed static interval (or of initialization)."""
        return self._accumulated_avg

    @property
    def accumulated_std(self) -> Triad:
        """Per-axis standard deviation matching ``accumulated_avg``."""
        return self._accumulated_std

    @property
    def instantaneous_avg(self) -> Triad:
        return self._instantaneous_avg

    @property
    def instantaneous_std(self) -> Triad:
        return self._instantaneous_std

    @property
    def statistics(self) -> NoiseStatistics:
        """Statistics of the current window."""
        return self._windowed.statistics

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, triad: Triad) -> bool:
        """
        Feed one specific force sample.

        Args:
            triad: Accelerometer reading. Units: m/s².

        Returns:
            False if the detector is (or has just become) FAILED, True
            otherwise.

        Raises:
            LockedError: If called from a listener callback of this detector.
        """
        return self.process_values(triad.x, triad.y, triad.z)

    def process_values(self, x: float, y: float, z: float) -> bool:
        """Feed one sample given by its components. See ``process``."""
        self._check_not_running()
        if self._status is DetectorStatus.FAILED:
            return False

        self._running = True
        try:
            self._process(x, y, z)
        finally:
            self._running = False
        return self._status is not DetectorStatus.FAILED

    def _process(self, x: float, y: float, z: float) -> None:
        if self._status is DetectorStatus.IDLE:
            self._status = DetectorStatus.INITIALIZING
            logger.debug("Initialization started")
            if self._listener is not None:
                self._listener.on_initialization_started(self)

        self._processed_samples += 1
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
            # never enters the window or the accumulator
            self._fail(
                self._accumulated.average_standard_deviation,
                self._windowed.average_standard_deviation,
                ErrorReason.NON_FINITE_NOISE_LEVEL,
            )
            return

        self._windowed.add_sample(x, y, z)
        self._instantaneous_avg = self._windowed.avg_triad
        self._instantaneous_std = self._windowed.standard_deviation_triad
        noise = self._windowed.average_standard_deviation

        if self._status is DetectorStatus.INITIALIZING:
            self._accumulated.add_sample(x, y, z)
            accumulated_noise = self._accumulated.average_standard_deviation
            filled = self._windowed.is_window_filled

            if not (math.isfinite(noise) and math.isfinite(accumulated_noise)):
                self._fail(accumulated_noise, noise, ErrorReason.NON_FINITE_NOISE_LEVEL)
                return

            if self._processed_samples < self._initial_static_samples or not filled:
                if filled and noise > self._instantaneous_noise_level_factor * accumulated_noise:
                    self._fail(
                        accumulated_noise,
                        noise,
                        ErrorReason.SUDDEN_EXCESSIVE_MOVEMENT_DETECTED,
                    )
                return

            self._complete_initialization(accumulated_noise, noise)
            return

        if not math.isfinite(noise):
            self._fail(
                self._accumulated.average_standard_deviation,
                noise,
                ErrorReason.NON_FINITE_NOISE_LEVEL,
            )
            return

        previous = self._status
        if noise <= self._threshold:
            self._status = DetectorStatus.STATIC_INTERVAL
            self._accumulated.add_sample(x, y, z)
        else:
            self._status = DetectorStatus.DYNAMIC_INTERVAL

        if previous is self._status:
            return

        if self._status is DetectorStatus.STATIC_INTERVAL:
            logger.debug(
                "Static interval detected at sample %d (noise %.3g <= %.3g)",
                self._processed_samples,
                noise,
                self._threshold,
            )
            if self._listener is not None:
                self._listener.on_static_interval_detected(
                    self, self._instantaneous_avg, self._instantaneous_std
                )
        else:
            self._snapshot_accumulated()
            logger.debug(
                "Dynamic interval detected at sample %d (noise %.3g > %.3g)",
                self._processed_samples,
                noise,
                self._threshold,
            )
            if self._listener is not None:
                self._listener.on_dynamic_interval_detected(
                    self,
                    self._instantaneous_avg,
                    self._instantaneous_std,
                    self._accumulated_avg,
                    self._accumulated_std,
                )

    def _complete_initialization(self, accumulated_noise: float, noise: float) -> None:
        base = noise
        threshold = max(base * self._threshold_factor, self._minimum_threshold)
        self._snapshot_accumulated()

        if not (math.isfinite(base) and math.isfinite(threshold)):
            self._fail(accumulated_noise, noise, ErrorReason.NON_FINITE_NOISE_LEVEL)
            return

        self._base_noise_level = base
        self._threshold = threshold

        if base > self._base_noise_level_absolute_threshold:
            self._fail(
                accumulated_noise,
                noise,
                ErrorReason.OVERALL_EXCESSIVE_MOVEMENT_DETECTED,
            )
            return

        self._status = DetectorStatus.STATIC_INTERVAL
        logger.info(
            "Initialization completed after %d samples: base noise level %.6g, "
            "threshold %.6g",
            self._processed_samples,
            base,
            threshold,
        )
        if self._listener is not None:
            self._listener.on_initialization_completed(self, base)

    def _snapshot_accumulated(self) -> None:
        self._accumulated_avg = self._accumulated.avg_triad
        self._accumulated_std = self._accumulated.standard_deviation_triad
        self._accumulated.reset()

    def _fail(self, accumulated_noise: float, noise: float, reason: ErrorReason) -> None:
        self._status = DetectorStatus.FAILED
        logger.warning(
            "Interval detection failed at sample %d: %s "
            "(accumulated noise %.6g, instantaneous noise %.6g)",
            self._processed_samples,
            reason.value,
            accumulated_noise,
            noise,
        )
        if self._listener is not None:
            self._listener.on_error(self, accumulated_noise, noise, reason)

    def abort(self, reason: ErrorReason = ErrorReason.NON_FINITE_NOISE_LEVEL) -> None:
        """
        Move to FAILED because of a problem found outside the detector.

        Used by measurements generators when a reading the detector never
        sees (angular rate, magnetic flux density) is unusable. Listeners
        get ``on_error`` exactly as for a detection failure. Does nothing
        if the detector has already failed.

        Args:
            reason: Reported failure reason.

        Raises:
            LockedError: If called from a listener callback of this detector.
        """
        self._check_not_running()
        if self._status is DetectorStatus.FAILED:
            return

        self._running = True
        try:
            self._fail(
                self._accumulated.average_standard_deviation,
                self._windowed.average_standard_deviation,
                reason,
            )
        finally:
            self._running = False

    def reset(self) -> None:
        """
        Return to IDLE, discarding the base noise level and all statistics.

        Configuration is kept.

        Raises:
            LockedError: If called from a listener callback of this detector.
        """
        self._check_not_running()
        self._running = True
        try:
            self._windowed.reset()
            self._accumulated.reset()
            self._clear_session()
            logger.debug("Detector reset")
            if self._listener is not None:
                self._listener.on_reset(self)
        finally:
            self._running = False

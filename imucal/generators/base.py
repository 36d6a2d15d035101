"""
Base class for calibration measurements generators.

A generator turns a raw sample stream, recorded while the device is
alternately held still and moved, into calibration measurements. Every
sample is fed to an internal TriadStaticIntervalDetector (always on the
specific force: the accelerometer is what tells still from moving, whatever
sensor is being calibrated), and the detector transitions drive one
measurement cycle:

    static run ──► dynamic run ──► static again ──► measurement

Interval-length policy:
    - A static run shorter than ``min_static_samples`` is too short to
      average: it is skipped and that cycle produces no measurement.
    - A dynamic run longer than ``max_dynamic_samples`` is skipped and
      that cycle is discarded. The next accepted static run starts a new
      one.

Events reach a single MeasurementsGeneratorListener. When several happen
on the same sample they are delivered in this order: initialization
started, initialization completed, error, static interval detected,
dynamic interval detected, static interval skipped, dynamic interval
skipped, generated measurement.

A NaN or infinite reading fails detection on the sample where it
arrives, whether it is the specific force or a companion reading the
detector never sees (angular rate, magnetic flux density).

Subclasses define the sample and measurement types through a small set
of hooks (``_specific_force_of``, ``_companion_triads_of``,
``_post_process``, ``_build_measurement`` and the ``_handle_*`` methods).
The detector itself stays private, so its routing and settings can only
change through the generator.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from imucal.errors import LockedError, check_min_int
from imucal.intervals.detector import (
    DetectorStatus,
    ErrorReason,
    StaticIntervalDetectorListener,
    TriadStaticIntervalDetector,
)
from imucal.noise.windowed import DEFAULT_WINDOW_SIZE, MIN_WINDOW_SIZE
from imucal.types import Triad

logger = logging.getLogger(__name__)

DEFAULT_MIN_STATIC_SAMPLES = 2 * DEFAULT_WINDOW_SIZE
DEFAULT_MAX_DYNAMIC_SAMPLES = 30 * DEFAULT_WINDOW_SIZE


class MeasurementsGeneratorListener:
    """
    Receiver of generator events.

    Every method is a no-op; subclass and override the ones of interest.
    Callbacks run while the generator is locked: reconfiguring or
    resetting it from a callback raises LockedError.
    """

    def on_initialization_started(self, generator: "MeasurementsGenerator") -> None:
        pass

    def on_initialization_completed(
        self, generator: "MeasurementsGenerator", base_noise_level: float
    ) -> None:
        pass

    def on_error(self, generator: "MeasurementsGenerator", reason: ErrorReason) -> None:
        pass

    def on_static_interval_detected(self, generator: "MeasurementsGenerator") -> None:
        pass

    def on_dynamic_interval_detected(self, generator: "MeasurementsGenerator") -> None:
        pass

    def on_static_interval_skipped(self, generator: "MeasurementsGenerator") -> None:
        pass

    def on_dynamic_interval_skipped(self, generator: "MeasurementsGenerator") -> None:
        pass

    def on_generated_measurement(
        self, generator: "MeasurementsGenerator", measurement: Any
    ) -> None:
        pass

    def on_reset(self, generator: "MeasurementsGenerator") -> None:
        pass


def _detector_setting(name: str) -> property:
    def fget(self):
        return getattr(self._detector, name)

    def fset(self, value):
        self._check_not_running()
        setattr(self._detector, name, value)

    return property(fget, fset, doc=f"Interval detector ``{name}``.")


class _DetectorEvents(StaticIntervalDetectorListener):
    """Routes detector callbacks to the owning generator."""

    def __init__(self, generator: "MeasurementsGenerator"):
        self._generator = generator

    def on_initialization_started(self, detector):
        self._generator._on_initialization_started()

    def on_initialization_completed(self, detector, base_noise_level):
        self._generator._on_initialization_completed(base_noise_level)

    def on_error(self, detector, accumulated_noise_level, instantaneous_noise_level, reason):
        self._generator._on_error(reason)

    def on_static_interval_detected(self, detector, instantaneous_avg, instantaneous_std):
        self._generator._on_dynamic_to_static()

    def on_dynamic_interval_detected(
        self, detector, instantaneous_avg, instantaneous_std, accumulated_avg, accumulated_std
    ):
        self._generator._on_static_to_dynamic(accumulated_avg, accumulated_std)


class MeasurementsGenerator(ABC):
    """
    Drives an interval detector and assembles one measurement per cycle.

    Args:
        listener: Optional receiver of generator events.
        config: Optional ``GeneratorConfig`` (or ``DetectorConfig``)
                applied after construction.
    """

    def __init__(
        self,
        listener: Optional[MeasurementsGeneratorListener] = None,
        config=None,
    ):
        self._listener = listener
        self._min_static_samples = DEFAULT_MIN_STATIC_SAMPLES
        self._max_dynamic_samples = DEFAULT_MAX_DYNAMIC_SAMPLES
        self._detector = TriadStaticIntervalDetector(listener=_DetectorEvents(self))
        self._running = False
        self._clear_counters()

        if config is not None:
            config.apply_to(self)

    def _clear_counters(self) -> None:
        self._processed_static_samples = 0
        self._processed_dynamic_samples = 0
        self._static_interval_skipped = False
        self._dynamic_interval_skipped = False
        self._has_reference = False
        self._initialization_completed_now = False
        self._static_reached_now = False

    def _check_not_running(self) -> None:
        if self._running:
            raise LockedError()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def listener(self) -> Optional[MeasurementsGeneratorListener]:
        return self._listener

    @listener.setter
    def listener(self, value: Optional[MeasurementsGeneratorListener]) -> None:
        self._check_not_running()
        self._listener = value

    @property
    def min_static_samples(self) -> int:
        """Shortest static run accepted as a measurement reference."""
        return self._min_static_samples

    @min_static_samples.setter
    def min_static_samples(self, value: int) -> None:
        self._check_not_running()
        self._min_static_samples = check_min_int("min_static_samples", value, MIN_WINDOW_SIZE)

    @property
    def max_dynamic_samples(self) -> int:
        """Longest dynamic run accepted within a measurement cycle."""
        return self._max_dynamic_samples

    @max_dynamic_samples.setter
    def max_dynamic_samples(self, value: int) -> None:
        self._check_not_running()
        self._max_dynamic_samples = check_min_int("max_dynamic_samples", value, MIN_WINDOW_SIZE)

    window_size = _detector_setting("window_size")
    initial_static_samples = _detector_setting("initial_static_samples")
    threshold_factor = _detector_setting("threshold_factor")
    instantaneous_noise_level_factor = _detector_setting("instantaneous_noise_level_factor")
    base_noise_level_absolute_threshold = _detector_setting("base_noise_level_absolute_threshold")
    minimum_threshold = _detector_setting("minimum_threshold")
    time_interval = _detector_setting("time_interval")

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    @property
    def status(self) -> DetectorStatus:
        return self._detector.status

    @property
    def threshold(self) -> float:
        return self._detector.threshold

    @property
    def base_noise_level(self) -> float:
        return self._detector.base_noise_level

    @property
    def base_noise_level_psd(self) -> float:
        return self._detector.base_noise_level_psd

    @property
    def base_noise_level_root_psd(self) -> float:
        return self._detector.base_noise_level_root_psd

    @property
    def number_of_processed_samples(self) -> int:
        return self._detector.processed_samples

    @property
    def number_of_samples_in_window(self) -> int:
        return self._detector.number_of_samples_in_window

    @property
    def is_window_filled(self) -> bool:
        return self._detector.is_window_filled

    @property
    def instantaneous_noise_level(self) -> float:
        """Current windowed noise of the specific force. Units: m/s²."""
        return self._detector.instantaneous_noise_level

    @property
    def accumulated_avg(self) -> Triad:
        """Mean specific force of the last closed static interval."""
        return self._detector.accumulated_avg

    @property
    def accumulated_std(self) -> Triad:
        return self._detector.accumulated_std

    @property
    def processed_static_samples(self) -> int:
        """Length of the current static run (0 while moving)."""
        return self._processed_static_samples

    @property
    def processed_dynamic_samples(self) -> int:
        """Length of the current dynamic run (0 while still)."""
        return self._processed_dynamic_samples

    @property
    def is_static_interval_skipped(self) -> bool:
        """Whether the last closed static run was too short."""
        return self._static_interval_skipped

    @property
    def is_dynamic_interval_skipped(self) -> bool:
        """Whether the current dynamic run has exceeded ``max_dynamic_samples``."""
        return self._dynamic_interval_skipped

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process(self, sample) -> bool:
        """
        Feed one sample.

        Args:
            sample: Input sample of the type handled by the subclass.

        Returns:
            False if the detector is (or has just become) FAILED, True
            otherwise. Call ``reset()`` to start over after a failure.

        Raises:
            LockedError: If called from a listener callback of this generator.
        """
        self._check_not_running()
        self._running = True
        try:
            self._initialization_completed_now = False
            self._static_reached_now = False

            if not all(triad.is_finite for triad in self._companion_triads_of(sample)):
                self._detector.abort(ErrorReason.NON_FINITE_NOISE_LEVEL)
                return False

            self._pre_process(sample)
            result = self._detector.process(self._specific_force_of(sample))
            if result:
                self._update_counters()
                self._check_dynamic_interval_length()
                self._post_process(sample)
                if self._static_reached_now:
                    self._close_cycle(sample)
            return result
        finally:
            self._running = False

    def abort(self, reason: ErrorReason = ErrorReason.NON_FINITE_NOISE_LEVEL) -> None:
        """
        Fail detection without feeding a sample.

        ``on_error`` is reported as for any other failure and every later
        ``process`` call returns False until ``reset()``. Does nothing if
        detection has already failed.

        Args:
            reason: Reported failure reason.

        Raises:
            LockedError: If called from a listener callback of this generator.
        """
        self._check_not_running()
        self._running = True
        try:
            self._detector.abort(reason)
        finally:
            self._running = False

    def reset(self) -> None:
        """
        Return to IDLE, discarding every in-progress cycle.

        Configuration is kept.

        Raises:
            LockedError: If called from a listener callback of this generator.
        """
        self._check_not_running()
        self._running = True
        try:
            self._detector.reset()
            self._clear_counters()
            self._reset_session()
            if self._listener is not None:
                self._listener.on_reset(self)
        finally:
            self._running = False

    def _update_counters(self) -> None:
        status = self._detector.status
        if status is DetectorStatus.STATIC_INTERVAL:
            # sample that closes initialization belongs to the initial period
            if not self._initialization_completed_now:
                self._processed_static_samples += 1
            self._processed_dynamic_samples = 0
        elif status is DetectorStatus.DYNAMIC_INTERVAL:
            self._processed_dynamic_samples += 1
            self._processed_static_samples = 0

    def _check_dynamic_interval_length(self) -> None:
        if self._dynamic_interval_skipped:
            return
        if self._processed_dynamic_samples > self._max_dynamic_samples:
            self._dynamic_interval_skipped = True
            self._has_reference = False
            self._handle_dynamic_interval_skipped()
            logger.warning(
                "Dynamic interval skipped: longer than %d samples",
                self._max_dynamic_samples,
            )
            if self._listener is not None:
                self._listener.on_dynamic_interval_skipped(self)

    def _close_cycle(self, sample) -> None:
        if self._has_reference and not self._dynamic_interval_skipped:
            measurement = self._build_measurement(sample)
            logger.info(
                "Generated %s at sample %d",
                type(measurement).__name__,
                self._detector.processed_samples,
            )
            self._has_reference = False
            if self._listener is not None:
                self._listener.on_generated_measurement(self, measurement)
        self._dynamic_interval_skipped = False

    # ------------------------------------------------------------------
    # Detector events
    # ------------------------------------------------------------------

    def _on_initialization_started(self) -> None:
        if self._listener is not None:
            self._listener.on_initialization_started(self)

    def _on_initialization_completed(self, base_noise_level: float) -> None:
        self._initialization_completed_now = True
        self._handle_initialization_completed()
        if self._listener is not None:
            self._listener.on_initialization_completed(self, base_noise_level)

    def _on_error(self, reason: ErrorReason) -> None:
        self._has_reference = False
        self._handle_initialization_failed()
        if self._listener is not None:
            self._listener.on_error(self, reason)

    def _on_dynamic_to_static(self) -> None:
        self._static_reached_now = True

    def _on_static_to_dynamic(self, accumulated_avg: Triad, accumulated_std: Triad) -> None:
        self._static_interval_skipped = (
            self._processed_static_samples < self._min_static_samples
        )
        if self._static_interval_skipped:
            self._has_reference = False
            self._handle_static_interval_skipped()
            logger.warning(
                "Static interval skipped: %d samples, %d required",
                self._processed_static_samples,
                self._min_static_samples,
            )
            if self._listener is not None:
                self._listener.on_dynamic_interval_detected(self)
                self._listener.on_static_interval_skipped(self)
            return

        self._has_reference = True
        self._handle_static_interval_accepted(accumulated_avg, accumulated_std)
        logger.debug(
            "Static interval accepted: %d samples, mean specific force %s",
            self._processed_static_samples,
            accumulated_avg,
        )
        if self._listener is not None:
            self._listener.on_static_interval_detected(self)
            self._listener.on_dynamic_interval_detected(self)

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _specific_force_of(self, sample) -> Triad:
        """Accelerometer triad of an input sample."""
        pass

    def _companion_triads_of(self, sample) -> Tuple[Triad, ...]:
        """Readings used by the subclass that the detector never sees."""
        return ()

    def _pre_process(self, sample) -> None:
        """Per-sample work run before the detector sees the sample."""
        pass

    @abstractmethod
    def _post_process(self, sample) -> None:
        """Per-sample accumulation, run after the detector and counters."""
        pass

    @abstractmethod
    def _build_measurement(self, sample) -> Any:
        """Assemble the measurement of a completed cycle."""
        pass

    @abstractmethod
    def _handle_static_interval_accepted(
        self, accumulated_avg: Triad, accumulated_std: Triad
    ) -> None:
        """Freeze the reference of the static run that has just closed."""
        pass

    def _handle_static_interval_skipped(self) -> None:
        pass

    def _handle_dynamic_interval_skipped(self) -> None:
        pass

    def _handle_initialization_completed(self) -> None:
        pass

    def _handle_initialization_failed(self) -> None:
        pass

    def _reset_session(self) -> None:
        pass

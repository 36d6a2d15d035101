"""
Validated configuration bundles for detectors and generators.

Detectors and generators are configured through properties, one at a
time. These frozen dataclasses group a full configuration so it can be
validated up front, stored (``to_dict``/``from_dict``) and applied in one
call:

    >>> config = GeneratorConfig.fast(window_size=31)
    >>> generator = AccelerometerMeasurementsGenerator(config=config)  # doctest: +SKIP
    >>> generator.min_static_samples  # doctest: +SKIP
    62
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping

from imucal.errors import InvalidParameterError, check_min_int, check_positive
from imucal.intervals.detector import (
    DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD,
    DEFAULT_INITIAL_STATIC_SAMPLES,
    DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR,
    DEFAULT_MINIMUM_THRESHOLD,
    DEFAULT_THRESHOLD_FACTOR,
    MIN_INITIAL_STATIC_SAMPLES,
)
from imucal.noise.windowed import (
    DEFAULT_TIME_INTERVAL_SECONDS,
    DEFAULT_WINDOW_SIZE,
    MIN_WINDOW_SIZE,
)

# Multiples of the window size used by the generator defaults.
MIN_STATIC_WINDOWS = 2
MAX_DYNAMIC_WINDOWS = 30
FAST_INITIAL_STATIC_WINDOWS = 5


@dataclass(frozen=True)
class DetectorConfig:
    """
    Configuration of a TriadStaticIntervalDetector.

    Attributes:
        window_size: Samples in the noise window. Must be >= 3.
        initial_static_samples: Samples assumed static at startup. >= 3.
        threshold_factor: Threshold = base noise level × factor. > 0.
        instantaneous_noise_level_factor: During initialization, windowed
            noise above factor × accumulated noise is a sudden movement. > 0.
        base_noise_level_absolute_threshold: Largest acceptable base noise
            level. Units: m/s². > 0.
        minimum_threshold: Lower bound of the threshold. Units: m/s². > 0.
        time_interval: Sampling period. Units: seconds. > 0.
    """

    window_size: int = DEFAULT_WINDOW_SIZE
    initial_static_samples: int = DEFAULT_INITIAL_STATIC_SAMPLES
    threshold_factor: float = DEFAULT_THRESHOLD_FACTOR
    instantaneous_noise_level_factor: float = DEFAULT_INSTANTANEOUS_NOISE_LEVEL_FACTOR
    base_noise_level_absolute_threshold: float = DEFAULT_BASE_NOISE_LEVEL_ABSOLUTE_THRESHOLD
    minimum_threshold: float = DEFAULT_MINIMUM_THRESHOLD
    time_interval: float = DEFAULT_TIME_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        check_min_int("window_size", self.window_size, MIN_WINDOW_SIZE)
        check_min_int(
            "initial_static_samples", self.initial_static_samples, MIN_INITIAL_STATIC_SAMPLES
        )
        check_positive("threshold_factor", self.threshold_factor)
        check_positive("instantaneous_noise_level_factor", self.instantaneous_noise_level_factor)
        check_positive(
            "base_noise_level_absolute_threshold", self.base_noise_level_absolute_threshold
        )
        check_positive("minimum_threshold", self.minimum_threshold)
        check_positive("time_interval", self.time_interval)

    def apply_to(self, target) -> None:
        """
        Set every field on ``target`` through its properties.

        Works on detectors, generators and the combined generator. Fields
        are applied in declaration order (window size first).

        Raises:
            InvalidParameterError: If ``target`` has no such setting.
            LockedError: If ``target`` is running.
        """
        names = [f.name for f in fields(self)]
        missing = [name for name in names if not isinstance(getattr(type(target), name, None), property)]
        if missing:
            raise InvalidParameterError(
                f"{type(target).__name__} has no setting(s): {', '.join(missing)}"
            )
        for name in names:
            setattr(target, name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]):
        """
        Build a config from a mapping, missing keys taking their defaults.

        Raises:
            InvalidParameterError: On unknown keys or out-of-range values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidParameterError(
                f"Unknown {cls.__name__} keys: {', '.join(unknown)}"
            )
        return cls(**dict(values))


@dataclass(frozen=True)
class GeneratorConfig(DetectorConfig):
    """
    Configuration of a measurements generator.

    Adds the interval-length policy to DetectorConfig.

    Attributes:
        min_static_samples: Shortest static run usable as a reference. >= 3.
        max_dynamic_samples: Longest motion accepted within a cycle. >= 3.
    """

    min_static_samples: int = MIN_STATIC_WINDOWS * DEFAULT_WINDOW_SIZE
    max_dynamic_samples: int = MAX_DYNAMIC_WINDOWS * DEFAULT_WINDOW_SIZE

    def __post_init__(self) -> None:
        super().__post_init__()
        check_min_int("min_static_samples", self.min_static_samples, MIN_WINDOW_SIZE)
        check_min_int("max_dynamic_samples", self.max_dynamic_samples, MIN_WINDOW_SIZE)

    @classmethod
    def default(cls) -> "GeneratorConfig":
        """Defaults for 50 Hz recordings with a 2 s window and 100 s initialization."""
        return cls()

    @classmethod
    def fast(cls, window_size: int = 31, time_interval: float = DEFAULT_TIME_INTERVAL_SECONDS) -> "GeneratorConfig":
        """
        Small window and short initialization, for short recordings.

        Interval lengths scale with the window exactly as in the defaults.

        Args:
            window_size: Samples in the noise window. Must be >= 3.
            time_interval: Sampling period. Units: seconds.

        Returns:
            Generator configuration.
        """
        check_min_int("window_size", window_size, MIN_WINDOW_SIZE)
        return cls(
            window_size=window_size,
            initial_static_samples=FAST_INITIAL_STATIC_WINDOWS * window_size,
            time_interval=time_interval,
            min_static_samples=MIN_STATIC_WINDOWS * window_size,
            max_dynamic_samples=MAX_DYNAMIC_WINDOWS * window_size,
        )

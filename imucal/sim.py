"""
Synthetic calibration recordings.

Generates the kind of stream the measurements generators expect: a long
still period to measure noise, then the device is turned to a new
orientation, held still, turned again, and so on. Each static pose
produces gravity and the Earth magnetic field resolved in a different
body orientation:

    f_B = A · [0, 0, g]ᵀ + n_f            (specific force, z up)
    B_B = A · B_W + n_B                   (magnetic flux density)

where A is the world-to-body rotation of the pose. While turning from
A_0 to A_1 = R · A_0 (R = rotation of angle θ about axis u, completed in T
seconds) the body angular rate is ω_B = -u · θ / T and the specific force
gets a random hand-shake term.

All randomness comes from one ``numpy.random.Generator`` so that a seed
reproduces a recording exactly.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from imucal.errors import InvalidParameterError
from imucal.types import BodyKinematics, BodyKinematicsAndMagneticFluxDensity, Triad

# Earth field at a mid-latitude site, ENU world frame. Units: T.
DEFAULT_MAGNETIC_FIELD_T = (0.0, 2.2e-5, -4.2e-5)
GRAVITY_MPS2 = 9.81


def rotation_about_axis(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rodrigues formula. Returns the 3x3 rotation of ``angle`` rad about ``axis``."""
    u = np.asarray(axis, dtype=float)
    u = u / np.linalg.norm(u)
    K = np.array([
        [0.0, -u[2], u[1]],
        [u[2], 0.0, -u[0]],
        [-u[1], u[0], 0.0],
    ])
    return np.eye(3) + np.sin(angle) * K + (1.0 - np.cos(angle)) * (K @ K)


def _axis_angle(R: np.ndarray) -> Tuple[np.ndarray, float]:
    angle = float(np.arccos(np.clip((np.trace(R) - 1.0) / 2.0, -1.0, 1.0)))
    if angle < 1e-12:
        return np.array([0.0, 0.0, 1.0]), 0.0
    if np.pi - angle < 1e-6:
        # R + I = 2 u uᵀ at θ = π
        S = R + np.eye(3)
        col = S[:, int(np.argmax(np.diag(S)))]
        return col / np.linalg.norm(col), angle
    axis = np.array([R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]])
    return axis / (2.0 * np.sin(angle)), angle


def random_attitude(rng: np.random.Generator) -> np.ndarray:
    """Random world-to-body rotation (uniform axis, angle in [0, π))."""
    axis = rng.normal(size=3)
    return rotation_about_axis(axis, rng.uniform(0.0, np.pi))


def static_kinematics(
    attitude: np.ndarray,
    n: int,
    rng: np.random.Generator,
    accel_noise_std: float = 0.01,
    gyro_noise_std: float = 1e-3,
    mag_noise_std: float = 1e-7,
    magnetic_field: Sequence[float] = DEFAULT_MAGNETIC_FIELD_T,
    gravity: float = GRAVITY_MPS2,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Noisy readings of a device held still.

    Args:
        attitude: World-to-body rotation. Shape: (3, 3).
        n: Number of samples.
        rng: Random generator.
        accel_noise_std: Units: m/s².
        gyro_noise_std: Units: rad/s.
        mag_noise_std: Units: T.
        magnetic_field: Field in the world frame. Units: T.
        gravity: Gravity magnitude. Units: m/s².

    Returns:
        Tuple (specific_force, angular_rate, magnetic_flux_density), each
        of shape (n, 3).
    """
    f_b = attitude @ np.array([0.0, 0.0, gravity])
    b_b = attitude @ np.asarray(magnetic_field, dtype=float)
    f = f_b + rng.normal(0.0, accel_noise_std, size=(n, 3))
    w = rng.normal(0.0, gyro_noise_std, size=(n, 3))
    b = b_b + rng.normal(0.0, mag_noise_std, size=(n, 3))
    return f, w, b


def dynamic_kinematics(
    start_attitude: np.ndarray,
    end_attitude: np.ndarray,
    n: int,
    time_interval: float,
    rng: np.random.Generator,
    shake_std: float = 2.0,
    accel_noise_std: float = 0.01,
    gyro_noise_std: float = 1e-3,
    mag_noise_std: float = 1e-7,
    magnetic_field: Sequence[float] = DEFAULT_MAGNETIC_FIELD_T,
    gravity: float = GRAVITY_MPS2,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Readings while turning at constant rate from one attitude to another.

    Args:
        start_attitude: World-to-body rotation before the motion.
        end_attitude: World-to-body rotation after the motion.
        n: Number of samples.
        time_interval: Sampling period. Units: seconds.
        rng: Random generator.
        shake_std: Hand-shake acceleration added to the specific force.
                   Units: m/s².

    Returns:
        Tuple (specific_force, angular_rate, magnetic_flux_density), each
        of shape (n, 3).
    """
    axis, angle = _axis_angle(end_attitude @ start_attitude.T)
    duration = n * time_interval
    omega_b = -axis * angle / duration

    g_w = np.array([0.0, 0.0, gravity])
    m_w = np.asarray(magnetic_field, dtype=float)
    f = np.empty((n, 3))
    b = np.empty((n, 3))
    for k in range(n):
        A = rotation_about_axis(axis, angle * (k + 1) / n) @ start_attitude
        f[k] = A @ g_w
        b[k] = A @ m_w

    f += rng.normal(0.0, shake_std, size=(n, 3)) + rng.normal(0.0, accel_noise_std, size=(n, 3))
    w = omega_b + rng.normal(0.0, gyro_noise_std, size=(n, 3))
    b += rng.normal(0.0, mag_noise_std, size=(n, 3))
    return f, w, b


@dataclass(frozen=True)
class SimulatedRecording:
    """
    A synthetic calibration recording.

    Attributes:
        samples: One sample per epoch, in time order.
        is_static: Ground-truth still flag per sample. Shape: (N,).
        attitudes: World-to-body rotation of each static pose.
        time_interval: Sampling period. Units: seconds.
    """

    samples: List[BodyKinematicsAndMagneticFluxDensity]
    is_static: np.ndarray
    attitudes: List[np.ndarray]
    time_interval: float

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def specific_force(self) -> np.ndarray:
        """Specific force of every sample. Shape: (N, 3). Units: m/s²."""
        return np.array([s.kinematics.specific_force.as_array() for s in self.samples])

    @property
    def timestamps(self) -> np.ndarray:
        return np.array([s.timestamp for s in self.samples])


def simulate_calibration_stream(
    num_poses: int = 10,
    initial_static_samples: int = 500,
    static_samples: int = 300,
    dynamic_samples: int = 100,
    time_interval: float = 0.02,
    accel_noise_std: float = 0.01,
    gyro_noise_std: float = 1e-3,
    mag_noise_std: float = 1e-7,
    shake_std: float = 2.0,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> SimulatedRecording:
    """
    Simulate a still / turn / still ... calibration recording.

    The first pose is held for ``initial_static_samples + static_samples``
    samples, every following pose is reached after ``dynamic_samples``
    samples of motion and held for ``static_samples``.

    Args:
        num_poses: Number of static poses. Must be >= 1.
        initial_static_samples: Extra still samples at the start.
        static_samples: Still samples per pose.
        dynamic_samples: Motion samples between consecutive poses.
        time_interval: Sampling period. Units: seconds.
        accel_noise_std: Accelerometer white noise. Units: m/s².
        gyro_noise_std: Gyroscope white noise. Units: rad/s.
        mag_noise_std: Magnetometer white noise. Units: T.
        shake_std: Extra specific force noise while moving. Units: m/s².
        seed: Seed for a new generator, ignored when ``rng`` is given.
        rng: Random generator to draw from.

    Returns:
        SimulatedRecording with N = initial_static_samples
        + num_poses * static_samples + (num_poses - 1) * dynamic_samples.

    Example:
        >>> rec = simulate_calibration_stream(num_poses=3, seed=1)
        >>> len(rec)
        1600
        >>> int(rec.is_static.sum())
        1400
    """
    if num_poses < 1:
        raise InvalidParameterError(f"num_poses must be >= 1, got {num_poses}")
    if rng is None:
        rng = np.random.default_rng(seed)
    noise = dict(
        accel_noise_std=accel_noise_std,
        gyro_noise_std=gyro_noise_std,
        mag_noise_std=mag_noise_std,
    )

    attitudes = [np.eye(3)] + [random_attitude(rng) for _ in range(num_poses - 1)]
    f, w, b = static_kinematics(
        attitudes[0], initial_static_samples + static_samples, rng, **noise
    )
    blocks = [(f, w, b, True)]
    for previous, attitude in zip(attitudes[:-1], attitudes[1:]):
        blocks.append(
            dynamic_kinematics(
                previous, attitude, dynamic_samples, time_interval, rng,
                shake_std=shake_std, **noise,
            ) + (False,)
        )
        blocks.append(static_kinematics(attitude, static_samples, rng, **noise) + (True,))

    samples = []
    flags = []
    k = 0
    for f, w, b, still in blocks:
        for i in range(len(f)):
            samples.append(
                BodyKinematicsAndMagneticFluxDensity(
                    kinematics=BodyKinematics(
                        specific_force=Triad.from_array(f[i]),
                        angular_rate=Triad.from_array(w[i]),
                    ),
                    magnetic_flux_density=Triad.from_array(b[i]),
                    timestamp=k * time_interval,
                )
            )
            flags.append(still)
            k += 1

    return SimulatedRecording(
        samples=samples,
        is_static=np.array(flags, dtype=bool),
        attitudes=attitudes,
        time_interval=time_interval,
    )

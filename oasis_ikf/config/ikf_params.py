################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Structured configuration schema for the indirect Kalman filter."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from dataclasses import replace
from typing import Any

import numpy as np

from oasis_ikf.math_utils.units import PhysicalConstants


# Gravity magnitude in m/s^2
REFERENCE_GRAVITY_MPS2: float = PhysicalConstants.GRAVITY_MPS2
# Magnetic dip angle below the horizon in radians
REFERENCE_DIP_ANGLE_RAD: float = 0.0

# Accelerometer noise covariance diagonal in (m/s^2)^2
NOISE_ACCEL_COV_DIAG: np.ndarray = np.array([1e-3, 1e-3, 1e-3], dtype=np.float64)
# Gyroscope noise covariance diagonal in (rad/s)^2
NOISE_GYRO_COV_DIAG: np.ndarray = np.array([1e-5, 1e-5, 1e-5], dtype=np.float64)
# Magnetometer noise covariance diagonal in unitless^2 (unit reference field)
NOISE_MAG_COV_DIAG: np.ndarray = np.array([1e-3, 1e-3, 1e-3], dtype=np.float64)
# Gyro bias random-walk covariance diagonal in (rad/s)^2
NOISE_GYRO_BIAS_DRIFT_COV_DIAG: np.ndarray = np.array(
    [1e-9, 1e-9, 1e-9], dtype=np.float64
)
# Accel bias random-walk covariance diagonal in (m/s^2)^2
NOISE_ACCEL_BIAS_DRIFT_COV_DIAG: np.ndarray = np.array(
    [1e-9, 1e-9, 1e-9], dtype=np.float64
)

# Initial attitude error variance in unitless^2 (error quaternion vector part)
INITIAL_ATTITUDE_VAR: float = 1e-2
# Initial gyro bias variance in (rad/s)^2
INITIAL_GYRO_BIAS_VAR: float = 1e-4
# Initial accel bias variance in (m/s^2)^2
INITIAL_ACCEL_BIAS_VAR: float = 1e-4

# Number of residual outer products averaged by the adaptive estimator
ADAPTIVE_M1: int = 3
# Number of quiet samples before external acceleration compensation stops
ADAPTIVE_M2: int = 3
# Detection threshold on max(lambda - mu) in (m/s^2)^2
ADAPTIVE_GAMMA: float = 0.1


class IkfParamsError(Exception):
    """Raised when filter parameter validation fails."""


def _as_float_array(value: Any, name: str) -> np.ndarray:
    """Coerce a value to a float64 numpy array with shape (3,)."""
    array: np.ndarray = np.asarray(value, dtype=np.float64)
    if array.shape != (3,):
        raise IkfParamsError(f"{name} must have shape (3,)")
    if not np.all(np.isfinite(array)):
        raise IkfParamsError(f"{name} must contain finite values")
    return array


def _require_finite(value: float, name: str) -> None:
    """Require a finite scalar."""
    if not np.isfinite(value):
        raise IkfParamsError(f"{name} must be finite")


def _require_positive(value: float, name: str) -> None:
    """Require a positive value."""
    _require_finite(value, name)
    if value <= 0.0:
        raise IkfParamsError(f"{name} must be positive")


def _require_non_negative(value: float, name: str) -> None:
    """Require a non-negative value."""
    _require_finite(value, name)
    if value < 0.0:
        raise IkfParamsError(f"{name} must be non-negative")


def _require_positive_int(value: int, name: str) -> None:
    """Require a positive integer value."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise IkfParamsError(f"{name} must be an int")
    if value <= 0:
        raise IkfParamsError(f"{name} must be positive")


def _validate_positive_array(values: np.ndarray, name: str) -> None:
    """Validate that an array contains strictly positive values."""
    if np.any(values <= 0.0):
        raise IkfParamsError(f"{name} must be positive")


def _validate_non_negative_array(values: np.ndarray, name: str) -> None:
    """Validate that an array contains non-negative values."""
    if np.any(values < 0.0):
        raise IkfParamsError(f"{name} must be non-negative")


@dataclass(frozen=True)
class ReferenceParams:
    """Navigation-frame reference field parameters."""

    # Gravity magnitude in m/s^2
    gravity_mps2: float = REFERENCE_GRAVITY_MPS2
    # Magnetic dip angle in radians
    dip_angle_rad: float = REFERENCE_DIP_ANGLE_RAD


@dataclass(frozen=True)
class NoiseParams:
    """Sensor and bias-drift noise covariances."""

    # Accelerometer noise covariance diagonal in (m/s^2)^2
    accel_cov_diag: np.ndarray = field(
        default_factory=lambda: NOISE_ACCEL_COV_DIAG.copy()
    )
    # Gyroscope noise covariance diagonal in (rad/s)^2
    gyro_cov_diag: np.ndarray = field(
        default_factory=lambda: NOISE_GYRO_COV_DIAG.copy()
    )
    # Magnetometer noise covariance diagonal in unitless^2
    mag_cov_diag: np.ndarray = field(default_factory=lambda: NOISE_MAG_COV_DIAG.copy())
    # Gyro bias random-walk covariance diagonal in (rad/s)^2
    gyro_bias_drift_cov_diag: np.ndarray = field(
        default_factory=lambda: NOISE_GYRO_BIAS_DRIFT_COV_DIAG.copy()
    )
    # Accel bias random-walk covariance diagonal in (m/s^2)^2
    accel_bias_drift_cov_diag: np.ndarray = field(
        default_factory=lambda: NOISE_ACCEL_BIAS_DRIFT_COV_DIAG.copy()
    )

    def __post_init__(self) -> None:
        """Coerce covariance diagonals into float64 numpy arrays."""
        name: str
        for name in (
            "accel_cov_diag",
            "gyro_cov_diag",
            "mag_cov_diag",
            "gyro_bias_drift_cov_diag",
            "accel_bias_drift_cov_diag",
        ):
            object.__setattr__(
                self, name, _as_float_array(getattr(self, name), f"noise.{name}")
            )


@dataclass(frozen=True)
class InitialParams:
    """Initial error covariance diagonal, one variance per state block."""

    # Initial attitude error variance in unitless^2
    attitude_var: float = INITIAL_ATTITUDE_VAR
    # Initial gyro bias variance in (rad/s)^2
    gyro_bias_var: float = INITIAL_GYRO_BIAS_VAR
    # Initial accel bias variance in (m/s^2)^2
    accel_bias_var: float = INITIAL_ACCEL_BIAS_VAR


@dataclass(frozen=True)
class AdaptiveParams:
    """External acceleration detection parameters."""

    # Residual history window length
    m1: int = ADAPTIVE_M1
    # Hysteresis length in samples
    m2: int = ADAPTIVE_M2
    # Detection threshold in (m/s^2)^2
    gamma: float = ADAPTIVE_GAMMA

    def validate(self) -> None:
        """Validate adaptive estimator parameters."""
        _require_positive_int(self.m1, "adaptive.m1")
        _require_positive_int(self.m2, "adaptive.m2")
        _require_non_negative(self.gamma, "adaptive.gamma")


@dataclass(frozen=True)
class IkfParams:
    """Complete configuration tree for the indirect Kalman filter."""

    reference: ReferenceParams
    noise: NoiseParams
    initial: InitialParams
    adaptive: AdaptiveParams

    @classmethod
    def defaults(cls) -> IkfParams:
        """Return the default parameter tree."""
        return cls(
            reference=ReferenceParams(),
            noise=NoiseParams(),
            initial=InitialParams(),
            adaptive=AdaptiveParams(),
        )

    def validate(self) -> None:
        """Validate parameter invariants and constraints."""
        _require_positive(self.reference.gravity_mps2, "reference.gravity_mps2")
        _require_finite(self.reference.dip_angle_rad, "reference.dip_angle_rad")
        if abs(self.reference.dip_angle_rad) > 0.5 * np.pi:
            raise IkfParamsError("reference.dip_angle_rad must be within [-pi/2, pi/2]")

        _validate_positive_array(self.noise.accel_cov_diag, "noise.accel_cov_diag")
        _validate_non_negative_array(self.noise.gyro_cov_diag, "noise.gyro_cov_diag")
        _validate_positive_array(self.noise.mag_cov_diag, "noise.mag_cov_diag")
        _validate_non_negative_array(
            self.noise.gyro_bias_drift_cov_diag, "noise.gyro_bias_drift_cov_diag"
        )
        _validate_non_negative_array(
            self.noise.accel_bias_drift_cov_diag, "noise.accel_bias_drift_cov_diag"
        )

        _require_non_negative(self.initial.attitude_var, "initial.attitude_var")
        _require_non_negative(self.initial.gyro_bias_var, "initial.gyro_bias_var")
        _require_non_negative(self.initial.accel_bias_var, "initial.accel_bias_var")

        self.adaptive.validate()

    def replace(self, **namespace_overrides: Any) -> IkfParams:
        """Return a modified copy of the parameters."""
        return replace(self, **namespace_overrides)

    def as_nested_dict(self) -> dict[str, Any]:
        """Return a nested dict representation for debugging."""
        return _dataclass_to_dict(self)


def _dataclass_to_dict(value: Any) -> Any:
    """Convert dataclasses and numpy arrays into plain Python values."""
    if hasattr(value, "__dataclass_fields__"):
        return {
            field.name: _dataclass_to_dict(getattr(value, field.name))
            for field in fields(value)
        }
    if isinstance(value, np.ndarray):
        return value.tolist()
    return value

################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""High-level configuration wrapper for the indirect Kalman filter."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from oasis_ikf.config.ikf_params import IkfParams
from oasis_ikf.config.ikf_params import IkfParamsError


class IkfConfigError(Exception):
    """Raised when filter configuration validation fails."""


@dataclass(frozen=True)
class IkfConfig:
    """Convenience wrapper around filter parameters.

    Builds the covariance matrices consumed by the filter constructor from
    the diagonal parameters.
    """

    params: IkfParams

    def __init__(self, params: IkfParams) -> None:
        """Initialize the configuration wrapper and validate."""
        object.__setattr__(self, "params", params)
        self.validate()

    def validate(self) -> None:
        """Validate parameter invariants."""
        try:
            self.params.validate()
        except IkfParamsError as exc:
            raise IkfConfigError(str(exc)) from exc

    def P_0(self) -> np.ndarray:
        """Return the 9x9 initial error covariance."""
        diag: np.ndarray = np.repeat(
            np.array(
                [
                    self.params.initial.attitude_var,
                    self.params.initial.gyro_bias_var,
                    self.params.initial.accel_bias_var,
                ],
                dtype=np.float64,
            ),
            3,
        )
        return np.diag(diag)

    def R_a(self) -> np.ndarray:
        """Return the accelerometer noise covariance."""
        return np.diag(self.params.noise.accel_cov_diag)

    def R_g(self) -> np.ndarray:
        """Return the gyroscope noise covariance."""
        return np.diag(self.params.noise.gyro_cov_diag)

    def R_m(self) -> np.ndarray:
        """Return the magnetometer noise covariance."""
        return np.diag(self.params.noise.mag_cov_diag)

    def Q_bg(self) -> np.ndarray:
        """Return the gyro bias random-walk covariance."""
        return np.diag(self.params.noise.gyro_bias_drift_cov_diag)

    def Q_ba(self) -> np.ndarray:
        """Return the accel bias random-walk covariance."""
        return np.diag(self.params.noise.accel_bias_drift_cov_diag)

    def gravity(self) -> float:
        """Return the gravity magnitude in m/s^2."""
        return float(self.params.reference.gravity_mps2)

    def dip_angle(self) -> float:
        """Return the magnetic dip angle in radians."""
        return float(self.params.reference.dip_angle_rad)

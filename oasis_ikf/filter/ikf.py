################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""
Quaternion-based indirect Kalman filter for attitude and heading estimation
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from oasis_ikf.config.ikf_config import IkfConfig
from oasis_ikf.config.ikf_params import AdaptiveParams
from oasis_ikf.filter.accel_update import AccelUpdate
from oasis_ikf.filter.mag_update import MagUpdate
from oasis_ikf.filter.predict_step import PredictStep
from oasis_ikf.filter.update_step import IkfNumericalError
from oasis_ikf.ikf_types.update_report import UpdateReport
from oasis_ikf.math_utils.quat import Quaternion
from oasis_ikf.math_utils.units import NUM_AXES
from oasis_ikf.math_utils.units import PhysicalConstants
from oasis_ikf.math_utils.units import as_matrix
from oasis_ikf.math_utils.units import as_vector3
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseError
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseEstimator
from oasis_ikf.models.process_model import ProcessModel
from oasis_ikf.state.covariance import Covariance
from oasis_ikf.state.error_state import ErrorStateLayout
from oasis_ikf.state.ikf_state import IkfState


_LOG: logging.Logger = logging.getLogger(__name__)


class IndirectKalmanFilter:
    """Error-state Kalman filter for an AHRS.

    The prediction step integrates the gyro into the attitude quaternion and
    propagates the 9-element error state [delta_theta, delta_b_g, delta_b_a].
    The correction cycle runs in two stages: the accelerometer corrects pitch
    and roll, with Suh's adaptive estimation of external acceleration, then
    the optional magnetometer corrects yaw only. Each cycle ends by folding
    the bias errors into the running bias estimates.

    Per sample the owner calls predict(gyro, dt) then update(accel, mag,
    magnetometer_available).

    Failure policy:
        - set_attitude() and set_omega() return False on a missing or
          malformed argument and leave the state unchanged.
        - predict() ignores dt == 0 and rejects a negative or non-finite dt.
        - update() is atomic: when a correction hits a degenerate matrix the
          whole cycle is rolled back and a rejected UpdateReport is recorded.
    """

    def __init__(
        self,
        *,
        P_0: np.ndarray,
        R_a: np.ndarray,
        R_g: np.ndarray,
        R_m: np.ndarray,
        Q_bg: np.ndarray,
        Q_ba: np.ndarray,
        g: float,
        alpha: float,
        adaptive: AdaptiveParams | None = None,
    ) -> None:
        """Initialize the filter.

        Args:
            P_0: Initial error covariance, shape (9, 9)
            R_a: Accelerometer noise covariance in (m/s^2)^2
            R_g: Gyroscope noise covariance in (rad/s)^2
            R_m: Magnetometer noise covariance
            Q_bg: Gyro bias random-walk covariance in (rad/s)^2
            Q_ba: Accel bias random-walk covariance in (m/s^2)^2
            g: Gravity magnitude in m/s^2
            alpha: Magnetic dip angle in radians
            adaptive: External acceleration detector parameters
        """
        dim: int = ErrorStateLayout.DIM
        P_0_cov: Covariance = Covariance(as_matrix(P_0, (dim, dim), "P_0"))
        P_0_cov.assert_psd()
        self._P_0: np.ndarray = P_0_cov.as_array()
        self._R_a: np.ndarray = as_matrix(R_a, (NUM_AXES, NUM_AXES), "R_a")
        self._R_g: np.ndarray = as_matrix(R_g, (NUM_AXES, NUM_AXES), "R_g")
        self._R_m: np.ndarray = as_matrix(R_m, (NUM_AXES, NUM_AXES), "R_m")
        Q_bg_mat: np.ndarray = as_matrix(Q_bg, (NUM_AXES, NUM_AXES), "Q_bg")
        Q_ba_mat: np.ndarray = as_matrix(Q_ba, (NUM_AXES, NUM_AXES), "Q_ba")
        if not math.isfinite(g) or not math.isfinite(alpha):
            raise ValueError("g and alpha must be finite")

        # Navigation-frame references, z up
        self._g_nav: np.ndarray = np.array([0.0, 0.0, g], dtype=np.float64)
        self._m_nav: np.ndarray = np.array(
            [math.cos(alpha), 0.0, -math.sin(alpha)], dtype=np.float64
        )

        self._Q: np.ndarray = ProcessModel.process_noise(self._R_g, Q_bg_mat, Q_ba_mat)
        self._A: np.ndarray = ProcessModel.system_matrix_template()
        self._H1: np.ndarray = np.zeros((NUM_AXES, dim), dtype=np.float64)
        self._H1[:, ErrorStateLayout.slice_b_a()] = np.eye(NUM_AXES)

        self._estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator(adaptive)
        self._state: IkfState = IkfState.initial(self._P_0)
        self.last_reports: dict[str, UpdateReport] = {}

    @classmethod
    def from_config(cls, config: IkfConfig) -> IndirectKalmanFilter:
        """Build a filter from a validated configuration."""
        return cls(
            P_0=config.P_0(),
            R_a=config.R_a(),
            R_g=config.R_g(),
            R_m=config.R_m(),
            Q_bg=config.Q_bg(),
            Q_ba=config.Q_ba(),
            g=config.gravity(),
            alpha=config.dip_angle(),
            adaptive=config.params.adaptive,
        )

    @property
    def adaptive_estimator(self) -> AdaptiveNoiseEstimator:
        """Return the external acceleration estimator."""
        return self._estimator

    @property
    def gravity_nav(self) -> np.ndarray:
        """Return the navigation-frame gravity reference."""
        return self._g_nav.copy()

    @property
    def mag_nav(self) -> np.ndarray:
        """Return the navigation-frame magnetic reference."""
        return self._m_nav.copy()

    def reset(self) -> None:
        """Return to the freshly initialized state."""
        self._state = IkfState.initial(self._P_0)
        self._estimator.reset()
        self.last_reports = {}

    def set_attitude(self, q: Quaternion | Sequence[float] | None) -> bool:
        """Overwrite the attitude, returning False on a missing argument."""
        if q is None:
            _LOG.warning("set_attitude called without a quaternion")
            return False
        try:
            wxyz: np.ndarray = q.wxyz if isinstance(q, Quaternion) else np.asarray(q)
            self._state.q = Quaternion(wxyz).normalized()
        except (TypeError, ValueError) as exc:
            _LOG.warning("Rejecting attitude: %s", exc)
            return False
        return True

    def set_omega(self, rate: Sequence[float] | np.ndarray | None) -> bool:
        """Seed the previous-step Omega matrix before the first predict."""
        if rate is None:
            _LOG.warning("set_omega called without a rate")
            return False
        try:
            omega: np.ndarray = as_vector3(rate, "rate")
        except (TypeError, ValueError) as exc:
            _LOG.warning("Rejecting rate: %s", exc)
            return False
        self._state.omega_prev = Quaternion.omega_matrix(omega)
        return True

    def get_attitude(self) -> Quaternion:
        """Return the attitude estimate, body to navigation."""
        return Quaternion(self._state.q.to_wxyz())

    def get_euler(self) -> np.ndarray:
        """Return [roll, pitch, yaw] in radians."""
        return self._state.q.to_euler_zyx()

    def get_state(self) -> np.ndarray:
        """Return a copy of the error state."""
        return self._state.x.copy()

    def set_state(self, x: Sequence[float] | np.ndarray) -> None:
        """Overwrite the error state."""
        x_vec: np.ndarray = np.array(x, dtype=np.float64).reshape(-1)
        if x_vec.shape != (ErrorStateLayout.DIM,):
            raise ValueError(f"x must have shape ({ErrorStateLayout.DIM},)")
        if not np.all(np.isfinite(x_vec)):
            raise ValueError("x must be finite")
        self._state.x = x_vec

    def get_covariance(self) -> np.ndarray:
        """Return a copy of the error covariance."""
        return self._state.P.copy()

    def get_gyro_bias(self) -> np.ndarray:
        """Return the gyro bias estimate in rad/s."""
        return self._state.b_g.copy()

    def get_accel_bias(self) -> np.ndarray:
        """Return the accel bias estimate in m/s^2."""
        return self._state.b_a.copy()

    def predict(self, u: Sequence[float] | np.ndarray, dt: float) -> bool:
        """Propagate one gyro sample, returning True when the state advanced."""
        try:
            dt_sec: float = float(dt)
        except (TypeError, ValueError):
            _LOG.warning("Skipping prediction, invalid dt %r", dt)
            return False
        if not math.isfinite(dt_sec) or dt_sec < 0.0:
            _LOG.warning("Skipping prediction, invalid dt %s", dt_sec)
            return False
        if dt_sec == 0.0:
            return False
        try:
            rate: np.ndarray = as_vector3(u, "angular rate")
        except ValueError as exc:
            _LOG.warning("Skipping prediction, %s", exc)
            return False

        PredictStep.propagate(
            self._state,
            A_template=self._A,
            Q=self._Q,
            u=rate,
            dt=dt_sec,
        )
        return True

    def update(
        self,
        accel: Sequence[float] | np.ndarray,
        mag: Sequence[float] | np.ndarray | None = None,
        magnetometer_available: bool = False,
    ) -> bool:
        """Run one correction cycle, returning True when it was applied."""
        self.last_reports = {}

        try:
            accel_vec: np.ndarray = as_vector3(accel, "accel")
        except ValueError as exc:
            _LOG.warning("Skipping update, %s", exc)
            self.last_reports["accel"] = UpdateReport.rejected("accel", str(exc))
            return False

        mag_vec: np.ndarray | None = None
        if magnetometer_available:
            try:
                if mag is None:
                    raise ValueError("mag is required when the magnetometer is on")
                mag_vec = as_vector3(mag, "mag")
            except ValueError as exc:
                _LOG.warning("Skipping update, %s", exc)
                self.last_reports["accel"] = UpdateReport.rejected(
                    "accel", "skipped after mag sample rejection"
                )
                self.last_reports["mag"] = UpdateReport.rejected("mag", str(exc))
                return False

        work: IkfState = self._state.copy()
        snapshot = self._estimator.snapshot()
        stage: str = "accel"
        try:
            self.last_reports["accel"] = AccelUpdate.apply(
                work,
                accel=accel_vec,
                R_a=self._R_a,
                g_nav=self._g_nav,
                H_template=self._H1,
                estimator=self._estimator,
                magnetometer_available=magnetometer_available,
            )
            if mag_vec is not None:
                stage = "mag"
                self.last_reports["mag"] = MagUpdate.apply(
                    work,
                    mag=mag_vec,
                    R_m=self._R_m,
                    m_nav=self._m_nav,
                )
        except (IkfNumericalError, AdaptiveNoiseError) as exc:
            self._estimator.restore(snapshot)
            _LOG.warning("Rejecting %s update, %s", stage, exc)
            if stage == "mag":
                self.last_reports["accel"] = UpdateReport.rejected(
                    "accel", "rolled back after mag update failure"
                )
            self.last_reports[stage] = UpdateReport.rejected(stage, str(exc))
            return False

        work.fold_bias_errors()
        if abs(work.q.norm() - 1.0) > 1e3 * PhysicalConstants.EPS:
            work.q = work.q.normalized()
        self._state = work
        return True

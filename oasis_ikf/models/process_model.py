################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Gyro-driven process model for the error state and the attitude."""

from __future__ import annotations

import numpy as np

from oasis_ikf.math_utils.linalg import Linalg
from oasis_ikf.math_utils.linalg import SO3
from oasis_ikf.math_utils.quat import Quaternion
from oasis_ikf.state.error_state import ErrorStateLayout


class ProcessModel:
    """Linear error-state dynamics and quaternion integration.

    Error-state dynamics, with omega the bias-compensated body rate:
        d(delta_theta)/dt = -[omega]x delta_theta - 0.5 delta_b_g
        d(delta_b_g)/dt = w_bg
        d(delta_b_a)/dt = w_ba

    Discretization (second-order Taylor expansion of exp(A dt)):
        dA = I + A dt + 0.5 A^2 dt^2
        Qd = Q dt + 0.5 dt^2 (A Q + Q A^T)

    Quaternion integration (fourth-order, uses the previous Omega):
        q <- (I + 3/4 Omega dt - 1/4 Omega_prev dt
              - 1/6 |omega|^2 dt^2 I - 1/24 Omega Omega_prev dt^2
              - 1/48 |omega|^2 Omega dt^3) q
    """

    @staticmethod
    def process_noise(
        R_g: np.ndarray, Q_bg: np.ndarray, Q_ba: np.ndarray
    ) -> np.ndarray:
        """Return the block-diagonal continuous process noise Q."""
        # Gyro noise enters the error quaternion scaled by 0.5, hence 0.25 R_g
        return Linalg.block_diag(0.25 * R_g, Q_bg, Q_ba)

    @staticmethod
    def system_matrix_template() -> np.ndarray:
        """Return A with the fixed gyro-bias coupling block."""
        A: np.ndarray = np.zeros(
            (ErrorStateLayout.DIM, ErrorStateLayout.DIM), dtype=np.float64
        )
        A[ErrorStateLayout.slice_theta(), ErrorStateLayout.slice_b_g()] = -0.5 * np.eye(
            3
        )
        return A

    @staticmethod
    def linearize(A: np.ndarray, omega: np.ndarray) -> np.ndarray:
        """Return a copy of A with the rotation block set to -[omega]x."""
        A_lin: np.ndarray = np.array(A, dtype=np.float64)
        theta: slice = ErrorStateLayout.slice_theta()
        A_lin[theta, theta] = -SO3.hat(omega)
        return A_lin

    @staticmethod
    def discretize(
        A: np.ndarray, Q: np.ndarray, dt: float
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return the discrete transition dA and process noise Qd."""
        eye: np.ndarray = np.eye(A.shape[0], dtype=np.float64)
        dA: np.ndarray = eye + A * dt + (A @ A) * (dt * dt / 2.0)
        Qd: np.ndarray = Q * dt + 0.5 * dt * dt * (A @ Q) + 0.5 * dt * dt * (Q @ A.T)
        return dA, Linalg.symmetrize(Qd)

    @staticmethod
    def integrate_quaternion(
        q: Quaternion,
        omega: np.ndarray,
        omega_prev: np.ndarray,
        dt: float,
    ) -> tuple[Quaternion, np.ndarray]:
        """Integrate q over dt and return it with the new Omega matrix."""
        omega4: np.ndarray = Quaternion.omega_matrix(omega)
        omega_sq: float = float(np.dot(omega, omega))
        eye: np.ndarray = np.eye(4, dtype=np.float64)
        transition: np.ndarray = (
            eye
            + 0.75 * omega4 * dt
            - 0.25 * omega_prev * dt
            - (1.0 / 6.0) * omega_sq * dt * dt * eye
            - (1.0 / 24.0) * (omega4 @ omega_prev) * dt * dt
            - (1.0 / 48.0) * omega_sq * omega4 * dt * dt * dt
        )
        q_next: Quaternion = Quaternion(transition @ q.wxyz).normalized()
        return q_next, omega4

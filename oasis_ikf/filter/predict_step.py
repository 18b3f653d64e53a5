################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from __future__ import annotations

import numpy as np

from oasis_ikf.math_utils.linalg import Linalg
from oasis_ikf.math_utils.quat import Quaternion
from oasis_ikf.models.process_model import ProcessModel
from oasis_ikf.state.ikf_state import IkfState


class PredictStep:
    """Prediction step for the indirect Kalman filter.

    Purpose:
        Propagate the error state, its covariance, and the attitude quaternion
        through one gyro sample.

    Inputs/outputs:
        - Inputs: IkfState, A template, continuous Q, raw gyro rate, dt.
        - Outputs: state mutated in place; returns the linearized A.

    Equations:
        omega = u - b_g
        A[theta, theta] = -[omega]x
        x <- dA x
        P <- dA P dA^T + Qd

    Determinism and edge cases:
        - dt must be positive and finite; the caller enforces the policy.
        - The error state and the quaternion are propagated independently.
    """

    @staticmethod
    def propagate(
        state: IkfState,
        *,
        A_template: np.ndarray,
        Q: np.ndarray,
        u: np.ndarray,
        dt: float,
    ) -> np.ndarray:
        """Propagate state by dt and return the linearized A."""
        omega: np.ndarray = u - state.b_g
        A: np.ndarray = ProcessModel.linearize(A_template, omega)

        dA: np.ndarray
        Qd: np.ndarray
        dA, Qd = ProcessModel.discretize(A, Q, dt)

        state.x = dA @ state.x
        state.P = Linalg.symmetrize(dA @ state.P @ dA.T + Qd)

        q_next: Quaternion
        omega4: np.ndarray
        q_next, omega4 = ProcessModel.integrate_quaternion(
            state.q, omega, state.omega_prev, dt
        )
        state.q = q_next
        state.omega_prev = omega4

        return A

################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Mutable state store for the indirect Kalman filter."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from oasis_ikf.math_utils.quat import Quaternion
from oasis_ikf.state.error_state import ErrorStateLayout


@dataclass
class IkfState:
    """Filter state mutated in place by the predict and update steps.

    Attributes:
        x: Error state, shape (9,)
        P: Error covariance, shape (9, 9)
        q: Attitude estimate, body to navigation
        b_g: Gyro bias estimate in rad/s
        b_a: Accel bias estimate in m/s^2
        omega_prev: Omega(omega) of the previous predict call, shape (4, 4)
    """

    x: np.ndarray
    P: np.ndarray
    q: Quaternion
    b_g: np.ndarray
    b_a: np.ndarray
    omega_prev: np.ndarray

    @staticmethod
    def initial(P_0: np.ndarray) -> IkfState:
        """Return the state at filter initialization."""
        return IkfState(
            x=ErrorStateLayout.zeros(),
            P=np.array(P_0, dtype=np.float64),
            q=Quaternion.identity(),
            b_g=np.zeros(3, dtype=np.float64),
            b_a=np.zeros(3, dtype=np.float64),
            omega_prev=np.zeros((4, 4), dtype=np.float64),
        )

    def copy(self) -> IkfState:
        """Return a deep copy of the state."""
        return IkfState(
            x=self.x.copy(),
            P=self.P.copy(),
            q=Quaternion(self.q.to_wxyz()),
            b_g=self.b_g.copy(),
            b_a=self.b_a.copy(),
            omega_prev=self.omega_prev.copy(),
        )

    def fold_attitude_error(self) -> None:
        """Compose q with the small-angle error quaternion and reset it."""
        theta: slice = ErrorStateLayout.slice_theta()
        q_err: Quaternion = Quaternion.from_small_angle(self.x[theta])
        self.q = (self.q * q_err).normalized()
        self.x[theta] = 0.0

    def fold_bias_errors(self) -> None:
        """Add the bias errors into the running estimates and reset them."""
        b_g_slice: slice = ErrorStateLayout.slice_b_g()
        b_a_slice: slice = ErrorStateLayout.slice_b_a()
        self.b_g = self.b_g + self.x[b_g_slice]
        self.x[b_g_slice] = 0.0
        self.b_a = self.b_a + self.x[b_a_slice]
        self.x[b_a_slice] = 0.0

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

from dataclasses import dataclass

import numpy as np

from oasis_ikf.math_utils.linalg import Linalg
from oasis_ikf.state.error_state import ErrorStateLayout


# Largest accepted condition number of the innovation covariance
MAX_INNOVATION_COND: float = 1e12


class IkfNumericalError(Exception):
    """Raised when a correction hits a degenerate matrix."""


@dataclass(frozen=True)
class GainResult:
    """Kalman gain together with the innovation terms that produced it.

    Attributes:
        K: Gain, shape (9, 3)
        S: Innovation covariance H P_gain H^T + R, shape (3, 3)
        mahalanobis2: nu^T S^-1 nu
    """

    K: np.ndarray
    S: np.ndarray
    mahalanobis2: float


class UpdateStep:
    """Shared correction primitives for the accel and mag updates.

    Equations:
        S = H P_g H^T + R
        K = M P_g H^T S^-1
        x <- x + K (z - H x)
        P <- (I - K H) P (I - K H)^T + K R K^T

    P_g is either the full covariance or its attitude block, and M restricts
    which attitude directions the correction may move.

    Numerical stability notes:
        - S is symmetrized and rejected when non-finite, singular, or
          conditioned worse than MAX_INNOVATION_COND.
        - The Joseph form keeps P symmetric PSD for any gain.
    """

    @staticmethod
    def attitude_block(P: np.ndarray) -> np.ndarray:
        """Return P with every entry outside the attitude block zeroed."""
        theta: slice = ErrorStateLayout.slice_theta()
        P_block: np.ndarray = np.zeros_like(P)
        P_block[theta, theta] = P[theta, theta]
        return P_block

    @staticmethod
    def attitude_mask(direction_projector: np.ndarray) -> np.ndarray:
        """Return a 9x9 gain mask with the given 3x3 attitude projector."""
        theta: slice = ErrorStateLayout.slice_theta()
        M: np.ndarray = np.zeros(
            (ErrorStateLayout.DIM, ErrorStateLayout.DIM), dtype=np.float64
        )
        M[theta, theta] = direction_projector
        return M

    @staticmethod
    def compute_gain(
        P_gain: np.ndarray,
        H: np.ndarray,
        R: np.ndarray,
        nu: np.ndarray,
        mask: np.ndarray | None = None,
    ) -> GainResult:
        """Return K = M P_g H^T S^-1 or raise IkfNumericalError."""
        S: np.ndarray = Linalg.symmetrize(H @ P_gain @ H.T + R)
        if not np.all(np.isfinite(S)):
            raise IkfNumericalError("innovation covariance is not finite")
        try:
            with np.errstate(divide="ignore", invalid="ignore"):
                cond: float = float(np.linalg.cond(S))
        except np.linalg.LinAlgError as exc:
            raise IkfNumericalError("innovation covariance is singular") from exc
        if not np.isfinite(cond) or cond > MAX_INNOVATION_COND:
            raise IkfNumericalError("innovation covariance is singular")

        PHt: np.ndarray = P_gain @ H.T
        if mask is not None:
            PHt = mask @ PHt
        try:
            K: np.ndarray = np.linalg.solve(S, PHt.T).T
            S_inv_nu: np.ndarray = np.linalg.solve(S, nu)
        except np.linalg.LinAlgError as exc:
            raise IkfNumericalError("innovation covariance is singular") from exc
        if not np.all(np.isfinite(K)):
            raise IkfNumericalError("Kalman gain is not finite")

        return GainResult(K=K, S=S, mahalanobis2=max(float(nu @ S_inv_nu), 0.0))

    @staticmethod
    def joseph_update(
        P: np.ndarray, K: np.ndarray, H: np.ndarray, R: np.ndarray
    ) -> np.ndarray:
        """Return the symmetrized Joseph-form covariance update."""
        I_KH: np.ndarray = np.eye(P.shape[0], dtype=np.float64) - K @ H
        P_new: np.ndarray = I_KH @ P @ I_KH.T + K @ R @ K.T
        P_new = Linalg.symmetrize(P_new)
        if not np.all(np.isfinite(P_new)):
            raise IkfNumericalError("covariance update is not finite")
        return P_new

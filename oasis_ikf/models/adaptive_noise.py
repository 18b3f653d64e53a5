################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Adaptive estimation of external acceleration for accelerometer updates.

Implements the adaptive scheme of Y. S. Suh, "Orientation estimation using a
quaternion-based indirect Kalman filter with adaptive estimation of external
acceleration", IEEE Trans. Instrum. Meas., 2010.

The averaged outer product of the last M1 accelerometer residuals, Uk, is
compared against the innovation covariance expected without external
acceleration, H P H^T + R_a, along each eigenvector of Uk:

    Uk = U diag(lambda) U^T
    mu_i = u_i^T (H P H^T + R_a) u_i

If max(lambda - mu) > gamma an external acceleration is present and

    Q* = sum_i max(lambda_i - mu_i, 0) u_i u_i^T

inflates the accelerometer noise. Q* is held for M2 - 1 further samples
after detection stops and is zero afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from oasis_ikf.config.ikf_params import AdaptiveParams


_LOG: logging.Logger = logging.getLogger(__name__)


class AdaptiveNoiseError(Exception):
    """Raised when adaptive noise inputs are invalid or degenerate."""


@dataclass(frozen=True)
class AdaptiveNoiseResult:
    """Outcome of one adaptive noise step.

    Attributes:
        Q_star: External acceleration covariance added to R_a, shape (3, 3)
        lambdas: Eigenvalues of the windowed residual covariance Uk
        mu: Projection of the nominal innovation covariance per eigenvector
        detected: True when max(lambda - mu) exceeded gamma this step
        r2count: Samples since the last detection
    """

    Q_star: np.ndarray
    lambdas: np.ndarray
    mu: np.ndarray
    detected: bool
    r2count: int


@dataclass(frozen=True)
class _AdaptiveSnapshot:
    history: np.ndarray
    r1count: int
    r2count: int
    excess: np.ndarray
    basis: np.ndarray


def _as_float_array(value: np.ndarray, name: str, shape: tuple[int, ...]) -> np.ndarray:
    """Return a float64 numpy array with a required shape."""
    array: np.ndarray = np.asarray(value, dtype=np.float64)
    if array.shape != shape:
        raise AdaptiveNoiseError(f"{name} must have shape {shape}")
    if not np.all(np.isfinite(array)):
        raise AdaptiveNoiseError(f"{name} must contain finite values")
    return array


class AdaptiveNoiseEstimator:
    """Sliding-window external acceleration detector and Q* builder."""

    def __init__(self, params: AdaptiveParams | None = None) -> None:
        """Initialize in the fully decayed state."""
        self._params: AdaptiveParams = (
            params if params is not None else AdaptiveParams()
        )
        self._params.validate()
        self._history: np.ndarray = np.zeros(
            (self._params.m1, 3, 3), dtype=np.float64
        )
        self._r1count: int = 0
        self._r2count: int = self._params.m2
        self._excess: np.ndarray = np.zeros(3, dtype=np.float64)
        self._basis: np.ndarray = np.eye(3, dtype=np.float64)

    @property
    def params(self) -> AdaptiveParams:
        """Return the estimator parameters."""
        return self._params

    @property
    def r1count(self) -> int:
        """Return the number of residuals written to the window."""
        return self._r1count

    @property
    def r2count(self) -> int:
        """Return the number of samples since the last detection."""
        return self._r2count

    def history(self) -> np.ndarray:
        """Return a copy of the residual window, shape (M1, 3, 3)."""
        return self._history.copy()

    def window_covariance(self) -> np.ndarray:
        """Return Uk, the average of the residual window."""
        return np.mean(self._history, axis=0)

    def reset(self) -> None:
        """Clear the window and return to the fully decayed state."""
        self._history[:] = 0.0
        self._r1count = 0
        self._r2count = self._params.m2
        self._excess = np.zeros(3, dtype=np.float64)
        self._basis = np.eye(3, dtype=np.float64)

    def update(self, *, r: np.ndarray, S_nominal: np.ndarray) -> AdaptiveNoiseResult:
        """Push a residual and return the external acceleration covariance.

        Args:
            r: Accelerometer innovation in m/s^2, shape (3,)
            S_nominal: H P H^T + R_a, the innovation covariance expected
                without external acceleration, shape (3, 3)
        """
        residual: np.ndarray = _as_float_array(r, "r", (3,))
        S_mat: np.ndarray = _as_float_array(S_nominal, "S_nominal", (3, 3))

        self._history[self._r1count % self._params.m1] = np.outer(residual, residual)
        self._r1count += 1

        Uk: np.ndarray = self.window_covariance()
        Uk = 0.5 * (Uk + Uk.T)

        lambdas: np.ndarray
        U: np.ndarray
        try:
            lambdas, U = np.linalg.eigh(Uk)
        except np.linalg.LinAlgError as exc:
            raise AdaptiveNoiseError("eigen-decomposition of Uk failed") from exc

        mu: np.ndarray = np.einsum("ji,jk,ki->i", U, S_mat, U)
        margin: np.ndarray = lambdas - mu

        detected: bool = bool(np.max(margin) > self._params.gamma)
        Q_star: np.ndarray
        if detected:
            if self._r2count >= self._params.m2:
                _LOG.debug(
                    "External acceleration detected, margin %.4g", np.max(margin)
                )
            self._r2count = 0
            self._excess = np.maximum(margin, 0.0)
            self._basis = U.copy()
            Q_star = self._held_covariance()
        else:
            self._r2count += 1
            if self._r2count < self._params.m2:
                Q_star = self._held_covariance()
            else:
                if self._r2count == self._params.m2:
                    _LOG.debug("External acceleration compensation released")
                Q_star = np.zeros((3, 3), dtype=np.float64)

        return AdaptiveNoiseResult(
            Q_star=Q_star,
            lambdas=lambdas,
            mu=mu,
            detected=detected,
            r2count=self._r2count,
        )

    def snapshot(self) -> _AdaptiveSnapshot:
        """Capture the estimator state for rollback."""
        return _AdaptiveSnapshot(
            history=self._history.copy(),
            r1count=self._r1count,
            r2count=self._r2count,
            excess=self._excess.copy(),
            basis=self._basis.copy(),
        )

    def restore(self, snapshot: _AdaptiveSnapshot) -> None:
        """Restore a previously captured estimator state."""
        self._history = snapshot.history.copy()
        self._r1count = snapshot.r1count
        self._r2count = snapshot.r2count
        self._excess = snapshot.excess.copy()
        self._basis = snapshot.basis.copy()

    def _held_covariance(self) -> np.ndarray:
        """Return sum_i excess_i u_i u_i^T for the held eigenbasis."""
        Q_star: np.ndarray = (self._basis * self._excess) @ self._basis.T
        return 0.5 * (Q_star + Q_star.T)

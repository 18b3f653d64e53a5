################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the shared correction primitives."""

from __future__ import annotations

import numpy as np
import pytest

from oasis_ikf.filter.update_step import GainResult
from oasis_ikf.filter.update_step import IkfNumericalError
from oasis_ikf.filter.update_step import UpdateStep


def _observe_theta() -> np.ndarray:
    H: np.ndarray = np.zeros((3, 9), dtype=np.float64)
    H[:, 0:3] = np.eye(3)
    return H


def test_gain_matches_closed_form() -> None:
    """Ensure K = P H^T S^-1 without a mask."""
    P: np.ndarray = np.diag(np.linspace(1.0, 2.0, 9))
    H: np.ndarray = _observe_theta()
    R: np.ndarray = 0.5 * np.eye(3)
    nu: np.ndarray = np.array([1.0, 0.0, -1.0])

    gain: GainResult = UpdateStep.compute_gain(P, H, R, nu)

    S: np.ndarray = H @ P @ H.T + R
    np.testing.assert_allclose(gain.S, S)
    np.testing.assert_allclose(gain.K, P @ H.T @ np.linalg.inv(S))
    assert gain.mahalanobis2 == pytest.approx(float(nu @ np.linalg.solve(S, nu)))


def test_attitude_block_and_mask() -> None:
    """Ensure the masked gain only moves the allowed attitude directions."""
    P: np.ndarray = np.eye(9) + 0.1 * np.ones((9, 9))
    P_att: np.ndarray = UpdateStep.attitude_block(P)
    assert np.count_nonzero(P_att[3:, :]) == 0
    assert np.count_nonzero(P_att[:, 3:]) == 0

    u: np.ndarray = np.array([0.0, 0.0, 1.0])
    mask: np.ndarray = UpdateStep.attitude_mask(np.outer(u, u))
    gain: GainResult = UpdateStep.compute_gain(
        P_att, _observe_theta(), np.eye(3), np.ones(3), mask
    )
    np.testing.assert_allclose(gain.K[0:2, :], np.zeros((2, 3)))
    np.testing.assert_allclose(gain.K[3:, :], np.zeros((6, 3)))
    assert np.any(gain.K[2, :] != 0.0)


def test_joseph_matches_standard_form_for_optimal_gain() -> None:
    """Ensure the Joseph form reduces to (I - K H) P for the optimal gain."""
    P: np.ndarray = np.diag(np.linspace(0.5, 1.5, 9))
    H: np.ndarray = _observe_theta()
    R: np.ndarray = 0.2 * np.eye(3)
    gain: GainResult = UpdateStep.compute_gain(P, H, R, np.zeros(3))

    P_joseph: np.ndarray = UpdateStep.joseph_update(P, gain.K, H, R)
    P_standard: np.ndarray = (np.eye(9) - gain.K @ H) @ P
    np.testing.assert_allclose(P_joseph, P_standard, atol=1e-12)
    np.testing.assert_allclose(P_joseph, P_joseph.T)


def test_singular_innovation_rejected() -> None:
    """Ensure a singular innovation covariance raises."""
    with pytest.raises(IkfNumericalError):
        UpdateStep.compute_gain(
            np.zeros((9, 9)), _observe_theta(), np.zeros((3, 3)), np.ones(3)
        )
    with pytest.raises(IkfNumericalError):
        UpdateStep.compute_gain(
            np.zeros((9, 9)), _observe_theta(), np.diag([1.0, 1.0, 1e-14]), np.ones(3)
        )
    with pytest.raises(IkfNumericalError):
        UpdateStep.compute_gain(
            np.eye(9), _observe_theta(), np.full((3, 3), np.nan), np.ones(3)
        )

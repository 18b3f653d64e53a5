################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for external acceleration estimation."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from oasis_ikf.config.ikf_params import AdaptiveParams
from oasis_ikf.config.ikf_params import IkfParamsError
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseError
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseEstimator
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseResult


_ZERO: np.ndarray = np.zeros(3, dtype=np.float64)
_S_SMALL: np.ndarray = 0.01 * np.eye(3, dtype=np.float64)


def test_quiet_residuals_give_zero_q_star() -> None:
    """Residuals consistent with S should never trigger compensation."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    assert estimator.r2count == estimator.params.m2

    result: AdaptiveNoiseResult = estimator.update(r=_ZERO, S_nominal=np.eye(3))
    assert not result.detected
    np.testing.assert_allclose(result.Q_star, np.zeros((3, 3)))
    np.testing.assert_allclose(result.mu, np.ones(3))


def test_detection_builds_q_star_along_residual() -> None:
    """A large residual should inflate noise along its direction."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    r: np.ndarray = np.array([3.0, 0.0, 0.0], dtype=np.float64)

    result: AdaptiveNoiseResult = estimator.update(r=r, S_nominal=_S_SMALL)

    assert result.detected
    assert result.r2count == 0
    # Uk = r r^T / M1 = diag(3, 0, 0)
    expected: np.ndarray = np.diag([3.0 - 0.01, 0.0, 0.0])
    np.testing.assert_allclose(result.Q_star, expected, atol=1e-12)


def test_q_star_decays_after_m2_quiet_samples() -> None:
    """Q* should hold for M2 - 1 quiet samples then drop to zero."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator(
        AdaptiveParams(m1=3, m2=3, gamma=0.1)
    )
    r: np.ndarray = np.array([0.0, 2.0, 0.0], dtype=np.float64)

    detected: list[bool] = []
    held: list[bool] = []
    sample: np.ndarray
    for sample in (r, _ZERO, _ZERO, _ZERO, _ZERO, _ZERO):
        result: AdaptiveNoiseResult = estimator.update(r=sample, S_nominal=_S_SMALL)
        detected.append(result.detected)
        held.append(bool(np.any(result.Q_star != 0.0)))

    # The spike stays in the window for M1 samples
    assert detected == [True, True, True, False, False, False]
    assert held == [True, True, True, True, True, False]


def test_window_is_circular() -> None:
    """Residuals should overwrite the oldest slot."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator(
        AdaptiveParams(m1=2, m2=1, gamma=0.1)
    )
    r1: np.ndarray = np.array([1.0, 0.0, 0.0], dtype=np.float64)
    r2: np.ndarray = np.array([0.0, 1.0, 0.0], dtype=np.float64)
    r3: np.ndarray = np.array([0.0, 0.0, 1.0], dtype=np.float64)

    estimator.update(r=r1, S_nominal=np.eye(3))
    estimator.update(r=r2, S_nominal=np.eye(3))
    estimator.update(r=r3, S_nominal=np.eye(3))

    history: np.ndarray = estimator.history()
    assert estimator.r1count == 3
    np.testing.assert_allclose(history[0], np.outer(r3, r3))
    np.testing.assert_allclose(history[1], np.outer(r2, r2))
    np.testing.assert_allclose(
        estimator.window_covariance(), np.diag([0.0, 0.5, 0.5])
    )


def test_snapshot_restore() -> None:
    """Restoring a snapshot should undo later updates."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    snapshot = estimator.snapshot()
    estimator.update(r=np.array([5.0, 0.0, 0.0]), S_nominal=_S_SMALL)
    assert estimator.r2count == 0

    estimator.restore(snapshot)
    assert estimator.r1count == 0
    assert estimator.r2count == estimator.params.m2
    np.testing.assert_allclose(estimator.history(), np.zeros((3, 3, 3)))


def test_reset() -> None:
    """Reset should return to the fully decayed state."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    estimator.update(r=np.array([5.0, 0.0, 0.0]), S_nominal=_S_SMALL)
    estimator.reset()
    assert estimator.r1count == 0
    assert estimator.r2count == estimator.params.m2


def test_invalid_inputs() -> None:
    """Malformed residuals and parameters should raise."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    with pytest.raises(AdaptiveNoiseError):
        estimator.update(r=np.array([np.nan, 0.0, 0.0]), S_nominal=np.eye(3))
    with pytest.raises(AdaptiveNoiseError):
        estimator.update(r=np.zeros(2), S_nominal=np.eye(3))
    with pytest.raises(IkfParamsError):
        AdaptiveNoiseEstimator(AdaptiveParams(m1=0))


def test_detection_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Detection transitions should be logged at debug level."""
    estimator: AdaptiveNoiseEstimator = AdaptiveNoiseEstimator()
    with caplog.at_level(logging.DEBUG, logger="oasis_ikf.models.adaptive_noise"):
        estimator.update(r=np.array([5.0, 0.0, 0.0]), S_nominal=_S_SMALL)
    assert "External acceleration detected" in caplog.text

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

from oasis_ikf.filter.update_step import GainResult
from oasis_ikf.filter.update_step import UpdateStep
from oasis_ikf.ikf_types.update_report import UpdateReport
from oasis_ikf.math_utils.linalg import SO3
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseEstimator
from oasis_ikf.models.adaptive_noise import AdaptiveNoiseResult
from oasis_ikf.state.error_state import ErrorStateLayout
from oasis_ikf.state.ikf_state import IkfState


# Navigation-frame vertical axis
_UP_NAV: np.ndarray = np.array([0.0, 0.0, 1.0], dtype=np.float64)


class AccelUpdate:
    """Pitch and roll correction from the accelerometer.

    Measurement model, with g_body = C(q) g_nav:
        z1 = a - b_a - g_body ≈ 2 [g_body]x delta_theta + delta_b_a
        H1 = [2 [g_body]x, 0, I]

    The accelerometer noise is inflated by the external acceleration
    covariance Q* from the adaptive estimator.

    Without a magnetometer the gain only uses the attitude block of P and is
    projected onto the plane orthogonal to the body "up" axis, so gravity
    never moves yaw. With a magnetometer the full-state gain is used.
    """

    @staticmethod
    def observation_matrix(H_template: np.ndarray, g_body: np.ndarray) -> np.ndarray:
        """Return H1 with the attitude block rebuilt for g_body."""
        H: np.ndarray = np.array(H_template, dtype=np.float64)
        H[:, ErrorStateLayout.slice_theta()] = 2.0 * SO3.hat(g_body)
        return H

    @staticmethod
    def apply(
        state: IkfState,
        *,
        accel: np.ndarray,
        R_a: np.ndarray,
        g_nav: np.ndarray,
        H_template: np.ndarray,
        estimator: AdaptiveNoiseEstimator,
        magnetometer_available: bool,
    ) -> UpdateReport:
        """Correct state in place and return the update report.

        Raises:
            IkfNumericalError: when the innovation covariance is degenerate
            AdaptiveNoiseError: when the residual window cannot be decomposed
        """
        C: np.ndarray = state.q.as_dcm()
        g_body: np.ndarray = C @ g_nav
        H1: np.ndarray = AccelUpdate.observation_matrix(H_template, g_body)

        z1: np.ndarray = accel - state.b_a - g_body
        nu: np.ndarray = z1 - H1 @ state.x

        S_nominal: np.ndarray = H1 @ state.P @ H1.T + R_a
        adaptive: AdaptiveNoiseResult = estimator.update(r=nu, S_nominal=S_nominal)
        R_eff: np.ndarray = R_a + adaptive.Q_star

        P_gain: np.ndarray
        mask: np.ndarray | None
        if magnetometer_available:
            P_gain = state.P
            mask = None
        else:
            up_body: np.ndarray = C @ _UP_NAV
            P_gain = UpdateStep.attitude_block(state.P)
            mask = UpdateStep.attitude_mask(np.eye(3) - np.outer(up_body, up_body))

        gain: GainResult = UpdateStep.compute_gain(P_gain, H1, R_eff, nu, mask)

        state.x = state.x + gain.K @ nu
        state.P = UpdateStep.joseph_update(state.P, gain.K, H1, R_eff)
        state.fold_attitude_error()

        return UpdateReport(
            sensor="accel",
            accepted=True,
            nu=nu,
            S=gain.S,
            mahalanobis2=gain.mahalanobis2,
            Q_star=adaptive.Q_star,
            external_accel_detected=adaptive.detected,
        )

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
from oasis_ikf.state.error_state import ErrorStateLayout
from oasis_ikf.state.ikf_state import IkfState


# Navigation-frame vertical axis
_UP_NAV: np.ndarray = np.array([0.0, 0.0, 1.0], dtype=np.float64)


class MagUpdate:
    """Yaw-only correction from the magnetometer.

    Measurement model, with m_body = C(q) m_nav:
        z2 = m - m_body ≈ 2 [m_body]x delta_theta
        H2 = [2 [m_body]x, 0, 0]

    The gain uses the attitude block of P and is projected onto the body
    "up" axis u = C(q) [0, 0, 1], so the correction is a rotation about the
    navigation vertical and leaves pitch and roll untouched.
    """

    @staticmethod
    def observation_matrix(m_body: np.ndarray) -> np.ndarray:
        """Return H2 for the body-frame magnetic reference."""
        H: np.ndarray = np.zeros((3, ErrorStateLayout.DIM), dtype=np.float64)
        H[:, ErrorStateLayout.slice_theta()] = 2.0 * SO3.hat(m_body)
        return H

    @staticmethod
    def apply(
        state: IkfState,
        *,
        mag: np.ndarray,
        R_m: np.ndarray,
        m_nav: np.ndarray,
    ) -> UpdateReport:
        """Correct state in place and return the update report.

        Raises:
            IkfNumericalError: when the innovation covariance is degenerate
        """
        C: np.ndarray = state.q.as_dcm()
        m_body: np.ndarray = C @ m_nav
        H2: np.ndarray = MagUpdate.observation_matrix(m_body)

        z2: np.ndarray = mag - m_body
        nu: np.ndarray = z2 - H2 @ state.x

        up_body: np.ndarray = C @ _UP_NAV
        P_gain: np.ndarray = UpdateStep.attitude_block(state.P)
        mask: np.ndarray = UpdateStep.attitude_mask(np.outer(up_body, up_body))

        gain: GainResult = UpdateStep.compute_gain(P_gain, H2, R_m, nu, mask)

        state.x = state.x + gain.K @ nu
        state.P = UpdateStep.joseph_update(state.P, gain.K, H2, R_m)
        state.fold_attitude_error()

        return UpdateReport(
            sensor="mag",
            accepted=True,
            nu=nu,
            S=gain.S,
            mahalanobis2=gain.mahalanobis2,
        )

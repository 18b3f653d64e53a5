################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Error-state layout for the indirect Kalman filter."""

from __future__ import annotations

import numpy as np


class ErrorStateLayout:
    """Index layout of the 9-element error state.

    The ordering is canonical and must never change:
        [delta_theta (3), delta_b_g (3), delta_b_a (3)]

    delta_theta is the vector part of the error quaternion [1, delta_theta]
    composed on the right of the attitude estimate. delta_b_g and delta_b_a
    are the corrections to the running gyro and accel bias estimates.
    """

    # Error state dimension
    DIM: int = 9

    @staticmethod
    def slice_theta() -> slice:
        """Return the attitude error slice."""
        return slice(0, 3)

    @staticmethod
    def slice_b_g() -> slice:
        """Return the gyro bias error slice."""
        return slice(3, 6)

    @staticmethod
    def slice_b_a() -> slice:
        """Return the accel bias error slice."""
        return slice(6, 9)

    @staticmethod
    def zeros() -> np.ndarray:
        """Return a zero error state."""
        return np.zeros(ErrorStateLayout.DIM, dtype=np.float64)

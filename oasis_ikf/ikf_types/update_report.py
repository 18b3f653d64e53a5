################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Update report types for the indirect Kalman filter."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class UpdateReport:
    """Summary of one measurement correction.

    Attributes:
        sensor: Measurement name, "accel" or "mag"
        accepted: True when the correction was applied
        reason: Rejection reason, empty when accepted
        nu: Innovation z - H x, shape (3,), None when unavailable
        S: Innovation covariance used for the gain, shape (3, 3), None when
            unavailable
        mahalanobis2: nu^T S^-1 nu, None on rejection
        Q_star: External acceleration covariance added to R_a, accel only
        external_accel_detected: True when the adaptive detector fired
    """

    sensor: str
    accepted: bool
    reason: str = ""
    nu: np.ndarray | None = None
    S: np.ndarray | None = None
    mahalanobis2: float | None = None
    Q_star: np.ndarray | None = None
    external_accel_detected: bool = False

    def __post_init__(self) -> None:
        """Validate update report fields."""
        if self.sensor not in ("accel", "mag"):
            raise ValueError("sensor must be 'accel' or 'mag'")
        if not isinstance(self.accepted, bool):
            raise ValueError("accepted must be a bool")
        if self.accepted and self.reason:
            raise ValueError("accepted reports must not carry a reason")
        if not self.accepted and not self.reason:
            raise ValueError("rejected reports must carry a reason")
        if self.mahalanobis2 is not None:
            if not np.isfinite(self.mahalanobis2) or self.mahalanobis2 < 0.0:
                raise ValueError("mahalanobis2 must be finite and non-negative")

    @staticmethod
    def rejected(sensor: str, reason: str) -> UpdateReport:
        """Return a report for a rejected correction."""
        return UpdateReport(sensor=sensor, accepted=False, reason=reason)

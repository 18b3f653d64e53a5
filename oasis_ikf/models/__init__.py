################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Process and noise models for the indirect Kalman filter."""

from __future__ import annotations

from oasis_ikf.models.adaptive_noise import AdaptiveNoiseEstimator
from oasis_ikf.models.process_model import ProcessModel


__all__ = [
    "AdaptiveNoiseEstimator",
    "ProcessModel",
]

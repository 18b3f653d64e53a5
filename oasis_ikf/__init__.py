################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Indirect Kalman filter for attitude and heading reference systems."""

from __future__ import annotations

from oasis_ikf.config.ikf_config import IkfConfig
from oasis_ikf.config.ikf_params import IkfParams
from oasis_ikf.filter.ikf import IndirectKalmanFilter
from oasis_ikf.math_utils.quat import Quaternion


__all__ = [
    "IkfConfig",
    "IkfParams",
    "IndirectKalmanFilter",
    "Quaternion",
]

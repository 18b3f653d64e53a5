################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Type definitions for the indirect Kalman filter."""

from __future__ import annotations

from oasis_ikf.ikf_types.update_report import UpdateReport


__all__ = [
    "UpdateReport",
]

################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for covariance utilities."""

from __future__ import annotations

import numpy as np
import pytest

from oasis_ikf.state.covariance import Covariance
from oasis_ikf.state.covariance import CovarianceError


def test_covariance_rejects_non_symmetric() -> None:
    """Ensure non-symmetric covariance matrices raise."""
    mat: np.ndarray = np.array(
        [[1.0, 2.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
        dtype=np.float64,
    )
    with pytest.raises(CovarianceError):
        Covariance(mat)


def test_covariance_rejects_non_finite() -> None:
    """Ensure NaN entries raise."""
    with pytest.raises(CovarianceError):
        Covariance(np.array([[np.nan, 0.0], [0.0, 1.0]]))


def test_covariance_psd_checks() -> None:
    """Ensure PSD checks are consistent."""
    cov: Covariance = Covariance(np.eye(3))
    assert cov.is_psd()
    cov.assert_psd()

    bad: Covariance = Covariance(np.diag(np.array([1.0, -0.5, 2.0], dtype=np.float64)))
    assert not bad.is_psd()
    with pytest.raises(CovarianceError):
        bad.assert_psd()

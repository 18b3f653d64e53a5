################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Physical constants and array validation helpers."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


# Number of sensor axes
NUM_AXES: int = 3

# Number of quaternion components
QUAT_SIZE: int = 4


class PhysicalConstants:
    """Physical constants used by the filter."""

    GRAVITY_MPS2: float = 9.80665
    EPS: float = 1e-12


def assert_finite(x: NDArray[np.float64], name: str) -> None:
    """Raise ValueError when the array contains non-finite values."""
    if not np.all(np.isfinite(x)):
        raise ValueError(f"{name} must be finite")


def as_vector3(value: object, name: str) -> NDArray[np.float64]:
    """Return a finite float64 copy of a 3-vector."""
    vec: NDArray[np.float64] = np.array(value, dtype=np.float64).reshape(-1)
    if vec.shape != (NUM_AXES,):
        raise ValueError(f"{name} must have shape ({NUM_AXES},)")
    assert_finite(vec, name)
    return vec


def as_matrix(value: object, shape: tuple[int, int], name: str) -> NDArray[np.float64]:
    """Return a finite float64 copy of a matrix with the required shape."""
    mat: NDArray[np.float64] = np.array(value, dtype=np.float64)
    if mat.shape != shape:
        raise ValueError(f"{name} must have shape {shape}")
    assert_finite(mat, name)
    return mat

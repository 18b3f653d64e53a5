################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Linear algebra utilities for rotations and matrices."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from oasis_ikf.math_utils.units import assert_finite


class SO3:
    """SO(3) rotation utilities."""

    @staticmethod
    def hat(w: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the skew-symmetric matrix [w]x so that [w]x v = w x v."""
        vec: NDArray[np.float64] = np.asarray(w, dtype=float)
        Linalg.ensure_shape(vec, (3,), "w")
        assert_finite(vec, "w")
        wx: float = float(vec[0])
        wy: float = float(vec[1])
        wz: float = float(vec[2])
        return np.array(
            [
                [0.0, -wz, wy],
                [wz, 0.0, -wx],
                [-wy, wx, 0.0],
            ],
            dtype=float,
        )


class Linalg:
    """General linear algebra helpers."""

    @staticmethod
    def block_diag(*blocks: NDArray[np.float64]) -> NDArray[np.float64]:
        """Create a block diagonal matrix from the given blocks."""
        if not blocks:
            return np.zeros((0, 0), dtype=float)
        shapes: list[tuple[int, int]] = []
        for block in blocks:
            mat: NDArray[np.float64] = np.asarray(block, dtype=float)
            if mat.ndim != 2:
                raise ValueError("blocks must be 2D arrays")
            shapes.append((mat.shape[0], mat.shape[1]))
        total_rows: int = sum(shape[0] for shape in shapes)
        total_cols: int = sum(shape[1] for shape in shapes)
        result: NDArray[np.float64] = np.zeros((total_rows, total_cols), dtype=float)
        row: int = 0
        col: int = 0
        for block, (rows, cols) in zip(blocks, shapes):
            result[row : row + rows, col : col + cols] = np.asarray(block, dtype=float)
            row += rows
            col += cols
        return result

    @staticmethod
    def symmetrize(P: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return 0.5 * (P + P^T)."""
        mat: NDArray[np.float64] = np.asarray(P, dtype=float)
        if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
            raise ValueError("P must be a square matrix")
        return 0.5 * (mat + mat.T)

    @staticmethod
    def min_eigenvalue(P: NDArray[np.float64]) -> float:
        """Return the smallest eigenvalue of a symmetric matrix."""
        return float(np.min(np.linalg.eigvalsh(Linalg.symmetrize(P))))

    @staticmethod
    def ensure_shape(x: NDArray[np.float64], shape: tuple[int, ...], name: str) -> None:
        """Ensure an array has the expected shape."""
        if x.shape != shape:
            raise ValueError(f"{name} must have shape {shape}")

################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Quaternion utilities using the wxyz convention.

Conventions:
    - q is stored as [w, x, y, z] and composed with the Hamilton product
    - q maps body vectors into the navigation frame: v_N = R(q) v_B
    - the direction cosine matrix C(q) = R(q)^T maps navigation vectors into
      the body frame: v_B = C(q) v_N
    - q_dot = 0.5 * Omega(omega) * q for a body angular rate omega
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from oasis_ikf.math_utils.units import QUAT_SIZE
from oasis_ikf.math_utils.units import PhysicalConstants
from oasis_ikf.math_utils.units import assert_finite


@dataclass(frozen=True)
class Quaternion:
    """Quaternion stored in wxyz order."""

    wxyz: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Validate quaternion inputs and normalize storage."""
        wxyz: NDArray[np.float64] = np.array(self.wxyz, dtype=float).reshape(-1)
        if wxyz.shape != (QUAT_SIZE,):
            raise ValueError(f"wxyz must be shape ({QUAT_SIZE},)")
        assert_finite(wxyz, "wxyz")
        object.__setattr__(self, "wxyz", wxyz)

    @staticmethod
    def identity() -> "Quaternion":
        """Return the identity quaternion."""
        return Quaternion.from_wxyz(1.0, 0.0, 0.0, 0.0)

    @staticmethod
    def from_wxyz(w: float, x: float, y: float, z: float) -> "Quaternion":
        """Create a quaternion from components."""
        return Quaternion(np.array([w, x, y, z], dtype=float))

    @staticmethod
    def from_rotvec(v: NDArray[np.float64]) -> "Quaternion":
        """Create a unit quaternion from a rotation vector (axis * angle)."""
        vec: NDArray[np.float64] = np.asarray(v, dtype=float)
        if vec.shape != (3,):
            raise ValueError("v must be shape (3,)")
        theta: float = float(np.linalg.norm(vec))
        if theta < PhysicalConstants.EPS:
            return Quaternion.identity()
        axis: NDArray[np.float64] = vec / theta
        half: float = 0.5 * theta
        return Quaternion(np.concatenate(([math.cos(half)], math.sin(half) * axis)))

    @staticmethod
    def from_small_angle(delta: NDArray[np.float64]) -> "Quaternion":
        """Return the normalized error quaternion [1, delta]."""
        vec: NDArray[np.float64] = np.asarray(delta, dtype=float)
        if vec.shape != (3,):
            raise ValueError("delta must be shape (3,)")
        return Quaternion(np.concatenate(([1.0], vec))).normalized()

    @staticmethod
    def from_euler_zyx(roll: float, pitch: float, yaw: float) -> "Quaternion":
        """Create a quaternion from ZYX Euler angles in radians."""
        cr: float = math.cos(0.5 * roll)
        sr: float = math.sin(0.5 * roll)
        cp: float = math.cos(0.5 * pitch)
        sp: float = math.sin(0.5 * pitch)
        cy: float = math.cos(0.5 * yaw)
        sy: float = math.sin(0.5 * yaw)
        return Quaternion.from_wxyz(
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        )

    @staticmethod
    def omega_matrix(omega: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the 4x4 angular-rate matrix Omega(omega)."""
        vec: NDArray[np.float64] = np.asarray(omega, dtype=float)
        if vec.shape != (3,):
            raise ValueError("omega must be shape (3,)")
        wx: float = float(vec[0])
        wy: float = float(vec[1])
        wz: float = float(vec[2])
        return np.array(
            [
                [0.0, -wx, -wy, -wz],
                [wx, 0.0, wz, -wy],
                [wy, -wz, 0.0, wx],
                [wz, wy, -wx, 0.0],
            ],
            dtype=float,
        )

    def norm(self) -> float:
        """Return the Euclidean norm of the components."""
        return float(np.linalg.norm(self.wxyz))

    def normalized(self) -> "Quaternion":
        """Return a normalized quaternion."""
        norm: float = self.norm()
        if norm < PhysicalConstants.EPS:
            raise ValueError("Quaternion norm is too small")
        return Quaternion(self.wxyz / norm)

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        """Multiply two quaternions using the Hamilton product."""
        q1: NDArray[np.float64] = self.wxyz
        q2: NDArray[np.float64] = other.wxyz
        w1: float = float(q1[0])
        x1: float = float(q1[1])
        y1: float = float(q1[2])
        z1: float = float(q1[3])
        w2: float = float(q2[0])
        x2: float = float(q2[1])
        y2: float = float(q2[2])
        z2: float = float(q2[3])
        w: float = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2
        x: float = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
        y: float = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
        z: float = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
        return Quaternion.from_wxyz(w, x, y, z)

    def as_matrix(self) -> NDArray[np.float64]:
        """Return the body-to-navigation rotation matrix R(q)."""
        return self.as_dcm().T

    def as_dcm(self) -> NDArray[np.float64]:
        """Return the navigation-to-body direction cosine matrix C(q)."""
        q0: float = float(self.wxyz[0])
        q1: float = float(self.wxyz[1])
        q2: float = float(self.wxyz[2])
        q3: float = float(self.wxyz[3])
        return np.array(
            [
                [
                    2.0 * q0 * q0 + 2.0 * q1 * q1 - 1.0,
                    2.0 * q1 * q2 + 2.0 * q0 * q3,
                    2.0 * q1 * q3 - 2.0 * q0 * q2,
                ],
                [
                    2.0 * q1 * q2 - 2.0 * q0 * q3,
                    2.0 * q0 * q0 + 2.0 * q2 * q2 - 1.0,
                    2.0 * q2 * q3 + 2.0 * q0 * q1,
                ],
                [
                    2.0 * q1 * q3 + 2.0 * q0 * q2,
                    2.0 * q2 * q3 - 2.0 * q0 * q1,
                    2.0 * q0 * q0 + 2.0 * q3 * q3 - 1.0,
                ],
            ],
            dtype=float,
        )

    def to_euler_zyx(self) -> NDArray[np.float64]:
        """Return [roll, pitch, yaw] with R(q) = Rz(yaw) Ry(pitch) Rx(roll)."""
        R: NDArray[np.float64] = self.as_matrix()
        roll: float = math.atan2(float(R[2, 1]), float(R[2, 2]))
        pitch: float = math.asin(float(np.clip(-R[2, 0], -1.0, 1.0)))
        yaw: float = math.atan2(float(R[1, 0]), float(R[0, 0]))
        return np.array([roll, pitch, yaw], dtype=float)

    def to_wxyz(self) -> NDArray[np.float64]:
        """Return a copy of the quaternion components."""
        return np.array(self.wxyz, dtype=float)

    def almost_equal(self, other: "Quaternion", atol: float = 1e-9) -> bool:
        """Check approximate equality, accounting for sign ambiguity."""
        q1: NDArray[np.float64] = self.wxyz
        q2: NDArray[np.float64] = other.wxyz
        if np.allclose(q1, q2, atol=atol):
            return True
        return bool(np.allclose(q1, -q2, atol=atol))

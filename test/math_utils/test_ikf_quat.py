################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for quaternion utilities."""

from __future__ import annotations

import math

import numpy as np
import pytest

from oasis_ikf.math_utils.quat import Quaternion


def test_identity_dcm() -> None:
    """Ensure identity maps to the identity DCM."""
    q: Quaternion = Quaternion.identity()
    np.testing.assert_allclose(q.as_dcm(), np.eye(3), atol=1e-12)


def test_rotvec_rotates_body_into_navigation() -> None:
    """Ensure a yaw of 90 degrees maps body x onto navigation y."""
    q: Quaternion = Quaternion.from_rotvec(np.array([0.0, 0.0, 0.5 * math.pi]))
    v_nav: np.ndarray = q.as_matrix() @ np.array([1.0, 0.0, 0.0])
    np.testing.assert_allclose(v_nav, [0.0, 1.0, 0.0], atol=1e-12)

    v_body: np.ndarray = q.as_dcm() @ np.array([0.0, 1.0, 0.0])
    np.testing.assert_allclose(v_body, [1.0, 0.0, 0.0], atol=1e-12)


def test_dcm_is_transpose_of_rotation() -> None:
    """Ensure C(q) is the transpose of R(q) and orthonormal."""
    q: Quaternion = Quaternion.from_euler_zyx(0.3, -0.2, 1.1)
    C: np.ndarray = q.as_dcm()
    np.testing.assert_allclose(C, q.as_matrix().T, atol=1e-12)
    np.testing.assert_allclose(C @ C.T, np.eye(3), atol=1e-12)


def test_hamilton_composition_matches_matrix_product() -> None:
    """Ensure q1 * q2 composes rotations as R(q1) R(q2)."""
    q1: Quaternion = Quaternion.from_rotvec(np.array([0.1, -0.4, 0.7]))
    q2: Quaternion = Quaternion.from_rotvec(np.array([-0.5, 0.2, 0.3]))
    q12: Quaternion = q1 * q2
    np.testing.assert_allclose(
        q12.as_matrix(), q1.as_matrix() @ q2.as_matrix(), atol=1e-12
    )


def test_small_angle_is_normalized() -> None:
    """Ensure the error quaternion is unit norm."""
    q: Quaternion = Quaternion.from_small_angle(np.array([0.1, -0.2, 0.05]))
    assert math.isclose(q.norm(), 1.0, rel_tol=0.0, abs_tol=1e-12)
    assert q.wxyz[0] > 0.0


@pytest.mark.parametrize(
    "roll, pitch, yaw",
    [
        (0.0, 0.0, 0.0),
        (0.4, -0.3, 2.5),
        (-2.8, 1.2, -3.0),
        (1.0, -1.4, 0.2),
    ],
)
def test_euler_round_trip(roll: float, pitch: float, yaw: float) -> None:
    """Ensure ZYX Euler angles survive a quaternion round trip."""
    q: Quaternion = Quaternion.from_euler_zyx(roll, pitch, yaw)
    np.testing.assert_allclose(q.to_euler_zyx(), [roll, pitch, yaw], atol=1e-9)


def test_euler_yaw_only() -> None:
    """Ensure a pure yaw rotation reports zero roll and pitch."""
    q: Quaternion = Quaternion.from_rotvec(np.array([0.0, 0.0, -0.7]))
    euler: np.ndarray = q.to_euler_zyx()
    np.testing.assert_allclose(euler, [0.0, 0.0, -0.7], atol=1e-12)


def test_omega_matrix_is_skew() -> None:
    """Ensure Omega(omega) is skew-symmetric with Omega^2 = -|omega|^2 I."""
    omega: np.ndarray = np.array([0.3, -0.2, 0.5])
    Omega: np.ndarray = Quaternion.omega_matrix(omega)
    np.testing.assert_allclose(Omega, -Omega.T)
    np.testing.assert_allclose(
        Omega @ Omega, -float(omega @ omega) * np.eye(4), atol=1e-12
    )


def test_omega_matrix_matches_right_product() -> None:
    """Ensure Omega(omega) q equals q * [0, omega]."""
    q: Quaternion = Quaternion.from_rotvec(np.array([0.4, 0.1, -0.3]))
    omega: np.ndarray = np.array([0.3, -0.2, 0.5])
    expected: Quaternion = q * Quaternion(np.concatenate(([0.0], omega)))
    np.testing.assert_allclose(
        Quaternion.omega_matrix(omega) @ q.wxyz, expected.wxyz, atol=1e-12
    )


def test_rejects_bad_input() -> None:
    """Ensure malformed quaternions raise."""
    with pytest.raises(ValueError):
        Quaternion(np.array([1.0, 0.0, 0.0]))
    with pytest.raises(ValueError):
        Quaternion(np.array([1.0, np.nan, 0.0, 0.0]))
    with pytest.raises(ValueError):
        Quaternion(np.zeros(4)).normalized()

################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for YAML parameter loading."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest

from oasis_ikf.config.ikf_params import IkfParams
from oasis_ikf.config.params_yaml import IkfYamlError
from oasis_ikf.config.params_yaml import load_params_yaml
from oasis_ikf.config.params_yaml import loads_params_yaml
from oasis_ikf.config.params_yaml import params_from_dict


def test_empty_document_gives_defaults() -> None:
    """An empty document should produce the defaults."""
    params: IkfParams = loads_params_yaml("")
    assert params.as_nested_dict() == IkfParams.defaults().as_nested_dict()


def test_partial_override() -> None:
    """Present keys override defaults and missing keys keep them."""
    text: str = (
        "reference:\n"
        "  dip_angle_rad: 1.15\n"
        "noise:\n"
        "  accel_cov_diag: [2.0e-3, 2.0e-3, 4.0e-3]\n"
        "adaptive:\n"
        "  m1: 5\n"
    )
    params: IkfParams = loads_params_yaml(text)
    assert params.reference.dip_angle_rad == pytest.approx(1.15)
    assert params.reference.gravity_mps2 == pytest.approx(9.80665)
    np.testing.assert_allclose(params.noise.accel_cov_diag, [2e-3, 2e-3, 4e-3])
    assert params.adaptive.m1 == 5
    assert params.adaptive.m2 == 3


def test_unknown_keys_rejected() -> None:
    """Typos should not silently fall back to defaults."""
    with pytest.raises(IkfYamlError):
        params_from_dict({"adaptiv": {"m1": 3}})
    with pytest.raises(IkfYamlError):
        params_from_dict({"adaptive": {"window": 3}})


def test_bad_values_rejected() -> None:
    """Non-numeric and invalid values should raise."""
    with pytest.raises(IkfYamlError):
        params_from_dict({"adaptive": {"m1": True}})
    with pytest.raises(IkfYamlError):
        params_from_dict({"adaptive": {"m1": 3.0}})
    with pytest.raises(IkfYamlError):
        params_from_dict({"noise": {"mag_cov_diag": [1.0, 1.0]}})
    with pytest.raises(IkfYamlError):
        params_from_dict({"reference": {"gravity_mps2": "high"}})
    with pytest.raises(IkfYamlError):
        loads_params_yaml("- just\n- a list\n")
    with pytest.raises(IkfYamlError):
        loads_params_yaml("reference: [unclosed\n")


def test_load_from_file(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Files should load and log the source path."""
    path: Path = tmp_path / "ikf.yaml"
    path.write_text("adaptive:\n  gamma: 0.25\n", encoding="utf-8")

    with caplog.at_level(logging.INFO, logger="oasis_ikf.config.params_yaml"):
        params: IkfParams = load_params_yaml(path)

    assert params.adaptive.gamma == pytest.approx(0.25)
    assert str(path) in caplog.text


def test_shipped_config_matches_defaults() -> None:
    """The packaged parameter file should mirror the defaults."""
    path: Path = Path(__file__).resolve().parents[2] / "config" / "ikf_params.yaml"
    params: IkfParams = load_params_yaml(path)
    defaults: IkfParams = IkfParams.defaults()
    assert params.adaptive == defaults.adaptive
    assert params.initial == defaults.initial
    np.testing.assert_allclose(
        params.noise.gyro_cov_diag, defaults.noise.gyro_cov_diag
    )

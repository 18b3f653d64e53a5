################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""YAML loading for the filter parameter tree.

Every namespace and key is optional; missing values keep their defaults.
Unknown namespaces or keys are rejected so typos do not silently fall back
to defaults.

Example:

    reference:
      gravity_mps2: 9.81
      dip_angle_rad: 1.15
    noise:
      accel_cov_diag: [1.0e-3, 1.0e-3, 1.0e-3]
    adaptive:
      m1: 3
      m2: 3
      gamma: 0.1
"""

from __future__ import annotations

import logging
import numbers
import os
from dataclasses import fields
from typing import Any
from typing import Mapping

import numpy as np
import yaml

from oasis_ikf.config.ikf_params import AdaptiveParams
from oasis_ikf.config.ikf_params import IkfParams
from oasis_ikf.config.ikf_params import IkfParamsError
from oasis_ikf.config.ikf_params import InitialParams
from oasis_ikf.config.ikf_params import NoiseParams
from oasis_ikf.config.ikf_params import ReferenceParams


_LOG: logging.Logger = logging.getLogger(__name__)


class IkfYamlError(Exception):
    """Raised when a parameter file is malformed."""


_NAMESPACES: dict[str, type] = {
    "reference": ReferenceParams,
    "noise": NoiseParams,
    "initial": InitialParams,
    "adaptive": AdaptiveParams,
}


def params_from_dict(data: Mapping[str, object]) -> IkfParams:
    """Build a validated parameter tree from a nested mapping."""
    if not isinstance(data, Mapping):
        raise IkfYamlError("YAML root must be a mapping")
    _require_known_keys("root", data, set(_NAMESPACES))

    namespaces: dict[str, Any] = {}
    name: str
    cls: type
    for name, cls in _NAMESPACES.items():
        section: Mapping[str, object] = _require_mapping(data.get(name, {}), name)
        namespaces[name] = _build_namespace(name, cls, section)

    params: IkfParams = IkfParams(**namespaces)
    try:
        params.validate()
    except IkfParamsError as exc:
        raise IkfYamlError(str(exc)) from exc
    return params


def loads_params_yaml(text: str) -> IkfParams:
    """Parse a parameter tree from YAML text."""
    try:
        loaded: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise IkfYamlError(f"Invalid YAML: {exc}") from exc
    if loaded is None:
        loaded = {}
    return params_from_dict(loaded)


def load_params_yaml(path: str | os.PathLike[str]) -> IkfParams:
    """Load a parameter tree from a YAML file."""
    with open(path, "r", encoding="utf-8") as handle:
        text: str = handle.read()
    params: IkfParams = loads_params_yaml(text)
    _LOG.info("Loaded filter parameters from %s", os.fspath(path))
    return params


def _build_namespace(scope: str, cls: type, section: Mapping[str, object]) -> Any:
    """Instantiate one namespace dataclass from a mapping."""
    field_names: set[str] = {f.name for f in fields(cls)}
    _require_known_keys(scope, section, field_names)
    kwargs: dict[str, Any] = {}
    key: str
    value: object
    for key, value in section.items():
        kwargs[key] = _coerce_value(value, f"{scope}.{key}")
    try:
        return cls(**kwargs)
    except IkfParamsError as exc:
        raise IkfYamlError(str(exc)) from exc


def _coerce_value(value: object, name: str) -> Any:
    """Convert YAML scalars and sequences to parameter values."""
    if isinstance(value, bool):
        raise IkfYamlError(f"{name} must be numeric")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, (list, tuple)):
        try:
            return np.asarray(value, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise IkfYamlError(f"{name} must be numeric") from exc
    raise IkfYamlError(f"{name} must be a number or a list of numbers")


def _require_known_keys(
    scope: str, data: Mapping[str, object], allowed: set[str]
) -> None:
    """Ensure a mapping only contains known keys."""
    unknown: set[str] = {str(key) for key in data.keys() if key not in allowed}
    if unknown:
        raise IkfYamlError(f"Unexpected keys in {scope}: {', '.join(sorted(unknown))}")


def _require_mapping(value: object, name: str) -> Mapping[str, object]:
    """Ensure the value is a mapping."""
    if not isinstance(value, Mapping):
        raise IkfYamlError(f"{name} must be a mapping")
    return value

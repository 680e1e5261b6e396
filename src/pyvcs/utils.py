"""Contains utility functions for the reaction adjustment package, as well as custom
exception classes."""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any, Optional

from . import _core

__all__ = [
    "EquilibriumModellingError",
    "NonPositiveHessianError",
    "read_config",
    "default_solver_params",
]


class EquilibriumModellingError(Exception):
    """Custom exception class to alert the user when the equilibrium framework is
    inconsistently used.

    Such usage includes for example:

    - passing an ideal Hessian diagonal which is not strictly positive into the
      activity coefficient correction,
    - other violations of preconditions of the reaction adjustment, which the
      caller (outer solver) is responsible for.

    """


class NonPositiveHessianError(EquilibriumModellingError):
    """Raised when the ideal Hessian diagonal of a reaction is not strictly positive.

    This indicates a corrupted curvature estimate of the caller. The reaction
    adjustment has no way to recover from it.

    """


def read_config(path: Optional[Path | str] = None) -> dict[str, dict[str, str]]:
    """Reads a configuration file in ``ini`` format.

    Parameters:
        path: ``default=None``

            Path to the config file. If None, ``pyvcs.cfg`` in the current working
            directory is read.

    Returns:
        A dictionary of sections, each one mapping keys to raw string values.
        Missing or unreadable files result in an empty dictionary.

    """
    if path is None:
        path = Path(os.getcwd()) / Path("pyvcs.cfg")

    cfg = configparser.ConfigParser()
    try:
        cfg.read(path)
    except configparser.Error:
        # the assumption is that no configurations are given
        return {}
    return {name: dict(section) for name, section in cfg.items() if name != "DEFAULT"}


def default_solver_params(
    config: Optional[dict[str, dict[str, str]]] = None,
) -> dict[str, float]:
    """Returns the default solver parameters of the reaction adjustment.

    The values are taken from :mod:`~pyvcs._core` and overwritten by the
    ``[solver]`` section of ``config``, if present.

    Parameters:
        config: ``default=None``

            Configuration as returned by :func:`read_config`. If None, the
            configuration read at import of :mod:`pyvcs` is used.

    Raises:
        ValueError: If a value in the config file is not convertible to float.

    Returns:
        A dictionary with float values (integer parameters are cast when used).

    """
    params: dict[str, float] = {
        "tolerance_major": _core.TOLERANCE_MAJOR,
        "revival_threshold": _core.REVIVAL_THRESHOLD,
        "revival_seed": _core.REVIVAL_SEED,
        "hessian_clamp_factor": _core.HESSIAN_CLAMP_FACTOR,
        "line_search_max_iter": float(_core.LINE_SEARCH_MAX_ITER),
        "line_search_accept_fraction": _core.LINE_SEARCH_ACCEPT_FRACTION,
        "use_act_coeff_jac": 1.0,
        "line_search": 1.0,
    }

    if config is None:
        import pyvcs

        config = pyvcs.config

    section: dict[str, Any] = config.get("solver", {})
    for key, value in section.items():
        # flags may be given as yes/no, true/false, on/off
        flag = configparser.ConfigParser.BOOLEAN_STATES.get(str(value).lower())
        if flag is not None:
            params[key] = float(flag)
            continue
        try:
            params[key] = float(value)
        except ValueError as err:
            raise ValueError(
                f"Solver parameter '{key}' in config file is not a number: {value}"
            ) from err

    return params

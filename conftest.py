"""
Module containing configuration functions and shared fixtures for Pytest.

Credits: https://jwodder.github.io/kbits/posts/pytest-mark-off/ (Option 1).
"""

from typing import Callable

import numpy as np
import pytest

import pyvcs


def pytest_addoption(parser):
    """Adopt a new flag to run all tests, including skipped ones."""
    parser.addoption(
        "--run-skipped",
        action="store_true",
        default=False,
        help="Run skipped tests",
    )


def pytest_collection_modifyitems(config, items):
    """Identify tests mark with 'skipped' at collection."""
    if not config.getoption("--run-skipped"):
        skipper = pytest.mark.skip(reason="Only run when --run-skipped is given")
        for item in items:
            if "skipped" in item.keywords:
                item.add_marker(skipper)


def pytest_configure(config):
    # See https://docs.pytest.org/en/stable/how-to/mark.html
    config.addinivalue_line(
        "markers", "skipped: Mark test to be run only on demand (long sweeps)."
    )


@pytest.fixture
def binary_isomerization() -> Callable[..., pyvcs.EquilibriumState]:
    """Factory for the isomerization ``A -> B`` in a single binary phase.

    Species 0 (``A``) is the component, species 1 (``B``) the noncomponent. The phase
    is ideal for ``w=None`` and a symmetric Margules mixture otherwise.

    """

    def _make(
        n_a: float = 1.0,
        n_b: float = 1.0,
        mu0_b: float = -0.5,
        w: float | None = None,
        dg: float | None = None,
    ) -> pyvcs.EquilibriumState:
        if w is None:
            phase: pyvcs.PhaseModel = pyvcs.IdealSolutionPhase(
                [0, 1], [0.0, mu0_b], name="liquid"
            )
        else:
            phase = pyvcs.MargulesPhase(
                [0, 1], [0.0, mu0_b], np.array([[0.0, w], [w, 0.0]]), name="liquid"
            )
        state = pyvcs.initialize_equilibrium_state(
            [phase], np.array([[-1.0]]), np.array([n_a, n_b]), 1
        )
        if dg is None:
            state.dg[0] = pyvcs.delta_g_recalc_rxn(
                state, 0, state.moles, state.act_coeff_base, state.chem_pot_base
            )
        else:
            state.dg[0] = dg
        return state

    return _make


@pytest.fixture
def pure_phase_reaction() -> Callable[..., pyvcs.EquilibriumState]:
    """Factory for a reaction between two single-species phases.

    Species 0 is the component, species 1 the noncomponent, each one forming its own
    pure phase.

    """

    def _make(
        n_c: float, n_k: float, sc: float, dg: float
    ) -> pyvcs.EquilibriumState:
        phases = [
            pyvcs.SingleSpeciesPhase(0, 0.0, name="solid_c"),
            pyvcs.SingleSpeciesPhase(1, 0.0, name="solid_k"),
        ]
        return pyvcs.initialize_equilibrium_state(
            phases, np.array([[sc]]), np.array([n_c, n_k]), 1, dg=np.array([dg])
        )

    return _make

"""Module testing the Hessian diagonal approximations in :mod:`pyvcs.hessian`."""

from __future__ import annotations

import numpy as np
import pytest

import pyvcs


@pytest.fixture
def pure_component_state() -> pyvcs.EquilibriumState:
    """Component 0 is a pure phase, noncomponents 1 and 2 form an ideal solution.

    The activity coefficient contribution of reaction 0 reduces to the diagonal entry
    of species 1.

    """
    phases = [
        pyvcs.SingleSpeciesPhase(0, 0.0),
        pyvcs.IdealSolutionPhase([1, 2], [0.0, 0.0]),
    ]
    return pyvcs.initialize_equilibrium_state(
        phases, np.array([[-1.0], [-1.0]]), np.array([1.0, 1.0, 1.0]), 1
    )


@pytest.mark.parametrize(
    "hess_act_coef, expected",
    [
        (-3.0, 2.0 - 0.6666 * 2.0),  # clamped
        (0.5, 2.5),  # increasing curvature
        (0.0, 2.0),
        (-1.0, 1.0),  # decreasing, but within the bound
    ],
)
def test_hessian_diag_adj(
    pure_component_state: pyvcs.EquilibriumState,
    hess_act_coef: float,
    expected: float,
):
    """Policy of the activity coefficient correction for an ideal diagonal of 2."""
    state = pure_component_state
    state.ln_act_coeff_jac[1, 1] = hess_act_coef

    assert pyvcs.hessian_actcoeff_diag(state, 0) == pytest.approx(hess_act_coef)
    assert pyvcs.hessian_diag_adj(state, 0, 2.0) == pytest.approx(expected)


def test_clamped_value_scenario(pure_component_state: pyvcs.EquilibriumState):
    """A strongly negative correction of an ideal diagonal 2 yields 0.6668."""
    pure_component_state.ln_act_coeff_jac[1, 1] = -3.0
    diag = pyvcs.hessian_diag_adj(pure_component_state, 0, 2.0)
    assert diag == pytest.approx(0.6668, rel=0.0, abs=1e-12)


@pytest.mark.parametrize("ideal", [1e-6, 0.3, 2.0, 50.0])
@pytest.mark.parametrize("hess_act_coef", [-1e3, -2.0, -0.5, -1e-8, 0.0, 4.0])
def test_positive_diagonal(
    pure_component_state: pyvcs.EquilibriumState, ideal: float, hess_act_coef: float
):
    """The corrected diagonal is never below one third of the ideal diagonal."""
    pure_component_state.ln_act_coeff_jac[1, 1] = hess_act_coef
    diag = pyvcs.hessian_diag_adj(pure_component_state, 0, ideal)
    assert diag >= ideal / 3.0
    assert diag > 0.0


@pytest.mark.parametrize("ideal", [0.0, -1.0, np.nan])
def test_non_positive_ideal_diagonal(
    pure_component_state: pyvcs.EquilibriumState, ideal: float
):
    """A non-positive ideal diagonal is a fatal precondition violation."""
    with pytest.raises(pyvcs.NonPositiveHessianError):
        pyvcs.hessian_diag_adj(pure_component_state, 0, ideal)
    assert issubclass(pyvcs.NonPositiveHessianError, pyvcs.EquilibriumModellingError)


def test_custom_clamp_factor(pure_component_state: pyvcs.EquilibriumState):
    pure_component_state.ln_act_coeff_jac[1, 1] = -10.0
    diag = pyvcs.hessian_diag_adj(pure_component_state, 0, 3.0, clamp_factor=0.5)
    assert diag == pytest.approx(1.5)


def test_actcoeff_diag_single_phase():
    """If all species of a reaction share one phase, the contribution is the quadratic
    form ``v^T J v`` with ``v`` the stoichiometric vector of the reaction."""
    phases = [pyvcs.IdealSolutionPhase([0, 1, 2], [0.0, 0.0, 0.0])]
    sc = np.array([0.7, -1.3])
    state = pyvcs.initialize_equilibrium_state(phases, sc[np.newaxis], np.ones(3), 2)

    rng = np.random.default_rng(42)
    jac = rng.normal(size=(3, 3))
    state.ln_act_coeff_jac[:] = jac

    v = np.array([0.7, -1.3, 1.0])
    assert pyvcs.hessian_actcoeff_diag(state, 0) == pytest.approx(v @ jac @ v)


def test_actcoeff_diag_multiple_phases():
    """Pairs of species in different phases do not contribute, neither do components
    in single-species phases."""
    phases = [
        pyvcs.IdealSolutionPhase([0, 3], [0.0, 0.0]),
        pyvcs.IdealSolutionPhase([1, 4], [0.0, 0.0]),
        pyvcs.SingleSpeciesPhase(2, 0.0),
    ]
    sc = np.array([[2.0, -1.0, 5.0], [1.0, 1.0, 1.0]])
    state = pyvcs.initialize_equilibrium_state(phases, sc, np.ones(5), 3)

    jac = np.arange(25, dtype=float).reshape((5, 5)) + 1.0
    state.ln_act_coeff_jac[:] = jac

    # reaction 0 forms species 3 in the phase of component 0
    expected = (
        jac[3, 3]
        + 2.0 * 2.0 * jac[0, 0]
        + (-1.0) * (-1.0) * jac[1, 1]
        + 2.0 * (jac[3, 0] + jac[0, 3])
    )
    assert pyvcs.hessian_actcoeff_diag(state, 0) == pytest.approx(expected)


@pytest.mark.parametrize("n_a, n_b", [(1.0, 1.0), (0.2, 3.0)])
def test_ideal_diag_binary(n_a: float, n_b: float, binary_isomerization):
    """For an isomerization within one phase, the net phase change vanishes and the
    diagonal is ``1/n_A + 1/n_B``."""
    state = binary_isomerization(n_a=n_a, n_b=n_b)
    assert pyvcs.hessian_ideal_diag(state, 0) == pytest.approx(1.0 / n_a + 1.0 / n_b)


def test_ideal_diag_with_phase_change():
    """The net change of moles of multispecies phases reduces the diagonal, pure
    phases do not contribute at all."""
    phases = [
        pyvcs.IdealSolutionPhase([0, 2], [0.0, 0.0]),
        pyvcs.SingleSpeciesPhase(1, 0.0),
    ]
    state = pyvcs.initialize_equilibrium_state(
        phases, np.array([[-2.0, 1.0]]), np.array([1.0, 4.0, 3.0]), 2
    )
    # dn_phase of the mixture is 1 - 2 = -1, total moles 4
    expected = 1.0 / 3.0 + 4.0 / 1.0 - 1.0 / 4.0
    assert pyvcs.hessian_ideal_diag(state, 0) == pytest.approx(expected)


def test_ideal_diag_pure_phases(pure_phase_reaction):
    """Reactions among single-species phases have a vanishing diagonal."""
    state = pure_phase_reaction(n_c=3.0, n_k=5.0, sc=-1.0, dg=-1.0)
    assert pyvcs.hessian_ideal_diag(state, 0) == 0.0


def test_ideal_diag_with_absent_component():
    """Components with zero moles which do not take part in the reaction do not
    contribute to the diagonal."""
    phases = [pyvcs.IdealSolutionPhase([0, 1, 2], [0.0, 0.0, -0.5])]
    state = pyvcs.initialize_equilibrium_state(
        phases, np.array([[-1.0, 0.0]]), np.array([1.0, 0.0, 1.0]), 2
    )
    s = pyvcs.hessian_ideal_diag(state, 0)
    assert np.isfinite(s)
    assert s == pytest.approx(2.0)


@pytest.mark.parametrize(
    "w, expected",
    [(1.0, 1.0), (3.0, 2.0 - 0.6666 * 2.0), (-1.0, 3.0)],
)
def test_margules_binary_correction(w: float, expected: float, binary_isomerization):
    """For the equimolar binary isomerization the activity coefficient contribution
    is ``-w``, on top of the ideal diagonal 2."""
    state = binary_isomerization(w=w)
    pyvcs.calculate_ln_act_coeff_jac(state)

    assert pyvcs.hessian_actcoeff_diag(state, 0) == pytest.approx(-w)
    ideal = pyvcs.hessian_ideal_diag(state, 0)
    assert ideal == pytest.approx(2.0)
    assert pyvcs.hessian_diag_adj(state, 0, ideal) == pytest.approx(expected)

"""Evaluation of the free energy change of a single formation reaction at arbitrary
mole numbers."""

from __future__ import annotations

import numpy as np

from .state import EquilibriumState

__all__ = ["chem_pot_phase", "delta_g_recalc_rxn"]


def chem_pot_phase(
    state: EquilibriumState,
    iphase: int,
    mole_numbers: np.ndarray,
    act_coeff: np.ndarray,
    chem_pot: np.ndarray,
) -> None:
    """Evaluates the activity coefficients and dimensionless chemical potentials of
    the species in phase ``iphase`` and stores them in ``act_coeff`` and ``chem_pot``.
    """
    state.phases[iphase].compute_chemical_potentials(mole_numbers, act_coeff, chem_pot)


def delta_g_recalc_rxn(
    state: EquilibriumState,
    irxn: int,
    mole_numbers: np.ndarray,
    act_coeff: np.ndarray,
    chem_pot: np.ndarray,
) -> float:
    """Recalculates the free energy change of reaction ``irxn`` for the mole numbers
    ``mole_numbers``.

    Chemical potentials are only recomputed for phases participating in the
    reaction. The persistent mole numbers of ``state`` are not touched, the given
    buffers serve as scratch space.

    Parameters:
        state: The equilibrium state providing phases and stoichiometry.
        irxn: Index of the reaction.
        mole_numbers: ``shape=(num_species,)``

            Mole numbers at which the free energy change is evaluated.
        act_coeff: ``shape=(num_species,)``

            Buffer for activity coefficients.
        chem_pot: ``shape=(num_species,)``

            Buffer for chemical potentials.

    Returns:
        ``mu[k] + sum_c stoich[irxn, c] * mu[c]`` with ``k`` the noncomponent species
        of the reaction.

    """
    participation = state.phase_participation[irxn]
    for iphase in range(state.num_phases):
        if participation[iphase]:
            chem_pot_phase(state, iphase, mole_numbers, act_coeff, chem_pot)

    nc = state.num_components
    kspec = state.reaction_species[irxn]
    return float(chem_pot[kspec] + np.dot(state.stoich[irxn], chem_pot[:nc]))

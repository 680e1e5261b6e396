"""Module containing the data structure holding the state of a VCS equilibrium
problem, which is shared by all steps of the reaction adjustment.

Note:
    The state is owned by the outer solver. The functions of this package only read
    and mutate entries in place and never resize arrays. Scratch buffers needed for
    evaluations at trial compositions are allocated once in
    :func:`initialize_equilibrium_state`.

The ordering of species follows the VCS convention: the first
:attr:`EquilibriumState.num_components` species are the components, every other
species is the product of exactly one formation reaction from the components.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Sequence

import numpy as np

from .phases import PhaseModel

__all__ = [
    "SpeciesStatus",
    "EquilibriumState",
    "initialize_equilibrium_state",
]


class SpeciesStatus(IntEnum):
    """Status of a noncomponent species, deciding whether its formation reaction is
    adjusted.

    Members are ordered such that comparisons like ``status <= SpeciesStatus.minor``
    select minor and zeroed species.

    """

    zeroed = -1
    """Species with zero moles."""

    minor = 0
    """Species present in small amounts."""

    major = 1
    """Species present in significant amounts."""


@dataclass
class EquilibriumState:
    """Dataclass for storing the mutable state of a multiphase equilibrium problem.

    Use :func:`initialize_equilibrium_state` to create a consistent instance.

    """

    phases: Sequence[PhaseModel] = field(default_factory=lambda: list())
    """Phase models, the index in this sequence is the phase index."""

    num_components: int = 0
    """Number of component species (first species in the ordering)."""

    moles: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Current mole numbers of all species."""

    phase_of_species: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )
    """Index of the phase each species belongs to."""

    single_species: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    """Flags per species indicating membership in a single-species phase."""

    phase_moles: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Total moles per phase. Must equal the sum of moles of the member species."""

    phase_single_species: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=bool)
    )
    """Flags per phase indicating single-species phases."""

    reaction_species: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )
    """Index of the noncomponent species formed by each reaction."""

    stoich: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Stoichiometric coefficients of the components in the formation reactions,
    stored row-wise per reaction (``shape=(num_reactions, num_components)``)."""

    dn_phase: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Net change of moles per phase caused by a unit extent of a reaction, stored
    row-wise per reaction."""

    phase_participation: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 0), dtype=bool)
    )
    """Flags indicating which phases take part in a reaction, stored row-wise per
    reaction."""

    dg: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Dimensionless free energy change per reaction."""

    ds: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Reaction adjustments, indexed by species."""

    species_status: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64)
    )
    """Status per reaction (see :class:`SpeciesStatus`)."""

    num_rxn_minor_zeroed: int = 0
    """Number of reactions whose species are minor or zeroed."""

    ln_act_coeff_jac: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    """Derivatives of logarithmic activity coefficients. Entry ``[i, j]`` is the
    derivative of ``ln(gamma_i)`` with respect to ``n_j``."""

    trial_moles: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Scratch buffer for mole numbers at trial points of the line search."""

    act_coeff_base: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Scratch buffer for activity coefficients at the current composition."""

    act_coeff: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Scratch buffer for activity coefficients at trial compositions."""

    chem_pot_base: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Scratch buffer for chemical potentials at the current composition."""

    chem_pot_trial: np.ndarray = field(default_factory=lambda: np.zeros(0))
    """Scratch buffer for chemical potentials at trial compositions."""

    @property
    def num_species(self) -> int:
        """Total number of species."""
        return int(self.moles.shape[0])

    @property
    def num_phases(self) -> int:
        """Number of phases."""
        return len(self.phases)

    @property
    def num_reactions(self) -> int:
        """Number of formation reactions (noncomponent species)."""
        return int(self.reaction_species.shape[0])

    def recompute_phase_moles(self) -> None:
        """Sets :attr:`phase_moles` to the sums of moles of the member species."""
        self.phase_moles[:] = np.bincount(
            self.phase_of_species, weights=self.moles, minlength=self.num_phases
        )

    def mass_balance_residual(self) -> np.ndarray:
        """Returns the difference between stored phase totals and the sums of moles of
        member species, per phase."""
        total = np.bincount(
            self.phase_of_species, weights=self.moles, minlength=self.num_phases
        )
        return self.phase_moles - total

    def trial_composition(
        self, irxn: int, step: float, out: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """Mole numbers after advancing reaction ``irxn`` by ``step``, starting from
        :attr:`moles`.

        Only the noncomponent species of the reaction and the components are changed.

        Parameters:
            irxn: Reaction index.
            step: Extent of the reaction.
            out: ``default=None``

                Array to store the result in. If None, :attr:`trial_moles` is used.

        Returns:
            The array ``out``.

        """
        if out is None:
            out = self.trial_moles
        nc = self.num_components
        kspec = self.reaction_species[irxn]
        out[:] = self.moles
        out[kspec] = self.moles[kspec] + step
        out[:nc] = self.moles[:nc] + self.stoich[irxn] * step
        return out


def initialize_equilibrium_state(
    phases: Sequence[PhaseModel],
    stoich: np.ndarray,
    moles: np.ndarray,
    num_components: int,
    dg: Optional[np.ndarray] = None,
    species_status: Optional[Sequence[SpeciesStatus] | np.ndarray] = None,
) -> EquilibriumState:
    """Creates an equilibrium state with derived phase data and allocated scratch
    buffers.

    Parameters:
        phases: Phase models. Every species must belong to exactly one phase.
        stoich: ``shape=(num_species - num_components, num_components)``

            Stoichiometric coefficients of the formation reactions of noncomponent
            species, in the order of species.
        moles: ``shape=(num_species,)``

            Non-negative mole numbers of all species.
        num_components: Number of component species.
        dg: ``default=None``

            Free energy changes per reaction. Zero if not given.
        species_status: ``default=None``

            Status per reaction. If None, all species are considered major.

    Raises:
        ValueError: If shapes mismatch, mole numbers are negative, or the phases do not
            partition the species.

    Returns:
        A consistent equilibrium state. Arrays are copies of the input.

    """
    moles = np.array(moles, dtype=np.float64).ravel()
    stoich = np.array(stoich, dtype=np.float64, ndmin=2)
    nspec = moles.shape[0]
    nphase = len(phases)
    nc = int(num_components)
    nrxn = nspec - nc

    if nc < 0 or nc > nspec:
        raise ValueError(f"Invalid number of components {nc} for {nspec} species.")
    if nrxn == 0:
        stoich = np.zeros((0, nc))
    if stoich.shape != (nrxn, nc):
        raise ValueError(
            f"Expecting stoichiometric matrix of shape {(nrxn, nc)}, got "
            + f"{stoich.shape}."
        )
    if np.any(moles < 0.0):
        raise ValueError("Mole numbers must be non-negative.")

    phase_of_species = np.full(nspec, -1, dtype=np.int64)
    phase_single_species = np.zeros(nphase, dtype=bool)
    for j, phase in enumerate(phases):
        if np.any(phase.species < 0) or np.any(phase.species >= nspec):
            raise ValueError(f"Phase {phase.name} contains unknown species indices.")
        if np.any(phase_of_species[phase.species] >= 0):
            raise ValueError(f"Species of phase {phase.name} assigned twice.")
        phase_of_species[phase.species] = j
        phase_single_species[j] = phase.single_species
    if np.any(phase_of_species < 0):
        missing = np.where(phase_of_species < 0)[0]
        raise ValueError(f"Species {missing.tolist()} not assigned to any phase.")

    reaction_species = np.arange(nc, nspec, dtype=np.int64)

    # Net phase changes and participation per unit extent of reaction.
    dn_phase = np.zeros((nrxn, nphase))
    phase_participation = np.zeros((nrxn, nphase), dtype=bool)
    for irxn in range(nrxn):
        kph = phase_of_species[reaction_species[irxn]]
        dn_phase[irxn, kph] += 1.0
        phase_participation[irxn, kph] = True
        for j in range(nc):
            if stoich[irxn, j] != 0.0:
                dn_phase[irxn, phase_of_species[j]] += stoich[irxn, j]
                phase_participation[irxn, phase_of_species[j]] = True

    if dg is None:
        dg = np.zeros(nrxn)
    else:
        dg = np.array(dg, dtype=np.float64).ravel()
        if dg.shape != (nrxn,):
            raise ValueError(f"Expecting {nrxn} free energy changes, {dg.size} given.")

    if species_status is None:
        status = np.full(nrxn, int(SpeciesStatus.major), dtype=np.int64)
    else:
        status = np.array([int(s) for s in species_status], dtype=np.int64)
        if status.shape != (nrxn,):
            raise ValueError(f"Expecting {nrxn} species status, {status.size} given.")

    state = EquilibriumState(
        phases=list(phases),
        num_components=nc,
        moles=moles,
        phase_of_species=phase_of_species,
        single_species=phase_single_species[phase_of_species],
        phase_moles=np.zeros(nphase),
        phase_single_species=phase_single_species,
        reaction_species=reaction_species,
        stoich=stoich,
        dn_phase=dn_phase,
        phase_participation=phase_participation,
        dg=dg,
        ds=np.zeros(nspec),
        species_status=status,
        num_rxn_minor_zeroed=int(np.sum(status <= SpeciesStatus.minor)),
        ln_act_coeff_jac=np.zeros((nspec, nspec)),
        trial_moles=np.zeros(nspec),
        act_coeff_base=np.ones(nspec),
        act_coeff=np.ones(nspec),
        chem_pot_base=np.zeros(nspec),
        chem_pot_trial=np.zeros(nspec),
    )
    state.recompute_phase_moles()

    return state

"""Module containing the reaction adjustment step of the VCS algorithm.

For each formation reaction of a noncomponent species, a step in the reaction extent
is computed from a diagonal approximation of the Hessian of the total Gibbs free
energy (see Smith & Missen, eq. 6.4-16). The steps are stored in
:attr:`~pyvcs.state.EquilibriumState.ds` and applied by the caller.

Special branching occurs if a reaction takes place entirely between single-species
phases. In that case the Hessian diagonal vanishes and one of the participating
phases is removed exactly. Since the removed species may be a component, the
component basis must be re-evaluated by the caller before the next iteration, which
is signaled by :class:`BasisDisruption`.

References:
    [1]: Smith, W. R., Missen, R. W. (1982). Chemical Reaction Equilibrium Analysis:
         Theory and Algorithms. Wiley.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

from .events import AdjustmentBranch, AdjustmentEvent, Observer, notify
from .hessian import hessian_diag_adj, hessian_ideal_diag
from .line_search import line_search
from .state import EquilibriumState, SpeciesStatus
from .utils import default_solver_params

__all__ = [
    "BasisDisruption",
    "ReactionAdjustmentResult",
    "ReactionAdjustment",
    "vcs_rxn_adj_cg",
]

logger = logging.getLogger(__name__)


class BasisDisruption(IntEnum):
    """Outcome of the reaction adjustment with respect to the component basis.

    The integer values are the return codes of the classical VCS implementation.

    """

    none = 0
    """Normal return, the component basis is still valid."""

    noncomponent_zeroed = 1
    """A noncomponent species in a single-species phase was zeroed."""

    component_zeroed = 2
    """A component in a single-species phase was zeroed. The basis must be
    re-selected."""


@dataclass
class ReactionAdjustmentResult:
    """Data class for storing the outcome of one pass of the reaction adjustment."""

    disruption: BasisDisruption = BasisDisruption.none
    """Whether a species was zeroed during the pass."""

    reaction: int = -1
    """Index of the reaction which caused a disruption, -1 otherwise."""

    zeroed_species: int = -1
    """Index of the species zeroed by the disruption, -1 otherwise."""

    num_reactions_processed: int = 0
    """Number of reactions visited before returning."""

    @property
    def basis_disrupted(self) -> bool:
        """True, if the caller must re-evaluate the component basis."""
        return self.disruption != BasisDisruption.none

    @property
    def exitcode(self) -> int:
        """Integer code of :attr:`disruption` (0, 1 or 2)."""
        return int(self.disruption)


class ReactionAdjustment:
    """Computes reaction adjustments for all noncomponent species.

    Parameters:
        state: The equilibrium state. It is referenced, not copied.
        params: ``default=None``

            Parameters of the adjustment. Key ``'solver_params'`` may contain a
            dictionary with float-convertible values overwriting
            :func:`~pyvcs.utils.default_solver_params`:

            - ``'tolerance_major'``: Reactions with smaller ``|dG|`` are skipped.
            - ``'revival_threshold'``, ``'revival_seed'``: Revival of zeroed species in
              multispecies phases.
            - ``'hessian_clamp_factor'``: See
              :func:`~pyvcs.hessian.hessian_diag_adj`.
            - ``'use_act_coeff_jac'``: Flag (1/0) to correct the Hessian diagonal with
              activity coefficient derivatives.
            - ``'line_search'``: Flag (1/0) to safeguard Newton steps with
              :func:`~pyvcs.line_search.line_search`.
            - ``'line_search_max_iter'``, ``'line_search_accept_fraction'``.

        observer: ``default=None``

            Callable receiving an :class:`~pyvcs.events.AdjustmentEvent` at every
            decision.

    """

    def __init__(
        self,
        state: EquilibriumState,
        params: Optional[dict] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        if params is None:
            params = {}

        self.state: EquilibriumState = state
        """The equilibrium state on which the adjustment operates."""

        self.params: dict = params
        """Parameters given at instantiation."""

        self.solver_params: dict[str, float] = default_solver_params()
        """A dictionary containing solver parameters.

        Note:
            Expects values which are convertible to floats.

        """

        if "solver_params" in self.params:
            solver_params = self.params.get("solver_params")
            assert isinstance(solver_params, dict)
            self.solver_params.update(solver_params)

        self.observer: Optional[Observer] = observer
        """Observer notified at every decision."""

    def _report(
        self, branch: AdjustmentBranch, irxn: int, kspec: int, note: str = ""
    ) -> None:
        state = self.state
        logger.debug(
            f"Reaction {irxn} (species {kspec}): {branch.value}"
            + f" moles = {state.moles[kspec]:.4e} ds = {state.ds[kspec]:.4e}"
            + (f" | {note}" if note else "")
        )
        notify(
            self.observer,
            AdjustmentEvent(
                branch=branch,
                reaction=irxn,
                species=kspec,
                moles=float(state.moles[kspec]),
                step=float(state.ds[kspec]),
                dg=float(state.dg[irxn]),
                note=note,
            ),
        )

    def adjust(self) -> ReactionAdjustmentResult:
        """Calculates the reaction adjustments of all reactions, in index order.

        If a reaction among single-species phases zeroes a species, the mole numbers
        are updated immediately and the method returns without visiting the remaining
        reactions.

        Returns:
            The outcome of the pass. The caller must abort its loop over reactions and
            re-evaluate the component basis if
            :attr:`ReactionAdjustmentResult.basis_disrupted` is True.

        """
        result = ReactionAdjustmentResult()
        for irxn in range(self.state.num_reactions):
            result.num_reactions_processed += 1
            disruption = self.adjust_reaction(irxn, result)
            if disruption != BasisDisruption.none:
                return result
        return result

    def adjust_reaction(
        self, irxn: int, result: Optional[ReactionAdjustmentResult] = None
    ) -> BasisDisruption:
        """Calculates the reaction adjustment of a single reaction.

        Parameters:
            irxn: Index of the reaction.
            result: ``default=None``

                If given, information about a disruption is stored in it.

        Returns:
            The disruption of the component basis caused by this reaction.

        """
        state = self.state
        kspec = int(state.reaction_species[irxn])
        dg = float(state.dg[irxn])

        if state.moles[kspec] == 0.0 and not state.single_species[kspec]:
            # Multispecies phase with zero moles of the species
            if dg < -self.solver_params["revival_threshold"]:
                state.ds[kspec] = self.solver_params["revival_seed"]
                state.species_status[irxn] = SpeciesStatus.major
                state.num_rxn_minor_zeroed -= 1
                self._report(AdjustmentBranch.revived, irxn, kspec, f"dG = {dg:.3e}")
            else:
                state.ds[kspec] = 0.0
                self._report(AdjustmentBranch.still_dead, irxn, kspec, f"dG = {dg:.3e}")
            return BasisDisruption.none

        # Superconvergence already achieved for this reaction.
        if abs(dg) <= self.solver_params["tolerance_major"]:
            state.ds[kspec] = 0.0
            self._report(AdjustmentBranch.converged, irxn, kspec, f"dG = {dg:.3e}")
            return BasisDisruption.none

        # Minor or nonexistent species which are decreasing anyway.
        if state.species_status[irxn] <= SpeciesStatus.minor and dg >= 0.0:
            state.ds[kspec] = 0.0
            self._report(
                AdjustmentBranch.minor_declining,
                irxn,
                kspec,
                f"status = {SpeciesStatus(state.species_status[irxn]).name},"
                + f" dG = {dg:.3e}",
            )
            return BasisDisruption.none

        s = hessian_ideal_diag(state, irxn)

        if s != 0.0:
            self._newton_step(irxn, kspec, s)
            return BasisDisruption.none

        return self._eliminate_single_species_phase(irxn, kspec, result)

    def _newton_step(self, irxn: int, kspec: int, s: float) -> None:
        """Regular processing: Step ``-dG / s`` with the (corrected) Hessian diagonal,
        safeguarded by the line search for species in multispecies phases."""
        state = self.state
        params = self.solver_params
        multispecies = not state.single_species[kspec]

        if bool(params["use_act_coeff_jac"]) and multispecies and s > 0.0:
            s = hessian_diag_adj(
                state, irxn, s, clamp_factor=params["hessian_clamp_factor"]
            )

        state.ds[kspec] = -state.dg[irxn] / s

        if bool(params["line_search"]) and multispecies:
            state.ds[kspec] = line_search(
                state, irxn, float(state.ds[kspec]), params, self.observer
            )

        self._report(AdjustmentBranch.newton, irxn, kspec, f"s = {s:.4e}")

    def _eliminate_single_species_phase(
        self,
        irxn: int,
        kspec: int,
        result: Optional[ReactionAdjustmentResult],
    ) -> BasisDisruption:
        """Reaction entirely amongst single-species phases: delete one phase.

        Either the species ``kspec`` or one of the components in single-species phases
        disappears. The sign of ``dG`` determines the direction of the reaction. The
        reaction is then followed until the first species is zeroed out.

        """
        state = self.state
        nc = state.num_components
        sc_irxn = state.stoich[irxn]
        moles = state.moles

        k = -1
        if state.dg[irxn] > 0.0:
            dss = float(moles[kspec])
            k = kspec
            for j in range(nc):
                if sc_irxn[j] > 0.0:
                    xx = moles[j] / sc_irxn[j]
                    if xx < dss:
                        dss = xx
                        k = j
            dss = -dss
        else:
            dss = np.inf
            for j in range(nc):
                if sc_irxn[j] < 0.0:
                    xx = -moles[j] / sc_irxn[j]
                    if xx < dss:
                        dss = xx
                        k = j

        state.ds[kspec] = 0.0

        if k < 0:
            note = "no species bounds the reaction"
            logger.warning(f"Reaction {irxn} among single-species phases: {note}.")
            self._report(AdjustmentBranch.not_eliminated, irxn, kspec, note)
            return BasisDisruption.none
        if dss == 0.0:
            self._report(
                AdjustmentBranch.not_eliminated, irxn, kspec, f"species {k} is zero"
            )
            return BasisDisruption.none

        # Adjust the mole numbers according to dss and the stoichiometry.
        phase_of = state.phase_of_species
        moles[kspec] += dss
        state.phase_moles[phase_of[kspec]] += dss
        for j in range(nc):
            moles[j] += dss * sc_irxn[j]
            state.phase_moles[phase_of[j]] += dss * sc_irxn[j]

        # Remove round-off in the zeroed species and its phase total.
        kph = phase_of[k]
        if state.phase_single_species[kph]:
            state.phase_moles[kph] = 0.0
        else:
            state.phase_moles[kph] -= moles[k]
        moles[k] = 0.0

        if k != kspec:
            disruption = BasisDisruption.component_zeroed
        else:
            disruption = BasisDisruption.noncomponent_zeroed

        note = f"deleted species {k}, dss = {dss:.4e}"
        logger.info(
            f"Reaction {irxn} among single-species phases {note}."
            + " Component basis must be re-evaluated."
        )
        self._report(AdjustmentBranch.eliminated, irxn, kspec, note)

        if result is not None:
            result.disruption = disruption
            result.reaction = irxn
            result.zeroed_species = k

        return disruption


def vcs_rxn_adj_cg(
    state: EquilibriumState,
    params: Optional[dict] = None,
    observer: Optional[Observer] = None,
) -> int:
    """Calculates the reaction adjustments for all reactions.

    Convenience function wrapping :meth:`ReactionAdjustment.adjust`.

    Returns:
        ``0`` for a normal return, ``1`` if a noncomponent species in a single-species
        phase was zeroed, ``2`` if the zeroed species is a component.

    """
    return ReactionAdjustment(state, params, observer).adjust().exitcode

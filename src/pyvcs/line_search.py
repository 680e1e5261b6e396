"""A rough line search along the extent of a single reaction.

The reaction adjustment relies on every step being a descent step for the total
Gibbs free energy. A Newton step computed from a diagonal Hessian can overshoot the
point where the free energy change of the reaction vanishes. The line search detects
such overshoots by evaluating the free energy change at trial points and shrinks the
step accordingly.

"""

from __future__ import annotations

import logging
from typing import Optional

from ._core import (
    LINE_SEARCH_ABS_TOL,
    LINE_SEARCH_ACCEPT_FRACTION,
    LINE_SEARCH_MAX_ITER,
)
from .events import AdjustmentBranch, AdjustmentEvent, Observer, notify
from .free_energy import delta_g_recalc_rxn
from .state import EquilibriumState

__all__ = ["line_search"]

logger = logging.getLogger(__name__)


def line_search(
    state: EquilibriumState,
    irxn: int,
    dx_orig: float,
    params: Optional[dict] = None,
    observer: Optional[Observer] = None,
) -> float:
    """Shrinks the proposed extent ``dx_orig`` of reaction ``irxn`` such that the free
    energy change of the reaction does not switch its sign prematurely.

    The free energy change ``dG0`` at the current mole numbers is the reference.

    1. Steps pointing in the direction of increasing free energy (same sign as
       ``dG0``) are rejected and zero is returned. Zero is also returned if ``dG0`` or
       ``dx_orig`` vanish.
    2. If ``dG`` at the full step has the same sign as ``dG0``, the full step is
       accepted.
    3. If ``|dG|`` at the full step dropped below a fraction (default 0.8) of
       ``|dG0|``, the full step is accepted, or, if the sign switched, the root of
       the linear interpolation between both points.
    4. Otherwise the step is bisected until ``dG`` keeps its sign or sufficiently
       decreased (again interpolating on a sign switch). If the maximal number of
       bisections is reached, the last trial step is returned.

    Parameters:
        state: Equilibrium state. Only the scratch buffers are modified.
        irxn: Index of the reaction.
        dx_orig: Proposed step.
        params: ``default=None``

            Solver parameters. Supported keys are ``'line_search_max_iter'`` and
            ``'line_search_accept_fraction'``, defaults are taken from
            :mod:`~pyvcs._core`.
        observer: ``default=None``

            Callable receiving an :class:`~pyvcs.events.AdjustmentEvent` with the
            outcome.

    Returns:
        The accepted step, with the same sign as ``dx_orig`` or zero.

    """
    if params is None:
        params = {}
    max_iter = int(params.get("line_search_max_iter", LINE_SEARCH_MAX_ITER))
    accept_fraction = float(
        params.get("line_search_accept_fraction", LINE_SEARCH_ACCEPT_FRACTION)
    )

    kspec = int(state.reaction_species[irxn])

    def _report(branch: AdjustmentBranch, dx: float, dg: float, note: str) -> None:
        notify(
            observer,
            AdjustmentEvent(
                branch=branch,
                reaction=irxn,
                species=kspec,
                moles=float(state.moles[kspec]),
                step=dx,
                dg=dg,
                note=note,
            ),
        )

    # free energy change at dx = 0
    dg_orig = delta_g_recalc_rxn(
        state, irxn, state.moles, state.act_coeff_base, state.chem_pot_base
    )
    forig = abs(dg_orig) + LINE_SEARCH_ABS_TOL

    if (dg_orig > 0.0 and dx_orig > 0.0) or (dg_orig < 0.0 and dx_orig < 0.0):
        note = f"Step {dx_orig} rejected for dG = {dg_orig}"
        logger.debug(f"Line search reaction {irxn}: {note}.")
        _report(AdjustmentBranch.line_search_rejected, 0.0, dg_orig, note)
        return 0.0
    if dg_orig == 0.0 or dx_orig == 0.0:
        return 0.0

    trial = state.trial_composition(irxn, dx_orig)
    dg_1 = delta_g_recalc_rxn(state, irxn, trial, state.act_coeff, state.chem_pot_trial)

    # No sign switch when going the full distance: heading in the right direction.
    if dg_1 * dg_orig > 0.0:
        _report(AdjustmentBranch.line_search_full, dx_orig, dg_1, "")
        return dx_orig

    # Sufficient decrease: find a better estimate by linear interpolation.
    if abs(dg_1) < accept_fraction * forig:
        if dg_1 * dg_orig < 0.0:
            slope = (dg_1 - dg_orig) / dx_orig
            dx = -dg_orig / slope
            note = f"Interpolated step size from {dx_orig} to {dx}"
            _report(AdjustmentBranch.line_search_interpolated, dx, dg_1, note)
            return dx
        _report(AdjustmentBranch.line_search_full, dx_orig, dg_1, "")
        return dx_orig

    dx = dx_orig
    dg = dg_1
    for _ in range(max_iter):
        dx *= 0.5
        trial = state.trial_composition(irxn, dx)
        dg = delta_g_recalc_rxn(state, irxn, trial, state.act_coeff, state.chem_pot_trial)

        if dg * dg_orig > 0.0:
            note = f"Line search reduced step size from {dx_orig} to {dx}"
            _report(AdjustmentBranch.line_search_bisected, dx, dg, note)
            return dx

        if abs(dg) / forig < (1.0 - 0.1 * dx / dx_orig):
            if dg * dg_orig < 0.0:
                slope = (dg - dg_orig) / dx
                dx = -dg_orig / slope
            note = f"Line search reduced step size from {dx_orig} to {dx}"
            _report(AdjustmentBranch.line_search_bisected, dx, dg, note)
            return dx

    note = f"Step size reduced from {dx_orig} to {dx} (max. iterations)"
    logger.warning(f"Line search reaction {irxn}: {note}.")
    _report(AdjustmentBranch.line_search_exhausted, dx, dg, note)
    return dx

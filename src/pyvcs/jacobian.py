"""Assembly of the global Jacobian of logarithmic activity coefficients with respect
to mole numbers."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .state import EquilibriumState

__all__ = ["calculate_ln_act_coeff_jac"]

logger = logging.getLogger(__name__)


def calculate_ln_act_coeff_jac(
    state: EquilibriumState, mole_numbers: Optional[np.ndarray] = None
) -> None:
    """Refreshes :attr:`~pyvcs.state.EquilibriumState.ln_act_coeff_jac`.

    Every multispecies phase updates its local block of derivatives, which is then
    scattered into the global matrix at the rows and columns of its species.
    Single-species phases have unit activity coefficients and are skipped.

    The blocks are rebuilt completely, there is no incremental update.

    Parameters:
        state: The equilibrium state whose Jacobian is updated.
        mole_numbers: ``default=None``

            Mole numbers for which the derivatives are evaluated. If None,
            :attr:`~pyvcs.state.EquilibriumState.moles` is used.

    """
    if mole_numbers is None:
        mole_numbers = state.moles

    for phase in state.phases:
        if phase.single_species:
            continue
        phase.update_ln_act_coeff_jac(mole_numbers)
        phase.scatter_ln_act_coeff_jac(state.ln_act_coeff_jac)

    logger.debug(f"Updated activity coefficient Jacobian for {state.num_phases} phases.")

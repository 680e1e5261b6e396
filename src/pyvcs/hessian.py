r"""Diagonal approximations of the Hessian of the total Gibbs free energy with respect
to reaction extents.

For a formation reaction of species :math:`k` from components :math:`c` with
coefficients :math:`\nu_c`, the ideal solution part of the diagonal is

.. math::

    s = \frac{1}{n_k} + \sum_c \frac{\nu_c^2}{n_c}
        - \sum_{\alpha} \frac{(\Delta n_\alpha)^2}{N_\alpha}~,

where single-species phases do not contribute. Non-ideal mixtures add the curvature
of the logarithmic activity coefficients, which is computed from the global Jacobian
assembled in :mod:`~pyvcs.jacobian`.

"""

from __future__ import annotations

import logging
from typing import Optional

import numba
import numpy as np

from ._core import HESSIAN_CLAMP_FACTOR, NUMBA_CACHE, NUMBA_FAST_MATH
from .state import EquilibriumState
from .utils import NonPositiveHessianError

__all__ = [
    "hessian_ideal_diag",
    "hessian_actcoeff_diag",
    "hessian_diag_adj",
]

logger = logging.getLogger(__name__)


@numba.njit(cache=NUMBA_CACHE, fastmath=NUMBA_FAST_MATH, error_model="numpy")
def _ideal_diag(
    kspec: int,
    sc_irxn: np.ndarray,
    dn_phase_irxn: np.ndarray,
    moles: np.ndarray,
    single_species: np.ndarray,
    phase_moles: np.ndarray,
    phase_single_species: np.ndarray,
) -> float:
    """Internal ``numba.njit``-decorated function for :func:`hessian_ideal_diag`."""
    if single_species[kspec]:
        s = 0.0
    else:
        s = 1.0 / moles[kspec]
    for j in range(sc_irxn.shape[0]):
        # components not taking part contribute nothing, also if they have zero moles
        if sc_irxn[j] != 0.0 and not single_species[j]:
            s += sc_irxn[j] ** 2 / moles[j]
    for j in range(phase_moles.shape[0]):
        if not phase_single_species[j]:
            if phase_moles[j] > 0.0:
                s -= dn_phase_irxn[j] ** 2 / phase_moles[j]
    return s


@numba.njit(cache=NUMBA_CACHE, fastmath=NUMBA_FAST_MATH)
def _actcoeff_diag(
    kspec: int,
    sc_irxn: np.ndarray,
    phase_of_species: np.ndarray,
    single_species: np.ndarray,
    jac: np.ndarray,
) -> float:
    """Internal ``numba.njit``-decorated function for :func:`hessian_actcoeff_diag`."""
    nc = sc_irxn.shape[0]
    kph = phase_of_species[kspec]
    s = jac[kspec, kspec]
    # only a loop over components, so not too expensive
    for l in range(nc):
        if not single_species[l]:
            for k in range(nc):
                if phase_of_species[k] == phase_of_species[l]:
                    s += sc_irxn[k] * sc_irxn[l] * jac[k, l]
            if kph == phase_of_species[l]:
                s += sc_irxn[l] * (jac[kspec, l] + jac[l, kspec])
    return s


def hessian_ideal_diag(state: EquilibriumState, irxn: int) -> float:
    """Computes the ideal solution diagonal of the Hessian for reaction ``irxn``.

    A value of exactly zero indicates a reaction which takes place entirely
    between single-species phases.

    Note:
        Species with zero moles outside of single-species phases result in an infinite
        value. The reaction adjustment treats such species separately before calling
        this function.

    """
    kspec = int(state.reaction_species[irxn])
    return float(
        _ideal_diag(
            kspec,
            state.stoich[irxn],
            state.dn_phase[irxn],
            state.moles,
            state.single_species,
            state.phase_moles,
            state.phase_single_species,
        )
    )


def hessian_actcoeff_diag(state: EquilibriumState, irxn: int) -> float:
    """Calculates the contribution of composition-dependent activity coefficients to
    the Hessian diagonal of reaction ``irxn``.

    The contribution is the quadratic form of the Jacobian of logarithmic activity
    coefficients restricted to the species taking part in the reaction: The diagonal
    term of the noncomponent species, pairs of components in the same phase and
    cross terms between the noncomponent species and components in its phase.
    Components in single-species phases do not contribute.

    The Jacobian must be up to date
    (see :func:`~pyvcs.jacobian.calculate_ln_act_coeff_jac`).

    """
    kspec = int(state.reaction_species[irxn])
    return float(
        _actcoeff_diag(
            kspec,
            state.stoich[irxn],
            state.phase_of_species,
            state.single_species,
            state.ln_act_coeff_jac,
        )
    )


def hessian_diag_adj(
    state: EquilibriumState,
    irxn: int,
    hessian_diag_ideal: float,
    clamp_factor: Optional[float] = None,
) -> float:
    """Corrects the ideal Hessian diagonal of reaction ``irxn`` with the curvature of
    the activity coefficients (:func:`hessian_actcoeff_diag`).

    The diagonal may be increased to any degree. It may be decreased by at most
    ``clamp_factor`` times its ideal value, i.e. it remains positive.

    Parameters:
        state: Equilibrium state with an up to date activity coefficient Jacobian.
        irxn: Index of the reaction.
        hessian_diag_ideal: Ideal solution diagonal, must be strictly positive.
        clamp_factor: ``default=None``

            Maximal relative decrease of the diagonal. If None,
            :data:`~pyvcs._core.HESSIAN_CLAMP_FACTOR` is used.

    Raises:
        NonPositiveHessianError: If ``hessian_diag_ideal`` is not strictly positive.

    Returns:
        The corrected diagonal, at least ``(1 - clamp_factor) * hessian_diag_ideal``.

    """
    if clamp_factor is None:
        clamp_factor = HESSIAN_CLAMP_FACTOR

    if not hessian_diag_ideal > 0.0:
        logger.error(
            f"Non-positive ideal Hessian diagonal {hessian_diag_ideal} for reaction"
            + f" {irxn}."
        )
        raise NonPositiveHessianError(
            f"Ideal Hessian diagonal must be positive, got {hessian_diag_ideal} for"
            + f" reaction {irxn}."
        )

    diag = hessian_diag_ideal
    hess_act_coef = hessian_actcoeff_diag(state, irxn)

    if hess_act_coef >= 0.0:
        diag += hess_act_coef
    elif abs(hess_act_coef) < clamp_factor * hessian_diag_ideal:
        diag += hess_act_coef
    else:
        diag -= clamp_factor * hessian_diag_ideal
    return diag

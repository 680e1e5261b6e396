"""This private module contains central defaults for the reaction adjustment step of
the VCS algorithm.

All free energies handled by the package are dimensionless (scaled by ``RT``).
Thresholds given here are hence dimensionless as well.

Changes here should be done with much care. Values can be overwritten at runtime by
a ``pyvcs.cfg`` file in the working directory (section ``[solver]``) or per instance
by passing ``solver_params`` (see :class:`~pyvcs.rxnadj.ReactionAdjustment`).

"""

from __future__ import annotations

__all__ = [
    "TOLERANCE_MAJOR",
    "REVIVAL_THRESHOLD",
    "REVIVAL_SEED",
    "HESSIAN_CLAMP_FACTOR",
    "LINE_SEARCH_MAX_ITER",
    "LINE_SEARCH_ACCEPT_FRACTION",
    "MOLE_FRACTION_FLOOR",
]


NUMBA_CACHE: bool = True
"""Flag to instruct the numba compiler to cache (!and use cached!) functions.

Numba does not recognize changes in nested functions and hence does not trigger
re-compilation. Use with care during development.

See Also:
    https://numba.readthedocs.io/en/stable/user/jit.html#cache

"""

NUMBA_FAST_MATH: bool = False
"""Flag to instruct the numba compiler to use it's ``fastmath`` functions.

To be used with care, due to loss in precision. The degenerate branch of the
reaction adjustment compares the Hessian diagonal exactly against zero.

"""

TOLERANCE_MAJOR: float = 1.0e-10
"""Convergence tolerance for the free energy change of a single reaction.

Reactions with ``|dG| <= TOLERANCE_MAJOR`` are considered converged and are not
adjusted. It corresponds to 1 % of the outer major-species tolerance ``1e-8``.

"""

REVIVAL_THRESHOLD: float = 1.0e-4
"""A species with zero moles in a multispecies phase is brought back into the
phase if its reaction free energy satisfies ``dG < -REVIVAL_THRESHOLD``.

Note:
    The value presupposes dimensionless free energies. It is kept configurable since
    it is tied to the scaling of ``dG``.

"""

REVIVAL_SEED: float = 1.0e-10
"""Mole number step assigned to a revived species in a multispecies phase."""

HESSIAN_CLAMP_FACTOR: float = 0.6666
"""Largest fraction by which activity coefficients may decrease the ideal Hessian
diagonal of a reaction.

The corrected diagonal is always at least ``(1 - HESSIAN_CLAMP_FACTOR)`` times the
ideal diagonal, which keeps it strictly positive.

"""

LINE_SEARCH_MAX_ITER: int = 10
"""Maximal number of bisections performed by the line search."""

LINE_SEARCH_ACCEPT_FRACTION: float = 0.8
"""If the free energy change at the full step drops below this fraction of its
initial magnitude, the full step (or its linear interpolation towards the root) is
accepted without bisection."""

MOLE_FRACTION_FLOOR: float = 1.0e-300
"""Lower bound for mole fractions inside logarithms of chemical potentials.

Trial compositions of the line search may contain zero or slightly negative mole
numbers. The floor keeps the chemical potentials finite.

"""

LINE_SEARCH_ABS_TOL: float = 1.0e-15
"""Added to ``|dG|`` at the initial point of the line search to avoid divisions by
zero in relative decrease criteria."""

"""Data structures passed to observers of the reaction adjustment.

Observers are optional callables receiving an :class:`AdjustmentEvent` at every
decision point of :class:`~pyvcs.rxnadj.ReactionAdjustment` and
:func:`~pyvcs.line_search.line_search`. They are meant for tracing and diagnostics and
must not modify the equilibrium state.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeAlias

__all__ = [
    "AdjustmentBranch",
    "AdjustmentEvent",
    "Observer",
    "notify",
]


class AdjustmentBranch(Enum):
    """Decision points of the reaction adjustment and the line search."""

    revived = "revived"
    """A zeroed species in a multispecies phase is brought back."""

    still_dead = "still_dead"
    """A zeroed species in a multispecies phase remains zero."""

    converged = "converged"
    """The reaction is converged and skipped."""

    minor_declining = "minor_declining"
    """A minor or zeroed species would decrease further and is skipped."""

    newton = "newton"
    """Regular step computed from the diagonal Hessian."""

    eliminated = "eliminated"
    """Degenerate reaction among single-species phases, a species was zeroed."""

    not_eliminated = "not_eliminated"
    """Degenerate reaction without a bounding species, no step is taken."""

    line_search_rejected = "line_search_rejected"
    """The proposed step points against the sign of the free energy change."""

    line_search_full = "line_search_full"
    """The full step is accepted by the line search."""

    line_search_interpolated = "line_search_interpolated"
    """The step is reduced to the interpolated root of the free energy change."""

    line_search_bisected = "line_search_bisected"
    """The step is accepted after bisection."""

    line_search_exhausted = "line_search_exhausted"
    """The maximal number of bisections was reached."""


@dataclass(frozen=True)
class AdjustmentEvent:
    """Information about one decision of the reaction adjustment."""

    branch: AdjustmentBranch
    """The decision taken."""

    reaction: int
    """Index of the reaction."""

    species: int
    """Index of the noncomponent species of the reaction."""

    moles: float
    """Mole number of the species at the time of the decision."""

    step: float
    """Reaction adjustment resulting from the decision."""

    dg: float
    """Free energy change of the reaction."""

    note: str = ""
    """Human readable comment."""


Observer: TypeAlias = Callable[[AdjustmentEvent], None]
"""Signature of observer callables."""


def notify(observer: Optional[Observer], event: AdjustmentEvent) -> None:
    """Passes ``event`` to ``observer``, if one is given."""
    if observer is not None:
        observer(event)

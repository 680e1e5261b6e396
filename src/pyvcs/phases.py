"""This module contains the phase models consumed by the reaction adjustment:

1. :class:`PhaseModel`:
   The interface between thermodynamic models and the VCS algorithm. A phase knows
   which (global) species belong to it, computes their chemical potentials for given
   mole numbers and provides the derivatives of the logarithmic activity coefficients
   with respect to mole numbers.

2. :class:`SingleSpeciesPhase`:
   A pure phase (e.g. a stoichiometric solid) with unit activity.

3. :class:`IdealSolutionPhase`:
   A multispecies phase with unit activity coefficients.

4. :class:`MargulesPhase`:
   A symmetric regular solution with binary interaction parameters. It is the
   simplest nonideal mixture with a non-vanishing activity coefficient Jacobian.

Important:
    Chemical potentials are dimensionless, i.e. scaled by ``RT``. The standard
    chemical potentials :attr:`PhaseModel.mu0` must be given in the same units.

"""

from __future__ import annotations

import abc
from typing import Optional, Sequence

import numba
import numpy as np

from ._core import MOLE_FRACTION_FLOOR, NUMBA_CACHE, NUMBA_FAST_MATH

__all__ = [
    "PhaseModel",
    "SingleSpeciesPhase",
    "IdealSolutionPhase",
    "MargulesPhase",
]


@numba.njit(cache=NUMBA_CACHE, fastmath=NUMBA_FAST_MATH)
def _mole_fractions(n: np.ndarray, floor: float) -> np.ndarray:
    """Mole fractions of a phase with local mole numbers ``n``.

    A phase without moles is assigned a uniform composition. Fractions are bounded
    from below by ``floor`` to keep logarithms finite.

    """
    total = n.sum()
    if total > 0.0:
        x = n / total
    else:
        x = np.ones(n.shape[0]) / n.shape[0]
    for i in range(x.shape[0]):
        if x[i] < floor:
            x[i] = floor
    return x


@numba.njit(cache=NUMBA_CACHE, fastmath=NUMBA_FAST_MATH)
def _margules_ln_gamma(x: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Logarithmic activity coefficients ``(W x)_i - x^T W x / 2``."""
    wx = np.dot(w, x)
    return wx - 0.5 * np.sum(x * wx)


@numba.njit(cache=NUMBA_CACHE, fastmath=NUMBA_FAST_MATH)
def _margules_ln_gamma_jac(n: np.ndarray, w: np.ndarray) -> np.ndarray:
    """Derivatives ``d ln(gamma_i) / d n_l`` of the symmetric Margules model.

    ``(W_il - (W x)_i - (W x)_l + x^T W x) / N`` with total moles ``N``. The Jacobian
    vanishes for a phase without moles.

    """
    ncomp = n.shape[0]
    jac = np.zeros((ncomp, ncomp))
    total = n.sum()
    if total <= 0.0:
        return jac
    x = n / total
    wx = np.dot(w, x)
    xwx = np.sum(x * wx)
    for i in range(ncomp):
        for l in range(ncomp):
            jac[i, l] = (w[i, l] - wx[i] - wx[l] + xwx) / total
    return jac


class PhaseModel(abc.ABC):
    """Base class for phases participating in the equilibrium problem.

    A phase is a group of species sharing a thermodynamic model. Its members are
    identified by their global species indices in the equilibrium problem, which
    need not be contiguous (components are always ordered first).

    Parameters:
        species: Global indices of the species in this phase.
        mu0: ``shape=(len(species),)``

            Dimensionless standard chemical potentials of the species.
        name: ``default=None``

            Name of the phase, used in log messages.

    Raises:
        ValueError: If no species is given, indices repeat or ``mu0`` does not match.

    """

    def __init__(
        self,
        species: Sequence[int] | np.ndarray,
        mu0: Sequence[float] | np.ndarray,
        name: Optional[str] = None,
    ) -> None:
        species = np.asarray(species, dtype=np.int64).ravel()
        mu0 = np.asarray(mu0, dtype=np.float64).ravel()

        if species.size == 0:
            raise ValueError("A phase must contain at least one species.")
        if np.unique(species).size != species.size:
            raise ValueError(f"Repeated species indices in phase: {species}.")
        if mu0.shape != species.shape:
            raise ValueError(
                f"Expecting {species.size} standard chemical potentials, "
                + f"{mu0.size} given."
            )

        self.species: np.ndarray = species
        """Global indices of the species belonging to this phase."""

        self.mu0: np.ndarray = mu0
        """Dimensionless standard chemical potentials ``G^0 / RT`` per species."""

        self.name: str = str(name) if name is not None else "unnamed_phase"
        """Name of the phase."""

        self.ln_act_coeff_jac: np.ndarray = np.zeros((species.size, species.size))
        """Local block of derivatives of logarithmic activity coefficients with respect
        to mole numbers of species in this phase, updated by
        :meth:`update_ln_act_coeff_jac`."""

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.name}, species={self.species.tolist()})"

    @property
    def num_species(self) -> int:
        """Number of species in this phase."""
        return int(self.species.size)

    @property
    def single_species(self) -> bool:
        """True, if the phase consists of a single species with unit activity."""
        return False

    def local_moles(self, mole_numbers: np.ndarray) -> np.ndarray:
        """Extracts the mole numbers of this phase's species from the global vector."""
        return mole_numbers[self.species]

    def mole_fractions(self, mole_numbers: np.ndarray) -> np.ndarray:
        """Mole fractions of the species in this phase, bounded from below by
        :data:`~pyvcs._core.MOLE_FRACTION_FLOOR`."""
        return _mole_fractions(
            np.ascontiguousarray(self.local_moles(mole_numbers), dtype=np.float64),
            MOLE_FRACTION_FLOOR,
        )

    @abc.abstractmethod
    def ln_act_coeff(self, mole_numbers: np.ndarray) -> np.ndarray:
        """Logarithmic activity coefficients of species in this phase.

        Parameters:
            mole_numbers: Global vector of mole numbers.

        Returns:
            An array with ``shape=(num_species,)``.

        """
        raise NotImplementedError("Call to generic base class method.")

    def compute_chemical_potentials(
        self,
        mole_numbers: np.ndarray,
        act_coeff_out: np.ndarray,
        chem_pot_out: np.ndarray,
    ) -> None:
        """Computes activity coefficients and chemical potentials
        ``mu_i = mu0_i + ln(x_i) + ln(gamma_i)`` and writes them into the global
        output arrays at the positions of this phase's species.

        Parameters:
            mole_numbers: Global vector of mole numbers (possibly trial values).
            act_coeff_out: Global array for activity coefficients.
            chem_pot_out: Global array for chemical potentials.

        """
        ln_gamma = self.ln_act_coeff(mole_numbers)
        x = self.mole_fractions(mole_numbers)
        act_coeff_out[self.species] = np.exp(ln_gamma)
        chem_pot_out[self.species] = self.mu0 + np.log(x) + ln_gamma

    def update_ln_act_coeff_jac(self, mole_numbers: np.ndarray) -> None:
        """Updates :attr:`ln_act_coeff_jac` for given mole numbers.

        The base class assumes activity coefficients independent of the composition.

        """
        self.ln_act_coeff_jac[:] = 0.0

    def scatter_ln_act_coeff_jac(self, global_jac: np.ndarray) -> None:
        """Deposits :attr:`ln_act_coeff_jac` into the global Jacobian at the rows and
        columns of this phase's species."""
        global_jac[np.ix_(self.species, self.species)] = self.ln_act_coeff_jac


class SingleSpeciesPhase(PhaseModel):
    """A phase consisting of exactly one species with unit activity.

    Parameters:
        species: Global index of the species.
        mu0: Dimensionless standard chemical potential.
        name: ``default=None``

            Name of the phase.

    """

    def __init__(self, species: int, mu0: float, name: Optional[str] = None) -> None:
        super().__init__([species], [mu0], name)

    @property
    def single_species(self) -> bool:
        return True

    def ln_act_coeff(self, mole_numbers: np.ndarray) -> np.ndarray:
        return np.zeros(1)

    def compute_chemical_potentials(
        self,
        mole_numbers: np.ndarray,
        act_coeff_out: np.ndarray,
        chem_pot_out: np.ndarray,
    ) -> None:
        # activity is 1, independent of the amount of the phase
        act_coeff_out[self.species] = 1.0
        chem_pot_out[self.species] = self.mu0


class IdealSolutionPhase(PhaseModel):
    """A multispecies phase with unit activity coefficients."""

    def ln_act_coeff(self, mole_numbers: np.ndarray) -> np.ndarray:
        return np.zeros(self.num_species)


class MargulesPhase(PhaseModel):
    r"""Symmetric regular solution model.

    The excess Gibbs energy is given by

    .. math::

        \frac{G^E}{RT} = \frac{1}{2N} \sum_{i,j} W_{ij} n_i n_j~,

    which results in

    .. math::

        \ln\gamma_i = \sum_j W_{ij} x_j - \frac{1}{2}\sum_{j,k} W_{jk} x_j x_k~.

    Parameters:
        species: Global indices of the species in this phase.
        mu0: Dimensionless standard chemical potentials of the species.
        interaction: ``shape=(len(species), len(species))``

            Symmetric matrix of dimensionless binary interaction parameters
            ``W_ij / RT`` with zero diagonal.
        name: ``default=None``

            Name of the phase.

    Raises:
        ValueError: If the interaction matrix is of wrong shape, not symmetric or has
            a nonzero diagonal.

    """

    def __init__(
        self,
        species: Sequence[int] | np.ndarray,
        mu0: Sequence[float] | np.ndarray,
        interaction: np.ndarray,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(species, mu0, name)

        w = np.asarray(interaction, dtype=np.float64)
        n = self.num_species
        if w.shape != (n, n):
            raise ValueError(
                f"Expecting interaction matrix of shape {(n, n)}, got {w.shape}."
            )
        if not np.allclose(w, w.T, rtol=0.0, atol=1e-14):
            raise ValueError("Interaction matrix must be symmetric.")
        if np.any(np.diag(w) != 0.0):
            raise ValueError("Interaction matrix must have a zero diagonal.")

        self.interaction: np.ndarray = np.ascontiguousarray(w)
        """Dimensionless binary interaction parameters."""

    def ln_act_coeff(self, mole_numbers: np.ndarray) -> np.ndarray:
        return _margules_ln_gamma(self.mole_fractions(mole_numbers), self.interaction)

    def update_ln_act_coeff_jac(self, mole_numbers: np.ndarray) -> None:
        n = np.ascontiguousarray(self.local_moles(mole_numbers), dtype=np.float64)
        self.ln_act_coeff_jac[:] = _margules_ln_gamma_jac(n, self.interaction)

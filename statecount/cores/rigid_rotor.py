"""Rigid rotor with harmonic or anharmonic vibrations."""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.special import comb, gamma

from .base import Core
from ..core.exceptions import ConfigurationError
from ..molecule.structure import Molecule
from ..numerics.convolution import convolve_numbers, direct_count
from ..numerics.interpolation import StatesSpline

logger = logging.getLogger(__name__)


def rotational_factor(constants: Sequence[float], symmetry: float) -> float:
    """
    Prefactor of the classical rotational number of states.

    N_rot(E) = factor·E^(d/2)/Γ(d/2 + 1) with d the number of rotational
    degrees of freedom.

    Args:
        constants: Rotational constants (Hartree); three for a nonlinear
            top, one for a linear rotor, none for an atom
        symmetry: Rotational symmetry number

    Returns:
        sqrt(π/ABC)/σ, 1/(σB), or 1
    """
    constants = np.asarray(constants, dtype=float)
    if len(constants) == 3:
        return float(np.sqrt(np.pi / np.prod(constants)) / symmetry)
    if len(constants) == 1:
        return float(1.0 / (symmetry * constants[0]))
    if len(constants) == 0:
        return 1.0
    raise ConfigurationError(
        f"expected 0, 1 or 3 rotational constants, got {len(constants)}",
        key="rotational_constants",
    )


def rotational_constants_from(molecule: Molecule) -> np.ndarray:
    """Rotational constants B = 1/(2I) in Hartree from a geometry."""
    if molecule.num_atoms == 1:
        return np.zeros(0)
    moments = molecule.principal_moments()
    if molecule.is_linear():
        return np.array([0.5 / moments[-1]])
    return 0.5 / moments


class RigidRotor(Core):
    """
    Rigid overall rotation combined with vibrational levels.

    Harmonic vibrations are direct-counted into the rotational number of
    states. With a second-order anharmonic matrix x_kl or rovibrational
    couplings α_ki the vibrational levels

        E(v) = Σ ω_k v_k + Σ_{k<=l} x_kl [(v_k + g_k/2)(v_l + g_l/2) - g_k g_l/4]

    are enumerated explicitly and each is weighted by its rotational factor
    with B_i(v) = B_i - Σ_k α_ki (v_k + g_k/2).

    Attributes:
        rotational_constants: B in Hartree (0, 1 or 3 values)
        symmetry: Rotational symmetry number
        frequencies: Harmonic frequencies (Hartree)
        degeneracies: Mode degeneracies g_k
    """

    name = "RigidRotor"

    def __init__(
        self,
        rotational_constants: Sequence[float],
        symmetry: float = 1.0,
        frequencies: Sequence[float] = (),
        degeneracies: Optional[Sequence[int]] = None,
        anharmonic: Optional[np.ndarray] = None,
        rovibrational: Optional[np.ndarray] = None,
        electronic_degeneracies: Sequence[int] = (1,),
        **kwargs
    ):
        """
        Initialize rigid rotor core.

        Args:
            rotational_constants: 0, 1 or 3 rotational constants (Hartree)
            symmetry: Rotational symmetry number
            frequencies: Harmonic frequencies (Hartree)
            degeneracies: Mode degeneracies, default 1
            anharmonic: Symmetric matrix x_kl (Hartree)
            rovibrational: Matrix α_ki, one row per mode (Hartree)
            electronic_degeneracies: Degeneracies of electronic states at the ground
            **kwargs: mode and settings
        """
        super().__init__(**kwargs)
        if symmetry <= 0:
            raise ConfigurationError("symmetry number must be positive", key="symmetry")
        self.rotational_constants = np.asarray(rotational_constants, dtype=float)
        if np.any(self.rotational_constants <= 0):
            raise ConfigurationError("rotational constants must be positive",
                                     key="rotational_constants")
        self.symmetry = float(symmetry)
        self.rotational_dim = len(self.rotational_constants)
        self.rofactor = rotational_factor(self.rotational_constants, self.symmetry)

        self.frequencies = np.asarray(frequencies, dtype=float)
        if np.any(self.frequencies <= 0):
            raise ConfigurationError("vibrational frequencies must be positive", key="frequencies")
        if degeneracies is None:
            degeneracies = np.ones(len(self.frequencies), dtype=int)
        self.degeneracies = np.asarray(degeneracies, dtype=int)
        if self.degeneracies.shape != self.frequencies.shape or np.any(self.degeneracies < 1):
            raise ConfigurationError("one positive degeneracy per frequency is required",
                                     key="degeneracies")
        self.electronic_factor = float(np.sum(electronic_degeneracies))

        size = len(self.frequencies)
        self.anharmonic = None
        if anharmonic is not None:
            self.anharmonic = np.asarray(anharmonic, dtype=float)
            if self.anharmonic.shape != (size, size):
                raise ConfigurationError("anharmonic matrix must be square over the modes",
                                         key="anharmonic")
            self.anharmonic = 0.5 * (self.anharmonic + self.anharmonic.T)
        self.rovibrational = None
        if rovibrational is not None:
            self.rovibrational = np.asarray(rovibrational, dtype=float)
            if self.rovibrational.shape != (size, self.rotational_dim):
                raise ConfigurationError(
                    "rovibrational couplings need one row per mode and one column "
                    "per rotational constant", key="rovibrational",
                )

        self.zero_point_energy = self._zero_point_energy()
        self._levels = None
        self._level_weights = None
        self._spline = None
        if size:
            self._build_spline()
        logger.info(
            f"Rigid rotor: {self.rotational_dim} rotational dof, {size} modes, "
            f"ZPE {self.zero_point_energy:.4e} Hartree"
        )

    @classmethod
    def from_molecule(cls, molecule: Molecule, **kwargs) -> "RigidRotor":
        """Rigid rotor with rotational constants from a geometry."""
        return cls(rotational_constants_from(molecule), **kwargs)

    @property
    def is_anharmonic(self) -> bool:
        return self.anharmonic is not None or self.rovibrational is not None

    def _upper_anharmonic(self) -> np.ndarray:
        if self.anharmonic is None:
            return np.zeros((len(self.frequencies),) * 2)
        return np.triu(self.anharmonic)

    def _zero_point_energy(self) -> float:
        half = 0.5 * self.degeneracies
        return float(self.frequencies @ half + half @ self._upper_anharmonic() @ half)

    def _enumerate_levels(self, emax: float) -> Tuple[np.ndarray, np.ndarray]:
        """Anharmonic levels up to emax with their state-count weights."""
        size = len(self.frequencies)
        half = 0.5 * self.degeneracies
        upper = self._upper_anharmonic()
        zero = half @ upper @ half

        def energies(quanta):
            shifted = quanta + half
            return (quanta @ self.frequencies
                    + np.einsum("ak,kl,al->a", shifted, upper, shifted) - zero)

        quanta = np.zeros((1, size), dtype=int)
        for k in range(size):
            blocks = [quanta]
            current, lower = quanta, energies(quanta)
            while True:
                trial = current.copy()
                trial[:, k] += 1
                values = energies(trial)
                # a mode stops once its levels turn over towards dissociation
                keep = (values <= emax) & (values > lower)
                if not np.any(keep):
                    break
                current, lower = trial[keep], values[keep]
                blocks.append(current)
            quanta = np.concatenate(blocks)

        levels = energies(quanta)
        weights = np.prod(comb(quanta + self.degeneracies - 1, self.degeneracies - 1), axis=1)
        if self.rovibrational is not None and self.rotational_dim:
            constants = self.rotational_constants - (quanta + half) @ self.rovibrational
            valid = np.all(constants > 0, axis=1)
            if not np.all(valid):
                logger.warning(
                    f"Rovibrational coupling drives rotational constants negative; "
                    f"{np.sum(~valid)} levels dropped"
                )
            constants, weights, levels = constants[valid], weights[valid], levels[valid]
            factors = np.array([rotational_factor(c, self.symmetry) for c in constants])
            weights = weights * factors / self.rofactor
        return levels, weights

    def _power_law(self, energy):
        e = np.asarray(energy, dtype=float)
        if self.rotational_dim == 0:
            return np.where(e >= 0, self.electronic_factor, 0.0)
        half_dim = 0.5 * self.rotational_dim
        return (self.electronic_factor * self.rofactor
                * np.maximum(e, 0.0) ** half_dim / gamma(half_dim + 1.0))

    def _build_spline(self) -> None:
        step = self.settings.energy_step
        size = self.settings.grid_size
        energies = np.arange(size) * step
        rotational = self._power_law(energies)

        if self.is_anharmonic:
            self._levels, self._level_weights = self._enumerate_levels(energies[-1])
            histogram = np.zeros(size)
            np.add.at(histogram, np.rint(self._levels / step).astype(int), self._level_weights)
            numbers = convolve_numbers(np.cumsum(histogram), rotational)
            logger.info(f"Rigid rotor: {len(self._levels)} anharmonic vibrational levels counted")
        else:
            numbers = direct_count(rotational, self.frequencies, step, self.degeneracies)

        self._spline = StatesSpline(energies, numbers, ground=0.0)

    def ground(self) -> float:
        return 0.0

    def number(self, energy):
        if self._spline is None:
            return self._power_law(energy)
        return self._spline.number(energy)

    def density(self, energy):
        if self._spline is not None:
            return self._spline.density(energy)
        e = np.asarray(energy, dtype=float)
        if self.rotational_dim == 0:
            return np.zeros_like(e)
        half_dim = 0.5 * self.rotational_dim
        positive = np.where(e > 0, e, 1.0)
        return np.where(
            e > 0,
            self.electronic_factor * self.rofactor * positive ** (half_dim - 1.0) / gamma(half_dim),
            0.0,
        )

    def weight(self, temperature: float) -> float:
        """Closed-form rotational weight times the vibrational partition function."""
        rot = self.electronic_factor * self.rofactor * temperature ** (0.5 * self.rotational_dim)
        if not len(self.frequencies):
            return float(rot)
        if self.is_anharmonic:
            return float(rot * np.sum(self._level_weights * np.exp(-self._levels / temperature)))
        vib = np.prod((1.0 - np.exp(-self.frequencies / temperature)) ** (-self.degeneracies))
        return float(rot * vib)

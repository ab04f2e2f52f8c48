"""Abstract base classes for one-dimensional internal motion models."""

from abc import ABC, abstractmethod
import logging
from typing import Optional, Tuple

import numpy as np

from ..core.config import ModelSettings
from ..core.exceptions import (
    ConfigurationError,
    ConvergenceError,
    InitializationError,
    LogicError,
)
from ..molecule.internal_rotation import InternalRotation
from ..numerics.convolution import convolve_numbers, shift_add

logger = logging.getLogger(__name__)


class Rotor(ABC):
    """
    Discrete level spectrum of one internal motion.

    A rotor is prepared exactly once with :meth:`set`, which fixes the
    highest level energy it must provide; every level query before that
    raises InitializationError and a second preparation raises LogicError.
    Level energies are measured from the rotor ground level, whose height
    above the potential minimum is :meth:`ground`.
    """

    name: str = "base"

    def __init__(self, rotation: Optional[InternalRotation] = None,
                 settings: Optional[ModelSettings] = None):
        """
        Args:
            rotation: Optional internal rotation geometry the rotor was built from
            settings: Model settings
        """
        self.rotation = rotation
        self.settings = settings or ModelSettings()
        self._emax = None
        self._ground = 0.0
        self._levels = np.zeros(0)
        self._degeneracies = np.zeros(0)

    @property
    def is_set(self) -> bool:
        return self._emax is not None

    def set(self, emax: float) -> None:
        """
        Prepare levels up to emax above the ground level.

        Args:
            emax: Highest level energy needed (Hartree)

        Raises:
            LogicError: If the rotor was already prepared
            ConvergenceError: If the levels cannot be converged
        """
        if self.is_set:
            raise LogicError(f"{self.name} rotor is already set up to {self._emax:.4e}")
        if emax <= 0:
            raise ConfigurationError(f"rotor energy range must be positive, got {emax}")
        self._prepare(emax)
        self._emax = float(emax)
        logger.info(
            f"{self.name} rotor: {self.level_size()} levels up to {emax:.4e} Hartree, "
            f"ground {self._ground:.4e}"
        )

    @abstractmethod
    def _prepare(self, emax: float) -> None:
        """Fill ``_levels``, ``_degeneracies`` and ``_ground``."""
        pass

    def _require_set(self) -> None:
        if not self.is_set:
            raise InitializationError(f"{self.name} rotor is queried before set()")

    def ground(self) -> float:
        """Ground level above the potential minimum (Hartree)."""
        self._require_set()
        return self._ground

    def energy_level(self, index: int) -> float:
        """Energy of the distinct level ``index`` relative to the ground level."""
        self._require_set()
        return float(self._levels[index])

    def level_degeneracy(self, index: int) -> float:
        """Degeneracy of the distinct level ``index``."""
        self._require_set()
        return float(self._degeneracies[index])

    def level_size(self) -> int:
        """Number of distinct levels up to the prepared energy."""
        self._require_set()
        return len(self._levels)

    @property
    def levels(self) -> np.ndarray:
        self._require_set()
        return self._levels.copy()

    @abstractmethod
    def weight(self, temperature: float) -> float:
        """Statistical weight relative to the ground level."""
        pass

    def quantum_weight(self, temperature: float) -> float:
        """Boltzmann sum over the prepared levels."""
        self._require_set()
        return float(np.sum(self._degeneracies * np.exp(-self._levels / temperature)))

    def convolute(self, numbers: np.ndarray, step: float, broaden: bool = False) -> np.ndarray:
        """
        Fold the level spectrum into a number of states grid.

        Args:
            numbers: Number of states on E_i = i*step
            step: Grid spacing (Hartree)
            broaden: Split off-grid levels linearly between grid points

        Returns:
            Convoluted number of states grid
        """
        self._require_set()
        return shift_add(numbers, self._levels, step, self._degeneracies, broaden=broaden)


def path_integral_factor(curvature: np.ndarray, temperature: float) -> np.ndarray:
    """
    Local harmonic quantum correction (x/2)/sinh(x/2), x = ω/T.

    Negative curvature (barrier regions) uses (x/2)/sin(x/2), capped
    below the divergence at x = 2π.

    Args:
        curvature: ω² at each grid point (Hartree²)
        temperature: Thermal energy (Hartree)

    Returns:
        Correction factors
    """
    half = np.sqrt(np.abs(curvature)) / (2.0 * temperature)
    result = np.ones_like(half)
    small = half < 1e-8
    positive = (curvature > 0) & ~small
    result[positive] = half[positive] / np.sinh(half[positive])
    negative = (curvature < 0) & ~small
    capped = np.minimum(half[negative], 0.95 * np.pi)
    if np.any(half[negative] > capped):
        logger.warning("Path integral correction capped in strongly curved barrier region")
    result[negative] = capped / np.sin(capped)
    return result


class QuantumRotor(Rotor):
    """
    Rotor whose levels come from diagonalizing a truncated Hamiltonian.

    Subclasses supply the potential on a uniform coordinate grid and the
    Hamiltonian eigenvalues for a basis size; this class grows the basis
    between ``ham_size_min`` and ``ham_size_max`` until every level below
    the requested energy is stable, and provides the semiclassical
    phase-space weights used when the quantum levels do not reach high
    enough for a given temperature.
    """

    def __init__(
        self,
        kinetic: float,
        coordinate_length: float,
        rotation: Optional[InternalRotation] = None,
        settings: Optional[ModelSettings] = None,
        ham_size_min: int = 101,
        ham_size_max: int = 501,
        level_tolerance: float = 1e-8,
    ):
        """
        Args:
            kinetic: Kinetic constant B_eff of H = B_eff p² + V (Hartree)
            coordinate_length: Length of the coordinate range of the grid
            rotation: Optional internal rotation geometry
            settings: Model settings
            ham_size_min: Smallest Hamiltonian basis size
            ham_size_max: Largest Hamiltonian basis size
            level_tolerance: Largest allowed level change between sizes (Hartree)
        """
        super().__init__(rotation, settings)
        if kinetic <= 0:
            raise ConfigurationError("rotor kinetic constant must be positive")
        if not 0 < ham_size_min <= ham_size_max:
            raise ConfigurationError("Hamiltonian size bounds must satisfy 0 < min <= max")
        self.kinetic = float(kinetic)
        self.coordinate_length = float(coordinate_length)
        self.ham_size_min = int(ham_size_min)
        self.ham_size_max = int(ham_size_max)
        self.level_tolerance = level_tolerance

    # grid representation filled by subclasses
    _grid_potential: np.ndarray
    _grid_curvature: np.ndarray
    potential_min: float

    @abstractmethod
    def _eigenvalues(self, size: int) -> np.ndarray:
        """Sorted Hamiltonian eigenvalues for a basis of the given size."""
        pass

    @abstractmethod
    def _basis_size_for(self, energy: float) -> int:
        """Basis size whose kinetic energies cover ``energy`` above the minimum."""
        pass

    def _prepare(self, emax: float) -> None:
        barrier = float(self._grid_potential.max())
        size = max(self.ham_size_min, self._basis_size_for(emax + barrier))
        previous = None
        iterations = 0
        while size <= self.ham_size_max:
            iterations += 1
            values = self._eigenvalues(size) - self.potential_min
            relative = values - values[0]
            if previous is not None and len(relative) >= len(previous):
                change = np.max(np.abs(relative[:len(previous)] - previous))
                change = max(change, abs(values[0] - previous_zero))
                if change < self.level_tolerance:
                    self._ground = float(values[0])
                    self._levels = relative[relative <= emax]
                    self._degeneracies = np.ones(len(self._levels))
                    logger.debug(f"{self.name} levels converged at basis size {size}")
                    return
            previous = relative[relative <= emax]
            previous_zero = values[0]
            size += max(2, 2 * (size // 8))

        raise ConvergenceError(
            f"{self.name} rotor levels up to {emax:.4e} Hartree did not converge "
            f"within basis size {self.ham_size_max}",
            iterations=iterations,
            threshold=self.level_tolerance,
        )

    def semiclassical_states_number(self, energy: float) -> float:
        """
        Classical phase-space number of states.

        Args:
            energy: Energy above the ground level (Hartree)

        Returns:
            N(E) = (L/π) <sqrt((E - V)/B_eff)> over the coordinate grid
        """
        self._require_set()
        kinetic = np.maximum(energy + self._ground - self._grid_potential, 0.0)
        return float(self.coordinate_length / np.pi
                     * np.mean(np.sqrt(kinetic / self.kinetic)))

    def integrate(self, numbers: np.ndarray, step: float) -> np.ndarray:
        """
        Fold the classical phase-space spectrum into a number of states grid.

        Args:
            numbers: Number of states on E_i = i*step
            step: Grid spacing (Hartree)

        Returns:
            Convoluted number of states grid
        """
        self._require_set()
        rotor_numbers = np.array(
            [self.semiclassical_states_number(i * step) for i in range(len(numbers))]
        )
        return convolve_numbers(rotor_numbers, numbers)

    def get_semiclassical_weight(self, temperature: float) -> Tuple[float, float]:
        """
        Classical and path-integral corrected weights relative to the ground level.

        Args:
            temperature: Thermal energy (Hartree)

        Returns:
            Tuple (classical, path_integral)
        """
        self._require_set()
        boltzmann = np.exp(-(self._grid_potential - self._ground) / temperature)
        prefactor = (np.sqrt(np.pi * temperature / self.kinetic)
                     * self.coordinate_length / (2.0 * np.pi))
        classical = prefactor * np.mean(boltzmann)
        correction = path_integral_factor(self._grid_curvature, temperature)
        path_integral = prefactor * np.mean(boltzmann * correction)
        return float(classical), float(path_integral)

    def weight(self, temperature: float) -> float:
        self._require_set()
        if self._levels[-1] >= self.settings.therm_pow_max * temperature:
            return self.quantum_weight(temperature)
        logger.debug(
            f"{self.name} levels end below {self.settings.therm_pow_max}*T; "
            f"using path integral weight"
        )
        return self.get_semiclassical_weight(temperature)[1]

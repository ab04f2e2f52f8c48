"""Abstract base classes for wells, barriers, and bimolecular fragments."""

from abc import ABC, abstractmethod
import logging
from typing import Mapping, Optional, Tuple, Union

import numpy as np

from ..core.config import ModelSettings
from ..core.constants import AMU_TO_AU
from ..core.exceptions import ConfigurationError, LogicError
from ..core.modes import StatesMode, as_mode
from ..molecule.structure import Molecule
from ..numerics.integration import number_to_weight
from ..numerics.interpolation import StatesSpline

logger = logging.getLogger(__name__)


class Species(ABC):
    """
    Energy-resolved state count of a well, barrier, or fragment.

    ``states(E)`` takes absolute energies and is exactly zero below
    :meth:`ground`; ``weight(T)`` is the partition function relative to
    the ground. :meth:`shift_ground` moves the energy reference rigidly and
    must be applied before any concurrent query.
    """

    def __init__(
        self,
        name: str,
        mode: Union[StatesMode, str] = StatesMode.NUMBER,
        geometry: Optional[Molecule] = None,
        mass: Optional[float] = None,
        settings: Optional[ModelSettings] = None,
    ):
        """
        Args:
            name: Species name
            mode: What :meth:`states` returns
            geometry: Optional geometry (Angstrom, amu)
            mass: Optional total mass in electron masses
            settings: Model settings

        Raises:
            LogicError: If mode is not a states mode
        """
        self.name = name
        self.mode = as_mode(mode)
        self._geometry = geometry
        self._mass = mass
        self.settings = settings or ModelSettings()
        self._ground = 0.0
        # depth of the tunneling extension below the real ground
        self._cutoff = 0.0

    def ground(self) -> float:
        """Lowest energy with nonzero states (Hartree)."""
        return self._ground

    def real_ground(self) -> float:
        """Ground energy without the tunneling extension below a barrier."""
        return self._ground + self._cutoff

    def shift_ground(self, energy_shift: float) -> None:
        """Move the energy reference rigidly."""
        self._ground += energy_shift

    def init(self, registry: Optional[Mapping[str, "Species"]] = None) -> None:
        """Resolve references to other species; no-op for self-contained models."""
        pass

    def mass(self) -> float:
        """
        Total mass in electron masses.

        Raises:
            ConfigurationError: If neither a mass nor a geometry was given
        """
        if self._mass is not None:
            return self._mass
        if self._geometry is not None:
            return self._geometry.total_mass * AMU_TO_AU
        raise ConfigurationError(f"{self.name}: mass is not available", key="mass")

    @property
    def geometry(self) -> Optional[Molecule]:
        return self._geometry

    def _require_states(self) -> None:
        if self.mode is StatesMode.NOSTATES:
            raise LogicError(f"{self.name} was built without states")

    @abstractmethod
    def states(self, energy: float) -> float:
        """Number or density of states at absolute energy."""
        pass

    @abstractmethod
    def weight(self, temperature: float) -> float:
        """Statistical weight relative to the ground."""
        pass

    def tunnel_weight(self, temperature: float) -> float:
        """Thermal tunneling correction; 1 without a tunnel."""
        return 1.0

    def oscillator_size(self) -> int:
        """Number of infrared-active oscillators."""
        return 0

    def oscillator_frequency(self, index: int) -> float:
        raise LogicError(f"{self.name} has no infrared-active oscillators")

    def infrared_intensity(self, energy: float, index: int) -> float:
        raise LogicError(f"{self.name} has no infrared-active oscillators")

    def states_table(self, emin: float, emax: float, step: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Tabulate states on a uniform grid of absolute energies.

        Returns:
            Tuple (energies, states)
        """
        if step <= 0 or emax < emin:
            raise ValueError("states table needs emax >= emin and a positive step")
        energies = np.arange(emin, emax + 0.5 * step, step)
        return energies, np.array([self.states(e) for e in energies])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, mode={self.mode.value})"


class SplineSpecies(Species):
    """Species whose number of states is held in a :class:`StatesSpline`."""

    _spline: Optional[StatesSpline] = None

    def _set_spline(self, numbers: np.ndarray, step: float) -> None:
        energies = np.arange(len(numbers)) * step
        self._spline = StatesSpline(energies, numbers, ground=self._ground)
        logger.info(
            f"{self.name}: states grid up to {self._spline.emax:.4e} Hartree, "
            f"extrapolation exponent {self._spline.power:.3f}"
        )

    def _require_spline(self) -> StatesSpline:
        if self._spline is None:
            raise LogicError(f"{self.name} was built without states")
        return self._spline

    def shift_ground(self, energy_shift: float) -> None:
        super().shift_ground(energy_shift)
        if self._spline is not None:
            self._spline.shift(energy_shift)

    def number(self, energy):
        """Number of states at absolute energy."""
        return self._require_spline().number(energy)

    def density(self, energy):
        """Density of states at absolute energy."""
        return self._require_spline().density(energy)

    def states(self, energy):
        self._require_states()
        return self._require_spline().states(energy, self.mode)

    def weight(self, temperature: float) -> float:
        spline = self._require_spline()
        return number_to_weight(
            spline.number, temperature, self._ground,
            therm_pow_max=self.settings.therm_pow_max,
            breakpoints=(self._ground + spline.emax,),
        )

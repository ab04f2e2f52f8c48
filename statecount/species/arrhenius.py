"""Barrier whose states reproduce a modified Arrhenius rate of a reactant well."""

import logging
from typing import Mapping, Optional

import numpy as np
from scipy.special import gamma

from .base import SplineSpecies, Species
from ..core.exceptions import ConfigurationError, InitializationError
from ..core.modes import StatesMode

logger = logging.getLogger(__name__)


class Arrhenius(SplineSpecies):
    """
    Transition state equivalent of ``k(T) = A (T/T0)^n exp(-Ea/T)``.

    With ``k = T/(2π) Q‡/Q_r exp(-(E‡ - E_r)/T)`` the barrier weight is
    ``Q‡ = 2π A T0^-n T^(n-1) Q_r`` and its number of states is the
    reactant density folded with ``x^(n-1)/Γ(n)``. The reactant is looked
    up by name in :meth:`init`; queries before that raise
    InitializationError.
    """

    def __init__(
        self,
        name: str,
        reactant: str,
        prefactor: float,
        power: float,
        activation_energy: float,
        reference_temperature: float,
        **kwargs
    ):
        """
        Args:
            name: Barrier name
            reactant: Name of the reactant well species
            prefactor: A in atomic units of inverse time
            power: Temperature exponent n >= 0
            activation_energy: Ea (Hartree)
            reference_temperature: T0 (Hartree)
            **kwargs: mode, geometry, mass, settings
        """
        super().__init__(name, **kwargs)
        if prefactor <= 0:
            raise ConfigurationError(f"{name}: prefactor must be positive", key="prefactor")
        if power < 0:
            raise ConfigurationError(f"{name}: temperature exponent must not be negative",
                                     key="power")
        if reference_temperature <= 0:
            raise ConfigurationError(f"{name}: reference temperature must be positive",
                                     key="reference_temperature")
        self.reactant_name = reactant
        self.prefactor = float(prefactor)
        self.power = float(power)
        self.activation_energy = float(activation_energy)
        self.reference_temperature = float(reference_temperature)
        self._reactant: Optional[Species] = None

    @property
    def factor(self) -> float:
        """2π A T0^-n."""
        return 2.0 * np.pi * self.prefactor * self.reference_temperature ** (-self.power)

    def init(self, registry: Optional[Mapping[str, Species]] = None) -> None:
        """
        Resolve the reactant and build the states grid.

        Raises:
            ConfigurationError: If the reactant is unknown or does not
                count states in number mode
        """
        if registry is None or self.reactant_name not in registry:
            raise ConfigurationError(
                f"{self.name}: reactant {self.reactant_name!r} not found", key="reactant")
        reactant = registry[self.reactant_name]
        if reactant.mode is not StatesMode.NUMBER:
            raise ConfigurationError(
                f"{self.name}: reactant {reactant.name} must count states in number mode",
                key="reactant")
        self._reactant = reactant
        self._ground = reactant.ground() + self.activation_energy

        if self.mode is not StatesMode.NOSTATES:
            step = self.settings.energy_step
            size = self.settings.grid_size
            self._set_spline(self._number_grid(size, step), step)

    def _kernel(self, size: int, step: float) -> np.ndarray:
        """Bin integrals of x^(n-1)/Γ(n) centred on the grid points."""
        edges = np.maximum((np.arange(size + 1) - 0.5) * step, 0.0)
        # x^n/Γ(n+1) vanishes at the origin, including the n = 0 step
        cumulative = np.where(edges > 0, edges, 1.0) ** self.power / gamma(self.power + 1.0)
        cumulative[edges <= 0] = 0.0
        return np.diff(cumulative)

    def _number_grid(self, size: int, step: float) -> np.ndarray:
        energies = self._reactant.ground() + np.arange(size) * step
        reactant = np.array([self._reactant.states(e) for e in energies])
        increments = np.diff(reactant, prepend=0.0)
        return self.factor * np.convolve(increments, self._kernel(size, step))[:size] / step

    def _require_reactant(self) -> Species:
        if self._reactant is None:
            raise InitializationError(f"{self.name}: reactant is not resolved, call init()")
        return self._reactant

    def ground(self) -> float:
        self._require_reactant()
        return self._ground

    def real_ground(self) -> float:
        return self.ground()

    def shift_ground(self, energy_shift: float) -> None:
        self._require_reactant()
        super().shift_ground(energy_shift)

    def states(self, energy):
        self._require_reactant()
        return super().states(energy)

    def weight(self, temperature: float) -> float:
        reactant = self._require_reactant()
        return self.factor * temperature ** (self.power - 1.0) * reactant.weight(temperature)

"""Abstract base class for one-dimensional barrier tunneling models."""

from abc import ABC, abstractmethod
from typing import Union
import logging

import numpy as np
from scipy import integrate
from scipy.optimize import brentq
from scipy.special import expit, log_expit

from ..core.exceptions import ConfigurationError, IntegrationError
from ..numerics.convolution import convolve_density

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


class Tunnel(ABC):
    """
    Semiclassical transmission through a reaction-path barrier.

    Energies passed to a tunnel are measured from the cutoff energy below
    the barrier top, so the top itself sits at ``E = cutoff``. Subclasses
    only provide the action; transmission factor, its energy derivative,
    the thermal weight and grid convolution are derived here.
    """

    name: str = "base"

    def __init__(
        self,
        frequency: float,
        cutoff: float,
        action_max: float = 100.0,
        tolerance: float = 1e-8,
        max_subdivisions: int = 500,
    ):
        """
        Initialize tunnel.

        Args:
            frequency: Imaginary barrier frequency magnitude (Hartree)
            cutoff: Depth below the barrier top where tunneling starts (Hartree)
            action_max: Action above which transmission is set to zero
            tolerance: Relative tolerance of the thermal weight quadrature
            max_subdivisions: Maximum quadrature subdivisions
        """
        if frequency is None or frequency <= 0:
            raise ConfigurationError("imaginary frequency must be positive", key="frequency")
        if cutoff is None or cutoff < 0:
            raise ConfigurationError("cutoff energy must not be negative", key="cutoff")
        if action_max <= 0:
            raise ConfigurationError("action ceiling must be positive", key="action_max")
        self.frequency = float(frequency)
        self.cutoff = float(cutoff)
        self.action_max = float(action_max)
        self.tol = tolerance
        self.max_subdivisions = max_subdivisions

    @abstractmethod
    def action(self, energy: float, derivative: int = 0) -> float:
        """
        Semiclassical action or its energy derivative.

        Args:
            energy: Energy measured from the cutoff (Hartree)
            derivative: 0 for the action, 1 for dS/dE

        Returns:
            Action value (dimensionless) or derivative (1/Hartree)
        """
        pass

    def _check_derivative(self, derivative: int) -> None:
        if derivative not in (0, 1):
            raise ValueError(f"action derivative order must be 0 or 1, got {derivative}")

    def factor(self, energy: float) -> float:
        """Transmission probability 1/(1 + exp(S))."""
        if energy < 0:
            return 0.0
        s = self.action(energy)
        if s > self.action_max:
            return 0.0
        return float(expit(-s))

    def density(self, energy: float) -> float:
        """Energy derivative of the transmission probability."""
        if energy < 0:
            return 0.0
        s = self.action(energy)
        if s > self.action_max:
            return 0.0
        return float(-self.action(energy, 1) * expit(s) * expit(-s))

    def _threshold(self) -> float:
        """Lowest energy where the action drops below the ceiling."""
        if self.action(0.0) <= self.action_max:
            return 0.0
        start = 0.0
        # the action diverges where a well bottom meets the cutoff
        if not np.isfinite(self.action(start)):
            start = self.cutoff * 1e-9
        return brentq(lambda e: self.action(e) - self.action_max, start, self.cutoff)

    def correction(self, temperature: float, therm_pow_max: float = 50.0) -> float:
        """
        Tunneling correction relative to the barrier top.

        κ(T) = ∫ density(E) exp(-(E - cutoff)/T) dE.

        Args:
            temperature: Thermal energy k_B*T (Hartree)
            therm_pow_max: Largest (E - cutoff)/T integrated above the top

        Returns:
            Thermal tunneling correction factor
        """
        if temperature <= 0:
            raise ValueError("temperature must be positive")

        def integrand(energy: float) -> float:
            s = self.action(energy)
            if s > self.action_max:
                return 0.0
            log_value = log_expit(s) + log_expit(-s) - (energy - self.cutoff) / temperature
            return -self.action(energy, 1) * np.exp(log_value)

        lower = self._threshold()
        upper = self.cutoff + therm_pow_max * min(temperature, self.frequency)
        edges = [lower, self.cutoff, upper] if lower < self.cutoff else [lower, upper]

        total = 0.0
        for a, b in zip(edges[:-1], edges[1:]):
            try:
                value, _ = integrate.quad(
                    integrand, a, b,
                    epsabs=0.0,
                    epsrel=self.tol,
                    limit=self.max_subdivisions,
                )
            except (ValueError, ZeroDivisionError, FloatingPointError) as e:
                raise IntegrationError(
                    f"{self.name} tunneling weight failed: {e}",
                    tolerance=self.tol,
                    subdivisions=self.max_subdivisions,
                )
            total += value

        logger.debug(f"{self.name} tunneling correction at T={temperature:.3e}: {total:.4e}")
        return total

    def weight(self, temperature: float, therm_pow_max: float = 50.0) -> float:
        """
        Thermal weight relative to the cutoff.

        ∫ density(E) exp(-E/T) dE with E measured from the cutoff.
        """
        return self.correction(temperature, therm_pow_max) * np.exp(-self.cutoff / temperature)

    def density_grid(self, size: int, step: float) -> np.ndarray:
        """Tunneling density sampled at E_i = i*step."""
        return np.array([self.density(i * step) for i in range(size)])

    def convolute(self, numbers: np.ndarray, step: float) -> np.ndarray:
        """
        Fold the tunneling density into a number of states grid.

        Args:
            numbers: Number of states on E_i = i*step above the cutoff origin
            step: Grid spacing (Hartree)

        Returns:
            Tunneling-corrected number of states grid
        """
        numbers = np.asarray(numbers, dtype=float)
        return convolve_density(numbers, self.density_grid(len(numbers), step), step)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(frequency={self.frequency:.4e}, "
                f"cutoff={self.cutoff:.4e})")

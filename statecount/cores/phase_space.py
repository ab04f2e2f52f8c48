"""Phase space theory power-law core."""

import logging

import numpy as np
from scipy.special import gamma

from .base import Core
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class PhaseSpaceTheory(Core):
    """
    Orbiting transition state with N(E) = a·E^p.

    The weight factor a·Γ(p+1) gives Q(T) = a·Γ(p+1)·T^p in closed form.
    """

    name = "PhaseSpaceTheory"

    def __init__(self, states_factor: float, power: float, **kwargs):
        """
        Args:
            states_factor: a in N(E) = a E^p (E in Hartree)
            power: Exponent p
            **kwargs: mode and settings
        """
        super().__init__(**kwargs)
        if states_factor <= 0:
            raise ConfigurationError("states factor must be positive", key="states_factor")
        if power <= 0:
            raise ConfigurationError("power exponent must be positive", key="power")
        self.states_factor = float(states_factor)
        self.power = float(power)
        self.weight_factor = self.states_factor * gamma(self.power + 1.0)

    @classmethod
    def from_weight_factor(cls, weight_factor: float, power: float, **kwargs):
        """Build from the weight prefactor of Q(T) = w T^p."""
        return cls(weight_factor / gamma(power + 1.0), power, **kwargs)

    def ground(self) -> float:
        return 0.0

    def number(self, energy):
        e = np.maximum(np.asarray(energy, dtype=float), 0.0)
        return self.states_factor * e ** self.power

    def density(self, energy):
        e = np.asarray(energy, dtype=float)
        positive = np.where(e > 0, e, 1.0)
        return np.where(e > 0, self.states_factor * self.power * positive ** (self.power - 1.0), 0.0)

    def weight(self, temperature: float) -> float:
        return float(self.weight_factor * temperature ** self.power)

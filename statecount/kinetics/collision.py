"""Collision frequency models."""

from abc import ABC, abstractmethod
import logging

import numpy as np

from ..core.config import ConfigBlock
from ..core.constants import (
    AMU_TO_AU,
    ANGSTROM_TO_BOHR,
    AU_RATE_TO_CM3_PER_SEC,
    CM_TO_HARTREE,
    KELVIN_TO_HARTREE,
)
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def omega_22_star(reduced_temperature: float) -> float:
    """
    Reduced Lennard-Jones collision integral Ω(2,2)*.

    Neufeld, Janzen and Aziz fit:
        Ω* = 1.16145 t^-0.14874 + 0.52487 e^{-0.77320 t} + 2.16178 e^{-2.43787 t}

    Args:
        reduced_temperature: k_B T / ε

    Returns:
        Collision integral (dimensionless)
    """
    t = reduced_temperature
    return (1.16145 * t ** -0.14874
            + 0.52487 * np.exp(-0.77320 * t)
            + 2.16178 * np.exp(-2.43787 * t))


class Collision(ABC):
    """Temperature-dependent collision rate coefficient."""

    @abstractmethod
    def __call__(self, temperature: float) -> float:
        """
        Collision rate coefficient.

        Args:
            temperature: Thermal energy k_B*T (Hartree)

        Returns:
            Rate coefficient in atomic units (bohr³ per atomic time unit)
        """
        pass

    def rate_cm3(self, temperature_kelvin: float) -> float:
        """Collision rate coefficient in cm³/s at a temperature in Kelvin."""
        return self(temperature_kelvin * KELVIN_TO_HARTREE) * AU_RATE_TO_CM3_PER_SEC


class LennardJonesCollision(Collision):
    """
    Lennard-Jones collision model.

    k(T) = π σ² sqrt(8T/(πμ)) Ω(2,2)*(T/ε)

    Attributes:
        epsilon: Well depth of the combined potential (Hartree)
        sigma: Collision diameter of the combined potential (Bohr)
        reduced_mass: Collision reduced mass (electron masses)
    """

    def __init__(self, epsilon: float, sigma: float, reduced_mass: float):
        if epsilon <= 0 or sigma <= 0 or reduced_mass <= 0:
            raise ConfigurationError(
                "Lennard-Jones epsilon, sigma and reduced mass must be positive"
            )
        self.epsilon = epsilon
        self.sigma = sigma
        self.reduced_mass = reduced_mass

    @classmethod
    def from_pair(cls, epsilons, sigmas, masses) -> "LennardJonesCollision":
        """
        Combine bath and species parameters.

        Uses the arithmetic mean of the diameters and the geometric mean
        of the well depths.

        Args:
            epsilons: (bath, species) well depths (Hartree)
            sigmas: (bath, species) diameters (Bohr)
            masses: (bath, species) masses (electron masses)
        """
        epsilon = float(np.sqrt(epsilons[0] * epsilons[1]))
        sigma = 0.5 * float(sigmas[0] + sigmas[1])
        reduced_mass = masses[0] * masses[1] / (masses[0] + masses[1])
        return cls(epsilon, sigma, reduced_mass)

    def __call__(self, temperature: float) -> float:
        if temperature <= 0:
            raise ValueError("temperature must be positive")
        velocity = np.sqrt(8.0 * temperature / (np.pi * self.reduced_mass))
        return (np.pi * self.sigma ** 2 * velocity
                * omega_22_star(temperature / self.epsilon))


def new_collision(block: ConfigBlock) -> Collision:
    """
    Create a collision model from a configuration block.

    Fields: ``type`` (lennard_jones), ``epsilons_cm``, ``sigmas_angstrom``
    and ``masses_amu``, each a (bath, species) pair.
    """
    block.get_choice("type", ("lennard_jones",), "lennard_jones")
    collision = LennardJonesCollision.from_pair(
        block.get_list("epsilons_cm", scale=CM_TO_HARTREE, size=2),
        block.get_list("sigmas_angstrom", scale=ANGSTROM_TO_BOHR, size=2),
        block.get_list("masses_amu", scale=AMU_TO_AU, size=2),
    )
    block.finish()
    logger.debug(
        f"Lennard-Jones collision: epsilon={collision.epsilon:.3e}, sigma={collision.sigma:.3f}"
    )
    return collision

"""Free internal rotor."""

import logging
from typing import Optional

import numpy as np

from .base import Rotor
from ..core.config import ModelSettings
from ..core.exceptions import ConfigurationError
from ..molecule.internal_rotation import InternalRotation

logger = logging.getLogger(__name__)


class FreeRotor(Rotor):
    """
    One-dimensional free rotor.

    Levels are E_m = B σ² m² for integer m; every m > 0 level is doubly
    degenerate (±m). After ``set(emax)`` the distinct levels m = 0..M with
    M = floor(sqrt(emax/B)/σ) are held, so the level count is close to
    sqrt(emax/B)/σ.

    Attributes:
        rotational_constant: B = 1/(2I) in Hartree
        symmetry: Rotor symmetry number σ
    """

    name = "Free"

    def __init__(
        self,
        rotational_constant: float,
        symmetry: int = 1,
        rotation: Optional[InternalRotation] = None,
        settings: Optional[ModelSettings] = None,
    ):
        super().__init__(rotation, settings)
        if rotational_constant <= 0:
            raise ConfigurationError("rotational constant must be positive",
                                     key="rotational_constant")
        if symmetry < 1:
            raise ConfigurationError("symmetry number must be positive", key="symmetry")
        self.rotational_constant = float(rotational_constant)
        self.symmetry = int(symmetry)

    def _quantum_number_limit(self, energy: float) -> int:
        return int(np.floor(np.sqrt(energy / self.rotational_constant) / self.symmetry))

    def _spectrum(self, mmax: int):
        m = np.arange(mmax + 1)
        levels = self.rotational_constant * (self.symmetry * m) ** 2
        degeneracies = np.where(m == 0, 1.0, 2.0)
        return levels, degeneracies

    def _prepare(self, emax: float) -> None:
        self._ground = 0.0
        self._levels, self._degeneracies = self._spectrum(self._quantum_number_limit(emax))

    def weight(self, temperature: float) -> float:
        """Boltzmann sum over all levels up to therm_pow_max * T."""
        self._require_set()
        mmax = self._quantum_number_limit(self.settings.therm_pow_max * temperature) + 1
        levels, degeneracies = self._spectrum(max(mmax, len(self._levels) - 1))
        return float(np.sum(degeneracies * np.exp(-levels / temperature)))

    def classical_weight(self, temperature: float) -> float:
        """High-temperature limit sqrt(πT/B)/σ."""
        return float(np.sqrt(np.pi * temperature / self.rotational_constant) / self.symmetry)

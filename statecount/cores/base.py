"""Abstract base class for global number-of-states models."""

from abc import ABC, abstractmethod
import logging
from typing import Optional, Union

import numpy as np

from ..core.config import ModelSettings
from ..core.exceptions import LogicError
from ..core.modes import StatesMode, as_mode
from ..numerics.integration import number_to_weight

logger = logging.getLogger(__name__)


class Core(ABC):
    """
    Rigid part of a species: overall rotation, vibrations, coupled rotors.

    Energies passed to :meth:`states`, :meth:`number` and :meth:`density`
    are measured from the core ground level, which lies :meth:`ground`
    above the core potential minimum. All three return zero below the
    ground level.
    """

    name: str = "base"

    def __init__(self, mode: Union[StatesMode, str] = StatesMode.NUMBER,
                 settings: Optional[ModelSettings] = None):
        """
        Args:
            mode: What :meth:`states` returns
            settings: Model settings

        Raises:
            LogicError: If mode is not a states mode
        """
        self.mode = as_mode(mode)
        self.settings = settings or ModelSettings()

    @abstractmethod
    def ground(self) -> float:
        """Ground level relative to the potential minimum (Hartree)."""
        pass

    @abstractmethod
    def number(self, energy: float) -> float:
        """Number of states at energy relative to the ground level."""
        pass

    @abstractmethod
    def density(self, energy: float) -> float:
        """Density of states at energy relative to the ground level."""
        pass

    def states(self, energy: float) -> float:
        """
        Number or density of states according to the mode.

        Raises:
            LogicError: For a NOSTATES core
        """
        if self.mode is StatesMode.NUMBER:
            return self.number(energy)
        if self.mode is StatesMode.DENSITY:
            return self.density(energy)
        raise LogicError(f"{self.name} core was built without states")

    def weight(self, temperature: float) -> float:
        """Statistical weight relative to the ground level (Laplace transform of N)."""
        return number_to_weight(self.number, temperature, 0.0,
                                therm_pow_max=self.settings.therm_pow_max)

    def number_grid(self, size: int, step: float) -> np.ndarray:
        """Number of states on E_i = i*step above the ground level."""
        return np.asarray(self.number(np.arange(size) * step), dtype=float)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.value})"

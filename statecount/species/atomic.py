"""Atoms: electronic levels only."""

from typing import Optional, Sequence

import numpy as np

from .base import Species
from ..core.exceptions import ConfigurationError, LogicError
from ..core.modes import StatesMode


class AtomicSpecies(Species):
    """Species with no internal motion besides its electronic levels."""

    def __init__(
        self,
        name: str,
        electronic_levels: Sequence[float] = (0.0,),
        electronic_degeneracies: Optional[Sequence[float]] = None,
        ground: float = 0.0,
        **kwargs
    ):
        super().__init__(name, **kwargs)
        levels = np.asarray(electronic_levels, dtype=float)
        if len(levels) == 0:
            raise ConfigurationError(f"{name}: no electronic levels", key="electronic_levels")
        degeneracies = (np.ones(len(levels)) if electronic_degeneracies is None
                        else np.asarray(electronic_degeneracies, dtype=float))
        if degeneracies.shape != levels.shape:
            raise ConfigurationError(f"{name}: one degeneracy per level is required",
                                     key="electronic_degeneracies")
        order = np.argsort(levels)
        self.levels = levels[order] - levels.min()
        self.degeneracies = degeneracies[order]
        self._ground = float(ground)

    def states(self, energy):
        """Step function Σ g over levels below the energy."""
        self._require_states()
        if self.mode is StatesMode.DENSITY:
            raise LogicError(f"{self.name}: density of states of an atom is a sum of delta functions")
        x = energy - self._ground
        return float(np.sum(self.degeneracies[self.levels <= x])) if x >= 0 else 0.0

    def weight(self, temperature: float) -> float:
        return float(np.sum(self.degeneracies * np.exp(-self.levels / temperature)))

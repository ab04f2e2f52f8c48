"""Energy-resolved escape channels out of a well."""

from abc import ABC, abstractmethod
import logging

import numpy as np
from scipy.interpolate import CubicSpline

from ..core.config import ConfigBlock
from ..core.constants import KCAL_TO_HARTREE, SEC_TO_AU_TIME
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Escape(ABC):
    """Unimolecular escape rate as a function of energy."""

    @abstractmethod
    def rate(self, energy: float) -> float:
        """Escape rate at absolute energy (inverse atomic time units)."""
        pass

    def shift_ground(self, energy_shift: float) -> None:
        """Move the energy reference rigidly."""
        pass


class ConstEscape(Escape):
    """Energy-independent escape rate."""

    def __init__(self, rate: float):
        if rate < 0:
            raise ConfigurationError("escape rate must not be negative", key="rate")
        self._rate = rate

    def rate(self, energy: float) -> float:
        return self._rate


class FitEscape(Escape):
    """
    Tabulated escape rate.

    The rate is splined in energy, zero below the table and constant above
    it.
    """

    def __init__(self, energies: np.ndarray, rates: np.ndarray):
        energies = np.asarray(energies, dtype=float)
        rates = np.asarray(rates, dtype=float)
        if len(energies) < 2 or energies.shape != rates.shape:
            raise ConfigurationError("escape table needs at least 2 (energy, rate) rows")
        if np.any(np.diff(energies) <= 0):
            raise ConfigurationError("escape table energies must be strictly increasing")
        if np.any(rates < 0):
            raise ConfigurationError("escape rates must not be negative")
        self._energies = energies
        self._rates = rates
        self._spline = CubicSpline(energies, rates)
        self._shift = 0.0

    def shift_ground(self, energy_shift: float) -> None:
        self._shift += energy_shift

    def rate(self, energy: float) -> float:
        x = energy - self._shift
        if x < self._energies[0]:
            return 0.0
        if x >= self._energies[-1]:
            return float(self._rates[-1])
        return max(float(self._spline(x)), 0.0)


def new_escape(block: ConfigBlock) -> Escape:
    """
    Create an escape channel.

    Fields: ``type`` (const, fit); ``rate_per_sec`` for const, ``table``
    rows of (energy in kcal/mol, rate in 1/s) for fit.
    """
    kind = block.get_choice("type", ("const", "fit"))
    if kind == "const":
        escape = ConstEscape(block.get_float("rate_per_sec", nonnegative=True) / SEC_TO_AU_TIME)
    else:
        table = block.get_table("table")
        escape = FitEscape(table[:, 0] * KCAL_TO_HARTREE, table[:, 1] / SEC_TO_AU_TIME)
    block.finish()
    return escape

"""Transitional-mode number of states read from a table."""

import logging

import numpy as np

from .base import Core
from ..core.exceptions import ConfigurationError
from ..numerics.integration import number_to_weight
from ..numerics.interpolation import LogLogSpline

logger = logging.getLogger(__name__)


class Rotd(Core):
    """
    Tabulated number of states of the transitional modes.

    The table is interpolated as a cubic spline of ln N versus ln E; below
    and above the table the power laws fitted at its ends take over.
    """

    name = "Rotd"

    def __init__(self, energies: np.ndarray, numbers: np.ndarray, ground: float = 0.0, **kwargs):
        """
        Args:
            energies: Energies relative to the ground (Hartree), increasing
            numbers: Number of states at each energy
            ground: Ground level relative to the potential minimum (Hartree)
            **kwargs: mode and settings
        """
        super().__init__(**kwargs)
        energies = np.asarray(energies, dtype=float)
        numbers = np.asarray(numbers, dtype=float)
        keep = energies > 0
        if np.count_nonzero(~keep):
            logger.debug(f"Rotd: {np.count_nonzero(~keep)} non-positive energies skipped")
        if np.any(np.diff(numbers[keep]) < 0):
            raise ConfigurationError("tabulated number of states must not decrease",
                                     key="states_table")
        self._spline = LogLogSpline(energies[keep], numbers[keep])
        self._ground = float(ground)
        logger.info(
            f"Rotd: {np.count_nonzero(keep)} points, exponents "
            f"{self._spline.power_min:.3f} (low) / {self._spline.power_max:.3f} (high)"
        )

    def ground(self) -> float:
        return self._ground

    def number(self, energy):
        return self._spline.number(energy)

    def density(self, energy):
        return self._spline.density(energy)

    def weight(self, temperature: float) -> float:
        return number_to_weight(
            self.number, temperature, 0.0,
            therm_pow_max=self.settings.therm_pow_max,
            breakpoints=(self._spline.emin, self._spline.emax),
        )

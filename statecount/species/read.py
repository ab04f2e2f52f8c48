"""Species with tabulated number or density of states."""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from scipy.integrate import cumulative_trapezoid

from .base import Species
from ..core.exceptions import ConfigurationError, FileIOError
from ..core.modes import StatesMode
from ..numerics.integration import number_to_weight
from ..numerics.interpolation import LogLogSpline

logger = logging.getLogger(__name__)

TABLE_KINDS = ("number", "density")


class ReadSpecies(Species):
    """
    States interpolated from a table of (energy, value) pairs.

    Tabulated densities are integrated with the trapezoidal rule before
    the number of states is interpolated on a log-log spline.
    """

    def __init__(self, name: str, energies: np.ndarray, values: np.ndarray,
                 kind: str = "number", ground: float = 0.0, **kwargs):
        """
        Args:
            name: Species name
            energies: Energies relative to the ground (Hartree), increasing
            values: Number or density of states at each energy
            kind: ``number`` or ``density``
            ground: Ground energy (Hartree)
            **kwargs: mode, geometry, mass, settings
        """
        super().__init__(name, **kwargs)
        if kind not in TABLE_KINDS:
            raise ConfigurationError(f"{name}: table kind must be one of {TABLE_KINDS}", key="kind")
        energies = np.asarray(energies, dtype=float)
        values = np.asarray(values, dtype=float)
        if energies.shape != values.shape or energies.ndim != 1:
            raise ConfigurationError(f"{name}: energies and values must match", key="states_table")
        if kind == "density":
            values = cumulative_trapezoid(values, energies, initial=0.0)
        keep = (energies > 0) & (values > 0)
        self._spline = LogLogSpline(energies[keep], values[keep])
        self._ground = float(ground)
        logger.info(f"Built {self!r} from {np.count_nonzero(keep)} tabulated {kind} values")

    @classmethod
    def from_file(cls, name: str, filepath: Union[str, Path], energy_scale: float = 1.0,
                  **kwargs) -> "ReadSpecies":
        """
        Read a two-column table (energy, value) from a text file.

        Args:
            name: Species name
            filepath: Table file; ``#`` starts a comment
            energy_scale: Factor converting the file energies to Hartree
            **kwargs: Passed to the constructor

        Raises:
            FileIOError: If the file cannot be read or parsed
        """
        filepath = Path(filepath)
        try:
            table = np.loadtxt(filepath, ndmin=2)
        except (OSError, ValueError) as e:
            raise FileIOError(f"Cannot read states table: {e}", filepath=str(filepath))
        if table.shape[1] < 2:
            raise FileIOError("States table needs two columns", filepath=str(filepath))
        return cls(name, table[:, 0] * energy_scale, table[:, 1], **kwargs)

    def number(self, energy):
        return self._spline.number(np.asarray(energy) - self._ground)

    def density(self, energy):
        return self._spline.density(np.asarray(energy) - self._ground)

    def states(self, energy):
        self._require_states()
        if self.mode is StatesMode.DENSITY:
            return self.density(energy)
        return self.number(energy)

    def weight(self, temperature: float) -> float:
        return number_to_weight(
            self.number, temperature, self._ground,
            therm_pow_max=self.settings.therm_pow_max,
            breakpoints=(self._ground + self._spline.emin, self._ground + self._spline.emax),
        )

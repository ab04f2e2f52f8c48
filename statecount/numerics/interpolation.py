"""Monotone states splines with power-law extrapolation, and periodic splines."""

import logging
from typing import Optional, Tuple, Union

import numpy as np
from scipy.interpolate import CubicSpline, PchipInterpolator

from ..core.exceptions import ConfigurationError, LogicError
from ..core.modes import StatesMode

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


def fit_power_exponent(x: np.ndarray, y: np.ndarray, tail: float = 0.1) -> float:
    """
    Estimate the local exponent d ln y / d ln x at the upper end of a table.

    Args:
        x: Increasing positive abscissas
        y: Positive ordinates
        tail: Fraction of the abscissa range used for the estimate

    Returns:
        Power-law exponent
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    x_ref = x[-1] * (1.0 - tail)
    idx = int(np.searchsorted(x, x_ref))
    idx = min(max(idx, 0), len(x) - 2)
    while idx > 0 and y[idx] <= 0:
        idx -= 1
    if x[idx] <= 0 or y[idx] <= 0 or y[-1] <= 0:
        raise ConfigurationError("cannot fit a power law to non-positive data")
    return float(np.log(y[-1] / y[idx]) / np.log(x[-1] / x[idx]))


class StatesSpline:
    """
    Number of states N(E) on a uniform energy grid above a ground energy.

    Interior values come from a monotone PCHIP interpolant of the grid,
    energies above the grid follow a fitted power law anchored at the last
    grid point, and energies below the ground give exactly zero.
    """

    def __init__(
        self,
        energies: np.ndarray,
        numbers: np.ndarray,
        ground: float = 0.0,
        power: Optional[float] = None,
    ):
        """
        Create states spline.

        Args:
            energies: Grid energies relative to ground (Hartree), increasing
                and starting at zero
            numbers: Number of states at each grid energy
            ground: Absolute energy of the grid origin (Hartree)
            power: Extrapolation exponent above the grid; fitted if None
        """
        energies = np.asarray(energies, dtype=float)
        numbers = np.asarray(numbers, dtype=float)
        if energies.ndim != 1 or energies.shape != numbers.shape:
            raise ConfigurationError("energies and numbers must be 1D arrays of equal size")
        if len(energies) < 3:
            raise ConfigurationError("states spline needs at least 3 grid points")
        if np.any(np.diff(energies) <= 0):
            raise ConfigurationError("spline energies must be strictly increasing")

        # cumulative counts must never decrease
        numbers = np.maximum.accumulate(np.maximum(numbers, 0.0))

        self.ground = float(ground)
        self._energies = energies
        self._numbers = numbers
        self._spline = PchipInterpolator(energies, numbers, extrapolate=False)
        self._density = self._spline.derivative()
        self.emax = float(energies[-1])
        self.nmax = float(numbers[-1])

        if power is None:
            power = fit_power_exponent(energies, numbers)
        if power < 0:
            logger.warning(f"Negative extrapolation exponent {power:.3f} clamped to zero")
            power = 0.0
        self.power = float(power)

    @property
    def energies(self) -> np.ndarray:
        return self._energies

    @property
    def numbers(self) -> np.ndarray:
        return self._numbers

    def shift(self, energy_shift: float) -> None:
        """Move the ground energy rigidly."""
        self.ground += energy_shift

    def number(self, energy: ArrayLike) -> ArrayLike:
        """Number of states at absolute energy."""
        x = np.asarray(energy, dtype=float) - self.ground
        scalar = x.ndim == 0
        x = np.atleast_1d(x)
        result = np.zeros_like(x)

        inside = (x >= self._energies[0]) & (x <= self.emax)
        result[inside] = self._spline(x[inside])
        above = x > self.emax
        result[above] = self.nmax * (x[above] / self.emax) ** self.power

        return float(result[0]) if scalar else result

    def density(self, energy: ArrayLike) -> ArrayLike:
        """Density of states at absolute energy."""
        x = np.asarray(energy, dtype=float) - self.ground
        scalar = x.ndim == 0
        x = np.atleast_1d(x)
        result = np.zeros_like(x)

        inside = (x >= self._energies[0]) & (x <= self.emax)
        result[inside] = np.maximum(self._density(x[inside]), 0.0)
        above = x > self.emax
        result[above] = (self.power * self.nmax / self.emax
                         * (x[above] / self.emax) ** (self.power - 1.0))

        return float(result[0]) if scalar else result

    def states(self, energy: ArrayLike, mode: StatesMode) -> ArrayLike:
        """Number or density of states according to mode."""
        if mode is StatesMode.NUMBER:
            return self.number(energy)
        if mode is StatesMode.DENSITY:
            return self.density(energy)
        raise LogicError(f"states requested in {mode.value} mode")


class LogLogSpline:
    """
    Cubic spline of ln N versus ln E with power laws on both ends.

    Used for tabulated state counts whose dynamic range spans many decades.
    """

    def __init__(self, energies: np.ndarray, values: np.ndarray):
        """
        Args:
            energies: Positive increasing energies (relative to ground)
            values: Positive number of states at each energy
        """
        energies = np.asarray(energies, dtype=float)
        values = np.asarray(values, dtype=float)
        if len(energies) < 3 or energies.shape != values.shape:
            raise ConfigurationError("log-log spline needs at least 3 (energy, value) pairs")
        if np.any(energies <= 0) or np.any(values <= 0):
            raise ConfigurationError("log-log spline data must be positive")
        if np.any(np.diff(energies) <= 0):
            raise ConfigurationError("log-log spline energies must be strictly increasing")

        self._lx = np.log(energies)
        self._ly = np.log(values)
        self._spline = CubicSpline(self._lx, self._ly, bc_type="natural")
        self._slope = self._spline.derivative()

        self.emin = float(energies[0])
        self.emax = float(energies[-1])
        self.power_min = float(self._slope(self._lx[0]))
        self.power_max = float(self._slope(self._lx[-1]))
        if self.power_min <= 0:
            raise ConfigurationError(
                f"non-positive low-energy exponent {self.power_min:.3f} in tabulated states"
            )
        logger.debug(
            f"Log-log spline exponents: low {self.power_min:.3f}, high {self.power_max:.3f}"
        )

    def _log_value_and_slope(self, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        lx = np.log(x)
        ly = np.empty_like(lx)
        slope = np.empty_like(lx)

        low = lx < self._lx[0]
        high = lx > self._lx[-1]
        mid = ~(low | high)

        ly[mid] = self._spline(lx[mid])
        slope[mid] = self._slope(lx[mid])
        ly[low] = self._ly[0] + self.power_min * (lx[low] - self._lx[0])
        slope[low] = self.power_min
        ly[high] = self._ly[-1] + self.power_max * (lx[high] - self._lx[-1])
        slope[high] = self.power_max
        return ly, slope

    def number(self, energy: ArrayLike) -> ArrayLike:
        """Number of states at energy relative to ground."""
        x = np.atleast_1d(np.asarray(energy, dtype=float))
        result = np.zeros_like(x)
        pos = x > 0
        if np.any(pos):
            ly, _ = self._log_value_and_slope(x[pos])
            result[pos] = np.exp(ly)
        return float(result[0]) if np.ndim(energy) == 0 else result

    def density(self, energy: ArrayLike) -> ArrayLike:
        """Density of states at energy relative to ground."""
        x = np.atleast_1d(np.asarray(energy, dtype=float))
        result = np.zeros_like(x)
        pos = x > 0
        if np.any(pos):
            ly, slope = self._log_value_and_slope(x[pos])
            result[pos] = np.exp(ly) * slope / x[pos]
        return float(result[0]) if np.ndim(energy) == 0 else result


class PeriodicSpline:
    """
    Cubic spline interpolation with periodic boundary conditions.

    Designed for torsional potentials sampled on an arbitrary set of angles.
    """

    def __init__(self, angles: np.ndarray, values: np.ndarray, period: float = 2 * np.pi):
        """
        Create periodic spline interpolation.

        Args:
            angles: Sample angles in radians
            values: Sampled values
            period: Period of the function in radians
        """
        self.period = period
        angles_norm = np.asarray(angles, dtype=float) % period
        values = np.asarray(values, dtype=float)

        sort_idx = np.argsort(angles_norm)
        angles_sorted = angles_norm[sort_idx]
        values_sorted = values[sort_idx]

        # Remove duplicates (keep first occurrence)
        unique_mask = np.concatenate([[True], np.diff(angles_sorted) > 1e-10])
        angles_sorted = angles_sorted[unique_mask]
        values_sorted = values_sorted[unique_mask]

        if len(angles_sorted) < 3:
            raise ConfigurationError("Need at least 3 unique angle points for interpolation")

        angles_closed = np.concatenate([angles_sorted, [angles_sorted[0] + period]])
        values_closed = np.concatenate([values_sorted, [values_sorted[0]]])
        self._spline = CubicSpline(angles_closed, values_closed, bc_type="periodic")
        self._origin = angles_sorted[0]

    def __call__(self, angles: ArrayLike) -> ArrayLike:
        """Evaluate at angles in radians."""
        shifted = (np.asarray(angles, dtype=float) - self._origin) % self.period + self._origin
        return self._spline(shifted)

    def sample(self, size: int) -> np.ndarray:
        """Values on a uniform grid of ``size`` points covering one period."""
        return self(np.arange(size) * self.period / size)

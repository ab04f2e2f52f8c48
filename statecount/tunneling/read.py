"""Tunneling action read from a table."""

import logging

import numpy as np
from scipy.interpolate import CubicSpline

from .base import Tunnel
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ReadTunnel(Tunnel):
    """
    Action tabulated against energy relative to the barrier top.

    The table is splined; outside it the action continues linearly with
    the end slopes. The action is re-referenced to vanish at the barrier
    top, and the barrier frequency, if not given, follows from the slope
    there (dS/dE = -2π/ν).
    """

    name = "Read"

    def __init__(self, energies: np.ndarray, actions: np.ndarray, cutoff: float,
                 frequency: float = None, **kwargs):
        """
        Initialize tabulated tunnel.

        Args:
            energies: Energies relative to the barrier top (Hartree), increasing
            actions: Action at each energy
            cutoff: Depth below the barrier top where tunneling starts (Hartree)
            frequency: Optional imaginary frequency magnitude (Hartree)
            **kwargs: Passed to Tunnel
        """
        energies = np.asarray(energies, dtype=float)
        actions = np.asarray(actions, dtype=float)
        if energies.ndim != 1 or energies.shape != actions.shape or len(energies) < 4:
            raise ConfigurationError("action table needs at least 4 (energy, action) rows",
                                     key="action_table")
        if np.any(np.diff(energies) <= 0):
            raise ConfigurationError("action table energies must be strictly increasing",
                                     key="action_table")
        if cutoff is not None and energies[0] > -cutoff:
            raise ConfigurationError(
                f"action table starts at {energies[0]:.4e}, above the cutoff {-cutoff:.4e}",
                key="action_table",
            )
        if energies[-1] < 0.0:
            raise ConfigurationError("action table must reach the barrier top",
                                     key="action_table")

        spline = CubicSpline(energies, actions)
        top_action = float(spline(0.0))
        if abs(top_action) > 1e-3:
            logger.warning(f"Tabulated action at the barrier top is {top_action:.3e}; shifted to zero")
        self._spline = spline
        self._slope = spline.derivative()
        self._top_action = top_action
        self._range = (float(energies[0]), float(energies[-1]))

        if frequency is None:
            slope = float(self._slope(0.0))
            if slope >= 0:
                raise ConfigurationError("tabulated action must decrease through the barrier top",
                                         key="action_table")
            frequency = -2.0 * np.pi / slope
            logger.info(f"Barrier frequency from action table: {frequency:.4e} Hartree")

        super().__init__(frequency, cutoff, **kwargs)

    def action(self, energy: float, derivative: int = 0) -> float:
        self._check_derivative(derivative)
        x = energy - self.cutoff
        low, high = self._range
        edge = min(max(x, low), high)
        slope = float(self._slope(edge))
        if derivative:
            return slope
        return float(self._spline(edge)) + slope * (x - edge) - self._top_action

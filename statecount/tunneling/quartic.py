"""Quartic-expansion barrier with WKB action below the top."""

import logging
from typing import Sequence

import numpy as np
from scipy import integrate
from scipy.interpolate import CubicSpline
from scipy.optimize import brentq

from .base import Tunnel
from ..core.exceptions import ConfigurationError, ConvergenceError, IntegrationError

logger = logging.getLogger(__name__)


def solve_well_ratio(
    depth_ratio: float,
    tolerance: float = 1e-10,
    max_iterations: int = 100,
) -> float:
    """
    Ratio r = a/b of the well positions of a quartic double well.

    Solves r³(r + 2)/(2r + 1) = D_a/D_b by Newton-Raphson in log form,
    where a and b are the distances from the barrier top to the two
    minima and D_a, D_b the corresponding well depths.

    Args:
        depth_ratio: D_a / D_b
        tolerance: Convergence threshold on the log residual
        max_iterations: Iteration cap

    Returns:
        Position ratio r

    Raises:
        ConvergenceError: If Newton-Raphson does not converge
    """
    target = np.log(depth_ratio)
    r = 1.0
    for iteration in range(max_iterations):
        residual = 3.0 * np.log(r) + np.log(r + 2.0) - np.log(2.0 * r + 1.0) - target
        if abs(residual) < tolerance:
            logger.debug(f"Well ratio converged in {iteration} iterations: r={r:.8f}")
            return r
        slope = 3.0 / r + 1.0 / (r + 2.0) - 2.0 / (2.0 * r + 1.0)
        step = residual / slope
        # keep the iterate positive
        while r - step <= 0:
            step *= 0.5
        r -= step
    raise ConvergenceError(
        "Quartic barrier well ratio search did not converge",
        iterations=max_iterations,
        final_value=float(r),
        threshold=tolerance,
    )


class QuarticTunnel(Tunnel):
    """
    Barrier V(q) = -ν q² (1/2 + v3 q + v4 q²) in dimensionless coordinates.

    The cubic and quartic coefficients are fixed by the two well depths.
    Below the barrier top the action is the WKB integral

        S(x) = 2 ∫ sqrt(2 (V(q) - x) / ν) dq

    between the turning points, tabulated on [-cutoff, 0] and splined; above
    the top the parabolic closed form S = -2πx/ν is used.
    """

    name = "Quartic"

    def __init__(
        self,
        frequency: float,
        cutoff: float,
        depths: Sequence[float],
        grid_size: int = 200,
        ratio_tolerance: float = 1e-10,
        **kwargs
    ):
        """
        Initialize quartic barrier.

        Args:
            frequency: Imaginary barrier frequency magnitude (Hartree)
            cutoff: Depth below the barrier top where tunneling starts (Hartree)
            depths: Well depths on the positive and negative side (Hartree)
            grid_size: Number of energies where the WKB action is tabulated
            ratio_tolerance: Newton-Raphson tolerance of the well ratio search
            **kwargs: Passed to Tunnel
        """
        super().__init__(frequency, cutoff, **kwargs)
        depths = [float(v) for v in depths]
        if len(depths) != 2 or min(depths) <= 0:
            raise ConfigurationError("Quartic barrier needs two positive well depths", key="depths")
        if self.cutoff >= min(depths):
            raise ConfigurationError(
                f"cutoff {self.cutoff:.4e} must lie above the shallower well {min(depths):.4e}",
                key="cutoff",
            )
        if grid_size < 4:
            raise ConfigurationError("action grid needs at least 4 points", key="grid_size")
        self.depths = tuple(depths)

        ratio = solve_well_ratio(depths[0] / depths[1], tolerance=ratio_tolerance)
        b = np.sqrt(12.0 * ratio * depths[1] / (self.frequency * (1.0 + 2.0 * ratio)))
        a = ratio * b
        self.well_positions = (a, -b)
        self.v3 = (a - b) / (3.0 * a * b)
        self.v4 = -1.0 / (4.0 * a * b)
        logger.info(
            f"Quartic barrier: wells at q={a:.4f}, {-b:.4f}; v3={self.v3:.4e}, v4={self.v4:.4e}"
        )

        if self.cutoff > 0:
            x_grid = -self.cutoff * (1.0 - np.linspace(0.0, 1.0, grid_size)) ** 2
            x_grid[-1] = 0.0
            actions = np.array([self._wkb_action(x) for x in x_grid])
            self._spline = CubicSpline(x_grid, actions)
            self._spline_derivative = self._spline.derivative()
        else:
            self._spline = None

    def potential(self, q: float) -> float:
        """Barrier potential in Hartree relative to the top."""
        return -self.frequency * q * q * (0.5 + self.v3 * q + self.v4 * q * q)

    def _turning_points(self, x: float):
        a, minus_b = self.well_positions
        left = brentq(lambda q: self.potential(q) - x, minus_b, 0.0)
        right = brentq(lambda q: self.potential(q) - x, 0.0, a)
        return left, right

    def _wkb_action(self, x: float) -> float:
        if x >= 0.0:
            return 0.0
        left, right = self._turning_points(x)

        def integrand(q: float) -> float:
            return np.sqrt(max(2.0 * (self.potential(q) - x) / self.frequency, 0.0))

        try:
            value, _ = integrate.quad(integrand, left, right, epsrel=self.tol, limit=self.max_subdivisions)
        except (ValueError, ZeroDivisionError, FloatingPointError) as e:
            raise IntegrationError(
                f"Quartic WKB action failed at x={x:.4e}: {e}",
                tolerance=self.tol,
                subdivisions=self.max_subdivisions,
            )
        return 2.0 * value

    def action(self, energy: float, derivative: int = 0) -> float:
        self._check_derivative(derivative)
        x = energy - self.cutoff
        if x >= 0.0 or self._spline is None:
            if derivative:
                return -2.0 * np.pi / self.frequency
            return -2.0 * np.pi * x / self.frequency
        x = max(x, -self.cutoff)
        if derivative:
            return float(self._spline_derivative(x))
        return float(self._spline(x))

"""Adaptive Boltzmann integrals and discrete thermal sums."""

import logging
from typing import Callable, Optional, Sequence

import numpy as np
from scipy import integrate

from ..core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


def boltzmann_integral(
    func: Callable[[float], float],
    temperature: float,
    lower: float = 0.0,
    upper: Optional[float] = None,
    therm_pow_max: float = 50.0,
    breakpoints: Sequence[float] = (),
    tolerance: float = 1e-8,
    max_subdivisions: int = 500,
) -> float:
    """
    Calculate ∫ f(E) exp(-(E - lower)/T) dE using adaptive quadrature.

    The upper limit defaults to ``lower + therm_pow_max * T``, beyond
    which the Boltzmann factor is negligible.

    Args:
        func: Integrand f(E)
        temperature: Thermal energy k_B*T (Hartree)
        lower: Lower integration limit, also the Boltzmann reference
        upper: Optional upper integration limit
        therm_pow_max: Largest (E - lower)/T covered by default
        breakpoints: Energies where the integrand has kinks
        tolerance: Relative tolerance
        max_subdivisions: Maximum subdivisions per quadrature segment

    Returns:
        Integral value

    Raises:
        IntegrationError: If quadrature fails
    """
    if temperature <= 0:
        raise IntegrationError("temperature must be positive")
    if upper is None:
        upper = lower + therm_pow_max * temperature
    if upper <= lower:
        return 0.0

    def integrand(energy: float) -> float:
        return func(energy) * np.exp(-(energy - lower) / temperature)

    edges = [lower] + sorted(b for b in breakpoints if lower < b < upper) + [upper]
    total = 0.0
    total_error = 0.0
    for a, b in zip(edges[:-1], edges[1:]):
        try:
            value, error = integrate.quad(
                integrand, a, b,
                epsabs=0.0,
                epsrel=tolerance,
                limit=max_subdivisions,
            )
        except (ValueError, ZeroDivisionError, FloatingPointError) as e:
            raise IntegrationError(
                f"Integration failed on [{a:.3e}, {b:.3e}]: {e}",
                tolerance=tolerance,
                subdivisions=max_subdivisions,
            )
        total += value
        total_error += error

    if total > 0 and total_error / total > tolerance * 100:
        logger.warning(
            f"Boltzmann integral may not be converged: "
            f"rel_error={total_error / total:.2e}, tol={tolerance:.2e}"
        )
    return total


def number_to_weight(
    number: Callable[[float], float],
    temperature: float,
    ground: float,
    therm_pow_max: float = 50.0,
    breakpoints: Sequence[float] = (),
) -> float:
    """
    Statistical weight relative to ground from a number of states function.

    Q(T) = ∫ ρ(E) e^{-(E-E0)/T} dE = (1/T) ∫ N(E) e^{-(E-E0)/T} dE,
    with N(E0) = 0.

    Args:
        number: N(E) at absolute energy
        temperature: Thermal energy (Hartree)
        ground: Ground energy E0 (Hartree)
        therm_pow_max: Largest (E - E0)/T covered
        breakpoints: Energies where N(E) has kinks

    Returns:
        Statistical weight
    """
    return boltzmann_integral(
        number, temperature, lower=ground,
        therm_pow_max=therm_pow_max, breakpoints=breakpoints,
    ) / temperature


def density_to_weight(
    density: Callable[[float], float],
    temperature: float,
    ground: float,
    therm_pow_max: float = 50.0,
    breakpoints: Sequence[float] = (),
) -> float:
    """Statistical weight relative to ground from a density of states."""
    return boltzmann_integral(
        density, temperature, lower=ground,
        therm_pow_max=therm_pow_max, breakpoints=breakpoints,
    )


def discrete_weight(
    levels: np.ndarray,
    temperature: float,
    degeneracies: Optional[np.ndarray] = None,
) -> float:
    """
    Boltzmann sum over discrete levels measured from the lowest one.

    Args:
        levels: Level energies (Hartree)
        temperature: Thermal energy (Hartree)
        degeneracies: Optional level degeneracies

    Returns:
        Σ g_i exp(-(e_i - e_0)/T)
    """
    levels = np.asarray(levels, dtype=float)
    if len(levels) == 0:
        return 0.0
    if degeneracies is None:
        degeneracies = np.ones_like(levels)
    return float(np.sum(degeneracies * np.exp(-(levels - levels.min()) / temperature)))


def grid_weight(numbers: np.ndarray, step: float, temperature: float) -> float:
    """
    Statistical weight from a number-of-states grid starting at ground.

    Uses the exact integral of a piecewise-constant density between
    grid points.

    Args:
        numbers: N on a uniform grid E_i = i*step
        step: Grid spacing (Hartree)
        temperature: Thermal energy (Hartree)

    Returns:
        Statistical weight relative to the grid origin
    """
    numbers = np.asarray(numbers, dtype=float)
    increments = np.diff(numbers, prepend=0.0)
    energies = np.arange(len(numbers)) * step
    return float(np.sum(increments * np.exp(-energies / temperature)))

"""Energy-grid convolutions used to combine independent degrees of freedom.

Every routine works on cumulative number-of-states grids N_i = N(i*step)
whose origin is the combined ground energy.
"""

from typing import Optional, Sequence

import numpy as np


def direct_count(
    numbers: np.ndarray,
    frequencies: Sequence[float],
    step: float,
    degeneracies: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """
    Beyer-Swinehart direct count of harmonic oscillator quanta.

    For each oscillator of frequency w the recursion
    N_i <- N_i + N_{i-k}, k = round(w/step), is applied, which adds
    every overtone of the oscillator.

    Args:
        numbers: Number of states grid of the remaining degrees of freedom
        frequencies: Harmonic frequencies (Hartree)
        step: Grid spacing (Hartree)
        degeneracies: Optional mode degeneracies

    Returns:
        New number of states grid
    """
    result = np.array(numbers, dtype=float, copy=True)
    if degeneracies is None:
        degeneracies = [1] * len(frequencies)
    for frequency, degeneracy in zip(frequencies, degeneracies):
        shift = int(round(frequency / step))
        if shift <= 0:
            raise ValueError(f"frequency {frequency:.3e} is below the grid step")
        for _ in range(int(degeneracy)):
            for start in range(min(shift, len(result))):
                result[start::shift] = np.cumsum(result[start::shift])
    return result


def shift_add(
    numbers: np.ndarray,
    levels: Sequence[float],
    step: float,
    degeneracies: Optional[Sequence[float]] = None,
    broaden: bool = False,
) -> np.ndarray:
    """
    Convolute a grid with a discrete level spectrum.

    N'(E) = Σ_j g_j N(E - e_j), each level acting as a delta function.
    With ``broaden`` a level falling between grid points is split linearly
    between its two neighbours instead of being rounded to the nearest one.

    Args:
        numbers: Number of states grid
        levels: Level energies relative to the lowest level (Hartree)
        step: Grid spacing (Hartree)
        degeneracies: Optional level degeneracies
        broaden: Split levels between neighbouring grid points

    Returns:
        New number of states grid
    """
    numbers = np.asarray(numbers, dtype=float)
    size = len(numbers)
    result = np.zeros(size)
    if degeneracies is None:
        degeneracies = np.ones(len(levels))

    for level, degeneracy in zip(levels, degeneracies):
        position = level / step
        if broaden:
            low = int(np.floor(position))
            frac = position - low
            parts = ((low, 1.0 - frac), (low + 1, frac))
        else:
            parts = ((int(round(position)), 1.0),)
        for shift, share in parts:
            if shift >= size or share == 0.0:
                continue
            result[shift:] += degeneracy * share * numbers[:size - shift]
    return result


def convolve_density(numbers: np.ndarray, density: np.ndarray, step: float) -> np.ndarray:
    """
    Convolute a number of states grid with a density sampled on the same grid.

    Args:
        numbers: Number of states grid
        density: Density values at E_i = i*step
        step: Grid spacing (Hartree)

    Returns:
        ∫ N(E - x) ρ(x) dx on the grid
    """
    numbers = np.asarray(numbers, dtype=float)
    density = np.asarray(density, dtype=float)
    weights = density * step
    # trapezoid end correction at the origin
    weights[0] *= 0.5
    return np.convolve(numbers, weights)[:len(numbers)]


def convolve_numbers(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """
    Combine two number of states grids of independent degrees of freedom.

    N(E) = Σ_i ΔN_1(E_i) N_2(E - E_i), with ΔN_1 the per-bin increments.
    """
    first = np.asarray(first, dtype=float)
    second = np.asarray(second, dtype=float)
    increments = np.diff(first, prepend=0.0)
    return np.convolve(increments, second)[:len(first)]

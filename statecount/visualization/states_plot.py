"""Number of states, partition function and tunneling factor plotting."""

import numpy as np
from typing import Optional, List, Sequence, Tuple, Union
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes

from ..core.constants import HARTREE_TO_KCAL, KCAL_TO_HARTREE, KELVIN_TO_HARTREE
from ..species.base import Species
from ..tunneling.base import Tunnel


def _as_list(species: Union[Species, Sequence[Species]]) -> List[Species]:
    if isinstance(species, Species):
        return [species]
    return list(species)


def plot_states(
    species: Union[Species, Sequence[Species]],
    energy_max_kcal: float = 30.0,
    points: int = 300,
    relative: bool = True,
    ax: Optional[Axes] = None,
    figsize: Tuple[float, float] = (8, 6),
    title: Optional[str] = None,
    **kwargs
) -> Tuple[Figure, Axes]:
    """
    Plot states(E) of one or more species on a log axis.

    Args:
        species: Species or list of species
        energy_max_kcal: Upper end of the energy axis above each ground
        points: Number of energies per curve
        relative: Measure each curve from its own ground
        ax: Existing axes
        figsize: Figure size
        title: Plot title
        **kwargs: Additional plot arguments

    Returns:
        Tuple of (Figure, Axes)
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    species = _as_list(species)
    for item in species:
        offsets = np.linspace(0.0, energy_max_kcal, points)[1:] * KCAL_TO_HARTREE
        energies = item.ground() + offsets
        values = np.array([item.states(e) for e in energies])
        x_data = offsets if relative else energies
        positive = values > 0
        ax.plot(x_data[positive] * HARTREE_TO_KCAL, values[positive],
                linewidth=2, label=f"{item.name} ({item.mode.value})", **kwargs)

    ax.set_yscale('log')
    ax.set_xlabel('Energy above ground (kcal/mol)' if relative else 'Energy (kcal/mol)',
                  fontsize=12)
    ax.set_ylabel('States', fontsize=12)
    ax.set_title(title or 'Number of States', fontsize=14)
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3, which='both')

    plt.tight_layout()
    return fig, ax


def plot_weight(
    species: Union[Species, Sequence[Species]],
    temperatures: Optional[np.ndarray] = None,
    ax: Optional[Axes] = None,
    figsize: Tuple[float, float] = (8, 6),
    title: Optional[str] = None,
    **kwargs
) -> Tuple[Figure, Axes]:
    """
    Plot the statistical weight Q(T) of one or more species.

    Args:
        species: Species or list of species
        temperatures: Temperatures in Kelvin (default 200-2000 K)
        ax: Existing axes
        figsize: Figure size
        title: Plot title
        **kwargs: Additional plot arguments

    Returns:
        Tuple of (Figure, Axes)
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    if temperatures is None:
        temperatures = np.linspace(200.0, 2000.0, 19)
    temperatures = np.asarray(temperatures, dtype=float)

    for item in _as_list(species):
        weights = [item.weight(t * KELVIN_TO_HARTREE) for t in temperatures]
        ax.plot(temperatures, weights, 'o-', linewidth=2, markersize=4,
                label=item.name, **kwargs)

    ax.set_yscale('log')
    ax.set_xlabel('Temperature (K)', fontsize=12)
    ax.set_ylabel('Statistical Weight Q(T)', fontsize=12)
    ax.set_title(title or 'Partition Function', fontsize=14)
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3, which='both')

    plt.tight_layout()
    return fig, ax


def plot_tunneling_factor(
    tunnel: Tunnel,
    points: int = 400,
    above_top_kcal: float = 5.0,
    show_density: bool = True,
    ax: Optional[Axes] = None,
    figsize: Tuple[float, float] = (8, 6),
    title: Optional[str] = None,
    color: str = "steelblue",
) -> Tuple[Figure, Axes]:
    """
    Plot the transmission factor and its energy derivative.

    The energy axis is measured from the barrier top.

    Args:
        tunnel: Tunneling model
        points: Number of energies
        above_top_kcal: Range above the barrier top
        show_density: Add the density on a twin axis
        ax: Existing axes
        figsize: Figure size
        title: Plot title
        color: Line color

    Returns:
        Tuple of (Figure, Axes)
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    energies = np.linspace(0.0, tunnel.cutoff + above_top_kcal * KCAL_TO_HARTREE, points)
    x_data = (energies - tunnel.cutoff) * HARTREE_TO_KCAL
    factors = [tunnel.factor(e) for e in energies]

    ax.plot(x_data, factors, color=color, linewidth=2, label='Transmission')
    ax.axvline(0.0, color='gray', linestyle=':', alpha=0.5)
    ax.axhline(0.5, color='gray', linestyle=':', alpha=0.5)
    ax.set_ylim(0, 1.05)

    if show_density:
        twin = ax.twinx()
        densities = [tunnel.density(e) * KCAL_TO_HARTREE for e in energies]
        twin.plot(x_data, densities, color='darkorange', linestyle='--', linewidth=1.5,
                  label='Density')
        twin.set_ylabel('dP/dE (1/(kcal/mol))', fontsize=12)

    ax.set_xlabel('Energy relative to barrier top (kcal/mol)', fontsize=12)
    ax.set_ylabel('Transmission P(E)', fontsize=12)
    ax.set_title(title or f'Tunneling Factor ({tunnel.name})', fontsize=14)
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig, ax

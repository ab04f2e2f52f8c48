"""Visualization of state counts, partition functions and tunneling factors.

Provides plotting functions for:
- Number and density of states
- Statistical weights
- Tunneling transmission factors
"""

from .states_plot import plot_states, plot_weight, plot_tunneling_factor

__all__ = [
    "plot_states",
    "plot_weight",
    "plot_tunneling_factor",
]

"""Numerical building blocks: splines, Boltzmann integrals, convolution, Fourier grids."""

from .interpolation import StatesSpline, LogLogSpline, PeriodicSpline, fit_power_exponent
from .integration import (
    boltzmann_integral,
    number_to_weight,
    density_to_weight,
    discrete_weight,
    grid_weight,
)
from .convolution import direct_count, shift_add, convolve_density, convolve_numbers
from .fourier import FourierExpansion, angular_grid, grid_to_fft, fft_to_grid

__all__ = [
    "StatesSpline",
    "LogLogSpline",
    "PeriodicSpline",
    "fit_power_exponent",
    "boltzmann_integral",
    "number_to_weight",
    "density_to_weight",
    "discrete_weight",
    "grid_weight",
    "direct_count",
    "shift_add",
    "convolve_density",
    "convolve_numbers",
    "FourierExpansion",
    "angular_grid",
    "grid_to_fft",
    "fft_to_grid",
]

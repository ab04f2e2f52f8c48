"""Internal motion models: free, hindered, and umbrella rotors."""

from .base import Rotor, QuantumRotor, path_integral_factor
from .free import FreeRotor
from .hindered import HinderedRotor
from .umbrella import Umbrella, cosine_moments
from .factory import new_rotor

__all__ = [
    "Rotor",
    "QuantumRotor",
    "path_integral_factor",
    "FreeRotor",
    "HinderedRotor",
    "Umbrella",
    "cosine_moments",
    "new_rotor",
]

"""Collisional energy transfer, escape channels, wells and bimolecular products."""

from .collision import Collision, LennardJonesCollision, new_collision, omega_22_star
from .kernel import Kernel, ExponentialKernel, new_kernel
from .escape import Escape, ConstEscape, FitEscape, new_escape
from .well import Well, Bimolecular, new_well, new_bimolecular

__all__ = [
    "Collision",
    "LennardJonesCollision",
    "new_collision",
    "omega_22_star",
    "Kernel",
    "ExponentialKernel",
    "new_kernel",
    "Escape",
    "ConstEscape",
    "FitEscape",
    "new_escape",
    "Well",
    "Bimolecular",
    "new_well",
    "new_bimolecular",
]

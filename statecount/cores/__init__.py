"""Global number-of-states models: rigid rotor, phase space theory, tables, coupled rotors."""

from .base import Core
from .phase_space import PhaseSpaceTheory
from .rigid_rotor import RigidRotor, rotational_factor, rotational_constants_from
from .rotd import Rotd
from .multirotor import CoupledRotation, MultiRotor, prune_expansion
from .factory import new_core

__all__ = [
    "Core",
    "PhaseSpaceTheory",
    "RigidRotor",
    "rotational_factor",
    "rotational_constants_from",
    "Rotd",
    "CoupledRotation",
    "MultiRotor",
    "prune_expansion",
    "new_core",
]

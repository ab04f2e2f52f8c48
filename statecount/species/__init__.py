"""Species: wells and barriers composed from cores, rotors, oscillators and tunnels."""

from .base import Species, SplineSpecies
from .graph_expansion import GraphExpansion
from .rrho import RRHO
from .union import UnionSpecies
from .var_barrier import BarrierMethod, VarBarrier
from .atomic import AtomicSpecies
from .arrhenius import Arrhenius
from .read import ReadSpecies
from .factory import new_species

__all__ = [
    "Species",
    "SplineSpecies",
    "GraphExpansion",
    "RRHO",
    "UnionSpecies",
    "BarrierMethod",
    "VarBarrier",
    "AtomicSpecies",
    "Arrhenius",
    "ReadSpecies",
    "new_species",
]

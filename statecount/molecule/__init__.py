"""Molecular geometry, bond connectivity, and internal rotation helpers."""

from .structure import Atom, Molecule
from .geometry import (
    bond_length_limit,
    find_connected_atoms,
    rotate_about_axis,
    rotate_fragment,
)
from .internal_rotation import (
    InternalRotation,
    project_external,
    rotation_metric,
    internal_mobility,
)
from .io import read_xyz

__all__ = [
    "Atom",
    "Molecule",
    "bond_length_limit",
    "find_connected_atoms",
    "rotate_about_axis",
    "rotate_fragment",
    "InternalRotation",
    "project_external",
    "rotation_metric",
    "internal_mobility",
    "read_xyz",
]

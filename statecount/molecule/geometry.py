"""Bond connectivity and rigid rotation of atom groups about a bond axis."""

from typing import Iterable, Optional, Set

import numpy as np

from .structure import Molecule
from ..core.constants import covalent_radius
from ..core.exceptions import GeometryError


def rotate_about_axis(
    points: np.ndarray,
    pivot: np.ndarray,
    axis: np.ndarray,
    angle: float
) -> np.ndarray:
    """
    Rotate points about a unit axis through a pivot (Rodrigues formula).

    Args:
        points: Array of shape (..., 3)
        pivot: Point on the axis
        axis: Unit vector along the axis
        angle: Rotation angle in radians

    Returns:
        Rotated points, same shape as the input
    """
    p = np.asarray(points, dtype=float) - pivot
    cos_a, sin_a = np.cos(angle), np.sin(angle)
    rotated = (p * cos_a
               + np.cross(axis, p) * sin_a
               + np.outer(p @ axis, axis).reshape(p.shape) * (1.0 - cos_a))
    return rotated + pivot


def rotate_fragment(
    mol: Molecule,
    group: Iterable[int],
    axis_atoms: Iterable[int],
    angle: float
) -> Molecule:
    """
    Copy of the molecule with a group of atoms turned about a bond axis.

    Args:
        mol: Input molecule
        group: Indices of the atoms that move
        axis_atoms: Two atom indices defining the axis, the first one is the pivot
        angle: Rotation angle in radians

    Raises:
        GeometryError: If the axis atoms coincide
    """
    a, b = axis_atoms
    coords = mol.coordinates
    axis = coords[b] - coords[a]
    norm = np.linalg.norm(axis)
    if norm < 1e-10:
        raise GeometryError(f"rotation axis atoms {a} and {b} coincide")
    group = list(group)
    coords[group] = rotate_about_axis(coords[group], coords[a].copy(), axis / norm, angle)
    return mol.with_new_coordinates(coords)


def bond_length_limit(symbol_a: str, symbol_b: str, bond_scale: float = 1.2) -> float:
    """Largest distance (Angstrom) at which two atoms count as bonded."""
    try:
        return bond_scale * (covalent_radius(symbol_a) + covalent_radius(symbol_b))
    except KeyError as e:
        raise GeometryError(f"no covalent radius for {e}") from e


def find_connected_atoms(
    mol: Molecule,
    start: int,
    exclude: int,
    bond_threshold: Optional[float] = None,
    bond_scale: float = 1.2,
) -> Set[int]:
    """
    Atoms reachable from ``start`` through bonds without passing ``exclude``.

    Two atoms are bonded when closer than ``bond_threshold`` (Angstrom) or,
    without a threshold, than ``bond_scale`` times the sum of their
    covalent radii.
    """
    coords = mol.coordinates
    symbols = mol.symbols
    connected = {start}
    to_visit = [start]

    while to_visit:
        current = to_visit.pop()
        for other in range(mol.num_atoms):
            if other in connected or other == exclude:
                continue
            limit = bond_threshold
            if limit is None:
                limit = bond_length_limit(symbols[current], symbols[other], bond_scale)
            if np.linalg.norm(coords[current] - coords[other]) < limit:
                connected.add(other)
                to_visit.append(other)

    return connected

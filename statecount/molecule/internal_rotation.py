"""Internal rotation geometry: rotating groups, torsional modes, and mass metrics."""

from dataclasses import dataclass, field
import logging
from typing import List, Sequence, Tuple

import numpy as np

from .geometry import find_connected_atoms, rotate_fragment
from .structure import Molecule
from ..core.exceptions import GeometryError

logger = logging.getLogger(__name__)

# condition number above which the effective internal inertia counts as singular
SINGULAR_CONDITION = 1e10


@dataclass
class InternalRotation:
    """
    A group of atoms rotating rigidly about a bond axis.

    Attributes:
        group: Indices of the rotating atoms
        axis: Two atom indices defining the rotation axis
        symmetry: Symmetry number of the rotor (periodicity 2π/symmetry)
    """
    group: List[int]
    axis: Tuple[int, int]
    symmetry: int = 1
    _group_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.group = [int(i) for i in self.group]
        self.axis = tuple(int(i) for i in self.axis)
        if not self.group:
            raise GeometryError("internal rotation group is empty")
        if len(self.axis) != 2 or self.axis[0] == self.axis[1]:
            raise GeometryError(f"rotation axis must be two distinct atoms, got {self.axis}")
        if self.symmetry < 1:
            raise GeometryError(f"rotor symmetry number must be positive, got {self.symmetry}")
        self._group_set = frozenset(self.group)

    @classmethod
    def from_bond(cls, mol: Molecule, j: int, k: int, symmetry: int = 1) -> "InternalRotation":
        """
        Rotation of everything on the k side of the j-k bond.

        Args:
            mol: Reference geometry
            j, k: Bond atoms; atoms connected to k (not via j) rotate
            symmetry: Rotor symmetry number
        """
        group = sorted(find_connected_atoms(mol, k, exclude=j))
        return cls(group=group, axis=(j, k), symmetry=symmetry)

    def validate(self, mol: Molecule) -> None:
        """Check that all indices refer to atoms of the molecule."""
        for index in list(self.group) + list(self.axis):
            if not 0 <= index < mol.num_atoms:
                raise GeometryError(f"atom index {index} out of range for {mol.num_atoms} atoms")
        if len(self._group_set) >= mol.num_atoms:
            raise GeometryError("rotating group must not contain the whole molecule")

    def rotate(self, mol: Molecule, angle: float) -> Molecule:
        """Return a new molecule with the group rotated by angle (radians)."""
        return rotate_fragment(mol, self.group, self.axis, angle)

    def direction(self, mol: Molecule) -> np.ndarray:
        """
        Cartesian displacement per unit rotation angle, before projection.

        Returns:
            Nx3 array in Bohr per radian
        """
        coords, _ = mol.atomic_units()
        a, b = self.axis
        axis = coords[b] - coords[a]
        axis /= np.linalg.norm(axis)
        result = np.zeros_like(coords)
        for index in self.group:
            result[index] = np.cross(axis, coords[index] - coords[a])
        return result

    def normal_mode(self, mol: Molecule) -> np.ndarray:
        """
        Torsional displacement with overall translation and rotation removed.

        The mode carries no linear or angular momentum, so its kinetic
        energy is purely internal.

        Returns:
            Nx3 array in Bohr per radian
        """
        return project_external(mol, self.direction(mol)[None])[0]

    def inertia_moment(self, mol: Molecule) -> float:
        """Effective moment of inertia of the torsion (electron mass * Bohr²)."""
        _, masses = mol.atomic_units()
        mode = self.normal_mode(mol)
        return float(np.sum(masses[:, None] * mode ** 2))

    def rotational_constant(self, mol: Molecule) -> float:
        """Rotational constant B = 1/(2I) in Hartree."""
        return 0.5 / self.inertia_moment(mol)


def project_external(mol: Molecule, directions: np.ndarray) -> np.ndarray:
    """
    Remove linear and angular momentum from Cartesian displacement patterns.

    Args:
        mol: Reference geometry
        directions: Array (K, N, 3) of displacements in Bohr

    Returns:
        Projected displacements, same shape
    """
    coords, masses = mol.atomic_units()
    com = np.sum(masses[:, None] * coords, axis=0) / masses.sum()
    r = coords - com
    inertia = mol.inertia_tensor()
    result = []
    for d in directions:
        d = d - np.sum(masses[:, None] * d, axis=0) / masses.sum()
        momentum = np.sum(masses[:, None] * np.cross(r, d), axis=0)
        omega = np.linalg.lstsq(inertia, momentum, rcond=None)[0]
        result.append(d - np.cross(omega, r))
    return np.array(result)


def rotation_metric(
    mol: Molecule,
    rotations: Sequence[InternalRotation],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Kinetic metric of overall rotation coupled to internal rotations.

    The full metric is G = [[I, C], [Cᵀ, A]] with I the inertia tensor,
    A_ij = Σ m u_i·u_j over the translation-free torsional displacements
    u_i, and C the Coriolis block coupling the two.

    Args:
        mol: Geometry at which the metric is evaluated
        rotations: Internal rotations

    Returns:
        Tuple (I, C, A) in atomic units
    """
    coords, masses = mol.atomic_units()
    com = np.sum(masses[:, None] * coords, axis=0) / masses.sum()
    r = coords - com

    internal = []
    for rotation in rotations:
        d = rotation.direction(mol)
        internal.append(d - np.sum(masses[:, None] * d, axis=0) / masses.sum())
    internal = np.array(internal)

    inertia = mol.inertia_tensor()
    external = np.array([np.cross(np.eye(3)[x], r) for x in range(3)])
    coriolis = np.einsum("a,xai,kai->xk", masses, external, internal)
    internal_block = np.einsum("a,iab,jab->ij", masses, internal, internal)
    return inertia, coriolis, internal_block


def internal_mobility(
    mol: Molecule,
    rotations: Sequence[InternalRotation],
) -> Tuple[np.ndarray, float]:
    """
    Inverse effective internal inertia and the external rotation factor.

    Args:
        mol: Geometry
        rotations: Internal rotations

    Returns:
        Tuple (M, erf): M = (A - Cᵀ I⁻¹ C)⁻¹ and erf = sqrt(det I)

    Raises:
        GeometryError: If the inertia tensor is singular or the rotations are
            not independent once the overall rotation is removed
    """
    inertia, coriolis, internal_block = rotation_metric(mol, rotations)
    axes = ", ".join(f"{r.axis[0]}-{r.axis[1]}" for r in rotations)
    try:
        effective = internal_block - coriolis.T @ np.linalg.solve(inertia, coriolis)
    except np.linalg.LinAlgError as e:
        raise GeometryError(f"{mol.name or 'molecule'}: singular inertia tensor ({e})") from e
    if np.linalg.cond(effective) > SINGULAR_CONDITION:
        raise GeometryError(
            f"internal rotations about axes {axes} are not independent of each other "
            f"and the overall rotation"
        )
    return np.linalg.inv(effective), float(np.sqrt(np.linalg.det(inertia)))

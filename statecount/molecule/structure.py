"""Atoms and molecular geometries used by rotational cores and internal rotors."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..core.constants import AMU_TO_AU, ANGSTROM_TO_BOHR, atomic_mass
from ..core.exceptions import GeometryError


@dataclass
class Atom:
    """
    One atom of a geometry.

    Attributes:
        symbol: Element symbol or isotope label ("H", "D", "13C")
        coordinates: Cartesian position (Angstrom)
        mass: Mass in AMU, looked up from the symbol when omitted
    """
    symbol: str
    coordinates: np.ndarray
    mass: Optional[float] = None

    def __post_init__(self):
        self.coordinates = np.asarray(self.coordinates, dtype=float)
        if self.coordinates.shape != (3,):
            raise GeometryError(f"{self.symbol}: expected 3 coordinates, got shape {self.coordinates.shape}")
        if self.mass is None:
            try:
                self.mass = atomic_mass(self.symbol)
            except KeyError:
                raise GeometryError(f"no tabulated mass for atom {self.symbol!r}")
        elif self.mass <= 0:
            raise GeometryError(f"{self.symbol}: mass must be positive, got {self.mass}")

    def copy(self) -> "Atom":
        return Atom(symbol=self.symbol, coordinates=self.coordinates.copy(), mass=self.mass)


@dataclass
class Molecule:
    """
    Ordered list of atoms; indices are used by rotor and bond definitions.

    Attributes:
        atoms: Atoms in input order
        name: Label used in log messages
    """
    atoms: List[Atom]
    name: str = ""

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def symbols(self) -> List[str]:
        return [atom.symbol for atom in self.atoms]

    @property
    def coordinates(self) -> np.ndarray:
        """Cartesian coordinates, shape (N, 3), in Angstrom."""
        return np.array([atom.coordinates for atom in self.atoms])

    @coordinates.setter
    def coordinates(self, coords: np.ndarray):
        coords = np.asarray(coords, dtype=float)
        if coords.shape != (self.num_atoms, 3):
            raise GeometryError(f"{self.name}: coordinates must have shape ({self.num_atoms}, 3), "
                                f"got {coords.shape}")
        for atom, row in zip(self.atoms, coords):
            atom.coordinates = row.copy()

    @property
    def masses(self) -> np.ndarray:
        """Atomic masses in AMU."""
        return np.array([atom.mass for atom in self.atoms])

    @property
    def total_mass(self) -> float:
        """Total molecular mass in AMU."""
        return float(np.sum(self.masses))

    def atomic_units(self) -> Tuple[np.ndarray, np.ndarray]:
        """Coordinates in Bohr and masses in electron masses."""
        return self.coordinates * ANGSTROM_TO_BOHR, self.masses * AMU_TO_AU

    def inertia_tensor(self) -> np.ndarray:
        """
        Inertia tensor about the center of mass in atomic units.

        Returns:
            3x3 tensor (electron mass * Bohr²)
        """
        coords, masses = self.atomic_units()
        r = coords - np.sum(masses[:, None] * coords, axis=0) / masses.sum()
        tensor = np.zeros((3, 3))
        for m, v in zip(masses, r):
            tensor += m * (np.dot(v, v) * np.eye(3) - np.outer(v, v))
        return tensor

    def principal_moments(self) -> np.ndarray:
        """Principal moments of inertia in ascending order (atomic units)."""
        return np.linalg.eigvalsh(self.inertia_tensor())

    def is_linear(self, tolerance: float = 1e-6) -> bool:
        """True when the smallest principal moment vanishes."""
        if self.num_atoms < 2:
            return False
        moments = self.principal_moments()
        return moments[0] < tolerance * moments[-1]

    def check_distances(self, min_distance: float) -> None:
        """
        Reject geometries with atoms closer than a threshold.

        Args:
            min_distance: Smallest allowed interatomic distance (Bohr)

        Raises:
            GeometryError: If two atoms are too close
        """
        coords, _ = self.atomic_units()
        for i in range(self.num_atoms):
            for j in range(i + 1, self.num_atoms):
                distance = np.linalg.norm(coords[i] - coords[j])
                if distance < min_distance:
                    raise GeometryError(
                        f"Atoms {i} ({self.atoms[i].symbol}) and {j} ({self.atoms[j].symbol}) "
                        f"are {distance:.3f} bohr apart, below {min_distance:.3f}"
                    )

    def copy(self) -> "Molecule":
        return Molecule(atoms=[atom.copy() for atom in self.atoms], name=self.name)

    def with_new_coordinates(self, coords: np.ndarray) -> "Molecule":
        """Copy of the molecule placed at new coordinates (Angstrom)."""
        mol = self.copy()
        mol.coordinates = coords
        return mol

    @classmethod
    def from_arrays(cls, symbols: List[str], coordinates: np.ndarray,
                    masses: Optional[np.ndarray] = None, name: str = "") -> "Molecule":
        """Build a molecule from parallel symbol, coordinate and optional mass arrays."""
        if len(symbols) != len(coordinates):
            raise GeometryError(f"{name}: {len(symbols)} symbols for {len(coordinates)} positions")
        if masses is None:
            masses = [None] * len(symbols)
        atoms = [Atom(symbol=s, coordinates=c, mass=m)
                 for s, c, m in zip(symbols, coordinates, masses)]
        return cls(atoms=atoms, name=name)

    @classmethod
    def from_config(cls, rows: List[List], name: str = "") -> "Molecule":
        """
        Build a molecule from geometry rows.

        Each row is [symbol, x, y, z] in Angstrom, optionally followed by the
        mass in AMU for isotopic substitution.

        Raises:
            GeometryError: If a row is malformed
        """
        symbols, coords, masses = [], [], []
        for i, row in enumerate(rows):
            if len(row) not in (4, 5):
                raise GeometryError(f"geometry row {i} must be [symbol, x, y, z(, mass)], got {row!r}")
            symbols.append(str(row[0]))
            try:
                values = [float(v) for v in row[1:]]
            except (TypeError, ValueError):
                raise GeometryError(f"geometry row {i} has non-numeric entries: {row!r}")
            coords.append(values[:3])
            masses.append(values[3] if len(values) == 4 else None)
        return cls.from_arrays(symbols, np.array(coords), masses=masses, name=name)

    @classmethod
    def h2o2(cls, dihedral: float = 111.5) -> "Molecule":
        """
        Hydrogen peroxide with a given H-O-O-H dihedral (degrees).

        Atoms are ordered O, O, H, H with the O-O bond along x.
        """
        r_oo, r_oh = 1.47, 0.97
        angle = np.radians(99.4)
        phi = np.radians(dihedral)
        along, across = r_oh * np.cos(angle), r_oh * np.sin(angle)
        coords = np.array([
            [0.0, 0.0, 0.0],
            [r_oo, 0.0, 0.0],
            [-along, 0.0, across],
            [r_oo + along, across * np.sin(phi), across * np.cos(phi)],
        ])
        return cls.from_arrays(["O", "O", "H", "H"], coords, name="H2O2")

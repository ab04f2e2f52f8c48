"""Tests for molecule structure, bond connectivity, internal rotations, and XYZ files."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from statecount.core.constants import (
    AMU_TO_AU,
    ANGSTROM_TO_BOHR,
    ATOMIC_MASSES,
    HARTREE_TO_CM,
)
from statecount.core.exceptions import FileIOError, GeometryError
from statecount.molecule import (
    Atom,
    InternalRotation,
    Molecule,
    bond_length_limit,
    find_connected_atoms,
    internal_mobility,
    project_external,
    read_xyz,
    rotate_about_axis,
    rotate_fragment,
)


def hooh_dihedral(mol):
    """H-O-O-H dihedral of an H2O2 geometry in degrees."""
    h1, o1, o2, h2 = mol.coordinates[[2, 0, 1, 3]]
    b1, b2, b3 = o1 - h1, o2 - o1, h2 - o2
    n1, n2 = np.cross(b1, b2), np.cross(b2, b3)
    m1 = np.cross(n1, b2 / np.linalg.norm(b2))
    return np.degrees(np.arctan2(np.dot(m1, n2), np.dot(n1, n2)))


class TestAtom:
    """Tests for Atom dataclass."""

    def test_atom_creation(self):
        """Mass is looked up from the symbol."""
        atom = Atom(symbol="O", coordinates=[0.0, 0.0, 0.0])
        assert isinstance(atom.coordinates, np.ndarray)
        assert_allclose(atom.mass, ATOMIC_MASSES["O"], rtol=1e-6)

    def test_isotope_label(self):
        atom = Atom(symbol="D", coordinates=[0.0, 0.0, 0.0])
        assert_allclose(atom.mass, ATOMIC_MASSES["D"])

    def test_explicit_mass(self):
        atom = Atom(symbol="H", coordinates=np.zeros(3), mass=3.016)
        assert atom.mass == 3.016

    def test_atom_copy(self):
        """Copies do not share coordinates."""
        atom1 = Atom(symbol="C", coordinates=np.array([1.0, 2.0, 3.0]))
        atom2 = atom1.copy()
        atom2.coordinates[0] = 10.0
        assert atom1.coordinates[0] == 1.0

    @pytest.mark.parametrize("kwargs", [
        {"symbol": "H", "coordinates": [0.0, 0.0]},
        {"symbol": "Xx", "coordinates": [0.0, 0.0, 0.0]},
        {"symbol": "H", "coordinates": [0.0, 0.0, 0.0], "mass": -1.0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(GeometryError):
            Atom(**kwargs)


class TestMolecule:
    """Tests for Molecule dataclass."""

    def test_h2o2_creation(self, h2o2_molecule):
        assert h2o2_molecule.num_atoms == 4
        assert h2o2_molecule.symbols == ["O", "O", "H", "H"]
        assert_allclose(abs(hooh_dihedral(h2o2_molecule)), 111.5, atol=1e-8)

    def test_h2o2_total_mass(self, h2o2_molecule):
        expected_mass = 2 * ATOMIC_MASSES["O"] + 2 * ATOMIC_MASSES["H"]
        assert_allclose(h2o2_molecule.total_mass, expected_mass, rtol=1e-10)

    def test_from_arrays_mismatch(self):
        with pytest.raises(GeometryError):
            Molecule.from_arrays(["O", "H"], np.zeros((3, 3)))

    def test_from_config(self):
        mol = Molecule.from_config([["O", 0, 0, 0], ["H", 0.96, 0, 0], ["H", -0.24, 0.93, 0]],
                                   name="water")
        assert mol.symbols == ["O", "H", "H"]
        assert mol.name == "water"
        assert_allclose(mol.coordinates[1], [0.96, 0.0, 0.0])

    def test_from_config_mass_column(self):
        """A fifth column overrides the tabulated mass."""
        mol = Molecule.from_config([["O", 0, 0, 0], ["H", 0.96, 0, 0, 2.014]])
        assert_allclose(mol.masses, [ATOMIC_MASSES["O"], 2.014])

    @pytest.mark.parametrize("rows", [
        [["O", 0.0, 0.0]],
        [["O", "x", 0.0, 0.0]],
    ])
    def test_from_config_malformed(self, rows):
        with pytest.raises(GeometryError):
            Molecule.from_config(rows)

    def test_with_new_coordinates(self, h2o2_molecule):
        """The original geometry is left untouched."""
        moved = h2o2_molecule.with_new_coordinates(h2o2_molecule.coordinates + 1.0)
        assert_allclose(moved.coordinates - h2o2_molecule.coordinates, 1.0)
        with pytest.raises(GeometryError):
            h2o2_molecule.with_new_coordinates(np.zeros((3, 3)))

    def test_principal_moments(self, h2o2_molecule):
        """Principal moments are the eigenvalues of the inertia tensor in atomic units."""
        moments = h2o2_molecule.principal_moments()
        assert np.all(np.diff(moments) >= 0)
        assert_allclose(moments.sum(), np.trace(h2o2_molecule.inertia_tensor()))
        coords, masses = h2o2_molecule.atomic_units()
        assert_allclose(masses.sum(), h2o2_molecule.total_mass * AMU_TO_AU)
        assert_allclose(coords, h2o2_molecule.coordinates * ANGSTROM_TO_BOHR)

    def test_is_linear(self, h2o2_molecule):
        co2 = Molecule.from_config([["O", -1.16, 0, 0], ["C", 0, 0, 0], ["O", 1.16, 0, 0]])
        assert co2.is_linear()
        assert not h2o2_molecule.is_linear()

    def test_check_distances(self, h2o2_molecule):
        """Minimum distance is given in Bohr."""
        h2o2_molecule.check_distances(1.0)
        with pytest.raises(GeometryError):
            h2o2_molecule.check_distances(0.97 * ANGSTROM_TO_BOHR + 0.1)


class TestGeometry:
    """Tests for bond connectivity and fragment rotation."""

    def test_rotate_about_axis(self):
        points = np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 2.0]])
        rotated = rotate_about_axis(points, np.zeros(3), np.array([0.0, 0.0, 1.0]), np.pi / 2)
        assert_allclose(rotated, [[0.0, 1.0, 0.0], [0.0, 1.0, 2.0]], atol=1e-12)

    def test_rotate_fragment(self, h2o2_cis):
        """Rotating one hydrogen about the O-O bond changes only the dihedral."""
        rotated = rotate_fragment(h2o2_cis, [3], (0, 1), np.pi / 2)
        assert_allclose(abs(hooh_dihedral(rotated)), 90.0, atol=1e-8)
        assert_allclose(np.linalg.norm(rotated.coordinates[3] - rotated.coordinates[1]),
                        0.97, atol=1e-10)
        assert_allclose(rotated.coordinates[:3], h2o2_cis.coordinates[:3])

    def test_rotate_fragment_degenerate_axis(self, h2o2_cis):
        mol = h2o2_cis.with_new_coordinates(np.zeros((4, 3)))
        with pytest.raises(GeometryError):
            rotate_fragment(mol, [3], (0, 1), 1.0)

    def test_bond_length_limit(self):
        assert 0.97 < bond_length_limit("O", "H") < 1.47
        with pytest.raises(GeometryError):
            bond_length_limit("O", "Qq")

    def test_find_connected_atoms(self, h2o2_molecule):
        """Only the hydrogen bonded to each oxygen follows it."""
        assert find_connected_atoms(h2o2_molecule, 1, exclude=0) == {1, 3}
        assert find_connected_atoms(h2o2_molecule, 0, exclude=1) == {0, 2}

    def test_find_connected_atoms_threshold(self, h2o2_molecule):
        """A generous fixed threshold also captures the distant hydrogen."""
        assert find_connected_atoms(h2o2_molecule, 1, exclude=0, bond_threshold=1.8) == {1, 2, 3}


class TestInternalRotation:
    """Tests for internal rotation geometry and kinetic metrics."""

    def test_from_bond(self, h2o2_molecule):
        rotation = InternalRotation.from_bond(h2o2_molecule, 0, 1)
        assert rotation.group == [1, 3]
        assert rotation.axis == (0, 1)
        rotation.validate(h2o2_molecule)

    def test_invalid_definitions(self, h2o2_molecule):
        with pytest.raises(GeometryError):
            InternalRotation(group=[], axis=(0, 1))
        with pytest.raises(GeometryError):
            InternalRotation(group=[3], axis=(1, 1))
        with pytest.raises(GeometryError):
            InternalRotation(group=[7], axis=(0, 1)).validate(h2o2_molecule)
        with pytest.raises(GeometryError):
            InternalRotation(group=[0, 1, 2, 3], axis=(0, 1)).validate(h2o2_molecule)

    def test_rotate(self, h2o2_cis):
        rotation = InternalRotation(group=[3], axis=(0, 1))
        trans = rotation.rotate(h2o2_cis, np.pi)
        assert_allclose(abs(hooh_dihedral(trans)), 180.0, atol=1e-8)

    def test_normal_mode_is_internal(self, h2o2_molecule):
        """The projected torsion carries no linear or angular momentum."""
        rotation = InternalRotation.from_bond(h2o2_molecule, 0, 1)
        mode = rotation.normal_mode(h2o2_molecule)
        coords, masses = h2o2_molecule.atomic_units()
        com = np.sum(masses[:, None] * coords, axis=0) / masses.sum()
        assert_allclose(np.sum(masses[:, None] * mode, axis=0), 0.0, atol=1e-8)
        angular = np.sum(masses[:, None] * np.cross(coords - com, mode), axis=0)
        assert_allclose(angular, 0.0, atol=1e-6)

    def test_projection_shape(self, h2o2_molecule):
        directions = np.random.default_rng(1).normal(size=(2, 4, 3))
        assert project_external(h2o2_molecule, directions).shape == (2, 4, 3)

    def test_rotational_constant(self, h2o2_molecule):
        """The H2O2 torsion has a rotational constant of a few tens of cm-1."""
        rotation = InternalRotation.from_bond(h2o2_molecule, 0, 1)
        constant = rotation.rotational_constant(h2o2_molecule) * HARTREE_TO_CM
        assert 5.0 < constant < 60.0

    def test_mobility_matches_projected_inertia(self, h2o2_molecule):
        """Eliminating overall rotation from the metric gives the projected moment."""
        rotation = InternalRotation.from_bond(h2o2_molecule, 0, 1)
        mobility, external = internal_mobility(h2o2_molecule, [rotation])
        assert mobility.shape == (1, 1)
        assert_allclose(1.0 / mobility[0, 0], rotation.inertia_moment(h2o2_molecule), rtol=1e-8)
        assert_allclose(external, np.sqrt(np.prod(h2o2_molecule.principal_moments())), rtol=1e-8)

    def test_mobility_of_dependent_rotations(self, h2o2_molecule):
        """Both ends of one bond turn about the same axis, leaving a singular metric."""
        rotations = [InternalRotation.from_bond(h2o2_molecule, 0, 1),
                     InternalRotation.from_bond(h2o2_molecule, 1, 0)]
        with pytest.raises(GeometryError, match="0-1, 1-0"):
            internal_mobility(h2o2_molecule, rotations)


class TestXYZ:
    """Tests for XYZ file reading."""

    def test_read(self, tmp_path):
        path = tmp_path / "water.xyz"
        path.write_text("3\nwater\nO 0.0 0.0 0.0\nH 0.96 0.0 0.0\nH -0.24 0.93 0.0\n")
        mol = read_xyz(path)
        assert mol.symbols == ["O", "H", "H"]
        assert mol.name == "water"
        assert_allclose(mol.coordinates[2], [-0.24, 0.93, 0.0])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileIOError):
            read_xyz(tmp_path / "missing.xyz")

    @pytest.mark.parametrize("text", [
        "",
        "three\nwater\n",
        "3\nwater\nO 0.0 0.0 0.0\n",
        "1\n\nXx 0.0 0.0 0.0\n",
        "1\n\nO 0.0 zero 0.0\n",
    ])
    def test_malformed(self, tmp_path, text):
        path = tmp_path / "bad.xyz"
        path.write_text(text)
        with pytest.raises(FileIOError):
            read_xyz(path)

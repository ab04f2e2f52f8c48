"""Reading geometries from XYZ files."""

from pathlib import Path
from typing import Union

from .structure import Atom, Molecule
from ..core.exceptions import FileIOError, GeometryError


def read_xyz(filepath: Union[str, Path]) -> Molecule:
    """
    Read a geometry in XYZ format.

    The first line holds the atom count, the second one is used as the
    molecule name, then one ``symbol x y z`` line per atom in Angstrom.

    Args:
        filepath: Path to the XYZ file

    Returns:
        Molecule

    Raises:
        FileIOError: If the file cannot be read or parsed
    """
    filepath = Path(filepath)
    try:
        lines = filepath.read_text().splitlines()
    except OSError as e:
        raise FileIOError(f"cannot read geometry: {e}", filepath=str(filepath))

    try:
        n_atoms = int(lines[0].strip())
    except (IndexError, ValueError):
        raise FileIOError("first line must hold the number of atoms", filepath=str(filepath))

    body = lines[2:2 + n_atoms]
    if len(body) < n_atoms:
        raise FileIOError(f"expected {n_atoms} atoms, found {len(body)} coordinate lines",
                          filepath=str(filepath))

    atoms = []
    for number, line in enumerate(body, start=3):
        parts = line.split()
        try:
            atoms.append(Atom(symbol=parts[0], coordinates=[float(v) for v in parts[1:4]]))
        except (IndexError, ValueError, GeometryError) as e:
            raise FileIOError(f"line {number}: cannot parse atom from {line.strip()!r} ({e})",
                              filepath=str(filepath))

    return Molecule(atoms=atoms, name=lines[1].strip() if len(lines) > 1 else "")

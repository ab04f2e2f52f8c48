"""Build internal motion models from configuration blocks."""

import logging
from typing import Optional

import numpy as np

from .base import Rotor
from .free import FreeRotor
from .hindered import HinderedRotor
from .umbrella import Umbrella
from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import CM_TO_HARTREE, KCAL_TO_HARTREE
from ..molecule.internal_rotation import InternalRotation
from ..molecule.structure import Molecule

logger = logging.getLogger(__name__)

ROTOR_TYPES = ("free", "hindered", "umbrella")


def _read_rotation(block: ConfigBlock, molecule: Optional[Molecule], symmetry: int):
    """Internal rotation geometry from ``bond`` or ``group`` + ``axis`` fields."""
    if "bond" in block:
        bond = block.get_list("bond", size=2).astype(int)
        if molecule is None:
            raise block.error("rotor geometry needs the species geometry", key="bond")
        rotation = InternalRotation.from_bond(molecule, bond[0], bond[1], symmetry)
    elif "group" in block:
        group = block.get_list("group").astype(int)
        axis = block.get_list("axis", size=2).astype(int)
        if molecule is None:
            raise block.error("rotor geometry needs the species geometry", key="group")
        rotation = InternalRotation(list(group), tuple(axis), symmetry)
    else:
        return None
    rotation.validate(molecule)
    return rotation


def _rotational_constant(block: ConfigBlock, rotation, molecule) -> float:
    if "rotational_constant_cm" in block:
        return block.get_float("rotational_constant_cm", scale=CM_TO_HARTREE, positive=True)
    if rotation is None:
        raise block.error(
            "either 'rotational_constant_cm' or the rotor geometry must be given",
            key="rotational_constant_cm",
        )
    return rotation.rotational_constant(molecule)


def _hamiltonian_options(block: ConfigBlock) -> dict:
    options = {
        "ham_size_min": block.get_int("ham_size_min", 101, minimum=3),
        "ham_size_max": block.get_int("ham_size_max", 501, minimum=3),
        "level_tolerance": block.get_float("level_tolerance_cm", 1e-8,
                                           scale=CM_TO_HARTREE, positive=True),
    }
    if "grid_size" in block:
        options["grid_size"] = block.get_int("grid_size", minimum=8)
    return options


def new_rotor(block: ConfigBlock, settings: ModelSettings = None,
              molecule: Optional[Molecule] = None) -> Rotor:
    """
    Create a rotor from a configuration block.

    Free and hindered rotors take ``symmetry`` and either
    ``rotational_constant_cm`` or a geometry (``bond`` or ``group`` +
    ``axis``, zero-based atom indices of ``molecule``). The hindered
    potential is one of ``barrier_kcal`` (V0/2 (1 - cos σφ)),
    ``fourier_cos_kcal`` / ``fourier_sin_kcal`` (coefficients of
    cos(nσφ) from n=0 and sin(nσφ) from n=1), or ``potential_table`` rows
    of (φ in degrees, kcal/mol) over one symmetry period with
    ``fourier_size``. The umbrella mode takes ``kinetic_constant_cm`` and
    ``potential_kcal`` coefficients of x^(2k).

    Args:
        block: Rotor configuration
        settings: Model settings
        molecule: Species geometry for geometric rotational constants

    Returns:
        Unprepared rotor; the owner calls ``set``

    Raises:
        ConfigurationError: If the block is incomplete or inconsistent
    """
    settings = settings or ModelSettings()
    kind = block.get_choice("type", ROTOR_TYPES)

    if kind == "umbrella":
        rotor = Umbrella(
            block.get_float("kinetic_constant_cm", scale=CM_TO_HARTREE, positive=True),
            block.get_list("potential_kcal", scale=KCAL_TO_HARTREE),
            settings=settings,
            **_hamiltonian_options(block)
        )
        block.finish()
        return rotor

    symmetry = block.get_int("symmetry", 1, minimum=1)
    rotation = _read_rotation(block, molecule, symmetry)
    constant = _rotational_constant(block, rotation, molecule)

    if kind == "free":
        block.finish()
        return FreeRotor(constant, symmetry, rotation=rotation, settings=settings)

    options = _hamiltonian_options(block)
    common = dict(symmetry=symmetry, rotation=rotation, settings=settings, **options)
    if "barrier_kcal" in block:
        barrier = block.get_float("barrier_kcal", scale=KCAL_TO_HARTREE, nonnegative=True)
        rotor = HinderedRotor.from_cosine_sine(constant, [0.5 * barrier, -0.5 * barrier],
                                               **common)
    elif "potential_table" in block:
        table = block.get_table("potential_table")
        rotor = HinderedRotor.from_samples(
            constant,
            np.radians(table[:, 0]),
            table[:, 1] * KCAL_TO_HARTREE,
            block.get_int("fourier_size", minimum=1),
            **common
        )
    else:
        cosines = block.get_list("fourier_cos_kcal", scale=KCAL_TO_HARTREE)
        sines = block.get_list("fourier_sin_kcal", [], scale=KCAL_TO_HARTREE)
        rotor = HinderedRotor.from_cosine_sine(constant, cosines, sines, **common)

    block.finish()
    return rotor

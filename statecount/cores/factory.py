"""Build cores from configuration blocks."""

import logging
from typing import Optional

import numpy as np

from .base import Core
from .multirotor import CoupledRotation, MultiRotor
from .phase_space import PhaseSpaceTheory
from .rigid_rotor import RigidRotor, rotational_constants_from
from .rotd import Rotd
from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import CM_TO_HARTREE, HARTREE_TO_CM, KCAL_TO_HARTREE
from ..core.modes import StatesMode
from ..molecule.internal_rotation import InternalRotation
from ..molecule.structure import Molecule
from ..numerics.fourier import FourierExpansion

logger = logging.getLogger(__name__)

CORE_TYPES = ("rigid_rotor", "phase_space_theory", "rotd", "multirotor")


def _rigid_rotor(block: ConfigBlock, molecule: Optional[Molecule], common: dict) -> RigidRotor:
    if "rotational_constants_cm" in block:
        constants = block.get_list("rotational_constants_cm", scale=CM_TO_HARTREE)
    elif molecule is not None:
        constants = rotational_constants_from(molecule)
    else:
        raise block.error("rotational constants or a geometry are required",
                          key="rotational_constants_cm")
    frequencies = block.get_list("frequencies_cm", np.zeros(0), scale=CM_TO_HARTREE)
    size = len(frequencies)
    degeneracies = block.get_list("degeneracies", None)
    anharmonic = None
    if "anharmonic_cm" in block:
        anharmonic = np.asarray(block.get("anharmonic_cm"), dtype=float) * CM_TO_HARTREE
        if anharmonic.shape != (size, size):
            raise block.error(f"'anharmonic_cm' must be a {size}x{size} matrix",
                              key="anharmonic_cm")
    rovibrational = None
    if "rovibrational_cm" in block:
        rovibrational = block.get_table("rovibrational_cm", columns=len(constants)) * CM_TO_HARTREE
    return RigidRotor(
        constants,
        symmetry=block.get_float("symmetry", 1.0, positive=True),
        frequencies=frequencies,
        degeneracies=None if degeneracies is None else degeneracies.astype(int),
        anharmonic=anharmonic,
        rovibrational=rovibrational,
        electronic_degeneracies=block.get_list("electronic_degeneracies", [1]),
        **common
    )


def _phase_space_theory(block: ConfigBlock, common: dict) -> PhaseSpaceTheory:
    power = block.get_float("power", positive=True)
    # factors are given for energies in cm-1
    unit = HARTREE_TO_CM ** power
    if "weight_factor" in block:
        return PhaseSpaceTheory.from_weight_factor(
            block.get_float("weight_factor", positive=True) * unit, power, **common)
    return PhaseSpaceTheory(block.get_float("states_factor", positive=True) * unit,
                            power, **common)


def _rotd(block: ConfigBlock, common: dict) -> Rotd:
    table = block.get_table("states_table")
    return Rotd(table[:, 0] * KCAL_TO_HARTREE, table[:, 1],
                ground=block.get_float("ground_kcal", 0.0, scale=KCAL_TO_HARTREE), **common)


def _coupled_rotation(block: ConfigBlock, molecule: Molecule) -> CoupledRotation:
    symmetry = block.get_int("symmetry", 1, minimum=1)
    if "bond" in block:
        bond = block.get_list("bond", size=2).astype(int)
        rotation = InternalRotation.from_bond(molecule, bond[0], bond[1], symmetry)
    else:
        rotation = InternalRotation(list(block.get_list("group").astype(int)),
                                    tuple(block.get_list("axis", size=2).astype(int)),
                                    symmetry)
    coupled = CoupledRotation(
        rotation,
        mass_size=block.get_int("mass_size", 4, minimum=0),
        grid_size=block.get_int("grid_size", 36, minimum=1),
        quantum_size=block.get_int("quantum_size", None, minimum=1),
    )
    block.finish()
    return coupled


def _multirotor(block: ConfigBlock, molecule: Optional[Molecule], common: dict) -> MultiRotor:
    if molecule is None:
        raise block.error("multirotor needs the species geometry", key="geometry")
    rotations = [_coupled_rotation(b, molecule) for b in block.blocks("rotors")]
    size = len(rotations)

    if "potential_grid_kcal" in block:
        values = np.asarray(block.get("potential_grid_kcal"), dtype=float) * KCAL_TO_HARTREE
        if values.ndim != size:
            raise block.error(f"potential grid must have {size} dimensions",
                              key="potential_grid_kcal")
        sizes = block.get_list("potential_sizes", size=size).astype(int)
        potential = FourierExpansion.from_grid(values, sizes)
    else:
        table = block.get_table("potential_terms", columns=size + 2)
        terms = [(row[:size].astype(int), row[size] * KCAL_TO_HARTREE,
                  row[size + 1] * KCAL_TO_HARTREE) for row in table]
        potential = FourierExpansion.from_cosine_sine(terms, size)

    return MultiRotor(
        molecule,
        rotations,
        potential,
        external_symmetry=block.get_float("external_symmetry", 1.0, positive=True),
        external_rotation=bool(block.get("external_rotation", True)),
        frequencies=block.get_list("frequencies_cm", np.zeros(0), scale=CM_TO_HARTREE),
        level_ener_max=block.get_float("level_energy_max_cm", 1000.0 * CM_TO_HARTREE,
                                       scale=CM_TO_HARTREE, positive=True),
        amom_max=block.get_int("amom_max", 30, minimum=1),
        level_tolerance=block.get_float("level_tolerance_cm", 1e-7,
                                        scale=CM_TO_HARTREE, positive=True),
        mass_tolerance=block.get_float("mass_tolerance", 0.0, nonnegative=True),
        potential_tolerance=block.get_float("potential_tolerance_cm", 0.0,
                                            scale=CM_TO_HARTREE, nonnegative=True),
        extra_ener=block.get_float("interpolation_energy_max_kcal", None,
                                   scale=KCAL_TO_HARTREE),
        **common
    )


def new_core(block: ConfigBlock, settings: ModelSettings = None,
             molecule: Optional[Molecule] = None, mode: StatesMode = StatesMode.NUMBER) -> Core:
    """
    Create a core from a configuration block.

    ``type`` selects the model:

    * ``rigid_rotor``: ``rotational_constants_cm`` (or the species
      geometry), ``symmetry``, ``frequencies_cm``, ``degeneracies``,
      ``anharmonic_cm`` matrix, ``rovibrational_cm`` rows,
      ``electronic_degeneracies``;
    * ``phase_space_theory``: ``power`` and ``states_factor`` or
      ``weight_factor`` for energies in cm⁻¹;
    * ``rotd``: ``states_table`` rows of (kcal/mol, number of states) and
      ``ground_kcal``;
    * ``multirotor``: ``rotors`` blocks (``bond`` or ``group`` + ``axis``,
      ``symmetry``, ``mass_size``, ``grid_size``,
      ``quantum_size``), ``potential_terms`` rows
      (m_1..m_K, cos kcal/mol, sin kcal/mol) or ``potential_grid_kcal`` with
      ``potential_sizes``, ``external_symmetry``, ``external_rotation``,
      ``frequencies_cm``, ``level_energy_max_cm``, ``amom_max``,
      ``level_tolerance_cm``, ``mass_tolerance``, ``potential_tolerance_cm``,
      ``interpolation_energy_max_kcal``.

    Args:
        block: Core configuration
        settings: Model settings
        molecule: Species geometry
        mode: States mode of the owning species

    Returns:
        Core instance

    Raises:
        ConfigurationError: If the block is incomplete or inconsistent
    """
    settings = settings or ModelSettings()
    kind = block.get_choice("type", CORE_TYPES)
    common = {"mode": mode, "settings": settings}

    if kind == "rigid_rotor":
        core = _rigid_rotor(block, molecule, common)
    elif kind == "phase_space_theory":
        core = _phase_space_theory(block, common)
    elif kind == "rotd":
        core = _rotd(block, common)
    else:
        core = _multirotor(block, molecule, common)

    block.finish()
    logger.info(f"Built {core!r}")
    return core

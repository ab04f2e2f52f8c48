"""Build species from configuration blocks."""

import logging
from typing import Optional

import numpy as np

from .arrhenius import Arrhenius
from .atomic import AtomicSpecies
from .base import Species
from .graph_expansion import GraphExpansion
from .read import TABLE_KINDS, ReadSpecies
from .rrho import RRHO
from .union import UnionSpecies
from .var_barrier import BarrierMethod, VarBarrier
from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import (
    AMU_TO_AU,
    CM_TO_HARTREE,
    KCAL_TO_HARTREE,
    KELVIN_TO_HARTREE,
    SEC_TO_AU_TIME,
)
from ..core.exceptions import GeometryError
from ..core.modes import StatesMode
from ..cores.factory import new_core
from ..molecule.io import read_xyz
from ..molecule.structure import Molecule
from ..rotor.factory import new_rotor
from ..tunneling.factory import new_tunnel

logger = logging.getLogger(__name__)

SPECIES_TYPES = ("rrho", "union", "var_barrier", "atomic", "arrhenius", "read")
MODES = tuple(m.value for m in StatesMode)


def _geometry(block: ConfigBlock, settings: ModelSettings) -> Optional[Molecule]:
    if "geometry" in block:
        try:
            molecule = Molecule.from_config(block.get("geometry"))
        except GeometryError as e:
            raise block.error(str(e), key="geometry") from e
    elif "geometry_file" in block:
        molecule = read_xyz(block.get("geometry_file"))
    else:
        return None
    molecule.check_distances(settings.atom_dist_min)
    return molecule


def _common(block: ConfigBlock, settings: ModelSettings, name: str,
            mode: Optional[StatesMode]) -> dict:
    mass = block.get_float("mass_amu", None, positive=True)
    if mode is None:
        mode = StatesMode(block.get_choice("mode", MODES, StatesMode.NUMBER.value))
    return {
        "name": name,
        "mode": mode,
        "geometry": _geometry(block, settings),
        "mass": None if mass is None else mass * AMU_TO_AU,
        "settings": settings,
    }


def _electronic(block: ConfigBlock) -> dict:
    levels = block.get_list("electronic_levels_cm", np.zeros(1), scale=CM_TO_HARTREE)
    degeneracies = block.get_list("electronic_degeneracies", None)
    return {"electronic_levels": levels, "electronic_degeneracies": degeneracies}


def _graph(block: ConfigBlock, frequencies: np.ndarray) -> GraphExpansion:
    cubic = np.asarray(block.get("cubic_cm", []), dtype=float).reshape(-1, 4)
    quartic = np.asarray(block.get("quartic_cm", []), dtype=float).reshape(-1, 5)
    cubic[:, 3] *= CM_TO_HARTREE
    quartic[:, 4] *= CM_TO_HARTREE
    block.finish()
    return GraphExpansion.from_terms(frequencies, cubic, quartic)


def _rrho(block: ConfigBlock, settings: ModelSettings, common: dict) -> RRHO:
    molecule = common["geometry"]
    core_block = block.block("core", required=False)
    core = None
    if core_block is not None:
        core = new_core(core_block, settings, molecule, StatesMode.NUMBER)
    rotors = [new_rotor(b, settings, molecule) for b in block.blocks("rotors", required=False)]
    frequencies = block.get_list("frequencies_cm", np.zeros(0), scale=CM_TO_HARTREE)

    tunnel_block = block.block("tunnel", required=False)
    tunnel = None if tunnel_block is None else new_tunnel(tunnel_block, settings)

    rates = block.get_list("emission_rates", None)
    graph_block = block.block("anharmonic", required=False)

    return RRHO(
        core=core,
        rotors=rotors,
        frequencies=frequencies,
        symmetry=block.get_float("symmetry", 1.0, positive=True),
        electronic_energy=block.get_float("electronic_energy_kcal", None, scale=KCAL_TO_HARTREE),
        ground=block.get_float("ground_kcal", 0.0, scale=KCAL_TO_HARTREE),
        tunnel=tunnel,
        emission_rates=None if rates is None else rates / SEC_TO_AU_TIME,
        graph=None if graph_block is None else _graph(graph_block, frequencies),
        **_electronic(block),
        **common
    )


def _var_barrier(block: ConfigBlock, settings: ModelSettings, common: dict) -> VarBarrier:
    name = common["name"]
    inner = [
        new_species(b, settings, name=f"{name}.inner[{i}]", mode=StatesMode.NUMBER)
        for i, b in enumerate(block.blocks("inner"))
    ]
    outer_block = block.block("outer", required=False)
    outer = None
    if outer_block is not None:
        outer = new_species(outer_block, settings, name=f"{name}.outer", mode=StatesMode.NUMBER)
    tunnel_block = block.block("tunnel", required=False)
    return VarBarrier(
        inner=inner,
        outer=outer,
        tunnel=None if tunnel_block is None else new_tunnel(tunnel_block, settings),
        method=BarrierMethod(block.get_choice(
            "method", [m.value for m in BarrierMethod], BarrierMethod.STATISTICAL.value)),
        **common
    )


def _read(block: ConfigBlock, common: dict) -> ReadSpecies:
    kind = block.get_choice("kind", TABLE_KINDS, "number")
    ground = block.get_float("ground_kcal", 0.0, scale=KCAL_TO_HARTREE)
    if "states_file" in block:
        return ReadSpecies.from_file(
            filepath=block.get("states_file"), energy_scale=KCAL_TO_HARTREE,
            kind=kind, ground=ground, **common)
    table = block.get_table("states_table")
    return ReadSpecies(energies=table[:, 0] * KCAL_TO_HARTREE, values=table[:, 1],
                       kind=kind, ground=ground, **common)


def new_species(block: ConfigBlock, settings: ModelSettings = None, name: str = None,
                mode: Optional[StatesMode] = None) -> Species:
    """
    Create a species from a configuration block.

    Common fields: ``type``, ``name`` (unless given by the caller),
    ``mode`` (number, density, nostates), ``geometry`` rows of
    [symbol, x, y, z] in Angstrom or ``geometry_file``, ``mass_amu``.

    * ``rrho``: ``core`` block, ``rotors`` blocks, ``frequencies_cm``,
      ``electronic_levels_cm``, ``electronic_degeneracies``, ``symmetry``,
      ``electronic_energy_kcal`` or ``ground_kcal``, ``tunnel`` block,
      ``emission_rates`` (1/s, one per frequency), ``anharmonic`` block
      with ``cubic_cm`` rows (i, j, k, f) and ``quartic_cm`` rows
      (i, j, k, l, f);
    * ``union``: ``members`` blocks;
    * ``var_barrier``: ``inner`` blocks, ``outer`` block, ``tunnel`` block,
      ``method`` (statistical, dynamical);
    * ``atomic``: ``electronic_levels_cm``, ``electronic_degeneracies``,
      ``ground_kcal``;
    * ``arrhenius``: ``reactant``, ``prefactor`` (1/s), ``power``,
      ``activation_energy_kcal``, ``reference_temperature_k``;
    * ``read``: ``states_table`` rows (kcal/mol, value) or ``states_file``,
      ``kind`` (number, density), ``ground_kcal``.

    Args:
        block: Species configuration
        settings: Model settings
        name: Species name overriding the ``name`` field
        mode: States mode overriding the ``mode`` field

    Returns:
        Species instance

    Raises:
        ConfigurationError: If the block is incomplete or inconsistent
    """
    settings = settings or ModelSettings()
    kind = block.get_choice("type", SPECIES_TYPES)
    if name is None:
        name = str(block.require("name"))
    else:
        block.get("name")
    common = _common(block, settings, name, mode)

    if kind == "rrho":
        species = _rrho(block, settings, common)
    elif kind == "union":
        members = [
            new_species(b, settings, name=f"{name}[{i}]", mode=common["mode"])
            for i, b in enumerate(block.blocks("members"))
        ]
        species = UnionSpecies(members=members, **common)
    elif kind == "var_barrier":
        species = _var_barrier(block, settings, common)
    elif kind == "atomic":
        species = AtomicSpecies(ground=block.get_float("ground_kcal", 0.0, scale=KCAL_TO_HARTREE),
                                **_electronic(block), **common)
    elif kind == "arrhenius":
        species = Arrhenius(
            reactant=str(block.require("reactant")),
            prefactor=block.get_float("prefactor", positive=True) / SEC_TO_AU_TIME,
            power=block.get_float("power", 0.0, nonnegative=True),
            activation_energy=block.get_float("activation_energy_kcal", scale=KCAL_TO_HARTREE),
            reference_temperature=block.get_float(
                "reference_temperature_k", 298.15 * KELVIN_TO_HARTREE,
                scale=KELVIN_TO_HARTREE, positive=True),
            **common
        )
    else:
        species = _read(block, common)

    block.finish()
    logger.info(f"Built {species!r}")
    return species

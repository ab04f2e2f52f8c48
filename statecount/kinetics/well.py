"""Wells and bimolecular channels exposed to the master equation."""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .collision import Collision, new_collision
from .escape import Escape, new_escape
from .kernel import Kernel, new_kernel
from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import KCAL_TO_HARTREE
from ..core.exceptions import ConfigurationError, LogicError
from ..species.base import Species
from ..species.factory import new_species

logger = logging.getLogger(__name__)


class Well:
    """
    A species together with its collisional relaxation and escape channel.

    Each kernel is paired with a collision frequency model of the same
    bath component.
    """

    def __init__(self, species: Species, kernels: Sequence[Kernel] = (),
                 collisions: Sequence[Collision] = (), escape: Optional[Escape] = None):
        if len(kernels) != len(collisions):
            raise ConfigurationError(
                f"{species.name}: one collision model per kernel is required", key="kernels")
        self.species = species
        self.kernels: List[Kernel] = list(kernels)
        self.collisions: List[Collision] = list(collisions)
        self.escape = escape

    @property
    def name(self) -> str:
        return self.species.name

    def ground(self) -> float:
        return self.species.ground()

    def states(self, energy: float) -> float:
        return self.species.states(energy)

    def weight(self, temperature: float) -> float:
        return self.species.weight(temperature)

    def shift_ground(self, energy_shift: float) -> None:
        self.species.shift_ground(energy_shift)
        if self.escape is not None:
            self.escape.shift_ground(energy_shift)

    def escape_rate(self, energy: float) -> float:
        return 0.0 if self.escape is None else self.escape.rate(energy)

    def collision_frequency(self, temperature: float) -> float:
        """Total collision frequency per bath number density (atomic units)."""
        return float(sum(c(temperature) for c in self.collisions))

    def transition_probability(self, energy: float, temperature: float, index: int) -> float:
        """
        Radiative down-transition rate through oscillator ``index``.

        Spontaneous emission is enhanced by the thermal photon occupation
        ``1/(exp(ω/T) - 1)`` of the blackbody field.
        """
        frequency = self.species.oscillator_frequency(index)
        return self.species.infrared_intensity(energy, index) * (
            1.0 + 1.0 / np.expm1(frequency / temperature))

    def __repr__(self) -> str:
        return f"Well({self.species!r}, kernels={len(self.kernels)})"


class Bimolecular:
    """
    Pair of fragments with relative translation.

    A dummy channel has no states and only fixes an energy; its weight is
    undefined.
    """

    def __init__(self, name: str, fragments: Sequence[Species] = (),
                 ground_energy: float = 0.0, dummy: bool = False):
        """
        Args:
            name: Channel name
            fragments: Two fragment species
            ground_energy: Energy of the separated fragment minima (Hartree)
            dummy: Channel without states
        """
        self.name = name
        self.dummy = dummy
        self.fragments: List[Species] = list(fragments)
        if not dummy and len(self.fragments) != 2:
            raise ConfigurationError(f"{name}: two fragments are required", key="fragments")
        self._ground = float(ground_energy) + sum(f.ground() for f in self.fragments)

    def ground(self) -> float:
        return self._ground

    def shift_ground(self, energy_shift: float) -> None:
        self._ground += energy_shift

    def reduced_mass(self) -> float:
        m1, m2 = (f.mass() for f in self.fragments)
        return m1 * m2 / (m1 + m2)

    def fragment_weight(self, index: int, temperature: float) -> float:
        if self.dummy:
            raise LogicError(f"{self.name}: dummy channel has no fragments")
        return self.fragments[index].weight(temperature)

    def weight(self, temperature: float) -> float:
        """Translational weight per unit volume times the fragment weights."""
        if self.dummy:
            raise LogicError(f"{self.name}: dummy channel has no weight")
        mu = self.reduced_mass()
        value = (mu * temperature / (2.0 * np.pi)) ** 1.5
        for fragment in self.fragments:
            value *= fragment.weight(temperature)
        return float(value)

    def __repr__(self) -> str:
        return f"Bimolecular(name={self.name!r}, dummy={self.dummy})"


def new_well(block: ConfigBlock, settings: ModelSettings = None) -> Well:
    """
    Create a well from a configuration block.

    Fields: ``species`` block, ``kernels`` and ``collisions`` blocks paired
    by position, optional ``escape`` block.
    """
    settings = settings or ModelSettings()
    species = new_species(block.block("species"), settings, name=block.get("name"))
    kernels = [new_kernel(b, settings) for b in block.blocks("kernels", required=False)]
    collisions = [new_collision(b) for b in block.blocks("collisions", required=False)]
    escape_block = block.block("escape", required=False)
    escape = None if escape_block is None else new_escape(escape_block)
    block.finish()
    return Well(species, kernels, collisions, escape)


def new_bimolecular(block: ConfigBlock, settings: ModelSettings = None) -> Bimolecular:
    """
    Create a bimolecular channel from a configuration block.

    Fields: ``name``, ``dummy`` flag, ``fragments`` (two species blocks,
    each with ``mass_amu`` or a geometry) and ``ground_kcal``.
    """
    settings = settings or ModelSettings()
    name = str(block.require("name"))
    dummy = bool(block.get("dummy", False))
    fragments = [] if dummy else [
        new_species(b, settings, name=f"{name}.{b.data.get('name', i)}")
        for i, b in enumerate(block.blocks("fragments"))
    ]
    channel = Bimolecular(
        name, fragments,
        ground_energy=block.get_float("ground_kcal", 0.0, scale=KCAL_TO_HARTREE),
        dummy=dummy,
    )
    block.finish()
    logger.info(f"Built {channel!r}")
    return channel

"""Reaction network assembly from a JSON model description."""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import HARTREE_TO_KCAL, KELVIN_TO_HARTREE
from ..core.exceptions import ConfigurationError, FileIOError, ModelBuildError, StateCountError
from ..kinetics.well import Bimolecular, Well, new_bimolecular, new_well
from ..species.base import Species
from ..species.factory import new_species

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Barrier:
    """Transition state connecting two wells or a well and a bimolecular channel."""
    name: str
    species: Species
    reactant: str
    product: str

    def ground(self) -> float:
        return self.species.ground()


@dataclass
class NetworkSummary:
    """
    Serializable digest of a built network.

    Energies are in kcal/mol relative to the lowest well; weights are
    tabulated at ``temperatures`` (Kelvin).
    """
    energies: Dict[str, float] = field(default_factory=dict)
    connections: Dict[str, List[str]] = field(default_factory=dict)
    temperatures: List[float] = field(default_factory=list)
    weights: Dict[str, List[float]] = field(default_factory=dict)
    tunnel_weights: Dict[str, List[float]] = field(default_factory=dict)
    settings: Optional[Dict] = None

    def save(self, filepath: Path) -> None:
        """Save summary to JSON file."""
        filepath = Path(filepath)
        with open(filepath, 'w') as f:
            json.dump(asdict(self), f, indent=2, default=str)
        logger.info(f"Saved network summary to {filepath}")

    @classmethod
    def load(cls, filepath: Path) -> "NetworkSummary":
        """Load summary from JSON file."""
        filepath = Path(filepath)
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls(**data)


def _build(kind: str, name: str, builder: Callable[[], T]) -> T:
    try:
        return builder()
    except StateCountError as e:
        raise ModelBuildError(f"{kind} {name!r}: {e}", component=name) from e


class ReactionNetwork:
    """
    Wells, bimolecular channels and barriers of one kinetic model.

    Building resolves cross references between species (e.g. Arrhenius
    barriers and their reactants) and moves every energy so that the
    lowest well ground sits at zero. All shifts are applied before the
    network is handed out; afterwards queries are read-only.
    """

    def __init__(
        self,
        wells: Dict[str, Well],
        barriers: Dict[str, Barrier],
        bimolecular: Optional[Dict[str, Bimolecular]] = None,
        settings: Optional[ModelSettings] = None,
    ):
        self.settings = settings or ModelSettings()
        self.wells = dict(wells)
        self.barriers = dict(barriers)
        self.bimolecular = dict(bimolecular or {})
        self.energy_reference = 0.0

        if not self.wells:
            raise ConfigurationError("reaction network needs at least one well", key="wells")
        names = list(self.wells) + list(self.bimolecular) + list(self.barriers)
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"duplicate names: {', '.join(duplicates)}")

        self._check_connections()
        self._init_species()
        self._set_reference()

    def _check_connections(self) -> None:
        endpoints = set(self.wells) | set(self.bimolecular)
        for barrier in self.barriers.values():
            for end in (barrier.reactant, barrier.product):
                if end not in endpoints:
                    raise ConfigurationError(
                        f"barrier {barrier.name!r} refers to unknown well or channel {end!r}",
                        key="barriers")
            if barrier.reactant not in self.wells:
                raise ConfigurationError(
                    f"barrier {barrier.name!r} must start from a well", key="barriers")

    def registry(self) -> Dict[str, Species]:
        """Species by name, for cross references."""
        table = {name: well.species for name, well in self.wells.items()}
        table.update({name: b.species for name, b in self.barriers.items()})
        return table

    def _init_species(self) -> None:
        registry = self.registry()
        for name, species in registry.items():
            _build("species", name, lambda: species.init(registry))

    def _set_reference(self) -> None:
        reference = min(well.ground() for well in self.wells.values())
        for well in self.wells.values():
            well.shift_ground(-reference)
        for barrier in self.barriers.values():
            barrier.species.shift_ground(-reference)
        for channel in self.bimolecular.values():
            channel.shift_ground(-reference)
        self.energy_reference = reference
        logger.info(
            f"Energy reference {reference * HARTREE_TO_KCAL:.3f} kcal/mol: "
            f"{len(self.wells)} wells, {len(self.bimolecular)} channels, "
            f"{len(self.barriers)} barriers"
        )

        for barrier in self.barriers.values():
            lowest = min(self._ground_of(barrier.reactant), self._ground_of(barrier.product))
            if barrier.species.real_ground() < lowest:
                logger.warning(
                    f"Barrier {barrier.name} lies below both of its ends "
                    f"by {(lowest - barrier.species.real_ground()) * HARTREE_TO_KCAL:.3f} kcal/mol"
                )

    def _ground_of(self, name: str) -> float:
        if name in self.wells:
            return self.wells[name].ground()
        return self.bimolecular[name].ground()

    def energies(self) -> Dict[str, float]:
        """Ground energies of every component (Hartree)."""
        result = {name: well.ground() for name, well in self.wells.items()}
        result.update({name: c.ground() for name, c in self.bimolecular.items()})
        result.update({name: b.ground() for name, b in self.barriers.items()})
        return result

    def summary(self, temperatures: Sequence[float] = (300.0,)) -> NetworkSummary:
        """
        Tabulate ground energies and statistical weights.

        Args:
            temperatures: Temperatures in Kelvin
        """
        summary = NetworkSummary(
            energies={k: v * HARTREE_TO_KCAL for k, v in self.energies().items()},
            connections={n: [b.reactant, b.product] for n, b in self.barriers.items()},
            temperatures=[float(t) for t in temperatures],
            settings=asdict(self.settings),
        )
        kelvin = [t * KELVIN_TO_HARTREE for t in temperatures]
        for name, well in self.wells.items():
            summary.weights[name] = [well.weight(t) for t in kelvin]
        for name, channel in self.bimolecular.items():
            if not channel.dummy:
                summary.weights[name] = [channel.weight(t) for t in kelvin]
        for name, barrier in self.barriers.items():
            summary.weights[name] = [barrier.species.weight(t) for t in kelvin]
            summary.tunnel_weights[name] = [barrier.species.tunnel_weight(t) for t in kelvin]
        return summary

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReactionNetwork":
        """
        Build a network from a model description.

        Top-level fields: ``settings`` (see ModelSettings.from_dict),
        ``wells`` (blocks with ``name``, ``species``, ``kernels``,
        ``collisions``, ``escape``), ``bimolecular`` (see
        new_bimolecular) and ``barriers`` (blocks with ``name``, ``from``,
        ``to`` and ``species``).

        Raises:
            ConfigurationError: For a malformed description
            ModelBuildError: If a component fails to build
        """
        root = ConfigBlock(data, "model")
        settings = ModelSettings.from_dict(root.get("settings"), "model.settings")

        wells = {}
        for block in root.blocks("wells"):
            name = str(block.require("name"))
            wells[name] = _build("well", name, lambda: new_well(block, settings))

        bimolecular = {}
        for block in root.blocks("bimolecular", required=False):
            name = str(block.require("name"))
            bimolecular[name] = _build("bimolecular", name,
                                       lambda: new_bimolecular(block, settings))

        barriers = {}
        for block in root.blocks("barriers", required=False):
            name = str(block.require("name"))
            species = _build("barrier", name, lambda: new_species(
                block.block("species"), settings, name=name))
            barriers[name] = Barrier(name, species, str(block.require("from")),
                                     str(block.require("to")))
            block.finish()

        root.finish()
        return cls(wells, barriers, bimolecular, settings)

    @classmethod
    def from_json(cls, filepath: Union[str, Path]) -> "ReactionNetwork":
        """
        Build a network from a JSON file.

        Raises:
            FileIOError: If the file cannot be read or parsed
        """
        filepath = Path(filepath)
        try:
            with open(filepath, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FileIOError(f"Cannot read model description: {e}", filepath=str(filepath))
        logger.info(f"Loading reaction network from {filepath}")
        return cls.from_dict(data)

"""Dataclass-based model settings and dictionary configuration blocks."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from .constants import (
    ANGSTROM_TO_BOHR,
    CM_TO_HARTREE,
    KCAL_TO_HARTREE,
)
from .exceptions import ConfigurationError

_MISSING = object()


@dataclass(frozen=True)
class KernelFlags:
    """
    Energy transfer kernel switches consumed by the master equation.

    Attributes:
        up: Kernel is given for up transitions (down derived by detailed balance)
        density: Transition probability is weighted by the final state density
        no_truncation: Negative probabilities are not truncated
    """
    up: bool = False
    density: bool = False
    no_truncation: bool = False


@dataclass(frozen=True)
class ModelSettings:
    """
    Immutable numerical settings threaded through every model factory.

    Attributes:
        energy_limit: Highest energy covered by interpolation grids (Hartree)
        energy_step: Energy grid discretization (Hartree)
        action_max: Tunneling action above which the transmission is zero
        kernel_flags: Energy transfer kernel switches
        atom_dist_min: Smallest allowed interatomic distance (Bohr)
        therm_pow_max: Largest E/T kept in thermal sums over discrete levels
        workers: Threads used for construction-time grid sampling
    """
    energy_limit: float = 60.0 * KCAL_TO_HARTREE
    energy_step: float = 10.0 * CM_TO_HARTREE
    action_max: float = 100.0
    kernel_flags: KernelFlags = field(default_factory=KernelFlags)
    atom_dist_min: float = 0.5 * ANGSTROM_TO_BOHR
    therm_pow_max: float = 50.0
    workers: int = 1

    def __post_init__(self):
        if self.energy_limit <= 0:
            raise ConfigurationError("energy_limit must be positive", key="energy_limit")
        if self.energy_step <= 0 or self.energy_step >= self.energy_limit:
            raise ConfigurationError(
                "energy_step must be positive and smaller than energy_limit",
                key="energy_step",
            )
        if self.action_max <= 0:
            raise ConfigurationError("action_max must be positive", key="action_max")
        if self.therm_pow_max <= 1:
            raise ConfigurationError("therm_pow_max must exceed 1", key="therm_pow_max")
        if self.workers < 1:
            raise ConfigurationError("workers must be at least 1", key="workers")

    @property
    def grid_size(self) -> int:
        """Number of energy grid points up to the energy limit."""
        return int(self.energy_limit / self.energy_step) + 1

    def with_energy_limit(self, energy_limit: float) -> "ModelSettings":
        """Return a copy with a different energy limit (Hartree)."""
        return replace(self, energy_limit=energy_limit)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None,
                  path: str = "settings") -> "ModelSettings":
        """
        Build settings from a configuration dictionary in conventional units.

        Recognized keys: ``energy_limit_kcal``, ``energy_step_cm``,
        ``action_max``, ``atom_dist_min_angstrom``, ``therm_pow_max``,
        ``workers`` and a ``kernel_flags`` list containing any of
        ``"up"``, ``"density"`` and ``"notrunc"``.

        Args:
            data: Settings dictionary, or None for defaults
            path: Location used in error messages

        Returns:
            ModelSettings instance
        """
        block = ConfigBlock(data or {}, path)
        defaults = cls()
        flags = set(block.get("kernel_flags", []))
        unknown = flags - {"up", "density", "notrunc"}
        if unknown:
            raise ConfigurationError(
                f"unknown kernel flags: {sorted(unknown)}", key="kernel_flags", path=path
            )
        settings = cls(
            energy_limit=block.get_float(
                "energy_limit_kcal", defaults.energy_limit, scale=KCAL_TO_HARTREE),
            energy_step=block.get_float(
                "energy_step_cm", defaults.energy_step, scale=CM_TO_HARTREE),
            action_max=block.get_float("action_max", defaults.action_max),
            kernel_flags=KernelFlags(
                up="up" in flags,
                density="density" in flags,
                no_truncation="notrunc" in flags,
            ),
            atom_dist_min=block.get_float(
                "atom_dist_min_angstrom", defaults.atom_dist_min, scale=ANGSTROM_TO_BOHR),
            therm_pow_max=block.get_float("therm_pow_max", defaults.therm_pow_max),
            workers=block.get_int("workers", defaults.workers),
        )
        block.finish()
        return settings


class ConfigBlock:
    """
    One configuration dictionary with typed, path-aware reads.

    Every read marks its key as consumed; :meth:`finish` rejects keys
    that no reader asked for, so typos surface as configuration errors.
    """

    def __init__(self, data: Dict[str, Any], path: str = ""):
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"expected a mapping, got {type(data).__name__}", path=path
            )
        self.data = data
        self.path = path
        self._used = set()

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def child_path(self, key: str) -> str:
        return f"{self.path}.{key}" if self.path else key

    def error(self, message: str, key: str = None) -> ConfigurationError:
        """Build a ConfigurationError positioned at this block."""
        return ConfigurationError(message, key=key, path=self.path)

    def require(self, key: str) -> Any:
        """Return a required raw value."""
        self._used.add(key)
        if key not in self.data:
            raise self.error(f"missing required field '{key}'", key=key)
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Return an optional raw value."""
        self._used.add(key)
        return self.data.get(key, default)

    def get_float(self, key: str, default: Any = _MISSING, scale: float = 1.0,
                  positive: bool = False, nonnegative: bool = False) -> float:
        """
        Read a scalar and convert it to internal units.

        Args:
            key: Field name
            default: Value (already in internal units) used when the field
                is absent; required when omitted
            scale: Unit conversion factor applied to the configured value
            positive: Reject values <= 0
            nonnegative: Reject values < 0

        Returns:
            Value in internal units
        """
        if default is not _MISSING and key not in self.data:
            self._used.add(key)
            return default
        raw = self.require(key)
        try:
            value = float(raw) * scale
        except (TypeError, ValueError):
            raise self.error(f"field '{key}' must be a number, got {raw!r}", key=key)
        if positive and value <= 0:
            raise self.error(f"field '{key}' must be positive", key=key)
        if nonnegative and value < 0:
            raise self.error(f"field '{key}' must not be negative", key=key)
        return value

    def get_int(self, key: str, default: Any = _MISSING, minimum: int = None) -> int:
        """Read an integer field."""
        if default is not _MISSING and key not in self.data:
            self._used.add(key)
            return default
        raw = self.require(key)
        if isinstance(raw, bool) or not isinstance(raw, (int, np.integer)):
            if not (isinstance(raw, float) and raw.is_integer()):
                raise self.error(f"field '{key}' must be an integer, got {raw!r}", key=key)
        value = int(raw)
        if minimum is not None and value < minimum:
            raise self.error(f"field '{key}' must be at least {minimum}", key=key)
        return value

    def get_list(self, key: str, default: Any = _MISSING, scale: float = 1.0,
                 size: int = None) -> np.ndarray:
        """Read a list of numbers as a float array in internal units."""
        if default is not _MISSING and key not in self.data:
            self._used.add(key)
            return default
        raw = self.require(key)
        try:
            values = np.asarray(raw, dtype=float).ravel() * scale
        except (TypeError, ValueError):
            raise self.error(f"field '{key}' must be a list of numbers", key=key)
        if size is not None and len(values) != size:
            raise self.error(
                f"field '{key}' must have {size} entries, got {len(values)}", key=key
            )
        return values

    def get_table(self, key: str, columns: int = 2) -> np.ndarray:
        """Read a list of rows as a 2D float array."""
        raw = self.require(key)
        try:
            table = np.asarray(raw, dtype=float)
        except (TypeError, ValueError):
            raise self.error(f"field '{key}' must be a numeric table", key=key)
        if table.ndim != 2 or table.shape[1] != columns:
            raise self.error(f"field '{key}' must have {columns} columns", key=key)
        return table

    def get_choice(self, key: str, choices: Iterable[str], default: Any = _MISSING) -> str:
        """Read a string field restricted to a set of values."""
        choices = list(choices)
        if default is not _MISSING and key not in self.data:
            self._used.add(key)
            return default
        raw = str(self.require(key)).lower()
        if raw not in choices:
            raise self.error(f"field '{key}' must be one of {choices}, got {raw!r}", key=key)
        return raw

    def block(self, key: str, required: bool = True) -> Optional["ConfigBlock"]:
        """Return a nested block."""
        if not required and key not in self.data:
            self._used.add(key)
            return None
        return ConfigBlock(self.require(key), self.child_path(key))

    def blocks(self, key: str, required: bool = True) -> List["ConfigBlock"]:
        """Return a list of nested blocks."""
        if not required and key not in self.data:
            self._used.add(key)
            return []
        raw = self.require(key)
        if not isinstance(raw, list):
            raise self.error(f"field '{key}' must be a list", key=key)
        return [
            ConfigBlock(item, f"{self.child_path(key)}[{i}]")
            for i, item in enumerate(raw)
        ]

    def finish(self) -> None:
        """Reject fields no reader consumed."""
        unknown = sorted(set(self.data) - self._used)
        if unknown:
            raise self.error(f"unknown field(s): {', '.join(unknown)}", key=unknown[0])

"""Core infrastructure: settings, constants, modes, and exceptions."""

from .config import ConfigBlock, KernelFlags, ModelSettings
from .constants import (
    AMU_TO_AU,
    ANGSTROM_TO_BOHR,
    CM_TO_HARTREE,
    HARTREE_TO_CM,
    HARTREE_TO_KCAL,
    KCAL_TO_HARTREE,
    KELVIN_TO_HARTREE,
)
from .exceptions import (
    StateCountError,
    ConfigurationError,
    LogicError,
    InitializationError,
    ConvergenceError,
    IntegrationError,
    GeometryError,
    FileIOError,
    ModelBuildError,
)
from .modes import StatesMode, as_mode

__all__ = [
    "ConfigBlock",
    "KernelFlags",
    "ModelSettings",
    "AMU_TO_AU",
    "ANGSTROM_TO_BOHR",
    "CM_TO_HARTREE",
    "HARTREE_TO_CM",
    "HARTREE_TO_KCAL",
    "KCAL_TO_HARTREE",
    "KELVIN_TO_HARTREE",
    "StateCountError",
    "ConfigurationError",
    "LogicError",
    "InitializationError",
    "ConvergenceError",
    "IntegrationError",
    "GeometryError",
    "FileIOError",
    "ModelBuildError",
    "StatesMode",
    "as_mode",
]

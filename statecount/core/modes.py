"""Energy-counting modes shared by cores and species."""

from enum import Enum
from typing import Union

from .exceptions import LogicError


class StatesMode(Enum):
    """What ``states(E)`` returns."""
    DENSITY = "density"
    NUMBER = "number"
    NOSTATES = "nostates"


def as_mode(value: Union[StatesMode, str]) -> StatesMode:
    """
    Coerce a mode tag.

    Args:
        value: StatesMode member or its string value

    Returns:
        StatesMode member

    Raises:
        LogicError: If the value names no mode
    """
    if isinstance(value, StatesMode):
        return value
    try:
        return StatesMode(str(value).lower())
    except ValueError:
        raise LogicError(f"Unknown states mode: {value!r}")

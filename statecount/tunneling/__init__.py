"""Tunneling models: harmonic, Eckart, quartic, and tabulated action."""

from .base import Tunnel
from .harmonic import HarmonicTunnel
from .eckart import EckartTunnel
from .quartic import QuarticTunnel, solve_well_ratio
from .read import ReadTunnel
from .factory import new_tunnel

__all__ = [
    "Tunnel",
    "HarmonicTunnel",
    "EckartTunnel",
    "QuarticTunnel",
    "solve_well_ratio",
    "ReadTunnel",
    "new_tunnel",
]

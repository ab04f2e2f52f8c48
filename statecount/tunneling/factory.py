"""Build tunnels from configuration blocks."""

import logging

from .base import Tunnel
from .eckart import EckartTunnel
from .harmonic import HarmonicTunnel
from .quartic import QuarticTunnel
from .read import ReadTunnel
from ..core.config import ConfigBlock, ModelSettings
from ..core.constants import CM_TO_HARTREE, KCAL_TO_HARTREE

logger = logging.getLogger(__name__)

TUNNEL_TYPES = ("harmonic", "eckart", "quartic", "read")


def new_tunnel(block: ConfigBlock, settings: ModelSettings = None) -> Tunnel:
    """
    Create a tunnel from a configuration block.

    Fields: ``type`` (harmonic, eckart, quartic, read), ``cutoff_kcal``,
    ``frequency_cm`` (imaginary frequency magnitude), ``well_depths_kcal``
    for eckart and quartic, ``grid_size`` and ``ratio_tolerance`` for
    quartic, ``action_table`` rows of (energy from top in kcal/mol, action)
    for read.

    Args:
        block: Tunnel configuration
        settings: Model settings providing the action ceiling

    Returns:
        Tunnel instance

    Raises:
        ConfigurationError: If the block is incomplete or inconsistent
    """
    settings = settings or ModelSettings()
    kind = block.get_choice("type", TUNNEL_TYPES)
    cutoff = block.get_float("cutoff_kcal", scale=KCAL_TO_HARTREE, nonnegative=True)
    common = {"action_max": settings.action_max}

    if kind == "read":
        table = block.get_table("action_table")
        frequency = block.get_float("frequency_cm", None, scale=CM_TO_HARTREE)
        tunnel = ReadTunnel(table[:, 0] * KCAL_TO_HARTREE, table[:, 1], cutoff,
                            frequency=frequency, **common)
    else:
        frequency = block.get_float("frequency_cm", scale=CM_TO_HARTREE, positive=True)
        if kind == "harmonic":
            tunnel = HarmonicTunnel(frequency, cutoff, **common)
        elif kind == "eckart":
            depths = block.get_list("well_depths_kcal", scale=KCAL_TO_HARTREE, size=2)
            tunnel = EckartTunnel(frequency, cutoff, depths, **common)
        else:
            depths = block.get_list("well_depths_kcal", scale=KCAL_TO_HARTREE, size=2)
            tunnel = QuarticTunnel(
                frequency, cutoff, depths,
                grid_size=block.get_int("grid_size", 200, minimum=4),
                ratio_tolerance=block.get_float("ratio_tolerance", 1e-10, positive=True),
                **common
            )

    block.finish()
    logger.info(f"Built {tunnel!r}")
    return tunnel

"""Variational barrier built from inner and outer transition state configurations."""

from enum import Enum
import logging
from typing import List, Optional, Sequence

import numpy as np

from .base import SplineSpecies, Species
from ..core.exceptions import ConfigurationError
from ..core.modes import StatesMode
from ..tunneling.base import Tunnel

logger = logging.getLogger(__name__)


class BarrierMethod(Enum):
    """How the inner and outer transition states are combined."""
    STATISTICAL = "statistical"
    DYNAMICAL = "dynamical"


class VarBarrier(SplineSpecies):
    """
    Variationally optimized barrier with an optional outer transition state.

    The inner number of states is the minimum over the inner
    configurations. With an outer barrier the two are combined either by
    the unified statistical formula
    ``1/N = 1/N_in + 1/N_out - 1/max(N_in, N_out)`` or in series,
    ``1/N = 1/N_in + 1/N_out``.
    """

    def __init__(
        self,
        name: str,
        inner: Sequence[Species],
        outer: Optional[Species] = None,
        tunnel: Optional[Tunnel] = None,
        method: BarrierMethod = BarrierMethod.STATISTICAL,
        **kwargs
    ):
        """
        Args:
            name: Barrier name
            inner: Inner transition state configurations in NUMBER mode
            outer: Optional outer transition state in NUMBER mode
            tunnel: Tunneling model applied to the combined states
            method: Inner/outer combination rule
            **kwargs: mode, geometry, mass, settings

        Raises:
            ConfigurationError: For missing or non-NUMBER members
        """
        super().__init__(name, **kwargs)
        if not inner:
            raise ConfigurationError(f"{name}: no inner barriers", key="inner")
        self.inner: List[Species] = list(inner)
        self.outer = outer
        self.tunnel = tunnel
        self.method = BarrierMethod(method)

        members = self.inner + ([outer] if outer is not None else [])
        for member in members:
            if member.mode is not StatesMode.NUMBER:
                raise ConfigurationError(
                    f"{name}: member {member.name} must count states in number mode",
                    key="inner")

        real_ground = max(m.ground() for m in members)
        self._cutoff = tunnel.cutoff if tunnel is not None else 0.0
        self._ground = real_ground - self._cutoff

        if self.mode is not StatesMode.NOSTATES:
            step = self.settings.energy_step
            numbers = self._combined_grid(real_ground, self.settings.grid_size, step)
            if tunnel is not None:
                numbers = tunnel.convolute(numbers, step)
            self._set_spline(numbers, step)

    def _combined_grid(self, real_ground: float, size: int, step: float) -> np.ndarray:
        energies = real_ground + np.arange(size) * step
        inner = np.min([[m.states(e) for e in energies] for m in self.inner], axis=0)
        if self.outer is None:
            return inner
        outer = np.array([self.outer.states(e) for e in energies])

        numbers = np.zeros(size)
        positive = (inner > 0) & (outer > 0)
        inv = 1.0 / inner[positive] + 1.0 / outer[positive]
        if self.method is BarrierMethod.STATISTICAL:
            inv -= 1.0 / np.maximum(inner[positive], outer[positive])
        numbers[positive] = 1.0 / inv
        logger.debug(f"{self.name}: {np.count_nonzero(positive)} grid points with open channels")
        return numbers

    def tunnel_weight(self, temperature: float) -> float:
        if self.tunnel is None:
            return 1.0
        return self.tunnel.correction(temperature, self.settings.therm_pow_max)

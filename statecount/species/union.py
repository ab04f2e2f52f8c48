"""Species whose states are the sum over several conformers or electronic states."""

import logging
from typing import List, Sequence

import numpy as np

from .base import Species
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class UnionSpecies(Species):
    """Sum of the states of independent member species."""

    def __init__(self, name: str, members: Sequence[Species], **kwargs):
        if not members:
            raise ConfigurationError(f"{name}: union needs at least one member", key="members")
        modes = {m.mode for m in members}
        if len(modes) > 1:
            raise ConfigurationError(f"{name}: union members differ in states mode", key="members")
        kwargs.setdefault("mode", members[0].mode)
        super().__init__(name, **kwargs)
        if self.mode is not members[0].mode:
            raise ConfigurationError(
                f"{name}: union mode {self.mode.value} differs from its members", key="mode")
        self.members: List[Species] = list(members)
        logger.info(f"Built {self!r} from {len(self.members)} members")

    def ground(self) -> float:
        """Lowest member ground, followed when a member is shifted on its own."""
        return min(m.ground() for m in self.members)

    def real_ground(self) -> float:
        return min(m.real_ground() for m in self.members)

    def shift_ground(self, energy_shift: float) -> None:
        for member in self.members:
            member.shift_ground(energy_shift)

    def states(self, energy):
        self._require_states()
        return sum(m.states(energy) for m in self.members)

    def weight(self, temperature: float) -> float:
        ground = self.ground()
        return float(sum(
            m.weight(temperature) * np.exp(-(m.ground() - ground) / temperature)
            for m in self.members
        ))

    def tunnel_weight(self, temperature: float) -> float:
        """Member tunneling corrections averaged with the member weights."""
        ground = self.ground()
        weights = np.array([
            m.weight(temperature) * np.exp(-(m.ground() - ground) / temperature)
            for m in self.members
        ])
        corrections = np.array([m.tunnel_weight(temperature) for m in self.members])
        return float(np.sum(weights * corrections) / np.sum(weights))

    def init(self, registry=None) -> None:
        for member in self.members:
            member.init(registry)

    def _oscillator_owner(self, index: int):
        for member in self.members:
            size = member.oscillator_size()
            if index < size:
                return member, index
            index -= size
        raise IndexError("oscillator index out of range")

    def oscillator_size(self) -> int:
        return sum(m.oscillator_size() for m in self.members)

    def oscillator_frequency(self, index: int) -> float:
        member, local = self._oscillator_owner(index)
        return member.oscillator_frequency(local)

    def infrared_intensity(self, energy: float, index: int) -> float:
        """Member intensity scaled by the member share of the states."""
        member, local = self._oscillator_owner(index)
        total = self.states(energy)
        if total <= 0:
            return 0.0
        return member.infrared_intensity(energy, local) * member.states(energy) / total

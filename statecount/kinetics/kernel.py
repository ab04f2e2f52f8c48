"""Collisional energy transfer kernels."""

from abc import ABC, abstractmethod
import logging
from typing import Sequence

import numpy as np

from ..core.config import ConfigBlock, KernelFlags, ModelSettings
from ..core.constants import CM_TO_HARTREE, REFERENCE_TEMPERATURE
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Kernel(ABC):
    """
    Downward energy transfer probability density P(ΔE; T), unnormalized.

    The switches that tell the master equation how to use the kernel are
    carried by each instance.
    """

    def __init__(self, flags: KernelFlags = None):
        self.flags = flags or KernelFlags()

    @property
    def up(self) -> bool:
        return self.flags.up

    @property
    def density(self) -> bool:
        return self.flags.density

    @property
    def no_truncation(self) -> bool:
        return self.flags.no_truncation

    @abstractmethod
    def __call__(self, energy: float, temperature: float) -> float:
        """
        Transition probability density.

        Args:
            energy: Energy transferred (Hartree, positive)
            temperature: Thermal energy k_B*T (Hartree)
        """
        pass

    @abstractmethod
    def cutoff_energy(self, temperature: float) -> float:
        """Energy transfer beyond which the probability is neglected."""
        pass


class ExponentialKernel(Kernel):
    """
    Sum of exponentials with temperature-scaled widths.

        P(E) = Σ_i f_i exp(-E / ΔE_i(T)),  ΔE_i(T) = factor_i (T / 300 K)^power_i

    Attributes:
        factors: Widths at 300 K (Hartree)
        powers: Temperature exponents
        fractions: Normalized weights of the exponentials
        cutoff: Cutoff in units of the largest width
    """

    def __init__(
        self,
        factors: Sequence[float],
        powers: Sequence[float],
        fractions: Sequence[float] = None,
        cutoff: float = 10.0,
        flags: KernelFlags = None,
    ):
        super().__init__(flags)
        factors = np.asarray(factors, dtype=float)
        powers = np.asarray(powers, dtype=float)
        if fractions is None:
            fractions = np.ones(len(factors))
        fractions = np.asarray(fractions, dtype=float)
        if len(factors) == 0 or not (len(factors) == len(powers) == len(fractions)):
            raise ConfigurationError("kernel factors, powers and fractions must have equal size")
        if np.any(factors <= 0):
            raise ConfigurationError("kernel widths must be positive", key="factors")
        if np.any(fractions < 0) or fractions.sum() <= 0:
            raise ConfigurationError("kernel fractions must be non-negative", key="fractions")
        if cutoff <= 0:
            raise ConfigurationError("kernel cutoff must be positive", key="cutoff")

        self.factors = factors
        self.powers = powers
        self.fractions = fractions / fractions.sum()
        self.cutoff = cutoff

    def widths(self, temperature: float) -> np.ndarray:
        """ΔE_i(T) in Hartree."""
        return self.factors * (temperature / REFERENCE_TEMPERATURE) ** self.powers

    def __call__(self, energy: float, temperature: float) -> float:
        return float(np.sum(self.fractions * np.exp(-energy / self.widths(temperature))))

    def cutoff_energy(self, temperature: float) -> float:
        return float(self.cutoff * self.widths(temperature).max())

    def mean_energy_transfer(self, temperature: float) -> float:
        """<ΔE_down> of the normalized kernel."""
        widths = self.widths(temperature)
        return float(np.sum(self.fractions * widths ** 2) / np.sum(self.fractions * widths))


def new_kernel(block: ConfigBlock, settings: ModelSettings = None) -> Kernel:
    """
    Create an energy transfer kernel from a configuration block.

    Fields: ``type`` (exponential), ``factors_cm`` (widths at 300 K),
    ``powers``, optional ``fractions`` and ``cutoff``.
    """
    settings = settings or ModelSettings()
    block.get_choice("type", ("exponential",), "exponential")
    factors = block.get_list("factors_cm", scale=CM_TO_HARTREE)
    kernel = ExponentialKernel(
        factors,
        block.get_list("powers", size=len(factors)),
        block.get_list("fractions", None),
        cutoff=block.get_float("cutoff", 10.0),
        flags=settings.kernel_flags,
    )
    block.finish()
    return kernel

"""Anharmonic correction to the vibrational partition function by thermal perturbation theory."""

from itertools import permutations
import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _symmetric_tensor(rank: int, size: int, terms: Iterable[Tuple]) -> np.ndarray:
    """Fill a fully symmetric force constant tensor from (i, j, ..., value) rows."""
    tensor = np.zeros((size,) * rank)
    for row in terms:
        if len(row) != rank + 1:
            raise ConfigurationError(f"force constant rows need {rank} indices and a value")
        index = tuple(int(i) for i in row[:rank])
        if min(index) < 0 or max(index) >= size:
            raise ConfigurationError(f"force constant index {index} out of range 0..{size - 1}")
        for perm in set(permutations(index)):
            tensor[perm] = float(row[rank])
    return tensor


def _sinh_ratio(numerator: float, denominator: np.ndarray) -> float:
    """sinh(a) / prod(sinh(b_i)) for b_i > 0 without overflow."""
    a = abs(numerator)
    log_value = a - np.sum(denominator)
    factor = (2.0 ** (len(denominator) - 1) * -np.expm1(-2.0 * a)
              / np.prod(-np.expm1(-2.0 * denominator)))
    return float(np.sign(numerator) * factor * np.exp(log_value))


class GraphExpansion:
    """
    Low-order diagrams of the anharmonic vibrational partition function.

    The potential in dimensionless normal coordinates is
    ``Σ ω_i q_i²/2 + (1/6) Σ f_ijk q_i q_j q_k + (1/24) Σ f_ijkl q_i q_j q_k q_l``.
    The first-order quartic diagram and both second-order cubic diagrams
    (the connected sunset and the dumbbell) are summed into ``ln Q``.
    """

    def __init__(
        self,
        frequencies: Sequence[float],
        cubic: Optional[np.ndarray] = None,
        quartic: Optional[np.ndarray] = None,
    ):
        """
        Args:
            frequencies: Harmonic frequencies (Hartree)
            cubic: Symmetric f_ijk tensor (Hartree)
            quartic: Symmetric f_ijkl tensor (Hartree)
        """
        self.frequencies = np.asarray(frequencies, dtype=float)
        size = len(self.frequencies)
        if size == 0 or np.any(self.frequencies <= 0):
            raise ConfigurationError("graph expansion needs positive harmonic frequencies")
        self.cubic = np.zeros((size,) * 3) if cubic is None else np.asarray(cubic, dtype=float)
        self.quartic = np.zeros((size,) * 4) if quartic is None else np.asarray(quartic, dtype=float)
        if self.cubic.shape != (size,) * 3 or self.quartic.shape != (size,) * 4:
            raise ConfigurationError("force constant tensors do not match the frequencies")

    @classmethod
    def from_terms(cls, frequencies: Sequence[float], cubic_terms: Iterable[Tuple] = (),
                   quartic_terms: Iterable[Tuple] = ()) -> "GraphExpansion":
        """Build from sparse rows of unique index combinations."""
        size = len(frequencies)
        return cls(
            frequencies,
            _symmetric_tensor(3, size, cubic_terms),
            _symmetric_tensor(4, size, quartic_terms),
        )

    def _sunset_integral(self, beta: float, i: int, j: int, k: int) -> float:
        """∫_0^β G_i G_j G_k dτ of three thermal oscillator propagators."""
        w = self.frequencies[[i, j, k]]
        half = 0.5 * beta * w
        total = 0.0
        for s in (w[0] + w[1] + w[2], w[0] + w[1] - w[2],
                  w[0] - w[1] + w[2], -w[0] + w[1] + w[2]):
            if abs(s) * beta < 1e-10:
                # 2 sinh(sβ/2)/s -> β
                total += beta * 8.0 * np.exp(-np.sum(half)) / np.prod(-np.expm1(-2.0 * half))
            else:
                total += 2.0 * _sinh_ratio(0.5 * s * beta, half) / s
        return 0.25 * total / 8.0

    def first_order(self, temperature: float) -> float:
        """Quartic contribution -β <V4> to ln Q."""
        beta = 1.0 / temperature
        sigma = 0.5 / np.tanh(0.5 * beta * self.frequencies)
        diagonal = np.einsum("iijj->ij", self.quartic)
        return float(-beta / 8.0 * sigma @ diagonal @ sigma)

    def second_order(self, temperature: float) -> float:
        """Cubic contribution (1/2)∫∫<V3 V3>_c to ln Q."""
        beta = 1.0 / temperature
        sigma = 0.5 / np.tanh(0.5 * beta * self.frequencies)
        size = len(self.frequencies)

        sunset = 0.0
        for i, j, k in np.argwhere(self.cubic != 0.0):
            sunset += self.cubic[i, j, k] ** 2 * self._sunset_integral(beta, i, j, k)

        tadpole = np.einsum("iik,i->k", self.cubic, sigma)
        dumbbell = float(np.sum(tadpole ** 2 / self.frequencies))

        logger.debug(
            f"Graph expansion at T={temperature:.3e}: sunset {sunset:.3e}, "
            f"dumbbell {dumbbell:.3e} over {size} modes"
        )
        return 0.5 * beta / 36.0 * (6.0 * sunset + 9.0 * dumbbell)

    def correction(self, temperature: float) -> float:
        """Multiplicative anharmonic correction to the harmonic weight."""
        if temperature <= 0:
            raise ValueError("temperature must be positive")
        return float(np.exp(self.first_order(temperature) + self.second_order(temperature)))

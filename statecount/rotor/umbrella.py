"""Umbrella (inversion) mode with an even polynomial potential."""

import logging
from typing import Optional, Sequence

import numpy as np
from numpy.polynomial import Polynomial
from scipy.optimize import minimize_scalar

from .base import QuantumRotor
from ..core.config import ModelSettings
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def cosine_moments(power_max: int, order_max: int) -> np.ndarray:
    """
    Closed-form integrals I(p, n) = ∫₀¹ xᵖ cos(nπx) dx.

    Uses the coupled recursions with J(p, n) = ∫₀¹ xᵖ sin(nπx) dx:
    I(p, n) = -(p/nπ) J(p-1, n) and J(p, n) = -cos(nπ)/nπ + (p/nπ) I(p-1, n).

    Args:
        power_max: Highest power p
        order_max: Highest harmonic n

    Returns:
        Array of shape (power_max + 1, order_max + 1)
    """
    result = np.zeros((power_max + 1, order_max + 1))
    result[:, 0] = 1.0 / np.arange(1, power_max + 2)
    if order_max == 0:
        return result

    n = np.arange(1, order_max + 1)
    a = n * np.pi
    sign = np.where(n % 2 == 0, 1.0, -1.0)
    cos_part = np.zeros(order_max)
    sin_part = (1.0 - sign) / a
    for p in range(1, power_max + 1):
        cos_part, sin_part = -p / a * sin_part, -sign / a + p / a * cos_part
        result[p, 1:] = cos_part
    return result


class Umbrella(QuantumRotor):
    """
    Inversion motion on x ∈ [-1, 1] with V(x) = Σ_k c_k x^(2k).

    The Hamiltonian H = B p² + V is diagonalized in the basis
    {1/√2, cos(nπx)} ∪ {sin(nπx)}; the even potential does not couple
    the cosine and sine blocks, so each is diagonalized separately.

    Attributes:
        coefficients: c_k in Hartree
    """

    name = "Umbrella"

    def __init__(
        self,
        kinetic_constant: float,
        coefficients: Sequence[float],
        settings: Optional[ModelSettings] = None,
        grid_size: int = 201,
        **kwargs
    ):
        """
        Initialize umbrella mode.

        Args:
            kinetic_constant: B of H = B p² + V in Hartree (x dimensionless)
            coefficients: c_0, c_1, ... of the even powers (Hartree)
            settings: Model settings
            grid_size: Points of the coordinate grid for semiclassical integrals
            **kwargs: Hamiltonian size bounds and level tolerance
        """
        super().__init__(kinetic_constant, 2.0, settings=settings, **kwargs)
        self.coefficients = np.asarray(coefficients, dtype=float)
        if self.coefficients.ndim != 1 or len(self.coefficients) < 2:
            raise ConfigurationError("umbrella potential needs at least two coefficients",
                                     key="coefficients")
        full = np.zeros(2 * len(self.coefficients) - 1)
        full[::2] = self.coefficients
        self._polynomial = Polynomial(full)

        x = np.linspace(-1.0, 1.0, grid_size)
        values = self._polynomial(x)
        index = int(np.argmin(values))
        result = minimize_scalar(self._polynomial, bounds=(0.0, 1.0), method="bounded")
        self.potential_min = float(min(values[index], result.fun))
        self._grid_potential = values - self.potential_min
        self._grid_curvature = 2.0 * self.kinetic * self._polynomial.deriv(2)(x)
        logger.info(
            f"Umbrella: B={self.kinetic:.4e}, "
            f"barrier={self._polynomial(0.0) - self.potential_min:.4e} Hartree"
        )

    def potential(self, x: float, derivative: int = 0) -> float:
        """Potential above its minimum, or its derivative, at coordinate x."""
        if derivative:
            return float(self._polynomial.deriv(derivative)(x))
        return float(self._polynomial(x) - self.potential_min)

    def _basis_size_for(self, energy: float) -> int:
        return 2 * int(np.ceil(np.sqrt(energy / self.kinetic) / np.pi)) + 11

    def _eigenvalues(self, size: int) -> np.ndarray:
        cos_size = size // 2 + 1
        sin_size = size // 2
        moments = cosine_moments(2 * (len(self.coefficients) - 1), 2 * cos_size)
        even = np.einsum("k,kn->n", self.coefficients, moments[::2])

        m = np.arange(cos_size)
        diff = np.abs(m[:, None] - m[None, :])
        total = m[:, None] + m[None, :]
        norm = np.where(m == 0, 1.0 / np.sqrt(2.0), 1.0)
        cos_block = (even[diff] + even[total]) * norm[:, None] * norm[None, :]
        cos_block[np.diag_indices(cos_size)] += self.kinetic * (m * np.pi) ** 2

        m = np.arange(1, sin_size + 1)
        diff = np.abs(m[:, None] - m[None, :])
        total = m[:, None] + m[None, :]
        sin_block = even[diff] - even[total]
        sin_block[np.diag_indices(sin_size)] += self.kinetic * (m * np.pi) ** 2

        levels = np.concatenate([np.linalg.eigvalsh(cos_block), np.linalg.eigvalsh(sin_block)])
        return np.sort(levels)

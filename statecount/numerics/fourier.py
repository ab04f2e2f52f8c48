"""Multi-index Fourier expansions over periodic angular grids.

An expansion stores complex coefficients c_m of f(θ) = Σ_m c_m exp(i m·θ)
for every angle θ_k in [0, 2π). The same function can be held as
(a) a dictionary of multi-index coefficients, (b) real values on a uniform
grid, or (c) the FFT array of those values; the helpers convert between
them.
"""

import itertools
import logging
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np

from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MultiIndex = Tuple[int, ...]


def angular_grid(shape: Sequence[int]) -> np.ndarray:
    """
    Uniform angular grid.

    Args:
        shape: Points per dimension

    Returns:
        Array of shape (*shape, K) with the angles of every grid point
    """
    axes = [np.arange(n) * 2 * np.pi / n for n in shape]
    return np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)


def grid_to_fft(values: np.ndarray) -> np.ndarray:
    """Complex Fourier coefficients of grid values in FFT index order."""
    return np.fft.fftn(values) / values.size


def fft_to_grid(coefficients: np.ndarray) -> np.ndarray:
    """Grid values from FFT-ordered coefficients."""
    return np.fft.ifftn(coefficients) * coefficients.size


def check_resolution(shape: Sequence[int], sizes: Sequence[int], what: str = "expansion") -> None:
    """
    Require a grid to resolve harmonics up to the given orders.

    Raises:
        ConfigurationError: If any dimension has fewer than 2*size+1 points
    """
    for k, (n, size) in enumerate(zip(shape, sizes)):
        if n < 2 * size + 1:
            raise ConfigurationError(
                f"angular grid with {n} points in dimension {k} cannot resolve "
                f"{what} harmonics up to order {size}"
            )


class FourierExpansion:
    """
    Truncated multi-index Fourier expansion of a real periodic function.

    Attributes:
        coefficients: Mapping from multi-index to complex coefficient
        dimension: Number of angles
    """

    def __init__(self, coefficients: Dict[MultiIndex, complex], dimension: int):
        self.dimension = dimension
        self.coefficients = {}
        for index, value in coefficients.items():
            index = tuple(int(i) for i in index)
            if len(index) != dimension:
                raise ConfigurationError(
                    f"harmonic index {index} does not have {dimension} components"
                )
            self.coefficients[index] = complex(value)

    @classmethod
    def from_cosine_sine(
        cls,
        terms: Iterable[Tuple[Sequence[int], float, float]],
        dimension: int,
    ) -> "FourierExpansion":
        """
        Build from real terms a·cos(m·θ) + b·sin(m·θ).

        Args:
            terms: Iterable of (m, a, b)
            dimension: Number of angles

        Returns:
            FourierExpansion with Hermitian coefficients
        """
        coefficients: Dict[MultiIndex, complex] = {}
        for index, cos_value, sin_value in terms:
            index = tuple(int(i) for i in index)
            if all(i == 0 for i in index):
                coefficients[index] = coefficients.get(index, 0.0) + cos_value
                continue
            minus = tuple(-i for i in index)
            coefficients[index] = coefficients.get(index, 0.0) + 0.5 * (cos_value - 1j * sin_value)
            coefficients[minus] = coefficients.get(minus, 0.0) + 0.5 * (cos_value + 1j * sin_value)
        return cls(coefficients, dimension)

    @classmethod
    def from_grid(
        cls,
        values: np.ndarray,
        sizes: Sequence[int],
        tolerance: float = 0.0,
    ) -> "FourierExpansion":
        """
        Fit an expansion to grid values by FFT.

        Args:
            values: Real values on a uniform grid
            sizes: Highest harmonic order kept per dimension
            tolerance: Coefficients with magnitude below tolerance are pruned

        Returns:
            FourierExpansion
        """
        check_resolution(values.shape, sizes)
        fft = grid_to_fft(np.asarray(values, dtype=float))
        coefficients = {}
        ranges = [range(-s, s + 1) for s in sizes]
        for index in itertools.product(*ranges):
            value = fft[tuple(i % n for i, n in zip(index, values.shape))]
            if abs(value) > tolerance or all(i == 0 for i in index):
                coefficients[index] = value
        pruned = int(np.prod([2 * s + 1 for s in sizes])) - len(coefficients)
        if pruned:
            logger.debug(f"Pruned {pruned} Fourier coefficients below {tolerance:.2e}")
        return cls(coefficients, values.ndim)

    @property
    def max_orders(self) -> Tuple[int, ...]:
        """Largest |m_k| present per dimension."""
        if not self.coefficients:
            return (0,) * self.dimension
        indices = np.array(list(self.coefficients))
        return tuple(int(v) for v in np.abs(indices).max(axis=0))

    @property
    def constant(self) -> float:
        return float(self.coefficients.get((0,) * self.dimension, 0.0).real)

    def to_fft(self, shape: Sequence[int]) -> np.ndarray:
        """Place coefficients into an FFT-ordered array of the given shape."""
        check_resolution(shape, self.max_orders)
        fft = np.zeros(tuple(shape), dtype=complex)
        for index, value in self.coefficients.items():
            fft[tuple(i % n for i, n in zip(index, shape))] += value
        return fft

    def to_grid(self, shape: Sequence[int]) -> np.ndarray:
        """Real values on a uniform grid of the given shape."""
        return fft_to_grid(self.to_fft(shape)).real

    def __call__(self, angles: np.ndarray, derivative: Sequence[int] = None) -> np.ndarray:
        """
        Evaluate the expansion (or a partial derivative) at angles.

        Args:
            angles: Array of shape (..., K)
            derivative: Optional derivative order per angle

        Returns:
            Real values of shape angles.shape[:-1]
        """
        angles = np.asarray(angles, dtype=float)
        if angles.shape[-1] != self.dimension:
            raise ValueError(f"expected {self.dimension} angles per point")
        indices = np.array(list(self.coefficients), dtype=float)
        values = np.array(list(self.coefficients.values()))
        if derivative is not None:
            factor = np.prod((1j * indices) ** np.asarray(derivative), axis=1)
            values = values * factor
        phases = np.exp(1j * np.tensordot(angles, indices.T, axes=1))
        return (phases @ values).real

    def gradient(self, angles: np.ndarray) -> np.ndarray:
        """Gradient with respect to every angle, shape (..., K)."""
        grads = []
        for k in range(self.dimension):
            order = [0] * self.dimension
            order[k] = 1
            grads.append(self(angles, order))
        return np.stack(grads, axis=-1)

    def hessian(self, angles: np.ndarray) -> np.ndarray:
        """Second derivatives with respect to every angle pair, shape (..., K, K)."""
        k_dim = self.dimension
        angles = np.asarray(angles, dtype=float)
        result = np.empty(angles.shape[:-1] + (k_dim, k_dim))
        for i in range(k_dim):
            for j in range(i, k_dim):
                order = [0] * k_dim
                order[i] += 1
                order[j] += 1
                result[..., i, j] = result[..., j, i] = self(angles, order)
        return result

    def coupling(self, differences: np.ndarray) -> np.ndarray:
        """
        Coefficients c_{n'-n} for an array of index differences.

        Args:
            differences: Integer array of shape (..., K)

        Returns:
            Complex array of shape differences.shape[:-1]; zero where no
            coefficient is stored
        """
        orders = self.max_orders
        shape = tuple(2 * o + 1 for o in orders)
        table = np.zeros(shape, dtype=complex)
        for index, value in self.coefficients.items():
            table[tuple(i + o for i, o in zip(index, orders))] = value
        differences = np.asarray(differences)
        inside = np.all(np.abs(differences) <= np.asarray(orders), axis=-1)
        result = np.zeros(differences.shape[:-1], dtype=complex)
        shifted = differences[inside] + np.asarray(orders)
        result[inside] = table[tuple(shifted.T)]
        return result

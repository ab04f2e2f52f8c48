"""Hindered internal rotor with a Fourier-series torsional potential."""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize_scalar

from .base import QuantumRotor
from ..core.config import ModelSettings
from ..core.exceptions import ConfigurationError
from ..molecule.internal_rotation import InternalRotation
from ..numerics.fourier import FourierExpansion
from ..numerics.interpolation import PeriodicSpline

logger = logging.getLogger(__name__)


class HinderedRotor(QuantumRotor):
    """
    Torsion restrained by a periodic potential.

    The potential is a Fourier series in θ = σφ, where φ is the torsional
    angle and σ the symmetry number, so one θ period covers one symmetry-
    equivalent well sequence. In the plane-wave basis exp(imθ) the
    Hamiltonian is

        H_{m'm} = B σ² m² δ_{m'm} + v_{m'-m}

    with v_n the complex Fourier coefficients of the potential.

    Attributes:
        rotational_constant: B = 1/(2I) in Hartree
        symmetry: Rotor symmetry number σ
        fourier: Potential expansion in θ (Hartree)
    """

    name = "Hindered"

    def __init__(
        self,
        rotational_constant: float,
        potential: FourierExpansion,
        symmetry: int = 1,
        rotation: Optional[InternalRotation] = None,
        settings: Optional[ModelSettings] = None,
        grid_size: int = 361,
        **kwargs
    ):
        """
        Initialize hindered rotor.

        Args:
            rotational_constant: B = 1/(2I) in Hartree
            potential: One-dimensional Fourier expansion in θ (Hartree)
            symmetry: Rotor symmetry number
            rotation: Optional internal rotation geometry
            settings: Model settings
            grid_size: Angular grid points used for semiclassical integrals
            **kwargs: Hamiltonian size bounds and level tolerance
        """
        if rotational_constant <= 0:
            raise ConfigurationError("rotational constant must be positive",
                                     key="rotational_constant")
        if symmetry < 1:
            raise ConfigurationError("symmetry number must be positive", key="symmetry")
        if potential.dimension != 1:
            raise ConfigurationError("hindered rotor potential must be one-dimensional")
        super().__init__(rotational_constant * symmetry ** 2, 2.0 * np.pi,
                         rotation=rotation, settings=settings, **kwargs)
        self.rotational_constant = float(rotational_constant)
        self.symmetry = int(symmetry)
        self.fourier = potential

        order = potential.max_orders[0]
        if grid_size < 2 * order + 1:
            raise ConfigurationError(
                f"grid of {grid_size} points cannot resolve potential harmonics up to {order}",
                key="grid_size",
            )

        theta = np.arange(grid_size) * 2.0 * np.pi / grid_size
        values = self.fourier(theta[:, None])
        self._theta_min, self.potential_min = self._locate_minimum(theta, values)
        self._grid_potential = values - self.potential_min
        self._grid_curvature = 2.0 * self.kinetic * self.fourier(theta[:, None], [2])
        self.barrier_height = float(self._grid_potential.max())
        logger.info(
            f"Hindered rotor: B={self.rotational_constant:.4e}, sigma={self.symmetry}, "
            f"barrier={self.barrier_height:.4e} Hartree"
        )

    @classmethod
    def from_cosine_sine(
        cls,
        rotational_constant: float,
        cosines: Sequence[float],
        sines: Sequence[float] = (),
        symmetry: int = 1,
        **kwargs
    ) -> "HinderedRotor":
        """
        Build from V(θ) = Σ_n a_n cos(nθ) + Σ_n b_n sin(nθ).

        Args:
            rotational_constant: B in Hartree
            cosines: a_0, a_1, ... (Hartree)
            sines: b_1, b_2, ... (Hartree)
            symmetry: Rotor symmetry number
        """
        terms = [((n,), a, 0.0) for n, a in enumerate(cosines)]
        terms += [((n + 1,), 0.0, b) for n, b in enumerate(sines)]
        potential = FourierExpansion.from_cosine_sine(terms, 1)
        return cls(rotational_constant, potential, symmetry=symmetry, **kwargs)

    @classmethod
    def from_samples(
        cls,
        rotational_constant: float,
        angles: np.ndarray,
        values: np.ndarray,
        fourier_size: int,
        symmetry: int = 1,
        **kwargs
    ) -> "HinderedRotor":
        """
        Build from potential samples over one symmetry period.

        Args:
            rotational_constant: B in Hartree
            angles: Torsional angles φ in radians covering [0, 2π/σ)
            values: Potential at each angle (Hartree)
            fourier_size: Highest harmonic kept
            symmetry: Rotor symmetry number
        """
        spline = PeriodicSpline(np.asarray(angles) * symmetry, values)
        samples = spline.sample(max(4 * fourier_size + 1, 64))
        potential = FourierExpansion.from_grid(samples, [fourier_size])
        return cls(rotational_constant, potential, symmetry=symmetry, **kwargs)

    def _locate_minimum(self, theta: np.ndarray, values: np.ndarray) -> Tuple[float, float]:
        index = int(np.argmin(values))
        h = theta[1] - theta[0]
        result = minimize_scalar(
            lambda t: float(self.fourier(np.array([t]))),
            bounds=(theta[index] - h, theta[index] + h),
            method="bounded",
        )
        if result.success and result.fun < values[index]:
            return float(result.x) % (2.0 * np.pi), float(result.fun)
        return float(theta[index]), float(values[index])

    def potential_minimum(self) -> Tuple[float, float]:
        """Torsional angle φ (radians) and energy (Hartree) of the potential minimum."""
        return self._theta_min / self.symmetry, self.potential_min

    def potential(self, angle: float, derivative: int = 0) -> float:
        """
        Potential or its derivative at torsional angle φ.

        Args:
            angle: Torsional angle φ in radians
            derivative: Derivative order with respect to φ

        Returns:
            V(φ) - V_min for derivative 0, else d^nV/dφ^n
        """
        theta = np.array([self.symmetry * angle])
        value = float(self.fourier(theta, [derivative] if derivative else None))
        if derivative:
            return self.symmetry ** derivative * value
        return value - self.potential_min

    def frequency(self) -> float:
        """Harmonic torsional frequency at the potential minimum (Hartree)."""
        curvature = float(self.fourier(np.array([self._theta_min]), [2]))
        return float(np.sqrt(max(2.0 * self.kinetic * curvature, 0.0)))

    def _basis_size_for(self, energy: float) -> int:
        return 2 * int(np.ceil(np.sqrt(energy / self.kinetic))) + 11

    def _eigenvalues(self, size: int) -> np.ndarray:
        half = size // 2
        m = np.arange(-half, half + 1)
        hamiltonian = self.fourier.coupling((m[:, None] - m[None, :])[..., None])
        hamiltonian[np.diag_indices_from(hamiltonian)] += self.kinetic * m ** 2
        return np.linalg.eigvalsh(hamiltonian)

    def real_space_energy_levels(self, grid_size: int = None) -> np.ndarray:
        """
        Levels from a periodic Fourier-grid Hamiltonian, as a cross-check.

        Args:
            grid_size: Number of grid points (made odd); defaults to the
                size needed for the prepared levels

        Returns:
            Level energies above the potential minimum (Hartree)
        """
        self._require_set()
        if grid_size is None:
            grid_size = self._basis_size_for(self._emax + self.barrier_height) + 20
        if grid_size % 2 == 0:
            grid_size += 1
        theta = np.arange(grid_size) * 2.0 * np.pi / grid_size
        k = np.fft.fftfreq(grid_size, d=1.0 / grid_size)
        kinetic = np.fft.ifft(
            (self.kinetic * k ** 2)[:, None] * np.fft.fft(np.eye(grid_size), axis=0), axis=0
        ).real
        hamiltonian = kinetic + np.diag(self.fourier(theta[:, None]) - self.potential_min)
        return np.linalg.eigvalsh(0.5 * (hamiltonian + hamiltonian.T))

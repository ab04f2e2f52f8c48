"""Coupled internal rotors on a multidimensional angular grid.

The model combines K internal rotations, optionally with the overall
rotation, in five stages:

1. the internal mobility matrix M(φ) = (A - Cᵀ I⁻¹ C)⁻¹, the external
   rotation factor sqrt(det I) and the frequencies of the remaining
   vibrations are sampled on a uniform angular grid of rotated geometries
   and Fourier expanded;
2. the torsional potential (plus the zero-point energy of the remaining
   vibrations) is evaluated on the phase-space grid;
3. the Hamiltonian ½ Σ σ_iσ_j p_i M_ij p_j + V in the plane-wave basis
   exp(i n·θ), θ_k = σ_k φ_k, is diagonalized for the low levels, the
   basis growing by shells of total angular momentum Σ|n_k|;
4. the classical number of states is integrated over the grid, the
   vibrations entering as quantum ladders on top of the local potential;
5. the ratio of quantum to classical counts below the crossover energy
   corrects the classical curve, and the result is splined.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import itertools
import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse
from scipy.interpolate import PchipInterpolator
from scipy.linalg import eigh
from scipy.optimize import minimize
from scipy.special import gamma

from .base import Core
from ..core.constants import CM_TO_HARTREE
from ..core.exceptions import ConfigurationError, ConvergenceError, LogicError
from ..molecule.internal_rotation import InternalRotation, internal_mobility
from ..molecule.structure import Molecule
from ..numerics.convolution import direct_count
from ..numerics.fourier import FourierExpansion, angular_grid, check_resolution
from ..numerics.integration import number_to_weight
from ..numerics.interpolation import StatesSpline
from ..rotor.base import path_integral_factor

logger = logging.getLogger(__name__)

HessianProvider = Callable[[Molecule], np.ndarray]

EXTERNAL_FACTOR = np.sqrt(8.0 * np.pi)


@dataclass
class CoupledRotation:
    """
    One internal rotation of a MultiRotor.

    Attributes:
        rotation: Rotating group, axis and symmetry number
        mass_size: Highest harmonic of the mobility expansion
        grid_size: Angular grid points for phase-space integrals
        quantum_size: Highest plane-wave index |n_k| of this rotation in the
            quantum basis; unlimited below the total angular momentum if None
    """
    rotation: InternalRotation
    mass_size: int = 4
    grid_size: int = 36
    quantum_size: Optional[int] = None

    def __post_init__(self):
        if self.mass_size < 0:
            raise ConfigurationError("mass Fourier size must not be negative", key="mass_size")
        if self.grid_size < 1:
            raise ConfigurationError("angular grid size must be positive", key="grid_size")
        if self.quantum_size is not None and self.quantum_size < 1:
            raise ConfigurationError("quantum basis size must be positive", key="quantum_size")

    @property
    def symmetry(self) -> int:
        return self.rotation.symmetry


def prune_expansion(expansion: FourierExpansion, tolerance: float) -> FourierExpansion:
    """Drop non-constant coefficients with magnitude below tolerance."""
    zero = (0,) * expansion.dimension
    kept = {
        index: value for index, value in expansion.coefficients.items()
        if index == zero or abs(value) >= tolerance
    }
    return FourierExpansion(kept, expansion.dimension)


def plane_wave_basis(amom: int, limits: Sequence[int]) -> np.ndarray:
    """
    Plane-wave indices n with Σ|n_k| <= amom and |n_k| <= limits[k].

    Args:
        amom: Total angular momentum of the outermost shell
        limits: Largest index per rotation

    Returns:
        Integer array of shape (size, K)
    """
    ranges = [range(-min(amom, limit), min(amom, limit) + 1) for limit in limits]
    basis = np.array(list(itertools.product(*ranges)), dtype=int).reshape(-1, len(limits))
    return basis[np.abs(basis).sum(axis=1) <= amom]


def coupling_entries(
    basis: np.ndarray,
    expansion: FourierExpansion,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Nonzero matrix elements of a Fourier expansion between plane waves.

    Element (a, b) is c_m with m = n_a - n_b. Pairs are looked up once per
    stored coefficient, so the cost grows with the number of harmonics and
    not with the square of the basis.

    Args:
        basis: Plane-wave indices, shape (size, K)
        expansion: Fourier expansion in the same angles

    Returns:
        Tuple (rows, columns, values)
    """
    size = len(basis)
    indices = np.array(list(expansion.coefficients), dtype=int).reshape(-1, basis.shape[1])
    values = np.array(list(expansion.coefficients.values()), dtype=complex)
    if size == 0 or len(indices) == 0:
        empty = np.zeros(0, dtype=int)
        return empty, empty, np.zeros(0, dtype=complex)

    # mixed-radix codes of non-negative shifted indices
    offset = int(np.abs(basis).max() + np.abs(indices).max())
    radix = (2 * offset + 1) ** np.arange(basis.shape[1], dtype=np.int64)
    codes = (basis + offset) @ radix
    order = np.argsort(codes)
    sorted_codes = codes[order]
    columns = np.arange(size)

    rows_out, cols_out, values_out = [], [], []
    for index, value in zip(indices, values):
        targets = (basis + index + offset) @ radix
        position = np.minimum(np.searchsorted(sorted_codes, targets), size - 1)
        found = sorted_codes[position] == targets
        rows_out.append(order[position[found]])
        cols_out.append(columns[found])
        values_out.append(np.full(np.count_nonzero(found), value))
    return np.concatenate(rows_out), np.concatenate(cols_out), np.concatenate(values_out)


def harmonic_levels(frequencies: Sequence[float], energy_max: float) -> np.ndarray:
    """
    Sorted harmonic oscillator levels Σ n_v ω_v up to an energy, with repeats.

    Args:
        frequencies: Harmonic frequencies (Hartree)
        energy_max: Highest level energy (Hartree)
    """
    levels = np.zeros(1)
    for frequency in frequencies:
        quanta = np.arange(int(energy_max // frequency) + 1) * frequency
        levels = (levels[:, None] + quanta[None, :]).ravel()
        levels = levels[levels <= energy_max]
    return np.sort(levels)


class MultiRotor(Core):
    """
    Coupled hindered internal rotors with quantum-corrected classical states.

    Attributes:
        molecule: Reference geometry
        rotations: Coupled internal rotations
        symmetries: Internal rotation symmetry numbers σ_k
        external_symmetry: Overall rotation symmetry number
        external_rotation: Whether overall rotation is included
        dimension: Number of classical degrees of freedom D
    """

    name = "MultiRotor"

    def __init__(
        self,
        molecule: Molecule,
        rotations: Sequence[CoupledRotation],
        potential: FourierExpansion,
        external_symmetry: float = 1.0,
        external_rotation: bool = True,
        frequencies: Sequence[float] = (),
        hessian: Optional[HessianProvider] = None,
        level_ener_max: float = 1000.0 * CM_TO_HARTREE,
        amom_max: int = 30,
        level_tolerance: float = 1e-7,
        mass_tolerance: float = 0.0,
        potential_tolerance: float = 0.0,
        extra_ener: Optional[float] = None,
        **kwargs
    ):
        """
        Initialize coupled rotors.

        Args:
            molecule: Reference geometry
            rotations: Internal rotations with their expansion and grid sizes
            potential: Torsional potential as a Fourier expansion in θ_k = σ_k φ_k
                (Hartree)
            external_symmetry: Overall rotation symmetry number
            external_rotation: Include overall rotation in the count
            frequencies: Constant frequencies of the remaining vibrations (Hartree)
            hessian: Cartesian Hessian provider (Hartree/Bohr²); when given the
                remaining vibrations are the projected frequencies at every
                grid geometry and ``frequencies`` is ignored
            level_ener_max: Highest quantum level energy above the potential
                minimum (Hartree)
            amom_max: Largest total angular momentum Σ|n_k| of the quantum basis
            level_tolerance: Level convergence threshold (Hartree)
            mass_tolerance: Mobility Fourier coefficients below this are pruned
            potential_tolerance: Potential Fourier coefficients below this are
                pruned (Hartree)
            extra_ener: Interpolation range above the ground level (Hartree);
                defaults to the settings energy limit
            **kwargs: mode and settings

        Raises:
            ConfigurationError: If the grids do not resolve the expansions, a
                vibration is not real or the classical range does not reach
                the quantum one
            ConvergenceError: If the quantum levels do not converge
        """
        super().__init__(**kwargs)
        self.rotations = list(rotations)
        size = len(self.rotations)
        if size == 0:
            raise ConfigurationError("multirotor needs at least one internal rotation")
        if potential.dimension != size:
            raise ConfigurationError(
                f"potential has {potential.dimension} angles for {size} internal rotations",
                key="potential",
            )
        if external_symmetry <= 0:
            raise ConfigurationError("external symmetry number must be positive",
                                     key="external_symmetry")
        if level_ener_max <= 0:
            raise ConfigurationError("quantum level energy range must be positive",
                                     key="level_ener_max")
        self._frequencies = np.asarray(frequencies, dtype=float).ravel()
        if np.any(self._frequencies <= 0):
            raise ConfigurationError("vibrational frequencies must be positive", key="frequencies")

        for coupled in self.rotations:
            coupled.rotation.validate(molecule)
        molecule.check_distances(self.settings.atom_dist_min)

        self.molecule = molecule
        self.symmetries = np.array([r.symmetry for r in self.rotations], dtype=float)
        self.external_symmetry = float(external_symmetry)
        self.external_rotation = bool(external_rotation)
        self.dimension = size + (3 if self.external_rotation else 0)
        self._hessian = hessian
        self.level_ener_max = float(level_ener_max)
        self.amom_max = int(amom_max)
        self.level_tolerance = float(level_tolerance)
        self.extra_ener = float(extra_ener if extra_ener is not None else self.settings.energy_limit)
        if self.extra_ener < self.level_ener_max:
            raise ConfigurationError(
                f"classical range {self.extra_ener:.4e} does not reach the quantum "
                f"level range {self.level_ener_max:.4e} Hartree",
                key="extra_ener",
            )
        self._quantum_limits = [
            self.amom_max if r.quantum_size is None else r.quantum_size for r in self.rotations
        ]

        self._mass_sizes = [r.mass_size for r in self.rotations]
        self._sample_mass(mass_tolerance)
        self._potential_fourier = prune_expansion(potential, potential_tolerance)
        if self._zpe_fourier is not None:
            self._potential_fourier = self._add_expansions(self._potential_fourier,
                                                           self._zpe_fourier)

        self._set_grid()
        self._set_energy_levels()
        self._set_classical_states()
        self._set_qfactor()
        logger.info(
            f"MultiRotor: {size} rotors, {self._vib_count} vibrations, {len(self._levels)} "
            f"quantum levels, ground {self._ground:.4e} Hartree, classical exponent "
            f"{self._cstates.power:.3f}"
        )

    # ------------------------------------------------------------------
    # sampling and Fourier expansions

    def _geometry(self, angles: np.ndarray) -> Molecule:
        """Reference geometry with every group rotated by its torsional angle φ_k."""
        mol = self.molecule
        for coupled, angle in zip(self.rotations, angles):
            if angle != 0.0:
                mol = coupled.rotation.rotate(mol, angle)
        return mol

    def _sample_point(self, theta: np.ndarray) -> Tuple[np.ndarray, float, np.ndarray]:
        mol = self._geometry(theta / self.symmetries)
        mol.check_distances(self.settings.atom_dist_min)
        mobility, erf = internal_mobility(mol, [r.rotation for r in self.rotations])
        if self._hessian is None:
            return mobility, erf, self._frequencies
        vibration = self._projected_frequencies(mol)
        if np.any(vibration <= 0):
            angles = np.degrees(theta / self.symmetries)
            raise ConfigurationError(
                f"projected vibrations at torsional angles {np.round(angles, 1)} degrees "
                f"include a non-positive frequency {vibration.min():.3e}",
                key="hessian",
            )
        return mobility, erf, vibration

    def _sample_mass(self, mass_tolerance: float) -> None:
        shape = tuple(2 * s + 1 for s in self._mass_sizes)
        points = angular_grid(shape).reshape(-1, len(shape))
        if self.settings.workers > 1:
            with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
                results = list(executor.map(self._sample_point, points))
        else:
            results = [self._sample_point(p) for p in points]
        logger.debug(f"MultiRotor: sampled {len(points)} rotated geometries")

        size = len(self.rotations)
        mobility = np.array([r[0] for r in results]).reshape(shape + (size, size))
        self._mobility_fourier = {}
        for i in range(size):
            for j in range(i, size):
                self._mobility_fourier[(i, j)] = FourierExpansion.from_grid(
                    mobility[..., i, j], self._mass_sizes, mass_tolerance)
        erf = np.array([r[1] for r in results]).reshape(shape)
        self._erf_fourier = FourierExpansion.from_grid(erf, self._mass_sizes)

        vibration = np.array([r[2] for r in results])
        self._vib_count = vibration.shape[1]
        vibration = vibration.reshape(shape + (self._vib_count,))
        self._vib_fourier = [
            FourierExpansion.from_grid(vibration[..., v], self._mass_sizes)
            for v in range(self._vib_count)
        ]
        self._zpe_fourier = None
        if self._vib_count:
            self._zpe_fourier = FourierExpansion.from_grid(
                0.5 * vibration.sum(axis=-1), self._mass_sizes)

    @staticmethod
    def _add_expansions(first: FourierExpansion, second: FourierExpansion) -> FourierExpansion:
        total = dict(first.coefficients)
        for index, value in second.coefficients.items():
            total[index] = total.get(index, 0.0) + value
        return FourierExpansion(total, first.dimension)

    def _mobility_grid(self, shape: Sequence[int]) -> np.ndarray:
        size = len(self.rotations)
        result = np.empty(tuple(shape) + (size, size))
        for (i, j), expansion in self._mobility_fourier.items():
            result[..., i, j] = result[..., j, i] = expansion.to_grid(shape)
        return result

    def _set_grid(self) -> None:
        shape = tuple(r.grid_size for r in self.rotations)
        check_resolution(shape, self._potential_fourier.max_orders, "potential")
        check_resolution(shape, self._mass_sizes, "mobility")
        self._grid_shape = shape
        theta = angular_grid(shape)

        potential = self._potential_fourier.to_grid(shape)
        self._pot_global_min = self._find_minimum(theta, potential)
        self._pot_grid = potential - self._pot_global_min

        mobility = self._mobility_grid(shape)
        determinant = np.linalg.det(mobility)
        if np.any(determinant <= 0):
            raise ConfigurationError("mobility matrix is not positive definite on the grid")
        self._mass_grid = 1.0 / np.sqrt(determinant)
        self._erf_grid = self._erf_fourier.to_grid(shape)

        self._vib_grid = np.empty(shape + (self._vib_count,))
        for v, expansion in enumerate(self._vib_fourier):
            self._vib_grid[..., v] = expansion.to_grid(shape)
        if np.any(self._vib_grid <= 0):
            raise ConfigurationError("interpolated vibrational frequencies are not positive "
                                     "on the phase-space grid; increase mass_size",
                                     key="mass_size")
        self._vib_minimum = self._vib_grid[np.unravel_index(np.argmin(potential), shape)]

        # ω² of the internal rotations from the local curvature
        sigma = np.outer(self.symmetries, self.symmetries)
        curvature = self._potential_fourier.hessian(theta) * sigma
        cholesky = np.linalg.cholesky(mobility)
        self._freq_grid = np.linalg.eigvalsh(
            np.swapaxes(cholesky, -1, -2) @ curvature @ cholesky)
        logger.debug(f"MultiRotor: phase-space grid {shape}")

    def _find_minimum(self, theta: np.ndarray, values: np.ndarray) -> float:
        index = np.unravel_index(np.argmin(values), values.shape)
        result = minimize(
            lambda t: float(self._potential_fourier(t)),
            theta[index],
            jac=self._potential_fourier.gradient,
            method="BFGS",
        )
        return float(min(result.fun, values[index]))

    # ------------------------------------------------------------------
    # quantum levels

    def _basis(self, amom: int) -> np.ndarray:
        return plane_wave_basis(amom, self._quantum_limits)

    def _sparse_matrix(self, basis: np.ndarray, expansion: FourierExpansion) -> sparse.csr_matrix:
        rows, cols, values = coupling_entries(basis, expansion)
        return sparse.csr_matrix((values, (rows, cols)), shape=(len(basis), len(basis)))

    def _hamiltonian(self, basis: np.ndarray) -> np.ndarray:
        rows, cols, values = coupling_entries(basis, self._potential_fourier)
        all_rows, all_cols, all_values = [rows], [cols], [values]
        for (i, j), expansion in self._mobility_fourier.items():
            rows, cols, values = coupling_entries(basis, expansion)
            kinetic = basis[rows, i] * basis[cols, j]
            if i != j:
                kinetic = kinetic + basis[rows, j] * basis[cols, i]
            all_rows.append(rows)
            all_cols.append(cols)
            all_values.append(0.5 * self.symmetries[i] * self.symmetries[j] * kinetic * values)
        size = len(basis)
        # duplicate entries are summed on conversion
        matrix = sparse.coo_matrix(
            (np.concatenate(all_values), (np.concatenate(all_rows), np.concatenate(all_cols))),
            shape=(size, size),
        )
        logger.debug(f"MultiRotor: Hamiltonian of size {size} with {matrix.nnz} stored elements")
        return matrix.toarray()

    def _initial_amom(self) -> int:
        barrier = float(self._pot_grid.max())
        amom = 1
        for k, coupled in enumerate(self.rotations):
            mobility = self._mobility_fourier[(k, k)].constant
            kinetic = 0.5 * self.symmetries[k] ** 2 * mobility
            amom = max(amom, int(np.ceil(np.sqrt((self.level_ener_max + barrier) / kinetic))))
        return min(amom, self.amom_max)

    def _set_energy_levels(self) -> None:
        amom = self._initial_amom()
        previous = None
        iterations = 0
        upper = self._pot_global_min + self.level_ener_max
        while amom <= self.amom_max:
            iterations += 1
            basis = self._basis(amom)
            values, vectors = eigh(self._hamiltonian(basis), subset_by_value=(-np.inf, upper))
            values = values - self._pot_global_min
            if previous is not None and len(values) >= len(previous):
                change = np.max(np.abs(values[:len(previous)] - previous), initial=0.0)
                logger.debug(f"MultiRotor: basis Σ|n| <= {amom} ({len(basis)} plane waves), "
                             f"level change {change:.3e}")
                if change < self.level_tolerance:
                    self._store_levels(basis, values, vectors)
                    return
            previous = values
            amom += 1

        raise ConvergenceError(
            f"MultiRotor levels up to {self.level_ener_max:.4e} Hartree did not converge "
            f"with total angular momentum up to {self.amom_max}",
            iterations=iterations,
            threshold=self.level_tolerance,
        )

    def _store_levels(self, basis: np.ndarray, values: np.ndarray, vectors: np.ndarray) -> None:
        if len(values) < 3:
            raise ConfigurationError(
                "fewer than three quantum levels below the quantum level energy maximum",
                key="level_ener_max",
            )
        self._ground = float(values[0])
        self._levels = values - values[0]
        erf_matrix = self._sparse_matrix(basis, self._erf_fourier)
        self._mean_erf = np.real(np.sum(vectors.conj() * (erf_matrix @ vectors), axis=0))
        self._vib_levels = harmonic_levels(self._vib_minimum, self._levels[-1])

    # ------------------------------------------------------------------
    # classical states and quantum correction

    def _phase_space_factor(self) -> float:
        factor = (2.0 * np.pi) ** (0.5 * len(self.rotations)) / np.prod(self.symmetries)
        if self.external_rotation:
            factor *= EXTERNAL_FACTOR / self.external_symmetry
        return factor

    def _grid_weights(self) -> np.ndarray:
        weights = self._mass_grid
        if self.external_rotation:
            weights = weights * self._erf_grid
        return weights.ravel()

    @staticmethod
    def _vibrational_ladder(shifts: Tuple[int, ...], size: int) -> np.ndarray:
        """Harmonic level counts per energy bin for frequencies given in bins."""
        if min(shifts) < 1:
            raise ConfigurationError("vibrational frequency below the energy grid step",
                                     key="frequencies")
        ladder = np.zeros(size)
        ladder[0] = 1.0
        return direct_count(ladder, shifts, 1.0)

    def _classical_offsets(self, size: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Energies and weights of the terms of the classical phase-space sum.

        Without vibrations every grid point contributes at its potential. With
        vibrations every vibrational level at every grid point contributes at
        V(θ) + Σ n_v ω_v(θ); these energies are binned on the energy grid,
        a point between two grid energies being split linearly between them.

        Args:
            size: Number of energy grid points

        Returns:
            Tuple (energies, weights) above the potential minimum
        """
        potential = self._pot_grid.ravel()
        weights = self._grid_weights() / potential.size
        if not self._vib_count:
            return potential, weights

        step = self.settings.energy_step
        frequencies = self._vib_grid.reshape(-1, self._vib_count)
        histogram = np.zeros(size + 1)
        ladders = {}
        for value, weight, point in zip(potential, weights, frequencies):
            key = tuple(int(round(f / step)) for f in point)
            if key not in ladders:
                ladders[key] = self._vibrational_ladder(key, size)
            position = value / step
            start = int(position)
            if start >= size:
                continue
            fraction = position - start
            ladder = ladders[key][:size - start]
            histogram[start:size] += weight * (1.0 - fraction) * ladder
            histogram[start + 1:size + 1] += weight * fraction * ladder
        logger.debug(f"MultiRotor: {len(ladders)} distinct vibrational ladders on the grid")
        return np.arange(size + 1) * step, histogram

    def _classical_number(self, energies: np.ndarray) -> np.ndarray:
        """Classical number of states at energies above the potential minimum."""
        half_dim = 0.5 * self.dimension
        offsets, weights = self._offsets, self._offset_weights
        chunks = max(1, len(energies) * len(offsets) // 2000000)
        result = []
        for chunk in np.array_split(energies, chunks):
            kinetic = np.maximum(chunk[:, None] - offsets[None, :], 0.0)
            result.append(kinetic ** half_dim @ weights)
        return self._phase_space_factor() * np.concatenate(result) / gamma(half_dim + 1.0)

    def _set_classical_states(self) -> None:
        step = self.settings.energy_step
        energies = np.arange(int(np.ceil((self._ground + self.extra_ener) / step)) + 1) * step
        self._offsets, self._offset_weights = self._classical_offsets(len(energies))
        self._cstates = StatesSpline(energies, self._classical_number(energies), ground=0.0)

    def classical_states(self, energy):
        """Classical number of states at energy relative to the ground level."""
        return self._cstates.number(np.asarray(energy, dtype=float) + self._ground)

    def _torsional_count(self, e: np.ndarray) -> np.ndarray:
        if self.external_rotation:
            shifted = np.maximum(e[:, None] - self._levels[None, :], 0.0)
            return (EXTERNAL_FACTOR / self.external_symmetry / gamma(2.5)
                    * (shifted ** 1.5 @ self._mean_erf))
        return np.searchsorted(self._levels, e, side="right").astype(float)

    def quantum_states(self, energy):
        """
        Quantum number of states at energy relative to the ground level.

        The torsional levels are combined with the harmonic levels of the
        remaining vibrations at the potential minimum. Only complete below
        the quantum level energy maximum.
        """
        e = np.atleast_1d(np.asarray(energy, dtype=float))
        shifted = (e[:, None] - self._vib_levels[None, :]).ravel()
        result = self._torsional_count(shifted).reshape(len(e), -1).sum(axis=1)
        return float(result[0]) if np.ndim(energy) == 0 else result

    def _set_qfactor(self) -> None:
        combined = np.sort((self._levels[:, None] + self._vib_levels[None, :]).ravel())
        combined = combined[combined <= self._levels[-1]]
        distinct = combined[np.concatenate([[True], np.diff(combined) > 1e-12])]
        if len(distinct) < 3:
            raise ConfigurationError("quantum levels are too degenerate to bridge to classical",
                                     key="level_ener_max")
        mids = 0.5 * (distinct[:-1] + distinct[1:])
        ratios = self.quantum_states(mids) / self.classical_states(mids)
        self._qmid = float(mids[0])
        self._qmid_number = float(self.quantum_states(mids[0]))
        # the ground level alone: flat, or the overall rotation power law
        self._qmid_power = 1.5 if self.external_rotation else 0.0
        self._qcross = float(mids[-1])
        self._qcross_ratio = float(ratios[-1])
        self._qfactor = PchipInterpolator(mids, ratios, extrapolate=False)

        step = self.settings.energy_step
        energies = np.arange(int(np.ceil(self.extra_ener / step)) + 1) * step
        numbers = self._corrected_number(energies)
        self._states = StatesSpline(energies, numbers, ground=0.0)
        logger.info(
            f"MultiRotor: quantum correction {ratios[0]:.3f} at {mids[0]:.3e}, "
            f"{self._qcross_ratio:.3f} at crossover {self._qcross:.3e} Hartree"
        )

    def qfactor(self, energy):
        """Quantum correction factor at energy relative to the ground level."""
        e = np.atleast_1d(np.asarray(energy, dtype=float))
        classical = self.classical_states(e)
        result = np.zeros_like(e)
        positive = (e > 0) & (classical > 0)
        result[positive] = self._corrected_number(e[positive]) / classical[positive]
        return float(result[0]) if np.ndim(energy) == 0 else result

    def _corrected_number(self, energies: np.ndarray) -> np.ndarray:
        e = np.asarray(energies, dtype=float)
        result = np.zeros_like(e)
        low = (e > 0) & (e < self._qmid)
        result[low] = self._qmid_number * (e[low] / self._qmid) ** self._qmid_power
        mid = (e >= self._qmid) & (e <= self._qcross)
        result[mid] = self._qfactor(e[mid]) * self.classical_states(e[mid])
        high = e > self._qcross
        decay = 1.0 + (self._qcross_ratio - 1.0) * (self._qcross / e[high]) ** 2
        result[high] = decay * self.classical_states(e[high])
        return result

    # ------------------------------------------------------------------
    # Core interface

    def ground(self) -> float:
        return self._ground

    def number(self, energy):
        return self._states.number(energy)

    def density(self, energy):
        return self._states.density(energy)

    def weight(self, temperature: float) -> float:
        return number_to_weight(
            self.number, temperature, 0.0,
            therm_pow_max=self.settings.therm_pow_max,
            breakpoints=(self._qmid, self._qcross, self._states.emax),
        )

    def energy_levels(self) -> np.ndarray:
        """Torsional quantum levels relative to the ground level (Hartree)."""
        return self._levels.copy()

    def mean_external_factors(self) -> np.ndarray:
        """State-averaged sqrt(det I) of every quantum level."""
        return self._mean_erf.copy()

    @staticmethod
    def _vibrational_weight(frequencies: np.ndarray, temperature: float) -> np.ndarray:
        """Harmonic partition functions above the zero-point level, product over the last axis."""
        return np.prod(1.0 / (1.0 - np.exp(-frequencies / temperature)), axis=-1)

    def quantum_weight(self, temperature: float) -> float:
        """
        Boltzmann sum over the quantum levels times the harmonic partition
        function of the vibrations at the minimum, with classical overall
        rotation if included.
        """
        boltzmann = np.exp(-self._levels / temperature)
        vibration = float(self._vibrational_weight(self._vib_minimum, temperature))
        if not self.external_rotation:
            return float(np.sum(boltzmann)) * vibration
        rotation = EXTERNAL_FACTOR / self.external_symmetry * temperature ** 1.5
        return float(rotation * np.sum(self._mean_erf * boltzmann)) * vibration

    def get_semiclassical_weight(self, temperature: float) -> Tuple[float, float]:
        """
        Classical and path-integral corrected weights relative to the ground level.

        The remaining vibrations enter both as local quantum harmonic
        partition functions, their zero-point energy being part of the
        potential.

        Args:
            temperature: Thermal energy (Hartree)

        Returns:
            Tuple (classical, path_integral)
        """
        boltzmann = np.exp(-(self._pot_grid.ravel() - self._ground) / temperature)
        prefactor = self._phase_space_factor() * temperature ** (0.5 * self.dimension)
        vibration = self._vibrational_weight(self._vib_grid, temperature).ravel()
        weights = self._grid_weights() * boltzmann * vibration
        correction = np.prod(path_integral_factor(self._freq_grid, temperature), axis=-1).ravel()
        return (float(prefactor * np.mean(weights)),
                float(prefactor * np.mean(weights * correction)))

    # ------------------------------------------------------------------
    # angle-resolved queries (torsional angles φ in radians)

    def _theta(self, angles: Sequence[float]) -> np.ndarray:
        angles = np.asarray(angles, dtype=float)
        if angles.shape != (len(self.rotations),):
            raise ValueError(f"expected {len(self.rotations)} torsional angles")
        return angles * self.symmetries

    def potential(self, angles: Sequence[float], derivative: Sequence[int] = None) -> float:
        """
        Potential above its global minimum, or a partial derivative.

        Args:
            angles: Torsional angles φ_k
            derivative: Derivative order per angle

        Returns:
            V(φ) - V_min, or ∂V/∂φ for a derivative
        """
        theta = self._theta(angles)
        if derivative is None or not any(derivative):
            return float(self._potential_fourier(theta)) - self._pot_global_min
        factor = np.prod(self.symmetries ** np.asarray(derivative))
        return float(factor * self._potential_fourier(theta, derivative))

    def potential_gradient(self, angles: Sequence[float]) -> np.ndarray:
        """Gradient of the potential with respect to the torsional angles."""
        return self._potential_fourier.gradient(self._theta(angles)) * self.symmetries

    def mobility(self, angles: Sequence[float]) -> np.ndarray:
        """Internal mobility matrix M(φ), the inverse effective inertia."""
        theta = self._theta(angles)
        size = len(self.rotations)
        result = np.empty((size, size))
        for (i, j), expansion in self._mobility_fourier.items():
            result[i, j] = result[j, i] = float(expansion(theta))
        return result

    def mass(self, angles: Sequence[float]) -> np.ndarray:
        """Effective internal inertia matrix M(φ)⁻¹."""
        return np.linalg.inv(self.mobility(angles))

    def external_rotation_factor(self, angles: Sequence[float]) -> float:
        """sqrt(I1 I2 I3) of the overall rotation."""
        return float(self._erf_fourier(self._theta(angles)))

    def frequencies(self, angles: Sequence[float]) -> np.ndarray:
        """
        Local harmonic frequencies of the internal rotations.

        Imaginary frequencies are returned as negative numbers.
        """
        theta = self._theta(angles)
        curvature = self._potential_fourier.hessian(theta) * np.outer(self.symmetries,
                                                                       self.symmetries)
        cholesky = np.linalg.cholesky(self.mobility(angles))
        values = np.linalg.eigvalsh(cholesky.T @ curvature @ cholesky)
        return np.sign(values) * np.sqrt(np.abs(values))

    def _projection(self, mol: Molecule) -> Tuple[np.ndarray, np.ndarray]:
        """Orthonormal complement of translations, rotations and torsions, and the
        mass-weighted Hessian."""
        if self._hessian is None:
            raise LogicError("MultiRotor was built without a Hessian provider")
        coords, masses = mol.atomic_units()
        size = 3 * mol.num_atoms
        hessian = np.asarray(self._hessian(mol), dtype=float)
        if hessian.shape != (size, size):
            raise ConfigurationError(
                f"Hessian must be {size}x{size}, got {hessian.shape}", key="hessian")
        sqrt_mass = np.sqrt(np.repeat(masses, 3))
        weighted = hessian / np.outer(sqrt_mass, sqrt_mass)

        r = coords - np.sum(masses[:, None] * coords, axis=0) / masses.sum()
        vectors: List[np.ndarray] = []
        for x in range(3):
            vectors.append(np.tile(np.eye(3)[x], mol.num_atoms) * sqrt_mass)
            vectors.append(np.cross(np.eye(3)[x], r).ravel() * sqrt_mass)
        for coupled in self.rotations:
            vectors.append(coupled.rotation.direction(mol).ravel() * sqrt_mass)
        u, s, _ = np.linalg.svd(np.array(vectors).T, full_matrices=True)
        rank = int(np.sum(s > 1e-8 * s.max()))
        return u[:, rank:], weighted

    def _projected_frequencies(self, mol: Molecule) -> np.ndarray:
        complement, weighted = self._projection(mol)
        values = np.linalg.eigvalsh(complement.T @ weighted @ complement)
        return np.sign(values) * np.sqrt(np.abs(values))

    def force_constant_matrix(self, angles: Sequence[float]) -> np.ndarray:
        """
        Mass-weighted Cartesian force constants with overall translation,
        rotation and the internal rotations projected out.

        Raises:
            LogicError: If no Hessian provider was given
        """
        complement, weighted = self._projection(self._geometry(np.asarray(angles, dtype=float)))
        projector = complement @ complement.T
        return projector @ weighted @ projector

    def vibration(self, angles: Sequence[float]) -> np.ndarray:
        """Frequencies of the remaining vibrations at the torsional angles (Hartree)."""
        theta = self._theta(angles)
        return np.array([float(expansion(theta)) for expansion in self._vib_fourier])

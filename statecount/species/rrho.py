"""Rigid-rotor / harmonic-oscillator species built by grid convolution."""

import logging
from typing import List, Optional, Sequence

import numpy as np
from scipy.interpolate import interp1d

from .base import SplineSpecies
from .graph_expansion import GraphExpansion
from ..core.exceptions import ConfigurationError, LogicError
from ..core.modes import StatesMode
from ..cores.base import Core
from ..numerics.convolution import direct_count, shift_add
from ..rotor.base import Rotor
from ..tunneling.base import Tunnel

logger = logging.getLogger(__name__)


class RRHO(SplineSpecies):
    """
    Well or barrier composed of independent degrees of freedom.

    The number of states grid starts from the core, then harmonic
    oscillators are counted in directly, rotor level spectra and
    electronic levels are folded in, the symmetry factor divides the
    result and a tunnel, if any, extends the states below the barrier
    top. The weight is the product of the separate weights.
    """

    def __init__(
        self,
        name: str,
        core: Optional[Core] = None,
        rotors: Sequence[Rotor] = (),
        frequencies: Sequence[float] = (),
        electronic_levels: Sequence[float] = (0.0,),
        electronic_degeneracies: Optional[Sequence[float]] = None,
        symmetry: float = 1.0,
        electronic_energy: Optional[float] = None,
        ground: float = 0.0,
        tunnel: Optional[Tunnel] = None,
        emission_rates: Optional[Sequence[float]] = None,
        graph: Optional[GraphExpansion] = None,
        **kwargs
    ):
        """
        Args:
            name: Species name
            core: Global states model
            rotors: Unprepared internal motion models
            frequencies: Harmonic frequencies (Hartree)
            electronic_levels: Electronic level energies (Hartree)
            electronic_degeneracies: Electronic level degeneracies
            symmetry: Symmetry factor dividing the states
            electronic_energy: Potential minimum energy; when given, zero
                point energies are added to form the ground
            ground: Ground energy used without an electronic energy
            tunnel: Tunneling model for barriers
            emission_rates: Infrared emission rates of the fundamentals
                (atomic units)
            graph: Anharmonic correction applied to the weight
            **kwargs: mode, geometry, mass, settings

        Raises:
            ConfigurationError: For inconsistent input
        """
        super().__init__(name, **kwargs)
        self.core = core
        self.rotors: List[Rotor] = list(rotors)
        self.tunnel = tunnel
        self.graph = graph
        self.symmetry = float(symmetry)
        if self.symmetry <= 0:
            raise ConfigurationError(f"{name}: symmetry factor must be positive", key="symmetry")

        self.frequencies = np.asarray(frequencies, dtype=float)
        self._check_frequencies()
        self._set_electronic(electronic_levels, electronic_degeneracies)

        step = self.settings.energy_step
        size = self.settings.grid_size
        for rotor in self.rotors:
            if not rotor.is_set:
                rotor.set(size * step)

        zero_point = 0.5 * np.sum(self.frequencies) + sum(r.ground() for r in self.rotors)
        if core is not None:
            zero_point += core.ground()
        self.zero_point_energy = float(zero_point)

        real_ground = ground if electronic_energy is None else electronic_energy + zero_point
        self._cutoff = tunnel.cutoff if tunnel is not None else 0.0
        self._ground = float(real_ground) - self._cutoff

        self._emission = None
        if emission_rates is not None:
            self._emission = np.asarray(emission_rates, dtype=float)
            if len(self._emission) != len(self.frequencies):
                raise ConfigurationError(
                    f"{name}: one emission rate per frequency is required", key="emission_rates")

        if self.mode is not StatesMode.NOSTATES:
            self._set_spline(self._number_grid(size, step), step)
            if self._emission is not None:
                self._set_occupations()

        logger.info(
            f"Built {self!r}: ground {self._ground:.6e} Hartree, "
            f"zero point energy {self.zero_point_energy:.6e}"
        )

    def _check_frequencies(self) -> None:
        step = self.settings.energy_step
        for frequency in self.frequencies:
            if frequency <= 0:
                raise ConfigurationError(
                    f"{self.name}: frequencies must be positive", key="frequencies")
            if frequency < step:
                raise ConfigurationError(
                    f"{self.name}: frequency {frequency:.3e} is below the energy step {step:.3e}",
                    key="frequencies")

    def _set_electronic(self, levels, degeneracies) -> None:
        levels = np.asarray(levels, dtype=float)
        if len(levels) == 0:
            raise ConfigurationError(f"{self.name}: no electronic levels", key="electronic_levels")
        degeneracies = (np.ones(len(levels)) if degeneracies is None
                        else np.asarray(degeneracies, dtype=float))
        if degeneracies.shape != levels.shape or np.any(degeneracies <= 0):
            raise ConfigurationError(
                f"{self.name}: electronic degeneracies must be positive, one per level",
                key="electronic_degeneracies")
        self.electronic_levels = levels - levels.min()
        self.electronic_degeneracies = degeneracies

    def _number_grid(self, size: int, step: float) -> np.ndarray:
        """Number of states on E_i = i*step above the ground."""
        if self.core is not None:
            numbers = self.core.number_grid(size, step)
        else:
            numbers = np.ones(size)

        numbers = direct_count(numbers, self.frequencies, step)
        for rotor in self.rotors:
            numbers = rotor.convolute(numbers, step)
        numbers = shift_add(numbers, self.electronic_levels, step, self.electronic_degeneracies)
        numbers /= self.symmetry

        if self.tunnel is not None:
            numbers = self.tunnel.convolute(numbers, step)
        return numbers

    def _set_occupations(self) -> None:
        """Tabulate Σ_v ρ(E - vω)/ρ(E) for every oscillator on the spline grid."""
        step = self.settings.energy_step
        density = np.diff(self._spline.numbers, prepend=0.0) / step
        energies = self._spline.energies
        self._occupations = []
        for frequency in self.frequencies:
            shift = int(round(frequency / step))
            total = density.copy()
            for start in range(min(shift, len(total))):
                total[start::shift] = np.cumsum(total[start::shift])
            lower = total - density
            ratio = np.divide(lower, density, out=np.zeros_like(lower), where=density > 0)
            self._occupations.append(
                interp1d(energies, ratio, kind="linear", fill_value="extrapolate",
                         assume_sorted=True)
            )

    def weight(self, temperature: float) -> float:
        value = self.electronic_weight(temperature)
        if self.core is not None:
            value *= self.core.weight(temperature)
        for rotor in self.rotors:
            value *= rotor.weight(temperature)
        value /= np.prod(-np.expm1(-self.frequencies / temperature))
        if self.tunnel is not None:
            value *= self.tunnel.weight(temperature, self.settings.therm_pow_max)
        if self.graph is not None:
            value *= self.graph.correction(temperature)
        return float(value)

    def electronic_weight(self, temperature: float) -> float:
        """Σ g exp(-ε/T) over electronic levels, divided by the symmetry factor."""
        return float(np.sum(self.electronic_degeneracies
                            * np.exp(-self.electronic_levels / temperature)) / self.symmetry)

    def tunnel_weight(self, temperature: float) -> float:
        if self.tunnel is None:
            return 1.0
        return self.tunnel.correction(temperature, self.settings.therm_pow_max)

    def oscillator_size(self) -> int:
        return 0 if self._emission is None else len(self._emission)

    def oscillator_frequency(self, index: int) -> float:
        if self._emission is None:
            raise LogicError(f"{self.name} has no infrared-active oscillators")
        return float(self.frequencies[index])

    def occupation(self, energy: float, index: int) -> float:
        """Mean quantum number of oscillator ``index`` at absolute energy."""
        if self._emission is None or self._spline is None:
            raise LogicError(f"{self.name} has no infrared-active oscillators")
        if energy <= self._ground:
            return 0.0
        return max(float(self._occupations[index](energy - self._ground)), 0.0)

    def infrared_intensity(self, energy: float, index: int) -> float:
        """Spontaneous emission rate of oscillator ``index`` at absolute energy."""
        occupation = self.occupation(energy, index)
        return float(self._emission[index]) * occupation

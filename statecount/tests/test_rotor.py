"""Tests for free, hindered, and umbrella internal motion models."""

import pytest
import numpy as np
from numpy.testing import assert_allclose
from scipy import integrate

from statecount.core.config import ConfigBlock
from statecount.core.constants import CM_TO_HARTREE, KCAL_TO_HARTREE, KELVIN_TO_HARTREE
from statecount.core.exceptions import (
    ConfigurationError,
    ConvergenceError,
    GeometryError,
    InitializationError,
    LogicError,
)
from statecount.rotor import (
    FreeRotor,
    HinderedRotor,
    Umbrella,
    cosine_moments,
    new_rotor,
    path_integral_factor,
)

B = 10.0 * CM_TO_HARTREE
V0 = 1000.0 * CM_TO_HARTREE


@pytest.fixture
def hindered():
    rotor = HinderedRotor.from_cosine_sine(B, [0.5 * V0, -0.5 * V0])
    rotor.set(2000.0 * CM_TO_HARTREE)
    return rotor


class TestRotorLifecycle:
    """A rotor is prepared once before any level query."""

    def test_query_before_set(self):
        rotor = FreeRotor(B)
        assert not rotor.is_set
        with pytest.raises(InitializationError):
            rotor.ground()
        with pytest.raises(InitializationError):
            rotor.level_size()
        with pytest.raises(InitializationError):
            rotor.weight(1e-3)

    def test_set_twice(self):
        rotor = FreeRotor(B)
        rotor.set(100.0 * B)
        with pytest.raises(LogicError):
            rotor.set(200.0 * B)

    def test_set_needs_positive_range(self):
        with pytest.raises(ConfigurationError):
            FreeRotor(B).set(0.0)

    def test_initialization_error_is_logic_error(self):
        assert issubclass(InitializationError, LogicError)


class TestFreeRotor:
    """Tests for the free internal rotor."""

    def test_levels(self):
        rotor = FreeRotor(B)
        rotor.set(100.5 * B)
        assert rotor.level_size() == 11
        assert_allclose(rotor.energy_level(3), 9.0 * B)
        assert rotor.level_degeneracy(0) == 1.0
        assert rotor.level_degeneracy(4) == 2.0
        assert rotor.ground() == 0.0

    def test_symmetry_thins_levels(self):
        rotor = FreeRotor(B, symmetry=2)
        rotor.set(100.5 * B)
        assert rotor.level_size() == 6
        assert_allclose(rotor.levels, B * (2.0 * np.arange(6)) ** 2)

    def test_weight_classical_limit(self):
        """At T >> B the level sum reaches sqrt(πT/B)/σ."""
        rotor = FreeRotor(B, symmetry=3)
        rotor.set(10.0 * B)
        temperature = 100.0 * B
        assert_allclose(rotor.weight(temperature), rotor.classical_weight(temperature), rtol=1e-6)

    def test_weight_extends_past_prepared_levels(self):
        """The thermal sum is not limited to the prepared energy range."""
        rotor = FreeRotor(B)
        rotor.set(2.0 * B)
        temperature = 100.0 * B
        assert rotor.weight(temperature) > 2.0 * rotor.quantum_weight(temperature)

    def test_convolute(self):
        """Levels 0, 1, 4, 9, 16 (in B) with degeneracies 1, 2, 2, 2, 2."""
        rotor = FreeRotor(B)
        rotor.set(20.0 * B)
        result = rotor.convolute(np.ones(21), B)
        assert result[0] == 1.0
        assert result[5] == 5.0
        assert result[20] == 9.0

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            FreeRotor(-B)
        with pytest.raises(ConfigurationError):
            FreeRotor(B, symmetry=0)


class TestHinderedRotor:
    """Tests for the Fourier-potential hindered rotor."""

    def test_potential(self, hindered):
        assert_allclose(hindered.potential(0.0), 0.0, atol=1e-14)
        assert_allclose(hindered.potential(np.pi), V0)
        assert_allclose(hindered.barrier_height, V0, rtol=1e-4)
        assert_allclose(hindered.potential(0.0, derivative=2), 0.5 * V0)

    def test_frequency(self, hindered):
        """Curvature V0/2 at the minimum gives ω = sqrt(B V0)."""
        assert_allclose(hindered.frequency(), np.sqrt(B * V0))

    def test_levels_match_real_space(self, hindered):
        """Plane-wave and Fourier-grid Hamiltonians agree."""
        grid_levels = hindered.real_space_energy_levels()
        size = hindered.level_size()
        assert size > 5
        assert_allclose(grid_levels[0], hindered.ground(), atol=1e-8)
        assert_allclose(grid_levels[:size] - grid_levels[0], hindered.levels, atol=1e-8)

    def test_low_levels_nearly_harmonic(self, hindered):
        spacing = hindered.energy_level(1) - hindered.energy_level(0)
        assert_allclose(spacing, hindered.frequency(), rtol=0.15)
        assert_allclose(hindered.ground(), 0.5 * hindered.frequency(), rtol=0.1)

    def test_weight_close_to_level_sum(self, hindered):
        """Path integral weight approximates the quantum sum."""
        temperature = 300.0 * KELVIN_TO_HARTREE
        assert_allclose(hindered.weight(temperature),
                        hindered.quantum_weight(temperature), rtol=0.03)

    def test_semiclassical_weights(self, hindered):
        temperature = 300.0 * KELVIN_TO_HARTREE
        classical, corrected = hindered.get_semiclassical_weight(temperature)
        assert corrected < classical

    def test_from_samples(self):
        """Sampled threefold potential is reproduced by its Fourier fit."""
        angles = np.linspace(0.0, 2.0 * np.pi / 3.0, 24, endpoint=False)
        values = 0.5 * V0 * (1.0 - np.cos(3.0 * angles))
        rotor = HinderedRotor.from_samples(B, angles, values, fourier_size=4, symmetry=3)
        assert_allclose(rotor.barrier_height, V0, rtol=1e-3)
        assert_allclose(rotor.potential(np.pi / 3.0), V0, rtol=1e-3)

    def test_convergence_failure(self):
        rotor = HinderedRotor.from_cosine_sine(B, [0.5 * V0, -0.5 * V0],
                                               ham_size_min=3, ham_size_max=5)
        with pytest.raises(ConvergenceError):
            rotor.set(2000.0 * CM_TO_HARTREE)

    def test_grid_too_coarse(self):
        with pytest.raises(ConfigurationError):
            HinderedRotor.from_cosine_sine(B, [0.0] * 10 + [V0], grid_size=11)


class TestUmbrella:
    """Tests for the inversion mode."""

    def test_harmonic_well(self):
        """A stiff x² potential has evenly spaced levels 2 sqrt(B k)."""
        k = 10000.0 * CM_TO_HARTREE
        rotor = Umbrella(B, [0.0, k])
        rotor.set(2000.0 * CM_TO_HARTREE)
        omega = 2.0 * np.sqrt(B * k)
        assert rotor.level_size() == 4
        assert_allclose(np.diff(rotor.levels), omega, rtol=1e-2)
        assert_allclose(rotor.ground(), 0.5 * omega, rtol=1e-2)

    def test_double_well_tunneling_splitting(self):
        """A double well gives nearly degenerate lowest pairs."""
        rotor = Umbrella(B, [0.0, -4000.0 * CM_TO_HARTREE, 4000.0 * CM_TO_HARTREE])
        rotor.set(500.0 * CM_TO_HARTREE)
        levels = rotor.levels
        assert levels[1] < 0.2 * (levels[2] - levels[1])
        assert_allclose(rotor.potential(0.0), 1000.0 * CM_TO_HARTREE, rtol=1e-6)

    def test_needs_two_coefficients(self):
        with pytest.raises(ConfigurationError):
            Umbrella(B, [1.0])

    @pytest.mark.parametrize("power,order", [(0, 3), (1, 2), (2, 1), (4, 5)])
    def test_cosine_moments(self, power, order):
        moments = cosine_moments(4, 5)
        expected, _ = integrate.quad(lambda x: x ** power * np.cos(order * np.pi * x), 0.0, 1.0)
        assert_allclose(moments[power, order], expected, atol=1e-12)

    def test_cosine_moments_zero_order(self):
        assert_allclose(cosine_moments(3, 0)[:, 0], [1.0, 0.5, 1.0 / 3.0, 0.25])


class TestPathIntegralFactor:

    def test_limits(self):
        temperature = 1e-3
        factors = path_integral_factor(np.array([0.0, 4e-6, -4e-6]), temperature)
        assert factors[0] == 1.0
        assert_allclose(factors[1], 1.0 / np.sinh(1.0))
        assert_allclose(factors[2], 1.0 / np.sin(1.0))


class TestNewRotor:
    """Tests for building rotors from configuration."""

    def test_free(self):
        rotor = new_rotor(ConfigBlock({"type": "free", "rotational_constant_cm": 10.0,
                                       "symmetry": 3}))
        assert isinstance(rotor, FreeRotor)
        assert rotor.symmetry == 3
        assert_allclose(rotor.rotational_constant, B)
        assert not rotor.is_set

    def test_hindered_barrier(self):
        rotor = new_rotor(ConfigBlock({"type": "hindered", "rotational_constant_cm": 10.0,
                                       "barrier_kcal": 2.0, "symmetry": 2}))
        assert isinstance(rotor, HinderedRotor)
        assert_allclose(rotor.barrier_height, 2.0 * KCAL_TO_HARTREE, rtol=1e-4)

    def test_hindered_from_geometry(self, h2o2_molecule):
        """Rotational constant follows from the bond rotation of the geometry."""
        rotor = new_rotor(ConfigBlock({"type": "hindered", "bond": [0, 1],
                                       "fourier_cos_kcal": [1.0, -1.0]}),
                          molecule=h2o2_molecule)
        assert rotor.rotation.group == [1, 3]
        assert_allclose(rotor.rotational_constant,
                        rotor.rotation.rotational_constant(h2o2_molecule))

    def test_umbrella(self):
        rotor = new_rotor(ConfigBlock({"type": "umbrella", "kinetic_constant_cm": 10.0,
                                       "potential_kcal": [0.0, 20.0]}))
        assert isinstance(rotor, Umbrella)

    def test_geometry_required(self):
        with pytest.raises(ConfigurationError):
            new_rotor(ConfigBlock({"type": "free"}))
        with pytest.raises(ConfigurationError):
            new_rotor(ConfigBlock({"type": "free", "bond": [0, 1]}))

    def test_invalid_group(self, h2o2_molecule):
        block = ConfigBlock({"type": "free", "group": [9], "axis": [0, 1]})
        with pytest.raises(GeometryError):
            new_rotor(block, molecule=h2o2_molecule)

    def test_unknown_field(self):
        block = ConfigBlock({"type": "free", "rotational_constant_cm": 10.0, "barrier": 1.0})
        with pytest.raises(ConfigurationError):
            new_rotor(block)

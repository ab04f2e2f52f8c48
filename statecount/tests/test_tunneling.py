"""Tests for barrier tunneling: harmonic, Eckart, quartic, and tabulated action."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from statecount.core.config import ConfigBlock, ModelSettings
from statecount.core.constants import CM_TO_HARTREE, KCAL_TO_HARTREE, KELVIN_TO_HARTREE
from statecount.core.exceptions import ConfigurationError
from statecount.tunneling import (
    EckartTunnel,
    HarmonicTunnel,
    QuarticTunnel,
    ReadTunnel,
    new_tunnel,
    solve_well_ratio,
)

FREQUENCY = 1000.0 * CM_TO_HARTREE
CUTOFF = 3.0 * KCAL_TO_HARTREE


def harmonic_table(cutoff_kcal=3.0, frequency=FREQUENCY):
    """Harmonic action tabulated from below the cutoff to above the top."""
    energies = np.linspace(-cutoff_kcal - 1.0, 1.0, 25) * KCAL_TO_HARTREE
    return energies, -2.0 * np.pi * energies / frequency


@pytest.fixture(params=["harmonic", "eckart", "quartic", "read"])
def tunnel(request):
    if request.param == "harmonic":
        return HarmonicTunnel(FREQUENCY, CUTOFF)
    if request.param == "eckart":
        return EckartTunnel(FREQUENCY, CUTOFF, [15.0 * KCAL_TO_HARTREE, 20.0 * KCAL_TO_HARTREE])
    if request.param == "quartic":
        return QuarticTunnel(FREQUENCY, CUTOFF, [15.0 * KCAL_TO_HARTREE, 20.0 * KCAL_TO_HARTREE])
    energies, actions = harmonic_table()
    return ReadTunnel(energies, actions, CUTOFF)


class TestTunnelContract:
    """Behaviour shared by every tunneling model."""

    def test_half_transmission_at_top(self, tunnel):
        """The barrier top sits at the cutoff energy with probability one half."""
        assert_allclose(tunnel.factor(tunnel.cutoff), 0.5, atol=1e-12)

    def test_zero_below_cutoff_origin(self, tunnel):
        assert tunnel.factor(-1e-6) == 0.0
        assert tunnel.density(-1e-6) == 0.0

    def test_factor_increases(self, tunnel):
        energies = np.linspace(0.0, 2.0 * tunnel.cutoff, 40)
        factors = [tunnel.factor(e) for e in energies]
        assert np.all(np.diff(factors) >= 0.0)
        assert 0.0 <= factors[0] < 0.5 < factors[-1] <= 1.0

    def test_density_is_derivative(self, tunnel):
        """Density matches a finite difference of the transmission factor."""
        energy = tunnel.cutoff - 0.5 * KCAL_TO_HARTREE
        h = 1e-7
        numeric = (tunnel.factor(energy + h) - tunnel.factor(energy - h)) / (2.0 * h)
        assert_allclose(tunnel.density(energy), numeric, rtol=1e-4)

    def test_weight_relative_to_cutoff(self, tunnel):
        temperature = 300.0 * KELVIN_TO_HARTREE
        assert_allclose(
            tunnel.weight(temperature),
            tunnel.correction(temperature) * np.exp(-tunnel.cutoff / temperature),
        )

    def test_convolute_step_function(self, tunnel):
        """Folding a unit step accumulates the transmission up to the top."""
        step = 10.0 * CM_TO_HARTREE
        size = int(round(2 * tunnel.cutoff / step))
        result = tunnel.convolute(np.ones(size), step)
        index = int(round(tunnel.cutoff / step))
        expected = tunnel.factor(index * step) - tunnel.factor(0.0)
        assert_allclose(result[index], expected, atol=0.02)
        assert np.all(np.diff(result) >= 0.0)

    def test_correction_rejects_temperature(self, tunnel):
        with pytest.raises(ValueError):
            tunnel.correction(0.0)


class TestHarmonicTunnel:
    """Tests for the parabolic barrier."""

    def test_action_linear(self):
        tunnel = HarmonicTunnel(FREQUENCY, CUTOFF)
        assert_allclose(tunnel.action(0.0), 2.0 * np.pi * CUTOFF / FREQUENCY)
        assert_allclose(tunnel.action(CUTOFF, 1), -2.0 * np.pi / FREQUENCY)

    def test_bell_correction(self):
        """Deep cutoff reproduces Bell's u/sin(u) with u = ν/(2T)."""
        temperature = 500.0 * KELVIN_TO_HARTREE
        tunnel = HarmonicTunnel(FREQUENCY, 10.0 * KCAL_TO_HARTREE)
        u = FREQUENCY / (2.0 * temperature)
        assert_allclose(tunnel.correction(temperature), u / np.sin(u), rtol=1e-3)

    def test_zero_cutoff_is_classical_above_top(self):
        """Without a tunneling region the correction stays close to one."""
        temperature = 2000.0 * KELVIN_TO_HARTREE
        tunnel = HarmonicTunnel(FREQUENCY, 0.0)
        assert 0.4 < tunnel.correction(temperature) < 1.0

    def test_action_ceiling(self):
        tunnel = HarmonicTunnel(FREQUENCY, CUTOFF, action_max=5.0)
        assert tunnel.factor(0.0) == 0.0
        assert tunnel.factor(CUTOFF) == 0.5

    @pytest.mark.parametrize("frequency,cutoff,action_max", [
        (0.0, CUTOFF, 100.0),
        (-FREQUENCY, CUTOFF, 100.0),
        (FREQUENCY, -1.0, 100.0),
        (FREQUENCY, CUTOFF, 0.0),
    ])
    def test_invalid_parameters(self, frequency, cutoff, action_max):
        with pytest.raises(ConfigurationError):
            HarmonicTunnel(frequency, cutoff, action_max=action_max)

    def test_bad_derivative_order(self):
        with pytest.raises(ValueError):
            HarmonicTunnel(FREQUENCY, CUTOFF).action(0.0, 2)


class TestEckartTunnel:
    """Tests for the asymmetric Eckart barrier."""

    def test_transmission_near_half_at_top(self):
        tunnel = EckartTunnel(FREQUENCY, CUTOFF, [20.0 * KCAL_TO_HARTREE] * 2)
        assert_allclose(tunnel.transmission(CUTOFF), 0.5, atol=0.05)

    def test_transmission_bounds(self):
        tunnel = EckartTunnel(FREQUENCY, CUTOFF, [10.0 * KCAL_TO_HARTREE, 25.0 * KCAL_TO_HARTREE])
        for energy in np.linspace(0.0, 3.0 * CUTOFF, 15):
            assert 0.0 <= tunnel.transmission(energy) <= 1.0

    def test_thick_barrier_close_to_harmonic(self):
        """Near the top a deep Eckart barrier looks parabolic."""
        deep = 200.0 * KCAL_TO_HARTREE
        eckart = EckartTunnel(FREQUENCY, CUTOFF, [deep, deep])
        assert_allclose(eckart.action(CUTOFF, 1), -2.0 * np.pi / FREQUENCY, rtol=1e-2)

    def test_requires_two_depths(self):
        with pytest.raises(ConfigurationError):
            EckartTunnel(FREQUENCY, CUTOFF, [10.0 * KCAL_TO_HARTREE])

    def test_cutoff_deeper_than_well(self):
        with pytest.raises(ConfigurationError):
            EckartTunnel(FREQUENCY, 5.0 * KCAL_TO_HARTREE,
                         [4.0 * KCAL_TO_HARTREE, 10.0 * KCAL_TO_HARTREE])


class TestQuarticTunnel:
    """Tests for the quartic double-well barrier."""

    def test_symmetric_ratio(self):
        assert_allclose(solve_well_ratio(1.0), 1.0)

    def test_ratio_equation(self):
        r = solve_well_ratio(0.3)
        assert_allclose(r ** 3 * (r + 2.0) / (2.0 * r + 1.0), 0.3, rtol=1e-8)

    def test_wells_have_requested_depths(self):
        depths = [15.0 * KCAL_TO_HARTREE, 20.0 * KCAL_TO_HARTREE]
        tunnel = QuarticTunnel(FREQUENCY, CUTOFF, depths)
        a, minus_b = tunnel.well_positions
        assert_allclose(tunnel.potential(a), -depths[0], rtol=1e-8)
        assert_allclose(tunnel.potential(minus_b), -depths[1], rtol=1e-8)

    def test_symmetric_has_no_cubic_term(self):
        tunnel = QuarticTunnel(FREQUENCY, CUTOFF, [20.0 * KCAL_TO_HARTREE] * 2)
        assert_allclose(tunnel.v3, 0.0, atol=1e-12)

    def test_wider_than_parabola(self):
        """Quartic flattening makes the barrier thicker than its parabola."""
        quartic = QuarticTunnel(FREQUENCY, CUTOFF, [15.0 * KCAL_TO_HARTREE] * 2)
        harmonic = HarmonicTunnel(FREQUENCY, CUTOFF)
        assert quartic.action(0.0) > harmonic.action(0.0)

    def test_parabolic_near_top(self):
        quartic = QuarticTunnel(FREQUENCY, CUTOFF, [15.0 * KCAL_TO_HARTREE] * 2)
        harmonic = HarmonicTunnel(FREQUENCY, CUTOFF)
        energy = CUTOFF * (1.0 - 1e-3)
        assert_allclose(quartic.action(energy), harmonic.action(energy), rtol=1e-2)

    def test_cutoff_must_stay_above_wells(self):
        with pytest.raises(ConfigurationError):
            QuarticTunnel(FREQUENCY, 20.0 * KCAL_TO_HARTREE, [20.0 * KCAL_TO_HARTREE] * 2)


class TestReadTunnel:
    """Tests for the tabulated action."""

    def test_reproduces_harmonic(self):
        energies, actions = harmonic_table()
        tunnel = ReadTunnel(energies, actions, CUTOFF, frequency=FREQUENCY)
        harmonic = HarmonicTunnel(FREQUENCY, CUTOFF)
        for energy in np.linspace(0.0, 2.0 * CUTOFF, 9):
            assert_allclose(tunnel.factor(energy), harmonic.factor(energy), atol=1e-8)

    def test_frequency_from_slope(self):
        energies, actions = harmonic_table()
        tunnel = ReadTunnel(energies, actions, CUTOFF)
        assert_allclose(tunnel.frequency, FREQUENCY, rtol=1e-6)

    def test_table_must_cover_cutoff(self):
        energies, actions = harmonic_table(cutoff_kcal=1.0)
        with pytest.raises(ConfigurationError):
            ReadTunnel(energies, actions, CUTOFF)

    def test_too_short_table(self):
        with pytest.raises(ConfigurationError):
            ReadTunnel([-4.0, -2.0, 0.0], [3.0, 2.0, 0.0], 0.0)

    def test_increasing_action_rejected(self):
        energies = np.linspace(-5.0, 1.0, 6) * KCAL_TO_HARTREE
        with pytest.raises(ConfigurationError):
            ReadTunnel(energies, np.linspace(0.0, 1.0, 6), CUTOFF)


class TestNewTunnel:
    """Tests for building tunnels from configuration."""

    def test_harmonic(self):
        block = ConfigBlock({"type": "harmonic", "cutoff_kcal": 3.0, "frequency_cm": 1000.0})
        tunnel = new_tunnel(block, ModelSettings(action_max=50.0))
        assert isinstance(tunnel, HarmonicTunnel)
        assert_allclose(tunnel.cutoff, CUTOFF)
        assert_allclose(tunnel.frequency, FREQUENCY)
        assert tunnel.action_max == 50.0

    def test_eckart(self):
        block = ConfigBlock({
            "type": "eckart",
            "cutoff_kcal": 3.0,
            "frequency_cm": 1000.0,
            "well_depths_kcal": [15.0, 20.0],
        })
        tunnel = new_tunnel(block)
        assert isinstance(tunnel, EckartTunnel)
        assert_allclose(tunnel.depths, [15.0 * KCAL_TO_HARTREE, 20.0 * KCAL_TO_HARTREE])

    def test_read(self):
        energies = np.linspace(-4.0, 1.0, 11)
        actions = -2.0 * np.pi * energies * KCAL_TO_HARTREE / FREQUENCY
        block = ConfigBlock({
            "type": "read",
            "cutoff_kcal": 3.0,
            "action_table": np.column_stack([energies, actions]).tolist(),
        })
        tunnel = new_tunnel(block)
        assert isinstance(tunnel, ReadTunnel)
        assert_allclose(tunnel.frequency, FREQUENCY, rtol=1e-6)

    def test_unknown_type(self):
        block = ConfigBlock({"type": "parabola", "cutoff_kcal": 3.0, "frequency_cm": 1000.0})
        with pytest.raises(ConfigurationError):
            new_tunnel(block)

    def test_unknown_field(self):
        block = ConfigBlock({"type": "harmonic", "cutoff_kcal": 3.0,
                             "frequency_cm": 1000.0, "depth": 1.0})
        with pytest.raises(ConfigurationError) as info:
            new_tunnel(block)
        assert info.value.key == "depth"

"""Tests for species models and the species factory."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from statecount.core.config import ConfigBlock
from statecount.core.constants import (
    AU_TIME_TO_SEC,
    CM_TO_HARTREE,
    KCAL_TO_HARTREE,
    KELVIN_TO_HARTREE,
)
from statecount.core.exceptions import (
    ConfigurationError,
    FileIOError,
    GeometryError,
    InitializationError,
    LogicError,
)
from statecount.core.modes import StatesMode
from statecount.numerics.integration import number_to_weight
from statecount.rotor import FreeRotor
from statecount.species import (
    Arrhenius,
    AtomicSpecies,
    BarrierMethod,
    GraphExpansion,
    ReadSpecies,
    RRHO,
    UnionSpecies,
    VarBarrier,
    new_species,
)
from statecount.tunneling import HarmonicTunnel

TEMPERATURE = 200.0 * KELVIN_TO_HARTREE


class TestRRHO:
    """Tests for rigid-rotor harmonic-oscillator species."""

    def test_states_start_at_ground(self, make_rrho):
        species = make_rrho(ground=-0.01)
        assert species.ground() == -0.01
        assert species.states(-0.02) == 0.0
        energies = -0.01 + np.linspace(0.0, 0.02, 50)
        numbers = np.array([species.states(e) for e in energies])
        assert np.all(np.diff(numbers) >= 0)
        assert numbers[-1] > 0

    def test_weight_matches_states(self, make_rrho):
        species = make_rrho(ground=0.005)
        expected = number_to_weight(species.number, TEMPERATURE, species.ground())
        assert_allclose(species.weight(TEMPERATURE), expected, rtol=1e-2)

    def test_weight_is_product(self, make_rrho):
        species = make_rrho()
        frequencies = species.frequencies
        vib = np.prod(1.0 / (1.0 - np.exp(-frequencies / TEMPERATURE)))
        assert_allclose(species.weight(TEMPERATURE), species.core.weight(TEMPERATURE) * vib)

    def test_symmetry_and_electronic_levels(self, make_rrho):
        plain = make_rrho()
        species = make_rrho(symmetry=2.0, electronic_levels=[0.0, 0.0],
                            electronic_degeneracies=[1, 1])
        energy = 0.01
        assert_allclose(species.states(energy), plain.states(energy), rtol=1e-10)
        assert_allclose(species.weight(TEMPERATURE), plain.weight(TEMPERATURE))

    def test_electronic_energy_adds_zero_point(self, make_rrho):
        species = make_rrho(electronic_energy=-0.02)
        assert_allclose(species.zero_point_energy, 0.5 * np.sum(species.frequencies))
        assert_allclose(species.ground(), -0.02 + species.zero_point_energy)

    def test_rotor_folded_in(self, make_rrho):
        plain = make_rrho()
        rotor = FreeRotor(20.0 * CM_TO_HARTREE)
        species = make_rrho(rotors=[rotor])
        assert rotor.is_set
        assert_allclose(species.weight(TEMPERATURE), plain.weight(TEMPERATURE)
                        * rotor.weight(TEMPERATURE))
        energy = 2000.0 * CM_TO_HARTREE
        assert species.states(energy) > plain.states(energy)

    def test_tunnel_extends_below_barrier(self, make_rrho):
        plain = make_rrho()
        tunnel = HarmonicTunnel(1500.0 * CM_TO_HARTREE, 3.0 * KCAL_TO_HARTREE)
        species = make_rrho(tunnel=tunnel)
        assert_allclose(species.real_ground(), 0.0)
        assert_allclose(species.ground(), -3.0 * KCAL_TO_HARTREE)
        assert species.states(-0.5 * KCAL_TO_HARTREE) > 0.0
        energy = 3250.0 * CM_TO_HARTREE
        assert_allclose(species.states(energy), plain.states(energy), rtol=0.1)
        assert_allclose(species.tunnel_weight(TEMPERATURE),
                        tunnel.correction(TEMPERATURE, species.settings.therm_pow_max))
        assert_allclose(species.weight(TEMPERATURE),
                        plain.weight(TEMPERATURE)
                        * tunnel.weight(TEMPERATURE, species.settings.therm_pow_max))

    def test_nostates(self, make_rrho):
        species = make_rrho(mode=StatesMode.NOSTATES)
        with pytest.raises(LogicError):
            species.states(0.01)
        assert species.weight(TEMPERATURE) > 0

    def test_occupation(self, make_rrho):
        species = make_rrho(emission_rates=[1.0, 2.0, 3.0])
        frequency = species.oscillator_frequency(1)
        assert species.oscillator_size() == 3
        assert species.occupation(0.5 * frequency, 1) == 0.0
        assert species.occupation(3.0 * frequency, 1) > 0.0
        assert_allclose(species.infrared_intensity(3.0 * frequency, 1),
                        2.0 * species.occupation(3.0 * frequency, 1))

    def test_without_oscillators(self, make_rrho):
        species = make_rrho()
        assert species.oscillator_size() == 0
        with pytest.raises(LogicError):
            species.oscillator_frequency(0)

    @pytest.mark.parametrize("kwargs", [
        {"frequencies_cm": (1000.0, -1.0)},
        {"frequencies_cm": (1.0,)},
        {"symmetry": 0.0},
        {"emission_rates": [1.0]},
        {"electronic_levels": []},
        {"electronic_levels": [0.0], "electronic_degeneracies": [0.0]},
    ])
    def test_invalid(self, make_rrho, kwargs):
        with pytest.raises(ConfigurationError):
            make_rrho(**kwargs)


class TestUnionSpecies:
    """Tests for conformer unions."""

    def test_identical_members_double(self, make_rrho):
        first, second = make_rrho("a"), make_rrho("b")
        union = UnionSpecies("u", [first, second])
        energy = 0.01
        assert_allclose(union.states(energy), 2.0 * first.states(energy))
        assert_allclose(union.weight(TEMPERATURE), 2.0 * first.weight(TEMPERATURE))

    def test_ground_is_lowest_member(self, make_rrho):
        low, high = make_rrho("low", ground=-0.01), make_rrho("high", ground=0.0)
        union = UnionSpecies("u", [high, low])
        assert union.ground() == -0.01
        expected = (low.weight(TEMPERATURE)
                    + high.weight(TEMPERATURE) * np.exp(-0.01 / TEMPERATURE))
        assert_allclose(union.weight(TEMPERATURE), expected)

    def test_shift_moves_members(self, make_rrho):
        member = make_rrho()
        union = UnionSpecies("u", [member])
        union.shift_ground(0.002)
        assert_allclose(member.ground(), 0.002)
        assert_allclose(union.ground(), 0.002)

    def test_member_shift_moves_common_ground(self, make_rrho):
        low, high = make_rrho("low", ground=-0.01), make_rrho("high", ground=0.0)
        union = UnionSpecies("u", [high, low])
        low.shift_ground(0.02)
        assert_allclose(union.ground(), 0.0)
        assert_allclose(union.real_ground(), 0.0)
        expected = (high.weight(TEMPERATURE)
                    + low.weight(TEMPERATURE) * np.exp(-0.01 / TEMPERATURE))
        assert_allclose(union.weight(TEMPERATURE), expected)

    def test_oscillators_indexed_across_members(self, make_rrho):
        first = make_rrho("a", emission_rates=[1.0, 2.0, 3.0])
        second = make_rrho("b", frequencies_cm=(500.0,), emission_rates=[4.0])
        union = UnionSpecies("u", [first, second])
        assert union.oscillator_size() == 4
        assert_allclose(union.oscillator_frequency(3), 500.0 * CM_TO_HARTREE)
        with pytest.raises(IndexError):
            union.oscillator_frequency(4)

    def test_invalid(self, make_rrho):
        with pytest.raises(ConfigurationError):
            UnionSpecies("u", [])
        with pytest.raises(ConfigurationError):
            UnionSpecies("u", [make_rrho("a"), make_rrho("b", mode=StatesMode.DENSITY)])


class TestVarBarrier:
    """Tests for variational barriers."""

    def test_inner_minimum(self, make_rrho):
        loose = make_rrho("loose", frequencies_cm=(500.0, 800.0))
        tight = make_rrho("tight", frequencies_cm=(1000.0, 1500.0, 3000.0))
        barrier = VarBarrier("b", [loose, tight], settings=tight.settings)
        energy = 2000.0 * CM_TO_HARTREE
        assert_allclose(barrier.states(energy), tight.states(energy), rtol=1e-8)

    @pytest.mark.parametrize("method,factor", [
        (BarrierMethod.STATISTICAL, 1.0),
        (BarrierMethod.DYNAMICAL, 0.5),
    ])
    def test_outer_combination(self, make_rrho, method, factor):
        inner = make_rrho("inner")
        outer = make_rrho("outer")
        barrier = VarBarrier("b", [inner], outer=outer, method=method, settings=inner.settings)
        energy = 2000.0 * CM_TO_HARTREE
        assert_allclose(barrier.states(energy), factor * inner.states(energy), rtol=1e-8)

    def test_ground_is_highest_member(self, make_rrho):
        first, second = make_rrho("a", ground=0.001), make_rrho("c", ground=0.003)
        barrier = VarBarrier("b", [first, second], settings=first.settings)
        assert_allclose(barrier.ground(), 0.003)

    def test_members_count_numbers(self, make_rrho):
        with pytest.raises(ConfigurationError):
            VarBarrier("b", [make_rrho(mode=StatesMode.DENSITY)])
        with pytest.raises(ConfigurationError):
            VarBarrier("b", [])


class TestAtomicSpecies:

    def test_states_and_weight(self):
        atom = AtomicSpecies("O", electronic_levels=[0.0, 100.0 * CM_TO_HARTREE],
                             electronic_degeneracies=[2, 1], ground=0.01)
        assert atom.states(0.005) == 0.0
        assert atom.states(0.01 + 50.0 * CM_TO_HARTREE) == 2.0
        assert atom.states(0.01 + 150.0 * CM_TO_HARTREE) == 3.0
        assert_allclose(atom.weight(TEMPERATURE),
                        2.0 + np.exp(-100.0 * CM_TO_HARTREE / TEMPERATURE))

    def test_density_mode(self):
        atom = AtomicSpecies("O", mode=StatesMode.DENSITY)
        with pytest.raises(LogicError):
            atom.states(0.01)

    def test_mass(self):
        with pytest.raises(ConfigurationError):
            AtomicSpecies("O").mass()
        assert AtomicSpecies("O", mass=10.0).mass() == 10.0


class TestArrhenius:
    """Tests for barriers fitted to modified Arrhenius rates."""

    def _barrier(self, power=1.0, **kwargs):
        return Arrhenius("TS", "W", prefactor=1e-4, power=power,
                         activation_energy=10.0 * KCAL_TO_HARTREE,
                         reference_temperature=300.0 * KELVIN_TO_HARTREE, **kwargs)

    def test_requires_init(self):
        barrier = self._barrier()
        with pytest.raises(InitializationError):
            barrier.ground()
        with pytest.raises(InitializationError):
            barrier.states(0.01)
        with pytest.raises(InitializationError):
            barrier.weight(TEMPERATURE)

    def test_reactant_lookup(self, make_rrho):
        barrier = self._barrier()
        with pytest.raises(ConfigurationError):
            barrier.init({})
        with pytest.raises(ConfigurationError):
            barrier.init({"W": make_rrho(mode=StatesMode.DENSITY)})

    def test_linear_power(self, make_rrho):
        """With n = 1 the barrier states are the reactant states times 2πA/T0."""
        well = make_rrho(ground=-0.02)
        barrier = self._barrier(settings=well.settings)
        barrier.init({"W": well})
        assert_allclose(barrier.ground(), -0.02 + 10.0 * KCAL_TO_HARTREE)
        offset = 3000.0 * CM_TO_HARTREE
        assert_allclose(barrier.states(barrier.ground() + offset),
                        barrier.factor * well.states(well.ground() + offset), rtol=1e-2)
        assert_allclose(barrier.weight(TEMPERATURE), barrier.factor * well.weight(TEMPERATURE))

    def test_rate_reproduced(self, make_rrho):
        """T/(2π) Q‡/Q_r reproduces A (T/T0)^n."""
        well = make_rrho()
        barrier = self._barrier(power=1.5, settings=well.settings)
        barrier.init({"W": well})
        temperature = 500.0 * KELVIN_TO_HARTREE
        rate = (temperature / (2.0 * np.pi) * barrier.weight(temperature) / well.weight(temperature))
        assert_allclose(rate, 1e-4 * (temperature / barrier.reference_temperature) ** 1.5)

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            self._barrier(power=-1.0)
        with pytest.raises(ConfigurationError):
            Arrhenius("TS", "W", prefactor=0.0, power=1.0, activation_energy=0.0,
                      reference_temperature=1e-3)


class TestReadSpecies:
    """Tests for tabulated states."""

    @pytest.fixture
    def table(self):
        kcal = np.arange(0.0, 11.0)
        return kcal * KCAL_TO_HARTREE, 100.0 * kcal ** 2

    def test_number_table(self, table):
        species = ReadSpecies("r", *table, ground=0.01)
        assert_allclose(species.states(0.01 + 2.5 * KCAL_TO_HARTREE), 625.0, rtol=1e-8)
        assert species.states(0.005) == 0.0
        scale = 100.0 / KCAL_TO_HARTREE ** 2
        assert_allclose(species.weight(TEMPERATURE), 2.0 * scale * TEMPERATURE ** 2, rtol=1e-6)

    def test_density_table(self, table):
        energies, numbers = table
        densities = 200.0 * energies / KCAL_TO_HARTREE ** 2
        species = ReadSpecies("r", energies, densities, kind="density")
        assert_allclose(species.number(4.0 * KCAL_TO_HARTREE), 1600.0, rtol=1e-8)

    def test_from_file(self, tmp_path, table):
        path = tmp_path / "states.dat"
        lines = ["# energy (kcal/mol)  number"]
        lines += [f"{e / KCAL_TO_HARTREE:.6f} {n:.6f}" for e, n in zip(*table)]
        path.write_text("\n".join(lines) + "\n")
        species = ReadSpecies.from_file("r", path, energy_scale=KCAL_TO_HARTREE)
        assert_allclose(species.number(3.0 * KCAL_TO_HARTREE), 900.0, rtol=1e-6)

    def test_file_errors(self, tmp_path):
        with pytest.raises(FileIOError):
            ReadSpecies.from_file("r", tmp_path / "missing.dat")
        path = tmp_path / "one_column.dat"
        path.write_text("1.0\n2.0\n3.0\n")
        with pytest.raises(FileIOError):
            ReadSpecies.from_file("r", path)

    def test_invalid_kind(self, table):
        with pytest.raises(ConfigurationError):
            ReadSpecies("r", *table, kind="flux")


class TestGraphExpansion:
    """Tests for the thermal perturbation correction."""

    OMEGA = 1000.0 * CM_TO_HARTREE

    def test_harmonic_is_exact(self):
        assert GraphExpansion([self.OMEGA, 2.0 * self.OMEGA]).correction(TEMPERATURE) == 1.0

    def test_quartic_classical_limit(self):
        f = 50.0 * CM_TO_HARTREE
        graph = GraphExpansion.from_terms([self.OMEGA], quartic_terms=[(0, 0, 0, 0, f)])
        temperature = 100.0 * self.OMEGA
        assert_allclose(graph.first_order(temperature),
                        -f * temperature / (8.0 * self.OMEGA ** 2), rtol=1e-3)

    def test_cubic_classical_limit(self):
        f = 50.0 * CM_TO_HARTREE
        graph = GraphExpansion.from_terms([self.OMEGA], cubic_terms=[(0, 0, 0, f)])
        temperature = 100.0 * self.OMEGA
        assert_allclose(graph.second_order(temperature),
                        5.0 * f ** 2 * temperature / (24.0 * self.OMEGA ** 3), rtol=1e-3)

    def test_resonant_sunset_continuous(self):
        """ω_1 + ω_2 = ω_3 joins the general formula smoothly."""
        base = np.array([1.0, 2.0, 3.0]) * 1e-3
        terms = [(0, 1, 2, 1e-5)]
        exact = GraphExpansion.from_terms(base, cubic_terms=terms)
        shifted = GraphExpansion.from_terms(base + [0.0, 0.0, 1e-9], cubic_terms=terms)
        temperature = 1e-3
        assert_allclose(exact.second_order(temperature), shifted.second_order(temperature),
                        rtol=1e-5)

    def test_symmetric_fill(self):
        graph = GraphExpansion.from_terms([1.0, 2.0], cubic_terms=[(0, 0, 1, 0.5)])
        assert graph.cubic[0, 1, 0] == graph.cubic[1, 0, 0] == 0.5
        assert graph.cubic[1, 1, 0] == 0.0

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            GraphExpansion([])
        with pytest.raises(ConfigurationError):
            GraphExpansion.from_terms([1.0], cubic_terms=[(0, 0, 1, 0.5)])
        with pytest.raises(ConfigurationError):
            GraphExpansion.from_terms([1.0], cubic_terms=[(0, 0, 0.5)])
        with pytest.raises(ValueError):
            GraphExpansion([1.0]).correction(0.0)


def rrho_block(**extra):
    block = {
        "type": "rrho",
        "name": "W",
        "core": {"type": "rigid_rotor", "rotational_constants_cm": [10.0, 0.9, 0.8]},
        "frequencies_cm": [1000.0, 1500.0],
    }
    block.update(extra)
    return block


class TestNewSpecies:
    """Tests for building species from configuration."""

    def test_rrho(self, small_settings):
        species = new_species(ConfigBlock(rrho_block(ground_kcal=-5.0)), small_settings)
        assert isinstance(species, RRHO)
        assert species.name == "W"
        assert_allclose(species.ground(), -5.0 * KCAL_TO_HARTREE)

    def test_rrho_emission_rates_per_second(self, small_settings):
        species = new_species(ConfigBlock(rrho_block(emission_rates=[10.0, 20.0])),
                              small_settings)
        assert species.oscillator_size() == 2
        frequency = species.oscillator_frequency(0)
        energy = species.ground() + 3.0 * frequency
        assert_allclose(species.infrared_intensity(energy, 0),
                        10.0 * AU_TIME_TO_SEC * species.occupation(energy, 0))

    def test_rrho_with_anharmonic_block(self, small_settings):
        block = rrho_block(anharmonic={"cubic_cm": [[0, 0, 0, 50.0]],
                                       "quartic_cm": [[0, 0, 0, 0, 10.0]]})
        species = new_species(ConfigBlock(block), small_settings)
        assert species.graph is not None
        assert species.graph.cubic[0, 0, 0] == 50.0 * CM_TO_HARTREE

    def test_rrho_with_tunnel(self, small_settings):
        block = rrho_block(tunnel={"type": "harmonic", "cutoff_kcal": 2.0,
                                   "frequency_cm": 1000.0})
        species = new_species(ConfigBlock(block), small_settings)
        assert_allclose(species.real_ground() - species.ground(), 2.0 * KCAL_TO_HARTREE)

    def test_union(self, small_settings):
        block = {"type": "union", "name": "U", "members": [rrho_block(), rrho_block()]}
        species = new_species(ConfigBlock(block), small_settings)
        assert isinstance(species, UnionSpecies)
        assert [m.name for m in species.members] == ["U[0]", "U[1]"]

    def test_var_barrier(self, small_settings):
        block = {"type": "var_barrier", "name": "VB", "inner": [rrho_block()],
                 "outer": rrho_block(), "method": "dynamical"}
        species = new_species(ConfigBlock(block), small_settings)
        assert isinstance(species, VarBarrier)
        assert species.method is BarrierMethod.DYNAMICAL
        assert species.outer.name == "VB.outer"

    def test_atomic(self):
        block = {"type": "atomic", "name": "O", "electronic_levels_cm": [0.0, 158.0],
                 "electronic_degeneracies": [5, 3], "mass_amu": 16.0}
        species = new_species(ConfigBlock(block))
        assert isinstance(species, AtomicSpecies)
        assert_allclose(species.levels, [0.0, 158.0 * CM_TO_HARTREE])

    def test_arrhenius(self):
        block = {"type": "arrhenius", "name": "TS", "reactant": "W", "prefactor": 1e13,
                 "power": 0.5, "activation_energy_kcal": 12.0}
        species = new_species(ConfigBlock(block))
        assert isinstance(species, Arrhenius)
        assert_allclose(species.prefactor, 1e13 * AU_TIME_TO_SEC)
        assert_allclose(species.reference_temperature, 298.15 * KELVIN_TO_HARTREE)

    def test_read(self):
        block = {"type": "read", "name": "R", "states_table": [[1.0, 10.0], [2.0, 40.0],
                                                               [3.0, 90.0]]}
        species = new_species(ConfigBlock(block))
        assert_allclose(species.number(2.0 * KCAL_TO_HARTREE), 40.0)

    def test_mode_override(self, small_settings):
        species = new_species(ConfigBlock(rrho_block(mode="density")), small_settings)
        assert species.mode is StatesMode.DENSITY
        forced = new_species(ConfigBlock(rrho_block()), small_settings, name="X",
                             mode=StatesMode.NOSTATES)
        assert forced.mode is StatesMode.NOSTATES
        assert forced.name == "X"

    def test_geometry(self, small_settings):
        geometry = [["O", 0.0, 0.0, 0.0], ["H", 0.96, 0.0, 0.0]]
        species = new_species(ConfigBlock(rrho_block(geometry=geometry)), small_settings)
        assert species.geometry.num_atoms == 2
        assert species.mass() > 0

    @pytest.mark.parametrize("block", [
        {"type": "plasma", "name": "X"},
        {"type": "atomic"},
        {"type": "atomic", "name": "O", "colour": "red"},
        {"type": "atomic", "name": "O", "geometry": [["O", 0.0]]},
    ])
    def test_invalid(self, block):
        with pytest.raises(ConfigurationError):
            new_species(ConfigBlock(block))

    def test_atoms_too_close(self):
        block = {"type": "atomic", "name": "O2",
                 "geometry": [["O", 0.0, 0.0, 0.0], ["O", 0.0, 0.0, 0.1]]}
        with pytest.raises(GeometryError):
            new_species(ConfigBlock(block))

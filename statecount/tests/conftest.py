"""Pytest fixtures for statecount tests."""

import pytest
import numpy as np
from statecount.molecule.structure import Molecule
from statecount.core.config import ModelSettings
from statecount.core.constants import CM_TO_HARTREE, KCAL_TO_HARTREE
from statecount.cores.rigid_rotor import RigidRotor
from statecount.species.rrho import RRHO


@pytest.fixture
def h2o2_molecule():
    """Standard H2O2 molecule at equilibrium dihedral (111.5°)."""
    return Molecule.h2o2(dihedral=111.5)


@pytest.fixture
def h2o2_cis():
    """H2O2 at cis configuration (0°)."""
    return Molecule.h2o2(dihedral=0.0)


@pytest.fixture
def small_settings():
    """Coarse grid (10 cm-1 up to 20 kcal/mol) that keeps species construction fast."""
    return ModelSettings(energy_limit=20.0 * KCAL_TO_HARTREE, energy_step=10.0 * CM_TO_HARTREE)


@pytest.fixture
def rotational_constants():
    """Asymmetric top rotational constants in Hartree."""
    return np.array([10.0, 0.9, 0.8]) * CM_TO_HARTREE


@pytest.fixture
def make_rrho(small_settings, rotational_constants):
    """Factory for small rigid-rotor harmonic-oscillator species on the coarse grid."""

    def _make(name="well", frequencies_cm=(1000.0, 1500.0, 3000.0), **kwargs):
        kwargs.setdefault("settings", small_settings)
        core = RigidRotor(rotational_constants, symmetry=1.0, settings=kwargs["settings"])
        return RRHO(
            name,
            core=core,
            frequencies=np.asarray(frequencies_cm) * CM_TO_HARTREE,
            **kwargs
        )

    return _make


@pytest.fixture
def model_description():
    """Two wells joined by a harmonic-tunneling barrier plus a dummy product channel."""

    def rrho(ground_kcal, frequencies):
        return {
            "type": "rrho",
            "core": {
                "type": "rigid_rotor",
                "rotational_constants_cm": [10.0, 0.9, 0.8],
            },
            "frequencies_cm": frequencies,
            "ground_kcal": ground_kcal,
        }

    collision = {
        "epsilons_cm": [50.0, 200.0],
        "sigmas_angstrom": [3.5, 4.5],
        "masses_amu": [28.0, 34.0],
    }
    kernel = {"factors_cm": [200.0], "powers": [0.85]}

    return {
        "settings": {"energy_limit_kcal": 20.0, "energy_step_cm": 10.0},
        "wells": [
            {
                "name": "W1",
                "species": rrho(-12.0, [1000.0, 1500.0, 3000.0]),
                "kernels": [kernel],
                "collisions": [collision],
            },
            {
                "name": "W2",
                "species": rrho(-8.0, [900.0, 1400.0, 3100.0]),
                "kernels": [kernel],
                "collisions": [collision],
                "escape": {"type": "const", "rate_per_sec": 1.0e3},
            },
        ],
        "bimolecular": [
            {"name": "P", "dummy": True, "ground_kcal": -20.0},
        ],
        "barriers": [
            {
                "name": "B1",
                "from": "W1",
                "to": "W2",
                "species": {
                    **rrho(0.0, [800.0, 1200.0]),
                    "tunnel": {"type": "harmonic", "cutoff_kcal": 3.0, "frequency_cm": 1500.0},
                },
            },
            {
                "name": "B2",
                "from": "W2",
                "to": "P",
                "species": {
                    "type": "arrhenius",
                    "reactant": "W2",
                    "prefactor": 1.0e13,
                    "power": 1.0,
                    "activation_energy_kcal": 10.0,
                },
            },
        ],
    }

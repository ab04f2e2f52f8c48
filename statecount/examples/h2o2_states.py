#!/usr/bin/env python3
"""
Example: H2O2 Number of States with a Hindered Torsion

This script demonstrates the statecount package by building the
hydrogen peroxide well from a configuration dictionary.

Key features demonstrated:
- Rigid-rotor core from a geometry
- Hindered internal rotation with a cosine barrier
- Beyer-Swinehart counting of the remaining vibrations
- Number of states and partition function queries
- Plotting of N(E) and Q(T)
"""

import logging

import numpy as np

from statecount.core.config import ConfigBlock, ModelSettings
from statecount.core.constants import HARTREE_TO_KCAL, KCAL_TO_HARTREE, KELVIN_TO_HARTREE
from statecount.molecule.structure import Molecule
from statecount.species.factory import new_species

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def h2o2_config() -> dict:
    """Well description in conventional units."""
    molecule = Molecule.h2o2()
    rows = [[a.symbol, *a.coordinates.tolist()] for a in molecule.atoms]
    return {
        "type": "rrho",
        "name": "H2O2",
        "geometry": rows,
        "core": {"type": "rigid_rotor", "symmetry": 2},
        "frequencies_cm": [3610.0, 3609.0, 1394.0, 1266.0, 866.0],
        "rotors": [{
            "type": "hindered",
            "bond": [0, 1],
            "symmetry": 1,
            "barrier_kcal": 1.1,
        }],
        "electronic_energy_kcal": 0.0,
    }


def run_h2o2_example(plot: bool = False):
    """
    Build the H2O2 well and report its state counts.

    Args:
        plot: If True, save N(E) and Q(T) plots
    """
    print("=" * 70)
    print("H2O2 Number of States")
    print("=" * 70)

    settings = ModelSettings(energy_limit=40.0 * KCAL_TO_HARTREE)
    species = new_species(ConfigBlock(h2o2_config(), "H2O2"), settings)

    print(f"\nGround energy (ZPE): {species.ground() * HARTREE_TO_KCAL:.3f} kcal/mol")
    print(f"{'E (kcal/mol)':>14} {'N(E)':>14}")
    for energy in (1.0, 5.0, 10.0, 20.0, 30.0):
        value = species.states(species.ground() + energy * KCAL_TO_HARTREE)
        print(f"{energy:>14.1f} {value:>14.4e}")

    print(f"\n{'T (K)':>14} {'Q(T)':>14}")
    for temperature in np.arange(300.0, 1501.0, 300.0):
        print(f"{temperature:>14.0f} {species.weight(temperature * KELVIN_TO_HARTREE):>14.4e}")

    if plot:
        from statecount.visualization import plot_states, plot_weight
        fig, _ = plot_states(species)
        fig.savefig("h2o2_states.png", dpi=150)
        fig, _ = plot_weight(species)
        fig.savefig("h2o2_weight.png", dpi=150)
        logger.info("Saved h2o2_states.png and h2o2_weight.png")


if __name__ == "__main__":
    run_h2o2_example(plot=True)

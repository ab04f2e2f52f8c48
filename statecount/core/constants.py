"""Physical constants and unit conversion factors.

All model objects work in atomic units: energies, frequencies (as h*nu),
rotational constants and temperatures (as k_B*T) are in Hartree, lengths in
Bohr and masses in electron masses.
"""

import math

# Fundamental constants (CODATA 2018 values)

# Planck constant
H_SI = 6.62607015e-34  # J·s (exact)
HBAR_SI = 1.054571817e-34  # J·s (ℏ = h/2π)

# Boltzmann constant
BOLTZMANN_SI = 1.380649e-23  # J/K (exact)
BOLTZMANN_HARTREE = 3.1668115634556e-6  # Hartree/K (kB in atomic units)

# Speed of light
C_SI = 299792458  # m/s (exact)

# Avogadro's number
AVOGADRO = 6.02214076e23  # mol^-1 (exact)

# Atomic mass unit
AMU_SI = 1.66053906660e-27  # kg
AMU_TO_KG = AMU_SI

# Atomic mass unit in electron masses
AMU_TO_AU = 1822.888486209
AU_TO_AMU = 1.0 / AMU_TO_AU

# Unit conversions - Energy

HARTREE_TO_JOULE = 4.3597447222071e-18  # J
JOULE_TO_HARTREE = 1.0 / HARTREE_TO_JOULE

HARTREE_TO_KCAL = 627.5094740631  # kcal/mol
KCAL_TO_HARTREE = 1.0 / HARTREE_TO_KCAL

HARTREE_TO_KJ = 2625.4996394799  # kJ/mol
KJ_TO_HARTREE = 1.0 / HARTREE_TO_KJ

HARTREE_TO_EV = 27.211386245988  # eV
EV_TO_HARTREE = 1.0 / HARTREE_TO_EV

HARTREE_TO_CM = 219474.6313632  # cm^-1
CM_TO_HARTREE = 1.0 / HARTREE_TO_CM

# Temperature as energy
KELVIN_TO_HARTREE = BOLTZMANN_HARTREE
HARTREE_TO_KELVIN = 1.0 / KELVIN_TO_HARTREE

# Unit conversions - Length

BOHR_TO_ANGSTROM = 0.529177210903  # Å
ANGSTROM_TO_BOHR = 1.0 / BOHR_TO_ANGSTROM

BOHR_TO_METER = 5.29177210903e-11  # m
BOHR_TO_CM = BOHR_TO_METER * 100.0

# Unit conversions - Angle
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi

# Unit conversions - Time
AU_TIME_TO_SEC = 2.4188843265857e-17  # s
SEC_TO_AU_TIME = 1.0 / AU_TIME_TO_SEC

# Rate coefficient: bohr^3 / au time -> cm^3 / s
AU_RATE_TO_CM3_PER_SEC = BOHR_TO_CM ** 3 / AU_TIME_TO_SEC

# Reference temperature of temperature-dependent energy transfer parameters
REFERENCE_TEMPERATURE = 300.0 * KELVIN_TO_HARTREE

# Atomic and isotopic masses (in AMU)
ATOMIC_MASSES = {
    "H": 1.00782503207,
    "D": 2.01410177785,
    "T": 3.0160492777,
    "He": 4.00260325415,
    "Li": 7.016004548,
    "B": 11.0093054,
    "C": 12.0000000,
    "13C": 13.00335483778,
    "N": 14.0030740048,
    "15N": 15.00010889823,
    "O": 15.99491461956,
    "18O": 17.9991610,
    "F": 18.99840322,
    "Ne": 19.99244017542,
    "Si": 27.9769265325,
    "P": 30.97376163,
    "S": 31.97207100,
    "Cl": 34.96885268,
    "Ar": 39.9623831225,
    "Br": 78.9183371,
    "Kr": 83.911507,
}

# Covalent radii (in Angstrom) for bond detection
COVALENT_RADII = {
    "H": 0.31,
    "He": 0.28,
    "Li": 1.28,
    "B": 0.84,
    "C": 0.76,
    "N": 0.71,
    "O": 0.66,
    "F": 0.57,
    "Ne": 0.58,
    "Si": 1.11,
    "P": 1.07,
    "S": 1.05,
    "Cl": 1.02,
    "Ar": 1.06,
    "Br": 1.20,
    "Kr": 1.16,
}

# Isotope labels share the radius of their element
ISOTOPE_ELEMENTS = {"D": "H", "T": "H", "13C": "C", "15N": "N", "18O": "O"}


def atomic_mass(symbol: str) -> float:
    """
    Look up the mass of an element or isotope label.

    Args:
        symbol: Element symbol ("C", "H") or isotope label ("D", "13C")

    Returns:
        Mass in AMU

    Raises:
        KeyError: If the symbol is not tabulated
    """
    if symbol in ATOMIC_MASSES:
        return ATOMIC_MASSES[symbol]
    normalized = symbol.capitalize()
    if normalized in ATOMIC_MASSES:
        return ATOMIC_MASSES[normalized]
    raise KeyError(f"Unknown atom symbol: {symbol}")


def covalent_radius(symbol: str) -> float:
    """Covalent radius in Angstrom of an element or isotope label."""
    element = ISOTOPE_ELEMENTS.get(symbol, symbol)
    if element not in COVALENT_RADII:
        element = element.capitalize()
    return COVALENT_RADII[element]

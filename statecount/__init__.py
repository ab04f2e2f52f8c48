"""
statecount - Energy-resolved state counting for unimolecular kinetics

A modular package for computing number and density of states and
partition functions of wells and barriers, featuring rigid-rotor and
phase-space cores, coupled internal rotors, one-dimensional hindered
rotors, semiclassical tunneling corrections, and reaction network
assembly from JSON model descriptions.
"""

__version__ = "0.1.0"

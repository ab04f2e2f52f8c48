"""Parabolic barrier tunneling."""

import numpy as np

from .base import Tunnel


class HarmonicTunnel(Tunnel):
    """
    Parabolic (inverted harmonic) barrier.

    The action is linear in energy:

        S(E) = 2π (cutoff - E) / ν

    which reproduces Bell's transmission 1/(1 + exp(2π(V - E)/ν)).
    """

    name = "Harmonic"

    def action(self, energy: float, derivative: int = 0) -> float:
        self._check_derivative(derivative)
        if derivative:
            return -2.0 * np.pi / self.frequency
        return 2.0 * np.pi * (self.cutoff - energy) / self.frequency

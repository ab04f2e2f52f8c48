"""Asymmetric Eckart barrier with analytical transmission."""

import logging
from typing import Sequence

import numpy as np

from .base import Tunnel
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LN2 = np.log(2.0)


def _log_cosh(x: float) -> float:
    x = abs(x)
    return x + np.log1p(np.exp(-2.0 * x)) - _LN2


def _log_sinh(x: float) -> float:
    """ln sinh(x) for x > 0."""
    return x + np.log1p(-np.exp(-2.0 * x)) - _LN2


class EckartTunnel(Tunnel):
    """
    Eckart barrier parameterized by the imaginary frequency and well depths.

    With x = E - cutoff the energy relative to the barrier top and V1, V2
    the well depths below the top, the exact transmission is

        P = [cosh 2π(a1+a2) - cosh 2π(a1-a2)] / [cosh 2π(a1+a2) + cosh 2πd]

    where

        a_i = 2 sqrt(V_i + x) sqrt(V1 V2) / (ν (sqrt V1 + sqrt V2))
        d   = sqrt(4 V1 V2 / ν² - 1/4)

    and d turns imaginary (cosh -> cos) for very thin barriers. The action
    is S = ln(1/P - 1), shifted by its value at the barrier top so that the
    transmission there is exactly one half; for realistic barriers the
    shift is far below the quadrature tolerance.
    """

    name = "Eckart"

    def __init__(self, frequency: float, cutoff: float, depths: Sequence[float], **kwargs):
        """
        Initialize Eckart barrier.

        Args:
            frequency: Imaginary barrier frequency magnitude (Hartree)
            cutoff: Depth below the barrier top where tunneling starts (Hartree)
            depths: The two well depths measured down from the barrier top (Hartree)
            **kwargs: Passed to Tunnel
        """
        super().__init__(frequency, cutoff, **kwargs)
        depths = [float(v) for v in depths]
        if len(depths) != 2:
            raise ConfigurationError("Eckart barrier needs exactly two well depths", key="depths")
        if min(depths) <= 0:
            raise ConfigurationError("Eckart well depths must be positive", key="depths")
        if self.cutoff > min(depths):
            raise ConfigurationError(
                f"cutoff {self.cutoff:.4e} is deeper than the shallower well {min(depths):.4e}",
                key="cutoff",
            )
        self.depths = tuple(depths)

        v1, v2 = depths
        self._scale = 2.0 * np.sqrt(v1 * v2) / (self.frequency * (np.sqrt(v1) + np.sqrt(v2)))
        d_sq = 4.0 * v1 * v2 / self.frequency ** 2 - 0.25
        self._imaginary_d = d_sq < 0
        self._two_pi_d = 2.0 * np.pi * np.sqrt(abs(d_sq))
        if self._imaginary_d:
            logger.info("Eckart barrier is thin: imaginary d branch in use")

        self._top_action = 0.0
        self._top_action = self._raw_action(0.0)
        logger.debug(f"Eckart action at barrier top before shift: {self._top_action:.3e}")

    def _coefficients(self, x: float):
        k1 = max(self.depths[0] + x, 0.0)
        k2 = max(self.depths[1] + x, 0.0)
        return self._scale * np.sqrt(k1), self._scale * np.sqrt(k2), k1, k2

    def _log_d_term(self, b: float) -> float:
        """ln(cosh 2πd + cosh b)."""
        if self._imaginary_d:
            return abs(b) + np.log(np.cos(self._two_pi_d) * np.exp(-abs(b))
                                   + 0.5 * (1.0 + np.exp(-2.0 * abs(b))))
        c = self._two_pi_d
        big = max(c, abs(b))
        return big + np.log(0.5 * (np.exp(c - big) + np.exp(-c - big)
                                   + np.exp(abs(b) - big) + np.exp(-abs(b) - big)))

    def _raw_action(self, x: float) -> float:
        a1, a2, _, _ = self._coefficients(x)
        if a1 <= 0.0 or a2 <= 0.0:
            return np.inf
        b = 2.0 * np.pi * (a1 - a2)
        return (self._log_d_term(b) - _LN2
                - _log_sinh(2.0 * np.pi * a1) - _log_sinh(2.0 * np.pi * a2))

    def _raw_derivative(self, x: float) -> float:
        a1, a2, k1, k2 = self._coefficients(x)
        if a1 <= 0.0 or a2 <= 0.0:
            return -np.inf
        da1 = a1 / (2.0 * k1)
        da2 = a2 / (2.0 * k2)
        b = 2.0 * np.pi * (a1 - a2)
        if self._imaginary_d:
            log_c = np.log(abs(np.cos(self._two_pi_d)) + 1e-300)
            sign_c = np.sign(np.cos(self._two_pi_d))
        else:
            log_c = _log_cosh(self._two_pi_d)
            sign_c = 1.0
        # sinh(b) / (c + cosh(b)) evaluated without overflow
        ratio = np.tanh(b) / (1.0 + sign_c * np.exp(log_c - _log_cosh(b)))
        coth1 = 1.0 / np.tanh(2.0 * np.pi * a1)
        coth2 = 1.0 / np.tanh(2.0 * np.pi * a2)
        return 2.0 * np.pi * (ratio * (da1 - da2) - coth1 * da1 - coth2 * da2)

    def action(self, energy: float, derivative: int = 0) -> float:
        self._check_derivative(derivative)
        x = energy - self.cutoff
        if derivative:
            return self._raw_derivative(x)
        return self._raw_action(x) - self._top_action

    def transmission(self, energy: float) -> float:
        """Exact Eckart transmission without the barrier-top shift."""
        s = self._raw_action(energy - self.cutoff)
        if not np.isfinite(s):
            return 0.0
        return float(1.0 / (1.0 + np.exp(min(s, 700.0))))

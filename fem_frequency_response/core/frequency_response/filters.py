"""
Elementary Transfer Functions

Analytic SISO transfer functions of the actuator electronics, evaluated on
the same frequency grids as the structural model:

1. **FirstOrderLowPass**: band-limited rate (derivative) term with a
   4 kHz corner frequency

$$H(j\\omega) = \\frac{j\\omega}{1 + j\\omega / \\omega_c}$$

2. **BesselFilter**: 4th-order Bessel low-pass filter, 2.2 kHz

$$H(j\\omega) = \\frac{\\beta_0 \\omega_b^4}{\\sum_{i=0}^{4} \\beta_i \\omega_b^{4-i} (j\\omega)^i}$$

3. **PICompensator**: proportional-integral compensator

$$H(j\\omega) = k_p + \\frac{k_i}{j\\omega}$$

(*ASM segment modal transfer function*, Eqs. 1-3).

Every filter also converts to a python-control ``TransferFunction``.
"""

import numpy as np
import control as ctrl
from abc import ABC, abstractmethod
from typing import Sequence, Union

from .frequency_sampler import FrequencyGrid, SamplingPolicy, sample_frequencies


class ElementaryTransferFunction(ABC):
    """Base class of the analytic transfer functions."""

    @abstractmethod
    def j_omega(self, jw: Union[complex, np.ndarray]) -> Union[complex, np.ndarray]:
        """
        Frequency response at the imaginary angular frequency ``jw`` [rad/s].

        Accepts a scalar or an array.
        """

    @abstractmethod
    def to_control(self) -> ctrl.TransferFunction:
        """python-control transfer function."""

    def frequency_response(
        self,
        frequencies: Union[FrequencyGrid, SamplingPolicy, float, Sequence[float]]
    ) -> np.ndarray:
        """
        Frequency response over a frequency grid [Hz].

        Returns
        -------
        np.ndarray
            Complex response, sample i belongs to grid frequency i
        """
        grid = sample_frequencies(frequencies)
        return np.asarray(self.j_omega(1j * grid.frequencies_rad), dtype=np.complex128)

    def j_omega_first(self, jw):
        """First time derivative of the response."""
        return self.j_omega(jw) * jw

    def j_omega_second(self, jw):
        """Second time derivative of the response."""
        return self.j_omega_first(jw) * jw


class FirstOrderLowPass(ElementaryTransferFunction):
    """First order low-pass (band-limited derivative)."""

    def __init__(self, corner_frequency_hz: float = 4e3):
        self.corner_frequency_hz = corner_frequency_hz

    @property
    def corner_frequency_rad(self) -> float:
        return 2.0 * np.pi * self.corner_frequency_hz

    def j_omega(self, jw):
        return jw / (1.0 + jw / self.corner_frequency_rad)

    def to_control(self) -> ctrl.TransferFunction:
        return ctrl.tf([1.0, 0.0], [1.0 / self.corner_frequency_rad, 1.0])

    def __repr__(self) -> str:
        return f"FirstOrderLowPass(corner_frequency_hz={self.corner_frequency_hz})"


class BesselFilter(ElementaryTransferFunction):
    """
    4th-order Bessel filter.

    Parameters
    ----------
    cutoff_frequency_hz : float
        Filter frequency [Hz]
    beta : Sequence[float]
        Polynomial coefficients β_0 ... β_4 (ascending powers of jω)
    """

    BETA = (1.0, 3.20108587, 4.39155033, 3.12393994, 1.0)

    def __init__(self, cutoff_frequency_hz: float = 2.2e3, beta: Sequence[float] = BETA):
        if len(beta) != 5:
            raise ValueError(f"a 4th-order filter needs 5 coefficients, got {len(beta)}")
        self.cutoff_frequency_hz = cutoff_frequency_hz
        self.beta = tuple(float(b) for b in beta)

    @property
    def w_bf(self) -> float:
        return 2.0 * np.pi * self.cutoff_frequency_hz

    def _denominator(self) -> np.ndarray:
        """Denominator coefficients, descending powers of s."""
        return np.array([b * self.w_bf ** (4 - i) for i, b in enumerate(self.beta)])[::-1]

    def j_omega(self, jw):
        num = self.beta[0] * self.w_bf ** 4
        return num / np.polyval(self._denominator(), jw)

    def to_control(self) -> ctrl.TransferFunction:
        return ctrl.tf([self.beta[0] * self.w_bf ** 4], self._denominator().tolist())

    def __repr__(self) -> str:
        return f"BesselFilter(cutoff_frequency_hz={self.cutoff_frequency_hz})"


class PICompensator(ElementaryTransferFunction):
    """Proportional-integral compensator."""

    def __init__(self, kp: float = 7e4, ki: float = 5e5):
        self.kp = kp
        self.ki = ki

    def j_omega(self, jw):
        return self.kp + self.ki / jw

    def to_control(self) -> ctrl.TransferFunction:
        return ctrl.tf([self.kp, self.ki], [1.0, 0.0])

    def __repr__(self) -> str:
        return f"PICompensator(kp={self.kp}, ki={self.ki})"

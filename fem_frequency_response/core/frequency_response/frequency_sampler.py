"""
Frequency Sampling Policies

The transfer functions are evaluated on a FrequencyGrid produced by one of
two policies:

1. **ExplicitFrequencies**: a user-given set of frequencies [Hz], used
   verbatim. The order is the order of the output samples, so the set is
   neither sorted nor de-duplicated.
2. **LogSpaceRange**: ``n`` frequencies evenly spaced in log10 scale over
   ``[lower, upper]`` (both included):

$$f_i = 10^{\\log_{10} l + i \\frac{\\log_{10} u - \\log_{10} l}{n - 1}}, \\quad i = 0 \\dots n-1$$

Logarithmic spacing is the standard for frequency responses spanning
several decades (Bode plots).
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

from ..errors import InvalidFrequency, InvalidRange


@dataclass(frozen=True)
class ExplicitFrequencies:
    """
    Explicit set of frequencies.

    Attributes
    ----------
    values : Tuple[float, ...]
        Frequencies [Hz] in evaluation order
    """
    values: Tuple[float, ...]

    def __init__(self, values: Union[float, Sequence[float]]):
        values = np.atleast_1d(np.asarray(values, dtype=np.float64)).ravel()
        object.__setattr__(self, 'values', tuple(float(v) for v in values))


@dataclass(frozen=True)
class LogSpaceRange:
    """
    Logarithmic sampling of ``[lower, upper]`` with ``n`` samples.

    Attributes
    ----------
    lower : float
        Lower bound [Hz]
    upper : float
        Upper bound [Hz]
    n : int
        Number of samples (>= 2)
    """
    lower: float
    upper: float
    n: int


SamplingPolicy = Union[ExplicitFrequencies, LogSpaceRange]


@dataclass(frozen=True, eq=False)
class FrequencyGrid:
    """
    Immutable, ordered sequence of evaluation frequencies.

    Attributes
    ----------
    frequencies_hz : np.ndarray
        Frequencies [Hz] (read-only)
    policy : SamplingPolicy
        Policy that generated the grid
    """
    frequencies_hz: np.ndarray
    policy: SamplingPolicy = field(repr=False)

    @property
    def frequencies_rad(self) -> np.ndarray:
        return 2.0 * np.pi * self.frequencies_hz

    def __len__(self) -> int:
        return self.frequencies_hz.size

    def __iter__(self):
        return iter(self.frequencies_hz.tolist())

    def __getitem__(self, i):
        return self.frequencies_hz[i]

    def __str__(self) -> str:
        n = len(self)
        if n == 1:
            return f"{self.frequencies_hz[0]:.2f}Hz"
        if n < 6:
            return '[' + ', '.join(f"{f:.2f}" for f in self.frequencies_hz) + ']Hz'
        return f"[{self.frequencies_hz[0]:.2f},{self.frequencies_hz[-1]:.2f}]Hz ({n} samples)"


def _explicit(policy: ExplicitFrequencies) -> np.ndarray:
    if len(policy.values) == 0:
        raise InvalidFrequency(
            None, message="the explicit frequency set is empty: give at least one frequency"
        )
    for i, value in enumerate(policy.values):
        if not np.isfinite(value) or value <= 0:
            raise InvalidFrequency(value, position=i)
    return np.array(policy.values, dtype=np.float64)


def _logspace(policy: LogSpaceRange) -> np.ndarray:
    lower, upper, n = policy.lower, policy.upper, policy.n
    if not np.isfinite(lower) or lower <= 0:
        raise InvalidFrequency(
            lower, message=f"invalid log-space lower bound {lower!r}: must be finite and > 0 Hz"
        )
    if isinstance(n, bool) or int(n) != n or n < 2:
        raise InvalidRange(lower, upper, n)
    if not np.isfinite(upper) or upper <= lower:
        raise InvalidRange(lower, upper, n)
    n = int(n)
    log_lower = np.log10(lower)
    log_step = (np.log10(upper) - log_lower) / (n - 1)
    frequencies = 10.0 ** (log_lower + log_step * np.arange(n))
    frequencies[0] = lower
    frequencies[-1] = upper
    return frequencies


def sample_frequencies(
    policy: Union[SamplingPolicy, FrequencyGrid, float, Sequence[float]]
) -> FrequencyGrid:
    """
    Generate the frequency grid of a sampling policy.

    Parameters
    ----------
    policy : ExplicitFrequencies, LogSpaceRange, FrequencyGrid, float or list
        Sampling policy; a float or a list of floats is an explicit set and
        an existing grid is returned unchanged

    Returns
    -------
    FrequencyGrid
        Immutable grid [Hz]

    Raises
    ------
    InvalidFrequency
        Empty set, or a frequency that is not finite and > 0
    InvalidRange
        Log-space range with upper <= lower or n < 2
    """
    if isinstance(policy, FrequencyGrid):
        return policy
    if not isinstance(policy, (ExplicitFrequencies, LogSpaceRange)):
        policy = ExplicitFrequencies(policy)

    if isinstance(policy, ExplicitFrequencies):
        frequencies = _explicit(policy)
    else:
        frequencies = _logspace(policy)

    frequencies.setflags(write=False)
    return FrequencyGrid(frequencies, policy)


def logspace(lower: float, upper: float, n: int) -> FrequencyGrid:
    """Log-space grid over [lower, upper] Hz with n samples."""
    return sample_frequencies(LogSpaceRange(lower, upper, n))


def frequency_set(values: Union[float, Sequence[float]]) -> FrequencyGrid:
    """Explicit grid, in the given order."""
    return sample_frequencies(ExplicitFrequencies(values))

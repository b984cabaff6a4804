"""
Error taxonomy for the FEM frequency response package.

User input errors (unknown channel names, malformed sampling parameters)
derive from ``ValueError``; numerical and internal failures derive from
``ArithmeticError`` / ``RuntimeError``. Every error shares the
``FrequencyResponseError`` base so that a command line front-end can
report any of them as a single terminal failure.
"""

from typing import Iterable, Optional, Sequence, Tuple
import difflib


class FrequencyResponseError(Exception):
    """Base class of all package errors."""


class ChannelNotFound(FrequencyResponseError, ValueError):
    """
    Unknown input or output channel group name.

    Attributes
    ----------
    name : str
        The offending name
    role : str
        'input' or 'output'
    available : Tuple[str, ...]
        Full catalog of valid names for this role
    """

    def __init__(self, name: str, role: str, available: Iterable[str],
                 message: Optional[str] = None):
        self.name = name
        self.role = role
        self.available = tuple(available)
        self.suggestions = tuple(
            difflib.get_close_matches(str(name), self.available, n=3)
        )
        if message is None:
            message = f"{role} channel group '{name}' not found in the model"
            if self.suggestions:
                message += f" (did you mean: {', '.join(self.suggestions)}?)"
            message += f"; available {role}s: {', '.join(self.available)}"
        super().__init__(message)


class InvalidFrequency(FrequencyResponseError, ValueError):
    """A requested frequency is not a finite value > 0 Hz."""

    def __init__(self, value: float, position: Optional[int] = None,
                 message: Optional[str] = None):
        self.value = value
        self.position = position
        if message is None:
            where = f" at position {position}" if position is not None else ""
            message = f"invalid frequency {value!r}{where}: frequencies must be finite and > 0 Hz"
        super().__init__(message)


class InvalidRange(FrequencyResponseError, ValueError):
    """Malformed log-space sampling range."""

    def __init__(self, lower: float, upper: float, n: int,
                 message: Optional[str] = None):
        self.lower = lower
        self.upper = upper
        self.n = n
        if message is None:
            message = (f"invalid log-space range [{lower!r}, {upper!r}] with n={n!r}: "
                       "requires 0 < lower < upper and n >= 2")
        super().__init__(message)


class SingularMode(FrequencyResponseError, ArithmeticError):
    """Evaluation frequency coincides with an undamped natural frequency."""

    def __init__(self, mode_index: int, frequency_hz: float):
        self.mode_index = mode_index
        self.frequency_hz = frequency_hz
        super().__init__(
            f"mode #{mode_index} is singular at {frequency_hz!r} Hz "
            "(zero damping evaluated exactly at its natural frequency)"
        )


class ShapeMismatch(FrequencyResponseError, RuntimeError):
    """Internal invariant violation: transfer matrix of unexpected shape."""

    def __init__(self, expected: Sequence[int], actual: Sequence[int],
                 index: Optional[int] = None):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        self.index = index
        where = f" for sample #{index}" if index is not None else ""
        super().__init__(
            f"shape mismatch{where}: expected {self.expected}, got {self.actual}"
        )


class ModelLoadError(FrequencyResponseError, RuntimeError):
    """Missing or malformed FEM model data."""


class DataFileExtensionError(FrequencyResponseError, ValueError):
    """Unsupported data file extension for result export."""

    def __init__(self, extension: str, supported: Tuple[str, ...]):
        self.extension = extension
        self.supported = supported
        super().__init__(
            f'found data file extension: "{extension}", expected one of '
            + ', '.join(f'"{ext}"' for ext in supported)
        )


class MissingFileExtensionError(FrequencyResponseError, ValueError):
    """Result file path without extension."""

    def __init__(self, supported: Tuple[str, ...]):
        self.supported = supported
        super().__init__(
            'missing data file extension: ' + ' or '.join(f'"{ext}"' for ext in supported)
        )

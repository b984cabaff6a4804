"""
Read-only Modal Model of the Telescope Structure

The structural dynamics are represented in modal coordinates q:

$$\\ddot{q} + 2 Z \\Omega \\dot{q} + \\Omega^2 q = B u$$
$$y = C q$$

where Ω = diag(ω_k) are the natural frequencies [rad/s], Z = diag(ζ_k)
the modal damping ratios, B (n_modes × n_inputs) the input mode shapes and
C (n_outputs × n_modes) the output mode shapes.

Inputs and outputs are organized in named channel groups (e.g. a 6-axis
force input or a 6-DOF displacement output); each group owns a contiguous
block of columns of B (inputs) or rows of C (outputs).

The handle is immutable: every array is copied at construction and flagged
read-only, so it can be shared by concurrent workers without locking.
"""

import numpy as np
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union, Iterator, TYPE_CHECKING

from ..errors import ModelLoadError

if TYPE_CHECKING:
    from .channel_selector import ChannelSelection


def _frozen(array: np.ndarray, dtype=np.float64) -> np.ndarray:
    """Owned, read-only copy of ``array``."""
    out = np.array(array, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class ChannelGroup:
    """
    Named group of physical channels.

    Attributes
    ----------
    name : str
        Group name as exposed by the FEM (e.g. 'OSS_ElDrive_Torque')
    indices : Tuple[int, ...]
        Channel indices into the global input or output layout
    unit : str
        Physical unit tag
    """
    name: str
    indices: Tuple[int, ...]
    unit: str = ''

    @property
    def size(self) -> int:
        return len(self.indices)

    def labels(self) -> List[str]:
        """Per-channel labels '<name>[<k>]'."""
        return [f'{self.name}[{k}]' for k in range(self.size)]


@dataclass(frozen=True, eq=False)
class Mode:
    """
    One structural vibration mode.

    Attributes
    ----------
    index : int
        Mode index in the model (ascending natural frequency)
    natural_frequency : float
        ω_n [rad/s]
    damping_ratio : float
        ζ [-]
    input_participation : np.ndarray
        Row of B, one coefficient per input channel
    output_participation : np.ndarray
        Column of C, one coefficient per output channel
    """
    index: int
    natural_frequency: float
    damping_ratio: float
    input_participation: np.ndarray
    output_participation: np.ndarray

    @property
    def natural_frequency_hz(self) -> float:
        return self.natural_frequency / (2.0 * np.pi)


def build_catalog(
    names: Sequence[str],
    sizes: Sequence[int],
    units: Optional[Sequence[str]] = None
) -> 'OrderedDict[str, ChannelGroup]':
    """
    Build a channel catalog from group names and sizes in layout order.

    Groups occupy consecutive index blocks: the first group starts at 0,
    the next one right after, and so on.
    """
    if len(names) != len(sizes):
        raise ModelLoadError(
            f"{len(names)} channel group names for {len(sizes)} group sizes"
        )
    if units is None or len(units) == 0:
        units = [''] * len(names)
    elif len(units) != len(names):
        raise ModelLoadError(
            f"{len(units)} unit tags for {len(names)} channel groups"
        )
    catalog: 'OrderedDict[str, ChannelGroup]' = OrderedDict()
    start = 0
    for name, size, unit in zip(names, sizes, units):
        name = str(name)
        size = int(size)
        if size <= 0:
            raise ModelLoadError(f"channel group '{name}' has size {size}")
        if name in catalog:
            raise ModelLoadError(f"duplicate channel group name '{name}'")
        catalog[name] = ChannelGroup(name, tuple(range(start, start + size)), str(unit))
        start += size
    return catalog


@dataclass(frozen=True, eq=False)
class ModelHandle:
    """
    Immutable modal model of the structure.

    Use :meth:`from_arrays` to build a validated instance.

    Attributes
    ----------
    natural_frequencies : np.ndarray
        ω_k [rad/s], shape (n_modes,)
    damping_ratios : np.ndarray
        ζ_k, shape (n_modes,)
    inputs_to_modes : np.ndarray
        B, shape (n_modes, n_inputs)
    modes_to_outputs : np.ndarray
        C, shape (n_outputs, n_modes)
    input_catalog : OrderedDict[str, ChannelGroup]
        Input channel groups in layout order
    output_catalog : OrderedDict[str, ChannelGroup]
        Output channel groups in layout order
    name : str
        Model identifier (FEM directory name)
    """
    natural_frequencies: np.ndarray
    damping_ratios: np.ndarray
    inputs_to_modes: np.ndarray
    modes_to_outputs: np.ndarray
    input_catalog: 'OrderedDict[str, ChannelGroup]'
    output_catalog: 'OrderedDict[str, ChannelGroup]'
    name: str = 'FEM'
    metadata: Dict = field(default_factory=dict, compare=False)

    @classmethod
    def from_arrays(
        cls,
        inputs_to_modes: np.ndarray,
        modes_to_outputs: np.ndarray,
        damping: Union[float, Sequence[float], np.ndarray],
        input_groups: Union[Sequence[Tuple[str, int]], 'OrderedDict[str, ChannelGroup]'],
        output_groups: Union[Sequence[Tuple[str, int]], 'OrderedDict[str, ChannelGroup]'],
        eigen_frequencies_hz: Optional[Sequence[float]] = None,
        natural_frequencies: Optional[Sequence[float]] = None,
        name: str = 'FEM',
        metadata: Optional[Dict] = None
    ) -> 'ModelHandle':
        """
        Build a validated model handle.

        Exactly one of ``eigen_frequencies_hz`` [Hz] or
        ``natural_frequencies`` [rad/s] must be given.

        Parameters
        ----------
        inputs_to_modes : np.ndarray
            B, shape (n_modes, n_inputs)
        modes_to_outputs : np.ndarray
            C, shape (n_outputs, n_modes)
        damping : float or array
            Uniform modal damping ratio or one ratio per mode
        input_groups, output_groups : sequence of (name, size) or catalog
            Channel groups in layout order
        eigen_frequencies_hz : array, optional
            Natural frequencies [Hz]
        natural_frequencies : array, optional
            Natural frequencies [rad/s]

        Raises
        ------
        ModelLoadError
            On any inconsistency
        """
        if (eigen_frequencies_hz is None) == (natural_frequencies is None):
            raise ModelLoadError(
                "give exactly one of eigen_frequencies_hz or natural_frequencies"
            )
        if natural_frequencies is None:
            w = 2.0 * np.pi * np.asarray(eigen_frequencies_hz, dtype=np.float64)
        else:
            w = np.asarray(natural_frequencies, dtype=np.float64)
        w = np.atleast_1d(w)
        n_modes = w.size

        zeta = np.asarray(damping, dtype=np.float64)
        if zeta.ndim == 0:
            zeta = np.full(n_modes, float(zeta))

        b = np.atleast_2d(np.asarray(inputs_to_modes, dtype=np.float64))
        c = np.atleast_2d(np.asarray(modes_to_outputs, dtype=np.float64))

        input_catalog = cls._as_catalog(input_groups)
        output_catalog = cls._as_catalog(output_groups)

        handle = cls(
            natural_frequencies=_frozen(w),
            damping_ratios=_frozen(zeta),
            inputs_to_modes=_frozen(b),
            modes_to_outputs=_frozen(c),
            input_catalog=input_catalog,
            output_catalog=output_catalog,
            name=name,
            metadata=dict(metadata or {}),
        )
        handle.validate()
        return handle

    @staticmethod
    def _as_catalog(groups) -> 'OrderedDict[str, ChannelGroup]':
        if isinstance(groups, dict):
            return OrderedDict(groups)
        names = [g[0] for g in groups]
        sizes = [g[1] for g in groups]
        units = [g[2] if len(g) > 2 else '' for g in groups]
        return build_catalog(names, sizes, units)

    def validate(self) -> None:
        """Check dimensions and physical ranges, raising ModelLoadError."""
        w, zeta = self.natural_frequencies, self.damping_ratios
        b, c = self.inputs_to_modes, self.modes_to_outputs
        n_modes = w.size
        if w.ndim != 1 or n_modes == 0:
            raise ModelLoadError("the model has no modes")
        if not np.all(np.isfinite(w)) or np.any(w <= 0):
            raise ModelLoadError("natural frequencies must be finite and > 0")
        if zeta.shape != (n_modes,):
            raise ModelLoadError(
                f"{zeta.size} damping ratios for {n_modes} modes"
            )
        if not np.all(np.isfinite(zeta)) or np.any(zeta < 0) or np.any(zeta >= 1):
            raise ModelLoadError("damping ratios must satisfy 0 <= zeta < 1")
        if b.ndim != 2 or b.shape[0] != n_modes:
            raise ModelLoadError(
                f"inputs-to-modes matrix is {b.shape}, expected ({n_modes}, n_inputs)"
            )
        if c.ndim != 2 or c.shape[1] != n_modes:
            raise ModelLoadError(
                f"modes-to-outputs matrix is {c.shape}, expected (n_outputs, {n_modes})"
            )
        n_in = sum(g.size for g in self.input_catalog.values())
        n_out = sum(g.size for g in self.output_catalog.values())
        if n_in != b.shape[1]:
            raise ModelLoadError(
                f"input channel groups cover {n_in} channels, the model has {b.shape[1]}"
            )
        if n_out != c.shape[0]:
            raise ModelLoadError(
                f"output channel groups cover {n_out} channels, the model has {c.shape[0]}"
            )

    @property
    def n_modes(self) -> int:
        return self.natural_frequencies.size

    @property
    def n_inputs(self) -> int:
        return self.inputs_to_modes.shape[1]

    @property
    def n_outputs(self) -> int:
        return self.modes_to_outputs.shape[0]

    @property
    def eigen_frequencies_hz(self) -> np.ndarray:
        return self.natural_frequencies / (2.0 * np.pi)

    @property
    def input_names(self) -> List[str]:
        return list(self.input_catalog)

    @property
    def output_names(self) -> List[str]:
        return list(self.output_catalog)

    def mode(self, k: int) -> Mode:
        """Read-only view of mode ``k``."""
        if not 0 <= k < self.n_modes:
            raise IndexError(f"mode index {k} out of range [0, {self.n_modes})")
        return Mode(
            index=k,
            natural_frequency=float(self.natural_frequencies[k]),
            damping_ratio=float(self.damping_ratios[k]),
            input_participation=self.inputs_to_modes[k, :],
            output_participation=self.modes_to_outputs[:, k],
        )

    def modes(self) -> Iterator[Mode]:
        """Iterate over the modes in ascending index order."""
        for k in range(self.n_modes):
            yield self.mode(k)

    def restrict(self, selection: 'ChannelSelection') -> Tuple[np.ndarray, np.ndarray]:
        """
        Mode shapes restricted to a channel selection.

        Returns value copies (B_sel of shape (n_modes, n_selected_inputs),
        C_sel of shape (n_selected_outputs, n_modes)), both read-only and
        C-contiguous.
        """
        b_sel = np.ascontiguousarray(self.inputs_to_modes[:, selection.input_indices])
        c_sel = np.ascontiguousarray(self.modes_to_outputs[selection.output_indices, :])
        b_sel.setflags(write=False)
        c_sel.setflags(write=False)
        return b_sel, c_sel

    def summary(self) -> str:
        """Multi-line description of the model."""
        f = self.eigen_frequencies_hz
        lines = [
            f"{self.name} structural dynamic model:",
            f" + inputs: {self.input_names}",
            f" + outputs: {self.output_names}",
            f" + modes: {self.n_modes}",
            f" + eigen frequencies: ({f[0]:.3f},{f[-1]:.3f})Hz",
        ]
        if np.all(self.damping_ratios == self.damping_ratios[0]):
            lines.append(f" + damping: {self.damping_ratios[0] * 1e2:g}%")
        else:
            lines.append(
                f" + damping: [{self.damping_ratios.min() * 1e2:g},"
                f"{self.damping_ratios.max() * 1e2:g}]%"
            )
        lines.append(f" + B matrix {self.inputs_to_modes.shape}")
        lines.append(f" + C matrix {self.modes_to_outputs.shape}")
        return '\n'.join(lines)

    def __str__(self) -> str:
        return self.summary()

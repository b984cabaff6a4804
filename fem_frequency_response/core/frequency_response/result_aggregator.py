"""
Frequency Response Result Aggregation

Pairs the evaluated transfer matrices with the frequency grid and the
channel labels into the FrequencyResponse artifact handed to export and
plotting.

Invariants
----------
- one transfer matrix per grid frequency, in grid order
- every matrix has shape (total selected output channels,
  total selected input channels)

A violation is an internal defect and raises ShapeMismatch.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..errors import ShapeMismatch
from ..structural.channel_selector import ChannelSelection
from .frequency_sampler import FrequencyGrid


@dataclass(frozen=True, eq=False)
class FrequencyResponse:
    """
    Labelled frequency response of the structure.

    Attributes
    ----------
    frequencies_hz : np.ndarray
        Evaluation frequencies [Hz], shape (n_frequencies,)
    response : np.ndarray
        Complex transfer matrices, shape (n_frequencies, n_outputs, n_inputs)
    inputs : List[str]
        Input channel group names (column order)
    outputs : List[str]
        Output channel group names (row order)
    input_labels : List[str]
        Per-column channel labels
    output_labels : List[str]
        Per-row channel labels
    metadata : Dict
        Additional description (model name, damping, ...)
    """
    frequencies_hz: np.ndarray
    response: np.ndarray
    inputs: List[str]
    outputs: List[str]
    input_labels: List[str]
    output_labels: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def frequencies(self) -> np.ndarray:
        """Evaluation frequencies [Hz]."""
        return self.frequencies_hz

    @property
    def frequencies_rad(self) -> np.ndarray:
        return 2.0 * np.pi * self.frequencies_hz

    @property
    def shape(self) -> Tuple[int, int]:
        """Transfer matrix shape (n_outputs, n_inputs)."""
        return self.response.shape[1], self.response.shape[2]

    def __len__(self) -> int:
        return self.frequencies_hz.size

    def sample(self, i: int) -> np.ndarray:
        """Transfer matrix at frequency index ``i``."""
        return self.response[i]

    def magnitude(self) -> np.ndarray:
        """|T(jω)|, shape (n_frequencies, n_outputs, n_inputs)."""
        return np.abs(self.response)

    def phase(self) -> np.ndarray:
        """∠T(jω) [rad], shape (n_frequencies, n_outputs, n_inputs)."""
        return np.angle(self.response)

    def magnitude_db(self) -> np.ndarray:
        return 20 * np.log10(self.magnitude() + 1e-300)

    def transfer(self, output_channel: Union[int, str],
                 input_channel: Union[int, str]) -> np.ndarray:
        """
        Frequency response of one output/input channel pair.

        Parameters
        ----------
        output_channel : int or str
            Row index or output channel label (e.g. 'OSS_ElEncoder_Angle[0]')
        input_channel : int or str
            Column index or input channel label

        Returns
        -------
        np.ndarray
            Complex response, shape (n_frequencies,)
        """
        row = output_channel
        if isinstance(output_channel, str):
            row = self.output_labels.index(output_channel)
        col = input_channel
        if isinstance(input_channel, str):
            col = self.input_labels.index(input_channel)
        return self.response[:, row, col]

    def to_dataframe(self) -> pd.DataFrame:
        """
        Long-format table, one row per (frequency, output, input).

        Columns: frequency_hz, output, input, real, imag, magnitude, phase_rad
        """
        n_f, n_out, n_in = self.response.shape
        return pd.DataFrame({
            'frequency_hz': np.repeat(self.frequencies_hz, n_out * n_in),
            'output': np.tile(np.repeat(self.output_labels, n_in), n_f),
            'input': np.tile(self.input_labels, n_f * n_out),
            'real': self.response.real.ravel(),
            'imag': self.response.imag.ravel(),
            'magnitude': self.magnitude().ravel(),
            'phase_rad': self.phase().ravel(),
        })

    def __str__(self) -> str:
        head = f"frequency response {len(self)}x{self.shape}"
        if len(self) == 1:
            return f"{head} @ {self.frequencies_hz[0]:.2f}Hz"
        return f"{head} @ [{self.frequencies_hz[0]:.2f},{self.frequencies_hz[-1]:.2f}]Hz"


def aggregate(
    grid: FrequencyGrid,
    samples: Union[np.ndarray, Sequence[np.ndarray]],
    selection: ChannelSelection,
    metadata: Optional[Dict[str, Any]] = None
) -> FrequencyResponse:
    """
    Assemble the frequency response artifact.

    Parameters
    ----------
    grid : FrequencyGrid
        Evaluation frequencies
    samples : array or sequence of arrays
        Transfer matrices, one per grid frequency
    selection : ChannelSelection
        Channel selection the samples were evaluated for
    metadata : Dict, optional
        Description attached to the result

    Raises
    ------
    ShapeMismatch
        Sample count differs from the grid length, or a matrix has the
        wrong shape
    """
    expected = selection.shape
    if len(samples) != len(grid):
        raise ShapeMismatch((len(grid),) + expected, (len(samples),) + expected)
    for i, sample in enumerate(samples):
        if np.shape(sample) != expected:
            raise ShapeMismatch(expected, np.shape(sample), index=i)

    if len(grid) == 0:
        response = np.empty((0,) + expected, dtype=np.complex128)
    else:
        response = np.array(np.stack(list(samples)), dtype=np.complex128)
    response.setflags(write=False)

    return FrequencyResponse(
        frequencies_hz=grid.frequencies_hz,
        response=response,
        inputs=selection.input_names,
        outputs=selection.output_names,
        input_labels=selection.input_labels,
        output_labels=selection.output_labels,
        metadata=dict(metadata or {}),
    )

"""
Channel Group Selection

Resolves the user-requested input and output channel group names into
index arrays into the model's input (columns of B) and output (rows of C)
layouts. The concatenation order follows the request order, so a request
``inputs=['M1_actuators', 'OSS_ElDrive_Torque']`` puts the M1 actuator
channels first in the transfer matrix columns.

Repeated names are concatenated (the channels appear twice). The input and
output catalogs are independent, so the same name may be used in both
roles when the model exposes it on both sides.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Mapping, Sequence, Tuple

from ..errors import ChannelNotFound
from .model_handle import ChannelGroup, ModelHandle


@dataclass(frozen=True, eq=False)
class ChannelSelection:
    """
    Resolved input/output channel selection.

    Attributes
    ----------
    inputs : Tuple[ChannelGroup, ...]
        Selected input groups in request order
    outputs : Tuple[ChannelGroup, ...]
        Selected output groups in request order
    input_indices : np.ndarray
        Concatenated input channel indices (int, read-only)
    output_indices : np.ndarray
        Concatenated output channel indices (int, read-only)
    """
    inputs: Tuple[ChannelGroup, ...]
    outputs: Tuple[ChannelGroup, ...]
    input_indices: np.ndarray
    output_indices: np.ndarray

    @property
    def n_inputs(self) -> int:
        return self.input_indices.size

    @property
    def n_outputs(self) -> int:
        return self.output_indices.size

    @property
    def shape(self) -> Tuple[int, int]:
        """Transfer matrix shape (n_outputs, n_inputs)."""
        return self.n_outputs, self.n_inputs

    @property
    def input_names(self) -> List[str]:
        return [g.name for g in self.inputs]

    @property
    def output_names(self) -> List[str]:
        return [g.name for g in self.outputs]

    @property
    def input_labels(self) -> List[str]:
        return [label for g in self.inputs for label in g.labels()]

    @property
    def output_labels(self) -> List[str]:
        return [label for g in self.outputs for label in g.labels()]


def _resolve(
    names: Sequence[str],
    catalog: Mapping[str, ChannelGroup],
    role: str
) -> Tuple[Tuple[ChannelGroup, ...], np.ndarray]:
    if isinstance(names, str):
        names = [names]
    if len(names) == 0:
        raise ChannelNotFound(
            '', role, catalog.keys(),
            message=f"no {role} channel group selected; available {role}s: "
                    + ', '.join(catalog.keys())
        )
    groups = []
    for name in names:
        try:
            groups.append(catalog[name])
        except KeyError:
            raise ChannelNotFound(name, role, catalog.keys()) from None
    indices = np.concatenate([np.asarray(g.indices, dtype=np.intp) for g in groups])
    indices.setflags(write=False)
    return tuple(groups), indices


def select_channels(
    model: ModelHandle,
    inputs: Sequence[str],
    outputs: Sequence[str]
) -> ChannelSelection:
    """
    Resolve input and output channel group names.

    Parameters
    ----------
    model : ModelHandle
        Model exposing the channel catalogs
    inputs : Sequence[str]
        Input group names (exact, case-sensitive)
    outputs : Sequence[str]
        Output group names (exact, case-sensitive)

    Returns
    -------
    ChannelSelection
        Resolved selection

    Raises
    ------
    ChannelNotFound
        If a list is empty or a name is not in the catalog
    """
    input_groups, input_indices = _resolve(inputs, model.input_catalog, 'input')
    output_groups, output_indices = _resolve(outputs, model.output_catalog, 'output')
    return ChannelSelection(
        inputs=input_groups,
        outputs=output_groups,
        input_indices=input_indices,
        output_indices=output_indices,
    )

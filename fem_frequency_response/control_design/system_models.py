"""
State-Space Realizations of the Modal Model

This module builds the second-order modal state-space realization of a
structural model restricted to a channel selection, for use with
python-control (time simulation, model reduction, controller design) and
as an independent check of the modal superposition evaluator.

Modal Realization
-----------------
With the state x = [q, q̇] of modal coordinates q (n_modes each):

$$\\dot{x} = \\begin{bmatrix} 0 & I \\\\ -\\Omega^2 & -2Z\\Omega \\end{bmatrix} x
+ \\begin{bmatrix} 0 \\\\ B \\end{bmatrix} u, \\qquad
y = \\begin{bmatrix} C & 0 \\end{bmatrix} x$$

where Ω = diag(ω_k) and Z = diag(ζ_k). Velocity and acceleration outputs
use y = [0  C] x and y = [-CΩ²  -2CZΩ] x + CB u.
"""

import numpy as np
from typing import List, Optional
import control as ctrl
from dataclasses import dataclass

from ..core.structural.channel_selector import ChannelSelection
from ..core.structural.model_handle import ModelHandle


@dataclass
class LinearModel:
    """Container for linear system model."""
    A: np.ndarray
    B: np.ndarray
    C: np.ndarray
    D: np.ndarray
    state_names: List[str] = None
    input_names: List[str] = None
    output_names: List[str] = None

    @property
    def n_states(self) -> int:
        return self.A.shape[0]

    def to_control(self) -> ctrl.StateSpace:
        """Convert to python-control StateSpace object."""
        return ctrl.ss(self.A, self.B, self.C, self.D)

    def to_transfer_function(self) -> ctrl.TransferFunction:
        """Convert to transfer function (for SISO systems)."""
        return ctrl.ss2tf(self.to_control())

    def frequency_response(self, frequencies_hz: np.ndarray) -> np.ndarray:
        """
        Transfer matrices evaluated by python-control.

        Parameters
        ----------
        frequencies_hz : np.ndarray
            Frequencies [Hz]

        Returns
        -------
        np.ndarray
            Complex array of shape (n_frequencies, n_outputs, n_inputs)
        """
        s = 2j * np.pi * np.atleast_1d(np.asarray(frequencies_hz, dtype=np.float64))
        response = self.to_control()(s, squeeze=False)
        return np.moveaxis(np.asarray(response, dtype=np.complex128), -1, 0)


class SystemModeler:
    """State-space models of the structure."""

    def __init__(self):
        self.models = {}

    def modal_state_space(
        self,
        model: ModelHandle,
        selection: ChannelSelection,
        output_derivative: int = 0,
        name: Optional[str] = None
    ) -> LinearModel:
        """
        Second-order modal realization between the selected channels.

        Parameters
        ----------
        model : ModelHandle
            Modal model
        selection : ChannelSelection
            Resolved input/output channels
        output_derivative : int
            0: displacement, 1: velocity, 2: acceleration outputs
        name : str, optional
            Key under which the model is kept in ``self.models``

        Returns
        -------
        LinearModel
            State-space model with 2*n_modes states
        """
        if output_derivative not in (0, 1, 2):
            raise ValueError(f"output_derivative must be 0, 1 or 2, got {output_derivative}")

        b, c = model.restrict(selection)
        n = model.n_modes
        w = model.natural_frequencies
        two_zeta_w = 2.0 * model.damping_ratios * w

        A = np.zeros((2 * n, 2 * n))
        A[:n, n:] = np.eye(n)
        A[n:, :n] = -np.diag(w ** 2)
        A[n:, n:] = -np.diag(two_zeta_w)

        B = np.zeros((2 * n, selection.n_inputs))
        B[n:, :] = b

        C = np.zeros((selection.n_outputs, 2 * n))
        D = np.zeros((selection.n_outputs, selection.n_inputs))
        if output_derivative == 0:
            C[:, :n] = c
        elif output_derivative == 1:
            C[:, n:] = c
        else:
            C[:, :n] = -c * w ** 2
            C[:, n:] = -c * two_zeta_w
            D = c @ b

        state_names = ([f'q{k}' for k in range(n)]
                       + [f'q{k}_dot' for k in range(n)])
        linear_model = LinearModel(A, B, C, D, state_names,
                                   selection.input_labels, selection.output_labels)
        self.models[name or model.name] = linear_model
        return linear_model


def modal_state_space(
    model: ModelHandle,
    selection: ChannelSelection,
    output_derivative: int = 0
) -> LinearModel:
    """Modal state-space realization, see :meth:`SystemModeler.modal_state_space`."""
    return SystemModeler().modal_state_space(model, selection, output_derivative)

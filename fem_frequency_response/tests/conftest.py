"""
Shared fixtures: synthetic modal models and a temporary FEM model directory.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest
from scipy.io import savemat

from fem_frequency_response.core.config import FEM_REPO_ENV, MODEL_FILENAME
from fem_frequency_response.core.structural import ModelHandle


@pytest.fixture
def single_mode_model():
    """One mode at 10 Hz, 1% damping, unit participation."""
    return ModelHandle.from_arrays(
        inputs_to_modes=[[1.0]],
        modes_to_outputs=[[1.0]],
        damping=0.01,
        input_groups=[('force', 1)],
        output_groups=[('displacement', 1)],
        eigen_frequencies_hz=[10.0],
        name='single_mode',
    )


@pytest.fixture
def undamped_model():
    """Two undamped modes at 5 Hz and 20 Hz."""
    return ModelHandle.from_arrays(
        inputs_to_modes=[[1.0], [0.5]],
        modes_to_outputs=[[1.0, 2.0]],
        damping=0.0,
        input_groups=[('force', 1)],
        output_groups=[('displacement', 1)],
        eigen_frequencies_hz=[5.0, 20.0],
        name='undamped',
    )


@pytest.fixture
def multi_mode_model():
    """
    Three modes, two input groups (5 channels), two output groups (4 channels).
    """
    rng = np.random.default_rng(20250506)
    return ModelHandle.from_arrays(
        inputs_to_modes=rng.standard_normal((3, 5)),
        modes_to_outputs=rng.standard_normal((4, 3)),
        damping=[0.02, 0.01, 0.05],
        input_groups=[('M1_actuators', 3, 'N'), ('OSS_ElDrive_Torque', 2, 'N.m')],
        output_groups=[('OSS_ElEncoder_Angle', 2, 'rad'), ('M1_edge_sensors', 2, 'm')],
        eigen_frequencies_hz=[2.0, 15.0, 80.0],
        name='multi_mode',
    )


FEM_EIGEN_FREQUENCIES = np.array([2.0, 15.0, 80.0, 400.0])


@pytest.fixture
def fem_data():
    """Variables of a FEM model file: 4 modes, 5 inputs, 4 outputs."""
    rng = np.random.default_rng(1715)
    return {
        'eigenfrequencies': FEM_EIGEN_FREQUENCIES,
        'proportionalDampingVec': np.array([0.005, 0.01, 0.02, 0.03]),
        'inputs2ModalF': rng.standard_normal((4, 5)),
        'modalDisp2Outputs': rng.standard_normal((4, 4)),
        'input_names': np.array(['M1_actuators', 'OSS_ElDrive_Torque'], dtype=object),
        'input_sizes': np.array([3, 2]),
        'input_units': np.array(['N', 'N.m'], dtype=object),
        'output_names': np.array(['OSS_ElEncoder_Angle', 'M1_edge_sensors'], dtype=object),
        'output_sizes': np.array([2, 2]),
        'output_units': np.array(['rad', 'm'], dtype=object),
    }


@pytest.fixture
def fem_repo(tmp_path, fem_data):
    """FEM model directory holding the modal model file."""
    repo = tmp_path / 'fem_model'
    repo.mkdir()
    savemat(str(repo / MODEL_FILENAME), fem_data)
    return repo


@pytest.fixture
def fem_env(fem_repo, monkeypatch):
    """FEM_REPO pointing at the temporary model directory."""
    monkeypatch.setenv(FEM_REPO_ENV, str(fem_repo))
    return fem_repo

"""
Unit tests for the FEM model loader and the model handle.
"""

import numpy as np
import pytest
from scipy.io import savemat

from fem_frequency_response.core.config import (
    FEM_REPO_ENV,
    MODEL_FILENAME,
    resolve_fem_repo,
)
from fem_frequency_response.core.errors import ModelLoadError
from fem_frequency_response.core.structural import (
    FEMLoader,
    LoaderConfig,
    ModelHandle,
    build_catalog,
    load_model,
)


class TestFEMLoader:
    """Test suite for FEMLoader."""

    def test_load_from_environment(self, fem_env, fem_data):
        model = load_model()
        assert model.name == 'fem_model'
        assert model.n_modes == 4
        assert model.input_names == ['M1_actuators', 'OSS_ElDrive_Torque']
        assert model.output_names == ['OSS_ElEncoder_Angle', 'M1_edge_sensors']
        assert (model.n_inputs, model.n_outputs) == (5, 4)
        np.testing.assert_allclose(model.eigen_frequencies_hz, fem_data['eigenfrequencies'])
        np.testing.assert_array_equal(model.inputs_to_modes, fem_data['inputs2ModalF'])
        np.testing.assert_array_equal(model.modes_to_outputs, fem_data['modalDisp2Outputs'])

    def test_catalog_layout(self, fem_repo):
        model = load_model(fem_repo)
        torque = model.input_catalog['OSS_ElDrive_Torque']
        assert torque.indices == (3, 4)
        assert torque.unit == 'N.m'
        assert model.output_catalog['M1_edge_sensors'].indices == (2, 3)

    def test_model_file_path(self, fem_repo):
        model = load_model(fem_repo / MODEL_FILENAME)
        assert model.n_modes == 4

    def test_default_structural_damping(self, fem_repo):
        model = load_model(fem_repo)
        np.testing.assert_array_equal(model.damping_ratios, 0.02)
        assert model.metadata['structural_damping'] == 0.02

    def test_fem_damping(self, fem_repo, fem_data):
        model = load_model(fem_repo, structural_damping=None)
        np.testing.assert_array_equal(model.damping_ratios, fem_data['proportionalDampingVec'])

    def test_truncation_band_inclusive(self, fem_repo, fem_data):
        model = load_model(fem_repo, eigen_frequency_min=15.0, eigen_frequency_max=80.0)
        assert model.n_modes == 2
        np.testing.assert_allclose(model.eigen_frequencies_hz, [15.0, 80.0])
        np.testing.assert_array_equal(model.inputs_to_modes, fem_data['inputs2ModalF'][1:3])
        np.testing.assert_array_equal(model.modes_to_outputs,
                                      fem_data['modalDisp2Outputs'][:, 1:3])
        assert model.metadata['n_modes_total'] == 4

    def test_truncation_keeps_fem_damping_aligned(self, fem_repo, fem_data):
        model = load_model(fem_repo, structural_damping=None, eigen_frequency_max=20.0)
        np.testing.assert_array_equal(model.damping_ratios,
                                      fem_data['proportionalDampingVec'][:2])

    def test_empty_band(self, fem_repo):
        with pytest.raises(ModelLoadError, match='no mode'):
            load_model(fem_repo, eigen_frequency_min=500.0)

    def test_missing_environment(self, monkeypatch):
        monkeypatch.delenv(FEM_REPO_ENV, raising=False)
        with pytest.raises(ModelLoadError, match=FEM_REPO_ENV):
            load_model()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ModelLoadError, match='does not exist'):
            load_model(tmp_path / 'nowhere')

    def test_missing_model_file(self, tmp_path):
        with pytest.raises(ModelLoadError, match=MODEL_FILENAME):
            load_model(tmp_path)

    def test_missing_variable(self, tmp_path, fem_data):
        del fem_data['modalDisp2Outputs']
        savemat(str(tmp_path / MODEL_FILENAME), fem_data)
        with pytest.raises(ModelLoadError, match='modalDisp2Outputs'):
            load_model(tmp_path)

    def test_inconsistent_group_sizes(self, tmp_path, fem_data):
        fem_data['input_sizes'] = np.array([3, 3])
        savemat(str(tmp_path / MODEL_FILENAME), fem_data)
        with pytest.raises(ModelLoadError):
            load_model(tmp_path)

    def test_single_group_file(self, tmp_path):
        savemat(str(tmp_path / MODEL_FILENAME), {
            'eigenfrequencies': np.array([3.0, 30.0]),
            'inputs2ModalF': np.array([[1.0], [2.0]]),
            'modalDisp2Outputs': np.array([[1.0, -1.0]]),
            'input_names': np.array(['force'], dtype=object),
            'input_sizes': np.array([1]),
            'output_names': np.array(['displacement'], dtype=object),
            'output_sizes': np.array([1]),
        })
        model = load_model(tmp_path)
        assert model.input_names == ['force']
        assert model.inputs_to_modes.shape == (2, 1)
        assert model.modes_to_outputs.shape == (1, 2)

    def test_verbose_summary(self, fem_repo, capsys):
        FEMLoader(LoaderConfig(fem_repo=fem_repo, verbose=True)).load()
        out = capsys.readouterr().out
        assert 'structural dynamic model' in out
        assert 'modes: 4' in out


class TestModelHandle:
    """Test suite for ModelHandle construction and validation."""

    def test_read_only_arrays(self, multi_mode_model):
        for array in (multi_mode_model.natural_frequencies, multi_mode_model.damping_ratios,
                      multi_mode_model.inputs_to_modes, multi_mode_model.modes_to_outputs):
            with pytest.raises(ValueError):
                array[0] = 0.0

    def test_modes(self, multi_mode_model):
        modes = list(multi_mode_model.modes())
        assert [m.index for m in modes] == [0, 1, 2]
        assert modes[1].natural_frequency_hz == pytest.approx(15.0)
        assert modes[2].damping_ratio == 0.05
        np.testing.assert_array_equal(modes[0].input_participation,
                                      multi_mode_model.inputs_to_modes[0])

    def test_mode_out_of_range(self, multi_mode_model):
        with pytest.raises(IndexError):
            multi_mode_model.mode(3)

    def test_rad_per_second_frequencies(self):
        model = ModelHandle.from_arrays([[1.0]], [[1.0]], 0.1, [('u', 1)], [('y', 1)],
                                        natural_frequencies=[2.0 * np.pi])
        assert model.eigen_frequencies_hz[0] == pytest.approx(1.0)

    @pytest.mark.parametrize('kwargs', [
        {'eigen_frequencies_hz': [0.0]},
        {'eigen_frequencies_hz': [1.0], 'damping': -0.1},
        {'eigen_frequencies_hz': [1.0], 'damping': 1.0},
        {'eigen_frequencies_hz': [1.0, 2.0]},
        {'eigen_frequencies_hz': [1.0], 'natural_frequencies': [1.0]},
        {},
    ])
    def test_invalid(self, kwargs):
        args = {'inputs_to_modes': [[1.0]], 'modes_to_outputs': [[1.0]], 'damping': 0.01,
                'input_groups': [('u', 1)], 'output_groups': [('y', 1)]}
        args.update(kwargs)
        with pytest.raises(ModelLoadError):
            ModelHandle.from_arrays(**args)

    def test_group_size_mismatch(self):
        with pytest.raises(ModelLoadError):
            ModelHandle.from_arrays([[1.0, 2.0]], [[1.0]], 0.01, [('u', 1)], [('y', 1)],
                                    eigen_frequencies_hz=[1.0])

    def test_duplicate_group_name(self):
        with pytest.raises(ModelLoadError):
            build_catalog(['u', 'u'], [1, 1])

    def test_resolve_fem_repo_environment(self, tmp_path):
        assert resolve_fem_repo(environ={FEM_REPO_ENV: str(tmp_path)}) == tmp_path

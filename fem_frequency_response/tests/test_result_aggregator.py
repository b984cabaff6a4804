"""
Unit tests for result aggregation.
"""

import numpy as np
import pandas as pd
import pytest

from fem_frequency_response.core.errors import ShapeMismatch
from fem_frequency_response.core.frequency_response import (
    EvaluatorConfig,
    FrequencyResponse,
    TransferFunctionEvaluator,
    aggregate,
    frequency_set,
)
from fem_frequency_response.core.structural import select_channels


@pytest.fixture
def selection(multi_mode_model):
    return select_channels(multi_mode_model, ['OSS_ElDrive_Torque'], ['M1_edge_sensors'])


@pytest.fixture
def response(multi_mode_model, selection):
    grid = frequency_set([1.0, 10.0, 100.0])
    samples = TransferFunctionEvaluator(
        multi_mode_model, selection, EvaluatorConfig(verbose=False)
    ).evaluate(grid)
    return aggregate(grid, samples, selection, {'fem': multi_mode_model.name})


class TestAggregate:
    """Test suite for aggregate."""

    def test_pairs_frequencies_and_samples(self, response):
        assert isinstance(response, FrequencyResponse)
        assert len(response) == 3
        assert response.shape == (2, 2)
        np.testing.assert_array_equal(response.frequencies_hz, [1.0, 10.0, 100.0])
        assert response.response.dtype == np.complex128

    def test_labels(self, response):
        assert response.inputs == ['OSS_ElDrive_Torque']
        assert response.outputs == ['M1_edge_sensors']
        assert response.output_labels == ['M1_edge_sensors[0]', 'M1_edge_sensors[1]']

    def test_read_only(self, response):
        with pytest.raises(ValueError):
            response.response[0, 0, 0] = 1.0

    def test_list_of_samples(self, selection):
        grid = frequency_set([1.0, 2.0])
        samples = [np.full((2, 2), 1 + 1j), np.full((2, 2), 2 - 1j)]
        result = aggregate(grid, samples, selection)
        np.testing.assert_array_equal(result.sample(1), samples[1])

    def test_sample_count_mismatch(self, selection):
        grid = frequency_set([1.0, 2.0, 3.0])
        with pytest.raises(ShapeMismatch) as excinfo:
            aggregate(grid, [np.zeros((2, 2))] * 2, selection)
        assert excinfo.value.expected == (3, 2, 2)
        assert excinfo.value.actual == (2, 2, 2)

    def test_matrix_shape_mismatch(self, selection):
        grid = frequency_set([1.0, 2.0])
        with pytest.raises(ShapeMismatch) as excinfo:
            aggregate(grid, [np.zeros((2, 2)), np.zeros((2, 3))], selection)
        assert excinfo.value.index == 1
        assert excinfo.value.actual == (2, 3)


class TestFrequencyResponse:
    """Test suite for the FrequencyResponse artifact."""

    def test_transfer_by_label_and_index(self, response):
        by_label = response.transfer('M1_edge_sensors[1]', 'OSS_ElDrive_Torque[0]')
        np.testing.assert_array_equal(by_label, response.transfer(1, 0))
        np.testing.assert_array_equal(by_label, response.response[:, 1, 0])

    def test_transfer_keywords(self, response):
        np.testing.assert_array_equal(
            response.transfer(output_channel='M1_edge_sensors[0]', input_channel=1),
            response.response[:, 0, 1])

    def test_magnitude_phase(self, response):
        np.testing.assert_allclose(
            response.magnitude() * np.exp(1j * response.phase()), response.response,
            rtol=1e-12)
        np.testing.assert_allclose(response.magnitude_db(),
                                   20 * np.log10(response.magnitude()))

    def test_dataframe(self, response):
        df = response.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert len(df) == 3 * 2 * 2
        assert list(df.columns) == ['frequency_hz', 'output', 'input', 'real', 'imag',
                                    'magnitude', 'phase_rad']
        row = df[(df.frequency_hz == 10.0) & (df.output == 'M1_edge_sensors[1]')
                 & (df.input == 'OSS_ElDrive_Torque[0]')]
        assert row.real.item() == response.response[1, 1, 0].real
        assert row.imag.item() == response.response[1, 1, 0].imag

    def test_str(self, response):
        assert str(response) == 'frequency response 3x(2, 2) @ [1.00,100.00]Hz'

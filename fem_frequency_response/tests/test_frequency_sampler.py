"""
Unit tests for the frequency sampling policies.
"""

import numpy as np
import pytest

from fem_frequency_response.core.errors import InvalidFrequency, InvalidRange
from fem_frequency_response.core.frequency_response.frequency_sampler import (
    ExplicitFrequencies,
    FrequencyGrid,
    LogSpaceRange,
    frequency_set,
    logspace,
    sample_frequencies,
)


class TestLogSpaceRange:
    """Test suite for log-space sampling."""

    def test_three_decades(self):
        grid = logspace(1.0, 100.0, 3)
        np.testing.assert_allclose(grid.frequencies_hz, [1.0, 10.0, 100.0], rtol=1e-12)

    def test_endpoints_exact(self):
        grid = logspace(0.1, 8e3, 1000)
        assert len(grid) == 1000
        assert grid.frequencies_hz[0] == 0.1
        assert grid.frequencies_hz[-1] == 8e3

    def test_strictly_increasing(self):
        f = logspace(0.5, 2e3, 257).frequencies_hz
        assert np.all(np.diff(f) > 0)

    def test_constant_log_step(self):
        f = logspace(1.0, 1e4, 9).frequencies_hz
        np.testing.assert_allclose(np.diff(np.log10(f)), 0.5, rtol=1e-10)

    def test_two_samples(self):
        np.testing.assert_array_equal(logspace(2.0, 3.0, 2).frequencies_hz, [2.0, 3.0])

    @pytest.mark.parametrize('lower, upper, n', [
        (10.0, 1.0, 10),
        (10.0, 10.0, 10),
        (1.0, 10.0, 1),
        (1.0, 10.0, 0),
        (1.0, 10.0, 2.5),
        (1.0, np.inf, 10),
    ])
    def test_invalid_range(self, lower, upper, n):
        with pytest.raises(InvalidRange) as excinfo:
            sample_frequencies(LogSpaceRange(lower, upper, n))
        assert excinfo.value.n == n

    @pytest.mark.parametrize('lower', [0.0, -1.0, np.nan])
    def test_invalid_lower_bound(self, lower):
        with pytest.raises(InvalidFrequency):
            logspace(lower, 10.0, 10)


class TestExplicitFrequencies:
    """Test suite for explicit frequency sets."""

    def test_order_preserved(self):
        grid = frequency_set([100.0, 1.0, 10.0, 1.0])
        np.testing.assert_array_equal(grid.frequencies_hz, [100.0, 1.0, 10.0, 1.0])

    def test_single_frequency(self):
        grid = sample_frequencies(42.0)
        assert len(grid) == 1
        assert grid[0] == 42.0
        assert isinstance(grid.policy, ExplicitFrequencies)

    def test_list_promotion(self):
        grid = sample_frequencies([3.0, 2.0])
        assert grid.policy == ExplicitFrequencies((3.0, 2.0))

    def test_empty_set(self):
        with pytest.raises(InvalidFrequency):
            frequency_set([])

    @pytest.mark.parametrize('bad, position', [
        ([1.0, 0.0, 2.0], 1),
        ([-5.0], 0),
        ([1.0, 2.0, np.nan], 2),
        ([np.inf], 0),
    ])
    def test_invalid_values(self, bad, position):
        with pytest.raises(InvalidFrequency) as excinfo:
            frequency_set(bad)
        assert excinfo.value.position == position

    def test_invalid_frequency_is_value_error(self):
        with pytest.raises(ValueError):
            frequency_set([-1.0])


class TestFrequencyGrid:
    """Test suite for the frequency grid."""

    def test_read_only(self):
        grid = logspace(1.0, 10.0, 5)
        with pytest.raises(ValueError):
            grid.frequencies_hz[0] = 2.0

    def test_grid_passthrough(self):
        grid = logspace(1.0, 10.0, 5)
        assert sample_frequencies(grid) is grid

    def test_angular_frequencies(self):
        grid = frequency_set([1.0, 2.0])
        np.testing.assert_allclose(grid.frequencies_rad, [2 * np.pi, 4 * np.pi])

    def test_iteration(self):
        assert list(frequency_set([5.0, 1.0])) == [5.0, 1.0]

    def test_str(self):
        assert str(frequency_set([10.0])) == '10.00Hz'
        assert '(100 samples)' in str(logspace(1.0, 10.0, 100))
        assert isinstance(logspace(1.0, 10.0, 100), FrequencyGrid)

"""
Smoke tests for the Bode plotter (Agg backend).
"""

import matplotlib.pyplot as plt
import pytest

from fem_frequency_response.core.frequency_response import (
    EvaluatorConfig,
    FrequencyResponsePlotter,
    PlotConfig,
    TransferFunctionEvaluator,
    aggregate,
    logspace,
)
from fem_frequency_response.core.structural import select_channels


@pytest.fixture
def response(multi_mode_model):
    selection = select_channels(multi_mode_model, ['OSS_ElDrive_Torque'],
                                ['OSS_ElEncoder_Angle'])
    grid = logspace(0.5, 200.0, 60)
    samples = TransferFunctionEvaluator(
        multi_mode_model, selection, EvaluatorConfig(verbose=False)
    ).evaluate(grid)
    return aggregate(grid, samples, selection, {'fem': multi_mode_model.name})


@pytest.fixture
def plotter(tmp_path):
    plotter = FrequencyResponsePlotter(PlotConfig(output_dir=tmp_path, dpi=50, verbose=False))
    yield plotter
    plotter.close()


class TestFrequencyResponsePlotter:
    """Test suite for FrequencyResponsePlotter."""

    def test_default_pairs(self, plotter, response):
        assert plotter.default_pairs(response) == [(0, 0), (1, 1), (0, 1), (1, 0)]

    def test_bode(self, plotter, response, multi_mode_model):
        fig = plotter.plot_bode(response, natural_frequencies_hz=multi_mode_model.eigen_frequencies_hz)
        assert isinstance(fig, plt.Figure)
        ax_mag, ax_phase = fig.axes
        assert len(ax_mag.get_lines()) >= 4
        assert ax_mag.get_xscale() == 'log'
        assert 'multi_mode' in ax_mag.get_title()

    def test_bode_by_label(self, plotter, response):
        fig = plotter.plot_bode(response, pairs=[('OSS_ElEncoder_Angle[1]',
                                                  'OSS_ElDrive_Torque[0]')])
        assert len(fig.axes[1].get_lines()) == 1

    def test_save_all_figures(self, plotter, response, tmp_path):
        plotter.plot_bode(response)
        plotter.plot_singular_values(response)
        paths = plotter.save_all_figures()
        assert sorted(p.name for p in paths) == ['bode.png', 'singular_values.png']
        assert all(p.exists() for p in paths)

    def test_close(self, plotter, response):
        plotter.plot_bode(response)
        plotter.close()
        assert plotter.figures == {}

"""
Frequency response of a loaded model in one call: channel selection,
sampling, evaluation and aggregation.
"""

from typing import Optional, Sequence, Union

from ..structural import ModelHandle, select_channels
from .frequency_sampler import FrequencyGrid, SamplingPolicy, sample_frequencies
from .result_aggregator import FrequencyResponse, aggregate
from .transfer_function_evaluator import EvaluatorConfig, TransferFunctionEvaluator


def compute_frequency_response(
    model: ModelHandle,
    inputs: Sequence[str],
    outputs: Sequence[str],
    frequencies: Union[FrequencyGrid, SamplingPolicy, float, Sequence[float]],
    config: Optional[EvaluatorConfig] = None
) -> FrequencyResponse:
    """
    Channel selection, sampling, evaluation and aggregation in one call.

    Channel names and frequencies are validated before any evaluation.

    Parameters
    ----------
    model : ModelHandle
        Modal model
    inputs, outputs : Sequence[str]
        Channel group names, in transfer matrix column/row order
    frequencies : FrequencyGrid, SamplingPolicy, float or list
        Evaluation frequencies [Hz]
    config : EvaluatorConfig, optional
        Evaluator configuration

    Returns
    -------
    FrequencyResponse
        Labelled frequency response
    """
    selection = select_channels(model, inputs, outputs)
    grid = sample_frequencies(frequencies)
    evaluator = TransferFunctionEvaluator(model, selection, config)
    samples = evaluator.evaluate(grid)
    f = model.eigen_frequencies_hz
    metadata = {
        'fem': model.name,
        'fem_eigen_frequency_range': (float(f[0]), float(f[-1])),
        'n_modes': model.n_modes,
        'output_derivative': evaluator.config.output_derivative,
    }
    return aggregate(grid, samples, selection, metadata)

"""
Frequency Response Evaluation of FEM Structural Models

This package computes the complex transfer matrices of a structural model
between selected input and output channel groups, over a frequency grid.

Mathematical Foundation
-----------------------
The structure is represented in modal coordinates: mode k has natural
frequency ω_k, damping ratio ζ_k, input mode shape B_k (row of B) and
output mode shape C_k (column of C). At ω = 2πf:

$$T(j\\omega) = \\sum_k \\frac{C_{:,k} B_{k,:}}{\\omega_k^2 - \\omega^2 + 2 j \\zeta_k \\omega_k \\omega}$$

Pipeline
--------
1. Sample frequencies (explicit set or log-space range)
2. Evaluate T(jω) at every frequency (thread-parallel over frequencies)
3. Aggregate the samples with the frequency grid and channel labels
4. Export (pkl, mat, json, csv) and plot (Bode)

References
----------
[1] Gawronski, W.K., "Dynamics and Control of Structures: A Modal
    Approach", Springer, 1998.
[2] Craig, R.R., Kurdila, A.J., "Fundamentals of Structural Dynamics",
    2nd Ed., Wiley, 2006.
"""

from .frequency_sampler import (
    ExplicitFrequencies,
    LogSpaceRange,
    FrequencyGrid,
    SamplingPolicy,
    sample_frequencies,
    logspace,
    frequency_set,
)

from .transfer_function_evaluator import (
    TransferFunctionEvaluator,
    EvaluatorConfig,
    Accumulation,
)

from .result_aggregator import (
    FrequencyResponse,
    aggregate,
)

from .filters import (
    ElementaryTransferFunction,
    FirstOrderLowPass,
    BesselFilter,
    PICompensator,
)

from .data_logger import (
    TransferFunctionData,
    LoggerConfig,
    load,
    verify_checksum,
    export_format,
)

from .frequency_response_plotter import (
    FrequencyResponsePlotter,
    PlotConfig,
    PlotStyle,
)

from .pipeline import compute_frequency_response

__all__ = [
    # Sampler
    'ExplicitFrequencies',
    'LogSpaceRange',
    'FrequencyGrid',
    'SamplingPolicy',
    'sample_frequencies',
    'logspace',
    'frequency_set',
    # Evaluator
    'TransferFunctionEvaluator',
    'EvaluatorConfig',
    'Accumulation',
    # Aggregator
    'FrequencyResponse',
    'aggregate',
    # Filters
    'ElementaryTransferFunction',
    'FirstOrderLowPass',
    'BesselFilter',
    'PICompensator',
    # Logger
    'TransferFunctionData',
    'LoggerConfig',
    'load',
    'verify_checksum',
    'export_format',
    # Plotter
    'FrequencyResponsePlotter',
    'PlotConfig',
    'PlotStyle',
    # Pipeline
    'compute_frequency_response',
]

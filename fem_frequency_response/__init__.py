"""
FEM Frequency Response

Transfer functions of a finite element structural model between selected
input and output channel groups, computed by modal superposition.

Example Usage
-------------
>>> from fem_frequency_response import load_model, compute_frequency_response
>>> from fem_frequency_response import LogSpaceRange
>>> model = load_model(structural_damping=0.02, eigen_frequency_max=500.0)
>>> response = compute_frequency_response(
...     model, ['OSS_ElDrive_Torque'], ['OSS_ElEncoder_Angle'],
...     LogSpaceRange(0.1, 100.0, 1000))
"""

from .core.errors import (
    FrequencyResponseError,
    ChannelNotFound,
    InvalidFrequency,
    InvalidRange,
    SingularMode,
    ShapeMismatch,
    ModelLoadError,
    DataFileExtensionError,
    MissingFileExtensionError,
)
from .core.structural import (
    ModelHandle,
    ChannelSelection,
    select_channels,
    FEMLoader,
    LoaderConfig,
    load_model,
)
from .core.frequency_response import (
    ExplicitFrequencies,
    LogSpaceRange,
    FrequencyGrid,
    sample_frequencies,
    TransferFunctionEvaluator,
    EvaluatorConfig,
    FrequencyResponse,
    aggregate,
    TransferFunctionData,
    load,
    compute_frequency_response,
)

__version__ = "1.0.0"
__all__ = [
    "FrequencyResponseError",
    "ChannelNotFound",
    "InvalidFrequency",
    "InvalidRange",
    "SingularMode",
    "ShapeMismatch",
    "ModelLoadError",
    "DataFileExtensionError",
    "MissingFileExtensionError",
    "ModelHandle",
    "ChannelSelection",
    "select_channels",
    "FEMLoader",
    "LoaderConfig",
    "load_model",
    "ExplicitFrequencies",
    "LogSpaceRange",
    "FrequencyGrid",
    "sample_frequencies",
    "TransferFunctionEvaluator",
    "EvaluatorConfig",
    "FrequencyResponse",
    "aggregate",
    "TransferFunctionData",
    "load",
    "compute_frequency_response",
]

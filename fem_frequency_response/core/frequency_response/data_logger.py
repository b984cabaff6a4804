"""
Transfer Function Data Export

Persists a FrequencyResponse together with the description of the model it
was computed from. The file format follows the file extension:

- ``.pkl``: Python pickle of plain dicts/lists/floats (no numpy objects), so
  it can be read from other languages with a generic pickle decoder
- ``.mat``: MATLAB struct ``transfer_functions`` for engineering tools
- ``.json``: same structure as the pickle, with an integrity checksum
- ``.csv``: long table, one row per (frequency, output, input)

Data Schema (pkl / json)
------------------------
{
    "fem": "20250506_1715_zen_30_M1_202110_FSM_202305_Mount_202305_noStairs",
    "inputs": ["OSS_ElDrive_Torque"],
    "outputs": ["OSS_ElEncoder_Angle"],
    "input_labels": [...], "output_labels": [...],
    "modal_damping_coefficient": 0.02,
    "fem_eigen_frequency_range": [0.0, 3000.0],
    "frequency_response": {
        "data": [
            {"frequency": 1.0, "real": [[...]], "imag": [[...]],
             "magnitude": [[...]], "phase": [[...]]},
            ...
        ]
    },
    "metadata": {...}
}

Real and imaginary parts are stored as float64, so pkl, mat and json
exports are lossless. Files are written to a temporary file first and
renamed on success: a failed export never leaves a partial file behind.
"""

import hashlib
import json
import os
import pickle
import tempfile
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from scipy.io import loadmat, savemat

from ..errors import DataFileExtensionError, MissingFileExtensionError
from ..structural.fem_loader import as_string_list
from ..structural.model_handle import ModelHandle
from .result_aggregator import FrequencyResponse


SUPPORTED_EXTENSIONS = ('pkl', 'mat', 'json', 'csv')
LOADABLE_EXTENSIONS = ('pkl', 'mat', 'json')


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy arrays."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, (np.bool_,)):
            return bool(obj)
        if isinstance(obj, complex):
            return {'real': obj.real, 'imag': obj.imag}
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


@dataclass
class LoggerConfig:
    """
    Configuration of the transfer function data export.

    Attributes
    ----------
    pretty_print : bool
        Format JSON with indentation
    include_checksum : bool
        Add an integrity checksum to JSON files
    version : str
        Data format version string
    verbose : bool
        Print saved file notices
    """
    pretty_print: bool = True
    include_checksum: bool = True
    version: str = '1.0.0'
    verbose: bool = True


def response_checksum(frequencies_hz: np.ndarray, response: np.ndarray) -> str:
    """MD5 checksum of the frequency grid and the complex transfer matrices."""
    combined = np.concatenate([
        np.ascontiguousarray(frequencies_hz, dtype=np.float64).ravel(),
        np.ascontiguousarray(response.real, dtype=np.float64).ravel(),
        np.ascontiguousarray(response.imag, dtype=np.float64).ravel(),
    ])
    return hashlib.md5(combined.tobytes()).hexdigest()


@dataclass
class TransferFunctionData:
    """
    FEM transfer function data product.

    Attributes
    ----------
    fem : str
        FEM model name
    inputs : List[str]
        Input channel group names
    outputs : List[str]
        Output channel group names
    modal_damping_coefficient : float, optional
        Uniform modal damping used for the run (None: model damping)
    fem_eigen_frequency_range : Tuple[float, float]
        Lowest and highest natural frequency of the model [Hz]
    frequency_response : FrequencyResponse
        The evaluated frequency response
    """
    fem: str
    inputs: List[str]
    outputs: List[str]
    frequency_response: FrequencyResponse
    modal_damping_coefficient: Optional[float] = None
    fem_eigen_frequency_range: Tuple[float, float] = (np.nan, np.nan)
    config: LoggerConfig = field(default_factory=LoggerConfig, repr=False)

    @classmethod
    def from_response(
        cls,
        frequency_response: FrequencyResponse,
        model: Optional[ModelHandle] = None,
        modal_damping_coefficient: Optional[float] = None,
        config: Optional[LoggerConfig] = None
    ) -> 'TransferFunctionData':
        """Build the data product, taking the model description from ``model``."""
        if model is not None:
            f = model.eigen_frequencies_hz
            fem = model.name
            f_range = (float(f[0]), float(f[-1]))
        else:
            fem = str(frequency_response.metadata.get('fem', 'FEM'))
            f_range = tuple(frequency_response.metadata.get(
                'fem_eigen_frequency_range', (np.nan, np.nan)))
        return cls(
            fem=fem,
            inputs=list(frequency_response.inputs),
            outputs=list(frequency_response.outputs),
            frequency_response=frequency_response,
            modal_damping_coefficient=modal_damping_coefficient,
            fem_eigen_frequency_range=f_range,
            config=config or LoggerConfig(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain python structure written to pkl and json files."""
        fr = self.frequency_response
        magnitude, phase = fr.magnitude(), fr.phase()
        data = [
            {
                'frequency': float(f),
                'real': fr.response[i].real.tolist(),
                'imag': fr.response[i].imag.tolist(),
                'magnitude': magnitude[i].tolist(),
                'phase': phase[i].tolist(),
            }
            for i, f in enumerate(fr.frequencies_hz)
        ]
        return {
            'fem': self.fem,
            'inputs': list(self.inputs),
            'outputs': list(self.outputs),
            'input_labels': list(fr.input_labels),
            'output_labels': list(fr.output_labels),
            'modal_damping_coefficient': self.modal_damping_coefficient,
            'fem_eigen_frequency_range': [float(v) for v in self.fem_eigen_frequency_range],
            'frequency_response': {'data': data},
            'metadata': _plain(fr.metadata),
        }

    def dump(self, path: Union[str, Path]) -> Path:
        """
        Write the data to a pkl, mat, json or csv file.

        The file extension sets the file type.

        Raises
        ------
        MissingFileExtensionError
            If ``path`` has no extension
        DataFileExtensionError
            If the extension is not supported
        """
        path = Path(path)
        writer = self._writer(path)
        start = datetime.now()
        _atomic_write(path, writer)
        if self.config.verbose:
            elapsed = (datetime.now() - start).total_seconds() * 1e3
            print(f"  [{path.suffix[1:].upper()}] Saved: {path} ({elapsed:.0f}ms)")
        return path

    def _writer(self, path: Path) -> Callable[[Path], None]:
        return {
            'pkl': self._save_pickle,
            'mat': self._save_mat,
            'json': self._save_json,
            'csv': self._save_csv,
        }[export_format(path)]

    def _save_pickle(self, filepath: Path) -> None:
        with open(filepath, 'wb') as f:
            pickle.dump(self.to_dict(), f, protocol=3)

    def _save_json(self, filepath: Path) -> None:
        data = self.to_dict()
        data['metadata']['version'] = self.config.version
        data['metadata']['timestamp'] = datetime.now().isoformat()
        if self.config.include_checksum:
            fr = self.frequency_response
            data['metadata']['checksum'] = response_checksum(fr.frequencies_hz, fr.response)
        indent = 2 if self.config.pretty_print else None
        with open(filepath, 'w') as f:
            json.dump(data, f, cls=NumpyEncoder, indent=indent)

    def _save_mat(self, filepath: Path) -> None:
        fr = self.frequency_response
        mstruct = {
            'fem': self.fem,
            'inputs': np.array(self.inputs, dtype=object),
            'outputs': np.array(self.outputs, dtype=object),
            'input_labels': np.array(fr.input_labels, dtype=object),
            'output_labels': np.array(fr.output_labels, dtype=object),
            'modal_damping_coefficient': (np.nan if self.modal_damping_coefficient is None
                                          else float(self.modal_damping_coefficient)),
            'fem_eigen_frequency_range': np.array(self.fem_eigen_frequency_range, dtype=np.float64),
            'frequencies': np.asarray(fr.frequencies_hz, dtype=np.float64),
            # MATLAB convention: frequency on the last axis
            'frequency_response': np.ascontiguousarray(np.moveaxis(fr.response, 0, -1)),
            'magnitude': np.ascontiguousarray(np.moveaxis(fr.magnitude(), 0, -1)),
            'phase': np.ascontiguousarray(np.moveaxis(fr.phase(), 0, -1)),
        }
        with open(filepath, 'wb') as f:
            savemat(f, {'transfer_functions': mstruct}, do_compression=True)

    def _save_csv(self, filepath: Path) -> None:
        self.frequency_response.to_dataframe().to_csv(filepath, index=False, float_format='%.17g')


def export_format(path: Union[str, Path]) -> str:
    """
    Export file type of ``path`` ('pkl', 'mat', 'json' or 'csv').

    Raises MissingFileExtensionError / DataFileExtensionError, so a file name
    can be checked before any computation.
    """
    return _extension(Path(path), SUPPORTED_EXTENSIONS)


def _extension(path: Path, supported: Tuple[str, ...]) -> str:
    if not path.suffix:
        raise MissingFileExtensionError(supported)
    ext = path.suffix[1:].lower()
    if ext not in supported:
        raise DataFileExtensionError(ext, supported)
    return ext


def _atomic_write(path: Path, writer: Callable[[Path], None]) -> None:
    """Write through a temporary file in the target directory, then rename."""
    directory = path.parent if str(path.parent) else Path('.')
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f'.{path.stem}.', suffix=path.suffix, dir=directory)
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        writer(tmp)
        # mkstemp creates 0600; exported files get the umask default
        mask = os.umask(0)
        os.umask(mask)
        os.chmod(tmp, 0o666 & ~mask)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


def _plain(value: Any) -> Any:
    """Recursively convert numpy scalars/arrays to python objects."""
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Path):
        return str(value)
    return value


def _from_dict(data: Dict[str, Any]) -> FrequencyResponse:
    records = data['frequency_response']['data']
    frequencies = np.array([r['frequency'] for r in records], dtype=np.float64)
    n_out, n_in = len(data['output_labels']), len(data['input_labels'])
    response = np.empty((len(records), n_out, n_in), dtype=np.complex128)
    for i, r in enumerate(records):
        response[i].real = np.asarray(r['real'], dtype=np.float64).reshape(n_out, n_in)
        response[i].imag = np.asarray(r['imag'], dtype=np.float64).reshape(n_out, n_in)
    metadata = dict(data.get('metadata') or {})
    metadata['fem'] = data.get('fem')
    metadata['modal_damping_coefficient'] = data.get('modal_damping_coefficient')
    metadata['fem_eigen_frequency_range'] = tuple(data.get('fem_eigen_frequency_range', ()))
    return _frozen_response(frequencies, response, data, metadata)


def _from_mat(filepath: Path) -> FrequencyResponse:
    mat = loadmat(str(filepath), squeeze_me=True, struct_as_record=False)
    s = mat['transfer_functions']
    input_labels = as_string_list(s.input_labels)
    output_labels = as_string_list(s.output_labels)
    frequencies = np.atleast_1d(np.asarray(s.frequencies, dtype=np.float64))
    shape = (len(output_labels), len(input_labels), frequencies.size)
    response = np.moveaxis(
        np.asarray(s.frequency_response, dtype=np.complex128).reshape(shape), -1, 0)
    damping = float(s.modal_damping_coefficient)
    data = {
        'inputs': as_string_list(s.inputs),
        'outputs': as_string_list(s.outputs),
        'input_labels': input_labels,
        'output_labels': output_labels,
    }
    metadata = {
        'fem': str(s.fem),
        'modal_damping_coefficient': None if np.isnan(damping) else damping,
        'fem_eigen_frequency_range': tuple(np.atleast_1d(s.fem_eigen_frequency_range).tolist()),
    }
    return _frozen_response(frequencies, np.ascontiguousarray(response), data, metadata)


def _frozen_response(frequencies, response, data, metadata) -> FrequencyResponse:
    frequencies.setflags(write=False)
    response.setflags(write=False)
    return FrequencyResponse(
        frequencies_hz=frequencies,
        response=response,
        inputs=list(data['inputs']),
        outputs=list(data['outputs']),
        input_labels=list(data['input_labels']),
        output_labels=list(data['output_labels']),
        metadata=metadata,
    )


def load(path: Union[str, Path]) -> FrequencyResponse:
    """
    Load a frequency response written by :meth:`TransferFunctionData.dump`.

    Parameters
    ----------
    path : Path or str
        pkl, mat or json file

    Returns
    -------
    FrequencyResponse
        Frequency response; the model description is in ``metadata``
    """
    path = Path(path)
    ext = _extension(path, LOADABLE_EXTENSIONS)
    if ext == 'mat':
        return _from_mat(path)
    if ext == 'pkl':
        with open(path, 'rb') as f:
            data = pickle.load(f)
    else:
        with open(path, 'r') as f:
            data = json.load(f)
    return _from_dict(data)


def verify_checksum(filepath: Union[str, Path]) -> bool:
    """
    Verify the integrity of a JSON export using its stored checksum.

    Returns True when the file has no checksum.
    """
    with open(filepath, 'r') as f:
        data = json.load(f)
    stored = data.get('metadata', {}).get('checksum')
    if stored is None:
        print("No checksum found in file")
        return True
    fr = _from_dict(data)
    computed = response_checksum(fr.frequencies_hz, fr.response)
    if computed != stored:
        print(f"Checksum mismatch: {computed} != {stored}")
        return False
    return True

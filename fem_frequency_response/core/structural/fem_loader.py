"""
FEM Modal Model Loader

Loads the second-order modal model of the structure from the FEM model
directory (``FEM_REPO``) and returns an immutable :class:`ModelHandle`.

File Format
-----------
``modal_state_space_model_2ndOrder.mat`` (MATLAB v5, read with
``scipy.io.loadmat``) with the variables:

=========================  ====================================================
``eigenfrequencies``       natural frequencies [Hz], (n_modes,)
``proportionalDampingVec`` modal damping ratios, (n_modes,)
``inputs2ModalF``          input mode shapes B, (n_modes, n_inputs)
``modalDisp2Outputs``      output mode shapes C, (n_outputs, n_modes)
``input_names``            input channel group names (cell array of strings)
``input_sizes``            channel count of each input group
``output_names``           output channel group names
``output_sizes``           channel count of each output group
``input_units``            optional unit tag of each input group
``output_units``           optional unit tag of each output group
=========================  ====================================================

Load-Time Options
-----------------
- ``structural_damping``: uniform damping ratio overriding the file's
  per-mode damping (the default 2% matches the telescope design value);
  ``None`` keeps the file damping.
- ``eigen_frequency_min`` / ``eigen_frequency_max`` [Hz]: modes outside
  the band are removed from the model. This is the only place where modal
  truncation happens.
"""

import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from scipy.io import loadmat

from ..config import DEFAULT_STRUCTURAL_DAMPING, resolve_fem_repo, resolve_model_file
from ..errors import ModelLoadError
from .model_handle import ModelHandle, build_catalog


REQUIRED_VARIABLES = (
    'eigenfrequencies',
    'inputs2ModalF',
    'modalDisp2Outputs',
    'input_names',
    'input_sizes',
    'output_names',
    'output_sizes',
)


@dataclass
class LoaderConfig:
    """
    Configuration of the FEM loader.

    Attributes
    ----------
    fem_repo : Path or str, optional
        FEM model directory or file; defaults to the ``FEM_REPO`` environment
        variable
    structural_damping : float, optional
        Uniform modal damping ratio; None keeps the model damping
    eigen_frequency_min : float, optional
        Lowest kept natural frequency [Hz]
    eigen_frequency_max : float, optional
        Highest kept natural frequency [Hz]
    verbose : bool
        Print the model summary once loaded
    """
    fem_repo: Optional[Union[str, Path]] = None
    structural_damping: Optional[float] = DEFAULT_STRUCTURAL_DAMPING
    eigen_frequency_min: Optional[float] = None
    eigen_frequency_max: Optional[float] = None
    verbose: bool = True


def as_string_list(value: Any) -> List[str]:
    """Normalize a loadmat cell array / char array / scalar to a list of str."""
    array = np.atleast_1d(np.asarray(value, dtype=object))
    return [str(v).strip() for v in array.ravel()]


class FEMLoader:
    """
    Loader of the FEM modal model.

    Example Usage
    -------------
    >>> loader = FEMLoader(LoaderConfig(structural_damping=0.02,
    ...                                 eigen_frequency_max=100.0))
    >>> model = loader.load()
    >>> print(model)

    Parameters
    ----------
    config : LoaderConfig, optional
        Loader configuration
    """

    def __init__(self, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig()

    def load(self) -> ModelHandle:
        """
        Load, truncate and validate the model.

        Raises
        ------
        ModelLoadError
            Missing location, missing file, missing variables or
            inconsistent data
        """
        repo = resolve_fem_repo(self.config.fem_repo)
        model_file = resolve_model_file(repo)
        if self.config.verbose:
            print(f"Loading FEM modal model from {model_file}")
        data = self._read(model_file)
        name = repo.name if repo.is_dir() else repo.stem
        model = self.from_dict(data, name=name)
        if self.config.verbose:
            print(model)
        return model

    @staticmethod
    def _read(model_file: Path) -> Dict[str, Any]:
        try:
            data = loadmat(str(model_file), squeeze_me=True, chars_as_strings=True)
        except (OSError, ValueError, NotImplementedError) as e:
            raise ModelLoadError(f"failed to read FEM model file {model_file}: {e}") from e
        missing = [v for v in REQUIRED_VARIABLES if v not in data]
        if missing:
            raise ModelLoadError(
                f"FEM model file {model_file} is missing: {', '.join(missing)}"
            )
        return data

    def from_dict(self, data: Dict[str, Any], name: str = 'FEM') -> ModelHandle:
        """
        Build the model handle from the file variables.

        Applies the damping override and the eigen frequency band.
        """
        try:
            f_hz = np.atleast_1d(np.asarray(data['eigenfrequencies'], dtype=np.float64))
            n_modes = f_hz.size
            b = np.asarray(data['inputs2ModalF'], dtype=np.float64).reshape(n_modes, -1)
            c = np.asarray(data['modalDisp2Outputs'], dtype=np.float64).reshape(-1, n_modes)
            input_catalog = build_catalog(
                as_string_list(data['input_names']),
                np.atleast_1d(data['input_sizes']).astype(int).tolist(),
                as_string_list(data['input_units']) if 'input_units' in data else None,
            )
            output_catalog = build_catalog(
                as_string_list(data['output_names']),
                np.atleast_1d(data['output_sizes']).astype(int).tolist(),
                as_string_list(data['output_units']) if 'output_units' in data else None,
            )
        except (TypeError, ValueError) as e:
            raise ModelLoadError(f"malformed FEM model data: {e}") from e

        if self.config.structural_damping is not None:
            zeta = np.full(n_modes, float(self.config.structural_damping))
        elif 'proportionalDampingVec' in data:
            zeta = np.atleast_1d(np.asarray(data['proportionalDampingVec'], dtype=np.float64))
        else:
            raise ModelLoadError(
                "the FEM model has no modal damping and no structural damping was given"
            )

        keep = self.eigen_frequency_band(f_hz)
        if not np.any(keep):
            raise ModelLoadError(
                f"no mode in the eigen frequency band "
                f"[{self.config.eigen_frequency_min}, {self.config.eigen_frequency_max}] Hz"
            )
        if zeta.size == n_modes:
            zeta = zeta[keep]

        return ModelHandle.from_arrays(
            inputs_to_modes=b[keep, :],
            modes_to_outputs=c[:, keep],
            damping=zeta,
            input_groups=input_catalog,
            output_groups=output_catalog,
            eigen_frequencies_hz=f_hz[keep],
            name=name,
            metadata={
                'n_modes_total': n_modes,
                'eigen_frequency_min': self.config.eigen_frequency_min,
                'eigen_frequency_max': self.config.eigen_frequency_max,
                'structural_damping': self.config.structural_damping,
            },
        )

    def eigen_frequency_band(self, f_hz: np.ndarray) -> np.ndarray:
        """Boolean mask of the modes inside [min, max] Hz (bounds included)."""
        keep = np.ones(f_hz.shape, dtype=bool)
        if self.config.eigen_frequency_min is not None:
            keep &= f_hz >= self.config.eigen_frequency_min
        if self.config.eigen_frequency_max is not None:
            keep &= f_hz <= self.config.eigen_frequency_max
        return keep


def load_model(
    fem_repo: Optional[Union[str, Path]] = None,
    structural_damping: Optional[float] = DEFAULT_STRUCTURAL_DAMPING,
    eigen_frequency_min: Optional[float] = None,
    eigen_frequency_max: Optional[float] = None,
    verbose: bool = False
) -> ModelHandle:
    """Convenience wrapper around :class:`FEMLoader`."""
    return FEMLoader(LoaderConfig(
        fem_repo=fem_repo,
        structural_damping=structural_damping,
        eigen_frequency_min=eigen_frequency_min,
        eigen_frequency_max=eigen_frequency_max,
        verbose=verbose,
    )).load()

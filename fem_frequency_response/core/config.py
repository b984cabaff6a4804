"""
Centralized defaults and model location resolution.

The FEM model directory is given by the ``FEM_REPO`` environment variable.
It is resolved once by the front-end (CLI or loader); the numerical core
only ever sees the already loaded model handle.
"""

import os
from pathlib import Path
from typing import Mapping, Optional, Union

from .errors import ModelLoadError


FEM_REPO_ENV = 'FEM_REPO'
MODEL_FILENAME = 'modal_state_space_model_2ndOrder.mat'

DEFAULT_STRUCTURAL_DAMPING = 0.02
DEFAULT_RESULT_FILENAME = 'gmt_frequency_response.pkl'
DEFAULT_CHUNK_SIZE = 32


def resolve_fem_repo(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Path:
    """
    Return the FEM model directory.

    Parameters
    ----------
    path : str or Path, optional
        Explicit location; takes precedence over the environment
    environ : Mapping, optional
        Environment to read ``FEM_REPO`` from (defaults to ``os.environ``)

    Raises
    ------
    ModelLoadError
        If no location is given or it does not exist
    """
    if path is None:
        env = os.environ if environ is None else environ
        path = env.get(FEM_REPO_ENV)
        if not path:
            raise ModelLoadError(
                f"the FEM model location is not set: define the {FEM_REPO_ENV} "
                "environment variable"
            )
    repo = Path(path).expanduser()
    if not repo.exists():
        raise ModelLoadError(f"FEM model location {repo} does not exist")
    return repo


def resolve_model_file(repo: Union[str, Path]) -> Path:
    """Model file inside ``repo``, or ``repo`` itself when it is a file."""
    repo = Path(repo)
    if repo.is_file():
        return repo
    model_file = repo / MODEL_FILENAME
    if not model_file.is_file():
        raise ModelLoadError(f"FEM model file {MODEL_FILENAME} not found in {repo}")
    return model_file

"""
Control Design Module for the FEM Frequency Response Package

State-space realizations of the structural modal model for use with
python-control.
"""

from .system_models import SystemModeler, LinearModel, modal_state_space

__all__ = [
    "SystemModeler",
    "LinearModel",
    "modal_state_space",
]

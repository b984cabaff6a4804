"""
Structural model package: read-only modal model, FEM loader and channel
group selection.
"""

from .model_handle import (
    ChannelGroup,
    Mode,
    ModelHandle,
    build_catalog,
)
from .channel_selector import (
    ChannelSelection,
    select_channels,
)
from .fem_loader import (
    FEMLoader,
    LoaderConfig,
    load_model,
    as_string_list,
)

__all__ = [
    'ChannelGroup',
    'Mode',
    'ModelHandle',
    'build_catalog',
    'ChannelSelection',
    'select_channels',
    'FEMLoader',
    'LoaderConfig',
    'load_model',
    'as_string_list',
]

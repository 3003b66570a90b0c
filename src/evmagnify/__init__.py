"""Eulerian video magnification of subtle periodic intensity changes."""

from .color import ColorMagnifier
from .config import (
    MagnificationPreset,
    MagnifierConfig,
    PipelineConfig,
    RuntimeConfig,
    SamplingConfig,
)
from .errors import (
    ConfigurationError,
    DimensionMismatchError,
    EvmError,
    FilterStateError,
)
from .filters import FilterCoefficients, butter_lowpass, frequency_response
from .magnifier import EvmMagnifier
from .pyramid import (
    Pyramid,
    amplify_pyramid,
    build_gaussian_pyramid,
    collapse_pyramid,
)
from .runner import run_magnification
from .temporal import FilterPhase, FilterState, TemporalBandpassFilter

__version__ = "0.1.0"

__all__ = [
    "ColorMagnifier",
    "ConfigurationError",
    "DimensionMismatchError",
    "EvmError",
    "EvmMagnifier",
    "FilterCoefficients",
    "FilterPhase",
    "FilterState",
    "FilterStateError",
    "MagnificationPreset",
    "MagnifierConfig",
    "PipelineConfig",
    "Pyramid",
    "RuntimeConfig",
    "SamplingConfig",
    "TemporalBandpassFilter",
    "amplify_pyramid",
    "build_gaussian_pyramid",
    "butter_lowpass",
    "collapse_pyramid",
    "frequency_response",
    "run_magnification",
]

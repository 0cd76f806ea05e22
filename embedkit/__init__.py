"""Generic dimensionality reduction over opaque data accessed through callbacks."""

from .callbacks import Callbacks, array_callbacks, gaussian_kernel
from .context import ExecutionContext
from .engine import EmbedOutcome, build_context, dispatch, embed, try_embed
from .errors import (
    CancelledError,
    CapabilityMissingError,
    DimensionMismatchError,
    EigendecompositionError,
    EmbedkitError,
    MissingParameterError,
    NotEnoughMemoryError,
    UnsupportedMethodError,
    WrongParameterTypeError,
    WrongParameterValueError,
)
from .matrix_ops import compute_centered_kernel, compute_covariance
from .methods import EigenMethod, Method, NeighborsMethod
from .parameters import Parameter, ParametersMap, validate_and_default
from .projection import ProjectionArtifact, project
from .registry import global_method_registry, register_method
from .variants.base import EmbeddingResult, MethodImplementation

__version__ = "0.1.0"

__all__ = [
    "Callbacks",
    "CancelledError",
    "CapabilityMissingError",
    "DimensionMismatchError",
    "EigenMethod",
    "EigendecompositionError",
    "EmbedOutcome",
    "EmbeddingResult",
    "EmbedkitError",
    "ExecutionContext",
    "Method",
    "MethodImplementation",
    "MissingParameterError",
    "NeighborsMethod",
    "NotEnoughMemoryError",
    "Parameter",
    "ParametersMap",
    "ProjectionArtifact",
    "UnsupportedMethodError",
    "WrongParameterTypeError",
    "WrongParameterValueError",
    "array_callbacks",
    "build_context",
    "compute_centered_kernel",
    "compute_covariance",
    "dispatch",
    "embed",
    "gaussian_kernel",
    "global_method_registry",
    "project",
    "register_method",
    "try_embed",
    "validate_and_default",
]

"""Method implementations.

Importing this package registers every implementation with the global
method registry.
"""

from .base import EmbeddingResult, MethodImplementation
from .distance import (  # noqa: F401
    DiffusionMapImplementation,
    IsomapImplementation,
    LandmarkIsomapImplementation,
    LandmarkMultidimensionalScalingImplementation,
    LaplacianEigenmapsImplementation,
    LocalityPreservingProjectionsImplementation,
    MultidimensionalScalingImplementation,
)
from .kernel import (  # noqa: F401
    KernelLocallyLinearEmbeddingImplementation,
    KernelPCAImplementation,
    NeighborhoodPreservingEmbeddingImplementation,
)
from .linear import (  # noqa: F401
    FactorAnalysisImplementation,
    PassThruImplementation,
    PCAImplementation,
    RandomProjectionImplementation,
)
from .stochastic import (  # noqa: F401
    StochasticProximityEmbeddingImplementation,
    TSNEImplementation,
)

__all__ = [
    "DiffusionMapImplementation",
    "EmbeddingResult",
    "FactorAnalysisImplementation",
    "IsomapImplementation",
    "KernelLocallyLinearEmbeddingImplementation",
    "KernelPCAImplementation",
    "LandmarkIsomapImplementation",
    "LandmarkMultidimensionalScalingImplementation",
    "LaplacianEigenmapsImplementation",
    "LocalityPreservingProjectionsImplementation",
    "MethodImplementation",
    "MultidimensionalScalingImplementation",
    "NeighborhoodPreservingEmbeddingImplementation",
    "PassThruImplementation",
    "PCAImplementation",
    "RandomProjectionImplementation",
    "StochasticProximityEmbeddingImplementation",
    "TSNEImplementation",
]

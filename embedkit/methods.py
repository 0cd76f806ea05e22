"""Enumerations for reduction methods and numeric backends."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Type, TypeVar, Union

KERNEL = "kernel"
DISTANCE = "distance"
FEATURE_VECTOR = "feature_vector"

CAPABILITIES: FrozenSet[str] = frozenset({KERNEL, DISTANCE, FEATURE_VECTOR})

E = TypeVar("E", bound=Enum)


class Method(Enum):
    """Closed set of dimensionality reduction methods."""

    KERNEL_LOCALLY_LINEAR_EMBEDDING = "kernel_locally_linear_embedding"
    KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT = "kernel_local_tangent_space_alignment"
    DIFFUSION_MAP = "diffusion_map"
    MULTIDIMENSIONAL_SCALING = "multidimensional_scaling"
    LANDMARK_MULTIDIMENSIONAL_SCALING = "landmark_multidimensional_scaling"
    ISOMAP = "isomap"
    LANDMARK_ISOMAP = "landmark_isomap"
    NEIGHBORHOOD_PRESERVING_EMBEDDING = "neighborhood_preserving_embedding"
    LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT = "linear_local_tangent_space_alignment"
    HESSIAN_LOCALLY_LINEAR_EMBEDDING = "hessian_locally_linear_embedding"
    LAPLACIAN_EIGENMAPS = "laplacian_eigenmaps"
    LOCALITY_PRESERVING_PROJECTIONS = "locality_preserving_projections"
    PCA = "pca"
    KERNEL_PCA = "kernel_pca"
    RANDOM_PROJECTION = "random_projection"
    STOCHASTIC_PROXIMITY_EMBEDDING = "stochastic_proximity_embedding"
    PASS_THRU = "pass_thru"
    FACTOR_ANALYSIS = "factor_analysis"
    T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING = "t_distributed_stochastic_neighbor_embedding"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def required_capabilities(self) -> FrozenSet[str]:
        return _REQUIRED_CAPABILITIES[self]

    @property
    def uses_neighbors(self) -> bool:
        """Whether the method may build a k-nearest-neighbor graph."""
        return self in _NEIGHBOR_METHODS


class EigenMethod(Enum):
    """Eigensolver backends."""

    ARPACK = "arpack"
    DENSE = "dense"


class NeighborsMethod(Enum):
    """Neighbor search backends."""

    BRUTE_FORCE = "brute_force"
    KD_TREE = "kd_tree"


_DISPLAY_NAMES: Dict[Method, str] = {
    Method.KERNEL_LOCALLY_LINEAR_EMBEDDING: "Kernel Locally Linear Embedding",
    Method.KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT: "Local Tangent Space Alignment",
    Method.DIFFUSION_MAP: "Diffusion Map",
    Method.MULTIDIMENSIONAL_SCALING: "Classic Multidimensional Scaling",
    Method.LANDMARK_MULTIDIMENSIONAL_SCALING: "Landmark Multidimensional Scaling",
    Method.ISOMAP: "Isomap",
    Method.LANDMARK_ISOMAP: "Landmark Isomap",
    Method.NEIGHBORHOOD_PRESERVING_EMBEDDING: "Neighborhood Preserving Embedding",
    Method.LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT: "Linear Local Tangent Space Alignment",
    Method.HESSIAN_LOCALLY_LINEAR_EMBEDDING: "Hessian Locally Linear Embedding",
    Method.LAPLACIAN_EIGENMAPS: "Laplacian Eigenmaps",
    Method.LOCALITY_PRESERVING_PROJECTIONS: "Locality Preserving Projections",
    Method.PCA: "Principal Component Analysis",
    Method.KERNEL_PCA: "Kernel Principal Component Analysis",
    Method.RANDOM_PROJECTION: "Random Projection",
    Method.STOCHASTIC_PROXIMITY_EMBEDDING: "Stochastic Proximity Embedding",
    Method.PASS_THRU: "passing through",
    Method.FACTOR_ANALYSIS: "Factor Analysis",
    Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING: "t-distributed Stochastic Neighbor Embedding",
}

_REQUIRED_CAPABILITIES: Dict[Method, FrozenSet[str]] = {
    Method.KERNEL_LOCALLY_LINEAR_EMBEDDING: frozenset({KERNEL}),
    Method.KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT: frozenset({KERNEL}),
    Method.DIFFUSION_MAP: frozenset({DISTANCE}),
    Method.MULTIDIMENSIONAL_SCALING: frozenset({DISTANCE}),
    Method.LANDMARK_MULTIDIMENSIONAL_SCALING: frozenset({DISTANCE}),
    Method.ISOMAP: frozenset({DISTANCE}),
    Method.LANDMARK_ISOMAP: frozenset({DISTANCE}),
    Method.NEIGHBORHOOD_PRESERVING_EMBEDDING: frozenset({KERNEL, FEATURE_VECTOR}),
    Method.LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT: frozenset({KERNEL, FEATURE_VECTOR}),
    Method.HESSIAN_LOCALLY_LINEAR_EMBEDDING: frozenset({KERNEL}),
    Method.LAPLACIAN_EIGENMAPS: frozenset({DISTANCE}),
    Method.LOCALITY_PRESERVING_PROJECTIONS: frozenset({DISTANCE, FEATURE_VECTOR}),
    Method.PCA: frozenset({FEATURE_VECTOR}),
    Method.KERNEL_PCA: frozenset({KERNEL}),
    Method.RANDOM_PROJECTION: frozenset({FEATURE_VECTOR}),
    Method.STOCHASTIC_PROXIMITY_EMBEDDING: frozenset({DISTANCE}),
    Method.PASS_THRU: frozenset({FEATURE_VECTOR}),
    Method.FACTOR_ANALYSIS: frozenset({FEATURE_VECTOR}),
    Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING: frozenset({DISTANCE}),
}

# Stochastic proximity embedding only with its local strategy.
_NEIGHBOR_METHODS: FrozenSet[Method] = frozenset(
    {
        Method.KERNEL_LOCALLY_LINEAR_EMBEDDING,
        Method.KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT,
        Method.ISOMAP,
        Method.LANDMARK_ISOMAP,
        Method.NEIGHBORHOOD_PRESERVING_EMBEDDING,
        Method.LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT,
        Method.HESSIAN_LOCALLY_LINEAR_EMBEDDING,
        Method.LAPLACIAN_EIGENMAPS,
        Method.LOCALITY_PRESERVING_PROJECTIONS,
        Method.STOCHASTIC_PROXIMITY_EMBEDDING,
    }
)

# Short names accepted in parameter maps and configuration files.
METHOD_ALIASES: Dict[str, Method] = {
    "klle": Method.KERNEL_LOCALLY_LINEAR_EMBEDDING,
    "lle": Method.KERNEL_LOCALLY_LINEAR_EMBEDDING,
    "ltsa": Method.KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT,
    "dm": Method.DIFFUSION_MAP,
    "mds": Method.MULTIDIMENSIONAL_SCALING,
    "lmds": Method.LANDMARK_MULTIDIMENSIONAL_SCALING,
    "l-mds": Method.LANDMARK_MULTIDIMENSIONAL_SCALING,
    "l-isomap": Method.LANDMARK_ISOMAP,
    "npe": Method.NEIGHBORHOOD_PRESERVING_EMBEDDING,
    "lltsa": Method.LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT,
    "hlle": Method.HESSIAN_LOCALLY_LINEAR_EMBEDDING,
    "la": Method.LAPLACIAN_EIGENMAPS,
    "lpp": Method.LOCALITY_PRESERVING_PROJECTIONS,
    "kpca": Method.KERNEL_PCA,
    "ra": Method.RANDOM_PROJECTION,
    "spe": Method.STOCHASTIC_PROXIMITY_EMBEDDING,
    "fa": Method.FACTOR_ANALYSIS,
    "tsne": Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING,
    "t-sne": Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING,
}


def parse_enum(enum_cls: Type[E], value: Union[str, E], aliases: Dict[str, E] | None = None) -> E:
    """Resolve ``value`` to a member of ``enum_cls``.

    Strings are matched case-insensitively against member names, values and
    ``aliases``. Raises ``KeyError`` when nothing matches and ``TypeError``
    when ``value`` is neither a string nor a member.
    """

    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise TypeError(f"Cannot interpret {type(value).__name__} as {enum_cls.__name__}")

    key = value.strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    key = key.replace("-", "_").replace(" ", "_")
    for member in enum_cls:
        if member.value == key or member.name.lower() == key:
            return member
    raise KeyError(value)


def parse_method(value: Union[str, Method]) -> Method:
    return parse_enum(Method, value, METHOD_ALIASES)


__all__ = [
    "CAPABILITIES",
    "DISTANCE",
    "EigenMethod",
    "FEATURE_VECTOR",
    "KERNEL",
    "METHOD_ALIASES",
    "Method",
    "NeighborsMethod",
    "parse_enum",
    "parse_method",
]

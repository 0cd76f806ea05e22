"""k-nearest-neighbor search for the local (graph based) methods."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import networkx as nx
import numpy as np
from sklearn.neighbors import NearestNeighbors

from .callbacks import Callbacks
from .context import ExecutionContext, ensure_context
from .errors import CapabilityMissingError, WrongParameterValueError
from .matrix_ops import compute_distance_matrix, dense_feature_matrix
from .methods import NeighborsMethod
from .utils.logging.logging_manager import get_logger, timed_context

logger = get_logger("embedkit.neighbors")


@dataclass
class Neighbors:
    """Neighbor indices (``n_samples x k``, self excluded) and graph connectivity."""

    indices: np.ndarray
    connected: bool

    @property
    def k(self) -> int:
        return int(self.indices.shape[1])


def neighbors_from_distances(distance_matrix: np.ndarray, k: int) -> np.ndarray:
    """Indices of the ``k`` closest other samples for each row."""
    n_samples = distance_matrix.shape[0]
    masked = distance_matrix.astype(np.float64, copy=True)
    np.fill_diagonal(masked, np.inf)
    # Stable sort keeps ties in index order.
    return np.argsort(masked, axis=1, kind="stable")[:, :k].reshape(n_samples, k)


def is_connected(indices: np.ndarray) -> bool:
    """Whether the symmetrised neighbor graph has a single component."""
    graph = nx.Graph()
    graph.add_nodes_from(range(indices.shape[0]))
    for i, row in enumerate(indices):
        graph.add_edges_from((i, int(j)) for j in row)
    return nx.is_connected(graph)


def find_neighbors(
    method: NeighborsMethod,
    data: Sequence[Any],
    callbacks: Callbacks,
    k: int,
    *,
    check_connectivity: bool = True,
    distance_matrix: Optional[np.ndarray] = None,
    dimension: Optional[int] = None,
    context: Optional[ExecutionContext] = None,
) -> Neighbors:
    """Find the ``k`` nearest neighbors of every item.

    ``BRUTE_FORCE`` works from the pairwise distance matrix (computed through
    the distance callback unless one is passed in). ``KD_TREE`` needs feature
    vectors and uses scikit-learn's KD-tree.
    """
    context = ensure_context(context)
    n_samples = len(data)
    if k < 1:
        raise WrongParameterValueError(f"Number of neighbors must be positive, got {k}.")
    if k >= n_samples:
        raise WrongParameterValueError(
            f"Number of neighbors ({k}) must be less than the number of samples ({n_samples})."
        )

    with timed_context("Neighbors computation"):
        if method is NeighborsMethod.KD_TREE:
            if not callbacks.has_feature_vector:
                raise CapabilityMissingError(
                    "KD-tree neighbor search requires a feature vector callback."
                )
            if dimension is None:
                dimension = callbacks.vector(data[0]).shape[0]
            features = dense_feature_matrix(data, callbacks.vector, dimension, context)
            search = NearestNeighbors(n_neighbors=k + 1, algorithm="kd_tree").fit(features)
            _, found = search.kneighbors(features)
            indices = np.array(
                [[j for j in row if j != i][:k] for i, row in enumerate(found)], dtype=np.intp
            )
        else:
            if distance_matrix is None:
                distance_matrix = compute_distance_matrix(data, callbacks.distance, context)
            indices = neighbors_from_distances(distance_matrix, k)

    connected = True
    if check_connectivity:
        connected = is_connected(indices)
        if not connected:
            logger.warning(
                "Neighborhood graph with %d neighbors is not connected. "
                "Recommend to increase number of neighbors.",
                k,
            )
    return Neighbors(indices=indices, connected=connected)


__all__ = [
    "Neighbors",
    "find_neighbors",
    "is_connected",
    "neighbors_from_distances",
]

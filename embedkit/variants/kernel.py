"""Methods driven by the kernel callback."""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np

from ..callbacks import Callbacks
from ..matrix_ops import compute_centered_kernel, compute_kernel_matrix, dense_feature_matrix
from ..methods import Method
from ..neighbors import Neighbors, find_neighbors
from ..parameters import Parameter
from ..projection import ProjectionArtifact, project
from ..registry import register_method
from ._graph import alignment_matrix, kernel_distances, reconstruction_weights
from .base import EmbeddingResult, MethodImplementation


@register_method(Method.KERNEL_PCA)
class KernelPCAImplementation(MethodImplementation):
    """Kernel PCA on the double-centred kernel matrix."""

    method = Method.KERNEL_PCA

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data)
        self.check_target_dimension(n_samples, "number of samples")

        centered = compute_centered_kernel(
            data, callbacks.kernel, self.context.subrange(0.0, 0.8)
        )
        eigenvectors, eigenvalues = self.eigen_embedding(centered, largest=True)
        embedding = eigenvectors * np.sqrt(np.maximum(eigenvalues, 0.0))
        return EmbeddingResult(embedding, None, {"eigenvalues": eigenvalues.tolist()})


class _LocallyLinearMixin(MethodImplementation):
    """Neighborhoods and reconstruction weights computed from kernel values."""

    def _alignment(self, data: Sequence[Any], callbacks: Callbacks) -> Tuple[np.ndarray, Neighbors]:
        n_samples = self.require_samples(data, minimum=3)
        k = self.number_of_neighbors(n_samples)

        kernel_matrix = compute_kernel_matrix(
            data, callbacks.kernel, self.context.subrange(0.0, 0.5)
        )
        neighbors = find_neighbors(
            self.parameters.get(Parameter.NEIGHBORS_METHOD),
            data,
            callbacks,
            k,
            check_connectivity=self.parameters.get(Parameter.CHECK_CONNECTIVITY),
            distance_matrix=kernel_distances(kernel_matrix),
            context=self.context,
        )
        trace_shift = self.parameters.get(Parameter.KLLE_TRACE_SHIFT, non_negative=True)
        weights = reconstruction_weights(
            kernel_matrix, neighbors.indices, trace_shift, self.context.subrange(0.5, 0.8)
        )
        return alignment_matrix(weights), neighbors


@register_method(Method.KERNEL_LOCALLY_LINEAR_EMBEDDING)
class KernelLocallyLinearEmbeddingImplementation(_LocallyLinearMixin):
    """Locally linear embedding with neighborhoods and weights from the kernel."""

    method = Method.KERNEL_LOCALLY_LINEAR_EMBEDDING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.check_target_dimension(len(data) - 1, "number of samples minus one")
        alignment, neighbors = self._alignment(data, callbacks)
        eigenvectors, eigenvalues = self.eigen_embedding(
            alignment, largest=False, skip=1, eigenshift=self.eigenshift
        )
        return EmbeddingResult(
            eigenvectors,
            None,
            {"eigenvalues": eigenvalues.tolist(), "graph_connected": neighbors.connected},
        )


@register_method(Method.NEIGHBORHOOD_PRESERVING_EMBEDDING)
class NeighborhoodPreservingEmbeddingImplementation(_LocallyLinearMixin):
    """Linear approximation of LLE; learns a projection of the feature vectors."""

    method = Method.NEIGHBORHOOD_PRESERVING_EMBEDDING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        dimension = self.current_dimension(data, callbacks)
        self.check_target_dimension(dimension, "input dimension")
        alignment, neighbors = self._alignment(data, callbacks)

        features = dense_feature_matrix(data, callbacks.vector, dimension, self.context)
        mean = features.mean(axis=0)
        centered = features - mean
        lhs = centered.T @ alignment @ centered
        rhs = centered.T @ centered + self.eigenshift * np.eye(dimension)

        eigenvectors, eigenvalues = self.eigen_embedding(
            lhs, largest=False, b=rhs, eigenshift=self.eigenshift
        )
        projection = ProjectionArtifact(eigenvectors, mean)
        embedding = project(projection, data, callbacks.vector, dimension)
        return EmbeddingResult(
            embedding,
            projection,
            {"eigenvalues": eigenvalues.tolist(), "graph_connected": neighbors.connected},
        )


__all__ = [
    "KernelLocallyLinearEmbeddingImplementation",
    "KernelPCAImplementation",
    "NeighborhoodPreservingEmbeddingImplementation",
]

"""Methods driven by the distance callback."""

from __future__ import annotations

from typing import Any, Sequence, Tuple

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import shortest_path

from ..callbacks import Callbacks
from ..errors import WrongParameterValueError
from ..matrix_ops import compute_distance_matrix, dense_feature_matrix
from ..methods import Method
from ..neighbors import Neighbors, find_neighbors
from ..parameters import Parameter
from ..projection import ProjectionArtifact, project
from ..registry import register_method
from ..utils.logging.logging_manager import timed_context
from ._graph import heat_kernel_weights, mds_gram
from .base import EmbeddingResult, MethodImplementation


class _DistanceMethod(MethodImplementation):
    """Helpers shared by the distance based methods."""

    def _neighbors(
        self, data: Sequence[Any], callbacks: Callbacks, distance_matrix: np.ndarray
    ) -> Neighbors:
        return find_neighbors(
            self.parameters.get(Parameter.NEIGHBORS_METHOD),
            data,
            callbacks,
            self.number_of_neighbors(len(data)),
            check_connectivity=self.parameters.get(Parameter.CHECK_CONNECTIVITY),
            distance_matrix=distance_matrix,
            context=self.context,
        )

    def _mds_embedding(self, distance_matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        eigenvectors, eigenvalues = self.eigen_embedding(mds_gram(distance_matrix), largest=True)
        return eigenvectors * np.sqrt(np.maximum(eigenvalues, 0.0)), eigenvalues

    def _select_landmarks(self, n_samples: int) -> np.ndarray:
        ratio = self.parameters.get(Parameter.LANDMARK_RATIO, 0.5, in_range=(0.0, 1.0))
        count = min(n_samples, max(self.target_dimension + 1, int(round(n_samples * ratio))))
        return np.sort(self.random_state().choice(n_samples, size=count, replace=False))

    def _triangulate(
        self, landmark_distances: np.ndarray, point_distances: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Place every point from its distances to the landmarks.

        Landmarks are embedded with classical MDS; the remaining points are
        triangulated with the pseudo-inverse of the landmark embedding.
        """
        eigenvectors, eigenvalues = self.eigen_embedding(mds_gram(landmark_distances), largest=True)
        scale = np.zeros_like(eigenvalues)
        positive = eigenvalues > 0
        scale[positive] = 1.0 / np.sqrt(eigenvalues[positive])
        pseudo_inverse = eigenvectors * scale
        mean_squared = (landmark_distances ** 2).mean(axis=0)
        embedding = -0.5 * (point_distances ** 2 - mean_squared) @ pseudo_inverse
        return embedding, eigenvalues

    def _geodesic_graph(self, distance_matrix: np.ndarray, neighbors: Neighbors) -> csr_matrix:
        n_samples = distance_matrix.shape[0]
        rows = np.repeat(np.arange(n_samples), neighbors.k)
        cols = neighbors.indices.reshape(-1)
        # Zero-length edges would vanish from the sparse graph.
        values = np.maximum(distance_matrix[rows, cols], np.finfo(np.float64).tiny)
        return csr_matrix((values, (rows, cols)), shape=(n_samples, n_samples))


@register_method(Method.MULTIDIMENSIONAL_SCALING)
class MultidimensionalScalingImplementation(_DistanceMethod):
    """Classical (Torgerson) multidimensional scaling."""

    method = Method.MULTIDIMENSIONAL_SCALING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data)
        self.check_target_dimension(n_samples, "number of samples")
        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.8)
        )
        embedding, eigenvalues = self._mds_embedding(distances)
        return EmbeddingResult(embedding, None, {"eigenvalues": eigenvalues.tolist()})


@register_method(Method.LANDMARK_MULTIDIMENSIONAL_SCALING)
class LandmarkMultidimensionalScalingImplementation(_DistanceMethod):
    """Landmark MDS: only distances to a random landmark subset are evaluated."""

    method = Method.LANDMARK_MULTIDIMENSIONAL_SCALING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        landmarks = self._select_landmarks(n_samples)
        self.check_target_dimension(len(landmarks), "number of landmarks")

        with timed_context("Landmark distances computation"):
            point_distances = np.empty((n_samples, len(landmarks)), dtype=np.float64)
            for i in range(n_samples):
                self.context.raise_if_cancelled()
                for j, landmark in enumerate(landmarks):
                    point_distances[i, j] = callbacks.distance(data[i], data[landmark])
                self.context.report_progress(0.8 * (i + 1) / n_samples)

        embedding, eigenvalues = self._triangulate(point_distances[landmarks], point_distances)
        return EmbeddingResult(
            embedding,
            None,
            {"eigenvalues": eigenvalues.tolist(), "landmarks": landmarks.tolist()},
        )


@register_method(Method.ISOMAP)
class IsomapImplementation(_DistanceMethod):
    """Classical MDS on shortest-path distances through the neighbor graph."""

    method = Method.ISOMAP

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        self.check_target_dimension(n_samples, "number of samples")
        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.8)
        )
        neighbors = self._neighbors(data, callbacks, distances)

        with timed_context("Shortest paths computation"):
            self.context.raise_if_cancelled()
            geodesics = shortest_path(
                self._geodesic_graph(distances, neighbors), method="D", directed=False
            )

        embedding, eigenvalues = self._mds_embedding(geodesics)
        return EmbeddingResult(
            embedding,
            None,
            {"eigenvalues": eigenvalues.tolist(), "graph_connected": neighbors.connected},
        )


@register_method(Method.LANDMARK_ISOMAP)
class LandmarkIsomapImplementation(_DistanceMethod):
    """Isomap with geodesics computed from landmark points only."""

    method = Method.LANDMARK_ISOMAP

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        landmarks = self._select_landmarks(n_samples)
        self.check_target_dimension(len(landmarks), "number of landmarks")
        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.8)
        )
        neighbors = self._neighbors(data, callbacks, distances)

        with timed_context("Landmark shortest paths computation"):
            self.context.raise_if_cancelled()
            point_distances = shortest_path(
                self._geodesic_graph(distances, neighbors),
                method="D",
                directed=False,
                indices=landmarks,
            ).T

        if not np.all(np.isfinite(point_distances)):
            raise WrongParameterValueError(
                "Some points are unreachable from the landmarks; the neighborhood graph "
                "is disconnected. Increase the number of neighbors."
            )
        embedding, eigenvalues = self._triangulate(point_distances[landmarks], point_distances)
        return EmbeddingResult(
            embedding,
            None,
            {
                "eigenvalues": eigenvalues.tolist(),
                "landmarks": landmarks.tolist(),
                "graph_connected": neighbors.connected,
            },
        )


class _LaplacianMethod(_DistanceMethod):
    def _laplacian(
        self, data: Sequence[Any], callbacks: Callbacks
    ) -> Tuple[np.ndarray, np.ndarray, Neighbors]:
        self.require_samples(data, minimum=3)
        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.8)
        )
        neighbors = self._neighbors(data, callbacks, distances)
        width = self.parameters.get(Parameter.GAUSSIAN_KERNEL_WIDTH, 1.0, positive=True)
        weights = heat_kernel_weights(distances, neighbors.indices, width)
        degree = np.diag(weights.sum(axis=1))
        return degree - weights, degree, neighbors


@register_method(Method.LAPLACIAN_EIGENMAPS)
class LaplacianEigenmapsImplementation(_LaplacianMethod):
    """Smallest generalised eigenvectors of the heat-kernel graph Laplacian."""

    method = Method.LAPLACIAN_EIGENMAPS

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.check_target_dimension(len(data) - 1, "number of samples minus one")
        laplacian, degree, neighbors = self._laplacian(data, callbacks)
        eigenvectors, eigenvalues = self.eigen_embedding(
            laplacian, largest=False, skip=1, b=degree, eigenshift=self.eigenshift
        )
        return EmbeddingResult(
            eigenvectors,
            None,
            {"eigenvalues": eigenvalues.tolist(), "graph_connected": neighbors.connected},
        )


@register_method(Method.LOCALITY_PRESERVING_PROJECTIONS)
class LocalityPreservingProjectionsImplementation(_LaplacianMethod):
    """Linear approximation of Laplacian eigenmaps over the feature vectors."""

    method = Method.LOCALITY_PRESERVING_PROJECTIONS

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        dimension = self.current_dimension(data, callbacks)
        self.check_target_dimension(dimension, "input dimension")
        laplacian, degree, neighbors = self._laplacian(data, callbacks)

        features = dense_feature_matrix(data, callbacks.vector, dimension, self.context)
        mean = features.mean(axis=0)
        centered = features - mean
        lhs = centered.T @ laplacian @ centered
        rhs = centered.T @ degree @ centered + self.eigenshift * np.eye(dimension)

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


@register_method(Method.DIFFUSION_MAP)
class DiffusionMapImplementation(_DistanceMethod):
    """Diffusion map of a Gaussian kernel over the pairwise distances.

    The kernel is density-normalised (``alpha = 1``), symmetrically normalised
    into a Markov operator, and the non-trivial eigenvectors are scaled by
    their eigenvalues raised to the number of timesteps.
    """

    method = Method.DIFFUSION_MAP

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        self.check_target_dimension(n_samples - 1, "number of samples minus one")
        width = self.parameters.get(Parameter.GAUSSIAN_KERNEL_WIDTH, 1.0, positive=True)
        timesteps = self.parameters.get(Parameter.DIFFUSION_MAP_TIMESTEPS, 1, positive=True)

        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.8)
        )
        with timed_context("Diffusion matrix computation"):
            kernel = np.exp(-(distances ** 2) / width)
            density = kernel.sum(axis=0)
            kernel /= np.outer(density, density)
            degree = kernel.sum(axis=0)
            symmetric = kernel / np.sqrt(np.outer(degree, degree))

        eigenvectors, eigenvalues = self.eigen_embedding(symmetric, largest=True, skip=1)
        right_vectors = eigenvectors / np.sqrt(degree)[:, np.newaxis]
        embedding = right_vectors * eigenvalues ** timesteps
        return EmbeddingResult(embedding, None, {"eigenvalues": eigenvalues.tolist()})


__all__ = [
    "DiffusionMapImplementation",
    "IsomapImplementation",
    "LandmarkIsomapImplementation",
    "LandmarkMultidimensionalScalingImplementation",
    "LaplacianEigenmapsImplementation",
    "LocalityPreservingProjectionsImplementation",
    "MultidimensionalScalingImplementation",
]

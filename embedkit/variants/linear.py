"""Linear methods working directly on feature vectors."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from sklearn.decomposition import FactorAnalysis

from ..callbacks import Callbacks
from ..matrix_ops import compute_covariance, compute_mean, dense_feature_matrix
from ..methods import Method
from ..parameters import Parameter
from ..projection import ProjectionArtifact, project
from ..registry import register_method
from .base import EmbeddingResult, MethodImplementation


@register_method(Method.PCA)
class PCAImplementation(MethodImplementation):
    """Principal component analysis from the feature covariance matrix."""

    method = Method.PCA

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.require_samples(data)
        dimension = self.current_dimension(data, callbacks)
        self.check_target_dimension(dimension, "input dimension")

        mean = compute_mean(data, callbacks.vector, dimension)
        covariance = compute_covariance(
            data, callbacks.vector, dimension, self.context.subrange(0.0, 0.8)
        )
        eigenvectors, eigenvalues = self.eigen_embedding(covariance, largest=True)

        projection = ProjectionArtifact(eigenvectors, mean)
        embedding = project(projection, data, callbacks.vector, dimension)
        return EmbeddingResult(
            embedding,
            projection,
            {"eigenvalues": eigenvalues.tolist()},
        )


@register_method(Method.RANDOM_PROJECTION)
class RandomProjectionImplementation(MethodImplementation):
    """Project onto a Gaussian random basis scaled by ``1/sqrt(target_dimension)``."""

    method = Method.RANDOM_PROJECTION

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.require_samples(data)
        dimension = self.current_dimension(data, callbacks)
        target = self.target_dimension

        basis = self.random_state().standard_normal((dimension, target)) / np.sqrt(target)
        mean = compute_mean(data, callbacks.vector, dimension)
        projection = ProjectionArtifact(basis, mean)
        embedding = project(projection, data, callbacks.vector, dimension)
        return EmbeddingResult(embedding, projection)


@register_method(Method.PASS_THRU)
class PassThruImplementation(MethodImplementation):
    """Return the feature vectors unchanged; the target dimension is ignored."""

    method = Method.PASS_THRU

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.require_samples(data)
        dimension = self.current_dimension(data, callbacks)
        features = dense_feature_matrix(data, callbacks.vector, dimension, self.context)
        return EmbeddingResult(features)


@register_method(Method.FACTOR_ANALYSIS)
class FactorAnalysisImplementation(MethodImplementation):
    """Maximum-likelihood factor analysis (scikit-learn backend).

    The posterior mean of the latent factors is linear in the input, so the
    fitted model is exported as a projection artifact.
    """

    method = Method.FACTOR_ANALYSIS

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        self.require_samples(data, minimum=2)
        dimension = self.current_dimension(data, callbacks)
        target = self.check_target_dimension(dimension, "input dimension")
        features = dense_feature_matrix(data, callbacks.vector, dimension, self.context)

        model = FactorAnalysis(
            n_components=target,
            tol=self.parameters.get(Parameter.FA_EPSILON, 1e-5, positive=True),
            max_iter=self.parameters.get(Parameter.MAX_ITERATION, 1000, positive=True),
            random_state=self.random_seed,
        )
        model.fit(features)
        self.context.raise_if_cancelled()

        components = model.components_
        weighted = components / model.noise_variance_
        latent_covariance = np.linalg.inv(np.eye(target) + weighted @ components.T)
        projection = ProjectionArtifact(weighted.T @ latent_covariance, model.mean_)
        embedding = project(projection, data, callbacks.vector, dimension)

        summary = {
            "loglike": float(model.loglike_[-1]) if len(model.loglike_) else None,
            "n_iter": int(model.n_iter_),
        }
        return EmbeddingResult(embedding, projection, summary)


__all__ = [
    "FactorAnalysisImplementation",
    "PCAImplementation",
    "PassThruImplementation",
    "RandomProjectionImplementation",
]

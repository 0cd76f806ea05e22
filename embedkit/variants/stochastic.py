"""Iterative, randomly initialised methods."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from sklearn.manifold import TSNE

from ..callbacks import Callbacks
from ..matrix_ops import compute_distance_matrix
from ..methods import Method
from ..neighbors import find_neighbors
from ..parameters import Parameter
from ..registry import register_method
from ..utils.logging.logging_manager import timed_context
from .base import EmbeddingResult, MethodImplementation


@register_method(Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING)
class TSNEImplementation(MethodImplementation):
    """t-SNE on the precomputed pairwise distances (scikit-learn backend)."""

    method = Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        requested = self.parameters.get(Parameter.SNE_PERPLEXITY, 30.0, positive=True)
        perplexity = min(requested, (n_samples - 1) / 3)
        if perplexity < 1:
            perplexity = max(1.0, min(requested, float(n_samples - 1)))
        theta = self.parameters.get(Parameter.SNE_THETA, 0.5, non_negative=True)
        target = self.target_dimension

        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.5)
        )
        self.context.raise_if_cancelled()

        tsne = TSNE(
            n_components=target,
            perplexity=perplexity,
            angle=theta,
            metric="precomputed",
            init="random",
            # Barnes-Hut only supports up to three output dimensions.
            method="barnes_hut" if target < 4 else "exact",
            random_state=self.random_seed,
        )
        with timed_context("t-SNE optimisation"):
            embedding = tsne.fit_transform(distances)
        summary = {
            "computed_perplexity": perplexity,
            "kl_divergence": float(getattr(tsne, "kl_divergence_", np.nan)),
        }
        return EmbeddingResult(np.asarray(embedding, dtype=np.float64), None, summary)


@register_method(Method.STOCHASTIC_PROXIMITY_EMBEDDING)
class StochasticProximityEmbeddingImplementation(MethodImplementation):
    """Stochastic proximity embedding.

    Each iteration picks random pairs and moves their points so the embedded
    distance approaches the input distance, with a learning rate that decays
    linearly. The local strategy only pulls apart pairs that are not
    neighbors when they sit closer than their input distance.
    """

    method = Method.STOCHASTIC_PROXIMITY_EMBEDDING

    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        n_samples = self.require_samples(data, minimum=2)
        target = self.target_dimension
        global_strategy = self.parameters.get(Parameter.SPE_GLOBAL_STRATEGY, True)
        tolerance = self.parameters.get(Parameter.SPE_TOLERANCE, 1e-5, positive=True)
        num_updates = self.parameters.get(Parameter.SPE_NUM_UPDATES, 100, positive=True)
        max_iteration = self.parameters.get(Parameter.MAX_ITERATION, 100, positive=True)
        num_updates = min(num_updates, n_samples)

        distances = compute_distance_matrix(
            data, callbacks.distance, self.context.subrange(0.0, 0.3)
        )
        adjacency = None
        if not global_strategy:
            neighbors = find_neighbors(
                self.parameters.get(Parameter.NEIGHBORS_METHOD),
                data,
                callbacks,
                self.number_of_neighbors(n_samples),
                check_connectivity=self.parameters.get(Parameter.CHECK_CONNECTIVITY),
                distance_matrix=distances,
                context=self.context,
            )
            adjacency = np.zeros((n_samples, n_samples), dtype=bool)
            rows = np.repeat(np.arange(n_samples), neighbors.k)
            adjacency[rows, neighbors.indices.reshape(-1)] = True
            adjacency |= adjacency.T

        rng = self.random_state()
        embedding = rng.uniform(0.0, 1.0, size=(n_samples, target))
        learning_rate = 1.0

        with timed_context("SPE optimisation"):
            for iteration in range(max_iteration):
                self.context.raise_if_cancelled()
                first = rng.permutation(n_samples)[:num_updates]
                second = rng.permutation(n_samples)[:num_updates]
                valid = first != second
                first, second = first[valid], second[valid]

                diff = embedding[first] - embedding[second]
                embedded = np.linalg.norm(diff, axis=1)
                expected = distances[first, second]
                if adjacency is not None:
                    keep = adjacency[first, second] | (embedded < expected)
                    first, second = first[keep], second[keep]
                    diff, embedded, expected = diff[keep], embedded[keep], expected[keep]

                step = 0.5 * learning_rate * (expected - embedded) / (embedded + tolerance)
                delta = step[:, np.newaxis] * diff
                np.add.at(embedding, first, delta)
                np.add.at(embedding, second, -delta)

                learning_rate -= learning_rate / max_iteration
                self.context.report_progress(0.3 + 0.7 * (iteration + 1) / max_iteration)

        return EmbeddingResult(embedding, None, {"iterations": max_iteration})


__all__ = ["StochasticProximityEmbeddingImplementation", "TSNEImplementation"]

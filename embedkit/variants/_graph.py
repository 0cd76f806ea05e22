"""Weight matrices and MDS helpers shared by the neighborhood-based methods."""

from __future__ import annotations

import numpy as np

from ..context import ExecutionContext
from ..errors import WrongParameterValueError
from ..matrix_ops import center_kernel_matrix


def heat_kernel_weights(
    distance_matrix: np.ndarray, neighbors: np.ndarray, width: float
) -> np.ndarray:
    """Symmetric weights ``exp(-d^2 / width)`` on the neighbor graph edges."""
    n_samples = distance_matrix.shape[0]
    weights = np.zeros((n_samples, n_samples), dtype=np.float64)
    rows = np.repeat(np.arange(n_samples), neighbors.shape[1])
    cols = neighbors.reshape(-1)
    values = np.exp(-distance_matrix[rows, cols] ** 2 / width)
    weights[rows, cols] = values
    weights[cols, rows] = values
    return weights


def kernel_distances(kernel_matrix: np.ndarray) -> np.ndarray:
    """Feature-space distances induced by a kernel matrix."""
    diagonal = np.diag(kernel_matrix)
    squared = diagonal[:, np.newaxis] + diagonal[np.newaxis, :] - 2.0 * kernel_matrix
    return np.sqrt(np.maximum(squared, 0.0))


def reconstruction_weights(
    kernel_matrix: np.ndarray,
    neighbors: np.ndarray,
    trace_shift: float,
    context: ExecutionContext,
) -> np.ndarray:
    """Locally linear reconstruction weights computed from kernel values only.

    For each sample the local Gram matrix of its neighbors (centred on the
    sample) is regularised by ``trace_shift * trace`` and the weights solve
    ``G w = 1`` normalised to sum to one.
    """
    n_samples, k = neighbors.shape
    weights = np.zeros((n_samples, n_samples), dtype=np.float64)
    ones = np.ones(k)
    for i in range(n_samples):
        context.raise_if_cancelled()
        idx = neighbors[i]
        gram = (
            kernel_matrix[np.ix_(idx, idx)]
            - kernel_matrix[i, idx][:, np.newaxis]
            - kernel_matrix[i, idx][np.newaxis, :]
            + kernel_matrix[i, i]
        )
        trace = np.trace(gram)
        gram[np.diag_indices(k)] += trace_shift * trace if trace > 0 else trace_shift
        w = np.linalg.solve(gram, ones)
        weights[i, idx] = w / w.sum()
        context.report_progress((i + 1) / n_samples)
    return weights


def alignment_matrix(weights: np.ndarray) -> np.ndarray:
    """``(I - W)^T (I - W)`` for reconstruction weights ``W``."""
    residual = np.eye(weights.shape[0]) - weights
    return residual.T @ residual


def mds_gram(distance_matrix: np.ndarray) -> np.ndarray:
    """Double-centred squared distances ``-1/2 * J D^2 J`` used by classical MDS."""
    if not np.all(np.isfinite(distance_matrix)):
        raise WrongParameterValueError(
            "Distance matrix contains infinite entries; the neighborhood graph is "
            "probably disconnected. Increase the number of neighbors."
        )
    squared = distance_matrix.astype(np.float64) ** 2
    return -0.5 * center_kernel_matrix(squared)


__all__ = [
    "alignment_matrix",
    "heat_kernel_weights",
    "kernel_distances",
    "mds_gram",
    "reconstruction_weights",
]

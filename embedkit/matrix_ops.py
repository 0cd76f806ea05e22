"""Matrix construction primitives shared by the spectral methods.

The builders here turn a data sequence plus one capability callback into the
dense symmetric matrices the eigensolver consumes. Pairwise builders evaluate
one callback per unordered pair and are quadratic in the number of samples in
both time and memory; they are unsuitable for sample counts whose ``n x n``
float64 matrix does not fit in memory.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import numpy as np
from scipy.linalg import blas

from .context import ExecutionContext, ensure_context
from .errors import DimensionMismatchError, WrongParameterValueError
from .utils.logging.logging_manager import timed_context

VectorCallback = Callable[..., np.ndarray]
PairCallback = Callable[[Any, Any], float]


def _require_items(data: Sequence[Any]) -> int:
    n_samples = len(data)
    if n_samples == 0:
        raise WrongParameterValueError("Data sequence is empty.")
    return n_samples


def _mirror_upper(matrix: np.ndarray) -> np.ndarray:
    """Return the symmetric matrix described by the upper triangle of ``matrix``."""
    upper = np.triu(matrix)
    return upper + np.triu(upper, 1).T


def _read_vector(vector_callback: VectorCallback, item: Any, dimension: int) -> np.ndarray:
    vector = np.asarray(vector_callback(item), dtype=np.float64).reshape(-1)
    if vector.shape[0] != dimension:
        raise DimensionMismatchError(
            f"Feature vector has length {vector.shape[0]}, expected {dimension}."
        )
    return vector


def compute_mean(
    data: Sequence[Any],
    vector_callback: VectorCallback,
    dimension: int,
) -> np.ndarray:
    """Mean feature vector of ``data``."""
    n_samples = _require_items(data)
    total = np.zeros(dimension, dtype=np.float64)
    for item in data:
        total += _read_vector(vector_callback, item, dimension)
    return total / n_samples


def compute_covariance(
    data: Sequence[Any],
    vector_callback: VectorCallback,
    dimension: int,
    context: Optional[ExecutionContext] = None,
    *,
    two_pass: bool = False,
) -> np.ndarray:
    """Scatter matrix ``sum(x x^T) - (1/n) (sum x)(sum x)^T``.

    Only the upper triangle is accumulated (symmetric rank-1 updates) and it is
    mirrored once at the end. The default single pass never re-reads the data
    but loses precision for data far from the origin; ``two_pass=True`` centres
    each vector on the mean first at the cost of a second traversal.
    """
    context = ensure_context(context)
    n_samples = _require_items(data)

    with timed_context("Constructing PCA covariance matrix"):
        covariance = np.zeros((dimension, dimension), dtype=np.float64, order="F")

        if two_pass:
            mean = compute_mean(data, vector_callback, dimension)
            for index, item in enumerate(data):
                context.raise_if_cancelled()
                centered = _read_vector(vector_callback, item, dimension) - mean
                covariance = blas.dsyr(1.0, centered, lower=0, a=covariance, overwrite_a=1)
                context.report_progress((index + 1) / n_samples)
            return _mirror_upper(covariance)

        total = np.zeros(dimension, dtype=np.float64)
        for index, item in enumerate(data):
            context.raise_if_cancelled()
            vector = _read_vector(vector_callback, item, dimension)
            total += vector
            covariance = blas.dsyr(1.0, vector, lower=0, a=covariance, overwrite_a=1)
            context.report_progress((index + 1) / n_samples)
        covariance = blas.dsyr(-1.0 / n_samples, total, lower=0, a=covariance, overwrite_a=1)

    return _mirror_upper(covariance)


def _pairwise_matrix(
    data: Sequence[Any],
    callback: PairCallback,
    context: ExecutionContext,
) -> np.ndarray:
    n_samples = _require_items(data)
    matrix = np.empty((n_samples, n_samples), dtype=np.float64)
    for i in range(n_samples):
        # Cancellation is polled once per row to bound the overshoot.
        context.raise_if_cancelled()
        item_i = data[i]
        for j in range(i, n_samples):
            value = callback(item_i, data[j])
            matrix[i, j] = value
            matrix[j, i] = value
        context.report_progress((i + 1) / n_samples)
    return matrix


def compute_kernel_matrix(
    data: Sequence[Any],
    kernel_callback: PairCallback,
    context: Optional[ExecutionContext] = None,
) -> np.ndarray:
    """Full symmetric kernel (Gram) matrix without centering."""
    with timed_context("Constructing kernel matrix"):
        return _pairwise_matrix(data, kernel_callback, ensure_context(context))


def center_kernel_matrix(kernel_matrix: np.ndarray) -> np.ndarray:
    """Double-centre a symmetric kernel matrix in place and return it."""
    col_means = kernel_matrix.mean(axis=0)
    grand_mean = kernel_matrix.mean()
    kernel_matrix += grand_mean
    kernel_matrix -= col_means[:, np.newaxis]
    kernel_matrix -= col_means[np.newaxis, :]
    return kernel_matrix


def compute_centered_kernel(
    data: Sequence[Any],
    kernel_callback: PairCallback,
    context: Optional[ExecutionContext] = None,
) -> np.ndarray:
    """Kernel matrix with zero row and column sums.

    The kernel is evaluated once per unordered pair, including the diagonal,
    and mirrored. Centering adds the grand mean, then subtracts the column
    means from every column and every row.
    """
    with timed_context("Constructing kPCA centered kernel matrix"):
        kernel_matrix = _pairwise_matrix(data, kernel_callback, ensure_context(context))
        return center_kernel_matrix(kernel_matrix)


def compute_distance_matrix(
    data: Sequence[Any],
    distance_callback: PairCallback,
    context: Optional[ExecutionContext] = None,
) -> np.ndarray:
    """Full symmetric pairwise distance matrix."""
    with timed_context("Constructing distance matrix"):
        return _pairwise_matrix(data, distance_callback, ensure_context(context))


def dense_feature_matrix(
    data: Sequence[Any],
    vector_callback: VectorCallback,
    dimension: int,
    context: Optional[ExecutionContext] = None,
) -> np.ndarray:
    """Stack feature vectors into an ``(n_samples, dimension)`` array."""
    context = ensure_context(context)
    n_samples = _require_items(data)
    features = np.empty((n_samples, dimension), dtype=np.float64)
    for index, item in enumerate(data):
        context.raise_if_cancelled()
        features[index] = _read_vector(vector_callback, item, dimension)
    return features


__all__ = [
    "center_kernel_matrix",
    "compute_centered_kernel",
    "compute_covariance",
    "compute_distance_matrix",
    "compute_kernel_matrix",
    "compute_mean",
    "dense_feature_matrix",
]

"""Reusable linear projections learned by an embedding run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from .errors import DimensionMismatchError
from .matrix_ops import VectorCallback
from .utils.logging.logging_manager import timed_context


@dataclass(frozen=True, eq=False)
class ProjectionArtifact:
    """Basis matrix (``input_dimension x output_dimension``) plus optional mean.

    Calling the artifact on a single feature vector returns its embedded
    coordinates: ``matrix.T @ (vector - mean)``.
    """

    matrix: np.ndarray
    mean: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        matrix = np.array(self.matrix, dtype=np.float64)
        if matrix.ndim != 2:
            raise DimensionMismatchError(
                f"Projection matrix must be 2-D, got {matrix.ndim} dimensions."
            )
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)
        if self.mean is not None:
            mean = np.array(self.mean, dtype=np.float64).reshape(-1)
            if mean.shape[0] != matrix.shape[0]:
                raise DimensionMismatchError(
                    f"Mean vector has length {mean.shape[0]}, expected {matrix.shape[0]}."
                )
            mean.setflags(write=False)
            object.__setattr__(self, "mean", mean)

    @property
    def input_dimension(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def output_dimension(self) -> int:
        return int(self.matrix.shape[1])

    def __call__(self, vector: Any) -> np.ndarray:
        vector = np.asarray(vector, dtype=np.float64).reshape(-1)
        if vector.shape[0] != self.input_dimension:
            raise DimensionMismatchError(
                f"Feature vector has length {vector.shape[0]}, "
                f"projection expects {self.input_dimension}."
            )
        if self.mean is not None:
            vector = vector - self.mean
        return self.matrix.T @ vector


def project(
    artifact: ProjectionArtifact,
    data: Sequence[Any],
    vector_callback: VectorCallback,
    dimension: Optional[int] = None,
) -> np.ndarray:
    """Embed ``data`` with a previously learned projection.

    Produces one row per item in input order. Nothing is re-estimated and the
    artifact is left untouched.
    """
    if dimension is not None and dimension != artifact.input_dimension:
        raise DimensionMismatchError(
            f"Requested dimension {dimension} does not match projection input "
            f"dimension {artifact.input_dimension}."
        )

    with timed_context("Data projection"):
        embedding = np.zeros((len(data), artifact.output_dimension), dtype=np.float64)
        for index, item in enumerate(data):
            embedding[index] = artifact(vector_callback(item))
    return embedding


__all__ = ["ProjectionArtifact", "project"]

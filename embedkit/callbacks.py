"""Capability callbacks: kernel, distance and feature-vector access.

Data items are opaque to the engine. Everything a method learns about them
comes through the three callbacks wrapped by :class:`Callbacks`. Each one is
optional; the dispatcher checks the subset a method needs before any work
starts, and calling an absent callback fails on first use.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

import numpy as np

from .errors import CapabilityMissingError, DimensionMismatchError
from .methods import DISTANCE, FEATURE_VECTOR, KERNEL

KernelCallback = Callable[[Any, Any], float]
DistanceCallback = Callable[[Any, Any], float]
FeatureVectorCallback = Callable[[Any], Any]


class Callbacks:
    """Uniform adapter around the caller's capability callbacks.

    Results are never cached; callers who need memoisation wrap their own
    callbacks.
    """

    def __init__(
        self,
        kernel: Optional[KernelCallback] = None,
        distance: Optional[DistanceCallback] = None,
        feature_vector: Optional[FeatureVectorCallback] = None,
    ) -> None:
        self._kernel = kernel
        self._distance = distance
        self._feature_vector = feature_vector

    # Presence queries ------------------------------------------------------

    @property
    def has_kernel(self) -> bool:
        return self._kernel is not None

    @property
    def has_distance(self) -> bool:
        return self._distance is not None

    @property
    def has_feature_vector(self) -> bool:
        return self._feature_vector is not None

    def has(self, capability: str) -> bool:
        return {
            KERNEL: self.has_kernel,
            DISTANCE: self.has_distance,
            FEATURE_VECTOR: self.has_feature_vector,
        }[capability]

    def missing(self, capabilities: Iterable[str]) -> List[str]:
        return sorted(cap for cap in capabilities if not self.has(cap))

    def require(self, capabilities: Iterable[str], method_name: str = "selected method") -> None:
        missing = self.missing(capabilities)
        if missing:
            raise CapabilityMissingError(
                f"{method_name} requires the following callbacks: {', '.join(missing)}."
            )

    # Invocation ------------------------------------------------------------

    def kernel(self, a: Any, b: Any) -> float:
        if self._kernel is None:
            raise CapabilityMissingError("No kernel callback was supplied.")
        return float(self._kernel(a, b))

    def distance(self, a: Any, b: Any) -> float:
        if self._distance is None:
            raise CapabilityMissingError("No distance callback was supplied.")
        return float(self._distance(a, b))

    def vector(self, item: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Return the feature vector of ``item``.

        When ``out`` is given the vector is written into it and ``out`` is
        returned; a length mismatch raises :class:`DimensionMismatchError`.
        """

        if self._feature_vector is None:
            raise CapabilityMissingError("No feature vector callback was supplied.")
        vector = np.asarray(self._feature_vector(item), dtype=np.float64).reshape(-1)
        if out is None:
            return vector
        if vector.shape[0] != out.shape[0]:
            raise DimensionMismatchError(
                f"Feature vector has length {vector.shape[0]}, expected {out.shape[0]}."
            )
        out[:] = vector
        return out

    # Raw access for variants that hand callbacks to third-party code.

    @property
    def kernel_function(self) -> Optional[KernelCallback]:
        return self._kernel

    @property
    def distance_function(self) -> Optional[DistanceCallback]:
        return self._distance

    @property
    def feature_vector_function(self) -> Optional[FeatureVectorCallback]:
        return self._feature_vector


def array_callbacks(matrix: np.ndarray) -> Callbacks:
    """Callbacks over the rows of a dense ``(n_samples, n_features)`` array.

    Items are row indices, so the matching data sequence is
    ``range(matrix.shape[0])``. The kernel is the linear (dot product) kernel
    and the distance is Euclidean.
    """

    data = np.asarray(matrix, dtype=np.float64)
    if data.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2-D array, got {data.ndim} dimensions.")

    def kernel(i: int, j: int) -> float:
        return float(np.dot(data[i], data[j]))

    def distance(i: int, j: int) -> float:
        return float(np.linalg.norm(data[i] - data[j]))

    def feature_vector(i: int) -> np.ndarray:
        return data[i]

    return Callbacks(kernel=kernel, distance=distance, feature_vector=feature_vector)


def gaussian_kernel(matrix: np.ndarray, width: float = 1.0) -> KernelCallback:
    """Gaussian kernel ``exp(-|x - y|^2 / width)`` over row indices of ``matrix``."""

    data = np.asarray(matrix, dtype=np.float64)

    def kernel(i: int, j: int) -> float:
        diff = data[i] - data[j]
        return float(np.exp(-np.dot(diff, diff) / width))

    return kernel


__all__ = [
    "Callbacks",
    "DistanceCallback",
    "FeatureVectorCallback",
    "KernelCallback",
    "array_callbacks",
    "gaussian_kernel",
]

"""Abstract base class and result type for method implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Sequence

import numpy as np

from ..callbacks import Callbacks
from ..context import ExecutionContext
from ..eigen import eigendecomposition
from ..errors import WrongParameterValueError
from ..methods import EigenMethod, Method
from ..parameters import Parameter, ParametersMap
from ..projection import ProjectionArtifact
from ..utils.logging.logging_manager import LoggingManager, get_logger


@dataclass
class EmbeddingResult:
    """Embedding matrix plus the projection artifact, if the method learns one.

    Unpacks as the ``(embedding, projection)`` pair.
    """

    embedding: np.ndarray
    projection: Optional[ProjectionArtifact] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Any]:
        yield self.embedding
        yield self.projection


class MethodImplementation(ABC):
    """Shared interface for method implementations.

    Every implementation receives the full validated parameters map and the
    execution context, and embeds a data sequence through the capability
    callbacks, whichever of them it actually uses.
    """

    #: Method implemented by the subclass. Subclasses must override.
    method: Method

    def __init__(self, *, parameters: ParametersMap, context: ExecutionContext) -> None:
        self.parameters = parameters
        self.context = context
        self.logger: LoggingManager = get_logger(f"embedkit.{self.method.value}")

    @abstractmethod
    def embed(self, data: Sequence[Any], callbacks: Callbacks) -> EmbeddingResult:
        """Return the embedding of ``data`` and an optional projection."""

    # Shared parameter reads ------------------------------------------------

    @property
    def target_dimension(self) -> int:
        return self.parameters.get(Parameter.TARGET_DIMENSION, positive=True)

    @property
    def eigen_method(self) -> EigenMethod:
        return self.parameters.get(Parameter.EIGEN_EMBEDDING_METHOD)

    @property
    def eigenshift(self) -> float:
        return self.parameters.get(Parameter.EIGENSHIFT, non_negative=True)

    def number_of_neighbors(self, n_samples: int, default: int = 10) -> int:
        k = self.parameters.get(Parameter.NUMBER_OF_NEIGHBORS, default, positive=True)
        if k >= n_samples:
            if Parameter.NUMBER_OF_NEIGHBORS in self.parameters:
                raise WrongParameterValueError(
                    f"Number of neighbors ({k}) must be less than the number of samples ({n_samples})."
                )
            k = n_samples - 1
        return k

    @property
    def random_seed(self) -> Optional[int]:
        return self.parameters.get(Parameter.RANDOM_SEED)

    def random_state(self) -> np.random.Generator:
        return np.random.default_rng(self.random_seed)

    def current_dimension(self, data: Sequence[Any], callbacks: Callbacks) -> int:
        """Input feature dimension, read from the map or the first item."""
        if Parameter.CURRENT_DIMENSION in self.parameters:
            return self.parameters.get(Parameter.CURRENT_DIMENSION, positive=True)
        return int(callbacks.vector(data[0]).shape[0])

    def require_samples(self, data: Sequence[Any], minimum: int = 1) -> int:
        n_samples = len(data)
        if n_samples < minimum:
            raise WrongParameterValueError(
                f"{self.method.display_name} needs at least {minimum} samples, got {n_samples}."
            )
        return n_samples

    def check_target_dimension(self, limit: int, what: str) -> int:
        target = self.target_dimension
        if target > limit:
            raise WrongParameterValueError(
                f"Target dimension ({target}) exceeds the {what} ({limit})."
            )
        return target

    def eigen_embedding(
        self,
        matrix: np.ndarray,
        *,
        largest: bool,
        skip: int = 0,
        b: Optional[np.ndarray] = None,
        eigenshift: float = 0.0,
    ) -> tuple[np.ndarray, np.ndarray]:
        self.context.raise_if_cancelled()
        return eigendecomposition(
            self.eigen_method,
            matrix,
            self.target_dimension,
            largest=largest,
            skip=skip,
            eigenshift=eigenshift,
            b=b,
        )


__all__ = ["EmbeddingResult", "MethodImplementation"]

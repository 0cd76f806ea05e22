"""Main entry point: validate parameters, dispatch to a method, post-process.

``embed`` takes a random-access data sequence, capability callbacks and a
parameters map, and returns an :class:`EmbeddingResult` that unpacks as the
``(embedding, projection)`` pair. Errors are raised from the taxonomy in
:mod:`embedkit.errors`; ``try_embed`` returns them as values instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Optional, Sequence, Union

import numpy as np

from . import variants as _variants  # noqa: F401  (registers the implementations)
from .callbacks import Callbacks, DistanceCallback, FeatureVectorCallback, KernelCallback
from .context import ExecutionContext
from .errors import EmbedkitError, NotEnoughMemoryError
from .methods import FEATURE_VECTOR, Method, NeighborsMethod
from .parameters import Parameter, ParameterKey, ParametersMap, validate_and_default
from .registry import MethodRegistry, global_method_registry
from .utils.logging.logging_manager import get_logger, timed_context
from .variants.base import EmbeddingResult

logger = get_logger("embedkit")

ParametersLike = Union[ParametersMap, Mapping[ParameterKey, Any]]


def build_context(parameters: ParametersMap) -> ExecutionContext:
    """Execution context wired to the progress and cancel slots of ``parameters``."""
    return ExecutionContext(
        progress_function=parameters.get(Parameter.PROGRESS_FUNCTION, None),
        cancel_function=parameters.get(Parameter.CANCEL_FUNCTION, None),
    )


def _required_capabilities(method: Method, parameters: ParametersMap) -> FrozenSet[str]:
    required = set(method.required_capabilities)
    uses_neighbors = method.uses_neighbors
    if method is Method.STOCHASTIC_PROXIMITY_EMBEDDING:
        uses_neighbors = not parameters.get(Parameter.SPE_GLOBAL_STRATEGY, True)
    if uses_neighbors and parameters.get(Parameter.NEIGHBORS_METHOD) is NeighborsMethod.KD_TREE:
        required.add(FEATURE_VECTOR)
    return frozenset(required)


def dispatch(
    parameters: ParametersMap,
    data: Sequence[Any],
    callbacks: Callbacks,
    context: ExecutionContext,
    *,
    registry: Optional[MethodRegistry] = None,
) -> EmbeddingResult:
    """Run the method selected by an already validated parameters map.

    Support, capability and core parameter checks happen before any work
    starts. A ``MemoryError`` raised by the numeric runtime becomes
    :class:`NotEnoughMemoryError`; every other error propagates unchanged.
    """
    registry = registry or global_method_registry
    method = parameters.get(Parameter.REDUCTION_METHOD)
    factory = registry.get(method)

    # Core parameters are read before any matrix is built.
    columns = parameters.get(Parameter.OUTPUT_FEATURE_VECTORS_ARE_COLUMNS)
    parameters.get(Parameter.TARGET_DIMENSION, positive=True)
    parameters.get(Parameter.EIGEN_EMBEDDING_METHOD)
    parameters.get(Parameter.EIGENSHIFT, non_negative=True)
    parameters.get(Parameter.CHECK_CONNECTIVITY)

    callbacks.require(_required_capabilities(method, parameters), method.display_name)
    context.raise_if_cancelled()

    logger.info("Using %s method.", method.display_name)
    try:
        implementation = factory(parameters=parameters, context=context)
        with timed_context(f"Embedding with {method.display_name}", logger):
            result = implementation.embed(data, callbacks)
    except NotEnoughMemoryError:
        raise
    except MemoryError as exc:
        raise NotEnoughMemoryError("Not enough memory") from exc
    context.report_progress(1.0)

    if columns:
        result.embedding = np.ascontiguousarray(result.embedding.T)
    return result


def embed(
    data: Sequence[Any],
    parameters: ParametersLike,
    callbacks: Optional[Callbacks] = None,
    *,
    kernel: Optional[KernelCallback] = None,
    distance: Optional[DistanceCallback] = None,
    feature_vector: Optional[FeatureVectorCallback] = None,
) -> EmbeddingResult:
    """Embed ``data`` with the method named in ``parameters``.

    Callbacks are passed either as a :class:`Callbacks` adapter or as the
    individual ``kernel`` / ``distance`` / ``feature_vector`` keywords.
    """
    if callbacks is None:
        callbacks = Callbacks(kernel=kernel, distance=distance, feature_vector=feature_vector)
    elif any(cb is not None for cb in (kernel, distance, feature_vector)):
        raise TypeError("Pass either a Callbacks instance or individual callbacks, not both.")

    validated = validate_and_default(parameters)
    context = build_context(validated)
    return dispatch(validated, data, callbacks, context)


@dataclass
class EmbedOutcome:
    """Success-or-error value returned by :func:`try_embed`."""

    result: Optional[EmbeddingResult] = None
    error: Optional[EmbedkitError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> EmbeddingResult:
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


def try_embed(
    data: Sequence[Any],
    parameters: ParametersLike,
    callbacks: Optional[Callbacks] = None,
    **kwargs: Any,
) -> EmbedOutcome:
    """Like :func:`embed`, but engine errors are returned instead of raised."""
    try:
        return EmbedOutcome(result=embed(data, parameters, callbacks, **kwargs))
    except EmbedkitError as exc:
        logger.debug("Embedding failed: %s", exc)
        return EmbedOutcome(error=exc)


__all__ = [
    "EmbedOutcome",
    "build_context",
    "dispatch",
    "embed",
    "try_embed",
]

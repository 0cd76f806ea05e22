"""Eigendecomposition backends for symmetric matrices.

Two backends are available: ARPACK through ``scipy.sparse.linalg.eigsh`` and
the dense self-adjoint solver ``numpy.linalg.eigh``. The default is resolved
at runtime in this order: the ``EMBEDKIT_EIGEN_METHOD`` environment variable,
ARPACK when scipy's sparse linear algebra is importable, then the dense solver.
"""

from __future__ import annotations

import importlib.util
import os
from typing import Optional, Tuple

import numpy as np

from .errors import EigendecompositionError, WrongParameterValueError
from .methods import EigenMethod, parse_enum
from .utils.logging.logging_manager import get_logger, timed_context

EIGEN_METHOD_ENV_VAR = "EMBEDKIT_EIGEN_METHOD"

logger = get_logger("embedkit.eigen")


def default_eigen_method() -> EigenMethod:
    """Resolve the eigensolver backend used when none is configured."""
    configured = os.environ.get(EIGEN_METHOD_ENV_VAR)
    if configured:
        try:
            return parse_enum(EigenMethod, configured)
        except KeyError as exc:
            raise WrongParameterValueError(
                f"{EIGEN_METHOD_ENV_VAR}={configured!r} does not name an eigensolver backend."
            ) from exc
    if importlib.util.find_spec("scipy.sparse.linalg") is not None:
        return EigenMethod.ARPACK
    return EigenMethod.DENSE


def _dense(
    matrix: np.ndarray, n_vectors: int, largest: bool, b: Optional[np.ndarray]
) -> Tuple[np.ndarray, np.ndarray]:
    try:
        if b is None:
            eigenvalues, eigenvectors = np.linalg.eigh(matrix)
        else:
            from scipy.linalg import eigh

            eigenvalues, eigenvectors = eigh(matrix, b)
    except np.linalg.LinAlgError as exc:
        raise EigendecompositionError(f"Dense eigendecomposition failed: {exc}") from exc
    # eigh returns ascending eigenvalues.
    if largest:
        order = np.arange(len(eigenvalues) - 1, len(eigenvalues) - 1 - n_vectors, -1)
    else:
        order = np.arange(n_vectors)
    return eigenvectors[:, order], eigenvalues[order]


def _arpack(
    matrix: np.ndarray, n_vectors: int, largest: bool, b: Optional[np.ndarray]
) -> Tuple[np.ndarray, np.ndarray]:
    from scipy.sparse.linalg import ArpackError, ArpackNoConvergence, eigsh

    # Fixed starting vector keeps repeated runs identical.
    v0 = np.random.default_rng(0).uniform(-1.0, 1.0, matrix.shape[0])
    try:
        if largest:
            eigenvalues, eigenvectors = eigsh(matrix, k=n_vectors, M=b, which="LA", v0=v0)
        else:
            # Shift-invert around zero finds the smallest eigenvalues quickly.
            eigenvalues, eigenvectors = eigsh(matrix, k=n_vectors, M=b, sigma=0.0, which="LM", v0=v0)
    except ArpackNoConvergence as exc:
        raise EigendecompositionError(f"ARPACK did not converge: {exc}") from exc
    except (ArpackError, RuntimeError) as exc:
        raise EigendecompositionError(f"ARPACK eigendecomposition failed: {exc}") from exc

    order = np.argsort(eigenvalues)
    if largest:
        order = order[::-1]
    return eigenvectors[:, order], eigenvalues[order]


def eigendecomposition(
    method: EigenMethod,
    matrix: np.ndarray,
    target_dimension: int,
    *,
    largest: bool = True,
    skip: int = 0,
    eigenshift: float = 0.0,
    b: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``target_dimension`` eigenpairs of a symmetric matrix.

    Eigenpairs come from the largest (``largest=True``) or smallest end of the
    spectrum, ordered away from that end, after dropping the first ``skip``.
    ``eigenshift`` times the identity (or times ``b``) is added before solving
    and removed from the returned eigenvalues. ``b`` turns the problem into the
    generalised ``A v = l B v``.
    """
    size = matrix.shape[0]
    n_vectors = target_dimension + skip
    if n_vectors > size:
        raise WrongParameterValueError(
            f"Cannot compute {target_dimension} eigenvectors (skipping {skip}) "
            f"of a {size}x{size} matrix."
        )

    if eigenshift:
        # Shifting by eigenshift * B keeps A v = (l - eigenshift) B v exact.
        matrix = matrix + eigenshift * (np.eye(size) if b is None else b)

    backend = method
    if method is EigenMethod.ARPACK and n_vectors >= size - 1:
        logger.debug(
            "ARPACK cannot compute %d of %d eigenpairs; using the dense solver.",
            n_vectors,
            size,
        )
        backend = EigenMethod.DENSE

    with timed_context("Eigendecomposition"):
        if backend is EigenMethod.ARPACK:
            eigenvectors, eigenvalues = _arpack(matrix, n_vectors, largest, b)
        else:
            eigenvectors, eigenvalues = _dense(matrix, n_vectors, largest, b)

    if not np.all(np.isfinite(eigenvalues)):
        raise EigendecompositionError("Eigendecomposition produced non-finite eigenvalues.")

    eigenvectors = eigenvectors[:, skip:]
    # Sign convention: the largest-magnitude entry of each eigenvector is positive.
    pivots = np.argmax(np.abs(eigenvectors), axis=0)
    signs = np.sign(eigenvectors[pivots, np.arange(eigenvectors.shape[1])])
    signs[signs == 0] = 1.0
    return eigenvectors * signs, eigenvalues[skip:] - eigenshift


__all__ = [
    "EIGEN_METHOD_ENV_VAR",
    "default_eigen_method",
    "eigendecomposition",
]

"""
Pytest configuration and shared fixtures for embedkit tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Make the package importable without installation
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from embedkit.callbacks import Callbacks, array_callbacks  # noqa: E402


@pytest.fixture(autouse=True)
def quiet_environment(monkeypatch):
    """Dense eigensolver and no WandB forwarding unless a test says otherwise."""
    monkeypatch.setenv("EMBEDKIT_EIGEN_METHOD", "dense")
    monkeypatch.setenv("EMBEDKIT_WANDB_DISABLED", "1")


@pytest.fixture
def square_points():
    """The four corners of the unit square."""
    return np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])


@pytest.fixture
def anisotropic_points():
    """Twenty 3-D points with clearly separated variances per axis."""
    rng = np.random.default_rng(7)
    return rng.normal(size=(20, 3)) * np.array([5.0, 2.0, 0.5])


@pytest.fixture
def blob_points():
    """Thirty points from a standard 3-D Gaussian blob."""
    rng = np.random.default_rng(11)
    return rng.normal(size=(30, 3))


@pytest.fixture
def two_clusters():
    """Two tight clusters far apart from each other."""
    rng = np.random.default_rng(5)
    near = rng.normal(scale=0.1, size=(10, 2))
    far = rng.normal(scale=0.1, size=(10, 2)) + 100.0
    return np.vstack([near, far])


@pytest.fixture
def counting_callbacks():
    """Factory for array callbacks that count how often each one is invoked."""

    def factory(matrix):
        base = array_callbacks(matrix)
        counts = {"kernel": 0, "distance": 0, "feature_vector": 0}

        def kernel(a, b):
            counts["kernel"] += 1
            return base.kernel(a, b)

        def distance(a, b):
            counts["distance"] += 1
            return base.distance(a, b)

        def feature_vector(item):
            counts["feature_vector"] += 1
            return base.vector(item)

        return Callbacks(kernel=kernel, distance=distance, feature_vector=feature_vector), counts

    return factory

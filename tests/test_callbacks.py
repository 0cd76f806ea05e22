"""
Unit tests for the capability callback adapter.
"""

import numpy as np
import pytest

from embedkit.callbacks import Callbacks, array_callbacks, gaussian_kernel
from embedkit.errors import CapabilityMissingError, DimensionMismatchError
from embedkit.methods import DISTANCE, FEATURE_VECTOR, KERNEL


class TestCallbacks:
    """Tests for the Callbacks adapter."""

    def test_presence_queries(self):
        """Test that presence reflects the supplied callbacks."""
        callbacks = Callbacks(distance=lambda a, b: abs(a - b))

        assert callbacks.has_distance
        assert not callbacks.has_kernel
        assert not callbacks.has_feature_vector
        assert callbacks.missing([KERNEL, DISTANCE, FEATURE_VECTOR]) == [FEATURE_VECTOR, KERNEL]

    def test_require_lists_missing_capabilities(self):
        """Test that require names every missing callback."""
        callbacks = Callbacks(distance=lambda a, b: 0.0)

        with pytest.raises(CapabilityMissingError, match="feature_vector"):
            callbacks.require([DISTANCE, FEATURE_VECTOR], "Locality Preserving Projections")

    def test_absent_callback_fails_on_use(self):
        """Test that invoking an absent callback raises."""
        callbacks = Callbacks()

        with pytest.raises(CapabilityMissingError):
            callbacks.kernel(0, 1)
        with pytest.raises(CapabilityMissingError):
            callbacks.vector(0)

    def test_vector_into_buffer(self):
        """Test writing a feature vector into a caller buffer."""
        callbacks = Callbacks(feature_vector=lambda item: [item, item + 1.0])
        out = np.zeros(2)

        result = callbacks.vector(3.0, out=out)
        assert result is out
        np.testing.assert_array_equal(out, [3.0, 4.0])

    def test_vector_buffer_mismatch(self):
        """Test that a wrong-length vector is reported."""
        callbacks = Callbacks(feature_vector=lambda item: [1.0, 2.0, 3.0])

        with pytest.raises(DimensionMismatchError):
            callbacks.vector(0, out=np.zeros(2))


class TestArrayCallbacks:
    """Tests for callbacks built over dense arrays."""

    def test_array_callbacks(self, square_points):
        """Test the linear kernel, Euclidean distance and row access."""
        callbacks = array_callbacks(square_points)

        assert callbacks.kernel(1, 3) == pytest.approx(1.0)
        assert callbacks.distance(0, 3) == pytest.approx(np.sqrt(2.0))
        np.testing.assert_array_equal(callbacks.vector(2), [0.0, 1.0])

    def test_array_callbacks_rejects_vectors(self):
        """Test that only 2-D input is accepted."""
        with pytest.raises(DimensionMismatchError):
            array_callbacks(np.arange(3.0))

    def test_gaussian_kernel(self, square_points):
        """Test the Gaussian kernel values."""
        kernel = gaussian_kernel(square_points, width=2.0)

        assert kernel(0, 0) == pytest.approx(1.0)
        assert kernel(0, 3) == pytest.approx(np.exp(-1.0))

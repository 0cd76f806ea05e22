"""
Unit tests for the embed entry point and the dispatcher.
"""

import logging

import numpy as np
import pytest

from embedkit import (
    Callbacks,
    CancelledError,
    CapabilityMissingError,
    EigendecompositionError,
    EmbedkitError,
    Method,
    MissingParameterError,
    NotEnoughMemoryError,
    Parameter,
    UnsupportedMethodError,
    WrongParameterTypeError,
    WrongParameterValueError,
    array_callbacks,
    embed,
    project,
    try_embed,
    validate_and_default,
)
from embedkit.context import ExecutionContext
from embedkit.engine import dispatch
from embedkit.registry import MethodRegistry
from embedkit.variants.base import EmbeddingResult, MethodImplementation


class TestEmbedPCA:
    """End-to-end tests with principal component analysis."""

    def test_unit_square(self, square_points):
        """Test PCA of the unit square corners down to one dimension."""
        callbacks = array_callbacks(square_points)

        result = embed(
            range(4),
            {Parameter.REDUCTION_METHOD: Method.PCA, Parameter.TARGET_DIMENSION: 1},
            callbacks,
        )

        embedding, projection = result
        assert embedding.shape == (4, 1)
        assert projection is not None
        assert projection.output_dimension == 1
        np.testing.assert_allclose(result.metadata["eigenvalues"], [1.0])
        # Projected scatter along a unit axis of the identity scatter matrix.
        assert (embedding ** 2).sum() == pytest.approx(1.0)
        np.testing.assert_allclose(embedding.mean(axis=0), [0.0], atol=1e-12)

    def test_projection_reuse(self, anisotropic_points):
        """Test that the returned projection reproduces the embedding."""
        callbacks = array_callbacks(anisotropic_points)
        params = {"method": "pca", "target_dimension": 2}

        embedding, projection = embed(range(20), params, callbacks)

        np.testing.assert_allclose(
            project(projection, range(20), callbacks.vector), embedding, atol=1e-10
        )

    def test_principal_axes(self, anisotropic_points):
        """Test that the leading axes follow the largest variances."""
        callbacks = array_callbacks(anisotropic_points)

        _, projection = embed(range(20), {"method": "pca", "target_dimension": 2}, callbacks)

        assert np.argmax(np.abs(projection.matrix[:, 0])) == 0
        assert np.argmax(np.abs(projection.matrix[:, 1])) == 1

    def test_progress_is_monotone(self, anisotropic_points):
        """Test that progress fractions never decrease and reach one."""
        reported = []

        embed(
            range(20),
            {"method": "pca", "progress_function": reported.append},
            array_callbacks(anisotropic_points),
        )

        assert reported
        assert reported == sorted(reported)
        assert all(0.0 <= fraction <= 1.0 for fraction in reported)
        assert reported[-1] == pytest.approx(1.0)

    def test_individual_callbacks(self, square_points):
        """Test passing the feature vector callback as a keyword."""
        embedding, _ = embed(
            range(4), {"method": "pca", "target_dimension": 1}, feature_vector=square_points.__getitem__
        )

        assert embedding.shape == (4, 1)

    def test_callbacks_given_twice(self, square_points):
        """Test that mixing an adapter and individual callbacks is rejected."""
        with pytest.raises(TypeError):
            embed(
                range(4),
                {"method": "pca"},
                array_callbacks(square_points),
                kernel=lambda a, b: 0.0,
            )

    def test_target_exceeds_input_dimension(self, square_points):
        """Test that PCA cannot produce more components than input features."""
        with pytest.raises(WrongParameterValueError):
            embed(range(4), {"method": "pca", "target_dimension": 3}, array_callbacks(square_points))

    def test_wrong_type_surfaces_at_read(self, square_points):
        """Test that a mistyped target dimension fails during the run."""
        with pytest.raises(WrongParameterTypeError):
            embed(range(4), {"method": "pca", "target_dimension": "1"}, array_callbacks(square_points))


class TestOrientation:
    """Tests for the output orientation flag."""

    def test_columns_flag_transposes(self, anisotropic_points):
        """Test that the column layout is the transpose of the row layout."""
        callbacks = array_callbacks(anisotropic_points)

        rows, _ = embed(range(20), {"method": "pca"}, callbacks)
        columns, _ = embed(
            range(20), {"method": "pca", "output_feature_vectors_are_columns": True}, callbacks
        )

        assert columns.shape == (2, 20)
        np.testing.assert_array_equal(columns, rows.T)

    def test_pass_thru_columns(self, square_points):
        """Test pass-through output in both orientations."""
        callbacks = array_callbacks(square_points)

        rows, projection = embed(range(4), {"method": "pass_thru"}, callbacks)
        columns, _ = embed(
            range(4), {"method": "pass_thru", "output_feature_vectors_are_columns": True}, callbacks
        )

        assert projection is None
        np.testing.assert_array_equal(rows, square_points)
        np.testing.assert_array_equal(columns, square_points.T)


class TestDispatchChecks:
    """Tests for checks the dispatcher performs before any work."""

    def test_missing_method(self, square_points):
        """Test that the selector is mandatory."""
        with pytest.raises(MissingParameterError):
            embed(range(4), {}, array_callbacks(square_points))

    def test_unsupported_method(self, square_points):
        """Test a method without an implementation."""
        with pytest.raises(UnsupportedMethodError):
            embed(range(4), {"method": "hlle"}, array_callbacks(square_points))

    def test_capability_checked_before_work(self, square_points, counting_callbacks):
        """Test that a missing capability fails before any callback runs."""
        counted, counts = counting_callbacks(square_points)
        callbacks = Callbacks(kernel=counted.kernel_function)

        with pytest.raises(CapabilityMissingError):
            embed(range(4), {"method": "pca"}, callbacks)
        with pytest.raises(CapabilityMissingError):
            embed(range(4), {"method": "lpp"}, Callbacks(distance=counted.distance_function))

        assert counts == {"kernel": 0, "distance": 0, "feature_vector": 0}

    def test_cancelled_before_start(self, square_points, counting_callbacks):
        """Test that an already cancelled run does no work."""
        callbacks, counts = counting_callbacks(square_points)
        reported = []

        with pytest.raises(CancelledError):
            embed(
                range(4),
                {
                    "method": "kpca",
                    "cancel_function": lambda: True,
                    "progress_function": reported.append,
                },
                callbacks,
            )

        assert counts["kernel"] == 0
        assert reported == []

    def test_cancelled_mid_run(self, anisotropic_points, counting_callbacks):
        """Test that cancellation during the kernel matrix stops the run."""
        callbacks, counts = counting_callbacks(anisotropic_points)
        polls = {"count": 0}

        def cancel():
            polls["count"] += 1
            return polls["count"] > 5

        with pytest.raises(CancelledError):
            embed(range(20), {"method": "kpca", "cancel_function": cancel}, callbacks)

        assert counts["kernel"] < 20 * 21 // 2

    def test_logs_selected_method(self, square_points, caplog):
        """Test that the chosen method is logged."""
        with caplog.at_level(logging.INFO, logger="embedkit"):
            embed(range(4), {"method": "pca", "target_dimension": 1}, array_callbacks(square_points))

        assert "Using Principal Component Analysis method." in caplog.text


class _ExplodingImplementation(MethodImplementation):
    method = Method.PCA
    error: BaseException = MemoryError()

    def embed(self, data, callbacks):
        raise self.error


class _NonConvergingImplementation(_ExplodingImplementation):
    error = EigendecompositionError("did not converge")


class _EmptyImplementation(MethodImplementation):
    method = Method.PCA

    def embed(self, data, callbacks):
        return EmbeddingResult(np.zeros((len(data), 2)))


class TestDispatchErrors:
    """Tests for error translation in the dispatcher."""

    def _dispatch(self, implementation, square_points):
        registry = MethodRegistry()
        registry.register(Method.PCA, implementation)
        return dispatch(
            validate_and_default({"method": "pca"}),
            range(4),
            array_callbacks(square_points),
            ExecutionContext(),
            registry=registry,
        )

    def test_memory_error_translated(self, square_points):
        """Test that allocation failures become NotEnoughMemoryError."""
        with pytest.raises(NotEnoughMemoryError) as excinfo:
            self._dispatch(_ExplodingImplementation, square_points)

        assert isinstance(excinfo.value, EmbedkitError)
        assert isinstance(excinfo.value.__cause__, MemoryError)

    def test_eigensolver_error_propagates(self, square_points):
        """Test that eigensolver failures propagate unchanged."""
        with pytest.raises(EigendecompositionError, match="did not converge"):
            self._dispatch(_NonConvergingImplementation, square_points)

    def test_custom_registry(self, square_points):
        """Test dispatching to an implementation from a custom registry."""
        result = self._dispatch(_EmptyImplementation, square_points)

        assert result.embedding.shape == (4, 2)
        assert result.projection is None


class TestTryEmbed:
    """Tests for the result-returning entry point."""

    def test_success(self, square_points):
        """Test a successful outcome."""
        outcome = try_embed(range(4), {"method": "pca", "target_dimension": 1}, array_callbacks(square_points))

        assert outcome.ok
        assert outcome.unwrap().embedding.shape == (4, 1)

    def test_failure(self, square_points):
        """Test that engine errors are returned, not raised."""
        outcome = try_embed(range(4), {}, array_callbacks(square_points))

        assert not outcome.ok
        assert isinstance(outcome.error, MissingParameterError)
        with pytest.raises(MissingParameterError):
            outcome.unwrap()


class TestFailFast:
    """Tests that bad core parameters and missing capabilities stop a run early."""

    def test_columns_flag_type_checked_first(self, anisotropic_points, counting_callbacks):
        """Test that a malformed orientation flag fails before the kernel matrix."""
        callbacks, counts = counting_callbacks(anisotropic_points)

        with pytest.raises(WrongParameterTypeError):
            embed(range(20), {"method": "kpca", "output_feature_vectors_are_columns": "yes"}, callbacks)

        assert counts["kernel"] == 0

    def test_negative_eigenshift_checked_first(self, anisotropic_points, counting_callbacks):
        """Test that a negative eigenshift fails before the kernel matrix."""
        callbacks, counts = counting_callbacks(anisotropic_points)

        with pytest.raises(WrongParameterValueError):
            embed(range(20), {"method": "kpca", "eigenshift": -1.0}, callbacks)

        assert counts["kernel"] == 0

    def test_kd_tree_needs_feature_vectors(self, anisotropic_points, counting_callbacks):
        """Test that KD-tree neighbors require feature vectors before any distance call."""
        counted, counts = counting_callbacks(anisotropic_points)
        callbacks = Callbacks(distance=counted.distance_function)

        with pytest.raises(CapabilityMissingError):
            embed(range(20), {"method": "isomap", "neighbors_method": "kd_tree"}, callbacks)

        assert counts["distance"] == 0

    def test_global_spe_ignores_neighbors_backend(self, anisotropic_points, counting_callbacks):
        """Test that global SPE runs on distances alone whatever the neighbors backend."""
        counted, _ = counting_callbacks(anisotropic_points)
        callbacks = Callbacks(distance=counted.distance_function)

        result = embed(range(20), {"method": "spe", "neighbors_method": "kd_tree"}, callbacks)

        assert result.embedding.shape == (20, 2)


class TestDeterminism:
    """Tests that randomised methods repeat without an explicit seed."""

    def test_random_projection_repeats(self, blob_points):
        """Test two unseeded random projection runs."""
        callbacks = array_callbacks(blob_points)

        first = embed(range(30), {"method": "random_projection"}, callbacks)
        second = embed(range(30), {"method": "random_projection"}, callbacks)

        np.testing.assert_array_equal(first.embedding, second.embedding)

    def test_landmark_mds_repeats(self, blob_points):
        """Test two unseeded landmark MDS runs."""
        callbacks = array_callbacks(blob_points)
        parameters = {"method": "lmds", "landmark_ratio": 0.3}

        first = embed(range(30), parameters, callbacks)
        second = embed(range(30), parameters, callbacks)

        np.testing.assert_array_equal(first.embedding, second.embedding)


class TestProgressPhases:
    """Tests that progress keeps moving across the phases of a method."""

    @staticmethod
    def _run(points, parameters):
        reported = []
        parameters = dict(parameters, progress_function=reported.append)
        embed(range(len(points)), parameters, array_callbacks(points))
        return reported

    def test_spe_iterations_report(self, anisotropic_points):
        """Test that SPE reports its iterations after the distance matrix."""
        reported = self._run(anisotropic_points, {"method": "spe", "max_iteration": 10})

        assert any(0.3 < fraction < 1.0 for fraction in reported)
        assert reported[-1] == 1.0

    def test_klle_weights_report(self, anisotropic_points):
        """Test that kernel LLE reports while computing reconstruction weights."""
        reported = self._run(anisotropic_points, {"method": "klle", "number_of_neighbors": 5})

        assert any(0.5 < fraction < 0.8 for fraction in reported)
        assert reported[-1] == 1.0

    def test_kernel_pca_monotone(self, anisotropic_points):
        """Test that kernel PCA progress never goes back."""
        reported = self._run(anisotropic_points, {"method": "kpca"})

        assert reported == sorted(reported)
        assert reported[-1] == 1.0

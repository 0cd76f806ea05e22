"""
Unit tests for the individual method implementations.
"""

import numpy as np
import pytest
from sklearn.decomposition import FactorAnalysis

from embedkit import Parameter, WrongParameterValueError, array_callbacks, embed, project


def _embed(points, **params):
    return embed(range(len(points)), params, array_callbacks(points))


class TestShapes:
    """Every implemented method produces a finite (n, target) embedding."""

    @pytest.mark.parametrize(
        "method, extra",
        [
            ("kpca", {}),
            ("mds", {}),
            ("lmds", {"random_seed": 0}),
            ("isomap", {}),
            ("l-isomap", {"random_seed": 0}),
            ("la", {}),
            ("lpp", {}),
            ("klle", {}),
            ("npe", {}),
            ("dm", {"gaussian_kernel_width": 10.0}),
            ("spe", {"random_seed": 1}),
            ("spe", {"random_seed": 1, "spe_global_strategy": False}),
            ("tsne", {"random_seed": 0}),
            ("fa", {}),
            ("ra", {"random_seed": 0}),
            ("pca", {"neighbors_method": "kd_tree"}),
        ],
    )
    def test_embedding_shape(self, blob_points, method, extra):
        """Test the output shape and finiteness."""
        embedding, _ = _embed(blob_points, method=method, target_dimension=2, **extra)

        assert embedding.shape == (30, 2)
        assert np.all(np.isfinite(embedding))

    @pytest.mark.parametrize("method", ["lpp", "npe", "fa", "ra", "pca"])
    def test_projection_reproduces_embedding(self, blob_points, method):
        """Test that methods with a projection can re-embed their input."""
        callbacks = array_callbacks(blob_points)

        embedding, projection = embed(
            range(30), {"method": method, "random_seed": 0}, callbacks
        )

        assert projection is not None
        np.testing.assert_allclose(
            project(projection, range(30), callbacks.vector), embedding, atol=1e-9
        )


class TestSpectralEquivalences:
    """Known equalities between methods on Euclidean data."""

    def test_kernel_pca_with_linear_kernel_is_pca(self, anisotropic_points):
        """Test that linear-kernel PCA matches PCA up to sign."""
        pca, _ = _embed(anisotropic_points, method="pca")
        kpca, _ = _embed(anisotropic_points, method="kpca")

        np.testing.assert_allclose(np.abs(kpca), np.abs(pca), atol=1e-8)

    def test_mds_is_pca(self, anisotropic_points):
        """Test that classical MDS of Euclidean distances matches PCA up to sign."""
        pca, _ = _embed(anisotropic_points, method="pca")
        mds, _ = _embed(anisotropic_points, method="mds")

        np.testing.assert_allclose(np.abs(mds), np.abs(pca), atol=1e-8)

    def test_landmark_mds_with_all_landmarks(self, anisotropic_points):
        """Test that landmark MDS over every point equals classical MDS."""
        mds, _ = _embed(anisotropic_points, method="mds")
        lmds, _ = _embed(anisotropic_points, method="lmds", landmark_ratio=1.0)

        np.testing.assert_allclose(lmds, mds, atol=1e-8)

    def test_isomap_on_complete_graph(self, anisotropic_points):
        """Test that Isomap with a complete neighbor graph equals classical MDS."""
        mds, _ = _embed(anisotropic_points, method="mds")
        isomap, _ = _embed(anisotropic_points, method="isomap", number_of_neighbors=19)

        np.testing.assert_allclose(np.abs(isomap), np.abs(mds), atol=1e-6)

    def test_arpack_matches_dense(self, anisotropic_points):
        """Test that the eigensolver backend does not change the result."""
        dense, _ = _embed(anisotropic_points, method="mds")
        arpack, _ = _embed(anisotropic_points, method="mds", eigen_method="arpack")

        np.testing.assert_allclose(np.abs(arpack), np.abs(dense), atol=1e-6)


class TestMethodSpecifics:
    """Behaviour specific to individual methods."""

    def test_factor_analysis_matches_sklearn(self, anisotropic_points):
        """Test that the exported projection equals the fitted model's transform."""
        embedding, _ = _embed(anisotropic_points, method="fa")

        model = FactorAnalysis(n_components=2, tol=1e-5, max_iter=1000, random_state=0)
        expected = model.fit(anisotropic_points).transform(anisotropic_points)

        np.testing.assert_allclose(embedding, expected, atol=1e-8)

    def test_random_projection_is_seeded(self, blob_points):
        """Test that the same seed gives the same basis."""
        first, _ = _embed(blob_points, method="ra", random_seed=42)
        second, _ = _embed(blob_points, method="ra", random_seed=42)

        np.testing.assert_array_equal(first, second)

    def test_disconnected_isomap(self, two_clusters):
        """Test that unreachable points make Isomap fail."""
        with pytest.raises(WrongParameterValueError):
            _embed(two_clusters, method="isomap", number_of_neighbors=3)

    def test_too_many_neighbors(self, blob_points):
        """Test that an explicit neighbor count must be below the sample count."""
        with pytest.raises(WrongParameterValueError):
            _embed(blob_points, method="isomap", number_of_neighbors=30)

    def test_landmarks_recorded(self, blob_points):
        """Test that landmark methods report the chosen landmarks."""
        result = _embed(blob_points, method="lmds", landmark_ratio=0.5, random_seed=3)

        landmarks = result.metadata["landmarks"]
        assert len(landmarks) == 15
        assert landmarks == sorted(landmarks)

    def test_diffusion_map_timesteps(self, blob_points):
        """Test that more timesteps shrink the coordinates."""
        one, _ = _embed(blob_points, method="dm", gaussian_kernel_width=10.0)
        three, _ = _embed(
            blob_points, method="dm", gaussian_kernel_width=10.0, diffusion_map_timesteps=3
        )

        assert np.linalg.norm(three) < np.linalg.norm(one)

    def test_laplacian_eigenmaps_records_connectivity(self, blob_points):
        """Test that graph methods report connectivity in the metadata."""
        result = _embed(blob_points, method="la")

        assert result.metadata["graph_connected"] is True
        assert result.projection is None

    def test_tsne_perplexity_adjusted(self, blob_points):
        """Test that perplexity is capped for small sample counts."""
        result = _embed(blob_points, method="tsne", random_seed=0, sne_perplexity=50.0)

        assert result.metadata["computed_perplexity"] == pytest.approx(29 / 3)

    def test_parameter_enum_keys(self, blob_points):
        """Test that Parameter members and strings can be mixed."""
        embedding, _ = embed(
            range(30),
            {Parameter.REDUCTION_METHOD: "kpca", "target_dimension": 3},
            array_callbacks(blob_points),
        )

        assert embedding.shape == (30, 3)

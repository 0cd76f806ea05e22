"""
Unit tests for the method registry.
"""

import pytest

from embedkit.errors import UnsupportedMethodError
from embedkit.methods import Method
from embedkit.registry import MethodRegistry, global_method_registry
from embedkit.variants import PCAImplementation


class TestMethodRegistry:
    """Tests for MethodRegistry."""

    def test_register_and_get(self):
        """Test registering by alias and resolving by member."""
        registry = MethodRegistry()
        registry.register("pca", PCAImplementation)

        assert registry.get(Method.PCA) is PCAImplementation
        assert registry.is_supported(Method.PCA)

    def test_duplicate_registration(self):
        """Test that duplicates are rejected unless overwriting."""
        registry = MethodRegistry()
        registry.register(Method.PCA, PCAImplementation)

        with pytest.raises(ValueError):
            registry.register(Method.PCA, PCAImplementation)
        registry.register(Method.PCA, PCAImplementation, overwrite=True)

    def test_unsupported_method(self):
        """Test that unknown methods list what is available."""
        registry = MethodRegistry()
        registry.register(Method.PCA, PCAImplementation)

        with pytest.raises(UnsupportedMethodError, match="pca"):
            registry.get(Method.ISOMAP)

    def test_unregister(self):
        """Test removing a registration."""
        registry = MethodRegistry()
        registry.register(Method.PCA, PCAImplementation)
        registry.unregister("pca")

        assert not registry.is_supported(Method.PCA)

    def test_global_registry_contents(self):
        """Test which methods the global registry implements."""
        supported = global_method_registry.available_methods()

        assert Method.PCA in supported
        assert Method.KERNEL_LOCALLY_LINEAR_EMBEDDING in supported
        assert Method.T_DISTRIBUTED_STOCHASTIC_NEIGHBOR_EMBEDDING in supported
        assert Method.HESSIAN_LOCALLY_LINEAR_EMBEDDING not in supported
        assert Method.KERNEL_LOCAL_TANGENT_SPACE_ALIGNMENT not in supported
        assert Method.LINEAR_LOCAL_TANGENT_SPACE_ALIGNMENT not in supported

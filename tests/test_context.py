"""
Unit tests for progress reporting and cancellation.
"""

import pytest

from embedkit.context import ExecutionContext, ensure_context
from embedkit.errors import CancelledError


class TestExecutionContext:
    """Tests for ExecutionContext."""

    def test_progress_is_monotone_and_clamped(self):
        """Test that reports never go backwards and stay within [0, 1]."""
        reported = []
        context = ExecutionContext(progress_function=reported.append)

        for fraction in (-0.5, 0.25, 0.1, 0.5, 2.0, 0.9):
            context.report_progress(fraction)

        assert reported == [0.0, 0.25, 0.5, 1.0]

    def test_subrange_scales_progress(self):
        """Test that a phase context maps its progress onto a sub-range."""
        reported = []
        context = ExecutionContext(progress_function=reported.append)

        context.subrange(0.0, 0.5).report_progress(1.0)
        context.subrange(0.5, 1.0).report_progress(0.5)

        assert reported == [0.5, 0.75]

    def test_subrange_shares_cancellation(self):
        """Test that a phase context polls the same cancellation hook."""
        context = ExecutionContext(cancel_function=lambda: True)

        with pytest.raises(CancelledError):
            context.subrange(0.2, 0.4).raise_if_cancelled()

    def test_progress_without_hook(self):
        """Test that reporting without a hook is a no-op."""
        ExecutionContext().report_progress(0.5)

    def test_cancellation(self):
        """Test polling and raising on cancellation."""
        context = ExecutionContext(cancel_function=lambda: True)

        assert context.check_cancelled()
        with pytest.raises(CancelledError):
            context.raise_if_cancelled()

    def test_no_cancellation_hook(self):
        """Test that a missing hook never cancels."""
        context = ExecutionContext()

        assert not context.check_cancelled()
        context.raise_if_cancelled()

    def test_ensure_context(self):
        """Test that a context is created when none is given."""
        context = ExecutionContext()

        assert ensure_context(context) is context
        assert isinstance(ensure_context(None), ExecutionContext)

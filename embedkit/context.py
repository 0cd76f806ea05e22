"""Progress reporting and cooperative cancellation for one ``embed`` call."""

from __future__ import annotations

from typing import Callable, Optional

from .errors import CancelledError

ProgressFunction = Callable[[float], None]
CancelFunction = Callable[[], bool]


class ExecutionContext:
    """Side channel handed to every variant and primitive.

    Progress fractions are clamped to ``[0, 1]`` and never reported lower than
    a previous report. Cancellation is polled, never preemptive.
    """

    def __init__(
        self,
        progress_function: Optional[ProgressFunction] = None,
        cancel_function: Optional[CancelFunction] = None,
    ) -> None:
        self.progress_function = progress_function
        self.cancel_function = cancel_function
        self._last_progress = 0.0

    def report_progress(self, fraction: float) -> None:
        if self.progress_function is None:
            return
        fraction = min(max(float(fraction), 0.0), 1.0)
        if fraction < self._last_progress:
            return
        self._last_progress = fraction
        self.progress_function(fraction)

    def subrange(self, start: float, stop: float) -> "ExecutionContext":
        """Context for one phase whose ``[0, 1]`` progress maps onto ``[start, stop]``."""
        progress_function = None
        if self.progress_function is not None:

            def progress_function(fraction: float) -> None:
                self.report_progress(start + (stop - start) * fraction)

        return ExecutionContext(progress_function, self.cancel_function)

    def check_cancelled(self) -> bool:
        if self.cancel_function is None:
            return False
        return bool(self.cancel_function())

    def raise_if_cancelled(self) -> None:
        if self.check_cancelled():
            raise CancelledError("Computation was cancelled.")


def ensure_context(context: Optional[ExecutionContext]) -> ExecutionContext:
    return context if context is not None else ExecutionContext()


__all__ = [
    "CancelFunction",
    "ExecutionContext",
    "ProgressFunction",
    "ensure_context",
]

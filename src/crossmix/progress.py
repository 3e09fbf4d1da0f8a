"""
Progress reporting and cancellation plumbing shared by the pipeline stages.

Two callback shapes are in use:
- stage callbacks take a fraction in [0, 1] (the encoder reports this way)
- the host callback takes (percent 0-100, message)
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

FractionCallback = Callable[[float], None]
ProgressCallback = Callable[[float, str], None]


def clamp_fraction(value: float) -> float:
    """Clamp to [0.0, 1.0]."""
    return max(0.0, min(1.0, float(value)))


class MergeCancelled(Exception):
    """Raised when a merge or encode is abandoned through its CancelToken."""
    pass


class CancelToken:
    """Flag checked by long-running loops at their suspension points."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self._cancelled})"


class ProgressReporter:
    """
    Wraps an optional host callback.

    Percentages are clamped to [0, 100]; a missing callback turns every
    report into a no-op, so stages never need to check for None.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.last_percent = 0.0

    def report(self, percent: float, message: str) -> None:
        percent = max(0.0, min(100.0, float(percent)))
        self.last_percent = percent
        logger.debug(f"[{percent:5.1f}%] {message}")
        if callable(self.callback):
            self.callback(percent, message)

    def stage(
        self,
        start: float,
        span: float,
        message: Callable[[float], str],
        whole_percent: bool = False,
    ) -> FractionCallback:
        """
        Map a stage's [0, 1] fraction onto [start, start + span] percent.

        Args:
            start: Percent at which the stage begins
            span: Percent width of the stage
            message: Builds the message from the stage fraction
            whole_percent: Round the mapped value to an integer percent

        Returns:
            Callback accepting a fraction
        """

        def _on_fraction(fraction: float) -> None:
            fraction = clamp_fraction(fraction)
            mapped = start + fraction * span
            if whole_percent:
                mapped = start + round(fraction * span)
            self.report(mapped, message(fraction))

        return _on_fraction

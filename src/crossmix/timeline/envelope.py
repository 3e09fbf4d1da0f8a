"""
Piecewise-linear gain envelopes.

An envelope is at most four (time, gain) breakpoints in absolute timeline
seconds: start, fade-in end, fade-out start, end. Gain holds the first
value before the first breakpoint and the last value after the last one.
An envelope without breakpoints is a constant 1.0.
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

Breakpoint = Tuple[float, float]


@dataclass(frozen=True)
class GainEnvelope:
    """Ordered gain breakpoints for one clip placement."""

    points: Tuple[Breakpoint, ...] = ()

    MAX_POINTS = 4

    def __post_init__(self):
        if len(self.points) > self.MAX_POINTS:
            raise ValueError(f"Envelope holds at most {self.MAX_POINTS} breakpoints, got {len(self.points)}")
        for t, g in self.points:
            if not 0.0 <= g <= 1.0:
                raise ValueError(f"Gain {g} at t={t} outside [0, 1]")

    @property
    def is_constant(self) -> bool:
        return not self.points

    def _sorted(self) -> Tuple[np.ndarray, np.ndarray]:
        # Stable sort keeps the scheduling order for equal times
        # (a fade longer than the clip can put fade-out before fade-in).
        order = sorted(range(len(self.points)), key=lambda i: self.points[i][0])
        times = np.array([self.points[i][0] for i in order], dtype=np.float64)
        gains = np.array([self.points[i][1] for i in order], dtype=np.float64)
        return times, gains

    def gain_at(self, t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """
        Evaluate the envelope at time(s) t (seconds).

        Returns:
            float for scalar input, ndarray otherwise; always within [0, 1]
        """
        if self.is_constant:
            if np.ndim(t) == 0:
                return 1.0
            return np.ones(np.shape(t), dtype=np.float64)

        times, gains = self._sorted()
        values = np.interp(t, times, gains)
        if np.ndim(t) == 0:
            return float(values)
        return values


def fade_envelope(
    start: float,
    duration: float,
    fade: float,
    fade_in: bool,
    fade_out: bool,
) -> GainEnvelope:
    """
    Build the envelope for a clip placed at `start` lasting `duration` seconds.

    No breakpoints are added when fade <= 0.
    """
    points = []
    if fade > 0 and fade_in:
        points.append((start, 0.0))
        points.append((start + fade, 1.0))
    if fade > 0 and fade_out:
        fade_out_start = start + duration - fade
        points.append((fade_out_start, 1.0))
        points.append((fade_out_start + fade, 0.0))
    return GainEnvelope(tuple(points))

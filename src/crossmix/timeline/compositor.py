"""
Timeline Compositor: overlap-compensated timeline math and render plans.

Each clip after the first starts `fade` seconds before the previous one ends:
- t_0 = 0, t_i = t_{i-1} + d_{i-1} - fade
- total = sum(d) - fade * (n - 1), floored at MIN_TOTAL_DURATION
- fade-in on every clip but the first, fade-out on every clip but the last

The compositor never mixes audio itself; it hands the plan to a render service.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..clip import Clip, check_clips
from .envelope import GainEnvelope, fade_envelope

logger = logging.getLogger(__name__)

MIN_TOTAL_DURATION = 0.01  # seconds


@dataclass(frozen=True)
class Placement:
    """One clip scheduled on the output timeline."""

    clip: Clip
    start: float  # seconds
    envelope: GainEnvelope

    def start_sample(self, sample_rate: int) -> int:
        return int(round(self.start * sample_rate))


@dataclass(frozen=True)
class RenderPlan:
    """Ordered placements plus the render target geometry."""

    placements: Tuple[Placement, ...]
    total_duration: float
    sample_rate: int
    channels: int
    fade: float

    @property
    def total_samples(self) -> int:
        return int(math.ceil(self.total_duration * self.sample_rate))

    @property
    def starts(self) -> List[float]:
        return [p.start for p in self.placements]

    def to_dict(self) -> dict:
        """JSON-serializable summary (no sample data)."""
        return {
            "total_duration": self.total_duration,
            "total_samples": self.total_samples,
            "sample_rate": self.sample_rate,
            "channels": self.channels,
            "fade": self.fade,
            "placements": [
                {
                    "name": p.clip.name,
                    "start": p.start,
                    "duration": p.clip.duration,
                    "envelope": [list(bp) for bp in p.envelope.points],
                }
                for p in self.placements
            ],
        }


def normalize_fade(fade_seconds: Any) -> float:
    """
    Clamp a crossfade duration to >= 0.

    Negative values clamp silently; non-numeric and NaN input count as 0.
    """
    try:
        fade = float(fade_seconds)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(fade):
        return 0.0
    return max(0.0, fade)


def total_duration(durations: Sequence[float], fade: float) -> float:
    """Output length in seconds for clips of `durations` overlapped by `fade`."""
    total = 0.0
    for idx, duration in enumerate(durations):
        total += duration
        if idx < len(durations) - 1:
            total -= fade
    return max(MIN_TOTAL_DURATION, total)


def start_offsets(durations: Sequence[float], fade: float) -> List[float]:
    """Timeline start (seconds) of each clip."""
    starts = []
    t = 0.0
    for idx, duration in enumerate(durations):
        starts.append(t)
        t += duration - (fade if idx < len(durations) - 1 else 0.0)
    return starts


def compose(clips: Sequence[Clip], fade_seconds: float) -> RenderPlan:
    """
    Build the render plan for `clips` joined by `fade_seconds` crossfades.

    Pure function of its inputs: clip data is not copied or mutated.

    Args:
        clips: Ordered clips sharing sample rate and channel count
        fade_seconds: Crossfade duration (clamped to >= 0)

    Returns:
        RenderPlan

    Raises:
        InsufficientInputError: fewer than 2 clips
        ClipMismatchError: sample rate / channel count differ
    """
    check_clips(clips)
    fade = normalize_fade(fade_seconds)

    durations = [clip.duration for clip in clips]
    total = total_duration(durations, fade)
    starts = start_offsets(durations, fade)

    short = [c.name or str(i) for i, c in enumerate(clips) if c.duration < fade]
    if short:
        logger.warning(f"Crossfade {fade}s exceeds clip duration for: {', '.join(short)}")

    last = len(clips) - 1
    placements = tuple(
        Placement(
            clip=clip,
            start=start,
            envelope=fade_envelope(
                start, clip.duration, fade, fade_in=idx > 0, fade_out=idx < last
            ),
        )
        for idx, (clip, start) in enumerate(zip(clips, starts))
    )

    plan = RenderPlan(
        placements=placements,
        total_duration=total,
        sample_rate=clips[0].sample_rate,
        channels=clips[0].channels,
        fade=fade,
    )
    logger.info(
        f"Composed {len(clips)} clips: {total:.3f}s total, fade {fade}s, "
        f"{plan.total_samples} samples @ {plan.sample_rate} Hz"
    )
    return plan


class Compositor:
    """Drives a render service with a composed plan."""

    def __init__(self, renderer):
        """
        Args:
            renderer: Object implementing RenderService.render(...)
        """
        self.renderer = renderer

    def compose(self, clips: Sequence[Clip], fade_seconds: float) -> RenderPlan:
        return compose(clips, fade_seconds)

    def render(self, plan: RenderPlan, channels: Optional[int] = None) -> np.ndarray:
        """
        Render `plan` into one ComposedBuffer of shape (channels, total_samples).

        This is the expensive step (proportional to samples x channels).

        Args:
            plan: Composed timeline
            channels: Output channel count (default: the clips' own count).
                Mono clips are duplicated into every extra output channel.
        """
        channels = channels or plan.channels
        logger.info(
            f"Rendering {plan.total_duration:.2f}s ({len(plan.placements)} placements, {channels} ch)"
        )
        return self.renderer.render(
            channels,
            plan.total_samples,
            plan.sample_rate,
            plan.placements,
        )

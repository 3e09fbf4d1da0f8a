"""
Render service: sample-accurate mixdown of placed clips.

Each placement is scaled by its gain envelope (linear interpolation between
breakpoints, evaluated at sample times) and summed into one channel-first
float32 buffer. Overlaps are summed as-is; there is no limiter.
"""

import logging
from typing import Protocol, Sequence, runtime_checkable

import numpy as np

from ..timeline.compositor import Placement

logger = logging.getLogger(__name__)


@runtime_checkable
class RenderService(Protocol):
    """Mixes placements into a buffer of shape (channel_count, total_samples)."""

    def render(
        self,
        channel_count: int,
        total_samples: int,
        sample_rate: int,
        placements: Sequence[Placement],
    ) -> np.ndarray:
        ...


class NumpyRenderer:
    """In-memory renderer backed by numpy."""

    def render(
        self,
        channel_count: int,
        total_samples: int,
        sample_rate: int,
        placements: Sequence[Placement],
    ) -> np.ndarray:
        """
        Render placements into a fresh buffer.

        Args:
            channel_count: Output channels
            total_samples: Output length in samples per channel
            sample_rate: Sample rate in Hz (shared by all clips)
            placements: Clips with start times and gain envelopes

        Returns:
            numpy.ndarray: float32, shape (channel_count, total_samples)
        """
        if total_samples < 0:
            raise ValueError(f"total_samples must be >= 0, got {total_samples}")

        out = np.zeros((channel_count, total_samples), dtype=np.float32)

        for idx, placement in enumerate(placements):
            clip = placement.clip
            if clip.sample_rate != sample_rate:
                raise ValueError(
                    f"Placement {idx} sample rate {clip.sample_rate} != render rate {sample_rate}"
                )

            start = placement.start_sample(sample_rate)
            src_from = max(0, -start)
            dst_from = max(0, start)
            length = min(clip.frames - src_from, total_samples - dst_from)
            if length <= 0:
                logger.debug(f"Placement {idx} falls outside the render window; skipped")
                continue

            # Absolute timeline seconds of each rendered sample
            times = (dst_from + np.arange(length, dtype=np.float64)) / float(sample_rate)
            gain = placement.envelope.gain_at(times).astype(np.float32)

            for ch in range(channel_count):
                src_ch = ch if ch < clip.channels else clip.channels - 1
                segment = clip.samples[src_ch, src_from:src_from + length]
                out[ch, dst_from:dst_from + length] += segment * gain

            logger.debug(
                f"Placed {clip.name or idx} at sample {start} "
                f"({length} samples, {len(placement.envelope.points)} breakpoints)"
            )

        return out

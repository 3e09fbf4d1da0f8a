"""
Clip data type: one decoded input segment.

Samples are stored channel-first, shape (channels, frames), float32 in [-1, 1].
All clips taking part in one composition must share sample rate and channel count;
there is no resampling or channel up/down-mix.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

MAX_CHANNELS = 2


class InsufficientInputError(Exception):
    """Raised when fewer than two clips are given to a composition."""
    pass


class ClipMismatchError(Exception):
    """Raised when clips in one composition differ in sample rate or channel count."""
    pass


@dataclass(frozen=True, eq=False)
class Clip:
    """Immutable container for decoded per-channel samples."""

    samples: np.ndarray
    sample_rate: int
    name: str = ""

    def __post_init__(self):
        data = np.array(self.samples, dtype=np.float32, copy=True)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        if data.ndim != 2 or data.shape[0] == 0:
            raise ValueError(f"Clip samples must be (channels, frames), got shape {data.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @classmethod
    def from_channels(cls, channels: Sequence[Sequence[float]], sample_rate: int, name: str = "") -> "Clip":
        """Build a clip from a list of equally long per-channel arrays."""
        lengths = {len(ch) for ch in channels}
        if len(lengths) > 1:
            raise ValueError(f"Channel arrays differ in length: {sorted(lengths)}")
        return cls(np.vstack([np.asarray(ch, dtype=np.float32) for ch in channels]), sample_rate, name)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frames(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds (frames / sample_rate)."""
        return self.frames / float(self.sample_rate)

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


def check_clips(clips: Sequence[Clip]) -> None:
    """
    Enforce composition preconditions.

    Raises:
        InsufficientInputError: fewer than two clips.
        ClipMismatchError: sample rate or channel count differs between clips,
            or a clip has more than MAX_CHANNELS channels.
    """
    if clips is None or len(clips) < 2:
        count = 0 if clips is None else len(clips)
        raise InsufficientInputError(f"Need at least 2 clips, got {count}")

    first = clips[0]
    for idx, clip in enumerate(clips):
        if clip.sample_rate != first.sample_rate:
            raise ClipMismatchError(
                f"Clip {idx} ({clip.name or 'unnamed'}) has sample rate {clip.sample_rate}, "
                f"expected {first.sample_rate}"
            )
        if clip.channels != first.channels:
            raise ClipMismatchError(
                f"Clip {idx} ({clip.name or 'unnamed'}) has {clip.channels} channels, "
                f"expected {first.channels}"
            )
        if clip.channels > MAX_CHANNELS:
            raise ClipMismatchError(
                f"Clip {idx} ({clip.name or 'unnamed'}) has {clip.channels} channels; "
                f"at most {MAX_CHANNELS} are supported"
            )

    logger.debug(f"{len(clips)} clips share {first.sample_rate} Hz / {first.channels} ch")

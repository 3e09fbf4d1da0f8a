"""
Shared fixtures: synthetic clips and in-memory audio services.
"""

import numpy as np
import pytest

from crossmix.clip import Clip


SAMPLE_RATE = 1000


def make_clip(duration: float, value: float = 0.5, channels: int = 1, sample_rate: int = SAMPLE_RATE, name: str = "") -> Clip:
    """Constant-valued clip of `duration` seconds."""
    frames = int(round(duration * sample_rate))
    return Clip(np.full((channels, frames), value, dtype=np.float32), sample_rate, name=name)


class FakeBlockEncoder:
    """Records submitted blocks; emits one chunk per `emit_every` blocks."""

    def __init__(self, channels, sample_rate, bitrate_kbps, emit_every=1, flush_bytes=b"END"):
        self.channels = channels
        self.sample_rate = sample_rate
        self.bitrate_kbps = bitrate_kbps
        self.emit_every = emit_every
        self.flush_bytes = flush_bytes
        self.blocks = []
        self.flushed = 0

    def encode_block(self, left, right=None):
        self.blocks.append((np.array(left), None if right is None else np.array(right)))
        if len(self.blocks) % self.emit_every == 0:
            return f"B{len(self.blocks)};".encode()
        return b""

    def flush(self):
        self.flushed += 1
        return self.flush_bytes


class FakeEncoderFactory:
    """Encoder factory that keeps every encoder it creates."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.created = []

    def __call__(self, channels, sample_rate, bitrate_kbps):
        encoder = FakeBlockEncoder(channels, sample_rate, bitrate_kbps, **self.kwargs)
        self.created.append(encoder)
        return encoder

    @property
    def last(self):
        return self.created[-1]


class FakeDecoder:
    """Decoder mapping source names to prebuilt clips."""

    def __init__(self, clips_by_name):
        self.clips_by_name = clips_by_name
        self.decoded = []

    def decode(self, data, name=""):
        self.decoded.append(name)
        clip = self.clips_by_name[name]
        return Clip(clip.samples, clip.sample_rate, name=name)


@pytest.fixture
def encoder_factory():
    return FakeEncoderFactory()


@pytest.fixture
def three_clips():
    """Clips of 5.0s, 3.0s and 4.0s."""
    return [
        make_clip(5.0, 0.5, name="a"),
        make_clip(3.0, 0.5, name="b"),
        make_clip(4.0, 0.5, name="c"),
    ]

"""
Encode Module: streaming MP3 encoding of a ComposedBuffer.

- Float32 -> int16 conversion per block
- Block-oriented encoder (LAME via lameenc) behind an injectable interface
- Bounded-cadence progress and cooperative cancellation
"""

from .pcm import float_to_int16
from .mp3 import (
    BlockEncoder,
    EncoderUnavailableError,
    LameBlockEncoder,
    StreamingBlockEncoder,
)

__all__ = [
    "BlockEncoder",
    "EncoderUnavailableError",
    "LameBlockEncoder",
    "StreamingBlockEncoder",
    "float_to_int16",
]

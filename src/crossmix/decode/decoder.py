"""
Decoder service: compressed bytes -> Clip.

Uses soundfile (libsndfile) reading from memory. MP3 input needs
libsndfile >= 1.1; WAV/FLAC/OGG work with any release.
"""

import io
import logging
from typing import Protocol, runtime_checkable

from ..clip import Clip

logger = logging.getLogger(__name__)


class DecodeError(Exception):
    """Raised when input bytes are not a readable audio container."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to decode {name or 'input'}: {reason}")


@runtime_checkable
class Decoder(Protocol):
    """Turns one encoded file's bytes into a Clip."""

    def decode(self, data: bytes, name: str = "") -> Clip:
        ...


class SoundFileDecoder:
    """Decoder backed by soundfile."""

    def decode(self, data: bytes, name: str = "") -> Clip:
        """
        Decode `data` into a channel-first float32 Clip.

        Args:
            data: Complete encoded file contents
            name: Label used in errors and logs

        Returns:
            Clip

        Raises:
            DecodeError: empty, malformed or unsupported input
        """
        if not data:
            raise DecodeError(name, "empty input")

        import soundfile as sf

        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except Exception as e:
            raise DecodeError(name, str(e)) from e

        if samples.shape[0] == 0:
            raise DecodeError(name, "no audio frames")

        clip = Clip(samples.T, int(sample_rate), name=name)
        logger.debug(f"Decoded {name or 'input'}: {clip.duration:.2f}s, {clip.channels} ch @ {clip.sample_rate} Hz")
        return clip

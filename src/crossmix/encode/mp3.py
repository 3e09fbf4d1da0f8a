"""
Streaming Block Encoder: ComposedBuffer -> MP3 byte chunks.

- Fixed-size blocks (1152 samples per channel = one MPEG-1 Layer III frame)
- Float -> int16 per block, submitted to a block-oriented encoder
- Progress every Nth block, forced to 1.0 after the final flush
- Strictly sequential, one encoder instance per call
"""

import asyncio
import logging
import math
from typing import Callable, Iterator, Optional, Protocol, Sequence, Union, runtime_checkable

import numpy as np

from ..progress import CancelToken, FractionCallback, MergeCancelled, clamp_fraction
from .pcm import float_to_int16, interleave

logger = logging.getLogger(__name__)

MP3_FRAME_SAMPLES = 1152
DEFAULT_BITRATE_KBPS = 128
DEFAULT_PROGRESS_EVERY = 8

# Input rates accepted by LAME (MPEG-1, MPEG-2 and MPEG-2.5)
SUPPORTED_SAMPLE_RATES = {8000, 11025, 12000, 16000, 22050, 24000, 32000, 44100, 48000}

# Markers interleaved with chunks by the block loop
_CHECKPOINT = object()
_COMPLETE = object()


class EncoderUnavailableError(Exception):
    """Raised when the block encoder cannot be created or configured."""
    pass


@runtime_checkable
class BlockEncoder(Protocol):
    """Block-oriented codec handle: buffers internally, emits bytes incrementally."""

    def encode_block(self, left: np.ndarray, right: Optional[np.ndarray] = None) -> bytes:
        ...

    def flush(self) -> bytes:
        ...


EncoderFactory = Callable[[int, int, int], BlockEncoder]


class LameBlockEncoder:
    """BlockEncoder backed by the LAME bindings in `lameenc`."""

    def __init__(self, channels: int, sample_rate: int, bitrate_kbps: int = DEFAULT_BITRATE_KBPS, quality: int = 2):
        """
        Args:
            channels: 1 (mono) or 2 (stereo)
            sample_rate: Input sample rate in Hz
            bitrate_kbps: Constant bitrate
            quality: LAME quality, 0 (best) to 9 (fastest)

        Raises:
            EncoderUnavailableError: lameenc missing or parameters rejected
        """
        try:
            import lameenc
        except ImportError as e:
            raise EncoderUnavailableError(f"lameenc is not installed: {e}")

        if channels not in (1, 2):
            raise EncoderUnavailableError(f"MP3 supports 1 or 2 channels, got {channels}")
        if sample_rate not in SUPPORTED_SAMPLE_RATES:
            raise EncoderUnavailableError(f"Unsupported MP3 sample rate: {sample_rate} Hz")

        try:
            self._encoder = lameenc.Encoder()
            self._encoder.set_bit_rate(int(bitrate_kbps))
            self._encoder.set_in_sample_rate(int(sample_rate))
            self._encoder.set_channels(int(channels))
            self._encoder.set_quality(int(quality))
        except Exception as e:
            raise EncoderUnavailableError(f"Failed to configure LAME encoder: {e}")

        self.channels = channels
        self._started = False
        logger.debug(f"LAME encoder: {channels} ch, {sample_rate} Hz, {bitrate_kbps} kbps, q={quality}")

    def encode_block(self, left: np.ndarray, right: Optional[np.ndarray] = None) -> bytes:
        if self.channels == 2:
            if right is None:
                raise ValueError("Stereo encoder requires a right channel")
            pcm = interleave(left, right)
        else:
            pcm = np.asarray(left, dtype=np.int16)
        self._started = True
        return bytes(self._encoder.encode(pcm.astype("<i2").tobytes()))

    def flush(self) -> bytes:
        # LAME refuses to flush a stream that never received samples
        if not self._started:
            return b""
        return bytes(self._encoder.flush())


def _as_channels(buffer: Union[np.ndarray, Sequence[Sequence[float]]]) -> np.ndarray:
    """Normalize a ComposedBuffer to shape (channels<=2, samples)."""
    if isinstance(buffer, np.ndarray):
        data = buffer
    else:
        data = np.vstack([np.asarray(ch, dtype=np.float32) for ch in buffer])
    if data.ndim == 1:
        data = data[np.newaxis, :]
    if data.ndim != 2 or data.shape[0] == 0:
        raise ValueError(f"Buffer must be (channels, samples), got shape {data.shape}")
    if data.shape[0] > 2:
        logger.debug(f"Buffer has {data.shape[0]} channels; encoding the first two")
        data = data[:2]
    return data


class StreamingBlockEncoder:
    """Feeds a float buffer through a BlockEncoder block by block."""

    def __init__(
        self,
        block_size: int = MP3_FRAME_SAMPLES,
        bitrate_kbps: int = DEFAULT_BITRATE_KBPS,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        encoder_factory: Optional[EncoderFactory] = None,
    ):
        """
        Args:
            block_size: Samples per channel per block; should match the codec frame size
            bitrate_kbps: Bitrate passed to the encoder factory
            progress_every: Report progress every Nth block
            encoder_factory: (channels, sample_rate, bitrate_kbps) -> BlockEncoder;
                defaults to LameBlockEncoder
        """
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        if progress_every <= 0:
            raise ValueError(f"progress_every must be positive, got {progress_every}")
        if block_size != MP3_FRAME_SAMPLES:
            logger.warning(f"Block size {block_size} differs from MP3 frame size {MP3_FRAME_SAMPLES}")

        self.block_size = block_size
        self.bitrate_kbps = bitrate_kbps
        self.progress_every = progress_every
        self.encoder_factory = encoder_factory or LameBlockEncoder

    def total_blocks(self, total_samples: int) -> int:
        return int(math.ceil(total_samples / self.block_size))

    def _open(self, channels: int, sample_rate: int) -> BlockEncoder:
        try:
            encoder = self.encoder_factory(channels, sample_rate, self.bitrate_kbps)
        except EncoderUnavailableError:
            raise
        except Exception as e:
            raise EncoderUnavailableError(f"Block encoder could not be created: {e}")
        if encoder is None:
            raise EncoderUnavailableError("Block encoder factory returned no encoder")
        return encoder

    def _run(
        self,
        encoder: BlockEncoder,
        data: np.ndarray,
        on_progress: Optional[FractionCallback],
        cancel: Optional[CancelToken],
    ) -> Iterator[object]:
        """Block loop. Yields chunks plus _CHECKPOINT / _COMPLETE markers."""

        def report(value: float) -> None:
            if callable(on_progress):
                on_progress(clamp_fraction(value))

        channels, total_samples = data.shape
        total_blocks = self.total_blocks(total_samples)
        logger.info(f"Encoding {total_samples} samples x {channels} ch in {total_blocks} blocks")

        block = 0
        for i in range(0, total_samples, self.block_size):
            if cancel is not None and cancel.cancelled:
                logger.warning(f"Encode cancelled after {block}/{total_blocks} blocks")
                return

            end = min(i + self.block_size, total_samples)
            left = float_to_int16(data[0, i:end])
            if channels == 2:
                chunk = encoder.encode_block(left, float_to_int16(data[1, i:end]))
            else:
                chunk = encoder.encode_block(left)

            if chunk:
                yield bytes(chunk)

            block += 1
            if block % self.progress_every == 0:
                report(block / total_blocks)
                yield _CHECKPOINT

        if cancel is not None and cancel.cancelled:
            logger.warning("Encode cancelled before flush")
            return

        tail = encoder.flush()
        if tail:
            yield bytes(tail)
        report(1.0)
        logger.debug(f"Encode finished: {block} blocks")
        yield _COMPLETE

    def _start(
        self,
        buffer,
        sample_rate: int,
        on_progress: Optional[FractionCallback],
        cancel: Optional[CancelToken],
    ) -> Iterator[object]:
        data = _as_channels(buffer)
        encoder = self._open(data.shape[0], sample_rate)
        return self._run(encoder, data, on_progress, cancel)

    def iter_chunks(
        self,
        buffer,
        sample_rate: int,
        on_progress: Optional[FractionCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Iterator[bytes]:
        """
        Lazily encode `buffer`, yielding non-empty byte chunks in emission order.

        The encoder is created before this returns, so EncoderUnavailableError
        surfaces at call time. The iterator is finite and not restartable; a
        cancelled token ends it early without flushing.
        """
        events = self._start(buffer, sample_rate, on_progress, cancel)
        return (event for event in events if isinstance(event, bytes))

    def encode(
        self,
        buffer,
        sample_rate: int,
        on_progress: Optional[FractionCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> bytes:
        """
        Encode `buffer` to one MP3 payload.

        Raises:
            EncoderUnavailableError: encoder missing/unconfigured (before any block)
            MergeCancelled: token was cancelled mid-encode
        """
        chunks = []
        complete = False
        for event in self._start(buffer, sample_rate, on_progress, cancel):
            if isinstance(event, bytes):
                chunks.append(event)
            elif event is _COMPLETE:
                complete = True
        if not complete:
            raise MergeCancelled("Encode cancelled before completion")
        return b"".join(chunks)

    async def encode_async(
        self,
        buffer,
        sample_rate: int,
        on_progress: Optional[FractionCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> bytes:
        """Like encode(), yielding to the event loop after each progress report."""
        chunks = []
        complete = False
        for event in self._start(buffer, sample_rate, on_progress, cancel):
            if isinstance(event, bytes):
                chunks.append(event)
            elif event is _CHECKPOINT:
                await asyncio.sleep(0)
            elif event is _COMPLETE:
                complete = True
        if not complete:
            raise MergeCancelled("Encode cancelled before completion")
        return b"".join(chunks)

"""
Merge pipeline: decode -> compose -> render -> encode.

Drives the three audio services in sequence for one request and reports
host-facing progress (percent 0-100 plus a message) at fixed milestones:
decode 5-30, timeline 32-36, scheduling 40-60, render 60, encode 80-99, done 100.

Every failure is terminal for the request: errors propagate unchanged from
merge(); merge_files() logs them, removes partial output and returns False.
"""

import inspect
import logging
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from mutagen.easyid3 import EasyID3
from mutagen.id3 import ID3NoHeaderError

from .clip import Clip, InsufficientInputError
from .config import Config
from .decode.decoder import Decoder, SoundFileDecoder
from .encode.mp3 import LameBlockEncoder, StreamingBlockEncoder
from .progress import CancelToken, MergeCancelled, ProgressCallback, ProgressReporter
from .render.mixer import NumpyRenderer, RenderService
from .timeline.compositor import Compositor, RenderPlan

logger = logging.getLogger(__name__)

Source = Tuple[str, bytes]


class MergeEngine:
    """Crossfade merge orchestrator."""

    def __init__(
        self,
        config=None,
        decoder: Optional[Decoder] = None,
        renderer: Optional[RenderService] = None,
        encoder_factory=None,
    ):
        """
        Initialize merge engine.

        Args:
            config: Config instance or plain dict with "render"/"encode" sections
            decoder: Decoder service (default: SoundFileDecoder)
            renderer: Render service (default: NumpyRenderer)
            encoder_factory: (channels, sample_rate, bitrate_kbps) -> BlockEncoder
                (default: LameBlockEncoder at the configured quality)
        """
        self.config = config if config is not None else Config.default()
        self.decoder = decoder or SoundFileDecoder()
        self.compositor = Compositor(renderer or NumpyRenderer())
        self.channels = int(self._setting("render", "channels", 2))

        if encoder_factory is None:
            encoder_factory = partial(
                _lame_factory, quality=int(self._setting("encode", "quality", 2))
            )
        self.encoder = StreamingBlockEncoder(
            block_size=int(self._setting("encode", "block_size", 1152)),
            bitrate_kbps=int(self._setting("render", "mp3_bitrate", 128)),
            progress_every=int(self._setting("encode", "progress_every_blocks", 8)),
            encoder_factory=encoder_factory,
        )
        logger.info("MergeEngine initialized")

    def _setting(self, section: str, param: str, default):
        if isinstance(self.config, Config):
            return self.config.get(section, param, default)
        return self.config.get(section, {}).get(param, default)

    def _fade(self, fade_seconds: Optional[float]) -> float:
        if fade_seconds is None:
            return self._setting("render", "crossfade_duration_seconds", 3.0)
        return fade_seconds

    def decode_all(self, sources: Sequence[Source], progress: ProgressReporter) -> List[Clip]:
        """Decode every source in order; the first failure aborts the merge."""
        progress.report(5, f"Decoding {len(sources)} file(s)...")
        clips = []
        for i, (name, data) in enumerate(sources):
            progress.report(5 + (i / len(sources)) * 25, f"Decoding {i + 1}/{len(sources)}: {name}")
            clips.append(self.decoder.decode(data, name=name))
        return clips

    def plan(
        self,
        clips: Sequence[Clip],
        fade_seconds: float,
        progress: ProgressReporter,
    ) -> RenderPlan:
        """Compose the timeline and report scheduling milestones."""
        progress.report(32, "Calculating timeline...")
        plan = self.compositor.compose(clips, fade_seconds)

        progress.report(36, "Creating render target...")
        progress.report(40, "Scheduling crossfades...")
        count = len(plan.placements)
        for i in range(count):
            progress.report(40 + (i / count) * 20, f"Queued {i + 1}/{count}")
        return plan

    def _prepare(
        self,
        sources: Sequence[Source],
        fade_seconds: Optional[float],
        progress: ProgressReporter,
        cancel: Optional[CancelToken],
    ) -> RenderPlan:
        if not sources or len(sources) < 2:
            raise InsufficientInputError(f"Need at least 2 files, got {len(sources) if sources else 0}")

        progress.report(2, "Preparing merge...")
        clips = self.decode_all(sources, progress)
        plan = self.plan(clips, self._fade(fade_seconds), progress)

        if cancel is not None and cancel.cancelled:
            raise MergeCancelled("Merge cancelled before rendering")
        progress.report(60, "Rendering audio...")
        return plan

    def _encode_progress(self, progress: ProgressReporter):
        progress.report(80, "Encoding MP3...")
        return progress.stage(
            80, 19, lambda f: f"Encoding... {round(f * 100)}%", whole_percent=True
        )

    def merge(
        self,
        sources: Sequence[Source],
        fade_seconds: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> bytes:
        """
        Merge encoded files into one crossfaded MP3 payload.

        Args:
            sources: Ordered (name, file bytes) pairs, at least 2
            fade_seconds: Crossfade duration; None uses render.crossfade_duration_seconds
            on_progress: Callback (percent 0-100, message)
            cancel: Token checked before rendering and at every encode block

        Returns:
            Complete MP3 payload

        Raises:
            InsufficientInputError, ClipMismatchError, DecodeError,
            EncoderUnavailableError, MergeCancelled
        """
        progress = ProgressReporter(on_progress)
        plan = self._prepare(sources, fade_seconds, progress, cancel)
        buffer = self.compositor.render(plan, self.channels)

        payload = self.encoder.encode(
            buffer, plan.sample_rate, self._encode_progress(progress), cancel
        )
        progress.report(100, "Complete!")
        logger.info(
            f"Merge complete: {len(payload)} bytes, {plan.total_duration:.2f}s "
            f"(progress {progress.last_percent:.0f}%)"
        )
        return payload

    async def merge_async(
        self,
        sources: Sequence[Source],
        fade_seconds: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> bytes:
        """
        Cooperative variant of merge().

        Awaits the render service when it returns an awaitable and yields to
        the event loop at every encode progress report.
        """
        progress = ProgressReporter(on_progress)
        plan = self._prepare(sources, fade_seconds, progress, cancel)

        buffer = self.compositor.render(plan, self.channels)
        if inspect.isawaitable(buffer):
            buffer = await buffer

        payload = await self.encoder.encode_async(
            buffer, plan.sample_rate, self._encode_progress(progress), cancel
        )
        progress.report(100, "Complete!")
        logger.info(
            f"Merge complete: {len(payload)} bytes, {plan.total_duration:.2f}s "
            f"(progress {progress.last_percent:.0f}%)"
        )
        return payload

    def merge_files(
        self,
        input_paths: Sequence[str],
        output_path: str,
        fade_seconds: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bool:
        """
        Merge files on disk and write the MP3 mix to output_path.

        Returns:
            True if successful, False otherwise
        """
        logger.info(f"Starting merge: {len(input_paths)} file(s) -> {output_path}")

        try:
            sources = [(Path(p).name, Path(p).read_bytes()) for p in input_paths]
        except OSError as e:
            logger.error(f"Failed to read input files: {e}")
            return False

        try:
            payload = self.merge(sources, fade_seconds=fade_seconds, on_progress=on_progress)
            out = Path(output_path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(payload)

            if not _validate_output_file(output_path):
                logger.error("Output file validation failed")
                _cleanup_partial_output(output_path)
                return False

            _write_mix_metadata(output_path, datetime.now().isoformat())

            logger.info(f"✅ Merge written: {output_path}")
            return True

        except Exception as e:
            logger.error(f"Merge failed: {e}")
            _cleanup_partial_output(output_path)
            return False


def _lame_factory(channels: int, sample_rate: int, bitrate_kbps: int, quality: int = 2) -> LameBlockEncoder:
    return LameBlockEncoder(channels, sample_rate, bitrate_kbps, quality=quality)


def _validate_output_file(output_path: str) -> bool:
    """
    Validate merged output file.

    Args:
        output_path: Path to output file

    Returns:
        True if the file exists and is non-empty, False otherwise
    """
    output_file = Path(output_path)

    if not output_file.exists():
        logger.error(f"Output file does not exist: {output_path}")
        return False

    file_size = output_file.stat().st_size
    if file_size == 0:
        logger.error(f"Output file is empty: {output_path}")
        return False

    logger.debug(f"Output validation passed: {output_path} ({file_size} bytes)")
    return True


def _write_mix_metadata(output_path: str, timestamp: str) -> bool:
    """
    Write ID3 metadata to the merged MP3.

    Args:
        output_path: Path to output file
        timestamp: Generation timestamp (ISO format)

    Returns:
        True if successful, False otherwise
    """
    if not output_path.lower().endswith(".mp3"):
        logger.debug(f"Unsupported format for metadata: {output_path}")
        return False

    try:
        try:
            audio = EasyID3(output_path)
        except ID3NoHeaderError:
            # Fresh encoder output carries no tag yet
            audio = EasyID3()

        audio["album"] = f"Crossmix {timestamp[:10]}"
        audio["genre"] = "Crossfade Mix"
        audio["date"] = timestamp[:4]
        audio.save(output_path)
        logger.debug(f"Added ID3 metadata to {output_path}")
        return True
    except Exception as e:
        logger.warning(f"Failed to write ID3 tags to MP3: {e}")
        return False


def _cleanup_partial_output(output_path: str) -> None:
    """
    Clean up partial or failed output files.

    Args:
        output_path: Path to output file to remove
    """
    try:
        output_file = Path(output_path)
        if output_file.exists():
            output_file.unlink()
            logger.debug(f"Cleaned up partial output: {output_path}")
    except OSError as e:
        logger.warning(f"Failed to clean up output file {output_path}: {e}")

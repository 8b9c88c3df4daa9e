"""Animated GIF encoding.

Frames are written to the sink one at a time: the GIF header and loop
extension go out with the first frame, every frame gets its own graphic
control extension and local colour table, and the trailer is written by
``finish()``. Pillow's GIF plugin does the palette and LZW work.

Unlike ``Image.save(save_all=True)``, identical consecutive frames are kept
as separate frames, so K frames in always means K frames out.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import GifImagePlugin, Image

from .config import DEFAULT_ANIMATION_CONFIG, QUANTIZERS, AnimationConfig
from .error_handling import (
    EncodeIOError,
    FrameDimensionMismatchError,
    InvalidInputError,
    error_context,
    handle_error,
)
from .io import atomic_write
from .synthesis import Frame

logger = logging.getLogger(__name__)

QUANTIZE_METHODS = {
    "mediancut": Image.Quantize.MEDIANCUT,
    "maxcoverage": Image.Quantize.MAXCOVERAGE,
    "fastoctree": Image.Quantize.FASTOCTREE,
}

# Do not dispose: each frame is drawn over the previous one
DISPOSAL_NONE = 1

GIF_TRAILER = b";"


def gif_delay_ms(delay_ms: int) -> int:
    """Round a delay to the nearest hundredth of a second, halves going up."""
    return (delay_ms + 5) // 10 * 10


@dataclass(frozen=True)
class AnimationParameters:
    """Timing, looping and palette settings shared by every frame.

    Attributes:
        repeat: Loop count written to the NETSCAPE extension, 0 loops forever
        delay_ms: Per-frame display time; GIF stores hundredths of a second,
            so it is rounded to the nearest 10 ms when written
        quality: Palette sampling step, 1 (every pixel) to 30
        quantizer: Palette-reduction algorithm, one of ``QUANTIZERS``
    """

    repeat: int = DEFAULT_ANIMATION_CONFIG.REPEAT
    delay_ms: int = DEFAULT_ANIMATION_CONFIG.DELAY_MS
    quality: int = DEFAULT_ANIMATION_CONFIG.QUALITY
    quantizer: str = DEFAULT_ANIMATION_CONFIG.QUANTIZER

    def __post_init__(self) -> None:
        if not 0 <= self.repeat <= 65535:
            raise InvalidInputError(f"repeat must be between 0 and 65535, got {self.repeat}")
        if not 0 <= self.delay_ms <= 655350:
            raise InvalidInputError(
                f"delay_ms must be between 0 and 655350, got {self.delay_ms}"
            )
        if not 1 <= self.quality <= 30:
            raise InvalidInputError(f"quality must be between 1 and 30, got {self.quality}")
        if self.quantizer not in QUANTIZERS:
            raise InvalidInputError(
                f"Unknown quantizer: {self.quantizer} (expected one of {', '.join(QUANTIZERS)})"
            )

    @classmethod
    def from_config(cls, config: AnimationConfig) -> AnimationParameters:
        return cls(
            repeat=config.REPEAT,
            delay_ms=config.DELAY_MS,
            quality=config.QUALITY,
            quantizer=config.QUANTIZER,
        )


@dataclass
class EncodeResult:
    """Summary of a finished encode."""

    frame_count: int
    width: int
    height: int
    bytes_written: int
    elapsed_ms: int
    output_path: Path | None = None


def _frame_pixels(frame: Frame | np.ndarray) -> np.ndarray:
    pixels = frame.pixels if isinstance(frame, Frame) else np.asarray(frame)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4) or pixels.dtype != np.uint8:
        raise InvalidInputError(
            f"Frames must be (H, W, 3|4) uint8 arrays, got {pixels.shape} {pixels.dtype}"
        )
    return pixels


def quantize_frame(pixels: np.ndarray, quantizer: str = "mediancut", quality: int = 10) -> Image.Image:
    """Reduce an RGB(A) frame to a palette image.

    The palette is built from every ``quality``-th pixel, then every pixel is
    mapped to its nearest palette entry without dithering. Alpha is dropped.
    """
    rgb = np.ascontiguousarray(pixels[..., :3])
    sample = rgb.reshape(-1, 3)[::quality]
    palette_source = Image.fromarray(sample.reshape(-1, 1, 3))
    palette_image = palette_source.quantize(colors=256, method=QUANTIZE_METHODS[quantizer])
    return Image.fromarray(rgb).quantize(palette=palette_image, dither=Image.Dither.NONE)


class GifSequenceEncoder:
    """Incremental GIF writer over an open binary stream.

    Usage:
        with GifSequenceEncoder(fp, AnimationParameters(delay_ms=100)) as encoder:
            for frame in frames:
                encoder.add_frame(frame)
    """

    def __init__(self, fp: BinaryIO, params: AnimationParameters | None = None):
        self._fp = fp
        self.params = params or AnimationParameters()
        self.size: tuple[int, int] | None = None
        self.frame_count = 0
        self.bytes_written = 0
        self.finished = False

    def _write(self, chunks: Iterable[bytes]) -> None:
        try:
            for chunk in chunks:
                self._fp.write(chunk)
                self.bytes_written += len(chunk)
        except OSError as e:
            handle_error(
                e,
                "write GIF data",
                EncodeIOError,
                context={"frame": self.frame_count},
                logger=logger,
            )

    def add_frame(self, frame: Frame | np.ndarray) -> None:
        """Quantize and append one frame.

        Raises:
            FrameDimensionMismatchError: If the frame size differs from the first frame
            EncodeIOError: If the sink rejects the write
        """
        if self.finished:
            raise RuntimeError("Cannot add frames after finish()")

        pixels = _frame_pixels(frame)
        size = (int(pixels.shape[1]), int(pixels.shape[0]))

        if self.size is not None and size != self.size:
            raise FrameDimensionMismatchError(
                f"Frame {self.frame_count} is {size[0]}x{size[1]}, "
                f"expected {self.size[0]}x{self.size[1]}",
                context={"frame": self.frame_count},
            )

        image = quantize_frame(pixels, self.params.quantizer, self.params.quality)

        if self.size is None:
            header, _ = GifImagePlugin.getheader(image, info={"loop": self.params.repeat})
            self._write(header)
            self.size = size

        self._write(
            GifImagePlugin.getdata(
                image,
                duration=gif_delay_ms(self.params.delay_ms),
                disposal=DISPOSAL_NONE,
                include_color_table=True,
            )
        )
        self.frame_count += 1

    def finish(self) -> int:
        """Write the trailer and flush; returns the number of bytes written.

        Raises:
            InvalidInputError: If no frame was added
            EncodeIOError: If the trailer cannot be written or flushed
        """
        if self.finished:
            return self.bytes_written
        if self.frame_count == 0:
            raise InvalidInputError("Cannot encode an empty frame sequence")

        self._write([GIF_TRAILER])
        with error_context("flush GIF sink", EncodeIOError, logger=logger):
            self._fp.flush()

        self.finished = True
        return self.bytes_written

    def __enter__(self) -> GifSequenceEncoder:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Only a clean exit completes the GIF
        if exc_type is None:
            self.finish()


def encode(
    frames: Iterable[Frame | np.ndarray],
    sink: str | Path | BinaryIO,
    params: AnimationParameters | None = None,
) -> EncodeResult:
    """Encode ``frames`` in order as an animated GIF.

    A path sink is written through a temporary file in the same directory and
    only moved into place once the trailer is flushed; on failure the path is
    left untouched. A binary stream sink is written directly and flushed but
    not closed.

    Raises:
        InvalidInputError: If ``frames`` is empty or a frame is malformed
        FrameDimensionMismatchError: If frame sizes disagree
        EncodeIOError: If the sink cannot be written or finalized
    """
    params = params or AnimationParameters()
    start = time.perf_counter()

    if isinstance(sink, (str, Path)):
        output_path: Path | None = Path(sink)
        try:
            with atomic_write(output_path) as fp:
                encoder = _encode_into(fp, frames, params)
        except OSError as e:
            handle_error(
                e,
                "finalize GIF sink",
                EncodeIOError,
                context={"output_path": output_path},
                logger=logger,
            )
    else:
        output_path = None
        encoder = _encode_into(sink, frames, params)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    width, height = encoder.size

    logger.debug(
        f"Encoded {encoder.frame_count} frames ({width}x{height}, "
        f"{encoder.bytes_written} bytes) in {elapsed_ms}ms"
    )

    return EncodeResult(
        frame_count=encoder.frame_count,
        width=width,
        height=height,
        bytes_written=encoder.bytes_written,
        elapsed_ms=elapsed_ms,
        output_path=output_path,
    )


def _encode_into(
    fp: BinaryIO, frames: Iterable[Frame | np.ndarray], params: AnimationParameters
) -> GifSequenceEncoder:
    with GifSequenceEncoder(fp, params) as encoder:
        for frame in frames:
            encoder.add_frame(frame)
    return encoder

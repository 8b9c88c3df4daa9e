"""Photo-to-GIF pipeline: decode, synthesize, encode."""

import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .config import (
    DEFAULT_ANIMATION_CONFIG,
    DEFAULT_OVERLAY_CONFIG,
    AnimationConfig,
    OverlayConfig,
)
from .encoder import AnimationParameters, encode
from .error_handling import BongoLabError
from .meta import decode_image
from .synthesis import FrameSynthesizer

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one successful ``process_photo`` run."""

    input_path: Path
    output_path: Path
    frame_count: int
    width: int
    height: int
    bytes_written: int
    delay_ms: int
    repeat: int
    render_ms: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["input_path"] = str(self.input_path)
        data["output_path"] = str(self.output_path)
        return data


class BongoPipeline:
    """Turns still images into drumming GIFs.

    One instance can serve many requests: it holds only configuration, and
    every call works on its own image, frames and sink.
    """

    def __init__(
        self,
        animation_config: AnimationConfig | None = None,
        overlay_config: OverlayConfig | None = None,
    ):
        self.animation_config = animation_config or DEFAULT_ANIMATION_CONFIG
        self.overlay_config = overlay_config or DEFAULT_OVERLAY_CONFIG
        self.synthesizer = FrameSynthesizer(self.animation_config, self.overlay_config)
        self.params = AnimationParameters.from_config(self.animation_config)

    def process(self, input_path: Path, output_path: Path) -> PipelineResult:
        """Render ``input_path`` as an animated GIF at ``output_path``.

        ``output_path`` only exists after the GIF has been completely written.

        Raises:
            ImageDecodeError: If the input is not a readable image
            InvalidInputError: If the image is smaller than the minimum size
            EncodeIOError: If the GIF cannot be written
        """
        start = time.perf_counter()
        logger.info(f"Photo processing started (input={input_path}, output={output_path})")

        try:
            image = decode_image(Path(input_path))
            frames = self.synthesizer.synthesize(image)
            result = encode(frames, Path(output_path), self.params)
        except BongoLabError as e:
            logger.error(f"Photo processing error for {input_path}: {e}")
            raise

        render_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"Photo processing completed (input={input_path}, output={output_path}, "
            f"frameCount={result.frame_count}, {render_ms}ms)"
        )

        return PipelineResult(
            input_path=Path(input_path),
            output_path=Path(output_path),
            frame_count=result.frame_count,
            width=result.width,
            height=result.height,
            bytes_written=result.bytes_written,
            delay_ms=self.params.delay_ms,
            repeat=self.params.repeat,
            render_ms=render_ms,
        )


def process_photo(
    input_path: Path,
    output_path: Path,
    animation_config: AnimationConfig | None = None,
    overlay_config: OverlayConfig | None = None,
) -> PipelineResult:
    """Convenience wrapper around :class:`BongoPipeline`."""
    return BongoPipeline(animation_config, overlay_config).process(input_path, output_path)

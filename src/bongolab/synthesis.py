"""Frame synthesis for the drumming animation.

Every frame is a copy of the source image with five opaque rectangles baked
in: two arms that swing on a circular path and a static drum flanked by two
sticks. The arms are half a cycle apart, so one is always up while the other
is down.

Positions are closed-form functions of the frame index, which makes the
sequence a pure function of ``(image, frame_count)``.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .config import (
    DEFAULT_ANIMATION_CONFIG,
    DEFAULT_OVERLAY_CONFIG,
    RGBA,
    AnimationConfig,
    OverlayConfig,
)
from .meta import SourceImage
from .validation import (
    validate_frame_count,
    validate_image_dimensions,
    validate_worker_count,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayRect:
    """Solid rectangle composited onto a frame."""

    x: int
    y: int
    width: int
    height: int
    color: RGBA
    role: str


@dataclass
class Frame:
    """One synthesized RGBA frame, ``pixels`` shaped ``(height, width, 4)``."""

    index: int
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)


def arm_angles(index: int, frame_count: int) -> tuple[float, float]:
    """Return ``(left, right)`` arm angles in radians for frame ``index``."""
    progress = index / frame_count
    left = progress * 2 * math.pi
    return left, left + math.pi


def arm_size(
    width: int, height: int, overlay: OverlayConfig = DEFAULT_OVERLAY_CONFIG
) -> tuple[int, int]:
    arm_w = int(min(width * overlay.ARM_WIDTH_RATIO, overlay.ARM_WIDTH_MAX))
    arm_h = int(min(height * overlay.ARM_HEIGHT_RATIO, overlay.ARM_HEIGHT_MAX))
    return max(arm_w, 1), max(arm_h, 1)


def arm_overlays(
    index: int,
    frame_count: int,
    width: int,
    height: int,
    overlay: OverlayConfig = DEFAULT_OVERLAY_CONFIG,
) -> tuple[OverlayRect, OverlayRect]:
    """Place the left and right arm for one frame."""
    left_angle, right_angle = arm_angles(index, frame_count)
    arm_w, arm_h = arm_size(width, height, overlay)

    def place(rest_x: float, angle: float) -> OverlayRect:
        x = math.floor(width * rest_x + math.sin(angle) * overlay.SWING_X)
        y = math.floor(height * overlay.ARM_Y + math.cos(angle) * overlay.SWING_Y)
        return OverlayRect(x, y, arm_w, arm_h, overlay.ARM_COLOR, "arm")

    return place(overlay.LEFT_ARM_X, left_angle), place(overlay.RIGHT_ARM_X, right_angle)


def static_overlays(
    width: int, height: int, overlay: OverlayConfig = DEFAULT_OVERLAY_CONFIG
) -> tuple[OverlayRect, OverlayRect, OverlayRect]:
    """Drum, left stick and right stick; identical for every frame."""
    drum_x = math.floor(width * overlay.DRUM_X)
    drum_y = math.floor(height * overlay.DRUM_Y)
    drum_size = math.floor(min(width, height) * overlay.DRUM_SIZE_RATIO)

    stick_length = math.floor(drum_size * overlay.STICK_LENGTH_RATIO)
    stick_y = drum_y - math.floor(drum_size * overlay.STICK_RAISE)

    drum = OverlayRect(drum_x, drum_y, drum_size, drum_size, overlay.DRUM_COLOR, "drum")
    left_stick = OverlayRect(
        drum_x - math.floor(drum_size * overlay.LEFT_STICK_OFFSET),
        stick_y,
        overlay.STICK_WIDTH,
        stick_length,
        overlay.STICK_COLOR,
        "stick",
    )
    right_stick = OverlayRect(
        drum_x + math.floor(drum_size * overlay.RIGHT_STICK_OFFSET),
        stick_y,
        overlay.STICK_WIDTH,
        stick_length,
        overlay.STICK_COLOR,
        "stick",
    )
    return drum, left_stick, right_stick


def composite(pixels: np.ndarray, rect: OverlayRect) -> None:
    """Paint ``rect`` onto ``pixels`` in place, clipped to the frame bounds."""
    frame_h, frame_w = pixels.shape[:2]
    x0 = max(rect.x, 0)
    y0 = max(rect.y, 0)
    x1 = min(rect.x + rect.width, frame_w)
    y1 = min(rect.y + rect.height, frame_h)
    if x0 >= x1 or y0 >= y1:
        return
    pixels[y0:y1, x0:x1] = rect.color


class FrameSynthesizer:
    """Builds the drumming frame sequence for a source image."""

    def __init__(
        self,
        animation_config: AnimationConfig | None = None,
        overlay_config: OverlayConfig | None = None,
    ):
        self.animation_config = animation_config or DEFAULT_ANIMATION_CONFIG
        self.overlay_config = overlay_config or DEFAULT_OVERLAY_CONFIG

    def overlays_for(
        self, index: int, frame_count: int, width: int, height: int
    ) -> list[OverlayRect]:
        """All overlays of one frame in draw order."""
        left_arm, right_arm = arm_overlays(
            index, frame_count, width, height, self.overlay_config
        )
        return [left_arm, right_arm, *static_overlays(width, height, self.overlay_config)]

    def render_frame(self, image: SourceImage, index: int, frame_count: int) -> Frame:
        pixels = image.pixels.copy()
        for rect in self.overlays_for(index, frame_count, image.width, image.height):
            composite(pixels, rect)
        return Frame(index=index, pixels=pixels)

    def synthesize(
        self,
        image: SourceImage,
        frame_count: int | None = None,
        workers: int | None = None,
    ) -> list[Frame]:
        """Render ``frame_count`` frames in index order.

        Raises:
            InvalidInputError: If the image is too small or frame_count < 1
        """
        validate_image_dimensions(
            image.width, image.height, self.animation_config.MIN_DIMENSION
        )
        frame_count = validate_frame_count(
            self.animation_config.FRAME_COUNT if frame_count is None else frame_count
        )
        workers = validate_worker_count(workers or self.animation_config.SYNTHESIS_WORKERS)

        logger.debug(
            f"Synthesizing {frame_count} frames at {image.width}x{image.height} "
            f"with {workers} worker(s)"
        )

        if workers <= 1 or frame_count == 1:
            return [self.render_frame(image, i, frame_count) for i in range(frame_count)]

        # map() yields results in submission order
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(
                executor.map(
                    lambda i: self.render_frame(image, i, frame_count), range(frame_count)
                )
            )


def synthesize(
    image: SourceImage,
    frame_count: int = DEFAULT_ANIMATION_CONFIG.FRAME_COUNT,
    overlay_config: OverlayConfig | None = None,
    workers: int = 1,
) -> list[Frame]:
    """Render the drumming sequence for ``image`` with default settings."""
    synthesizer = FrameSynthesizer(overlay_config=overlay_config)
    return synthesizer.synthesize(image, frame_count, workers=workers)

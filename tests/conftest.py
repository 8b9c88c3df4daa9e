import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from bongolab.meta import SourceImage

RED = (255, 0, 0, 255)
ARM = (255, 107, 107)
DRUM = (139, 69, 19)


def _solid_png(path: Path, size: tuple[int, int], color=RED) -> Path:
    """Write a solid-colour RGBA PNG to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path


@pytest.fixture
def make_png(tmp_path):
    """Factory for solid-colour PNG files: ``make_png((w, h), name=..., color=...)``."""

    def _make(size=(200, 200), name="photo.png", color=RED) -> Path:
        return _solid_png(tmp_path / name, size, color)

    return _make


@pytest.fixture
def red_png(make_png) -> Path:
    """200x200 opaque red PNG on disk."""
    return make_png((200, 200))


@pytest.fixture
def red_png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (200, 200), RED).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def red_image() -> SourceImage:
    pixels = np.zeros((200, 200, 4), dtype=np.uint8)
    pixels[...] = RED
    return SourceImage.from_array(pixels)


@pytest.fixture
def gradient_image() -> SourceImage:
    """120x80 image with a horizontal gradient, useful for equality checks."""
    xs = np.linspace(0, 255, 120, dtype=np.uint8)
    pixels = np.zeros((80, 120, 4), dtype=np.uint8)
    pixels[..., 0] = xs
    pixels[..., 1] = xs[::-1]
    pixels[..., 2] = 64
    pixels[..., 3] = 255
    return SourceImage.from_array(pixels)


def read_gif_frames(source) -> tuple[list[np.ndarray], list[int], int | None]:
    """Decode every frame of a GIF as RGB arrays, with durations and loop count."""
    frames, durations = [], []
    with Image.open(source) as img:
        loop = img.info.get("loop")
        for i in range(img.n_frames):
            img.seek(i)
            durations.append(int(img.info.get("duration", 0)))
            frames.append(np.asarray(img.convert("RGB")))
    return frames, durations, loop


def color_close(actual, expected, tolerance: int = 8) -> bool:
    return all(abs(int(a) - int(e)) <= tolerance for a, e in zip(actual, expected))

"""Source image decoding and animation metadata extraction."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .error_handling import ImageDecodeError


@dataclass(frozen=True)
class SourceImage:
    """Decoded RGBA raster that frames are synthesized from.

    ``pixels`` has shape ``(height, width, 4)`` and is read-only; synthesis
    always works on copies.
    """

    width: int
    height: int
    pixels: np.ndarray = field(repr=False, compare=False)

    @classmethod
    def from_array(cls, array: np.ndarray) -> SourceImage:
        """Wrap an ``(H, W, 4)`` uint8 array, taking a private read-only copy."""
        pixels = np.array(array, dtype=np.uint8, copy=True)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}")
        pixels.setflags(write=False)
        return cls(width=pixels.shape[1], height=pixels.shape[0], pixels=pixels)

    @classmethod
    def from_pil(cls, image: Image.Image) -> SourceImage:
        return cls.from_array(np.asarray(image.convert("RGBA")))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)


@dataclass
class AnimationMetadata:
    """Metadata read back from an encoded GIF."""

    gif_sha: str
    filename: str
    kilobytes: float
    width: int
    height: int
    frames: int
    durations_ms: list[int]
    loop: int | None
    fps: float


def decode_image(source: bytes | str | Path | BinaryIO) -> SourceImage:
    """Decode an image file or byte string into a :class:`SourceImage`.

    Any Pillow-readable format is accepted. Animated inputs contribute their
    first frame. EXIF orientation is applied so the result matches what an
    image viewer shows.

    Raises:
        ImageDecodeError: If the input is missing or not a decodable raster
    """
    if isinstance(source, (bytes, bytearray)):
        fp: str | Path | BinaryIO = BytesIO(source)
        label = f"<{len(source)} bytes>"
    else:
        fp = source
        label = str(getattr(source, "name", source))

    try:
        with Image.open(fp) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            return SourceImage.from_pil(oriented)
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(
            f"Unsupported or corrupt image: {label}", cause=e, context={"source": label}
        ) from e
    except (OSError, ValueError, SyntaxError) as e:
        # Truncated files surface as OSError, broken headers as SyntaxError
        raise ImageDecodeError(
            f"Could not decode image: {label}", cause=e, context={"source": label}
        ) from e


def compute_file_sha256(file_path: Path) -> str:
    """Compute SHA256 hash of a file.

    Args:
        file_path: Path to the file to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            sha256_hash.update(chunk)
    return sha256_hash.hexdigest()


def extract_animation_metadata(file_path: Path) -> AnimationMetadata:
    """Extract metadata from a GIF file.

    Args:
        file_path: Path to the GIF file

    Returns:
        AnimationMetadata with dimensions, per-frame durations and loop count

    Raises:
        ValueError: If file is not a valid GIF
        IOError: If file cannot be read
    """
    if not file_path.exists():
        raise OSError(f"File not found: {file_path}")

    gif_sha = compute_file_sha256(file_path)
    kilobytes = file_path.stat().st_size / 1024.0

    try:
        with Image.open(file_path) as img:
            if img.format != "GIF":
                raise ValueError(f"File is not a GIF: {file_path}")

            width, height = img.size
            loop = img.info.get("loop")

            durations = []
            for i in range(getattr(img, "n_frames", 1)):
                img.seek(i)
                durations.append(int(img.info.get("duration", 0)))

    except (OSError, EOFError, SyntaxError) as e:
        raise ValueError(f"Error processing GIF {file_path}: {e}") from e

    total_ms = sum(durations)
    fps = 1000.0 * len(durations) / total_ms if total_ms > 0 else 0.0

    return AnimationMetadata(
        gif_sha=gif_sha,
        filename=file_path.name,
        kilobytes=kilobytes,
        width=width,
        height=height,
        frames=len(durations),
        durations_ms=durations,
        loop=loop,
        fps=round(fps, 2),
    )

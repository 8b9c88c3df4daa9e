"""Input checks run before any frame is synthesized or written.

Range checks raise ``InvalidInputError``; path checks raise
``ValidationError``.
"""

import os
import re
from pathlib import Path

from .error_handling import InvalidInputError, ValidationError

# Characters allowed to survive in stored upload names
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")
MAX_UPLOAD_NAME = 100


def validate_image_dimensions(width: int, height: int, min_dimension: int = 10) -> None:
    """Reject source images smaller than ``min_dimension`` on either side.

    Raises:
        InvalidInputError: If the image is too small
    """
    if width < min_dimension or height < min_dimension:
        raise InvalidInputError(
            f"Image too small. Minimum size is {min_dimension}x{min_dimension} pixels, "
            f"got {width}x{height}",
            context={"width": width, "height": height},
        )


def _require_int(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{label} must be an integer, got {type(value).__name__}")
    return value


def validate_frame_count(frame_count: int) -> int:
    if _require_int(frame_count, "Frame count") < 1:
        raise InvalidInputError(f"Frame count must be at least 1, got {frame_count}")
    return frame_count


def validate_worker_count(workers: int) -> int:
    """Synthesis threads: at least one, at most four per CPU."""
    _require_int(workers, "Worker count")
    limit = (os.cpu_count() or 1) * 4
    if not 1 <= workers <= limit:
        raise InvalidInputError(f"Worker count must be between 1 and {limit}, got {workers}")
    return workers


def validate_output_path(path: str | Path, create_parent: bool = True) -> Path:
    """Check that a GIF can be written at ``path``.

    Raises:
        ValidationError: If the path is empty, a directory, escapes upward with
            ``..``, or its parent is missing or read-only
    """
    if not path or "\x00" in str(path):
        raise ValidationError(f"Invalid output path: {path!r}")

    target = Path(path)
    if ".." in target.parts:
        raise ValidationError(f"Output path may not contain '..': {target}")
    if target.is_dir():
        raise ValidationError(f"Output path is a directory: {target}")

    parent = target.parent
    if not parent.exists():
        if not create_parent:
            raise ValidationError(f"Output directory does not exist: {parent}")
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValidationError(f"Cannot create output directory {parent}", cause=e) from e

    if not os.access(parent, os.W_OK):
        raise ValidationError(f"Output directory is not writable: {parent}")

    return target


def sanitize_filename(filename: str | None, fallback: str = "upload") -> str:
    """Reduce a client-supplied file name to a safe single path component.

    Directory parts are dropped, anything outside letters, digits, ``._ -``
    becomes ``_``, leading dots are removed, and the stem is shortened so the
    result stays within ``MAX_UPLOAD_NAME`` characters.
    """
    name = re.split(r"[\\/]", filename or "")[-1]
    name = _UNSAFE_NAME_CHARS.sub("_", name).lstrip(". ").rstrip()
    if not name:
        return fallback

    if len(name) > MAX_UPLOAD_NAME:
        stem, ext = os.path.splitext(name)
        ext = ext[:10]
        name = stem[: MAX_UPLOAD_NAME - len(ext)] + ext
    return name

"""Error types and helpers shared by synthesis, encoding and the service.

Every failure BongoLab raises on purpose derives from ``BongoLabError`` and
carries the underlying exception (``cause``) plus a small ``context`` dict
that ends up in the log line. Callers pick the subclass they care about:

    BongoLabError
    ├── ValidationError
    │   └── InvalidInputError          image too small, bad frame count, bad params
    ├── ImageDecodeError               upload is not a readable raster
    ├── EncodeIOError                  GIF sink could not be written or finalized
    └── FrameDimensionMismatchError    frame size differs from the first frame
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Iterator, NoReturn

module_logger = logging.getLogger(__name__)


class BongoLabError(Exception):
    """Base exception class for all BongoLab errors."""

    def __init__(
        self, message: str, cause: Exception | None = None, context: dict | None = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self) -> str:
        message = super().__str__()
        return f"{message} (caused by: {self.cause})" if self.cause else message


class ValidationError(BongoLabError):
    """Raised when a path, name or parameter fails validation."""


class InvalidInputError(ValidationError):
    """Raised when a source image or parameter is outside the accepted range."""


class ImageDecodeError(BongoLabError):
    """Raised when input bytes cannot be decoded as a raster image."""


class EncodeIOError(BongoLabError):
    """Raised when the output sink cannot be written or finalized."""


class FrameDimensionMismatchError(BongoLabError):
    """Raised when a frame's size disagrees with the rest of the sequence."""


def format_context(context: dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in context.items())


def handle_error(
    error: Exception,
    operation: str,
    error_type: type[BongoLabError] = BongoLabError,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> NoReturn:
    """Log ``error`` and re-raise it as ``error_type``, chained to the original.

    The new error's message reads ``"Failed to <operation>: <error>"`` and its
    context records the original exception type.
    """
    details = dict(context or {})
    details["original_error_type"] = type(error).__name__

    (logger or module_logger).error(
        f"🚨 Failed to {operation}: {error} ({format_context(details)})"
    )
    raise error_type(f"Failed to {operation}: {error}", cause=error, context=details) from error


@contextmanager
def error_context(
    operation: str,
    error_type: type[BongoLabError] = BongoLabError,
    context: dict | None = None,
    logger: logging.Logger | None = None,
) -> Iterator[None]:
    """Convert foreign exceptions raised in the block into ``error_type``.

    Usage:
        with error_context("flush GIF sink", EncodeIOError):
            fp.flush()

    BongoLab errors pass through untouched.
    """
    try:
        yield
    except BongoLabError:
        raise
    except Exception as e:
        handle_error(e, operation, error_type, context, logger)


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def clean_error_message(message: str, max_length: int = 500) -> str:
    """Single-line, bounded version of ``message`` for HTTP bodies and CLI output."""
    text = _CONTROL_CHARS.sub("", str(message))
    text = " ".join(text.split())
    if len(text) > max_length:
        text = text[: max_length - 3] + "..."
    return text

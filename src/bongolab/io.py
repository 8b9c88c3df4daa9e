"""Filesystem helpers: logging setup, atomic GIF output, unique names."""

import logging
import os
import secrets
import tempfile
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from shutil import move

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_dir: Path | None = None, log_level: str = "INFO") -> logging.Logger:
    """Configure root logging for the CLI and the service.

    Logs always go to stderr; when ``log_dir`` is given they are also written
    to a timestamped ``bongolab_<YYYYmmdd_HHMMSS>.log`` file there.

    Returns:
        The ``bongolab`` package logger
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        handlers.append(logging.FileHandler(log_dir / f"bongolab_{stamp}.log"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    return logging.getLogger("bongolab")


@contextmanager
def atomic_write(target_path: Path, mode: str = "wb"):
    """Yield a temporary file that replaces ``target_path`` only on success.

    The temporary file lives next to the target, so the final move is a
    rename on the same filesystem. If the block raises, the temporary file is
    deleted and ``target_path`` keeps whatever it held before.

        with atomic_write(Path("out.gif")) as fp:
            fp.write(gif_bytes)
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode=mode,
        dir=target_path.parent,
        prefix=f".{target_path.name}.",
        suffix=".part",
        delete=False,
    ) as tmp:
        try:
            yield tmp
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            Path(tmp.name).unlink(missing_ok=True)
            raise

    try:
        move(tmp.name, target_path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def unique_output_name(prefix: str = "bongo-cat", suffix: str = ".gif") -> str:
    """``<prefix>-<epoch ms>-<8 hex chars><suffix>``; unique across concurrent requests."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}{suffix}"

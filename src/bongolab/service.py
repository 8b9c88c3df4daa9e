"""
BongoLab HTTP Service
=====================

FastAPI application that accepts photo uploads and returns drumming GIFs.

Endpoints:
    GET  /                         - Service information
    GET  /health                   - Liveness probe
    GET  /bongo-cat                - Banner
    GET  /bongo-cat/stats          - Processing counters and uptime
    POST /bongo-cat/process-photo  - Upload a photo (multipart field "photo")
    GET  /generated/<name>.gif     - Generated GIFs

Each request writes its upload and its GIF under unique names, so requests
never share files. The upload is deleted on every path; a GIF only becomes
visible under /generated once it has been completely written.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from bongolab import __version__
from bongolab.config import (
    DEFAULT_ANIMATION_CONFIG,
    DEFAULT_PATH_CONFIG,
    AnimationConfig,
    PathConfig,
    ServiceConfig,
)
from bongolab.error_handling import (
    BongoLabError,
    ImageDecodeError,
    ValidationError,
    clean_error_message,
)
from bongolab.io import setup_logging, unique_output_name
from bongolab.pipeline import BongoPipeline
from bongolab.stats import ProcessingStats
from bongolab.validation import sanitize_filename


logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 1024 * 1024


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": error, "message": clean_error_message(message)},
        status_code=status_code,
    )


def _store_upload(photo: UploadFile, destination: Path, max_bytes: int) -> int:
    """Copy the upload to ``destination``; returns bytes written or -1 if too large."""
    written = 0
    with open(destination, "wb") as out:
        while True:
            chunk = photo.file.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                return -1
            out.write(chunk)
    return written


def create_app(
    settings: Optional[ServiceConfig] = None,
    path_config: Optional[PathConfig] = None,
    animation_config: Optional[AnimationConfig] = None,
) -> FastAPI:
    """Build the service. Used directly by tests and as uvicorn's app factory."""
    settings = settings or ServiceConfig()
    path_config = path_config or DEFAULT_PATH_CONFIG
    base_animation = animation_config or DEFAULT_ANIMATION_CONFIG

    for directory in (path_config.UPLOAD_DIR, path_config.OUTPUT_DIR):
        directory.mkdir(parents=True, exist_ok=True)

    stats = ProcessingStats()
    default_pipeline = BongoPipeline(animation_config=base_animation)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(path_config.LOGS_DIR, settings.LOG_LEVEL)
        app.state.started_at = time.monotonic()
        logger.info(f"🐱 BongoLab service {__version__} starting")
        yield
        logger.info("Shutdown complete")

    app = FastAPI(
        title="BongoLab",
        description="Turns uploaded photos into drumming bongo cat GIFs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.stats = stats
    app.state.started_at = time.monotonic()

    app.mount(
        "/generated",
        StaticFiles(directory=path_config.OUTPUT_DIR, check_dir=False),
        name="generated",
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                {
                    "error": "Not Found",
                    "message": "The requested endpoint does not exist",
                    "timestamp": _now_iso(),
                },
                status_code=404,
            )
        return JSONResponse(
            {"error": str(exc.detail), "timestamp": _now_iso()},
            status_code=exc.status_code,
        )

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "message": "Welcome to the Bongo Cat Photo Processing App!",
            "version": __version__,
            "timestamp": _now_iso(),
            "endpoints": [
                "/bongo-cat",
                "/bongo-cat/stats",
                "/bongo-cat/process-photo",
            ],
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe: always 200 while the process is up."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.monotonic() - app.state.started_at, 1),
        })

    @app.get("/bongo-cat")
    async def bongo_cat() -> JSONResponse:
        return JSONResponse({
            "message": "🐱 BONGO CAT PHOTO PROCESSOR 🐱",
            "timestamp": _now_iso(),
            "description": "Upload images to turn them into animated Bongo Cat GIFs!",
        })

    @app.get("/bongo-cat/stats")
    async def bongo_cat_stats() -> JSONResponse:
        return JSONResponse({
            "bongoCat": stats.snapshot(),
            "server": {
                "uptime": round(time.monotonic() - app.state.started_at, 3),
                "timestamp": _now_iso(),
            },
        })

    @app.post("/bongo-cat/process-photo")
    def process_photo(
        photo: Optional[UploadFile] = File(None),
        frames: Optional[int] = Query(None, description="Frames per drumming cycle"),
        delay: Optional[int] = Query(None, description="Delay between frames in ms"),
        repeat: Optional[int] = Query(None, description="Loop count, 0 loops forever"),
        quality: Optional[int] = Query(None, description="Palette sampling step (1-30)"),
    ) -> JSONResponse:
        """Render an uploaded photo as a drumming GIF.

        Runs in the threadpool: decoding, synthesis and encoding are blocking.
        """
        if photo is None or not photo.filename:
            return _error(400, "No photo uploaded", "Send the image in the 'photo' form field")

        if not (photo.content_type or "").startswith("image/"):
            return _error(400, "Invalid file type", "Only image files are allowed!")

        overrides = {
            "FRAME_COUNT": frames,
            "DELAY_MS": delay,
            "REPEAT": repeat,
            "QUALITY": quality,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            try:
                request_config = AnimationConfig(**{**base_animation.__dict__, **overrides})
            except ValueError as e:
                return _error(422, "Invalid animation parameters", str(e))
            pipeline = BongoPipeline(animation_config=request_config)
        else:
            pipeline = default_pipeline

        upload_name = unique_output_name(prefix="upload", suffix="") + "-" + sanitize_filename(photo.filename)
        input_path = path_config.UPLOAD_DIR / upload_name
        gif_filename = unique_output_name()
        gif_path = path_config.OUTPUT_DIR / gif_filename

        try:
            size = _store_upload(photo, input_path, settings.MAX_UPLOAD_BYTES)
            if size < 0:
                return _error(
                    413,
                    "File too large",
                    f"Uploads are limited to {settings.MAX_UPLOAD_BYTES} bytes",
                )

            logger.info(
                f"Photo processing started (filename={upload_name}, "
                f"originalName={photo.filename}, size={size})"
            )

            pipeline.process(input_path, gif_path)
            message = stats.record_processed()
            logger.info(f"{message} (gifUrl=/generated/{gif_filename})")

        except (ValidationError, ImageDecodeError) as e:
            gif_path.unlink(missing_ok=True)
            return _error(422, "Failed to process photo", str(e))
        except (BongoLabError, OSError) as e:
            logger.error(f"Photo processing error: {e}")
            gif_path.unlink(missing_ok=True)
            return _error(500, "Failed to process photo", str(e))
        finally:
            input_path.unlink(missing_ok=True)

        return JSONResponse({
            "success": True,
            "gifUrl": f"/generated/{gif_filename}",
            "message": "BONGO CAT ARMS ADDED SUCCESSFULLY!",
        })

    return app

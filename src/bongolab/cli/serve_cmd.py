"""Serve command: run the upload service with uvicorn."""

import click

from ..config import ServiceConfig


@click.command()
@click.option("--host", default=None, help="Bind address (default: BONGOLAB_HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port (default: BONGOLAB_PORT, PORT or 3000)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the bongo cat HTTP service."""
    import uvicorn

    try:
        settings = ServiceConfig()
    except ValueError as e:
        click.echo(f"❌ Invalid service configuration: {e}", err=True)
        raise SystemExit(2) from e

    host = host or settings.HOST
    port = port or settings.PORT

    click.echo(f"🐱 Bongo cat service listening on http://{host}:{port}")
    uvicorn.run(
        "bongolab.service:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )

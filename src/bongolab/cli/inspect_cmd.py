"""Inspect command: show how a GIF will play back."""

import json
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..meta import extract_animation_metadata
from .utils import handle_generic_error


@click.command()
@click.argument("gif_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output metadata as JSON")
def inspect(gif_path: Path, output_json: bool) -> None:
    """Print frame count, timing and loop settings of GIF_PATH."""
    try:
        metadata = extract_animation_metadata(gif_path)
    except (OSError, ValueError) as e:
        handle_generic_error("Inspect", e)
        return

    if output_json:
        click.echo(json.dumps(asdict(metadata), indent=2))
        return

    loop = metadata.loop
    if loop is None:
        loop_text = "play once"
    elif loop == 0:
        loop_text = "forever"
    else:
        loop_text = f"{loop} time(s)"

    table = Table(title=f"🎞️ {metadata.filename}", show_header=True, header_style="bold magenta")
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Size", f"{metadata.width}x{metadata.height}")
    table.add_row("Frames", str(metadata.frames))
    table.add_row("Delays (ms)", ", ".join(str(d) for d in metadata.durations_ms))
    table.add_row("FPS", f"{metadata.fps:.2f}")
    table.add_row("Loop", loop_text)
    table.add_row("File size", f"{metadata.kilobytes:.1f} KB")
    table.add_row("SHA256", metadata.gif_sha[:16] + "…")

    Console().print(table)

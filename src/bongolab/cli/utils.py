"""Shared output helpers for CLI commands."""

import sys
from pathlib import Path

import click

from ..error_handling import clean_error_message

SUMMARY_FIELDS = (
    ("frame_count", "Frames"),
    ("delay_ms", "Delay (ms)"),
    ("repeat", "Repeat"),
    ("bytes_written", "Size (bytes)"),
    ("render_ms", "Render time (ms)"),
)


def handle_generic_error(command_name: str, error: Exception) -> None:
    """Print a one-line failure message and exit with status 1."""
    click.echo(f"❌ {command_name} failed: {clean_error_message(str(error))}", err=True)
    sys.exit(1)


def handle_keyboard_interrupt(command_name: str) -> None:
    click.echo(f"\n⏹️  {command_name} interrupted by user", err=True)
    sys.exit(1)


def default_output_path(input_path: Path) -> Path:
    """``photo.jpg`` renders to ``photo-bongo.gif`` next to the input."""
    return input_path.with_name(f"{input_path.stem}-bongo.gif")


def display_render_plan(input_path: Path, output_path: Path, settings: str) -> None:
    click.echo("🥁 BongoLab Render")
    click.echo(f"🖼️ Input image: {input_path}")
    click.echo(f"🎞️ Output GIF: {output_path}")
    click.echo(f"⚙️  {settings}")


def display_results_summary(result: dict) -> None:
    """Print the fields of a pipeline result that matter to a user."""
    click.echo("\n📊 Results:")
    click.echo(f"   • Dimensions: {result['width']}x{result['height']}")
    for key, label in SUMMARY_FIELDS:
        if key in result:
            click.echo(f"   • {label}: {result[key]}")
    click.echo(f"   • GIF saved to: {result['output_path']}")

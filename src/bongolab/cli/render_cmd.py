"""Render command: turn one still image into a drumming GIF."""

from pathlib import Path

import click

from ..config import DEFAULT_ANIMATION_CONFIG, QUANTIZERS, AnimationConfig
from ..error_handling import BongoLabError, InvalidInputError
from ..validation import validate_output_path, validate_worker_count
from .utils import (
    default_output_path,
    display_render_plan,
    display_results_summary,
    handle_generic_error,
    handle_keyboard_interrupt,
)


@click.command()
@click.argument(
    "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output GIF path (default: <input>-bongo.gif next to the input)",
)
@click.option(
    "--frames",
    type=int,
    default=DEFAULT_ANIMATION_CONFIG.FRAME_COUNT,
    show_default=True,
    help="Frames per drumming cycle",
)
@click.option(
    "--delay",
    type=int,
    default=DEFAULT_ANIMATION_CONFIG.DELAY_MS,
    show_default=True,
    help="Delay between frames in milliseconds",
)
@click.option(
    "--repeat",
    type=int,
    default=DEFAULT_ANIMATION_CONFIG.REPEAT,
    show_default=True,
    help="Loop count (0 = loop forever)",
)
@click.option(
    "--quality",
    type=click.IntRange(1, 30),
    default=DEFAULT_ANIMATION_CONFIG.QUALITY,
    show_default=True,
    help="Palette sampling step; lower is more faithful and slower",
)
@click.option(
    "--quantizer",
    type=click.Choice(QUANTIZERS),
    default=DEFAULT_ANIMATION_CONFIG.QUANTIZER,
    show_default=True,
    help="Palette-reduction algorithm",
)
@click.option(
    "--workers",
    "-j",
    type=int,
    default=1,
    show_default=True,
    help="Threads used to synthesize frames",
)
def render(
    input_path: Path,
    output: Path | None,
    frames: int,
    delay: int,
    repeat: int,
    quality: int,
    quantizer: str,
    workers: int,
) -> None:
    """Add drumming bongo cat arms to INPUT_PATH and save an animated GIF.

    INPUT_PATH: Still image in any format Pillow can read
    """
    try:
        from ..pipeline import BongoPipeline

        try:
            validate_worker_count(workers)
            config = AnimationConfig(
                FRAME_COUNT=frames,
                DELAY_MS=delay,
                REPEAT=repeat,
                QUALITY=quality,
                QUANTIZER=quantizer,
                SYNTHESIS_WORKERS=workers,
            )
        except (ValueError, InvalidInputError) as e:
            click.echo(f"❌ Invalid animation settings: {e}", err=True)
            raise SystemExit(2) from e

        output_path = validate_output_path(output or default_output_path(input_path))

        display_render_plan(
            input_path,
            output_path,
            f"{frames} frames @ {delay}ms, quantizer={quantizer}, quality={quality}",
        )

        result = BongoPipeline(animation_config=config).process(input_path, output_path)

        display_results_summary(result.to_dict())
        click.echo("✅ Bongo cat arms added successfully!")

    except BongoLabError as e:
        handle_generic_error("Render", e)
    except KeyboardInterrupt:
        handle_keyboard_interrupt("Render")

"""
xbm2nokia - Display Asset Converter Command-Line Interface
==========================================================

This module implements the command-line interface for the asset
converter. It turns XBM files (or any image Pillow can read) into C
definitions for the Nokia LCD driver: full frames in controller page
order, and animations encoded as a keyframe plus frame diffs.

Usage Examples
--------------
Convert one image to a keyframe:
    $ xbm2nokia keyframe logo.xbm -o logo.c --header logo.h

Encode an animation (frames in playback order):
    $ xbm2nokia animation frame1.xbm frame2.xbm frame3.xbm -o nokia_gfx.c

Emit a set of still images:
    $ xbm2nokia images -n icons ok.png cancel.png -o icons.c

Show diff statistics and the suggested playback mode:
    $ xbm2nokia info frame*.xbm

Exit Codes
----------
0 - Success
1 - Conversion or emission error
2 - Invalid arguments or missing files
3 - Internal error
"""

import logging
from pathlib import Path
from typing import Optional

import click

from nokia_gfx import __version__
from nokia_gfx.animation import DEFAULT_ANIMATION_NAME, DEFAULT_DELAY_MS, build_animation
from nokia_gfx.bitmap import SourceBitmap
from nokia_gfx.cli.errors import handle_cli_exception
from nokia_gfx.diff import diff
from nokia_gfx.emit import (
    format_animation_source,
    format_frame_transition,
    format_gfx_header,
    format_image_set,
    format_keyframe,
)
from nokia_gfx.errors import DimensionMismatchError
from nokia_gfx.images import DEFAULT_THRESHOLD, load_bitmap, render_bitmap_image
from nokia_gfx.layout import convert, page_count
from nokia_gfx.playback import TARGETED_BREAK_EVEN, suggest_mode
from nokia_gfx.xbm import format_xbm

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the image loading options and verbosity.
    """

    def __init__(self) -> None:
        self.threshold: int = DEFAULT_THRESHOLD
        self.invert: bool = False
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s",
        )

    def load(self, path: Path) -> SourceBitmap:
        bitmap = load_bitmap(path, threshold=self.threshold, invert=self.invert)
        logger.info("Loaded %s: %dx%d", path, bitmap.width, bitmap.height)
        return bitmap


pass_context = click.make_pass_decorator(Context, ensure=True)


def write_output(path: Optional[Path], text: str) -> None:
    """Write generated text to a file, or to stdout if no path is given."""
    if path is None:
        click.echo(text, nl=False)
    else:
        path.write_text(text)
        logger.info("Wrote %s", path)


def symbol_name(path: Path) -> str:
    """Derive a C symbol prefix from a file name."""
    stem = "".join(c if c.isalnum() else "_" for c in path.stem)
    return stem if stem and not stem[0].isdigit() else f"img_{stem}"


INPUT_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
OUTPUT_FILE = click.Path(dir_okay=False, path_type=Path)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-t", "--threshold",
    type=click.IntRange(0, 255),
    default=DEFAULT_THRESHOLD,
    help=f"Gray level below which image pixels are set (default: {DEFAULT_THRESHOLD})",
)
@click.option(
    "--invert",
    is_flag=True,
    help="Set light pixels instead of dark ones",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
@click.version_option(version=__version__, prog_name="xbm2nokia")
@pass_context
def main(ctx: Context, threshold: int, invert: bool, verbose: bool) -> None:
    """
    Convert images into C assets for Nokia 3310/5110 LCDs.

    Input files may be XBM or any image format Pillow reads (PNG, BMP,
    GIF, ...). Frames are stored in the controller's page order: 8
    vertical pixels per byte, pages of one byte per column.
    """
    ctx.threshold = threshold
    ctx.invert = invert
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Keyframe Command
# =============================================================================

@main.command()
@click.argument("input_file", type=INPUT_FILE)
@click.option("-n", "--name", help="C symbol name (default: from file name)")
@click.option("-o", "--output", type=OUTPUT_FILE, help="Output C file (default: stdout)")
@click.option("--header", type=OUTPUT_FILE, help="Write the extern declaration here")
@pass_context
def keyframe(
    ctx: Context,
    input_file: Path,
    name: Optional[str],
    output: Optional[Path],
    header: Optional[Path],
) -> None:
    """
    Convert one image to a full frame byte array.

    \b
    Example:
        xbm2nokia keyframe logo.xbm -n logo -o logo.c --header logo.h
    """
    try:
        buffer = convert(ctx.load(input_file))
        fragment = format_keyframe(name or symbol_name(input_file), buffer)
        write_output(output, fragment.source)
        if header is not None:
            write_output(header, fragment.header)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Conversion")


# =============================================================================
# Transition Command
# =============================================================================

@main.command()
@click.argument("from_file", type=INPUT_FILE)
@click.argument("to_file", type=INPUT_FILE)
@click.option("-n", "--name", required=True, help="C symbol name of the transition")
@click.option(
    "-d", "--delay",
    type=click.IntRange(0, 0xFFFF),
    default=DEFAULT_DELAY_MS,
    show_default=True,
    help="Delay before the transition in milliseconds",
)
@click.option("-o", "--output", type=OUTPUT_FILE, help="Output C file (default: stdout)")
@pass_context
def transition(
    ctx: Context,
    from_file: Path,
    to_file: Path,
    name: str,
    delay: int,
    output: Optional[Path],
) -> None:
    """
    Emit the diff between two frames of equal size.

    \b
    Example:
        xbm2nokia transition f1.xbm f2.xbm -n walk_trans_x1_x2
    """
    try:
        source = ctx.load(from_file)
        target = ctx.load(to_file)
        if (source.width, source.height) != (target.width, target.height):
            raise DimensionMismatchError(
                source.width * source.height, target.width * target.height,
                message=(
                    f"{to_file} is {target.width}x{target.height}, "
                    f"{from_file} is {source.width}x{source.height}"
                ),
            )
        frame_diff = diff(convert(source), convert(target), delay_ms=delay)
        write_output(output, format_frame_transition(name, frame_diff).source)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Conversion")


# =============================================================================
# Animation Command
# =============================================================================

@main.command()
@click.argument("frames", nargs=-1, required=True, type=INPUT_FILE)
@click.option(
    "-n", "--name",
    default=DEFAULT_ANIMATION_NAME,
    show_default=True,
    help="Symbol prefix for generated code",
)
@click.option(
    "-d", "--delay",
    type=click.IntRange(0, 0xFFFF),
    default=DEFAULT_DELAY_MS,
    show_default=True,
    help="Delay between frames in milliseconds",
)
@click.option(
    "--loop/--no-loop",
    default=True,
    help="Add the transition from the last frame back to the first (default: loop)",
)
@click.option("-o", "--output", type=OUTPUT_FILE, help="Output C file (default: stdout)")
@click.option("--header", type=OUTPUT_FILE, help="Output header file")
@pass_context
def animation(
    ctx: Context,
    frames: tuple[Path, ...],
    name: str,
    delay: int,
    loop: bool,
    output: Optional[Path],
    header: Optional[Path],
) -> None:
    """
    Encode frames as a keyframe plus frame diffs.

    FRAMES are the animation frames in playback order, all the same size.

    \b
    Example:
        xbm2nokia animation x1.xbm x2.xbm x3.xbm -o nokia_gfx.c --header nokia_gfx.h
    """
    if len(frames) < 2:
        raise click.BadParameter("an animation needs at least two frames", param_hint="FRAMES")

    try:
        bitmaps = [ctx.load(path) for path in frames]
        anim = build_animation(bitmaps, name=name, delay_ms=delay, loop=loop)
        header_name = header.name if header is not None else ""
        write_output(output, format_animation_source(anim, header_name=header_name))
        if header is not None:
            write_output(header, format_gfx_header(anim))

        if ctx.verbose:
            click.echo(
                f"{anim.frame_count} frames, {len(anim.transitions)} transitions, "
                f"{anim.total_diffs} diff entries",
                err=True,
            )
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Conversion")


# =============================================================================
# Images Command
# =============================================================================

@main.command()
@click.argument("images", nargs=-1, required=True, type=INPUT_FILE)
@click.option(
    "-n", "--name",
    default="nokia_gfx",
    show_default=True,
    help="Symbol prefix for generated code",
)
@click.option("-o", "--output", type=OUTPUT_FILE, help="Output C file (default: stdout)")
@click.option("--header", type=OUTPUT_FILE, help="Output header file")
@pass_context
def images(
    ctx: Context,
    images: tuple[Path, ...],
    name: str,
    output: Optional[Path],
    header: Optional[Path],
) -> None:
    """
    Emit still images, each as a full frame.

    Use this for image sets the driver shows with full rewrites
    instead of diff-encoded animation.
    """
    try:
        buffers = [convert(ctx.load(path)) for path in images]
        fragment = format_image_set(name, buffers)
        write_output(output, fragment.source)
        if header is not None:
            write_output(header, fragment.header)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Conversion")


# =============================================================================
# Info Command
# =============================================================================

@main.command()
@click.argument("frames", nargs=-1, required=True, type=INPUT_FILE)
@click.option(
    "--loop/--no-loop",
    default=True,
    help="Count the transition from the last frame back to the first",
)
@pass_context
def info(ctx: Context, frames: tuple[Path, ...], loop: bool) -> None:
    """
    Show frame geometry and diff statistics.

    For two or more frames, prints the number of changed bytes of every
    transition and the playback mode that suits the animation.
    """
    try:
        bitmaps = [ctx.load(path) for path in frames]
        first = bitmaps[0]
        pages = page_count(first.height)

        click.echo(f"Size:        {first.width}x{first.height} pixels")
        click.echo(f"Pages:       {pages}")
        click.echo(f"Frame bytes: {first.width * pages}")

        if len(bitmaps) < 2:
            return

        anim = build_animation(bitmaps, loop=loop)
        click.echo(f"Frames:      {anim.frame_count}")
        click.echo("")
        click.echo("Transitions:")
        for t in anim.transitions:
            click.echo(f"  x{t.source} -> x{t.target}: {len(t.diff)} bytes")
        click.echo("")
        click.echo(f"Total diffs: {anim.total_diffs}")

        mode = suggest_mode(t.diff for t in anim.transitions)
        click.echo(
            f"Suggested mode: {mode.value} "
            f"(break-even {TARGETED_BREAK_EVEN} bytes per frame)"
        )
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Preview Command
# =============================================================================

@main.command()
@click.argument("input_file", type=INPUT_FILE)
@click.option("-o", "--output", type=OUTPUT_FILE, help="Write a PNG preview here")
@click.option(
    "-s", "--scale",
    type=click.IntRange(1, 32),
    default=4,
    show_default=True,
    help="Pixel scale of the PNG preview",
)
@pass_context
def preview(ctx: Context, input_file: Path, output: Optional[Path], scale: int) -> None:
    """
    Show how an image looks after thresholding.

    Without -o the bitmap is printed as text, '#' for set pixels.
    """
    try:
        bitmap = ctx.load(input_file)
        if output is None:
            click.echo("\n".join(bitmap.to_rows()))
        else:
            output.write_bytes(render_bitmap_image(bitmap, scale=scale))
            click.echo(f"Wrote {output} ({bitmap.width * scale}x{bitmap.height * scale})")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# XBM Command
# =============================================================================

@main.command()
@click.argument("input_file", type=INPUT_FILE)
@click.option("-n", "--name", help="XBM symbol prefix (default: from file name)")
@click.option("-o", "--output", type=OUTPUT_FILE, help="Output XBM file (default: stdout)")
@pass_context
def xbm(ctx: Context, input_file: Path, name: Optional[str], output: Optional[Path]) -> None:
    """
    Convert an image to XBM source.

    \b
    Example:
        xbm2nokia -t 100 xbm photo.png -o photo.xbm
    """
    try:
        bitmap = ctx.load(input_file)
        write_output(output, format_xbm(name or symbol_name(input_file), bitmap))
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Conversion")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
ImageStudio Command Line Interface

Main CLI entry point for the ImageStudio composition pipeline.
Rotates, mirrors, filters and reframes images into fixed-width outputs.
"""

import sys
import json
import click
import logging
from pathlib import Path
from typing import Optional

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from imagestudio import __version__
from imagestudio.config import load_config, get_config_value
from imagestudio.io import load_source, save_output
from imagestudio.processing import (
    AspectRatio,
    AspectRatioKind,
    CompositionError,
    Compositor,
    FilterSettings,
    MimeType,
    ResizePolicy,
    TransformParameters,
    build_jobs,
    compose_many,
    find_images,
)
from imagestudio.processing.batch import DEFAULT_EXTENSIONS
from imagestudio.processing.geometry import (
    ANALYZER_ASPECT_RATIOS,
    GENERATOR_ASPECT_RATIOS,
    AspectRatioPresets,
)
from imagestudio.utils.logging import setup_console_logging

logger = logging.getLogger(__name__)

_OUTPUT_SUFFIXES = {
    MimeType.JPEG: ('.jpg', '.jpeg'),
    MimeType.PNG: ('.png',),
}


def transform_options(func):
    """Options shared by the compose and batch commands."""
    options = [
        click.option('--rotate', '-r', type=float, default=0.0, show_default=True,
                     help='Rotation in degrees, clockwise'),
        click.option('--mirror', '-m', is_flag=True, help='Mirror horizontally before rotating'),
        click.option('--ratio', 'ratio', default='Auto', show_default=True,
                     help='Target aspect ratio: Auto or W:H'),
        click.option('--resize', type=click.Choice([p.value for p in ResizePolicy]),
                     default=ResizePolicy.CROP.value, show_default=True,
                     help='Fit the rotated image by cropping or stretching'),
        click.option('--brightness', type=float, default=100.0, show_default=True, help='Brightness (%)'),
        click.option('--contrast', type=float, default=100.0, show_default=True, help='Contrast (%)'),
        click.option('--saturate', type=float, default=100.0, show_default=True, help='Saturation (%)'),
        click.option('--grayscale', type=float, default=0.0, show_default=True, help='Grayscale (0-100%)'),
        click.option('--sepia', type=float, default=0.0, show_default=True, help='Sepia (0-100%)'),
        click.option('--invert', type=float, default=0.0, show_default=True, help='Invert (0-100%)'),
        click.option('--hue-rotate', type=float, default=0.0, show_default=True, help='Hue rotation (degrees)'),
        click.option('--width', '-w', type=click.IntRange(min=1),
                     help='Output width in pixels (default from config)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_transform(options: dict) -> TransformParameters:
    filters = FilterSettings.from_dict(options)
    return TransformParameters(
        rotation_degrees=options['rotate'],
        mirrored=options['mirror'],
        filters=filters,
    )


def _resolve_ratio(config: dict, text: str) -> AspectRatio:
    """Preset ratios resolve to their preset kind; any other W:H is user-defined."""
    presets = AspectRatioPresets(custom=get_config_value(config, 'aspect_ratios.custom', []))
    if text.strip() in presets:
        return presets.resolve(text)
    return AspectRatio.parse(text, AspectRatioKind.USER_DEFINED)


def _build_compositor(config: dict, width: Optional[int]) -> Compositor:
    compositor = Compositor.from_config(config)
    if width:
        compositor = Compositor(
            output_width=width,
            interpolation=compositor.interpolation,
            jpeg_quality=compositor.jpeg_quality,
            max_surface_pixels=compositor.max_surface_pixels,
        )
    return compositor


def _output_path(output: str, stem: str, mime_type: MimeType) -> Path:
    """
    Destination for an encoded image

    A directory gets "<stem>.<ext>"; a file path keeps its name but its
    suffix is corrected when it does not match the encoding.
    """
    path = Path(output)
    suffixes = _OUTPUT_SUFFIXES[mime_type]
    if path.is_dir():
        return path / f"{stem}{mime_type.extension}"
    if path.suffix.lower() not in suffixes:
        return path.with_suffix(mime_type.extension)
    return path


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    ImageStudio - Image composition pipeline

    Rotate, mirror, filter and reframe images into a fixed-width output that
    matches a chosen aspect ratio, ready to upload or download.
    """

    # Ensure context object exists
    if ctx.obj is None:
        ctx.obj = {}

    # Configure logging level; flags win over the config file
    level = None
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    setup_console_logging(level=level or 'INFO')

    # Load configuration
    ctx.obj['config'] = load_config(config)
    config_data = ctx.obj['config']

    setup_console_logging(
        level=level or get_config_value(config_data, 'logging.level', 'INFO'),
        color=get_config_value(config_data, 'logging.color', True),
        fmt=get_config_value(config_data, 'logging.format',
                             '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )

    # Store CLI options in context
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(),
              help='Output file or directory')
@click.option('--data-url', is_flag=True, help='Print the result as a data: URL instead of writing a file')
@transform_options
@click.pass_context
def compose(ctx, input_file: str, output: Optional[str], data_url: bool, **options):
    """
    Compose a single image.

    The image is filtered, mirrored, rotated, then cropped or stretched to
    the target aspect ratio at a fixed output width. JPEG sources produce
    JPEG output; every other type produces PNG.

    INPUT_FILE: Path to the source image
    """
    config = ctx.obj.get('config', {})
    verbose = ctx.obj.get('verbose', False)
    quiet = ctx.obj.get('quiet', False)

    if not output and not data_url:
        raise click.UsageError("Provide --output or --data-url")

    try:
        transform = _build_transform(options)
        aspect = _resolve_ratio(config, options['ratio'])
        compositor = _build_compositor(config, options['width'])

        source = load_source(input_file)
        result = compositor.compose(source, transform, aspect, options['resize'])

        if data_url:
            click.echo(result.to_data_url())
        if output:
            destination = save_output(result, _output_path(output, Path(input_file).stem, result.mime_type))
            if not quiet:
                click.echo(f"✅ Saved {result.width}x{result.height} ({result.aspect_ratio}) to: {destination}")
                if verbose:
                    click.echo(f"  filter: {transform.filters.to_css()}")
                    click.echo(f"  transform: {transform.to_css_transform()}")

    except (CompositionError, ValueError) as e:
        click.echo(f"❌ Error composing image: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--format', 'output_format', type=click.Choice(['summary', 'json']), default='summary',
              help='Output format')
@click.pass_context
def info(ctx, input_file: str, output_format: str):
    """
    Show dimensions, type and aspect ratio of an image.

    INPUT_FILE: Path to the image
    """
    try:
        source = load_source(input_file)
        properties = Compositor.from_config(ctx.obj.get('config', {})).describe(source)
    except CompositionError as e:
        click.echo(f"❌ Error reading image: {e}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(properties.to_dict(), indent=2))
        return

    click.echo(f"📷 {Path(input_file).name}")
    click.echo(f"  Dimensions: {properties.width} x {properties.height}")
    click.echo(f"  Type: {properties.mime_type}")
    if properties.size_bytes is not None:
        click.echo(f"  Size: {properties.size_bytes / 1024:.2f} KB")
    click.echo(f"  Aspect Ratio: {properties.simplified_ratio}")


@main.command()
@click.argument('directory', type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option('--output-dir', '-o', required=True, type=click.Path(file_okay=False, dir_okay=True),
              help='Directory for composed images')
@click.option('--workers', type=click.IntRange(min=1), help='Number of worker threads (default from config)')
@transform_options
@click.pass_context
def batch(ctx, directory: str, output_dir: str, workers: Optional[int], **options):
    """
    Compose every image in a directory with the same settings.

    Failures are reported per file; the remaining images are still composed.

    DIRECTORY: Path to directory containing source images
    """
    config = ctx.obj.get('config', {})
    verbose = ctx.obj.get('verbose', False)
    quiet = ctx.obj.get('quiet', False)

    try:
        transform = _build_transform(options)
        aspect = _resolve_ratio(config, options['ratio'])
        compositor = _build_compositor(config, options['width'])
    except (CompositionError, ValueError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    image_files = find_images(directory, get_config_value(config, 'batch.extensions', DEFAULT_EXTENSIONS))
    if not image_files:
        click.echo("❌ No images found in directory", err=True)
        return

    if not quiet:
        click.echo(f"📸 Found {len(image_files)} images")

    jobs = build_jobs(image_files, output_dir, transform, aspect, options['resize'])
    max_workers = workers or int(get_config_value(config, 'batch.max_workers', 4))
    results, stats = compose_many(jobs, compositor, max_workers=max_workers, show_progress=not quiet)

    summary = stats.get_summary()
    if not quiet:
        click.echo(f"\n✅ Composed {summary['succeeded_files']}/{summary['total_files']} images "
                   f"in {summary['elapsed_time']:.1f}s")
        if verbose:
            for result in results:
                if result.succeeded:
                    click.echo(f"  {result.job.input_path.name} -> {result.output_path.name} "
                               f"({result.size[0]}x{result.size[1]})")

    failed = [result for result in results if not result.succeeded]
    for result in failed:
        click.echo(f"  ❌ {result.job.input_path.name}: {result.error}", err=True)
    if failed:
        sys.exit(1)


@main.command()
@click.option('--add', 'additions', multiple=True, metavar='W:H',
              help='Custom ratio to validate and include (repeatable)')
@click.option('--generator', is_flag=True, help='List the ratios available for image generation')
@click.pass_context
def ratios(ctx, additions: tuple, generator: bool):
    """
    List the selectable aspect ratios.

    Custom ratios come from the config file and --add; each is checked for
    W:H syntax and duplicates.
    """
    config = ctx.obj.get('config', {})
    builtin = GENERATOR_ASPECT_RATIOS if generator else ANALYZER_ASPECT_RATIOS
    presets = AspectRatioPresets(builtin, get_config_value(config, 'aspect_ratios.custom', []))

    rejected = 0
    for text in additions:
        try:
            presets.add(text)
        except CompositionError as e:
            click.echo(f"❌ {e}", err=True)
            rejected += 1

    for ratio in presets.all():
        marker = " (custom)" if ratio in presets.custom else ""
        click.echo(f"{ratio}{marker}")

    if rejected:
        sys.exit(1)


@main.command()
def version():
    """Show ImageStudio version information."""
    click.echo(f"ImageStudio v{__version__}")
    click.echo("Image composition pipeline")


if __name__ == '__main__':
    main()

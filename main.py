"""CLI for content-aware image cropping.

Commands:
  - crop: Resize and crop images to a target size, keeping the busiest region
  - plan: Print the crop plan for a single image as JSON
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import click
from config import CONFIG
from src.smartcrop.crop_auto import build_planner, process_auto_crop_batch
from src.smartcrop.errors import SmartCropError
from src.smartcrop.io_utils import load_image_with_exif
from src.smartcrop.timing import Stopwatch


def _resolve_size(
    shape: Optional[str], width: Optional[int], height: Optional[int]
) -> tuple[int, int]:
    if shape:
        if shape not in CONFIG.shape_presets:
            choices = ", ".join(CONFIG.shape_presets.keys())
            raise click.BadParameter(f"Unknown shape '{shape}'. Choose from: {choices}")
        return CONFIG.shape_presets[shape]
    if width is None or height is None:
        raise click.UsageError("Pass --shape or both --width and --height.")
    if width <= 0 or height <= 0:
        raise click.BadParameter("--width and --height must be positive.")
    return width, height


@click.group()
@click.option("--verbose/--quiet", default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Content-aware crop toolkit."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="crop")
@click.option(
    "--input-path",
    type=click.Path(path_type=Path, exists=True),
    default=CONFIG.paths.input_path,
    show_default=True,
    help="Image file or directory",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path),
    default=CONFIG.paths.output_dir,
    show_default=True,
    help="Output directory",
)
@click.option("--shape", type=str, default=None, help="Preset label, e.g. square, og")
@click.option("--width", type=int, default=None)
@click.option("--height", type=int, default=None)
@click.option("--faces/--no-faces", default=False, help="Keep detected faces in view")
@click.option("--debug/--no-debug", default=CONFIG.behavior.debug)
@click.option("--dry-run/--no-dry-run", default=CONFIG.behavior.dry_run)
@click.option("--overwrite/--no-overwrite", default=CONFIG.behavior.overwrite)
@click.option("--keep-metadata/--no-keep-metadata", default=CONFIG.behavior.keep_metadata)
@click.option(
    "--resample",
    type=click.Choice(
        ["nearest", "bilinear", "bicubic", "lanczos"], case_sensitive=False
    ),
    default=CONFIG.behavior.resample,
)
def cmd_crop(
    input_path: Path,
    output_dir: Path,
    shape: Optional[str],
    width: Optional[int],
    height: Optional[int],
    faces: bool,
    debug: bool,
    dry_run: bool,
    overwrite: bool,
    keep_metadata: bool,
    resample: str,
) -> None:
    """Content-aware resize and crop to a target size."""

    target_size = _resolve_size(shape, width, height)
    try:
        count = process_auto_crop_batch(
            input_path=input_path,
            output_dir=output_dir,
            target_size=target_size,
            detect_faces=faces,
            overwrite=overwrite,
            keep_metadata=keep_metadata,
            resample=resample,
            debug=debug,
            dry_run=dry_run,
        )
    except SmartCropError as err:
        raise click.ClickException(str(err)) from err
    click.echo(f"Processed {count} image(s).")


@cli.command(name="plan")
@click.option(
    "--image",
    "image_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
)
@click.option("--shape", type=str, default=None)
@click.option("--width", type=int, default=None)
@click.option("--height", type=int, default=None)
@click.option("--faces/--no-faces", default=False)
def cmd_plan(
    image_path: Path,
    shape: Optional[str],
    width: Optional[int],
    height: Optional[int],
    faces: bool,
) -> None:
    """Print the crop plan for one image."""

    target_w, target_h = _resolve_size(shape, width, height)
    planner = build_planner(detect_faces=faces, stopwatch=Stopwatch())
    try:
        image, _ = load_image_with_exif(image_path)
        with image:
            plan = planner.plan_crop(image, target_w, target_h)
    except SmartCropError as err:
        raise click.ClickException(str(err)) from err
    click.echo(json.dumps(plan.as_dict()))


if __name__ == "__main__":
    cli()

"""Automated content-aware cropping workflows.

Each image is resized so that it covers the target size, then cropped at the
offset chosen by ``CropPlanner``. With face detection enabled, detected faces
become safe zones that the crop keeps in view.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from config import CONFIG
from .io_utils import iter_image_paths, load_image_with_exif, save_image
from .planner import CropPlan, CropPlanner, SalientRegionProvider
from .timing import Stopwatch

logger = logging.getLogger(__name__)


def build_planner(
    detect_faces: bool = False,
    debug: bool = False,
    resample: str = CONFIG.behavior.resample,
    stopwatch: Optional[Stopwatch] = None,
) -> CropPlanner:
    """Create a planner with the requested salient-region provider."""

    provider: Optional[SalientRegionProvider] = None
    if detect_faces:
        from .detector import DetectorBacked

        provider = DetectorBacked(CONFIG.detection)
    return CropPlanner(
        provider=provider,
        tuning=CONFIG.tuning,
        stopwatch=stopwatch,
        debug=debug,
        resample=resample,
    )


def auto_crop_image(
    image: Image.Image,
    target_size: Tuple[int, int],
    planner: Optional[CropPlanner] = None,
) -> Image.Image:
    """Resize and crop to exactly ``target_size`` keeping the busiest region.

    Parameters
    ----------
    image
        Source image.
    target_size
        Target (width, height) for the output.
    planner
        Planner to use; a plain entropy planner when omitted.

    Returns
    -------
    Image.Image
        Cropped image of ``target_size``.
    """

    planner = planner or CropPlanner()
    return planner.crop(image, target_size[0], target_size[1])


def process_auto_crop_batch(
    input_path: Path,
    output_dir: Path,
    target_size: Tuple[int, int],
    detect_faces: bool = False,
    overwrite: bool = False,
    keep_metadata: bool = True,
    resample: str = CONFIG.behavior.resample,
    debug: bool = False,
    dry_run: bool = False,
) -> int:
    """Crop every image under ``input_path`` into ``output_dir``.

    Parameters
    ----------
    input_path
        Path to a single image or a directory.
    output_dir
        Destination directory for processed images.
    target_size
        Output (width, height).
    detect_faces
        Use the Haar-cascade detector to produce safe zones.
    overwrite
        Whether to overwrite existing files.
    keep_metadata
        Preserve EXIF metadata when possible.
    resample
        Resampling method name.
    debug
        Outline safe zones on the output.
    dry_run
        Plan and log crops without writing anything.

    Returns
    -------
    int
        Number of images processed.
    """

    out_dir = Path(output_dir)
    if not dry_run:
        out_dir.mkdir(parents=True, exist_ok=True)

    planner = build_planner(detect_faces, debug, resample, Stopwatch())
    width, height = target_size
    processed = 0

    for src in iter_image_paths(Path(input_path)):
        dest = out_dir / src.name
        if dest.exists() and not overwrite:
            logger.info("Skipping %s, %s exists", src.name, dest)
            continue
        image, exif = load_image_with_exif(src)
        try:
            if dry_run:
                plan: CropPlan = planner.plan_crop(image, width, height)
                logger.info("%s: %s", src.name, plan.as_dict())
            else:
                result = planner.crop(image, width, height)
                save_image(result, dest, keep_metadata=keep_metadata, original_exif=exif)
                logger.info("Cropped %s -> %s", src.name, dest)
        finally:
            image.close()
        processed += 1

    return processed

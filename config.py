"""Global configuration for the content-aware cropping toolkit.

This module centralizes defaults and user-tunable settings for:
- locating input images and writing outputs
- named target shapes for the command line
- the crop-planning heuristics (downscale limit, slice sizing, measure image)
- the Haar-cascade salient-region detector

All values can be overridden via CLI flags or by passing a modified copy to
``CropPlanner`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple


# Supported file extensions for images
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".avif"}


# Named target sizes (width, height) accepted by ``--shape``.
SHAPE_PRESETS: Dict[str, Tuple[int, int]] = {
    "square": (600, 600),
    "thumb": (300, 300),
    "portrait": (600, 800),
    "story": (1080, 1920),
    "landscape": (800, 600),
    "banner": (1200, 400),
    "og": (1200, 630),
    "wide": (1280, 720),
}


RESAMPLE_METHOD = "bicubic"  # one of {nearest, bilinear, bicubic, lanczos}


@dataclass
class Paths:
    """I/O locations.

    Attributes
    ----------
    input_path
        Path to a single image or a directory containing images.
    output_dir
        Directory where cropped images will be written.
    """

    input_path: Path = Path("./data/input")
    output_dir: Path = Path("./data/output")


@dataclass
class Behavior:
    """Processing behavior toggles.

    Attributes
    ----------
    overwrite
        Whether to overwrite files in the output directory.
    dry_run
        If True, plan crops and log them without writing outputs.
    keep_metadata
        If True, attempt to preserve EXIF metadata where possible.
    resample
        Resampling method used for the final resize. One of: 'nearest',
        'bilinear', 'bicubic', 'lanczos'.
    debug
        If True, draw the safe zones onto the output before cropping.
    """

    overwrite: bool = False
    dry_run: bool = False
    keep_metadata: bool = True
    resample: str = RESAMPLE_METHOD
    debug: bool = False


@dataclass
class Tuning:
    """Crop-planning heuristics.

    Attributes
    ----------
    object_ratio_limit
        Both the object ratio and the canvas ratio must exceed this value before
        the resize target is enlarged; the enlargement factor is the same value.
    potential_ratio
        Dominance factor used to force a cut when both slices touch a safe zone.
    slice_scale
        Multiplier for the initial slice step, ``ceil(original / target * scale)``.
    portrait_slice_factor
        Extra slice step multiplier used when the image is taller than wide.
    edge_radius, black_threshold, blur_radius, blur_sigma
        Parameters of the measure-image pipeline.
    """

    object_ratio_limit: float = 1.3
    potential_ratio: float = 1.5
    slice_scale: int = 10
    portrait_slice_factor: int = 2
    edge_radius: int = 1
    black_threshold: int = 7
    blur_radius: int = 3
    blur_sigma: float = 2.0


@dataclass
class Detection:
    """Haar-cascade detector settings.

    Cascade names refer to files shipped in ``cv2.data.haarcascades``. Frontal
    candidates are checked against ``eye_cascade`` and profile candidates
    against ``profile_eye_cascade``.
    """

    face_cascade: str = "haarcascade_frontalface_alt.xml"
    profile_cascade: str = "haarcascade_profileface.xml"
    eye_cascade: str = "haarcascade_eye_tree_eyeglasses.xml"
    profile_eye_cascade: str = "haarcascade_eye.xml"
    scale_factor: float = 1.1
    min_neighbors: int = 3
    min_size: Tuple[int, int] = (20, 20)


@dataclass
class ProjectConfig:
    """Top-level configuration container.

    Attributes
    ----------
    paths
        Input/output locations.
    behavior
        Execution-time toggles.
    tuning
        Crop-planning heuristics.
    detection
        Salient-region detector settings.
    shape_presets
        Mapping from shape label to target resolution (width, height).
    """

    paths: Paths = field(default_factory=Paths)
    behavior: Behavior = field(default_factory=Behavior)
    tuning: Tuning = field(default_factory=Tuning)
    detection: Detection = field(default_factory=Detection)
    shape_presets: Dict[str, Tuple[int, int]] = field(
        default_factory=lambda: dict(SHAPE_PRESETS)
    )


# Default singleton-style config instance used by CLI unless overridden
CONFIG = ProjectConfig()

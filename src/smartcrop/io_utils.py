"""I/O utilities for the batch cropper.

This module enumerates input images, opens them with their EXIF bytes and
writes cropped results back, optionally preserving the metadata. Failures to
read or write are reported as ``ExternalPrimitiveFailure``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Optional, Tuple

import piexif
from PIL import Image, ImageOps

try:
    import pillow_avif  # noqa: F401
except Exception:  # noqa: BLE001
    # AVIF support is optional; it only registers an extra Pillow plugin
    pass

from config import IMAGE_EXTENSIONS
from .errors import ExternalPrimitiveFailure


def iter_image_paths(input_path: Path) -> Generator[Path, None, None]:
    """Yield image file paths from a file or directory.

    Parameters
    ----------
    input_path
        A path to a single image or a directory containing images.

    Yields
    ------
    Path
        Individual image file paths, sorted.
    """

    path = Path(input_path)
    if path.is_file():
        if path.suffix.lower() in IMAGE_EXTENSIONS:
            yield path
        return
    if path.is_dir():
        for p in sorted(path.rglob("*")):
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS:
                yield p


def _strip_orientation(exif_bytes: bytes) -> bytes:
    # The pixels are already transposed, so the orientation tag must go.
    exif = piexif.load(exif_bytes)
    exif.get("0th", {}).pop(piexif.ImageIFD.Orientation, None)
    exif.pop("thumbnail", None)
    return piexif.dump(exif)


def load_image_with_exif(image_path: Path) -> Tuple[Image.Image, Optional[bytes]]:
    """Load an upright image and return it with raw EXIF bytes if available.

    Parameters
    ----------
    image_path
        Path to the image file.

    Returns
    -------
    tuple
        A tuple of (PIL.Image, exif_bytes or None).
    """

    try:
        img = Image.open(image_path)
        exif_bytes = img.info.get("exif") or None
        img = ImageOps.exif_transpose(img)
    except OSError as err:
        raise ExternalPrimitiveFailure(f"Cannot open {image_path}: {err}") from err

    if exif_bytes:
        try:
            exif_bytes = _strip_orientation(exif_bytes)
        except (KeyError, ValueError, piexif.InvalidImageDataError):
            exif_bytes = None
    return img, exif_bytes


def save_image(
    image: Image.Image,
    dest_path: Path,
    keep_metadata: bool = True,
    original_exif: Optional[bytes] = None,
    quality: Optional[int] = None,
) -> None:
    """Save an image to disk, optionally preserving EXIF metadata.

    Parameters
    ----------
    image
        PIL image to save.
    dest_path
        Destination path where the image will be written.
    keep_metadata
        Whether to attempt preserving EXIF metadata.
    original_exif
        EXIF bytes captured when the source was loaded.
    quality
        Encoder quality override for lossy formats.
    """

    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    params = {}
    if keep_metadata and original_exif:
        params["exif"] = original_exif

    ext = dest_path.suffix.lower()
    if ext in {".jpg", ".jpeg"}:
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        params.update({"quality": quality or 95, "subsampling": 0, "optimize": True})
    elif ext == ".png":
        params.update({"optimize": True})
    elif ext in {".webp", ".avif"}:
        params.update({"quality": quality or 90})

    try:
        image.save(dest_path, **params)
    except (OSError, ValueError) as err:
        raise ExternalPrimitiveFailure(f"Cannot write {dest_path}: {err}") from err

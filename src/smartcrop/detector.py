"""Haar-cascade face detection as a source of safe zones.

Frontal and profile faces are detected separately, each with its own eye
cascade; when a detector returns several candidates, only those containing an
eye detection are kept. Every remaining face is widened by half its size on
each side so that hair, chin and shoulders survive the crop.
"""

from __future__ import annotations

import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from config import CONFIG, Detection
from . import primitives
from .errors import DetectorUnavailable, ExternalPrimitiveFailure
from .geometry import Dimension, Rect

logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]  # x, y, w, h


def validate_faces(faces: Sequence[Box], eyes: Sequence[Box]) -> List[Box]:
    """Drop faces without an eye inside when there is a choice to make.

    Parameters
    ----------
    faces
        Candidate face boxes.
    eyes
        Eye boxes from the same image.

    Returns
    -------
    list
        ``faces`` unchanged when fewer than two candidates or no eyes were
        found; otherwise the faces whose box strictly contains the top-left
        corner of at least one eye.
    """

    if len(faces) < 2 or not eyes:
        return list(faces)

    kept = []
    for fx, fy, fw, fh in faces:
        for ex, ey, _, _ in eyes:
            if fx < ex < fx + fw and fy < ey < fy + fh:
                kept.append((fx, fy, fw, fh))
                break
    return kept


def face_to_zone(face: Box, bounds: Dimension) -> Rect:
    """Expand a face box by half its size per side, clipped to ``bounds``."""

    x, y, w, h = face
    hw = math.ceil(w / 2)
    hh = math.ceil(h / 2)
    return Rect(
        left=max(0, x - hw),
        top=max(0, y - hh),
        right=min(bounds.width, x + w + hw),
        bottom=min(bounds.height, y + h + hh),
    )


class DetectorBacked:
    """Salient-region provider backed by OpenCV cascades.

    Parameters
    ----------
    detection
        Cascade names and ``detectMultiScale`` parameters.
    """

    def __init__(self, detection: Detection = CONFIG.detection) -> None:
        self.detection = detection
        self._classifiers: Dict[str, Any] = {}

    def _classifier(self, name: str) -> Any:
        if name not in self._classifiers:
            cascade_cls = getattr(cv2, "CascadeClassifier", None)
            cascade_dir = getattr(getattr(cv2, "data", None), "haarcascades", None)
            if cascade_cls is None or cascade_dir is None:
                raise DetectorUnavailable(
                    f"OpenCV {cv2.__version__} does not provide Haar cascades"
                )
            path = os.path.join(cascade_dir, name)
            try:
                classifier = cascade_cls(path)
            except cv2.error as err:
                raise DetectorUnavailable(f"Could not load cascade {path}") from err
            if classifier.empty():
                raise DetectorUnavailable(f"Could not load cascade {path}")
            self._classifiers[name] = classifier
        return self._classifiers[name]

    def _detect(self, gray: np.ndarray, cascade: str) -> List[Box]:
        found = self._classifier(cascade).detectMultiScale(
            gray,
            scaleFactor=self.detection.scale_factor,
            minNeighbors=self.detection.min_neighbors,
            minSize=self.detection.min_size,
        )
        return [tuple(int(v) for v in box) for box in found]

    def _faces(self, gray: np.ndarray, face_cascade: str, eye_cascade: str) -> List[Box]:
        faces = self._detect(gray, face_cascade)
        if len(faces) < 2:
            return faces
        return validate_faces(faces, self._detect(gray, eye_cascade))

    def detect(self, source: Union[Image.Image, str, Path]) -> List[Rect]:
        """Return safe zones in the pixel space of ``source``.

        Parameters
        ----------
        source
            Image or path to an image at its natural size.

        Returns
        -------
        list of Rect
            One zone per accepted face; empty when nothing was found.
        """

        if isinstance(source, Image.Image):
            return self._zones(source)
        try:
            image = primitives.load(source)
        except ExternalPrimitiveFailure as err:
            raise DetectorUnavailable(f"Cannot read image for detection: {err}") from err
        try:
            return self._zones(image)
        finally:
            image.close()

    def _zones(self, image: Image.Image) -> List[Rect]:
        gray = np.array(image.convert("L"))
        bounds = primitives.geometry(image)
        try:
            faces = self._faces(
                gray, self.detection.face_cascade, self.detection.eye_cascade
            )
            profiles = self._faces(
                gray, self.detection.profile_cascade, self.detection.profile_eye_cascade
            )
        except cv2.error as err:
            raise DetectorUnavailable(f"Face detection failed: {err}") from err

        zones = [face_to_zone(face, bounds) for face in faces + profiles]
        logger.debug("detected %d salient regions", len(zones))
        return zones

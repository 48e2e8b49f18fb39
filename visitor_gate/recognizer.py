"""Module for face detection and recognition backends.

The rest of the package only talks to two narrow capabilities:

* a detector with ``detect(gray) -> [(x, y, w, h), ...]``
* a recognizer with ``train(samples, labels)`` and
  ``predict(face) -> (label, distance)``

so the OpenCV / dlib backends below can be swapped for fakes in tests.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from visitor_gate.config import (
    DETECTOR_BACKEND, FACE_SIZE, HAAR_MIN_NEIGHBORS, HAAR_SCALE_FACTOR, LBPH_PARAMS
)
from visitor_gate.utils import crop_region

logger = logging.getLogger(__name__)

Region = Tuple[int, int, int, int]

# Label returned by a recognizer when nothing in the gallery is close enough
NO_MATCH = -1


class HaarFaceDetector:
    """Frontal face detector backed by an OpenCV Haar cascade."""

    def __init__(self, cascade_path: Optional[str] = None,
                 scale_factor: float = HAAR_SCALE_FACTOR,
                 min_neighbors: int = HAAR_MIN_NEIGHBORS):
        if cascade_path is None:
            cascade_path = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"

        self.cascade = cv2.CascadeClassifier(cascade_path)
        if self.cascade.empty():
            raise RuntimeError(f"Failed to load Haar cascade from {cascade_path}")

        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors

    def detect(self, gray: np.ndarray) -> List[Region]:
        faces = self.cascade.detectMultiScale(gray, self.scale_factor, self.min_neighbors)
        return [tuple(int(v) for v in face) for face in faces]


class DlibFaceDetector:
    """HOG face detector from the face_recognition package."""

    def __init__(self, model: str = "hog"):
        import face_recognition

        self._face_locations = face_recognition.face_locations
        self.model = model

    def detect(self, gray: np.ndarray) -> List[Region]:
        # face_recognition expects RGB and returns (top, right, bottom, left)
        rgb = cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)
        locations = self._face_locations(rgb, model=self.model)
        return [(left, top, right - left, bottom - top)
                for top, right, bottom, left in locations]


class LBPHRecognizer:
    """Local Binary Patterns Histogram recognizer (opencv-contrib)."""

    def __init__(self, params: Tuple = LBPH_PARAMS):
        radius, neighbors, grid_x, grid_y, threshold = params
        self.model = cv2.face.LBPHFaceRecognizer_create(
            radius=radius, neighbors=neighbors, grid_x=grid_x, grid_y=grid_y,
            threshold=threshold
        )
        self.trained = False

    def train(self, samples: Sequence[np.ndarray], labels: Sequence[int]):
        """
        Train the model in one batch.

        Args:
            samples: Normalized grayscale face crops
            labels: Integer label for each sample
        """
        self.model.train(list(samples), np.array(labels, dtype=np.int32))
        self.trained = True

    def predict(self, face: np.ndarray) -> Tuple[int, float]:
        """
        Predict the label of a normalized face.

        Returns:
            (label, distance); label is NO_MATCH when the model is untrained
            or the face is beyond the model's own threshold
        """
        if not self.trained:
            return NO_MATCH, float("inf")

        label, distance = self.model.predict(face)
        return int(label), float(distance)


def create_detector(backend: Optional[str] = None):
    """
    Build the face detector named by the config.

    Args:
        backend: "haar" or "dlib" (defaults to config value)
    """
    if backend is None:
        backend = DETECTOR_BACKEND

    if backend == "haar":
        return HaarFaceDetector()
    if backend == "dlib":
        return DlibFaceDetector()
    raise ValueError(f"Unknown detector backend: {backend}")


def load_image(image_path) -> Optional[np.ndarray]:
    """Decode an image file into a BGR pixel buffer, or None if unreadable."""
    image = cv2.imread(str(Path(image_path)))
    if image is None:
        logger.debug(f"Could not decode image: {image_path}")
    return image


def to_gray(image: np.ndarray) -> np.ndarray:
    """
    Convert a BGR image to grayscale.

    Args:
        image: BGR or already single-channel image

    Returns:
        Grayscale image (the input itself if it has one channel)
    """
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def normalize_face(gray: np.ndarray, region: Region) -> np.ndarray:
    """Crop a face region from a grayscale image and resize it to FACE_SIZE."""
    face = crop_region(gray, region)
    return cv2.resize(face, FACE_SIZE, interpolation=cv2.INTER_LINEAR)

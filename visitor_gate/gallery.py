"""Gallery builder: enrolls known faces and trains the recognizer."""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import numpy as np

from visitor_gate.config import RECOGNITION_THRESHOLD, SUPPORTED_IMAGE_EXTENSIONS
from visitor_gate.errors import GalleryNotFoundError, NoEnrollmentDataError
from visitor_gate.recognizer import NO_MATCH, load_image, normalize_face, to_gray

logger = logging.getLogger(__name__)


class Gallery:
    """Enrolled identities and the recognizer trained on them (read-only)."""

    def __init__(self, directory: Path, label_names: Dict[int, str], recognizer,
                 threshold: float = RECOGNITION_THRESHOLD):
        self.directory = Path(directory)
        self.label_names: Mapping[int, str] = MappingProxyType(dict(label_names))
        self.recognizer = recognizer
        self.threshold = threshold

    def __len__(self):
        return len(self.label_names)

    def identify(self, face: np.ndarray) -> Optional[str]:
        """
        Match a normalized face against the gallery.

        A prediction is accepted only if the label is valid, the distance is
        below the threshold and the label is enrolled.

        Args:
            face: Normalized grayscale face crop

        Returns:
            Display name of the matched identity, or None if rejected
        """
        label, distance = self.recognizer.predict(face)
        logger.debug(f"Predicted label={label} distance={distance:.2f}")

        if label != NO_MATCH and distance < self.threshold and label in self.label_names:
            return self.label_names[label]
        return None

    def reference_image(self, name: str) -> Optional[Path]:
        """
        Find the stored gallery image for a display name.

        Returns:
            Path to the image, or None if no file with that name exists
        """
        for ext in SUPPORTED_IMAGE_EXTENSIONS:
            candidate = self.directory / f"{name}{ext}"
            if candidate.is_file():
                return candidate
        return None


def list_gallery_images(directory: Path):
    """Image files in the gallery directory, sorted by filename."""
    return sorted(
        p for p in Path(directory).iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS
    )


def build_gallery(directory, detector, recognizer,
                  threshold: float = RECOGNITION_THRESHOLD) -> Gallery:
    """
    Enroll every image in the gallery directory and train the recognizer.

    Each file contributes at most one sample: images without a detectable
    face are skipped, and when several faces are found only the first one
    is used. The display name is the filename without extension.

    Args:
        directory: Folder of known-face images
        detector: Object with detect(gray) -> [(x, y, w, h), ...]
        recognizer: Untrained object with train(samples, labels)
        threshold: Distance below which a prediction is accepted

    Returns:
        Gallery holding the label map and the trained recognizer

    Raises:
        GalleryNotFoundError: if the directory does not exist
        NoEnrollmentDataError: if no image yielded a face
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise GalleryNotFoundError(f"Known faces folder '{directory}' not found.")

    samples = []
    labels = []
    label_names = {}
    next_label = 0

    for image_path in list_gallery_images(directory):
        image = load_image(image_path)
        if image is None:
            logger.warning(f"Skipping unreadable image: {image_path.name}")
            continue

        gray = to_gray(image)
        faces = detector.detect(gray)
        if len(faces) == 0:
            logger.info(f"No face found in {image_path.name}, skipping")
            continue
        if len(faces) > 1:
            logger.info(f"{len(faces)} faces found in {image_path.name}, using the first")

        try:
            face = normalize_face(gray, faces[0])
        except ValueError as e:
            logger.warning(f"Skipping {image_path.name}: {e}")
            continue

        samples.append(face)
        labels.append(next_label)
        label_names[next_label] = image_path.stem
        logger.debug(f"Enrolled {image_path.stem} as label {next_label}")
        next_label += 1

    if len(samples) == 0:
        raise NoEnrollmentDataError("No valid faces found for training.")

    recognizer.train(samples, labels)
    logger.info(f"Trained recognizer on {len(samples)} face(s) from {directory}")

    return Gallery(directory, label_names, recognizer, threshold=threshold)

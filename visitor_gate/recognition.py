"""Per-frame recognition cycle: detect, recognize, hand off, annotate."""

import logging
from typing import Callable, Optional

import numpy as np

from visitor_gate.config import LABEL_UNKNOWN
from visitor_gate.recognizer import normalize_face, to_gray
from visitor_gate.utils import draw_box, draw_label

logger = logging.getLogger(__name__)


class RecognitionCycle:
    """Annotates one frame per tick with the identity of every detected face."""

    def __init__(self, detector, gallery=None,
                 on_unknown: Optional[Callable[[np.ndarray], str]] = None):
        """
        Args:
            detector: Object with detect(gray) -> [(x, y, w, h), ...]
            gallery: Trained Gallery, or None when enrollment produced nothing;
                     without it faces are boxed but never predicted
            on_unknown: Called with the normalized face when recognition
                        rejects it; returns the label to draw
        """
        self.detector = detector
        self.gallery = gallery
        self.on_unknown = on_unknown

    def tick(self, frame: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """
        Process one frame.

        Args:
            frame: BGR frame, annotated in place; None if no frame yet

        Returns:
            The annotated frame, or None when there was nothing to process
        """
        if frame is None:
            return None

        gray = to_gray(frame)
        faces = self.detector.detect(gray)

        for region in faces:
            draw_box(frame, region)
            label = self.label_face(gray, region)
            draw_label(frame, region, label)

        return frame

    def label_face(self, gray: np.ndarray, region) -> str:
        if self.gallery is None:
            return LABEL_UNKNOWN

        try:
            face = normalize_face(gray, region)
        except ValueError as e:
            logger.debug(f"Ignoring face region: {e}")
            return LABEL_UNKNOWN

        name = self.gallery.identify(face)
        if name is not None:
            return name

        if self.on_unknown is None:
            return LABEL_UNKNOWN
        return self.on_unknown(face)

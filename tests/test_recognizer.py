"""Tests for the vision helpers and detector backends."""

import numpy as np
import pytest

from conftest import make_face_image
from visitor_gate.config import FACE_SIZE
from visitor_gate.recognizer import (
    DlibFaceDetector, HaarFaceDetector, create_detector, load_image, normalize_face, to_gray
)
from visitor_gate.utils import crop_region


class TestImageHelpers:
    """Test suite for cropping and normalization."""

    def test_crop_is_clamped_to_image(self):
        """Test that a region partly outside the image is clamped."""
        image = np.zeros((50, 80), dtype=np.uint8)

        face = crop_region(image, (-10, 40, 30, 30))

        assert face.shape == (10, 20), f"Unexpected crop shape: {face.shape}"

    def test_crop_outside_image(self):
        """Test that a region fully outside the image raises ValueError."""
        image = np.zeros((50, 80), dtype=np.uint8)

        with pytest.raises(ValueError):
            crop_region(image, (100, 100, 10, 10))

    def test_normalize_face_size(self):
        """Test that normalized faces have the fixed size and keep their pixels."""
        gray = to_gray(make_face_image(90))

        face = normalize_face(gray, (20, 20, 60, 60))

        assert face.shape == (FACE_SIZE[1], FACE_SIZE[0]), f"Unexpected size: {face.shape}"
        assert face.dtype == np.uint8
        assert (face == 90).all(), "Face crop should only contain the face patch"

    def test_to_gray_passthrough(self):
        """Test that a grayscale image is returned unchanged."""
        gray = np.zeros((10, 10), dtype=np.uint8)

        assert to_gray(gray) is gray, "Single-channel input should not be converted"

    def test_load_missing_image(self, tmp_path):
        """Test that a missing image file loads as None."""
        assert load_image(tmp_path / "missing.jpg") is None


class TestDetectors:
    """Test suite for the detector backends."""

    def test_unknown_backend(self):
        """Test that an unknown backend name raises ValueError."""
        with pytest.raises(ValueError):
            create_detector("yolo")

    def test_haar_blank_image_has_no_faces(self):
        """Test that the Haar detector finds nothing in a blank image."""
        detector = create_detector("haar")

        assert isinstance(detector, HaarFaceDetector)
        assert detector.detect(np.zeros((120, 120), dtype=np.uint8)) == [], \
            "Blank image should have no faces"

    def test_haar_bad_cascade(self, tmp_path):
        """Test that a missing cascade file raises RuntimeError."""
        with pytest.raises(RuntimeError):
            HaarFaceDetector(cascade_path=str(tmp_path / "missing.xml"))

    def test_dlib_region_conversion(self, monkeypatch):
        """Test that dlib (top, right, bottom, left) boxes become (x, y, w, h)."""
        pytest.importorskip("face_recognition")
        detector = DlibFaceDetector()
        monkeypatch.setattr(detector, "_face_locations",
                            lambda rgb, model: [(10, 70, 90, 20)])

        regions = detector.detect(np.zeros((120, 120), dtype=np.uint8))
        assert regions == [(20, 10, 50, 80)], f"Unexpected regions: {regions}"

"""Configuration settings for the visitor gate."""

import os
from pathlib import Path

# Base directory (parent of visitor_gate/)
BASE_DIR = Path(__file__).parent.parent

# Recognition settings
RECOGNITION_THRESHOLD = float(os.environ.get("VISITOR_GATE_THRESHOLD", "70"))  # LBPH distance, lower = closer
FACE_SIZE = (100, 100)  # Normalized face crop (width, height)
SUPPORTED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")

# LBPH parameters: radius, neighbors, grid_x, grid_y, threshold
LBPH_PARAMS = (1, 8, 8, 8, 100.0)

# Detection settings
DETECTOR_BACKEND = os.environ.get("VISITOR_GATE_DETECTOR", "haar")  # "haar" or "dlib"
HAAR_SCALE_FACTOR = 1.1
HAAR_MIN_NEIGHBORS = 4

# Camera / loop settings
CAMERA_INDEX = int(os.environ.get("VISITOR_GATE_CAMERA", "0"))
TICK_INTERVAL_MS = 33  # Recognition cadence, ~30 fps
WINDOW_TITLE = "Visitor Gate"

# Overlay labels
LABEL_UNKNOWN = "Unknown"
LABEL_ACCESS_DENIED = "Access Denied"

# File paths
KNOWN_FACES_DIR = Path(os.environ.get("VISITOR_GATE_KNOWN_FACES", BASE_DIR / "known_faces"))
APPOINTMENTS_FILE = Path(os.environ.get("VISITOR_GATE_APPOINTMENTS", BASE_DIR / "appointments.json"))
REASON_LOG_FILE = Path(os.environ.get("VISITOR_GATE_REASON_LOG", BASE_DIR / "visitor_reasons.log"))

# Logging
LOG_LEVEL = os.environ.get("VISITOR_GATE_LOG_LEVEL", "INFO")

"""CLI tool to add a visitor photo to the known-faces gallery."""

import sys
from pathlib import Path

# Add parent directory to path to import visitor_gate modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from visitor_gate.capture import capture_gallery_photo
from visitor_gate.config import KNOWN_FACES_DIR
from visitor_gate.errors import CameraUnavailableError
from visitor_gate.recognizer import create_detector, load_image, to_gray


def main():
    """Enroll a new visitor."""
    print("=== Gallery Enrollment ===")

    # The display name becomes the filename
    name = input("Enter name: ").strip()
    if not name:
        print("Error: Name cannot be empty")
        return

    existing = [p for p in KNOWN_FACES_DIR.glob(f"{name}.*")] if KNOWN_FACES_DIR.is_dir() else []
    if existing:
        print(f"Warning: {existing[0].name} already exists and will be replaced")

    try:
        image_path = capture_gallery_photo(name)
    except CameraUnavailableError as e:
        print(f"Error capturing photo: {e}")
        return

    if image_path is None:
        print("Error: No photo captured")
        return

    # Re-check the saved file the same way the gallery loader will
    image = load_image(image_path)
    faces = create_detector().detect(to_gray(image)) if image is not None else []
    if len(faces) != 1:
        print(f"  ✗ Expected one face in {image_path}, found {len(faces)}")
        return

    print(f"✓ '{name}' enrolled. Restart the gate to load the new photo.")


if __name__ == "__main__":
    main()

"""Main application: live visitor recognition and verification loop."""

import argparse
import logging
import sys
from pathlib import Path

import cv2

# Add parent directory to path to import visitor_gate modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from visitor_gate import config
from visitor_gate.capture import FrameGrabber
from visitor_gate.controller import PipelineController
from visitor_gate.db import AppointmentBook, load_appointments
from visitor_gate.errors import (
    AppointmentStoreError, CameraUnavailableError, GalleryNotFoundError, NoEnrollmentDataError
)
from visitor_gate.gallery import build_gallery
from visitor_gate.prompts import ConsoleOperator
from visitor_gate.recognizer import LBPHRecognizer, create_detector
from visitor_gate.utils import TickScheduler
from visitor_gate.verification import VerificationProtocol

logger = logging.getLogger("visitor_gate")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Visitor access-control loop")
    parser.add_argument("--known-faces", type=Path, default=config.KNOWN_FACES_DIR,
                        help="folder of enrolled face images (<name>.jpg)")
    parser.add_argument("--appointments", type=Path, default=config.APPOINTMENTS_FILE,
                        help="JSON list of appointment records")
    parser.add_argument("--reason-log", type=Path, default=config.REASON_LOG_FILE,
                        help="file that receives reasons for unannounced visits")
    parser.add_argument("--camera", type=int, default=config.CAMERA_INDEX,
                        help="camera device index")
    parser.add_argument("--detector", choices=("haar", "dlib"), default=config.DETECTOR_BACKEND,
                        help="face detector backend")
    parser.add_argument("--threshold", type=float, default=config.RECOGNITION_THRESHOLD,
                        help="maximum recognizer distance for a match")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser.parse_args(argv)


def main(argv=None):
    """Run the main recognition loop."""
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    operator = ConsoleOperator()

    # Initialize vision backends
    try:
        detector = create_detector(args.detector)
        recognizer = LBPHRecognizer()
    except (RuntimeError, ImportError, AttributeError) as e:
        print(f"Error: failed to initialize face detection ({args.detector}): {e}")
        sys.exit(1)

    # Load appointments
    try:
        appointments = load_appointments(args.appointments)
    except AppointmentStoreError as e:
        logger.warning(str(e))
        operator.notify(str(e))
        appointments = AppointmentBook()
    print(f"Loaded {len(appointments)} appointment(s)")

    # Build gallery
    print("Loading known faces...")
    gallery = None
    try:
        gallery = build_gallery(args.known_faces, detector, recognizer,
                                threshold=args.threshold)
    except (GalleryNotFoundError, NoEnrollmentDataError) as e:
        logger.warning(str(e))
        operator.notify(f"{e} Recognition is disabled.")
    else:
        print(f"Enrolled {len(gallery)} identit{'y' if len(gallery) == 1 else 'ies'}")
        for label, name in gallery.label_names.items():
            print(f"  - {label}: {name}")

    protocol = None
    if gallery is not None:
        protocol = VerificationProtocol(gallery, appointments, detector, operator,
                                        reason_log=args.reason_log)

    # Initialize camera
    print(f"\nInitializing camera (index {args.camera})...")
    try:
        grabber = FrameGrabber.open(args.camera)
    except CameraUnavailableError as e:
        print(f"Error: {e}")
        sys.exit(1)

    controller = PipelineController(
        grabber, TickScheduler(config.TICK_INTERVAL_MS), detector,
        gallery=gallery, protocol=protocol,
    )

    print("Camera ready. Starting recognition loop...")
    print("Press 'q' in the video window to quit\n")

    def display(frame):
        cv2.imshow(config.WINDOW_TITLE, frame)

    def should_stop(wait_ms):
        key = cv2.waitKey(wait_ms) & 0xFF
        return key in (ord("q"), ord("Q"))

    try:
        controller.run(display, should_stop)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    finally:
        cv2.destroyAllWindows()
        print("Camera released. Exiting.")


if __name__ == "__main__":
    main()

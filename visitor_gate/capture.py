"""Camera acquisition: the background frame grabber and enrollment capture."""

import logging
import threading
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from visitor_gate.config import CAMERA_INDEX, KNOWN_FACES_DIR
from visitor_gate.errors import CameraUnavailableError
from visitor_gate.recognizer import create_detector, to_gray

logger = logging.getLogger(__name__)


def open_camera(camera_index: Optional[int] = None):
    """Open a cv2.VideoCapture or raise CameraUnavailableError."""
    if camera_index is None:
        camera_index = CAMERA_INDEX

    cap = cv2.VideoCapture(camera_index)
    if not cap.isOpened():
        cap.release()
        raise CameraUnavailableError(f"Failed to open camera at index {camera_index}")
    return cap


class FrameGrabber:
    """
    Continuously reads frames into a single-slot buffer on its own thread.

    Only the latest frame is kept; unread frames are overwritten. While
    paused no frame is read and the buffer keeps its last value.
    """

    def __init__(self, source):
        """
        Args:
            source: Object with read() -> (ok, frame) and release(),
                    e.g. a cv2.VideoCapture
        """
        self.source = source
        self._frame = None
        self._frame_lock = threading.Lock()
        self._read_lock = threading.Lock()
        self._active = threading.Event()
        self._active.set()
        self._stop = threading.Event()
        self._thread = None
        self.frames_read = 0

    @classmethod
    def open(cls, camera_index: Optional[int] = None) -> "FrameGrabber":
        return cls(open_camera(camera_index))

    @property
    def paused(self) -> bool:
        return not self._active.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the acquisition thread (no-op if it is already running)."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True,
                                        name="FrameGrabber")
        self._thread.start()
        logger.info("Frame acquisition started")

    def pause(self):
        """Stop reading frames; returns once any in-flight read has finished."""
        self._active.clear()
        with self._read_lock:
            pass

    def resume(self):
        """Let the acquisition thread read frames again."""
        self._active.set()

    def stop(self, timeout: float = 2.0) -> bool:
        """
        Stop acquisition and release the source.

        The source is only released once the acquisition thread has exited;
        a thread still blocked in read() keeps the source open.

        Args:
            timeout: Seconds to wait for the acquisition thread

        Returns:
            True if the source was released
        """
        self._stop.set()
        self._active.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Acquisition thread still reading, camera not released")
                return False
        self.source.release()
        logger.info("Frame acquisition stopped")
        return True

    def latest(self) -> Optional[np.ndarray]:
        """Copy of the most recent frame, or None if nothing was read yet."""
        with self._frame_lock:
            if self._frame is None:
                return None
            return self._frame.copy()

    def _capture_loop(self):
        while not self._stop.is_set():
            if not self._active.wait(timeout=0.1):
                continue

            with self._read_lock:
                if self._stop.is_set() or not self._active.is_set():
                    continue
                ret, frame = self.source.read()

                if not ret:
                    logger.error("Failed to read from camera, stopping acquisition")
                    break

                with self._frame_lock:
                    self._frame = frame
                self.frames_read += 1


def capture_gallery_photo(name, directory=None, camera_index=None) -> Optional[Path]:
    """
    Capture one photo of a visitor from the webcam into the gallery.

    Args:
        name: Display name; the photo is saved as <directory>/<name>.jpg
        directory: Gallery folder (defaults to config value)
        camera_index: Camera to use (defaults to config value)

    Returns:
        Path of the saved image, or None if capture was cancelled
    """
    if directory is None:
        directory = KNOWN_FACES_DIR

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    cap = open_camera(camera_index)
    detector = create_detector()
    saved_path = None

    print(f"\nPreparing to capture a gallery photo for {name}")
    print("Press SPACE to capture, 'q' to quit")
    print("Make sure only your face is visible in the frame\n")

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                print("Failed to read from camera")
                break

            display_frame = frame.copy()
            faces = detector.detect(to_gray(frame))

            if len(faces) == 1:
                cv2.putText(display_frame, "Face detected - Ready!",
                            (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
            else:
                cv2.putText(display_frame, f"{len(faces)} faces detected",
                            (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 255), 2)

            cv2.imshow("Capture Gallery Photo", display_frame)

            key = cv2.waitKey(1) & 0xFF

            if key == ord(" "):
                # Verification needs exactly one face in the stored photo
                if len(faces) == 1:
                    saved_path = directory / f"{name}.jpg"
                    cv2.imwrite(str(saved_path), frame)
                    print(f"Captured photo: {saved_path}")
                    break
                print("Exactly one face must be visible. Please try again.")

            elif key == ord("q"):
                print("Capture cancelled by user")
                break

    finally:
        cap.release()
        cv2.destroyAllWindows()

    return saved_path

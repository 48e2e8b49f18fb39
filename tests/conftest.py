"""Shared fakes for the visitor gate tests.

Synthetic images follow one convention so the fake detector can read them
back: pixel (0, 0) holds 50 * <number of faces>, and the face patch at
FACE_REGION is filled with a single intensity that identifies the person.
"""

import sys
import threading
import time
from pathlib import Path

import cv2
import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from visitor_gate.recognizer import NO_MATCH

FACE_REGION = (20, 20, 60, 60)


def make_face_image(value, faces=1, size=120):
    """BGR image with `faces` detectable faces whose patch has intensity `value`."""
    img = np.zeros((size, size, 3), dtype=np.uint8)
    x, y, w, h = FACE_REGION
    if faces:
        img[y:y + h, x:x + w] = value
    img[0, 0] = 50 * faces
    return img


def write_face_image(directory, filename, value, faces=1):
    path = Path(directory) / filename
    cv2.imwrite(str(path), make_face_image(value, faces))
    return path


class FakeDetector:
    """Reads the face count from pixel (0, 0); every face is FACE_REGION."""

    def __init__(self):
        self.calls = 0

    def detect(self, gray):
        self.calls += 1
        count = int(gray[0, 0]) // 50
        return [FACE_REGION] * count


class FakeRecognizer:
    """Nearest-mean recognizer; distance is the difference of mean intensity."""

    def __init__(self):
        self.samples = []
        self.train_calls = 0

    def train(self, samples, labels):
        self.train_calls += 1
        self.samples = [(float(s.mean()), label) for s, label in zip(samples, labels)]

    def predict(self, face):
        if not self.samples:
            return NO_MATCH, float("inf")
        value = float(face.mean())
        mean, label = min(self.samples, key=lambda s: abs(s[0] - value))
        return label, abs(mean - value)


class FakeOperator:
    """Scripted operator that records every interaction."""

    def __init__(self, has_appointment=None, texts=(), on_prompt=None):
        self.has_appointment = has_appointment
        self.texts = list(texts)
        self.on_prompt = on_prompt
        self.questions = []
        self.prompts = []
        self.notifications = []

    def ask_yes_no(self, question, title=""):
        self.questions.append(question)
        if self.on_prompt:
            self.on_prompt()
        return self.has_appointment

    def ask_text(self, prompt, title=""):
        self.prompts.append(prompt)
        if self.on_prompt:
            self.on_prompt()
        return self.texts.pop(0) if self.texts else None

    def notify(self, message):
        self.notifications.append(message)


class FakeSource:
    """Stand-in for cv2.VideoCapture producing numbered frames."""

    def __init__(self, fail_after=None):
        self.fail_after = fail_after
        self.reads = 0
        self.released = False
        self._lock = threading.Lock()

    def read(self):
        time.sleep(0.001)
        with self._lock:
            if self.fail_after is not None and self.reads >= self.fail_after:
                return False, None
            self.reads += 1
            return True, np.full((4, 4, 3), self.reads % 256, dtype=np.uint8)

    def release(self):
        self.released = True


class BlockingSource:
    """Source whose read() hangs until `unblock` is set, then reports failure."""

    def __init__(self):
        self.entered = threading.Event()
        self.unblock = threading.Event()
        self.released = False

    def read(self):
        self.entered.set()
        self.unblock.wait(timeout=5)
        return False, None

    def release(self):
        self.released = True


class FakeGrabber:
    """Frame grabber double that always serves the same frame."""

    def __init__(self, frame=None, max_polls=None):
        self.frame = frame
        self.paused = False
        self.started = False
        self.stopped = False
        self.max_polls = max_polls
        self._polls = 0

    @property
    def running(self):
        self._polls += 1
        return self.max_polls is None or self._polls <= self.max_polls

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def latest(self):
        return None if self.frame is None else self.frame.copy()


@pytest.fixture
def detector():
    """Fake detector reading the face count from pixel (0, 0)."""
    return FakeDetector()


@pytest.fixture
def gallery_dir(tmp_path):
    """Gallery with alice (100) and bob (200) plus a photo without a face."""
    directory = tmp_path / "known_faces"
    directory.mkdir()
    write_face_image(directory, "alice.png", 100)
    write_face_image(directory, "bob.png", 200)
    write_face_image(directory, "nobody.png", 0, faces=0)
    return directory

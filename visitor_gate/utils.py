"""Utility functions for the visitor gate."""

import threading
import time
from typing import Callable, Tuple

import cv2
import numpy as np

COLOR_BOX = (0, 255, 0)
COLOR_TEXT = (255, 0, 0)


def crop_region(image: np.ndarray, region: Tuple[int, int, int, int]) -> np.ndarray:
    """
    Crop a face from an image using an (x, y, w, h) region.

    Args:
        image: Grayscale or BGR image
        region: Bounding box as (x, y, w, h)

    Returns:
        Cropped view of the image
    """
    h, w = image.shape[:2]
    x, y, width, height = region

    # Apply boundary checks
    left = max(0, x)
    top = max(0, y)
    right = min(w, x + width)
    bottom = min(h, y + height)

    if right <= left or bottom <= top:
        raise ValueError(f"Region {region} lies outside the {w}x{h} image")

    return image[top:bottom, left:right]


def draw_box(frame: np.ndarray, region: Tuple[int, int, int, int]):
    """
    Draw a bounding box around a face region (in place).

    Args:
        frame: BGR frame to annotate
        region: Bounding box as (x, y, w, h)
    """
    x, y, w, h = region
    cv2.rectangle(frame, (x, y), (x + w, y + h), COLOR_BOX, 2)


def draw_label(frame: np.ndarray, region: Tuple[int, int, int, int], label: str):
    """Write a label just above a face region (in place)."""
    x, y = region[0], region[1]
    cv2.putText(frame, label, (x, max(0, y - 10)),
                cv2.FONT_HERSHEY_SIMPLEX, 0.8, COLOR_TEXT, 2)


class TickScheduler:
    """Fixed-interval scheduler for the recognition tick that can be suspended."""

    def __init__(self, interval_ms: float, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the scheduler.

        Args:
            interval_ms: Minimum time between two ticks in milliseconds
            clock: Time source in seconds (injectable for tests)
        """
        self.min_interval = interval_ms / 1000.0 if interval_ms > 0 else 0
        self.clock = clock
        self.last_time = None
        self._paused = threading.Event()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    def pause(self):
        self._paused.set()

    def resume(self):
        self._paused.clear()

    def should_tick(self) -> bool:
        """
        Check whether the next tick is due.

        Returns:
            True if a tick should run now, always False while paused
        """
        if self.paused:
            return False

        current_time = self.clock()
        if self.last_time is None or current_time - self.last_time >= self.min_interval:
            self.last_time = current_time
            return True
        return False

    def wait_ms(self) -> int:
        """Milliseconds until the next tick is due (at least 1)."""
        if self.last_time is None:
            return 1
        remaining = self.min_interval - (self.clock() - self.last_time)
        return max(1, int(remaining * 1000))

    def reset(self):
        """Reset the scheduler."""
        self.last_time = None

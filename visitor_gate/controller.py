"""Pipeline controller: runs the loop and suspends it around verification."""

import logging
import threading
from typing import Callable, Optional

import numpy as np

from visitor_gate.config import LABEL_UNKNOWN
from visitor_gate.recognition import RecognitionCycle
from visitor_gate.utils import TickScheduler

logger = logging.getLogger(__name__)


class PipelineController:
    """
    Coordinates acquisition, the recognition tick and verification.

    While a verification protocol is pending both the frame grabber and the
    tick scheduler are paused, so no new frame is read and no second tick
    runs until the protocol has decided.
    """

    def __init__(self, grabber, scheduler: TickScheduler, detector, gallery=None,
                 protocol=None):
        self.grabber = grabber
        self.scheduler = scheduler
        self.protocol = protocol
        self.cycle = RecognitionCycle(detector, gallery,
                                      on_unknown=self.verify if protocol is not None else None)
        self._verifying = threading.Lock()
        self.last_result = None

    @property
    def verifying(self) -> bool:
        return self._verifying.locked()

    def verify(self, face: np.ndarray) -> str:
        """
        Run the verification protocol for one face with the pipeline paused.

        Returns:
            Label to draw over the face
        """
        if self.protocol is None:
            return LABEL_UNKNOWN

        with self._verifying:
            self.scheduler.pause()
            self.grabber.pause()
            logger.debug("Pipeline paused for verification")
            try:
                self.last_result = self.protocol.run(face)
            finally:
                self.grabber.resume()
                self.scheduler.resume()
                logger.debug("Pipeline resumed")

        return self.last_result.label

    def tick_once(self) -> Optional[np.ndarray]:
        """Run one recognition tick unless the pipeline is suspended."""
        if self.scheduler.paused or self.verifying:
            return None
        return self.cycle.tick(self.grabber.latest())

    def run(self, display: Callable[[np.ndarray], None],
            should_stop: Callable[[int], bool]):
        """
        Drive the loop on the calling (presentation) thread.

        Args:
            display: Shows an annotated frame
            should_stop: Called with the milliseconds until the next tick is
                         due; may block that long (e.g. cv2.waitKey) and
                         returns True to end the loop
        """
        self.grabber.start()
        try:
            while self.grabber.running:
                if self.scheduler.should_tick():
                    annotated = self.tick_once()
                    if annotated is not None:
                        display(annotated)

                if should_stop(self.scheduler.wait_ms()):
                    break
        finally:
            self.grabber.stop()

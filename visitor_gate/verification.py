"""Verification protocol for faces the gallery could not recognize."""

import enum
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from visitor_gate.config import LABEL_ACCESS_DENIED, LABEL_UNKNOWN, REASON_LOG_FILE
from visitor_gate.db import AppointmentBook, log_visit_reason
from visitor_gate.errors import ProtocolBusyError
from visitor_gate.recognizer import load_image, normalize_face, to_gray

logger = logging.getLogger(__name__)

APPOINTMENT_QUESTION = "Do you have an appointment?"
REASON_PROMPT = "Why are you here?"
NAME_PROMPT = "Please enter your name"
MSG_NO_APPOINTMENT = "No appointment found for this name."
MSG_GRANTED = "Access Granted"
MSG_DENIED = "Access Denied - Face does not match appointment"


class VerificationState(enum.Enum):
    IDLE = "idle"
    ASK_APPOINTMENT = "ask_appointment"
    NO_APPOINTMENT = "no_appointment"
    APPOINTMENT = "appointment"
    DECIDED = "decided"


class Outcome(enum.Enum):
    UNANSWERED = "unanswered"
    REASON_LOGGED = "reason_logged"
    NO_REASON = "no_reason"
    NO_APPOINTMENT_FOUND = "no_appointment_found"
    ACCESS_GRANTED = "access_granted"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True)
class VerificationResult:
    outcome: Outcome
    label: str
    claimed_name: Optional[str] = None
    reason: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.outcome is Outcome.ACCESS_GRANTED


class VerificationProtocol:
    """
    Interactive decision sequence for an unrecognized face.

    IDLE -> ASK_APPOINTMENT -> NO_APPOINTMENT | APPOINTMENT -> DECIDED

    The prompts block; callers are responsible for pausing acquisition and
    the recognition tick around run().
    """

    def __init__(self, gallery, appointments: AppointmentBook, detector, operator,
                 reason_log: Path = REASON_LOG_FILE):
        """
        Args:
            gallery: Trained Gallery used for face-match confirmation
            appointments: Names with an appointment today
            detector: Face detector used on stored reference images
            operator: Operator surface (ask_yes_no, ask_text, notify)
            reason_log: File that receives reasons for unannounced visits
        """
        self.gallery = gallery
        self.appointments = appointments
        self.detector = detector
        self.operator = operator
        self.reason_log = reason_log
        self.state = VerificationState.IDLE
        self._busy = threading.Lock()

    def run(self, face: np.ndarray) -> VerificationResult:
        """
        Run the protocol for one captured face.

        Args:
            face: Normalized grayscale crop of the unrecognized face

        Returns:
            VerificationResult whose label is drawn over the face
        """
        if not self._busy.acquire(blocking=False):
            raise ProtocolBusyError("A verification is already in progress")

        try:
            result = self._run(face)
            logger.info(f"Verification decided: {result.outcome.value} ({result.label})")
            return result
        finally:
            self.state = VerificationState.DECIDED
            self._busy.release()

    def _run(self, face):
        self.state = VerificationState.ASK_APPOINTMENT
        has_appointment = self.operator.ask_yes_no(APPOINTMENT_QUESTION, "Appointment Check")

        if has_appointment is None:
            return VerificationResult(Outcome.UNANSWERED, LABEL_UNKNOWN)

        if not has_appointment:
            self.state = VerificationState.NO_APPOINTMENT
            return self._no_appointment()

        self.state = VerificationState.APPOINTMENT
        return self._appointment(face)

    def _no_appointment(self):
        reason = self.operator.ask_text(REASON_PROMPT, "Reason for visit")
        if log_visit_reason(reason, self.reason_log):
            return VerificationResult(Outcome.REASON_LOGGED, LABEL_UNKNOWN, reason=reason)
        return VerificationResult(Outcome.NO_REASON, LABEL_UNKNOWN, reason=reason)

    def _appointment(self, face):
        name = self.operator.ask_text(NAME_PROMPT, "Name")
        if name is None:
            name = ""

        if not self.appointments.has_appointment(name):
            self.operator.notify(MSG_NO_APPOINTMENT)
            return VerificationResult(Outcome.NO_APPOINTMENT_FOUND, LABEL_UNKNOWN,
                                      claimed_name=name)

        if self.confirm_face(face, name):
            self.operator.notify(MSG_GRANTED)
            return VerificationResult(Outcome.ACCESS_GRANTED, name, claimed_name=name)

        self.operator.notify(MSG_DENIED)
        return VerificationResult(Outcome.ACCESS_DENIED, LABEL_ACCESS_DENIED, claimed_name=name)

    def confirm_face(self, face: np.ndarray, name: str) -> bool:
        """
        Check that the captured face belongs to the claimed gallery identity.

        The stored reference image for the name must exist and contain
        exactly one face; the captured face must then be recognized as that
        exact name. Any problem counts as a failed confirmation.
        """
        reference_path = self.gallery.reference_image(name)
        if reference_path is None:
            logger.info(f"Confirmation failed for {name!r}: no reference image")
            return False

        image = load_image(reference_path)
        if image is None:
            logger.info(f"Confirmation failed for {name!r}: unreadable {reference_path.name}")
            return False

        gray = to_gray(image)
        faces = self.detector.detect(gray)
        if len(faces) != 1:
            logger.info(f"Confirmation failed for {name!r}: "
                        f"{len(faces)} faces in {reference_path.name}")
            return False

        try:
            normalize_face(gray, faces[0])
        except ValueError as e:
            logger.info(f"Confirmation failed for {name!r}: {e}")
            return False

        matched = self.gallery.identify(face)
        if matched != name:
            logger.info(f"Confirmation failed for {name!r}: captured face matched {matched!r}")
            return False

        return True

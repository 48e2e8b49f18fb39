"""Persistence for the appointment list and the visitor reason log."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from visitor_gate.config import APPOINTMENTS_FILE, REASON_LOG_FILE
from visitor_gate.errors import AppointmentStoreError

logger = logging.getLogger(__name__)

REASON_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AppointmentBook:
    """Read-only set of appointment names with case-insensitive lookup."""

    def __init__(self, names: Iterable[str] = ()):
        self.names: List[str] = list(names)
        self._keys = frozenset(name.casefold() for name in self.names)

    def __len__(self):
        return len(self.names)

    def has_appointment(self, name: str) -> bool:
        """
        Check whether a name has an appointment, ignoring case.

        Args:
            name: Name claimed by the visitor

        Returns:
            True if an appointment record with that name exists
        """
        if name is None:
            return False
        return name.casefold() in self._keys


def load_appointments(path: Optional[Path] = None) -> AppointmentBook:
    """
    Load the appointment list from a JSON file.

    The file holds a list of records with at least a "Name" field:
    [{"Name": "Alice"}, {"Name": "Bob"}]

    Args:
        path: JSON file (defaults to config value)

    Returns:
        AppointmentBook with one entry per valid record

    Raises:
        AppointmentStoreError: if the file is missing or cannot be parsed
    """
    if path is None:
        path = APPOINTMENTS_FILE
    path = Path(path)

    if not path.exists():
        raise AppointmentStoreError(f"{path.name} file not found.")

    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, ValueError) as e:
        raise AppointmentStoreError(f"Failed to load {path.name}: {e}") from e

    if records is None:
        records = []
    if not isinstance(records, list):
        raise AppointmentStoreError(f"Failed to load {path.name}: expected a list of records")

    names = []
    for index, record in enumerate(records):
        name = record.get("Name") if isinstance(record, dict) else None
        if not isinstance(name, str):
            logger.warning(f"Skipping appointment record {index} without a Name")
            continue
        names.append(name)

    logger.info(f"Loaded {len(names)} appointment(s) from {path}")
    return AppointmentBook(names)


def format_reason_line(reason: str, when: Optional[datetime] = None) -> str:
    """
    Format one reason-log entry.

    Line breaks inside the reason are collapsed so every visit stays on a
    single line.

    Args:
        reason: Free-text reason entered by the visitor
        when: Timestamp of the visit (defaults to now)

    Returns:
        "YYYY-MM-DD HH:MM:SS - Reason: <text>" without a trailing newline
    """
    if when is None:
        when = datetime.now()
    text = " ".join(reason.splitlines())
    return f"{when.strftime(REASON_TIMESTAMP_FORMAT)} - Reason: {text}"


def log_visit_reason(reason: Optional[str], path: Optional[Path] = None,
                     when: Optional[datetime] = None) -> bool:
    """
    Append a timestamped reason-for-visit line to the reason log.

    Blank reasons are not recorded. Write failures are logged and
    otherwise ignored so the visit can proceed.

    Returns:
        True if a line was written
    """
    if reason is None or not reason.strip():
        return False

    if path is None:
        path = REASON_LOG_FILE

    line = format_reason_line(reason, when)
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError as e:
        logger.warning(f"Could not write visit reason to {path}: {e}")
        return False

    return True

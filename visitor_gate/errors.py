"""Exceptions raised by the visitor gate."""


class VisitorGateError(RuntimeError):
    """Base class for visitor gate errors."""


class GalleryNotFoundError(VisitorGateError):
    """The known-faces directory does not exist."""


class NoEnrollmentDataError(VisitorGateError):
    """No gallery image produced a usable face, so nothing was trained."""


class AppointmentStoreError(VisitorGateError):
    """The appointment list is missing or cannot be parsed."""


class CameraUnavailableError(VisitorGateError):
    """The camera device could not be opened."""


class ProtocolBusyError(VisitorGateError):
    """A verification was started while another one is still pending."""

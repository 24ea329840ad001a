# devcom/Core/exceptions.py

"""
Error taxonomy of the device communication pipeline.

    FramingError        oversized/malformed frame -> terminate the session
    ProtocolError       bounded frame with bad content -> drop frame, keep session
    AuthenticationError unknown identifier or disallowed source -> drop frame,
                        session policy decides keep/terminate
    StorageError        the sink rejected a commit -> fix lost, logged, no retry

No acknowledgement is ever sent to a device after any of these.
"""


class DeviceCommError(Exception):
    """Base class for every pipeline error."""


class FramingError(DeviceCommError):
    pass


class ProtocolError(DeviceCommError):
    pass


class AuthenticationError(DeviceCommError):
    def __init__(self, message: str, identifier: str = ""):
        super().__init__(message)
        self.identifier = identifier


class StorageError(DeviceCommError):
    def __init__(self, message: str, duplicate: bool = False):
        super().__init__(message)
        self.duplicate = duplicate


class EventSealedError(DeviceCommError):
    """Raised when a GPSEvent is modified after it was handed to the sink."""

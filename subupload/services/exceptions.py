"""Upload pipeline exceptions."""


class UploadError(Exception):
    """Base exception for upload pipeline errors."""

    pass


class TooSmallError(UploadError):
    """Raised when a video file is too small to be fingerprinted."""

    pass


class ValidationError(UploadError):
    """Raised when an upload intent has missing or contradictory fields."""

    pass


class ParseError(UploadError):
    """Raised when a string-encoded numeric field from negotiation is malformed."""

    pass


class AuthError(UploadError):
    """Raised when login fails."""

    def __init__(self, message: str, status: str = ""):
        super().__init__(message)
        self.status = status


class UnauthorizedError(AuthError):
    """Raised when the remote rejects the credentials."""

    pass


class UnknownClientError(AuthError):
    """Raised when the remote rejects the client user agent."""

    pass


class NotLoggedInError(UploadError):
    """Raised when an operation needs a session and there is none."""

    pass


class DuplicateError(UploadError):
    """Raised when the subtitle is already known or the remote declined to proceed."""

    pass


class RemoteError(UploadError):
    """Raised when a call completes with a non-success status."""

    def __init__(self, message: str, status: str = ""):
        super().__init__(message)
        self.status = status


class UnexpectedResponseError(UploadError):
    """Raised when a response does not match any known shape."""

    def __init__(self, message: str, raw=None):
        super().__init__(message)
        self.raw = raw

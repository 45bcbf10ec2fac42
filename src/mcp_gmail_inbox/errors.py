"""Exceptions raised inside tool handlers and turned into error results."""


class GmailToolError(Exception):
    """Base class for failures reported back to the caller as a tool result."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ArgumentError(GmailToolError):
    """A required argument is missing or has the wrong shape."""


class CredentialError(GmailToolError):
    """OAuth client id or secret is not configured."""


class RemoteApiError(GmailToolError):
    """The Google API answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

"""Errors raised by the tracking and ticket system services"""


class EntryValidationError(Exception):
    """Entry rejected before anything was written or sent anywhere."""


class EntryNotFoundError(LookupError):
    """No entry with the given id for the acting user."""


class JiraApiError(Exception):
    """Base class for failures talking to a remote ticket system."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteUnavailable(JiraApiError):
    """Transport error or unexpected server response."""


class RemoteValidationError(JiraApiError):
    """The remote side (or our own pre-check) rejected the request payload."""


class JiraResourceNotFoundError(JiraApiError):
    """404 on a ticket or work log."""


class JiraConfigurationError(JiraApiError):
    """Ticket system settings cannot be used for OAuth (e.g. broken certificate)."""


class JiraUnauthorizedError(JiraApiError):
    """401 from Jira.

    Only used inside the remote client; public client operations turn it into
    a NeedsReauthorization result.
    """

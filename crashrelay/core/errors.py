"""Exception taxonomy for the crashrelay adapters.

Verification probes catch these and convert them to a boolean result.
Issue creation, reconciliation and event delivery let them propagate so the
upstream dispatcher knows the side effect did not happen.
"""


class CrashRelayError(Exception):
    """Base class for all crashrelay errors."""


class MalformedUrlError(CrashRelayError, ValueError):
    """An operator-supplied URL cannot be resolved to a tracker project."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed project URL {url!r}: {reason}")


class TransportError(CrashRelayError):
    """Network-level failure (connection refused, DNS, timeout)."""


class HttpStatusError(CrashRelayError):
    """The remote service answered with a non-2xx status code."""

    def __init__(self, status_code: int, body: str, message: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"Status: {status_code}, Body: {body}")


class IssueCreateError(CrashRelayError):
    """Creating a tracker issue failed."""


class IssueCreateHttpError(IssueCreateError):
    """The tracker rejected the issue-creation request."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Jira Issue Create Failed. Status: {status_code}, Body: {body}"
        )


class IssueCreateClientError(IssueCreateError):
    """Issue creation failed before or outside an HTTP exchange."""

    def __init__(self, original: str):
        self.original = original
        super().__init__(f"Jira Issue Create Failed: {original}")


class IssueNotFoundError(HttpStatusError):
    """A tracker issue could not be fetched."""

    def __init__(self, key: str, status_code: int = 0, body: str = ""):
        self.key = key
        if status_code:
            message = f"Issue {key} not found. Status: {status_code}, Body: {body}"
        else:
            message = f"Issue {key} not found"
        super().__init__(status_code, body, message)


class TransitionError(HttpStatusError):
    """The tracker rejected a workflow transition request."""

    def __init__(self, issue_id: str, transition_id: str, status_code: int, body: str):
        self.issue_id = issue_id
        self.transition_id = transition_id
        super().__init__(
            status_code,
            body,
            f"Transition {transition_id} failed for issue {issue_id}. "
            f"Status: {status_code}, Body: {body}",
        )


class NotificationDeliveryError(CrashRelayError):
    """A simple adapter could not deliver an event to its channel."""


class UnsupportedEventError(CrashRelayError):
    """The adapter does not handle the requested event."""

    def __init__(self, adapter: str, event: str):
        self.adapter = adapter
        self.event = event
        super().__init__(f"Adapter {adapter!r} does not handle event {event!r}")


class UnknownAdapterError(CrashRelayError, KeyError):
    """No adapter is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown adapter: {name}")

    def __str__(self) -> str:
        return f"Unknown adapter: {self.name}"


__all__ = [
    "CrashRelayError",
    "HttpStatusError",
    "IssueCreateClientError",
    "IssueCreateError",
    "IssueCreateHttpError",
    "IssueNotFoundError",
    "MalformedUrlError",
    "NotificationDeliveryError",
    "TransitionError",
    "TransportError",
    "UnknownAdapterError",
    "UnsupportedEventError",
]

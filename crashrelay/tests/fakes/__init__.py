"""Fake/mock implementations for testing.

These in-memory implementations allow core domain logic and adapters to be
tested without external dependencies:

- FakeNotificationAdapter: Captured events for assertion (required events)
- FakeTrackerAdapter: Also handles the optional tracker events
- FakeJiraServer: In-memory Jira REST API behind httpx.MockTransport
"""

from .jira import FakeJiraServer, jira_issue_data
from .notification import FakeNotificationAdapter, FakeTrackerAdapter

__all__ = [
    "FakeJiraServer",
    "FakeNotificationAdapter",
    "FakeTrackerAdapter",
    "jira_issue_data",
]

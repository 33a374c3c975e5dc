"""Jira notification adapter.

Implements NotificationAdapter by creating Jira issues for new crash
issues and keeping each issue's resolution in step with the crash's
resolution status.

The adapter is stateless: every call resolves the project URL, builds its
own client and closes it before returning. Reconciliation therefore reads
the live issue every time and transitions it only when the tracker
disagrees with the crash's status.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from crashrelay.core.errors import (
    HttpStatusError,
    IssueCreateClientError,
    IssueCreateHttpError,
    IssueNotFoundError,
)
from crashrelay.core.formatting import issue_description, issue_summary
from crashrelay.core.models import (
    ConfigField,
    CrashPayload,
    CreatedIssue,
    NoOp,
    RemoteIssue,
    VerificationResult,
)
from crashrelay.core.ports import NotificationAdapter
from crashrelay.core.reconciliation import decide_transition

from .jira_client import (
    DEFAULT_TIMEOUT_SECONDS,
    JiraClient,
    JiraCredentials,
    build_client,
    resolve_project,
)

logger = logging.getLogger(__name__)

BUG_ISSUE_TYPE_ID = "1"

VERIFY_SUCCESS = "Successfully verified Jira settings"
VERIFY_FAILURE = "Oops! Please check your settings again."

# Key under which the issue_impact_change result is saved by the host
STORY_ID_KEY = "jira_story_id"


async def create_issue(client: JiraClient, payload: CrashPayload) -> CreatedIssue:
    """Create a Bug in the client's project describing the crash.

    Raises:
        IssueCreateHttpError: Jira answered with a non-2xx status.
        IssueCreateClientError: Anything else went wrong.
    """
    try:
        project = await client.get_project()
        fields = {
            "project": {"id": str(project["id"])},
            "summary": issue_summary(payload),
            "description": issue_description(payload),
            "issuetype": {"id": BUG_ISSUE_TYPE_ID},
        }
        return await client.create_issue(fields)
    except HttpStatusError as e:
        raise IssueCreateHttpError(e.status_code, e.body) from e
    except Exception as e:
        raise IssueCreateClientError(str(e)) from e


async def fetch_issue(client: JiraClient, key: str) -> RemoteIssue:
    """Fetch the remote issue by key.

    Raises:
        IssueNotFoundError: Jira answered with a non-2xx status.
        TransportError: On network failure.
    """
    return await client.fetch_issue(key)


async def reconcile(
    client: JiraClient, key: str, payload: CrashPayload
) -> dict[str, Any] | bool:
    """Align the issue's resolution with the crash's resolution.

    Returns:
        True if no transition was needed, otherwise the issue as re-read
        after the transition.

    Raises:
        IssueNotFoundError: The issue cannot be fetched.
        TransitionError: Jira rejected the transition.
        TransportError: On network failure.
    """
    issue = await fetch_issue(client, key)
    decision = decide_transition(payload.locally_resolved, issue.remotely_resolved)
    if isinstance(decision, NoOp):
        logger.debug(
            f"Issue {issue.key} already agrees with crash status",
            extra={"issue_key": issue.key, "resolved": payload.locally_resolved},
        )
        return True

    await client.transition_issue(issue.id, decision)
    logger.info(
        f"Transitioned Jira issue {issue.key} ({type(decision).__name__.lower()})",
        extra={"issue_key": issue.key, "transition_id": decision.transition_id},
    )

    refreshed = await fetch_issue(client, key)
    return refreshed.as_dict()


class JiraNotificationAdapter(NotificationAdapter):
    """Creates and reconciles Jira issues for crash issues."""

    name = "jira"
    title = "Jira"
    config_fields = (
        ConfigField(
            "project_url",
            "string",
            label="URL to your Jira project:",
            placeholder="https://example.atlassian.net/browse/PROJECT",
        ),
        ConfigField("username", "string", label="Username:"),
        ConfigField("password", "password", label="Password:"),
        ConfigField("api_token", "password", label="API token (instead of a password):"),
    )

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Jira notification adapter.

        Args:
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport shared by every client
                this adapter builds.
        """
        self.timeout = timeout
        self.transport = transport

    def jira_client(self, config: Mapping[str, Any]) -> JiraClient:
        """Build a client handle from the operator's configuration.

        Raises:
            MalformedUrlError: If project_url cannot be resolved.
        """
        reference = resolve_project(config.get("project_url") or "")
        return build_client(
            reference,
            JiraCredentials.from_config(config),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def receive_verification(
        self, config: Mapping[str, Any], payload: Mapping[str, Any] | None
    ) -> VerificationResult:
        """Verify the settings by looking up the configured project."""
        try:
            async with self.jira_client(config) as client:
                await client.get_project()
        except Exception as e:
            logger.warning(
                f"Rescued a verification error in jira: {e}",
                extra={"project_url": config.get("project_url")},
            )
            return False, VERIFY_FAILURE
        return True, VERIFY_SUCCESS

    async def receive_issue_impact_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, str]:
        """Create a Jira issue for a new crash issue."""
        crash = CrashPayload.from_mapping(payload)
        try:
            client = self.jira_client(config)
        except Exception as e:
            raise IssueCreateClientError(str(e)) from e

        async with client:
            created = await create_issue(client, crash)

        logger.info(
            f"Created Jira issue {created.story_key}",
            extra={"story_id": created.story_id, "story_key": created.story_key},
        )
        return created.as_result()

    async def receive_issue_integration_request(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, Any] | bool:
        """Return the linked Jira issue, or False if it cannot be fetched."""
        crash = CrashPayload.from_mapping(payload)
        story_id = crash.hook_value("issue_impact_change", STORY_ID_KEY)
        if not story_id:
            logger.warning("No linked Jira issue in service hook")
            return False

        try:
            async with self.jira_client(config) as client:
                issue = await fetch_issue(client, str(story_id))
        except Exception as e:
            logger.warning(
                f"Failed to fetch Jira issue {story_id}: {e}",
                extra={"story_id": story_id},
            )
            return False
        return issue.as_dict()

    async def receive_issue_resolution_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, Any] | bool:
        """Resolve or reopen the linked Jira issue to match the crash."""
        crash = CrashPayload.from_mapping(payload)
        story_id = crash.hook_value("issue_impact_change", STORY_ID_KEY)
        if not story_id:
            raise IssueNotFoundError("<unlinked>")

        async with self.jira_client(config) as client:
            return await reconcile(client, str(story_id), crash)

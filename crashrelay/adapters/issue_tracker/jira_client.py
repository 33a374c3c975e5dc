"""Jira REST client used by the Jira notification adapter.

Builds a client handle from an operator-supplied project URL: the URL's
scheme decides encryption and peer verification, its context path becomes
part of every request path. Only the calls the adapter needs are
implemented (project lookup, issue create, issue fetch, transition).
"""

import logging
from collections.abc import Generator, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from crashrelay.core.errors import (
    HttpStatusError,
    IssueNotFoundError,
    MalformedUrlError,
    TransitionError,
    TransportError,
)
from crashrelay.core.models import (
    CreatedIssue,
    ParsedProjectUrl,
    ProjectReference,
    RemoteIssue,
    Reopen,
    Resolve,
)
from crashrelay.core.reconciliation import transition_body
from crashrelay.core.url_resolver import parse_url

logger = logging.getLogger(__name__)

REST_API_PATH = "/rest/api/2"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class JiraCredentials:
    """Credential material from the operator's adapter configuration."""

    username: str = ""
    password: str = field(default="", repr=False)
    api_token: str = field(default="", repr=False)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "JiraCredentials":
        return cls(
            username=config.get("username") or "",
            password=config.get("password") or "",
            api_token=config.get("api_token") or "",
        )

    def auth(self) -> httpx.Auth | None:
        """httpx auth for these credentials.

        username + password, or username + api_token, authenticate with
        HTTP Basic; a bare api_token is sent as a Bearer token.
        """
        if self.username and (self.password or self.api_token):
            return httpx.BasicAuth(self.username, self.password or self.api_token)
        if self.api_token:
            return BearerAuth(self.api_token)
        return None


class BearerAuth(httpx.Auth):
    """Personal access token authentication."""

    def __init__(self, token: str):
        self._token = token

    def __repr__(self) -> str:
        return "BearerAuth(token=***)"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


def json_object(response: httpx.Response) -> dict[str, Any] | None:
    """Decode a JSON object body, or None when the body is anything else.

    A Jira behind a login proxy can answer 200 with an HTML page.
    """
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def configure_transport(parsed: ParsedProjectUrl) -> ProjectReference:
    """Derive transport settings from a parsed project URL.

    Plain ``http`` disables both encryption and certificate checks;
    ``https`` always verifies the peer.

    Raises:
        MalformedUrlError: If the scheme is neither http nor https.
    """
    if parsed.scheme == "https":
        use_encryption, verify_peer = True, True
    elif parsed.scheme == "http":
        use_encryption, verify_peer = False, False
    else:
        raise MalformedUrlError(parsed.base_address, f"unsupported scheme {parsed.scheme!r}")

    return ProjectReference(
        base_address=parsed.base_address,
        path_prefix=parsed.path_prefix,
        project_or_issue_key=parsed.project_or_issue_key,
        use_encryption=use_encryption,
        verify_peer=verify_peer,
    )


def resolve_project(project_url: str) -> ProjectReference:
    """Parse a project URL and derive its transport settings."""
    return configure_transport(parse_url(project_url))


def build_client(
    reference: ProjectReference,
    credentials: JiraCredentials,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> "JiraClient":
    """Build a client handle routed under the reference's context path."""
    return JiraClient(reference, credentials, timeout=timeout, transport=transport)


class JiraClient:
    """Handle for the Jira REST API of one project.

    Use as an async context manager; the underlying connection pool is
    opened on entry and closed on exit.
    """

    def __init__(
        self,
        reference: ProjectReference,
        credentials: JiraCredentials,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client handle.

        Args:
            reference: Resolved project URL with transport settings.
            credentials: Operator credentials; never logged.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.reference = reference
        self.credentials = credentials
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def options(self) -> dict[str, Any]:
        """Effective connection options."""
        return {
            "site": self.reference.base_address,
            "context_path": self.reference.path_prefix,
            "rest_base_path": f"{self.reference.path_prefix}{REST_API_PATH}",
            "use_ssl": self.reference.use_encryption,
            "verify_peer": self.reference.verify_peer,
        }

    @property
    def project_key(self) -> str:
        return self.reference.project_or_issue_key

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client.

        Returns:
            httpx.AsyncClient configured with Jira authentication.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.reference.site}{REST_API_PATH}",
                headers={"Accept": "application/json"},
                auth=self.credentials.auth(),
                verify=self.reference.verify_peer,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JiraClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request, turning network failures into TransportError."""
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json, params=params)
        except httpx.RequestError as e:
            logger.error(
                f"Jira request failed: {method} {path}: {e}",
                extra={"site": self.reference.site},
            )
            raise TransportError(f"{method} {path} failed: {e}") from e

        logger.debug(
            f"Jira {method} {path} -> {response.status_code}",
            extra={"site": self.reference.site, "status_code": response.status_code},
        )
        return response

    async def get_project(self, key: str | None = None) -> dict[str, Any]:
        """Look up a project by key.

        Raises:
            HttpStatusError: On a non-2xx response or an unusable body.
            TransportError: On network failure.
        """
        key = key or self.project_key
        response = await self._request("GET", f"/project/{key}")
        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text)
        if not response.content:
            return {}
        data = json_object(response)
        if data is None:
            raise HttpStatusError(
                response.status_code,
                response.text,
                f"Unexpected project response. Status: {response.status_code}, Body: {response.text}",
            )
        return data

    async def create_issue(self, fields: Mapping[str, Any]) -> CreatedIssue:
        """Create an issue from a ``fields`` map.

        Raises:
            HttpStatusError: On a non-2xx response or an unusable body.
            TransportError: On network failure.
        """
        response = await self._request("POST", "/issue", json={"fields": dict(fields)})
        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text)
        data = json_object(response)
        if data is None or "id" not in data or "key" not in data:
            raise HttpStatusError(
                response.status_code,
                response.text,
                f"Unexpected create response. Status: {response.status_code}, Body: {response.text}",
            )
        return CreatedIssue(story_id=str(data["id"]), story_key=str(data["key"]))

    async def fetch_issue(self, key: str) -> RemoteIssue:
        """Fetch the current state of an issue by id or key.

        Raises:
            IssueNotFoundError: On a non-2xx response or a body that is
                not a JSON object.
            TransportError: On network failure.
        """
        response = await self._request("GET", f"/issue/{key}")
        if not response.is_success:
            raise IssueNotFoundError(key, response.status_code, response.text)
        data = json_object(response)
        if data is None:
            raise IssueNotFoundError(key, response.status_code, response.text)
        return RemoteIssue.from_api(data)

    async def transition_issue(self, issue_id: str, decision: Resolve | Reopen) -> None:
        """Apply a workflow transition with its comment.

        The response body is not used; callers re-fetch the issue.

        Raises:
            TransitionError: On a non-2xx response.
            TransportError: On network failure.
        """
        response = await self._request(
            "POST",
            f"/issue/{issue_id}/transitions",
            json=transition_body(decision),
            params={"expand": "transitions.fields"},
        )
        if not response.is_success:
            raise TransitionError(
                issue_id, decision.transition_id, response.status_code, response.text
            )

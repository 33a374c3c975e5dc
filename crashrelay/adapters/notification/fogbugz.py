"""FogBugz notification adapter.

Implements NotificationAdapter by opening a FogBugz case for each new
crash issue through the XML ``api.asp`` endpoint.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from lxml import etree

from crashrelay.core.errors import NotificationDeliveryError, TransportError
from crashrelay.core.formatting import issue_description, issue_summary
from crashrelay.core.models import ConfigField, CrashPayload, VerificationResult
from crashrelay.core.ports import NotificationAdapter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

VERIFY_SUCCESS = "Successfully verified Fogbugz settings"
VERIFY_FAILURE = "Oops! Please check your API key again."


def parse_response(
    body: bytes, subject_path: str
) -> tuple[etree._Element | None, etree._Element | None]:
    """Find the subject and error elements of an api.asp response.

    Args:
        body: Raw XML response body.
        subject_path: Path below <response>, e.g. "case" or "projects".

    Returns:
        (subject, error); either may be None. Both are None if the body is
        not a FogBugz XML response.
    """
    try:
        root = etree.fromstring(body)
    except etree.XMLSyntaxError:
        return None, None
    if root.tag != "response":
        return None, None
    return root.find(subject_path), root.find("error")


def _error_text(error: etree._Element | None) -> str:
    if error is None:
        return "no response"
    return (error.text or "").strip() or etree.tostring(error, encoding="unicode")


class FogBugzNotificationAdapter(NotificationAdapter):
    """Opens FogBugz cases for crash issues."""

    name = "fogbugz"
    title = "FogBugz"
    config_fields = (
        ConfigField(
            "project_url",
            "string",
            label="URL to your FogBugz project:",
            placeholder="https://yourproject.fogbugz.com",
        ),
        ConfigField(
            "api_token",
            "password",
            label="Your FogBugz API Token.",
            placeholder="API Token",
        ),
    )

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize FogBugz notification adapter.

        Args:
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def fogbugz_url(config: Mapping[str, Any]) -> str:
        return f"{(config.get('project_url') or '').rstrip('/')}/api.asp"

    @staticmethod
    def _params(config: Mapping[str, Any], cmd: str) -> dict[str, str]:
        return {"token": config.get("api_token") or "", "cmd": cmd}

    async def _send(
        self,
        config: Mapping[str, Any],
        cmd: str,
        form: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Call one api.asp command; GET without a form, POST with one.

        Raises:
            NotificationDeliveryError: If no project URL is configured.
            TransportError: On network failure.
        """
        if not config.get("project_url"):
            raise NotificationDeliveryError("FogBugz project URL is not configured")

        method = "POST" if form else "GET"
        try:
            # Peer verification is always on for FogBugz
            async with httpx.AsyncClient(
                timeout=self.timeout, verify=True, transport=self.transport
            ) as client:
                return await client.request(
                    method,
                    self.fogbugz_url(config),
                    params=self._params(config, cmd),
                    data=dict(form) if form else None,
                )
        except httpx.RequestError as e:
            raise TransportError(f"FogBugz {cmd} failed: {e}") from e

    async def receive_verification(
        self, config: Mapping[str, Any], payload: Mapping[str, Any] | None
    ) -> VerificationResult:
        """List projects to check the URL and API token."""
        try:
            response = await self._send(config, "listProjects")
        except Exception as e:
            logger.warning(f"Rescued a verification error in fogbugz: {e}")
            return False, VERIFY_FAILURE

        projects, error = parse_response(response.content, "projects")
        if projects is not None and error is None:
            return True, VERIFY_SUCCESS

        if error is not None:
            logger.warning(
                f"FogBugz verification failed: Error code {error.get('code')}",
                extra={"error": _error_text(error)},
            )
        else:
            logger.warning(
                f"FogBugz verification failed: status {response.status_code}",
                extra={"status_code": response.status_code},
            )
        return False, VERIFY_FAILURE

    async def receive_issue_impact_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, str]:
        """Open a case describing the crash issue."""
        crash = CrashPayload.from_mapping(payload)
        form = {
            "sTitle": issue_summary(crash),
            "sEvent": issue_description(crash),
        }

        response = await self._send(config, "new", form)
        case, error = parse_response(response.content, "case")
        if case is None or error is not None:
            raise NotificationDeliveryError(
                f"Could not create FogBugz case: Response: {_error_text(error)}"
            )

        case_number = case.get("ixBug") or ""
        logger.info(
            f"Created FogBugz case {case_number}",
            extra={"fogbugz_case_number": case_number},
        )
        return {"fogbugz_case_number": case_number}

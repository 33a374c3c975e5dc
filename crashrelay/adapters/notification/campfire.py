"""Campfire notification adapter.

Implements NotificationAdapter by speaking a one-line message into a
named room of a Campfire account. The room is looked up by name on every
call; its id is never cached.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from crashrelay.core.errors import HttpStatusError, NotificationDeliveryError, TransportError
from crashrelay.core.formatting import chat_message
from crashrelay.core.models import ConfigField, CrashPayload, VerificationResult
from crashrelay.core.ports import NotificationAdapter

from .web_hook import error_response_details

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

CAMPFIRE_URL_TEMPLATE = "https://{subdomain}.campfirenow.com"
# Campfire takes the API token as the Basic auth user; the password is ignored
TOKEN_PASSWORD = "X"

VERIFY_SUCCESS = "Successfully verified Campfire settings"


def room_not_found_message(room: str) -> str:
    return f"Oops! Can not find {room} room. Please check your settings."


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        raise HttpStatusError(
            response.status_code,
            response.text,
            f"Unexpected Campfire response. Status: {response.status_code}, Body: {response.text}",
        )
    return data


class CampfireNotificationAdapter(NotificationAdapter):
    """Announces crash issues in a Campfire room."""

    name = "campfire"
    title = "Campfire"
    config_fields = (
        ConfigField(
            "subdomain",
            "string",
            label="Your Campfire subdomain:",
            placeholder="yourcompany",
        ),
        ConfigField("room", "string", label="Room name:"),
        ConfigField(
            "api_token",
            "password",
            label="Your Campfire API Token.",
            placeholder="API Token",
        ),
    )

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Campfire notification adapter.

        Args:
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.timeout = timeout
        self.transport = transport

    def campfire_client(self, config: Mapping[str, Any]) -> httpx.AsyncClient:
        """Client for the account named by the configured subdomain.

        Raises:
            NotificationDeliveryError: If no subdomain is configured.
        """
        subdomain = (config.get("subdomain") or "").strip()
        if not subdomain:
            raise NotificationDeliveryError("Campfire subdomain is not configured")

        return httpx.AsyncClient(
            base_url=CAMPFIRE_URL_TEMPLATE.format(subdomain=subdomain),
            headers={"Accept": "application/json"},
            auth=httpx.BasicAuth(config.get("api_token") or "", TOKEN_PASSWORD),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def find_room(self, client: httpx.AsyncClient, room: str) -> dict[str, Any] | None:
        """Find a room by exact name.

        Returns:
            The room as listed by Campfire, or None if no room has that name.

        Raises:
            HttpStatusError: If the room listing is refused or unreadable.
            TransportError: On network failure.
        """
        try:
            response = await client.get("/rooms.json")
        except httpx.RequestError as e:
            raise TransportError(f"Campfire room lookup failed: {e}") from e
        if not response.is_success:
            raise HttpStatusError(response.status_code, response.text)

        rooms = _json_object(response).get("rooms") or []
        for candidate in rooms:
            if isinstance(candidate, Mapping) and candidate.get("name") == room:
                return dict(candidate)
        return None

    async def speak(self, client: httpx.AsyncClient, room_id: Any, body: str) -> Any:
        """Post a text message to a room and return the new message id.

        Raises:
            NotificationDeliveryError: If Campfire does not accept the message.
            TransportError: On network failure.
        """
        try:
            response = await client.post(
                f"/room/{room_id}/speak.json",
                json={"message": {"body": body, "type": "TextMessage"}},
            )
        except httpx.RequestError as e:
            raise TransportError(f"Campfire message delivery failed: {e}") from e
        if not response.is_success:
            raise NotificationDeliveryError(
                f"Failed to send Campfire message - {error_response_details(response)}"
            )

        try:
            message = _json_object(response).get("message")
        except HttpStatusError as e:
            raise NotificationDeliveryError(f"Failed to send Campfire message - {e}") from e
        if not isinstance(message, Mapping) or message.get("id") is None:
            raise NotificationDeliveryError(
                f"Failed to send Campfire message - no message id in {response.text}"
            )
        return message["id"]

    async def receive_verification(
        self, config: Mapping[str, Any], payload: Mapping[str, Any] | None
    ) -> VerificationResult:
        """Check that the configured room can be found."""
        room_name = config.get("room") or ""
        try:
            async with self.campfire_client(config) as client:
                room = await self.find_room(client, room_name)
        except Exception as e:
            logger.warning(
                f"Rescued a verification error in campfire: {e}",
                extra={"subdomain": config.get("subdomain")},
            )
            room = None

        if room is None:
            return False, room_not_found_message(room_name)
        return True, VERIFY_SUCCESS

    async def receive_issue_impact_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Announce the crash issue in the configured room."""
        crash = CrashPayload.from_mapping(payload)
        room_name = config.get("room") or ""

        async with self.campfire_client(config) as client:
            room = await self.find_room(client, room_name)
            if room is None:
                raise NotificationDeliveryError(room_not_found_message(room_name))
            message_id = await self.speak(client, room.get("id"), chat_message(crash))

        logger.info(
            f"Posted Campfire message {message_id} to {room_name}",
            extra={"campfire_message_id": message_id},
        )
        return {"campfire_message_id": message_id}

"""HTTP webhook receiver for crash events.

Turns a decoded JSON request from the monitoring system into one dispatch
through the EventDispatchPort. Transport concerns (status codes, auth,
body limits) belong to http_server.py.

Request body:

    {
        "adapter": "jira",
        "event": "issue_impact_change",
        "config": {"project_url": "...", "username": "...", "password": "..."},
        "payload": {...}
    }
"""

import logging
from collections.abc import Mapping
from typing import Any

from crashrelay.core.ports import EventDispatchPort

logger = logging.getLogger(__name__)


class EventReceiver:
    """Forwards webhook requests to the EventDispatchPort."""

    def __init__(self, dispatch_port: EventDispatchPort):
        """Initialize the event receiver.

        Args:
            dispatch_port: EventDispatchPort implementation for routing events.
        """
        self.dispatch_port = dispatch_port

    async def handle_event(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Handle one inbound crash event.

        Args:
            data: Decoded request body.

        Returns:
            Dictionary with the adapter's result.

        Raises:
            ValueError: If the request is missing fields or has the wrong shape.
            CrashRelayError: Propagated from the dispatcher or adapter.
        """
        adapter_name = data.get("adapter")
        event = data.get("event")
        if not isinstance(adapter_name, str) or not adapter_name:
            raise ValueError("Missing adapter")
        if not isinstance(event, str) or not event:
            raise ValueError("Missing event")

        config = data.get("config") or {}
        payload = data.get("payload") or {}
        if not isinstance(config, dict):
            raise ValueError("config must be a JSON object")
        if not isinstance(payload, dict):
            raise ValueError("payload must be a JSON object")

        result = await self.dispatch_port.dispatch(adapter_name, event, config, payload)
        logger.info(
            "Event handled via webhook",
            extra={"adapter": adapter_name, "event": event},
        )
        return {
            "status": "success",
            "operation": event,
            "adapter": adapter_name,
            "result": result,
        }

    def handle_list_request(self) -> dict[str, Any]:
        """Describe the registered adapters.

        Returns:
            Dictionary with one entry per adapter.
        """
        return {
            "status": "success",
            "operation": "list_adapters",
            "adapters": self.dispatch_port.list_adapters(),
        }

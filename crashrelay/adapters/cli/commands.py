"""CLI command implementations for crashrelay.

Lets an operator exercise adapters by hand: list what is registered,
verify a configuration, or dispatch a single event.

This adapter maps CLI commands to EventDispatchPort operations. It handles
CLI-specific formatting and error reporting.
"""

import logging
from collections.abc import Mapping
from typing import Any

from crashrelay.core.errors import CrashRelayError
from crashrelay.core.ports import EventDispatchPort

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to EventDispatchPort."""

    def __init__(self, dispatcher: EventDispatchPort):
        """Initialize the CLI command handler.

        Args:
            dispatcher: EventDispatchPort implementation to execute commands.
        """
        self.dispatcher = dispatcher

    def list_adapters(self, output_format: str = "json") -> dict[str, Any]:
        """List registered adapters.

        Args:
            output_format: Output format ('json', 'text'). Default 'json'.

        Returns:
            Dictionary with adapter descriptions, or rendered text.
        """
        adapters = self.dispatcher.list_adapters()
        if output_format == "text":
            return {
                "status": "success",
                "operation": "adapters",
                "data": self._format_adapters_text(adapters),
            }
        if output_format != "json":
            return {
                "status": "error",
                "operation": "adapters",
                "message": f"Unsupported format: {output_format}",
            }
        return {"status": "success", "operation": "adapters", "data": adapters}

    async def verify(
        self, adapter_name: str, config: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Verify an adapter configuration.

        Args:
            adapter_name: Registered adapter name.
            config: Adapter configuration to check.

        Returns:
            Dictionary with status and the adapter's verification message.
        """
        try:
            ok, message = await self.dispatcher.dispatch(
                adapter_name, "verification", config, {}
            )
        except CrashRelayError as e:
            logger.error(f"Failed to verify {adapter_name}: {e}")
            return {
                "status": "error",
                "operation": "verify",
                "adapter": adapter_name,
                "message": str(e),
            }

        return {
            "status": "success" if ok else "error",
            "operation": "verify",
            "adapter": adapter_name,
            "message": message,
        }

    async def dispatch_event(
        self,
        adapter_name: str,
        event: str,
        config: Mapping[str, Any],
        payload: Mapping[str, Any] | None = None,
        verbose: bool = False,
    ) -> dict[str, Any]:
        """Dispatch one event via CLI.

        Args:
            adapter_name: Registered adapter name.
            event: Event name (e.g. issue_impact_change).
            config: Adapter configuration.
            payload: Event body.
            verbose: If True, log the result.

        Returns:
            Dictionary with status and the adapter's result or error message.
        """
        try:
            result = await self.dispatcher.dispatch(adapter_name, event, config, payload)
        except CrashRelayError as e:
            logger.error(f"Failed to dispatch {event} to {adapter_name}: {e}")
            response: dict[str, Any] = {
                "status": "error",
                "operation": event,
                "adapter": adapter_name,
                "error": type(e).__name__,
                "message": str(e),
            }
            status_code = getattr(e, "status_code", None)
            if status_code:
                response["remote_status_code"] = status_code
            return response

        if verbose:
            logger.info(
                f"Dispatched {event} to {adapter_name}",
                extra={"result": result, "verbose": True},
            )

        return {
            "status": "success",
            "operation": event,
            "adapter": adapter_name,
            "result": result,
        }

    @staticmethod
    def _format_adapters_text(adapters: list[dict[str, Any]]) -> str:
        """Render adapter descriptions for the terminal."""
        lines = []
        for adapter in adapters:
            lines.append(f"{adapter['name']} ({adapter['title']})")
            lines.append(f"  events: {', '.join(adapter['events'])}")
            for config_field in adapter["config_fields"]:
                lines.append(f"  - {config_field['name']} [{config_field['kind']}]")
        return "\n".join(lines)

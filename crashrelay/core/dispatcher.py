"""Event dispatcher: implements EventDispatchPort for inbound crash events.

Routes each event from the monitoring system to the named adapter's
``receive_<event>`` operation. Holds the adapter registry and nothing else;
every dispatch is independent of the ones before it.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import UnknownAdapterError, UnsupportedEventError
from .ports import EVENT_NAMES, EventDispatchPort, NotificationAdapter

logger = logging.getLogger(__name__)


class EventDispatcher(EventDispatchPort):
    """Core implementation of EventDispatchPort."""

    def __init__(self, adapters: Iterable[NotificationAdapter]):
        """Initialize the dispatcher.

        Args:
            adapters: Adapter instances, registered under their ``name``.

        Raises:
            ValueError: If two adapters share a name or one has no name.
        """
        self.adapters: dict[str, NotificationAdapter] = {}
        for adapter in adapters:
            if not adapter.name:
                raise ValueError(f"{type(adapter).__name__} has no name")
            if adapter.name in self.adapters:
                raise ValueError(f"Duplicate adapter name: {adapter.name}")
            self.adapters[adapter.name] = adapter

    def get_adapter(self, adapter_name: str) -> NotificationAdapter:
        """Look up a registered adapter by name.

        Raises:
            UnknownAdapterError: If no adapter has that name.
        """
        try:
            return self.adapters[adapter_name]
        except KeyError:
            raise UnknownAdapterError(adapter_name) from None

    async def dispatch(
        self,
        adapter_name: str,
        event: str,
        config: Mapping[str, Any],
        payload: Mapping[str, Any] | None,
    ) -> Any:
        """Route one event to one adapter."""
        adapter = self.get_adapter(adapter_name)
        if event not in EVENT_NAMES or event not in adapter.supported_events():
            raise UnsupportedEventError(adapter_name, event)

        handler = getattr(adapter, f"receive_{event}")
        logger.info(
            f"Dispatching {event} to {adapter_name}",
            extra={"adapter": adapter_name, "event": event},
        )
        try:
            result = await handler(config or {}, payload or {})
        except Exception as e:
            logger.error(
                f"{adapter_name} failed to handle {event}: {e}",
                extra={"adapter": adapter_name, "event": event},
            )
            raise

        logger.debug(
            f"{adapter_name} handled {event}",
            extra={"adapter": adapter_name, "event": event},
        )
        return result

    def list_adapters(self) -> list[dict[str, Any]]:
        """Describe every registered adapter, sorted by name."""
        return [
            {
                "name": adapter.name,
                "title": adapter.title,
                "config_fields": [f.as_dict() for f in adapter.config_fields],
                "events": list(adapter.supported_events()),
            }
            for _, adapter in sorted(self.adapters.items())
        ]

    async def close(self) -> None:
        """Close every registered adapter."""
        for adapter in self.adapters.values():
            await adapter.close()

"""Port interfaces for the crashrelay system.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - NotificationAdapter: Relay a crash event to one third-party product

2. **Driving Ports** (adapters/external systems call into core)
   - EventDispatchPort: Entry point for inbound crash events
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from .errors import UnsupportedEventError
from .models import ConfigField, VerificationResult

# Event names the monitoring system delivers, mapped to receive_<event>.
EVENT_NAMES: tuple[str, ...] = (
    "verification",
    "issue_impact_change",
    "issue_integration_request",
    "issue_resolution_change",
)

REQUIRED_EVENTS: tuple[str, ...] = ("verification", "issue_impact_change")


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class NotificationAdapter(ABC):
    """Port for relaying crash events to a third-party product.

    Each adapter receives the operator's configuration for its product and
    the event payload on every call; adapters hold no state between calls.

    Implementations must handle:
    - Formatting the event for the target product
    - Mapping remote responses to the result conventions below
    - Keeping credentials out of logs
    """

    name: ClassVar[str] = ""
    title: ClassVar[str] = ""
    config_fields: ClassVar[tuple[ConfigField, ...]] = ()

    @abstractmethod
    async def receive_verification(
        self, config: Mapping[str, Any], payload: Mapping[str, Any] | None
    ) -> VerificationResult:
        """Check that the operator's settings are usable.

        Args:
            config: Operator configuration for this adapter.
            payload: Unused by most adapters.

        Returns:
            (True, success message) or (False, failure message).
            Never raises; a failed probe is reported, not propagated.
        """

    @abstractmethod
    async def receive_issue_impact_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> Any:
        """Relay a new or escalated crash issue.

        Args:
            config: Operator configuration for this adapter.
            payload: Crash event body.

        Returns:
            A map of remote identifiers to save, or NO_RESOURCE.

        Raises:
            CrashRelayError: If the event was not delivered. The caller
                decides on redelivery.
        """

    async def receive_issue_integration_request(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, Any] | bool:
        """Look up the remote record linked to a crash issue.

        Returns:
            The remote record as a map, or False if it cannot be fetched.
        """
        raise UnsupportedEventError(self.name, "issue_integration_request")

    async def receive_issue_resolution_change(
        self, config: Mapping[str, Any], payload: Mapping[str, Any]
    ) -> dict[str, Any] | bool:
        """Bring the remote record's resolution in line with the crash.

        Returns:
            True when nothing needed to change, otherwise the refreshed
            remote record.
        """
        raise UnsupportedEventError(self.name, "issue_resolution_change")

    def supported_events(self) -> tuple[str, ...]:
        """Event names this adapter handles."""
        optional = tuple(
            event
            for event in EVENT_NAMES
            if event not in REQUIRED_EVENTS
            and getattr(type(self), f"receive_{event}")
            is not getattr(NotificationAdapter, f"receive_{event}")
        )
        return REQUIRED_EVENTS + optional

    async def close(self) -> None:
        """Release resources held by the adapter, if any."""


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class EventDispatchPort(ABC):
    """Port for delivering inbound crash events to adapters.

    Driving port: the webhook server and the CLI call these methods.
    Implementations live in the core (dispatcher.py).
    """

    @abstractmethod
    async def dispatch(
        self,
        adapter_name: str,
        event: str,
        config: Mapping[str, Any],
        payload: Mapping[str, Any] | None,
    ) -> Any:
        """Route one event to one adapter.

        Args:
            adapter_name: Registered adapter name (e.g. "jira").
            event: Event name, one of EVENT_NAMES.
            config: Operator configuration for the adapter.
            payload: Event body.

        Returns:
            Whatever the adapter operation returns.

        Raises:
            UnknownAdapterError: If no adapter has that name.
            UnsupportedEventError: If the adapter does not handle the event.
            CrashRelayError: Propagated from the adapter operation.
        """

    @abstractmethod
    def list_adapters(self) -> list[dict[str, Any]]:
        """Describe every registered adapter.

        Returns:
            One dict per adapter with name, title, config_fields and events.
        """

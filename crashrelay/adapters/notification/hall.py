"""Hall notification adapter.

Implements NotificationAdapter by posting events to the Hall group
integration endpoint identified by the group's API token.
"""

from collections.abc import Mapping
from typing import Any

from crashrelay.core.models import ConfigField

from .web_hook import WebHookNotificationAdapter

HALL_API_URL = "https://hall.com/api/1/services/crashlytics"


class HallNotificationAdapter(WebHookNotificationAdapter):
    """Posts crash events to a Hall group room."""

    name = "hall"
    title = "Hall"
    config_fields = (
        ConfigField(
            "group_token",
            "password",
            label="Your Hall Group API Token.",
            placeholder="API Token",
        ),
    )

    verification_payload_type = "issue"
    verify_success = "Successfully verified Hall settings"
    verify_failure = "Oops! Please check your Group API Token."
    delivery_failure = "Failed to send Hall message"

    def event_url(self, config: Mapping[str, Any]) -> str:
        return f"{HALL_API_URL}/{config.get('group_token') or ''}"

"""Text templates shared by the issue-creating adapters."""

from .models import CrashPayload

SUMMARY_SUFFIX = "[Crashlytics]"


def issue_summary(payload: CrashPayload) -> str:
    """Issue title, tagged so tracker users can tell where it came from."""
    return f"{payload.title} {SUMMARY_SUFFIX}"


def _users_clause(count: int) -> str:
    if count == 1:
        return "This issue is affecting at least 1 user who has crashed "
    return f"This issue is affecting at least {count} users who have crashed "


def _crashes_clause(count: int) -> str:
    if count == 1:
        return "at least 1 time."
    return f"at least {count} times."


def issue_description(payload: CrashPayload) -> str:
    """Multi-line issue body describing the crash and where to read more."""
    lines = [
        "Crashlytics detected a new issue.",
        f"{payload.title} in {payload.method}",
        "",
        _users_clause(payload.impacted_devices_count)
        + _crashes_clause(payload.crashes_count),
        "",
        f"More information: {payload.url}",
    ]
    return "\n".join(lines) + "\n"


def chat_message(payload: CrashPayload) -> str:
    """Single-line announcement for chat rooms."""
    app_name = payload.app.get("name") or "Unknown app"
    return (
        f"[{app_name}] New issue: {payload.title} in {payload.method}. "
        + _users_clause(payload.impacted_devices_count)
        + _crashes_clause(payload.crashes_count)
        + f" More information: {payload.url}"
    )

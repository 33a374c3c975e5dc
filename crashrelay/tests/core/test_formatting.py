"""Tests for issue summary, description and chat message templates."""

from crashrelay.core.formatting import chat_message, issue_description, issue_summary
from crashrelay.core.models import CrashPayload


def _payload(devices: int = 1, crashes: int = 1) -> CrashPayload:
    return CrashPayload(
        title="foo title",
        method="method name",
        impacted_devices_count=devices,
        crashes_count=crashes,
        url="http://foo.com/bar",
    )


class TestIssueSummary:
    def test_summary_is_tagged(self):
        assert issue_summary(_payload()) == "foo title [Crashlytics]"


class TestIssueDescription:
    def test_singular_counts(self):
        assert issue_description(_payload()) == (
            "Crashlytics detected a new issue.\n"
            "foo title in method name\n\n"
            "This issue is affecting at least 1 user who has crashed at least 1 time.\n\n"
            "More information: http://foo.com/bar\n"
        )

    def test_plural_counts(self):
        description = issue_description(_payload(devices=16, crashes=32))

        assert (
            "This issue is affecting at least 16 users who have crashed at least 32 times."
            in description
        )

    def test_mixed_counts(self):
        description = issue_description(_payload(devices=1, crashes=3))

        assert "at least 1 user who has crashed at least 3 times." in description

    def test_zero_counts_are_plural(self):
        description = issue_description(_payload(devices=0, crashes=0))

        assert "at least 0 users who have crashed at least 0 times." in description


class TestChatMessage:
    def test_names_the_app(self):
        payload = CrashPayload(
            title="foo title",
            method="method name",
            impacted_devices_count=2,
            crashes_count=5,
            url="http://foo.com/bar",
            app={"name": "Crashy"},
        )

        assert chat_message(payload) == (
            "[Crashy] New issue: foo title in method name. "
            "This issue is affecting at least 2 users who have crashed at least 5 times. "
            "More information: http://foo.com/bar"
        )

    def test_unknown_app(self):
        assert chat_message(_payload()).startswith("[Unknown app] New issue: foo title")

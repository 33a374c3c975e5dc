"""Tests for EventReceiver."""

import pytest

from crashrelay.adapters.webhook.receiver import EventReceiver
from crashrelay.core.dispatcher import EventDispatcher
from crashrelay.core.errors import UnknownAdapterError
from crashrelay.tests.fakes import FakeNotificationAdapter, FakeTrackerAdapter


@pytest.fixture
def notifier() -> FakeNotificationAdapter:
    return FakeNotificationAdapter()


@pytest.fixture
def receiver(notifier) -> EventReceiver:
    return EventReceiver(EventDispatcher([notifier, FakeTrackerAdapter()]))


class TestHandleEvent:
    @pytest.mark.asyncio
    async def test_dispatches_event(self, receiver, notifier):
        response = await receiver.handle_event(
            {
                "adapter": "fake",
                "event": "issue_impact_change",
                "config": {"url": "https://acme.com/hook"},
                "payload": {"title": "foo title"},
            }
        )

        assert response == {
            "status": "success",
            "operation": "issue_impact_change",
            "adapter": "fake",
            "result": "no_resource",
        }
        assert notifier.get_events() == ["issue_impact_change"]

    @pytest.mark.asyncio
    async def test_config_and_payload_optional(self, receiver, notifier):
        response = await receiver.handle_event({"adapter": "fake", "event": "verification"})

        assert response["result"] == (True, "Successfully verified Fake settings")
        assert notifier.calls == [("verification", {}, {})]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data, message",
        [
            ({"event": "verification"}, "Missing adapter"),
            ({"adapter": "fake"}, "Missing event"),
            ({"adapter": 1, "event": "verification"}, "Missing adapter"),
            ({"adapter": "fake", "event": "verification", "config": []}, "config"),
            ({"adapter": "fake", "event": "verification", "payload": "x"}, "payload"),
        ],
    )
    async def test_bad_request_shape(self, receiver, data, message):
        with pytest.raises(ValueError, match=message):
            await receiver.handle_event(data)

    @pytest.mark.asyncio
    async def test_unknown_adapter_propagates(self, receiver):
        with pytest.raises(UnknownAdapterError):
            await receiver.handle_event({"adapter": "slack", "event": "verification"})


class TestHandleListRequest:
    def test_lists_adapters(self, receiver):
        response = receiver.handle_list_request()

        assert response["status"] == "success"
        assert response["operation"] == "list_adapters"
        assert [a["name"] for a in response["adapters"]] == ["fake", "fake_tracker"]

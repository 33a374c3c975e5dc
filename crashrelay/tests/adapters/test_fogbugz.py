"""Tests for FogBugzNotificationAdapter."""

from urllib.parse import parse_qs

import httpx
import pytest

from crashrelay.adapters.notification.fogbugz import (
    FogBugzNotificationAdapter,
    parse_response,
)
from crashrelay.core.errors import NotificationDeliveryError, TransportError

PROJECTS_XML = (
    b"<?xml version='1.0' encoding='UTF-8'?>"
    b"<response><projects><project><ixProject>1</ixProject>"
    b"<sProject>Crashy</sProject></project></projects></response>"
)
CASE_XML = b'<response><case ixBug="42" operations="edit,assign"></case></response>'
ERROR_XML = b'<response><error code="3">Not logged in</error></response>'


class FogBugzEndpoint:
    """Serves a fixed api.asp response and records requests."""

    def __init__(self, body: bytes, status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def config() -> dict:
    return {"project_url": "https://crashy.fogbugz.com/", "api_token": "tok-123"}


@pytest.fixture
def crash_payload() -> dict:
    return {
        "title": "foo title",
        "method": "method name",
        "impacted_devices_count": 2,
        "crashes_count": 5,
        "url": "http://foo.com/bar",
    }


class TestParseResponse:
    def test_subject_found(self):
        case, error = parse_response(CASE_XML, "case")

        assert case is not None
        assert case.get("ixBug") == "42"
        assert error is None

    def test_error_found(self):
        case, error = parse_response(ERROR_XML, "case")

        assert case is None
        assert error is not None
        assert error.get("code") == "3"

    def test_not_xml(self):
        assert parse_response(b"<html><body>502 Bad Gateway", "case") == (None, None)

    def test_wrong_root(self):
        assert parse_response(b"<html><case/></html>", "case") == (None, None)


class TestVerification:
    @pytest.mark.asyncio
    async def test_success(self, config):
        endpoint = FogBugzEndpoint(PROJECTS_XML)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        result = await adapter.receive_verification(config, None)

        assert result == (True, "Successfully verified Fogbugz settings")
        (request,) = endpoint.requests
        assert request.method == "GET"
        assert request.url.path == "/api.asp"
        assert request.url.params["cmd"] == "listProjects"
        assert request.url.params["token"] == "tok-123"

    @pytest.mark.asyncio
    async def test_api_error(self, config):
        endpoint = FogBugzEndpoint(ERROR_XML)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        result = await adapter.receive_verification(config, None)

        assert result == (False, "Oops! Please check your API key again.")

    @pytest.mark.asyncio
    async def test_not_fogbugz(self, config):
        endpoint = FogBugzEndpoint(b"<!DOCTYPE html><html></html>", status_code=404)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        ok, _ = await adapter.receive_verification(config, None)

        assert ok is False

    @pytest.mark.asyncio
    async def test_missing_project_url(self):
        endpoint = FogBugzEndpoint(PROJECTS_XML)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        ok, _ = await adapter.receive_verification({"api_token": "tok-123"}, None)

        assert ok is False
        assert endpoint.requests == []


class TestImpactChange:
    @pytest.mark.asyncio
    async def test_opens_case(self, config, crash_payload):
        endpoint = FogBugzEndpoint(CASE_XML)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        result = await adapter.receive_issue_impact_change(config, crash_payload)

        assert result == {"fogbugz_case_number": "42"}
        (request,) = endpoint.requests
        assert request.method == "POST"
        assert request.url.params["cmd"] == "new"
        form = parse_qs(request.content.decode())
        assert form["sTitle"] == ["foo title [Crashlytics]"]
        assert form["sEvent"][0].startswith("Crashlytics detected a new issue.\n")
        assert "at least 2 users who have crashed at least 5 times." in form["sEvent"][0]

    @pytest.mark.asyncio
    async def test_api_error_raises(self, config, crash_payload):
        endpoint = FogBugzEndpoint(ERROR_XML)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        with pytest.raises(NotificationDeliveryError) as exc_info:
            await adapter.receive_issue_impact_change(config, crash_payload)

        assert str(exc_info.value) == "Could not create FogBugz case: Response: Not logged in"

    @pytest.mark.asyncio
    async def test_unparseable_response_raises(self, config, crash_payload):
        endpoint = FogBugzEndpoint(b"oops", status_code=500)
        adapter = FogBugzNotificationAdapter(transport=endpoint.transport)

        with pytest.raises(NotificationDeliveryError, match="Could not create FogBugz case"):
            await adapter.receive_issue_impact_change(config, crash_payload)

    @pytest.mark.asyncio
    async def test_network_failure(self, config, crash_payload):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        adapter = FogBugzNotificationAdapter(transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError):
            await adapter.receive_issue_impact_change(config, crash_payload)

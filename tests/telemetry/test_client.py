# tests/telemetry/test_client.py
"""Tests for DatadogClient delivery and API key validation."""

import json
from collections.abc import Callable
from unittest.mock import MagicMock, patch

import httpx
import pytest
import respx

from buildbeacon.contracts import Endpoint
from buildbeacon.core.config import DEFAULT_BASE_URL as API_BASE
from buildbeacon.core.config import BuildBeaconSettings
from buildbeacon.telemetry.client import DatadogClient

EVENTS_URL = f"{API_BASE}v1/events"
SERIES_URL = f"{API_BASE}v1/series"
VALIDATE_URL = f"{API_BASE}v1/validate"


class TestPost:
    @respx.mock
    def test_ok_status_is_success(self, bb_settings: BuildBeaconSettings) -> None:
        route = respx.post(EVENTS_URL).mock(return_value=httpx.Response(202, json={"status": "ok"}))

        assert DatadogClient(bb_settings).post({"title": "t"}, Endpoint.EVENTS) is True
        assert route.called

    @respx.mock
    def test_request_shape(self, bb_settings: BuildBeaconSettings) -> None:
        route = respx.post(SERIES_URL).mock(return_value=httpx.Response(202, json={"status": "ok"}))
        payload = {"series": [{"metric": "jenkins.job.duration", "points": [[1, 2.5]], "type": "gauge"}]}

        DatadogClient(bb_settings).post(payload, Endpoint.SERIES)

        request = route.calls.last.request
        assert request.method == "POST"
        assert request.url.params["api_key"] == "test-api-key"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Cache-Control"] == "no-cache"
        assert json.loads(request.content) == payload

    @respx.mock
    def test_custom_base_url(self, make_settings: Callable[..., BuildBeaconSettings]) -> None:
        settings = make_settings(base_url="https://api.datadoghq.eu/api")
        route = respx.post("https://api.datadoghq.eu/api/v1/events").mock(
            return_value=httpx.Response(202, json={"status": "ok"})
        )

        assert DatadogClient(settings).post({}, Endpoint.EVENTS) is True
        assert route.called

    @respx.mock
    def test_non_ok_status_is_failure(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(200, json={"status": "error", "errors": ["bad"]}))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_missing_status_is_failure(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(202, json={"id": 1}))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_json_array_body_is_failure(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(202, json=["ok"]))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_non_json_body_is_failure(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(502, text="<html>Bad Gateway</html>"))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_forbidden_is_failure(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(403, json={"errors": ["Forbidden"]}))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_forbidden_logs_invalid_key(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(403))
        log = MagicMock()

        DatadogClient(bb_settings).post({}, Endpoint.EVENTS, log=log)

        log.error.assert_called_once()
        assert "403" in log.error.call_args.args[0]

    @respx.mock
    def test_connect_error_does_not_raise(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(side_effect=httpx.ConnectError("Connection refused"))
        log = MagicMock()

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS, log=log) is False
        assert log.error.call_args.args[0] == "Client error"
        assert log.error.call_args.kwargs["error_type"] == "ConnectError"

    @respx.mock
    def test_timeout_does_not_raise(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(side_effect=httpx.TimeoutException("timed out"))

        assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

    @respx.mock
    def test_success_logged(self, bb_settings: BuildBeaconSettings) -> None:
        respx.post(EVENTS_URL).mock(return_value=httpx.Response(202, json={"status": "ok"}))
        log = MagicMock()

        DatadogClient(bb_settings).post({}, Endpoint.EVENTS, log=log)

        log.info.assert_called_once_with("API call was sent successfully", endpoint="v1/events")
        log.error.assert_not_called()

    def test_unexpected_error_does_not_raise(self, bb_settings: BuildBeaconSettings) -> None:
        # Not JSON serializable
        payload = {"value": object()}

        with respx.mock(assert_all_called=False):
            respx.post(EVENTS_URL).mock(return_value=httpx.Response(202, json={"status": "ok"}))
            assert DatadogClient(bb_settings).post(payload, Endpoint.EVENTS) is False


class TestProxy:
    def _ok_client(self) -> MagicMock:
        http_client = MagicMock()
        http_client.__enter__.return_value = http_client
        http_client.__exit__.return_value = False
        http_client.post.return_value = httpx.Response(202, json={"status": "ok"})
        return http_client

    def test_proxy_passed_when_enabled(self, make_settings: Callable[..., BuildBeaconSettings]) -> None:
        settings = make_settings(use_proxy=True, proxy_hostname="proxy.internal", proxy_port="3128", timeout_seconds=3)

        with patch("buildbeacon.telemetry.client.httpx.Client", return_value=self._ok_client()) as client_cls:
            assert DatadogClient(settings).post({}, Endpoint.EVENTS) is True

        client_cls.assert_called_once_with(proxy="http://proxy.internal:3128", timeout=3.0)

    def test_direct_when_disabled(self, bb_settings: BuildBeaconSettings) -> None:
        with patch("buildbeacon.telemetry.client.httpx.Client", return_value=self._ok_client()) as client_cls:
            DatadogClient(bb_settings).post({}, Endpoint.EVENTS)

        client_cls.assert_called_once_with(proxy=None, timeout=10.0)

    def test_connection_closed_after_failure(self, bb_settings: BuildBeaconSettings) -> None:
        http_client = self._ok_client()
        http_client.post.side_effect = httpx.ConnectError("refused")

        with patch("buildbeacon.telemetry.client.httpx.Client", return_value=http_client):
            assert DatadogClient(bb_settings).post({}, Endpoint.EVENTS) is False

        http_client.__exit__.assert_called_once()


class TestValidateApiKey:
    @respx.mock
    def test_valid_key(self, bb_settings: BuildBeaconSettings) -> None:
        route = respx.get(VALIDATE_URL).mock(return_value=httpx.Response(200, json={"valid": True}))

        validation = DatadogClient(bb_settings).validate_api_key()

        assert validation.valid is True
        assert validation.message == "Great! Your API key is valid."
        assert route.calls.last.request.url.params["api_key"] == "test-api-key"

    @respx.mock
    def test_explicit_key_overrides_configured(self, bb_settings: BuildBeaconSettings) -> None:
        route = respx.get(VALIDATE_URL).mock(return_value=httpx.Response(200, json={"valid": True}))

        DatadogClient(bb_settings).validate_api_key("other-key")

        assert route.calls.last.request.url.params["api_key"] == "other-key"

    @respx.mock
    def test_invalid_key(self, bb_settings: BuildBeaconSettings) -> None:
        respx.get(VALIDATE_URL).mock(return_value=httpx.Response(200, json={"valid": False}))

        validation = DatadogClient(bb_settings).validate_api_key()

        assert validation.valid is False
        assert validation.message == "Hmmm, your API key seems to be invalid."

    @respx.mock
    def test_forbidden(self, bb_settings: BuildBeaconSettings) -> None:
        respx.get(VALIDATE_URL).mock(return_value=httpx.Response(403))

        validation = DatadogClient(bb_settings).validate_api_key()

        assert validation.valid is False
        assert "403" in validation.message

    @pytest.mark.parametrize(
        "side_effect",
        [httpx.ConnectError("Connection refused"), httpx.ReadTimeout("timed out")],
    )
    @respx.mock
    def test_transport_error(self, bb_settings: BuildBeaconSettings, side_effect: Exception) -> None:
        respx.get(VALIDATE_URL).mock(side_effect=side_effect)

        validation = DatadogClient(bb_settings).validate_api_key()

        assert validation.valid is False
        assert validation.message.startswith("Client error:")

    @respx.mock
    def test_non_json_body(self, bb_settings: BuildBeaconSettings) -> None:
        respx.get(VALIDATE_URL).mock(return_value=httpx.Response(200, text="not json"))

        validation = DatadogClient(bb_settings).validate_api_key()

        assert validation.valid is False
        assert validation.message.startswith("Client error:")

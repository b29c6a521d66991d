"""Datadog HTTP API client.

Posts JSON payloads to the Datadog API with the API key as a query
parameter, optionally through an HTTP proxy. A call succeeds only when
the response body is a JSON object whose ``status`` is ``"ok"``.

Delivery is best-effort: post() never raises. Failures are classified
and logged:
- HTTP 403: the API key is probably invalid
- Non-"ok" status or unparsable body: the API rejected the payload
- Transport errors (connect, timeout, proxy): client error

Every call opens its own connection, which is closed on the way out
regardless of outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from buildbeacon.contracts.enums import Endpoint
from buildbeacon.telemetry.errors import DeliveryError

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from buildbeacon.core.config import BuildBeaconSettings

logger = structlog.get_logger(__name__)

HTTP_FORBIDDEN = 403

_REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
}


@dataclass(frozen=True, slots=True)
class KeyValidation:
    """Outcome of checking an API key against the validate endpoint."""

    valid: bool
    message: str


class DatadogClient:
    """Sends payloads to the Datadog API.

    Example:
        client = DatadogClient(settings)
        client.post(build_event(record, tags), Endpoint.EVENTS)
    """

    def __init__(self, settings: BuildBeaconSettings) -> None:
        self._settings = settings

    def _client(self) -> httpx.Client:
        # proxy=None connects directly
        return httpx.Client(
            proxy=self._settings.proxy_url,
            timeout=self._settings.timeout_seconds,
        )

    def _url(self, endpoint: Endpoint) -> str:
        return f"{self._settings.base_url}{endpoint.value}"

    def post(self, payload: dict[str, Any], endpoint: Endpoint, *, log: BoundLogger | None = None) -> bool:
        """POST a payload to the given endpoint.

        Args:
            payload: JSON-serializable request body
            endpoint: Target API endpoint
            log: Logger bound to the current notification

        Returns:
            True only if the API answered with status "ok"
        """
        log = log if log is not None else logger
        url = self._url(endpoint)

        try:
            with self._client() as client:
                response = client.post(
                    url,
                    params={"api_key": self._settings.api_key.get_secret_value()},
                    json=payload,
                    headers=_REQUEST_HEADERS,
                )
                self._raise_unless_accepted(response, endpoint)
        except DeliveryError as e:
            if e.status_code == HTTP_FORBIDDEN:
                log.error(
                    "Hmmm, your API key may be invalid. We received a 403 error.",
                    endpoint=endpoint.value,
                    status_code=e.status_code,
                )
            else:
                log.error(
                    "API call failed",
                    endpoint=endpoint.value,
                    status_code=e.status_code,
                    error=e.message,
                    payload=payload,
                )
            return False
        except httpx.HTTPError as e:
            log.error(
                "Client error",
                endpoint=endpoint.value,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
                payload=payload,
            )
            return False
        except Exception as e:
            # Delivery MUST NOT raise - log and report failure
            log.error(
                "Unexpected error posting to the Datadog API",
                endpoint=endpoint.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        log.info("API call was sent successfully", endpoint=endpoint.value)
        log.debug("Delivered payload", endpoint=endpoint.value, payload=payload)
        return True

    def _raise_unless_accepted(self, response: httpx.Response, endpoint: Endpoint) -> None:
        """Raise DeliveryError unless the body is a JSON object with status "ok"."""
        if response.status_code == HTTP_FORBIDDEN:
            raise DeliveryError(endpoint, "forbidden", status_code=response.status_code)

        try:
            body = response.json()
        except (JSONDecodeError, UnicodeDecodeError) as e:
            raise DeliveryError(
                endpoint,
                f"response was not valid JSON: {e}",
                status_code=response.status_code,
            ) from e

        status = body.get("status") if isinstance(body, dict) else None
        if status != "ok":
            raise DeliveryError(
                endpoint,
                f"API responded with status {status!r}",
                status_code=response.status_code,
            )

    def validate_api_key(self, api_key: str | None = None, *, log: BoundLogger | None = None) -> KeyValidation:
        """Check an API key against the validate endpoint.

        Args:
            api_key: Key to check; defaults to the configured key
            log: Optional bound logger

        Returns:
            KeyValidation with a user-facing message
        """
        log = log if log is not None else logger
        key = api_key if api_key is not None else self._settings.api_key.get_secret_value()
        url = self._url(Endpoint.VALIDATE)

        try:
            with self._client() as client:
                response = client.get(url, params={"api_key": key})
                if response.status_code == HTTP_FORBIDDEN:
                    log.warning("API key rejected by validate endpoint", status_code=response.status_code)
                    return KeyValidation(False, "Hmmm, your API key may be invalid. We received a 403 error.")
                body = response.json()
        except (httpx.HTTPError, JSONDecodeError, UnicodeDecodeError) as e:
            log.error("API key validation failed", error=str(e), error_type=type(e).__name__)
            return KeyValidation(False, f"Client error: {e}")

        if isinstance(body, dict) and body.get("valid") is True:
            return KeyValidation(True, "Great! Your API key is valid.")
        return KeyValidation(False, "Hmmm, your API key seems to be invalid.")

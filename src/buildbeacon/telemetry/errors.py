"""Delivery-specific exceptions.

These never escape the delivery client: post() catches them, logs them and
reports the call as failed.
"""

from buildbeacon.contracts.enums import Endpoint
from buildbeacon.contracts.errors import BuildBeaconError


class DeliveryError(BuildBeaconError):
    """Raised when the Datadog API does not accept a payload.

    Attributes:
        endpoint: API endpoint the payload was posted to
        message: Human-readable error description
        status_code: HTTP status code, None if no response was received
    """

    def __init__(self, endpoint: Endpoint, message: str, status_code: int | None = None) -> None:
        self.endpoint = endpoint
        self.message = message
        self.status_code = status_code
        super().__init__(f"API call of type '{endpoint.value}' failed: {message}")

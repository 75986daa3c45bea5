"""Optional event telemetry sent to an ingestion endpoint."""

from typing import Any, Optional

import requests

from ..models.base import utcnow
from ..lib.logging import get_logger

logger = get_logger(__name__)

TELEMETRY_TIMEOUT_SECONDS = 3


class TelemetryClient:
    """
    Posts ``{event, ts, fields}`` to TELEMETRY_URL.

    Disabled when no URL is configured. Delivery is best effort: failures
    are logged and never propagate into request handling.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        http: Optional[requests.Session] = None,
    ):
        self.url = url
        self.token = token
        self.http = http or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def emit(self, event: str, **fields: Any) -> bool:
        """
        Send one event.

        Returns:
            True if the endpoint accepted the event
        """
        if not self.enabled:
            return False

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = {"event": event, "ts": utcnow().isoformat(), "fields": fields}

        try:
            response = self.http.post(self.url, json=payload, headers=headers, timeout=TELEMETRY_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("telemetry_delivery_failed", telemetry_event=event, error=str(e))
            return False
        return True


def create_telemetry_client(url: Optional[str], token: Optional[str]) -> TelemetryClient:
    return TelemetryClient(url=url, token=token)

"""Page-view telemetry for calgate.

Events are best-effort: delivery problems are logged at debug level and never
raised to the caller.
"""

import logging
import os
from datetime import datetime
from typing import Dict, Optional
import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PAGE_VIEW_EVENT = "page_view"


def collect_page_parameters(path: str, title: str = "") -> Dict[str, str]:
    """Build the payload describing a page view."""
    route, _, query = path.partition("?")
    return {
        "page_url": route,
        "page_query": query,
        "page_title": title,
        "sent_at": datetime.utcnow().isoformat(),
    }


class TelemetryClient:
    """Client for the telemetry collector."""

    def __init__(self, url: Optional[str] = None, timeout: float = 2.0):
        """Initialize telemetry client.

        Args:
            url: Collector endpoint. If None, reads from TELEMETRY_URL env var;
                 an empty value disables telemetry.
            timeout: Request timeout in seconds
        """
        self.url = url if url is not None else os.getenv("TELEMETRY_URL", "")
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def track(self, event_type: str, payload: Dict[str, str]) -> bool:
        """Send one event. Returns True if the collector accepted it."""
        if not self.enabled:
            return False
        try:
            response = requests.post(
                self.url,
                json={"event_type": event_type, **payload},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.debug(f"Telemetry event {event_type} not delivered: {type(e).__name__}: {str(e)}")
            return False

    def track_page_view(self, path: str) -> bool:
        return self.track(PAGE_VIEW_EVENT, collect_page_parameters(path))

import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import requests

from .base import BaseClient, TransportResponse, STATUS_ERROR, STATUS_OK

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
RETRY_BASE_DELAY = 1.0
MAX_RETRY_DELAY = 60.0
MAX_MESSAGE_LENGTH = 500


def retry_after_seconds(value):
    """Seconds to wait from a ``Retry-After`` header (delta-seconds or HTTP-date), or None."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class IngestionClient(BaseClient):
    def __init__(self, base_url, api_key, timeout=30.0):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(base_url=config.base_url, api_key=config.api_key, timeout=config.timeout)

    def make_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'X-API-Key': self.api_key,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })
        return session

    def send(self, session, endpoint, method, body) -> TransportResponse:
        return self._request(session, method, endpoint, body)

    def delete(self, session, endpoint) -> TransportResponse:
        return self._request(session, 'DELETE', endpoint)

    def reset_collection(self, session, endpoint, method) -> TransportResponse:
        body = [] if method.upper() in ('POST', 'PUT') else None
        return self._request(session, method, endpoint, body)

    def _request(self, session, method, endpoint, body=None) -> TransportResponse:
        url = f"{self.base_url}{endpoint}"

        for attempt in range(MAX_RETRIES):
            try:
                response = session.request(method, url, json=body, timeout=self.timeout)
            except requests.exceptions.RequestException as exc:
                logger.error("%s %s failed: %s", method, endpoint, exc)
                return TransportResponse(status=STATUS_ERROR, message=str(exc))

            if response.status_code == 429:
                delay = RETRY_BASE_DELAY * (2 ** attempt)
                retry_after = retry_after_seconds(response.headers.get('Retry-After'))
                if retry_after is not None:
                    delay = max(retry_after, delay)
                delay = min(delay, MAX_RETRY_DELAY)
                logger.warning(
                    "Rate limited (429) on %s %s, attempt %d/%d, waiting %.1fs",
                    method, endpoint, attempt + 1, MAX_RETRIES, delay,
                )
                time.sleep(delay)
                continue

            if response.ok:
                return TransportResponse(
                    status=STATUS_OK, message=response.text[:MAX_MESSAGE_LENGTH],
                    status_code=response.status_code,
                )

            logger.error(
                "%s %s returned %d: %s",
                method, endpoint, response.status_code, response.text[:MAX_MESSAGE_LENGTH],
            )
            return TransportResponse(
                status=STATUS_ERROR,
                message=f"HTTP {response.status_code}: {response.text[:MAX_MESSAGE_LENGTH]}",
                status_code=response.status_code,
            )

        return TransportResponse(
            status=STATUS_ERROR,
            message=f"Rate limit exceeded after {MAX_RETRIES} retries for {method} {endpoint}",
            status_code=429,
        )

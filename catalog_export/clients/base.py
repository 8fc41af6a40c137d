from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

STATUS_OK = 'OK'
STATUS_ERROR = 'ERROR'


@dataclass
class TransportResponse:
    status: str
    message: str = ''
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class BaseClient(ABC):
    @abstractmethod
    def make_session(self) -> requests.Session:
        """Create and configure an HTTP session with auth headers."""

    @abstractmethod
    def send(self, session, endpoint, method, body) -> TransportResponse:
        """Send one batch of mapped records."""

    @abstractmethod
    def delete(self, session, endpoint) -> TransportResponse:
        """Delete a single record at the ingestion service."""

    @abstractmethod
    def reset_collection(self, session, endpoint, method) -> TransportResponse:
        """Clear the remote collection before a full export."""

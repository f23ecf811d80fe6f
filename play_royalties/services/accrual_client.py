"""Client-side submission of listen reports to the accrual endpoint"""
import logging
from typing import Protocol

import requests
from pydantic import ValidationError

from play_royalties.config import Settings
from play_royalties.models.listening import ListenReport
from play_royalties.models.registration import PlayRegistration

logger = logging.getLogger(__name__)

class SubmissionError(Exception):
    """A listen report could not be delivered or its result could not be read"""

class Submitter(Protocol):
    def submit(self, report: ListenReport) -> PlayRegistration: ...

class AccrualClient:
    """
    Posts listen reports to the accrual endpoint.

    Each report is sent exactly once. Failures are raised to the caller and
    never retried, since a blind retry against a partially applied
    transaction could double-submit.
    """

    def __init__(self, token: str, base_url: str = "http://localhost:8000", timeout: float = 10.0):
        """
        Initialize with the caller's session token
        """
        if not token:
            raise ValueError("Session token cannot be empty")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    @classmethod
    def from_settings(cls, token: str, settings: Settings) -> 'AccrualClient':
        return cls(token=token, base_url=settings.ACCRUAL_API_URL, timeout=settings.REQUEST_TIMEOUT_SECONDS)

    def submit(self, report: ListenReport) -> PlayRegistration:
        url = f'{self.base_url}/plays'
        try:
            response = self.session.post(url, json=report.to_payload(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to submit play of {report.content_id} to {url}: {e}")
            raise SubmissionError(f"Play submission failed: {e}") from e

        try:
            return PlayRegistration.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Unreadable play registration response from {url}: {response.text[:200]}")
            raise SubmissionError(f"Invalid play registration response: {e}") from e

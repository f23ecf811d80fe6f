"""In-process submission straight into the accrual service"""
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from play_royalties.accrual import AccrualService
from play_royalties.models.listening import ListenReport
from play_royalties.models.registration import PlayRegistration
from play_royalties.services.accrual_client import SubmissionError

class ServiceSubmitter:
    """Hands listen reports straight to an in-process AccrualService"""

    def __init__(self, service: AccrualService, identity: Callable[[], Optional[str]]):
        self.service = service
        self.identity = identity

    def submit(self, report: ListenReport) -> PlayRegistration:
        try:
            return self.service.register_play(
                self.identity(),
                report.content_id,
                report.content_type,
                report.listen_duration_seconds,
                report.content_duration_seconds
            )
        except SQLAlchemyError as e:
            raise SubmissionError(f"Play registration failed: {e}") from e

from typing import List

import pytest

from play_royalties.accrual import AccrualService
from play_royalties.config import Settings
from play_royalties.db import Database
from play_royalties.models.listening import ListenReport
from play_royalties.models.registration import PlayRegistration


class RecordingSubmitter:
    """Submitter stub that records every report it receives."""

    def __init__(self) -> None:
        self.reports: List[ListenReport] = []
        self.error = None

    def submit(self, report: ListenReport) -> PlayRegistration:
        self.reports.append(report)
        if self.error is not None:
            raise self.error
        return PlayRegistration(play_id=f"play-{len(self.reports)}", listen_percent=0.0)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'ledger.db'}",
        JWT_SECRET="test-secret",
        INPUT_DIR=str(tmp_path / "input"),
        OUTPUT_DIR=str(tmp_path / "output"),
    )


@pytest.fixture
def database(test_settings):
    database = Database(test_settings.DATABASE_URL)
    database.init()
    yield database
    database.dispose()


@pytest.fixture
def service(database, test_settings) -> AccrualService:
    return AccrualService(database, test_settings.accrual_policy)


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()

import pytest
import requests

from play_royalties.models.listening import ListenReport
from play_royalties.services.accrual_client import AccrualClient, SubmissionError
from play_royalties.services.local_submitter import ServiceSubmitter

REPORT = ListenReport("track-1", "song", 120, 200)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def client():
    return AccrualClient(token="session-token", base_url="https://plays.example.com/", timeout=3)


def test_submit_posts_report_with_bearer_token(client, monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return FakeResponse(payload={
            "success": True,
            "play_id": "play-1",
            "credits_earned": 1.0,
            "threshold_met": True,
            "cooldown_passed": True,
            "listen_percent": 0.6,
        })

    monkeypatch.setattr(client.session, "post", fake_post)

    result = client.submit(REPORT)

    assert result.play_id == "play-1"
    assert result.credits_earned == 1.0
    assert calls == [("https://plays.example.com/plays", REPORT.to_payload(), 3)]
    assert client.session.headers["Authorization"] == "Bearer session-token"


def test_server_error_raises_without_retry(client, monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append(url)
        return FakeResponse(status_code=503)

    monkeypatch.setattr(client.session, "post", fake_post)

    with pytest.raises(SubmissionError):
        client.submit(REPORT)
    assert len(calls) == 1


def test_connection_error_raises_submission_error(client, monkeypatch):
    def fake_post(url, json=None, timeout=None):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(client.session, "post", fake_post)

    with pytest.raises(SubmissionError):
        client.submit(REPORT)


def test_unreadable_response_raises_submission_error(client, monkeypatch):
    monkeypatch.setattr(client.session, "post", lambda url, json=None, timeout=None: FakeResponse(text="<html>"))

    with pytest.raises(SubmissionError):
        client.submit(REPORT)


def test_empty_token_is_rejected():
    with pytest.raises(ValueError):
        AccrualClient(token="")


def test_service_submitter_uses_identity(service):
    submitter = ServiceSubmitter(service, lambda: "user-7")

    result = submitter.submit(REPORT)

    assert result.success is True
    assert result.credits_earned == 1.0
    assert service.balance("user-7") == 1.0


def test_client_from_settings(test_settings):
    test_settings.ACCRUAL_API_URL = "https://plays.example.com"
    test_settings.REQUEST_TIMEOUT_SECONDS = 2.5

    client = AccrualClient.from_settings("session-token", test_settings)

    assert client.base_url == "https://plays.example.com"
    assert client.timeout == 2.5

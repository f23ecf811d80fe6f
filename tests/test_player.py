import logging

import pytest

from play_royalties.player import PlayerTracking
from play_royalties.services.accrual_client import SubmissionError
from play_royalties.services.local_submitter import ServiceSubmitter
from play_royalties.tracker import ListeningTracker


@pytest.fixture
def player(submitter):
    return PlayerTracking(ListeningTracker(submitter, lambda: "user-1"))


def _play(player, seconds):
    for position in range(seconds + 1):
        player.on_time_update(float(position), True)


def test_track_change_finalizes_previous_session(player, submitter):
    player.load("track-1", "song", 200)
    _play(player, 120)

    player.load("track-2", "song", 180)

    assert [r.content_id for r in submitter.reports] == ["track-1"]
    assert submitter.reports[0].listen_duration_seconds == 120
    assert player.tracker.snapshot().content_id == "track-2"


def test_first_load_submits_nothing(player, submitter):
    assert player.load("track-1", "song", 200) is None
    assert submitter.reports == []


def test_hidden_then_ended_submits_once(player, submitter):
    player.load("track-1", "song", 200)
    _play(player, 30)

    hidden = player.on_visibility_change(hidden=True)
    ended = player.on_ended()

    assert len(submitter.reports) == 1
    assert ended is hidden


def test_becoming_visible_does_not_finalize(player, submitter):
    player.load("track-1", "song", 200)

    assert player.on_visibility_change(hidden=False) is None
    assert submitter.reports == []


def test_teardown_finalizes_and_drops_session(player, submitter):
    player.load("track-1", "song", 200)
    _play(player, 10)

    player.close()

    assert len(submitter.reports) == 1
    assert player.tracker.snapshot() is None


def test_delivery_failure_on_exit_path_is_logged_not_raised(player, submitter, caplog):
    submitter.error = SubmissionError("tab closed")
    player.load("track-1", "song", 200)

    with caplog.at_level(logging.WARNING, logger="play_royalties.player"):
        assert player.on_ended() is None

    assert "Listen not credited (ended)" in caplog.text
    assert len(submitter.reports) == 1


def test_full_listen_through_service_is_credited(service):
    identity = lambda: "user-1"
    player = PlayerTracking(ListeningTracker(ServiceSubmitter(service, identity), identity))

    player.load("track-1", "song", 200)
    _play(player, 100)
    result = player.on_ended()

    assert result.threshold_met is True
    assert result.credits_earned == 1.0
    assert service.balance("user-1") == 1.0


def test_skipping_through_content_is_not_credited(service):
    identity = lambda: "user-1"
    player = PlayerTracking(ListeningTracker(ServiceSubmitter(service, identity), identity))

    player.load("track-1", "song", 200)
    for position in range(0, 200, 10):
        player.on_time_update(float(position), True)
    result = player.on_ended()

    assert result.listen_percent == 0.0
    assert result.credits_earned == 0

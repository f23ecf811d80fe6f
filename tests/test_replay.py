import datetime
import json

import pytest

from play_royalties.replay import load_session_logs, replay_session
from play_royalties.utils.json_encoder import json_dumps


def _write(directory, name, data):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_text(json.dumps(data))


def _session(**overrides):
    data = {
        "user_id": "user-1",
        "content_id": "track-1",
        "content_type": "song",
        "duration_seconds": 200,
        "artist_id": "artist-1",
        "ticks": [[i * 0.25, True] for i in range(481)],
    }
    data.update(overrides)
    return data


def test_load_session_logs_sorted_and_validated(tmp_path):
    _write(tmp_path, "b.json", _session())
    _write(tmp_path, "a.json", _session(content_id="track-2"))
    (tmp_path / "notes.txt").write_text("ignored")

    logs = load_session_logs(str(tmp_path))

    assert [name for name, _ in logs] == ["a.json", "b.json"]


def test_load_session_logs_rejects_incomplete_log(tmp_path):
    _write(tmp_path, "bad.json", {"content_id": "track-1"})

    with pytest.raises(ValueError, match="missing"):
        load_session_logs(str(tmp_path))


def test_load_session_logs_requires_logs(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_session_logs(str(tmp_path))


def test_replayed_session_is_credited_and_aggregated(service, test_settings):
    outcome = replay_session(service, _session(), test_settings)

    assert outcome["tracking"].active_seconds == pytest.approx(120.0)
    assert outcome["registration"].credits_earned == 1.0
    assert outcome["balance"] == 1.0
    assert service.artist_month("artist-1", *_current_period()).song_plays == 1

    encoded = json.loads(json_dumps(outcome))
    assert encoded["tracking"]["content_id"] == "track-1"
    assert encoded["registration"]["threshold_met"] is True


def test_replayed_anonymous_session_is_not_submitted(service, test_settings):
    outcome = replay_session(service, _session(user_id=None, ended=False), test_settings)

    assert outcome["registration"] is None
    assert outcome["balance"] is None


def _current_period():
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.year, now.month

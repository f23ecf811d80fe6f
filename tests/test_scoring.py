import pytest

from play_royalties.config import AccrualPolicy
from play_royalties.scoring import MAX_STORED_SECONDS, PlayScorer


@pytest.fixture
def scorer():
    return PlayScorer(AccrualPolicy(
        cooldown_seconds=3600,
        song_credits=1.0,
        podcast_episode_credits=0.5,
        qualifying_ratio=0.5,
        duration_slack=0.05,
    ))


@pytest.mark.parametrize("listen, content, expected", [
    (100, 200, 100),
    (210, 200, 210),
    (211, 200, 210),
    (5000, 200, 210),
    (-30, 200, 0),
    (50, 0, 0),
    (50, -10, 0),
])
def test_clamp_listen_duration(scorer, listen, content, expected):
    assert scorer.clamp_listen_duration(listen, content) == expected


def test_listen_percent_guards_empty_content(scorer):
    assert scorer.listen_percent(10, 0) == 0.0
    assert scorer.listen_percent(50, 200) == 0.25


def test_credits_by_content_type(scorer):
    assert scorer.credits_for("song") == 1.0
    assert scorer.credits_for("podcast_episode") == 0.5
    assert scorer.credits_for("audiobook") == 0.0


def test_assess_qualifies_at_exactly_half(scorer):
    assessment = scorer.assess("song", 100, 200)

    assert assessment.listen_percent == 0.5
    assert assessment.threshold_met is True
    assert assessment.credit_amount == 1.0


def test_assess_recomputes_from_clamped_numbers(scorer):
    assessment = scorer.assess("song", 9999, 200)

    assert assessment.reported_listen_seconds == 9999
    assert assessment.listen_seconds == 210
    assert assessment.listen_percent == pytest.approx(1.05)


def test_assess_below_half_does_not_qualify(scorer):
    assessment = scorer.assess("podcast_episode", 99, 200)

    assert assessment.threshold_met is False


def test_assess_caps_values_to_storable_range(scorer):
    assessment = scorer.assess("song", 10**19, 10**19)

    assert assessment.reported_listen_seconds == MAX_STORED_SECONDS
    assert assessment.content_seconds == MAX_STORED_SECONDS
    assert assessment.listen_seconds == MAX_STORED_SECONDS
    assert assessment.threshold_met is True

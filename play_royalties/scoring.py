"""Play qualification and credit calculation"""
import math
from dataclasses import dataclass

from play_royalties.config import AccrualPolicy
from play_royalties.models.listening import ContentType

# Largest value the 32-bit duration columns hold
MAX_STORED_SECONDS = 2**31 - 1

@dataclass
class PlayAssessment:
    """Server-side recomputation of a submitted listen report"""
    reported_listen_seconds: int
    listen_seconds: int
    content_seconds: int
    listen_percent: float
    threshold_met: bool
    credit_amount: float

class PlayScorer:
    """Recomputes qualification from the reported numbers, never from client flags"""

    def __init__(self, policy: AccrualPolicy):
        self.policy = policy

    def assess(self, content_type: str, listen_seconds: int, content_seconds: int) -> PlayAssessment:
        """Clamp the report and decide whether it qualifies and for how much"""
        content = min(max(0, int(content_seconds)), MAX_STORED_SECONDS)
        reported = max(-MAX_STORED_SECONDS, min(int(listen_seconds), MAX_STORED_SECONDS))
        listen = self.clamp_listen_duration(reported, content)
        percent = self.listen_percent(listen, content)
        threshold_met = percent >= self.policy.qualifying_ratio

        return PlayAssessment(
            reported_listen_seconds=reported,
            listen_seconds=listen,
            content_seconds=content,
            listen_percent=percent,
            threshold_met=threshold_met,
            credit_amount=self.credits_for(content_type)
        )

    def clamp_listen_duration(self, listen_seconds: int, content_seconds: int) -> int:
        """
        Bound the listen time to [0, content x (1 + slack)].

        Over-reports beyond the slack come from a broken or tampered client;
        they are clamped rather than rejected so the play is still recorded.
        """
        ceiling = math.floor(max(0, content_seconds) * (1 + self.policy.duration_slack))
        ceiling = min(ceiling, MAX_STORED_SECONDS)
        return max(0, min(int(listen_seconds), ceiling))

    def listen_percent(self, listen_seconds: int, content_seconds: int) -> float:
        if content_seconds <= 0:
            return 0.0
        return listen_seconds / content_seconds

    def credits_for(self, content_type: str) -> float:
        """Credits granted for one qualifying play of the given content type"""
        if content_type == ContentType.SONG.value:
            return self.policy.song_credits
        elif content_type == ContentType.PODCAST_EPISODE.value:
            return self.policy.podcast_episode_credits
        return 0.0

"""Client-side value objects for listening sessions"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any

class ContentType(str, Enum):
    """Kinds of streamable content that can earn play credits"""
    SONG = 'song'
    PODCAST_EPISODE = 'podcast_episode'

@dataclass(frozen=True)
class ListenReport:
    """Final measurement of one listening session, sent once on finalize"""
    content_id: str
    content_type: str
    listen_duration_seconds: int
    content_duration_seconds: int

    @classmethod
    def from_measurement(cls, content_id: str, content_type: str,
                         active_seconds: float, duration_seconds: float) -> 'ListenReport':
        """Build a report, flooring both durations to whole seconds"""
        return cls(
            content_id=content_id,
            content_type=str(getattr(content_type, 'value', content_type)),
            listen_duration_seconds=math.floor(active_seconds),
            content_duration_seconds=math.floor(duration_seconds)
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            'content_id': self.content_id,
            'content_type': self.content_type,
            'listen_duration_seconds': self.listen_duration_seconds,
            'content_duration_seconds': self.content_duration_seconds,
        }

@dataclass
class TrackingSnapshot:
    """Diagnostic view of the live listening session"""
    content_id: str
    content_type: str
    active_seconds: float
    duration_seconds: float
    percent_played: float
    threshold_met: bool
    submitted: bool

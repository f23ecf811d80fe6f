"""Wires a listening tracker to the playback surface's events"""
import logging
from typing import Optional

from play_royalties.models.registration import PlayRegistration
from play_royalties.services.accrual_client import SubmissionError
from play_royalties.tracker import ListeningTracker

logger = logging.getLogger(__name__)

class PlayerTracking:
    """
    Finalizes the tracked session on every path that can end a listen:
    natural end, track change, the page going hidden and teardown.

    Delivery failures on these paths mean the listen is not credited; they
    are logged and never reach the player.
    """

    def __init__(self, tracker: ListeningTracker):
        self.tracker = tracker

    def _finalize(self, trigger: str) -> Optional[PlayRegistration]:
        try:
            return self.tracker.finalize()
        except SubmissionError as e:
            logger.warning(f"Listen not credited ({trigger}): {e}")
            return None

    def load(self, content_id: str, content_type: str, duration_seconds: float) -> Optional[PlayRegistration]:
        """Switch to new content, finalizing the previous session first"""
        result = self._finalize('track change')
        self.tracker.start(content_id, content_type, duration_seconds)
        return result

    def on_time_update(self, position_seconds: float, is_playing: bool) -> None:
        self.tracker.observe(position_seconds, is_playing)

    def on_ended(self) -> Optional[PlayRegistration]:
        return self._finalize('ended')

    def on_visibility_change(self, hidden: bool) -> Optional[PlayRegistration]:
        if not hidden:
            return None
        return self._finalize('hidden')

    def close(self) -> Optional[PlayRegistration]:
        """Host teardown: best-effort final submission, then drop the session"""
        result = self._finalize('teardown')
        self.tracker.reset()
        return result

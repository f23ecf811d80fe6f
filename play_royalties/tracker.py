"""Client-side measurement of genuine listening time"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from play_royalties.models.listening import ListenReport, TrackingSnapshot
from play_royalties.models.registration import PlayRegistration
from play_royalties.services.accrual_client import Submitter, SubmissionError

logger = logging.getLogger(__name__)

# Position updates arrive roughly every 250ms; a larger jump is a seek
DEFAULT_SEEK_THRESHOLD_SECONDS = 5.0
DEFAULT_THRESHOLD_RATIO = 0.5

@dataclass
class _Session:
    content_id: str
    content_type: str
    duration_seconds: float
    active_seconds: float = 0.0
    threshold_met: bool = False
    submitted: bool = False
    result: Optional[PlayRegistration] = None
    # None until the first position update seeds it
    reference_position: Optional[float] = None

class ListeningTracker:
    """
    Accumulates active playback time for one piece of content at a time and
    submits a single listen report when the session ends.

    Only forward progress below the seek threshold while playing counts.
    Paused intervals, forward seeks and replayed sections add nothing.
    """

    def __init__(self, submitter: Submitter, identity: Callable[[], Optional[str]],
                 seek_threshold_seconds: float = DEFAULT_SEEK_THRESHOLD_SECONDS,
                 threshold_ratio: float = DEFAULT_THRESHOLD_RATIO):
        self.submitter = submitter
        self.identity = identity
        self.seek_threshold_seconds = seek_threshold_seconds
        self.threshold_ratio = threshold_ratio
        self._session: Optional[_Session] = None
        self._lock = threading.Lock()

    def start(self, content_id: str, content_type: str, duration_seconds: float) -> None:
        """Begin a new session, discarding any unfinalized one without submitting it"""
        if self._session and not self._session.submitted:
            logger.debug(f"Discarding unfinalized session for {self._session.content_id}")
        self._session = _Session(
            content_id=content_id,
            content_type=str(getattr(content_type, 'value', content_type)),
            duration_seconds=duration_seconds
        )
        logger.debug(f"Started tracking {content_id} ({content_type}, {duration_seconds}s)")

    def observe(self, position_seconds: float, is_playing: bool) -> None:
        """Consume one position update from the playback surface"""
        state = self._session
        if state is None or state.submitted:
            return

        if not is_playing:
            # Resuming later must not count the paused interval
            state.reference_position = position_seconds
            return

        if state.reference_position is None:
            state.reference_position = position_seconds
            return

        delta = position_seconds - state.reference_position
        if 0 < delta < self.seek_threshold_seconds:
            state.active_seconds += delta
        # delta >= threshold is a forward seek, delta < 0 a replay: neither counts
        state.reference_position = position_seconds

        if (not state.threshold_met and state.duration_seconds > 0
                and state.active_seconds / state.duration_seconds >= self.threshold_ratio):
            state.threshold_met = True
            logger.debug(
                f"Listen threshold met for {state.content_id}: "
                f"{state.active_seconds:.1f}s of {state.duration_seconds}s"
            )

    def finalize(self) -> Optional[PlayRegistration]:
        """
        Submit the session's listen report once.

        Later calls return the first call's result without submitting again.
        A call that arrives while the first submission is still in flight
        returns None. Returns None when there is no session or no
        authenticated user.

        Raises:
            SubmissionError: If delivery fails. The session stays marked as
                submitted and is not retried.
        """
        with self._lock:
            state = self._session
            if state is None:
                return None
            if state.submitted:
                return state.result
            if not self.identity():
                logger.debug(f"Not submitting play of {state.content_id}: no authenticated user")
                return None
            state.submitted = True

        report = ListenReport.from_measurement(
            state.content_id, state.content_type, state.active_seconds, state.duration_seconds
        )
        logger.info(
            f"Finalizing play of {report.content_id}: {report.listen_duration_seconds}s "
            f"of {report.content_duration_seconds}s"
        )
        try:
            state.result = self.submitter.submit(report)
        except SubmissionError as e:
            logger.error(f"Play of {report.content_id} was not registered: {e}")
            raise

        logger.info(f"Play registered: {state.result.model_dump()}")
        return state.result

    def reset(self) -> None:
        """Discard the current session without submitting"""
        self._session = None

    def snapshot(self) -> Optional[TrackingSnapshot]:
        state = self._session
        if state is None:
            return None
        return TrackingSnapshot(
            content_id=state.content_id,
            content_type=state.content_type,
            active_seconds=state.active_seconds,
            duration_seconds=state.duration_seconds,
            percent_played=(state.active_seconds / state.duration_seconds * 100
                            if state.duration_seconds > 0 else 0.0),
            threshold_met=state.threshold_met,
            submitted=state.submitted
        )

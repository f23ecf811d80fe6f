"""Play registration and credit accrual"""
import datetime
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from play_royalties.config import AccrualPolicy
from play_royalties.db import Database
from play_royalties.models.db import MonthlyArtistCredits, utcnow
from play_royalties.models.registration import PlayRegistration
from play_royalties.scoring import PlayScorer
from play_royalties.services.storage import LedgerStorage

logger = logging.getLogger(__name__)

class AccrualService:
    """Records listen reports and grants credit at most once per cooldown window"""

    def __init__(self, database: Database, policy: AccrualPolicy):
        self.database = database
        self.policy = policy
        self.scorer = PlayScorer(policy)

    def register_play(self, user_id: Optional[str], content_id: str, content_type: str,
                      listen_duration_seconds: int, content_duration_seconds: int,
                      now: Optional[datetime.datetime] = None) -> PlayRegistration:
        """
        Record one listen report and credit it if it newly qualifies.

        The play record, cooldown claim, ledger entry and artist aggregate are
        written in a single transaction. A report that does not reach the
        qualifying ratio is still recorded, with zero credit.

        Args:
            user_id: Authenticated caller; None means anonymous and nothing is written
            content_id: Identifier of the played content
            content_type: 'song' or 'podcast_episode'
            listen_duration_seconds: Active listening time measured by the client
            content_duration_seconds: Declared length of the content
            now: Registration time, defaults to the current UTC time. Converted to
                UTC before it is stored or compared.

        Returns:
            PlayRegistration describing what was recorded and credited

        Raises:
            ValueError: If now is a naive datetime
        """
        if not user_id:
            logger.info(f"Ignoring play of {content_id}: caller is not authenticated")
            return PlayRegistration(success=False, error="Not authenticated")

        if now is None:
            now = utcnow()
        elif now.tzinfo is None:
            logger.error(f"Naive registration time {now} for play of {content_id}")
            raise ValueError("Registration time must be timezone-aware")
        # All stored timestamps are UTC; SQLite drops the offset
        now = now.astimezone(datetime.timezone.utc)
        content_type = str(getattr(content_type, 'value', content_type))
        assessment = self.scorer.assess(content_type, listen_duration_seconds, content_duration_seconds)
        if assessment.listen_seconds != assessment.reported_listen_seconds:
            logger.warning(
                f"Clamped listen duration for {content_id} from {assessment.reported_listen_seconds}s "
                f"to {assessment.listen_seconds}s (content {assessment.content_seconds}s)"
            )

        credits_earned = 0.0
        cooldown_passed = True
        try:
            with self.database.session() as session:
                storage = LedgerStorage(session)
                play = storage.record_play(user_id, content_id, content_type, assessment, now)

                if assessment.threshold_met and assessment.credit_amount > 0:
                    cooldown_passed = storage.claim_cooldown(
                        user_id, content_id, play.id, now, self.policy.cooldown_seconds
                    )
                    if cooldown_passed:
                        storage.append_credit(play, assessment.credit_amount, now)
                        storage.record_artist_credit(play, assessment.credit_amount, now)
                        credits_earned = assessment.credit_amount

                play_id = play.id
        except SQLAlchemyError as e:
            logger.error(f"Failed to register play of {content_id} for user {user_id}: {e}")
            raise

        logger.info(
            f"Registered play {play_id}: content={content_id} listen={assessment.listen_percent:.2%} "
            f"threshold_met={assessment.threshold_met} cooldown_passed={cooldown_passed} "
            f"credits={credits_earned}"
        )
        return PlayRegistration(
            success=True,
            play_id=play_id,
            credits_earned=credits_earned,
            threshold_met=assessment.threshold_met,
            cooldown_passed=cooldown_passed,
            listen_percent=assessment.listen_percent
        )

    def balance(self, user_id: str) -> float:
        """Current credit balance, aggregated from the ledger"""
        with self.database.session() as session:
            return LedgerStorage(session).balance(user_id)

    def artist_month(self, artist_id: str, year: int, month: int) -> Optional[MonthlyArtistCredits]:
        """Monthly aggregate row for an artist, if any play was credited that month"""
        with self.database.session() as session:
            return LedgerStorage(session).artist_month(artist_id, year, month)

    def add_catalog_entry(self, track_id: str, artist_id: str, content_type: str,
                          title: Optional[str] = None) -> None:
        with self.database.session() as session:
            LedgerStorage(session).ensure_track(track_id, artist_id, content_type, title)

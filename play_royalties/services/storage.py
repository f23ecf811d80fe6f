"""Database storage service for play records and the credit ledger"""
import logging
import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from play_royalties.models.db import (
    PlayEvent, CreditLedgerEntry, CreditCooldown, MediaTrack, MonthlyArtistCredits, new_id
)
from play_royalties.models.listening import ContentType
from play_royalties.scoring import PlayAssessment

logger = logging.getLogger(__name__)

CONTENT_PLAY_REASON = 'content_play'

def _month_bounds(moment: datetime.datetime) -> tuple[datetime.datetime, datetime.datetime]:
    """First instant of the month containing moment, and of the following month"""
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end

class LedgerStorage:
    """Handles all ledger database operations inside the caller's transaction"""

    def __init__(self, session: Session):
        self.session = session

    def _insert(self):
        """Dialect insert construct supporting ON CONFLICT"""
        dialect = self.session.get_bind().dialect.name
        if dialect == 'postgresql':
            return postgresql.insert
        elif dialect == 'sqlite':
            return sqlite.insert
        raise NotImplementedError(f"Conditional upserts are not supported on {dialect}")

    def record_play(self, user_id: str, content_id: str, content_type: str,
                    assessment: PlayAssessment, now: datetime.datetime) -> PlayEvent:
        """Insert the play record for a submitted report"""
        try:
            play = PlayEvent(
                id=new_id(),
                user_id=user_id,
                content_id=content_id,
                content_type=content_type,
                reported_listen_seconds=assessment.reported_listen_seconds,
                listen_duration_seconds=assessment.listen_seconds,
                content_duration_seconds=assessment.content_seconds,
                listen_percent=assessment.listen_percent,
                play_credits=0,
                threshold_met=assessment.threshold_met,
                created_at=now
            )
            self.session.add(play)
            self.session.flush()
            return play
        except SQLAlchemyError as e:
            logger.error(f"Database error recording play of {content_id} for user {user_id}: {e}")
            raise

    def claim_cooldown(self, user_id: str, content_id: str, play_id: str,
                       now: datetime.datetime, cooldown_seconds: int) -> bool:
        """
        Atomically claim the credit slot for (user, content).

        Inserts the cooldown row, or moves it forward only when the previous
        credit is older than the window. Returns False when another play holds
        the slot, which includes a concurrent claim that committed first.
        """
        table = CreditCooldown.__table__
        cutoff = now - datetime.timedelta(seconds=cooldown_seconds)
        insert = self._insert()

        stmt = insert(table).values(
            user_id=user_id,
            content_id=content_id,
            last_credited_at=now,
            play_id=play_id
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['user_id', 'content_id'],
            set_={
                'last_credited_at': stmt.excluded.last_credited_at,
                'play_id': stmt.excluded.play_id,
            },
            where=table.c.last_credited_at < cutoff
        ).returning(table.c.play_id)

        try:
            claimed = self.session.execute(stmt).first()
        except SQLAlchemyError as e:
            logger.error(f"Database error claiming cooldown for {content_id}, user {user_id}: {e}")
            raise
        return claimed is not None

    def append_credit(self, play: PlayEvent, amount: float, now: datetime.datetime) -> CreditLedgerEntry:
        """Append the ledger entry for a credited play"""
        try:
            play.play_credits = amount
            entry = CreditLedgerEntry(
                id=new_id(),
                user_id=play.user_id,
                amount=amount,
                reason=CONTENT_PLAY_REASON,
                reference=play.content_id,
                play_id=play.id,
                created_at=now
            )
            self.session.add(entry)
            self.session.flush()
            return entry
        except SQLAlchemyError as e:
            logger.error(f"Database error appending ledger entry for play {play.id}: {e}")
            raise

    def record_artist_credit(self, play: PlayEvent, amount: float,
                             now: datetime.datetime) -> Optional[str]:
        """
        Add a credited play to its artist's monthly aggregate.

        Returns the artist id, or None when the content is not in the catalog.
        """
        track = self.session.get(MediaTrack, play.content_id)
        if track is None:
            logger.debug(f"Content {play.content_id} has no catalog entry, skipping artist aggregate")
            return None

        year, month = now.year, now.month
        period_start, period_end = _month_bounds(now)
        song_plays = 1 if play.content_type == ContentType.SONG.value else 0
        podcast_plays = 1 if play.content_type == ContentType.PODCAST_EPISODE.value else 0

        try:
            self.session.flush()
            unique_listeners = self.session.execute(
                select(func.count(func.distinct(PlayEvent.user_id)))
                .join(MediaTrack, MediaTrack.id == PlayEvent.content_id)
                .where(
                    MediaTrack.artist_id == track.artist_id,
                    PlayEvent.threshold_met.is_(True),
                    PlayEvent.play_credits > 0,
                    PlayEvent.created_at >= period_start,
                    PlayEvent.created_at < period_end
                )
            ).scalar() or 0

            table = MonthlyArtistCredits.__table__
            insert = self._insert()
            stmt = insert(table).values(
                id=new_id(),
                artist_id=track.artist_id,
                year=year,
                month=month,
                total_play_credits=amount,
                song_plays=song_plays,
                podcast_plays=podcast_plays,
                unique_listeners=unique_listeners,
                updated_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=['artist_id', 'year', 'month'],
                set_={
                    'total_play_credits': table.c.total_play_credits + amount,
                    'song_plays': table.c.song_plays + song_plays,
                    'podcast_plays': table.c.podcast_plays + podcast_plays,
                    'unique_listeners': unique_listeners,
                    'updated_at': now,
                }
            )
            self.session.execute(stmt)
            return track.artist_id
        except SQLAlchemyError as e:
            logger.error(f"Database error updating monthly credits for artist {track.artist_id}: {e}")
            raise

    def balance(self, user_id: str) -> float:
        """Sum of all ledger entries for the user"""
        total = self.session.execute(
            select(func.coalesce(func.sum(CreditLedgerEntry.amount), 0))
            .where(CreditLedgerEntry.user_id == user_id)
        ).scalar()
        return float(total or 0)

    def artist_month(self, artist_id: str, year: int, month: int) -> Optional[MonthlyArtistCredits]:
        return self.session.execute(
            select(MonthlyArtistCredits).where(
                MonthlyArtistCredits.artist_id == artist_id,
                MonthlyArtistCredits.year == year,
                MonthlyArtistCredits.month == month
            )
        ).scalar_one_or_none()

    def ensure_track(self, track_id: str, artist_id: str, content_type: str,
                     title: Optional[str] = None) -> MediaTrack:
        """Create or update a catalog entry"""
        try:
            track = self.session.get(MediaTrack, track_id)
            if track:
                track.artist_id = artist_id
                track.content_type = content_type
                if title:
                    track.title = title
            else:
                logger.info(f"Adding catalog entry {track_id} for artist {artist_id}")
                track = MediaTrack(id=track_id, artist_id=artist_id, content_type=content_type, title=title)
                self.session.add(track)
            self.session.flush()
            return track
        except SQLAlchemyError as e:
            logger.error(f"Database error saving catalog entry {track_id}: {e}")
            raise

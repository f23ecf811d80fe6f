"""SQLAlchemy database models for play records and the credit ledger"""
import datetime
import uuid

from sqlalchemy import (
    Column, Integer, String, Float, Numeric, Boolean, DateTime, ForeignKey,
    Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

def new_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

class PlayEvent(Base):
    """
    One row per submitted listen report, qualifying or not.
    Only play_credits is written after insertion, and only in the same
    transaction that credits the play.
    """
    __tablename__ = 'play_events'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, nullable=False)
    content_id = Column(String, nullable=False)
    content_type = Column(String, nullable=False)
    # What the client claimed, before clamping
    reported_listen_seconds = Column(Integer, nullable=False)
    listen_duration_seconds = Column(Integer, nullable=False, default=0)
    content_duration_seconds = Column(Integer, nullable=False)
    listen_percent = Column(Float, nullable=False, default=0.0)
    play_credits = Column(Numeric(3, 1, asdecimal=False), nullable=False, default=0)
    threshold_met = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_play_events_cooldown', 'user_id', 'content_id', 'created_at'),
        Index('idx_play_events_content', 'content_id', 'created_at'),
    )

class CreditLedgerEntry(Base):
    """
    Append-only record of a balance change.
    A user's balance is the sum of their entries.
    """
    __tablename__ = 'credit_ledger'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)
    amount = Column(Numeric(10, 1, asdecimal=False), nullable=False)
    reason = Column(String, nullable=False)
    reference = Column(String, nullable=False)
    play_id = Column(String(36), ForeignKey('play_events.id'), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

class CreditCooldown(Base):
    """
    Last credited play per (user, content).
    Written only through a conditional upsert so concurrent claims on the
    same pair cannot both succeed within one cooldown window.
    """
    __tablename__ = 'credit_cooldowns'

    user_id = Column(String, primary_key=True)
    content_id = Column(String, primary_key=True)
    last_credited_at = Column(DateTime(timezone=True), nullable=False)
    play_id = Column(String(36), nullable=False)

class MediaTrack(Base):
    """Catalog entry linking streamable content to its artist"""
    __tablename__ = 'media_tracks'

    id = Column(String, primary_key=True)
    artist_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=True)
    content_type = Column(String, nullable=False)

class MonthlyArtistCredits(Base):
    """
    Per-artist monthly aggregate of credited plays.
    Derived from credited play_events.
    """
    __tablename__ = 'monthly_artist_credits'

    id = Column(String(36), primary_key=True, default=new_id)
    artist_id = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    total_play_credits = Column(Numeric(10, 1, asdecimal=False), nullable=False, default=0)
    song_plays = Column(Integer, nullable=False, default=0)
    podcast_plays = Column(Integer, nullable=False, default=0)
    unique_listeners = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('artist_id', 'year', 'month', name='uq_monthly_artist_credits_period'),
        CheckConstraint('month >= 1 AND month <= 12', name='ck_monthly_artist_credits_month'),
    )

"""Wire models for the play registration contract"""
from typing import Optional
from pydantic import BaseModel, Field

from play_royalties.models.listening import ContentType

class ListenReportPayload(BaseModel):
    """Listen report as accepted by the submission endpoint"""
    content_id: str = Field(min_length=1, description="Identifier of the played content")
    content_type: ContentType = Field(description="Kind of content (song or podcast_episode)")
    listen_duration_seconds: int = Field(description="Measured active listening time, floored")
    content_duration_seconds: int = Field(description="Declared content length, floored")

class PlayRegistration(BaseModel):
    """
    Outcome of registering one play.

    Attributes:
        success: False only when the caller was not authenticated
        play_id: Identifier of the recorded play event
        credits_earned: Credits appended to the ledger by this play (0 when not credited)
        threshold_met: Whether the clamped listen ratio reached the qualifying ratio
        cooldown_passed: False when an earlier play of the same content was credited inside the window
        listen_percent: Clamped listen duration divided by content duration (0 for empty content)
        error: Reason for an unsuccessful registration
    """
    success: bool = True
    play_id: Optional[str] = None
    credits_earned: float = 0.0
    threshold_met: bool = False
    cooldown_passed: bool = True
    listen_percent: float = 0.0
    error: Optional[str] = None

class CreditBalance(BaseModel):
    """Current credit balance of a user"""
    user_id: str
    balance: float = 0.0

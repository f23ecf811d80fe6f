"""Application configuration and environment settings"""
from typing import Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class AccrualPolicy(BaseModel):
    """Policy values that decide when and how much a play is credited"""
    cooldown_seconds: int = Field(..., description="Seconds before the same content can be credited again")
    song_credits: float = Field(..., description="Credits granted for a qualifying song play")
    podcast_episode_credits: float = Field(..., description="Credits granted for a qualifying episode play")
    qualifying_ratio: float = Field(..., description="Fraction of the content that must be heard")
    duration_slack: float = Field(..., description="Tolerated over-report as a fraction of content length")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Database
    APP_ENV: str = Field("local", description="Deployment environment (production, staging, local)")
    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy URL, overrides the DB_* settings")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password")

    # Accrual policy
    PLAY_COOLDOWN_SECONDS: int = Field(3600, description="Cooldown window for repeat credits (seconds)")
    SONG_PLAY_CREDITS: float = Field(1.0, description="Credits per qualifying song play")
    PODCAST_EPISODE_PLAY_CREDITS: float = Field(0.5, description="Credits per qualifying podcast episode play")
    QUALIFYING_LISTEN_RATIO: float = Field(0.5, description="Listen ratio needed for a qualifying play")
    DURATION_SLACK: float = Field(0.05, description="Allowed timer drift over content length")

    # Listening tracker
    SEEK_THRESHOLD_SECONDS: float = Field(5.0, description="Position jumps at or above this count as seeks")

    # Submission interface
    ACCRUAL_API_URL: str = Field("http://localhost:8000", description="Base URL of the accrual endpoint")
    REQUEST_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout for the single submission request")

    # Identity
    JWT_SECRET: str = Field("change-me", description="Secret used to verify session tokens")
    JWT_ALGORITHM: str = Field("HS256", description="Session token signing algorithm")

    # Input/Output directories for session replays
    INPUT_DIR: str = Field("/input", description="Directory containing session tick logs")
    OUTPUT_DIR: str = Field("/output", description="Directory for replay results")

    LOG_LEVEL: str = Field("INFO", description="Root log level")

    @property
    def accrual_policy(self) -> AccrualPolicy:
        """Get accrual policy values as a separate model"""
        return AccrualPolicy(
            cooldown_seconds=self.PLAY_COOLDOWN_SECONDS,
            song_credits=self.SONG_PLAY_CREDITS,
            podcast_episode_credits=self.PODCAST_EPISODE_PLAY_CREDITS,
            qualifying_ratio=self.QUALIFYING_LISTEN_RATIO,
            duration_slack=self.DURATION_SLACK
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

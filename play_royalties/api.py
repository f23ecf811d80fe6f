"""HTTP submission endpoint for listen reports"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import jwt
from fastapi import Depends, FastAPI, Header, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from play_royalties.accrual import AccrualService
from play_royalties.config import Settings, settings as default_settings
from play_royalties.db import Database, db as default_db
from play_royalties.models.registration import CreditBalance, ListenReportPayload, PlayRegistration

logger = logging.getLogger(__name__)

def user_id_from_token(authorization: Optional[str], app_settings: Settings) -> Optional[str]:
    """Resolve the caller from a bearer session token, None when absent or invalid"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        logger.warning("Malformed Authorization header")
        return None

    try:
        payload = jwt.decode(token, app_settings.JWT_SECRET, algorithms=[app_settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        return None

    user_id = payload.get('sub')
    if not user_id:
        logger.warning("Token missing sub")
        return None
    return str(user_id)

def create_app(database: Optional[Database] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a ledger database and settings"""
    database = database or default_db
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not database.initialized:
            database.init()
        yield
        database.dispose()

    app = FastAPI(title="Play Royalties", lifespan=lifespan)
    service = AccrualService(database, app_settings.accrual_policy)

    def optional_user(authorization: Optional[str] = Header(None)) -> Optional[str]:
        return user_id_from_token(authorization, app_settings)

    def required_user(user_id: Optional[str] = Depends(optional_user)) -> str:
        if not user_id:
            raise HTTPException(status_code=401, detail="Not logged in")
        return user_id

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/plays", response_model=PlayRegistration)
    def register_play(payload: ListenReportPayload,
                      user_id: Optional[str] = Depends(optional_user)) -> PlayRegistration:
        # Anonymous submissions are a no-op, not an error
        try:
            return service.register_play(
                user_id,
                payload.content_id,
                payload.content_type.value,
                payload.listen_duration_seconds,
                payload.content_duration_seconds
            )
        except SQLAlchemyError:
            raise HTTPException(status_code=503, detail="Play registration failed")

    @app.get("/credits/balance", response_model=CreditBalance)
    def credit_balance(user_id: str = Depends(required_user)) -> CreditBalance:
        try:
            return CreditBalance(user_id=user_id, balance=service.balance(user_id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to read balance for {user_id}: {e}")
            raise HTTPException(status_code=503, detail="Balance unavailable")

    return app

app = create_app()

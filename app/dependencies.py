"""
FastAPI dependencies
Session cookie authentication and service wiring
"""

import logging
from typing import Optional

from fastapi import Cookie, Depends
from sqlalchemy.orm import Session

from app.config import COOKIE_NAME
from app.database import get_db
from app.errors import UnauthenticatedError
from app.models.user import User
from app.services.tasks import TaskService
from app.utils.auth import TokenError, decode_token

logger = logging.getLogger(__name__)


def resolve_user(db: Session, token: Optional[str]) -> User:
    """Load the user a session token belongs to.

    The user is re-read from the database on every call, so a token that
    outlives its account is rejected.
    """
    if not token:
        raise UnauthenticatedError("Not authenticated")
    try:
        user_id = decode_token(token)
    except TokenError as e:
        logger.info("Rejected session token: %s", e)
        raise UnauthenticatedError(str(e))
    user = db.get(User, user_id)
    if user is None:
        logger.info("Session token refers to missing user %s", user_id)
        raise UnauthenticatedError("Invalid token")
    return user


def get_current_user(
    token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    db: Session = Depends(get_db),
) -> User:
    return resolve_user(db, token)


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)

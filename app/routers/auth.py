import logging
from typing import Optional
from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.config import COOKIE_NAME, COOKIE_SECURE
from app.schemas.user import UserCreate, UserLogin, UserOut, UserEnvelope
from app.models.user import User
from app.utils.auth import hash_password, verify_password, create_token, session_max_age
from app.database import get_db
from app.dependencies import get_current_user, resolve_user
from app.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, user: User):
    response.set_cookie(
        COOKIE_NAME,
        create_token(user.id, user.email),
        max_age=session_max_age(),
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="strict",
    )


def clear_session_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="strict")


def _already_signed_in(db: Session, token: Optional[str], request: Request, response: Response) -> Optional[User]:
    """Return the user behind a still-valid cookie; clear the cookie if it is stale.

    The stale flag on ``request.state`` lets the error handlers clear it too
    when the request goes on to fail.
    """
    if not token:
        return None
    try:
        return resolve_user(db, token)
    except UnauthenticatedError:
        request.state.stale_session = True
        clear_session_cookie(response)
        return None


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


@router.post("/signup", response_model=UserEnvelope)
def signup(
    user: UserCreate,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
):
    current = _already_signed_in(db, token, request, response)
    if current:
        return {"user": UserOut.model_validate(current)}

    if _email_taken(db, user.email):
        raise HTTPException(status_code=400, detail="Email already exists")

    try:
        hashed = hash_password(user.password)
    except ValueError as e:
        # map hashing/validation errors to a 400 so client gets a clear message
        raise HTTPException(status_code=400, detail=str(e))

    new_user = User(email=user.email, password=hashed, name=user.name)
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent signup took the address after the check above
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already exists")
    db.refresh(new_user)
    logger.info("User %s signed up", new_user.id)

    set_session_cookie(response, new_user)
    return {"user": UserOut.model_validate(new_user)}


@router.post("/login", response_model=UserEnvelope)
def login(
    user: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    token: Optional[str] = Cookie(None, alias=COOKIE_NAME),
):
    current = _already_signed_in(db, token, request, response)
    if current:
        return {"user": UserOut.model_validate(current)}

    db_user = db.query(User).filter(User.email == user.email).first()
    if not db_user or not verify_password(user.password, db_user.password):
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    set_session_cookie(response, db_user)
    return {"user": UserOut.model_validate(db_user)}


@router.post("/logout")
def logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return {"user": UserOut.model_validate(current_user)}

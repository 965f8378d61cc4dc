from datetime import datetime, timedelta, UTC
from typing import Optional
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from app.config import SECRET_KEY, ALGORITHM

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > 72:
            # make the failure explicit and consistent
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def session_max_age() -> int:
    """Session lifetime in seconds, read at call-time like create_token."""
    import app.config as _cfg
    return int(_cfg.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


def create_token(user_id: str, email: str):
    # read expiry at call-time so tests (and runtime overrides) that modify
    # app.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    import app.config as _cfg
    expire = datetime.now(UTC) + timedelta(minutes=_cfg.ACCESS_TOKEN_EXPIRE_MINUTES)
    data = {"sub": user_id, "email": email, "exp": int(expire.timestamp())}  # JWT spec uses Unix timestamp
    return jwt.encode(data, SECRET_KEY, algorithm=ALGORITHM)


class TokenError(Exception):
    pass


def decode_token(token: str) -> str:
    """Return the user id carried by a session token.

    Raises TokenError with a client-safe message when the token is expired,
    tampered with or missing its subject.
    """
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenError("Token has expired")
    except JWTError:
        raise TokenError("Invalid token")
    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise TokenError("Invalid token: missing user")
    return user_id

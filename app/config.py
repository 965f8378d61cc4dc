import os

SECRET_KEY = os.environ.get("SECRET_KEY", "TASKBOARD_DEV_SECRET")
ALGORITHM = os.environ.get("ALGORITHM", "HS256")
# 24h session lifetime; shared by the token "exp" claim and the cookie max-age
ACCESS_TOKEN_EXPIRE_MINUTES = float(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 24 * 60))

# Default to local SQLite for dev/tests; override via env in Docker/Prod
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./taskboard.db")

COOKIE_NAME = os.environ.get("COOKIE_NAME", "token")
COOKIE_SECURE = os.environ.get("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

CORS_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "http://localhost:5174").split(",") if o.strip()
]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

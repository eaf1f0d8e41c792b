from datetime import datetime, timedelta, timezone
import secrets
from passlib.context import CryptContext
import jwt
from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

LINE_STATE_PURPOSE = "line_oauth_state"
LINE_STATE_EXPIRES_MIN = 10

def hash_password(pw: str) -> str:
    return pwd_context.hash(pw)

def random_password_hash() -> str:
    # For accounts that only ever sign in through LINE.
    return hash_password(secrets.token_urlsafe(24))

def verify_password(pw: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(pw, hashed)
    except ValueError:
        return False

def create_access_token(sub: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_expires_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")

def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])

def create_oauth_state() -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "purpose": LINE_STATE_PURPOSE,
        "nonce": secrets.token_urlsafe(16),
        "exp": int((now + timedelta(minutes=LINE_STATE_EXPIRES_MIN)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")

def verify_oauth_state(state: str) -> bool:
    try:
        payload = jwt.decode(state, settings.jwt_secret, algorithms=["HS256"])
    except jwt.PyJWTError:
        return False
    return payload.get("purpose") == LINE_STATE_PURPOSE

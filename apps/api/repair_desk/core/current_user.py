import logging

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..db import get_session
from ..models.user import User
from .security import decode_token

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def _user_id_from_token(token: str) -> int:
    try:
        return int(decode_token(token)["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    session: Session = Depends(get_session),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = session.get(User, _user_id_from_token(creds.credentials))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        logger.info("Admin route denied for user_id=%s", user.id)
        raise HTTPException(status_code=403, detail="Forbidden")
    return user

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.db_errors import is_unique_violation
from ..core.errors import BadRequestError, NotFoundError, UnauthorizedError
from ..core.security import (
    create_access_token,
    hash_password,
    random_password_hash,
    verify_oauth_state,
    verify_password,
)
from ..models.line_oa_link import LineLinkStatus, LineOALink
from ..models.user import User, UserRole
from ..schemas.auth import LoginIn, ProfileUpdateIn, RegisterIn

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Email or password incorrect"
PROFILE_FIELDS = ("name", "department", "phone_number", "line_id")
LINE_EMAIL_DOMAIN = "line.com"

# verified against when the email is unknown
_DUMMY_PASSWORD_HASH = random_password_hash()


class LineOAuth(Protocol):
    def generate_auth_url(self) -> dict: ...

    def exchange_code_for_token(self, code: str) -> dict: ...

    def get_user_profile(self, access_token: str) -> dict: ...


def _token_response(user: User, message: str) -> dict:
    return {
        "access_token": create_access_token(str(user.id), user.role.value),
        "token_type": "bearer",
        "user_id": user.id,
        "role": user.role,
        "message": message,
    }


def is_line_placeholder_email(email: str) -> bool:
    local, _, domain = (email or "").lower().rpartition("@")
    return domain == LINE_EMAIL_DOMAIN and local.startswith("line_")


def register(session: Session, payload: RegisterIn) -> dict:
    # line_*@line.com is the address LINE sign-in creates accounts under
    if is_line_placeholder_email(payload.email):
        raise BadRequestError("Email is reserved for LINE sign-in")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        # 권한은 관리자가 별도로 부여
        role=UserRole.USER,
        department=payload.department,
        phone_number=payload.phone_number,
        line_id=payload.line_id,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if is_unique_violation(exc, "email"):
            raise BadRequestError("Email already exists") from exc
        raise
    return {"message": "Register success", "user_id": user.id, "role": user.role}


def login(session: Session, payload: LoginIn) -> dict:
    user = session.scalar(select(User).where(User.email == payload.email))
    if user is None:
        # Unknown email still pays for one bcrypt check so response time matches a wrong password.
        verify_password(payload.password, _DUMMY_PASSWORD_HASH)
        raise UnauthorizedError(LOGIN_FAILED_MESSAGE)
    if not verify_password(payload.password, user.password_hash):
        raise UnauthorizedError(LOGIN_FAILED_MESSAGE)
    return _token_response(user, "Login success")


def get_line_auth_url(line_oauth: LineOAuth) -> dict:
    return line_oauth.generate_auth_url()


def _find_user_by_line_link(session: Session, line_user_id: str) -> User | None:
    stmt = (
        select(User)
        .join(LineOALink, LineOALink.user_id == User.id)
        .where(LineOALink.line_user_id == line_user_id)
        .limit(1)
    )
    return session.scalar(stmt)


def _create_line_user(session: Session, line_user_id: str, profile: dict) -> User:
    user = User(
        name=profile.get("displayName") or "LINE User",
        email=f"line_{line_user_id}@{LINE_EMAIL_DOMAIN}",
        password_hash=random_password_hash(),
        role=UserRole.USER,
        line_id=line_user_id,
    )
    session.add(user)
    try:
        session.flush()
        session.add(LineOALink(user_id=user.id, line_user_id=line_user_id, status=LineLinkStatus.VERIFIED))
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        # An existing account on the placeholder address is never adopted.
        if is_unique_violation(exc, "email"):
            logger.warning("[LINE Auth] Placeholder email already taken for LINE user %s", line_user_id)
            raise BadRequestError("This LINE account cannot be linked") from exc
        raise
    return user


def line_callback(session: Session, line_oauth: LineOAuth, code: str | None, state: str | None = None) -> dict:
    if not code:
        logger.error("[LINE Auth] No authorization code provided")
        raise BadRequestError("Authorization code is required")
    if state is not None and not verify_oauth_state(state):
        logger.warning("[LINE Auth] Invalid or expired state")
        raise BadRequestError("Invalid OAuth state")

    logger.info("[LINE Auth] Processing callback with code: %s...", code[:10])
    try:
        token = line_oauth.exchange_code_for_token(code)
        line_access_token = token["access_token"]
        line_user_id = token["user_id"]

        user = _find_user_by_line_link(session, line_user_id)
        if user is None:
            profile = line_oauth.get_user_profile(line_access_token)
            user = _create_line_user(session, line_user_id, profile)
            logger.info("[LINE Auth] New user created: user_id=%s", user.id)
        else:
            logger.info("[LINE Auth] Existing user found: user_id=%s", user.id)
            if not user.line_id:
                user.line_id = line_user_id
                session.commit()
    except Exception:
        logger.exception("[LINE Auth] Callback error")
        raise

    return _token_response(user, "LOGIN success via LINE")


def get_profile(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user


def update_profile(session: Session, user_id: int, payload: ProfileUpdateIn) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    # 빈 문자열은 무시 (값이 있는 항목만 반영)
    for name in PROFILE_FIELDS:
        value = getattr(payload, name)
        if value:
            setattr(user, name, value)
    session.commit()
    session.refresh(user)
    return user

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..schemas.auth import (
    LineAuthUrlOut,
    LoginIn,
    ProfileOut,
    ProfileUpdateIn,
    RegisterIn,
    RegisterOut,
    TokenOut,
)
from ..core.current_user import get_current_user
from ..core.line_oauth import LineOAuthClient, get_line_oauth
from ..models.user import User
from ..db import get_session
from ..services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterOut)
def register(payload: RegisterIn, session: Session = Depends(get_session)):
    return auth_service.register(session, payload)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, session: Session = Depends(get_session)):
    return auth_service.login(session, payload)


@router.get("/line", response_model=LineAuthUrlOut)
def line_auth_url(line_oauth: LineOAuthClient = Depends(get_line_oauth)):
    return auth_service.get_line_auth_url(line_oauth)


@router.get("/line/callback", response_model=TokenOut)
def line_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    session: Session = Depends(get_session),
    line_oauth: LineOAuthClient = Depends(get_line_oauth),
):
    return auth_service.line_callback(session, line_oauth, code, state)


@router.get("/profile", response_model=ProfileOut)
def get_profile(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return auth_service.get_profile(session, user.id)


@router.patch("/profile", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdateIn,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return auth_service.update_profile(session, user.id, payload)

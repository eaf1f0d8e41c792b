from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from ..core.current_user import require_admin
from ..db import get_session
from ..models.user import User, UserRole
from ..schemas.user import UserSummaryOut
from ..services.repair_service import find_user_by_line_id

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserSummaryOut])
def search_users(
    session: Session = Depends(get_session),
    user: User = Depends(require_admin),
    query: str = Query(min_length=1, max_length=100),
    role: UserRole | None = Query(default=None),
    limit: int = Query(default=8, ge=1, le=20),
):
    """Assignee picker: match on name, email or department."""
    q = query.strip()
    if not q:
        return []

    pattern = f"%{q}%"
    stmt = select(User).where(
        or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.department.ilike(pattern),
        )
    )
    if role is not None:
        stmt = stmt.where(User.role == role)
    stmt = stmt.order_by(User.name.asc(), User.id.asc()).limit(limit)
    return list(session.scalars(stmt).all())


@router.get("/line/{line_user_id}", response_model=UserSummaryOut)
def get_user_by_line_id(
    line_user_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(require_admin),
):
    found = find_user_by_line_id(session, line_user_id)
    if not found:
        raise HTTPException(status_code=404, detail="User not found")
    return found

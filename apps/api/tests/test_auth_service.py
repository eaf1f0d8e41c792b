import pytest
from sqlalchemy import select

from repair_desk.core.errors import BadRequestError, NotFoundError, UnauthorizedError
from repair_desk.core.security import create_oauth_state, decode_token, verify_password
from repair_desk.models.line_oa_link import LineLinkStatus, LineOALink
from repair_desk.models.user import User, UserRole
from repair_desk.schemas.auth import LoginIn, ProfileUpdateIn, RegisterIn
from repair_desk.services import auth_service


def _register(session, email="mai@repairdesk.co.th", **overrides):
    data = {"name": "Mai", "email": email, "password": "s3cret-pass"}
    data.update(overrides)
    return auth_service.register(session, RegisterIn(**data))


def test_register_hashes_password_and_forces_user_role(session):
    result = _register(session, role="ADMIN", department="Facilities")

    assert result["message"] == "Register success"
    assert result["role"] == UserRole.USER
    user = session.get(User, result["user_id"])
    assert user.role == UserRole.USER
    assert user.department == "Facilities"
    assert user.password_hash != "s3cret-pass"
    assert verify_password("s3cret-pass", user.password_hash)


def test_register_duplicate_email(session):
    _register(session)
    with pytest.raises(BadRequestError) as exc_info:
        _register(session, name="Other Mai")
    assert exc_info.value.detail == "Email already exists"


def test_login_returns_signed_token(session):
    registered = _register(session)

    result = auth_service.login(session, LoginIn(email="mai@repairdesk.co.th", password="s3cret-pass"))

    assert result["user_id"] == registered["user_id"]
    assert result["role"] == UserRole.USER
    claims = decode_token(result["access_token"])
    assert claims["sub"] == str(registered["user_id"])
    assert claims["role"] == "USER"


def test_login_failures_are_indistinguishable(session):
    _register(session)

    with pytest.raises(UnauthorizedError) as wrong_password:
        auth_service.login(session, LoginIn(email="mai@repairdesk.co.th", password="nope"))
    with pytest.raises(UnauthorizedError) as unknown_email:
        auth_service.login(session, LoginIn(email="ghost@repairdesk.co.th", password="s3cret-pass"))

    assert wrong_password.value.detail == unknown_email.value.detail == "Email or password incorrect"


def test_line_auth_url_delegates(line_oauth):
    assert auth_service.get_line_auth_url(line_oauth)["state"] == "fake"


def test_line_callback_requires_code(session, line_oauth):
    with pytest.raises(BadRequestError):
        auth_service.line_callback(session, line_oauth, "")
    assert line_oauth.exchanged_codes == []


def test_line_callback_rejects_forged_state(session, line_oauth):
    with pytest.raises(BadRequestError):
        auth_service.line_callback(session, line_oauth, "code-1", state="not-a-state")


def test_line_callback_creates_user_and_verified_link(session, line_oauth):
    result = auth_service.line_callback(session, line_oauth, "code-1", state=create_oauth_state())

    user = session.get(User, result["user_id"])
    assert user.name == "Somchai"
    assert user.email == "line_U1234567890@line.com"
    assert user.role == UserRole.USER
    assert user.line_id == "U1234567890"
    link = session.scalar(select(LineOALink).where(LineOALink.user_id == user.id))
    assert link.line_user_id == "U1234567890"
    assert link.status == LineLinkStatus.VERIFIED
    assert result["message"] == "LOGIN success via LINE"
    assert decode_token(result["access_token"])["sub"] == str(user.id)


def test_line_callback_falls_back_to_default_name(session, line_oauth):
    line_oauth.display_name = ""
    result = auth_service.line_callback(session, line_oauth, "code-1")
    assert session.get(User, result["user_id"]).name == "LINE User"


def test_line_callback_returns_existing_linked_user(session, line_oauth, make_user):
    existing = make_user(name="Linked")
    session.add(LineOALink(user_id=existing.id, line_user_id="U1234567890", status=LineLinkStatus.VERIFIED))
    session.commit()

    result = auth_service.line_callback(session, line_oauth, "code-2")

    assert result["user_id"] == existing.id
    assert line_oauth.profile_calls == 0
    assert session.scalar(select(User).where(User.email == "line_U1234567890@line.com")) is None
    # line_id backfilled onto the linked user
    session.refresh(existing)
    assert existing.line_id == "U1234567890"


def test_line_callback_twice_reuses_user(session, line_oauth):
    first = auth_service.line_callback(session, line_oauth, "code-1")
    second = auth_service.line_callback(session, line_oauth, "code-2")
    assert first["user_id"] == second["user_id"]


def test_line_callback_never_adopts_account_on_placeholder_email(session, line_oauth, make_user):
    squatter = make_user(email="line_U1234567890@line.com")

    with pytest.raises(BadRequestError):
        auth_service.line_callback(session, line_oauth, "code-1", state=create_oauth_state())

    assert session.scalar(select(LineOALink)) is None
    session.refresh(squatter)
    assert squatter.line_id is None


@pytest.mark.parametrize("email", ["line_U1234567890@line.com", "LINE_Uabc@line.com"])
def test_register_rejects_line_placeholder_email(session, email):
    with pytest.raises(BadRequestError) as exc_info:
        _register(session, email=email)
    assert exc_info.value.detail == "Email is reserved for LINE sign-in"
    assert session.scalar(select(User)) is None


def test_login_unknown_email_still_verifies_a_hash(session, monkeypatch):
    checked = []
    real_verify = auth_service.verify_password

    def recording_verify(password, hashed):
        checked.append(hashed)
        return real_verify(password, hashed)

    monkeypatch.setattr(auth_service, "verify_password", recording_verify)

    with pytest.raises(UnauthorizedError):
        auth_service.login(session, LoginIn(email="ghost@repairdesk.co.th", password="s3cret-pass"))

    assert len(checked) == 1
    assert checked[0].startswith("$2")


def test_get_profile(session, make_user):
    user = make_user(name="Profile Person")
    profile = auth_service.get_profile(session, user.id)
    assert profile.name == "Profile Person"

    with pytest.raises(UnauthorizedError):
        auth_service.get_profile(session, 777)


def test_update_profile_ignores_empty_values(session, make_user):
    user = make_user(name="Before")
    user.department = "IT"
    session.commit()

    updated = auth_service.update_profile(
        session, user.id, ProfileUpdateIn(name="After", department="", phone_number="0812345678")
    )

    assert updated.name == "After"
    assert updated.department == "IT"
    assert updated.phone_number == "0812345678"
    assert updated.line_id is None

    with pytest.raises(NotFoundError):
        auth_service.update_profile(session, 777, ProfileUpdateIn(name="x"))

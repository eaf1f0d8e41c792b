from repair_desk.models.user import UserRole


def _register(client, email="lek@repairdesk.co.th", password="s3cret-pass", **extra):
    payload = {"name": "Lek", "email": email, "password": password}
    payload.update(extra)
    return client.post("/auth/register", json=payload)


def test_register_and_login(client):
    registered = _register(client, role="ADMIN")
    assert registered.status_code == 200, registered.text
    assert registered.json()["role"] == "USER"

    resp = client.post("/auth/login", json={"email": "lek@repairdesk.co.th", "password": "s3cret-pass"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["user_id"] == registered.json()["user_id"]
    assert body["role"] == "USER"
    assert body["token_type"] == "bearer"

    profile = client.get("/auth/profile", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert profile.json()["email"] == "lek@repairdesk.co.th"
    assert "password_hash" not in profile.json()


def test_register_duplicate_email_is_400(client):
    _register(client)
    resp = _register(client, name="Someone Else")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email already exists"


def test_register_rejects_password_over_bcrypt_limit(client):
    resp = _register(client, password="ก" * 30)  # 90 bytes in UTF-8
    assert resp.status_code == 422


def test_login_failures_share_message(client):
    _register(client)
    wrong = client.post("/auth/login", json={"email": "lek@repairdesk.co.th", "password": "bad-pass"})
    unknown = client.post("/auth/login", json={"email": "nobody@repairdesk.co.th", "password": "s3cret-pass"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Email or password incorrect"}


def test_profile_requires_token(client):
    assert client.get("/auth/profile").status_code == 401
    assert client.get("/auth/profile", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_update_profile(client, make_user, auth_headers):
    user = make_user(name="Old Name")
    resp = client.patch(
        "/auth/profile",
        json={"name": "New Name", "department": "", "line_id": "lek.line"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "New Name"
    assert resp.json()["department"] is None
    assert resp.json()["line_id"] == "lek.line"


def test_line_login_flow(client, line_oauth):
    url = client.get("/auth/line").json()
    assert url["url"].startswith("https://access.line.me/")

    first = client.get("/auth/line/callback", params={"code": "abc"})
    assert first.status_code == 200, first.text
    assert first.json()["message"] == "LOGIN success via LINE"

    again = client.get("/auth/line/callback", params={"code": "def"})
    assert again.json()["user_id"] == first.json()["user_id"]
    assert line_oauth.exchanged_codes == ["abc", "def"]


def test_line_callback_without_code(client):
    resp = client.get("/auth/line/callback")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Authorization code is required"


def test_user_lookup_by_line_id_is_admin_only(client, line_oauth, make_user, admin, auth_headers):
    created = client.get("/auth/line/callback", params={"code": "abc"}).json()
    user = make_user()

    assert client.get("/users/line/U1234567890", headers=auth_headers(user)).status_code == 403
    found = client.get("/users/line/U1234567890", headers=auth_headers(admin))
    assert found.json()["id"] == created["user_id"]
    assert client.get("/users/line/Unope", headers=auth_headers(admin)).status_code == 404


def test_user_search(client, make_user, admin, auth_headers):
    make_user(name="Technician Tom")
    make_user(name="Somsri")
    resp = client.get("/users/search", params={"query": "tech"}, headers=auth_headers(admin))
    assert [u["name"] for u in resp.json()] == ["Technician Tom"]
    assert resp.json()[0]["role"] == UserRole.USER.value


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_user_search_role_filter(client, make_user, admin, auth_headers):
    make_user(name="Tech User")
    make_user(name="Tech Lead", role=UserRole.ADMIN)
    resp = client.get(
        "/users/search", params={"query": "tech", "role": "ADMIN"}, headers=auth_headers(admin)
    )
    assert [u["name"] for u in resp.json()] == ["Tech Lead"]


def test_placeholder_email_cannot_capture_line_login(client, line_oauth):
    squat = _register(client, email="line_U1234567890@line.com", password="attacker-pw")
    assert squat.status_code == 400

    victim = client.get("/auth/line/callback", params={"code": "abc"})
    assert victim.status_code == 200

    attacker = client.post(
        "/auth/login", json={"email": "line_U1234567890@line.com", "password": "attacker-pw"}
    )
    assert attacker.status_code == 401

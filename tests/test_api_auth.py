from aiready.models.activity import Activity


def _login(client, email, password):
    return client.post("/api/v1/login", data={"username": email, "password": password})


def test_register_and_login(client):
    r = client.post(
        "/api/v1/register",
        json={"email": "New.User@Example.com", "password": "long-enough", "full_name": "New User"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "new.user@example.com"
    assert body["role"] == "user"
    assert "hashed_password" not in body

    r = _login(client, "new.user@example.com", "long-enough")
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new.user@example.com"
    assert me.json()["last_login_at"] is not None


def test_duplicate_registration(client, user):
    r = client.post("/api/v1/register", json={"email": "USER@example.com", "password": "long-enough"})
    assert r.status_code == 400
    assert r.json()["error"]["type"] == "validation_error"


def test_short_password_rejected(client):
    r = client.post("/api/v1/register", json={"email": "a@example.com", "password": "short"})
    assert r.status_code == 422


def test_unknown_user_gets_401(client):
    r = _login(client, "ghost@example.com", "whatever")
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Incorrect email or password"


def test_lockout_after_three_failures(client, db, user):
    assert _login(client, user.email, "wrong").status_code == 401
    assert _login(client, user.email, "wrong").status_code == 401

    r = _login(client, user.email, "wrong")
    assert r.status_code == 429
    assert "15 minutes" in r.json()["error"]["message"]

    # locked: even the right password is refused
    assert _login(client, user.email, "secret-pass").status_code == 423
    assert db.query(Activity).filter(Activity.type == "account_locked").count() == 1


def test_successful_login_resets_counter(client, db, user):
    _login(client, user.email, "wrong")
    _login(client, user.email, "wrong")
    assert _login(client, user.email, "secret-pass").status_code == 200
    db.expire_all()
    assert user.failed_login_attempts == 0
    assert _login(client, user.email, "wrong").status_code == 401


def test_me_requires_token(client):
    r = client.get("/api/v1/me")
    assert r.status_code == 401
    assert r.json()["error"]["type"] == "http_error"

    r = client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

import uuid
import app.config
from fastapi.testclient import TestClient
from app.main import app as api
from app.models.user import User
from app.utils.auth import create_token

PASSWORD = "SecurePass123!"


def _email():
    return f"test_{uuid.uuid4().hex}@example.com"


def test_signup_sets_session_cookie(client: TestClient):
    email = _email()
    r = client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["email"] == email
    assert user["name"] == "Ada"
    assert "id" in user
    assert "password" not in user

    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith("token=")
    assert "httponly" in cookie
    assert "samesite=strict" in cookie
    assert "max-age=86400" in cookie

    r = client.get("/auth/me")
    assert r.status_code == 200
    assert r.json()["user"]["id"] == user["id"]


def test_signup_duplicate_email(client: TestClient):
    email = _email()
    assert client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"}).status_code == 200

    other = TestClient(api)
    r = other.post("/auth/signup", json={"email": email, "password": "OtherPass1", "name": "Bob"})
    assert r.status_code == 400
    assert "exists" in r.json()["error"].lower()


def test_signup_validation(client: TestClient):
    r = client.post("/auth/signup", json={"email": "not_an_email", "password": PASSWORD, "name": "Ada"})
    assert r.status_code == 422
    assert "email" in r.json()["error"]

    r = client.post("/auth/signup", json={"email": _email(), "password": "short", "name": "Ada"})
    assert r.status_code == 422
    assert r.json()["fields"][0]["field"] == "password"

    r = client.post("/auth/signup", json={"email": _email(), "password": PASSWORD, "name": "A"})
    assert r.status_code == 422
    assert "name" in r.json()["error"]


def test_signup_password_too_long(client: TestClient):
    r = client.post("/auth/signup", json={"email": _email(), "password": "a" * 100, "name": "Ada"})
    assert r.status_code == 422
    text = r.text.lower()
    assert "password" in text and ("too long" in text or "72" in text)


def test_login_success_and_failure(client: TestClient):
    email = _email()
    client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"})

    fresh = TestClient(api)
    r = fresh.post("/auth/login", json={"email": email, "password": "WrongPass123!"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}

    r = fresh.post("/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert r.status_code == 401

    r = fresh.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == email
    assert fresh.get("/auth/me").status_code == 200


def test_signup_while_signed_in_returns_current_user(signed_up, db):
    alice = signed_up("Alice")
    r = alice.post("/auth/signup", json={"email": _email(), "password": PASSWORD, "name": "Other"})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == alice.user["id"]
    assert db.query(User).count() == 1


def test_logout_clears_cookie(signed_up):
    alice = signed_up("Alice")
    r = alice.post("/auth/logout")
    assert r.status_code == 200
    assert "max-age=0" in r.headers["set-cookie"].lower()

    r = alice.get("/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Not authenticated"}


def test_me_without_cookie(client: TestClient):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert "set-cookie" not in r.headers


def test_expired_token_is_rejected_and_cleared(signed_up, monkeypatch):
    alice = signed_up("Alice")
    monkeypatch.setattr(app.config, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
    expired = create_token(alice.user["id"], alice.user["email"])

    c = TestClient(api)
    c.cookies.set("token", expired)
    r = c.get("/tasks")
    assert r.status_code == 401
    assert "expired" in r.json()["error"].lower()
    assert "max-age=0" in r.headers["set-cookie"].lower()


def test_tampered_token_is_rejected(signed_up):
    alice = signed_up("Alice")
    token = create_token(alice.user["id"], alice.user["email"])
    c = TestClient(api)
    c.cookies.set("token", token[:-4] + "abcd")
    r = c.get("/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}


def test_token_for_deleted_user_is_rejected(signed_up, db):
    alice = signed_up("Alice")
    db.delete(db.get(User, alice.user["id"]))
    db.commit()

    r = alice.get("/auth/me")
    assert r.status_code == 401


def test_stale_cookie_cleared_when_signup_fails(client: TestClient):
    email = _email()
    client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"})

    c = TestClient(api)
    c.cookies.set("token", "garbage")
    r = c.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"})
    assert r.status_code == 400
    assert r.json() == {"error": "Email already exists"}
    assert "max-age=0" in r.headers["set-cookie"].lower()


def test_stale_cookie_cleared_when_login_fails(client: TestClient):
    email = _email()
    client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"})

    c = TestClient(api)
    c.cookies.set("token", "garbage")
    r = c.post("/auth/login", json={"email": email, "password": "WrongPass123!"})
    assert r.status_code == 401
    assert "max-age=0" in r.headers["set-cookie"].lower()


def test_failed_login_without_cookie_sets_nothing(client: TestClient):
    r = client.post("/auth/login", json={"email": _email(), "password": PASSWORD})
    assert r.status_code == 401
    assert "set-cookie" not in r.headers


def test_signup_race_on_same_email(client: TestClient, monkeypatch):
    email = _email()
    assert client.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Ada"}).status_code == 200

    # the second request passes the lookup, as a concurrent one would
    monkeypatch.setattr("app.routers.auth._email_taken", lambda db, email: False)
    r = TestClient(api).post("/auth/signup", json={"email": email, "password": PASSWORD, "name": "Bob"})
    assert r.status_code == 400
    assert r.json() == {"error": "Email already exists"}

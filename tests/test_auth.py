from auth import create_token
from create_admin import ensure_admin
from database import find_by_id


def test_register_login_me(client):
    res = client.post("/auth/register", json={"name": "Neha", "email": "neha@shopmail.com", "password": "hunter22"})
    assert res.status_code == 201
    registered = res.json()
    assert registered["user"]["role"] == "user"

    login = client.post("/auth/login", json={"email": "neha@shopmail.com", "password": "hunter22"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"id": registered["user"]["id"], "name": "Neha", "email": "neha@shopmail.com", "role": "user"}


def test_register_duplicate_email(client, user):
    res = client.post("/auth/register", json={"name": "Dup", "email": user["email"], "password": "hunter22"})
    assert res.status_code == 409


def test_login_wrong_password(client, user):
    res = client.post("/auth/login", json={"email": user["email"], "password": "wrong-password"})
    assert res.status_code == 401


def test_token_for_deleted_user_rejected(client, db, user, settings):
    db["user"].delete_many({})
    assert client.get("/auth/me", headers=user["headers"]).status_code == 401


def test_garbage_token_rejected(client, settings):
    assert client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"}).status_code == 401
    token = create_token({"email": "x@shopmail.com"}, settings)
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_ensure_admin_is_idempotent(db, settings):
    assert ensure_admin(db, settings) is True
    assert ensure_admin(db, settings) is False
    admins = list(db["user"].find({"role": "admin"}))
    assert len(admins) == 1
    assert find_by_id(db, "user", admins[0]["_id"])["email"] == settings.admin_email


def test_created_admin_can_log_in(client, db, settings):
    ensure_admin(db, settings)
    res = client.post("/auth/login", json={"email": settings.admin_email, "password": settings.admin_password})
    assert res.json()["user"]["role"] == "admin"

from datetime import timedelta

from sqlalchemy import select

from conftest import PASSWORD, auth_headers
from school_erp.core.security import create_access_token, is_password_hash
from school_erp.models import User


async def test_login_returns_token_and_user(client, seed):
    response = await client.post("/api/auth/login", json={"email": "meera@greenfield.edu", "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["role"] == "teacher"
    assert data["user"]["school"]["code"] == "GFH"

    me = await client.get("/api/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "meera@greenfield.edu"


async def test_first_login_hashes_seeded_password(client, seed, session_factory):
    response = await client.post("/api/auth/login", json={"email": "arjun@greenfield.edu", "password": PASSWORD})
    assert response.status_code == 200

    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.id == seed.student_user.id))).scalar_one()
        assert is_password_hash(user.password)

    again = await client.post("/api/auth/login", json={"email": "arjun@greenfield.edu", "password": PASSWORD})
    assert again.status_code == 200


async def test_wrong_password_is_rejected(client, seed):
    response = await client.post("/api/auth/login", json={"email": "meera@greenfield.edu", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


async def test_unknown_email_is_rejected(client, seed):
    response = await client.post("/api/auth/login", json={"email": "ghost@greenfield.edu", "password": PASSWORD})
    assert response.status_code == 401


async def test_disabled_account_cannot_log_in(client, seed, session_factory):
    async with session_factory() as session:
        user = await session.get(User, seed.staff.id)
        user.is_active = False
        await session.commit()

    response = await client.post("/api/auth/login", json={"email": "office@greenfield.edu", "password": PASSWORD})
    assert response.status_code == 403

    # Existing tokens stop working as well
    me = await client.get("/api/me", headers=auth_headers(seed.staff))
    assert me.status_code == 401


async def test_missing_and_bad_tokens(client, seed):
    assert (await client.get("/api/me")).status_code == 401
    bad = await client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Unauthorized: Invalid token"

    expired = create_access_token({"sub": str(seed.teacher_user.id)}, expires_delta=timedelta(seconds=-10))
    response = await client.get("/api/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


async def test_insufficient_permission_is_forbidden_and_audited(client, seed):
    from school_erp.core.config import settings

    response = await client.post(
        "/api/schools",
        json={"name": "Hillside", "code": "HILL"},
        headers=auth_headers(seed.teacher_user),
    )
    assert response.status_code == 403

    with open(settings.audit_log_path, encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert any(
        f"User:{seed.teacher_user.id}" in line and "Action:ACCESS_DENIED" in line
        for line in lines
    )


async def test_profile_shows_role_details(client, seed):
    student = (await client.get("/api/me", headers=auth_headers(seed.student_user))).json()
    assert student["student"]["admission_number"] == "ADM001"
    assert student["student"]["class_name"] == "Grade 10 A"

    parent = (await client.get("/api/me", headers=auth_headers(seed.parent_user))).json()
    assert [c["name"] for c in parent["children"]] == ["Arjun Nair"]


async def test_password_change_requires_current_password(client, seed):
    headers = auth_headers(seed.teacher_user)
    wrong = await client.put("/api/me", json={"old_password": "bad", "new_password": "newsecret"}, headers=headers)
    assert wrong.status_code == 400
    assert wrong.json()["detail"]["field"] == "old_password"

    ok = await client.put(
        "/api/me",
        json={"old_password": PASSWORD, "new_password": "newsecret", "phone": "9876543210"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert ok.json()["user"]["phone"] == "9876543210"

    login = await client.post("/api/auth/login", json={"email": "meera@greenfield.edu", "password": "newsecret"})
    assert login.status_code == 200

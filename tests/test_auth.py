from datetime import timedelta

from conftest import auth
from souqote.users.auth import create_access_token
from souqote.users.models import Account, User


class TestRegistration:
    """Sign-up creates the credential record and the profile row."""

    def test_register_returns_token_and_profile(self, client):
        response = client.post(
            "/auth/register",
            json={
                "email": "  New.Buyer@Example.com ",
                "password": "secret123",
                "first_name": "Noor",
                "last_name": "Ali",
                "phone": "+971501234567",
                "user_type": "buyer",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        user = body["user"]
        assert user["email"] == "new.buyer@example.com"
        assert user["status"] == "pending"
        assert user["is_verified"] is False
        assert user["rating"] == 0
        assert user["has_profile"] is True

    def test_short_password_is_rejected(self, client):
        response = client.post(
            "/auth/register",
            json={"email": "a@b.com", "password": "123", "first_name": "A", "last_name": "B"},
        )
        assert response.status_code == 400

    def test_invalid_email_is_rejected(self, client):
        response = client.post(
            "/auth/register",
            json={"email": "not-an-email", "password": "secret123", "first_name": "A", "last_name": "B"},
        )
        assert response.status_code == 422

    def test_duplicate_email_conflicts(self, client, buyer):
        response = client.post(
            "/auth/register",
            json={
                "email": "BUYER@example.com",
                "password": "secret123",
                "first_name": "Other",
                "last_name": "Person",
            },
        )
        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    def test_admin_requires_secret(self, client):
        response = client.post(
            "/auth/register",
            json={
                "email": "boss@example.com",
                "password": "secret123",
                "first_name": "Boss",
                "last_name": "Person",
                "user_type": "admin",
                "admin_secret": "wrong",
            },
        )
        assert response.status_code == 403


class TestLogin:
    def test_login_with_json_and_form(self, client, buyer):
        response = client.post("/auth/login", json={"email": "buyer@example.com", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["user"]["first_name"] == "Aisha"

        response = client.post("/auth/token", data={"username": "buyer@example.com", "password": "secret123"})
        assert response.status_code == 200

    def test_wrong_password(self, client, buyer):
        response = client.post("/auth/login", json={"email": "buyer@example.com", "password": "nope123"})
        assert response.status_code == 401
        assert response.json()["detail"].startswith("Invalid email or password")

    def test_unknown_email(self, client):
        response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
        assert response.status_code == 401

    def test_blocked_user_cannot_sign_in(self, client, buyer, db_session):
        _, user = buyer
        db_session.query(User).filter(User.id == user["id"]).update({"status": "blocked"})
        db_session.commit()

        response = client.post("/auth/login", json={"email": "buyer@example.com", "password": "secret123"})
        assert response.status_code == 403


class TestSession:
    def test_session_includes_permissions(self, client, vendor):
        token, _ = vendor
        response = client.get("/auth/session", headers=auth(token))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["user_type"] == "vendor"
        assert body["permissions"]["can_submit_quotes"] is True
        assert body["permissions"]["can_post_rfq"] is False

    def test_expired_token_is_rejected(self, client, buyer, db_session):
        _, user = buyer
        account = db_session.query(Account).filter(Account.id == user["id"]).first()
        token, _ = create_access_token(account, expires_delta=timedelta(minutes=-1))

        response = client.get("/users/me", headers=auth(token))
        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired. Please sign in again."

    def test_garbage_token_is_rejected(self, client):
        response = client.get("/users/me", headers=auth("not.a.token"))
        assert response.status_code == 401

    def test_refresh_and_logout(self, client, buyer):
        token, _ = buyer
        response = client.post("/auth/refresh", headers=auth(token))
        assert response.status_code == 200
        assert response.json()["access_token"]

        response = client.post("/auth/logout", headers=auth(token))
        assert response.status_code == 200
        assert response.json() == {"message": "Signed out"}

    def test_blocked_user_session_is_refused(self, client, buyer, db_session):
        token, user = buyer
        db_session.query(User).filter(User.id == user["id"]).update({"status": "deleted", "is_deleted": True})
        db_session.commit()

        response = client.get("/users/me", headers=auth(token))
        assert response.status_code == 403


class TestProfileFallback:
    """A missing profile row is rebuilt from the token metadata."""

    def _drop_profile(self, db_session, user_id):
        db_session.query(User).filter(User.id == user_id).delete()
        db_session.commit()

    def test_fallback_user_from_metadata(self, client, vendor, db_session):
        token, user = vendor
        self._drop_profile(db_session, user["id"])

        response = client.get("/users/me", headers=auth(token))

        assert response.status_code == 200
        body = response.json()
        assert body["has_profile"] is False
        assert body["first_name"] == "Omar"
        assert body["user_type"] == "vendor"
        assert body["rating"] == 0
        assert body["is_verified"] is False

    def test_writes_need_a_profile(self, client, buyer, category, db_session):
        from conftest import rfq_payload

        token, user = buyer
        self._drop_profile(db_session, user["id"])

        response = client.post("/rfqs/", json=rfq_payload(), headers=auth(token))
        assert response.status_code == 409

    def test_update_me_repairs_profile(self, client, buyer, db_session):
        token, user = buyer
        self._drop_profile(db_session, user["id"])

        response = client.put("/users/me", json={"bio": "Procurement lead"}, headers=auth(token))

        assert response.status_code == 200
        body = response.json()
        assert body["has_profile"] is True
        assert body["bio"] == "Procurement lead"
        assert body["first_name"] == "Aisha"
        assert db_session.query(User).filter(User.id == user["id"]).count() == 1

    def test_repair_refuses_cleared_names(self, client, buyer, db_session):
        token, user = buyer
        self._drop_profile(db_session, user["id"])

        response = client.put("/users/me", json={"last_name": None}, headers=auth(token))

        assert response.status_code == 400
        assert db_session.query(User).filter(User.id == user["id"]).count() == 0


class TestProfile:
    def test_update_profile(self, client, buyer):
        token, _ = buyer
        response = client.put(
            "/users/me",
            json={"company_name": "Khan Trading", "languages": ["English", "Arabic"]},
            headers=auth(token),
        )
        assert response.status_code == 200
        assert response.json()["company_name"] == "Khan Trading"
        assert response.json()["languages"] == ["English", "Arabic"]

    def test_role_is_not_editable(self, client, buyer):
        token, _ = buyer
        response = client.put("/users/me", json={"user_type": "admin"}, headers=auth(token))
        assert response.status_code == 200
        assert response.json()["user_type"] == "buyer"

    def test_public_profile(self, client, buyer, vendor):
        token, _ = buyer
        _, vendor_user = vendor
        response = client.get(f"/users/{vendor_user['id']}", headers=auth(token))
        assert response.status_code == 200
        assert response.json()["first_name"] == "Omar"
        assert "email" not in response.json()

    def test_avatar_upload(self, client, buyer):
        token, _ = buyer
        response = client.post(
            "/users/me/avatar",
            files={"file": ("me.png", b"\x89PNG fake", "image/png")},
            headers=auth(token),
        )
        assert response.status_code == 200
        assert response.json()["avatar_url"].startswith("/files/avatars/")

    def test_required_fields_cannot_be_cleared(self, client, buyer):
        token, _ = buyer
        for field in ("first_name", "last_name", "phone"):
            response = client.put("/users/me", json={field: None}, headers=auth(token))
            assert response.status_code == 400, field
            assert field in response.json()["detail"]

        me = client.get("/users/me", headers=auth(token)).json()
        assert me["first_name"] == "Aisha"

    def test_optional_fields_can_be_cleared(self, client, buyer):
        token, _ = buyer
        client.put("/users/me", json={"company_name": "Khan Trading"}, headers=auth(token))
        response = client.put("/users/me", json={"company_name": None}, headers=auth(token))
        assert response.status_code == 200
        assert response.json()["company_name"] is None

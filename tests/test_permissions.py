from types import SimpleNamespace

from conftest import auth
from souqote.users.permissions import permissions_for


class TestPermissionsFor:
    def test_anonymous_has_nothing(self):
        perms = permissions_for(None)
        assert not any(perms.model_dump().values())

    def test_buyer(self):
        perms = permissions_for(SimpleNamespace(user_type="buyer"))
        assert perms.can_post_rfq and perms.can_view_my_rfqs
        assert perms.can_edit_profile and perms.can_view_messages
        assert not perms.can_submit_quotes
        assert not perms.can_view_admin

    def test_vendor(self):
        perms = permissions_for(SimpleNamespace(user_type="vendor"))
        assert perms.can_submit_quotes and perms.can_browse_rfqs and perms.can_view_my_quotes
        assert not perms.can_post_rfq

    def test_admin(self):
        perms = permissions_for(SimpleNamespace(user_type="admin"))
        assert perms.can_view_admin and perms.can_manage_users and perms.can_manage_categories
        assert perms.can_view_all_quotes and perms.can_view_all_rfqs
        assert not perms.can_post_rfq


class TestRoleRequired:
    def test_buyer_cannot_browse_rfqs(self, client, buyer):
        token, _ = buyer
        response = client.get("/rfqs/", headers=auth(token))
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"

    def test_admin_bypasses_role_checks(self, client, admin):
        token, _ = admin
        response = client.get("/rfqs/", headers=auth(token))
        assert response.status_code == 200

    def test_anonymous_permissions_endpoint(self, client):
        response = client.get("/users/me/permissions")
        assert response.status_code == 200
        assert response.json()["can_edit_profile"] is False

    def test_unauthenticated_request(self, client):
        response = client.get("/users/me")
        assert response.status_code == 401

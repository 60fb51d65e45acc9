from conftest import auth


class TestUserManagement:
    def test_list_and_search(self, client, admin, buyer, vendor):
        token, _ = admin

        users = client.get("/admin/users", headers=auth(token)).json()
        assert [u["email"] for u in users] == ["vendor@example.com", "buyer@example.com", "admin@example.com"]

        vendors = client.get("/admin/users", params={"user_type": "vendor"}, headers=auth(token)).json()
        assert [u["email"] for u in vendors] == ["vendor@example.com"]

        found = client.get("/admin/users", params={"search": "aisha"}, headers=auth(token)).json()
        assert [u["email"] for u in found] == ["buyer@example.com"]

    def test_non_admin_refused(self, client, buyer):
        token, _ = buyer
        assert client.get("/admin/users", headers=auth(token)).status_code == 403

    def test_approve_records_action(self, client, admin, vendor):
        admin_token, admin_user = admin
        _, vendor_user = vendor

        response = client.post(
            f"/admin/users/{vendor_user['id']}/actions",
            json={"action": "approve", "notes": "Looks good"},
            headers=auth(admin_token),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["is_verified"] is True

        actions = client.get(f"/admin/users/{vendor_user['id']}/actions", headers=auth(admin_token)).json()
        assert len(actions) == 1
        assert actions[0]["admin_id"] == admin_user["id"]
        assert actions[0]["previous_status"] == "pending"
        assert actions[0]["new_status"] == "approved"
        assert actions[0]["notes"] == "Looks good"

    def test_block_then_unblock(self, client, admin, buyer):
        admin_token, _ = admin
        buyer_token, buyer_user = buyer
        url = f"/admin/users/{buyer_user['id']}/actions"

        client.post(url, json={"action": "block"}, headers=auth(admin_token))
        assert client.get("/users/me", headers=auth(buyer_token)).status_code == 403

        client.post(url, json={"action": "unblock"}, headers=auth(admin_token))
        assert client.get("/users/me", headers=auth(buyer_token)).json()["status"] == "approved"

        actions = client.get(url, headers=auth(admin_token)).json()
        assert [a["action_type"] for a in actions] == ["unblock", "block"]

    def test_soft_delete_and_restore(self, client, admin, buyer):
        admin_token, _ = admin
        _, buyer_user = buyer
        url = f"/admin/users/{buyer_user['id']}/actions"

        deleted = client.post(url, json={"action": "delete"}, headers=auth(admin_token)).json()
        assert deleted["status"] == "deleted"
        assert deleted["is_deleted"] is True

        restored = client.post(url, json={"action": "restore"}, headers=auth(admin_token)).json()
        assert restored["status"] == "pending"
        assert restored["is_deleted"] is False

    def test_cannot_act_on_self(self, client, admin):
        token, user = admin
        response = client.post(f"/admin/users/{user['id']}/actions", json={"action": "block"}, headers=auth(token))
        assert response.status_code == 400

    def test_unknown_action(self, client, admin, buyer):
        token, _ = admin
        _, user = buyer
        response = client.post(f"/admin/users/{user['id']}/actions", json={"action": "promote"}, headers=auth(token))
        assert response.status_code == 422


class TestDashboard:
    def test_stats(self, client, admin, buyer, vendor, open_rfq):
        admin_token, _ = admin
        vendor_token, _ = vendor
        client.post(
            f"/quotes/rfq/{open_rfq['id']}",
            json={"price": 100, "delivery_time": "1 day", "message": "Offer"},
            headers=auth(vendor_token),
        )

        stats = client.get("/admin/dashboard", headers=auth(admin_token)).json()

        assert stats["total_users"] == 3
        assert stats["total_buyers"] == 1
        assert stats["total_vendors"] == 1
        assert stats["total_rfqs"] == 1
        assert stats["rfqs_by_status"]["open"] == 1
        assert stats["rfqs_by_status"]["awarded"] == 0
        assert stats["quotes_by_status"]["pending"] == 1
        assert stats["active_categories"] == 1
        assert stats["pending_vendor_verifications"] == 0

    def test_recent_activity(self, client, admin, buyer, open_rfq):
        token, _ = admin
        recent = client.get("/admin/recent", headers=auth(token)).json()
        assert recent["users"][0]["email"] == "buyer@example.com"
        assert recent["rfqs"][0]["id"] == open_rfq["id"]

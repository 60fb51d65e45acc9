from conftest import auth
from souqote.notifications import service
from souqote.notifications.models import Notification
from souqote.notifications.templates import replace_placeholders


class TestTemplates:
    def test_placeholders_are_filled(self):
        assert replace_placeholders("Quote for {rfq_title} in {hours}h", {"rfq_title": "Rebar", "hours": 6}) \
            == "Quote for Rebar in 6h"

    def test_unknown_keys_stay(self):
        assert replace_placeholders("Hi {name}, {missing}", {"name": "Omar", "missing": ""}) \
            == "Hi Omar, {missing}"


class TestCreateNotification:
    def test_uses_template(self, db_session, buyer):
        _, user = buyer
        note = service.create_notification(
            db_session, user["id"], "new_quote_received", {"rfq_title": "Rebar"}
        )
        assert note.title == "New Quote Received"
        assert note.message == "You have received a new quote for your RFQ: Rebar"
        assert note.priority == "high"
        assert note.is_read is False
        assert note.email_sent is True

    def test_in_app_only_type_skips_email(self, db_session, buyer):
        _, user = buyer
        note = service.create_notification(db_session, user["id"], "new_message", {"sender_name": "Omar"})
        assert note.email_sent is False

    def test_unknown_type(self, db_session, buyer):
        _, user = buyer
        try:
            service.create_notification(db_session, user["id"], "party_invite")
        except ValueError as exc:
            assert "party_invite" in str(exc)
        else:
            raise AssertionError("expected ValueError")

    def test_muted_type_is_not_stored(self, client, db_session, buyer):
        token, user = buyer
        response = client.put(
            "/notifications/preferences",
            json={"notification_types": {"new_message": {"email": False, "in_app": False}}},
            headers=auth(token),
        )
        assert response.status_code == 200

        assert service.create_notification(db_session, user["id"], "new_message", {}) is None
        assert db_session.query(Notification).count() == 0

    def test_global_switch_overrides_type(self, client, db_session, buyer):
        token, user = buyer
        client.put("/notifications/preferences", json={"email_notifications": False}, headers=auth(token))

        note = service.create_notification(db_session, user["id"], "new_quote_received", {"rfq_title": "X"})
        assert note is not None
        assert note.email_sent is False


class TestNotificationApi:
    def _seed(self, db_session, user_id, count=3):
        for i in range(count):
            service.create_notification(db_session, user_id, "system_alert", {"message": f"Alert {i}"})

    def test_list_and_unread_count(self, client, db_session, buyer):
        token, user = buyer
        self._seed(db_session, user["id"])

        listed = client.get("/notifications/", params={"limit": 2}, headers=auth(token)).json()
        assert [n["message"] for n in listed] == ["Alert 2", "Alert 1"]
        assert listed[0]["time_ago"] == "Just now"
        assert client.get("/notifications/unread-count", headers=auth(token)).json() == {"unread_count": 3}

    def test_mark_read_and_all(self, client, db_session, buyer):
        token, user = buyer
        self._seed(db_session, user["id"])
        first = client.get("/notifications/", headers=auth(token)).json()[0]

        response = client.post(f"/notifications/{first['id']}/read", headers=auth(token))
        assert response.json()["is_read"] is True
        unread = client.get("/notifications/", params={"unread_only": True}, headers=auth(token)).json()
        assert len(unread) == 2

        response = client.post("/notifications/read-all", headers=auth(token))
        assert response.json()["updated"] == 2

    def test_owner_only(self, client, db_session, buyer, vendor):
        _, buyer_user = buyer
        vendor_token, _ = vendor
        self._seed(db_session, buyer_user["id"], count=1)
        note = db_session.query(Notification).first()

        assert client.post(f"/notifications/{note.id}/read", headers=auth(vendor_token)).status_code == 403
        assert client.delete(f"/notifications/{note.id}", headers=auth(vendor_token)).status_code == 403
        assert client.delete("/notifications/9999", headers=auth(vendor_token)).status_code == 404

    def test_delete(self, client, db_session, buyer):
        token, user = buyer
        self._seed(db_session, user["id"], count=1)
        note = db_session.query(Notification).first()
        assert client.delete(f"/notifications/{note.id}", headers=auth(token)).status_code == 200
        assert client.get("/notifications/", headers=auth(token)).json() == []

    def test_default_preferences(self, client, buyer):
        token, _ = buyer
        prefs = client.get("/notifications/preferences", headers=auth(token)).json()
        assert prefs["email_notifications"] is True
        assert prefs["notification_types"]["rfq_expired"] == {"email": True, "in_app": False}

    def test_unknown_preference_type(self, client, buyer):
        token, _ = buyer
        response = client.put(
            "/notifications/preferences",
            json={"notification_types": {"nonsense": {"email": True, "in_app": True}}},
            headers=auth(token),
        )
        assert response.status_code == 400

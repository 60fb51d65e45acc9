import asyncio
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from conftest import auth
from souqote.realtime.broker import ChangeBroker
from souqote.realtime.router import scoped_filters


class TestChangeBroker:
    async def test_filters_by_table_and_columns(self):
        feed = ChangeBroker()
        sub = feed.subscribe("messages", {"receiver_id": 7})

        assert feed.publish("messages", "INSERT", {"id": 1, "receiver_id": 7}) == 1
        assert feed.publish("messages", "INSERT", {"id": 2, "receiver_id": 8}) == 0
        assert feed.publish("quotes", "INSERT", {"id": 3, "receiver_id": 7}) == 0

        event = await asyncio.wait_for(sub.queue.get(), 1.0)
        assert event.table == "messages"
        assert event.event_type == "INSERT"
        assert event.record == {"id": 1, "receiver_id": 7}
        assert sub.queue.empty()

    async def test_full_queue_drops_oldest(self):
        feed = ChangeBroker(maxsize=2)
        sub = feed.subscribe("rfqs")
        for i in range(3):
            feed.publish("rfqs", "UPDATE", {"id": i})
        await asyncio.sleep(0)

        received = [sub.queue.get_nowait().record["id"] for _ in range(sub.queue.qsize())]
        assert received == [1, 2]

    async def test_unsubscribe(self):
        feed = ChangeBroker()
        sub = feed.subscribe("rfqs")
        assert feed.subscriber_count == 1
        feed.unsubscribe(sub)
        assert feed.subscriber_count == 0
        assert feed.publish("rfqs", "INSERT", {"id": 1}) == 0


def user(user_id, user_type):
    return SimpleNamespace(id=user_id, user_type=user_type)


class TestScopedFilters:
    def test_unknown_channel(self, db_session):
        with pytest.raises(HTTPException) as exc:
            scoped_filters(db_session, user(1, "buyer"), "accounts", {})
        assert exc.value.status_code == 404

    def test_notifications_forced_to_self(self, db_session):
        filters = scoped_filters(db_session, user(4, "buyer"), "notifications", {"user_id": "9", "access_token": "x"})
        assert filters == {"user_id": 4}

    def test_messages_by_thread(self, db_session):
        assert scoped_filters(db_session, user(4, "buyer"), "messages", {"thread_id": "1-4-9"}) == {"thread_id": "1-4-9"}
        with pytest.raises(HTTPException) as exc:
            scoped_filters(db_session, user(5, "buyer"), "messages", {"thread_id": "1-4-9"})
        assert exc.value.status_code == 403

    def test_messages_default_to_inbox(self, db_session):
        assert scoped_filters(db_session, user(4, "vendor"), "messages", {}) == {"receiver_id": 4}

    def test_vendor_quotes_forced_to_own(self, db_session):
        filters = scoped_filters(db_session, user(6, "vendor"), "quotes", {"rfq_id": "1"})
        assert filters == {"rfq_id": "1", "vendor_id": 6}

    def test_buyer_quotes_need_own_rfq(self, db_session, buyer, open_rfq, register):
        _, buyer_user = buyer
        _, other = register("other@example.com", "buyer")
        params = {"rfq_id": str(open_rfq["id"])}

        assert scoped_filters(db_session, user(buyer_user["id"], "buyer"), "quotes", params) == params
        with pytest.raises(HTTPException) as exc:
            scoped_filters(db_session, user(other["id"], "buyer"), "quotes", params)
        assert exc.value.status_code == 403
        with pytest.raises(HTTPException) as exc:
            scoped_filters(db_session, user(buyer_user["id"], "buyer"), "quotes", {})
        assert exc.value.status_code == 400

    def test_buyer_quotes_rfq_id_must_be_numeric(self, db_session):
        with pytest.raises(HTTPException) as exc:
            scoped_filters(db_session, user(4, "buyer"), "quotes", {"rfq_id": "abc"})
        assert exc.value.status_code == 400

    def test_admin_sees_any_quotes(self, db_session):
        assert scoped_filters(db_session, user(1, "admin"), "quotes", {}) == {}


class TestStreamEndpoint:
    def test_requires_token(self, client):
        assert client.get("/realtime/rfqs").status_code == 401

    def test_unknown_channel(self, client, buyer):
        token, _ = buyer
        assert client.get("/realtime/accounts", headers=auth(token)).status_code == 404

    def test_bad_rfq_filter(self, client, buyer):
        token, _ = buyer
        response = client.get("/realtime/quotes", params={"rfq_id": "abc"}, headers=auth(token))
        assert response.status_code == 400

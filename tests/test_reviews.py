import pytest

from conftest import auth


@pytest.fixture
def awarded(client, buyer, vendor, open_rfq):
    buyer_token, _ = buyer
    vendor_token, _ = vendor
    quote = client.post(
        f"/quotes/rfq/{open_rfq['id']}",
        json={"price": 4000, "delivery_time": "1 week", "message": "Offer"},
        headers=auth(vendor_token),
    ).json()
    response = client.post(f"/quotes/{quote['id']}/accept", headers=auth(buyer_token))
    assert response.status_code == 200
    return open_rfq


def review(client, token, rfq_id, reviewee_id, rating, comment="Good work"):
    return client.post(
        "/reviews/",
        json={"rfq_id": rfq_id, "reviewee_id": reviewee_id, "rating": rating, "comment": comment},
        headers=auth(token),
    )


class TestReviews:
    def test_buyer_reviews_awarded_vendor(self, client, buyer, vendor, awarded):
        buyer_token, _ = buyer
        _, vendor_user = vendor

        response = review(client, buyer_token, awarded["id"], vendor_user["id"], 4)

        assert response.status_code == 201
        assert response.json()["stars"] == "★★★★☆"
        profile = client.get(f"/users/{vendor_user['id']}", headers=auth(buyer_token)).json()
        assert profile["rating"] == 4

    def test_rating_is_average_of_reviews(self, client, buyer, vendor, awarded, register, category):
        from conftest import rfq_payload

        buyer_token, _ = buyer
        vendor_token, vendor_user = vendor
        review(client, buyer_token, awarded["id"], vendor_user["id"], 5)

        # Second awarded RFQ from another buyer
        other_token, _ = register("second@example.com", "buyer")
        rfq = client.post("/rfqs/", json=rfq_payload(), headers=auth(other_token)).json()
        quote = client.post(
            f"/quotes/rfq/{rfq['id']}",
            json={"price": 100, "delivery_time": "1 day", "message": "Offer"},
            headers=auth(vendor_token),
        ).json()
        client.post(f"/quotes/{quote['id']}/accept", headers=auth(other_token))
        review(client, other_token, rfq["id"], vendor_user["id"], 2)

        profile = client.get(f"/users/{vendor_user['id']}", headers=auth(buyer_token)).json()
        assert profile["rating"] == 3.5

    def test_vendor_reviews_buyer(self, client, buyer, vendor, awarded):
        vendor_token, _ = vendor
        _, buyer_user = buyer
        assert review(client, vendor_token, awarded["id"], buyer_user["id"], 5).status_code == 201

    def test_one_review_per_rfq(self, client, buyer, vendor, awarded):
        buyer_token, _ = buyer
        _, vendor_user = vendor
        review(client, buyer_token, awarded["id"], vendor_user["id"], 4)
        assert review(client, buyer_token, awarded["id"], vendor_user["id"], 5).status_code == 409

    def test_rfq_must_be_awarded(self, client, buyer, vendor, open_rfq):
        buyer_token, _ = buyer
        _, vendor_user = vendor
        assert review(client, buyer_token, open_rfq["id"], vendor_user["id"], 4).status_code == 400

    def test_outsiders_cannot_review(self, client, vendor, awarded, register):
        _, vendor_user = vendor
        outsider_token, _ = register("outsider@example.com", "buyer")
        assert review(client, outsider_token, awarded["id"], vendor_user["id"], 1).status_code == 403

    def test_rating_bounds(self, client, buyer, vendor, awarded):
        buyer_token, _ = buyer
        _, vendor_user = vendor
        assert review(client, buyer_token, awarded["id"], vendor_user["id"], 6).status_code == 422

    def test_list_user_reviews(self, client, buyer, vendor, awarded):
        buyer_token, _ = buyer
        _, vendor_user = vendor
        review(client, buyer_token, awarded["id"], vendor_user["id"], 4, "On time")

        reviews = client.get(f"/reviews/user/{vendor_user['id']}").json()
        assert len(reviews) == 1
        assert reviews[0]["comment"] == "On time"
        assert reviews[0]["reviewer"]["first_name"] == "Aisha"
        assert reviews[0]["rfq"]["title"] == awarded["title"]

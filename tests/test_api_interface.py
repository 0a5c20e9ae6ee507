"""
tests/test_api_interface.py: RealAPI request building and response handling.

HTTP is mocked by swapping the requests.Session for a MagicMock that returns
real requests.Response objects.
"""

from __future__ import annotations

import pytest
import requests

from dormtui.api_interface import ApiError, RealAPI
from dormtui.data_models import HousingListing, Transaction


def last_call(api: RealAPI):
    args, kwargs = api.session.request.call_args
    return args[0], args[1], kwargs


# ---------------------------------------------------------------------------
# Headers and tokens
# ---------------------------------------------------------------------------

class TestHeaders:
    def test_json_content_type_by_default(self, api):
        assert api.session.headers["Content-Type"] == "application/json"

    def test_bearer_token_attached_and_removed(self, api):
        api.set_token("jwt-1")
        assert api.session.headers["Authorization"] == "Bearer jwt-1"
        api.set_token(None)
        assert "Authorization" not in api.session.headers

    def test_token_from_constructor(self):
        client = RealAPI("https://dorm.test/api/", token="jwt-2")
        assert client.session.headers["Authorization"] == "Bearer jwt-2"
        assert client._url("/auth/me") == "https://dorm.test/api/auth/me"


# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------

class TestResponses:
    def test_data_envelope_is_unwrapped(self, api, make_response):
        api.session.request.return_value = make_response(200, {"success": True, "data": {"balance": 5000}})
        assert api.get_balance() == {"balance": 5000}

    def test_bare_body_is_returned(self, api, make_response):
        api.session.request.return_value = make_response(200, {"balance": 10, "escrowBalance": 2})
        assert api.get_balance() == {"balance": 10, "escrowBalance": 2}

    def test_server_message_on_error(self, api, make_response):
        api.session.request.return_value = make_response(400, {"message": "Email already registered"})
        with pytest.raises(ApiError) as excinfo:
            api.register({"email": "a@b.c"})
        assert excinfo.value.status_code == 400
        assert excinfo.value.server_message == "Email already registered"
        assert excinfo.value.message == "Email already registered"

    def test_error_without_body(self, api, make_response):
        api.session.request.return_value = make_response(500, raw=b"<html>oops</html>")
        with pytest.raises(ApiError, match="status 500") as excinfo:
            api.get_me()
        assert excinfo.value.server_message is None

    def test_unauthorized(self, api, make_response):
        api.session.request.return_value = make_response(401, {"message": "Not authorized, token failed"})
        with pytest.raises(ApiError) as excinfo:
            api.get_me()
        assert excinfo.value.status_code == 401

    def test_network_failure(self, api):
        api.session.request.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(ApiError, match="Network error"):
            api.get_elections()

    def test_invalid_json(self, api, make_response):
        api.session.request.return_value = make_response(200, raw=b"not json")
        with pytest.raises(ApiError, match="Invalid JSON"):
            api.get_faqs()

    def test_empty_body(self, api, make_response):
        api.session.request.return_value = make_response(204)
        assert api.unblock_user("u2") is True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class TestEndpoints:
    def test_login_posts_credentials(self, api, make_response):
        api.session.request.return_value = make_response(200, {"token": "t", "_id": "u1"})
        assert api.login("ada@uni.edu", "pw")["token"] == "t"
        method, url, kwargs = last_call(api)
        assert method == "POST"
        assert url == "https://dorm.test/api/auth/login"
        assert kwargs["json"] == {"email": "ada@uni.edu", "password": "pw"}
        assert kwargs["timeout"] == 5

    def test_transactions_are_paginated(self, api, make_response):
        api.session.request.return_value = make_response(200, {"transactions": [
            {"_id": "t1", "type": "topup", "amount": 500, "status": "completed",
             "createdAt": "2024-03-01T10:00:00.000Z"},
            {"_id": "t2", "type": "transfer_out", "amount": -200,
             "relatedUserId": {"_id": "u2", "name": "Chidi"}},
        ]})
        txs = api.get_transactions(page=2, limit=20)
        _, url, kwargs = last_call(api)
        assert url.endswith("/wallet/transactions")
        assert kwargs["params"] == {"page": 2, "limit": 20}
        assert [t.id for t in txs] == ["t1", "t2"]
        assert isinstance(txs[0], Transaction)
        assert txs[0].created_at.year == 2024
        assert txs[1].related_user.name == "Chidi"
        assert txs[1].status == "pending"

    def test_empty_filters_are_dropped(self, api, make_response):
        api.session.request.return_value = make_response(200, {"materials": []})
        api.get_materials(search="", type="pdf", level=None)
        _, _, kwargs = last_call(api)
        assert kwargs["params"] == {"type": "pdf"}

    def test_market_filters_are_camel_cased(self, api, make_response):
        api.session.request.return_value = make_response(200, [{"_id": "m1", "title": "Desk", "price": 15000}])
        items = api.get_items(type="item", min_price=1000, max_price=None)
        _, url, kwargs = last_call(api)
        assert url.endswith("/market/items")
        assert kwargs["params"] == {"type": "item", "minPrice": 1000}
        assert items[0].title == "Desk"
        assert items[0].type == "item"

    def test_housing_listings_filters(self, api, make_response):
        api.session.request.return_value = make_response(200, {"listings": [
            {"_id": "h1", "title": "Two-room flat near the gate", "price": 250000, "address": "Akoka",
             "type": "Flat", "amenities": ["Water", "Prepaid meter"], "ownerId": {"_id": "u5", "name": "Mrs Bello"}},
        ]})
        listings = api.get_listings(type="Flat", search="", min_price=100000, max_price=None, page=2, limit=10)
        method, url, kwargs = last_call(api)
        assert method == "GET"
        assert url == "https://dorm.test/api/housing/listings"
        assert kwargs["params"] == {"type": "Flat", "minPrice": 100000, "page": 2, "limit": 10}
        assert isinstance(listings[0], HousingListing)
        assert listings[0].address == "Akoka"
        assert listings[0].owner == "Mrs Bello"
        assert listings[0].amenities == ["Water", "Prepaid meter"]

    def test_housing_listings_without_envelope_key(self, api, make_response):
        api.session.request.return_value = make_response(200, {"total": 0})
        assert api.get_listings() == []

    def test_request_tour(self, api):
        api.request_tour("h1", "2024-05-02", "14:00", "Is the water steady?")
        method, url, kwargs = last_call(api)
        assert method == "POST"
        assert url.endswith("/housing/listings/h1/tour")
        assert kwargs["json"] == {"preferredDate": "2024-05-02", "preferredTime": "14:00",
                                  "message": "Is the water steady?"}

    def test_cast_vote(self, api, make_response):
        api.session.request.return_value = make_response(200, {"message": "Vote recorded"})
        assert api.cast_vote("e1", "p1", "c1") == {"message": "Vote recorded"}
        method, url, kwargs = last_call(api)
        assert method == "POST"
        assert url == "https://dorm.test/api/elections/e1/vote"
        assert kwargs["json"] == {"positionId": "p1", "candidateId": "c1"}

    def test_cast_vote_rejection_carries_server_message(self, api, make_response):
        api.session.request.return_value = make_response(400, {"message": "You have already voted for this position"})
        with pytest.raises(ApiError) as excinfo:
            api.cast_vote("e1", "p1", "c1")
        assert excinfo.value.status_code == 400
        assert excinfo.value.server_message == "You have already voted for this position"

    def test_update_profile_is_partial_put(self, api):
        api.update_profile({"notificationSettings": {"mentions": False}})
        method, url, kwargs = last_call(api)
        assert method == "PUT"
        assert url.endswith("/auth/profile")
        assert kwargs["json"] == {"notificationSettings": {"mentions": False}}

    def test_summary(self, api, make_response):
        api.session.request.return_value = make_response(200, {
            "material": {"_id": "mat1", "title": "Thermodynamics", "courseCode": "MEE 301"},
            "summaryPoints": ["First law", "Second law"],
        })
        summary = api.get_summary("mat1")
        assert summary.material.course_code == "MEE 301"
        assert summary.points == ["First law", "Second law"]

    def test_create_conversation(self, api, make_response):
        api.session.request.return_value = make_response(200, {"_id": "c1", "participants": [{"name": "Ada"}]})
        conversation = api.create_conversation("u2")
        _, url, kwargs = last_call(api)
        assert url.endswith("/chat/conversations")
        assert kwargs["json"] == {"recipientId": "u2"}
        assert conversation.participants == ["Ada"]

    def test_upload_image(self, api, make_response, tmp_path):
        image = tmp_path / "avatar.png"
        image.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)
        api.session.request.return_value = make_response(200, {"url": "https://cdn.test/avatar.png"})

        assert api.upload_image(str(image)) == "https://cdn.test/avatar.png"

        method, url, kwargs = last_call(api)
        assert method == "POST"
        assert url.endswith("/upload")
        name, _, content_type = kwargs["files"]["image"]
        assert name == "avatar.png"
        assert content_type == "image/png"
        assert kwargs["headers"] == {"Content-Type": None}

    def test_upload_missing_file(self, api):
        with pytest.raises(OSError):
            api.upload_image("/nonexistent/avatar.jpg")

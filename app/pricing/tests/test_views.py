"""
Tests for pricing API views.
"""

import uuid

from rest_framework import status

from accounts.tests.factories import CreatorFactory, UserFactory
from pricing.tests.factories import CreatorPricingProfileFactory, PromoCodeFactory

QUOTE_URL = "/api/v1/pricing/quote/"
PROFILE_URL = "/api/v1/pricing/profile/"
REDEEM_URL = "/api/v1/pricing/promos/redeem/"


class TestQuoteView:
    def test_quote(self, db, authenticated_client_factory):
        profile = CreatorPricingProfileFactory()
        client = authenticated_client_factory(UserFactory())

        response = client.post(
            QUOTE_URL,
            {"creator_id": str(profile.creator.pk), "item_type": "call", "promo_code": "NOPE"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["final_tokens"] == 80
        assert response.data["promo_error"] == "Invalid promo code"

    def test_unknown_creator(self, db, authenticated_client_factory):
        client = authenticated_client_factory(UserFactory())

        response = client.post(
            QUOTE_URL, {"creator_id": str(uuid.uuid4()), "item_type": "call"}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_invalid_item_type(self, db, authenticated_client_factory):
        client = authenticated_client_factory(UserFactory())

        response = client.post(
            QUOTE_URL,
            {"creator_id": str(CreatorFactory().pk), "item_type": "massage"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_requires_authentication(self, db, api_client):
        response = api_client.post(QUOTE_URL, {}, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestPricingProfileView:
    def test_creator_reads_profile(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).get(PROFILE_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["base_rate_tokens"] == 100

    def test_creator_updates_profile(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).patch(
            PROFILE_URL, {"base_rate_tokens": 250, "item_rates": {"call": 300}}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["base_rate_tokens"] == 250
        assert response.data["item_rates"] == {"call": 300}

    def test_inverted_bounds_rejected(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).patch(
            PROFILE_URL, {"price_floor": 900, "price_ceiling": 100}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_PRICE_BOUNDS"

    def test_unknown_item_rate_rejected(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).patch(
            PROFILE_URL, {"item_rates": {"massage": 10}}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_non_creator_forbidden(self, db, authenticated_client_factory):
        response = authenticated_client_factory(UserFactory()).get(PROFILE_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestRedeemPromoView:
    def test_redeem(self, db, authenticated_client_factory):
        PromoCodeFactory(code="SPRING10")
        client = authenticated_client_factory(UserFactory())

        response = client.post(
            REDEEM_URL,
            {"code": "spring10", "item_type": "call", "price_tokens": 200},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["code"] == "SPRING10"
        assert response.data["discount_tokens"] == 20

    def test_unknown_code(self, db, authenticated_client_factory):
        client = authenticated_client_factory(UserFactory())

        response = client.post(
            REDEEM_URL,
            {"code": "GHOST", "item_type": "call", "price_tokens": 200},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

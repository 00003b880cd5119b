"""
API views for the pricing app.

Endpoints:
    POST  /api/v1/pricing/quote/           Quote a creator item for the caller
    GET   /api/v1/pricing/profile/         Own pricing profile (creators)
    PATCH /api/v1/pricing/profile/         Update own pricing profile (creators)
    POST  /api/v1/pricing/promos/redeem/   Consume a promo code
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import User
from accounts.permissions import IsCreator
from core.views import failure_response
from pricing.serializers import (
    CreatorPricingProfileSerializer,
    PriceQuoteSerializer,
    PromoRedemptionSerializer,
    QuoteRequestSerializer,
    RedeemPromoSerializer,
)
from pricing.services import PricingService


class QuoteView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="quote_price",
        summary="Quote a price",
        description=(
            "Dynamic price for one creator item. A promo code that cannot be "
            "applied is reported in promo_error; the quote itself still succeeds."
        ),
        request=QuoteRequestSerializer,
        responses={
            200: PriceQuoteSerializer,
            404: OpenApiResponse(description="Creator not found"),
        },
        tags=["Pricing"],
    )
    def post(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        creator = User.objects.filter(pk=data["creator_id"]).first()
        if creator is None:
            return Response(
                {"error": "Creator not found", "error_code": "CREATOR_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )

        result = PricingService.quote(
            request.user, creator, data["item_type"], data.get("promo_code") or None
        )
        if not result.success:
            return failure_response(result)
        return Response(PriceQuoteSerializer(result.data).data)


class PricingProfileView(APIView):
    permission_classes = [IsAuthenticated, IsCreator]

    @extend_schema(
        operation_id="get_pricing_profile",
        summary="Get own pricing profile",
        responses={
            200: CreatorPricingProfileSerializer,
            403: OpenApiResponse(description="Caller is not a creator"),
        },
        tags=["Pricing"],
    )
    def get(self, request):
        profile = PricingService.get_profile(request.user)
        return Response(CreatorPricingProfileSerializer(profile).data)

    @extend_schema(
        operation_id="update_pricing_profile",
        summary="Update own pricing profile",
        description="Changes invalidate cached quotes for this creator.",
        request=CreatorPricingProfileSerializer,
        responses={
            200: CreatorPricingProfileSerializer,
            400: OpenApiResponse(description="Invalid rates or floor above ceiling"),
            403: OpenApiResponse(description="Caller is not a creator"),
        },
        tags=["Pricing"],
    )
    def patch(self, request):
        profile = PricingService.get_profile(request.user)
        serializer = CreatorPricingProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = PricingService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return failure_response(result)
        return Response(CreatorPricingProfileSerializer(result.data).data)


class RedeemPromoView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="redeem_promo",
        summary="Redeem a promo code",
        request=RedeemPromoSerializer,
        responses={
            201: PromoRedemptionSerializer,
            400: OpenApiResponse(description="Promo code cannot be used"),
            404: OpenApiResponse(description="Unknown promo code"),
        },
        tags=["Pricing"],
    )
    def post(self, request):
        serializer = RedeemPromoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PricingService.redeem_promo(
            request.user, data["code"], data["item_type"], data["price_tokens"]
        )
        if not result.success:
            return failure_response(result)
        return Response(
            PromoRedemptionSerializer(result.data).data, status=status.HTTP_201_CREATED
        )

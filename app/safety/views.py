"""
API views for the safety app.

Endpoints:
    GET  /api/v1/safety/score/               Own score, recent events and interventions
    POST /api/v1/safety/screen/              Screen a message before delivery
    POST /api/v1/safety/admin/adjustments/   Staff score correction
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import User
from safety.serializers import (
    ManualAdjustmentSerializer,
    MessageScreeningSerializer,
    SafetyEventSerializer,
    SafetyInterventionSerializer,
    SafetyScoreSerializer,
    ScreenMessageSerializer,
)
from safety.services import SafetyService
from safety.types import SafetyEventType


class SafetyScoreView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_safety_score",
        summary="Get own safety score",
        tags=["Safety"],
    )
    def get(self, request):
        score = SafetyService.get_or_create_score(request.user)
        events = request.user.safety_events.all()[:20]
        interventions = SafetyService.active_interventions(request.user)
        return Response(
            {
                "score": SafetyScoreSerializer(score).data,
                "events": SafetyEventSerializer(events, many=True).data,
                "interventions": SafetyInterventionSerializer(interventions, many=True).data,
            }
        )


class ScreenMessageView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="screen_message",
        summary="Screen a message",
        description=(
            "Checks a message for manipulation patterns. Blocked messages lower "
            "the sender's safety score."
        ),
        request=ScreenMessageSerializer,
        responses={200: MessageScreeningSerializer},
        tags=["Safety"],
    )
    def post(self, request):
        serializer = ScreenMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        screening = SafetyService.screen_message(
            request.user,
            serializer.validated_data["text"],
            conversation_id=serializer.validated_data["conversation_id"],
        )
        return Response(MessageScreeningSerializer(screening).data)


class ManualAdjustmentView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="adjust_safety_score",
        summary="Adjust a user's safety score",
        request=ManualAdjustmentSerializer,
        responses={
            201: SafetyScoreSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Safety - Admin"],
    )
    def post(self, request):
        serializer = ManualAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = User.objects.filter(pk=data["user_id"]).first()
        if user is None:
            return Response(
                {"error": "User not found", "error_code": "USER_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )

        SafetyService.record_event(
            user,
            event_type=SafetyEventType.MANUAL_ADJUSTMENT,
            dimension=data["dimension"],
            impact=data["impact"],
            source=f"staff:{request.user.pk}",
            metadata={"reason": data["reason"]},
        )
        score = SafetyService.get_or_create_score(user)
        return Response(SafetyScoreSerializer(score).data, status=status.HTTP_201_CREATED)

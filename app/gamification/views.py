"""
API views for the gamification app.

All endpoints are for creators only.

Endpoints:
    GET  /api/v1/gamification/missions/                Profile and current missions
    POST /api/v1/gamification/activity/                Report mission activity
    POST /api/v1/gamification/missions/{id}/claim/     Claim a completed mission's LP
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsCreator
from core.views import failure_response
from gamification.serializers import (
    ActivityReportSerializer,
    MissionProfileSerializer,
    MissionSerializer,
    ProgressResultSerializer,
)
from gamification.services import MissionService
from gamification.types import ActivityReport


class MissionListView(APIView):
    permission_classes = [IsAuthenticated, IsCreator]

    @extend_schema(
        operation_id="list_missions",
        summary="Get mission profile and current missions",
        description="The first call creates the profile and assigns missions.",
        tags=["Gamification"],
    )
    def get(self, request):
        profile = MissionService.get_or_create_profile(request.user)
        missions = MissionService.current_missions(request.user)
        return Response(
            {
                "profile": MissionProfileSerializer(profile).data,
                "missions": MissionSerializer(missions, many=True).data,
            }
        )


class ActivityReportView(APIView):
    permission_classes = [IsAuthenticated, IsCreator]

    @extend_schema(
        operation_id="report_mission_activity",
        summary="Report mission activity",
        request=ActivityReportSerializer,
        responses={
            200: ProgressResultSerializer,
            400: OpenApiResponse(description="Activity failed anti-exploitation checks"),
        },
        tags=["Gamification"],
    )
    def post(self, request):
        serializer = ActivityReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        MissionService.get_or_create_profile(request.user)
        result = MissionService.record_activity(
            request.user,
            ActivityReport(
                activity_type=data["activity_type"],
                value=data["value"],
                viewer_count=data.get("viewer_count"),
                checkin_count=data.get("checkin_count"),
                payer_id=data.get("payer_id"),
            ),
        )
        if not result.success:
            return failure_response(result)
        return Response(ProgressResultSerializer(result.data).data)


class ClaimMissionView(APIView):
    permission_classes = [IsAuthenticated, IsCreator]

    @extend_schema(
        operation_id="claim_mission",
        summary="Claim mission reward",
        description="Adds the mission's LP to the creator's level points. No tokens move.",
        request=None,
        responses={
            200: MissionSerializer,
            400: OpenApiResponse(description="Mission not completed or already claimed"),
            404: OpenApiResponse(description="Mission not found"),
        },
        tags=["Gamification"],
    )
    def post(self, request, mission_id):
        result = MissionService.claim_mission(request.user, mission_id)
        if not result.success:
            return failure_response(result)
        return Response(MissionSerializer(result.data).data)

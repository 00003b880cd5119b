"""
API views for the supporters app.

Endpoints:
    GET /api/v1/supporters/mine/                       Creator's own supporters (?segment=)
    GET /api/v1/supporters/supporting/                 Creators the caller supports
    GET /api/v1/supporters/creators/{id}/top/          Public top 10 for a creator
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import User
from supporters.models import SupporterStats
from supporters.serializers import SupportedCreatorSerializer, SupporterStatsSerializer
from supporters.services import SupporterService
from supporters.types import Segment


class MySupportersView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_my_supporters",
        summary="List own supporters",
        parameters=[
            OpenApiParameter("segment", str, enum=Segment.values, required=False),
        ],
        responses={200: SupporterStatsSerializer(many=True)},
        tags=["Supporters"],
    )
    def get(self, request):
        segment = request.query_params.get("segment")
        if segment:
            if segment not in Segment.values:
                return Response(
                    {"error": f"Unknown segment: {segment}", "error_code": "INVALID_SEGMENT"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            stats = SupporterService.supporters_in_segment(request.user, segment)
        else:
            stats = SupporterStats.objects.filter(creator=request.user).select_related(
                "supporter"
            )
        return Response(SupporterStatsSerializer(stats[:200], many=True).data)


class SupportingView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_supported_creators",
        summary="List creators the caller supports",
        responses={200: SupportedCreatorSerializer(many=True)},
        tags=["Supporters"],
    )
    def get(self, request):
        stats = (
            SupporterStats.objects.filter(supporter=request.user)
            .select_related("creator")
            .order_by("-lifetime_tokens")
        )
        return Response(SupportedCreatorSerializer(stats[:200], many=True).data)


class TopSupportersView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_top_supporters",
        summary="Top 10 supporters of a creator",
        responses={
            200: SupporterStatsSerializer(many=True),
            404: OpenApiResponse(description="Creator not found"),
        },
        tags=["Supporters"],
    )
    def get(self, request, creator_id):
        creator = User.objects.filter(pk=creator_id, is_creator=True).first()
        if creator is None:
            return Response(
                {"error": "Creator not found", "error_code": "CREATOR_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        top = SupporterService.top_supporters(creator)
        return Response(SupporterStatsSerializer(top, many=True).data)

"""
API views for the moderation app.

Endpoints:
    POST /api/v1/moderation/comments/                        Post a comment through the firewall
    GET  /api/v1/moderation/restrictions/                    Own restrictions
    GET  /api/v1/moderation/shield/                          Own shield settings (creators)
    PATCH /api/v1/moderation/shield/                         Change shield settings (creators)
    POST /api/v1/moderation/defamation-reports/{id}/evidence/ Back up a defamation claim
    GET  /api/v1/moderation/admin/cases/                     Open and escalated cases (staff)
    POST /api/v1/moderation/admin/cases/{id}/resolve/        Uphold or dismiss (staff)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsCreator
from core.views import failure_response
from moderation.serializers import (
    AbuseCaseSerializer,
    CommentCreateSerializer,
    CommentInspectionSerializer,
    CreatorShieldSerializer,
    DefamationEvidenceSerializer,
    DefamationReportSerializer,
    ResolveCaseSerializer,
    RestrictionsSerializer,
)
from moderation.services import ModerationService


class CommentCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="post_comment",
        summary="Post a comment",
        description=(
            "Stores the comment and applies abuse mitigation. A hidden comment "
            "is still returned to its author."
        ),
        request=CommentCreateSerializer,
        responses={
            201: CommentInspectionSerializer,
            403: OpenApiResponse(description="Author is banned, frozen or comment-locked"),
            429: OpenApiResponse(description="Too many comments on this content"),
        },
        tags=["Moderation"],
    )
    def post(self, request):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ModerationService.inspect_comment(
            request.user, data["target_id"], data["content_id"], data["text"]
        )
        if not result.success:
            return failure_response(result)
        return Response(
            CommentInspectionSerializer(result.data).data, status=status.HTTP_201_CREATED
        )


class RestrictionsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_restrictions",
        summary="Get own moderation restrictions",
        responses={200: RestrictionsSerializer},
        tags=["Moderation"],
    )
    def get(self, request):
        restrictions = ModerationService.check_restrictions(request.user)
        return Response(RestrictionsSerializer(restrictions).data)


class CreatorShieldView(APIView):
    permission_classes = [IsAuthenticated, IsCreator]

    @extend_schema(
        operation_id="get_creator_shield",
        summary="Get shield settings",
        responses={200: CreatorShieldSerializer},
        tags=["Moderation - Shield"],
    )
    def get(self, request):
        shield = ModerationService.get_shield(request.user)
        return Response(CreatorShieldSerializer(shield).data)

    @extend_schema(
        operation_id="update_creator_shield",
        summary="Change shield settings",
        description=(
            "While enabled, comments from fresh accounts are hidden on arrival "
            "and abusive comments are removed. A raid turns the shield on."
        ),
        request=CreatorShieldSerializer,
        responses={200: CreatorShieldSerializer},
        tags=["Moderation - Shield"],
    )
    def patch(self, request):
        serializer = CreatorShieldSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = ModerationService.update_shield(request.user, **serializer.validated_data)
        if not result.success:
            return failure_response(result)
        return Response(CreatorShieldSerializer(result.data).data)


class DefamationEvidenceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="submit_defamation_evidence",
        summary="Submit evidence for a claim",
        description="The comment stays throttled until a moderator resolves the case.",
        request=DefamationEvidenceSerializer,
        responses={
            200: DefamationReportSerializer,
            404: OpenApiResponse(description="Report not found"),
        },
        tags=["Moderation"],
    )
    def post(self, request, report_id):
        serializer = DefamationEvidenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ModerationService.submit_defamation_evidence(
            report_id, request.user, serializer.validated_data["evidence"]
        )
        if not result.success:
            return failure_response(result)
        return Response(DefamationReportSerializer(result.data).data)


class AbuseCaseQueueView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="list_abuse_cases",
        summary="Abuse case review queue",
        description="Open and escalated cases, most severe first.",
        responses={200: AbuseCaseSerializer(many=True)},
        tags=["Moderation - Admin"],
    )
    def get(self, request):
        cases = ModerationService.review_queue()[:100]
        return Response(AbuseCaseSerializer(cases, many=True).data)


class AbuseCaseResolveView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="resolve_abuse_case",
        summary="Resolve an abuse case",
        description="Dismissing a case reverts its mitigation and sanctions.",
        request=ResolveCaseSerializer,
        responses={
            200: AbuseCaseSerializer,
            404: OpenApiResponse(description="Case not found"),
        },
        tags=["Moderation - Admin"],
    )
    def post(self, request, case_id):
        serializer = ResolveCaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ModerationService.resolve_case(
            case_id,
            request.user,
            upheld=serializer.validated_data["upheld"],
            notes=serializer.validated_data["notes"],
        )
        if not result.success:
            return failure_response(result)
        return Response(AbuseCaseSerializer(result.data).data)

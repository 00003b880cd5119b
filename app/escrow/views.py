"""
API views for the escrow app.

Endpoints:
    GET  /api/v1/escrow/wallet/                         Balance and recent entries
    GET  /api/v1/escrow/escrows/                        Escrows the user pays or receives
    POST /api/v1/escrow/escrows/                        Open an escrow
    GET  /api/v1/escrow/escrows/{id}/                   Escrow detail
    POST /api/v1/escrow/escrows/{id}/release/           Release to the recipient
    POST /api/v1/escrow/escrows/{id}/delivery/          Record delivery evidence
    POST /api/v1/escrow/escrows/{id}/cancel/            Cancel a meeting or event
    POST /api/v1/escrow/escrows/{id}/voluntary-refund/  Recipient gives back part of their share
    GET  /api/v1/escrow/refunds/                        Own refund requests
    POST /api/v1/escrow/refunds/                        Request a refund
    GET  /api/v1/escrow/admin/refunds/                  Review queue (staff)
    POST /api/v1/escrow/admin/refunds/{id}/resolve/     Staff resolution

All business rules live in the services; views validate input, call one
service method and serialize the result.
"""

from __future__ import annotations

from django.db.models import Q
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.views import failure_response
from escrow.models import EscrowRecord
from escrow.serializers import (
    DeliveryUpdateSerializer,
    EscrowSerializer,
    LedgerEntrySerializer,
    OpenEscrowSerializer,
    RefundDecisionSerializer,
    RefundRequestCreateSerializer,
    RefundRequestSerializer,
    ResolveRefundSerializer,
    SettlementSerializer,
    VoluntaryRefundSerializer,
)
from escrow.services import (
    AdminResolutionService,
    EscrowService,
    RefundService,
    WalletService,
)
from escrow.types import OpenEscrowParams, RefundRequestParams


class WalletView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_wallet",
        summary="Get token wallet",
        description="Current token balance (replayed from the ledger) and the latest entries.",
        tags=["Escrow - Wallet"],
    )
    def get(self, request):
        entries = WalletService.get_entries(request.user, limit=50)
        return Response(
            {
                "balance": WalletService.get_balance(request.user),
                "entries": LedgerEntrySerializer(entries, many=True).data,
            }
        )


class EscrowListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_escrows",
        summary="List escrows",
        responses={200: EscrowSerializer(many=True)},
        tags=["Escrow"],
    )
    def get(self, request):
        escrows = EscrowRecord.objects.filter(
            Q(payer=request.user) | Q(recipient=request.user)
        )
        state = request.query_params.get("state")
        if state:
            escrows = escrows.filter(state=state)
        return Response(EscrowSerializer(escrows[:100], many=True).data)

    @extend_schema(
        operation_id="open_escrow",
        summary="Open an escrow",
        description=(
            "Move tokens from the caller's wallet into escrow for a message, call, "
            "meeting or event. The split is fixed at this point."
        ),
        request=OpenEscrowSerializer,
        responses={
            201: EscrowSerializer,
            400: OpenApiResponse(description="Invalid amount, split or insufficient balance"),
        },
        tags=["Escrow"],
    )
    def post(self, request):
        serializer = OpenEscrowSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = EscrowService.open_escrow(
            OpenEscrowParams(
                payer=request.user,
                recipient=data["recipient_id"],
                total_tokens=data["total_tokens"],
                transaction_type=data["transaction_type"],
                recipient_share_percent=data.get("recipient_share_percent"),
                reference=data.get("reference", ""),
                scheduled_start=data.get("scheduled_start"),
                idempotency_key=data.get("idempotency_key"),
            )
        )
        if not result.success:
            return failure_response(result)
        return Response(EscrowSerializer(result.data).data, status=status.HTTP_201_CREATED)


class EscrowDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_escrow",
        summary="Get escrow",
        responses={200: EscrowSerializer, 404: OpenApiResponse(description="Not found")},
        tags=["Escrow"],
    )
    def get(self, request, escrow_id):
        escrow = EscrowRecord.objects.filter(pk=escrow_id).first()
        if escrow is None or not (
            request.user.is_staff
            or request.user.pk in (escrow.payer_id, escrow.recipient_id)
        ):
            return Response(
                {"error": "Escrow not found", "error_code": "ESCROW_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(EscrowSerializer(escrow).data)


class EscrowReleaseView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="release_escrow",
        summary="Release an escrow",
        description=(
            "The payer may release at any time; the recipient only after the "
            "release window. Fails with INVALID_STATE once settled."
        ),
        request=None,
        responses={200: SettlementSerializer},
        tags=["Escrow"],
    )
    def post(self, request, escrow_id):
        result = EscrowService.release_escrow(escrow_id, actor=request.user)
        if not result.success:
            return failure_response(result)
        return Response(SettlementSerializer(result.data).data)


class EscrowDeliveryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_escrow_delivery",
        summary="Record delivery evidence",
        request=DeliveryUpdateSerializer,
        responses={200: EscrowSerializer},
        tags=["Escrow"],
    )
    def post(self, request, escrow_id):
        serializer = DeliveryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = EscrowService.update_delivery(
            escrow_id, request.user, **serializer.validated_data
        )
        if not result.success:
            return failure_response(result)
        return Response(EscrowSerializer(result.data).data)


class EscrowCancelView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="cancel_escrow_booking",
        summary="Cancel a meeting or event",
        description="Applies the time-windowed cancellation policy and settles the escrow.",
        request=None,
        responses={200: SettlementSerializer},
        tags=["Escrow"],
    )
    def post(self, request, escrow_id):
        result = EscrowService.cancel_booking(escrow_id, request.user)
        if not result.success:
            return failure_response(result)
        return Response(SettlementSerializer(result.data).data)


class EscrowVoluntaryRefundView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="voluntary_refund_escrow",
        summary="Refund part of the recipient share",
        description=(
            "The recipient returns percent of their share to the payer, rounded "
            "down. The platform share is kept. Works on HELD escrows and once on "
            "RELEASED escrows."
        ),
        request=VoluntaryRefundSerializer,
        responses={200: SettlementSerializer},
        tags=["Escrow"],
    )
    def post(self, request, escrow_id):
        serializer = VoluntaryRefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = EscrowService.voluntary_refund(
            escrow_id, request.user, **serializer.validated_data
        )
        if not result.success:
            return failure_response(result)
        return Response(SettlementSerializer(result.data).data)


class RefundRequestView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_refund_requests",
        summary="List own refund requests",
        responses={200: RefundRequestSerializer(many=True)},
        tags=["Escrow - Refunds"],
    )
    def get(self, request):
        requests = RefundService.list_for_requester(request.user)[:100]
        return Response(RefundRequestSerializer(requests, many=True).data)

    @extend_schema(
        operation_id="request_refund",
        summary="Request a refund",
        description=(
            "Routes the request to automatic evaluation, the review queue or "
            "human arbitration depending on the reason and fraud checks."
        ),
        request=RefundRequestCreateSerializer,
        responses={
            201: RefundDecisionSerializer,
            400: OpenApiResponse(description="Reason not refundable or request blocked"),
        },
        tags=["Escrow - Refunds"],
    )
    def post(self, request):
        serializer = RefundRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundService.request_refund(
            RefundRequestParams(requester=request.user, **serializer.validated_data)
        )
        if not result.success:
            return failure_response(result)
        return Response(
            RefundDecisionSerializer(result.data).data, status=status.HTTP_201_CREATED
        )


class RefundReviewQueueView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="list_refund_review_queue",
        summary="Refund review queue",
        responses={200: RefundRequestSerializer(many=True)},
        tags=["Escrow - Admin"],
    )
    def get(self, request):
        queue = RefundService.review_queue()[:100]
        return Response(RefundRequestSerializer(queue, many=True).data)


class RefundResolveView(APIView):
    permission_classes = [IsAuthenticated, IsAdminUser]

    @extend_schema(
        operation_id="resolve_refund_request",
        summary="Resolve a refund request",
        description=(
            "Apply a staff outcome. expected_version must match the request's "
            "current version or the call fails with STALE_RECORD."
        ),
        request=ResolveRefundSerializer,
        responses={
            200: RefundDecisionSerializer,
            409: OpenApiResponse(description="Request changed since it was read"),
        },
        tags=["Escrow - Admin"],
    )
    def post(self, request, request_id):
        serializer = ResolveRefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AdminResolutionService.resolve(
            request_id,
            staff=request.user,
            outcome=data["outcome"],
            expected_version=data["expected_version"],
            refund_tokens=data.get("refund_tokens"),
            notes=data.get("notes", ""),
        )
        if not result.success:
            return failure_response(result)
        return Response(RefundDecisionSerializer(result.data).data)

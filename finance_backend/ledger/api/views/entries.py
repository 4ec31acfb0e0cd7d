# ledger/api/views/entries.py

"""
PATH: ledger/api/views/entries.py

LEDGER ENTRIES API

GET    /api/ledger/entries/               caller's history (?kind=&date_from=&date_to=)
POST   /api/ledger/entries/               income / expense / investment / lend / borrow
DELETE /api/ledger/entries/<id>/          owner-only, does not touch the linked half
POST   /api/ledger/entries/<id>/settle/   ask the counterparty to confirm repayment
POST   /api/ledger/entries/<id>/remind/   nudge the counterparty
GET    /api/ledger/analysis/              income / expense / investment totals

Lend/borrow with a registered user answers 201 with a pending entry; the
counterparty sees a request in their inbox.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.api.errors import service_error_response
from ledger.api.filters import LedgerEntryFilter
from ledger.api.serializers import (
    AnalysisSerializer,
    ConfirmationRequestSerializer,
    EntryFilterSerializer,
    LedgerEntryCreateSerializer,
    LedgerEntrySerializer,
)
from ledger.models import LedgerEntry
from ledger.services.confirmation_service import request_settlement, send_reminder
from ledger.services.debt_service import record_lend_borrow
from ledger.services.entry_service import delete_entry, list_entries, record_entry, summarize
from ledger.services.exceptions import LedgerServiceError

DATE_FILTERS = [
    OpenApiParameter("date_from", str, description="YYYY-MM-DD (inclusive)"),
    OpenApiParameter("date_to", str, description="YYYY-MM-DD (inclusive)"),
]


class EntryListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntryCreateSerializer
    filterset_class = LedgerEntryFilter
    queryset = LedgerEntry.objects.none()

    @extend_schema(
        tags=["ledger"],
        parameters=[OpenApiParameter("kind", str), *DATE_FILTERS],
        responses=LedgerEntrySerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        f = EntryFilterSerializer(data=request.query_params)
        f.is_valid(raise_exception=True)

        try:
            qs = list_entries(owner=request.user, **f.validated_data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        qs = self.filter_queryset(qs)

        return Response(LedgerEntrySerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["ledger"],
        request=LedgerEntryCreateSerializer,
        responses={201: LedgerEntrySerializer, 400: dict, 404: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            if data["kind"] in LedgerEntry.DEBT_KINDS:
                entry = record_lend_borrow(
                    owner=request.user,
                    kind=data["kind"],
                    amount=data["amount"],
                    counterparty=data["counterparty"],
                    description=data.get("description", ""),
                    date=data.get("date"),
                    due_date=data.get("due_date"),
                )
            else:
                entry = record_entry(
                    owner=request.user,
                    kind=data["kind"],
                    amount=data["amount"],
                    category=data.get("category", ""),
                    description=data.get("description", ""),
                    date=data.get("date"),
                    investment_type=data.get("investment_type", ""),
                )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class EntryDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["ledger"], responses={204: None, 403: dict, 404: dict})
    def delete(self, request, entry_id, *args, **kwargs):
        try:
            delete_entry(entry_id=entry_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class EntrySettleView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["ledger"], request=None, responses={201: ConfirmationRequestSerializer})
    def post(self, request, entry_id, *args, **kwargs):
        try:
            req = request_settlement(entry_id=entry_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(ConfirmationRequestSerializer(req).data, status=status.HTTP_201_CREATED)


class EntryRemindView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["ledger"], request=None, responses={201: ConfirmationRequestSerializer})
    def post(self, request, entry_id, *args, **kwargs):
        try:
            req = send_reminder(entry_id=entry_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(ConfirmationRequestSerializer(req).data, status=status.HTTP_201_CREATED)


class AnalysisView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["ledger"], parameters=DATE_FILTERS, responses=AnalysisSerializer)
    def get(self, request, *args, **kwargs):
        f = EntryFilterSerializer(data=request.query_params)
        f.is_valid(raise_exception=True)

        try:
            totals = summarize(
                owner=request.user,
                date_from=f.validated_data.get("date_from"),
                date_to=f.validated_data.get("date_to"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(AnalysisSerializer(totals).data, status=status.HTTP_200_OK)

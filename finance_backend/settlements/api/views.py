# settlements/api/views.py

"""
PATH: settlements/api/views.py

SETTLEMENTS API

GET  /api/settlements/                        per-counterparty balances
POST /api/settlements/                        record a payment inside a group
GET  /api/settlements/history/                caller's settlements (?date_from=&date_to=)
GET  /api/settlements/aliases/                aliases created by or pointing at the caller
POST /api/settlements/aliases/                propose "personal contact NAME is this user"
POST /api/settlements/aliases/<id>/confirm/   aliased user confirms
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger import counterparty as cp_mod
from ledger.api.errors import service_error_response
from ledger.services.exceptions import LedgerServiceError
from settlements.api.serializers import (
    BalanceSerializer,
    ContactAliasCreateSerializer,
    ContactAliasSerializer,
    DateRangeSerializer,
    SettlementCreateSerializer,
    SettlementSerializer,
)
from settlements.services.alias_service import confirm_alias, create_alias, list_aliases
from settlements.services.balance_service import compute_balances
from settlements.services.settlement_service import list_settlement_history, record_settlement


class BalanceSettlementView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SettlementCreateSerializer

    @extend_schema(tags=["settlements"], responses=BalanceSerializer(many=True))
    def get(self, request, *args, **kwargs):
        rows = compute_balances(request.user)
        return Response(BalanceSerializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["settlements"],
        request=SettlementCreateSerializer,
        responses={201: SettlementSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            settlement = record_settlement(
                group_id=data["group_id"],
                actor=request.user,
                payer=data.get("payer") or cp_mod.RegisteredUser(request.user.pk),
                payee=data["payee"],
                amount=data["amount"],
                date=data.get("date"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(SettlementSerializer(settlement).data, status=status.HTTP_201_CREATED)


class SettlementHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["settlements"],
        parameters=[
            OpenApiParameter("date_from", str, description="YYYY-MM-DD (inclusive)"),
            OpenApiParameter("date_to", str, description="YYYY-MM-DD (inclusive)"),
        ],
        responses=SettlementSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        f = DateRangeSerializer(data=request.query_params)
        f.is_valid(raise_exception=True)

        try:
            qs = list_settlement_history(user=request.user, **f.validated_data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(SettlementSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class ContactAliasListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ContactAliasCreateSerializer

    @extend_schema(tags=["settlements"], responses=ContactAliasSerializer(many=True))
    def get(self, request, *args, **kwargs):
        qs = list_aliases(user=request.user)
        return Response(ContactAliasSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["settlements"],
        request=ContactAliasCreateSerializer,
        responses={201: ContactAliasSerializer, 400: dict, 404: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            alias = create_alias(
                owner=request.user,
                display_name=data["display_name"],
                email=data.get("email") or None,
                user_id=data.get("user_id"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(ContactAliasSerializer(alias).data, status=status.HTTP_201_CREATED)


class ContactAliasConfirmView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["settlements"], request=None, responses={200: ContactAliasSerializer})
    def post(self, request, alias_id, *args, **kwargs):
        try:
            alias = confirm_alias(alias_id=alias_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(ContactAliasSerializer(alias).data, status=status.HTTP_200_OK)

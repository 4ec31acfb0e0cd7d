# ledger/api/views/requests.py

"""
CONFIRMATION INBOX

GET  /api/ledger/requests/                pending requests addressed to the caller
POST /api/ledger/requests/<id>/confirm/   recipient approves
POST /api/ledger/requests/<id>/reject/    recipient declines
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.api.errors import service_error_response
from ledger.api.serializers import ConfirmationRequestSerializer
from ledger.services.confirmation_service import confirm, list_inbox, reject
from ledger.services.exceptions import LedgerServiceError


class ConfirmationInboxView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["ledger"], responses=ConfirmationRequestSerializer(many=True))
    def get(self, request, *args, **kwargs):
        qs = list_inbox(user=request.user)
        return Response(ConfirmationRequestSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class _ResolveRequestView(APIView):
    permission_classes = [IsAuthenticated]
    resolver = None

    @extend_schema(
        tags=["ledger"],
        request=None,
        responses={200: ConfirmationRequestSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, request_id, *args, **kwargs):
        try:
            req = self.resolver(request_id=request_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(ConfirmationRequestSerializer(req).data, status=status.HTTP_200_OK)


class ConfirmRequestView(_ResolveRequestView):
    resolver = staticmethod(confirm)


class RejectRequestView(_ResolveRequestView):
    resolver = staticmethod(reject)

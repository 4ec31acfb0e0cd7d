# groups/api/views.py

"""
PATH: groups/api/views.py

GROUPS API

GET  /api/groups/                    groups the caller belongs to
POST /api/groups/                    create (caller becomes owner + first member)
GET  /api/groups/<id>/               detail with roster (members only)
POST /api/groups/<id>/members/       owner adds a user (by email) or a guest
GET  /api/groups/<id>/expenses/      expenses (?date_from=&date_to=)
POST /api/groups/<id>/expenses/      add a shared expense (split + netting)
GET  /api/groups/<id>/tally/         per-member net position inside the group
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from groups.api.serializers import (
    AddMemberSerializer,
    DateRangeSerializer,
    GroupCreateSerializer,
    GroupExpenseCreateSerializer,
    GroupExpenseSerializer,
    GroupMemberSerializer,
    GroupSerializer,
    TallyRowSerializer,
)
from groups.services.expense_service import add_expense, list_expenses
from groups.services.group_service import add_member, create_group, get_group_for_member, list_groups_for_user
from groups.services.tally_service import group_tally
from ledger import counterparty as cp_mod
from ledger.api.errors import service_error_response
from ledger.services.exceptions import LedgerServiceError


class GroupListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GroupCreateSerializer

    @extend_schema(tags=["groups"], responses=GroupSerializer(many=True))
    def get(self, request, *args, **kwargs):
        groups = list_groups_for_user(request.user)
        return Response(GroupSerializer(groups, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["groups"], request=GroupCreateSerializer, responses={201: GroupSerializer})
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            group = create_group(name=s.validated_data["name"], creator=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(GroupSerializer(group).data, status=status.HTTP_201_CREATED)


class GroupDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["groups"], responses={200: GroupSerializer, 403: dict, 404: dict})
    def get(self, request, group_id, *args, **kwargs):
        try:
            group = get_group_for_member(group_id, request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(GroupSerializer(group).data, status=status.HTTP_200_OK)


class GroupMemberCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AddMemberSerializer

    @extend_schema(
        tags=["groups"],
        request=AddMemberSerializer,
        responses={201: GroupMemberSerializer, 400: dict, 403: dict, 404: dict},
    )
    def post(self, request, group_id, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            member = add_member(group_id=group_id, actor=request.user, **s.validated_data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(GroupMemberSerializer(member).data, status=status.HTTP_201_CREATED)


class GroupExpenseListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = GroupExpenseCreateSerializer

    @extend_schema(
        tags=["groups"],
        parameters=[
            OpenApiParameter("date_from", str, description="YYYY-MM-DD (inclusive)"),
            OpenApiParameter("date_to", str, description="YYYY-MM-DD (inclusive)"),
        ],
        responses=GroupExpenseSerializer(many=True),
    )
    def get(self, request, group_id, *args, **kwargs):
        f = DateRangeSerializer(data=request.query_params)
        f.is_valid(raise_exception=True)

        try:
            expenses = list_expenses(group_id=group_id, actor=request.user, **f.validated_data)
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(GroupExpenseSerializer(expenses, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["groups"],
        request=GroupExpenseCreateSerializer,
        responses={201: GroupExpenseSerializer, 400: dict, 403: dict, 404: dict, 409: dict},
    )
    def post(self, request, group_id, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            expense = add_expense(
                group_id=group_id,
                actor=request.user,
                payer=data.get("payer") or cp_mod.RegisteredUser(request.user.pk),
                amount=data["amount"],
                description=data["description"],
                date=data.get("date"),
            )
        except LedgerServiceError as exc:
            return service_error_response(exc)

        return Response(GroupExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)


class GroupTallyView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["groups"], responses=TallyRowSerializer(many=True))
    def get(self, request, group_id, *args, **kwargs):
        try:
            rows = group_tally(group_id=group_id, actor=request.user)
        except LedgerServiceError as exc:
            return service_error_response(exc)
        return Response(TallyRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)

# users/views/directory.py

"""
USER DIRECTORY + DUMMY CONTACTS

GET  /api/users/search/?q=...   registered users matching email/username/name
GET  /api/users/dummy/          caller's dummy contacts
POST /api/users/dummy/          create a dummy contact
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.models import DummyContact
from users.serializers import DummyContactSerializer, UserSerializer
from users.services.identity import search_users


class UserSearchView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["users"],
        parameters=[OpenApiParameter("q", str, description="Search text")],
        responses=UserSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        users = search_users(request.query_params.get("q", ""), exclude=request.user)
        return Response(UserSerializer(users, many=True).data, status=status.HTTP_200_OK)


class DummyContactListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DummyContactSerializer

    def get_queryset(self):
        return DummyContact.objects.filter(owner=self.request.user).order_by("name")

    @extend_schema(tags=["users"], responses=DummyContactSerializer(many=True))
    def get(self, request, *args, **kwargs):
        return Response(
            self.get_serializer(self.get_queryset(), many=True).data,
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["users"],
        request=DummyContactSerializer,
        responses={201: DummyContactSerializer, 400: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        contact = DummyContact.objects.create(owner=request.user, name=s.validated_data["name"])
        return Response(self.get_serializer(contact).data, status=status.HTTP_201_CREATED)

# users/services/identity.py

"""
IDENTITY LOOKUPS

The ledger core consumes identity through these helpers only:
- resolve_user(id) -> bool
- get_user(id) -> User (or None)
- get_dummy_contact(owner, id) -> DummyContact (or None)
"""

from __future__ import annotations

import uuid

from django.contrib.auth import get_user_model
from django.db.models import Q

from users.models import DummyContact

User = get_user_model()


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def get_user(user_id):
    pk = _as_uuid(user_id)
    if pk is None:
        return None
    return User.objects.filter(pk=pk, is_active=True).first()


def resolve_user(user_id) -> bool:
    return get_user(user_id) is not None


def get_user_by_email(email: str):
    email = (email or "").strip()
    if not email:
        return None
    return User.objects.filter(email__iexact=email, is_active=True).first()


def get_dummy_contact(*, owner, contact_id):
    try:
        pk = int(contact_id)
    except (TypeError, ValueError):
        return None
    return DummyContact.objects.filter(pk=pk, owner=owner).first()


def search_users(query: str, *, exclude=None, limit: int = 20):
    q = (query or "").strip()
    if not q:
        return User.objects.none()

    qs = User.objects.filter(is_active=True).filter(
        Q(email__icontains=q)
        | Q(username__icontains=q)
        | Q(first_name__icontains=q)
        | Q(last_name__icontains=q)
    )
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    return qs.order_by("username")[:limit]

# settlements/services/alias_service.py

"""
CONTACT ALIASES

- create_alias: the owner proposes "my personal contact NAME is this user"
- confirm_alias: only the aliased user can confirm it
- resolved_aliases: confirmed name -> user map used by the balance aggregator
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from ledger.services.exceptions import AuthorizationError, NotFoundError, ValidationError
from settlements.models import ContactAlias
from users.services.identity import get_user, get_user_by_email

logger = logging.getLogger("settlements")


@transaction.atomic
def create_alias(*, owner, display_name: str, email: str | None = None, user_id=None) -> ContactAlias:
    display_name = (display_name or "").strip()
    if not display_name:
        raise ValidationError("display_name is required")

    if bool(email) == bool(user_id):
        raise ValidationError("Provide exactly one of email or user_id")

    user = get_user_by_email(email) if email else get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.pk == owner.pk:
        raise ValidationError("You cannot alias a contact to yourself")

    if ContactAlias.objects.filter(owner=owner, display_name__iexact=display_name).exists():
        raise ValidationError("An alias for this name already exists")

    try:
        with transaction.atomic():
            alias = ContactAlias.objects.create(owner=owner, display_name=display_name, user=user)
    except IntegrityError as exc:
        raise ValidationError("An alias for this name already exists") from exc

    logger.info(
        "Contact alias proposed",
        extra={"alias_id": alias.pk, "owner_id": str(owner.pk), "user_id": str(user.pk)},
    )
    return alias


@transaction.atomic
def confirm_alias(*, alias_id, actor) -> ContactAlias:
    alias = ContactAlias.objects.select_for_update().filter(pk=alias_id).first()
    if alias is None:
        raise NotFoundError("Alias not found")
    if alias.user_id != actor.pk:
        raise AuthorizationError("Only the aliased user can confirm this alias")
    if alias.confirmed:
        raise ValidationError("Alias is already confirmed")

    alias.confirmed = True
    alias.confirmed_at = timezone.now()
    alias.save(update_fields=["confirmed", "confirmed_at"])

    logger.info("Contact alias confirmed", extra={"alias_id": alias.pk})
    return alias


def list_aliases(*, user):
    """Aliases the user created plus those pointing at the user."""
    return (
        ContactAlias.objects.filter(Q(owner=user) | Q(user=user))
        .select_related("owner", "user")
        .order_by("display_name")
    )


def resolved_aliases(owner) -> dict:
    """Lower-cased display name -> confirmed registered user."""
    return {
        alias.display_name.strip().lower(): alias.user
        for alias in ContactAlias.objects.filter(owner=owner, confirmed=True).select_related("user")
    }

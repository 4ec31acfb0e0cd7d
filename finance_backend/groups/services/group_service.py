# groups/services/group_service.py

"""
======================================================
PATH: groups/services/group_service.py
======================================================
GROUP + ROSTER SERVICE

RULES:
- The creator owns the group and is its first member
- Only the owner adds members
- The roster is frozen once the group has an expense (existing splits
  were computed over the old roster)
- Only registered members may read a group or post to it
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Max

from groups.models import Group, GroupMember
from ledger import counterparty as cp_mod
from ledger.services.exceptions import AuthorizationError, NotFoundError, ValidationError
from users.services.identity import get_user_by_email

logger = logging.getLogger("groups")


# ============================================================
# LOOKUPS
# ============================================================

def get_group(group_id, *, for_update: bool = False) -> Group:
    qs = Group.objects.all()
    if for_update:
        qs = qs.select_for_update()
    group = qs.filter(pk=group_id).first()
    if group is None:
        raise NotFoundError("Group not found")
    return group


def is_member(group: Group, user) -> bool:
    return group.members.filter(member_user=user).exists()


def get_group_for_member(group_id, user, *, for_update: bool = False) -> Group:
    group = get_group(group_id, for_update=for_update)
    if not is_member(group, user):
        raise AuthorizationError("You are not a member of this group")
    return group


def list_groups_for_user(user):
    return (
        Group.objects.filter(members__member_user=user)
        .select_related("created_by")
        .prefetch_related("members__member_user")
        .distinct()
        .order_by("-created_at")
    )


def roster_members(group: Group):
    return list(group.members.select_related("member_user").order_by("position", "pk"))


def roster(group: Group) -> list:
    """Ordered list of Counterparty values."""
    return [m.counterparty for m in roster_members(group)]


def find_member(members, party):
    """
    Roster entry for `party`, or None. Guest names match case-insensitively,
    the same way add_member refuses duplicates.
    """
    if isinstance(party, cp_mod.Guest):
        wanted = party.name.strip().casefold()
        return next(
            (
                m for m in members
                if m.member_kind == cp_mod.KIND_GUEST and m.member_guest_name.casefold() == wanted
            ),
            None,
        )
    return next((m for m in members if m.counterparty == party), None)


# ============================================================
# MUTATIONS
# ============================================================

@transaction.atomic
def create_group(*, name: str, creator) -> Group:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")

    group = Group.objects.create(name=name, created_by=creator)
    member = GroupMember(group=group, position=0)
    member.counterparty = cp_mod.RegisteredUser(creator.pk)
    member.save()

    logger.info("Group created", extra={"group_id": group.pk, "creator_id": str(creator.pk)})
    return group


@transaction.atomic
def add_member(*, group_id, actor, email: str | None = None, guest_name: str | None = None) -> GroupMember:
    email = (email or "").strip()
    guest_name = (guest_name or "").strip()

    group = get_group(group_id, for_update=True)

    if not group.is_owner(actor):
        raise AuthorizationError("Only the group owner can add members")

    if bool(email) == bool(guest_name):
        raise ValidationError("Provide exactly one of email or guest_name")

    if group.expenses.exists():
        raise ValidationError(
            "Cannot add members to a group with existing expenses. Please create a new group."
        )

    if email:
        user = get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if group.members.filter(member_user=user).exists():
            raise ValidationError("User already in group")
        cp = cp_mod.RegisteredUser(user.pk)
    else:
        if group.members.filter(member_kind=cp_mod.KIND_GUEST, member_guest_name__iexact=guest_name).exists():
            raise ValidationError("Guest already in group")
        cp = cp_mod.Guest(guest_name)

    next_position = (group.members.aggregate(m=Max("position"))["m"] or 0) + 1
    member = GroupMember(group=group, position=next_position)
    member.counterparty = cp

    try:
        with transaction.atomic():
            member.save()
    except IntegrityError as exc:
        raise ValidationError("Member already in group") from exc

    logger.info(
        "Group member added",
        extra={"group_id": group.pk, "member_kind": member.member_kind, "actor_id": str(actor.pk)},
    )
    return member

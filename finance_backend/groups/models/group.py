# groups/models/group.py

"""
======================================================
PATH: groups/models/group.py
======================================================
GROUP + ROSTER

A group is owned by its creator, who is also its first member.

Roster rules:
- A member is a registered user OR a guest name (never a dummy contact)
- A user appears at most once per group; so does a guest name
- position keeps the roster order stable (split remainders follow it)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from ledger import counterparty as cp_mod

ROSTER_KIND_CHOICES = [
    (cp_mod.KIND_USER, "Registered user"),
    (cp_mod.KIND_GUEST, "Guest"),
]


def one_party_condition(prefix: str) -> Q:
    """CheckConstraint body: `<prefix>_kind` matches exactly one populated reference column."""
    return Q(
        **{
            f"{prefix}_kind": cp_mod.KIND_USER,
            f"{prefix}_user__isnull": False,
            f"{prefix}_guest_name": "",
        }
    ) | (
        Q(**{f"{prefix}_kind": cp_mod.KIND_GUEST, f"{prefix}_user__isnull": True})
        & ~Q(**{f"{prefix}_guest_name": ""})
    )


class Group(models.Model):
    name = models.CharField(max_length=100)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_groups",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name

    def is_owner(self, user) -> bool:
        return user is not None and self.created_by_id == user.pk


class GroupMember(models.Model):
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="members")

    member_kind = models.CharField(max_length=8, choices=ROSTER_KIND_CHOICES)
    member_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="group_memberships",
    )
    member_guest_name = models.CharField(max_length=150, blank=True, default="")

    position = models.PositiveIntegerField(default=0)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "pk"]
        constraints = [
            models.CheckConstraint(
                condition=one_party_condition("member"),
                name="group_member_exactly_one_party",
            ),
            models.UniqueConstraint(
                fields=["group", "member_user"],
                condition=Q(member_user__isnull=False),
                name="uniq_group_member_user",
            ),
            models.UniqueConstraint(
                fields=["group", "member_guest_name"],
                condition=Q(member_kind=cp_mod.KIND_GUEST),
                name="uniq_group_member_guest",
            ),
        ]

    def __str__(self):
        return f"{self.display_name} @ {self.group_id}"

    @property
    def counterparty(self):
        return cp_mod.from_fields(
            kind=self.member_kind,
            user_id=self.member_user_id,
            guest_name=self.member_guest_name,
        )

    @counterparty.setter
    def counterparty(self, value):
        for attr, v in cp_mod.to_fields(value, prefix="member", allow_dummy=False).items():
            setattr(self, attr, v)

    @property
    def display_name(self) -> str:
        if self.member_user_id:
            return self.member_user.display_name
        return self.member_guest_name

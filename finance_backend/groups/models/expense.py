# groups/models/expense.py

"""
GROUP EXPENSE RECORD

One row per shared expense plus one ExpenseSplit per roster member.
Shares come from an equal split in integer cents, so they always add up
to the expense amount exactly. Splits are written once and never edited.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from groups.models.group import ROSTER_KIND_CHOICES, Group, one_party_condition
from ledger import counterparty as cp_mod


class GroupExpense(models.Model):
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name="expenses")

    payer_kind = models.CharField(max_length=8, choices=ROSTER_KIND_CHOICES)
    payer_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="paid_group_expenses",
    )
    payer_guest_name = models.CharField(max_length=150, blank=True, default="")

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.CharField(max_length=255)
    date = models.DateTimeField(default=timezone.now)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="recorded_group_expenses",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["group", "date"], name="groups_expense_group_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="group_expense_amount_positive"),
            models.CheckConstraint(condition=one_party_condition("payer"), name="group_expense_exactly_one_payer"),
        ]

    def __str__(self):
        return f"{self.description} ({self.amount})"

    @property
    def payer(self):
        return cp_mod.from_fields(
            kind=self.payer_kind,
            user_id=self.payer_user_id,
            guest_name=self.payer_guest_name,
        )

    @payer.setter
    def payer(self, value):
        for attr, v in cp_mod.to_fields(value, prefix="payer", allow_dummy=False).items():
            setattr(self, attr, v)


class ExpenseSplit(models.Model):
    expense = models.ForeignKey(GroupExpense, on_delete=models.CASCADE, related_name="splits")

    member_kind = models.CharField(max_length=8, choices=ROSTER_KIND_CHOICES)
    member_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="group_expense_splits",
    )
    member_guest_name = models.CharField(max_length=150, blank=True, default="")

    share = models.DecimalField(max_digits=14, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "pk"]
        constraints = [
            models.CheckConstraint(condition=Q(share__gte=0), name="expense_split_share_non_negative"),
            models.CheckConstraint(condition=one_party_condition("member"), name="expense_split_exactly_one_member"),
        ]

    def __str__(self):
        return f"{self.member} owes {self.share}"

    @property
    def member(self):
        return cp_mod.from_fields(
            kind=self.member_kind,
            user_id=self.member_user_id,
            guest_name=self.member_guest_name,
        )

    @member.setter
    def member(self, value):
        for attr, v in cp_mod.to_fields(value, prefix="member", allow_dummy=False).items():
            setattr(self, attr, v)

# settlements/models/settlement.py

"""
SETTLEMENT RECORD

A payment between two members of a group. It offsets computed balances and
never rewrites the expense/split history. Between two registered users the
payment is also netted against their open debt pair.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from groups.models.group import ROSTER_KIND_CHOICES, one_party_condition
from ledger import counterparty as cp_mod


class Settlement(models.Model):
    group = models.ForeignKey(
        "groups.Group",
        on_delete=models.CASCADE,
        related_name="settlements",
    )

    payer_kind = models.CharField(max_length=8, choices=ROSTER_KIND_CHOICES)
    payer_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settlements_paid",
    )
    payer_guest_name = models.CharField(max_length=150, blank=True, default="")

    payee_kind = models.CharField(max_length=8, choices=ROSTER_KIND_CHOICES)
    payee_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settlements_received",
    )
    payee_guest_name = models.CharField(max_length=150, blank=True, default="")

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    date = models.DateTimeField(default=timezone.now)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="recorded_settlements",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["group", "date"], name="settle_group_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="settlement_amount_positive"),
            models.CheckConstraint(condition=one_party_condition("payer"), name="settlement_exactly_one_payer"),
            models.CheckConstraint(condition=one_party_condition("payee"), name="settlement_exactly_one_payee"),
        ]

    def __str__(self):
        return f"{self.payer} -> {self.payee}: {self.amount}"

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

    @property
    def payee(self):
        return cp_mod.from_fields(
            kind=self.payee_kind,
            user_id=self.payee_user_id,
            guest_name=self.payee_guest_name,
        )

    @payee.setter
    def payee(self, value):
        for attr, v in cp_mod.to_fields(value, prefix="payee", allow_dummy=False).items():
            setattr(self, attr, v)

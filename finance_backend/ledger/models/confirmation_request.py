# ledger/models/confirmation_request.py

"""
CONFIRMATION REQUEST MODEL

Ephemeral handshake record addressed to a registered user:
- lend_request / borrow_request: approve the reciprocal half of a new obligation
- settle_request: approve that an obligation has been paid off
- remind: a nudge; resolving it is an acknowledgement only

Once confirmed or rejected a request is terminal.
Requests are purged after a fixed retention window regardless of state.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone


class ConfirmationRequest(models.Model):
    KIND_LEND = "lend_request"
    KIND_BORROW = "borrow_request"
    KIND_SETTLE = "settle_request"
    KIND_REMIND = "remind"

    KIND_CHOICES = [
        (KIND_LEND, "Lend request"),
        (KIND_BORROW, "Borrow request"),
        (KIND_SETTLE, "Settle request"),
        (KIND_REMIND, "Reminder"),
    ]

    STATE_PENDING = "pending"
    STATE_CONFIRMED = "confirmed"
    STATE_REJECTED = "rejected"

    STATE_CHOICES = [
        (STATE_PENDING, "Pending"),
        (STATE_CONFIRMED, "Confirmed"),
        (STATE_REJECTED, "Rejected"),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="confirmation_requests",
    )

    initiator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_confirmation_requests",
    )

    request_kind = models.CharField(max_length=16, choices=KIND_CHOICES)

    target_entry = models.ForeignKey(
        "ledger.LedgerEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="confirmation_requests",
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Denormalized copy of the target amount, for display",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    state = models.CharField(max_length=10, choices=STATE_CHOICES, default=STATE_PENDING)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "state"], name="ledger_conf_recipie_idx"),
        ]

    def __str__(self):
        return f"{self.request_kind} → {self.recipient_id} ({self.state})"

    @property
    def is_resolved(self) -> bool:
        return self.state != self.STATE_PENDING

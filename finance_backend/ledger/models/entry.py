# ledger/models/entry.py

"""
======================================================
PATH: ledger/models/entry.py
======================================================
LEDGER ENTRY MODEL

A single-owner record: income, expense, investment, or one half of a
lend/borrow obligation.

Guarantees:
- Amount is a magnitude; direction comes from kind
- Amount is > 0 unless the entry has been settled by netting (then it may be 0)
- Category is required for income/expense/investment and absent for lend/borrow
- Counterparty is required for lend/borrow and absent otherwise
- Non-debt entries are confirmed at creation
- linked_entry is one-to-one: no two entries may point at the same reciprocal

Linkage symmetry (X.linked_entry == Y implies Y.linked_entry == X, same amount,
opposite kind) spans two rows, so it is checked by the services
(ledger.services.linkage), not here.
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ledger import counterparty as cp_mod


class LedgerEntryQuerySet(models.QuerySet):
    def debts(self):
        return self.filter(kind__in=LedgerEntry.DEBT_KINDS)

    def confirmed(self):
        return self.filter(confirmation_state=LedgerEntry.STATE_CONFIRMED)

    def unsettled(self):
        return self.filter(is_settled=False)

    def visible(self):
        return self.filter(is_proxy=False)

    def open_debts(self):
        """Confirmed, unsettled lend/borrow halves. Pending and rejected halves never qualify."""
        return self.debts().confirmed().unsettled()

    def directed(self, *, owner, counterparty_user, kind):
        """owner's open `kind` half whose counterparty is the registered user `counterparty_user`."""
        return self.open_debts().filter(
            owner=owner,
            kind=kind,
            counterparty_kind=cp_mod.KIND_USER,
            counterparty_user=counterparty_user,
        )

    def open_personal_debts(self, owner):
        """
        The personal lending book: open debts against guests (free-text names)
        and dummy contacts. Proxy halves are the dummy side of a pair and are
        never counted for the owner.
        """
        return (
            self.open_debts()
            .visible()
            .filter(owner=owner, counterparty_kind__in=[cp_mod.KIND_GUEST, cp_mod.KIND_DUMMY])
        )


class LedgerEntry(models.Model):
    KIND_INCOME = "income"
    KIND_EXPENSE = "expense"
    KIND_INVESTMENT = "investment"
    KIND_LEND = "lend"
    KIND_BORROW = "borrow"

    KIND_CHOICES = [
        (KIND_INCOME, "Income"),
        (KIND_EXPENSE, "Expense"),
        (KIND_INVESTMENT, "Investment"),
        (KIND_LEND, "Lend"),
        (KIND_BORROW, "Borrow"),
    ]

    DEBT_KINDS = (KIND_LEND, KIND_BORROW)
    CASH_KINDS = (KIND_INCOME, KIND_EXPENSE, KIND_INVESTMENT)

    STATE_PENDING = "pending"
    STATE_CONFIRMED = "confirmed"
    STATE_REJECTED = "rejected"

    STATE_CHOICES = [
        (STATE_PENDING, "Pending"),
        (STATE_CONFIRMED, "Confirmed"),
        (STATE_REJECTED, "Rejected"),
    ]

    SETTLEMENT_NONE = "none"
    SETTLEMENT_REQUESTED = "requested"
    SETTLEMENT_CONFIRMED = "confirmed"

    SETTLEMENT_CHOICES = [
        (SETTLEMENT_NONE, "None"),
        (SETTLEMENT_REQUESTED, "Requested"),
        (SETTLEMENT_CONFIRMED, "Confirmed"),
    ]

    INVESTMENT_BUY = "buy"
    INVESTMENT_SELL = "sell"

    INVESTMENT_CHOICES = [
        (INVESTMENT_BUY, "Buy"),
        (INVESTMENT_SELL, "Sell"),
    ]

    CATEGORY_GROUP_EXPENSE = "Group Expense"
    CATEGORY_DEBT_REPAYMENT = "Debt Repayment"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ledger_entries",
    )

    kind = models.CharField(max_length=12, choices=KIND_CHOICES)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Magnitude; direction is implied by kind",
    )

    category = models.CharField(max_length=100, blank=True, default="")

    investment_type = models.CharField(
        max_length=4,
        choices=INVESTMENT_CHOICES,
        blank=True,
        default="",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    due_date = models.DateField(
        null=True,
        blank=True,
        help_text="Optional repayment date (guest and dummy-contact debts only)",
    )

    date = models.DateTimeField(default=timezone.now)

    # ---- counterparty (lend/borrow only) ----
    counterparty_kind = models.CharField(
        max_length=8,
        choices=cp_mod.KIND_CHOICES,
        blank=True,
        default="",
    )
    counterparty_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries_as_counterparty",
    )
    counterparty_guest_name = models.CharField(max_length=150, blank=True, default="")
    counterparty_contact = models.ForeignKey(
        "users.DummyContact",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )

    linked_entry = models.OneToOneField(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="linked_from",
        help_text="Reciprocal half owned by the counterparty",
    )

    confirmation_state = models.CharField(
        max_length=10,
        choices=STATE_CHOICES,
        default=STATE_CONFIRMED,
    )

    is_settled = models.BooleanField(default=False)

    settlement_state = models.CharField(
        max_length=10,
        choices=SETTLEMENT_CHOICES,
        default=SETTLEMENT_NONE,
    )

    is_proxy = models.BooleanField(
        default=False,
        help_text="Reciprocal half kept by the owner on behalf of a dummy contact",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["owner", "kind"], name="ledger_ledg_owner_i_kind_idx"),
            models.Index(fields=["owner", "date"], name="ledger_ledg_owner_i_date_idx"),
            models.Index(
                fields=["owner", "kind", "counterparty_user", "is_settled"],
                name="ledger_ledg_owner_pair_idx",
            ),
            models.Index(fields=["confirmation_state"], name="ledger_ledg_confirm_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="ledger_entry_amount_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    Q(
                        counterparty_kind="",
                        counterparty_user__isnull=True,
                        counterparty_guest_name="",
                        counterparty_contact__isnull=True,
                    )
                    | Q(
                        counterparty_kind=cp_mod.KIND_USER,
                        counterparty_user__isnull=False,
                        counterparty_guest_name="",
                        counterparty_contact__isnull=True,
                    )
                    | (
                        Q(
                            counterparty_kind=cp_mod.KIND_GUEST,
                            counterparty_user__isnull=True,
                            counterparty_contact__isnull=True,
                        )
                        & ~Q(counterparty_guest_name="")
                    )
                    | Q(
                        counterparty_kind=cp_mod.KIND_DUMMY,
                        counterparty_user__isnull=True,
                        counterparty_guest_name="",
                        counterparty_contact__isnull=False,
                    )
                ),
                name="ledger_entry_counterparty_exactly_one",
            ),
        ]

    def __str__(self):
        return f"{self.kind} {self.amount} ({self.owner_id})"

    # ---------------- counterparty variant ----------------
    @property
    def counterparty(self):
        return cp_mod.from_fields(
            kind=self.counterparty_kind,
            user_id=self.counterparty_user_id,
            guest_name=self.counterparty_guest_name,
            contact_id=self.counterparty_contact_id,
        )

    @counterparty.setter
    def counterparty(self, value):
        for attr, v in cp_mod.to_fields(value, prefix="counterparty").items():
            setattr(self, attr, v)

    @property
    def is_debt(self) -> bool:
        return self.kind in self.DEBT_KINDS

    @property
    def opposite_kind(self) -> str:
        if self.kind == self.KIND_LEND:
            return self.KIND_BORROW
        if self.kind == self.KIND_BORROW:
            return self.KIND_LEND
        raise ValueError(f"{self.kind} entries have no opposite kind")

    # ---------------- validation ----------------
    def clean(self):
        if self.kind not in dict(self.KIND_CHOICES):
            raise ValidationError("Invalid kind")

        if self.amount is None or self.amount < 0:
            raise ValidationError("Amount must be a positive magnitude")
        if self.amount == 0 and not self.is_settled:
            raise ValidationError("Amount must be > 0")

        self.category = (self.category or "").strip()
        self.description = (self.description or "").strip()

        if self.is_debt:
            if self.category:
                raise ValidationError("Lend/borrow entries do not carry a category")
            if not self.counterparty_kind:
                raise ValidationError("Lend/borrow entries require a counterparty")
        else:
            if not self.category:
                raise ValidationError("Category is required for income, expense and investment")
            if self.counterparty_kind:
                raise ValidationError("Only lend/borrow entries have a counterparty")
            if self.confirmation_state != self.STATE_CONFIRMED:
                raise ValidationError("Income, expense and investment entries are always confirmed")
            if self.linked_entry_id:
                raise ValidationError("Only lend/borrow entries can be linked")

        if self.kind == self.KIND_INVESTMENT and not self.investment_type:
            raise ValidationError("investment_type is required for investment entries")
        if self.kind != self.KIND_INVESTMENT and self.investment_type:
            raise ValidationError("investment_type only applies to investment entries")

        if self.is_proxy and self.counterparty_kind != cp_mod.KIND_DUMMY:
            raise ValidationError("Only dummy-contact halves can be proxies")

        if self.due_date and self.counterparty_kind not in (cp_mod.KIND_GUEST, cp_mod.KIND_DUMMY):
            raise ValidationError("due_date only applies to guest and dummy-contact debts")

        if self.date and timezone.is_naive(self.date):
            self.date = timezone.make_aware(self.date, timezone.get_current_timezone())

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

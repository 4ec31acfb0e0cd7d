# ledger/services/entry_service.py

"""
======================================================
PATH: ledger/services/entry_service.py
======================================================
LEDGER ENTRY STORE

The only module that creates LedgerEntry rows directly. Other services
(confirmations, netting, settlements) build on these primitives.

Responsibilities:
- Create income / expense / investment entries (confirmed at creation)
- Create lend/borrow halves for the workflow and netting engines
- Owner-only, non-cascading deletion
- History and summary accessors
"""

from __future__ import annotations

import logging
from datetime import date as date_type, datetime, time, timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from ledger.models import LedgerEntry
from ledger.money import InvalidMoneyError, ZERO, money
from ledger.services.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger("ledger")


# ============================================================
# NORMALIZERS
# ============================================================

def positive_amount(value):
    """Quantize to cents and reject non-positive amounts."""
    try:
        amt = money(value)
    except InvalidMoneyError as exc:
        raise ValidationError(str(exc)) from exc

    if amt <= ZERO:
        raise ValidationError("Amount must be > 0")
    return amt


def as_aware_dt(value) -> datetime:
    if value is None or value == "":
        return timezone.now()
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value, timezone.get_current_timezone())
        return value
    if isinstance(value, date_type):
        return timezone.make_aware(datetime.combine(value, time(12, 0)), timezone.get_current_timezone())
    raise ValidationError("date must be a date or datetime")


def day_bounds(date_from=None, date_to=None):
    """
    Inclusive day range -> timezone-aware [start, end) datetimes.
    Either side may be None (open-ended).
    """
    tz = timezone.get_current_timezone()
    start = end = None
    if date_from:
        start = timezone.make_aware(datetime.combine(date_from, time.min), tz)
    if date_to:
        end = timezone.make_aware(datetime.combine(date_to, time.min), tz) + timedelta(days=1)
    if start and end and start >= end:
        raise ValidationError("date_from must be on or before date_to")
    return start, end


def save_entry(entry: LedgerEntry, **kwargs) -> LedgerEntry:
    """Persist an entry, surfacing model validation as a domain ValidationError."""
    try:
        entry.save(**kwargs)
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc
    return entry


# ============================================================
# CREATION PRIMITIVES
# ============================================================

@transaction.atomic
def record_entry(
    *,
    owner,
    kind: str,
    amount,
    category: str,
    description: str = "",
    date=None,
    investment_type: str = "",
) -> LedgerEntry:
    """Income / expense / investment. Always confirmed."""
    if kind not in LedgerEntry.CASH_KINDS:
        raise ValidationError("Use the lend/borrow workflow for debt entries")

    category = (category or "").strip()
    if not category:
        raise ValidationError("Category is required")

    entry = LedgerEntry(
        owner=owner,
        kind=kind,
        amount=positive_amount(amount),
        category=category,
        description=(description or "").strip(),
        date=as_aware_dt(date),
        investment_type=(investment_type or "").strip().lower(),
        confirmation_state=LedgerEntry.STATE_CONFIRMED,
    )
    save_entry(entry)

    logger.info(
        "Ledger entry recorded",
        extra={"entry_id": entry.pk, "owner_id": str(owner.pk), "kind": kind},
    )
    return entry


def new_debt_half(
    *,
    owner,
    kind: str,
    amount,
    counterparty,
    description: str = "",
    date=None,
    due_date=None,
    confirmation_state: str = LedgerEntry.STATE_CONFIRMED,
    is_proxy: bool = False,
) -> LedgerEntry:
    """Create (but do not link) one lend/borrow half. Callers own the transaction."""
    if kind not in LedgerEntry.DEBT_KINDS:
        raise ValidationError("Debt halves must be lend or borrow")

    entry = LedgerEntry(
        owner=owner,
        kind=kind,
        amount=positive_amount(amount),
        description=(description or "").strip(),
        date=as_aware_dt(date),
        due_date=due_date,
        confirmation_state=confirmation_state,
        is_proxy=is_proxy,
    )
    entry.counterparty = counterparty
    return save_entry(entry)


def record_repayment(*, owner, kind: str, amount, description: str) -> LedgerEntry:
    """Cash movement produced by a confirmed settlement (income for the lender, expense for the borrower)."""
    return record_entry(
        owner=owner,
        kind=kind,
        amount=amount,
        category=LedgerEntry.CATEGORY_DEBT_REPAYMENT,
        description=description,
        date=timezone.now(),
    )


# ============================================================
# LOOKUPS
# ============================================================

def get_entry(entry_id, *, for_update: bool = False) -> LedgerEntry:
    qs = LedgerEntry.objects.all()
    if for_update:
        qs = qs.select_for_update()
    entry = qs.filter(pk=entry_id).first()
    if entry is None:
        raise NotFoundError("Entry not found")
    return entry


def get_owned_entry(entry_id, *, actor, for_update: bool = False) -> LedgerEntry:
    entry = get_entry(entry_id, for_update=for_update)
    if entry.owner_id != actor.pk:
        raise AuthorizationError("You do not own this entry")
    return entry


# ============================================================
# DELETION
# ============================================================

@transaction.atomic
def delete_entry(*, entry_id, actor) -> None:
    """
    Unconditional owner deletion.

    Does not cascade: the reciprocal half survives and its link is cleared
    (linked_entry uses SET_NULL).
    """
    entry = get_owned_entry(entry_id, actor=actor, for_update=True)

    logger.info(
        "Ledger entry deleted",
        extra={
            "entry_id": entry.pk,
            "owner_id": str(actor.pk),
            "linked_entry_id": entry.linked_entry_id,
        },
    )
    entry.delete()


# ============================================================
# HISTORY / SUMMARY
# ============================================================

def list_entries(*, owner, kind: str | None = None, date_from=None, date_to=None):
    qs = LedgerEntry.objects.visible().filter(owner=owner)

    if kind:
        if kind not in dict(LedgerEntry.KIND_CHOICES):
            raise ValidationError("Invalid kind")
        qs = qs.filter(kind=kind)

    start, end = day_bounds(date_from, date_to)
    if start:
        qs = qs.filter(date__gte=start)
    if end:
        qs = qs.filter(date__lt=end)

    return qs.select_related("counterparty_user", "counterparty_contact").order_by("-date", "-created_at")


def _sum(condition: Q):
    return Coalesce(
        Sum("amount", filter=condition),
        Value(ZERO),
        output_field=DecimalField(max_digits=14, decimal_places=2),
    )


def summarize(*, owner, date_from=None, date_to=None) -> dict:
    """
    Totals for the income/expense view:
    {"total_income", "total_expense", "total_investment_buy", "total_investment_sell"}
    """
    qs = LedgerEntry.objects.visible().filter(owner=owner)

    start, end = day_bounds(date_from, date_to)
    if start:
        qs = qs.filter(date__gte=start)
    if end:
        qs = qs.filter(date__lt=end)

    totals = qs.aggregate(
        total_income=_sum(Q(kind=LedgerEntry.KIND_INCOME)),
        total_expense=_sum(Q(kind=LedgerEntry.KIND_EXPENSE)),
        total_investment_buy=_sum(
            Q(kind=LedgerEntry.KIND_INVESTMENT, investment_type=LedgerEntry.INVESTMENT_BUY)
        ),
        total_investment_sell=_sum(
            Q(kind=LedgerEntry.KIND_INVESTMENT, investment_type=LedgerEntry.INVESTMENT_SELL)
        ),
    )
    return {k: money(v) for k, v in totals.items()}

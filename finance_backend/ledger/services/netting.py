# ledger/services/netting.py

"""
======================================================
PATH: ledger/services/netting.py
======================================================
PAIRWISE NETTING ENGINE

Keeps a running net debt between every pair of registered users instead of a
log of gross amounts. At any time a pair should carry at most one direction of
open debt.

net_obligation(creditor, debtor, cents) means "debtor now owes creditor
`cents` more" (creditor fronted a shared expense, or paid the debtor back):

1) Open reverse pairs (debtor lent to creditor) are consumed oldest first:
   - reverse > remaining: both halves shrink by remaining, remaining = 0
   - otherwise: both halves are settled (amount 0), remaining -= reverse
2) Any remainder extends the oldest open forward pair (creditor lent to
   debtor) or creates a new linked pair.

RULES:
- Callers must run inside transaction.atomic (enforced) and lock the pair
  first (lock_pairs); netting itself never commits
- Orphaned halves (their reciprocal was deleted by its owner) are ignored
- A linked half whose reciprocal disagrees raises ConsistencyError
- Pending settle requests on a netted pair follow it: a fully settled pair
  resolves them, a partial change updates their amount
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import IntegrityError, transaction
from django.utils import timezone

from ledger import counterparty as cp_mod
from ledger.models import ConfirmationRequest, DebtPairLock, LedgerEntry
from ledger.money import from_cents, to_cents
from ledger.services.entry_service import new_debt_half, save_entry
from ledger.services.exceptions import ConsistencyError, ValidationError
from ledger.services.linkage import assert_linked_pair, link, reciprocal_of

logger = logging.getLogger("groups.netting")


@dataclass
class NettingResult:
    reverse_reduced_cents: int = 0
    reverse_settled_ids: list = field(default_factory=list)
    forward_added_cents: int = 0
    forward_lend_id: int | None = None
    forward_borrow_id: int | None = None


# ============================================================
# PAIR LOCKING
# ============================================================

def _ordered(a, b):
    return (a, b) if str(a.pk) < str(b.pk) else (b, a)


def _lock_row(low, high) -> DebtPairLock:
    try:
        with transaction.atomic():
            DebtPairLock.objects.get_or_create(user_low=low, user_high=high)
    except IntegrityError:
        # Another transaction created the row first; it exists now.
        pass
    return DebtPairLock.objects.select_for_update().get(user_low=low, user_high=high)


def lock_pairs(pairs) -> None:
    """
    Lock every (user, user) pair in a deterministic order so concurrent
    operations over overlapping pairs cannot deadlock.
    """
    if not transaction.get_connection().in_atomic_block:
        raise ConsistencyError("Pair locks must be taken inside a transaction")

    unique = {}
    for a, b in pairs:
        if a.pk == b.pk:
            continue
        low, high = _ordered(a, b)
        unique[(str(low.pk), str(high.pk))] = (low, high)

    for key in sorted(unique):
        _lock_row(*unique[key])


# ============================================================
# HALF LOOKUPS
# ============================================================

def _open_pairs(*, owner, counterparty_user, kind):
    """
    Open, linked `kind` halves owned by `owner` against `counterparty_user`,
    each paired with its verified reciprocal. Oldest first.
    """
    halves = (
        LedgerEntry.objects.directed(owner=owner, counterparty_user=counterparty_user, kind=kind)
        .filter(linked_entry__isnull=False)
        .select_for_update()
        .order_by("date", "created_at", "pk")
    )

    pairs = []
    for half in halves:
        other = reciprocal_of(half, for_update=True)
        if other.owner_id != counterparty_user.pk or other.counterparty != cp_mod.RegisteredUser(owner.pk):
            raise ConsistencyError(f"Entry {half.pk} is linked to an entry of a different pair")
        pairs.append((half, other))
    return pairs


# ============================================================
# NETTING STEP
# ============================================================

def net_obligation(
    *,
    creditor,
    debtor,
    cents: int,
    date=None,
    forward_lend_description: str = "",
    forward_borrow_description: str = "",
) -> NettingResult:
    if not transaction.get_connection().in_atomic_block:
        raise ConsistencyError("Netting must run inside a transaction")
    if creditor.pk == debtor.pk:
        raise ValidationError("Netting needs two different users")
    if cents <= 0:
        raise ValidationError("Netting amount must be > 0")

    result = NettingResult()
    remaining = int(cents)

    # 1) consume reverse debt (debtor lent to creditor)
    for reverse_lend, reverse_borrow in _open_pairs(
        owner=debtor, counterparty_user=creditor, kind=LedgerEntry.KIND_LEND
    ):
        if remaining <= 0:
            break

        reverse_cents = to_cents(reverse_lend.amount)

        if reverse_cents > remaining:
            new_amount = from_cents(reverse_cents - remaining)
            for half in (reverse_lend, reverse_borrow):
                half.amount = new_amount
                save_entry(half, update_fields=["amount", "updated_at"])
            result.reverse_reduced_cents += remaining
            remaining = 0
        else:
            for half in (reverse_lend, reverse_borrow):
                half.amount = from_cents(0)
                half.is_settled = True
                half.settlement_state = LedgerEntry.SETTLEMENT_CONFIRMED
                save_entry(half, update_fields=["amount", "is_settled", "settlement_state", "updated_at"])
            result.reverse_reduced_cents += reverse_cents
            result.reverse_settled_ids.extend([reverse_lend.pk, reverse_borrow.pk])
            remaining -= reverse_cents

        assert_linked_pair(reverse_lend, reverse_borrow)
        _sync_settle_requests(reverse_lend, reverse_borrow)

    # 2) extend or open the forward debt (creditor lends to debtor)
    if remaining > 0:
        forward = _open_pairs(owner=creditor, counterparty_user=debtor, kind=LedgerEntry.KIND_LEND)

        if forward:
            lend, borrow = forward[0]
            new_amount = from_cents(to_cents(lend.amount) + remaining)
            for half in (lend, borrow):
                half.amount = new_amount
                save_entry(half, update_fields=["amount", "updated_at"])
            _sync_settle_requests(lend, borrow)
        else:
            lend = new_debt_half(
                owner=creditor,
                kind=LedgerEntry.KIND_LEND,
                amount=from_cents(remaining),
                counterparty=cp_mod.RegisteredUser(debtor.pk),
                description=forward_lend_description,
                date=date,
            )
            borrow = new_debt_half(
                owner=debtor,
                kind=LedgerEntry.KIND_BORROW,
                amount=from_cents(remaining),
                counterparty=cp_mod.RegisteredUser(creditor.pk),
                description=forward_borrow_description,
                date=date,
            )
            link(lend, borrow)

        assert_linked_pair(lend, borrow)
        result.forward_added_cents = remaining
        result.forward_lend_id = lend.pk
        result.forward_borrow_id = borrow.pk

        _assert_single_direction(creditor, debtor)

    logger.info(
        "Pair netted",
        extra={
            "creditor_id": str(creditor.pk),
            "debtor_id": str(debtor.pk),
            "cents": cents,
            "reverse_reduced_cents": result.reverse_reduced_cents,
            "forward_added_cents": result.forward_added_cents,
        },
    )
    return result


def _assert_single_direction(a, b) -> None:
    """Once a forward debt has been extended, no open reverse debt may remain."""
    a_to_b = LedgerEntry.objects.directed(
        owner=a, counterparty_user=b, kind=LedgerEntry.KIND_LEND
    ).filter(linked_entry__isnull=False).exists()
    b_to_a = LedgerEntry.objects.directed(
        owner=b, counterparty_user=a, kind=LedgerEntry.KIND_LEND
    ).filter(linked_entry__isnull=False).exists()

    if a_to_b and b_to_a:
        raise ConsistencyError(
            f"Open debt runs in both directions between {a.pk} and {b.pk}"
        )



def _sync_settle_requests(lend: LedgerEntry, borrow: LedgerEntry) -> None:
    """Keep pending settle requests on this pair in step with what netting did to it."""
    pending = ConfirmationRequest.objects.select_for_update().filter(
        target_entry__in=[lend.pk, borrow.pk],
        request_kind=ConfirmationRequest.KIND_SETTLE,
        state=ConfirmationRequest.STATE_PENDING,
    )

    for req in pending:
        if lend.is_settled:
            req.state = ConfirmationRequest.STATE_CONFIRMED
            req.resolved_at = timezone.now()
            req.save(update_fields=["state", "resolved_at"])
            logger.info(
                "Settle request resolved by netting",
                extra={"request_id": req.pk, "entry_id": req.target_entry_id},
            )
        else:
            req.amount = lend.amount
            req.save(update_fields=["amount"])

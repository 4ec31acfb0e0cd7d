# ledger/services/confirmation_service.py

"""
======================================================
PATH: ledger/services/confirmation_service.py
======================================================
CONFIRMATION WORKFLOW

Request/response handshake between two registered users:

- lend_request / borrow_request
    confirm -> original half becomes confirmed, a reciprocal half is created
               for the recipient and both halves are linked
    reject  -> original half becomes rejected (inert, never reaches balances)

- settle_request
    confirm -> both halves flagged settled, plus two repayment entries
               (income for the lender, expense for the borrower)
    reject  -> settlement_state reset to none (is_settled untouched)

- remind
    confirm / reject only acknowledge the nudge

GUARANTEES:
- Each confirm/reject is one atomic unit; any failure leaves nothing behind
- The request row is locked, so two concurrent resolutions cannot both win
- Resolved requests are terminal (RequestAlreadyResolvedError)
- The user-pair lock (DebtPairLock) is taken before any request or entry row,
  in the same order as netting: pair, then rows
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ledger import counterparty as cp_mod
from ledger.models import ConfirmationRequest, LedgerEntry
from ledger.services.entry_service import (
    get_entry,
    get_owned_entry,
    new_debt_half,
    positive_amount,
    record_repayment,
    save_entry,
)
from ledger.services.exceptions import (
    AuthorizationError,
    ConsistencyError,
    NotFoundError,
    RequestAlreadyResolvedError,
    ValidationError,
)
from ledger.services.linkage import assert_linked_pair, link, reciprocal_of
from ledger.services.netting import lock_pairs

logger = logging.getLogger("ledger.confirmations")

REQUEST_KIND_FOR_ENTRY = {
    LedgerEntry.KIND_LEND: ConfirmationRequest.KIND_LEND,
    LedgerEntry.KIND_BORROW: ConfirmationRequest.KIND_BORROW,
}


# ============================================================
# PAIR LOCKING
# ============================================================

def _lock_pair_of(entry_id) -> None:
    entry = LedgerEntry.objects.select_related("owner", "counterparty_user").filter(pk=entry_id).first()
    if entry is not None and entry.counterparty_user_id:
        lock_pairs([(entry.owner, entry.counterparty_user)])


def _lock_pair_for_request(request_id) -> None:
    target_id = (
        ConfirmationRequest.objects.filter(pk=request_id)
        .values_list("target_entry_id", flat=True)
        .first()
    )
    if target_id:
        _lock_pair_of(target_id)


# ============================================================
# CREATE
# ============================================================

@transaction.atomic
def create_request(
    *,
    recipient,
    initiator,
    kind: str,
    entry: LedgerEntry | None,
    amount,
    description: str = "",
) -> ConfirmationRequest:
    amt = positive_amount(amount)

    if kind not in dict(ConfirmationRequest.KIND_CHOICES):
        raise ValidationError("Invalid request kind")

    if recipient is None:
        raise NotFoundError("Recipient not found")

    if recipient.pk == initiator.pk:
        raise ValidationError("You cannot send a request to yourself")

    req = ConfirmationRequest.objects.create(
        recipient=recipient,
        initiator=initiator,
        request_kind=kind,
        target_entry=entry,
        amount=amt,
        description=(description or "").strip()[:255],
        state=ConfirmationRequest.STATE_PENDING,
    )

    logger.info(
        "Confirmation request created",
        extra={
            "request_id": req.pk,
            "kind": kind,
            "recipient_id": str(recipient.pk),
            "initiator_id": str(initiator.pk),
            "entry_id": getattr(entry, "pk", None),
        },
    )
    return req


def _counterparty_user(entry: LedgerEntry):
    cp = entry.counterparty
    if not isinstance(cp, cp_mod.RegisteredUser):
        raise ValidationError("Only obligations with a registered user can go through confirmation")
    return entry.counterparty_user


@transaction.atomic
def request_settlement(*, entry_id, actor) -> ConfirmationRequest:
    """Ask the counterparty to confirm that an open obligation has been paid off."""
    _lock_pair_of(entry_id)
    entry = get_owned_entry(entry_id, actor=actor, for_update=True)

    if not entry.is_debt or entry.confirmation_state != LedgerEntry.STATE_CONFIRMED:
        raise ValidationError("Only confirmed lend/borrow entries can be settled")
    if entry.is_settled:
        raise ValidationError("Entry is already settled")
    if entry.settlement_state == LedgerEntry.SETTLEMENT_REQUESTED:
        raise ValidationError("A settlement request is already pending for this entry")

    recipient = _counterparty_user(entry)

    entry.settlement_state = LedgerEntry.SETTLEMENT_REQUESTED
    save_entry(entry, update_fields=["settlement_state", "updated_at"])

    return create_request(
        recipient=recipient,
        initiator=actor,
        kind=ConfirmationRequest.KIND_SETTLE,
        entry=entry,
        amount=entry.amount,
        description=f"Settlement request for: {entry.description or 'Loan'}",
    )


@transaction.atomic
def send_reminder(*, entry_id, actor) -> ConfirmationRequest:
    entry = get_owned_entry(entry_id, actor=actor)

    if not entry.is_debt or entry.confirmation_state != LedgerEntry.STATE_CONFIRMED or entry.is_settled:
        raise ValidationError("Reminders only apply to open lend/borrow entries")

    return create_request(
        recipient=_counterparty_user(entry),
        initiator=actor,
        kind=ConfirmationRequest.KIND_REMIND,
        entry=entry,
        amount=entry.amount,
        description=f"Reminder for: {entry.description or 'Loan'}",
    )


# ============================================================
# RESOLVE
# ============================================================

def _load_for_resolution(request_id, actor) -> ConfirmationRequest:
    req = ConfirmationRequest.objects.select_for_update().filter(pk=request_id).first()
    if req is None:
        raise NotFoundError("Request not found")

    if req.recipient_id != actor.pk:
        raise AuthorizationError("Only the recipient can resolve this request")

    if req.is_resolved:
        raise RequestAlreadyResolvedError(f"Request is already {req.state}")

    return req


def _target_for_update(req: ConfirmationRequest) -> LedgerEntry:
    if not req.target_entry_id:
        raise NotFoundError("Target entry not found")
    return get_entry(req.target_entry_id, for_update=True)


def _mark(req: ConfirmationRequest, state: str) -> None:
    req.state = state
    req.resolved_at = timezone.now()
    req.save(update_fields=["state", "resolved_at"])


def _confirm_obligation(req: ConfirmationRequest, entry: LedgerEntry, actor) -> LedgerEntry:
    if REQUEST_KIND_FOR_ENTRY.get(entry.kind) != req.request_kind:
        raise ConsistencyError(f"Request {req.pk} does not match entry kind {entry.kind}")
    if entry.owner_id != req.initiator_id:
        raise ConsistencyError(f"Entry {entry.pk} is not owned by the request initiator")
    if entry.counterparty != cp_mod.RegisteredUser(actor.pk):
        raise ConsistencyError(f"Entry {entry.pk} is not addressed to the recipient")
    if entry.confirmation_state != LedgerEntry.STATE_PENDING or entry.linked_entry_id:
        raise ConsistencyError(f"Entry {entry.pk} is not awaiting confirmation")

    entry.confirmation_state = LedgerEntry.STATE_CONFIRMED
    save_entry(entry, update_fields=["confirmation_state", "updated_at"])

    reciprocal = new_debt_half(
        owner=actor,
        kind=entry.opposite_kind,
        amount=entry.amount,
        counterparty=cp_mod.RegisteredUser(entry.owner_id),
        description=entry.description,
        date=entry.date,
    )
    link(entry, reciprocal)
    assert_linked_pair(entry, reciprocal)
    return reciprocal


def _confirm_settlement(req: ConfirmationRequest, entry: LedgerEntry) -> None:
    if not entry.is_debt or entry.confirmation_state != LedgerEntry.STATE_CONFIRMED:
        raise ConsistencyError(f"Entry {entry.pk} is not a confirmed obligation")
    if entry.is_settled:
        raise ValidationError("Entry is already settled")

    other_party = _counterparty_user(entry)

    halves = [entry]
    if entry.linked_entry_id:
        halves.append(reciprocal_of(entry, for_update=True))

    for half in halves:
        half.is_settled = True
        half.settlement_state = LedgerEntry.SETTLEMENT_CONFIRMED
        save_entry(half, update_fields=["is_settled", "settlement_state", "updated_at"])

    if len(halves) == 2:
        assert_linked_pair(*halves)

    if entry.kind == LedgerEntry.KIND_LEND:
        lender, borrower = entry.owner, other_party
    else:
        lender, borrower = other_party, entry.owner

    description = f"Settlement for: {entry.description or 'Loan'}"
    record_repayment(owner=lender, kind=LedgerEntry.KIND_INCOME, amount=entry.amount, description=description)
    record_repayment(owner=borrower, kind=LedgerEntry.KIND_EXPENSE, amount=entry.amount, description=description)


@transaction.atomic
def confirm(*, request_id, actor) -> ConfirmationRequest:
    _lock_pair_for_request(request_id)
    req = _load_for_resolution(request_id, actor)

    if req.request_kind != ConfirmationRequest.KIND_REMIND:
        entry = _target_for_update(req)

        if req.request_kind == ConfirmationRequest.KIND_SETTLE:
            _confirm_settlement(req, entry)
        else:
            _confirm_obligation(req, entry, actor)

    _mark(req, ConfirmationRequest.STATE_CONFIRMED)

    logger.info(
        "Confirmation request confirmed",
        extra={"request_id": req.pk, "kind": req.request_kind, "entry_id": req.target_entry_id},
    )
    return req


@transaction.atomic
def reject(*, request_id, actor) -> ConfirmationRequest:
    """
    Reject a request. A target entry deleted in the meantime leaves nothing
    to revert, so the request is still resolved.
    """
    _lock_pair_for_request(request_id)
    req = _load_for_resolution(request_id, actor)

    entry = None
    if req.target_entry_id:
        entry = LedgerEntry.objects.select_for_update().filter(pk=req.target_entry_id).first()

    if entry is not None:
        if req.request_kind in (ConfirmationRequest.KIND_LEND, ConfirmationRequest.KIND_BORROW):
            if entry.confirmation_state == LedgerEntry.STATE_PENDING:
                entry.confirmation_state = LedgerEntry.STATE_REJECTED
                save_entry(entry, update_fields=["confirmation_state", "updated_at"])
        elif req.request_kind == ConfirmationRequest.KIND_SETTLE:
            if not entry.is_settled:
                entry.settlement_state = LedgerEntry.SETTLEMENT_NONE
                save_entry(entry, update_fields=["settlement_state", "updated_at"])

    _mark(req, ConfirmationRequest.STATE_REJECTED)

    logger.info(
        "Confirmation request rejected",
        extra={"request_id": req.pk, "kind": req.request_kind, "entry_id": req.target_entry_id},
    )
    return req


# ============================================================
# INBOX / RETENTION
# ============================================================

def list_inbox(*, user):
    return (
        ConfirmationRequest.objects.filter(recipient=user, state=ConfirmationRequest.STATE_PENDING)
        .select_related("initiator", "target_entry")
        .order_by("-created_at")
    )


def retention_cutoff(now=None):
    now = now or timezone.now()
    return now - timedelta(days=int(settings.CONFIRMATION_REQUEST_RETENTION_DAYS))


@transaction.atomic
def purge_expired_requests(*, now=None) -> int:
    """Delete every request older than the retention window, whatever its state."""
    cutoff = retention_cutoff(now)
    deleted, _ = ConfirmationRequest.objects.filter(created_at__lt=cutoff).delete()

    logger.info(
        "Expired confirmation requests purged",
        extra={"cutoff": cutoff.isoformat(), "deleted": deleted},
    )
    return deleted

# ledger/services/debt_service.py

"""
LEND / BORROW RECORDING

Dispatches on the counterparty variant:

- RegisteredUser -> pending half + lend_request/borrow_request to that user
- DummyContact   -> both halves created confirmed and linked in one step
                    (a dummy contact cannot approve anything); the dummy's half
                    is kept by the owner as a proxy
- Guest          -> a confirmed, name-keyed personal entry with no reciprocal
"""

from __future__ import annotations

import logging

from django.db import transaction

from ledger import counterparty as cp_mod
from ledger.models import LedgerEntry
from ledger.services.confirmation_service import REQUEST_KIND_FOR_ENTRY, create_request
from ledger.services.entry_service import new_debt_half
from ledger.services.exceptions import NotFoundError, ValidationError
from ledger.services.linkage import assert_linked_pair, link
from users.services.identity import get_dummy_contact, get_user

logger = logging.getLogger("ledger")


@transaction.atomic
def record_lend_borrow(
    *,
    owner,
    kind: str,
    amount,
    counterparty: cp_mod.Counterparty,
    description: str = "",
    date=None,
    due_date=None,
) -> LedgerEntry:
    if kind not in LedgerEntry.DEBT_KINDS:
        raise ValidationError("kind must be lend or borrow")

    if isinstance(counterparty, cp_mod.RegisteredUser):
        if due_date:
            raise ValidationError("Due dates are only tracked for guest and dummy-contact debts")
        return _request_from_user(
            owner=owner, kind=kind, amount=amount, counterparty=counterparty,
            description=description, date=date,
        )
    if isinstance(counterparty, cp_mod.DummyContact):
        return _auto_confirm_with_dummy(
            owner=owner, kind=kind, amount=amount, counterparty=counterparty,
            description=description, date=date, due_date=due_date,
        )
    if isinstance(counterparty, cp_mod.Guest):
        entry = new_debt_half(
            owner=owner, kind=kind, amount=amount, counterparty=counterparty,
            description=description, date=date, due_date=due_date,
        )
        logger.info(
            "Personal debt recorded",
            extra={"entry_id": entry.pk, "owner_id": str(owner.pk), "kind": kind},
        )
        return entry

    raise ValidationError(f"Unsupported counterparty: {counterparty!r}")


def _request_from_user(*, owner, kind, amount, counterparty, description, date) -> LedgerEntry:
    recipient = get_user(counterparty.user_id)
    if recipient is None:
        raise NotFoundError("User not found")
    if recipient.pk == owner.pk:
        raise ValidationError("You cannot lend to or borrow from yourself")

    entry = new_debt_half(
        owner=owner,
        kind=kind,
        amount=amount,
        counterparty=counterparty,
        description=description,
        date=date,
        confirmation_state=LedgerEntry.STATE_PENDING,
    )

    create_request(
        recipient=recipient,
        initiator=owner,
        kind=REQUEST_KIND_FOR_ENTRY[kind],
        entry=entry,
        amount=entry.amount,
        description=entry.description,
    )
    return entry


def _auto_confirm_with_dummy(*, owner, kind, amount, counterparty, description, date, due_date) -> LedgerEntry:
    contact = get_dummy_contact(owner=owner, contact_id=counterparty.contact_id)
    if contact is None:
        raise NotFoundError("Contact not found")

    entry = new_debt_half(
        owner=owner, kind=kind, amount=amount, counterparty=counterparty,
        description=description, date=date, due_date=due_date,
    )
    proxy = new_debt_half(
        owner=owner,
        kind=entry.opposite_kind,
        amount=entry.amount,
        counterparty=counterparty,
        description=entry.description,
        date=entry.date,
        due_date=entry.due_date,
        is_proxy=True,
    )
    link(entry, proxy)
    assert_linked_pair(entry, proxy)

    logger.info(
        "Dummy-contact obligation auto-confirmed",
        extra={"entry_id": entry.pk, "proxy_id": proxy.pk, "contact_id": contact.pk},
    )
    return entry

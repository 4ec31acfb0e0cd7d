# settlements/services/settlement_service.py

"""
======================================================
PATH: settlements/services/settlement_service.py
======================================================
SETTLEMENT RECORDING

record_settlement() persists a Settlement Record inside one group.

When payer and payee are both registered users the payment also runs through
the netting step: the payee now "owes back" what was paid, which first
shrinks or settles the payee's open claim on the payer, and any overshoot
becomes a debt in the opposite direction. Guest settlements exist only as
the record itself (guests own no ledger entries).

RULES:
- Both parties must be on the group roster, and must differ
- The actor must be a registered member and either a party or the owner
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Q

from groups.services.group_service import find_member, get_group_for_member, roster_members
from ledger import counterparty as cp_mod
from ledger.money import to_cents
from ledger.services.entry_service import as_aware_dt, day_bounds, positive_amount
from ledger.services.exceptions import AuthorizationError, ValidationError
from ledger.services.netting import lock_pairs, net_obligation
from settlements.models import Settlement

logger = logging.getLogger("settlements")


@transaction.atomic
def record_settlement(*, group_id, actor, payer, payee, amount, date=None) -> Settlement:
    group = get_group_for_member(group_id, actor)
    amt = positive_amount(amount)

    for party in (payer, payee):
        if not isinstance(party, (cp_mod.RegisteredUser, cp_mod.Guest)):
            raise ValidationError("Settlements are between registered members or guests of the group")

    members = roster_members(group)
    payer_member = find_member(members, payer)
    payee_member = find_member(members, payee)
    if payer_member is None or payee_member is None:
        raise ValidationError("Both parties must be group members")
    if payer_member.pk == payee_member.pk:
        raise ValidationError("Payer and payee must be different")
    payer, payee = payer_member.counterparty, payee_member.counterparty

    me = cp_mod.RegisteredUser(actor.pk)
    if me not in (payer, payee) and not group.is_owner(actor):
        raise AuthorizationError("Only a party to the payment or the group owner can record it")

    when = as_aware_dt(date)

    settlement = Settlement(group=group, amount=amt, date=when, recorded_by=actor)
    settlement.payer = payer
    settlement.payee = payee
    settlement.save()

    if payer_member.member_user_id and payee_member.member_user_id:
        lock_pairs([(payer_member.member_user, payee_member.member_user)])
        net_obligation(
            creditor=payer_member.member_user,
            debtor=payee_member.member_user,
            cents=to_cents(amt),
            date=when,
            forward_lend_description=f"Overpaid to {payee_member.display_name}",
            forward_borrow_description=f"Overpaid by {payer_member.display_name}",
        )

    logger.info(
        "Settlement recorded",
        extra={
            "settlement_id": settlement.pk,
            "group_id": group.pk,
            "payer_kind": settlement.payer_kind,
            "payee_kind": settlement.payee_kind,
            "amount": str(amt),
            "actor_id": str(actor.pk),
        },
    )
    return settlement


def list_settlement_history(*, user, date_from=None, date_to=None):
    qs = Settlement.objects.filter(Q(payer_user=user) | Q(payee_user=user))

    start, end = day_bounds(date_from, date_to)
    if start:
        qs = qs.filter(date__gte=start)
    if end:
        qs = qs.filter(date__lt=end)

    return qs.select_related("group", "payer_user", "payee_user").order_by("-date", "-created_at")

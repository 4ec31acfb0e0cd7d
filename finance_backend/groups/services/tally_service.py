# groups/services/tally_service.py

"""
PER-GROUP TALLY

Net position of every roster member inside one group, in cents:
- payer: +expense amount
- each split member: -share
- settlement payer: +amount, settlement payee: -amount

Positive means the group owes the member; the positions always sum to zero.
"""

from __future__ import annotations

from groups.services.group_service import get_group_for_member, roster_members
from ledger import counterparty as cp_mod
from ledger.money import from_cents, to_cents
from settlements.models import Settlement


def group_tally(*, group_id, actor) -> list[dict]:
    group = get_group_for_member(group_id, actor)

    order = []
    names = {}
    cents = {}
    for member in roster_members(group):
        key = cp_mod.key_of(member.counterparty)
        order.append(key)
        names[key] = member.display_name
        cents[key] = 0

    def add(cp, delta):
        key = cp_mod.key_of(cp)
        if key not in cents:
            order.append(key)
            names[key] = getattr(cp, "name", key)
            cents[key] = 0
        cents[key] += delta

    for expense in group.expenses.prefetch_related("splits"):
        add(expense.payer, to_cents(expense.amount))
        for split in expense.splits.all():
            add(split.member, -to_cents(split.share))

    for settlement in Settlement.objects.filter(group=group):
        amount = to_cents(settlement.amount)
        add(settlement.payer, amount)
        add(settlement.payee, -amount)

    return [{"key": key, "name": names[key], "amount": from_cents(cents[key])} for key in order]

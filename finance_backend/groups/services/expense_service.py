# groups/services/expense_service.py

"""
======================================================
PATH: groups/services/expense_service.py
======================================================
GROUP EXPENSE SPLITTER

add_expense() is one atomic unit:

1) Persist the GroupExpense and one ExpenseSplit per roster member
   (equal split in cents; the first members absorb the remainder)
2) Every registered member gets a confirmed "Group Expense" expense entry
   for their own share, the payer included
3) When the payer is a registered user, each other registered member's
   share is netted against the pair's running debt
   (ledger.services.netting), after locking every affected pair

Any failure (validation, a broken linked pair, a lock timeout) rolls back
the expense, its splits, the member entries and every netting update.
"""

from __future__ import annotations

import logging

from django.db import transaction

from groups.models import ExpenseSplit, GroupExpense
from groups.services.group_service import find_member, get_group_for_member, roster_members
from ledger import counterparty as cp_mod
from ledger.models import LedgerEntry
from ledger.money import from_cents, split_evenly, to_cents
from ledger.services.entry_service import as_aware_dt, day_bounds, positive_amount, record_entry
from ledger.services.exceptions import ValidationError
from ledger.services.netting import lock_pairs, net_obligation

logger = logging.getLogger("groups")


@transaction.atomic
def add_expense(*, group_id, actor, payer, amount, description: str, date=None) -> GroupExpense:
    group = get_group_for_member(group_id, actor)

    amt = positive_amount(amount)
    description = (description or "").strip()
    if not description:
        raise ValidationError("Description is required")

    if not isinstance(payer, (cp_mod.RegisteredUser, cp_mod.Guest)):
        raise ValidationError("Payer must be a registered member or a guest of the group")

    members = roster_members(group)
    payer_member = find_member(members, payer)
    if payer_member is None:
        raise ValidationError("Payer must be a group member")

    when = as_aware_dt(date)
    shares = split_evenly(to_cents(amt), len(members))

    # ---- 1) expense record + splits ----
    expense = GroupExpense(
        group=group,
        amount=amt,
        description=description,
        date=when,
        created_by=actor,
    )
    expense.payer = payer_member.counterparty
    expense.save()

    splits = []
    for position, (member, share) in enumerate(zip(members, shares)):
        split = ExpenseSplit(expense=expense, share=from_cents(share), position=position)
        split.member = member.counterparty
        splits.append(split)
    ExpenseSplit.objects.bulk_create(splits)

    # ---- 2) each registered member's own share ----
    entry_description = f"{description} (Group: {group.name})"[:255]
    for member, share in zip(members, shares):
        if member.member_user_id and share > 0:
            record_entry(
                owner=member.member_user,
                kind=LedgerEntry.KIND_EXPENSE,
                amount=from_cents(share),
                category=LedgerEntry.CATEGORY_GROUP_EXPENSE,
                description=entry_description,
                date=when,
            )

    # ---- 3) pairwise netting ----
    if payer_member.member_user_id:
        _net_member_shares(payer_member, members, shares, when)

    logger.info(
        "Group expense recorded",
        extra={
            "group_id": group.pk,
            "expense_id": expense.pk,
            "payer_kind": expense.payer_kind,
            "amount": str(amt),
            "members": len(members),
        },
    )
    return expense


def _net_member_shares(payer_member, members, shares, when) -> None:
    creditor = payer_member.member_user
    debtors = [
        (member, share)
        for member, share in zip(members, shares)
        if member.member_user_id and member.pk != payer_member.pk and share > 0
    ]
    if not debtors:
        return

    lock_pairs([(creditor, member.member_user) for member, _ in debtors])

    for member, share in debtors:
        net_obligation(
            creditor=creditor,
            debtor=member.member_user,
            cents=share,
            date=when,
            forward_lend_description=f"Owed by {member.display_name}",
            forward_borrow_description=f"Owed to {payer_member.display_name}",
        )


def list_expenses(*, group_id, actor, date_from=None, date_to=None):
    group = get_group_for_member(group_id, actor)

    qs = group.expenses.select_related("payer_user").prefetch_related("splits__member_user")

    start, end = day_bounds(date_from, date_to)
    if start:
        qs = qs.filter(date__gte=start)
    if end:
        qs = qs.filter(date__lt=end)

    return qs.order_by("-date", "-created_at")

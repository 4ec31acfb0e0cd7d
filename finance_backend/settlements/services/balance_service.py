# settlements/services/balance_service.py

"""
======================================================
PATH: settlements/services/balance_service.py
======================================================
BALANCE AGGREGATOR (READ-ONLY)

compute_balances(user) replays, on every call:

1) Group expenses the user paid: every other split member owes their share (+)
2) Group expenses someone else paid: the user owes the payer their own share (-)
3) Open personal debts (guest names and dummy contacts): lend (+), borrow (-)
4) Group settlements: paid by the user (+), received by the user (-)

Sign: positive total = the counterparty owes the user.

Row keys:
- user:<uuid>                  registered users (group members, confirmed aliases)
- guest:<group id>:<name>      group guests (scoped to their group)
- contact:<name>               personal-lending names without a confirmed alias
- dummy:<id>                   dummy contacts

Breakdown sources are group ids, plus "personal" for the personal book.
Settlements in a group without a bucket yet create that bucket, so a row's
breakdown always adds up to its total. All arithmetic is in cents; the 0.01
threshold only filters what is shown.

Lend/borrow halves between two registered users are NOT replayed here: group
and settlement records already account for them, and counting both would
double every netted amount.
"""

from __future__ import annotations

from django.db.models import Q

from groups.models import GroupExpense
from ledger import counterparty as cp_mod
from ledger.models import LedgerEntry
from ledger.money import from_cents, is_presentable, to_cents
from settlements.models import Settlement
from settlements.services.alias_service import resolved_aliases

PERSONAL_SOURCE = "personal"
PERSONAL_SOURCE_NAME = "Personal Lending"


class _Book:
    def __init__(self):
        self.rows = {}

    def row(self, key: str, *, name: str, user_id=None):
        if key not in self.rows:
            self.rows[key] = {
                "key": key,
                "user_id": user_id,
                "name": name,
                "total": 0,
                "breakdown": {},
            }
        return self.rows[key]

    def add(self, row, *, source: str, source_name: str, cents: int):
        bucket = row["breakdown"].setdefault(source, {"source": source, "name": source_name, "amount": 0})
        bucket["amount"] += cents
        row["total"] += cents

    def result(self) -> list[dict]:
        out = []
        for row in self.rows.values():
            total = from_cents(row["total"])
            if not is_presentable(total):
                continue
            breakdown = [
                {**b, "amount": from_cents(b["amount"])}
                for b in row["breakdown"].values()
                if is_presentable(from_cents(b["amount"]))
            ]
            out.append({**row, "total": total, "breakdown": breakdown})
        return sorted(out, key=lambda r: (r["name"].lower(), r["key"]))


def _group_party_row(book: _Book, group, kind, user, guest_name):
    if kind == cp_mod.KIND_USER:
        return book.row(f"user:{user.pk}", name=user.display_name, user_id=str(user.pk))
    return book.row(f"guest:{group.pk}:{guest_name}", name=guest_name)


def compute_balances(user) -> list[dict]:
    book = _Book()

    # ---- 1 + 2) group expenses ----
    expenses = (
        GroupExpense.objects.filter(Q(payer_user=user) | Q(splits__member_user=user))
        .distinct()
        .select_related("group", "payer_user")
        .prefetch_related("splits__member_user")
    )
    for expense in expenses:
        group = expense.group
        splits = list(expense.splits.all())

        if expense.payer_user_id == user.pk:
            for split in splits:
                if split.member_user_id == user.pk:
                    continue
                share = to_cents(split.share)
                if share <= 0:
                    continue
                row = _group_party_row(book, group, split.member_kind, split.member_user, split.member_guest_name)
                book.add(row, source=str(group.pk), source_name=group.name, cents=share)
        else:
            mine = next((s for s in splits if s.member_user_id == user.pk), None)
            if mine is None:
                continue
            share = to_cents(mine.share)
            if share <= 0:
                continue
            row = _group_party_row(book, group, expense.payer_kind, expense.payer_user, expense.payer_guest_name)
            book.add(row, source=str(group.pk), source_name=group.name, cents=-share)

    # ---- 3) personal book ----
    aliases = resolved_aliases(user)
    personal = LedgerEntry.objects.open_personal_debts(user).select_related("counterparty_contact")
    for entry in personal:
        if entry.counterparty_kind == cp_mod.KIND_DUMMY:
            contact = entry.counterparty_contact
            row = book.row(f"dummy:{contact.pk}", name=contact.name)
        else:
            name = entry.counterparty_guest_name
            aliased = aliases.get(name.strip().lower())
            if aliased is not None:
                row = book.row(f"user:{aliased.pk}", name=aliased.display_name, user_id=str(aliased.pk))
            else:
                row = book.row(f"contact:{name}", name=name)

        cents = to_cents(entry.amount)
        if entry.kind == LedgerEntry.KIND_BORROW:
            cents = -cents
        book.add(row, source=PERSONAL_SOURCE, source_name=PERSONAL_SOURCE_NAME, cents=cents)

    # ---- 4) settlements ----
    settlements = (
        Settlement.objects.filter(Q(payer_user=user) | Q(payee_user=user))
        .select_related("group", "payer_user", "payee_user")
    )
    for settlement in settlements:
        group = settlement.group
        cents = to_cents(settlement.amount)

        if settlement.payer_user_id == user.pk:
            row = _group_party_row(
                book, group, settlement.payee_kind, settlement.payee_user, settlement.payee_guest_name
            )
            book.add(row, source=str(group.pk), source_name=group.name, cents=cents)
        else:
            row = _group_party_row(
                book, group, settlement.payer_kind, settlement.payer_user, settlement.payer_guest_name
            )
            book.add(row, source=str(group.pk), source_name=group.name, cents=-cents)

    return book.result()

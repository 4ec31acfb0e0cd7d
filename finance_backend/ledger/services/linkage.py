# ledger/services/linkage.py

"""
LINKED PAIR HELPERS

Two single-owner halves form one logical obligation. These helpers are the
only code that writes linked_entry, and every multi-row mutation re-checks the
pair before returning so a broken pair aborts the surrounding transaction.
"""

from __future__ import annotations

import logging

from ledger.models import LedgerEntry
from ledger.services.exceptions import ConsistencyError

logger = logging.getLogger("ledger")


def assert_linked_pair(a: LedgerEntry, b: LedgerEntry) -> None:
    """Raise ConsistencyError unless a and b are a symmetric lend/borrow pair."""
    problems = []

    if a.pk is None or b.pk is None:
        problems.append("both halves must be persisted")
    if a.linked_entry_id != b.pk or b.linked_entry_id != a.pk:
        problems.append("links are not symmetric")
    if not a.is_debt or not b.is_debt:
        problems.append("only lend/borrow entries can be linked")
    elif b.kind != a.opposite_kind:
        problems.append("kinds are not complementary")
    if a.amount != b.amount:
        problems.append("amounts differ")
    if a.is_settled != b.is_settled:
        problems.append("settled flags differ")

    if problems:
        logger.error(
            "Linked pair violates ledger invariant",
            extra={"entry_a": a.pk, "entry_b": b.pk, "problems": problems},
        )
        raise ConsistencyError(
            f"Entries {a.pk} and {b.pk} are not a consistent pair: {', '.join(problems)}"
        )


def link(a: LedgerEntry, b: LedgerEntry) -> None:
    """Point a and b at each other and persist both."""
    a.linked_entry = b
    b.linked_entry = a
    a.save(update_fields=["linked_entry", "updated_at"])
    b.save(update_fields=["linked_entry", "updated_at"])


def reciprocal_of(entry: LedgerEntry, *, for_update: bool = False) -> LedgerEntry:
    """
    Load the other half of `entry`, verifying symmetry.

    Raises ConsistencyError when the link is dangling or one-sided.
    """
    if not entry.linked_entry_id:
        raise ConsistencyError(f"Entry {entry.pk} has no linked half")

    qs = LedgerEntry.objects.all()
    if for_update:
        qs = qs.select_for_update()

    other = qs.filter(pk=entry.linked_entry_id).first()
    if other is None:
        raise ConsistencyError(f"Entry {entry.pk} links to missing entry {entry.linked_entry_id}")

    assert_linked_pair(entry, other)
    return other

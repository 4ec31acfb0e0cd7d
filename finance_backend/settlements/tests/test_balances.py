from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from groups.services.expense_service import add_expense
from groups.services.group_service import add_member, create_group
from ledger import counterparty as cp_mod
from ledger.models import LedgerEntry
from ledger.services.debt_service import record_lend_borrow
from ledger.services.exceptions import AuthorizationError, ValidationError
from settlements.models import Settlement
from settlements.services.alias_service import confirm_alias, create_alias
from settlements.services.balance_service import compute_balances
from settlements.services.settlement_service import list_settlement_history, record_settlement
from users.models import DummyContact

User = get_user_model()


def rows_by_key(user):
    return {row["key"]: row for row in compute_balances(user)}


class GroupBalanceTests(TestCase):
    """
    GUARANTEES:
    - A row's breakdown always adds up to its total
    - Two users always see mirror-image totals for each other
    - Settlements move both the balance rows and the netted ledger pair
    """

    def setUp(self):
        self.a = User.objects.create_user(email="a@example.com", password="pass", first_name="Ann")
        self.b = User.objects.create_user(email="b@example.com", password="pass", first_name="Ben")
        self.c = User.objects.create_user(email="c@example.com", password="pass", first_name="Cat")
        self.group = create_group(name="Flat", creator=self.a)
        add_member(group_id=self.group.pk, actor=self.a, email="b@example.com")
        add_member(group_id=self.group.pk, actor=self.a, email="c@example.com")
        add_expense(
            group_id=self.group.pk, actor=self.a,
            payer=cp_mod.RegisteredUser(self.a.pk), amount="90", description="Dinner",
        )

    def _settle(self, payer, payee, amount, actor=None, group=None):
        return record_settlement(
            group_id=(group or self.group).pk,
            actor=actor or payer,
            payer=cp_mod.RegisteredUser(payer.pk),
            payee=cp_mod.RegisteredUser(payee.pk),
            amount=amount,
        )

    def test_payer_sees_what_members_owe(self):
        rows = rows_by_key(self.a)
        self.assertEqual(set(rows), {f"user:{self.b.pk}", f"user:{self.c.pk}"})

        ben = rows[f"user:{self.b.pk}"]
        self.assertEqual(ben["name"], "Ben")
        self.assertEqual(ben["total"], Decimal("30.00"))
        self.assertEqual(
            ben["breakdown"],
            [{"source": str(self.group.pk), "name": "Flat", "amount": Decimal("30.00")}],
        )

        self.assertEqual(rows_by_key(self.b)[f"user:{self.a.pk}"]["total"], Decimal("-30.00"))

    def test_settlement_reduces_row_and_pair(self):
        self._settle(self.b, self.a, "10")

        self.assertEqual(rows_by_key(self.a)[f"user:{self.b.pk}"]["total"], Decimal("20.00"))
        self.assertEqual(rows_by_key(self.b)[f"user:{self.a.pk}"]["total"], Decimal("-20.00"))

        lend = LedgerEntry.objects.directed(owner=self.a, counterparty_user=self.b, kind="lend").get()
        self.assertEqual(lend.amount, Decimal("20.00"))
        self.assertEqual(LedgerEntry.objects.get(pk=lend.linked_entry_id).amount, Decimal("20.00"))

    def test_full_settlement_settles_pair(self):
        self._settle(self.b, self.a, "30")

        self.assertNotIn(f"user:{self.b.pk}", rows_by_key(self.a))
        self.assertNotIn(f"user:{self.a.pk}", rows_by_key(self.b))

        lend = LedgerEntry.objects.get(owner=self.a, counterparty_user=self.b, kind=LedgerEntry.KIND_LEND)
        borrow = LedgerEntry.objects.get(pk=lend.linked_entry_id)
        for half in (lend, borrow):
            self.assertTrue(half.is_settled)
            self.assertEqual(half.amount, Decimal("0.00"))

    def test_overpayment_flips_direction(self):
        self._settle(self.b, self.a, "45")

        self.assertEqual(rows_by_key(self.a)[f"user:{self.b.pk}"]["total"], Decimal("-15.00"))
        forward = LedgerEntry.objects.directed(owner=self.b, counterparty_user=self.a, kind="lend").get()
        self.assertEqual(forward.amount, Decimal("15.00"))
        self.assertEqual(forward.description, "Overpaid to Ann")

    def test_totals_are_mirror_images(self):
        add_expense(
            group_id=self.group.pk, actor=self.b,
            payer=cp_mod.RegisteredUser(self.b.pk), amount="33", description="Milk",
        )
        self._settle(self.c, self.b, "5")

        for x, y in ((self.a, self.b), (self.a, self.c), (self.b, self.c)):
            x_sees = rows_by_key(x).get(f"user:{y.pk}", {"total": Decimal("0")})["total"]
            y_sees = rows_by_key(y).get(f"user:{x.pk}", {"total": Decimal("0")})["total"]
            self.assertEqual(x_sees, -y_sees)

    def test_settlement_without_prior_expense_creates_bucket(self):
        other = create_group(name="Club", creator=self.a)
        add_member(group_id=other.pk, actor=self.a, email="b@example.com")
        self._settle(self.b, self.a, "15", group=other)

        ben = rows_by_key(self.a)[f"user:{self.b.pk}"]
        self.assertEqual(ben["total"], Decimal("15.00"))
        self.assertEqual(
            {b["source"]: b["amount"] for b in ben["breakdown"]},
            {str(self.group.pk): Decimal("30.00"), str(other.pk): Decimal("-15.00")},
        )
        self.assertEqual(sum(b["amount"] for b in ben["breakdown"]), ben["total"])

    def test_actor_must_be_party_or_owner(self):
        with self.assertRaises(AuthorizationError):
            self._settle(self.b, self.a, "5", actor=self.c)

        # the owner may record a payment between two other members
        self._settle(self.c, self.b, "5", actor=self.a)
        self.assertEqual(Settlement.objects.count(), 1)

    def test_invalid_parties_refused(self):
        outsider = User.objects.create_user(email="x@example.com", password="pass")
        with self.assertRaises(ValidationError):
            self._settle(self.a, self.a, "5")
        with self.assertRaises(ValidationError):
            self._settle(self.a, outsider, "5")
        with self.assertRaises(ValidationError):
            self._settle(self.b, self.a, "0")
        self.assertFalse(Settlement.objects.exists())

    def test_guest_settlement_has_no_ledger_effect(self):
        other = create_group(name="Camp", creator=self.a)
        add_member(group_id=other.pk, actor=self.a, guest_name="Gus")
        debts_before = LedgerEntry.objects.debts().count()

        record_settlement(
            group_id=other.pk, actor=self.a,
            payer=cp_mod.Guest("Gus"), payee=cp_mod.RegisteredUser(self.a.pk), amount="12",
        )

        self.assertEqual(LedgerEntry.objects.debts().count(), debts_before)
        gus = rows_by_key(self.a)[f"guest:{other.pk}:Gus"]
        self.assertEqual(gus["total"], Decimal("-12.00"))
        self.assertIsNone(gus["user_id"])

    def test_guest_parties_match_roster_case_insensitively(self):
        other = create_group(name="Camp", creator=self.a)
        add_member(group_id=other.pk, actor=self.a, guest_name="Sam")

        settlement = record_settlement(
            group_id=other.pk, actor=self.a,
            payer=cp_mod.Guest("sam"), payee=cp_mod.RegisteredUser(self.a.pk), amount="8",
        )
        self.assertEqual(settlement.payer, cp_mod.Guest("Sam"))
        self.assertIn(f"guest:{other.pk}:Sam", rows_by_key(self.a))

        with self.assertRaises(ValidationError):
            record_settlement(
                group_id=other.pk, actor=self.a,
                payer=cp_mod.Guest("SAM"), payee=cp_mod.Guest("sam"), amount="8",
            )

    def test_history_lists_both_sides(self):
        self._settle(self.b, self.a, "10")
        self.assertEqual(list_settlement_history(user=self.a).count(), 1)
        self.assertEqual(list_settlement_history(user=self.b).count(), 1)
        self.assertEqual(list_settlement_history(user=self.c).count(), 0)


class PersonalBalanceTests(TestCase):
    def setUp(self):
        self.a = User.objects.create_user(email="a@example.com", password="pass")
        self.b = User.objects.create_user(email="b@example.com", password="pass", first_name="Sam")

    def test_guest_and_dummy_rows(self):
        record_lend_borrow(owner=self.a, kind="lend", amount="40", counterparty=cp_mod.Guest("Sam"))
        record_lend_borrow(owner=self.a, kind="borrow", amount="5", counterparty=cp_mod.Guest("Sam"))
        grandma = DummyContact.objects.create(owner=self.a, name="Grandma")
        record_lend_borrow(
            owner=self.a, kind="borrow", amount="25", counterparty=cp_mod.DummyContact(grandma.pk)
        )

        rows = rows_by_key(self.a)
        self.assertEqual(rows["contact:Sam"]["total"], Decimal("35.00"))
        self.assertEqual(
            rows["contact:Sam"]["breakdown"],
            [{"source": "personal", "name": "Personal Lending", "amount": Decimal("35.00")}],
        )
        self.assertEqual(rows[f"dummy:{grandma.pk}"]["total"], Decimal("-25.00"))
        self.assertEqual(list(rows), [f"dummy:{grandma.pk}", "contact:Sam"])

    def test_alias_folds_name_only_once_confirmed(self):
        record_lend_borrow(owner=self.a, kind="lend", amount="40", counterparty=cp_mod.Guest("sam"))
        alias = create_alias(owner=self.a, display_name="Sam", email="b@example.com")

        self.assertIn("contact:sam", rows_by_key(self.a))

        with self.assertRaises(AuthorizationError):
            confirm_alias(alias_id=alias.pk, actor=self.a)
        confirm_alias(alias_id=alias.pk, actor=self.b)

        rows = rows_by_key(self.a)
        self.assertNotIn("contact:sam", rows)
        self.assertEqual(rows[f"user:{self.b.pk}"]["total"], Decimal("40.00"))
        self.assertEqual(rows[f"user:{self.b.pk}"]["user_id"], str(self.b.pk))

        with self.assertRaises(ValidationError):
            confirm_alias(alias_id=alias.pk, actor=self.b)

    def test_alias_rules(self):
        with self.assertRaises(ValidationError):
            create_alias(owner=self.a, display_name="Me", email="a@example.com")
        create_alias(owner=self.a, display_name="Sam", user_id=self.b.pk)
        with self.assertRaises(ValidationError):
            create_alias(owner=self.a, display_name="SAM", user_id=self.b.pk)

    def test_sub_cent_totals_hidden(self):
        record_lend_borrow(owner=self.a, kind="lend", amount="10.00", counterparty=cp_mod.Guest("Kim"))
        record_lend_borrow(owner=self.a, kind="borrow", amount="10.00", counterparty=cp_mod.Guest("Kim"))
        self.assertEqual(compute_balances(self.a), [])

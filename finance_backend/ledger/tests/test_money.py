from decimal import Decimal

from django.test import SimpleTestCase

from ledger import counterparty as cp_mod
from ledger.money import InvalidMoneyError, from_cents, is_presentable, money, split_evenly, to_cents


class MoneyTests(SimpleTestCase):
    def test_money_rounds_half_up(self):
        self.assertEqual(money("10.005"), Decimal("10.01"))
        self.assertEqual(money(3), Decimal("3.00"))

    def test_money_rejects_garbage(self):
        for bad in ("abc", True, float("nan")):
            with self.assertRaises(InvalidMoneyError):
                money(bad)

    def test_cents_conversion(self):
        self.assertEqual(to_cents("12.34"), 1234)
        self.assertEqual(from_cents(1234), Decimal("12.34"))

    def test_split_evenly_distributes_remainder_to_first_members(self):
        self.assertEqual(split_evenly(10000, 3), [3334, 3333, 3333])
        self.assertEqual(split_evenly(9000, 3), [3000, 3000, 3000])
        self.assertEqual(split_evenly(2, 3), [1, 1, 0])

    def test_split_sum_is_exact(self):
        for total, parts in ((1, 7), (99999, 13), (500, 6)):
            self.assertEqual(sum(split_evenly(total, parts)), total)

    def test_presentation_threshold(self):
        self.assertFalse(is_presentable(Decimal("0.01")))
        self.assertTrue(is_presentable(Decimal("-0.02")))


class CounterpartyTests(SimpleTestCase):
    def test_parse_requires_exactly_one_reference(self):
        with self.assertRaises(ValueError):
            cp_mod.parse({})
        with self.assertRaises(ValueError):
            cp_mod.parse({"guest_name": "Ann", "contact_id": 3})

    def test_guest_names_are_trimmed_and_required(self):
        self.assertEqual(cp_mod.parse({"guest_name": "  Ann "}), cp_mod.Guest("Ann"))
        with self.assertRaises(ValueError):
            cp_mod.Guest("   ")

    def test_fields_roundtrip_through_columns(self):
        cp = cp_mod.DummyContact(7)
        fields = cp_mod.to_fields(cp, prefix="counterparty")
        self.assertEqual(fields["counterparty_kind"], cp_mod.KIND_DUMMY)
        self.assertEqual(
            cp_mod.from_fields(
                kind=fields["counterparty_kind"],
                user_id=fields["counterparty_user_id"],
                guest_name=fields["counterparty_guest_name"],
                contact_id=fields["counterparty_contact_id"],
            ),
            cp,
        )

    def test_rosters_refuse_dummy_contacts(self):
        with self.assertRaises(ValueError):
            cp_mod.to_fields(cp_mod.DummyContact(1), prefix="member", allow_dummy=False)

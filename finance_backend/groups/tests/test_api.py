from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from groups.models import GroupExpense
from ledger.models import LedgerEntry

User = get_user_model()


class GroupAPITests(TestCase):
    def setUp(self):
        self.ann = User.objects.create_user(email="ann@example.com", password="pass", first_name="Ann")
        self.ben = User.objects.create_user(email="ben@example.com", password="pass", first_name="Ben")
        self.outsider = User.objects.create_user(email="out@example.com", password="pass")

        self.as_ann = APIClient()
        self.as_ann.force_authenticate(self.ann)
        self.as_ben = APIClient()
        self.as_ben.force_authenticate(self.ben)
        self.as_outsider = APIClient()
        self.as_outsider.force_authenticate(self.outsider)

        res = self.as_ann.post("/api/groups/", {"name": "Holiday"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.group_id = res.data["id"]

    def _url(self, suffix=""):
        return f"/api/groups/{self.group_id}/{suffix}"

    def test_create_and_roster(self):
        self.assertEqual(
            self.as_ann.post(self._url("members/"), {"email": "ben@example.com"}, format="json").status_code,
            201,
        )
        res = self.as_ann.post(self._url("members/"), {"guest_name": "Gus"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["member"], {"kind": "guest", "id": None, "name": "Gus"})

        res = self.as_ben.get(self._url())
        self.assertEqual(res.status_code, 200)
        self.assertEqual([m["member"]["name"] for m in res.data["members"]], ["Ann", "Ben", "Gus"])

        listed = self.as_ben.get("/api/groups/")
        self.assertEqual([g["id"] for g in listed.data], [self.group_id])

    def test_member_payload_needs_exactly_one_identity(self):
        res = self.as_ann.post(
            self._url("members/"), {"email": "ben@example.com", "guest_name": "Gus"}, format="json"
        )
        self.assertEqual(res.status_code, 400)
        res = self.as_ann.post(self._url("members/"), {}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_access_rules(self):
        self.assertEqual(self.as_outsider.get(self._url()).status_code, 403)
        self.assertEqual(self.as_ann.get("/api/groups/999999/").status_code, 404)

        self.as_ann.post(self._url("members/"), {"email": "ben@example.com"}, format="json")
        res = self.as_ben.post(self._url("members/"), {"guest_name": "Gus"}, format="json")
        self.assertEqual(res.status_code, 403)

        res = self.as_ann.post(self._url("members/"), {"email": "ghost@example.com"}, format="json")
        self.assertEqual(res.status_code, 404)

    def test_expense_defaults_payer_to_caller(self):
        self.as_ann.post(self._url("members/"), {"email": "ben@example.com"}, format="json")

        res = self.as_ann.post(
            self._url("expenses/"), {"amount": "50.00", "description": "Fuel"}, format="json"
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["payer"]["id"], str(self.ann.pk))
        self.assertEqual([s["share"] for s in res.data["splits"]], ["25.00", "25.00"])

        borrow = LedgerEntry.objects.get(owner=self.ben, kind=LedgerEntry.KIND_BORROW)
        self.assertEqual(borrow.amount, Decimal("25.00"))

        listed = self.as_ben.get(self._url("expenses/"))
        self.assertEqual(len(listed.data), 1)

        tally = self.as_ben.get(self._url("tally/"))
        self.assertEqual(
            {row["name"]: row["amount"] for row in tally.data},
            {"Ann": "25.00", "Ben": "-25.00"},
        )

    def test_expense_validation(self):
        res = self.as_ann.post(self._url("expenses/"), {"amount": "-5", "description": "x"}, format="json")
        self.assertEqual(res.status_code, 400)

        res = self.as_ann.post(
            self._url("expenses/"),
            {"amount": "5", "description": "x", "payer": {"user_id": str(self.outsider.pk)}},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

        res = self.as_outsider.post(self._url("expenses/"), {"amount": "5", "description": "x"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertFalse(GroupExpense.objects.exists())

    def test_roster_frozen_after_expense(self):
        self.as_ann.post(self._url("expenses/"), {"amount": "5", "description": "Gum"}, format="json")
        res = self.as_ann.post(self._url("members/"), {"guest_name": "Late"}, format="json")
        self.assertEqual(res.status_code, 400)
        self.assertIn("existing expenses", res.data["detail"])

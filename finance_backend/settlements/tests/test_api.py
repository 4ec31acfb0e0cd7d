from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from groups.services.expense_service import add_expense
from groups.services.group_service import add_member, create_group
from ledger import counterparty as cp_mod

User = get_user_model()


class SettlementAPITests(TestCase):
    def setUp(self):
        self.ann = User.objects.create_user(email="ann@example.com", password="pass", first_name="Ann")
        self.ben = User.objects.create_user(email="ben@example.com", password="pass", first_name="Ben")

        self.group = create_group(name="Flat", creator=self.ann)
        add_member(group_id=self.group.pk, actor=self.ann, email="ben@example.com")
        add_expense(
            group_id=self.group.pk, actor=self.ann,
            payer=cp_mod.RegisteredUser(self.ann.pk), amount="40", description="Rent share",
        )

        self.as_ann = APIClient()
        self.as_ann.force_authenticate(self.ann)
        self.as_ben = APIClient()
        self.as_ben.force_authenticate(self.ben)

    def test_balances(self):
        res = self.as_ann.get("/api/settlements/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)
        self.assertEqual(res.data[0]["user_id"], str(self.ben.pk))
        self.assertEqual(res.data[0]["total"], "20.00")
        self.assertEqual(res.data[0]["breakdown"][0]["name"], "Flat")

    def test_record_settlement_defaults_payer_to_caller(self):
        res = self.as_ben.post(
            "/api/settlements/",
            {"group_id": self.group.pk, "payee": {"user_id": str(self.ann.pk)}, "amount": "20"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["payer"]["id"], str(self.ben.pk))
        self.assertEqual(res.data["group_name"], "Flat")

        self.assertEqual(self.as_ann.get("/api/settlements/").data, [])

        history = self.as_ann.get("/api/settlements/history/")
        self.assertEqual(len(history.data), 1)

    def test_settlement_errors(self):
        res = self.as_ben.post(
            "/api/settlements/",
            {"group_id": self.group.pk, "payee": {"user_id": str(self.ben.pk)}, "amount": "5"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

        res = self.as_ben.post(
            "/api/settlements/",
            {"group_id": 999999, "payee": {"user_id": str(self.ann.pk)}, "amount": "5"},
            format="json",
        )
        self.assertEqual(res.status_code, 404)

        res = self.as_ben.post(
            "/api/settlements/",
            {"group_id": self.group.pk, "payee": {"contact_id": 1}, "amount": "5"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_alias_create_and_confirm(self):
        res = self.as_ann.post(
            "/api/settlements/aliases/", {"display_name": "Benny", "email": "ben@example.com"}, format="json"
        )
        self.assertEqual(res.status_code, 201)
        self.assertFalse(res.data["confirmed"])
        alias_id = res.data["id"]

        url = f"/api/settlements/aliases/{alias_id}/confirm/"
        self.assertEqual(self.as_ann.post(url).status_code, 403)

        res = self.as_ben.post(url)
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["confirmed"])

        listed = self.as_ben.get("/api/settlements/aliases/")
        self.assertEqual([a["id"] for a in listed.data], [alias_id])

    def test_alias_payload_needs_one_identity(self):
        res = self.as_ann.post("/api/settlements/aliases/", {"display_name": "X"}, format="json")
        self.assertEqual(res.status_code, 400)

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from ledger.models import ConfirmationRequest, LedgerEntry

User = get_user_model()


class LedgerAPITests(TestCase):
    """
    Endpoint wiring + domain error mapping (400 / 403 / 404).
    """

    def setUp(self):
        self.alice = User.objects.create_user(email="alice@example.com", password="pass")
        self.bob = User.objects.create_user(email="bob@example.com", password="pass")

        self.as_alice = APIClient()
        self.as_alice.force_authenticate(self.alice)
        self.as_bob = APIClient()
        self.as_bob.force_authenticate(self.bob)

    def test_create_and_list_income(self):
        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "income", "amount": "250.00", "category": "Salary"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["confirmation_state"], "confirmed")

        res = self.as_alice.get("/api/ledger/entries/?kind=income")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)

    def test_payload_validation(self):
        res = self.as_alice.post(
            "/api/ledger/entries/", {"kind": "expense", "amount": "10"}, format="json"
        )
        self.assertEqual(res.status_code, 400)

        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "10", "counterparty": {"guest_name": "A", "contact_id": 1}},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_lend_confirm_roundtrip_through_inbox(self):
        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "75", "counterparty": {"user_id": str(self.bob.pk)}},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["confirmation_state"], "pending")
        self.assertEqual(res.data["counterparty"]["kind"], "user")

        inbox = self.as_bob.get("/api/ledger/requests/")
        self.assertEqual(len(inbox.data), 1)
        request_id = inbox.data[0]["id"]

        # the initiator cannot answer their own request
        res = self.as_alice.post(f"/api/ledger/requests/{request_id}/confirm/")
        self.assertEqual(res.status_code, 403)

        res = self.as_bob.post(f"/api/ledger/requests/{request_id}/confirm/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["state"], "confirmed")

        res = self.as_bob.post(f"/api/ledger/requests/{request_id}/reject/")
        self.assertEqual(res.status_code, 400)

        self.assertEqual(LedgerEntry.objects.filter(owner=self.bob, kind="borrow").count(), 1)

    def test_unknown_request_is_404(self):
        res = self.as_bob.post("/api/ledger/requests/99999/confirm/")
        self.assertEqual(res.status_code, 404)

    def test_delete_requires_ownership(self):
        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "expense", "amount": "12", "category": "Food"},
            format="json",
        )
        entry_id = res.data["id"]

        self.assertEqual(self.as_bob.delete(f"/api/ledger/entries/{entry_id}/").status_code, 403)
        self.assertEqual(self.as_alice.delete(f"/api/ledger/entries/{entry_id}/").status_code, 204)

    def test_settle_and_remind_endpoints(self):
        self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "20", "counterparty": {"user_id": str(self.bob.pk)}},
            format="json",
        )
        req = ConfirmationRequest.objects.get()
        self.as_bob.post(f"/api/ledger/requests/{req.pk}/confirm/")
        lend = LedgerEntry.objects.get(owner=self.alice)

        res = self.as_alice.post(f"/api/ledger/entries/{lend.pk}/remind/")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["request_kind"], "remind")

        res = self.as_alice.post(f"/api/ledger/entries/{lend.pk}/settle/")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["request_kind"], "settle_request")

    def test_history_extra_filters(self):
        self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "20", "counterparty": {"user_id": str(self.bob.pk)}},
            format="json",
        )
        self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "15", "counterparty": {"guest_name": "Carl"}},
            format="json",
        )

        res = self.as_alice.get("/api/ledger/entries/?confirmation_state=pending")
        self.assertEqual([e["amount"] for e in res.data], ["20.00"])

        res = self.as_alice.get("/api/ledger/entries/?counterparty_kind=guest")
        self.assertEqual([e["counterparty"]["name"] for e in res.data], ["Carl"])

    def test_analysis(self):
        self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "expense", "amount": "12.50", "category": "Food"},
            format="json",
        )
        res = self.as_alice.get("/api/ledger/analysis/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_expense"], "12.50")

    def test_due_date_on_guest_lend(self):
        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "lend", "amount": "15", "counterparty": {"guest_name": "Kim"}, "due_date": "2026-12-01"},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["due_date"], "2026-12-01")

        res = self.as_alice.post(
            "/api/ledger/entries/",
            {"kind": "income", "amount": "15", "category": "Gift", "due_date": "2026-12-01"},
            format="json",
        )
        self.assertEqual(res.status_code, 400)

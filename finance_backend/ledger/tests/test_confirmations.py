from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from ledger import counterparty as cp_mod
from ledger.models import ConfirmationRequest, LedgerEntry
from ledger.services import confirmation_service
from ledger.services.confirmation_service import (
    confirm,
    list_inbox,
    purge_expired_requests,
    reject,
    request_settlement,
    send_reminder,
)
from ledger.services.debt_service import record_lend_borrow
from ledger.services.exceptions import (
    AuthorizationError,
    ConsistencyError,
    NotFoundError,
    RequestAlreadyResolvedError,
    ValidationError,
)
from ledger.services.linkage import assert_linked_pair

User = get_user_model()


class ConfirmationWorkflowTests(TestCase):
    """
    Lend/borrow between registered users.

    GUARANTEES:
    - A request only becomes a linked pair once the recipient confirms
    - Only the recipient resolves a request, exactly once
    - Rejected halves stay inert
    """

    def setUp(self):
        self.alice = User.objects.create_user(email="alice@example.com", password="pass")
        self.bob = User.objects.create_user(email="bob@example.com", password="pass")

    def _lend(self, amount="50", lender=None, borrower=None, kind="lend"):
        lender = lender or self.alice
        borrower = borrower or self.bob
        entry = record_lend_borrow(
            owner=lender,
            kind=kind,
            amount=amount,
            counterparty=cp_mod.RegisteredUser(borrower.pk),
            description="Concert tickets",
        )
        req = ConfirmationRequest.objects.get(target_entry=entry)
        return entry, req

    # =====================================================
    # CREATE
    # =====================================================

    def test_lend_to_user_creates_pending_entry_and_request(self):
        entry, req = self._lend()

        self.assertEqual(entry.confirmation_state, LedgerEntry.STATE_PENDING)
        self.assertIsNone(entry.linked_entry_id)
        self.assertEqual(req.request_kind, ConfirmationRequest.KIND_LEND)
        self.assertEqual(req.recipient, self.bob)
        self.assertEqual(req.amount, Decimal("50.00"))
        self.assertEqual(list(list_inbox(user=self.bob)), [req])
        self.assertEqual(list(list_inbox(user=self.alice)), [])

    def test_request_rejects_non_positive_amount(self):
        with self.assertRaises(ValidationError):
            confirmation_service.create_request(
                recipient=self.bob, initiator=self.alice, kind=ConfirmationRequest.KIND_REMIND,
                entry=None, amount="0",
            )

    def test_cannot_lend_to_yourself_or_unknown_user(self):
        with self.assertRaises(ValidationError):
            self._lend(borrower=self.alice)
        with self.assertRaises(NotFoundError):
            record_lend_borrow(
                owner=self.alice, kind="lend", amount="5",
                counterparty=cp_mod.RegisteredUser("00000000-0000-0000-0000-000000000000"),
            )

    # =====================================================
    # CONFIRM / REJECT
    # =====================================================

    def test_confirm_creates_linked_reciprocal(self):
        entry, req = self._lend()

        confirm(request_id=req.pk, actor=self.bob)

        entry.refresh_from_db()
        req.refresh_from_db()
        reciprocal = LedgerEntry.objects.get(owner=self.bob)

        self.assertEqual(req.state, ConfirmationRequest.STATE_CONFIRMED)
        self.assertIsNotNone(req.resolved_at)
        self.assertEqual(entry.confirmation_state, LedgerEntry.STATE_CONFIRMED)
        self.assertEqual(reciprocal.kind, LedgerEntry.KIND_BORROW)
        self.assertEqual(reciprocal.counterparty, cp_mod.RegisteredUser(self.alice.pk))
        self.assertEqual(reciprocal.description, "Concert tickets")
        self.assertEqual(reciprocal.date, entry.date)
        assert_linked_pair(entry, reciprocal)

    def test_borrow_request_reciprocal_is_a_lend(self):
        entry, req = self._lend(kind="borrow")
        self.assertEqual(req.request_kind, ConfirmationRequest.KIND_BORROW)

        confirm(request_id=req.pk, actor=self.bob)
        self.assertEqual(LedgerEntry.objects.get(owner=self.bob).kind, LedgerEntry.KIND_LEND)

    def test_only_recipient_can_resolve(self):
        _, req = self._lend()
        with self.assertRaises(AuthorizationError):
            confirm(request_id=req.pk, actor=self.alice)
        with self.assertRaises(AuthorizationError):
            reject(request_id=req.pk, actor=self.alice)

    def test_missing_request_is_not_found(self):
        with self.assertRaises(NotFoundError):
            confirm(request_id=424242, actor=self.bob)

    def test_confirm_with_deleted_target_is_not_found(self):
        entry, req = self._lend()
        entry.delete()
        with self.assertRaises(NotFoundError):
            confirm(request_id=req.pk, actor=self.bob)

    def test_reject_leaves_inert_entry(self):
        entry, req = self._lend()

        reject(request_id=req.pk, actor=self.bob)

        entry.refresh_from_db()
        self.assertEqual(entry.confirmation_state, LedgerEntry.STATE_REJECTED)
        self.assertFalse(LedgerEntry.objects.filter(owner=self.bob).exists())
        self.assertFalse(LedgerEntry.objects.open_debts().filter(pk=entry.pk).exists())

    def test_resolution_is_terminal(self):
        _, req = self._lend()
        confirm(request_id=req.pk, actor=self.bob)

        with self.assertRaises(RequestAlreadyResolvedError):
            confirm(request_id=req.pk, actor=self.bob)
        with self.assertRaises(RequestAlreadyResolvedError):
            reject(request_id=req.pk, actor=self.bob)

        self.assertEqual(LedgerEntry.objects.filter(owner=self.bob).count(), 1)

    def test_confirm_rolls_back_when_linking_fails(self):
        entry, req = self._lend()

        with mock.patch(
            "ledger.services.confirmation_service.assert_linked_pair",
            side_effect=ConsistencyError("boom"),
        ):
            with self.assertRaises(ConsistencyError):
                confirm(request_id=req.pk, actor=self.bob)

        entry.refresh_from_db()
        req.refresh_from_db()
        self.assertEqual(entry.confirmation_state, LedgerEntry.STATE_PENDING)
        self.assertEqual(req.state, ConfirmationRequest.STATE_PENDING)
        self.assertFalse(LedgerEntry.objects.filter(owner=self.bob).exists())

    # =====================================================
    # SETTLEMENT + REMINDERS
    # =====================================================

    def _confirmed_pair(self):
        entry, req = self._lend(amount="80")
        confirm(request_id=req.pk, actor=self.bob)
        entry.refresh_from_db()
        return entry, LedgerEntry.objects.get(owner=self.bob)

    def test_settle_confirm_flips_both_halves_and_records_repayments(self):
        lend, borrow = self._confirmed_pair()

        req = request_settlement(entry_id=lend.pk, actor=self.alice)
        lend.refresh_from_db()
        self.assertEqual(lend.settlement_state, LedgerEntry.SETTLEMENT_REQUESTED)

        confirm(request_id=req.pk, actor=self.bob)

        lend.refresh_from_db()
        borrow.refresh_from_db()
        for half in (lend, borrow):
            self.assertTrue(half.is_settled)
            self.assertEqual(half.settlement_state, LedgerEntry.SETTLEMENT_CONFIRMED)

        income = LedgerEntry.objects.get(owner=self.alice, kind=LedgerEntry.KIND_INCOME)
        expense = LedgerEntry.objects.get(owner=self.bob, kind=LedgerEntry.KIND_EXPENSE)
        for repayment in (income, expense):
            self.assertEqual(repayment.category, LedgerEntry.CATEGORY_DEBT_REPAYMENT)
            self.assertEqual(repayment.amount, Decimal("80.00"))

    def test_borrower_can_request_settlement_too(self):
        lend, borrow = self._confirmed_pair()
        req = request_settlement(entry_id=borrow.pk, actor=self.bob)
        self.assertEqual(req.recipient, self.alice)

        confirm(request_id=req.pk, actor=self.alice)
        self.assertTrue(LedgerEntry.objects.filter(owner=self.alice, kind="income").exists())
        self.assertTrue(LedgerEntry.objects.filter(owner=self.bob, kind="expense").exists())

    def test_settle_reject_resets_state_only(self):
        lend, _ = self._confirmed_pair()
        req = request_settlement(entry_id=lend.pk, actor=self.alice)

        reject(request_id=req.pk, actor=self.bob)

        lend.refresh_from_db()
        self.assertEqual(lend.settlement_state, LedgerEntry.SETTLEMENT_NONE)
        self.assertFalse(lend.is_settled)

    def test_duplicate_settlement_request_refused(self):
        lend, _ = self._confirmed_pair()
        request_settlement(entry_id=lend.pk, actor=self.alice)
        with self.assertRaises(ValidationError):
            request_settlement(entry_id=lend.pk, actor=self.alice)

    def test_pending_entries_cannot_be_settled(self):
        entry, _ = self._lend()
        with self.assertRaises(ValidationError):
            request_settlement(entry_id=entry.pk, actor=self.alice)

    def test_reminder_is_acknowledged_without_side_effects(self):
        lend, borrow = self._confirmed_pair()
        req = send_reminder(entry_id=lend.pk, actor=self.alice)
        self.assertEqual(req.request_kind, ConfirmationRequest.KIND_REMIND)

        confirm(request_id=req.pk, actor=self.bob)

        lend.refresh_from_db()
        self.assertFalse(lend.is_settled)
        self.assertEqual(LedgerEntry.objects.count(), 2)

    # =====================================================
    # PAIR LOCK
    # =====================================================

    def _assert_pair_locked(self, lock):
        self.assertTrue(lock.called)
        (a, b), = lock.call_args.args[0]
        self.assertEqual({a.pk, b.pk}, {self.alice.pk, self.bob.pk})

    def test_confirm_takes_pair_lock(self):
        _, req = self._lend(kind="borrow")
        with mock.patch.object(confirmation_service, "lock_pairs", wraps=confirmation_service.lock_pairs) as lock:
            confirm(request_id=req.pk, actor=self.bob)
        self._assert_pair_locked(lock)

    def test_settle_confirm_and_reject_take_pair_lock(self):
        lend, borrow = self._confirmed_pair()

        with mock.patch.object(confirmation_service, "lock_pairs", wraps=confirmation_service.lock_pairs) as lock:
            req = request_settlement(entry_id=borrow.pk, actor=self.bob)
        self._assert_pair_locked(lock)

        with mock.patch.object(confirmation_service, "lock_pairs", wraps=confirmation_service.lock_pairs) as lock:
            reject(request_id=req.pk, actor=self.alice)
        self._assert_pair_locked(lock)

        req = request_settlement(entry_id=borrow.pk, actor=self.bob)
        with mock.patch.object(confirmation_service, "lock_pairs", wraps=confirmation_service.lock_pairs) as lock:
            confirm(request_id=req.pk, actor=self.alice)
        self._assert_pair_locked(lock)
        lend.refresh_from_db()
        self.assertTrue(lend.is_settled)


class PurgeTests(TestCase):
    def setUp(self):
        self.alice = User.objects.create_user(email="alice@example.com", password="pass")
        self.bob = User.objects.create_user(email="bob@example.com", password="pass")

    def _request(self, age_days, state=ConfirmationRequest.STATE_PENDING):
        return ConfirmationRequest.objects.create(
            recipient=self.bob,
            initiator=self.alice,
            request_kind=ConfirmationRequest.KIND_REMIND,
            amount=Decimal("1.00"),
            state=state,
            created_at=timezone.now() - timedelta(days=age_days),
        )

    @override_settings(CONFIRMATION_REQUEST_RETENTION_DAYS=30)
    def test_purge_removes_old_requests_in_any_state(self):
        old_pending = self._request(31)
        old_done = self._request(45, state=ConfirmationRequest.STATE_CONFIRMED)
        fresh = self._request(2)

        deleted = purge_expired_requests()

        self.assertEqual(deleted, 2)
        remaining = set(ConfirmationRequest.objects.values_list("pk", flat=True))
        self.assertEqual(remaining, {fresh.pk})
        self.assertNotIn(old_pending.pk, remaining)
        self.assertNotIn(old_done.pk, remaining)

    def test_management_command(self):
        self._request(60)
        self._request(1)

        out = StringIO()
        call_command("purge_confirmation_requests", "--dry-run", stdout=out)
        self.assertIn("1 confirmation request(s)", out.getvalue())
        self.assertEqual(ConfirmationRequest.objects.count(), 2)

        call_command("purge_confirmation_requests", stdout=StringIO())
        self.assertEqual(ConfirmationRequest.objects.count(), 1)

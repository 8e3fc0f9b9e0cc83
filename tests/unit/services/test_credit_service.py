import unittest

from src.models import AdminActionLog, CreditTransaction
from src.services.credit import CreditService
from src.utils.constants import CreditTransactionType
from src.utils.exceptions import InsufficientCreditsError, InvalidAdjustmentError, InvalidConfirmationError
from tests.support import USER_ID, fund, make_session_factory


class TestCreditService(unittest.TestCase):
    """Ledger behaviour against an in-memory database."""

    def setUp(self):
        self.db = make_session_factory()()
        self.service = CreditService(self.db)

    def tearDown(self):
        self.db.close()

    def transactions(self):
        return self.db.query(CreditTransaction).order_by(CreditTransaction.id).all()

    def test_debit_reduces_balance_and_records_usage(self):
        fund(self.db, USER_ID, 50)

        balance = self.service.debit(USER_ID, 20, description="Check 2 keywords")

        self.assertEqual(balance, 30)
        account = self.service.get_account(USER_ID)
        self.db.refresh(account)
        self.assertEqual(account.total_used, 20)
        [entry] = self.transactions()
        self.assertEqual(entry.amount, -20)
        self.assertEqual(entry.type, CreditTransactionType.USAGE.value)
        self.assertEqual(entry.balance_after, 30)

    def test_debit_never_goes_negative(self):
        fund(self.db, USER_ID, 5)

        with self.assertRaises(InsufficientCreditsError) as ctx:
            self.service.debit(USER_ID, 10)

        self.assertEqual(str(ctx.exception), "Insufficient credits (need 10, have 5)")
        self.assertEqual(self.service.get_balance(USER_ID), 5)
        self.assertEqual(self.transactions(), [])

    def test_debit_without_account(self):
        with self.assertRaises(InsufficientCreditsError) as ctx:
            self.service.debit("no-such-user", 1)
        self.assertEqual(ctx.exception.available, 0)

    def test_debit_of_zero_is_a_no_op(self):
        fund(self.db, USER_ID, 5)

        self.assertEqual(self.service.debit(USER_ID, 0), 5)
        self.assertEqual(self.transactions(), [])

    def test_credit_is_idempotent_per_reference(self):
        applied, balance = self.service.credit(USER_ID, 10000, reference_id="txn-1", description="Purchase")
        again, balance_again = self.service.credit(USER_ID, 10000, reference_id="txn-1", description="Purchase")

        self.assertTrue(applied)
        self.assertFalse(again)
        self.assertEqual(balance, 10000)
        self.assertEqual(balance_again, 10000)
        self.assertEqual(len(self.transactions()), 1)
        account = self.service.get_account(USER_ID)
        self.assertEqual(account.total_purchased, 10000)

    def test_credit_adds_to_existing_balance(self):
        fund(self.db, USER_ID, 7)

        applied, balance = self.service.credit(USER_ID, 3, reference_id="txn-2")

        self.assertTrue(applied)
        self.assertEqual(balance, 10)
        self.assertEqual(self.transactions()[0].balance_after, 10)

    def test_adjust_requires_confirmation(self):
        with self.assertRaises(InvalidConfirmationError):
            self.service.adjust("admin-1", USER_ID, 100, "Refund", "yes")

    def test_adjust_rejects_zero_and_blank_reason(self):
        with self.assertRaises(InvalidAdjustmentError):
            self.service.adjust("admin-1", USER_ID, 0, "Refund", "CONFIRM")
        with self.assertRaises(InvalidAdjustmentError):
            self.service.adjust("admin-1", USER_ID, 10, "   ", "CONFIRM")

    def test_adjust_cannot_make_balance_negative(self):
        fund(self.db, USER_ID, 10)

        with self.assertRaises(InvalidAdjustmentError):
            self.service.adjust("admin-1", USER_ID, -11, "Chargeback", "CONFIRM")
        self.assertEqual(self.service.get_balance(USER_ID), 10)

    def test_adjust_writes_transaction_and_audit_log(self):
        fund(self.db, USER_ID, 10)

        result = self.service.adjust("admin-1", USER_ID, -4, "Chargeback", "CONFIRM")

        self.assertEqual(result.previous_balance, 10)
        self.assertEqual(result.new_balance, 6)
        [entry] = self.transactions()
        self.assertEqual(entry.type, CreditTransactionType.ADMIN_DEDUCT.value)
        self.assertEqual(entry.amount, -4)
        [log] = self.db.query(AdminActionLog).all()
        self.assertEqual(log.admin_id, "admin-1")
        self.assertEqual(log.target_user_id, USER_ID)
        self.assertEqual(log.details["new_balance"], 6)

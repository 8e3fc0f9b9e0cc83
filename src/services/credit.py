import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models import CreditTransaction, UserCredit
from src.repositories import (
    AdminActionLogRepository,
    CreditTransactionRepository,
    UserCreditRepository,
)
from src.schemas import CreditAdjustResult
from src.utils.constants import AdminConst, CreditTransactionType
from src.utils.exceptions import (
    InsufficientCreditsError,
    InvalidAdjustmentError,
    InvalidConfirmationError,
)
from src.utils.utils import credits_needed

logger = logging.getLogger(__name__)


class CreditService:
    """Prepaid credit ledger.

    Balance changes are guarded UPDATE statements and every change writes a
    ``credit_transaction`` row with the resulting balance in the same
    database transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.account_repo = UserCreditRepository(db)
        self.transaction_repo = CreditTransactionRepository(db)
        self.admin_log_repo = AdminActionLogRepository(db)

    @staticmethod
    def credits_needed(top_results: Optional[int], keyword_count: int) -> int:
        return credits_needed(top_results, keyword_count)

    def get_account(self, user_id: str) -> Optional[UserCredit]:
        return self.account_repo.get(user_id)

    def get_balance(self, user_id: str) -> int:
        return self.account_repo.get_balance(user_id)

    def list_transactions(self, user_id: str, skip: int = 0, limit: int | None = 50) -> List[CreditTransaction]:
        return self.transaction_repo.list_for_user(user_id, skip=skip, limit=limit)

    def debit(self, user_id: str, amount: int, description: Optional[str] = None) -> int:
        """Take *amount* credits or raise ``InsufficientCreditsError``.

        Returns the balance after the debit.
        """
        if amount < 0:
            raise ValueError("Debit amount must not be negative")
        if amount == 0:
            return self.account_repo.get_balance(user_id)
        try:
            if not self.account_repo.debit_if_sufficient(user_id, amount):
                available = self.account_repo.get_balance(user_id)
                self.db.rollback()
                raise InsufficientCreditsError(needed=amount, available=available)

            balance_after = self.account_repo.get_balance(user_id)
            self.transaction_repo.create_no_commit(
                user_id=user_id,
                amount=-amount,
                type=CreditTransactionType.USAGE.value,
                description=description,
                balance_after=balance_after,
            )
            self.db.commit()
        except InsufficientCreditsError:
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info("Debited %s credits from user %s, balance %s -> %s", amount, user_id, balance_after + amount, balance_after)
        return balance_after

    def refund(self, user_id: str, amount: int, description: Optional[str] = None) -> int:
        """Give back credits taken by ``debit`` for work that produced nothing."""
        if amount <= 0:
            raise ValueError("Refund amount must be positive")
        try:
            self.account_repo.return_usage(user_id, amount)
            balance_after = self.account_repo.get_balance(user_id)
            self.transaction_repo.create_no_commit(
                user_id=user_id,
                amount=amount,
                type=CreditTransactionType.REFUND.value,
                description=description,
                balance_after=balance_after,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Refunded %s credits to user %s, new balance %s", amount, user_id, balance_after)
        return balance_after

    def credit(
        self,
        user_id: str,
        amount: int,
        reference_id: str,
        description: Optional[str] = None,
        commit: bool = True,
    ) -> Tuple[bool, int]:
        """Add purchased credits once per *reference_id*.

        Returns ``(applied, balance)``; a repeated reference is a successful
        no-op with ``applied`` False. With ``commit=False`` the caller owns
        the transaction and must commit or roll back.
        """
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        if self.transaction_repo.get_by_reference(reference_id) is not None:
            logger.info("Credit for reference %s already applied, skipping", reference_id)
            return False, self.account_repo.get_balance(user_id)

        try:
            self.account_repo.get_or_create_no_commit(user_id)
            self.account_repo.add_purchased(user_id, amount)
            balance_after = self.account_repo.get_balance(user_id)
            self.transaction_repo.create_no_commit(
                user_id=user_id,
                amount=amount,
                type=CreditTransactionType.PURCHASE.value,
                description=description,
                reference_id=reference_id,
                balance_after=balance_after,
            )
            if commit:
                self.db.commit()
        except IntegrityError:
            # A concurrent delivery inserted the same reference first
            self.db.rollback()
            logger.info("Credit for reference %s applied concurrently, skipping", reference_id)
            return False, self.account_repo.get_balance(user_id)
        except Exception:
            self.db.rollback()
            raise

        logger.info("Credited %s credits to user %s (ref %s), new balance %s", amount, user_id, reference_id, balance_after)
        return True, balance_after

    def adjust(
        self,
        admin_id: str,
        user_id: str,
        amount: int,
        reason: str,
        confirmation: str,
    ) -> CreditAdjustResult:
        """Manual correction by an administrator."""
        if confirmation != AdminConst.CONFIRMATION_TOKEN:
            raise InvalidConfirmationError()
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise InvalidAdjustmentError("Amount must be a non-zero integer")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidAdjustmentError("Reason is required")

        try:
            self.account_repo.get_or_create_no_commit(user_id)
            previous_balance = self.account_repo.get_balance(user_id)
            if not self.account_repo.adjust_if_non_negative(user_id, amount):
                self.db.rollback()
                raise InvalidAdjustmentError(
                    f"Adjustment would make balance negative (current {previous_balance}, change {amount})"
                )
            new_balance = self.account_repo.get_balance(user_id)
            previous_balance = new_balance - amount

            transaction_type = CreditTransactionType.ADMIN_ADD if amount > 0 else CreditTransactionType.ADMIN_DEDUCT
            self.transaction_repo.create_no_commit(
                user_id=user_id,
                amount=amount,
                type=transaction_type.value,
                description=f"Admin adjustment: {reason}",
                balance_after=new_balance,
            )
            self.admin_log_repo.create_no_commit(
                admin_id=admin_id,
                action_type=AdminConst.ACTION_CREDIT_ADJUSTMENT,
                target_user_id=user_id,
                details={
                    "amount": amount,
                    "reason": reason,
                    "previous_balance": previous_balance,
                    "new_balance": new_balance,
                },
            )
            self.db.commit()
        except InvalidAdjustmentError:
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Admin %s adjusted credits for user %s by %s: %s -> %s (%s)",
            admin_id, user_id, amount, previous_balance, new_balance, reason,
        )
        return CreditAdjustResult(
            user_id=user_id,
            amount=amount,
            previous_balance=previous_balance,
            new_balance=new_balance,
        )

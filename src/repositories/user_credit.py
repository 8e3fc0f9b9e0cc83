from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from src.models import UserCredit
from src.utils.utils import utc_now


class UserCreditRepository:
    """Balance mutations are single UPDATE statements with the guard in the
    WHERE clause; callers own the surrounding transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[UserCredit]:
        return self.db.query(UserCredit).filter(UserCredit.user_id == user_id).first()

    def get_balance(self, user_id: str) -> int:
        row = self.db.query(UserCredit.balance).filter(UserCredit.user_id == user_id).first()
        return row[0] if row else 0

    def get_or_create_no_commit(self, user_id: str) -> UserCredit:
        account = self.get(user_id)
        if account is None:
            account = UserCredit(user_id=user_id, balance=0, total_purchased=0, total_used=0, updated_at=utc_now())
            self.db.add(account)
            self.db.flush()
        return account

    def debit_if_sufficient(self, user_id: str, amount: int) -> bool:
        result = self.db.execute(
            update(UserCredit)
            .where(UserCredit.user_id == user_id, UserCredit.balance >= amount)
            .values(
                balance=UserCredit.balance - amount,
                total_used=UserCredit.total_used + amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    def add_purchased(self, user_id: str, amount: int) -> bool:
        result = self.db.execute(
            update(UserCredit)
            .where(UserCredit.user_id == user_id)
            .values(
                balance=UserCredit.balance + amount,
                total_purchased=UserCredit.total_purchased + amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    def adjust_if_non_negative(self, user_id: str, delta: int) -> bool:
        values = {"balance": UserCredit.balance + delta, "updated_at": utc_now()}
        if delta > 0:
            values["total_purchased"] = UserCredit.total_purchased + delta
        result = self.db.execute(
            update(UserCredit)
            .where(UserCredit.user_id == user_id, UserCredit.balance + delta >= 0)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    def return_usage(self, user_id: str, amount: int) -> bool:
        result = self.db.execute(
            update(UserCredit)
            .where(UserCredit.user_id == user_id)
            .values(
                balance=UserCredit.balance + amount,
                total_used=UserCredit.total_used - amount,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

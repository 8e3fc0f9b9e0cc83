from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import CreditTransaction
from src.utils.utils import utc_now


class CreditTransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_reference(self, reference_id: str) -> Optional[CreditTransaction]:
        return (
            self.db.query(CreditTransaction)
            .filter(CreditTransaction.reference_id == reference_id)
            .first()
        )

    def create_no_commit(
        self,
        user_id: str,
        amount: int,
        type: str,
        balance_after: int,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> CreditTransaction:
        entry = CreditTransaction(
            user_id=user_id,
            amount=amount,
            type=type,
            description=description,
            reference_id=reference_id,
            balance_after=balance_after,
            created_at=utc_now(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_for_user(self, user_id: str, skip: int = 0, limit: int | None = 50) -> List[CreditTransaction]:
        query = (
            self.db.query(CreditTransaction)
            .filter(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_for_user(self, user_id: str) -> int:
        return self.db.query(CreditTransaction).filter(CreditTransaction.user_id == user_id).count()

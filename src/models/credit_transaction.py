from sqlalchemy import Column, Integer, String, DateTime, text

from src.config.database import Base


class CreditTransaction(Base):
    __tablename__ = 'credit_transaction'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # signed: usage rows are negative
    type = Column(String(20), nullable=False)
    description = Column(String(500), nullable=True)
    # Upstream payment transaction id for purchases; unique so a payment is
    # only ever credited once.
    reference_id = Column(String(100), nullable=True, unique=True)
    balance_after = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

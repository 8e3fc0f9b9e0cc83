from sqlalchemy import Column, Integer, String, DateTime, text

from src.config.database import Base


class UserCredit(Base):
    __tablename__ = 'user_credit'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    balance = Column(Integer, nullable=False, server_default=text('0'))
    total_purchased = Column(Integer, nullable=False, server_default=text('0'))
    total_used = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

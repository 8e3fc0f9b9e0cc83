from sqlalchemy import Column, Integer, String, DateTime, JSON, text

from src.config.database import Base


class AdminActionLog(Base):
    __tablename__ = 'admin_action_log'

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(String(36), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)
    target_user_id = Column(String(36), nullable=True, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

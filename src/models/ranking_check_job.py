from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index, text

from src.config.database import Base


class RankingCheckJob(Base):
    __tablename__ = 'ranking_check_queue'
    __table_args__ = (
        Index('idx_ranking_queue_status_created', 'status', 'created_at'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Integer, nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    keyword_ids = Column(JSON, nullable=True)  # empty = every keyword of the class
    total_keywords = Column(Integer, nullable=False, server_default=text('0'))
    processed_keywords = Column(Integer, nullable=False, server_default=text('0'))
    # The run holding claim_token owns keywords [processed_keywords,
    # claimed_keywords) until it advances progress or its claim goes stale.
    claimed_keywords = Column(Integer, nullable=False, default=0, server_default=text('0'))
    claimed_at = Column(DateTime, nullable=True)
    claim_token = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, server_default=text("'pending'"))
    # Equals class_id while pending/processing and NULL once terminal; the
    # unique index is what allows only one active job per class.
    active_class_id = Column(Integer, nullable=True, unique=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from src.config.database import Base


class KeywordRankingHistory(Base):
    """Append-only snapshot written once per keyword check."""
    __tablename__ = 'keyword_ranking_history'
    __table_args__ = (
        Index('idx_ranking_history_keyword_checked', 'keyword_id', 'checked_at'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    keyword_id = Column(Integer, ForeignKey('project_keyword.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    ranking_position = Column(Integer, nullable=True)
    found_url = Column(Text, nullable=True)
    competitor_rankings = Column(JSON, nullable=True)
    checked_at = Column(DateTime, nullable=False)

    keyword = relationship('Keyword', back_populates='history')

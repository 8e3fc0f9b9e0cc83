from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index, text

from src.config.database import Base


class RankingCheck(Base):
    """One ad-hoc keyword check outside any class, kept for the user's history."""
    __tablename__ = 'ranking_checks'
    __table_args__ = (
        Index('idx_ranking_checks_user_created', 'user_id', 'created_at'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False)
    keyword = Column(String(255), nullable=False)
    target_url = Column(Text, nullable=True)
    country_id = Column(String(20), nullable=False)
    country_name = Column(String(100), nullable=True)
    location_id = Column(String(20), nullable=True)
    location_name = Column(String(255), nullable=True)
    language_code = Column(String(10), nullable=False)
    language_name = Column(String(100), nullable=True)
    device = Column(String(10), nullable=False, server_default=text("'desktop'"))
    top_results = Column(Integer, nullable=False, server_default=text('100'))
    ranking_position = Column(Integer, nullable=True)
    found_url = Column(Text, nullable=True)
    serp_results = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

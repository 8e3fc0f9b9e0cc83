from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, UniqueConstraint, text
from sqlalchemy.orm import relationship

from src.config.database import Base


class Keyword(Base):
    __tablename__ = 'project_keyword'
    __table_args__ = (
        UniqueConstraint('class_id', 'keyword', name='uq_project_keyword_class_keyword'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Integer, ForeignKey('project_class.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    keyword = Column(String(255), nullable=False)
    ranking_position = Column(Integer, nullable=True)
    first_position = Column(Integer, nullable=True)
    best_position = Column(Integer, nullable=True)
    previous_position = Column(Integer, nullable=True)
    found_url = Column(Text, nullable=True)
    # domain -> {position, url, first_position, best_position, previous_position}
    competitor_rankings = Column(JSON, nullable=True)
    serp_results = Column(JSON, nullable=True)
    last_checked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    project_class = relationship('ProjectClass', back_populates='keywords')
    history = relationship(
        'KeywordRankingHistory',
        back_populates='keyword',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

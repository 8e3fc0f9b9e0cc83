from sqlalchemy import Column, Integer, String, DateTime, JSON, Index, text
from sqlalchemy.orm import relationship

from src.config.database import Base


class ProjectClass(Base):
    __tablename__ = 'project_class'
    __table_args__ = (
        Index('idx_project_class_schedule', 'schedule'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False)
    competitor_domains = Column(JSON, nullable=True)
    country_id = Column(String(20), nullable=False)
    language_code = Column(String(10), nullable=False)
    device = Column(String(10), nullable=False, server_default=text("'desktop'"))
    top_results = Column(Integer, nullable=False, server_default=text('100'))
    location_id = Column(String(20), nullable=True)
    schedule = Column(String(10), nullable=True)
    schedule_time = Column(String(5), nullable=True, server_default=text("'08:00'"))
    last_checked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    keywords = relationship(
        'Keyword',
        back_populates='project_class',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

"""
Search Profile Model - a user's standing job search request

Each profile defines what to scrape (keywords, location, boards) and the
free-text context the AI triage step matches against (qualifications,
preferences).

Lifecycle:
    - Created/edited by the user through the web app
    - last_scraped_at is written only by the scrape stage
    - is_active toggles scheduling on/off
"""

from sqlalchemy import Column, String, Integer, Text, JSON, DateTime, Boolean
from sqlalchemy.sql import func
from rolecall.constants import DEFAULT_SCRAPE_INTERVAL_HOURS, DEFAULT_SEARCH_RADIUS_KM
from rolecall.database import Base
import uuid


class SearchProfile(Base):
    """
    Per-user search configuration.

    Attributes:
        keywords: Ordered list of search terms (order = priority)
        location/radius_km: Search area
        employment_types: Desired employment types (e.g. "Full-time")
        salary_min/max: Salary bounds
        boards: Job board identifiers to scrape
        qualifications/preferences: Free text consumed only by AI triage
        scrape_interval_hours: Desired check frequency
        last_scraped_at: Set when a scrape of this profile completes
    """

    __tablename__ = "search_profiles"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    keywords = Column(JSON, nullable=False, default=list)
    location = Column(String(200), nullable=False)
    radius_km = Column(Integer, nullable=False, default=DEFAULT_SEARCH_RADIUS_KM)
    employment_types = Column(JSON, nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    boards = Column(JSON, nullable=False, default=list)
    qualifications = Column(Text, nullable=True)
    preferences = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    scrape_interval_hours = Column(
        Integer, nullable=False, default=DEFAULT_SCRAPE_INTERVAL_HOURS
    )
    last_scraped_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<SearchProfile(id='{self.id}', name='{self.name}')>"

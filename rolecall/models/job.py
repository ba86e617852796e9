"""
Job Models - shared job listings and per-user pipeline entries

JobListing is the canonical record for one real-world posting, shared by
every user. It is unique by (source_board, external_id) and by source_url;
content_hash carries the cross-board fingerprint, which is checked
explicitly rather than constrained.

UserJob is one user's relationship with a listing: created once by AI
triage, then edited only by the user.

Status Flow:
    recommended/backlog → applied → interview → offer (or rejected/withdrawn)
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    DateTime,
    JSON,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from rolecall.constants import AI_RECOMMENDATIONS, JOB_STATUSES, STATUS_RECOMMENDED
from rolecall.database import Base
import uuid


class JobListing(Base):
    """
    Scraped job posting.

    Attributes:
        external_id: Identifier assigned by the source board
        source_board: Board identifier (e.g. "seek")
        source_url: Canonical posting URL (unique)
        salary_*: Parsed salary (see services.normalize.parse_salary)
        content_hash: SHA-256 fingerprint of title|company|description prefix
    """

    __tablename__ = "job_listings"
    __table_args__ = (
        UniqueConstraint("source_board", "external_id", name="job_listings_board_external_id"),
        UniqueConstraint("source_url", name="job_listings_source_url"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    external_id = Column(String(500), nullable=True)
    source_board = Column(String(50), nullable=False, index=True)
    source_url = Column(String(2000), nullable=False)
    date_scraped = Column(DateTime(timezone=True), server_default=func.now())
    date_posted = Column(DateTime(timezone=True), nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    title = Column(String(500), nullable=False)
    company = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    location_raw = Column(String(500), nullable=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    salary_display = Column(String(500), nullable=True)
    salary_type = Column(String(20), nullable=True)
    employment_type = Column(String(100), nullable=True)
    category = Column(String(200), nullable=True)
    content_hash = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<JobListing(id='{self.id}', board='{self.source_board}', title='{self.title}')>"


class UserJob(Base):
    """
    A user's pipeline entry for one listing, with AI triage data.

    Attributes:
        status: Pipeline stage (see rolecall.constants.JOB_STATUSES)
        ai_score: Triage score 0-100
        ai_recommendation: recommended / maybe / not_recommended
        ai_reasoning: Short explanation from the classifier
        sort_order: Manual kanban position
    """

    __tablename__ = "user_jobs"
    __table_args__ = (
        UniqueConstraint("user_id", "job_listing_id", name="user_jobs_user_listing"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    job_listing_id = Column(
        String, ForeignKey("job_listings.id", ondelete="CASCADE"), nullable=False
    )
    search_profile_id = Column(
        String, ForeignKey("search_profiles.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(String(20), nullable=False, default=STATUS_RECOMMENDED, index=True)
    status_changed_at = Column(DateTime(timezone=True), server_default=func.now())
    ai_score = Column(Integer, nullable=True)
    ai_recommendation = Column(String(20), nullable=True)
    ai_reasoning = Column(Text, nullable=True)
    ai_triaged_at = Column(DateTime(timezone=True), nullable=True)
    date_applied = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String(10), nullable=True, default="medium")
    interest_level = Column(Integer, nullable=True, default=0)
    tags = Column(JSON, nullable=False, default=list)
    next_action = Column(Text, nullable=True)
    next_action_date = Column(DateTime(timezone=True), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @validates("status")
    def validate_status(self, key, value):
        if value not in JOB_STATUSES:
            raise ValueError(f"Unknown job status: {value!r}")
        return value

    @validates("ai_recommendation")
    def validate_ai_recommendation(self, key, value):
        if value is not None and value not in AI_RECOMMENDATIONS:
            raise ValueError(f"Unknown AI recommendation: {value!r}")
        return value

    def __repr__(self) -> str:
        return f"<UserJob(id='{self.id}', user='{self.user_id}', status='{self.status}')>"

"""
Scrape Run Model - audit record for one (board, profile) scrape attempt

State machine:
    running → completed
    running → failed

A run is sealed exactly once. Runs left running by a crashed worker are
failed by the janitor sweep (queries.scrape_runs.reap_stale_scrape_runs).
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from rolecall.constants import RUN_RUNNING
from rolecall.database import Base
import uuid


class ScrapeRun(Base):
    __tablename__ = "scrape_runs"
    __table_args__ = (Index("scrape_runs_board_idx", "board", "started_at"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    board = Column(String(50), nullable=False)
    search_profile_id = Column(String, ForeignKey("search_profiles.id"), nullable=True)
    status = Column(String(20), nullable=False, default=RUN_RUNNING, index=True)
    jobs_found = Column(Integer, nullable=False, default=0)
    jobs_new = Column(Integer, nullable=False, default=0)
    jobs_updated = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_ms = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<ScrapeRun(id='{self.id}', board='{self.board}', status='{self.status}')>"

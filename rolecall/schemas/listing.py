from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional


class ScrapeParams(BaseModel):
    keywords: List[str] = Field(min_length=1)
    location: str
    radius_km: int = 20


class RawListing(BaseModel):
    """One listing as a scraper produced it, before deduplication."""

    external_id: str
    source_board: str
    source_url: str
    title: str
    company: str = ""
    description: str = ""
    location_raw: str = ""
    salary_display: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_type: Optional[Literal["annual", "hourly", "daily"]] = None
    employment_type: Optional[str] = None
    category: Optional[str] = None
    date_posted: Optional[datetime] = None
    expires_at: Optional[datetime] = None

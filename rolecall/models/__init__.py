from rolecall.models.profile import SearchProfile
from rolecall.models.job import JobListing, UserJob
from rolecall.models.scrape_run import ScrapeRun

__all__ = [
    "SearchProfile",
    "JobListing",
    "UserJob",
    "ScrapeRun",
]

from rolecall.services.scrapers.base import BaseScraper, HtmlBoardScraper
from rolecall.services.scrapers.registry import ScraperRegistry, get_scraper, scraper_registry

__all__ = [
    "BaseScraper",
    "HtmlBoardScraper",
    "ScraperRegistry",
    "get_scraper",
    "scraper_registry",
]

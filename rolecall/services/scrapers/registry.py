"""
Scraper Registry - board identifier → scraper instance

The registry is closed: every supported board is listed in
default_registry(). A scrape job for a board that is not registered is a
configuration error, not a transient failure.
"""

from typing import Dict, Iterable, List, Optional

from rolecall.services.scrapers.base import BaseScraper
from rolecall.services.scrapers.ethical_jobs import EthicalJobsScraper
from rolecall.services.scrapers.indeed import IndeedScraper
from rolecall.services.scrapers.jora import JoraScraper
from rolecall.services.scrapers.scc_careers import SccCareersScraper
from rolecall.services.scrapers.seek import SeekScraper
from rolecall.services.scrapers.smartjobs import SmartJobsScraper


class ScraperRegistry:
    def __init__(self, scrapers: Iterable[BaseScraper]):
        self._scrapers: Dict[str, BaseScraper] = {}
        for scraper in scrapers:
            if scraper.board in self._scrapers:
                raise ValueError(f"Duplicate scraper for board: {scraper.board}")
            self._scrapers[scraper.board] = scraper

    def get(self, board: str) -> Optional[BaseScraper]:
        return self._scrapers.get(board)

    def boards(self) -> List[str]:
        return sorted(self._scrapers)

    def __contains__(self, board: str) -> bool:
        return board in self._scrapers


def default_registry() -> ScraperRegistry:
    return ScraperRegistry(
        [
            SmartJobsScraper(),
            SccCareersScraper(),
            EthicalJobsScraper(),
            IndeedScraper(),
            JoraScraper(),
            SeekScraper(),
        ]
    )


# Scrapers are stateless between runs, so one set serves the whole process
scraper_registry = default_registry()


def get_scraper(board: str) -> Optional[BaseScraper]:
    return scraper_registry.get(board)

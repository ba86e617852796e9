import re
from typing import List, Optional

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_SCC_CAREERS, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper

_NUMERIC_ID_RE = re.compile(r"/jobs/(\d+)")
_LAST_SEGMENT_RE = re.compile(r"/([^/]+)/?$")


class SccCareersScraper(HtmlBoardScraper):
    """
    Sunshine Coast Council careers.

    The site has no keyword search, so every current vacancy is crawled and
    filtered here against the profile keywords (title or description).
    """

    board = BOARD_SCC_CAREERS
    name = JOB_BOARD_LABELS[BOARD_SCC_CAREERS]
    base_url = "https://careers.sunshinecoast.qld.gov.au"
    max_requests = 50
    delay_range = (0.5, 1.5)

    def build_search_url(self, params: ScrapeParams) -> str:
        return f"{self.base_url}/jobs"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for link in soup.select('a[href*="/jobs/"], .job-listing a, .vacancy a'):
            href = link.get("href")
            if href:
                urls.append(self.absolute_url(href, page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[rel="next"], .pagination a.next')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        match = _NUMERIC_ID_RE.search(url) or _LAST_SEGMENT_RE.search(url)
        return self.make_listing(
            url=url,
            external_id=match.group(1) if match else url,
            title=self.text_of(soup, "h1, .job-title"),
            company="Sunshine Coast Council",
            description=self.text_of(soup, ".job-description, .job-content, .job-detail__content"),
            location_raw=self.text_of(soup, '.job-location, [class*="location"]')
            or "Sunshine Coast, QLD",
            salary_raw=self.text_of(
                soup, '.job-salary, [class*="salary"], [class*="classification"]'
            ),
            employment_type=self.text_of(
                soup, '.job-type, [class*="employment"], [class*="work-type"]'
            ),
            category="Local Government",
        )

    def matches(self, listing: RawListing, params: ScrapeParams) -> bool:
        title = listing.title.lower()
        description = listing.description.lower()
        return any(
            keyword.lower() in title or keyword.lower() in description
            for keyword in params.keywords
        )

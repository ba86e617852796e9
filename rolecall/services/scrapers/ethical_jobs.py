import re
from typing import List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_ETHICAL_JOBS, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper

_JOB_ID_RE = re.compile(r"/jobs/(\d+)")


class EthicalJobsScraper(HtmlBoardScraper):
    """EthicalJobs (NFP/community sector). Simple HTML."""

    board = BOARD_ETHICAL_JOBS
    name = JOB_BOARD_LABELS[BOARD_ETHICAL_JOBS]
    base_url = "https://www.ethicaljobs.com.au"
    max_requests = 50
    delay_range = (0.5, 1.5)

    def build_search_url(self, params: ScrapeParams) -> str:
        query = urlencode({"keywords": " ".join(params.keywords), "location": params.location})
        return f"{self.base_url}/jobs?{query}"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for link in soup.select('a[href*="/jobs/"], .job-listing a, .search-result a'):
            href = link.get("href", "")
            if _JOB_ID_RE.search(href):
                urls.append(self.absolute_url(href, page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[rel="next"], .pagination a.next')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        match = _JOB_ID_RE.search(url)
        return self.make_listing(
            url=url,
            external_id=match.group(1) if match else url,
            title=self.text_of(soup, "h1"),
            company=self.text_of(soup, ".organisation-name, .employer-name")
            or "Unknown Organisation",
            description=self.text_of(
                soup, '.job-description, .job-content, [class*="description"]'
            ),
            location_raw=self.text_of(soup, '.job-location, [class*="location"]'),
            salary_raw=self.text_of(soup, '.job-salary, [class*="salary"]'),
            employment_type=self.text_of(soup, '.job-type, [class*="work-type"]'),
            category="Not-for-profit",
        )

import re
from typing import List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_SMARTJOBS, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper

_JOB_REF_RE = re.compile(r"QLD-(\d+)")


class SmartJobsScraper(HtmlBoardScraper):
    """SmartJobs QLD (smartjobs.qld.gov.au). Government site, plain HTML, no anti-bot."""

    board = BOARD_SMARTJOBS
    name = JOB_BOARD_LABELS[BOARD_SMARTJOBS]
    base_url = "https://smartjobs.qld.gov.au"
    max_requests = 50
    delay_range = (0.5, 1.5)

    def build_search_url(self, params: ScrapeParams) -> str:
        query = urlencode({"query": " ".join(params.keywords), "location": params.location})
        return f"{self.base_url}/jobs/search?{query}"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for link in soup.select('a[href*="/jobs/QLD-"], .search-result__item a'):
            href = link.get("href", "")
            if "/jobs/" in href:
                urls.append(self.absolute_url(href, page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[rel="next"], .pagination__next a')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        details = soup.select_one(".job-detail__info, .job-details") or soup

        location = self.text_of(details, '[data-field="location"]')
        if not location:
            meta = soup.select_one('meta[name="location"]')
            location = meta.get("content", "") if meta else ""

        ref = _JOB_REF_RE.search(url)
        return self.make_listing(
            url=url,
            external_id=ref.group(1) if ref else url,
            title=self.text_of(soup, "h1"),
            company=self.text_of(details, '[data-field="department"]') or "Queensland Government",
            description=self.text_of(soup, ".job-detail__content, .job-description"),
            location_raw=location,
            salary_raw=self.text_of(details, '[data-field="salary"]'),
            employment_type=self.text_of(details, '[data-field="position-type"]'),
            category="Government",
        )

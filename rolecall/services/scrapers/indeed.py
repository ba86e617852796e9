from typing import List, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_INDEED, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper


class IndeedScraper(HtmlBoardScraper):
    """
    Indeed AU.

    Aggressive anti-bot: crawls through the residential proxy when one is
    configured and waits 2-5 seconds between requests.
    """

    board = BOARD_INDEED
    name = JOB_BOARD_LABELS[BOARD_INDEED]
    base_url = "https://au.indeed.com"
    max_requests = 30
    request_timeout = 60.0
    delay_range = (2.0, 5.0)
    requires_proxy = True

    def build_search_url(self, params: ScrapeParams) -> str:
        query = urlencode(
            {"q": " ".join(params.keywords), "l": params.location, "radius": params.radius_km}
        )
        return f"{self.base_url}/jobs?{query}"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for card in soup.select(".job_seen_beacon, [data-jk]"):
            link = card.select_one("a[data-jk], h2 a")
            if link and link.get("href"):
                urls.append(self.absolute_url(link["href"], page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[data-testid="pagination-page-next"]')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        job_key = parse_qs(urlparse(url).query).get("jk", [""])[0]
        return self.make_listing(
            url=url,
            external_id=job_key or url.rstrip("/").split("/")[-1],
            title=self.text_of(soup, "h1"),
            company=self.text_of(soup, '[data-testid="inlineHeader-companyName"], .css-1saizt3'),
            description=self.text_of(soup, "#jobDescriptionText, .jobsearch-jobDescriptionText"),
            location_raw=self.text_of(
                soup,
                '[data-testid="inlineHeader-companyLocation"], [data-testid="job-location"]',
            ),
            salary_raw=self.text_of(
                soup, '#salaryInfoAndJobType, [data-testid="attribute_snippet_testid"]'
            ),
        )

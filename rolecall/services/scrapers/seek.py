import re
from typing import List, Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_SEEK, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper

_JOB_ID_RE = re.compile(r"/job/(\d+)")


class SeekScraper(HtmlBoardScraper):
    """
    SEEK AU.

    Hardest target: aggressive anti-bot, needs an AU residential proxy and
    long randomized delays (3-8 seconds). Selectors are best-effort and
    follow SEEK's data-automation attributes.
    """

    board = BOARD_SEEK
    name = JOB_BOARD_LABELS[BOARD_SEEK]
    base_url = "https://www.seek.com.au"
    max_requests = 25
    request_timeout = 60.0
    delay_range = (3.0, 8.0)
    requires_proxy = True

    def build_search_url(self, params: ScrapeParams) -> str:
        keywords = quote(" ".join(params.keywords), safe="")
        location = quote(params.location, safe="")
        return f"{self.base_url}/{keywords}-jobs/in-{location}?sortmode=ListedDate"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for card in soup.select('article[data-card-type="JobCard"]'):
            link = card.select_one('a[data-automation="jobTitle"]')
            if link and link.get("href"):
                urls.append(self.absolute_url(link["href"], page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[data-automation="page-next"]')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        match = _JOB_ID_RE.search(url)
        return self.make_listing(
            url=url,
            external_id=match.group(1) if match else url,
            title=self.text_of(soup, 'h1[data-automation="job-detail-title"]'),
            company=self.text_of(soup, '[data-automation="advertiser-name"]'),
            description=self.text_of(soup, '[data-automation="jobAdDetails"]'),
            location_raw=self.text_of(soup, '[data-automation="job-detail-location"]'),
            salary_raw=self.text_of(soup, '[data-automation="job-detail-salary"]'),
            employment_type=self.text_of(soup, '[data-automation="job-detail-work-type"]'),
        )

import re
from typing import List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup

from rolecall.constants import BOARD_JORA, JOB_BOARD_LABELS
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.scrapers.base import HtmlBoardScraper

_ID_PARAM_RE = re.compile(r"[?&]id=([^&]+)")


class JoraScraper(HtmlBoardScraper):
    """Jora AU (Indeed-owned aggregator). Moderate anti-bot, proxied when available."""

    board = BOARD_JORA
    name = JOB_BOARD_LABELS[BOARD_JORA]
    base_url = "https://au.jora.com"
    max_requests = 30
    request_timeout = 60.0
    delay_range = (2.0, 5.0)
    requires_proxy = True

    def build_search_url(self, params: ScrapeParams) -> str:
        query = urlencode(
            {"q": " ".join(params.keywords), "l": params.location, "r": params.radius_km}
        )
        return f"{self.base_url}/j?{query}"

    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        urls = []
        for card in soup.select(".result, .job-card"):
            link = card.select_one('a[href*="/j?"]')
            if link and link.get("href"):
                urls.append(self.absolute_url(link["href"], page_url))
        return urls

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a.next, a[rel="next"]')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        match = _ID_PARAM_RE.search(url)
        return self.make_listing(
            url=url,
            external_id=match.group(1) if match else url.rstrip("/").split("/")[-1],
            title=self.text_of(soup, "h1"),
            company=self.text_of(soup, '.company, [data-testid="company-name"]'),
            description=self.text_of(soup, ".job-description, .desc"),
            location_raw=self.text_of(soup, '.location, [data-testid="job-location"]'),
            salary_raw=self.text_of(soup, '.salary, [data-testid="job-salary"]'),
        )

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional, Tuple
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from rolecall.config import get_settings
from rolecall.errors import ScrapeError
from rolecall.schemas import RawListing, ScrapeParams
from rolecall.services.normalize import parse_salary

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-AU,en;q=0.9",
}


class BaseScraper(ABC):
    """Base class for job board scrapers"""

    board: str = "unknown"
    name: str = "Unknown"

    @abstractmethod
    def build_search_url(self, params: ScrapeParams) -> str:
        """Build the board's search URL for the given parameters"""
        pass

    @abstractmethod
    def scrape(
        self, params: ScrapeParams, client: Optional[httpx.AsyncClient] = None
    ) -> AsyncIterator[RawListing]:
        """Yield listings from the board. Must not touch the database."""
        pass


class HtmlBoardScraper(BaseScraper):
    """
    Shared crawl loop for boards that serve plain HTML.

    Crawl shape (sequential, one request at a time):
        search page → each detail page → next search page → ...

    Subclasses supply the selectors: parse_search_page(), parse_detail()
    and next_page_url(). Limits:
        - max_pages search pages and max_requests total requests per run
        - a random delay in delay_range seconds before every request
        - max_fetch_attempts per URL with exponential backoff

    A search page that cannot be fetched aborts the run (ScrapeError).
    A detail page that cannot be fetched or parsed is logged and skipped.
    """

    base_url: str = ""
    max_pages: int = 5
    max_requests: int = 50
    request_timeout: float = 30.0
    delay_range: Tuple[float, float] = (1.0, 2.0)
    max_fetch_attempts: int = 3
    backoff_seconds: float = 2.0
    requires_proxy: bool = False

    # ==================== Board hooks ====================

    @abstractmethod
    def parse_search_page(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        """Return absolute detail-page URLs found on a search results page"""
        pass

    @abstractmethod
    def parse_detail(self, soup: BeautifulSoup, url: str) -> Optional[RawListing]:
        """Extract a listing from a detail page (None to drop it)"""
        pass

    def next_page_url(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        link = soup.select_one('a[rel="next"]')
        if link and link.get("href"):
            return self.absolute_url(link["href"], page_url)
        return None

    def matches(self, listing: RawListing, params: ScrapeParams) -> bool:
        """Post-filter for boards whose search cannot filter server-side"""
        return True

    # ==================== Helpers ====================

    def absolute_url(self, href: str, page_url: Optional[str] = None) -> str:
        return urljoin(page_url or self.base_url, href)

    @staticmethod
    def text_of(soup: BeautifulSoup, selector: str) -> str:
        element = soup.select_one(selector)
        if element is None:
            return ""
        return " ".join(element.get_text(" ", strip=True).split())

    def make_listing(
        self,
        url: str,
        external_id: str,
        title: str,
        company: str,
        description: str,
        location_raw: str,
        salary_raw: str = "",
        employment_type: str = "",
        category: Optional[str] = None,
    ) -> Optional[RawListing]:
        """Build a RawListing, running the salary text through parse_salary()."""
        title = title.strip()
        if not title:
            return None

        salary = parse_salary(salary_raw)
        return RawListing(
            external_id=external_id or url,
            source_board=self.board,
            source_url=url,
            title=title,
            company=company.strip(),
            description=description.strip(),
            location_raw=location_raw.strip(),
            salary_display=salary.display or None,
            salary_min=salary.min,
            salary_max=salary.max,
            salary_type=salary.listing_type,
            employment_type=employment_type.strip() or None,
            category=category,
        )

    def proxy_url(self) -> Optional[str]:
        if not self.requires_proxy:
            return None
        proxy = get_settings().proxy_url
        if not proxy:
            logger.warning(
                f"[{self.board}] No proxy configured, running without proxy "
                "(requests are likely to be blocked)"
            )
            return None
        return proxy

    def create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            timeout=self.request_timeout,
            follow_redirects=True,
            proxy=self.proxy_url(),
        )

    async def _pause(self) -> None:
        low, high = self.delay_range
        if high > 0:
            await asyncio.sleep(random.uniform(low, high))

    async def fetch(self, client: httpx.AsyncClient, url: str) -> str:
        """GET a page, retrying transient failures with exponential backoff."""
        attempt = 1
        while True:
            await self._pause()
            try:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
            except httpx.HTTPError as e:
                if attempt >= self.max_fetch_attempts:
                    raise
                delay = self.backoff_seconds * (2 ** (attempt - 1))
                logger.warning(
                    f"[{self.board}] Fetch {url} failed ({e}), "
                    f"attempt {attempt}/{self.max_fetch_attempts}, retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    # ==================== Crawl ====================

    async def scrape(
        self, params: ScrapeParams, client: Optional[httpx.AsyncClient] = None
    ) -> AsyncIterator[RawListing]:
        if client is None:
            async with self.create_client() as owned_client:
                async for listing in self._crawl(owned_client, params):
                    yield listing
        else:
            async for listing in self._crawl(client, params):
                yield listing

    async def _crawl(
        self, client: httpx.AsyncClient, params: ScrapeParams
    ) -> AsyncIterator[RawListing]:
        page_url: Optional[str] = self.build_search_url(params)
        visited_pages = set()
        seen_details = set()
        pages = 0
        requests = 0

        while page_url and pages < self.max_pages and requests < self.max_requests:
            if page_url in visited_pages:
                break
            visited_pages.add(page_url)

            try:
                html = await self.fetch(client, page_url)
            except httpx.HTTPError as e:
                raise ScrapeError(self.board, f"Search page {page_url} failed: {e}") from e
            pages += 1
            requests += 1

            soup = BeautifulSoup(html, "html.parser")
            detail_urls = self.parse_search_page(soup, page_url)
            logger.info(f"[{self.board}] Page {pages}: {len(detail_urls)} result(s)")

            for detail_url in detail_urls:
                if detail_url in seen_details:
                    continue
                if requests >= self.max_requests:
                    logger.info(f"[{self.board}] Request cap ({self.max_requests}) reached")
                    break
                seen_details.add(detail_url)
                requests += 1

                listing = await self._scrape_detail(client, detail_url)
                if listing is None:
                    continue
                if not self.matches(listing, params):
                    continue
                yield listing

            page_url = self.next_page_url(soup, page_url)

    async def _scrape_detail(
        self, client: httpx.AsyncClient, url: str
    ) -> Optional[RawListing]:
        try:
            html = await self.fetch(client, url)
        except httpx.HTTPError as e:
            logger.warning(f"[{self.board}] Skipping {url}: {e}")
            return None

        try:
            return self.parse_detail(BeautifulSoup(html, "html.parser"), url)
        except Exception as e:
            logger.warning(f"[{self.board}] Could not parse {url}: {e}")
            return None

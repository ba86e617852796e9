"""
Error taxonomy for the scrape/triage pipeline.

Configuration errors are fatal to the job that hits them and are never
retried. ScrapeError marks a crawl that aborted as a whole and goes back
to the queue for retry.
"""


class RoleCallError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(RoleCallError):
    """A required setting or registration is missing."""


class ScrapeConfigurationError(ConfigurationError):
    """The scrape job cannot run: unknown profile or no scraper for the board."""


class PayloadError(ConfigurationError):
    """A queue payload failed validation."""


class ScrapeError(RoleCallError):
    """The crawl itself aborted (e.g. a search page could not be fetched)."""

    def __init__(self, board: str, message: str):
        super().__init__(f"[{board}] {message}")
        self.board = board

"""
Text and Salary Normalization - pure helpers shared by every scraper

Key Functions:
    - normalize_text(): lowercase + collapse whitespace for comparisons
    - generate_content_hash(): cross-board fingerprint of a listing
    - parse_salary(): free-text salary → (min, max, type, display)

Salary Formats Handled:
    - "$55,000 - $65,000"
    - "$55,000 - $65,000 + super"
    - "$30 - $35 per hour"
    - "$55,000 p.a."
    - "Competitive salary"
"""

import hashlib
import re
from dataclasses import dataclass
from typing import Optional, Union

# Characters of description that participate in the fingerprint
FINGERPRINT_DESCRIPTION_CHARS = 200

HOURLY_MARKERS = ("per hour", "p/h", "/hr")
DAILY_MARKERS = ("per day", "p/d", "/day")
ANNUAL_MARKERS = ("per annum", "p.a.", "pa ")

# Without an explicit unit, small numbers are hourly rates and large ones annual
HOURLY_CEILING = 200
ANNUAL_FLOOR = 20000

_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"\d+\.?\d*")

Number = Union[int, float]


@dataclass(frozen=True)
class ParsedSalary:
    min: Optional[Number]
    max: Optional[Number]
    type: str  # annual | hourly | daily | unknown
    display: str

    @property
    def listing_type(self) -> Optional[str]:
        """Salary type as stored on a listing (unknown → None)."""
        return None if self.type == "unknown" else self.type


def normalize_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def generate_content_hash(title: str, company: str, description: str) -> str:
    """
    Fingerprint a listing for cross-board deduplication.

    Two boards carrying the same real posting have different URLs and
    external ids, so this hash of title, company and the start of the
    description is the only key that links them.

    Returns:
        64-character SHA-256 hex digest
    """
    prefix = (description or "")[:FINGERPRINT_DESCRIPTION_CHARS]
    normalized = normalize_text(f"{title}|{company}|{prefix}")
    return hashlib.sha256(normalized.encode()).hexdigest()


def _to_number(token: str) -> Number:
    value = float(token)
    return int(value) if value.is_integer() else value


def _detect_type(cleaned: str) -> str:
    if any(marker in cleaned for marker in HOURLY_MARKERS):
        return "hourly"
    if any(marker in cleaned for marker in DAILY_MARKERS):
        return "daily"
    if any(marker in cleaned for marker in ANNUAL_MARKERS):
        return "annual"
    return "unknown"


def parse_salary(raw: Optional[str]) -> ParsedSalary:
    """
    Parse an Australian-style salary string.

    Args:
        raw: Salary text as scraped (may be empty or None)

    Returns:
        ParsedSalary; min/max are None when no number is present
    """
    display = (raw or "").strip()
    cleaned = display.replace(",", "").replace("$", "").lower()

    salary_type = _detect_type(cleaned)
    numbers = [_to_number(n) for n in _NUMBER_RE.findall(cleaned)]

    if not numbers:
        return ParsedSalary(min=None, max=None, type=salary_type, display=display)

    if salary_type == "unknown":
        if numbers[0] < HOURLY_CEILING:
            salary_type = "hourly"
        elif numbers[0] >= ANNUAL_FLOOR:
            salary_type = "annual"

    return ParsedSalary(
        min=numbers[0],
        max=numbers[1] if len(numbers) > 1 else None,
        type=salary_type,
        display=display,
    )

from rolecall.schemas.listing import ScrapeParams, RawListing
from rolecall.schemas.triage import TriageInput, TriageResult
from rolecall.schemas.payloads import ScrapeJobPayload, TriageJobPayload

__all__ = [
    "ScrapeParams",
    "RawListing",
    "TriageInput",
    "TriageResult",
    "ScrapeJobPayload",
    "TriageJobPayload",
]

"""
Queue payloads.

Both payloads travel as camelCase JSON objects:

    scrape: {"profileId": "...", "board": "seek"}
    triage: {"jobListingId": "...", "profileId": "...", "userId": "..."}
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_message(self) -> dict:
        return self.model_dump(by_alias=True)


class ScrapeJobPayload(_Payload):
    profile_id: str = Field(min_length=1)
    board: str = Field(min_length=1)


class TriageJobPayload(_Payload):
    job_listing_id: str = Field(min_length=1)
    profile_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)

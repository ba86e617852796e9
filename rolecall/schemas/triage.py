from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional

from rolecall.constants import (
    MAYBE,
    MAYBE_MIN_SCORE,
    NOT_RECOMMENDED,
    RECOMMENDED,
    RECOMMENDED_MIN_SCORE,
)


def recommendation_for_score(score: int) -> str:
    if score >= RECOMMENDED_MIN_SCORE:
        return RECOMMENDED
    if score >= MAYBE_MIN_SCORE:
        return MAYBE
    return NOT_RECOMMENDED


class TriageInput(BaseModel):
    job_title: str
    company: str
    description: str = ""
    location: Optional[str] = None
    salary_display: Optional[str] = None
    employment_type: Optional[str] = None
    user_keywords: List[str] = []
    user_location: str = ""
    user_salary_min: Optional[int] = None
    user_qualifications: Optional[str] = None
    user_preferences: Optional[str] = None


class TriageResult(BaseModel):
    score: int = Field(ge=0, le=100)
    recommendation: Literal["recommended", "maybe", "not_recommended"]
    reasoning: str

    @model_validator(mode="after")
    def align_recommendation_with_score(self) -> "TriageResult":
        # The score bands are authoritative when the model disagrees with itself
        self.recommendation = recommendation_for_score(self.score)
        return self

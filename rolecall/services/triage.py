"""
AI Triage Service - scores a job listing against a user's search profile

The classifier is a single OpenAI chat completion in JSON mode that
returns {score, recommendation, reasoning}.

Score Bands:
    - 70-100: recommended (good fit, worth applying)
    - 40-69: maybe (possible fit with gaps)
    - 0-39: not_recommended (significant mismatch)

Failure Handling:
    - Output that is not JSON, or JSON of the wrong shape, yields the
      neutral fallback (score 50, maybe) so every listing still reaches
      the user's pipeline
    - Transport errors and timeouts propagate so the queue can retry
"""

import json
import logging
from typing import Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from rolecall.config import get_settings
from rolecall.constants import MAYBE, RECOMMENDED, STATUS_BACKLOG, STATUS_RECOMMENDED
from rolecall.metrics import record_triage_fallback
from rolecall.models import JobListing, SearchProfile
from rolecall.schemas import TriageInput, TriageResult

logger = logging.getLogger(__name__)

FALLBACK_SCORE = 50
FALLBACK_REASONING = (
    "Could not automatically evaluate this job. Please review it manually."
)

SYSTEM_PROMPT = """You are a kind, supportive job matching assistant helping someone find the right role.
Evaluate the job listing against the user's profile honestly but encouragingly.
- Score 70+ = recommended (good fit, worth applying)
- Score 40-69 = maybe (possible fit with some gaps)
- Score below 40 = not_recommended (significant mismatch)
Consider: role match, location, salary, qualifications, and user preferences.
If the job is clearly outside their field or too senior, be honest but gentle.
Respond with a JSON object with exactly these keys:
"score" (integer 0-100), "recommendation" ("recommended", "maybe" or "not_recommended"),
"reasoning" (two to three sentences explaining the fit)."""


def get_openai_client() -> AsyncOpenAI:
    settings = get_settings()
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.triage_timeout_seconds,
        max_retries=0,
    )


def fallback_result() -> TriageResult:
    return TriageResult(score=FALLBACK_SCORE, recommendation=MAYBE, reasoning=FALLBACK_REASONING)


def status_for_recommendation(recommendation: str) -> str:
    """Map an AI recommendation onto the pipeline status a new user job starts in."""
    return STATUS_RECOMMENDED if recommendation == RECOMMENDED else STATUS_BACKLOG


def build_triage_input(listing: JobListing, profile: SearchProfile) -> TriageInput:
    return TriageInput(
        job_title=listing.title,
        company=listing.company,
        description=listing.description or "",
        location=listing.location_raw,
        salary_display=listing.salary_display,
        employment_type=listing.employment_type,
        user_keywords=list(profile.keywords or []),
        user_location=profile.location,
        user_salary_min=profile.salary_min,
        user_qualifications=profile.qualifications,
        user_preferences=profile.preferences,
    )


def build_prompt(triage_input: TriageInput, description_chars: int) -> str:
    def or_default(value: Optional[str]) -> str:
        return value or "Not specified"

    min_salary = (
        f"${triage_input.user_salary_min:,}" if triage_input.user_salary_min else "Flexible"
    )
    return "\n".join(
        [
            "**Job Listing:**",
            f"- Title: {triage_input.job_title}",
            f"- Company: {triage_input.company}",
            f"- Location: {or_default(triage_input.location)}",
            f"- Salary: {or_default(triage_input.salary_display)}",
            f"- Type: {or_default(triage_input.employment_type)}",
            f"- Description: {triage_input.description[:description_chars]}",
            "",
            "**User Profile:**",
            f"- Looking for: {', '.join(triage_input.user_keywords)}",
            f"- Location: {triage_input.user_location}",
            f"- Min salary: {min_salary}",
            f"- Qualifications: {or_default(triage_input.user_qualifications)}",
            f"- Preferences: {or_default(triage_input.user_preferences)}",
            "",
            "Evaluate this job for the user.",
        ]
    )


def parse_triage_output(content: Optional[str]) -> Optional[TriageResult]:
    """Parse model output; None when it is not a valid triage object."""
    if not content:
        return None
    try:
        return TriageResult.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        logger.error(f"AI triage returned malformed output: {e}")
        return None


async def classify_listing(
    triage_input: TriageInput, client: Optional[AsyncOpenAI] = None
) -> TriageResult:
    """
    Score one listing for one user.

    Args:
        triage_input: Listing and profile fields
        client: OpenAI client (created from settings when omitted)

    Returns:
        TriageResult; the neutral fallback when the model output is unusable

    Raises:
        openai.APIError subclasses on transport failure or timeout
    """
    settings = get_settings()
    client = client or get_openai_client()

    response = await client.chat.completions.create(
        model=settings.triage_model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": build_prompt(triage_input, settings.triage_description_chars),
            },
        ],
        response_format={"type": "json_object"},
        temperature=0.3,
        max_tokens=500,
    )

    content = response.choices[0].message.content if response.choices else None
    result = parse_triage_output(content)
    if result is None:
        record_triage_fallback()
        return fallback_result()
    return result

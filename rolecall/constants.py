"""
Shared constants for the pipeline.

Status Flow:
    scrape → AI triage → recommended/backlog → applied → interview → offer
    (rejected / withdrawn may follow any user-driven stage)
"""

# User job pipeline stages
STATUS_RECOMMENDED = "recommended"
STATUS_BACKLOG = "backlog"
STATUS_APPLIED = "applied"
STATUS_INTERVIEW = "interview"
STATUS_OFFER = "offer"
STATUS_REJECTED = "rejected"
STATUS_WITHDRAWN = "withdrawn"

JOB_STATUSES = [
    STATUS_RECOMMENDED,
    STATUS_BACKLOG,
    STATUS_APPLIED,
    STATUS_INTERVIEW,
    STATUS_OFFER,
    STATUS_REJECTED,
    STATUS_WITHDRAWN,
]

# AI recommendation levels
RECOMMENDED = "recommended"
MAYBE = "maybe"
NOT_RECOMMENDED = "not_recommended"

AI_RECOMMENDATIONS = [RECOMMENDED, MAYBE, NOT_RECOMMENDED]

# Score bands used by the classifier
RECOMMENDED_MIN_SCORE = 70
MAYBE_MIN_SCORE = 40

# Supported job boards
BOARD_SMARTJOBS = "smartjobs"
BOARD_SCC_CAREERS = "scc-careers"
BOARD_ETHICAL_JOBS = "ethical-jobs"
BOARD_INDEED = "indeed"
BOARD_JORA = "jora"
BOARD_SEEK = "seek"

JOB_BOARD_LABELS = {
    BOARD_SMARTJOBS: "SmartJobs QLD",
    BOARD_SCC_CAREERS: "SCC Careers",
    BOARD_ETHICAL_JOBS: "EthicalJobs",
    BOARD_INDEED: "Indeed AU",
    BOARD_JORA: "Jora",
    BOARD_SEEK: "SEEK",
}

# Scrape run lifecycle
RUN_RUNNING = "running"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"

# Queue names
SCRAPE_QUEUE = "scrape"
TRIAGE_QUEUE = "triage"

DEFAULT_SCRAPE_INTERVAL_HOURS = 48
DEFAULT_SEARCH_RADIUS_KM = 20

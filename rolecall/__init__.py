"""RoleCall worker: scheduled job-board scraping and AI triage."""

__version__ = "0.1.0"

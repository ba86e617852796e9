from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from rolecall.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./rolecall.db"

    # Queue backend (Celery broker + result backend). Required.
    redis_url: str = ""

    # AI triage
    openai_api_key: str = ""
    triage_model: str = "gpt-4o-mini"
    triage_timeout_seconds: float = 60.0
    triage_description_chars: int = 1500

    # Outbound proxy for anti-bot boards (optional)
    webshare_proxy_host: str = ""
    webshare_proxy_port: str = ""
    webshare_proxy_user: str = ""
    webshare_proxy_pass: str = ""

    # Scheduler
    scheduler_timezone: str = "UTC"
    schedule_sync_minutes: int = 10

    # Scrape run janitor
    scrape_run_timeout_minutes: int = 60
    scrape_run_sweep_minutes: int = 15

    # Observability
    # Metrics ports (0 disables). The scheduler binds exactly its port; each
    # worker binds the first free port in
    # [worker_metrics_port, worker_metrics_port + worker_metrics_port_span)
    scheduler_metrics_port: int = 0
    worker_metrics_port: int = 0
    worker_metrics_port_span: int = 8
    log_level: str = "INFO"

    @property
    def proxy_url(self) -> str:
        """Proxy URL built from the webshare credentials, or "" if incomplete."""
        parts = (
            self.webshare_proxy_host,
            self.webshare_proxy_port,
            self.webshare_proxy_user,
            self.webshare_proxy_pass,
        )
        if not all(parts):
            return ""
        host, port, user, password = parts
        return f"http://{user}:{password}@{host}:{port}"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def require_redis_url(settings: Settings) -> str:
    """Return the queue backend URL or fail with a remediation hint."""
    if not settings.redis_url:
        raise ConfigurationError(
            "REDIS_URL is not set. The worker requires Redis to function. "
            "Set REDIS_URL in your .env file (e.g. redis://localhost:6379/0)."
        )
    return settings.redis_url

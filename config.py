"""
Configuration for the SEO Dashboard backend
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from exceptions import ConfigError

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class DashboardConfig:
    """Configuration settings for the SEO dashboard"""

    # Required at startup
    database_url: str = ""
    openai_api_key: str = ""

    # Language model
    openai_model: str = "gpt-4o"
    openai_timeout: float = 60.0

    # Browser settings
    headless: bool = True
    navigation_timeout: int = 30

    # Optional link-liveness checking during audits
    check_links: bool = False
    max_link_checks: int = 50
    link_check_timeout: int = 10
    link_check_concurrency: int = 5

    # Rank tracking
    serp_results: int = 100

    # Identity used until real authentication exists
    default_user_id: int = 1

    # User agents for rotation
    user_agents: List[str] = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    def __post_init__(self):
        if self.user_agents is None:
            self.user_agents = [
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
                "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
            ]

    def validate(self):
        """Raise ConfigError when a required setting is missing"""
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
        return self


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def parse_origins(value: str) -> List[str]:
    """Comma-separated CORS origins"""
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def load_config(env_file: Optional[str] = None) -> DashboardConfig:
    """Build a validated configuration from the environment (and .env if present)"""
    load_dotenv(env_file)

    try:
        config = DashboardConfig(
            database_url=os.getenv("DATABASE_URL", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            openai_timeout=float(os.getenv("OPENAI_TIMEOUT", "60")),
            headless=_env_bool("BROWSER_HEADLESS", True),
            navigation_timeout=int(os.getenv("NAVIGATION_TIMEOUT", "30")),
            check_links=_env_bool("CHECK_LINKS", False),
            max_link_checks=int(os.getenv("MAX_LINK_CHECKS", "50")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            cors_origins=parse_origins(os.getenv("CORS_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "logs"),
        )
    except ValueError as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e

    return config.validate()

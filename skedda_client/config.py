from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CREDENTIALS_FILENAME = "credentials.env"
CACHE_DIRNAME = "cache"


class AppSettings(BaseSettings):
    """Where the CLI keeps its credentials and cache."""

    config_dir: Path = Field(
        default=Path.home() / ".skedda", alias="SKEDDA_CONFIG_DIR"
    )

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / CREDENTIALS_FILENAME

    @property
    def cache_path(self) -> Path:
        return self.config_dir / CACHE_DIRNAME


class LoginDetails(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    skedda_username: str = Field(default="", alias="SKEDDA_USERNAME")
    skedda_password: str = Field(default="", alias="SKEDDA_PASSWORD")


def load_login_details(settings: AppSettings | None = None) -> LoginDetails:
    """Read credentials from the environment, falling back to the stored file."""
    settings = settings or AppSettings()
    return LoginDetails(_env_file=settings.credentials_path)


class SkeddaConstants:
    """Centralized constants for talking to Skedda."""

    DEFAULT_TIMEOUT = 15
    MAX_CONCURRENT_FETCHES = 16
    MAX_REDIRECTS = 10

    APEX = "skedda.com"
    LOGIN_URL = "https://www.skedda.com/logins"
    ACCOUNT_LOGIN_URL = "https://www.skedda.com/account/login"
    TENANT_URL = "https://{tenant}.skedda.com"

    TOKEN_HEADER = "X-Skedda-RequestVerificationToken"
    TOKEN_FIELD = "__RequestVerificationToken"

    # Naive local timestamps, both on the wire and in query strings
    DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

    # Booking payload
    BOOKING_TYPE = 1
    BOOKING_PRICE = 0
    BOOKING_GRANULARITY_MINUTES = 15
    DEFAULT_SLOT_MINUTES = 30

    # HTTP Headers
    USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.3.1 Safari/605.1.15"
    ACCEPT_LANGUAGE = "en-US,en;q=0.9"
    ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

    @classmethod
    def tenant_url(cls, tenant: str, path: str = "") -> str:
        return cls.TENANT_URL.format(tenant=tenant) + path

"""
Environment-driven settings for the QuickStats download
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://quickstats.nass.usda.gov"
DEFAULT_COMMODITY = "AG LAND"
DEFAULT_MIN_YEAR = 1997
DEFAULT_DOMAIN_CATEGORY = "2,000 OR MORE ACRES"
DEFAULT_TIMEOUT = 60
DEFAULT_OUTPUT_FILE = "irrigation_by_county.csv"


@dataclass(frozen=True)
class QueryParameters:
    """Everything one QuickStats request needs; the key never shows up in repr"""

    api_key: str = field(repr=False)
    base_url: str
    commodity: str
    min_year: int
    region_filter: Optional[str] = None

    def __post_init__(self):
        if not self.api_key or not self.api_key.strip():
            raise ValueError("api_key must be a non-empty string")
        if isinstance(self.min_year, bool) or not isinstance(self.min_year, int):
            raise ValueError(f"min_year must be an integer year, got {self.min_year!r}")
        if not 1000 <= self.min_year <= 9999:
            raise ValueError(f"min_year must be a 4-digit year, got {self.min_year}")

    def url(self, endpoint: str) -> str:
        return self.base_url.rstrip("/") + endpoint


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _optional_env(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    commodity: str = DEFAULT_COMMODITY
    min_year: int = DEFAULT_MIN_YEAR
    state_alpha: Optional[str] = None
    domain_category: Optional[str] = DEFAULT_DOMAIN_CATEGORY
    timeout: int = DEFAULT_TIMEOUT
    output_file: str = DEFAULT_OUTPUT_FILE

    def query(self) -> QueryParameters:
        """Build the QueryParameters for this configuration"""
        return QueryParameters(
            api_key=self.api_key or "",
            base_url=self.base_url,
            commodity=self.commodity,
            min_year=self.min_year,
            region_filter=self.state_alpha,
        )


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Read settings from the environment, after loading a .env file if present"""
    load_dotenv(dotenv_path)

    return Settings(
        api_key=_optional_env("API_KEY"),
        base_url=_optional_env("BASEURL") or DEFAULT_BASE_URL,
        commodity=_optional_env("COMMODITY") or DEFAULT_COMMODITY,
        min_year=_int_env("MIN_YEAR", DEFAULT_MIN_YEAR),
        state_alpha=_optional_env("STATE_ALPHA"),
        domain_category=_optional_env("DOMAIN_CATEGORY") or DEFAULT_DOMAIN_CATEGORY,
        timeout=_int_env("REQUEST_TIMEOUT", DEFAULT_TIMEOUT),
        output_file=_optional_env("OUTPUT_FILE") or DEFAULT_OUTPUT_FILE,
    )

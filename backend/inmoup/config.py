import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from backend.inmoup.parsing import SELECTORS

DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "data" / "property_database.sqlite"

FETCH_MODES = {"browser", "http"}


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass
class ScrapeConfig:
    """Runtime knobs for one scrape run. Only the entry point reads the environment."""
    db_path: str = str(DEFAULT_DB_PATH)
    # slow server responses on large result pages
    navigation_timeout_ms: int = 60000
    headless: bool = True
    fetch_mode: str = "browser"
    country: str = "Argentina"
    # unknown property type → APARTMENT unless strict
    strict_property_type: bool = False
    base_url: str = "https://inmoup.com.ar/"
    selectors: Dict[str, str] = field(default_factory=lambda: dict(SELECTORS))

    def __post_init__(self):
        if self.fetch_mode not in FETCH_MODES:
            raise ValueError(f"fetch_mode must be one of {sorted(FETCH_MODES)}, got: {self.fetch_mode!r}")
        if self.navigation_timeout_ms <= 0:
            raise ValueError(f"navigation_timeout_ms must be positive, got: {self.navigation_timeout_ms}")

    @classmethod
    def from_env(cls) -> "ScrapeConfig":
        return cls(
            db_path=os.getenv("INMOUP_DB_PATH", str(DEFAULT_DB_PATH)),
            navigation_timeout_ms=int(os.getenv("INMOUP_NAV_TIMEOUT_MS", "60000")),
            headless=not _env_flag("INMOUP_HEADFUL"),
            fetch_mode=os.getenv("INMOUP_FETCH_MODE", "browser").strip().lower(),
            country=os.getenv("INMOUP_COUNTRY", "Argentina"),
            strict_property_type=_env_flag("INMOUP_STRICT_PROPERTY_TYPE"),
        )

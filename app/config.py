"""Configuration management for the portfolio analysis service."""

import os
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables from .env if present (non-fatal when missing)
load_dotenv()

# Secrets reported (as booleans only) by the health endpoint
REQUIRED_SECRETS = ("OPEN_AI_KEY", "FINNHUB_API_KEY", "AI_SERVICE_KEY")


class Settings:
    """Application settings sourced from environment variables.

    Built once at process start and handed to ``create_app``; nothing else
    reads the environment at request time.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = dict(os.environ if environ is None else environ)

        # Secrets, kept raw so "required at time of use" can be enforced
        self._secrets: Dict[str, str] = {
            name: self._environ.get(name, "") for name in REQUIRED_SECRETS
        }

        # CORS
        self.allowed_origins: List[str] = self._get_list("ALLOWED_ORIGINS")

        # Server
        self.host = self._environ.get("HOST", "0.0.0.0")
        self.port = self._get_int("PORT", 3001)
        self.node_env = (
            self._environ.get("NODE_ENV") or self._environ.get("APP_ENV") or None
        )
        self.max_body_bytes = self._get_int("MAX_BODY_BYTES", 1024 * 1024)

        # Completion provider
        self.openai_model = self._environ.get("OPENAI_MODEL", "gpt-4o-mini")
        self.openai_base_url = self._environ.get("OPENAI_BASE_URL") or None
        self.openai_temperature = self._get_float("OPENAI_TEMPERATURE", 0.4)
        self.openai_max_tokens = self._get_int("OPENAI_MAX_TOKENS", 700)

        # Quote provider
        self.finnhub_base_url = self._environ.get(
            "FINNHUB_BASE_URL", "https://finnhub.io/api/v1"
        ).rstrip("/")
        self.quote_timeout_ms = self._get_int("QUOTE_TIMEOUT_MS", 8000)
        self.max_symbols = self._get_int("MAX_SYMBOLS", 0)

        # Logging
        self.log_level = self._environ.get("LOG_LEVEL", "INFO")
        self.log_file = self._environ.get("LOG_FILE") or None

        # Flags
        self.debug = self._get_bool("DEBUG", False)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()

    def has_secret(self, name: str) -> bool:
        return bool(self._secrets.get(name))

    def require(self, name: str) -> str:
        """Return a required secret or raise ``ConfigurationError``."""
        value = self._secrets.get(name)
        if not value:
            raise ConfigurationError(f"Missing required env: {name}")
        return value

    def env_report(self) -> Dict[str, object]:
        """Presence flags for the secrets; never the values themselves."""
        report: Dict[str, object] = {
            name: self.has_secret(name) for name in REQUIRED_SECRETS
        }
        report["ALLOWED_ORIGINS"] = list(self.allowed_origins)
        report["node_env"] = self.node_env
        return report

    def _get_list(self, name: str) -> List[str]:
        value = self._environ.get(name) or ""
        return [item.strip() for item in value.split(",") if item.strip()]

    def _get_bool(self, name: str, default: bool) -> bool:
        value = self._environ.get(name)
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    def _get_float(self, name: str, default: float) -> float:
        value = self._environ.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _get_int(self, name: str, default: int) -> int:
        value = self._environ.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

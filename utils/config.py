"""Configuration management utilities for the egg pool.

Provides:
- A Config base class with dict/JSON round-tripping
- StoreConfig: where the shared egg document lives and how writes retry
- ReferenceConfig: PokeAPI endpoints, reference cache and lookup timing
- AppConfig: web server settings

Every setting has a default and can be overridden by an environment
variable, so the tools work out of the box for local development.
"""

import json
import os as _os
from pathlib import Path
from typing import Any, Dict


class Config:
    """Base configuration class for organizing application settings."""

    # attributes replaced by "***" in displayed dictionaries
    _SECRET_FIELDS: tuple = ()

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert config to dictionary.

        Args:
            mask_secrets: Replace non-empty secret values with ``"***"``

        Returns:
            Dictionary of all config attributes
        """
        d = {k: v for k, v in self.__dict__.items() if not k.startswith("_")}
        if mask_secrets:
            for key in self._SECRET_FIELDS:
                if d.get(key):
                    d[key] = "***"
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance with values from dictionary
        """
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config

    def save_json(self, path: Path) -> None:
        """Save configuration to JSON file.

        Secrets are written unmasked so the file loads back to the same
        settings.

        Args:
            path: Path to save configuration file
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(mask_secrets=False), f, indent=2, default=str)

    @classmethod
    def load_json(cls, path: Path) -> "Config":
        """Load configuration from JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class StoreConfig(Config):
    """Location of the shared egg document and write retry policy.

    Environment variables:
        EGGPOOL_GITHUB_TOKEN: Personal access token with contents write scope
        EGGPOOL_GITHUB_OWNER: Repository owner
        EGGPOOL_GITHUB_REPO: Repository name
        EGGPOOL_GITHUB_BRANCH: Branch holding the document (default: main)
        EGGPOOL_DOCUMENT_PATH: Path of the document in the repo (default: eggs.json)
        EGGPOOL_GITHUB_API: API root (default: https://api.github.com)
        EGGPOOL_MAX_ATTEMPTS: Append attempts before giving up (default: 3)
        EGGPOOL_BACKOFF_SECONDS: Back-off unit between attempts (default: 0.5)
        EGGPOOL_TIMEOUT_SECONDS: Per-request timeout (default: 30)
    """

    _SECRET_FIELDS = ("token",)

    def __init__(self) -> None:
        super().__init__()
        self.token = _os.getenv("EGGPOOL_GITHUB_TOKEN", "")
        self.owner = _os.getenv("EGGPOOL_GITHUB_OWNER", "")
        self.repo = _os.getenv("EGGPOOL_GITHUB_REPO", "")
        self.branch = _os.getenv("EGGPOOL_GITHUB_BRANCH", "main")
        self.document_path = _os.getenv("EGGPOOL_DOCUMENT_PATH", "eggs.json")
        self.api_base = _os.getenv("EGGPOOL_GITHUB_API", "https://api.github.com").rstrip("/")
        self.max_attempts = int(_os.getenv("EGGPOOL_MAX_ATTEMPTS", "3"))
        self.backoff_seconds = float(_os.getenv("EGGPOOL_BACKOFF_SECONDS", "0.5"))
        self.timeout_seconds = float(_os.getenv("EGGPOOL_TIMEOUT_SECONDS", "30"))

    @property
    def contents_url(self) -> str:
        return (f"{self.api_base}/repos/{self.owner}/{self.repo}"
                f"/contents/{self.document_path}")

    def is_configured(self) -> bool:
        return bool(self.owner and self.repo)

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls()


class ReferenceConfig(Config):
    """PokeAPI access, reference cache and lookup timing.

    Environment variables:
        EGGPOOL_POKEAPI_BASE: PokeAPI root (default: https://pokeapi.co/api/v2)
        EGGPOOL_CACHE_DIR: Directory for cached reference lists (default: .reference_cache)
        EGGPOOL_CACHE_TTL_DAYS: Reference list lifetime in days (default: 7)
        EGGPOOL_LOOKUP_DELAY_MS: Quiet period before validating typed input (default: 600)
        EGGPOOL_SEARCH_LIMIT: Maximum candidates shown at once (default: 150)
    """

    def __init__(self) -> None:
        super().__init__()
        self.pokeapi_base = _os.getenv("EGGPOOL_POKEAPI_BASE", "https://pokeapi.co/api/v2").rstrip("/")
        self.cache_dir = Path(_os.getenv("EGGPOOL_CACHE_DIR", ".reference_cache"))
        self.cache_ttl_days = float(_os.getenv("EGGPOOL_CACHE_TTL_DAYS", "7"))
        self.lookup_delay_ms = int(_os.getenv("EGGPOOL_LOOKUP_DELAY_MS", "600"))
        self.search_limit = int(_os.getenv("EGGPOOL_SEARCH_LIMIT", "150"))
        self.timeout_seconds = float(_os.getenv("EGGPOOL_TIMEOUT_SECONDS", "30"))

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_days * 24 * 60 * 60

    @property
    def lookup_delay_seconds(self) -> float:
        return self.lookup_delay_ms / 1000.0

    @classmethod
    def from_env(cls) -> "ReferenceConfig":
        return cls()


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    Environment variables:
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_LOG_LEVEL: Root log level (default: INFO)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        self.log_level = _os.getenv("APP_LOG_LEVEL", "INFO").upper()
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()

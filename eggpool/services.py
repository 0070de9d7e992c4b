"""Factories that assemble configured components for the CLI and the API."""

from __future__ import annotations

from eggpool.coordinator import AppendCoordinator
from eggpool.reference import ReferenceClient
from eggpool.store import GitHubDocumentStore, VersionedDocumentStore
from utils.cache import FileStorage, TTLCache
from utils.config import ReferenceConfig, StoreConfig
from utils.http import RetryStrategy, SessionManager

USER_AGENT = "egg-pool/1.0"


def build_store(config: StoreConfig | None = None) -> GitHubDocumentStore:
    """GitHub-backed store for the configured repository.

    Raises:
        ValueError: owner or repo is not configured.
    """
    config = config or StoreConfig.from_env()
    if not config.is_configured():
        raise ValueError(
            "EGGPOOL_GITHUB_OWNER and EGGPOOL_GITHUB_REPO must be set")
    sessions = SessionManager(headers={"User-Agent": USER_AGENT})
    return GitHubDocumentStore(config, sessions)


def build_reference(config: ReferenceConfig | None = None) -> ReferenceClient:
    config = config or ReferenceConfig.from_env()
    cache = TTLCache(FileStorage(config.cache_dir))
    sessions = SessionManager(retry_strategy=RetryStrategy(max_retries=2),
                              headers={"User-Agent": USER_AGENT})
    return ReferenceClient(config, cache, sessions)


def build_coordinator(store: VersionedDocumentStore,
                      config: StoreConfig | None = None) -> AppendCoordinator:
    config = config or StoreConfig.from_env()
    return AppendCoordinator(store, max_attempts=config.max_attempts,
                             backoff_seconds=config.backoff_seconds)

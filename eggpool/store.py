"""
Versioned document stores.

A store hands out the current egg document together with a version token and
accepts a replacement only when the caller presents the token it read.  There
is no locking: a stale token is rejected with :class:`ConflictError` and the
stored document is left exactly as it was.

Two implementations:

  GitHubDocumentStore    the shared document as a file in a GitHub repo,
                         using the contents API (blob sha as the token)
  InMemoryDocumentStore  a local authority with the same contract, for tests,
                         demos and offline development
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from typing import Any

import requests

from eggpool.records import Document, EggRecord
from utils.config import StoreConfig
from utils.errors import ConflictError, TransportError, error_for_status
from utils.http import SessionManager
from utils.strings import from_base64, to_base64

logger = logging.getLogger(__name__)


class VersionedDocumentStore:
    """Read-with-token / conditional-write contract."""

    async def read(self) -> Document:
        """Return the current document; every call goes to the authority."""
        raise NotImplementedError

    async def write(self, document: Document, token: str | None,
                    description: str) -> str:
        """Replace the stored document if *token* is still current.

        Returns:
            The new version token.

        Raises:
            ConflictError: *token* is stale.
            TransportError: any other failure.
        """
        raise NotImplementedError


# ── GitHub contents API ───────────────────────────────────────────────────────


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"GitHub API error: {resp.status_code}"


class GitHubDocumentStore(VersionedDocumentStore):
    """The egg document as a JSON file committed to a GitHub repository.

    ``GET contents/<path>`` yields ``{content: <base64>, sha: <token>}``;
    ``PUT contents/<path>`` with ``{message, content, sha, branch}`` commits a
    new revision and is refused with 409/422 when ``sha`` is not the head blob.
    """

    def __init__(self, config: StoreConfig,
                 session_manager: SessionManager | None = None) -> None:
        self.config = config
        self.session_manager = session_manager or SessionManager()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"
        return headers

    def read_sync(self) -> Document:
        url = self.config.contents_url
        headers = self._headers()
        # Never reuse a cached sha: a stale token guarantees a conflict.
        headers["Cache-Control"] = "no-cache"
        logger.debug("Reading %s@%s", url, self.config.branch)
        try:
            resp = self.session_manager.session.get(
                url, headers=headers, params={"ref": self.config.branch},
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"GitHub API request failed: {e}") from e
        if not resp.ok:
            raise TransportError(f"GitHub API error: {resp.status_code}",
                                 status=resp.status_code)
        try:
            data = resp.json()
            text = from_base64(data.get("content", ""))
            return Document.decode(text, token=data["sha"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TransportError(f"Malformed egg document at {url}: {e}",
                                 status=resp.status_code) from e

    def write_sync(self, document: Document, token: str | None,
                   description: str) -> str:
        url = self.config.contents_url
        body: dict[str, Any] = {
            "message": description,
            "content": to_base64(document.encode()),
            "branch": self.config.branch,
        }
        if token is not None:
            body["sha"] = token
        logger.debug("Writing %d records to %s", len(document), url)
        try:
            resp = self.session_manager.session.put(
                url, headers=self._headers(), data=json.dumps(body),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(f"GitHub API request failed: {e}") from e
        if not resp.ok:
            raise error_for_status(resp.status_code, _error_message(resp))
        try:
            return resp.json()["content"]["sha"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"Unexpected write response from {url}",
                                 status=resp.status_code) from e

    async def read(self) -> Document:
        return await asyncio.to_thread(self.read_sync)

    async def write(self, document: Document, token: str | None,
                    description: str) -> str:
        return await asyncio.to_thread(self.write_sync, document, token, description)


# ── In-memory authority ───────────────────────────────────────────────────────


class InMemoryDocumentStore(VersionedDocumentStore):
    """Local optimistic-concurrency authority.

    ``attempt_write`` is the whole contract: compare the expected token with
    the current one and either install the new content under a fresh token or
    raise ``ConflictError`` without touching anything.

    With ``yield_points=True`` every read and write suspends once before and
    once after touching state, so concurrently scheduled coroutines really do
    interleave between a read and the following write.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None,
                 yield_points: bool = True) -> None:
        self._records: tuple[EggRecord, ...] = tuple(
            EggRecord.from_dict(r) for r in (records or [])
        )
        self._revision = 0
        self._token = self._make_token()
        self.yield_points = yield_points
        self.reads = 0
        self.writes = 0
        self.conflicts = 0
        # one (token, description) per committed revision
        self.revisions: list[tuple[str, str]] = []

    def _make_token(self) -> str:
        digest = hashlib.sha1()
        digest.update(str(self._revision).encode())
        digest.update(Document(self._records).encode().encode("utf-8"))
        return digest.hexdigest()

    @property
    def token(self) -> str:
        return self._token

    @property
    def records(self) -> tuple[EggRecord, ...]:
        return self._records

    def snapshot(self) -> Document:
        return Document(records=self._records, token=self._token)

    def attempt_write(self, expected_token: str | None,
                      records: tuple[EggRecord, ...], description: str = "") -> str:
        if expected_token != self._token:
            self.conflicts += 1
            raise ConflictError(
                f"Version token {expected_token} is stale (current {self._token})",
                status=409,
            )
        self._records = tuple(records)
        self._revision += 1
        self._token = self._make_token()
        self.revisions.append((self._token, description))
        return self._token

    async def _yield(self) -> None:
        if self.yield_points:
            await asyncio.sleep(0)

    async def read(self) -> Document:
        await self._yield()
        self.reads += 1
        document = self.snapshot()
        await self._yield()
        return document

    async def write(self, document: Document, token: str | None,
                    description: str) -> str:
        await self._yield()
        self.writes += 1
        new_token = self.attempt_write(token, document.records, description)
        await self._yield()
        return new_token

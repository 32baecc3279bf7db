"""Pytest configuration and fixtures for chunkctl tests."""

from __future__ import annotations

import hashlib
import json
import re
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator, Optional

import httpx
import pytest

from chunkctl.core.client import StoreClient

STORE_URL = "http://store.test"
MiB = 1024 * 1024

SESSION_PATH = re.compile(r"^/upload/([^/]+)/(chunk|status|complete)$")


# =============================================================================
# Fake chunk store
# =============================================================================


class FakeStore:
    """In-memory chunk store speaking the session protocol over MockTransport.

    Chunks are keyed by index, so a resent index overwrites instead of
    duplicating. Knobs let tests make the store misbehave.
    """

    def __init__(self) -> None:
        self.uploads: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.chunk_puts: list[tuple[str, int]] = []
        self._counter = 0
        self._lock = threading.Lock()

        # Misbehaviour knobs
        self.total_chunks_echo: Optional[int] = None
        self.chunk_size_echo: Optional[int] = None
        self.report_totals = True
        self.ack_index_offset = 0
        self.ack_md5: Optional[str] = None
        self.final_md5: Optional[str] = None
        self.fail_chunks: dict[int, int] = {}
        self.disconnect_chunks: set[int] = set()
        self.chunk_hook: Optional[Callable[[str, int], None]] = None

    # -------------------------------------------------------------------------
    # Helpers for tests
    # -------------------------------------------------------------------------

    def seed(
        self,
        file_name: str,
        data: bytes,
        chunk_size: int,
        confirmed: set[int] | frozenset[int] = frozenset(),
    ) -> str:
        """Create a session as if an earlier run had sent ``confirmed``."""
        upload_id = self._new_upload(file_name, len(data), chunk_size)
        for index in confirmed:
            start = index * chunk_size
            self.uploads[upload_id]["chunks"][index] = data[start : start + chunk_size]
        return upload_id

    def assembled(self, upload_id: str) -> bytes:
        chunks = self.uploads[upload_id]["chunks"]
        return b"".join(chunks[i] for i in sorted(chunks))

    def sent_indices(self, upload_id: str) -> list[int]:
        return [index for uid, index in self.chunk_puts if uid == upload_id]

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def client(self) -> StoreClient:
        return StoreClient(STORE_URL, transport=httpx.MockTransport(self.handle))

    # -------------------------------------------------------------------------
    # Protocol
    # -------------------------------------------------------------------------

    def _new_upload(self, file_name: str, total_size: int, chunk_size: int) -> str:
        with self._lock:
            self._counter += 1
            upload_id = f"up-{self._counter:04d}"
        self.uploads[upload_id] = {
            "file_name": file_name,
            "total_size": total_size,
            "chunk_size": chunk_size,
            "total_chunks": -(-total_size // chunk_size),
            "status": "in_progress",
            "chunks": {},
        }
        return upload_id

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/health":
            return httpx.Response(200, text="ok")

        if request.method == "POST" and path == "/upload/init":
            body = json.loads(request.content)
            if body.get("total_size", 0) <= 0 or body.get("chunk_size", 0) <= 0:
                return httpx.Response(400, text="missing fields")
            upload_id = self._new_upload(body["file_name"], body["total_size"], body["chunk_size"])
            upload = self.uploads[upload_id]
            return httpx.Response(
                200,
                json={
                    "upload_id": upload_id,
                    "chunk_size": self.chunk_size_echo or upload["chunk_size"],
                    "total_chunks": self.total_chunks_echo or upload["total_chunks"],
                },
            )

        match = SESSION_PATH.match(path)
        if not match:
            return httpx.Response(404, text="not found")
        upload_id, action = match.groups()
        upload = self.uploads.get(upload_id)
        if upload is None:
            return httpx.Response(404, text="upload not found")

        if action == "chunk":
            return self._put_chunk(request, upload_id, upload)
        if action == "status":
            return self._status(upload_id, upload)
        return self._complete(upload)

    def _put_chunk(
        self, request: httpx.Request, upload_id: str, upload: dict[str, Any]
    ) -> httpx.Response:
        index = int(request.url.params["index"])
        data = request.read()
        self.chunk_puts.append((upload_id, index))
        if self.chunk_hook:
            self.chunk_hook(upload_id, index)
        if index in self.disconnect_chunks:
            raise httpx.ReadError("connection reset", request=request)
        if index in self.fail_chunks:
            return httpx.Response(self.fail_chunks[index], text="chunk rejected")
        if not 0 <= index < upload["total_chunks"]:
            return httpx.Response(400, text="index out of range")

        upload["chunks"][index] = data
        return httpx.Response(
            201,
            json={
                "index": index + self.ack_index_offset,
                "size": len(data),
                "md5": self.ack_md5 or hashlib.md5(data).hexdigest(),
            },
        )

    def _status(self, upload_id: str, upload: dict[str, Any]) -> httpx.Response:
        indices = sorted(upload["chunks"])
        body: dict[str, Any] = {
            "upload_id": upload_id,
            "status": upload["status"],
            # The reference store sends null for an empty list
            "chunks": indices or None,
        }
        if self.report_totals:
            body.update(
                total_chunks=upload["total_chunks"],
                chunk_size=upload["chunk_size"],
                total_size=upload["total_size"],
            )
        return httpx.Response(200, json=body)

    def _complete(self, upload: dict[str, Any]) -> httpx.Response:
        if upload["status"] == "completed":
            return httpx.Response(400, text="already completed")
        missing = [i for i in range(upload["total_chunks"]) if i not in upload["chunks"]]
        if missing:
            return httpx.Response(400, text=f"missing chunks: {missing}")

        data = b"".join(upload["chunks"][i] for i in range(upload["total_chunks"]))
        upload["status"] = "completed"
        return httpx.Response(
            200,
            json={
                "status": "completed",
                "final_path": f"/data/final/{upload['file_name']}",
                "file_size": len(data),
                "md5": self.final_md5 or hashlib.md5(data).hexdigest(),
            },
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_store() -> FakeStore:
    """A fresh in-memory chunk store."""
    return FakeStore()


@pytest.fixture
def store_client(fake_store: FakeStore) -> Generator[StoreClient, None, None]:
    """StoreClient wired to the fake store."""
    client = fake_store.client()
    yield client
    client.close()


@pytest.fixture
def payload() -> bytes:
    """2.5 MiB of non-repeating-looking bytes."""
    return bytes((i * 31 + i // 251) % 256 for i in range(int(2.5 * MiB)))


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://uploads-test.example.org
    verify_ssl: false
    timeout: 30
    chunk_size: 512K

  production:
    url: https://uploads.example.org
    verify_ssl: true
    timeout: 60
"""

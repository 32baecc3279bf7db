"""Tests for chunkctl.core.validation module."""

from __future__ import annotations

from pathlib import Path

import pytest

from chunkctl.core.exceptions import InvalidChunkSizeError, InvalidURLError, ValidationError
from chunkctl.core.validation import (
    MAX_CHUNK_SIZE,
    parse_size,
    validate_chunk_size,
    validate_server_url,
    validate_timeout,
    validate_upload_id,
    validate_upload_path,
    validate_workers,
)

# =============================================================================
# URL Validation Tests
# =============================================================================


class TestValidateServerUrl:
    """Tests for validate_server_url."""

    def test_strips_trailing_slash_and_whitespace(self):
        assert validate_server_url("  https://store.example.org/// ") == "https://store.example.org"

    def test_http_with_port(self):
        assert validate_server_url("http://localhost:8080") == "http://localhost:8080"

    @pytest.mark.parametrize("url", ["", "   ", "ftp://store.example.org", "store.example.org", "http://"])
    def test_rejects(self, url: str):
        with pytest.raises(InvalidURLError):
            validate_server_url(url)


# =============================================================================
# Size Validation Tests
# =============================================================================


class TestParseSize:
    """Tests for parse_size and validate_chunk_size."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1048576", 1048576),
            ("512K", 512 * 1024),
            ("512kb", 512 * 1024),
            ("4MiB", 4 * 1024 * 1024),
            (" 1 G ", 1024**3),
            (42, 42),
        ],
    )
    def test_parses(self, text, expected: int):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1.5M", "10X", True])
    def test_rejects(self, text):
        with pytest.raises(ValidationError):
            parse_size(text)

    def test_chunk_size_bounds(self):
        assert validate_chunk_size(1) == 1
        assert validate_chunk_size(MAX_CHUNK_SIZE) == MAX_CHUNK_SIZE
        with pytest.raises(InvalidChunkSizeError):
            validate_chunk_size(0)
        with pytest.raises(InvalidChunkSizeError):
            validate_chunk_size(MAX_CHUNK_SIZE + 1)

    def test_chunk_size_wraps_parse_error(self):
        with pytest.raises(InvalidChunkSizeError) as exc_info:
            validate_chunk_size("lots")
        assert exc_info.value.field == "chunk_size"


# =============================================================================
# Identifier and Misc Validation Tests
# =============================================================================


class TestValidateUploadId:
    """Tests for validate_upload_id."""

    @pytest.mark.parametrize("upload_id", ["abc", "3f2a-11ee.b_9", "A" * 128])
    def test_accepts(self, upload_id: str):
        assert validate_upload_id(upload_id) == upload_id

    def test_strips_whitespace(self):
        assert validate_upload_id("  up-1\n") == "up-1"

    @pytest.mark.parametrize("upload_id", ["", "-leading", "a/b", "../x", "A" * 129, "sp ace"])
    def test_rejects(self, upload_id: str):
        with pytest.raises(ValidationError):
            validate_upload_id(upload_id)


class TestMisc:
    """Tests for timeouts, workers and paths."""

    def test_timeout(self):
        assert validate_timeout(5) == 5.0
        with pytest.raises(ValidationError):
            validate_timeout(0)

    def test_workers(self):
        assert validate_workers(1) == 1
        assert validate_workers(32) == 32
        with pytest.raises(ValidationError):
            validate_workers(0)
        with pytest.raises(ValidationError):
            validate_workers(5, maximum=4)

    def test_upload_path(self, temp_dir: Path):
        path = temp_dir / "a.bin"
        path.write_bytes(b"x")

        assert validate_upload_path(str(path)) == path.resolve()

    def test_upload_path_missing(self, temp_dir: Path):
        with pytest.raises(ValidationError, match="not found"):
            validate_upload_path(temp_dir / "missing.bin")

    def test_upload_path_directory(self, temp_dir: Path):
        with pytest.raises(ValidationError, match="Not a regular file"):
            validate_upload_path(temp_dir)

"""Tests for chunkctl.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from chunkctl.core.exceptions import ErrorKind
from chunkctl.models import (
    ChunkAck,
    FileRecord,
    FileStatus,
    FinalLocation,
    SessionStatus,
    UploadProgress,
    UploadResult,
    UploadStatusSummary,
    percent_of,
)

# =============================================================================
# Wire Model Tests
# =============================================================================


class TestWireModels:
    """Tests for the store's wire models."""

    def test_status_null_chunks(self):
        status = SessionStatus.model_validate({"upload_id": "u1", "status": "in_progress", "chunks": None})
        assert status.confirmed == frozenset()

    def test_status_duplicate_indices_collapse(self):
        status = SessionStatus.model_validate({"upload_id": "u1", "chunks": [2, 0, 2]})
        assert status.confirmed == frozenset({0, 2})

    def test_status_total_from_progress(self):
        status = SessionStatus.model_validate(
            {"upload_id": "u1", "chunks": [0], "progress": {"completed": 1, "total": 4, "percent": 25}}
        )
        assert status.total_chunks == 4

    def test_status_explicit_total_wins(self):
        status = SessionStatus.model_validate(
            {"upload_id": "u1", "total_chunks": 3, "progress": {"completed": 0, "total": 4}}
        )
        assert status.total_chunks == 3

    def test_ack_accepts_md5_alias(self):
        ack = ChunkAck.model_validate({"index": 1, "size": 4, "md5": "ABCDEF"})
        assert ack.checksum == "abcdef"

    def test_ack_rejects_negative_index(self):
        with pytest.raises(ValidationError):
            ChunkAck.model_validate({"index": -1, "size": 4})

    def test_final_location_aliases(self):
        location = FinalLocation.model_validate(
            {"final_location": "/data/x", "final_size": 10, "md5": None}
        )
        assert location.final_path == "/data/x"
        assert location.file_size == 10
        assert location.checksum is None
        assert location.to_dict() == {"final_path": "/data/x", "file_size": 10}


# =============================================================================
# Progress Tests
# =============================================================================


class TestPercent:
    """Tests for percent_of."""

    @pytest.mark.parametrize(
        ("done", "total", "expected"),
        [(0, 10, 0), (1, 3, 33), (2, 3, 67), (1, 200, 1), (1, 201, 0), (10, 10, 100), (5, 0, 0)],
    )
    def test_rounds_half_up(self, done: int, total: int, expected: int):
        assert percent_of(done, total) == expected

    def test_clamped(self):
        assert percent_of(20, 10) == 100


class TestProgressModels:
    """Tests for progress dataclasses."""

    def test_bytes_sent(self):
        progress = UploadProgress("f1", 50, bytes_confirmed=100, bytes_in_flight=25, total_bytes=250)
        assert progress.bytes_sent == 125

    def test_terminal_statuses(self):
        assert not FileStatus.PENDING.is_terminal
        assert not FileStatus.UPLOADING.is_terminal
        assert FileStatus.SUCCESS.is_terminal
        assert FileStatus.ERROR.is_terminal

    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            (ErrorKind.NETWORK_FAILURE, True),
            (ErrorKind.CANCELLED, True),
            (ErrorKind.INCOMPLETE_UPLOAD, True),
            (ErrorKind.SESSION_MISMATCH, False),
            (ErrorKind.INVALID_FILE, False),
        ],
    )
    def test_resumable(self, kind: ErrorKind, expected: bool):
        result = UploadResult("f1", False, upload_id="u1", error_kind=kind)
        assert result.resumable is expected

    def test_not_resumable_without_upload_id(self):
        assert not UploadResult("f1", False, error_kind=ErrorKind.NETWORK_FAILURE).resumable

    def test_throughput(self):
        result = UploadResult(
            "f1", True, file_size=4 * 1024 * 1024, chunks_total=4, chunks_sent=2, duration=2.0
        )
        assert result.throughput_mbps == pytest.approx(1.0)
        assert UploadResult("f1", True).throughput_mbps == 0.0

    def test_status_summary(self):
        summary = UploadStatusSummary("u1", (0, 1), total_chunks=4, status="in_progress")

        assert summary.confirmed_count == 2
        assert summary.percent == 50
        assert summary.to_dict()["confirmed_indices"] == [0, 1]
        assert UploadStatusSummary("u1", ()).percent is None


def test_file_record_snapshot_and_dict():
    record = FileRecord("f1", "a.bin", 3, "application/octet-stream")
    copy = record.snapshot()
    copy.progress = 50

    assert record.progress == 0
    data = record.to_dict()
    assert data["status"] == "pending"
    assert data["upload_id"] == ""

"""Tests for the chunkctl CLI."""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from chunkctl import __version__
from chunkctl.cli.main import cli
from chunkctl.core.client import StoreClient
from chunkctl.core.config import Config
from chunkctl.core.ledger import UploadLedger

from .conftest import STORE_URL, MiB, FakeStore

LEDGER_NAME = "uploads.json"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point config and ledger files into tmp_path and clear CHUNKCTL_* env."""
    for name in ("CHUNKCTL_URL", "CHUNKCTL_TOKEN", "CHUNKCTL_PROFILE", "CHUNKCTL_CHUNK_SIZE"):
        monkeypatch.delenv(name, raising=False)
    config_file = tmp_path / "config.yaml"
    with patch("chunkctl.core.config.CONFIG_FILE", config_file), patch(
        "chunkctl.cli.config_cmd.CONFIG_FILE", config_file
    ), patch("chunkctl.core.ledger.LEDGER_FILE", tmp_path / LEDGER_NAME):
        yield tmp_path


@pytest.fixture
def store_env(
    isolated: Path, fake_store: FakeStore, monkeypatch: pytest.MonkeyPatch
) -> Generator[FakeStore, None, None]:
    """Configure the CLI against the fake store."""
    monkeypatch.setenv("CHUNKCTL_URL", STORE_URL)
    monkeypatch.setenv("CHUNKCTL_CHUNK_SIZE", "1MiB")

    def make_client(**kwargs) -> StoreClient:
        return StoreClient(transport=httpx.MockTransport(fake_store.handle), **kwargs)

    with patch("chunkctl.cli.common.StoreClient", side_effect=make_client):
        yield fake_store


@pytest.fixture
def big_file(tmp_path: Path, payload: bytes) -> Path:
    path = tmp_path / "big.bin"
    path.write_bytes(payload)
    return path


def _ledger(root: Path) -> UploadLedger:
    return UploadLedger(root / LEDGER_NAME)


# =============================================================================
# Root Group
# =============================================================================


class TestRoot:
    """Tests for the root group."""

    def test_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("upload", "resume", "status", "pending", "forget", "config", "health"):
            assert command in result.output

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_health_ping(self, runner: CliRunner, store_env: FakeStore):
        result = runner.invoke(cli, ["health", "ping", "-o", "json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["status"] == "ok"

    def test_missing_profile(self, runner: CliRunner, isolated: Path):
        result = runner.invoke(cli, ["health", "ping"])

        assert result.exit_code == 1
        assert "config init" in result.output


# =============================================================================
# Upload / Resume
# =============================================================================


class TestUploadCommand:
    """Tests for chunkctl upload."""

    def test_upload_json(self, runner: CliRunner, store_env: FakeStore, big_file: Path):
        result = runner.invoke(cli, ["upload", str(big_file), "-o", "json"])

        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert rows[0]["status"] == "success"
        assert rows[0]["chunks"] == "3/3"
        assert rows[0]["detail"] == "/data/final/big.bin"
        assert store_env.sent_indices(rows[0]["upload_id"]) == [0, 1, 2]

    def test_upload_table(self, runner: CliRunner, store_env: FakeStore, big_file: Path):
        result = runner.invoke(cli, ["upload", str(big_file)])

        assert result.exit_code == 0, result.output
        assert "Uploaded big.bin" in result.output

    def test_success_clears_ledger(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, isolated: Path
    ):
        runner.invoke(cli, ["upload", str(big_file), "-q"])

        assert _ledger(isolated).get(big_file) is None

    def test_chunk_size_option(self, runner: CliRunner, store_env: FakeStore, big_file: Path):
        result = runner.invoke(cli, ["upload", str(big_file), "-c", "512K", "-o", "json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["chunks"] == "5/5"

    def test_invalid_chunk_size(self, runner: CliRunner, store_env: FakeStore, big_file: Path):
        result = runner.invoke(cli, ["upload", str(big_file), "-c", "huge"])

        assert result.exit_code == 1
        assert store_env.requests == []

    def test_quiet_prints_upload_ids(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, tmp_path: Path
    ):
        other = tmp_path / "small.bin"
        other.write_bytes(b"x" * 10)

        result = runner.invoke(cli, ["upload", str(big_file), str(other), "-q", "-w", "2"])

        assert result.exit_code == 0, result.output
        assert sorted(result.stdout.split()) == sorted(store_env.uploads)

    def test_failure_keeps_ledger_and_hints_resume(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, isolated: Path
    ):
        store_env.disconnect_chunks.add(1)

        result = runner.invoke(cli, ["upload", str(big_file)])

        assert result.exit_code == 1
        assert "chunkctl resume" in result.output
        entry = _ledger(isolated).get(big_file, STORE_URL)
        assert entry is not None
        assert entry.chunk_size == MiB
        assert entry.upload_id in store_env.uploads


class TestResumeCommand:
    """Tests for chunkctl resume."""

    def test_resume_from_ledger(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, isolated: Path
    ):
        store_env.disconnect_chunks.add(2)
        runner.invoke(cli, ["upload", str(big_file), "-q"])
        upload_id = _ledger(isolated).get(big_file).upload_id
        store_env.disconnect_chunks.clear()

        result = runner.invoke(cli, ["resume", str(big_file), "-o", "json"])

        assert result.exit_code == 0, result.output
        row = json.loads(result.stdout)[0]
        assert row["upload_id"] == upload_id
        assert row["skipped"] == 2
        assert store_env.sent_indices(upload_id) == [0, 1, 2, 2]
        assert _ledger(isolated).get(big_file) is None

    def test_resume_uses_recorded_chunk_size(
        self,
        runner: CliRunner,
        store_env: FakeStore,
        big_file: Path,
        payload: bytes,
        isolated: Path,
    ):
        upload_id = store_env.seed("big.bin", payload, 512 * 1024, confirmed={0, 1})
        _ledger(isolated).record(big_file, upload_id, STORE_URL, len(payload), 512 * 1024)

        result = runner.invoke(cli, ["resume", str(big_file), "-o", "json"])

        assert result.exit_code == 0, result.output
        assert store_env.sent_indices(upload_id) == [2, 3, 4]

    def test_resume_with_explicit_id(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, payload: bytes
    ):
        upload_id = store_env.seed("big.bin", payload, MiB, confirmed={1})

        result = runner.invoke(cli, ["resume", str(big_file), "-u", upload_id, "-o", "json"])

        assert result.exit_code == 0, result.output
        assert store_env.sent_indices(upload_id) == [0, 2]

    def test_resume_without_record(self, runner: CliRunner, store_env: FakeStore, big_file: Path):
        result = runner.invoke(cli, ["resume", str(big_file)])

        assert result.exit_code != 0
        assert "--upload-id" in result.output

    def test_resume_mismatch_forgets_entry(
        self,
        runner: CliRunner,
        store_env: FakeStore,
        big_file: Path,
        payload: bytes,
        isolated: Path,
    ):
        upload_id = store_env.seed("big.bin", payload[:-1], MiB)
        _ledger(isolated).record(big_file, upload_id, STORE_URL, len(payload), MiB)

        result = runner.invoke(cli, ["resume", str(big_file)])

        assert result.exit_code == 1
        assert "Resume with" not in result.output
        assert _ledger(isolated).get(big_file) is None


# =============================================================================
# Status / Pending / Forget
# =============================================================================


class TestStatusCommands:
    """Tests for status, pending and forget."""

    def test_status_json(self, runner: CliRunner, store_env: FakeStore, payload: bytes):
        upload_id = store_env.seed("big.bin", payload, MiB, confirmed={0, 2})

        result = runner.invoke(cli, ["status", upload_id, "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["confirmed_indices"] == [0, 2]
        assert data["total_chunks"] == 3
        assert data["percent"] == 67

    def test_status_table(self, runner: CliRunner, store_env: FakeStore, payload: bytes):
        upload_id = store_env.seed("big.bin", payload, MiB, confirmed={0})

        result = runner.invoke(cli, ["status", upload_id])

        assert result.exit_code == 0, result.output
        assert "33%" in result.output

    def test_status_unknown_upload(self, runner: CliRunner, store_env: FakeStore):
        result = runner.invoke(cli, ["status", "nope"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_pending_and_forget(
        self, runner: CliRunner, store_env: FakeStore, big_file: Path, isolated: Path
    ):
        _ledger(isolated).record(big_file, "up-9", STORE_URL, 10, 4)

        listed = runner.invoke(cli, ["pending", "-o", "json"])
        forgotten = runner.invoke(cli, ["forget", str(big_file)])
        after = runner.invoke(cli, ["pending", "-o", "json"])

        assert [row["upload_id"] for row in json.loads(listed.stdout)] == ["up-9"]
        assert forgotten.exit_code == 0
        assert json.loads(after.stdout) == []


# =============================================================================
# Config Commands
# =============================================================================


class TestConfigCommands:
    """Tests for chunkctl config."""

    def test_init_then_show(self, runner: CliRunner, isolated: Path):
        result = runner.invoke(
            cli, ["config", "init", "--url", "https://uploads.example.org", "--chunk-size", "4MiB"]
        )

        assert result.exit_code == 0, result.output
        cfg = Config.load(isolated / "config.yaml")
        assert cfg.get_profile().chunk_size == 4 * MiB

        shown = runner.invoke(cli, ["config", "show", "-o", "json"])
        assert json.loads(shown.stdout)["profiles"] == ["default"]

    def test_init_existing_profile_needs_force(self, runner: CliRunner, isolated: Path):
        args = ["config", "init", "--url", "https://uploads.example.org"]
        runner.invoke(cli, args)

        assert runner.invoke(cli, args).exit_code == 1
        assert runner.invoke(cli, [*args, "--force"]).exit_code == 0

    def test_init_rejects_bad_url(self, runner: CliRunner, isolated: Path):
        result = runner.invoke(cli, ["config", "init", "--url", "uploads.example.org"])

        assert result.exit_code == 1
        assert not (isolated / "config.yaml").exists()

    def test_profiles_lifecycle(self, runner: CliRunner, isolated: Path):
        runner.invoke(cli, ["config", "init", "--url", "https://uploads.example.org"])

        added = runner.invoke(
            cli, ["config", "add-profile", "dev", "--url", "http://localhost:8080", "--no-verify-ssl"]
        )
        switched = runner.invoke(cli, ["config", "use-context", "dev"])
        current = runner.invoke(cli, ["config", "current-context"])

        assert added.exit_code == 0, added.output
        assert switched.exit_code == 0
        assert current.output.strip() == "dev"
        assert Config.load(isolated / "config.yaml").get_profile().verify_ssl is False

        refused = runner.invoke(cli, ["config", "remove-profile", "dev", "-y"])
        assert refused.exit_code == 1
        runner.invoke(cli, ["config", "use-context", "default"])
        removed = runner.invoke(cli, ["config", "remove-profile", "dev", "-y"])
        assert removed.exit_code == 0
        assert not Config.load(isolated / "config.yaml").has_profile("dev")

    def test_show_without_config(self, runner: CliRunner, isolated: Path):
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 1
        assert "config init" in result.output

"""Tests for chunkctl package imports and exports."""

from __future__ import annotations


class TestPackageImports:
    """Tests for package imports."""

    def test_import_chunkctl(self):
        import chunkctl

        assert hasattr(chunkctl, "__version__")
        assert chunkctl.UploadManager is not None

    def test_import_core_modules(self):
        from chunkctl.core import client, config, exceptions, ledger, logging, output, validation

        assert client is not None
        assert config is not None
        assert exceptions is not None
        assert ledger is not None
        assert logging is not None
        assert output is not None
        assert validation is not None

    def test_import_uploaders(self):
        from chunkctl.uploaders import constants, planner, reconciler, sources, transmitter

        assert constants is not None
        assert planner is not None
        assert reconciler is not None
        assert sources is not None
        assert transmitter is not None

    def test_import_services(self):
        from chunkctl.services import base, queue, sessions, uploads

        assert base is not None
        assert queue is not None
        assert sessions is not None
        assert uploads is not None

    def test_import_cli(self):
        from chunkctl.cli.main import cli, main

        assert cli is not None
        assert callable(main)

    def test_all_exports_resolve(self):
        import chunkctl
        import chunkctl.core
        import chunkctl.models
        import chunkctl.services
        import chunkctl.uploaders

        for module in (chunkctl, chunkctl.core, chunkctl.models, chunkctl.services, chunkctl.uploaders):
            for name in module.__all__:
                assert hasattr(module, name), f"{module.__name__}.{name}"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_kinds(self):
        from chunkctl.core.exceptions import (
            ErrorKind,
            IncompleteUploadError,
            InvalidFileError,
            NetworkError,
            ProtocolInconsistencyError,
            SessionMismatchError,
            UploadCancelledError,
            UploadNotFoundError,
        )

        assert NetworkError("http://x").kind == ErrorKind.NETWORK_FAILURE
        assert ProtocolInconsistencyError("m").kind == ErrorKind.PROTOCOL_INCONSISTENCY
        assert SessionMismatchError("m").kind == ErrorKind.SESSION_MISMATCH
        assert UploadNotFoundError("u1").kind == ErrorKind.SESSION_MISMATCH
        assert IncompleteUploadError("m").kind == ErrorKind.INCOMPLETE_UPLOAD
        assert InvalidFileError("m").kind == ErrorKind.INVALID_FILE
        assert UploadCancelledError("m").kind == ErrorKind.CANCELLED

    def test_str_includes_details(self):
        from chunkctl.core.exceptions import UploadError

        assert str(UploadError("Failed", "u1")) == "Failed (upload_id=u1)"
        assert str(UploadError("Failed")) == "Failed"

# tests/unit/test_main.py — v1
"""Tests for main.py — CLI entry point."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from docworker.config.settings import ConfigurationError, Settings
from docworker.core.models import BatchJob
from docworker.jobs.sqlite_store import SqliteJobStore
from docworker.main import _build_parser, main
from docworker.queue.memory_queue import MemoryDocumentQueue


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self):
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_filter_subcommand(self):
        args = _build_parser().parse_args(["filter", "--user", "alice"])
        assert args.command == "filter"
        assert args.user == "alice"
        assert args.project is None

    def test_filter_requires_user(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["filter"])

    def test_nlp_repeated_doc_ids(self):
        args = _build_parser().parse_args(
            ["nlp", "--index", "prj", "--doc-id", "d1", "--doc-id", "d2"]
        )
        assert args.doc_ids == ["d1", "d2"]
        assert args.routing is None

    def test_batch_once(self):
        args = _build_parser().parse_args(["-v", "batch", "--once"])
        assert args.once is True
        assert args.verbose is True


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------

def _settings(tmp_path, **overrides) -> Settings:
    return Settings(_env_file=None, job_db_path=tmp_path / "jobs.db", log_format="text", **overrides)


class TestMain:
    def test_no_command(self):
        assert main([]) == 1

    def test_invalid_configuration(self, capsys):
        with patch("docworker.main.load_settings", side_effect=ConfigurationError("bad")):
            assert main(["batch", "--once"]) == 2
        assert "bad" in capsys.readouterr().err

    def test_filter(self, tmp_path, capsys):
        settings = _settings(tmp_path, queue_prefix="test-main")
        queue = MemoryDocumentQueue(settings.user_queue_name("alice"))
        asyncio.run(queue.push("/a", "/a", "/b"))

        with patch("docworker.main.load_settings", return_value=settings):
            assert main(["filter", "--user", "alice"]) == 0

        assert "Duplicates:      1" in capsys.readouterr().out
        assert asyncio.run(queue.size()) == 2

    def test_batch_once_empty(self, tmp_path, capsys):
        with patch("docworker.main.load_settings", return_value=_settings(tmp_path)):
            assert main(["batch", "--once"]) == 0
        assert "Jobs run: 0" in capsys.readouterr().out

    def test_batch_once_runs_job(self, tmp_path):
        settings = _settings(tmp_path)
        store = SqliteJobStore(settings.job_db_path)
        job = BatchJob.create("local-datashare", ["anything"])
        asyncio.run(store.save("alice", job))

        with patch("docworker.main.load_settings", return_value=settings):
            assert main(["batch", "--once"]) == 0

        assert asyncio.run(store.get_job("alice", job.id)).state == "SUCCESS"
        store.close()

    def test_nlp_missing_document(self, tmp_path):
        with patch("docworker.main.load_settings", return_value=_settings(tmp_path)):
            assert main(["nlp", "--doc-id", "ghost"]) == 0

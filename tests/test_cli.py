# tests/test_cli.py
"""Tests for the CLI."""

import asyncio
import json
import os
from unittest.mock import patch

import pytest

pytest.importorskip("typer", reason="Tests require typer package")

from typer.testing import CliRunner

from ragline import Ragline, Settings
from ragline.cli import app
from ragline.config import ConfigError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def rag(fake_embedder, fake_index, kv_store):
    settings = Settings(embedding_dimensions=4, num_retries=0)
    rag = Ragline(embedder=fake_embedder, index=fake_index, kv_store=kv_store, settings=settings)
    with patch("ragline.cli.create_ragline", return_value=rag):
        yield rag


@pytest.fixture
def doc_path(temp_dir):
    path = os.path.join(temp_dir, "guide.md")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Auth\nUse an API key.\n# Limits\nRate limits apply.")
    return path


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "ragline" in result.output.lower()

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "ragline" in result.output


class TestIngestCommand:
    def test_ingest(self, runner, rag, doc_path):
        result = runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        assert result.exit_code == 0, result.output
        assert "Ingested guide.md as guide" in result.output
        assert "2 chunks, 2 vectors" in result.output

    def test_ingest_nonexistent_file(self, runner, rag):
        result = runner.invoke(app, ["ingest", "/nonexistent/file.md"])
        assert result.exit_code != 0

    def test_ingest_rejects_reserved_id(self, runner, rag, doc_path):
        result = runner.invoke(app, ["ingest", doc_path, "--id", "team:guide"])

        assert result.exit_code == 1
        assert "Invalid document id" in result.output
        assert not isinstance(result.exception, ValueError)

    def test_ingest_with_invalid_saved_options(self, runner, rag, doc_path):
        asyncio.run(rag.kv_store.set("settings", {"overlap": -5}))

        result = runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_config_error(self, runner, doc_path):
        error = ConfigError(message="Invalid settings: bad", suggestion="Fix it")
        with patch("ragline.cli.create_ragline", return_value=error):
            result = runner.invoke(app, ["ingest", doc_path])

        assert result.exit_code == 1
        assert "Invalid settings" in result.output


class TestStatusCommand:
    def test_no_documents(self, runner, rag):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "No documents registered" in result.output

    def test_lists_documents(self, runner, rag, doc_path):
        runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "guide" in result.output
        assert "completed" in result.output

    def test_unknown_document(self, runner, rag):
        result = runner.invoke(app, ["status", "missing"])
        assert result.exit_code == 1
        assert "Document not found: missing" in result.output


class TestSearchCommand:
    def test_search_json(self, runner, rag, doc_path):
        runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        result = runner.invoke(app, ["search", "API key", "--json"])

        assert result.exit_code == 0
        results = json.loads(result.output)
        assert {r["metadata"]["section"] for r in results} == {"Auth", "Limits"}

    def test_search_no_results(self, runner, rag):
        result = runner.invoke(app, ["search", "anything"])
        assert result.exit_code == 0
        assert "No results found" in result.output


class TestDeleteCommand:
    def test_delete(self, runner, rag, doc_path):
        runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        result = runner.invoke(app, ["delete", "guide", "--force"])

        assert result.exit_code == 0
        assert "Deleted guide (2 vectors)" in result.output

    def test_delete_cancelled(self, runner, rag):
        result = runner.invoke(app, ["delete", "guide"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output

    def test_delete_unknown(self, runner, rag):
        result = runner.invoke(app, ["delete", "missing", "--force"])
        assert result.exit_code == 1


class TestStatsCommand:
    def test_stats(self, runner, rag, doc_path):
        runner.invoke(app, ["ingest", doc_path, "--id", "guide"])

        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Vectors" in result.output
        assert "fake/embedding" in result.output


class TestConfigCommand:
    def test_config_shows_settings(self, runner, temp_dir):
        config_path = os.path.join(temp_dir, "ragline.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            f.write("data_dir: ./store\nsettings:\n  default_k: 9\n")

        result = runner.invoke(app, ["config", "--config", config_path])

        assert result.exit_code == 0
        assert "default_k" in result.output
        assert "embedding_model" in result.output

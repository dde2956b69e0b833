"""Shared fixtures for the codedoc test suite.

All tests run with zero network access: the content producer is a fake,
HTTP backends and publishers are exercised through ``responses``.
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure the repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from codedoc.generator import DocGenerator  # noqa: E402
from tests.fixtures import SAMPLE_APP_TREE, FakeProducer, write_tree  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep a developer's CODEDOC_* variables and .env out of the tests."""
    for name in list(os.environ):
        if name.startswith(("CODEDOC_", "JIRA_", "CONFLUENCE_", "AZURE_OPENAI_", "OLLAMA_")) or name in (
            "OPENAI_API_KEY", "CLAUDE_API_KEY", "GEMINI_API_KEY",
        ):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def producer():
    return FakeProducer()


@pytest.fixture
def source_root(tmp_path):
    """Temp ``app/`` directory holding a small Laravel-like tree."""
    root = tmp_path / "app"
    write_tree(root, SAMPLE_APP_TREE)
    return root


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "documentation"


@pytest.fixture
def make_generator(source_root, output_dir, producer):
    """Factory for generators wired to the fake producer, with no rate-limit delay."""

    def _make(**overrides):
        options = {
            "source_dirs": [str(source_root)],
            "output_dir": output_dir,
            "producer": producer,
            "model": "gpt-4o-mini",
            "api_provider": "openai",
            "rate_limit_delay": 0,
        }
        options.update(overrides)
        return DocGenerator(**options)

    return _make

"""Shared fixtures for Tilbot tests.

Engines run with every delay scaled to zero so the suite never sleeps.
"""

import json
import random
from pathlib import Path

import pytest

from tilbot.core.message_sink import BufferedMessageSink
from tilbot.data.provider import InMemoryDataProvider
from tests.factories import (
    connector,
    fast_settings,
    make_document,
    mc_block,
    text_block,
)

BOOK_ROWS = [
    {"title": "Dune", "author": "Frank Herbert"},
    {"title": "Emma", "author": "Jane Austen"},
]


@pytest.fixture
def sink() -> BufferedMessageSink:
    return BufferedMessageSink()


@pytest.fixture
def settings():
    return fast_settings()


@pytest.fixture
def books_provider() -> InMemoryDataProvider:
    """In-memory provider with a small ``books`` table and a seeded rng."""
    return InMemoryDataProvider({"books": BOOK_ROWS}, rng=random.Random(7))


@pytest.fixture
def pick_document() -> dict:
    """MC block with Yes/No answers leading to two Text blocks."""
    return make_document(
        {
            "1": mc_block("Pick", [connector("Yes", 2), connector("No", 3)]),
            "2": text_block("You said yes", [connector("again", 1)]),
            "3": text_block("You said no", [connector("again", 1)]),
        },
        start=1,
    )


@pytest.fixture
def project_dir(tmp_path: Path, pick_document: dict) -> Path:
    """Directory holding tilbot.yaml, project.json and a books table."""
    (tmp_path / "project.json").write_text(json.dumps(pick_document), encoding="utf-8")
    (tmp_path / "var").mkdir()
    (tmp_path / "var" / "books.csv").write_text(
        "title,author\nDune,Frank Herbert\nEmma,Jane Austen\n", encoding="utf-8"
    )
    (tmp_path / "tilbot.yaml").write_text(
        "version: '1.0'\n"
        "project: project.json\n"
        "settings:\n"
        "  delays:\n"
        "    time_scale: 0\n"
        "  data:\n"
        "    backend: csv\n"
        "    path: var\n",
        encoding="utf-8",
    )
    return tmp_path

"""Tests for the host bridge provider."""

from unittest.mock import AsyncMock

import pytest

from tilbot.core.errors import ExternalQueryError
from tilbot.data.bridge import BridgeDataProvider


@pytest.mark.asyncio
async def test_random_row_uses_random_channel():
    # Arrange
    invoke = AsyncMock(return_value={"title": "Dune"})
    provider = BridgeDataProvider(invoke)

    # Act
    row = await provider.random_row("books")

    # Assert
    assert row == {"title": "Dune"}
    invoke.assert_awaited_once_with("query-db-random", {"db": "books"})


@pytest.mark.asyncio
async def test_random_row_none_passes_through():
    provider = BridgeDataProvider(AsyncMock(return_value=None))

    assert await provider.random_row("books") is None


@pytest.mark.asyncio
async def test_random_row_rejects_non_row_answer():
    provider = BridgeDataProvider(AsyncMock(return_value=["Dune"]))

    with pytest.raises(ExternalQueryError):
        await provider.random_row("books")


@pytest.mark.asyncio
async def test_row_matches_sends_table_column_and_value():
    invoke = AsyncMock(return_value=[{"title": "Dune"}])
    provider = BridgeDataProvider(invoke)

    assert await provider.row_matches("books", "title", "Dune") is True
    invoke.assert_awaited_once_with("query-db", {"db": "books", "col": "title", "val": "Dune"})


@pytest.mark.asyncio
async def test_empty_result_is_no_match():
    provider = BridgeDataProvider(AsyncMock(return_value=[]))

    assert await provider.row_matches("books", "title", "Alien") is False

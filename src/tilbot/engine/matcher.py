"""Matching user utterances against connector labels.

Label grammar, by block type:

- MC: the utterance must equal the label exactly.
- Text, List, AutoComplete, Trigger: the label is one or more segments
  joined by ``" [and] "``, all of which must match. ``[else]`` is the
  fallback edge and is only taken when nothing else on the block matched.

A segment is either a table lookup, ``[table.column]`` or the negated
``[!table.column]``, or plain text that must occur in the utterance
(case-insensitive). Lookups compare the whitespace tokens of the utterance
against a row-valued session variable named ``table`` or, when no such
variable exists, against the external table through the data provider.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from tilbot.config.models import BaseBlock, Connector
from tilbot.core.constants import (
    AND_SEPARATOR,
    BARCODE_PREFIX,
    LABELLED_BLOCK_TYPES,
    BlockType,
    EventType,
)
from tilbot.core.templating import TAG_PATTERN
from tilbot.core.types import Row
from tilbot.engine.navigator import TriggerRef
from tilbot.engine.variables import VariableStore

logger = logging.getLogger(__name__)

RANDOM_ROW_PATTERN = re.compile(r"^random\((?P<table>[^)]*)\)", re.IGNORECASE)


class LookupProvider(Protocol):
    """Data provider whose failures have already been absorbed."""

    async def random_row(self, table: str) -> Row | None: ...

    async def row_matches(self, table: str, column: str, value: str) -> bool | None: ...


@dataclass(frozen=True)
class Lookup:
    """Parsed ``[table.column]`` segment."""

    table: str
    column: str
    negated: bool = False


@dataclass(frozen=True)
class Match:
    """Outcome of matching an utterance.

    Attributes:
        connector: Winning connector, None when nothing matched
        captured: Value the winning label captured
        payload: Input handed to the next block's message template
        trigger: Trigger block that owns the connector, for global matches
    """

    connector: Connector | None = None
    captured: Any = None
    payload: Any = None
    trigger: TriggerRef | None = None

    def __bool__(self) -> bool:
        return self.connector is not None


NO_MATCH = Match()


def parse_lookup(segment: str) -> Lookup | None:
    """Return the lookup a segment asks for, or None for plain text.

    Examples:
        >>> parse_lookup("[books.title]")
        Lookup(table='books', column='title', negated=False)
        >>> parse_lookup("[!books.title]").negated
        True
        >>> parse_lookup("hello") is None
        True
    """
    found = TAG_PATTERN.search(segment)
    if found is None:
        return None
    parts = found.group(1).split(".")
    if len(parts) != 2:
        return None
    table, column = parts
    negated = table.startswith("!")
    if negated:
        table = table[1:]
    return Lookup(table, column, negated)


def candidate_tokens(utterance: str) -> list[str]:
    """Whitespace tokens of an utterance, without scanner and punctuation noise."""
    tokens = []
    for token in utterance.split():
        cleaned = token.removeprefix(BARCODE_PREFIX).rstrip("?!")
        if cleaned:
            tokens.append(cleaned)
    return tokens


class Matcher:
    """Evaluates connector labels for one session."""

    def __init__(self, variables: VariableStore, data_provider: LookupProvider) -> None:
        self.variables = variables
        self.data_provider = data_provider

    async def match(self, block: BaseBlock, utterance: str) -> Match:
        """Find the connector of ``block`` that ``utterance`` selects."""
        if block.type == BlockType.MC:
            return self._match_exact(block.connectors, utterance)
        if block.type in LABELLED_BLOCK_TYPES:
            return await self._match_labels(block.connectors, utterance)
        return NO_MATCH

    async def match_triggers(self, triggers: Iterable[TriggerRef], utterance: str) -> Match:
        """Scan every Trigger block; a Trigger ``[else]`` is the last resort."""
        fallback = NO_MATCH
        for ref in triggers:
            for connector in ref.block.connectors:
                if connector.target is None:
                    continue
                if connector.is_else:
                    if not fallback:
                        fallback = Match(connector, trigger=ref)
                    continue
                captured = await self.match_label(connector.label, utterance)
                if captured is not None:
                    return Match(connector, captured, captured, trigger=ref)
        return fallback

    async def match_label(self, label: str, utterance: str) -> Any:
        """Evaluate a conjunctive label.

        Returns:
            The value captured by the last segment, or None if any segment failed.
        """
        captured: Any = None
        for segment in label.split(AND_SEPARATOR):
            captured = await self.match_segment(segment, utterance)
            if captured is None:
                return None
        return captured

    async def match_segment(self, segment: str, utterance: str) -> Any:
        """Evaluate one segment; returns the captured value or None."""
        lookup = parse_lookup(segment)
        if lookup is None:
            haystack = utterance.replace(BARCODE_PREFIX, "", 1).lower()
            return utterance if segment.lower() in haystack else None

        row = self.variables.get_row(lookup.table)
        if row is not None:
            return self._match_row(row, lookup, utterance)
        return await self._match_table(lookup, utterance)

    async def apply_events(self, connector: Connector) -> None:
        """Apply the variable events of a winning connector, in order."""
        for event in connector.events:
            if event.type != EventType.VARIABLE:
                continue
            if not event.var_name:
                logger.debug("Variable event without a name; skipped")
                continue

            value = event.var_value
            tag = TAG_PATTERN.search(value) if value else None
            if tag is None:
                self.variables.set(event.var_name, value)
                continue

            random_row = RANDOM_ROW_PATTERN.match(tag.group(1))
            if random_row is None:
                logger.debug(f"Unsupported variable lookup {value!r} for {event.var_name}")
                continue

            row = await self.data_provider.random_row(random_row.group("table"))
            if row is not None:
                self.variables.set(event.var_name, row)

    def _match_exact(self, connectors: list[Connector], utterance: str) -> Match:
        for connector in connectors:
            if connector.target is not None and connector.label == utterance:
                return Match(connector, utterance)
        return NO_MATCH

    async def _match_labels(self, connectors: list[Connector], utterance: str) -> Match:
        fallback = NO_MATCH
        for connector in connectors:
            if connector.target is None:
                continue
            if connector.is_else:
                if not fallback:
                    fallback = Match(connector, utterance, utterance)
                continue
            captured = await self.match_label(connector.label, utterance)
            if captured is not None:
                return Match(connector, captured, captured)
        return fallback

    def _match_row(self, row: Mapping[str, Any], lookup: Lookup, utterance: str) -> str | None:
        cell = row.get(lookup.column)
        alternatives = [alt for alt in str(cell).split("|") if alt] if cell is not None else []
        for token in candidate_tokens(utterance):
            hit = any(alt in token for alt in alternatives)
            if hit != lookup.negated:
                return token
        return None

    async def _match_table(self, lookup: Lookup, utterance: str) -> str | None:
        for token in candidate_tokens(utterance):
            found = await self.data_provider.row_matches(lookup.table, lookup.column, token)
            if found is None:
                return None
            if found != lookup.negated:
                return token
        return None

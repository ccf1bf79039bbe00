"""Core constants and enums."""

from enum import Enum


class BlockType(str, Enum):
    """Kinds of block a project graph can contain."""

    TEXT = "Text"
    MC = "MC"
    LIST = "List"
    AUTOCOMPLETE = "AutoComplete"
    AUTO = "Auto"
    GROUP = "Group"
    TRIGGER = "Trigger"


class EngineState(str, Enum):
    """Lifecycle state of a session engine."""

    awaiting_emission = "awaiting_emission"
    awaiting_input = "awaiting_input"
    terminal = "terminal"


class EventType(str, Enum):
    """Side effects a connector can declare."""

    MESSAGE = "message"
    VARIABLE = "variable"


# Connector label that marks the fallback edge of a block
ELSE_LABEL = "[else]"

# Separator of conjunctive label segments
AND_SEPARATOR = " [and] "

# Target id that leaves the enclosing group
EXIT_BLOCK_ID = "-1"

# Prefix that barcode scanners put in front of scanned values
BARCODE_PREFIX = "barcode:"

# Block types whose connectors are matched with the label grammar
LABELLED_BLOCK_TYPES = frozenset(
    t.value for t in (BlockType.TEXT, BlockType.LIST, BlockType.TRIGGER, BlockType.AUTOCOMPLETE)
)

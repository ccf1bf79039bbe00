"""Project graph models.

A project document is a tree of block graphs: the root ``blocks`` mapping plus
one nested mapping per Group block. Ids are the mapping keys; numeric ids in
JSON are normalised to strings so ``1``, ``"1"`` and a target of ``1`` all
address the same block.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tilbot.core.constants import AND_SEPARATOR, ELSE_LABEL, BlockType

# DSL version constants
SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"


class GraphModel(BaseModel):
    """Base for project document models."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


def _with_ids(blocks: Any) -> Any:
    """Copy each mapping key into the block's ``id`` field."""
    if not isinstance(blocks, dict):
        return blocks
    return {
        str(key): {**raw, "id": str(key)} if isinstance(raw, dict) else raw
        for key, raw in blocks.items()
    }


class EventConfig(GraphModel):
    """Side effect attached to a connector."""

    type: Literal["message", "variable"] = Field(description="Event kind")
    var_name: str | None = Field(default=None, description="Variable to assign")
    var_value: str | None = Field(
        default=None, description="Literal value or '[random(table)]' lookup"
    )


class Connector(GraphModel):
    """Labelled outgoing edge of a block."""

    label: str = Field(default="", description="Matching expression")
    targets: list[str] = Field(
        default_factory=list,
        description="Destination block ids; only the first is followed",
    )
    events: list[EventConfig] = Field(default_factory=list)
    from_id: str | None = Field(
        default=None, description="Inner block id this group boundary edge leaves from"
    )

    @property
    def target(self) -> str | None:
        """First target, or None when the edge goes nowhere."""
        return self.targets[0] if self.targets else None

    @property
    def is_else(self) -> bool:
        return self.label == ELSE_LABEL

    @property
    def segments(self) -> list[str]:
        """Conjunctive parts of the label."""
        return self.label.split(AND_SEPARATOR)


class BaseBlock(GraphModel):
    """Fields shared by every block type."""

    id: str = Field(default="", description="Block id (mapping key)")
    content: str = Field(default="", description="Message template")
    delay: float = Field(default=0.0, ge=0, description="Seconds to wait before emission")
    connectors: list[Connector] = Field(default_factory=list)

    @property
    def is_exhaustive(self) -> bool:
        """Whether a failed match on this block skips the trigger scan."""
        return False

    def params(self) -> dict[str, Any]:
        """Type-specific payload delivered alongside the message."""
        return {}


class TextBlock(BaseBlock):
    type: Literal["Text"] = "Text"


class MCBlock(BaseBlock):
    """Multiple choice: the connector labels are the options."""

    type: Literal["MC"] = "MC"

    @property
    def is_exhaustive(self) -> bool:
        return True

    def params(self) -> dict[str, Any]:
        return {"options": [connector.label for connector in self.connectors]}


class ListBlock(BaseBlock):
    type: Literal["List"] = "List"
    items: list[str] = Field(default_factory=list)
    text_input: bool = False
    number_input: bool = False

    def params(self) -> dict[str, Any]:
        return {
            "options": list(self.items),
            "text_input": self.text_input,
            "number_input": self.number_input,
        }


class AutoCompleteBlock(BaseBlock):
    type: Literal["AutoComplete"] = "AutoComplete"
    options: list[str] = Field(default_factory=list)

    def params(self) -> dict[str, Any]:
        return {"options": list(self.options)}


class AutoBlock(BaseBlock):
    """Message without a prompt; advances on its own."""

    type: Literal["Auto"] = "Auto"

    @property
    def next_target(self) -> str | None:
        if not self.connectors:
            return None
        return self.connectors[0].target


class TriggerBlock(BaseBlock):
    """Globally scanned fallback handler."""

    type: Literal["Trigger"] = "Trigger"


class GroupBlock(BaseBlock):
    """Nested sub-graph with its own starting block.

    Connectors of a group are its boundary edges: each one names, through
    ``from_id``, the inner block whose exit edge it continues.
    """

    type: Literal["Group"] = "Group"
    starting_block_id: str | None = Field(default=None, description="First inner block")
    blocks: dict[str, "Block"] = Field(default_factory=dict)

    @field_validator("blocks", mode="before")
    @classmethod
    def _inject_ids(cls, value: Any) -> Any:
        return _with_ids(value)


Block = Annotated[
    TextBlock
    | MCBlock
    | ListBlock
    | AutoCompleteBlock
    | AutoBlock
    | GroupBlock
    | TriggerBlock,
    Field(discriminator="type"),
]

GroupBlock.model_rebuild()


class TableConfig(GraphModel):
    """Declaration of an external data table."""

    type: str = Field(default="csv", description="Table backend")
    csvfile: str | None = Field(default=None, description="CSV file name")


class Project(GraphModel):
    """Root of a project document."""

    starting_block_id: str | None = Field(default=None, description="First block to run")
    blocks: dict[str, Block] = Field(default_factory=dict)
    variables: dict[str, TableConfig] = Field(default_factory=dict)

    @field_validator("blocks", mode="before")
    @classmethod
    def _inject_ids(cls, value: Any) -> Any:
        return _with_ids(value)

    def iter_groups(self) -> list[tuple[list[str], GroupBlock]]:
        """Every group of the tree with the path of its parent scope, pre-order."""
        found: list[tuple[list[str], GroupBlock]] = []

        def walk(blocks: dict[str, Any], path: list[str]) -> None:
            for block in blocks.values():
                if block.type == BlockType.GROUP:
                    found.append((path, block))
                    walk(block.blocks, [*path, block.id])

        walk(self.blocks, [])
        return found

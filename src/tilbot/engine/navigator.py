"""Position tracking inside the nested block graph.

The nesting path is kept as an explicit stack of scopes. The root scope holds
the project's ``blocks``; entering a group pushes a scope holding that group's
``blocks``. Ids are only ever looked up in the innermost scope, so resolving a
block never walks the tree again.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass

from tilbot.config.models import AutoBlock, BaseBlock, GroupBlock, Project
from tilbot.core.constants import EXIT_BLOCK_ID, BlockType
from tilbot.core.errors import GraphResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scope:
    """One level of the nesting stack."""

    group_id: str | None
    blocks: Mapping[str, BaseBlock]


@dataclass(frozen=True)
class TriggerRef:
    """A Trigger block and the group path of the scope that owns it."""

    path: tuple[str, ...]
    block: BaseBlock


@dataclass(frozen=True)
class Move:
    """A resolved edge: the scope stack and block id it leads to."""

    scopes: tuple[Scope, ...]
    target: str


class Navigator:
    """Tracks the current block id and the group path of one session."""

    def __init__(self, project: Project) -> None:
        self.project = project
        self._scopes: list[Scope] = [Scope(None, project.blocks)]
        self.current_block_id: str | None = project.starting_block_id
        self._triggers = tuple(self._collect_triggers(project.blocks, ()))

    @property
    def path(self) -> list[str]:
        """Group ids from the root down to the current scope."""
        return [scope.group_id for scope in self._scopes[1:] if scope.group_id is not None]

    @property
    def depth(self) -> int:
        return len(self._scopes) - 1

    @property
    def triggers(self) -> tuple[TriggerRef, ...]:
        """Every Trigger block of the project, in declaration order."""
        return self._triggers

    def resolve(self, block_id: str | None = None) -> BaseBlock:
        """Return the block ``block_id`` (default: the current one) addresses.

        Raises:
            GraphResolutionError: If the id does not exist in the current scope
        """
        if block_id is None:
            block_id = self.current_block_id
        block = self._scopes[-1].blocks.get(block_id) if block_id is not None else None
        if block is None:
            raise GraphResolutionError(block_id, self.path)
        return block

    def walk(self, path: Sequence[str]) -> list[Scope]:
        """Build the scope stack for a group path, starting at the root.

        Raises:
            GraphResolutionError: If a path segment is missing or not a group
        """
        scopes = [Scope(None, self.project.blocks)]
        for index, group_id in enumerate(path):
            group = scopes[-1].blocks.get(group_id)
            if group is None or group.type != BlockType.GROUP:
                raise GraphResolutionError(group_id, list(path[:index]))
            scopes.append(Scope(group_id, group.blocks))
        return scopes

    def enter_group(self, block: GroupBlock) -> str:
        """Descend into ``block`` and move to its starting block."""
        if block.starting_block_id is None:
            raise GraphResolutionError(None, [*self.path, block.id])
        self._scopes.append(Scope(block.id, block.blocks))
        self.current_block_id = block.starting_block_id
        logger.debug(f"Entered group {block.id}, path={self.path}")
        return block.starting_block_id

    def exit_group(self, from_id: str) -> str | None:
        """Leave the current group through the boundary edge of ``from_id``."""
        return self.follow(EXIT_BLOCK_ID, from_id)

    def follow_auto_chain(self, block: AutoBlock) -> str | None:
        """Advance from an Auto block along its first connector's first target.

        Returns:
            The new current block id, or None when the Auto block stalls.
        """
        target = block.next_target
        if target is None:
            logger.debug(f"Auto block {block.id} has no target; stalling")
            return None
        return self.follow(target, block.id)

    def follow(self, target: str, from_id: str) -> str | None:
        """Move along an edge from ``from_id`` to ``target``.

        A target of ``-1`` leaves the enclosing group: the group's boundary
        connector whose ``from_id`` names the block we left decides where to
        go next, which may be another ``-1``. The move is all or nothing; when
        no boundary edge fits, position and path stay as they were.

        Returns:
            The new current block id, or None when the move did not resolve.

        Raises:
            GraphResolutionError: If a group on the path has vanished
        """
        move = self.plan(target, from_id)
        return self.commit(move) if move is not None else None

    def jump(self, path: Sequence[str], target: str, from_id: str) -> str | None:
        """Follow an edge that lives in the scope at ``path``."""
        move = self.plan(target, from_id, path)
        return self.commit(move) if move is not None else None

    def plan(
        self, target: str, from_id: str, path: Sequence[str] | None = None
    ) -> Move | None:
        """Work out where an edge leads without moving.

        Args:
            target: Edge target, possibly ``-1``
            from_id: Block the edge leaves from
            path: Group path of the scope owning the edge; the current one
                when omitted

        Returns:
            The move to hand to :meth:`commit`, or None when it cannot happen.

        Raises:
            GraphResolutionError: If a group on the path has vanished
        """
        scopes = list(self._scopes) if path is None else self.walk(path)
        while target == EXIT_BLOCK_ID:
            if len(scopes) == 1:
                logger.warning(f"Exit edge from block {from_id} at project root; ignoring")
                return None

            group_id = scopes.pop().group_id
            group = scopes[-1].blocks.get(group_id) if group_id is not None else None
            if group is None:
                raise GraphResolutionError(group_id, [s.group_id for s in scopes[1:]])

            boundary = next(
                (c for c in group.connectors if c.from_id == from_id and c.target is not None),
                None,
            )
            if boundary is None:
                logger.warning(
                    f"Group {group_id} has no boundary connector from block {from_id}; ignoring"
                )
                return None

            from_id = group_id
            target = boundary.target

        return Move(tuple(scopes), target)

    def commit(self, move: Move) -> str:
        """Apply a move returned by :meth:`plan`."""
        self._scopes = list(move.scopes)
        self.current_block_id = move.target
        return move.target

    def _collect_triggers(
        self, blocks: Mapping[str, BaseBlock], path: tuple[str, ...]
    ) -> Iterator[TriggerRef]:
        for block in blocks.values():
            if block.type == BlockType.TRIGGER:
                yield TriggerRef(path, block)
            elif isinstance(block, GroupBlock):
                yield from self._collect_triggers(block.blocks, (*path, block.id))

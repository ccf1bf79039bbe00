"""Message content templating.

Block content may embed one ``[name]`` placeholder. Only the first
placeholder of a message is considered:

- a mapping payload fills it by key: ``"Hi [name]"`` + ``{"name": "Ann"}``
- a non-empty string payload replaces the literal ``[input]`` token
- otherwise ``[table.column]`` reads the column of a row-valued variable

Anything else leaves the content untouched.
"""

import re
from collections.abc import Mapping
from typing import Any

TAG_PATTERN = re.compile(r"\[([^\]]+)\]")

INPUT_TOKEN = "[input]"


def render_content(
    content: str,
    payload: Any = None,
    variables: Mapping[str, Any] | None = None,
) -> str:
    """Substitute the first placeholder of ``content``.

    Args:
        content: Message template
        payload: Captured value of the transition that led here
        variables: Session variables

    Returns:
        Rendered message text.

    Examples:
        >>> render_content("You said [input]", "hello")
        'You said hello'
        >>> render_content("Try [books.title]", None, {"books": {"title": "Dune"}})
        'Try Dune'
    """
    match = TAG_PATTERN.search(content)
    if match is None:
        return content

    name = match.group(1)

    if isinstance(payload, Mapping):
        if name not in payload:
            return content
        return content[: match.start()] + str(payload[name]) + content[match.end() :]

    if isinstance(payload, str) and payload:
        return content.replace(INPUT_TOKEN, payload, 1)

    parts = name.split(".")
    if len(parts) == 2 and variables:
        table, column = parts
        row = variables.get(table)
        if isinstance(row, Mapping) and column in row:
            return content.replace(match.group(0), str(row[column]), 1)

    return content

"""Marker protocol for the generated block inside user-owned files.

A generated block looks like::

    <!-- BTW_START -->
    <!-- BTW:<workflow-id>:<ISO-8601 timestamp> -->

    ...rendered content...
    <!-- BTW_END -->

The marker line is the only record of which workflow owns the block and
when it was written. Everything outside the sentinels belongs to the user.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .constants import END_SENTINEL, MARKER_TOOL, START_SENTINEL
from .models import now_iso

MARKER_PATTERN = re.compile(
    rf"<!-- {re.escape(MARKER_TOOL)}:(?P<workflow_id>[^:\s]+):(?P<timestamp>[^\s>]+) -->",
)

# Placed between preserved user content and the block in merge mode.
MERGE_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class MarkerInfo:
    """Owner and write time recorded in a marker line."""

    workflow_id: str
    timestamp: str


@dataclass(frozen=True)
class MarkerSpan:
    """A host file split around the engine-owned span.

    ``before + block + after`` always reproduces the original content.
    """

    before: str
    block: str
    after: str
    wrapped: bool


def render_marker(workflow_id: str, timestamp: str | None = None) -> str:
    """Render the marker comment line for ``workflow_id``."""
    return f"<!-- {MARKER_TOOL}:{workflow_id}:{timestamp or now_iso()} -->"


def wrap(body: str) -> str:
    """Surround ``body`` with the start and end sentinel lines."""
    return f"{START_SENTINEL}\n{body}\n{END_SENTINEL}"


def build_block(workflow_id: str, body: str, timestamp: str | None = None) -> str:
    """Assemble a complete generated block with a fresh marker."""
    return wrap(f"{render_marker(workflow_id, timestamp)}\n\n{body}")


def _find_marker_line(content: str) -> tuple[int, str, re.Match[str]] | None:
    """Return offset, raw line and match of the first line that is a marker."""
    offset = 0
    for line in content.splitlines(keepends=True):
        match = MARKER_PATTERN.fullmatch(line.strip())
        if match:
            return offset, line, match
        offset += len(line)
    return None


def extract(content: str) -> MarkerSpan | None:
    """Locate the generated block in ``content``.

    With both sentinels present (end after start) the block is the exact
    slice from the start sentinel through the end sentinel. Without them, a
    lone marker line is claimed on its own, since there is no safe way to
    tell how much of the surrounding text was generated.

    Returns:
        The split content, or None when there is nothing engine-owned
    """
    start = content.find(START_SENTINEL)
    if start != -1:
        end = content.find(END_SENTINEL, start + len(START_SENTINEL))
        if end != -1:
            stop = end + len(END_SENTINEL)
            return MarkerSpan(
                before=content[:start],
                block=content[start:stop],
                after=content[stop:],
                wrapped=True,
            )

    found = _find_marker_line(content)
    if found is None:
        return None

    offset, line, _ = found
    return MarkerSpan(
        before=content[:offset],
        block=line,
        after=content[offset + len(line):],
        wrapped=False,
    )


def parse(content: str) -> MarkerInfo | None:
    """Read the owning workflow id and timestamp from ``content``."""
    found = _find_marker_line(content)
    if found is None:
        return None
    _, _, match = found
    return MarkerInfo(
        workflow_id=match.group("workflow_id"),
        timestamp=match.group("timestamp"),
    )


def strip(content: str) -> str:
    """Remove the generated block and return the remaining user content.

    Only engine-owned text is removed: the block itself and, for a wrapped
    block, the merge separator directly in front of it. Everything else is
    returned byte for byte.
    """
    span = extract(content)
    if span is None:
        return content
    if not span.wrapped:
        return span.before + span.after

    before = span.before
    if before.endswith(MERGE_SEPARATOR):
        before = before[: -len(MERGE_SEPARATOR)]
    return before + span.after


def merge(existing: str, block: str) -> str:
    """Put ``block`` into ``existing`` without touching user content.

    A previous wrapped block is replaced in place. Otherwise the block is
    appended after the merge separator.
    """
    span = extract(existing)
    if span is not None and span.wrapped:
        return span.before + block + span.after

    user_content = existing if span is None else span.before + span.after
    if not user_content.strip():
        return block
    return f"{user_content}{MERGE_SEPARATOR}{block}"

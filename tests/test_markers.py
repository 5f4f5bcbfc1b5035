"""Tests for the marker protocol."""

from btw import markers
from btw.constants import END_SENTINEL, START_SENTINEL

TIMESTAMP = "2025-01-01T12:00:00.000Z"


class TestRenderAndParse:
    """Test marker rendering and parsing."""

    def test_render_marker_format(self) -> None:
        """Marker line embeds tool, workflow id and timestamp."""
        assert markers.render_marker("demo", TIMESTAMP) == f"<!-- BTW:demo:{TIMESTAMP} -->"

    def test_render_marker_defaults_to_now(self) -> None:
        """Without a timestamp the marker is stamped with the current UTC time."""
        info = markers.parse(markers.render_marker("demo"))
        assert info is not None
        assert info.timestamp.endswith("Z")

    def test_parse_returns_workflow_and_timestamp(self) -> None:
        """Parsing recovers exactly what was rendered."""
        content = f"# Notes\n\n{markers.render_marker('my-flow', TIMESTAMP)}\n\nbody\n"
        info = markers.parse(content)
        assert info == markers.MarkerInfo(workflow_id="my-flow", timestamp=TIMESTAMP)

    def test_parse_without_marker(self) -> None:
        """Plain content has no owner."""
        assert markers.parse("# Just notes\n<!-- a comment -->\n") is None

    def test_parse_ignores_marker_embedded_in_text(self) -> None:
        """Only a line that is entirely a marker counts."""
        content = f"see {markers.render_marker('demo', TIMESTAMP)} for details"
        assert markers.parse(content) is None


class TestExtract:
    """Test locating the generated block."""

    def test_wrapped_block(self) -> None:
        """Both sentinels: the span covers start through end inclusive."""
        block = markers.build_block("demo", "generated", TIMESTAMP)
        content = f"before\n\n{block}\n\nafter\n"

        span = markers.extract(content)

        assert span is not None
        assert span.wrapped
        assert span.block == block
        assert span.before == "before\n\n"
        assert span.after == "\n\nafter\n"
        assert span.before + span.block + span.after == content

    def test_block_starts_and_ends_with_sentinels(self) -> None:
        """build_block produces start sentinel, marker, body and end sentinel."""
        block = markers.build_block("demo", "generated", TIMESTAMP)
        lines = block.split("\n")
        assert lines[0] == START_SENTINEL
        assert lines[1] == f"<!-- BTW:demo:{TIMESTAMP} -->"
        assert lines[-1] == END_SENTINEL

    def test_lone_marker_fallback_claims_only_the_line(self) -> None:
        """Without sentinels only the marker line is engine-owned."""
        marker = markers.render_marker("demo", TIMESTAMP)
        content = f"user text\n{marker}\ngenerated leftovers\n"

        span = markers.extract(content)

        assert span is not None
        assert not span.wrapped
        assert span.block == f"{marker}\n"
        assert span.before == "user text\n"
        assert span.after == "generated leftovers\n"

    def test_no_block(self) -> None:
        """Nothing to extract from plain content."""
        assert markers.extract("# Notes\n\nDo not delete.") is None

    def test_only_start_sentinel_without_marker(self) -> None:
        """An unmatched start sentinel is not a block."""
        assert markers.extract(f"notes\n{START_SENTINEL}\nmore") is None

    def test_sentinels_in_wrong_order(self) -> None:
        """An end sentinel before the start sentinel is not a block."""
        content = f"{END_SENTINEL}\nmiddle\n{START_SENTINEL}\n"
        assert markers.extract(content) is None


class TestStripAndMerge:
    """Test removing and merging generated blocks."""

    def test_strip_removes_only_the_wrapped_block(self) -> None:
        """User content on both sides of the block survives byte for byte."""
        block = markers.build_block("demo", "generated", TIMESTAMP)
        content = f"top\n\n{block}\n\nbottom\n"
        assert markers.strip(content) == "top\n\n\n\nbottom\n"

    def test_strip_whole_file_block(self) -> None:
        """A file that is only the block strips to nothing."""
        assert markers.strip(markers.build_block("demo", "x", TIMESTAMP)) == ""

    def test_strip_lone_marker_removes_only_that_line(self) -> None:
        """Legacy content keeps everything except the marker line."""
        marker = markers.render_marker("old", "2024-01-01T00:00:00.000Z")
        assert markers.strip(f"line1\n{marker}\nline2\n") == "line1\nline2\n"

    def test_strip_without_block_is_identity(self) -> None:
        """Unmanaged content is returned unchanged, whitespace included."""
        assert markers.strip("  notes\n\n") == "  notes\n\n"

    def test_merge_into_user_content(self) -> None:
        """Merge appends the block after a separator."""
        block = markers.build_block("demo", "generated", TIMESTAMP)
        merged = markers.merge("# My Notes\n\nDo not delete.", block)
        assert merged == f"# My Notes\n\nDo not delete.{markers.MERGE_SEPARATOR}{block}"

    def test_merge_then_strip_restores_user_content(self) -> None:
        """The separator is removed together with the block."""
        original = "# My Notes\n\nDo not delete."
        block = markers.build_block("demo", "generated", TIMESTAMP)
        assert markers.strip(markers.merge(original, block)) == original

    def test_merge_then_strip_keeps_trailing_newline(self) -> None:
        """Trailing whitespace in user content is not trimmed."""
        original = "# My Notes\n\nDo not delete.\n"
        block = markers.build_block("demo", "generated", TIMESTAMP)
        assert markers.strip(markers.merge(original, block)) == original

    def test_merge_replaces_previous_block_in_place(self) -> None:
        """Re-merging never stacks blocks or moves surrounding text."""
        first = markers.build_block("demo", "first", TIMESTAMP)
        second = markers.build_block("demo", "second", TIMESTAMP)
        merged = markers.merge(f"notes\n\n{first}\n\ntail\n", second)

        assert merged == f"notes\n\n{second}\n\ntail\n"
        assert merged.count(START_SENTINEL) == 1

    def test_merge_over_lone_marker(self) -> None:
        """A legacy marker line is dropped before the block is appended."""
        marker = markers.render_marker("demo", TIMESTAMP)
        block = markers.build_block("demo", "generated", TIMESTAMP)
        merged = markers.merge(f"line1\n{marker}\nline2\n", block)
        assert merged == f"line1\nline2\n{markers.MERGE_SEPARATOR}{block}"

    def test_merge_into_empty_content(self) -> None:
        """With no user content the block stands alone."""
        block = markers.build_block("demo", "generated", TIMESTAMP)
        assert markers.merge("  \n", block) == block

"""Tests for the structured modification engine and preview diff helpers."""

from __future__ import annotations

import logging

import pytest

from queryconsole.versioning.models import (
    AppendModification,
    InsertModification,
    Position,
    ReplaceModification,
)
from queryconsole.versioning.patches import (
    build_unified_diff,
    compute_modified_content,
    summarize_change,
)


class TestReplace:
    def test_replace_returns_content_verbatim(self) -> None:
        assert compute_modified_content("SELECT 1", ReplaceModification("SELECT 2\n")) == "SELECT 2\n"

    def test_replace_with_empty_string_clears_buffer(self) -> None:
        assert compute_modified_content("SELECT 1", ReplaceModification("")) == ""


class TestAppend:
    def test_append_inserts_separator_newline(self) -> None:
        assert compute_modified_content("a", AppendModification("X")) == "a\nX"

    def test_append_reuses_existing_trailing_newline(self) -> None:
        assert compute_modified_content("a\n", AppendModification("X")) == "a\nX"

    def test_append_to_empty_buffer_starts_with_newline(self) -> None:
        # The separator depends only on whether the buffer ends in a newline.
        assert compute_modified_content("", AppendModification("X")) == "\nX"


class TestInsert:
    def test_insert_without_position_prepends(self) -> None:
        modification = InsertModification("-- header\n")
        assert compute_modified_content("SELECT 1", modification) == "-- header\nSELECT 1"

    def test_insert_at_line_and_column(self) -> None:
        modification = InsertModification("Z", Position(line=2, column=3))
        assert compute_modified_content("line1\nline2", modification) == "line1\nliZne2"

    def test_insert_at_first_column_prefixes_line(self) -> None:
        modification = InsertModification("-- ", Position(line=1, column=1))
        assert compute_modified_content("SELECT 1", modification) == "-- SELECT 1"

    def test_column_past_end_of_line_is_clamped(self) -> None:
        modification = InsertModification(";", Position(line=1, column=99))
        assert compute_modified_content("SELECT 1\nSELECT 2", modification) == "SELECT 1;\nSELECT 2"

    def test_non_positive_column_is_clamped_to_line_start(self) -> None:
        modification = InsertModification("X", Position(line=1, column=0))
        assert compute_modified_content("abc", modification) == "Xabc"

    def test_clamped_column_stays_before_carriage_return(self) -> None:
        modification = InsertModification("Z", Position(line=1, column=10))
        assert compute_modified_content("ab\r\ncd", modification) == "abZ\r\ncd"

    def test_line_after_trailing_newline_is_addressable(self) -> None:
        modification = InsertModification("X", Position(line=2, column=1))
        assert compute_modified_content("a\n", modification) == "a\nX"

    @pytest.mark.parametrize("line", [0, 3, -1])
    def test_out_of_range_line_leaves_content_unchanged(self, line: int, caplog: pytest.LogCaptureFixture) -> None:
        modification = InsertModification("Z", Position(line=line, column=1))

        with caplog.at_level(logging.WARNING, logger="queryconsole.versioning.patches"):
            result = compute_modified_content("line1\nline2", modification)

        assert result == "line1\nline2"
        assert "leaving content unchanged" in caplog.text


def test_unknown_modification_type_raises_type_error() -> None:
    with pytest.raises(TypeError):
        compute_modified_content("a", object())  # type: ignore[arg-type]


class TestUnifiedDiff:
    def test_diff_uses_default_filename(self) -> None:
        diff = build_unified_diff("a\nb\n", "a\nc\n")

        assert diff.splitlines() == [
            "--- a/console.sql",
            "+++ b/console.sql",
            "@@ -1,2 +1,2 @@",
            " a",
            "-b",
            "+c",
        ]

    def test_diff_honours_filename(self) -> None:
        diff = build_unified_diff("a\n", "b\n", filename="report.sql")

        assert diff.startswith("--- a/report.sql\n+++ b/report.sql")

    def test_identical_content_yields_empty_diff(self) -> None:
        assert build_unified_diff("SELECT 1", "SELECT 1") == ""


class TestSummary:
    def test_identical_content(self) -> None:
        assert summarize_change("a", "a") == "no changes"

    def test_counts_added_and_removed_lines(self) -> None:
        assert summarize_change("a\nb\n", "a\nc\nd\n") == "+2 -1 lines"

    def test_pure_append(self) -> None:
        assert summarize_change("a", "a\nb") == "+1 -0 lines"

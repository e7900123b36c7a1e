"""Tests for rewrite mapping parsing."""

import io

import pytest

from aiblame.errors import RewriteParseError
from aiblame.rewrite import RewriteGroup, parse_rewrite_mapping, read_rewrite_mapping

A = "a" * 40
B = "b" * 40
C = "c" * 40
D = "d" * 40
E = "e" * 40


class TestParseRewriteMapping:
    """Test grouping of rewrite lines."""

    def test_simple_rewrites(self):
        mapping = parse_rewrite_mapping([f"{A} {B}", f"{C} {D}"])

        assert [(g.new_id, g.old_ids) for g in mapping.groups] == [(B, [A]), (D, [C])]
        assert all(group.is_simple for group in mapping.groups)
        assert mapping.warnings == []
        assert mapping.pair_count == 2

    def test_squash_groups_by_new_id_in_first_seen_order(self):
        mapping = parse_rewrite_mapping([f"{C} {E}", f"{A} {D}", f"{B} {E}"])

        assert [g.new_id for g in mapping.groups] == [E, D]
        assert mapping.groups[0].old_ids == [C, B]
        assert mapping.groups[0].is_squash

    def test_kind_hint_recorded(self):
        mapping = parse_rewrite_mapping([f"{A} {B} rebase"])

        assert mapping.groups[0] == RewriteGroup(new_id=B, old_ids=[A], kind="rebase")

    def test_blank_lines_ignored(self):
        mapping = parse_rewrite_mapping(["", f"{A} {B}\n", "   ", "\n"])

        assert len(mapping.groups) == 1

    def test_duplicate_pairs_collapsed(self):
        mapping = parse_rewrite_mapping([f"{A} {B}", f"{A} {B}"])

        assert mapping.groups[0].old_ids == [A]
        assert mapping.split_ids == []

    def test_split_detected(self):
        mapping = parse_rewrite_mapping([f"{A} {B}", f"{A} {C}", f"{A} {D}"])

        assert [g.new_id for g in mapping.groups] == [B, C, D]
        assert mapping.split_ids == [A]

    def test_short_and_uppercase_ids(self):
        mapping = parse_rewrite_mapping(["ABCDEF12 1234abcd"])

        assert mapping.groups[0].old_ids == ["abcdef12"]
        assert mapping.groups[0].new_id == "1234abcd"

    @pytest.mark.parametrize(
        "line,reason",
        [
            (A, "expected 2 or 3 fields, got 1"),
            (f"{A} {B} amend extra", "expected 2 or 3 fields, got 4"),
            (f"{A} HEAD~1", "is not an object id"),
            (f"xyz {B}", "is not an object id"),
        ],
    )
    def test_strict_mode_rejects_malformed_line(self, line, reason):
        with pytest.raises(RewriteParseError, match=reason) as exc_info:
            parse_rewrite_mapping([f"{C} {D}", "", line])

        assert exc_info.value.line_number == 3
        assert exc_info.value.code == "REWRITE_PARSE_ERROR"

    def test_lenient_mode_skips_malformed_line(self):
        mapping = parse_rewrite_mapping(
            [f"{A} {B}", "garbage", f"{C} {D}"], strict=False
        )

        assert [g.new_id for g in mapping.groups] == [B, D]
        assert len(mapping.warnings) == 1
        assert mapping.warnings[0].startswith("line 2:")


class TestReadRewriteMapping:
    """Test reading from streams."""

    def test_reads_stream(self):
        stream = io.StringIO(f"{A} {B}\n{C} {B}\n")

        mapping = read_rewrite_mapping(stream)

        assert mapping.groups[0].old_ids == [A, C]

    def test_lenient_stream(self):
        stream = io.StringIO(f"{A}\n{C} {D}\n")

        mapping = read_rewrite_mapping(stream, strict=False)

        assert len(mapping.groups) == 1
        assert mapping.warnings

"""Tests for the versioning data model."""

from __future__ import annotations

import dataclasses

import pytest

from queryconsole.versioning.models import (
    AppendModification,
    DiffPreviewView,
    EditingView,
    InsertModification,
    InvalidModificationError,
    Position,
    ReplaceModification,
    VersionEntry,
    hash_content,
    modification_from_payload,
)


class TestVersionEntry:
    def test_entries_get_unique_ids_and_utc_timestamps(self) -> None:
        first = VersionEntry(content="a", origin="user", sequence_index=0)
        second = VersionEntry(content="a", origin="user", sequence_index=1)

        assert first.id != second.id
        assert first.id.startswith("v_")
        assert first.timestamp.tzinfo is not None

    def test_entries_are_immutable(self) -> None:
        entry = VersionEntry(content="a", origin="ai", sequence_index=0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.content = "b"  # type: ignore[misc]

    def test_unknown_origin_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            VersionEntry(content="a", origin="robot", sequence_index=0)  # type: ignore[arg-type]


class TestModificationFromPayload:
    def test_replace(self) -> None:
        assert modification_from_payload({"action": "replace", "content": "x"}) == ReplaceModification("x")

    def test_create_decodes_to_replace(self) -> None:
        modification = modification_from_payload({"action": "create", "content": "SELECT 1"})

        assert isinstance(modification, ReplaceModification)
        assert modification.action == "replace"

    def test_append_action_is_case_insensitive(self) -> None:
        assert modification_from_payload({"action": " Append ", "content": "x"}) == AppendModification("x")

    def test_insert_with_position(self) -> None:
        modification = modification_from_payload(
            {"action": "insert", "content": "x", "position": {"line": "2", "column": 5}}
        )

        assert modification == InsertModification("x", Position(line=2, column=5))

    def test_insert_without_position(self) -> None:
        assert modification_from_payload({"action": "insert", "content": "x"}) == InsertModification("x")

    @pytest.mark.parametrize(
        "payload",
        [
            {"action": "delete", "content": "x"},
            {"content": "x"},
            {"action": "append"},
            {"action": "append", "content": 42},
            {"action": "insert", "content": "x", "position": [1, 2]},
            {"action": "insert", "content": "x", "position": {"line": 1}},
            {"action": "insert", "content": "x", "position": {"line": "one", "column": 1}},
        ],
    )
    def test_invalid_payloads_raise(self, payload: dict) -> None:
        with pytest.raises(InvalidModificationError):
            modification_from_payload(payload)

    def test_non_mapping_payload_raises(self) -> None:
        with pytest.raises(InvalidModificationError):
            modification_from_payload(["append", "x"])  # type: ignore[arg-type]

    def test_invalid_modification_error_is_value_error(self) -> None:
        assert issubclass(InvalidModificationError, ValueError)


def test_views_expose_kind() -> None:
    assert EditingView().kind == "editing"
    assert DiffPreviewView(original="a", modified="b", action="replace").kind == "previewing_diff"


def test_hash_content_is_stable_and_content_sensitive() -> None:
    assert hash_content("SELECT 1") == hash_content("SELECT 1")
    assert hash_content("SELECT 1") != hash_content("SELECT 1 ")

#!/usr/bin/env python3
"""
Storage test suite
Tests JSON persistence, corrupt-file recovery and store transactions
"""

import json

import pytest

from rosterbot.errors import StorageReadFailure
from rosterbot.roster import add_player, add_team
from rosterbot.storage import RosterStore, empty_data, load_data, read_data, save_data


def test_missing_file_gives_empty_document(tmp_path):
    path = tmp_path / "nested" / "data.json"
    assert load_data(str(path)) == {"players": {}, "teams": {}}
    assert path.parent.is_dir()


@pytest.mark.parametrize("content", ["{not json", "[]", "42", '{"players": ["Bob"]}'])
def test_unusable_file_recovers_as_empty(tmp_path, content):
    path = tmp_path / "data.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(StorageReadFailure):
        read_data(str(path))
    assert load_data(str(path)) == empty_data()


def test_missing_or_null_sections_default_to_empty(tmp_path):
    path = tmp_path / "data.json"
    path.write_text('{"players": null}', encoding="utf-8")
    assert load_data(str(path)) == {"players": {}, "teams": {}}


def test_save_then_load(tmp_path):
    path = tmp_path / "data.json"
    data = empty_data()
    add_player(data, "Zoë")
    add_team(data, "Red")

    save_data(data, str(path))

    assert load_data(str(path)) == data
    assert "Zoë" in path.read_text(encoding="utf-8")
    assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


def test_save_overwrites_whole_document(tmp_path):
    path = tmp_path / "data.json"
    data = empty_data()
    add_team(data, "Red")
    save_data(data, str(path))

    save_data(empty_data(), str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == {"players": {}, "teams": {}}


@pytest.mark.asyncio
async def test_transaction_persists_changes(tmp_path):
    path = tmp_path / "data.json"
    store = RosterStore(str(path))

    async with store.transaction() as data:
        add_team(data, "Red")

    assert load_data(str(path))["teams"] == {"red": {"name": "Red", "points": 0}}
    assert store.data["teams"]["red"]["name"] == "Red"


@pytest.mark.asyncio
async def test_transaction_without_changes_does_not_write(tmp_path):
    path = tmp_path / "data.json"
    store = RosterStore(str(path))

    async with store.transaction():
        pass

    assert not path.exists()


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(tmp_path):
    path = tmp_path / "data.json"
    store = RosterStore(str(path))
    async with store.transaction() as data:
        add_team(data, "Red")

    with pytest.raises(RuntimeError):
        async with store.transaction() as data:
            add_team(data, "Blue")
            raise RuntimeError("boom")

    assert set(store.data["teams"]) == {"red"}
    assert set(load_data(str(path))["teams"]) == {"red"}


def test_reload_picks_up_external_edits(tmp_path):
    path = tmp_path / "data.json"
    store = RosterStore(str(path))
    data = empty_data()
    add_player(data, "Bob")
    save_data(data, str(path))

    store.reload()
    assert "bob" in store.data["players"]


@pytest.mark.asyncio
async def test_failed_save_rolls_back_memory(tmp_path, monkeypatch):
    path = tmp_path / "data.json"
    store = RosterStore(str(path))

    def disk_full(data, path=None):
        raise OSError("No space left on device")

    monkeypatch.setattr("rosterbot.storage.save_data", disk_full)
    with pytest.raises(OSError):
        async with store.transaction() as data:
            add_team(data, "Red")

    assert store.data["teams"] == {}
    assert not path.exists()

from __future__ import annotations

import json

import pytest

from pinbox_syncer.config.state import StateStore, SyncerState

STATE_FILE = ".obsidian/plugins/pinbox/data.json"


@pytest.fixture
def store(vault) -> StateStore:
    return StateStore(vault, STATE_FILE)


async def test_missing_file_gives_defaults(store):
    state = await store.load()
    assert state == SyncerState()
    assert state.first_run is True
    assert state.sync_interval == 60


async def test_save_creates_parent_folders(store, vault):
    state = SyncerState(access_token="a.b.c", auto_sync=True)
    await store.save(state)

    assert ".obsidian/plugins/pinbox" in vault.folders
    assert json.loads(vault.files[STATE_FILE])["auto_sync"] is True
    assert await store.load() == state


async def test_save_overwrites(store):
    await store.save(SyncerState(sync_interval=5))
    await store.save(SyncerState(sync_interval=15))
    assert (await store.load()).sync_interval == 15


async def test_partial_file_merged_over_defaults(store, vault):
    await vault.create_folder(".obsidian/plugins/pinbox")
    await vault.write_note(STATE_FILE, json.dumps({"sync_folder": "Reading", "legacy": 1}))

    state = await store.load()

    assert state.sync_folder == "Reading"
    assert state.image_folder == "Pinbox/.pics"
    assert not hasattr(state, "legacy")


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", json.dumps({"sync_interval": 0})])
async def test_unusable_file_gives_defaults(store, vault, content):
    await vault.create_folder(".obsidian/plugins/pinbox")
    await vault.write_note(STATE_FILE, content)
    assert await store.load() == SyncerState()


def test_folders_normalized():
    state = SyncerState(sync_folder="/Reading\\Pinbox/", image_folder="")
    assert state.sync_folder == "Reading/Pinbox"
    assert state.image_folder == "Pinbox/.pics"


def test_mark_synced():
    state = SyncerState()
    state.mark_synced(1_700_000_000_000)
    assert state.last_sync_time == 1_700_000_000_000
    assert state.first_run is False

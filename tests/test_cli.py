from __future__ import annotations

from pathlib import Path

import pytest

from pinbox_syncer.adapters.pinbox.models import DeletionResult, SyncReport
from pinbox_syncer.cli import sync as cli
from pinbox_syncer.config import SyncerState, load_config


class StubService:
    instances: list[StubService] = []

    def __init__(self, cfg, vault, *, state_store=None) -> None:
        self.cfg = cfg
        self.vault = vault
        self.state_store = state_store
        self.last_report: SyncReport | None = None
        self.options = None
        StubService.instances.append(self)

    async def current_options(self, *, force: bool = False):
        return {"force": force}

    async def run_sync(self, options=None) -> int:
        self.options = options
        self.last_report = SyncReport(total=3, created=1, skipped=2)
        return 3

    async def delete_bookmark(self, note_path: str, options=None) -> DeletionResult:
        return DeletionResult(note_path=note_path, error="Remote deletion failed: HTTP 403")

    async def test_connection(self) -> bool:
        return True


@pytest.fixture
def stub_service(monkeypatch):
    StubService.instances = []
    monkeypatch.setattr(cli, "PinboxSyncService", StubService)
    return StubService


class TestParseArgs:
    def test_sync_defaults(self):
        args = cli.parse_args(["sync"])
        assert args.command == "sync"
        assert args.force is False
        assert args.vault is None

    def test_global_options(self):
        args = cli.parse_args(["--vault", "/tmp/vault", "--log-level", "DEBUG", "sync", "--force"])
        assert args.vault == Path("/tmp/vault")
        assert args.log_level == "DEBUG"
        assert args.force is True

    def test_watch_interval(self):
        assert cli.parse_args(["watch", "--interval", "15"]).interval == 15

    def test_delete_requires_path(self):
        assert cli.parse_args(["delete", "Pinbox/a.md"]).note_path == "Pinbox/a.md"
        with pytest.raises(SystemExit):
            cli.parse_args(["delete"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])


def test_prepare_config_applies_overrides(clean_env, tmp_path):
    args = cli.parse_args(["--vault", str(tmp_path), "--log-level", "ERROR", "check"])
    cfg = cli._prepare_config(args)
    assert cfg.vault.path == str(tmp_path)
    assert cfg.runtime.log_level == "ERROR"


def test_prepare_config_reports_invalid_settings(clean_env):
    clean_env(PINBOX_PAGE_SIZE="-1")
    with pytest.raises(SystemExit, match="Configuration error"):
        cli._prepare_config(cli.parse_args(["check"]))


async def test_sync_command_prints_summary(clean_env, tmp_path, stub_service, capsys):
    cfg = load_config(vault={"path": str(tmp_path)})

    code = await cli.run_cli(cli.parse_args(["sync", "--force"]), cfg)

    assert code == 0
    assert "Synced 3 bookmarks: 1 created, 2 skipped" in capsys.readouterr().out
    assert stub_service.instances[0].options == {"force": True}


async def test_delete_command_reports_failure(clean_env, tmp_path, stub_service, capsys):
    cfg = load_config(vault={"path": str(tmp_path)})

    code = await cli.run_cli(cli.parse_args(["delete", "Pinbox/a.md"]), cfg)

    assert code == 1
    assert "Delete failed: Remote deletion failed" in capsys.readouterr().out


async def test_stored_token_used_when_environment_has_none(clean_env, tmp_path, stub_service):
    (tmp_path / ".pinbox-syncer.json").write_text('{"access_token": "stored.token.value"}')
    cfg = load_config(vault={"path": str(tmp_path)})

    await cli.run_cli(cli.parse_args(["check"]), cfg)

    assert stub_service.instances[0].cfg.pinbox.access_token == "stored.token.value"


def test_auto_sync_settings_fall_back_to_stored_state(clean_env):
    cfg = load_config()
    state = SyncerState(auto_sync=True, sync_interval=15)
    assert cli._auto_sync_enabled(cfg, state) is True
    assert cli._sync_interval(cfg, state) == 15


def test_auto_sync_environment_wins(clean_env):
    clean_env(PINBOX_AUTO_SYNC="false", PINBOX_SYNC_INTERVAL_MINUTES="5")
    cfg = load_config()
    state = SyncerState(auto_sync=True, sync_interval=15)
    assert cli._auto_sync_enabled(cfg, state) is False
    assert cli._sync_interval(cfg, state) == 5

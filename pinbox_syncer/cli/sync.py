"""Command line entry point: ``pinbox-syncer sync|watch|delete|check``."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from pinbox_syncer.adapters.pinbox.sync.service import PinboxSyncService
from pinbox_syncer.adapters.vault import FilesystemVault
from pinbox_syncer.config import (
    AppConfig,
    StateStore,
    SyncerState,
    load_config,
    resolve_access_token,
)
from pinbox_syncer.core.logging_utils import setup_logging
from pinbox_syncer.services.scheduler import AutoSyncScheduler

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="pinbox-syncer",
        description="Sync Pinbox bookmarks into a Markdown notes vault",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--vault",
        type=Path,
        help="Vault root directory (overrides VAULT_PATH).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Path to a .env file containing environment variables for the run.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level for this session.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    sync_cmd = commands.add_parser(
        "sync", help="Run one sync pass (keeps running when auto-sync is enabled)."
    )
    sync_cmd.add_argument(
        "--force",
        action="store_true",
        help="Rebuild and overwrite notes that already exist.",
    )

    watch_cmd = commands.add_parser("watch", help="Sync now, then keep syncing on an interval.")
    watch_cmd.add_argument(
        "--interval",
        type=int,
        help="Minutes between passes (overrides the configured interval).",
    )

    delete_cmd = commands.add_parser(
        "delete", help="Delete a bookmark remotely, then its note and images."
    )
    delete_cmd.add_argument("note_path", help="Vault-relative path of the bookmark's note.")

    commands.add_parser("check", help="Test the access token and the API connection.")
    return parser.parse_args(argv)


def _prepare_config(args: argparse.Namespace) -> AppConfig:
    """Load configuration, optionally applying CLI overrides."""
    if args.env_file:
        load_dotenv(args.env_file, override=False)

    try:
        cfg = load_config()
    except RuntimeError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc

    if args.vault:
        cfg = replace(cfg, vault=cfg.vault.model_copy(update={"path": str(args.vault)}))
    if args.log_level:
        cfg = replace(cfg, runtime=cfg.runtime.model_copy(update={"log_level": args.log_level}))
    return cfg


def _with_stored_token(cfg: AppConfig, state: SyncerState) -> AppConfig:
    token = resolve_access_token(cfg, state)
    if token == cfg.pinbox.access_token:
        return cfg
    return replace(cfg, pinbox=cfg.pinbox.model_copy(update={"access_token": token}))


def _auto_sync_enabled(cfg: AppConfig, state: SyncerState) -> bool:
    if "auto_sync" in cfg.pinbox.model_fields_set:
        return cfg.pinbox.auto_sync
    return state.auto_sync


def _sync_interval(cfg: AppConfig, state: SyncerState) -> int:
    if "sync_interval_minutes" in cfg.pinbox.model_fields_set:
        return cfg.pinbox.sync_interval_minutes
    return state.sync_interval


async def _watch(service: PinboxSyncService, interval: int) -> int:
    scheduler = AutoSyncScheduler(service, interval, run_immediately=True)
    await scheduler.start()
    print(f"Auto-sync every {interval} minutes. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
    return 0


async def run_cli(args: argparse.Namespace, cfg: AppConfig) -> int:
    """Execute one CLI command and return its exit code."""
    vault = FilesystemVault(cfg.vault.path)
    store = StateStore(vault, cfg.vault.state_file)
    state = await store.load()
    cfg = _with_stored_token(cfg, state)
    service = PinboxSyncService(cfg, vault, state_store=store)

    if args.command == "check":
        ok = await service.test_connection()
        print("Connection OK" if ok else "Connection failed: check the access token")
        return 0 if ok else 1

    if args.command == "delete":
        result = await service.delete_bookmark(args.note_path)
        if result.success:
            print(f"Deleted bookmark {result.bookmark_id} and {args.note_path}")
            return 0
        print(f"Delete failed: {result.error}")
        return 1

    if args.command == "watch":
        return await _watch(service, args.interval or _sync_interval(cfg, state))

    if not args.force and _auto_sync_enabled(cfg, state):
        return await _watch(service, _sync_interval(cfg, state))

    options = await service.current_options(force=args.force)
    try:
        await service.run_sync(options)
    except Exception as exc:
        print(f"Sync failed: {exc}")
        return 1
    report = service.last_report
    print(report.summary() if report else "Sync finished")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``pinbox-syncer`` console script."""
    args = parse_args(argv)
    cfg = _prepare_config(args)
    setup_logging(
        cfg.runtime.log_level,
        json_output=cfg.runtime.log_json,
        log_file=cfg.runtime.log_file,
    )
    try:
        return asyncio.run(run_cli(args, cfg))
    except KeyboardInterrupt:  # pragma: no cover - user cancelled
        return 1
    except Exception as exc:
        logger.exception("cli_command_failed", extra={"command": args.command})
        print(f"ERROR: {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

from __future__ import annotations

from typing import Any

from pinbox_syncer.core.url_utils import normalize_path


def _parse_bool(value: Any, *, default: bool) -> bool:
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    msg = f"Invalid boolean value: {value!r}"
    raise ValueError(msg)


def _parse_int_in_range(value: Any, *, name: str, default: int, low: int, high: int) -> int:
    if value in (None, ""):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        msg = f"{name} must be a valid integer"
        raise ValueError(msg) from exc
    if parsed < low or parsed > high:
        msg = f"{name} must be between {low} and {high}"
        raise ValueError(msg)
    return parsed


def _validate_vault_folder(value: Any, *, name: str, default: str) -> str:
    raw = default if value in (None, "") else str(value)
    if "\x00" in raw:
        msg = f"{name} contains invalid characters"
        raise ValueError(msg)
    folder = normalize_path(raw.strip())
    if not folder:
        msg = f"{name} cannot be empty"
        raise ValueError(msg)
    if ".." in folder.split("/"):
        msg = f"{name} must stay inside the vault"
        raise ValueError(msg)
    return folder


def _ensure_token(value: Any) -> str:
    if value in (None, ""):
        return ""
    token = str(value).strip()
    if len(token) > 4096:
        msg = "Access token appears to be too long"
        raise ValueError(msg)
    if any(char in token for char in (" ", "\n", "\t")):
        msg = "Access token contains invalid characters"
        raise ValueError(msg)
    return token

"""Local quotation registry: every quotation and invoice created in the app.

Entries live in a single JSON list under the data directory. Reads and
read-modify-write cycles hold an exclusive file lock so the TUI and a
headless ``gst-invoice export`` can run side by side.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from gstinvoice import config as _config
from gstinvoice.models.quotation import QuotationStatus

logger = logging.getLogger(__name__)

_IMMUTABLE_KEYS = ("id", "created_at")


def _registry_path() -> Path:
    return _config.get_data_dir() / "quotations.json"


def _now() -> str:
    return datetime.now(_config.IST).isoformat(timespec="seconds")


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(_config.IST).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Corrupt file backed up: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during registry read-modify-write."""
    rp = _registry_path()
    rp.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(rp.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    rp = _registry_path()
    if not rp.exists():
        return []
    try:
        entries = json.loads(rp.read_text())
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(rp)
        return []
    if not isinstance(entries, list):
        _backup_corrupt(rp)
        return []
    return entries


def _save(entries: list[dict[str, Any]]) -> None:
    rp = _registry_path()
    rp.parent.mkdir(parents=True, exist_ok=True)
    tmp = rp.with_suffix(".tmp")
    tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n")
    os.replace(tmp, rp)


def list_quotations(status: str | None = None) -> list[dict[str, Any]]:
    """Return stored quotations, newest first, optionally filtered by status."""
    with _locked():
        entries = _load()
    if status:
        entries = [e for e in entries if e.get("status") == status]
    return sorted(entries, key=lambda e: e.get("created_at") or "", reverse=True)


def get_quotation(quotation_id: str) -> dict[str, Any] | None:
    with _locked():
        entries = _load()
    return next((e for e in entries if e.get("id") == quotation_id), None)


def find_by_number(quotation_no: str) -> dict[str, Any] | None:
    """Look up a quotation by its human-facing number (QT-YYMM-NNN)."""
    with _locked():
        entries = _load()
    return next((e for e in entries if e.get("quotation_no") == quotation_no), None)


def add_quotation(data: dict[str, Any]) -> dict[str, Any]:
    """Store a new quotation. Assigns id and timestamps; status defaults to quotation."""
    now = _now()
    entry: dict[str, Any] = {
        "status": QuotationStatus.QUOTATION.value,
        **{k: v for k, v in data.items() if k not in _IMMUTABLE_KEYS},
        "id": uuid.uuid4().hex,
        "created_at": now,
        "updated_at": now,
    }
    with _locked():
        entries = _load()
        entries.append(entry)
        _save(entries)
    return entry


def update_quotation(quotation_id: str, data: dict[str, Any]) -> dict[str, Any] | None:
    """Merge ``data`` into an existing entry. Returns the updated entry, or None if not found."""
    with _locked():
        entries = _load()
        target = next((e for e in entries if e.get("id") == quotation_id), None)
        if target is None:
            return None
        target.update({k: v for k, v in data.items() if k not in _IMMUTABLE_KEYS})
        target["updated_at"] = _now()
        _save(entries)
    return target


def delete_quotation(quotation_id: str) -> bool:
    with _locked():
        entries = _load()
        filtered = [e for e in entries if e.get("id") != quotation_id]
        if len(filtered) == len(entries):
            return False
        _save(filtered)
        return True


def duplicate_quotation(quotation_id: str, new_quotation_no: str) -> dict[str, Any] | None:
    """Copy an entry under a new number. The copy always starts as a quotation."""
    source = get_quotation(quotation_id)
    if source is None:
        return None
    data = copy.deepcopy(source)
    data.pop("updated_at", None)
    data["quotation_no"] = new_quotation_no
    data["status"] = QuotationStatus.QUOTATION.value
    return add_quotation(data)


def convert_to_invoice(quotation_id: str) -> dict[str, Any] | None:
    return update_quotation(quotation_id, {"status": QuotationStatus.INVOICE.value})


# --- Health check (read-only, no locks) ---


@dataclass
class RegistryHealth:
    ok: bool
    count: int
    corrupt_backups: list[str] = field(default_factory=list)


def check_registry_health() -> RegistryHealth:
    """Probe the registry file for corruption (read-only)."""
    rp = _registry_path()
    ok = True
    count = 0
    if rp.exists():
        try:
            entries = json.loads(rp.read_text())
            if isinstance(entries, list):
                count = len(entries)
            else:
                ok = False
        except (json.JSONDecodeError, ValueError):
            ok = False
    if rp.parent.exists():
        backups = sorted(str(p) for p in rp.parent.glob(f"{rp.name}.corrupt.*"))
    else:
        backups = []
    return RegistryHealth(ok=ok, count=count, corrupt_backups=backups)

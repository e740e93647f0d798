from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from filelock import FileLock

from gstinvoice import config as _config


def _sequence_file() -> Path:
    return _config.get_data_dir() / "sequence.json"


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during sequence read-modify-write."""
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(sf.with_suffix(".lock"))
    with lock:
        yield


def _load() -> dict[str, int]:
    sf = _sequence_file()
    if not sf.exists():
        return {"quotation": 0}
    return json.loads(sf.read_text())


def _save(data: dict[str, int]) -> None:
    sf = _sequence_file()
    sf.parent.mkdir(parents=True, exist_ok=True)
    tmp = sf.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, indent=2))
    os.replace(tmp, sf)


def current_number() -> int:
    with _locked():
        return _load().get("quotation", 0)


def next_number() -> int:
    with _locked():
        data = _load()
        data["quotation"] = data.get("quotation", 0) + 1
        _save(data)
        return data["quotation"]


def peek_next_number() -> int:
    """Return the next sequence number without persisting it."""
    with _locked():
        return _load().get("quotation", 0) + 1


def set_number(value: int) -> None:
    with _locked():
        data = _load()
        data["quotation"] = value
        _save(data)


def format_quotation_number(n: int, today: date) -> str:
    """QT-YYMM-NNN. The counter runs across months; only the prefix tracks the date."""
    return f"QT-{today:%y%m}-{n:03d}"


def _today() -> date:
    return datetime.now(_config.IST).date()


def next_quotation_number(today: date | None = None) -> str:
    """Consume the next counter value and format it as a quotation number."""
    return format_quotation_number(next_number(), today or _today())


def peek_next_quotation_number(today: date | None = None) -> str:
    return format_quotation_number(peek_next_number(), today or _today())

from __future__ import annotations

import logging
import os
import shutil
import time
from datetime import timedelta, timezone
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "gst-invoice"
KEYRING_SERVICE = "gst-invoice"
KEYRING_USERNAME = "login-password"

logger = logging.getLogger(__name__)


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Uses the same 3-tier resolution as _resolve_dir but only checks sources
    available before .env is loaded (env var set in shell, dev layout).
    Returns None if only platformdirs would resolve (since the dir may not exist yet).
    """
    from_env = os.environ.get("GSTINVOICE_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str, kind: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/gstinvoice/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    if kind == "config":
        return Path(platformdirs.user_config_dir(APP_NAME))
    return Path(platformdirs.user_data_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("GSTINVOICE_CONFIG_DIR", "config", kind="config")


def get_data_dir() -> Path:
    """Resolve data directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("GSTINVOICE_DATA_DIR", "data", kind="data")


IST = timezone(timedelta(hours=5, minutes=30))

DEFAULT_GST_RATE = 18
PDF_DIR_NAME = "pdf"
ASSETS_DIR_NAME = "assets"
LOG_FILE_NAME = "gst-invoice.log"


# --- Keyring helpers ---


def _get_keyring_password() -> str | None:
    """Try to get the login password from the OS keyring.

    Returns None on any failure (no backend, not stored, dbus errors, etc.).
    """
    try:
        import keyring

        return keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    except Exception:
        logger.warning("Keyring lookup failed", exc_info=True)
        return None


def _set_keyring_password(password: str) -> bool:
    """Store the login password in the OS keyring. Returns True on success."""
    try:
        import keyring

        keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, password)
        return True
    except Exception:
        logger.warning("Keyring store failed", exc_info=True)
        return False


def _delete_keyring_password() -> bool:
    """Remove the login password from the OS keyring. Returns True on success."""
    try:
        import keyring

        keyring.delete_password(KEYRING_SERVICE, KEYRING_USERNAME)
        return True
    except Exception:
        return False


# --- Login credentials ---


def get_login_email() -> str:
    """Return the login e-mail from GSTINVOICE_LOGIN_EMAIL.

    Raises KeyError if the variable is not set.
    """
    return os.environ["GSTINVOICE_LOGIN_EMAIL"]


def get_login_password() -> str:
    """Return the login password.

    Priority: 1) GSTINVOICE_LOGIN_PASSWORD env var, 2) OS keyring.
    Raises KeyError if neither source has the password.
    """
    pwd = os.environ.get("GSTINVOICE_LOGIN_PASSWORD")
    if pwd is not None:
        return pwd
    pwd = _get_keyring_password()
    if pwd is not None:
        return pwd
    raise KeyError("GSTINVOICE_LOGIN_PASSWORD")


# --- YAML records (companies, buyers) ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text())


def _records_dir(kind: str) -> Path:
    return get_config_dir() / kind


def _list_records(kind: str) -> list[str]:
    records_dir = _records_dir(kind)
    if not records_dir.exists():
        return []
    return sorted(f.stem for f in records_dir.glob("*.yaml"))


def _save_record(kind: str, slug: str, data: dict) -> Path:
    records_dir = _records_dir(kind)
    records_dir.mkdir(parents=True, exist_ok=True)
    path = records_dir / f"{slug}.yaml"
    tmp = path.with_suffix(".tmp")
    tmp.write_text(yaml.dump(data, default_flow_style=False, allow_unicode=True))
    os.replace(tmp, path)
    return path


def list_companies() -> list[str]:
    """Return sorted company slugs (YAML file stems) from config/companies/."""
    return _list_records("companies")


def load_company(slug: str) -> dict:
    """Load a seller company from config/companies/{slug}.yaml."""
    return load_yaml(_records_dir("companies") / f"{slug}.yaml")


def save_company(slug: str, data: dict) -> Path:
    """Save a seller company to config/companies/{slug}.yaml (atomic write)."""
    return _save_record("companies", slug, data)


def delete_company(slug: str) -> None:
    (_records_dir("companies") / f"{slug}.yaml").unlink()


def list_buyers() -> list[str]:
    """Return sorted buyer slugs (YAML file stems) from config/buyers/."""
    return _list_records("buyers")


def load_buyer(slug: str) -> dict:
    """Load a buyer from config/buyers/{slug}.yaml."""
    return load_yaml(_records_dir("buyers") / f"{slug}.yaml")


def save_buyer(slug: str, data: dict) -> Path:
    """Save a buyer to config/buyers/{slug}.yaml (atomic write)."""
    return _save_record("buyers", slug, data)


def delete_buyer(slug: str) -> None:
    (_records_dir("buyers") / f"{slug}.yaml").unlink()


# --- Data files ---


def get_pdf_dir() -> Path:
    """Return the default output directory for exported invoices."""
    return get_data_dir() / PDF_DIR_NAME


def get_log_path() -> Path:
    return get_data_dir() / LOG_FILE_NAME


def store_asset(source: str | Path, prefix: str = "") -> Path:
    """Copy a logo or signature image into data/assets/ under a timestamped name.

    Returns the path of the stored copy. Raises FileNotFoundError if the source is missing.
    """
    src = Path(source).expanduser()
    if not src.is_file():
        raise FileNotFoundError(str(src))
    assets = get_data_dir() / ASSETS_DIR_NAME
    assets.mkdir(parents=True, exist_ok=True)
    dest = assets / f"{prefix}{int(time.time() * 1000)}{src.suffix.lower()}"
    shutil.copyfile(src, dest)
    return dest

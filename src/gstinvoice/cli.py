from __future__ import annotations

import getpass
import logging
import os
import stat
import sys
from importlib.resources import files
from pathlib import Path

TEMPLATE_FILES = [
    "companies/my-company.yaml.example",
    "buyers/sample-buyer.yaml.example",
]


def _configure_logging() -> None:
    """Send log output to data/gst-invoice.log so it never draws over the TUI."""
    from gstinvoice.config import get_log_path

    log_path = get_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = os.environ.get("GSTINVOICE_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        filename=log_path,
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _check_keyring_available() -> bool:
    """Check if keyring is installed with a usable backend."""
    try:
        import keyring
        from keyring.backends.fail import Keyring as FailKeyring

        return not isinstance(keyring.get_keyring(), FailKeyring)
    except Exception:
        return False


def _upsert_env_var(env_file: Path, key: str, value: str) -> None:
    """Set or update a key=value pair in a .env file, creating it if needed.

    Uses dotenv.set_key for proper quoting (handles #, spaces, etc.).
    """
    from dotenv import set_key

    env_file.parent.mkdir(parents=True, exist_ok=True)
    if not env_file.exists():
        env_file.touch()
    set_key(str(env_file), key, value)


def _remove_env_var(env_file: Path, key: str) -> None:
    """Remove a key from a .env file if present."""
    from dotenv import unset_key

    if env_file.exists():
        unset_key(str(env_file), key)


def _warn_open_permissions(env_file: Path) -> None:
    """Warn if .env file has group/other read permissions (Unix only)."""
    try:
        mode = env_file.stat().st_mode
        if mode & (stat.S_IRGRP | stat.S_IROTH):
            print(f"\n  WARNING: {env_file} is readable by other users.")
            print("  Recommended: chmod 600", env_file)
    except OSError:
        pass


def _setup_login(config_dir: Path) -> bool:
    """Interactive login setup. Returns True if credentials were configured."""
    print()
    print("Login setup")
    print("───────────")
    print()

    email = input("Login e-mail (empty to skip): ").strip()
    if not email:
        print("  Login setup skipped.")
        return False

    password = ""
    while not password:
        password = getpass.getpass("Password: ")
        if password and password != getpass.getpass("Repeat password: "):
            print("  Passwords do not match.")
            password = ""

    env_file = config_dir / ".env"
    _upsert_env_var(env_file, "GSTINVOICE_LOGIN_EMAIL", email)

    print()
    print("Where should the password be stored?")

    keyring_ok = _check_keyring_available()
    options: list[tuple[str, str]] = []
    if keyring_ok:
        options.append(("1", "System keychain (recommended)"))
    options.append(("2", ".env file in the config directory"))
    options.append(("3", "Do not store (set it manually)"))

    for num, label in options:
        print(f"  {num}. {label}")

    if not keyring_ok:
        print()
        print("  Note: system keychain unavailable (no backend configured).")

    print()
    valid_choices = {num for num, _ in options}
    choice = ""
    while choice not in valid_choices:
        choice = input(f"Choice [{'/'.join(sorted(valid_choices))}]: ").strip()

    from gstinvoice.config import _delete_keyring_password

    if choice == "1" and keyring_ok:
        from gstinvoice.config import _set_keyring_password

        if _set_keyring_password(password):
            print("  Password stored in the system keychain.")
            _remove_env_var(env_file, "GSTINVOICE_LOGIN_PASSWORD")
        else:
            print("  ERROR: Keychain store failed. Saving to .env instead.")
            _upsert_env_var(env_file, "GSTINVOICE_LOGIN_PASSWORD", password)
            _warn_open_permissions(env_file)
    elif choice == "2":
        _upsert_env_var(env_file, "GSTINVOICE_LOGIN_PASSWORD", password)
        print(f"  Password saved to {env_file}")
        _warn_open_permissions(env_file)
        _delete_keyring_password()
    else:
        _remove_env_var(env_file, "GSTINVOICE_LOGIN_PASSWORD")
        _delete_keyring_password()
        print("  Password not stored.")
        print("  Set GSTINVOICE_LOGIN_PASSWORD in your shell or .env before logging in.")

    return True


def _init_config() -> None:
    """Copy bundled templates to the user's config dir and create the data dir."""
    from gstinvoice.config import get_config_dir, get_data_dir

    config_dir = get_config_dir()
    data_dir = get_data_dir()
    templates = files("gstinvoice") / "templates"

    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "companies").mkdir(parents=True, exist_ok=True)
    (config_dir / "buyers").mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in TEMPLATE_FILES:
        dest = config_dir / rel
        if dest.exists():
            print(f"  exists: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  created: {dest}")
        copied += 1

    print()
    print(f"Config: {config_dir}")
    print(f"Data:   {data_dir}")

    print()
    login_configured = False
    try:
        answer = input("Set up the login now? [Y/n]: ").strip().lower()
        if answer in ("", "y", "yes"):
            login_configured = _setup_login(config_dir)
    except (EOFError, KeyboardInterrupt):
        print()

    print()
    if copied:
        print("Next steps:")
        print("  1. Add your company from the TUI (c), or copy and edit")
        print(f"     {config_dir / TEMPLATE_FILES[0]}")
        if not login_configured:
            print("  2. Set GSTINVOICE_LOGIN_EMAIL and GSTINVOICE_LOGIN_PASSWORD in a .env")
            print("  3. Run: gst-invoice")
        else:
            print("  2. Run: gst-invoice")
    else:
        print("No new files created (all already existed).")


def _preflight() -> bool:
    """Verify minimal config before launching the TUI.

    Auto-creates the data directory. Returns False with a helpful
    message when the config directory or the login e-mail is missing.
    """
    from gstinvoice.config import get_config_dir, get_data_dir, get_login_email

    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    config_dir = get_config_dir()
    if not config_dir.is_dir():
        print(f"Error: config directory not found: {config_dir}")
        print("Run 'gst-invoice init' to create it.")
        return False
    try:
        get_login_email()
    except KeyError:
        print("Error: no login configured (GSTINVOICE_LOGIN_EMAIL is not set).")
        print("Run 'gst-invoice init' to set up the login.")
        return False
    return True


def _export(ref: str, output: str | None) -> int:
    """Headless PDF export of a stored quotation. Returns the exit code."""
    from gstinvoice.services import invoice as invoice_service
    from gstinvoice.services.exceptions import InvoiceValidationError, QuotationNotFoundError

    try:
        entry = invoice_service.find_quotation(ref)
    except QuotationNotFoundError as e:
        print(f"Error: {e}")
        return 1

    company = invoice_service.load_company_for(entry)
    if company is None:
        print(f"Error: company '{entry.get('company_slug')}' not found.")
        return 1

    draft = invoice_service.from_record(entry, company)
    try:
        path = invoice_service.export_pdf(draft, output)
    except InvoiceValidationError as e:
        print("Error: the quotation is incomplete:")
        for msg in e.errors:
            print(f"  - {msg}")
        return 1
    except OSError as e:
        print(f"Error: could not write PDF: {e}")
        return 1

    print(f"PDF saved to: {path}")
    return 0


def main() -> None:
    """Entry point for the GST Invoice CLI/TUI."""
    args = sys.argv[1:]
    if args and args[0] == "init":
        _init_config()
        return

    _configure_logging()

    if args and args[0] == "export":
        if len(args) not in (2, 3):
            print("Usage: gst-invoice export <quotation-id|number> [output.pdf]")
            sys.exit(2)
        sys.exit(_export(args[1], args[2] if len(args) == 3 else None))

    if not _preflight():
        sys.exit(1)

    from gstinvoice.tui.app import GstInvoiceApp

    app = GstInvoiceApp()
    app.run()


if __name__ == "__main__":
    main()

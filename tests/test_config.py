from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import yaml

import gstinvoice.config as config_mod


class TestResolveDir:
    def test_from_env_var(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GSTINVOICE_CONFIG_DIR", str(tmp_path))
        result = config_mod._resolve_dir("GSTINVOICE_CONFIG_DIR", "config", kind="config")
        assert result == tmp_path

    def test_project_root_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GSTINVOICE_CONFIG_DIR", raising=False)
        fake_pkg = tmp_path / "src" / "gstinvoice"
        fake_pkg.mkdir(parents=True)
        config_dir = tmp_path / "config"
        config_dir.mkdir()

        monkeypatch.setattr(config_mod, "__file__", str(fake_pkg / "config.py"))
        result = config_mod._resolve_dir("GSTINVOICE_CONFIG_DIR", "config", kind="config")
        assert result == config_dir

    def test_platformdirs_fallback_config(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GSTINVOICE_CONFIG_DIR", raising=False)
        fake = tmp_path / "nowhere" / "src" / "gstinvoice"
        fake.mkdir(parents=True)
        monkeypatch.setattr(config_mod, "__file__", str(fake / "config.py"))
        result = config_mod._resolve_dir("GSTINVOICE_CONFIG_DIR", "config", kind="config")
        assert "gst-invoice" in str(result)

    def test_platformdirs_fallback_data(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GSTINVOICE_DATA_DIR", raising=False)
        fake = tmp_path / "nowhere" / "src" / "gstinvoice"
        fake.mkdir(parents=True)
        monkeypatch.setattr(config_mod, "__file__", str(fake / "config.py"))
        result = config_mod._resolve_dir("GSTINVOICE_DATA_DIR", "data", kind="data")
        assert "gst-invoice" in str(result)


class TestLoginCredentials:
    def test_get_login_email(self, monkeypatch):
        monkeypatch.setenv("GSTINVOICE_LOGIN_EMAIL", "owner@acme-events.in")
        assert config_mod.get_login_email() == "owner@acme-events.in"

    def test_get_login_email_missing(self, monkeypatch):
        monkeypatch.delenv("GSTINVOICE_LOGIN_EMAIL", raising=False)
        with pytest.raises(KeyError):
            config_mod.get_login_email()

    def test_password_from_env(self, monkeypatch):
        monkeypatch.setenv("GSTINVOICE_LOGIN_PASSWORD", "secret")
        assert config_mod.get_login_password() == "secret"

    def test_password_missing(self, monkeypatch):
        monkeypatch.delenv("GSTINVOICE_LOGIN_PASSWORD", raising=False)
        with (
            patch.object(config_mod, "_get_keyring_password", return_value=None),
            pytest.raises(KeyError),
        ):
            config_mod.get_login_password()

    def test_password_keyring_fallback(self, monkeypatch):
        monkeypatch.delenv("GSTINVOICE_LOGIN_PASSWORD", raising=False)
        with patch.object(config_mod, "_get_keyring_password", return_value="from-keyring"):
            assert config_mod.get_login_password() == "from-keyring"

    def test_env_takes_priority(self, monkeypatch):
        monkeypatch.setenv("GSTINVOICE_LOGIN_PASSWORD", "from-env")
        with patch.object(config_mod, "_get_keyring_password", return_value="from-keyring"):
            assert config_mod.get_login_password() == "from-env"


class TestKeyringHelpers:
    def test_get_returns_stored_password(self):
        mock_keyring = MagicMock()
        mock_keyring.get_password.return_value = "stored"
        with patch.dict("sys.modules", {"keyring": mock_keyring}):
            assert config_mod._get_keyring_password() == "stored"
        mock_keyring.get_password.assert_called_once_with(
            config_mod.KEYRING_SERVICE, config_mod.KEYRING_USERNAME
        )

    def test_get_swallows_backend_errors(self):
        mock_keyring = MagicMock()
        mock_keyring.get_password.side_effect = RuntimeError("no backend")
        with patch.dict("sys.modules", {"keyring": mock_keyring}):
            assert config_mod._get_keyring_password() is None

    def test_set_success(self):
        mock_keyring = MagicMock()
        with patch.dict("sys.modules", {"keyring": mock_keyring}):
            assert config_mod._set_keyring_password("pw") is True
        mock_keyring.set_password.assert_called_once_with(
            config_mod.KEYRING_SERVICE, config_mod.KEYRING_USERNAME, "pw"
        )

    def test_set_failure(self):
        mock_keyring = MagicMock()
        mock_keyring.set_password.side_effect = RuntimeError("locked")
        with patch.dict("sys.modules", {"keyring": mock_keyring}):
            assert config_mod._set_keyring_password("pw") is False

    def test_delete_failure(self):
        mock_keyring = MagicMock()
        mock_keyring.delete_password.side_effect = RuntimeError("not found")
        with patch.dict("sys.modules", {"keyring": mock_keyring}):
            assert config_mod._delete_keyring_password() is False


class TestRecords:
    def test_list_companies(self, workspace):
        assert config_mod.list_companies() == ["acme"]

    def test_list_missing_dir(self, tmp_path):
        with patch("gstinvoice.config.get_config_dir", return_value=tmp_path / "missing"):
            assert config_mod.list_companies() == []
            assert config_mod.list_buyers() == []

    def test_load_company(self, workspace, company_dict):
        assert config_mod.load_company("acme") == company_dict

    def test_load_missing_company(self, workspace):
        with pytest.raises(FileNotFoundError):
            config_mod.load_company("nope")

    def test_save_and_load_buyer(self, workspace):
        data = {"name": "Initech", "address": "Chennai", "gstin": "33AAACI1234K1Z2"}
        path = config_mod.save_buyer("initech", data)
        assert path.name == "initech.yaml"
        assert not path.with_suffix(".tmp").exists()
        assert config_mod.load_buyer("initech") == data
        assert config_mod.list_buyers() == ["globex", "initech"]

    def test_save_unicode(self, workspace):
        config_mod.save_company("rupee", {"name": "₹ Traders", "address": "Mumbai"})
        raw = (workspace / "config" / "companies" / "rupee.yaml").read_text()
        assert "₹ Traders" in raw
        assert yaml.safe_load(raw)["name"] == "₹ Traders"

    def test_delete_company(self, workspace):
        config_mod.delete_company("acme")
        assert config_mod.list_companies() == []

    def test_delete_buyer(self, workspace):
        config_mod.delete_buyer("globex")
        assert config_mod.list_buyers() == []


class TestDataFiles:
    def test_pdf_dir(self, workspace):
        assert config_mod.get_pdf_dir() == workspace / "data" / "pdf"

    def test_log_path(self, workspace):
        assert config_mod.get_log_path() == workspace / "data" / "gst-invoice.log"

    def test_store_asset(self, workspace):
        src = workspace / "Logo.PNG"
        src.write_bytes(b"\x89PNG fake")
        stored = config_mod.store_asset(src, prefix="logo_")
        assert stored.parent == workspace / "data" / "assets"
        assert stored.name.startswith("logo_")
        assert stored.suffix == ".png"
        assert stored.read_bytes() == b"\x89PNG fake"
        assert src.exists()

    def test_store_asset_missing_source(self, workspace):
        with pytest.raises(FileNotFoundError):
            config_mod.store_asset(workspace / "nope.png")

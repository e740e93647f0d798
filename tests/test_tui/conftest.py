from __future__ import annotations

import pytest

LOGIN_EMAIL = "owner@acme-events.in"
LOGIN_PASSWORD = "s3cret"


@pytest.fixture
def mock_config(workspace, monkeypatch):
    """Isolated config/data dirs (one company, one buyer) plus login credentials."""
    monkeypatch.setenv("GSTINVOICE_LOGIN_EMAIL", LOGIN_EMAIL)
    monkeypatch.setenv("GSTINVOICE_LOGIN_PASSWORD", LOGIN_PASSWORD)
    return workspace


@pytest.fixture
def saved_quotation(mock_config, sample_draft) -> dict:
    from gstinvoice.services.invoice import save

    return save(sample_draft)

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
import yaml

from gstinvoice.models.buyer import Buyer
from gstinvoice.models.company import Company
from gstinvoice.models.invoice import InvoiceDetails, LineItem, TaxRegime

# --- Company / buyer fixtures ---


@pytest.fixture
def company_dict() -> dict:
    return {
        "name": "Acme Events",
        "address": "12 MG Road\nPune 411001",
        "phone": "9876543210",
        "gstin": "27AAPFU0939F1ZV",
        "email": "billing@acme-events.in",
    }


@pytest.fixture
def company(company_dict: dict) -> Company:
    return Company.from_dict(company_dict)


@pytest.fixture
def buyer_dict() -> dict:
    return {
        "name": "Globex Pvt Ltd",
        "address": "4th Floor, Tower B\nBengaluru 560001",
        "gstin": "29AAACG1234H1Z5",
        "phone": "08041234567",
    }


@pytest.fixture
def buyer(buyer_dict: dict) -> Buyer:
    return Buyer.from_dict(buyer_dict)


# --- Invoice fixtures ---


@pytest.fixture
def sample_items() -> list[LineItem]:
    return [
        LineItem(description="Stage setup", hsn_code="998596", quantity=2, unit_rate=5000),
        LineItem(description="Sound system", hsn_code="998596", quantity=1, unit_rate=2500),
        LineItem(description="Venue deposit", quantity=1, unit_rate=1000, tax_exempt=True),
    ]


@pytest.fixture
def sample_draft(company, buyer, sample_items):
    from gstinvoice.services.invoice import InvoiceDraft

    return InvoiceDraft(
        company=company,
        buyer=buyer,
        details=InvoiceDetails(
            invoice_number="QT-2403-001",
            invoice_date="2024-03-15",
            payment_mode="NEFT",
            destination="Bengaluru",
        ),
        items=list(sample_items),
        gst_rate=Decimal("18"),
        regime=TaxRegime.SPLIT_DOMESTIC,
        company_slug="acme",
    )


@pytest.fixture
def today() -> date:
    return date(2024, 3, 15)


# --- Config / data dir fixture ---


@pytest.fixture
def workspace(tmp_path, company_dict, buyer_dict):
    """Isolated config and data directories with one company and one buyer."""
    cfg = tmp_path / "config"
    data = tmp_path / "data"
    (cfg / "companies").mkdir(parents=True)
    (cfg / "buyers").mkdir(parents=True)
    data.mkdir()
    (cfg / "companies" / "acme.yaml").write_text(yaml.dump(company_dict))
    (cfg / "buyers" / "globex.yaml").write_text(yaml.dump(buyer_dict))
    with (
        patch("gstinvoice.config.get_config_dir", return_value=cfg),
        patch("gstinvoice.config.get_data_dir", return_value=data),
    ):
        yield tmp_path

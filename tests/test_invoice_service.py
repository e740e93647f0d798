from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from gstinvoice.models.buyer import Buyer
from gstinvoice.models.invoice import InvoiceDetails, LineItem, TaxRegime
from gstinvoice.services import invoice as invoice_service
from gstinvoice.services.exceptions import InvoiceValidationError, QuotationNotFoundError
from gstinvoice.services.invoice import (
    InvoiceDraft,
    default_pdf_name,
    export_pdf,
    find_quotation,
    from_record,
    load_company_for,
    new_draft,
    save,
    to_record,
    validate_draft,
)
from gstinvoice.utils import registry, sequence


class TestDraft:
    def test_totals_follow_items(self, sample_draft):
        assert sample_draft.totals.grand_total == Decimal("15750.00")
        sample_draft.items.append(LineItem.from_amount(100))
        assert sample_draft.totals.grand_total == Decimal("15868.00")

    def test_amount_in_words(self, sample_draft):
        assert sample_draft.amount_in_words == (
            "Rupees - Fifteen Thousand Seven Hundred Fifty Only"
        )

    def test_new_draft_reserves_number(self, workspace, company):
        draft = new_draft(company, "acme", today=date(2024, 3, 15))
        assert draft.details.invoice_number == "QT-2403-001"
        assert draft.details.invoice_date == "2024-03-15"
        assert draft.company_slug == "acme"
        assert draft.gst_rate == Decimal("18")
        assert draft.regime is TaxRegime.NONE
        assert draft.items == []
        assert sequence.current_number() == 1

        second = new_draft(today=date(2024, 3, 15))
        assert second.details.invoice_number == "QT-2403-002"
        assert second.company is None


class TestValidateDraft:
    def test_complete_draft_passes(self, sample_draft):
        validate_draft(sample_draft)

    def test_blank_draft_lists_every_problem(self):
        draft = InvoiceDraft(
            company=None,
            buyer=Buyer(name="", address=""),
            details=InvoiceDetails(invoice_number=""),
        )
        with pytest.raises(InvoiceValidationError) as exc_info:
            validate_draft(draft)
        assert exc_info.value.errors == [
            "Please select a seller company",
            "Please fill in: Buyer name",
            "Please fill in: Buyer address",
            "Please fill in: Invoice number",
            "Please fill in: Invoice date",
            "Please add at least one item",
        ]

    def test_incomplete_company(self, sample_draft, company):
        sample_draft.company = replace(company, phone="", email=" ")
        with pytest.raises(InvoiceValidationError) as exc_info:
            validate_draft(sample_draft)
        assert exc_info.value.errors == [
            "Please fill in: Company phone",
            "Please fill in: Company email",
        ]

    def test_item_problems(self, sample_draft):
        sample_draft.items = [
            LineItem(description="  ", quantity=1, unit_rate=100),
            LineItem(description="Free sample", quantity=1, unit_rate=0),
        ]
        with pytest.raises(InvoiceValidationError) as exc_info:
            validate_draft(sample_draft)
        assert exc_info.value.errors == [
            "Item 1: description is required",
            "Item 2: amount must be greater than zero",
        ]


class TestRecords:
    def test_to_record_shape(self, sample_draft):
        record = to_record(sample_draft)
        assert record["quotation_no"] == "QT-2403-001"
        assert record["status"] == "quotation"
        assert record["company_slug"] == "acme"
        assert record["buyer_gst"] == "29AAACG1234H1Z5"
        assert record["invoice_details"]["gstType"] == "CGST_SGST"
        assert record["invoice_details"]["invoiceDate"] == "2024-03-15"
        assert record["gst_rate"] == "18"
        assert record["total_after_tax"] == "15750.00"
        assert record["total_cgst"] == "1125.00"
        assert len(record["items"]) == 3

    def test_from_record_restores_draft(self, sample_draft, company):
        record = {**to_record(sample_draft), "id": "abc123"}
        restored = from_record(record, company)
        assert restored.quotation_id == "abc123"
        assert restored.buyer == sample_draft.buyer
        assert restored.details == sample_draft.details
        assert restored.regime is TaxRegime.SPLIT_DOMESTIC
        assert restored.gst_rate == Decimal("18")
        assert restored.totals == sample_draft.totals

    def test_from_record_sparse_entry(self):
        draft = from_record({"quotation_no": "QT-1"}, None)
        assert draft.details.invoice_number == "QT-1"
        assert draft.gst_rate == Decimal("18")
        assert draft.regime is TaxRegime.NONE
        assert draft.items == []
        assert draft.buyer.name == ""


class TestSave:
    def test_save_adds_then_updates(self, workspace, sample_draft):
        entry = save(sample_draft)
        assert sample_draft.quotation_id == entry["id"]
        assert len(registry.list_quotations()) == 1

        sample_draft.buyer = Buyer(name="Initech", address="Chennai")
        updated = save(sample_draft)
        assert updated["id"] == entry["id"]
        assert updated["buyer_name"] == "Initech"
        assert len(registry.list_quotations()) == 1

    def test_save_invalid_does_not_persist(self, workspace, sample_draft):
        sample_draft.items = []
        with pytest.raises(InvoiceValidationError):
            save(sample_draft)
        assert registry.list_quotations() == []

    def test_save_unknown_id(self, workspace, sample_draft):
        sample_draft.quotation_id = "gone"
        with pytest.raises(QuotationNotFoundError, match="gone"):
            save(sample_draft)


class TestExportPdf:
    def test_writes_pdf_and_marks_invoice(self, workspace, sample_draft):
        path = export_pdf(sample_draft)
        assert path == workspace / "data" / "pdf" / "Invoice_QT-2403-001.pdf"
        assert path.read_bytes().startswith(b"%PDF")
        assert registry.get_quotation(sample_draft.quotation_id)["status"] == "invoice"

    def test_never_overwrites(self, workspace, sample_draft):
        first = export_pdf(sample_draft)
        second = export_pdf(sample_draft)
        assert first != second
        assert second.name == "Invoice_QT-2403-001_1.pdf"
        assert len(registry.list_quotations()) == 1

    def test_explicit_output(self, workspace, sample_draft):
        target = workspace / "out" / "custom.pdf"
        assert export_pdf(sample_draft, target) == target
        assert target.exists()

    def test_invalid_draft_writes_nothing(self, workspace, sample_draft):
        sample_draft.buyer = Buyer(name="", address="")
        with pytest.raises(InvoiceValidationError):
            export_pdf(sample_draft)
        assert not (workspace / "data" / "pdf").exists()


def test_default_pdf_name():
    assert default_pdf_name("QT 2403/001") == "Invoice_QT-2403001.pdf"


class TestLookup:
    def test_find_by_id_and_number(self, workspace, sample_draft):
        entry = save(sample_draft)
        assert find_quotation(entry["id"])["id"] == entry["id"]
        assert find_quotation("QT-2403-001")["id"] == entry["id"]

    def test_find_missing(self, workspace):
        with pytest.raises(QuotationNotFoundError, match="Quotation not found: QT-9"):
            find_quotation("QT-9")

    def test_load_company_for(self, workspace, company):
        assert load_company_for({"company_slug": "acme"}) == company

    def test_load_company_for_missing(self, workspace):
        assert load_company_for({"company_slug": "nope"}) is None
        assert load_company_for({"quotation_no": "QT-1"}) is None

    def test_load_company_for_malformed_yaml(self, workspace):
        (workspace / "config" / "companies" / "broken.yaml").write_text("just a string\n")
        assert load_company_for({"company_slug": "broken"}) is None


def test_export_uses_configured_pdf_dir(workspace, sample_draft, tmp_path):
    target_dir = tmp_path / "elsewhere"
    with patch.object(invoice_service, "get_pdf_dir", return_value=target_dir):
        path = export_pdf(sample_draft)
    assert path.parent == target_dir

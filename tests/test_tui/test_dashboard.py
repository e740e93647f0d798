from __future__ import annotations

import pytest
from textual.widgets import Button, DataTable, Select, Static

from gstinvoice.tui.app import GstInvoiceApp
from gstinvoice.tui.screens.confirm import ConfirmScreen
from gstinvoice.tui.screens.dashboard import DashboardScreen
from gstinvoice.utils import registry


async def _settle(pilot) -> None:
    """Let worker chains (action -> refresh) run to completion."""
    for _ in range(2):
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()


@pytest.mark.asyncio
async def test_dashboard_empty_state(mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        screen = app.screen
        assert screen.query_one("#quotations-table", DataTable).display is False
        assert screen.query_one("#empty-state", Static).display is True
        assert screen.query_one("#registry-info").render().plain == "0"


@pytest.mark.asyncio
async def test_dashboard_info_cards(mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        assert app.screen.query_one("#companies-info").render().plain == "1"
        seq = app.screen.query_one("#seq-info").render().plain
        assert seq.startswith("QT-")
        assert seq.endswith("-001")


@pytest.mark.asyncio
async def test_dashboard_no_companies_hint(mock_config):
    (mock_config / "config" / "companies" / "acme.yaml").unlink()
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        assert "none" in app.screen.query_one("#companies-info").render().plain


@pytest.mark.asyncio
async def test_dashboard_lists_quotations(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        table = app.screen.query_one("#quotations-table", DataTable)
        assert table.display is True
        assert table.row_count == 1
        row = table.get_row(saved_quotation["id"])
        assert row[0] == "15.03.24"
        assert row[1] == "QT-2403-001"
        assert row[3] == "Globex Pvt Ltd"
        assert row[4] == "₹ 15,750.00"


@pytest.mark.asyncio
async def test_dashboard_reports_corrupt_backups(mock_config):
    (mock_config / "data" / "quotations.json.corrupt.20240301T100000").write_text("x")
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        assert "corrupt backup" in app.screen.query_one("#registry-info").render().plain


@pytest.mark.asyncio
async def test_status_filter(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        screen = app.screen
        screen.query_one("#filter-status", Select).value = "invoice"
        await pilot.pause()
        assert screen.query_one("#quotations-table", DataTable).row_count == 0
        assert screen.query_one("#empty-state", Static).display is True

        screen.query_one("#filter-status", Select).value = "quotation"
        await pilot.pause()
        assert screen.query_one("#quotations-table", DataTable).row_count == 1


@pytest.mark.asyncio
async def test_key_n_opens_form(mock_config):
    from gstinvoice.tui.screens.invoice_form import InvoiceFormScreen

    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("n")
        assert isinstance(app.screen, InvoiceFormScreen)


@pytest.mark.asyncio
async def test_enter_opens_selected(saved_quotation):
    from gstinvoice.tui.screens.invoice_form import InvoiceFormScreen

    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("enter")
        await pilot.pause()
        assert isinstance(app.screen, InvoiceFormScreen)
        assert app.screen._quotation_id == saved_quotation["id"]


@pytest.mark.asyncio
async def test_key_c_opens_companies(mock_config):
    from gstinvoice.tui.screens.parties import CompaniesScreen

    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("c")
        assert isinstance(app.screen, CompaniesScreen)


@pytest.mark.asyncio
async def test_key_b_opens_buyers(mock_config):
    from gstinvoice.tui.screens.parties import BuyersScreen

    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("b")
        assert isinstance(app.screen, BuyersScreen)


@pytest.mark.asyncio
async def test_convert_to_invoice(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("i")
        await _settle(pilot)
        assert registry.get_quotation(saved_quotation["id"])["status"] == "invoice"


@pytest.mark.asyncio
async def test_duplicate(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("r")
        await _settle(pilot)
        entries = registry.list_quotations()
        assert len(entries) == 2
        copy = next(e for e in entries if e["id"] != saved_quotation["id"])
        assert copy["quotation_no"].endswith("-001")
        assert copy["quotation_no"] != saved_quotation["quotation_no"]
        assert copy["buyer_name"] == saved_quotation["buyer_name"]
        assert app.screen.query_one("#quotations-table", DataTable).row_count == 2


@pytest.mark.asyncio
async def test_delete_asks_confirmation(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("d")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmScreen)
        app.screen.query_one("#btn-confirm", Button).press()
        await pilot.pause()
        await _settle(pilot)
        assert isinstance(app.screen, DashboardScreen)
        assert registry.list_quotations() == []
        assert app.screen.query_one("#empty-state", Static).display is True


@pytest.mark.asyncio
async def test_delete_cancelled(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("d")
        await pilot.pause()
        assert isinstance(app.screen, ConfirmScreen)
        await pilot.press("escape")
        await _settle(pilot)
        assert isinstance(app.screen, DashboardScreen)
        assert len(registry.list_quotations()) == 1


@pytest.mark.asyncio
async def test_export_pdf(saved_quotation, mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("p")
        await _settle(pilot)
        pdf = mock_config / "data" / "pdf" / "Invoice_QT-2403-001.pdf"
        assert pdf.exists()
        assert registry.get_quotation(saved_quotation["id"])["status"] == "invoice"


@pytest.mark.asyncio
async def test_export_incomplete_quotation(mock_config):
    registry.add_quotation({"quotation_no": "QT-2403-005", "company_slug": "acme"})
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("p")
        await _settle(pilot)
        assert not (mock_config / "data" / "pdf").exists()
        assert registry.find_by_number("QT-2403-005")["status"] == "quotation"


@pytest.mark.asyncio
async def test_actions_without_selection(mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        for key in ("r", "i", "p", "d"):
            await pilot.press(key)
            await pilot.pause()
            assert isinstance(app.screen, DashboardScreen)
        assert registry.list_quotations() == []


@pytest.mark.asyncio
async def test_buttons_mirror_keys(saved_quotation):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await _settle(pilot)
        app.screen.query_one("#btn-convert", Button).press()
        await pilot.pause()
        await _settle(pilot)
        assert registry.get_quotation(saved_quotation["id"])["status"] == "invoice"

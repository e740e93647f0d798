from __future__ import annotations

import pytest
from textual.widgets import Button

from gstinvoice.tui.app import GstInvoiceApp
from gstinvoice.tui.screens.dashboard import DashboardScreen
from gstinvoice.tui.screens.help import HelpScreen


@pytest.mark.asyncio
async def test_help_screen_opens(mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("h")
        assert isinstance(app.screen, HelpScreen)


@pytest.mark.asyncio
async def test_help_screen_closes_on_escape(mock_config):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("h")
        assert isinstance(app.screen, HelpScreen)
        await pilot.press("escape")
        assert isinstance(app.screen, DashboardScreen)


@pytest.mark.asyncio
@pytest.mark.parametrize("button_id", ["#btn-help-close", "#btn-modal-close"])
async def test_help_screen_closes_on_button(mock_config, button_id):
    app = GstInvoiceApp(require_login=False)
    async with app.run_test() as pilot:
        await pilot.press("h")
        assert isinstance(app.screen, HelpScreen)
        app.screen.query_one(button_id, Button).press()
        await pilot.pause()
        assert isinstance(app.screen, DashboardScreen)
